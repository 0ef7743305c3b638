"""Repositories package."""

from .impl.search_record_repository import SearchRecordRepository
from .models import SearchRecord

__all__ = ["SearchRecord", "SearchRecordRepository"]
