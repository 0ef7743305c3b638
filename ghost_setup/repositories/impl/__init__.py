"""Repositories implementation package."""
