"""Engine Layer - Build Pipeline and Resilience Primitives

This module provides the core engine layer for the setup finder, implementing:
- BuildOrchestrator: Plan → Search → Rank pipeline entry point
- with_retry / RetryConfig: Exponential backoff executor
- classify_exception: Five-kind error classifier
- CacheAdapter: Best-effort cache accessor
- BudgetManager: Money budget enforcement and chart
- BuildResult: Standardized result format
"""

from .budget import BudgetConfig, BudgetManager
from .cache_adapter import CacheAdapter
from .classifier import classify_exception, get_user_friendly_message, is_retryable, status_for_error_type
from .orchestrator import BuildOrchestrator
from .result import BuildResult, BuildSource
from .retry import DEFAULT_RETRY_CONFIG, RetryConfig, with_retry
from .strategy import Plan, PlanSource, PlanStrategy, PlanType

__all__ = [
    "BuildOrchestrator",
    "BudgetManager",
    "BudgetConfig",
    "CacheAdapter",
    "BuildResult",
    "BuildSource",
    "Plan",
    "PlanSource",
    "PlanStrategy",
    "PlanType",
    # Resilience
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
    "with_retry",
    "classify_exception",
    "is_retryable",
    "get_user_friendly_message",
    "status_for_error_type",
]
