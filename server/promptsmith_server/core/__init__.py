"""Core business logic"""

from .exceptions import (
    AdapterOptimizationError,
    PromptsmithError,
    RuleApplicationError,
    TokenEstimationError,
    ValidationError,
)
from .token_pricing import TokenPricingService, get_pricing_service

__all__ = [
    "PromptsmithError",
    "ValidationError",
    "RuleApplicationError",
    "AdapterOptimizationError",
    "TokenEstimationError",
    "TokenPricingService",
    "get_pricing_service",
]
