"""Token pricing for optimization cost estimates.

Costs are estimated per prompt token for each supported target model so the
optimizer can report what the original and the optimized prompt would cost.

TODO: Load prices from configuration so they can change without a release.
"""

from typing import Dict, Optional

CURRENCY = "USD"

# Pricing table: model id -> USD per prompt token
PRICING_TABLE: Dict[str, float] = {
    "openai-gpt4": 0.00003,
    "anthropic-claude": 0.000015,
    "deepseek-chat": 0.000001,
}


class TokenPricingService:
    """Service for estimating prompt costs based on token counts."""

    def __init__(self, pricing_table: Optional[Dict[str, float]] = None):
        """
        Initialize pricing service.

        Args:
            pricing_table: Optional custom pricing table. Defaults to PRICING_TABLE.
        """
        self.pricing_table: Dict[str, float] = (
            PRICING_TABLE if pricing_table is None else pricing_table
        )

    def price_for_model(self, model: Optional[str]) -> Optional[float]:
        """
        Get the per-token price for a model.

        Args:
            model: Model id (e.g., "openai-gpt4")

        Returns:
            USD per token, or None if pricing is not available
        """
        if not model:
            return None
        return self.pricing_table.get(self._normalize_model(model))

    def calculate_cost(self, model: Optional[str], tokens: Optional[int]) -> Optional[float]:
        """
        Calculate cost in USD for a number of prompt tokens.

        Args:
            model: Model id
            tokens: Token count

        Returns:
            Cost in USD, or None if pricing not available or inputs invalid
        """
        if tokens is None or tokens < 0:
            return None

        price = self.price_for_model(model)
        if price is None:
            return None

        return round(tokens * price, 8)  # Round to 8 decimal places

    def _normalize_model(self, model: str) -> str:
        """Normalize model name to match pricing table keys."""
        return model.lower().strip()


# Singleton instance for easy access
_pricing_service: Optional[TokenPricingService] = None


def get_pricing_service() -> TokenPricingService:
    """Get the global token pricing service instance."""
    global _pricing_service
    if _pricing_service is None:
        _pricing_service = TokenPricingService()
    return _pricing_service
