"""Model registry: which target models are available and which adapter serves them."""

import asyncio
import logging
from typing import Iterable, Optional, cast

from ...config import Settings, get_settings
from ..token_pricing import TokenPricingService, get_pricing_service
from .adapter import ModelAdapter, ModelInfo
from .claude_adapter import ClaudeAdapter
from .deepseek_adapter import DeepSeekAdapter
from .openai_adapter import OpenAIAdapter

logger = logging.getLogger(__name__)

DISPLAY_NAMES = {
    "openai-gpt4": "GPT-4",
    "anthropic-claude": "Claude 3 Sonnet",
    "deepseek-chat": "DeepSeek Chat",
}


class ModelRegistry:
    """Registry of model adapters keyed by model id."""

    def __init__(
        self,
        adapters: Iterable[ModelAdapter] = (),
        pricing: Optional[TokenPricingService] = None,
    ) -> None:
        """Initialize model registry.

        Args:
            adapters: Adapters to register up front
            pricing: Pricing service used for model info
        """
        self._adapters: dict[str, ModelAdapter] = {}
        self._pricing = pricing or get_pricing_service()
        for adapter in adapters:
            self.register(adapter)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ModelRegistry":
        """Build a registry with an adapter for every provider that has an API key.

        Args:
            settings: Settings to read; defaults to the module settings

        Returns:
            ModelRegistry instance
        """
        settings = settings or get_settings()
        common = dict(
            timeout=settings.adapter_timeout_seconds,
            max_retries=settings.adapter_max_retries,
            remote_rewrite_enabled=settings.remote_rewrite_enabled,
        )
        adapters: list[ModelAdapter] = []

        if settings.openai_api_key:
            adapters.append(
                OpenAIAdapter(
                    api_key=settings.openai_api_key,
                    base_url=settings.openai_base_url,
                    model=settings.openai_model,
                    **common,
                )
            )

        if settings.anthropic_api_key:
            adapters.append(
                ClaudeAdapter(
                    api_key=settings.anthropic_api_key,
                    base_url=settings.anthropic_base_url,
                    model=settings.anthropic_model,
                    **common,
                )
            )

        if settings.deepseek_api_key:
            adapters.append(
                DeepSeekAdapter(
                    api_key=settings.deepseek_api_key,
                    base_url=settings.deepseek_base_url,
                    model=settings.deepseek_model,
                    **common,
                )
            )

        if not adapters:
            logger.warning("No model providers configured; every model will be reported unavailable")

        return cls(adapters)

    def register(self, adapter: ModelAdapter) -> None:
        if adapter.name in self._adapters:
            logger.info(f"Replacing adapter for model: {adapter.name}")
        self._adapters[adapter.name] = adapter

    def unregister(self, model_id: str) -> None:
        self._adapters.pop(model_id, None)

    def is_available(self, model_id: str) -> bool:
        return model_id in self._adapters

    def resolve_adapter(self, model_id: str) -> ModelAdapter:
        """Get the adapter serving a model.

        Args:
            model_id: Model id (e.g., "openai-gpt4")

        Returns:
            ModelAdapter instance

        Raises:
            ValueError: If the model is not available
        """
        if model_id not in self._adapters:
            raise ValueError(
                f"Model '{model_id}' is not available. "
                f"Available models: {list(self._adapters.keys())}"
            )
        return cast(ModelAdapter, self._adapters[model_id])

    def supported_models(self) -> list[ModelInfo]:
        """Get info for every registered model."""
        return [
            ModelInfo(
                id=adapter.name,
                name=DISPLAY_NAMES.get(adapter.name, adapter.name),
                provider=adapter.provider,
                version=adapter.version,
                max_tokens=adapter.max_tokens,
                supported_roles=tuple(adapter.supported_roles),
                price_per_token=self._pricing.price_for_model(adapter.name),
            )
            for adapter in self._adapters.values()
        ]

    async def check_all_connections(self) -> dict[str, bool]:
        """Check every adapter's API connection concurrently.

        Returns:
            Model id -> reachable. A check that raises counts as unreachable.
        """
        model_ids = list(self._adapters.keys())
        results = await asyncio.gather(
            *(self._adapters[m].check_connection() for m in model_ids),
            return_exceptions=True,
        )

        status: dict[str, bool] = {}
        for model_id, result in zip(model_ids, results):
            if isinstance(result, BaseException):
                logger.error(f"Connection check raised for {model_id}: {result}")
                status[model_id] = False
            else:
                status[model_id] = bool(result)
        return status
