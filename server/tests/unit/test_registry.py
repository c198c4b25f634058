"""Tests for the model registry."""

import logging

import pytest

from promptsmith_server.config import Settings
from promptsmith_server.core.llm import ClaudeAdapter, ModelInfo, ModelRegistry, OpenAIAdapter
from tests.fixtures.adapters import FakeAdapter


class BrokenAdapter(FakeAdapter):
    async def check_connection(self) -> bool:
        raise RuntimeError("DNS failure")


class TestModelRegistry:
    """Tests for ModelRegistry."""

    def test_availability(self, registry):
        assert registry.is_available("openai-gpt4")
        assert registry.is_available("anthropic-claude")
        assert registry.is_available("deepseek-chat")
        assert not registry.is_available("gpt-unknown")

    def test_resolve_adapter(self, registry, openai_adapter):
        assert registry.resolve_adapter("openai-gpt4") is openai_adapter

        with pytest.raises(ValueError, match="Model 'gpt-unknown' is not available"):
            registry.resolve_adapter("gpt-unknown")

    def test_supported_models(self, registry):
        models = {m.id: m for m in registry.supported_models()}

        assert all(isinstance(m, ModelInfo) for m in models.values())
        assert models["openai-gpt4"].name == "GPT-4"
        assert models["anthropic-claude"].provider == "anthropic"
        assert models["deepseek-chat"].price_per_token == pytest.approx(0.000001)
        assert "system" not in models["anthropic-claude"].supported_roles

    def test_register_and_unregister(self):
        registry = ModelRegistry()
        first, second = FakeAdapter(), FakeAdapter()

        registry.register(first)
        registry.register(second)
        assert registry.resolve_adapter("fake-model") is second

        registry.unregister("fake-model")
        assert not registry.is_available("fake-model")

    def test_unpriced_model_info(self):
        info = ModelRegistry([FakeAdapter()]).supported_models()[0]
        assert info.price_per_token is None
        assert info.name == "fake-model"

    def test_from_settings_only_configured_providers(self, clean_env):
        settings = Settings(
            _env_file=None,
            openai_api_key="sk-test",
            anthropic_api_key="sk-ant-test",
            remote_rewrite_enabled=False,
        )

        registry = ModelRegistry.from_settings(settings)

        assert isinstance(registry.resolve_adapter("openai-gpt4"), OpenAIAdapter)
        assert isinstance(registry.resolve_adapter("anthropic-claude"), ClaudeAdapter)
        assert not registry.is_available("deepseek-chat")
        assert registry.resolve_adapter("openai-gpt4").remote_rewrite_enabled is False

    def test_from_settings_without_keys(self, clean_env, caplog):
        with caplog.at_level(logging.WARNING):
            registry = ModelRegistry.from_settings(Settings(_env_file=None))

        assert registry.supported_models() == []
        assert "No model providers configured" in caplog.text

    @pytest.mark.asyncio
    async def test_check_all_connections(self):
        registry = ModelRegistry([FakeAdapter(), BrokenAdapter(name="broken-model")])

        status = await registry.check_all_connections()

        assert status == {"fake-model": True, "broken-model": False}
