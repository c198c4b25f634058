"""
Test configuration and fixtures for promptsmith tests

This module provides:
- Import of all fixtures from fixtures/ (adapters, registry, engine, settings)

Usage:
    @pytest.mark.asyncio
    async def test_optimize(engine):
        result = await engine.optimize(
            OptimizationRequest(prompt="Write a story", target_model="openai-gpt4")
        )
        assert result.original_prompt == "Write a story"

    # Scripted adapter behaviour
    @pytest.mark.asyncio
    async def test_fallback(fake_engine, fake_adapter):
        fake_adapter.error = RuntimeError("boom")
        ...
"""

# Import all fixtures for test usage
from tests.fixtures import *  # noqa: F401, F403
