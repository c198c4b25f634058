"""Optimization engine fixtures."""

import pytest

from promptsmith_server.core.llm import ModelRegistry
from promptsmith_server.core.optimizer import OptimizationEngine, PromptAnalyzer

from .adapters import FakeAdapter


@pytest.fixture
def analyzer() -> PromptAnalyzer:
    return PromptAnalyzer()


@pytest.fixture
def engine(registry) -> OptimizationEngine:
    """Engine over the three real adapters with the default rule catalogue."""
    return OptimizationEngine(registry)


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def fake_engine(fake_adapter, pricing) -> OptimizationEngine:
    """Engine whose only model is served by ``fake_adapter``."""
    return OptimizationEngine(ModelRegistry([fake_adapter], pricing=pricing), pricing=pricing)
