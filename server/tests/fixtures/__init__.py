"""Pytest fixtures for promptsmith tests."""

from .adapters import (
    FakeAdapter,
    claude_adapter,
    deepseek_adapter,
    openai_adapter,
    pricing,
    registry,
)
from .engine import analyzer, engine, fake_adapter, fake_engine
from .settings import clean_env, clear_settings_env

__all__ = [
    # Adapters
    "FakeAdapter",
    "openai_adapter",
    "claude_adapter",
    "deepseek_adapter",
    "pricing",
    "registry",
    # Engine
    "analyzer",
    "engine",
    "fake_adapter",
    "fake_engine",
    # Settings
    "clean_env",
    "clear_settings_env",
]
