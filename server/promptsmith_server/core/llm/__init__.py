"""Model adapters for the supported providers."""

from .adapter import ModelAdapter, ModelInfo, PromptStructure, PromptValidation, ValidationIssue
from .claude_adapter import ClaudeAdapter
from .deepseek_adapter import DeepSeekAdapter
from .openai_adapter import OpenAIAdapter
from .registry import ModelRegistry
from .support import AdapterSupport

__all__ = [
    "ModelAdapter",
    "ModelInfo",
    "PromptStructure",
    "PromptValidation",
    "ValidationIssue",
    "AdapterSupport",
    "ClaudeAdapter",
    "DeepSeekAdapter",
    "OpenAIAdapter",
    "ModelRegistry",
]
