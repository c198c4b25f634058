"""Model adapter protocol and data models."""

from dataclasses import dataclass, field
from typing import Optional, Protocol

from ..optimizer.types import AdapterResult, OptimizationRequest, OptimizationRule


@dataclass
class ValidationIssue:
    """A problem found while validating a prompt for a model."""

    code: str  # "EMPTY_PROMPT", "TOKEN_LIMIT_WARNING"
    message: str
    severity: str = "error"  # "error" or "warning"
    suggestion: Optional[str] = None


@dataclass
class PromptValidation:
    """Result of validating a prompt against a model's constraints."""

    is_valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def extend(
        self,
        errors: list[ValidationIssue] | None = None,
        warnings: list[ValidationIssue] | None = None,
    ) -> "PromptValidation":
        """New validation with additional provider-specific issues."""
        all_errors = self.errors + (errors or [])
        return PromptValidation(
            is_valid=not all_errors,
            errors=all_errors,
            warnings=self.warnings + (warnings or []),
            suggestions=list(self.suggestions),
        )


@dataclass
class PromptStructure:
    """Parts of a prompt that an adapter lays out in its model's preferred format."""

    user_prompt: str
    system_prompt: Optional[str] = None
    context: Optional[str] = None
    examples: list[str] = field(default_factory=list)


@dataclass
class ModelInfo:
    """Information about an available target model."""

    id: str  # "openai-gpt4", "anthropic-claude"
    name: str  # "GPT-4"
    provider: str  # "openai", "anthropic"
    version: str
    max_tokens: int
    supported_roles: tuple[str, ...]
    price_per_token: Optional[float]


class ModelAdapter(Protocol):
    """Protocol for provider-specific model adapters."""

    name: str
    provider: str
    version: str
    max_tokens: int
    supported_roles: tuple[str, ...]

    async def optimize(self, request: OptimizationRequest) -> AdapterResult:
        """Tailor a prompt to this model.

        Args:
            request: Request whose prompt is the text to adapt

        Returns:
            AdapterResult; on any failure the input text is returned unchanged
            with ``fell_back`` set
        """
        ...

    def validate(self, text: str) -> PromptValidation:
        """Check a prompt against this model's constraints."""
        ...

    def get_model_specific_rules(self) -> list[OptimizationRule]:
        """Rules this adapter applies before the remote rewrite."""
        ...

    def format_for_model(self, prompt: PromptStructure) -> str:
        """Lay out prompt parts in this model's preferred format."""
        ...

    def estimate_tokens(self, text: str) -> int:
        """Approximate token count of text for this model."""
        ...

    async def check_connection(self) -> bool:
        """Whether the provider API is reachable with the configured credentials."""
        ...
