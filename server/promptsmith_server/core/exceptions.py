"""Exception hierarchy for the optimization core."""


class PromptsmithError(Exception):
    """Base class for all optimization core errors."""
    pass


class ValidationError(PromptsmithError):
    """Raised when an optimization request is rejected before the pipeline starts.

    This is the only error that crosses the core boundary.
    """
    pass


class RuleApplicationError(PromptsmithError):
    """Raised when a single rule fails to evaluate or transform text."""

    def __init__(self, rule_id: str, message: str):
        super().__init__(f"Rule '{rule_id}' failed: {message}")
        self.rule_id = rule_id


class AdapterOptimizationError(PromptsmithError):
    """Raised when the upstream model call behind an adapter fails."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} optimization failed: {message}")
        self.provider = provider


class TokenEstimationError(PromptsmithError):
    """Raised when an adapter cannot estimate token usage."""
    pass
