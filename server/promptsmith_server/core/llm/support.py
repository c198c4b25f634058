"""Behaviour shared by all model adapters.

Adapters hold an ``AdapterSupport`` instead of inheriting from a base class.
It provides generic validation, rule application, suggestions and the common
optimize flow (validate, apply rules, remote rewrite, fall back on failure).
"""

import logging
import math
import re
from typing import Awaitable, Callable

from ..exceptions import AdapterOptimizationError
from ..optimizer.analyzer import PromptAnalyzer, count_cjk
from ..optimizer.rules_engine import RulesEngine
from ..optimizer.types import (
    AdapterResult,
    AnalysisContext,
    AppendTransform,
    Improvement,
    OptimizationRequest,
    OptimizationRule,
    PrependTransform,
    RuleApplicationResult,
    Suggestion,
    TextCondition,
)
from .adapter import PromptValidation, ValidationIssue

logger = logging.getLogger(__name__)

RewriteFunc = Callable[[str, OptimizationRequest], Awaitable[str]]

_FENCE = re.compile(r"^```[\w-]*\n(.*?)\n?```$", re.DOTALL)

REWRITE_INSTRUCTIONS = """You are an expert prompt engineer. Improve the prompt the user provides so that it is clearer, more specific and more effective.

Principles:
1. Keep the original intent unchanged
2. Make the instructions explicit and specific
3. Add necessary context
4. Specify the expected output format
5. Use phrasing that suits {model_notes}
6. Keep the language of the original prompt

Return only the improved prompt, without any explanation."""

LEVEL_NOTES = {
    "basic": "Perform a basic optimization focused on clarity and accuracy.",
    "advanced": "Perform an advanced optimization including restructuring and context enrichment.",
    "expert": "Perform an expert optimization that improves every aspect of the prompt.",
}


def build_rewrite_instructions(model_notes: str, level: str) -> str:
    """System instructions for the remote rewrite call."""
    instructions = REWRITE_INSTRUCTIONS.format(model_notes=model_notes)
    note = LEVEL_NOTES.get(level)
    return f"{instructions}\n\n{note}" if note else instructions


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around a whole reply."""
    stripped = text.strip()
    match = _FENCE.match(stripped)
    return match.group(1).strip() if match else stripped


def estimate_by_ratio(text: str, cjk_chars_per_token: float, other_chars_per_token: float) -> int:
    """Character-ratio token estimate, CJK and other characters counted separately."""
    cjk = count_cjk(text)
    other = len(text) - cjk
    return math.ceil(cjk / cjk_chars_per_token + other / other_chars_per_token)


class AdapterSupport:
    """Generic adapter behaviour, composed into each adapter."""

    def __init__(
        self,
        model_id: str,
        provider: str,
        max_tokens: int,
        rules_engine: RulesEngine | None = None,
        analyzer: PromptAnalyzer | None = None,
    ):
        """
        Initialize adapter support.

        Args:
            model_id: Model id of the owning adapter (e.g. "openai-gpt4")
            provider: Provider display name used in error messages
            max_tokens: Token limit of the model
            rules_engine: Engine used to apply adapter rules
            analyzer: Analyzer used for the fresh analysis of adapter input
        """
        self.model_id = model_id
        self.provider = provider
        self.max_tokens = max_tokens
        self.rules_engine = rules_engine or RulesEngine()
        self.analyzer = analyzer or PromptAnalyzer()

    def validate(self, text: str) -> PromptValidation:
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []
        suggestions: list[str] = []

        if not text or not text.strip():
            errors.append(ValidationIssue(code="EMPTY_PROMPT", message="Prompt cannot be empty"))

        # Rough estimate: 1 token is about 4 characters
        if len(text) > self.max_tokens * 4:
            errors.append(
                ValidationIssue(
                    code="PROMPT_TOO_LONG",
                    message=f"Prompt may exceed the model's token limit ({self.max_tokens})",
                )
            )

        if "{{" in text and "}}" in text:
            warnings.append(
                ValidationIssue(
                    code="TEMPLATE_VARIABLES",
                    message="Template variables detected; replace them before use",
                    severity="warning",
                    suggestion="Replace template variables with actual values",
                )
            )

        if len(text) < 10:
            suggestions.append("Add more context to get better results")

        return PromptValidation(is_valid=not errors, errors=errors, warnings=warnings, suggestions=suggestions)

    def base_rules(self) -> list[OptimizationRule]:
        """Rules every adapter applies."""
        return [
            OptimizationRule(
                id="explicit-request",
                name="Explicit Request",
                description="Phrase the prompt as an explicit request",
                category="clarity",
                applicable_models=(self.model_id,),
                condition=TextCondition(contains_none=("请", "帮我", "please", "help")),
                transform=PrependTransform(text="Please help with the following.", text_zh="请帮我完成以下内容："),
                priority=3,
            ),
            OptimizationRule(
                id="context-provision",
                name="Context Provision",
                description="Ask for more context on very short prompts",
                category="completeness",
                applicable_models=(self.model_id,),
                condition=TextCondition(max_length=49),
                transform=AppendTransform(
                    text="Background: add the relevant details for this request.",
                    text_zh="背景信息：请补充与此请求相关的细节。",
                ),
                priority=2,
            ),
            OptimizationRule(
                id="specific-format",
                name="Specific Format",
                description="State the expected output format",
                category="format",
                applicable_models=(self.model_id,),
                priority=1,
            ),
        ]

    def apply_rules(
        self, text: str, rules: list[OptimizationRule], context: AnalysisContext
    ) -> RuleApplicationResult:
        """Apply adapter rules against a fresh analysis of the adapter input."""
        analysis = self.analyzer.analyze(text, context)
        active = [rule for rule in rules if rule.is_active]
        return self.rules_engine.apply_rules(text, active, analysis)

    def suggestions(self, text: str) -> list[Suggestion]:
        suggestions = []

        if len(text) < 20:
            suggestions.append(
                Suggestion(
                    id="add-context",
                    type="context",
                    title="Add more context",
                    description="The prompt is short; add background information and concrete requirements",
                    priority=1,
                    category="improvement",
                    example="Describe the scenario and the output format you expect",
                )
            )

        if "请" not in text and "帮助" not in text and "please" not in text.lower():
            suggestions.append(
                Suggestion(
                    id="polite-language",
                    type="tone",
                    title="Use polite phrasing",
                    description="Polite requests tend to produce more cooperative answers",
                    priority=2,
                    category="tone",
                    example='Change "Generate a ..." to "Please generate a ..."',
                )
            )

        return suggestions

    def confidence(self, improvements: list[Improvement]) -> float:
        if not improvements:
            return 0.5

        high = sum(1 for i in improvements if i.impact == "high")
        medium = sum(1 for i in improvements if i.impact == "medium")
        low = sum(1 for i in improvements if i.impact == "low")

        score = high * 0.4 + medium * 0.3 + low * 0.1
        return min(0.95, max(0.1, 0.5 + score))

    async def run(
        self,
        request: OptimizationRequest,
        validation: PromptValidation,
        rules: list[OptimizationRule],
        rewrite: RewriteFunc,
        suggestions: list[Suggestion],
        remote_rewrite_enabled: bool = True,
    ) -> AdapterResult:
        """
        Common optimize flow.

        Args:
            request: Request whose prompt is the adapter input
            validation: Adapter validation of the input
            rules: Adapter rules to apply before the rewrite
            rewrite: Provider call that rewrites the rule-optimized text
            suggestions: Adapter suggestions to return on success
            remote_rewrite_enabled: Skip the provider call when False

        Returns:
            AdapterResult. Any failure returns the input unchanged with
            ``fell_back`` set.
        """
        text = request.prompt
        logger.info(f"Starting optimization for {self.model_id}")

        if not validation.is_valid:
            codes = ", ".join(e.code for e in validation.errors)
            logger.warning(f"{self.provider} validation failed ({codes}), returning input unchanged")
            return AdapterResult(optimized_prompt=text, fell_back=True)

        try:
            context = AnalysisContext(
                target_model=self.model_id,
                message_role=request.message_role,
                system_prompt=request.system_prompt,
                optimization_level=request.optimization_level,
            )
            applied = self.apply_rules(text, rules, context)
            improvements = list(applied.improvements)
            optimized = applied.optimized_text

            if remote_rewrite_enabled:
                rewritten = strip_code_fences(await rewrite(optimized, request))
                if not rewritten:
                    raise AdapterOptimizationError(self.provider, "empty response")
                if rewritten != optimized:
                    improvements.append(
                        Improvement(
                            category="model_specific",
                            description=f"Rewrote the prompt for {self.model_id}",
                            impact="medium",
                            before=optimized,
                            after=rewritten,
                            reasoning=f"Phrasing tuned to how {self.provider} models follow instructions",
                        )
                    )
                    optimized = rewritten
        except Exception as e:
            error = e if isinstance(e, AdapterOptimizationError) else AdapterOptimizationError(self.provider, str(e))
            logger.error(
                f"{error}; returning input unchanged",
                exc_info=True,
                extra={"model_id": self.model_id},
            )
            return AdapterResult(optimized_prompt=text, fell_back=True)

        result = AdapterResult(
            optimized_prompt=optimized,
            improvements=improvements,
            applied_rules=list(applied.applied_rules),
            suggestions=suggestions,
            confidence=self.confidence(improvements),
        )
        logger.info(
            f"Optimization completed for {self.model_id}",
            extra={
                "original_length": len(text),
                "optimized_length": len(optimized),
                "improvements_count": len(improvements),
                "confidence": result.confidence,
            },
        )
        return result
