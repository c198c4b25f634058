"""Main orchestrator for prompt optimization."""

import logging
import math
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Mapping, Optional

from ...config import Settings, get_settings
from ..exceptions import TokenEstimationError, ValidationError
from ..token_pricing import CURRENCY, TokenPricingService, get_pricing_service
from .analyzer import PromptAnalyzer
from .best_practices import BestPracticesTransformer
from .rule_source import InMemoryRuleSource, RuleSource
from .rules_engine import RulesEngine
from .suggestions import SuggestionGenerator, merge_suggestions
from .types import (
    VALID_LEVELS,
    VALID_ROLES,
    AdapterResult,
    AnalysisContext,
    CostBreakdown,
    Improvement,
    OptimizationRequest,
    OptimizationResult,
    OptimizationRule,
    PromptAnalysis,
    TokenEstimate,
)

if TYPE_CHECKING:
    from ..llm.adapter import ModelAdapter
    from ..llm.registry import ModelRegistry

logger = logging.getLogger(__name__)

# Highest rule priority allowed per optimization level. None means unrestricted.
DEFAULT_LEVEL_CEILINGS: dict[str, Optional[int]] = {"basic": 5, "advanced": 8, "expert": None}
DEFAULT_MAX_PROMPT_LENGTH = 50000


class OptimizationStage(str, Enum):
    VALIDATING = "validating"
    ANALYZING = "analyzing"
    RULE_QUERYING = "rule_querying"
    RULE_APPLYING = "rule_applying"
    BEST_PRACTICES_APPLYING = "best_practices_applying"
    MODEL_ADAPTING = "model_adapting"
    SUGGESTION_GENERATING = "suggestion_generating"
    TOKEN_ESTIMATING = "token_estimating"
    SCORING_CONFIDENCE = "scoring_confidence"
    ASSEMBLED = "assembled"
    FAILED = "failed"


StageObserver = Callable[[OptimizationStage], None]


class OptimizationEngine:
    """Orchestrates the complete prompt optimization process."""

    def __init__(
        self,
        registry: "ModelRegistry",
        rule_source: Optional[RuleSource] = None,
        pricing: Optional[TokenPricingService] = None,
        analyzer: Optional[PromptAnalyzer] = None,
        rules_engine: Optional[RulesEngine] = None,
        best_practices: Optional[BestPracticesTransformer] = None,
        suggestion_generator: Optional[SuggestionGenerator] = None,
        level_ceilings: Optional[Mapping[str, Optional[int]]] = None,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
        on_stage: Optional[StageObserver] = None,
    ):
        """
        Initialize optimization engine.

        Args:
            registry: Registry resolving target models to adapters
            rule_source: Where optimization rules come from (default: built-in catalogue)
            pricing: Pricing service for cost estimates
            analyzer: Prompt analyzer
            rules_engine: Rules engine
            best_practices: Best-practices transformer
            suggestion_generator: Suggestion generator
            level_ceilings: Highest rule priority per optimization level
            max_prompt_length: Longest accepted prompt, in characters
            on_stage: Called with each pipeline stage as it starts
        """
        self.registry = registry
        self.rule_source = rule_source or InMemoryRuleSource()
        self.pricing = pricing or get_pricing_service()
        self.analyzer = analyzer or PromptAnalyzer()
        self.rules_engine = rules_engine or RulesEngine()
        self.best_practices = best_practices or BestPracticesTransformer()
        self.suggestion_generator = suggestion_generator or SuggestionGenerator()
        self.level_ceilings = dict(DEFAULT_LEVEL_CEILINGS if level_ceilings is None else level_ceilings)
        self.max_prompt_length = max_prompt_length
        self.on_stage = on_stage

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "OptimizationEngine":
        """Build an engine and its model registry from settings."""
        # Adapters import the optimizer types, so the registry is loaded on demand
        from ..llm.registry import ModelRegistry

        settings = settings or get_settings()
        return cls(
            registry=ModelRegistry.from_settings(settings),
            level_ceilings=settings.level_priority_ceilings,
            max_prompt_length=settings.max_prompt_length,
            **kwargs,
        )

    async def optimize(self, request: OptimizationRequest) -> OptimizationResult:
        """
        Optimize a prompt for a target model.

        Process:
        1. Validate the request (the only step that can fail)
        2. Analyze the prompt
        3. Query rules for the model, level and prompt domain
        4. Apply rules, then best practices
        5. Let the model adapter tailor the text
        6. Generate suggestions, estimate tokens and score confidence

        Args:
            request: Optimization request

        Returns:
            Optimization result

        Raises:
            ValidationError: If the request is rejected
        """
        start_time = time.perf_counter()
        original_prompt = request.prompt

        self._enter(OptimizationStage.VALIDATING)
        try:
            self._validate(request)
        except ValidationError as e:
            logger.warning(f"Optimization request rejected: {e}")
            self._enter(OptimizationStage.FAILED)
            raise

        model = request.target_model
        adapter = self.registry.resolve_adapter(model)
        logger.info(f"Starting optimization for model: {model}")

        self._enter(OptimizationStage.ANALYZING)
        analysis = self.analyzer.analyze(
            original_prompt,
            AnalysisContext(
                target_model=model,
                message_role=request.message_role,
                system_prompt=request.system_prompt,
                optimization_level=request.optimization_level,
            ),
        )

        self._enter(OptimizationStage.RULE_QUERYING)
        rules, rule_query_failed = self._query_rules(request, analysis)

        self._enter(OptimizationStage.RULE_APPLYING)
        rule_result = self.rules_engine.apply_rules(original_prompt, rules, analysis)

        self._enter(OptimizationStage.BEST_PRACTICES_APPLYING)
        practices_result = self.best_practices.apply(
            rule_result.optimized_text, model, request.message_role, analysis
        )

        self._enter(OptimizationStage.MODEL_ADAPTING)
        adapter_result = await self._adapt(adapter, request, practices_result.optimized_text)
        degraded = rule_query_failed or adapter_result.fell_back

        self._enter(OptimizationStage.SUGGESTION_GENERATING)
        suggestions = merge_suggestions(
            self.suggestion_generator.generate(request, analysis),
            adapter_result.suggestions,
        )

        self._enter(OptimizationStage.TOKEN_ESTIMATING)
        optimized_prompt = adapter_result.optimized_prompt
        estimate, estimation_failed = self._estimate_tokens(adapter, model, original_prompt, optimized_prompt)
        degraded = degraded or estimation_failed

        self._enter(OptimizationStage.SCORING_CONFIDENCE)
        improvements = [
            *rule_result.improvements,
            *practices_result.improvements,
            *adapter_result.improvements,
        ]
        confidence = self.calculate_confidence(
            analysis, rule_result.applied_rules, practices_result.applied_practices, improvements
        )

        self._enter(OptimizationStage.ASSEMBLED)
        result = OptimizationResult(
            original_prompt=original_prompt,
            optimized_prompt=optimized_prompt,
            improvements=improvements,
            confidence=confidence,
            applied_rules=[
                *rule_result.applied_rules,
                *practices_result.applied_practices,
                *adapter_result.applied_rules,
            ],
            suggestions=suggestions,
            estimated_tokens=estimate,
            processing_time_ms=int((time.perf_counter() - start_time) * 1000),
            model_used=model,
            degraded=degraded,
        )

        logger.info(
            f"Optimization completed in {result.processing_time_ms}ms with confidence: {confidence:.2f}",
            extra={"optimization_id": result.id, "model": model, "degraded": degraded},
        )
        return result

    def _enter(self, stage: OptimizationStage) -> None:
        logger.debug(f"Optimization stage: {stage.value}")
        if self.on_stage is not None:
            self.on_stage(stage)

    def _validate(self, request: OptimizationRequest) -> None:
        if not request.prompt or not request.prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        if len(request.prompt) > self.max_prompt_length:
            raise ValidationError(f"Prompt is too long (max {self.max_prompt_length:,} characters)")

        if not request.target_model:
            raise ValidationError("Target model is required")

        if not self.registry.is_available(request.target_model):
            raise ValidationError(f"Model {request.target_model} is not available")

        if request.message_role not in VALID_ROLES:
            raise ValidationError(
                f"Invalid message role: {request.message_role} (expected one of {', '.join(VALID_ROLES)})"
            )

        if request.optimization_level not in VALID_LEVELS:
            raise ValidationError(
                f"Invalid optimization level: {request.optimization_level} "
                f"(expected one of {', '.join(VALID_LEVELS)})"
            )

    def _query_rules(
        self, request: OptimizationRequest, analysis: PromptAnalysis
    ) -> tuple[list[OptimizationRule], bool]:
        """Rules for the request and whether the rule source failed."""
        model = request.target_model
        failed = False
        try:
            rules = self.rule_source.find_rules(
                active_only=True,
                applicable_model=model,
                max_priority=self.level_ceilings.get(request.optimization_level),
                domains=analysis.categories,
            )
        except Exception as e:
            logger.error(
                f"Rule query failed for {model}, continuing without catalogue rules: {e}",
                exc_info=True,
                extra={"model": model},
            )
            rules = []
            failed = True

        # Caller rules replace catalogue rules with the same id; the level ceiling does not apply to them
        custom = [r for r in request.custom_rules if r.is_active and r.applies_to(model)]
        if custom:
            custom_ids = {r.id for r in custom}
            rules = [r for r in rules if r.id not in custom_ids] + custom

        logger.debug(f"Selected {len(rules)} rules for {model} at level {request.optimization_level}")
        return rules, failed

    async def _adapt(self, adapter: "ModelAdapter", request: OptimizationRequest, text: str) -> AdapterResult:
        try:
            return await adapter.optimize(request.model_copy(update={"prompt": text}))
        except Exception as e:
            logger.error(
                f"Adapter for {adapter.name} raised instead of falling back: {e}",
                exc_info=True,
                extra={"model": adapter.name},
            )
            return AdapterResult(optimized_prompt=text, fell_back=True)

    def _estimate_tokens(
        self, adapter: "ModelAdapter", model: str, original: str, optimized: str
    ) -> tuple[TokenEstimate, bool]:
        """Token estimate and whether the character-count fallback had to be used."""
        try:
            try:
                original_tokens = adapter.estimate_tokens(original)
                optimized_tokens = adapter.estimate_tokens(optimized)
            except Exception as e:
                raise TokenEstimationError(f"{adapter.name} token estimation failed: {e}") from e
            failed = False
        except TokenEstimationError as e:
            logger.warning(f"{e}; falling back to character count", exc_info=True)
            original_tokens = math.ceil(len(original) / 4)
            optimized_tokens = math.ceil(len(optimized) / 4)
            failed = True

        cost = None
        if self.pricing.price_for_model(model) is not None:
            cost = CostBreakdown(
                original=self.pricing.calculate_cost(model, original_tokens),
                optimized=self.pricing.calculate_cost(model, optimized_tokens),
                currency=CURRENCY,
            )

        estimate = TokenEstimate(
            original=original_tokens,
            optimized=optimized_tokens,
            saved=original_tokens - optimized_tokens,
            cost=cost,
        )
        return estimate, failed

    @staticmethod
    def calculate_confidence(
        analysis: PromptAnalysis,
        applied_rules: list[str],
        applied_practices: list[str],
        improvements: list[Improvement],
    ) -> float:
        """Confidence in [0.1, 1.0] from the work done and the prompt's baseline quality."""
        confidence = 0.5
        confidence += min(len(applied_rules) * 0.05, 0.2)
        confidence += min(len(applied_practices) * 0.03, 0.15)

        confidence += sum(1 for i in improvements if i.impact == "high") * 0.1
        confidence += sum(1 for i in improvements if i.impact == "medium") * 0.05

        if analysis.structure_score > 0.8:
            confidence += 0.1
        if analysis.clarity_score > 0.8:
            confidence += 0.1

        return min(max(confidence, 0.1), 1.0)
