"""Prioritized conditional rules engine."""

import logging

from ..exceptions import RuleApplicationError
from .conditions import evaluate_condition
from .strategies import StrategyOutcome, get_strategy
from .types import Improvement, OptimizationRule, PromptAnalysis, RuleApplicationResult

logger = logging.getLogger(__name__)


class RulesEngine:
    """
    Applies optimization rules to prompt text.

    Rules run in priority order (highest first, stable on ties). Each rule
    sees the text as left by the previous one. A rule that fails is logged
    and skipped; it never stops the remaining rules.
    """

    def apply_rules(
        self,
        text: str,
        rules: list[OptimizationRule],
        analysis: PromptAnalysis,
    ) -> RuleApplicationResult:
        """
        Apply rules to text.

        Args:
            text: Prompt text to transform
            rules: Candidate rules, in any order
            analysis: Analysis snapshot the conditions are evaluated against

        Returns:
            Final text, ids of the rules that changed it, one improvement per
            applied rule and a processing log
        """
        logger.info(f"Applying {len(rules)} optimization rules")

        current = text
        applied_rules: list[str] = []
        improvements: list[Improvement] = []
        processing_log: list[str] = []

        for rule in sorted(rules, key=lambda r: r.priority, reverse=True):
            try:
                outcome = self._apply_rule(rule, current, analysis)
            except RuleApplicationError as e:
                logger.warning(str(e), exc_info=True, extra={"rule_id": rule.id})
                processing_log.append(f"Error applying rule: {rule.id} - {e}")
                continue

            if outcome is None:
                processing_log.append(f"Skipped rule: {rule.id} - condition not met")
                continue

            if not outcome.applied or outcome.text == current:
                processing_log.append(f"Skipped rule: {rule.id} - no change")
                continue

            improvements.append(
                Improvement(
                    category=rule.category,
                    description=outcome.description,
                    impact=outcome.impact,
                    before=current,
                    after=outcome.text,
                    reasoning=outcome.reasoning,
                )
            )
            applied_rules.append(rule.id)
            processing_log.append(f"Applied rule: {rule.id} - {outcome.description}")
            logger.debug(f"Applied rule: {rule.id}")
            current = outcome.text

        logger.info(f"Applied {len(applied_rules)} rules successfully")

        return RuleApplicationResult(
            optimized_text=current,
            applied_rules=applied_rules,
            improvements=improvements,
            processing_log=processing_log,
        )

    def _apply_rule(
        self, rule: OptimizationRule, text: str, analysis: PromptAnalysis
    ) -> StrategyOutcome | None:
        """Run one rule. Returns None when its condition does not hold."""
        try:
            if not evaluate_condition(rule.condition, analysis, text):
                return None
            return get_strategy(rule.category)(text, rule, analysis)
        except Exception as e:
            raise RuleApplicationError(rule.id, str(e)) from e
