"""Rule condition interpreter.

Conditions are small tagged unions (see ``types``). This module evaluates them
against a PromptAnalysis and the current text, and parses the legacy string
form used by stored rules ("wordCount > 50", "hasVagueInstructions").
"""

import logging
import operator
import re
from typing import Callable

from .types import (
    AllOf,
    Condition,
    FieldCondition,
    FlagCondition,
    InvalidCondition,
    PromptAnalysis,
    TextCondition,
)

logger = logging.getLogger(__name__)

COMPARATORS: dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
    "==": operator.eq,
}

# camelCase names used by stored rules -> analysis attribute
LEGACY_FIELDS = {
    "wordCount": "word_count",
    "characterCount": "character_count",
    "sentenceCount": "sentence_count",
    "paragraphCount": "paragraph_count",
    "structureScore": "structure_score",
    "clarityScore": "clarity_score",
    "specificityScore": "specificity_score",
    "completenessScore": "completeness_score",
}

LEGACY_FLAGS = {
    "hasVagueInstructions": "has_vague_instructions",
    "lacksContext": "lacks_context",
    "missingExamples": "missing_examples",
    "hasTooManyInstructions": "has_too_many_instructions",
    "hasConflictingInstructions": "has_conflicting_instructions",
}

_COMPARISON = re.compile(r"^\s*(\w+)\s*(>=|<=|==|>|<)\s*(-?\d+(?:\.\d+)?)\s*$")
_FLAG = re.compile(r"^\s*(!)?\s*(\w+)\s*$")


def evaluate_condition(condition: Condition | None, analysis: PromptAnalysis, text: str) -> bool:
    """Evaluate a condition. ``None`` means the rule always applies."""
    if condition is None:
        return True

    if isinstance(condition, FieldCondition):
        value = getattr(analysis, condition.field)
        return COMPARATORS[condition.comparator](value, condition.threshold)

    if isinstance(condition, FlagCondition):
        return bool(getattr(analysis, condition.flag)) is condition.expected

    if isinstance(condition, TextCondition):
        return _evaluate_text(condition, text)

    if isinstance(condition, AllOf):
        return all(evaluate_condition(c, analysis, text) for c in condition.conditions)

    if isinstance(condition, InvalidCondition):
        return False

    raise TypeError(f"Unknown condition type: {type(condition).__name__}")


def _evaluate_text(condition: TextCondition, text: str) -> bool:
    lowered = text.lower()

    if condition.contains_any and not any(k.lower() in lowered for k in condition.contains_any):
        return False
    if condition.contains_none and any(k.lower() in lowered for k in condition.contains_none):
        return False
    if condition.pattern is not None and not re.search(condition.pattern, text, re.IGNORECASE):
        return False
    if condition.min_length is not None and len(text) < condition.min_length:
        return False
    if condition.max_length is not None and len(text) > condition.max_length:
        return False
    return True


def parse_condition(source: str | None) -> Condition | None:
    """
    Parse a legacy string condition.

    Args:
        source: e.g. "wordCount > 50", "clarityScore < 0.6", "hasVagueInstructions",
            "!lacksContext". Snake-case names are accepted too.

    Returns:
        None for an empty source, an InvalidCondition when the string cannot
        be understood (it will never match), otherwise the parsed condition.
    """
    if source is None or not source.strip():
        return None

    match = _COMPARISON.match(source)
    if match:
        name, comparator, threshold = match.groups()
        field = LEGACY_FIELDS.get(name, name)
        if field in LEGACY_FIELDS.values():
            return FieldCondition(field=field, comparator=comparator, threshold=float(threshold))

    match = _FLAG.match(source)
    if match:
        negated, name = match.groups()
        flag = LEGACY_FLAGS.get(name, name)
        if flag in LEGACY_FLAGS.values():
            return FlagCondition(flag=flag, expected=not negated)

    logger.warning(f"Unparseable rule condition, rule will never apply: {source!r}")
    return InvalidCondition(source=source)
