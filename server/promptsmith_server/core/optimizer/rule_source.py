"""Where optimization rules come from.

The engine only needs the read side of a rule store (``RuleSource``). An
in-memory source backed by the default catalogue ships with the core; a
database-backed store can implement the same protocol.
"""

import logging
import re
from typing import Any, Iterable, Protocol

from .conditions import parse_condition
from .types import (
    AllOf,
    AppendTransform,
    FieldCondition,
    FlagCondition,
    NumberListTransform,
    OptimizationRule,
    ParagraphTransform,
    PrependTransform,
    ReplaceTransform,
    SentenceSplitTransform,
    TextCondition,
    WrapTransform,
)

logger = logging.getLogger(__name__)


class RuleSource(Protocol):
    """Read interface of a rule store."""

    def find_rules(
        self,
        active_only: bool = True,
        applicable_model: str | None = None,
        max_priority: int | None = None,
        domains: Iterable[str] | None = None,
    ) -> list[OptimizationRule]:
        """Rules matching the filters, highest priority first."""
        ...


def matches_domains(rule: OptimizationRule, domains: Iterable[str] | None) -> bool:
    """
    Whether a rule targets one of the given prompt domains.

    Domains are the categories the analyzer detected for the prompt. Rules
    without domains target everything. ``None`` means no domain filtering
    was requested.
    """
    if not rule.domains or domains is None:
        return True
    return bool(set(domains).intersection(rule.domains))


class InMemoryRuleSource:
    """RuleSource over a fixed list of rules."""

    def __init__(self, rules: Iterable[OptimizationRule] | None = None):
        self._rules = list(DEFAULT_RULES if rules is None else rules)

    @property
    def rules(self) -> list[OptimizationRule]:
        return list(self._rules)

    def find_rules(
        self,
        active_only: bool = True,
        applicable_model: str | None = None,
        max_priority: int | None = None,
        domains: Iterable[str] | None = None,
    ) -> list[OptimizationRule]:
        domains = list(domains) if domains is not None else None
        found = [
            rule
            for rule in self._rules
            if (not active_only or rule.is_active)
            and (applicable_model is None or rule.applies_to(applicable_model))
            and (max_priority is None or rule.priority <= max_priority)
            and matches_domains(rule, domains)
        ]
        return sorted(found, key=lambda r: r.priority, reverse=True)


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def rule_from_record(record: dict[str, Any]) -> OptimizationRule:
    """
    Build a rule from a stored record.

    Records use the storage layout: camelCase keys, a ``ruleLogic`` object
    with ``pattern``/``replacement``/``condition`` and a string condition.
    A pattern becomes a regex replacement; the condition string is parsed
    with ``parse_condition``.
    """
    logic = record.get("ruleLogic") or {}
    transform = None
    if logic.get("pattern"):
        transform = ReplaceTransform(pattern=logic["pattern"], replacement=logic.get("replacement", ""))

    name = record["name"]
    rule_id = str(record.get("id") or record.get("_id") or _slug(name))

    return OptimizationRule(
        id=rule_id,
        name=name,
        description=record.get("description", ""),
        category=record.get("category", "generic"),
        applicable_models=tuple(record.get("applicableModels", ())),
        domains=tuple(record.get("domains", ())),
        condition=parse_condition(logic.get("condition")),
        transform=transform,
        priority=record.get("priority", 5),
        is_active=record.get("isActive", True),
    )


_NO_ROLE = ("you are", "你是", "作为", "as a", "act as")

DEFAULT_RULES: tuple[OptimizationRule, ...] = (
    OptimizationRule(
        id="clear-task-definition",
        name="Clear Task Definition",
        description="Open the prompt with an explicit task request",
        category="clarity",
        condition=TextCondition(contains_none=("请", "帮我", "能否", "please", "help")),
        transform=PrependTransform(text="Please complete the following task:", text_zh="请帮我完成以下任务："),
        priority=9,
    ),
    OptimizationRule(
        id="context-enhancement",
        name="Add Context Information",
        description="Ask for the background the task depends on",
        category="context",
        condition=FlagCondition(flag="lacks_context"),
        priority=8,
    ),
    OptimizationRule(
        id="format-specification",
        name="Specify Output Format",
        description="State the expected output format",
        category="format",
        condition=TextCondition(min_length=50),
        priority=7,
    ),
    OptimizationRule(
        id="examples-addition",
        name="Add Examples",
        description="Add an examples section to longer prompts",
        category="examples",
        condition=FlagCondition(flag="missing_examples"),
        priority=6,
    ),
    OptimizationRule(
        id="vague-words-replacement",
        name="Replace Vague Words",
        description="Replace vague wording with specific terms",
        category="clarity",
        condition=FlagCondition(flag="has_vague_instructions"),
        priority=5,
    ),
    OptimizationRule(
        id="numbered-list",
        name="Numbered Instructions",
        description="Number the main instructions of unstructured prompts",
        category="structure",
        condition=FieldCondition(field="structure_score", comparator="<", threshold=0.5),
        transform=NumberListTransform(),
        priority=5,
    ),
    OptimizationRule(
        id="openai-role-definition",
        name="OpenAI Specific Optimization",
        description="Give OpenAI models an assistant role",
        category="model_specific",
        applicable_models=("openai",),
        condition=TextCondition(contains_none=_NO_ROLE),
        transform=PrependTransform(text="You are a helpful assistant.", text_zh="你是一位乐于助人的助手。"),
        priority=5,
    ),
    OptimizationRule(
        id="claude-instruction-tags",
        name="Claude Specific Optimization",
        description="Wrap longer prompts in instruction tags for Claude",
        category="model_specific",
        applicable_models=("claude",),
        condition=AllOf(conditions=(
            TextCondition(contains_none=("<",)),
            FieldCondition(field="character_count", comparator=">", threshold=150),
        )),
        transform=WrapTransform(prefix="<instructions>\n", suffix="\n</instructions>"),
        priority=5,
    ),
    OptimizationRule(
        id="deepseek-role-definition",
        name="DeepSeek Specific Optimization",
        description="Give DeepSeek models a professional assistant role",
        category="model_specific",
        applicable_models=("deepseek",),
        condition=TextCondition(contains_none=_NO_ROLE),
        transform=PrependTransform(
            text="You are a professional AI assistant.", text_zh="你是一位专业的AI助手。"
        ),
        priority=5,
    ),
    OptimizationRule(
        id="specificity-enhancement",
        name="Specificity Enhancement",
        description="Replace generic quantifiers with concrete ones",
        category="specificity",
        condition=FlagCondition(flag="has_vague_instructions"),
        priority=4,
    ),
    OptimizationRule(
        id="remove-ambiguity",
        name="Remove Ambiguity",
        description="Remove hedging words",
        category="clarity",
        condition=TextCondition(pattern="也许|或许"),
        transform=ReplaceTransform(pattern="也许|或许", replacement=""),
        priority=4,
    ),
    OptimizationRule(
        id="technical-code-blocks",
        name="Code Block Formatting",
        description="Ask for code in fenced code blocks",
        category="format",
        domains=("technical",),
        condition=TextCondition(contains_none=("```", "代码块", "code block")),
        transform=AppendTransform(
            text="Format any code in fenced code blocks.", text_zh="请将代码放在代码块中。"
        ),
        priority=4,
    ),
    OptimizationRule(
        id="paragraph-structure",
        name="Paragraph Structure",
        description="Break long single-paragraph prompts into paragraphs",
        category="structure",
        condition=FieldCondition(field="paragraph_count", comparator="==", threshold=1),
        transform=ParagraphTransform(),
        priority=3,
    ),
    OptimizationRule(
        id="sentence-simplification",
        name="Sentence Simplification",
        description="Split overly long sentences",
        category="clarity",
        transform=SentenceSplitTransform(),
        priority=3,
    ),
    OptimizationRule(
        id="add-constraints",
        name="Add Constraints",
        description="Add basic quality constraints",
        category="constraints",
        condition=AllOf(conditions=(
            FieldCondition(field="specificity_score", comparator="<", threshold=0.6),
            TextCondition(contains_none=("约束", "constraint")),
        )),
        transform=AppendTransform(
            text="Constraints: keep the answer accurate and within the scope of the task.",
            text_zh="约束条件：请确保回答准确可靠，避免超出任务范围。",
        ),
        priority=3,
    ),
    OptimizationRule(
        id="length-optimization",
        name="Length Optimization",
        description="Remove filler phrases from long prompts",
        category="length",
        condition=FieldCondition(field="word_count", comparator=">", threshold=500),
        priority=2,
    ),
    OptimizationRule(
        id="improve-politeness",
        name="Improve Politeness",
        description="Phrase Chinese prompts as a polite request",
        category="tone",
        condition=AllOf(conditions=(
            TextCondition(pattern="[一-鿿]"),
            TextCondition(contains_none=("请", "谢谢", "麻烦")),
        )),
        transform=WrapTransform(prefix="请", suffix="，谢谢。"),
        priority=2,
    ),
)
