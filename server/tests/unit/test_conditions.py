"""Tests for rule condition evaluation and parsing."""

import pytest

from promptsmith_server.core.optimizer.conditions import evaluate_condition, parse_condition
from promptsmith_server.core.optimizer.types import (
    AllOf,
    FieldCondition,
    FlagCondition,
    InvalidCondition,
    OptimizationRule,
    TextCondition,
)
from tests.fixtures.analysis import make_analysis


class TestEvaluateCondition:
    """Tests for evaluate_condition."""

    def test_absent_condition_always_holds(self):
        assert evaluate_condition(None, make_analysis(), "anything")

    @pytest.mark.parametrize(
        "comparator,threshold,expected",
        [(">", 3, True), (">", 10, False), ("<", 10, True), (">=", 5, True), ("<=", 4, False), ("==", 5, True)],
    )
    def test_field_comparison(self, comparator, threshold, expected):
        condition = FieldCondition(field="word_count", comparator=comparator, threshold=threshold)
        assert evaluate_condition(condition, make_analysis(word_count=5), "") is expected

    def test_flag(self):
        analysis = make_analysis(lacks_context=True)

        assert evaluate_condition(FlagCondition(flag="lacks_context"), analysis, "")
        assert not evaluate_condition(FlagCondition(flag="lacks_context", expected=False), analysis, "")
        assert not evaluate_condition(FlagCondition(flag="missing_examples"), analysis, "")

    def test_text_contains_is_case_insensitive(self):
        condition = TextCondition(contains_any=("PLEASE",))

        assert evaluate_condition(condition, make_analysis(), "please do this")
        assert not evaluate_condition(condition, make_analysis(), "do this")

    def test_text_contains_none(self):
        condition = TextCondition(contains_none=("<task>", "请"))

        assert evaluate_condition(condition, make_analysis(), "plain text")
        assert not evaluate_condition(condition, make_analysis(), "<TASK>wrapped</TASK>")
        assert not evaluate_condition(condition, make_analysis(), "请帮我")

    def test_text_pattern_and_length(self):
        condition = TextCondition(pattern=r"也许|或许", min_length=3, max_length=10)

        assert evaluate_condition(condition, make_analysis(), "也许可以吧")
        assert not evaluate_condition(condition, make_analysis(), "也许")
        assert not evaluate_condition(condition, make_analysis(), "也许" + "很长的句子" * 3)
        assert not evaluate_condition(condition, make_analysis(), "一定可以吧")

    def test_all_of(self):
        condition = AllOf(conditions=(
            FlagCondition(flag="has_vague_instructions"),
            FieldCondition(field="clarity_score", comparator="<", threshold=0.6),
        ))

        assert evaluate_condition(condition, make_analysis(has_vague_instructions=True, clarity_score=0.5), "")
        assert not evaluate_condition(condition, make_analysis(has_vague_instructions=True, clarity_score=0.7), "")

    def test_invalid_condition_never_holds(self):
        assert not evaluate_condition(InvalidCondition(source="???"), make_analysis(), "text")


class TestParseCondition:
    """Tests for parse_condition with the stored string form."""

    def test_comparison(self):
        assert parse_condition("wordCount > 50") == FieldCondition(
            field="word_count", comparator=">", threshold=50.0
        )

    def test_snake_case_and_decimal_threshold(self):
        assert parse_condition("clarity_score<0.6") == FieldCondition(
            field="clarity_score", comparator="<", threshold=0.6
        )

    def test_flag(self):
        assert parse_condition("hasVagueInstructions") == FlagCondition(flag="has_vague_instructions")

    def test_negated_flag(self):
        assert parse_condition("!lacksContext") == FlagCondition(flag="lacks_context", expected=False)

    @pytest.mark.parametrize("source", [None, "", "   "])
    def test_empty_means_no_condition(self, source):
        assert parse_condition(source) is None

    @pytest.mark.parametrize("source", ["wordCount >> 5", "unknownFlag", "fooScore > 3", "wordCount > many"])
    def test_unparseable_fails_closed(self, source, caplog):
        condition = parse_condition(source)

        assert condition == InvalidCondition(source=source)
        assert not evaluate_condition(condition, make_analysis(), "text")
        assert "Unparseable rule condition" in caplog.text


def test_rule_condition_deserializes_by_kind():
    """Conditions round-trip through rule records via their kind tag."""
    rule = OptimizationRule.model_validate(
        {
            "id": "needs-context",
            "name": "Needs Context",
            "category": "context",
            "condition": {"kind": "flag", "flag": "lacks_context"},
        }
    )
    assert rule.condition == FlagCondition(flag="lacks_context")
