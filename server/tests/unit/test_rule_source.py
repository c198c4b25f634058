"""Tests for the in-memory rule source and stored rule records."""

import pytest

from promptsmith_server.core.optimizer.rule_source import (
    DEFAULT_RULES,
    InMemoryRuleSource,
    matches_domains,
    rule_from_record,
)
from promptsmith_server.core.optimizer.types import (
    FlagCondition,
    InvalidCondition,
    OptimizationRule,
    ReplaceTransform,
)


def ids(rules):
    return [rule.id for rule in rules]


class TestInMemoryRuleSource:
    """Tests for InMemoryRuleSource.find_rules."""

    @pytest.fixture
    def source(self):
        return InMemoryRuleSource()

    def test_default_catalogue(self, source):
        assert len(source.rules) == len(DEFAULT_RULES)
        assert len(set(ids(DEFAULT_RULES))) == len(DEFAULT_RULES)

    def test_sorted_by_priority(self, source):
        priorities = [rule.priority for rule in source.find_rules()]
        assert priorities == sorted(priorities, reverse=True)

    def test_model_filter(self, source):
        openai = ids(source.find_rules(applicable_model="openai-gpt4"))
        claude = ids(source.find_rules(applicable_model="anthropic-claude"))
        deepseek = ids(source.find_rules(applicable_model="deepseek-chat"))

        assert "openai-role-definition" in openai
        assert "claude-instruction-tags" not in openai
        assert "claude-instruction-tags" in claude
        assert "deepseek-role-definition" in deepseek
        # Universal rules apply everywhere
        assert "vague-words-replacement" in openai and "vague-words-replacement" in deepseek

    def test_priority_ceiling(self, source):
        rules = source.find_rules(max_priority=5)

        assert rules
        assert all(rule.priority <= 5 for rule in rules)
        assert "clear-task-definition" not in ids(rules)

    def test_active_only(self):
        inactive = OptimizationRule(id="off", name="Off", category="clarity", is_active=False)
        source = InMemoryRuleSource([inactive])

        assert source.find_rules() == []
        assert ids(source.find_rules(active_only=False)) == ["off"]

    def test_domain_filter(self, source):
        assert "technical-code-blocks" in ids(source.find_rules(domains=("technical",)))
        assert "technical-code-blocks" not in ids(source.find_rules(domains=("general",)))
        assert "technical-code-blocks" in ids(source.find_rules(domains=None))


def test_matches_domains():
    universal = OptimizationRule(id="u", name="U", category="clarity")
    creative = OptimizationRule(id="c", name="C", category="clarity", domains=("creative",))

    assert matches_domains(universal, ("technical",))
    assert matches_domains(creative, ("creative", "business"))
    assert not matches_domains(creative, ("general",))
    assert matches_domains(creative, None)


class TestRuleFromRecord:
    """Tests for building rules from stored records."""

    def test_full_record(self):
        rule = rule_from_record(
            {
                "_id": "abc123",
                "name": "Replace Vague",
                "description": "Replace vague wording",
                "category": "clarity",
                "ruleLogic": {
                    "pattern": "好的",
                    "replacement": "高质量的",
                    "condition": "hasVagueInstructions",
                },
                "applicableModels": ["openai-gpt4"],
                "priority": 7,
                "isActive": True,
            }
        )

        assert rule.id == "abc123"
        assert rule.transform == ReplaceTransform(pattern="好的", replacement="高质量的")
        assert rule.condition == FlagCondition(flag="has_vague_instructions")
        assert rule.applicable_models == ("openai-gpt4",)
        assert rule.priority == 7

    def test_id_from_name(self):
        rule = rule_from_record({"name": "Replace Vague Words!", "category": "clarity"})

        assert rule.id == "replace-vague-words"
        assert rule.transform is None
        assert rule.condition is None

    def test_bad_condition_never_applies(self):
        rule = rule_from_record(
            {"name": "Broken", "category": "clarity", "ruleLogic": {"condition": "wordCount >>> 5"}}
        )
        assert isinstance(rule.condition, InvalidCondition)
