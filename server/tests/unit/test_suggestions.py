"""Tests for advisory suggestions."""

from promptsmith_server.core.optimizer.suggestions import SuggestionGenerator, merge_suggestions
from promptsmith_server.core.optimizer.types import OptimizationRequest, Suggestion
from tests.fixtures.analysis import make_analysis


def suggestion_ids(suggestions):
    return [s.id for s in suggestions]


class TestSuggestionGenerator:
    """Tests for SuggestionGenerator.generate."""

    def test_analysis_driven_suggestions_sorted_by_priority(self):
        request = OptimizationRequest(prompt="x" * 150, target_model="deepseek-chat")
        analysis = make_analysis(has_vague_instructions=True, lacks_context=True, missing_examples=True)

        suggestions = SuggestionGenerator().generate(request, analysis)

        assert suggestion_ids(suggestions) == ["clarity-improvement", "context-enhancement", "examples-addition"]
        assert [s.priority for s in suggestions] == [8, 7, 6]

    def test_examples_only_for_longer_prompts(self):
        request = OptimizationRequest(prompt="short prompt", target_model="deepseek-chat")

        suggestions = SuggestionGenerator().generate(request, make_analysis(missing_examples=True))

        assert "examples-addition" not in suggestion_ids(suggestions)

    def test_openai_length_warning(self):
        request = OptimizationRequest(prompt="word " * 1001, target_model="openai-gpt4")

        suggestions = SuggestionGenerator().generate(request, make_analysis(word_count=1001))

        assert suggestion_ids(suggestions) == ["openai-length-warning"]

    def test_claude_system_prompt(self):
        generator = SuggestionGenerator()
        without = OptimizationRequest(prompt="Hi", target_model="anthropic-claude")
        with_system = OptimizationRequest(prompt="Hi", target_model="anthropic-claude", system_prompt="Be kind")

        assert suggestion_ids(generator.generate(without, make_analysis())) == ["claude-system-prompt"]
        assert generator.generate(with_system, make_analysis()) == []

    def test_no_suggestions_for_clean_prompt(self):
        request = OptimizationRequest(prompt="Describe rivers", target_model="deepseek-chat")
        assert SuggestionGenerator().generate(request, make_analysis()) == []


def test_merge_suggestions_keeps_first_and_sorts():
    first = Suggestion(id="add-context", type="context", title="First", description="", priority=1)
    duplicate = Suggestion(id="add-context", type="context", title="Second", description="", priority=9)
    other = Suggestion(id="polite-language", type="tone", title="Polite", description="", priority=2)

    merged = merge_suggestions([first], [duplicate, other])

    assert suggestion_ids(merged) == ["polite-language", "add-context"]
    assert merged[1].title == "First"
