"""Tests for provider best practices."""

from promptsmith_server.core.optimizer.best_practices import (
    CLAUDE_PRACTICES,
    GENERAL_PRACTICES,
    OPENAI_PRACTICES,
    BestPracticesTransformer,
    practices_for_model,
)
from tests.fixtures.analysis import make_analysis


def practice_ids(practices):
    return [p.id for p in practices]


def test_practices_for_model():
    general = practice_ids(GENERAL_PRACTICES)

    assert practice_ids(practices_for_model("openai-gpt4")) == practice_ids(OPENAI_PRACTICES) + general
    assert practice_ids(practices_for_model("anthropic-claude")) == practice_ids(CLAUDE_PRACTICES) + general
    assert practice_ids(practices_for_model("deepseek-chat")) == general


class TestBestPracticesTransformer:
    """Tests for BestPracticesTransformer.apply."""

    def test_openai_length_specification(self):
        text = "Describe the water cycle for a ten year old"

        result = BestPracticesTransformer().apply(text, "openai-gpt4", "user", make_analysis(word_count=9))

        assert result.applied_practices == ["specify-length"]
        assert result.optimized_text == f"{text}\n\nKeep the answer concise (50-100 words)."
        assert result.improvements[0].impact == "low"
        assert result.improvements[0].before == text

    def test_rerun_on_output_applies_nothing(self):
        transformer = BestPracticesTransformer()
        analysis = make_analysis(word_count=9)

        first = transformer.apply("Describe the water cycle", "openai-gpt4", "user", analysis)
        second = transformer.apply(first.optimized_text, "openai-gpt4", "user", analysis)

        assert second.applied_practices == []
        assert second.optimized_text == first.optimized_text

    def test_chinese_prompts_get_chinese_scaffolds(self):
        result = BestPracticesTransformer().apply(
            "请介绍一下长城", "openai-gpt4", "user", make_analysis(word_count=1, language="zh")
        )
        assert result.optimized_text.endswith("请提供简洁的回答（50-100字）")

    def test_system_role_gets_role_definition(self):
        result = BestPracticesTransformer().apply(
            "Review this pull request",
            "openai-gpt4",
            "system",
            make_analysis(categories=("technical",)),
        )

        assert "role-playing" in result.applied_practices
        assert result.optimized_text.startswith("You are a technical expert.")

    def test_user_role_gets_no_role_definition(self):
        result = BestPracticesTransformer().apply(
            "Review this pull request", "openai-gpt4", "user", make_analysis(categories=("technical",))
        )
        assert "role-playing" not in result.applied_practices

    def test_few_shot_for_complex_prompts(self):
        result = BestPracticesTransformer().apply(
            "Classify the support tickets",
            "openai-gpt4",
            "user",
            make_analysis(missing_examples=True, complexity="complex"),
        )

        assert "few-shot-learning" in result.applied_practices
        assert "Input: [example input]" in result.optimized_text

    def test_claude_xml_structure(self):
        text = "Summarize the following incident report for the leadership team and keep it short. " * 2

        result = BestPracticesTransformer().apply(text, "anthropic-claude", "user", make_analysis(structure_score=0.5))

        assert result.applied_practices == ["xml-structure"]
        assert result.optimized_text == f"<task>\n{text}\n</task>"

    def test_claude_conversation_format(self):
        result = BestPracticesTransformer().apply(
            "Chat with the user about travel",
            "anthropic-claude",
            "user",
            make_analysis(categories=("conversational",)),
        )

        assert result.applied_practices == ["human-feedback-format"]
        assert result.optimized_text == "Human: Chat with the user about travel\n\nAssistant: "

    def test_professional_tone_for_business_prompts(self):
        result = BestPracticesTransformer().apply(
            "We gonna boost sales, ok",
            "deepseek-chat",
            "user",
            make_analysis(categories=("business",)),
        )

        assert result.applied_practices == ["professional-tone"]
        assert result.optimized_text == "We going to boost sales, acceptable"

    def test_general_constraints_and_error_handling(self):
        result = BestPracticesTransformer().apply(
            "Plan the team offsite",
            "deepseek-chat",
            "user",
            make_analysis(specificity_score=0.4, complexity="moderate"),
        )

        assert result.applied_practices == ["add-constraints", "error-handling"]
        assert "Note: the answer must be accurate and reliable." in result.optimized_text
        assert result.optimized_text.endswith("say so and suggest how to proceed.")
