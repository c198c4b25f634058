"""Tests for the heuristic prompt analyzer."""

import pytest

from promptsmith_server.core.optimizer.analyzer import (
    PromptAnalyzer,
    count_cjk,
    count_paragraphs,
    count_sentences,
    count_words,
)
from promptsmith_server.core.optimizer.types import AnalysisContext


class TestCounting:
    """Tests for the text counting helpers."""

    def test_count_words(self):
        assert count_words("one two  three\nfour") == 4
        assert count_words("") == 0

    def test_count_sentences(self):
        assert count_sentences("Hi. There! Ok?") == 3
        assert count_sentences("你好。今天天气不错！") == 2
        assert count_sentences("") == 0

    def test_count_paragraphs(self):
        assert count_paragraphs("a\n\nb\n  \nc") == 3
        assert count_paragraphs("single line") == 1

    def test_count_cjk(self):
        assert count_cjk("你好abc") == 2
        assert count_cjk("hello") == 0


class TestPromptAnalyzer:
    """Tests for PromptAnalyzer.analyze."""

    def test_empty_text_gets_neutral_analysis(self, analyzer):
        analysis = analyzer.analyze("")

        assert analysis.word_count == 0
        assert analysis.character_count == 0
        assert analysis.categories == ("general",)
        assert analysis.language == "en"
        assert analysis.complexity == "simple"
        assert analysis.tone == "neutral"
        assert not analysis.lacks_context
        assert 0.0 <= analysis.clarity_score <= 1.0

    def test_scores_are_bounded(self, analyzer):
        noisy = "good nice some many maybe probably " * 40
        analysis = analyzer.analyze(noisy)

        for score in (
            analysis.structure_score,
            analysis.clarity_score,
            analysis.specificity_score,
            analysis.completeness_score,
        ):
            assert 0.0 <= score <= 1.0

    def test_vague_words_lower_clarity(self, analyzer):
        vague = analyzer.analyze("Write some good content")
        precise = analyzer.analyze("Write three paragraphs of content")

        assert vague.has_vague_instructions
        assert not precise.has_vague_instructions
        assert vague.clarity_score < precise.clarity_score

    def test_vague_words_match_whole_words_only(self, analyzer):
        analysis = analyzer.analyze("Summarize something about Germany")

        assert not analysis.has_vague_instructions
        assert analysis.clarity_score == analyzer.analyze("Summarize the report about Germany").clarity_score

    def test_chinese_vague_word(self, analyzer):
        analysis = analyzer.analyze("写一个好的文章")

        assert analysis.has_vague_instructions
        assert analysis.language == "zh"

    def test_lacks_context(self, analyzer):
        analysis = analyzer.analyze("Write a function that reverses a linked list in place quickly")
        assert analysis.lacks_context

        with_context = analyzer.analyze(
            "Background: our audience is new engineers. Write a function that reverses a linked list"
        )
        assert not with_context.lacks_context

    def test_missing_examples_only_for_long_prompts(self, analyzer):
        short = analyzer.analyze("Summarize the meeting notes")
        long = analyzer.analyze("Summarize the meeting notes and list the decisions. " * 6)

        assert not short.missing_examples
        assert long.missing_examples

    def test_categories(self, analyzer):
        assert analyzer.analyze("Write a story about a dragon").categories == ("creative",)
        assert analyzer.analyze("Analyze the sales data").categories == ("analytical", "business")
        assert "technical" in analyzer.analyze("Review this code for bugs").categories

    def test_language_detection(self, analyzer):
        assert analyzer.analyze("请写一篇关于人工智能的文章").language == "zh"
        assert analyzer.analyze("Hello world").language == "en"

    def test_conflicting_instructions(self, analyzer):
        assert analyzer.analyze("Give a brief but detailed summary").has_conflicting_instructions
        assert not analyzer.analyze("Give a brief summary").has_conflicting_instructions

    def test_too_many_instructions(self, analyzer):
        text = "please help generate create write analyze summarize explain describe list"
        assert analyzer.analyze(text).has_too_many_instructions

    def test_tone(self, analyzer):
        assert analyzer.analyze("Please write a poem").tone == "polite"
        assert analyzer.analyze("You must finish immediately").tone == "urgent"
        assert analyzer.analyze("Describe rivers").tone == "neutral"

    def test_structure_markers_raise_structure_score(self, analyzer):
        plain = analyzer.analyze("do this and that")
        structured = analyzer.analyze("1. First step\n2. Second step\n\n- a bullet")

        assert structured.structure_score > 0.8
        assert structured.structure_score > plain.structure_score

    def test_complexity(self, analyzer):
        assert analyzer.analyze("Describe rivers").complexity == "simple"

        long_text = "Explain the design. Describe the tradeoffs. List the risks. " * 30
        assert analyzer.analyze(long_text).complexity == "complex"

    def test_model_compatibility(self, analyzer):
        plain = analyzer.analyze("Describe rivers")
        code = analyzer.analyze("Write code for sorting")

        assert set(plain.model_compatibility) == {"openai-gpt4", "anthropic-claude", "deepseek-chat"}
        assert code.model_compatibility["deepseek-chat"] > plain.model_compatibility["deepseek-chat"]

    def test_suggested_improvements(self, analyzer):
        analysis = analyzer.analyze("Write a function that reverses a linked list in place quickly")
        assert "Provide background information and context" in analysis.suggested_improvements

    def test_context_is_recorded(self, analyzer):
        context = AnalysisContext(target_model="openai-gpt4", message_role="system", system_prompt="Be terse")
        analysis = analyzer.analyze("Describe rivers", context)

        assert analysis.has_system_prompt
        assert analysis.message_role == "system"

    @pytest.mark.parametrize("text", ["写一个好的文章", "Write a story", "", "1. a\n2. b"])
    def test_analysis_is_deterministic(self, text):
        assert PromptAnalyzer().analyze(text) == PromptAnalyzer().analyze(text)
