"""Advisory suggestions shown next to an optimization result."""

from typing import Iterable

from .types import OptimizationRequest, PromptAnalysis, Suggestion


class SuggestionGenerator:
    """Derives suggestions from the analysis and the target model."""

    def generate(self, request: OptimizationRequest, analysis: PromptAnalysis) -> list[Suggestion]:
        """
        Generate suggestions for a request.

        Args:
            request: The optimization request
            analysis: Analysis of the original prompt

        Returns:
            Suggestions, highest priority first
        """
        suggestions: list[Suggestion] = []

        if analysis.has_vague_instructions:
            suggestions.append(
                Suggestion(
                    id="clarity-improvement",
                    type="improvement",
                    title="Make instructions more specific",
                    description="Replace vague words with concrete requirements",
                    priority=8,
                    category="clarity",
                    example='Replace "a good article" with "an 800-word article with clear arguments"',
                )
            )

        if analysis.lacks_context:
            suggestions.append(
                Suggestion(
                    id="context-enhancement",
                    type="improvement",
                    title="Add background information",
                    description="Describe the purpose, audience and setting of the task",
                    priority=7,
                    category="context",
                    example="Background: this article is for a technical blog aimed at beginners",
                )
            )

        if analysis.missing_examples and len(request.prompt) > 100:
            suggestions.append(
                Suggestion(
                    id="examples-addition",
                    type="improvement",
                    title="Add examples",
                    description="Show an example of the expected output",
                    priority=6,
                    category="examples",
                    example="Example: input X should produce output Y",
                )
            )

        suggestions.extend(self._model_specific(request, analysis))
        return sort_suggestions(suggestions)

    def _model_specific(self, request: OptimizationRequest, analysis: PromptAnalysis) -> list[Suggestion]:
        model = request.target_model.lower()
        suggestions = []

        if "openai" in model and analysis.word_count > 1000:
            suggestions.append(
                Suggestion(
                    id="openai-length-warning",
                    type="warning",
                    title="Prompt is long",
                    description="OpenAI models respond better to concise prompts; consider shortening it",
                    priority=5,
                    category="length",
                )
            )

        if ("claude" in model or "anthropic" in model) and request.message_role == "user" and not request.system_prompt:
            suggestions.append(
                Suggestion(
                    id="claude-system-prompt",
                    type="best_practice",
                    title="Add a system prompt",
                    description="Claude works best with a system prompt that defines its role and behaviour",
                    priority=6,
                    category="model_specific",
                    example="You are a professional writing assistant who produces high-quality articles.",
                )
            )

        return suggestions


def sort_suggestions(suggestions: Iterable[Suggestion]) -> list[Suggestion]:
    return sorted(suggestions, key=lambda s: s.priority, reverse=True)


def merge_suggestions(*groups: Iterable[Suggestion]) -> list[Suggestion]:
    """Merge suggestion groups, keeping the first suggestion for each id."""
    merged: dict[str, Suggestion] = {}
    for group in groups:
        for suggestion in group:
            merged.setdefault(suggestion.id, suggestion)
    return sort_suggestions(merged.values())
