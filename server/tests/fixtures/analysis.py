"""Hand-built analysis snapshots for component tests."""

from promptsmith_server.core.optimizer.types import PromptAnalysis

BASELINE = dict(
    word_count=10,
    character_count=60,
    sentence_count=1,
    paragraph_count=1,
    structure_score=0.9,
    clarity_score=0.9,
    specificity_score=0.9,
    completeness_score=0.9,
)


def make_analysis(**overrides) -> PromptAnalysis:
    """A well-scored English analysis with the given fields overridden."""
    return PromptAnalysis(**{**BASELINE, **overrides})
