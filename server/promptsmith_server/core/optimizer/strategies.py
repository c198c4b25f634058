"""Category strategies used by the rules engine.

Each strategy is a plain function registered under a rule category with the
``@strategy`` decorator. A strategy receives the current text, the rule and
the analysis snapshot, and reports whether (and how) it changed the text.
Rules may carry a transformation descriptor; when they don't, the strategy
falls back to its built-in default behaviour.
"""

import re
from dataclasses import dataclass
from typing import Callable

from .analyzer import count_paragraphs, term_pattern
from .types import (
    AppendTransform,
    Impact,
    NumberListTransform,
    OptimizationRule,
    ParagraphTransform,
    PrependTransform,
    PromptAnalysis,
    ReplaceTransform,
    SentenceSplitTransform,
    StripPhrasesTransform,
    TermMapTransform,
    Transform,
    WrapTransform,
)


@dataclass
class StrategyOutcome:
    """What a strategy did to the text."""

    applied: bool
    text: str
    description: str = ""
    impact: Impact = "low"
    reasoning: str = ""


StrategyFunc = Callable[[str, OptimizationRule, PromptAnalysis], StrategyOutcome]

# Populated by the @strategy decorator below
STRATEGIES: dict[str, StrategyFunc] = {}

GENERIC = "generic"


def strategy(category: str):
    """Decorator to register a strategy function for a rule category."""
    def decorator(func: StrategyFunc) -> StrategyFunc:
        STRATEGIES[category] = func
        return func
    return decorator


def get_strategy(category: str) -> StrategyFunc:
    """Strategy for a category. Unknown categories use the generic strategy."""
    return STRATEGIES.get(category, STRATEGIES[GENERIC])


# ---------------------------------------------------------------------------
# Built-in vocabularies and scaffolds
# ---------------------------------------------------------------------------

CLARITY_TERMS = {
    "好的": "高质量的",
    "不错的": "优秀的",
    "合适的": "符合要求的",
    "一些": "3-5个",
    "good": "high-quality",
    "nice": "excellent",
    "appropriate": "well-suited",
    "some": "several",
}

SPECIFICITY_TERMS = {
    "很多": "5-10个",
    "一些": "3-5个",
    "大概": "约",
    "可能": "建议",
    "many": "5-10",
    "some": "3-5",
    "probably": "likely",
    "maybe": "consider",
}

FILLER_PHRASES = (
    "需要注意的是",
    "值得一提的是",
    "请注意",
    "另外",
    "it is worth mentioning",
    "it should be noted",
    "please note",
    "additionally",
)

CONTEXT_SCAFFOLD = AppendTransform(
    text="Background: describe who the output is for and what it should achieve.",
    text_zh="背景信息：请考虑以下上下文...",
)
EXAMPLES_SCAFFOLD = AppendTransform(
    text="Example:\n[Provide a concrete example here]",
    text_zh="示例：\n[请在此处提供具体示例]",
)
FORMAT_SCAFFOLD = AppendTransform(
    text="Output format: describe the expected structure of the answer.",
    text_zh="输出格式：请按照以下格式输出...",
)


# ---------------------------------------------------------------------------
# Transformation descriptors
# ---------------------------------------------------------------------------


def _localized(text: str, text_zh: str | None, language: str) -> str:
    return text_zh if language == "zh" and text_zh else text


def replace_terms(text: str, terms: dict[str, str]) -> tuple[str, list[str]]:
    """Replace every known term. Returns the new text and the terms that matched."""
    replaced = []
    for term, substitute in terms.items():
        pattern = term_pattern(term)
        if pattern.search(text):
            text = pattern.sub(substitute, text)
            replaced.append(term)
    return text, replaced


def number_lines(text: str, min_lines: int, min_line_length: int) -> str:
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < min_lines or re.search(r"^\s*\d+\.", text, re.MULTILINE):
        return text

    numbered = []
    for index, line in enumerate(lines, start=1):
        stripped = line.strip()
        if len(stripped) > min_line_length and ":" not in stripped and "：" not in stripped:
            numbered.append(f"{index}. {stripped}")
        else:
            numbered.append(line)
    return "\n".join(numbered)


def break_paragraphs(text: str, min_length: int) -> str:
    if len(text) <= min_length or count_paragraphs(text) != 1:
        return text
    text = re.sub(r"(?<!\d)([.!?])[ \t]+(?=[A-Z一-鿿])", r"\1\n\n", text)
    return re.sub(r"([。！？])[ \t]*(?=[A-Z一-鿿])", r"\1\n\n", text)


def split_long_sentences(text: str, max_length: int, language: str) -> str:
    joiner = "。" if language == "zh" else ". "
    pieces = re.split(r"([.!?。！？]+)", text)
    changed = False
    for i, piece in enumerate(pieces):
        if i % 2 or len(piece.strip()) <= max_length:
            continue
        parts = [p.strip() for p in re.split(r"[,，;；]", piece) if p.strip()]
        if len(parts) > 2:
            pieces[i] = joiner.join(parts)
            changed = True
    return "".join(pieces) if changed else text


def strip_phrases(text: str, phrases: tuple[str, ...]) -> str:
    stripped = text
    for phrase in phrases:
        stripped = re.sub(re.escape(phrase), "", stripped, flags=re.IGNORECASE)
    if stripped == text:
        return text
    # Close the gaps the removed phrases left behind
    return re.sub(r"[ \t]{2,}", " ", stripped).strip()


def apply_transform(transform: Transform, text: str, analysis: PromptAnalysis) -> str:
    """Apply a transformation descriptor. Returns the text unchanged when it doesn't fit."""
    if isinstance(transform, ReplaceTransform):
        flags = re.IGNORECASE if transform.ignore_case else 0
        pattern = transform.pattern if transform.regex else re.escape(transform.pattern)
        return re.sub(pattern, transform.replacement, text, flags=flags)

    if isinstance(transform, TermMapTransform):
        return replace_terms(text, transform.terms)[0]

    if isinstance(transform, AppendTransform):
        addition = _localized(transform.text, transform.text_zh, analysis.language)
        if addition in text:
            return text
        return f"{text}\n\n{addition}"

    if isinstance(transform, PrependTransform):
        addition = _localized(transform.text, transform.text_zh, analysis.language)
        if text.startswith(addition):
            return text
        return f"{addition}\n\n{text}"

    if isinstance(transform, WrapTransform):
        if text.startswith(transform.prefix):
            return text
        return f"{transform.prefix}{text}{transform.suffix}"

    if isinstance(transform, NumberListTransform):
        return number_lines(text, transform.min_lines, transform.min_line_length)

    if isinstance(transform, ParagraphTransform):
        return break_paragraphs(text, transform.min_length)

    if isinstance(transform, SentenceSplitTransform):
        return split_long_sentences(text, transform.max_length, analysis.language)

    if isinstance(transform, StripPhrasesTransform):
        if analysis.word_count <= transform.min_word_count:
            return text
        return strip_phrases(text, transform.phrases)

    raise TypeError(f"Unknown transform type: {type(transform).__name__}")


def _outcome(before: str, after: str, impact: Impact, description: str, reasoning: str) -> StrategyOutcome:
    if after == before:
        return StrategyOutcome(applied=False, text=before)
    return StrategyOutcome(applied=True, text=after, description=description, impact=impact, reasoning=reasoning)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


@strategy("clarity")
def clarity(text: str, rule: OptimizationRule, analysis: PromptAnalysis) -> StrategyOutcome:
    if rule.transform is not None:
        after = apply_transform(rule.transform, text, analysis)
        if isinstance(rule.transform, SentenceSplitTransform):
            description = "Split overly long sentences"
        else:
            description = rule.description or "Replaced vague wording with specific terms"
        return _outcome(text, after, "medium", description,
                        "Specific wording makes the instruction clearer and more precise")

    after, replaced = replace_terms(text, CLARITY_TERMS)
    terms = ", ".join(f'"{t}" -> "{CLARITY_TERMS[t]}"' for t in replaced)
    return _outcome(text, after, "medium", f"Replaced vague terms: {terms}",
                    "Specific wording makes the instruction clearer and more precise")


@strategy("structure")
def structure(text: str, rule: OptimizationRule, analysis: PromptAnalysis) -> StrategyOutcome:
    reasoning = "Structured instructions are easier to follow"

    if rule.transform is None:
        if analysis.structure_score < 0.5:
            after = apply_transform(NumberListTransform(), text, analysis)
            if after != text:
                return _outcome(text, after, "medium", "Numbered the main instructions", reasoning)
        after = apply_transform(ParagraphTransform(), text, analysis)
        return _outcome(text, after, "medium", "Split the prompt into paragraphs", reasoning)

    # Numbering only helps prompts that have little structure of their own
    if isinstance(rule.transform, NumberListTransform) and analysis.structure_score >= 0.5:
        return StrategyOutcome(applied=False, text=text)

    after = apply_transform(rule.transform, text, analysis)
    return _outcome(text, after, "medium", rule.description or "Restructured the prompt", reasoning)


@strategy("context")
def context(text: str, rule: OptimizationRule, analysis: PromptAnalysis) -> StrategyOutcome:
    if not analysis.lacks_context:
        return StrategyOutcome(applied=False, text=text)
    after = apply_transform(rule.transform or CONTEXT_SCAFFOLD, text, analysis)
    return _outcome(text, after, "high", "Added a prompt for background information",
                    "Context helps the model understand what the task is for")


@strategy("examples")
def examples(text: str, rule: OptimizationRule, analysis: PromptAnalysis) -> StrategyOutcome:
    if not analysis.missing_examples or len(text) <= 100:
        return StrategyOutcome(applied=False, text=text)
    after = apply_transform(rule.transform or EXAMPLES_SCAFFOLD, text, analysis)
    return _outcome(text, after, "high", "Added an examples section",
                    "Concrete examples improve output quality and consistency")


@strategy("format")
def output_format(text: str, rule: OptimizationRule, analysis: PromptAnalysis) -> StrategyOutcome:
    lowered = text.lower()
    if "格式" in lowered or "format" in lowered:
        return StrategyOutcome(applied=False, text=text)
    after = apply_transform(rule.transform or FORMAT_SCAFFOLD, text, analysis)
    return _outcome(text, after, "medium", "Added an output format directive",
                    "An explicit format keeps the output predictable")


@strategy("length")
def length(text: str, rule: OptimizationRule, analysis: PromptAnalysis) -> StrategyOutcome:
    descriptor = rule.transform or StripPhrasesTransform(phrases=FILLER_PHRASES)
    after = apply_transform(descriptor, text, analysis)
    return _outcome(text, after, "low", "Removed filler phrases",
                    "Concise prompts are easier to process")


@strategy("specificity")
def specificity(text: str, rule: OptimizationRule, analysis: PromptAnalysis) -> StrategyOutcome:
    after = apply_transform(rule.transform or TermMapTransform(terms=SPECIFICITY_TERMS), text, analysis)
    return _outcome(text, after, "medium", "Replaced generic quantifiers with concrete ones",
                    "Concrete quantities reduce ambiguity")


@strategy(GENERIC)
def generic(text: str, rule: OptimizationRule, analysis: PromptAnalysis) -> StrategyOutcome:
    if rule.transform is None:
        return StrategyOutcome(applied=False, text=text)
    after = apply_transform(rule.transform, text, analysis)
    return _outcome(text, after, "medium", rule.description or rule.name,
                    f"Applied rule: {rule.name}")
