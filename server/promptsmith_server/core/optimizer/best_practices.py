"""Curated provider best practices.

Practices are grouped by provider family (OpenAI, Claude) plus a universal
group that applies to every model. Each practice has a gate over the current
text and the analysis, and a transformation. A practice only counts as
applied when it actually changes the text.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable

from .types import BestPracticesResult, Impact, Improvement, PromptAnalysis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Practice:
    id: str
    category: str
    impact: Impact
    description: str
    reasoning: str
    applies: Callable[[str, str, PromptAnalysis], bool]
    """Gate: (current text, message role, analysis) -> bool"""

    transform: Callable[[str, PromptAnalysis], str]


def _has(text: str, patterns: tuple[str, ...]) -> bool:
    return any(re.search(p, text, re.IGNORECASE) for p in patterns)


def _zh(analysis: PromptAnalysis, zh: str, en: str) -> str:
    return zh if analysis.language == "zh" else en


STRUCTURED_OUTPUT_PATTERNS = (r"json", r"xml", r"yaml", r"格式", r"format", r"结构", r"structure", r"输出.*:", r"output.*:")
LENGTH_PATTERNS = (r"\d+.*字", r"\d+.*words", r"长度", r"length", r"简短", r"详细", r"brief", r"detailed")
ROLE_PATTERNS = (r"你是", r"作为", r"扮演", r"you are", r"as a", r"act as", r"专家", r"助手", r"expert", r"assistant")
THINKING_PATTERNS = (r"思考", r"分析", r"推理", r"think", r"analy[sz]e", r"reason", r"步骤", r"过程", r"step", r"process")
CONSTRAINT_PATTERNS = (
    r"不要", r"避免", r"必须", r"应该", r"don't", r"avoid", r"must", r"should",
    r"限制", r"要求", r"constraint", r"requirement",
)
ERROR_PATTERNS = (r"错误", r"异常", r"失败", r"error", r"exception", r"fail", r"如果.*不", r"if.*not", r"无法", r"cannot")
HUMAN_FORMAT_MARKERS = ("Human:", "Assistant:", "用户：", "助手：")

PROFESSIONAL_TERMS_ZH = {"你": "您", "可以": "能够"}
PROFESSIONAL_TERMS_EN = {"ok": "acceptable", "gonna": "going to", "wanna": "want to", "kinda": "somewhat"}


# -- transformations ------------------------------------------------------------


def _add_clear_instructions(text: str, analysis: PromptAnalysis) -> str:
    if "请" in text or "please" in text.lower():
        return text
    lead = _zh(analysis, "请按照以下要求完成任务：", "Please complete the task according to the following requirements:")
    return f"{lead}\n\n{text}"


def _add_delimiters(text: str, analysis: PromptAnalysis) -> str:
    if "\n" not in text or "---" in text:
        return text
    parts = text.split("\n\n")
    return "\n\n---\n\n".join(parts) if len(parts) > 1 else text


def _add_structured_output(text: str, analysis: PromptAnalysis) -> str:
    return f"{text}\n\n" + _zh(analysis, "请以JSON格式输出结果。", "Return the result as JSON.")


def _add_few_shot(text: str, analysis: PromptAnalysis) -> str:
    block = _zh(
        analysis,
        "示例：\n输入：[示例输入]\n输出：[示例输出]",
        "Example:\nInput: [example input]\nOutput: [example output]",
    )
    return f"{text}\n\n{block}"


def _add_length(text: str, analysis: PromptAnalysis) -> str:
    if analysis.word_count > 100:
        directive = _zh(analysis, "请提供详细的回答（200-500字）", "Provide a detailed answer (200-500 words).")
    else:
        directive = _zh(analysis, "请提供简洁的回答（50-100字）", "Keep the answer concise (50-100 words).")
    return f"{text}\n\n{directive}"


def _add_role(text: str, analysis: PromptAnalysis) -> str:
    if "technical" in analysis.categories:
        role = _zh(analysis, "技术专家", "a technical expert")
    elif "creative" in analysis.categories:
        role = _zh(analysis, "创意写作专家", "a creative writing expert")
    elif "analytical" in analysis.categories:
        role = _zh(analysis, "分析专家", "an analytical expert")
    else:
        role = _zh(analysis, "专业助手", "a professional assistant")
    return _zh(analysis, f"你是一位{role}。{text}", f"You are {role}. {text}")


def _add_xml_structure(text: str, analysis: PromptAnalysis) -> str:
    if "<" in text:
        return text
    return f"<task>\n{text}\n</task>"


def _add_thinking(text: str, analysis: PromptAnalysis) -> str:
    return f"{text}\n\n" + _zh(
        analysis,
        "请先分析问题，然后逐步给出解决方案。",
        "First analyze the problem, then work through the solution step by step.",
    )


def _add_human_format(text: str, analysis: PromptAnalysis) -> str:
    return f"Human: {text}\n\nAssistant: "


def _add_constraints(text: str, analysis: PromptAnalysis) -> str:
    return f"{text}\n\n" + _zh(
        analysis,
        "注意：请确保回答准确可靠，避免猜测。",
        "Note: the answer must be accurate and reliable.",
    )


def _professional_tone(text: str, analysis: PromptAnalysis) -> str:
    for casual, professional in PROFESSIONAL_TERMS_ZH.items():
        text = text.replace(casual, professional)
    for casual, professional in PROFESSIONAL_TERMS_EN.items():
        text = re.sub(rf"\b{casual}\b", professional, text, flags=re.IGNORECASE)
    return text


def _add_error_handling(text: str, analysis: PromptAnalysis) -> str:
    return f"{text}\n\n" + _zh(
        analysis,
        "如果遇到不确定的情况，请说明原因并给出备选方案。",
        "If anything cannot be determined, say so and suggest how to proceed.",
    )


# -- catalogues ---------------------------------------------------------------

OPENAI_PRACTICES: tuple[Practice, ...] = (
    Practice(
        id="clear-instructions",
        category="clarity",
        impact="high",
        description="Added an explicit instruction",
        reasoning="OpenAI models perform better with explicit instructions",
        applies=lambda text, role, a: a.clarity_score < 0.7,
        transform=_add_clear_instructions,
    ),
    Practice(
        id="use-delimiters",
        category="structure",
        impact="medium",
        description="Separated the parts of the prompt with delimiters",
        reasoning="Delimiters help the model see how the input is structured",
        applies=lambda text, role, a: a.structure_score < 0.6 and len(text) > 200,
        transform=_add_delimiters,
    ),
    Practice(
        id="structured-output",
        category="format",
        impact="medium",
        description="Requested structured output",
        reasoning="Structured output is easier to parse and process",
        applies=lambda text, role, a: a.complexity != "simple" and not _has(text, STRUCTURED_OUTPUT_PATTERNS),
        transform=_add_structured_output,
    ),
    Practice(
        id="few-shot-learning",
        category="examples",
        impact="high",
        description="Added a few-shot example",
        reasoning="Examples show the model the expected output format and quality",
        applies=lambda text, role, a: a.missing_examples and a.complexity == "complex",
        transform=_add_few_shot,
    ),
    Practice(
        id="specify-length",
        category="specificity",
        impact="low",
        description="Specified the expected answer length",
        reasoning="An explicit length keeps the answer from being too long or too short",
        applies=lambda text, role, a: not _has(text, LENGTH_PATTERNS),
        transform=_add_length,
    ),
    Practice(
        id="role-playing",
        category="context",
        impact="medium",
        description="Added a role definition",
        reasoning="A clear role sets the tone and level of expertise",
        applies=lambda text, role, a: role == "system" and not _has(text, ROLE_PATTERNS),
        transform=_add_role,
    ),
)

CLAUDE_PRACTICES: tuple[Practice, ...] = (
    Practice(
        id="xml-structure",
        category="structure",
        impact="medium",
        description="Wrapped the task in XML tags",
        reasoning="Claude understands XML-structured content well",
        applies=lambda text, role, a: a.structure_score < 0.7 and len(text) > 150,
        transform=_add_xml_structure,
    ),
    Practice(
        id="thinking-process",
        category="reasoning",
        impact="high",
        description="Asked for step-by-step reasoning",
        reasoning="Claude does better when asked to show its reasoning",
        applies=lambda text, role, a: a.complexity == "complex" and not _has(text, THINKING_PATTERNS),
        transform=_add_thinking,
    ),
    Practice(
        id="human-feedback-format",
        category="interaction",
        impact="medium",
        description="Used the Human/Assistant conversation format",
        reasoning="Claude is tuned for conversational turns",
        applies=lambda text, role, a: "conversational" in a.categories
        and not any(m in text for m in HUMAN_FORMAT_MARKERS),
        transform=_add_human_format,
    ),
)

GENERAL_PRACTICES: tuple[Practice, ...] = (
    Practice(
        id="add-constraints",
        category="specificity",
        impact="medium",
        description="Added a quality constraint",
        reasoning="Constraints help control output quality",
        applies=lambda text, role, a: a.specificity_score < 0.6 and not _has(text, CONSTRAINT_PATTERNS),
        transform=_add_constraints,
    ),
    Practice(
        id="professional-tone",
        category="tone",
        impact="low",
        description="Made the tone more professional",
        reasoning="A professional tone makes the output more credible",
        applies=lambda text, role, a: a.tone == "neutral" and "business" in a.categories,
        transform=_professional_tone,
    ),
    Practice(
        id="error-handling",
        category="robustness",
        impact="low",
        description="Added guidance for uncertain cases",
        reasoning="Telling the model how to handle uncertainty makes answers more robust",
        applies=lambda text, role, a: a.complexity != "simple" and not _has(text, ERROR_PATTERNS),
        transform=_add_error_handling,
    ),
)


def practices_for_model(target_model: str) -> tuple[Practice, ...]:
    """Family practices first, then the universal ones."""
    model = target_model.lower()
    practices: tuple[Practice, ...] = ()
    if "openai" in model or "gpt" in model:
        practices += OPENAI_PRACTICES
    if "anthropic" in model or "claude" in model:
        practices += CLAUDE_PRACTICES
    return practices + GENERAL_PRACTICES


class BestPracticesTransformer:
    """Applies the best-practice catalogue for a target model."""

    def apply(
        self,
        text: str,
        target_model: str,
        message_role: str,
        analysis: PromptAnalysis,
    ) -> BestPracticesResult:
        logger.info(f"Applying best practices for model: {target_model}")

        current = text
        applied: list[str] = []
        improvements: list[Improvement] = []

        for practice in practices_for_model(target_model):
            if not practice.applies(current, message_role, analysis):
                continue
            after = practice.transform(current, analysis)
            if after == current:
                continue
            improvements.append(
                Improvement(
                    category=practice.category,
                    description=practice.description,
                    impact=practice.impact,
                    before=current,
                    after=after,
                    reasoning=practice.reasoning,
                )
            )
            applied.append(practice.id)
            current = after

        logger.info(f"Applied {len(applied)} best practices")
        return BestPracticesResult(optimized_text=current, applied_practices=applied, improvements=improvements)
