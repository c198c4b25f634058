"""Heuristic quality analysis of prompt text.

Everything here is a pure function of the input text: keyword scans over
bilingual (Chinese/English) word lists, a few regular expressions and simple
thresholds. The analyzer never raises; text without any signal gets neutral
scores.
"""

import logging
import re

from .types import AnalysisContext, Complexity, PromptAnalysis

logger = logging.getLogger(__name__)

VAGUE_WORDS = (
    "好的", "不错的", "合适的", "适当的", "一些", "很多", "大概", "可能",
    "good", "nice", "appropriate", "suitable", "some", "many", "probably", "maybe",
)

INSTRUCTION_KEYWORDS = (
    "请", "帮我", "生成", "创建", "写", "分析", "总结", "解释", "描述", "列出",
    "please", "help", "generate", "create", "write", "analyze", "summarize", "explain", "describe", "list",
)

CONTEXT_KEYWORDS = (
    "背景", "场景", "目标", "受众", "要求", "格式", "风格", "例如", "比如",
    "background", "context", "scenario", "target", "audience", "requirement", "format", "style",
    "example", "for instance",
)

CONSTRAINT_KEYWORDS = ("必须", "不能", "应该", "需要", "must", "should", "cannot", "need to")
FORMAT_KEYWORDS = ("格式", "样式", "长度", "字数", "format", "style", "length", "words")
OUTPUT_KEYWORDS = ("输出", "结果", "返回", "生成", "output", "result", "return", "generate")
EXAMPLE_KEYWORDS = ("例如", "比如", "示例", "样例", "example", "for instance", "such as")

CONFLICTING_PAIRS = (
    ("简短", "详细"),
    ("正式", "随意"),
    ("技术性", "通俗"),
    ("brief", "detailed"),
    ("formal", "casual"),
    ("technical", "simple"),
)

CATEGORY_PATTERNS = (
    ("creative", re.compile(r"创作|创意|写作|故事|诗歌|creative|writing|story|poem")),
    ("analytical", re.compile(r"分析|评估|比较|研究|analy[sz]e|evaluate|compare|research")),
    ("conversational", re.compile(r"对话|聊天|回答|问答|conversation|chat|answer|\bqa\b")),
    ("technical", re.compile(r"代码|编程|技术|算法|code|programming|technical|algorithm")),
    ("educational", re.compile(r"教学|解释|学习|教育|teach|explain|learn|education")),
    ("business", re.compile(r"商务|业务|营销|销售|business|marketing|sales")),
)

TONE_PATTERNS = (
    ("polite", re.compile(r"请|谢谢|麻烦|please|thank|kindly")),
    ("urgent", re.compile(r"必须|立即|urgent|must|immediately")),
    ("professional", re.compile(r"专业|技术|professional|technical")),
    ("casual", re.compile(r"随意|轻松|casual|relaxed")),
)

CODE_PATTERN = re.compile(r"代码|编程|技术|code|programming|technical")
CJK_PATTERN = re.compile(r"[一-鿿]")
SENTENCE_SPLIT = re.compile(r"[.!?。！？]+")
PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")

# A prompt is flagged as vague once it contains this many distinct vague terms.
VAGUE_TERM_THRESHOLD = 1
TOO_MANY_INSTRUCTIONS = 8
CJK_LANGUAGE_RATIO = 0.3


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


def _count_matches(text: str, keywords: tuple[str, ...]) -> int:
    """Number of distinct keywords found in the (lower-cased) text."""
    return sum(1 for keyword in keywords if keyword in text)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def term_pattern(term: str) -> re.Pattern:
    """Pattern for a vocabulary term. Latin terms only match whole words."""
    if term.isascii():
        return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)
    return re.compile(re.escape(term))


def count_terms(text: str, terms: tuple[str, ...]) -> int:
    """Number of distinct terms found in the text, Latin ones as whole words."""
    return sum(1 for term in terms if term_pattern(term).search(text))


def count_words(text: str) -> int:
    return len(text.split())


def count_sentences(text: str) -> int:
    return len([s for s in SENTENCE_SPLIT.split(text) if s.strip()])


def count_paragraphs(text: str) -> int:
    return len([p for p in PARAGRAPH_SPLIT.split(text) if p.strip()])


def count_cjk(text: str) -> int:
    return len(CJK_PATTERN.findall(text))


class PromptAnalyzer:
    """Produces a PromptAnalysis snapshot for a prompt."""

    def analyze(self, text: str, context: AnalysisContext | None = None) -> PromptAnalysis:
        """
        Analyze a prompt.

        Args:
            text: Prompt text
            context: Request details (target model, role, system prompt)

        Returns:
            Immutable analysis of the text
        """
        context = context or AnalysisContext()
        lowered = text.lower()

        structure = self.structure_score(text)
        clarity = self.clarity_score(text)
        specificity = self.specificity_score(text)
        completeness = self.completeness_score(lowered)

        vague_count = count_terms(lowered, VAGUE_WORDS)
        instruction_count = _count_matches(lowered, INSTRUCTION_KEYWORDS)
        has_context = _contains_any(lowered, CONTEXT_KEYWORDS)
        has_examples = _contains_any(lowered, EXAMPLE_KEYWORDS)

        complexity = self.complexity(text)
        tone = self.detect_tone(lowered)

        analysis = PromptAnalysis(
            word_count=count_words(text),
            character_count=len(text),
            sentence_count=count_sentences(text),
            paragraph_count=count_paragraphs(text),
            has_system_prompt=bool(context.system_prompt),
            message_role=context.message_role,
            structure_score=structure,
            clarity_score=clarity,
            specificity_score=specificity,
            completeness_score=completeness,
            has_vague_instructions=vague_count >= VAGUE_TERM_THRESHOLD,
            lacks_context=not has_context and len(text) > 50,
            missing_examples=not has_examples and len(text) > 200,
            has_too_many_instructions=instruction_count > TOO_MANY_INSTRUCTIONS,
            has_conflicting_instructions=any(
                a in lowered and b in lowered for a, b in CONFLICTING_PAIRS
            ),
            categories=self.categorize(lowered),
            complexity=complexity,
            language=self.detect_language(text),
            tone=tone,
            model_compatibility=self.model_compatibility(lowered, complexity, tone),
        )
        analysis = analysis.model_copy(
            update={"suggested_improvements": tuple(self._improvement_notes(analysis))}
        )

        logger.debug(
            f"Analyzed prompt for {context.target_model or 'unknown model'}: "
            f"clarity={analysis.clarity_score:.2f}, structure={analysis.structure_score:.2f}, "
            f"complexity={analysis.complexity}"
        )
        return analysis

    # -- scores ---------------------------------------------------------------

    def structure_score(self, text: str) -> float:
        score = 0.5

        if re.search(r"\d+\.|^\d+\)", text, re.MULTILINE):
            score += 0.15
        if re.search(r"^\s*[-*•]", text, re.MULTILINE):
            score += 0.1
        if re.search(r"^#+\s", text, re.MULTILINE) or re.search(r"^[A-Z][^a-z\n]*:$", text, re.MULTILINE):
            score += 0.15
        if "---" in text or "===" in text:
            score += 0.1

        paragraphs = count_paragraphs(text)
        if 1 < paragraphs <= 5:
            score += 0.1
        elif paragraphs > 5:
            score -= 0.05

        return _clamp(score)

    def clarity_score(self, text: str) -> float:
        score = 0.7
        lowered = text.lower()

        score -= count_terms(lowered, VAGUE_WORDS) * 0.05

        sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
        if sentences:
            average = sum(len(s) for s in sentences) / len(sentences)
            if average > 200:
                score -= 0.1
            if average < 20:
                score -= 0.05

        if _contains_any(lowered, INSTRUCTION_KEYWORDS):
            score += 0.1

        return _clamp(score)

    def specificity_score(self, text: str) -> float:
        score = 0.5
        lowered = text.lower()

        if re.search(r"\d+", text):
            score += 0.1
        if re.search(r"\d{4}[-/]\d{1,2}[-/]\d{1,2}|\d{1,2}[-/]\d{1,2}[-/]\d{4}", text):
            score += 0.1
        if re.search(r"[A-Z][a-z]+\s[A-Z][a-z]+", text):
            score += 0.1
        if re.search(r"\"[^\"]*\"|'[^']*'|“[^”]*”", text):
            score += 0.1
        if _contains_any(lowered, CONSTRAINT_KEYWORDS):
            score += 0.15
        if _contains_any(lowered, FORMAT_KEYWORDS):
            score += 0.15

        return _clamp(score)

    def completeness_score(self, lowered: str) -> float:
        score = 0.6

        if _contains_any(lowered, CONTEXT_KEYWORDS):
            score += 0.15
        if _contains_any(lowered, INSTRUCTION_KEYWORDS):
            score += 0.1
        if _contains_any(lowered, OUTPUT_KEYWORDS):
            score += 0.1
        if _contains_any(lowered, EXAMPLE_KEYWORDS):
            score += 0.05

        return _clamp(score)

    # -- classification ---------------------------------------------------------

    def categorize(self, lowered: str) -> tuple[str, ...]:
        categories = tuple(name for name, pattern in CATEGORY_PATTERNS if pattern.search(lowered))
        return categories or ("general",)

    def complexity(self, text: str) -> Complexity:
        words = count_words(text)
        sentences = count_sentences(text)
        instructions = _count_matches(text.lower(), INSTRUCTION_KEYWORDS)

        if words < 50 and sentences < 3 and instructions <= 2:
            return "simple"
        if words < 200 and sentences < 10 and instructions <= 5:
            return "moderate"
        return "complex"

    def detect_language(self, text: str) -> str:
        if not text:
            return "en"
        return "zh" if count_cjk(text) / len(text) > CJK_LANGUAGE_RATIO else "en"

    def detect_tone(self, lowered: str) -> str:
        for tone, pattern in TONE_PATTERNS:
            if pattern.search(lowered):
                return tone
        return "neutral"

    def model_compatibility(self, lowered: str, complexity: Complexity, tone: str) -> dict[str, float]:
        words = count_words(lowered)

        openai = 0.8
        if words > 1000:
            openai -= 0.1
        if complexity == "complex":
            openai += 0.1

        claude = 0.9
        if words > 2000:
            claude += 0.05
        if tone == "professional":
            claude += 0.05

        deepseek = 0.7
        if CODE_PATTERN.search(lowered):
            deepseek += 0.2

        return {
            "openai-gpt4": round(_clamp(openai), 2),
            "anthropic-claude": round(_clamp(claude), 2),
            "deepseek-chat": round(_clamp(deepseek), 2),
        }

    def _improvement_notes(self, analysis: PromptAnalysis) -> list[str]:
        notes = []
        if analysis.clarity_score < 0.6:
            notes.append("Make instructions clearer and avoid vague wording")
        if analysis.specificity_score < 0.5:
            notes.append("Add concrete requirements and constraints")
        if analysis.lacks_context:
            notes.append("Provide background information and context")
        if analysis.missing_examples:
            notes.append("Add an example of the expected output")
        if analysis.structure_score < 0.5:
            notes.append("Structure the prompt with lists or sections")
        if analysis.has_too_many_instructions:
            notes.append("Reduce the number of instructions to the essential ones")
        if analysis.has_conflicting_instructions:
            notes.append("Resolve conflicting instructions")
        return notes
