"""Data models for the prompt optimization pipeline."""

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

MessageRole = Literal["system", "user", "assistant"]
OptimizationLevel = Literal["basic", "advanced", "expert"]
Impact = Literal["low", "medium", "high"]
Complexity = Literal["simple", "moderate", "complex"]

VALID_ROLES: tuple[str, ...] = ("system", "user", "assistant")
VALID_LEVELS: tuple[str, ...] = ("basic", "advanced", "expert")

AnalysisField = Literal[
    "word_count",
    "character_count",
    "sentence_count",
    "paragraph_count",
    "structure_score",
    "clarity_score",
    "specificity_score",
    "completeness_score",
]
AnalysisFlag = Literal[
    "has_vague_instructions",
    "lacks_context",
    "missing_examples",
    "has_too_many_instructions",
    "has_conflicting_instructions",
]
Comparator = Literal[">", "<", ">=", "<=", "=="]


# ---------------------------------------------------------------------------
# Request / analysis
# ---------------------------------------------------------------------------


class AnalysisContext(BaseModel):
    """What the analyzer knows about the request besides the text itself."""

    model_config = ConfigDict(frozen=True)

    target_model: str = ""
    message_role: str = "user"
    system_prompt: str | None = None
    optimization_level: str = "basic"


class PromptAnalysis(BaseModel):
    """Read-only quality assessment of a prompt."""

    model_config = ConfigDict(frozen=True)

    word_count: int
    character_count: int
    sentence_count: int
    paragraph_count: int

    has_system_prompt: bool = False
    message_role: str = "user"

    structure_score: float = Field(ge=0.0, le=1.0)
    clarity_score: float = Field(ge=0.0, le=1.0)
    specificity_score: float = Field(ge=0.0, le=1.0)
    completeness_score: float = Field(ge=0.0, le=1.0)

    has_vague_instructions: bool = False
    lacks_context: bool = False
    missing_examples: bool = False
    has_too_many_instructions: bool = False
    has_conflicting_instructions: bool = False

    categories: tuple[str, ...] = ("general",)
    """Prompt-domain tags (creative, analytical, technical, ...)."""

    complexity: Complexity = "simple"
    language: str = "en"
    tone: str = "neutral"

    suggested_improvements: tuple[str, ...] = ()
    """Short advisory notes derived from low scores and problem flags."""

    model_compatibility: dict[str, float] = Field(default_factory=dict)
    """Model id -> 0..1 fit score."""


# ---------------------------------------------------------------------------
# Rule conditions
# ---------------------------------------------------------------------------


class FieldCondition(BaseModel):
    """Numeric comparison against a named analysis field."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["field"] = "field"
    field: AnalysisField
    comparator: Comparator
    threshold: float


class FlagCondition(BaseModel):
    """Boolean analysis flag lookup."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["flag"] = "flag"
    flag: AnalysisFlag
    expected: bool = True


class TextCondition(BaseModel):
    """Predicate over the current text. Every populated part must hold."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    contains_any: tuple[str, ...] = ()
    contains_none: tuple[str, ...] = ()
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None


class InvalidCondition(BaseModel):
    """A condition that could not be parsed. Always evaluates to false."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["invalid"] = "invalid"
    source: str


class AllOf(BaseModel):
    """Conjunction of conditions."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["all"] = "all"
    conditions: tuple["Condition", ...]


Condition = Annotated[
    Union[FieldCondition, FlagCondition, TextCondition, InvalidCondition, AllOf],
    Field(discriminator="kind"),
]

AllOf.model_rebuild()


# ---------------------------------------------------------------------------
# Transformation descriptors
# ---------------------------------------------------------------------------


class ReplaceTransform(BaseModel):
    """Pattern -> replacement substitution."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["replace"] = "replace"
    pattern: str
    replacement: str
    regex: bool = True
    ignore_case: bool = True


class TermMapTransform(BaseModel):
    """Replace each known term with a more specific stand-in."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["term_map"] = "term_map"
    terms: dict[str, str]


class AppendTransform(BaseModel):
    """Append a scaffold paragraph. ``text_zh`` is used for Chinese prompts."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["append"] = "append"
    text: str
    text_zh: str | None = None


class PrependTransform(BaseModel):
    """Prepend a lead-in paragraph. ``text_zh`` is used for Chinese prompts."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["prepend"] = "prepend"
    text: str
    text_zh: str | None = None


class WrapTransform(BaseModel):
    """Surround the whole text, e.g. with XML tags."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["wrap"] = "wrap"
    prefix: str
    suffix: str


class NumberListTransform(BaseModel):
    """Turn instruction lines into a numbered list."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["number_list"] = "number_list"
    min_lines: int = 4
    min_line_length: int = 20


class ParagraphTransform(BaseModel):
    """Break a long single paragraph after sentence ends."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["paragraphs"] = "paragraphs"
    min_length: int = 200


class SentenceSplitTransform(BaseModel):
    """Split run-on sentences at internal commas."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["split_sentences"] = "split_sentences"
    max_length: int = 150


class StripPhrasesTransform(BaseModel):
    """Remove filler phrases from long prompts."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["strip_phrases"] = "strip_phrases"
    phrases: tuple[str, ...]
    min_word_count: int = 500


Transform = Annotated[
    Union[
        ReplaceTransform,
        TermMapTransform,
        AppendTransform,
        PrependTransform,
        WrapTransform,
        NumberListTransform,
        ParagraphTransform,
        SentenceSplitTransform,
        StripPhrasesTransform,
    ],
    Field(discriminator="kind"),
]


class OptimizationRule(BaseModel):
    """A declarative, conditionally applied text transformation."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    category: str
    """Strategy key: clarity, structure, context, examples, format, length, specificity, ..."""

    applicable_models: tuple[str, ...] = ()
    """Model ids or family names. Empty means universal."""

    domains: tuple[str, ...] = ()
    """Prompt-domain tags this rule targets. Empty means every domain."""

    condition: Condition | None = None
    """Absent means the rule always applies."""

    transform: Transform | None = None
    priority: int = Field(default=5, ge=1, le=10)
    """1-10, higher is applied first."""

    is_active: bool = True

    def applies_to(self, model_id: str) -> bool:
        """Whether this rule is universal or names the model (or its family)."""
        if not self.applicable_models:
            return True
        model_lower = model_id.lower()
        return any(m.lower() == model_lower or m.lower() in model_lower for m in self.applicable_models)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class Improvement(BaseModel):
    """A change that was actually applied to the text."""

    category: str
    description: str
    impact: Impact
    before: str
    after: str
    reasoning: str = ""


class Suggestion(BaseModel):
    """Advisory recommendation. Never applied to the text."""

    id: str
    type: str
    title: str
    description: str
    priority: int
    category: str = "general"
    example: str | None = None


class CostBreakdown(BaseModel):
    original: float
    optimized: float
    currency: str = "USD"


class TokenEstimate(BaseModel):
    original: int
    optimized: int
    saved: int
    """Signed: original - optimized."""

    cost: CostBreakdown | None = None
    """Only present when a per-token price is known for the model."""


class RuleApplicationResult(BaseModel):
    optimized_text: str
    applied_rules: list[str] = []
    improvements: list[Improvement] = []
    processing_log: list[str] = []


class BestPracticesResult(BaseModel):
    optimized_text: str
    applied_practices: list[str] = []
    improvements: list[Improvement] = []


class AdapterResult(BaseModel):
    """Result fragment produced by a model adapter."""

    optimized_prompt: str
    improvements: list[Improvement] = []
    applied_rules: list[str] = []
    suggestions: list[Suggestion] = []
    confidence: float = 0.5
    fell_back: bool = False
    """True when the adapter returned its input unchanged after a failure."""


class OptimizationRequest(BaseModel):
    """Request to optimize a prompt for one target model."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    target_model: str = ""
    message_role: str = "user"
    """One of system, user, assistant. Checked by the engine."""

    system_prompt: str | None = None
    optimization_level: str = "basic"
    """One of basic, advanced, expert. Checked by the engine."""

    custom_rules: tuple[OptimizationRule, ...] = ()
    """Caller-supplied rules. They replace catalogue rules with the same id."""

    user_id: str | None = None
    context: dict[str, Any] | None = None


def _optimization_id() -> str:
    return f"opt_{uuid4().hex[:12]}"


class OptimizationResult(BaseModel):
    """Result of prompt optimization."""

    id: str = Field(default_factory=_optimization_id)
    original_prompt: str
    """The request prompt, captured before any transformation."""

    optimized_prompt: str
    improvements: list[Improvement] = []
    confidence: float = Field(ge=0.1, le=1.0)
    applied_rules: list[str] = []
    """Rule, practice and adapter rule ids in application order."""

    suggestions: list[Suggestion] = []
    estimated_tokens: TokenEstimate
    processing_time_ms: int = 0
    model_used: str
    degraded: bool = False
    """True when an internal fault was contained while producing this result."""

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
