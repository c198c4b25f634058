"""DeepSeek model adapter (OpenAI-compatible API)."""

import logging
import re

from openai import AsyncOpenAI

from ..optimizer.types import (
    AdapterResult,
    AppendTransform,
    OptimizationRequest,
    OptimizationRule,
    Suggestion,
    TextCondition,
)
from .adapter import PromptStructure, PromptValidation, ValidationIssue
from .openai_adapter import complete_chat
from .support import AdapterSupport, build_rewrite_instructions, estimate_by_ratio

logger = logging.getLogger(__name__)

CODE_TERMS = ("代码", "code", "编程", "program")
REASONING_TERMS = ("分析", "推理", "证明", "解释", "为什么")


class DeepSeekAdapter:
    """Adapter for DeepSeek chat models."""

    name = "deepseek-chat"
    provider = "deepseek"
    version = "1.0"
    max_tokens = 32768
    supported_roles = ("system", "user", "assistant")

    MODEL_NOTES = "DeepSeek models: explicit reasoning chains, code blocks and step-by-step math"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.deepseek.com",
        model: str = "deepseek-chat",
        timeout: float = 30.0,
        max_retries: int = 3,
        remote_rewrite_enabled: bool = True,
    ):
        """Initialize DeepSeek adapter.

        Args:
            api_key: DeepSeek API key
            base_url: DeepSeek API base URL
            model: Remote model used for the rewrite
            timeout: Request timeout in seconds
            max_retries: Retries performed by the SDK on transient errors
            remote_rewrite_enabled: Whether to call the API at all
        """
        self.model = model
        self.remote_rewrite_enabled = remote_rewrite_enabled
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        self.support = AdapterSupport(self.name, "DeepSeek", self.max_tokens)

    async def optimize(self, request: OptimizationRequest) -> AdapterResult:
        return await self.support.run(
            request,
            self.validate(request.prompt),
            self.get_model_specific_rules(),
            self._rewrite,
            self.get_suggestions(request.prompt),
            remote_rewrite_enabled=self.remote_rewrite_enabled,
        )

    async def _rewrite(self, text: str, request: OptimizationRequest) -> str:
        instructions = build_rewrite_instructions(self.MODEL_NOTES, request.optimization_level)
        return await complete_chat(self.client, "DeepSeek", self.model, instructions, text)

    def validate(self, text: str) -> PromptValidation:
        warnings = []
        lowered = text.lower()

        if any(t in lowered for t in ("代码", "code")) and "```" in text and "```\n" not in text:
            warnings.append(
                ValidationIssue(
                    code="CODE_BLOCK_FORMAT",
                    message="Code block formatting may be incorrect",
                    severity="warning",
                    suggestion="Use Markdown fenced code blocks",
                )
            )

        if "$" in text and "$$" not in text:
            warnings.append(
                ValidationIssue(
                    code="MATH_EXPRESSION",
                    message="Math expression detected; LaTeX formatting is recommended",
                    severity="warning",
                    suggestion="Wrap math expressions in $$",
                )
            )

        if any(t in text for t in REASONING_TERMS) and len(text) < 100:
            warnings.append(
                ValidationIssue(
                    code="INSUFFICIENT_CONTEXT",
                    message="Complex reasoning tasks need more context",
                    severity="warning",
                    suggestion="Give more background and requirements for the task",
                )
            )

        return self.support.validate(text).extend(warnings=warnings)

    def get_model_specific_rules(self) -> list[OptimizationRule]:
        return self.support.base_rules() + [
            OptimizationRule(
                id="deepseek-reasoning-chain",
                name="DeepSeek Reasoning Chain",
                description="Ask for an explicit reasoning chain",
                category="reasoning",
                applicable_models=(self.name,),
                condition=TextCondition(min_length=51, contains_none=("思考", "推理", "reason")),
                transform=AppendTransform(
                    text="Reason through the problem step by step before answering.",
                    text_zh="请先逐步推理，再给出答案。",
                ),
                priority=9,
            ),
            OptimizationRule(
                id="deepseek-code-optimization",
                name="DeepSeek Code Blocks",
                description="Ask for code in fenced code blocks",
                category="code",
                applicable_models=(self.name,),
                condition=TextCondition(contains_any=("代码", "code", "编程"), contains_none=("```", "代码块", "code block")),
                transform=AppendTransform(
                    text="Format any code in fenced code blocks.",
                    text_zh="请使用代码块格式输出代码。",
                ),
                priority=8,
            ),
            OptimizationRule(
                id="deepseek-math-logic",
                name="DeepSeek Math and Logic",
                description="Ask for step-by-step working on math and logic tasks",
                category="reasoning",
                applicable_models=(self.name,),
                condition=TextCondition(contains_any=("计算", "数学", "逻辑", "calculate", "math"), contains_none=("步骤", "steps")),
                transform=AppendTransform(
                    text="Show the calculation steps.",
                    text_zh="请写出计算步骤。",
                ),
                priority=7,
            ),
            OptimizationRule(
                id="deepseek-bilingual",
                name="DeepSeek Bilingual",
                description="Pin the reply language for mixed Chinese and English prompts",
                category="language",
                applicable_models=(self.name,),
                condition=TextCondition(pattern=r"(?s)(?=.*[a-zA-Z])(?=.*[一-鿿])", contains_none=("回答语言", "reply in")),
                transform=AppendTransform(
                    text="Reply in the language of the main request.",
                    text_zh="回答语言：请使用与主要请求相同的语言。",
                ),
                priority=6,
            ),
        ]

    def format_for_model(self, prompt: PromptStructure) -> str:
        formatted = ""
        if prompt.system_prompt:
            formatted += f"# 系统指令\n{prompt.system_prompt}\n\n"
        formatted += f"# 任务\n{prompt.user_prompt}"

        if any(term in prompt.user_prompt.lower() for term in CODE_TERMS):
            formatted += "\n\n请使用适当的代码块格式输出结果。"
        return formatted

    def estimate_tokens(self, text: str) -> int:
        # Same ratios as OpenAI: about 4 characters per token for English, 2 for Chinese
        return estimate_by_ratio(text, 2, 4)

    def get_suggestions(self, text: str) -> list[Suggestion]:
        suggestions = self.support.suggestions(text)
        lowered = text.lower()

        if len(text) > 50 and "步骤" not in text and "思考" not in text:
            suggestions.append(
                Suggestion(
                    id="add-reasoning-steps",
                    type="reasoning",
                    title="Add reasoning steps",
                    description="DeepSeek is strong at reasoning; ask it to think step by step",
                    priority=3,
                    category="deepseek-specific",
                    example="Analyze the problem step by step, then give the conclusion",
                )
            )

        if any(t in lowered for t in ("代码", "code")) and "```" not in text:
            suggestions.append(
                Suggestion(
                    id="use-code-blocks",
                    type="format",
                    title="Use code blocks",
                    description="Put code in fenced code blocks",
                    priority=2,
                    category="deepseek-specific",
                    example="```python\n# your code\n```",
                )
            )

        if any(t in text for t in ("数学", "计算")) or re.search(r"\bmath\b", lowered):
            suggestions.append(
                Suggestion(
                    id="use-math-notation",
                    type="format",
                    title="Use math notation",
                    description="Write formulas in LaTeX",
                    priority=2,
                    category="deepseek-specific",
                    example="$$E = mc^2$$",
                )
            )

        return suggestions

    async def check_connection(self) -> bool:
        try:
            response = await self.client.models.list()
            return len(response.data) > 0
        except Exception as e:
            logger.error(f"DeepSeek connection check failed: {e}", exc_info=True)
            return False
