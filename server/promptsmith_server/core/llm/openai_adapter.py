"""OpenAI model adapter."""

import logging

from openai import AsyncOpenAI

from ..exceptions import AdapterOptimizationError
from ..optimizer.types import (
    AdapterResult,
    AppendTransform,
    OptimizationRequest,
    OptimizationRule,
    PrependTransform,
    Suggestion,
    TextCondition,
)
from .adapter import PromptStructure, PromptValidation, ValidationIssue
from .support import AdapterSupport, build_rewrite_instructions, estimate_by_ratio

logger = logging.getLogger(__name__)

INAPPROPRIATE_TERMS = ("hack", "破解")


async def complete_chat(
    client: AsyncOpenAI,
    provider: str,
    model: str,
    instructions: str,
    prompt: str,
) -> str:
    """Run a single chat completion that rewrites a prompt.

    Args:
        client: OpenAI-compatible async client
        provider: Provider name for error messages
        model: Remote model name
        instructions: System instructions for the rewrite
        prompt: Prompt to rewrite

    Returns:
        Reply text

    Raises:
        AdapterOptimizationError: If the call fails or the reply is empty
    """
    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": instructions},
                {"role": "user", "content": f"Optimize the following prompt:\n\n{prompt}"},
            ],
            temperature=0.3,
            max_tokens=2000,
        )
        content = response.choices[0].message.content
    except Exception as e:
        # Re-raise with context
        raise AdapterOptimizationError(provider, str(e)) from e

    if not content or not content.strip():
        raise AdapterOptimizationError(provider, "empty response")
    return content


class OpenAIAdapter:
    """Adapter for OpenAI GPT models."""

    name = "openai-gpt4"
    provider = "openai"
    version = "4.0"
    max_tokens = 8192
    supported_roles = ("system", "user", "assistant")

    MODEL_NOTES = "GPT models: direct instructions, an explicit role and step-by-step guidance"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str = "gpt-4",
        timeout: float = 30.0,
        max_retries: int = 3,
        remote_rewrite_enabled: bool = True,
    ):
        """Initialize OpenAI adapter.

        Args:
            api_key: OpenAI API key
            base_url: Optional API base URL
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
        self.support = AdapterSupport(self.name, "OpenAI", self.max_tokens)

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
        return await complete_chat(self.client, "OpenAI", self.model, instructions, text)

    def validate(self, text: str) -> PromptValidation:
        errors = []
        warnings = []

        if any(term in text for term in INAPPROPRIATE_TERMS):
            errors.append(
                ValidationIssue(code="INAPPROPRIATE_CONTENT", message="Prompt may contain inappropriate content")
            )

        estimated = self.estimate_tokens(text)
        if estimated > self.max_tokens * 0.8:
            warnings.append(
                ValidationIssue(
                    code="TOKEN_LIMIT_WARNING",
                    message=f"Prompt is close to the token limit ({estimated}/{self.max_tokens})",
                    severity="warning",
                    suggestion="Shorten the prompt or split it into several requests",
                )
            )

        return self.support.validate(text).extend(errors, warnings)

    def get_model_specific_rules(self) -> list[OptimizationRule]:
        return self.support.base_rules() + [
            OptimizationRule(
                id="openai-role-clarity",
                name="OpenAI Role Clarity",
                description="State the role the model should take",
                category="role",
                applicable_models=(self.name,),
                condition=TextCondition(contains_none=("你是", "作为", "you are", "as a")),
                transform=PrependTransform(text="You are an expert assistant.", text_zh="你是一位专业的助手。"),
                priority=9,
            ),
            OptimizationRule(
                id="openai-step-by-step",
                name="OpenAI Step by Step",
                description="Guide the model to work step by step",
                category="reasoning",
                applicable_models=(self.name,),
                condition=TextCondition(min_length=101, contains_none=("步骤", "step")),
                transform=AppendTransform(text="Work through this step by step.", text_zh="请按步骤逐一完成。"),
                priority=8,
            ),
            OptimizationRule(
                id="openai-examples",
                name="OpenAI Examples",
                description="Provide examples for complex tasks",
                category="examples",
                applicable_models=(self.name,),
                condition=TextCondition(min_length=51, contains_none=("例如", "示例", "example")),
                priority=7,
            ),
        ]

    def format_for_model(self, prompt: PromptStructure) -> str:
        formatted = ""
        if prompt.system_prompt:
            formatted += f"System: {prompt.system_prompt}\n\n"
        return formatted + f"User: {prompt.user_prompt}"

    def estimate_tokens(self, text: str) -> int:
        # About 4 characters per token for English, 2 for Chinese
        return estimate_by_ratio(text, 2, 4)

    def get_suggestions(self, text: str) -> list[Suggestion]:
        return self.support.suggestions(text)

    async def check_connection(self) -> bool:
        try:
            response = await self.client.models.list()
            return len(response.data) > 0
        except Exception as e:
            logger.error(f"OpenAI connection check failed: {e}", exc_info=True)
            return False
