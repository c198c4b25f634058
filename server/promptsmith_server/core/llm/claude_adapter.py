"""Anthropic Claude model adapter (Messages REST API over httpx)."""

import asyncio
import logging
from typing import Any

import httpx

from ..exceptions import AdapterOptimizationError
from ..optimizer.types import (
    AdapterResult,
    AppendTransform,
    OptimizationRequest,
    OptimizationRule,
    Suggestion,
    TextCondition,
    WrapTransform,
)
from .adapter import PromptStructure, PromptValidation, ValidationIssue
from .support import AdapterSupport, build_rewrite_instructions, estimate_by_ratio

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
HARMFUL_TERMS = ("暴力", "仇恨", "歧视", "违法")
RETRYABLE_STATUS = {429, 500, 502, 503, 504, 529}


class ClaudeAdapter:
    """Adapter for Anthropic Claude models."""

    name = "anthropic-claude"
    provider = "anthropic"
    version = "3.0"
    max_tokens = 200000
    supported_roles = ("user", "assistant")

    MODEL_NOTES = "Claude models: XML-tagged sections, explicit reasoning and generous context"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com",
        model: str = "claude-3-sonnet-20240229",
        timeout: float = 30.0,
        max_retries: int = 3,
        remote_rewrite_enabled: bool = True,
        retry_backoff: float = 0.5,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize Claude adapter.

        Args:
            api_key: Anthropic API key
            base_url: Anthropic API base URL
            model: Remote model used for the rewrite
            timeout: Request timeout in seconds
            max_retries: Retries on transport errors, 429 and 5xx responses
            remote_rewrite_enabled: Whether to call the API at all
            retry_backoff: Base delay in seconds, doubled after each retry
            http_client: Optional shared client. A short-lived client is
                created per call when omitted.
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.remote_rewrite_enabled = remote_rewrite_enabled
        self.retry_backoff = retry_backoff
        self._http_client = http_client
        self.support = AdapterSupport(self.name, "Claude", self.max_tokens)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

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
        payload = {
            "model": self.model,
            "max_tokens": 2000,
            "temperature": 0.3,
            "system": build_rewrite_instructions(self.MODEL_NOTES, request.optimization_level),
            "messages": [{"role": "user", "content": f"Optimize the following prompt:\n\n{text}"}],
        }

        if self._http_client is not None:
            data = await self._post_messages(self._http_client, payload)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                data = await self._post_messages(client, payload)

        try:
            blocks = data["content"]
            content = "".join(block["text"] for block in blocks if block.get("type") == "text")
        except (KeyError, TypeError, AttributeError) as e:
            raise AdapterOptimizationError("Claude", f"malformed response: {e}") from e

        if not content.strip():
            raise AdapterOptimizationError("Claude", "empty response")
        return content

    async def _post_messages(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to the Messages API with bounded retries on transient failures."""
        url = f"{self.base_url}/v1/messages"
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            if attempt:
                await asyncio.sleep(self.retry_backoff * 2 ** (attempt - 1))
            try:
                response = await client.post(url, headers=self.headers, json=payload, timeout=self.timeout)
            except httpx.TransportError as e:
                last_error = e
                logger.warning(f"Anthropic API request failed (attempt {attempt + 1}): {e}")
                continue

            if response.status_code in RETRYABLE_STATUS:
                last_error = httpx.HTTPStatusError(
                    f"Anthropic API error: {response.status_code}",
                    request=response.request,
                    response=response,
                )
                logger.warning(
                    f"Anthropic API returned {response.status_code} (attempt {attempt + 1})",
                    extra={"status_code": response.status_code},
                )
                continue

            try:
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPStatusError, ValueError) as e:
                raise AdapterOptimizationError("Claude", str(e)) from e

        raise AdapterOptimizationError(
            "Claude", f"giving up after {self.max_retries + 1} attempts: {last_error}"
        ) from last_error

    def validate(self, text: str) -> PromptValidation:
        errors = []
        warnings = []

        for term in HARMFUL_TERMS:
            if term in text:
                errors.append(
                    ValidationIssue(code="HARMFUL_CONTENT", message=f"Prompt may contain harmful content: {term}")
                )

        if len(text) < 100:
            warnings.append(
                ValidationIssue(
                    code="UNDERUTILIZED_CONTEXT",
                    message="Claude supports long context; more detail can be provided",
                    severity="warning",
                    suggestion="Add more background information and concrete requirements",
                )
            )

        if "\n" not in text and len(text) > 50:
            warnings.append(
                ValidationIssue(
                    code="LACK_STRUCTURE",
                    message="Organize the prompt in a structured format",
                    severity="warning",
                    suggestion="Use line breaks, tags or lists",
                )
            )

        return self.support.validate(text).extend(errors, warnings)

    def get_model_specific_rules(self) -> list[OptimizationRule]:
        return self.support.base_rules() + [
            OptimizationRule(
                id="claude-structured-thinking",
                name="Claude Structured Thinking",
                description="Wrap the task in XML tags",
                category="structure",
                applicable_models=(self.name,),
                condition=TextCondition(min_length=101, contains_none=("<", ">")),
                transform=WrapTransform(prefix="<task>\n", suffix="\n</task>"),
                priority=9,
            ),
            OptimizationRule(
                id="claude-safety-first",
                name="Claude Safety First",
                description="Remind the model to keep the answer safe",
                category="safety",
                applicable_models=(self.name,),
                transform=AppendTransform(
                    text="Keep the response safe and factual.",
                    text_zh="请确保回答安全、真实。",
                ),
                priority=9,
            ),
            OptimizationRule(
                id="claude-long-context",
                name="Claude Long Context",
                description="Invite more detail on short prompts",
                category="completeness",
                applicable_models=(self.name,),
                condition=TextCondition(max_length=199),
                transform=AppendTransform(
                    text="Feel free to ask for or use additional background; long inputs are fine.",
                    text_zh="如有需要可以结合更多背景信息，篇幅较长也没有问题。",
                ),
                priority=8,
            ),
            OptimizationRule(
                id="claude-reasoning-chain",
                name="Claude Reasoning Chain",
                description="Ask for reasoning before the final answer",
                category="reasoning",
                applicable_models=(self.name,),
                condition=TextCondition(contains_none=("思考", "分析", "think", "analy")),
                transform=AppendTransform(
                    text="Think through your reasoning before giving the final answer.",
                    text_zh="请先思考并分析，再给出最终答案。",
                ),
                priority=8,
            ),
        ]

    def format_for_model(self, prompt: PromptStructure) -> str:
        formatted = ""
        # Claude takes system text separately, so it is marked up as instructions
        if prompt.system_prompt:
            formatted += f"<instructions>\n{prompt.system_prompt}\n</instructions>\n\n"
        return formatted + f"<task>\n{prompt.user_prompt}\n</task>"

    def estimate_tokens(self, text: str) -> int:
        # About 3.5 characters per token for English, 1.8 for Chinese
        return estimate_by_ratio(text, 1.8, 3.5)

    def get_suggestions(self, text: str) -> list[Suggestion]:
        suggestions = self.support.suggestions(text)

        if "<" not in text and ">" not in text:
            suggestions.append(
                Suggestion(
                    id="use-xml-tags",
                    type="structure",
                    title="Use XML tags",
                    description="Claude prefers content structured with XML tags",
                    priority=1,
                    category="claude-specific",
                    example="Organize the prompt with <task>, <context> and <instructions> tags",
                )
            )

        if len(text) < 200:
            suggestions.append(
                Suggestion(
                    id="utilize-long-context",
                    type="context",
                    title="Use the long context",
                    description="Claude supports long context; provide more detail",
                    priority=2,
                    category="optimization",
                    example="Add background information, examples or detailed requirements",
                )
            )

        return suggestions

    async def check_connection(self) -> bool:
        url = f"{self.base_url}/v1/models"
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, headers=self.headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, headers=self.headers)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Claude connection check failed: {e}", exc_info=True)
            return False
