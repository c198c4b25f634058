"""Tests for the DeepSeek model adapter."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from promptsmith_server.core.llm import DeepSeekAdapter, PromptStructure
from promptsmith_server.core.optimizer.types import OptimizationRequest


class TestDeepSeekAdapter:
    """Tests for DeepSeekAdapter."""

    def test_uses_deepseek_endpoint(self, deepseek_adapter):
        assert "api.deepseek.com" in str(deepseek_adapter.client.base_url)
        assert deepseek_adapter.name == "deepseek-chat"
        assert deepseek_adapter.max_tokens == 32768

    def test_estimate_tokens(self, deepseek_adapter):
        assert deepseek_adapter.estimate_tokens("hello world") == 3
        assert deepseek_adapter.estimate_tokens("你好世界") == 2

    def test_validate_math_expression(self, deepseek_adapter):
        validation = deepseek_adapter.validate("Solve $x + 2 = 5$ for x")

        assert validation.is_valid
        assert "MATH_EXPRESSION" in [w.code for w in validation.warnings]

    def test_validate_short_reasoning_task(self, deepseek_adapter):
        validation = deepseek_adapter.validate("分析一下为什么天空是蓝色的")
        assert "INSUFFICIENT_CONTEXT" in [w.code for w in validation.warnings]

    def test_format_for_model(self, deepseek_adapter):
        formatted = deepseek_adapter.format_for_model(
            PromptStructure(user_prompt="Write code to parse CSV", system_prompt="Be precise")
        )

        assert formatted.startswith("# 系统指令\nBe precise\n\n# 任务\nWrite code to parse CSV")
        assert formatted.endswith("请使用适当的代码块格式输出结果。")

    def test_suggestions(self, deepseek_adapter):
        suggestion_ids = [s.id for s in deepseek_adapter.get_suggestions("Write code to do math homework")]

        assert "use-code-blocks" in suggestion_ids
        assert "use-math-notation" in suggestion_ids
        assert "polite-language" in suggestion_ids

    @pytest.mark.asyncio
    async def test_rules_for_mixed_language_code_prompt(self, deepseek_adapter):
        request = OptimizationRequest(prompt="请用Python写一个排序代码", target_model="deepseek-chat")

        result = await deepseek_adapter.optimize(request)

        assert "deepseek-code-optimization" in result.applied_rules
        assert "deepseek-bilingual" in result.applied_rules
        assert "请使用代码块格式输出代码。" in result.optimized_prompt

    @pytest.mark.asyncio
    async def test_optimize_with_rewrite(self):
        adapter = DeepSeekAdapter(api_key="test-key")
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content="优化后的提示词"))]

        with patch.object(
            adapter.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.return_value = response

            result = await adapter.optimize(OptimizationRequest(prompt="解释量子计算", target_model="deepseek-chat"))

            assert result.optimized_prompt == "优化后的提示词"
            assert mock_create.call_args[1]["model"] == "deepseek-chat"

    @pytest.mark.asyncio
    async def test_optimize_failure_returns_input(self):
        adapter = DeepSeekAdapter(api_key="test-key")

        with patch.object(
            adapter.client.chat.completions, "create", new_callable=AsyncMock
        ) as mock_create:
            mock_create.side_effect = Exception("Service unavailable")

            result = await adapter.optimize(OptimizationRequest(prompt="解释量子计算", target_model="deepseek-chat"))

            assert result.fell_back
            assert result.optimized_prompt == "解释量子计算"
