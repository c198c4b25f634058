"""
Demo script for the prompt optimization engine.

Optimizes a couple of prompts for every configured model. Providers are
enabled by their API keys; without any key the demo registers the OpenAI
adapter in rule-only mode so it still runs offline.

Usage:
    export OPENAI_API_KEY="sk-..."          # optional
    export ANTHROPIC_API_KEY="sk-ant-..."   # optional
    export DEEPSEEK_API_KEY="sk-..."        # optional

    python server/examples/optimizer_demo.py
"""

import asyncio
import logging

from promptsmith_server.config import get_settings
from promptsmith_server.core.exceptions import ValidationError
from promptsmith_server.core.llm import ModelRegistry, OpenAIAdapter
from promptsmith_server.core.optimizer import OptimizationEngine, OptimizationRequest

PROMPTS = [
    "写一个好的文章",
    "Write some good content about our new product launch for the sales team",
]


async def main():
    """Run optimization demo."""
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    engine = OptimizationEngine.from_settings(settings)
    if not engine.registry.supported_models():
        print("No API keys configured, using the OpenAI adapter without remote rewriting")
        engine.registry.register(OpenAIAdapter(api_key="unused", remote_rewrite_enabled=False))

    for model in engine.registry.supported_models():
        for prompt in PROMPTS:
            request = OptimizationRequest(
                prompt=prompt,
                target_model=model.id,
                optimization_level="advanced",
            )

            try:
                result = await engine.optimize(request)
            except ValidationError as e:
                print(f"Rejected: {e}")
                continue

            print("=" * 60)
            print(f"Model: {model.name} ({result.model_used})")
            print(f"Original: {result.original_prompt}")
            print(f"Optimized:\n{result.optimized_prompt}")
            print(f"Applied rules: {', '.join(result.applied_rules)}")
            print(f"Confidence: {result.confidence:.2f}{' (degraded)' if result.degraded else ''}")

            tokens = result.estimated_tokens
            print(f"Tokens: {tokens.original} -> {tokens.optimized}")
            if tokens.cost:
                print(f"Cost: {tokens.cost.original:.6f} -> {tokens.cost.optimized:.6f} {tokens.cost.currency}")

            for suggestion in result.suggestions:
                print(f"  [{suggestion.priority}] {suggestion.title}: {suggestion.description}")


if __name__ == "__main__":
    asyncio.run(main())
