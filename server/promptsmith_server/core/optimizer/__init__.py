"""Prompt optimization engine.

Turns a prompt into a version tailored to a target model: the prompt is
analyzed, prioritized conditional rules and provider best practices are
applied, and the model adapter gets a final pass (optionally a remote
rewrite). The result carries every applied improvement, suggestions, token
and cost estimates and a confidence score.

Example usage:
    from promptsmith_server.core.llm import ModelRegistry, OpenAIAdapter
    from promptsmith_server.core.optimizer import OptimizationEngine, OptimizationRequest

    registry = ModelRegistry([OpenAIAdapter(api_key="YOUR_API_KEY")])
    engine = OptimizationEngine(registry)

    request = OptimizationRequest(
        prompt="写一个好的文章",
        target_model="openai-gpt4",
    )
    result = await engine.optimize(request)

    print(result.optimized_prompt)
    print(result.applied_rules, result.confidence)
"""

from .analyzer import PromptAnalyzer
from .best_practices import BestPracticesTransformer
from .engine import OptimizationEngine, OptimizationStage
from .rule_source import DEFAULT_RULES, InMemoryRuleSource, RuleSource, rule_from_record
from .rules_engine import RulesEngine
from .suggestions import SuggestionGenerator
from .types import (
    Improvement,
    OptimizationRequest,
    OptimizationResult,
    OptimizationRule,
    PromptAnalysis,
    Suggestion,
    TokenEstimate,
)

__all__ = [
    # Main engine
    "OptimizationEngine",
    "OptimizationStage",
    # Pipeline components
    "PromptAnalyzer",
    "RulesEngine",
    "BestPracticesTransformer",
    "SuggestionGenerator",
    # Rules
    "RuleSource",
    "InMemoryRuleSource",
    "DEFAULT_RULES",
    "rule_from_record",
    # Types
    "Improvement",
    "OptimizationRequest",
    "OptimizationResult",
    "OptimizationRule",
    "PromptAnalysis",
    "Suggestion",
    "TokenEstimate",
]
