"""Promptsmith: rule-based prompt optimization for target LLMs."""
