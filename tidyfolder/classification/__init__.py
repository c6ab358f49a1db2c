"""Classification module for file categorization."""

from .rules_engine import RulesEngine, CustomRule, RuleType
from .llm_classifier import OllamaNameClassifier
from .resolver import CategoryResolver, NameClassifier

__all__ = [
    "RulesEngine",
    "CustomRule",
    "RuleType",
    "OllamaNameClassifier",
    "CategoryResolver",
    "NameClassifier",
]
