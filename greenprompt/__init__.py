"""
GreenPrompt — rule-based prompt sustainability analysis.

Usage:
    from greenprompt import PromptAnalyzer, load_rules
    analyzer = PromptAnalyzer(load_rules("rules.json"))
    report = analyzer.analyze("Your prompt here", {"max_tokens": 200})
"""

from greenprompt.analyzer import PromptAnalyzer
from greenprompt.models import (
    AnalysisParameters,
    AnalysisReport,
    AnalyzeRequest,
    Autofix,
    ImpactEstimate,
    Issue,
    TextMetrics,
)
from greenprompt.rules import RuleConfig, load_rules, rules_from_mapping

__version__ = "0.1.0"

__all__ = [
    "PromptAnalyzer",
    "AnalysisParameters",
    "AnalysisReport",
    "AnalyzeRequest",
    "Autofix",
    "ImpactEstimate",
    "Issue",
    "TextMetrics",
    "RuleConfig",
    "load_rules",
    "rules_from_mapping",
]
