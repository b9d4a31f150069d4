"""
Rule configuration for the prompt analyzer.

The rule document (rules.json) carries thresholds, phrase patterns, task
keyword patterns and impact coefficients. It is read once at startup and
merged over the built-in defaults field by field, so a partial or broken
document never loses the defaults for the fields it omits or gets wrong.
"""

from __future__ import annotations

import json
import logging
import math
import os
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

logger = logging.getLogger(__name__)

DEFAULT_VAGUE_PHRASES = (
    r"\b(improve|make (it|this) better|refine|polish|any ideas|your thoughts|enhance)\b",
)
DEFAULT_VERBOSE_PHRASES = (
    r"\b(in great detail)\b",
    r"\b(elaborate on)\b",
    r"\b(\d+-word)\b",
)
# Declared order decides ties: the first matching task wins.
DEFAULT_TASK_KEYWORDS = (
    ("summarize", r"\b(summarize|tl;dr|shorten|brief)\b"),
    ("extract", r"\b(extract|pull|list|find fields|json|csv|table)\b"),
    ("write", r"\b(write|compose|draft|create|essay)\b"),
    ("code", r"\b(code|function|class|regex|sql|python|javascript)\b"),
    ("translate", r"\b(translate|into|from)\b"),
)


class Thresholds(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_words_prompt: float = Field(default=150, alias="maxWordsPrompt")
    max_sentences_prompt: float = Field(default=10, alias="maxSentencesPrompt")
    long_word_len: float = Field(default=14, alias="longWordLen")
    default_max_tokens: float = Field(default=300, alias="defaultMaxTokens")


class ImpactCoefficients(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kwh_per_1k_tokens_mid: float = Field(default=0.02, ge=0, alias="kWh_per_1k_tokens_mid")
    grid_kg_co2_per_kwh: float = Field(default=0.35, ge=0, alias="grid_kgCO2_per_kWh")
    water_l_per_kwh: float = Field(default=1.0, ge=0, alias="water_L_per_kWh")


@dataclass(frozen=True)
class CompiledRules:
    """RuleConfig with every pattern compiled (case-insensitive)."""
    thresholds: Thresholds
    impact: ImpactCoefficients
    vague_patterns: tuple[re.Pattern, ...]
    verbose_patterns: tuple[re.Pattern, ...]
    task_patterns: tuple[tuple[str, re.Pattern], ...]


class RuleConfig(BaseModel):
    """Process-wide, read-only analyzer rules."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    thresholds: Thresholds = Field(default_factory=Thresholds)
    vague_phrases: tuple[str, ...] = Field(default=DEFAULT_VAGUE_PHRASES, alias="vaguePhrases")
    verbose_phrases: tuple[str, ...] = Field(default=DEFAULT_VERBOSE_PHRASES, alias="verbosePhrases")
    task_keywords: tuple[tuple[str, str], ...] = Field(
        default=DEFAULT_TASK_KEYWORDS, alias="taskKeywords"
    )
    impact: ImpactCoefficients = Field(default_factory=ImpactCoefficients)

    @field_serializer("task_keywords")
    def _tasks_as_mapping(self, value: tuple[tuple[str, str], ...]) -> dict[str, str]:
        return dict(value)

    def compile(self) -> CompiledRules:
        return CompiledRules(
            thresholds=self.thresholds,
            impact=self.impact,
            vague_patterns=tuple(re.compile(p, re.IGNORECASE) for p in self.vague_phrases),
            verbose_patterns=tuple(re.compile(p, re.IGNORECASE) for p in self.verbose_phrases),
            task_patterns=tuple(
                (task, re.compile(p, re.IGNORECASE)) for task, p in self.task_keywords
            ),
        )


# ── Merge helpers ──────────────────────────────────────────────


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _compiles(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True


def _merge_numbers(section: str, model: type[BaseModel], raw: Any) -> dict[str, Any]:
    """Take each numeric key from raw, keep the default for anything else."""
    merged: dict[str, Any] = {}
    if raw is None:
        return merged
    if not isinstance(raw, Mapping):
        logger.warning("Rules: '%s' is not an object, using defaults", section)
        return merged
    for name, field in model.model_fields.items():
        key = field.alias or name
        if key not in raw:
            continue
        value = raw[key]
        if not _is_number(value) or value < 0:
            logger.warning("Rules: %s.%s=%r is not a valid number, using default", section, key, value)
            continue
        merged[name] = value
    return merged


def _pattern_list(key: str, raw: Any) -> Optional[tuple[str, ...]]:
    if raw is None:
        return None
    if not isinstance(raw, list) or not all(isinstance(p, str) for p in raw):
        logger.warning("Rules: '%s' must be a list of strings, using defaults", key)
        return None
    bad = [p for p in raw if not _compiles(p)]
    if bad:
        logger.warning("Rules: '%s' has invalid patterns %r, using defaults", key, bad)
        return None
    return tuple(raw)


def _task_map(raw: Any) -> Optional[tuple[tuple[str, str], ...]]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
    ):
        logger.warning("Rules: 'taskKeywords' must map task names to patterns, using defaults")
        return None
    bad = [k for k, v in raw.items() if not _compiles(v)]
    if bad:
        logger.warning("Rules: 'taskKeywords' has invalid patterns for %r, using defaults", bad)
        return None
    return tuple(raw.items())


def rules_from_mapping(data: Any) -> RuleConfig:
    """Merge a parsed rules document over the built-in defaults."""
    if not isinstance(data, Mapping):
        if data is not None:
            logger.warning("Rules document is not an object, using defaults")
        return RuleConfig()

    fields: dict[str, Any] = {
        "thresholds": Thresholds(**_merge_numbers("thresholds", Thresholds, data.get("thresholds"))),
        "impact": ImpactCoefficients(**_merge_numbers("impact", ImpactCoefficients, data.get("impact"))),
    }
    vague = _pattern_list("vaguePhrases", data.get("vaguePhrases"))
    if vague is not None:
        fields["vague_phrases"] = vague
    verbose = _pattern_list("verbosePhrases", data.get("verbosePhrases"))
    if verbose is not None:
        fields["verbose_phrases"] = verbose
    tasks = _task_map(data.get("taskKeywords"))
    if tasks is not None:
        fields["task_keywords"] = tasks

    return RuleConfig(**fields)


def load_rules(path: Optional[str]) -> RuleConfig:
    """
    Load the rules document from disk.

    A missing file or invalid JSON yields the full defaults; this never raises.
    """
    if not path:
        return RuleConfig()
    if not os.path.exists(path):
        logger.warning("Rules file not found at %s, using defaults", path)
        return RuleConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read rules file %s: %s, using defaults", path, e)
        return RuleConfig()

    rules = rules_from_mapping(data)
    logger.info(
        "Loaded rules from %s (%d vague, %d verbose, %d task patterns)",
        path,
        len(rules.vague_phrases),
        len(rules.verbose_phrases),
        len(rules.task_keywords),
    )
    return rules
