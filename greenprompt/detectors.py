"""
Heuristic issue detectors.

Each detector is a pure function ``(text, metrics, params, rules, task)``
returning a Finding or None. The task is detected once per prompt by the
caller. DETECTORS fixes the evaluation order, which is also the order issues
appear in the report. Every detector runs on every prompt.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from greenprompt.models import AnalysisParameters, Issue, TextMetrics
from greenprompt.rules import CompiledRules

logger = logging.getLogger(__name__)

GENERAL_TASK = "general"
DETERMINISTIC_TASKS = frozenset({"summarize", "extract", "translate", "code"})
FORMAT_TASKS = frozenset({"summarize", "write"})
HIGH_TEMPERATURE = 0.7

WEAK_VERBS = ("improve", "optimize", "enhance", "refine", "fix", "make better", "help", "elaborate")
WEAK_ADVERBS = ("really", "very", "extremely", "significantly", "highly")

_WEAK_WORD_RES = tuple(
    (word, re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE))
    for word in WEAK_VERBS + WEAK_ADVERBS
)
_FORMAT_RE = re.compile(r"\b(json|csv|table|bullets?|outline|headings?)\b", re.IGNORECASE)
_FORCED_LENGTH_RES = (
    re.compile(r"\b\d{2,4}\s*-\s*words?\b", re.IGNORECASE),
    re.compile(r"\b\d{2,4}\s*words\b", re.IGNORECASE),
)


@dataclass(frozen=True)
class Finding:
    issue: Issue
    tips: tuple[str, ...] = ()


Detector = Callable[[str, TextMetrics, AnalysisParameters, CompiledRules, str], Optional[Finding]]


# ── Shared signals ─────────────────────────────────────────────


def detect_task(text: str, rules: CompiledRules) -> str:
    """Name of the first task pattern that matches, or 'general'."""
    for task, pattern in rules.task_patterns:
        if pattern.search(text or ""):
            return task
    return GENERAL_TASK


def has_format_instruction(text: str) -> bool:
    return bool(_FORMAT_RE.search(text or ""))


def has_forced_length(text: str) -> bool:
    return any(rx.search(text or "") for rx in _FORCED_LENGTH_RES)


def weak_word_hits(text: str) -> list[str]:
    """Weak verbs and adverbs present as whole words."""
    return [word for word, rx in _WEAK_WORD_RES if rx.search(text or "")]


def vagueness_hits(text: str, rules: CompiledRules) -> set[str]:
    """Distinct vague expressions: weak words plus vague-phrase matches."""
    hits = set(weak_word_hits(text))
    for rx in rules.vague_patterns:
        hits.update(m.group(0).lower() for m in rx.finditer(text or ""))
    return hits


def high_temperature_for_task(params: AnalysisParameters, task: str) -> bool:
    temp = params.temperature
    return temp is not None and temp > HIGH_TEMPERATURE and task in DETERMINISTIC_TASKS


def _fmt(value: float) -> str:
    return f"{value:g}"


# ── Detectors (declaration order is report order) ──────────────


def prompt_too_long(text, metrics, params, rules, task) -> Optional[Finding]:
    limit = rules.thresholds.max_words_prompt
    if metrics.word_count <= limit:
        return None
    return Finding(
        Issue(
            id="PROMPT_TOO_LONG",
            severity="med",
            message=f"Prompt has {metrics.word_count} words; target ≤ {_fmt(limit)}.",
        ),
        ("Trim background and keep only necessary facts.",),
    )


def too_many_sentences(text, metrics, params, rules, task) -> Optional[Finding]:
    limit = rules.thresholds.max_sentences_prompt
    if metrics.sentence_count <= limit:
        return None
    return Finding(
        Issue(
            id="TOO_MANY_SENTENCES",
            severity="low",
            message=f"Contains {metrics.sentence_count} sentences; try ≤ {_fmt(limit)}.",
        )
    )


def vague_language(text, metrics, params, rules, task) -> Optional[Finding]:
    phrase_hit = any(rx.search(text) for rx in rules.vague_patterns)
    weak_hits = len(weak_word_hits(text))
    if not (phrase_hit or weak_hits >= 2):
        return None
    severity = "high" if len(vagueness_hits(text, rules)) >= 3 else "med"
    return Finding(
        Issue(
            id="VAGUE_LANGUAGE",
            severity=severity,
            message="Vague verbs/adverbs are likely to trigger retries.",
        ),
        ("Specify audience, exact format, and success criteria.",),
    )


def forced_verbosity(text, metrics, params, rules, task) -> Optional[Finding]:
    if not (any(rx.search(text) for rx in rules.verbose_patterns) or has_forced_length(text)):
        return None
    return Finding(
        Issue(
            id="FORCED_VERBOSITY",
            severity="high",
            message="Avoid word counts and 'in great detail'; bound the output by structure instead.",
        ),
        ("Ask for an outline, 3 bullets, or JSON keys instead of word counts.",),
    )


def readability(text, metrics, params, rules, task) -> Optional[Finding]:
    if metrics.word_count < 40:
        return None
    if metrics.readability_score >= 40 and metrics.long_word_ratio <= 0.12:
        return None
    return Finding(
        Issue(
            id="READABILITY",
            severity="low",
            message="Complex phrasing; simpler sentences improve accuracy and reduce retries.",
        )
    )


def missing_schema(text, metrics, params, rules, task) -> Optional[Finding]:
    if task != "extract" or has_format_instruction(text):
        return None
    return Finding(
        Issue(
            id="MISSING_SCHEMA",
            severity="med",
            message="Extraction without a format; specify JSON/CSV/table and the required keys.",
        )
    )


def no_max_tokens(text, metrics, params, rules, task) -> Optional[Finding]:
    if params.output_cap is not None:
        return None
    return Finding(
        Issue(
            id="NO_MAX_TOKENS",
            severity="high",
            message="No output cap set; responses may be longer than needed.",
        ),
        ("Define an output length limit (e.g. max_tokens).",),
    )


def missing_format(text, metrics, params, rules, task) -> Optional[Finding]:
    if has_format_instruction(text) or task not in FORMAT_TASKS:
        return None
    return Finding(
        Issue(
            id="MISSING_FORMAT",
            severity="med",
            message="No format guidance is provided. Ask for bullets, an outline, or a short paragraph limit.",
        )
    )


def redundancy(text, metrics, params, rules, task) -> Optional[Finding]:
    if metrics.repeated_bigram_count < 1:
        return None
    return Finding(
        Issue(
            id="REDUNDANCY",
            severity="low",
            message="Repeated phrases detected. Tighten wording to reduce processing.",
        )
    )


def high_temp_deterministic(text, metrics, params, rules, task) -> Optional[Finding]:
    if not high_temperature_for_task(params, task):
        return None
    return Finding(
        Issue(
            id="HIGH_TEMP_DETERMINISTIC",
            severity="med",
            message=f"Temperature {_fmt(params.temperature)} is high for {task}; try ≤ 0.3.",
        )
    )


DETECTORS: tuple[Detector, ...] = (
    prompt_too_long,
    too_many_sentences,
    vague_language,
    forced_verbosity,
    readability,
    missing_schema,
    no_max_tokens,
    missing_format,
    redundancy,
    high_temp_deterministic,
)


def run_detectors(
    text: str,
    metrics: TextMetrics,
    params: AnalysisParameters,
    rules: CompiledRules,
    task: str,
    detectors: tuple[Detector, ...] = DETECTORS,
) -> tuple[list[Issue], list[str]]:
    """Apply every detector in order and collect issues and tips."""
    issues: list[Issue] = []
    tips: list[str] = []
    for detector in detectors:
        finding = detector(text, metrics, params, rules, task)
        if finding is None:
            continue
        logger.debug("Detector %s -> %s", detector.__name__, finding.issue.id)
        issues.append(finding.issue)
        tips.extend(finding.tips)
    return issues, tips
