"""Score, grade, retry risk and impact estimate."""

from __future__ import annotations

from typing import Iterable

from greenprompt.models import AnalysisParameters, ImpactEstimate, Issue
from greenprompt.rules import CompiledRules

SEVERITY_WEIGHTS = {"high": 22, "med": 11, "low": 5}
MAX_PENALTY = 70

# Retry risk is scored independently of the issue penalty.
RETRY_WEIGHTS = {
    "VAGUE_LANGUAGE": 0.35,
    "NO_MAX_TOKENS": 0.35,
    "MISSING_FORMAT": 0.15,
    "HIGH_TEMP_DETERMINISTIC": 0.15,
}


def score_issues(issues: Iterable[Issue]) -> int:
    penalty = sum(SEVERITY_WEIGHTS.get(issue.severity, 0) for issue in issues)
    return max(0, 100 - min(MAX_PENALTY, penalty))


def grade_for(score: int) -> str:
    if score >= 90:
        return "A"
    if score >= 75:
        return "B"
    if score >= 60:
        return "C"
    return "D"


def retry_risk(issues: Iterable[Issue]) -> float:
    present = {issue.id for issue in issues}
    risk = sum(weight for issue_id, weight in RETRY_WEIGHTS.items() if issue_id in present)
    return min(1.0, max(0.0, round(risk, 2)))


def estimate_impact(
    input_tokens: int, params: AnalysisParameters, rules: CompiledRules
) -> ImpactEstimate:
    """
    Linear energy model over input tokens plus the output cap.

    Uses the caller's cap when supplied, otherwise the configured default.
    """
    output_cap = params.output_cap
    if output_cap is None:
        output_cap = rules.thresholds.default_max_tokens
    total_tokens = input_tokens + output_cap

    kwh = (total_tokens / 1000) * rules.impact.kwh_per_1k_tokens_mid
    co2e = kwh * rules.impact.grid_kg_co2_per_kwh
    water = kwh * rules.impact.water_l_per_kwh
    return ImpactEstimate(
        energy_kwh=round(kwh, 4),
        co2e_kg=round(co2e, 4),
        water_liters=round(water, 4),
    )
