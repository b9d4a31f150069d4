"""
Core Prompt Analyzer.

Takes a prompt and optional generation parameters, runs the rule-based
detectors over it, and returns a structured report: score, grade, retry
risk, issues, tips, autofixes, impact estimate and a suggested rewrite.
"""

import logging
from typing import Any, Mapping, Optional, Union

from greenprompt.detectors import (
    DETECTORS,
    Detector,
    detect_task,
    has_format_instruction,
    high_temperature_for_task,
    run_detectors,
)
from greenprompt.models import (
    AnalysisParameters,
    AnalysisReport,
    Autofix,
    EchoedParameters,
    ReportMetrics,
)
from greenprompt.rules import RuleConfig
from greenprompt.scoring import estimate_impact, grade_for, retry_risk, score_issues
from greenprompt.text_metrics import compute_metrics

logger = logging.getLogger(__name__)

SUGGESTED_PROMPTS = {
    "summarize": "Summarize the text into 3 bullets for a 10-year-old, ≤120 words total.",
    "extract": "Extract JSON with keys: title, date, author, topic. Keep one object only.",
    "translate": "Translate into Spanish, neutral tone, ≤120 words. Keep names unchanged.",
    "code": "Write a Python function with a docstring and one example. ≤40 lines.",
}
DEFAULT_SUGGESTED_PROMPT = "Answer in 3 concise bullets (≤120 words total)."

SUGGESTED_MAX_TOKENS = 200
SUGGESTED_TEMPERATURE = 0.3
FORMAT_HINT = "Ask for 3 bullets, or JSON {key:...} with 4 fields."


def suggested_prompt(task: str) -> str:
    """Canned rewrite template for the detected task."""
    return SUGGESTED_PROMPTS.get(task, DEFAULT_SUGGESTED_PROMPT)


def suggest_autofixes(text: str, params: AnalysisParameters, task: str) -> list[Autofix]:
    autofixes = []
    if params.output_cap is None:
        autofixes.append(Autofix(id="SET_MAX_TOKENS", payload={"max_tokens": SUGGESTED_MAX_TOKENS}))
    if high_temperature_for_task(params, task):
        autofixes.append(Autofix(id="LOWER_TEMP", payload={"temperature": SUGGESTED_TEMPERATURE}))
    # Broader than MISSING_FORMAT: applies to every task
    if not has_format_instruction(text):
        autofixes.append(Autofix(id="ADD_FORMAT_HINT", payload={"hint": FORMAT_HINT}))
    return autofixes


class PromptAnalyzer:
    """
    Rule-based prompt sustainability analyzer.

    Usage:
        analyzer = PromptAnalyzer(load_rules(RULES_PATH))
        report = analyzer.analyze("Summarize this article", {"max_tokens": 200})

    The analyzer holds only read-only compiled rules, so one instance can be
    shared by any number of concurrent callers.
    """

    def __init__(
        self,
        rules: Optional[RuleConfig] = None,
        detectors: tuple[Detector, ...] = DETECTORS,
    ):
        self.rules = rules if rules is not None else RuleConfig()
        self.compiled = self.rules.compile()
        self.detectors = detectors

    def analyze(
        self,
        prompt: Optional[str],
        parameters: Union[AnalysisParameters, Mapping[str, Any], None] = None,
    ) -> AnalysisReport:
        """
        Analyze a prompt and return the report.

        Args:
            prompt: The prompt to analyze. None is treated as an empty prompt.
            parameters: Optional max_output_tokens / temperature, either as an
                AnalysisParameters or a plain mapping (unknown keys ignored).

        Returns:
            AnalysisReport
        """
        text = prompt if isinstance(prompt, str) else ""
        params = self._coerce_parameters(parameters)

        metrics = compute_metrics(text, self.compiled.thresholds.long_word_len)
        task = detect_task(text, self.compiled)
        logger.debug(
            "Metrics: lang=%s words=%d sentences=%d tokens=%d fre=%.1f repeats=%d task=%s",
            metrics.language,
            metrics.word_count,
            metrics.sentence_count,
            metrics.token_estimate,
            metrics.readability_score,
            metrics.repeated_bigram_count,
            task,
        )

        issues, tips = run_detectors(text, metrics, params, self.compiled, task, self.detectors)
        score = score_issues(issues)
        impact = estimate_impact(metrics.token_estimate, params, self.compiled)
        logger.debug(
            "Impact: kWh=%.4f co2e_kg=%.4f water_L=%.4f",
            impact.energy_kwh,
            impact.co2e_kg,
            impact.water_liters,
        )

        report = AnalysisReport(
            score=score,
            grade=grade_for(score),
            retry_risk=retry_risk(issues),
            metrics=ReportMetrics(
                input=metrics,
                params=EchoedParameters(
                    max_tokens=params.output_cap,
                    temperature=params.temperature,
                    task=task,
                ),
            ),
            issues=issues,
            tips=tips,
            autofixes=suggest_autofixes(text, params, task),
            impact_estimate=impact,
            suggested_prompt=suggested_prompt(task),
        )
        logger.info(
            "Analyzed prompt (length=%d): score=%d grade=%s issues=%d",
            len(text),
            report.score,
            report.grade,
            len(report.issues),
        )
        return report

    @staticmethod
    def _coerce_parameters(
        parameters: Union[AnalysisParameters, Mapping[str, Any], None]
    ) -> AnalysisParameters:
        if isinstance(parameters, AnalysisParameters):
            return parameters
        if isinstance(parameters, Mapping):
            return AnalysisParameters.model_validate(dict(parameters))
        return AnalysisParameters()
