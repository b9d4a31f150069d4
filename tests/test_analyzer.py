"""End-to-end tests for PromptAnalyzer."""

import pytest

from greenprompt import AnalysisParameters, PromptAnalyzer
from greenprompt.detectors import no_max_tokens
from greenprompt.rules import rules_from_mapping


def ids(report):
    return [issue.id for issue in report.issues]


def test_essay_without_format_or_cap(analyzer):
    report = analyzer.analyze("Write an essay about automation")
    assert report.metrics.params.task == "write"
    assert ids(report) == ["NO_MAX_TOKENS", "MISSING_FORMAT"]
    assert [i.severity for i in report.issues] == ["high", "med"]
    assert report.score == 67
    assert report.grade == "C"
    assert report.retry_risk == 0.5


def test_vague_prompt_with_cap(analyzer):
    report = analyzer.analyze("improve this, make it better, any ideas?", {"max_tokens": 200})
    assert ids(report) == ["VAGUE_LANGUAGE"]
    assert report.issues[0].severity == "high"
    assert report.score == 78
    assert report.retry_risk >= 0.35


def test_extract_with_json_format(analyzer):
    report = analyzer.analyze("Extract JSON with keys: title, date")
    assert report.metrics.params.task == "extract"
    assert not report.has_issue("MISSING_SCHEMA")
    assert not report.has_issue("MISSING_FORMAT")
    assert ids(report) == ["NO_MAX_TOKENS"]


def test_clean_prompt_scores_full_marks():
    sentences = [
        " ".join(f"word{i}" for i in range(start, start + 20)) + "."
        for start in range(0, 200, 20)
    ]
    text = " ".join(sentences)
    analyzer = PromptAnalyzer(rules_from_mapping({"thresholds": {"maxWordsPrompt": 250}}))
    report = analyzer.analyze(text, {"max_tokens": 200})
    assert report.metrics.input.word_count == 200
    assert report.issues == []
    assert report.score == 100
    assert report.grade == "A"
    assert report.retry_risk == 0


def test_empty_prompt(analyzer):
    report = analyzer.analyze("")
    metrics = report.metrics.input
    assert metrics.word_count == 0
    assert metrics.sentence_count == 0
    assert metrics.token_estimate == 0
    assert ids(report) == ["NO_MAX_TOKENS"]
    assert report.metrics.params.task == "general"


def test_none_prompt_is_empty(analyzer):
    assert analyzer.analyze(None) == analyzer.analyze("")


@pytest.mark.parametrize("text", ["?!...", "   ", "日本語のプロンプト", "Résumé ça va très bien", "a" * 5000])
def test_never_raises(analyzer, text):
    report = analyzer.analyze(text, {"max_tokens": "junk", "temperature": None, "unknown": 1})
    assert 0 <= report.score <= 100


def test_deterministic(analyzer):
    text = "Summarize this report in great detail, really very thoroughly."
    params = {"temperature": 1.2}
    first = analyzer.analyze(text, params).model_dump_json()
    second = analyzer.analyze(text, params).model_dump_json()
    assert first == second


@pytest.mark.parametrize(
    "text",
    [
        "Write a 300-word essay, improve it, make it better, really very extremely highly good.",
        "Extract everything. " * 20,
        "Summarize the the the the the the the the report report report",
    ],
)
def test_score_floor_from_issues(analyzer, text):
    report = analyzer.analyze(text, {"temperature": 1.5})
    assert 30 <= report.score <= 100


def test_impact_doubles_with_cap(analyzer):
    single = analyzer.analyze("", {"max_tokens": 200}).impact_estimate
    double = analyzer.analyze("", {"max_tokens": 400}).impact_estimate
    assert double.energy_kwh == pytest.approx(2 * single.energy_kwh, abs=1.5e-4)
    assert double.co2e_kg == pytest.approx(2 * single.co2e_kg, abs=1.5e-4)
    assert double.water_liters == pytest.approx(2 * single.water_liters, abs=1.5e-4)


def test_autofixes_without_cap(analyzer):
    report = analyzer.analyze("Write an essay about automation")
    assert [a.id for a in report.autofixes] == ["SET_MAX_TOKENS", "ADD_FORMAT_HINT"]
    assert report.autofixes[0].payload == {"max_tokens": 200}
    assert "hint" in report.autofixes[1].payload


def test_autofix_lower_temperature(analyzer):
    report = analyzer.analyze("Translate this into French", {"max_tokens": 100, "temperature": 1.0})
    assert report.has_issue("HIGH_TEMP_DETERMINISTIC")
    assert [a.id for a in report.autofixes] == ["LOWER_TEMP", "ADD_FORMAT_HINT"]
    assert report.autofixes[0].payload == {"temperature": 0.3}


def test_format_hint_applies_to_every_task(analyzer):
    report = analyzer.analyze("What is the capital of France?", {"max_tokens": 50})
    assert report.issues == []
    assert [a.id for a in report.autofixes] == ["ADD_FORMAT_HINT"]


def test_no_autofixes_needed(analyzer):
    report = analyzer.analyze("List the planets as a table", {"max_tokens": 100, "temperature": 0.2})
    assert report.autofixes == []


@pytest.mark.parametrize(
    ("text", "fragment"),
    [
        ("Summarize this article", "Summarize the text"),
        ("Extract the dates", "Extract JSON"),
        ("Translate this to German", "Translate into Spanish"),
        ("Fix this python function", "Python function"),
        ("Write an essay", "3 concise bullets"),
        ("Hello there", "3 concise bullets"),
    ],
)
def test_suggested_prompt_by_task(analyzer, text, fragment):
    assert fragment in analyzer.analyze(text).suggested_prompt


def test_echoed_parameters(analyzer):
    report = analyzer.analyze("Hello", {"maxOutputTokens": 150, "temperature": 0.5})
    assert report.metrics.params.max_tokens == 150
    assert report.metrics.params.temperature == 0.5

    report = analyzer.analyze("Hello", {"max_tokens": 0})
    assert report.metrics.params.max_tokens is None


def test_accepts_parameter_model(analyzer):
    report = analyzer.analyze("Hello", AnalysisParameters(max_tokens=120))
    assert not report.has_issue("NO_MAX_TOKENS")


def test_tips_follow_issue_order(analyzer):
    report = analyzer.analyze("improve this in great detail")
    assert ids(report) == ["VAGUE_LANGUAGE", "FORCED_VERBOSITY", "NO_MAX_TOKENS"]
    assert len(report.tips) == 3
    assert report.tips[-1].startswith("Define an output length limit")


def test_custom_detector_set():
    analyzer = PromptAnalyzer(detectors=(no_max_tokens,))
    report = analyzer.analyze("improve this in great detail")
    assert ids(report) == ["NO_MAX_TOKENS"]


def test_custom_rules_thresholds():
    analyzer = PromptAnalyzer(rules_from_mapping({"thresholds": {"maxWordsPrompt": 3}}))
    report = analyzer.analyze("one two three four", {"max_tokens": 50})
    assert ids(report) == ["PROMPT_TOO_LONG"]


def test_report_serializes(analyzer):
    data = analyzer.analyze("Write an essay about automation").model_dump(mode="json")
    assert set(data) == {
        "score",
        "grade",
        "retry_risk",
        "metrics",
        "issues",
        "tips",
        "autofixes",
        "impact_estimate",
        "suggested_prompt",
    }
    assert data["metrics"]["input"]["language"] == "en"
    assert data["metrics"]["params"] == {"max_tokens": None, "temperature": None, "task": "write"}
    assert data["impact_estimate"]["energy_kwh"] == pytest.approx(0.0061)


def test_oversized_cap_counts_as_absent(analyzer):
    report = analyzer.analyze("Hello", {"max_tokens": 10**400})
    assert report.has_issue("NO_MAX_TOKENS")
    assert report.metrics.params.max_tokens is None
    assert report.impact_estimate == analyzer.analyze("Hello").impact_estimate


@pytest.mark.parametrize("temperature", [float("inf"), float("-inf"), float("nan"), 10**400])
def test_non_finite_temperature_counts_as_absent(analyzer, temperature):
    report = analyzer.analyze("Summarize this", {"temperature": temperature, "max_tokens": 100})
    assert not report.has_issue("HIGH_TEMP_DETERMINISTIC")
    assert report.metrics.params.temperature is None
    report.model_dump_json()


def test_fractional_cap_is_truncated(analyzer):
    report = analyzer.analyze("Hello", {"max_tokens": 200.5})
    assert report.metrics.params.max_tokens == 200
    assert not report.has_issue("NO_MAX_TOKENS")

    report = analyzer.analyze("Hello", {"max_tokens": 0.5})
    assert report.metrics.params.max_tokens is None
    assert report.has_issue("NO_MAX_TOKENS")
