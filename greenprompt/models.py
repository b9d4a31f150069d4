"""Pydantic models for prompt analysis data structures."""

from __future__ import annotations

import math
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

Severity = Literal["low", "med", "high"]
Grade = Literal["A", "B", "C", "D"]


def _finite_float(value: Any) -> Optional[float]:
    """float(value) for real numbers that fit a float, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


class AnalysisParameters(BaseModel):
    """Optional generation parameters supplied alongside a prompt."""
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    max_output_tokens: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("max_output_tokens", "maxOutputTokens", "max_tokens"),
    )
    temperature: Optional[float] = None

    @field_validator("max_output_tokens", mode="before")
    @classmethod
    def whole_tokens(cls, value: Any) -> Optional[int]:
        # Strings, booleans, non-finite and oversized numbers count as "not supplied"
        number = _finite_float(value)
        if number is None:
            return None
        return value if isinstance(value, int) else math.floor(number)

    @field_validator("temperature", mode="before")
    @classmethod
    def finite_temperature(cls, value: Any) -> Optional[float]:
        return _finite_float(value)

    @property
    def output_cap(self) -> Optional[int]:
        """The output-token cap if one was really supplied, else None."""
        cap = self.max_output_tokens
        if cap is None or cap <= 0:
            return None
        return cap


class TextMetrics(BaseModel):
    """Read-only snapshot of text measurements for one prompt."""
    model_config = ConfigDict(frozen=True)

    language: Literal["en", "unknown"] = "unknown"
    word_count: int = 0
    sentence_count: int = 0
    token_estimate: int = 0
    average_sentence_length: float = 0.0
    long_word_ratio: float = 0.0
    readability_score: float = 0.0
    repeated_bigram_count: int = 0

    @field_serializer("average_sentence_length")
    def _round_avg(self, value: float) -> float:
        return round(value, 2)

    @field_serializer("long_word_ratio")
    def _round_ratio(self, value: float) -> float:
        return round(value, 3)


class EchoedParameters(BaseModel):
    """Parameters as the analyzer understood them."""
    model_config = ConfigDict(frozen=True)

    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    task: str = "general"


class ReportMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: TextMetrics
    params: EchoedParameters


class Issue(BaseModel):
    """A severity-tagged heuristic finding about the prompt."""
    model_config = ConfigDict(frozen=True)

    id: str
    severity: Severity
    message: str


class Autofix(BaseModel):
    """A machine-applicable parameter suggestion."""
    model_config = ConfigDict(frozen=True)

    id: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ImpactEstimate(BaseModel):
    """Approximate energy, carbon and water cost of one request."""
    model_config = ConfigDict(frozen=True)

    energy_kwh: float = Field(ge=0)
    co2e_kg: float = Field(ge=0)
    water_liters: float = Field(ge=0)


class AnalysisReport(BaseModel):
    """Complete report returned by the PromptAnalyzer."""
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    grade: Grade
    retry_risk: float = Field(ge=0, le=1)
    metrics: ReportMetrics
    issues: list[Issue] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)
    autofixes: list[Autofix] = Field(default_factory=list)
    impact_estimate: ImpactEstimate
    suggested_prompt: str

    def has_issue(self, issue_id: str) -> bool:
        return any(issue.id == issue_id for issue in self.issues)


class AnalyzeRequest(BaseModel):
    """Request payload for prompt analysis."""
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(description="The prompt to analyze")
    params: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("params", "parameters"),
        description="Optional max_output_tokens / temperature",
    )

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value

    @field_validator("params", mode="before")
    @classmethod
    def params_default(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}
