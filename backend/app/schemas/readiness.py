"""Readiness pipeline value objects: context bundle, baseline, assessment, write field sets."""

import math
from dataclasses import dataclass
from datetime import date as date_type, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


ALERT_RISK_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


class DailyMetricSample(BaseModel):
    athlete_id: str
    date: date_type
    hrv: float | None = None  # ms
    resting_hr: float | None = None  # bpm
    sleep_seconds: int | None = None
    source: str | None = None


class ActivityLoadSample(BaseModel):
    activity_id: str
    athlete_id: str
    start: datetime
    name: str | None = None
    sport_type: str | None = None
    duration_sec: int | None = None
    distance_m: float | None = None
    strain: float = Field(0.0, ge=0)  # suffer score
    lat: float | None = None
    lon: float | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None


class AthleteProfileSnapshot(BaseModel):
    athlete_id: str
    display_name: str | None = None
    max_heart_rate: int | None = None
    resting_heart_rate: int | None = None
    weight_kg: float | None = None


class WeatherSnapshot(BaseModel):
    condition: str
    temperature_c: float | None = None
    wind_speed_kmh: float | None = None


class WeatherBundle(BaseModel):
    """Current conditions and conditions during the last geolocated activity."""

    current: WeatherSnapshot | None = None
    last_run: WeatherSnapshot | None = None


class ReadinessContext(BaseModel):
    athlete_id: str
    target_date: date_type
    profile: AthleteProfileSnapshot | None = None
    metrics: list[DailyMetricSample] = Field(default_factory=list)  # most recent first
    activities: list[ActivityLoadSample] = Field(default_factory=list)
    weather: WeatherBundle = Field(default_factory=WeatherBundle)


class Baseline(BaseModel):
    today: DailyMetricSample | None = None
    baseline_hrv: float = 0.0
    accumulated_strain: float = 0.0
    hrv_drop_pct: float | None = None  # positive = today's HRV is below baseline


class ReadinessAssessment(BaseModel):
    """Scorer output. Serialized with camelCase riskLevel, matching the LLM contract."""

    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel = Field(..., alias="riskLevel")
    summary: str = Field(..., max_length=2000)
    recommendation: str = Field(..., max_length=2000)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float, str)):
            raise ValueError("score must be a number")
        v = float(v.strip()) if isinstance(v, str) else float(v)
        if not math.isfinite(v):
            raise ValueError("score must be finite")
        return max(0, min(100, int(round(v))))

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("summary", "recommendation", mode="before")
    @classmethod
    def _truncate_text(cls, v):
        if isinstance(v, str):
            return v.strip()[:2000]
        return v


class ScoreFields(BaseModel):
    """Columns owned by the daily check-in."""

    score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    summary: str
    recommendation: str
    generated_at: datetime

    @classmethod
    def from_assessment(cls, assessment: ReadinessAssessment, generated_at: datetime) -> "ScoreFields":
        return cls(
            score=assessment.score,
            risk_level=assessment.risk_level,
            summary=assessment.summary,
            recommendation=assessment.recommendation,
            generated_at=generated_at,
        )


class AudioFields(BaseModel):
    """Columns owned by the audio briefing."""

    audio_url: str


class ReadinessRecord(BaseModel):
    """Stored readiness row as returned by the API."""

    id: str
    athlete_id: str
    date: date_type
    score: int | None = None
    risk_level: RiskLevel | None = None
    summary: str | None = None
    recommendation: str | None = None
    generated_at: datetime
    audio_url: str | None = None


class CheckInResponse(BaseModel):
    assessment: ReadinessAssessment
    should_alert: bool


class BriefingResponse(BaseModel):
    audio_url: str


@dataclass(frozen=True)
class Ok:
    assessment: ReadinessAssessment


@dataclass(frozen=True)
class Malformed:
    raw_text: str
    reason: str


ParseResult = Ok | Malformed
