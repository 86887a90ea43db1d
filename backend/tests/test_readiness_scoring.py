"""Tests for baseline estimation, prompt construction and LLM reply parsing."""

import json
from datetime import date, timedelta

import pytest

from app.schemas.readiness import (
    ActivityLoadSample,
    AthleteProfileSnapshot,
    DailyMetricSample,
    Malformed,
    Ok,
    ReadinessContext,
    RiskLevel,
    WeatherBundle,
    WeatherSnapshot,
)
from app.services.readiness_scoring import (
    FALLBACK_ASSESSMENT,
    build_readiness_prompt,
    compute_baseline,
    parse_readiness_response,
    score_readiness,
)

from fakes import FakeInference, assessment_json, utc

TODAY = date(2024, 6, 1)


def _metrics(hrvs, athlete="A1", source="garmin"):
    return [
        DailyMetricSample(athlete_id=athlete, date=TODAY - timedelta(days=i), hrv=h, resting_hr=52, sleep_seconds=27000, source=source)
        for i, h in enumerate(hrvs)
    ]


def _context(metrics=None, activities=None, profile=None, weather=None):
    return ReadinessContext(
        athlete_id="A1",
        target_date=TODAY,
        metrics=metrics or [],
        activities=activities or [],
        profile=profile,
        weather=weather or WeatherBundle(),
    )


def test_baseline_empty_inputs_are_zero():
    baseline = compute_baseline(_context())
    assert baseline.today is None
    assert baseline.baseline_hrv == 0
    assert baseline.accumulated_strain == 0
    assert baseline.hrv_drop_pct is None


def test_baseline_excludes_today_and_averages_window():
    baseline = compute_baseline(_context(metrics=_metrics([30, 40, 50, 60])))
    assert baseline.today.hrv == 30
    assert baseline.baseline_hrv == 50


def test_baseline_counts_missing_hrv_as_zero():
    """Gaps pull the baseline down instead of being skipped."""
    baseline = compute_baseline(_context(metrics=_metrics([40, 60, None, 60, None])))
    assert baseline.baseline_hrv == 30


def test_baseline_single_sample_has_empty_window():
    baseline = compute_baseline(_context(metrics=_metrics([55])))
    assert baseline.today.hrv == 55
    assert baseline.baseline_hrv == 0
    assert baseline.hrv_drop_pct is None


def test_accumulated_strain_sums_all_activities():
    activities = [
        ActivityLoadSample(activity_id=str(i), athlete_id="A1", start=utc(2024, 5, 28 + i), strain=s)
        for i, s in enumerate([40.0, 0.0, 85.5])
    ]
    assert compute_baseline(_context(activities=activities)).accumulated_strain == 125.5


def test_prompt_contains_hrv_drop_against_baseline():
    """Today 30 ms against a 47 ms baseline is a 36% drop and must be in the prompt."""
    metrics = _metrics([30] + [45, 50, 48, 46, 47, 49, 44, 47, 48, 46, 47, 46, 48])
    context = _context(metrics=metrics)
    baseline = compute_baseline(context)
    assert baseline.baseline_hrv == pytest.approx(47.0)
    assert baseline.hrv_drop_pct == pytest.approx(36.17, abs=0.01)
    prompt = build_readiness_prompt(context, baseline)
    assert "HRV: 30 ms (Baseline ~47 ms, -36% vs baseline)" in prompt
    assert "(>10%)" in prompt


def test_prompt_lists_load_profile_and_sleep():
    activities = [
        ActivityLoadSample(activity_id="1", athlete_id="A1", start=utc(2024, 5, 30), name="Tempo", strain=60),
        ActivityLoadSample(activity_id="2", athlete_id="A1", start=utc(2024, 5, 31), name="Long Run", strain=90),
    ]
    profile = AthleteProfileSnapshot(athlete_id="A1", display_name="Ada", max_heart_rate=190)
    context = _context(metrics=_metrics([50, 50]), activities=activities, profile=profile)
    prompt = build_readiness_prompt(context, compute_baseline(context))
    assert "Athlete: Ada" in prompt
    assert "Max HR: 190 bpm" in prompt
    assert "Sleep: 7.5h" in prompt
    assert "Source: garmin" in prompt
    assert "Total Activities: 2" in prompt
    assert "Total Strain (Suffer Score): 150" in prompt
    assert "Tempo, Long Run" in prompt
    assert '"riskLevel"' in prompt


def test_prompt_without_data_uses_placeholders_and_omits_weather():
    context = _context()
    prompt = build_readiness_prompt(context, compute_baseline(context))
    assert "Athlete: Runner" in prompt
    assert "HRV: N/A" in prompt
    assert "Resting HR: N/A" in prompt
    assert "Source: Unknown" in prompt
    assert "WEATHER" not in prompt


def test_prompt_includes_weather_when_present():
    weather = WeatherBundle(
        current=WeatherSnapshot(condition="Rain", temperature_c=8.4, wind_speed_kmh=22),
        last_run=WeatherSnapshot(condition="Clear sky", temperature_c=15),
    )
    context = _context(weather=weather)
    prompt = build_readiness_prompt(context, compute_baseline(context))
    assert "Now: Rain, 8°C, wind 22 km/h" in prompt
    assert "During last run: Clear sky, 15°C" in prompt


def test_parse_plain_json():
    result = parse_readiness_response(assessment_json(72, "moderate"))
    assert isinstance(result, Ok)
    assert result.assessment.score == 72
    assert result.assessment.risk_level == RiskLevel.MODERATE


def test_parse_extracts_json_from_prose_and_fences():
    text = "Sure! Here is the analysis:\n```json\n" + assessment_json(35, "HIGH") + "\n```\nStay safe."
    result = parse_readiness_response(text)
    assert isinstance(result, Ok)
    assert result.assessment.risk_level == RiskLevel.HIGH


@pytest.mark.parametrize("raw,expected", [(150, 100), (-5, 0), (63.6, 64), ("81", 81)])
def test_parse_clamps_score(raw, expected):
    text = json.dumps({"score": raw, "riskLevel": "low", "summary": "s", "recommendation": "r"})
    result = parse_readiness_response(text)
    assert isinstance(result, Ok)
    assert result.assessment.score == expected


@pytest.mark.parametrize("text", [
    None,
    "",
    "I cannot help with that.",
    "{not json}",
    '{"score": 70, "riskLevel": "extreme", "summary": "s", "recommendation": "r"}',
    '{"score": "high", "riskLevel": "low", "summary": "s", "recommendation": "r"}',
    '{"riskLevel": "low", "summary": "s", "recommendation": "r"}',
    '{"score": null, "riskLevel": "low", "summary": "s", "recommendation": "r"}',
])
def test_parse_malformed(text):
    result = parse_readiness_response(text)
    assert isinstance(result, Malformed)
    assert result.raw_text == (text or "")


@pytest.mark.asyncio
async def test_score_readiness_returns_parsed_assessment():
    inference = FakeInference(assessment_json(88, "low"))
    assessment = await score_readiness(inference, _context(metrics=_metrics([60, 55])))
    assert assessment.score == 88
    assert len(inference.prompts) == 1


@pytest.mark.asyncio
async def test_score_readiness_falls_back_when_not_configured():
    assessment = await score_readiness(FakeInference(), _context())
    assert assessment == FALLBACK_ASSESSMENT
    assert assessment.model_dump(by_alias=True) == {
        "score": 50,
        "riskLevel": "moderate",
        "summary": "AI Analysis unavailable. Listen to your body.",
        "recommendation": "Run by feel today.",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [TimeoutError(), RuntimeError("503 Service Unavailable"), "no json here"])
async def test_score_readiness_falls_back_on_failures(reply):
    assessment = await score_readiness(FakeInference(reply), _context())
    assert assessment == FALLBACK_ASSESSMENT


def test_parse_ignores_braces_in_trailing_prose():
    text = assessment_json(80, "low", "Fresh.", "Tempo.") + "\nNote: values in {ms}."
    result = parse_readiness_response(text)
    assert isinstance(result, Ok)
    assert result.assessment.score == 80


def test_parse_skips_brace_in_leading_prose():
    text = "Units {ms} below.\n" + assessment_json(66, "moderate") + "\n{end}"
    result = parse_readiness_response(text)
    assert isinstance(result, Ok)
    assert result.assessment.score == 66


@pytest.mark.asyncio
async def test_fallback_is_a_fresh_copy_per_call():
    first = await score_readiness(FakeInference(), _context())
    first.summary = "edited by caller"
    second = await score_readiness(FakeInference(), _context())
    assert second.summary == "AI Analysis unavailable. Listen to your body."
    assert FALLBACK_ASSESSMENT.summary == "AI Analysis unavailable. Listen to your body."
