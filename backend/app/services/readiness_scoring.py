"""
Readiness scoring: rolling baseline from the context bundle, LLM prompt, tagged
parsing of the reply. Any provider or parse failure yields FALLBACK_ASSESSMENT.
"""
from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from app.schemas.readiness import (
    Baseline,
    Malformed,
    Ok,
    ParseResult,
    ReadinessAssessment,
    ReadinessContext,
    RiskLevel,
    WeatherSnapshot,
)
from app.services.inference import InferenceProvider

logger = logging.getLogger(__name__)

MAX_TOKENS = 1000

FALLBACK_ASSESSMENT = ReadinessAssessment(
    score=50,
    risk_level=RiskLevel.MODERATE,
    summary="AI Analysis unavailable. Listen to your body.",
    recommendation="Run by feel today.",
)

_JSON_DECODER = json.JSONDecoder()


def compute_baseline(context: ReadinessContext) -> Baseline:
    """
    today = most recent sample; baseline window = the rest.
    Missing HRV counts as 0 in the mean, so gaps pull the baseline down.
    """
    today = context.metrics[0] if context.metrics else None
    window = context.metrics[1:]
    baseline_hrv = sum((m.hrv or 0) for m in window) / (len(window) or 1)
    accumulated_strain = sum((a.strain or 0) for a in context.activities)
    hrv_drop_pct = None
    if today is not None and today.hrv is not None and baseline_hrv > 0:
        hrv_drop_pct = (baseline_hrv - today.hrv) / baseline_hrv * 100
    return Baseline(
        today=today,
        baseline_hrv=baseline_hrv,
        accumulated_strain=accumulated_strain,
        hrv_drop_pct=hrv_drop_pct,
    )


def format_weather(snapshot: WeatherSnapshot) -> str:
    parts = [snapshot.condition]
    if snapshot.temperature_c is not None:
        parts.append(f"{snapshot.temperature_c:.0f}°C")
    if snapshot.wind_speed_kmh is not None:
        parts.append(f"wind {snapshot.wind_speed_kmh:.0f} km/h")
    return ", ".join(parts)


def _hrv_line(baseline: Baseline) -> str:
    today = baseline.today
    hrv = f"{today.hrv:.0f} ms" if today and today.hrv is not None else "N/A"
    line = f"- HRV: {hrv} (Baseline ~{baseline.baseline_hrv:.0f} ms"
    if baseline.hrv_drop_pct is not None:
        line += f", {-baseline.hrv_drop_pct:+.0f}% vs baseline"
    return line + ")"


def build_readiness_prompt(context: ReadinessContext, baseline: Baseline) -> str:
    today = baseline.today
    name = (context.profile.display_name if context.profile else None) or "Runner"
    rhr = f"{today.resting_hr:.0f} bpm" if today and today.resting_hr is not None else "N/A"
    sleep = f"{today.sleep_seconds / 3600:.1f}h" if today and today.sleep_seconds else "N/A"
    source = (today.source if today else None) or "Unknown"
    names = ", ".join(a.name for a in context.activities if a.name) or "none"

    lines = [
        "You are an elite endurance coach and physiologist (The Training Director).",
        "Analyze this athlete's data to determine their \"Readiness to Train\" today.",
        "",
        "CONTEXT:",
        f"- Athlete: {name}",
        "- Goals: Improve fitness, avoid injury.",
    ]
    if context.profile and context.profile.max_heart_rate:
        lines.append(f"- Max HR: {context.profile.max_heart_rate} bpm")
    lines += [
        "",
        f"RECENT DATA (Last 24h, {context.target_date.isoformat()}):",
        _hrv_line(baseline),
        f"- Resting HR: {rhr}",
        f"- Sleep: {sleep}",
        f"- Source: {source}",
        "",
        "TRAINING LOAD (Last 7 Days):",
        f"- Total Activities: {len(context.activities)}",
        f"- Total Strain (Suffer Score): {baseline.accumulated_strain:.0f}",
        f"- Recent activities: {names}",
    ]
    weather = context.weather
    if weather.current or weather.last_run:
        lines += ["", "WEATHER:"]
        if weather.current:
            lines.append(f"- Now: {format_weather(weather.current)}")
        if weather.last_run:
            lines.append(f"- During last run: {format_weather(weather.last_run)}")
    lines += [
        "",
        "INSTRUCTIONS:",
        "1. Compare today's metrics to baseline. Significant drop in HRV (>10%) or spike in RHR is a warning sign.",
        "2. Consider accumulated fatigue from recent training; heavy load should lower the score.",
        "3. Determine a Risk Level: low, moderate, high, critical.",
        "4. Provide a Score (0-100) where 100 is fully fresh, 0 needs bed rest.",
        "5. Write a concise Summary and specific Recommendation.",
        "",
        "Return ONLY one JSON object, exactly this shape:",
        '{"score": number, "riskLevel": "low"|"moderate"|"high"|"critical", "summary": "string", "recommendation": "string"}',
    ]
    return "\n".join(lines)


def _first_json_object(raw: str) -> tuple[dict | None, str]:
    """Decode the first complete JSON object in the reply; prose around it (braces included) is ignored."""
    reason = "no JSON object in response"
    start = raw.find("{")
    while start != -1:
        try:
            data, _ = _JSON_DECODER.raw_decode(raw, start)
        except json.JSONDecodeError as e:
            reason = f"invalid JSON: {e.msg}"
        else:
            if isinstance(data, dict):
                return data, ""
        start = raw.find("{", start + 1)
    return None, reason


def parse_readiness_response(text: str | None) -> ParseResult:
    """Take the first JSON object of the reply and validate it. Never raises."""
    raw = text or ""
    data, reason = _first_json_object(raw)
    if data is None:
        return Malformed(raw, reason)
    try:
        return Ok(ReadinessAssessment.model_validate(data))
    except (ValidationError, TypeError, ValueError) as e:
        return Malformed(raw, f"schema mismatch: {e}")


def select_assessment(result: ParseResult) -> ReadinessAssessment:
    if isinstance(result, Ok):
        return result.assessment
    logger.warning("Readiness response malformed (%s); using fallback", result.reason)
    return FALLBACK_ASSESSMENT.model_copy()


async def score_readiness(inference: InferenceProvider, context: ReadinessContext) -> ReadinessAssessment:
    baseline = compute_baseline(context)
    prompt = build_readiness_prompt(context, baseline)
    try:
        text = await inference.complete(prompt, MAX_TOKENS)
    except Exception as e:
        logger.warning("Readiness analysis failed for %s: %s; using fallback", context.athlete_id, e)
        return FALLBACK_ASSESSMENT.model_copy()
    return select_assessment(parse_readiness_response(text))
