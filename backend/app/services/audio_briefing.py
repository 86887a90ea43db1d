"""
Spoken morning briefing: script from the stored assessment (never re-scored),
TTS to MP3, upload, then patch audio_url onto the readiness row.
"""
from __future__ import annotations

import logging
from datetime import date

from app.core.errors import AssessmentNotFoundError
from app.schemas.readiness import AudioFields, ReadinessContext, ReadinessRecord
from app.services.inference import InferenceProvider
from app.services.readiness_context import gather_context
from app.services.readiness_scoring import compute_baseline, format_weather
from app.services.readiness_store import ReadinessRepository
from app.services.storage import BlobStorage
from app.services.tts import TextToSpeechProvider
from app.services.weather import WeatherProvider

logger = logging.getLogger(__name__)

SCRIPT_MAX_TOKENS = 600
FALLBACK_SCRIPT = "Good morning. Go run."
AUDIO_CONTENT_TYPE = "audio/mpeg"


def briefing_path(athlete_id: str, day: date) -> str:
    """One object per athlete and day; regenerating overwrites it."""
    return f"briefings/{athlete_id}/{day.isoformat()}.mp3"


def build_briefing_prompt(context: ReadinessContext, record: ReadinessRecord) -> str:
    baseline = compute_baseline(context)
    today = baseline.today
    name = (context.profile.display_name if context.profile else None) or "Runner"
    risk = record.risk_level.value if record.risk_level else "unknown"

    lines = [
        f"You are the Training Director recording a morning audio briefing for {name}.",
        "Write a 45-60 second spoken script (about 120-150 words).",
        "",
        "TODAY'S ASSESSMENT (already decided, state it exactly, do not change it):",
        f"- Readiness score: {record.score if record.score is not None else 'N/A'} out of 100",
        f"- Risk level: {risk}",
        f"- Summary: {record.summary or ''}",
        f"- Recommendation: {record.recommendation or ''}",
        "",
        "RECOVERY DATA:",
    ]
    if today is not None and today.hrv is not None:
        lines.append(f"- HRV: {today.hrv:.0f} ms vs baseline ~{baseline.baseline_hrv:.0f} ms")
    if today is not None and today.sleep_seconds:
        lines.append(f"- Sleep: {today.sleep_seconds / 3600:.1f} hours")
    lines.append(f"- Activities in the last 7 days: {len(context.activities)}, total strain {baseline.accumulated_strain:.0f}")

    weather = context.weather
    has_weather = weather.current is not None or weather.last_run is not None
    if has_weather:
        lines += ["", "WEATHER:"]
        if weather.current:
            lines.append(f"- Now: {format_weather(weather.current)}")
        if weather.last_run:
            lines.append(f"- During last run: {format_weather(weather.last_run)}")

    structure = [
        "1. Greeting by name.",
        "2. Short recovery summary.",
        "3. Say the readiness score and risk level explicitly, then the recommendation.",
    ]
    if has_weather:
        structure.append("4. One weather and gear tip for today's conditions.")
    structure += [
        f"{len(structure) + 1}. One line of encouragement.",
        f"{len(structure) + 2}. Brief closing.",
    ]
    lines += ["", "STRUCTURE:", *structure, "", "Output plain spoken text only. No markdown, no headings, no stage directions."]
    return "\n".join(lines)


async def write_briefing_script(inference: InferenceProvider, context: ReadinessContext, record: ReadinessRecord) -> str:
    try:
        text = (await inference.complete(build_briefing_prompt(context, record), SCRIPT_MAX_TOKENS)).strip()
    except Exception as e:
        logger.warning("Briefing script generation failed for %s: %s; using fallback", context.athlete_id, e)
        return FALLBACK_SCRIPT
    return text or FALLBACK_SCRIPT


async def generate_audio_briefing(
    store: ReadinessRepository,
    inference: InferenceProvider,
    weather: WeatherProvider,
    tts: TextToSpeechProvider,
    storage: BlobStorage,
    athlete_id: str,
    today: date,
    *,
    voice: str | None = None,
) -> str:
    """Return the public URL of the stored briefing. TTS and storage errors propagate."""
    context = await gather_context(store, weather, athlete_id, today)
    record = await store.find_assessment(athlete_id, today)
    if record is None:
        raise AssessmentNotFoundError(athlete_id, today)

    script = await write_briefing_script(inference, context, record)
    audio = await tts.synthesize(script, voice)
    url = await storage.store(briefing_path(athlete_id, today), audio, AUDIO_CONTENT_TYPE)
    await store.patch_assessment_audio_url(athlete_id, today, AudioFields(audio_url=url))
    logger.info("Audio briefing stored for %s on %s: %s", athlete_id, today, url)
    return url
