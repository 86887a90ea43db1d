"""
Training Director: the two scheduler entry points of the readiness pipeline.

perform_daily_check_in  gather -> baseline -> score -> upsert; always returns an assessment.
generate_audio_briefing script -> TTS -> storage -> audio_url patch; may raise.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from app.schemas.readiness import ALERT_RISK_LEVELS, ReadinessAssessment, ScoreFields
from app.services import audio_briefing
from app.services.collaborators import Collaborators
from app.services.readiness_context import gather_context
from app.services.readiness_scoring import score_readiness
from app.services.readiness_store import ReadinessRepository

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def should_alert(assessment: ReadinessAssessment) -> bool:
    return assessment.risk_level in ALERT_RISK_LEVELS


class TrainingDirector:
    def __init__(self, store: ReadinessRepository, collaborators: Collaborators) -> None:
        self.store = store
        self.collaborators = collaborators

    async def perform_daily_check_in(self, athlete_id: str, *, today: date | None = None) -> ReadinessAssessment:
        today = today or utc_today()
        logger.info("Performing check-in for %s on %s", athlete_id, today)
        context = await gather_context(self.store, self.collaborators.weather, athlete_id, today)
        assessment = await score_readiness(self.collaborators.inference, context)
        fields = ScoreFields.from_assessment(assessment, datetime.now(timezone.utc))
        await self.store.upsert_assessment(athlete_id, today, fields)
        logger.info(
            "Check-in complete for %s: score=%s risk=%s alert=%s",
            athlete_id,
            assessment.score,
            assessment.risk_level.value,
            should_alert(assessment),
        )
        return assessment

    async def generate_audio_briefing(
        self,
        athlete_id: str,
        *,
        today: date | None = None,
        voice: str | None = None,
    ) -> str:
        today = today or utc_today()
        logger.info("Generating audio briefing for %s on %s", athlete_id, today)
        return await audio_briefing.generate_audio_briefing(
            self.store,
            self.collaborators.inference,
            self.collaborators.weather,
            self.collaborators.tts,
            self.collaborators.storage,
            athlete_id,
            today,
            voice=voice,
        )
