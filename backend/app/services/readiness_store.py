"""
Persistence for the readiness pipeline: typed reads of device metrics, activity load
and profile, plus the two writers of athlete_readiness (score fields, audio field).
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AssessmentNotFoundError
from app.models.activity import Activity
from app.models.athlete_profile import AthleteProfile
from app.models.athlete_readiness import READINESS_UNIQUE_CONSTRAINT, AthleteReadiness
from app.models.daily_metric import DailyMetric
from app.schemas.readiness import (
    ActivityLoadSample,
    AthleteProfileSnapshot,
    AudioFields,
    DailyMetricSample,
    ReadinessRecord,
    RiskLevel,
    ScoreFields,
)


class ReadinessRepository(Protocol):
    async def find_recent_metrics(self, athlete_id: str, before_date: date, limit: int) -> list[DailyMetricSample]: ...

    async def find_activity_load(self, athlete_id: str, since: datetime) -> list[ActivityLoadSample]: ...

    async def find_profile(self, athlete_id: str) -> AthleteProfileSnapshot | None: ...

    async def find_assessment(self, athlete_id: str, day: date) -> ReadinessRecord | None: ...

    async def upsert_assessment(self, athlete_id: str, day: date, fields: ScoreFields) -> None: ...

    async def patch_assessment_audio_url(self, athlete_id: str, day: date, fields: AudioFields) -> None: ...


def _metric_to_sample(row: DailyMetric) -> DailyMetricSample:
    return DailyMetricSample(
        athlete_id=row.user_id,
        date=row.date,
        hrv=row.heart_rate_variability,
        resting_hr=row.resting_heart_rate,
        sleep_seconds=row.sleep_duration_seconds,
        source=row.source,
    )


def _activity_to_sample(row: Activity) -> ActivityLoadSample:
    return ActivityLoadSample(
        activity_id=row.activity_id,
        athlete_id=row.user_id,
        start=row.start_date,
        name=row.name,
        sport_type=row.sport_type,
        duration_sec=row.moving_time_sec,
        distance_m=row.distance_m,
        strain=max(row.suffer_score or 0.0, 0.0),
        lat=row.start_lat,
        lon=row.start_lon,
    )


def _profile_to_snapshot(row: AthleteProfile) -> AthleteProfileSnapshot:
    display_name = row.display_name
    if not display_name and (row.strava_firstname or row.strava_lastname):
        display_name = " ".join(filter(None, [row.strava_firstname, row.strava_lastname])).strip()
    return AthleteProfileSnapshot(
        athlete_id=row.user_id,
        display_name=display_name or None,
        max_heart_rate=row.max_heart_rate,
        resting_heart_rate=row.resting_heart_rate,
        weight_kg=row.weight_kg if row.weight_kg is not None else row.strava_weight_kg,
    )


def readiness_to_record(row: AthleteReadiness) -> ReadinessRecord:
    risk = row.injury_risk if row.injury_risk in {r.value for r in RiskLevel} else None
    return ReadinessRecord(
        id=row.id,
        athlete_id=row.user_id,
        date=row.date,
        score=row.readiness_score,
        risk_level=risk,
        summary=row.summary,
        recommendation=row.recommendation,
        generated_at=row.generated_at,
        audio_url=row.audio_url,
    )


def build_upsert_statement(athlete_id: str, day: date, fields: ScoreFields, new_id: str | None = None):
    """
    INSERT ... ON CONFLICT (user_id, date) DO UPDATE of the score columns only.
    audio_url is neither inserted nor touched on conflict.
    """
    score_columns = {
        "readiness_score": fields.score,
        "injury_risk": fields.risk_level.value,
        "summary": fields.summary,
        "recommendation": fields.recommendation,
        "generated_at": fields.generated_at,
    }
    stmt = pg_insert(AthleteReadiness).values(
        {
            "id": new_id or str(uuid.uuid4()),
            "user_id": athlete_id,
            "date": day,
            **score_columns,
        }
    )
    return stmt.on_conflict_do_update(
        constraint=READINESS_UNIQUE_CONSTRAINT,
        set_={name: stmt.excluded[name] for name in score_columns},
    )


def build_audio_patch_statement(athlete_id: str, day: date, fields: AudioFields):
    return (
        update(AthleteReadiness)
        .where(AthleteReadiness.user_id == athlete_id, AthleteReadiness.date == day)
        .values(audio_url=fields.audio_url)
    )


class ReadinessStore:
    """ReadinessRepository over an AsyncSession. Commit is left to the session owner."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_recent_metrics(self, athlete_id: str, before_date: date, limit: int) -> list[DailyMetricSample]:
        r = await self.session.execute(
            select(DailyMetric)
            .where(DailyMetric.user_id == athlete_id, DailyMetric.date <= before_date)
            .order_by(DailyMetric.date.desc())
            .limit(limit)
        )
        return [_metric_to_sample(row) for row in r.scalars().all()]

    async def find_activity_load(self, athlete_id: str, since: datetime) -> list[ActivityLoadSample]:
        r = await self.session.execute(
            select(Activity)
            .where(Activity.user_id == athlete_id, Activity.start_date >= since)
            .order_by(Activity.start_date.desc())
        )
        return [_activity_to_sample(row) for row in r.scalars().all()]

    async def find_profile(self, athlete_id: str) -> AthleteProfileSnapshot | None:
        r = await self.session.execute(select(AthleteProfile).where(AthleteProfile.user_id == athlete_id))
        row = r.scalar_one_or_none()
        return _profile_to_snapshot(row) if row else None

    async def find_assessment(self, athlete_id: str, day: date) -> ReadinessRecord | None:
        r = await self.session.execute(
            select(AthleteReadiness).where(AthleteReadiness.user_id == athlete_id, AthleteReadiness.date == day)
        )
        row = r.scalar_one_or_none()
        return readiness_to_record(row) if row else None

    async def list_assessments(
        self,
        athlete_id: str,
        from_date: date,
        to_date: date,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ReadinessRecord], int]:
        base = select(AthleteReadiness).where(
            AthleteReadiness.user_id == athlete_id,
            AthleteReadiness.date >= from_date,
            AthleteReadiness.date <= to_date,
        )
        total = (await self.session.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0
        r = await self.session.execute(base.order_by(AthleteReadiness.date.desc()).offset(offset).limit(limit))
        return [readiness_to_record(row) for row in r.scalars().all()], total

    async def upsert_assessment(self, athlete_id: str, day: date, fields: ScoreFields) -> None:
        await self.session.execute(build_upsert_statement(athlete_id, day, fields))

    async def patch_assessment_audio_url(self, athlete_id: str, day: date, fields: AudioFields) -> None:
        r = await self.session.execute(build_audio_patch_statement(athlete_id, day, fields))
        if not r.rowcount:
            raise AssessmentNotFoundError(athlete_id, day)
