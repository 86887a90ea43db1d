"""Readiness API: stored assessments, on-demand check-in and audio briefing per athlete."""

import logging
from datetime import date, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.api.deps import get_readiness_store, get_training_director, require_internal_token
from app.core.errors import AssessmentNotFoundError, TextToSpeechNotConfiguredError
from app.core.rate_limit import AI_TRIGGER_LIMIT, limiter
from app.schemas.pagination import PaginatedResponse
from app.schemas.readiness import BriefingResponse, CheckInResponse, ReadinessRecord
from app.services.readiness_store import ReadinessStore
from app.services.training_director import TrainingDirector, should_alert, utc_today

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/athletes/{athlete_id}/readiness",
    tags=["readiness"],
    dependencies=[Depends(require_internal_token)],
)


@router.get(
    "",
    response_model=PaginatedResponse,
    summary="Get readiness history",
    responses={401: {"description": "Invalid internal token"}},
)
async def list_readiness(
    athlete_id: str,
    store: Annotated[ReadinessStore, Depends(get_readiness_store)],
    from_date: date | None = None,
    to_date: date | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> PaginatedResponse:
    """Stored assessments for the date range (default last 30 days), newest first."""
    to_date = to_date or utc_today()
    from_date = from_date or (to_date - timedelta(days=30))
    items, total = await store.list_assessments(athlete_id, from_date, to_date, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[item.model_dump(mode="json") for item in items],
        total=total,
        limit=limit,
        offset=offset,
        has_more=(offset + limit) < total,
    )


@router.get(
    "/today",
    response_model=ReadinessRecord,
    summary="Get today's readiness",
    responses={404: {"description": "No check-in yet today"}},
)
async def get_today_readiness(
    athlete_id: str,
    store: Annotated[ReadinessStore, Depends(get_readiness_store)],
) -> ReadinessRecord:
    record = await store.find_assessment(athlete_id, utc_today())
    if record is None:
        raise HTTPException(status_code=404, detail="No readiness assessment for today")
    return record


@router.post(
    "/check-in",
    response_model=CheckInResponse,
    summary="Run the daily readiness check-in",
)
@limiter.limit(AI_TRIGGER_LIMIT)
async def check_in(
    request: Request,
    athlete_id: str,
    director: Annotated[TrainingDirector, Depends(get_training_director)],
) -> CheckInResponse:
    """Score today's readiness and upsert it. Always succeeds; falls back to a neutral score."""
    assessment = await director.perform_daily_check_in(athlete_id)
    return CheckInResponse(assessment=assessment, should_alert=should_alert(assessment))


@router.post(
    "/briefing",
    response_model=BriefingResponse,
    summary="Generate today's audio briefing",
    responses={
        404: {"description": "No check-in yet today"},
        502: {"description": "Text-to-speech or storage failed"},
        503: {"description": "Text-to-speech not configured"},
    },
)
@limiter.limit(AI_TRIGGER_LIMIT)
async def create_briefing(
    request: Request,
    athlete_id: str,
    director: Annotated[TrainingDirector, Depends(get_training_director)],
    voice: str | None = None,
) -> BriefingResponse:
    try:
        url = await director.generate_audio_briefing(athlete_id, voice=voice)
    except AssessmentNotFoundError:
        raise HTTPException(status_code=404, detail="Run the daily check-in before generating a briefing")
    except TextToSpeechNotConfiguredError:
        raise HTTPException(status_code=503, detail="Text-to-speech not configured")
    except Exception as e:
        logger.exception("Briefing generation failed for %s", athlete_id)
        raise HTTPException(status_code=502, detail="Failed to generate briefing") from e
    return BriefingResponse(audio_url=url)
