"""FastAPI dependencies: internal token check, readiness store, training director."""

import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.session import get_db
from app.services.collaborators import get_collaborators
from app.services.readiness_store import ReadinessStore
from app.services.training_director import TrainingDirector


async def require_internal_token(
    x_internal_token: Annotated[str | None, Header()] = None,
) -> None:
    """Scheduler and internal callers authenticate with a shared token; empty setting disables the check."""
    expected = settings.internal_api_token
    if not expected:
        return
    if not x_internal_token or not secrets.compare_digest(x_internal_token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid internal token")


async def get_readiness_store(
    session: Annotated[AsyncSession, Depends(get_db)],
) -> ReadinessStore:
    return ReadinessStore(session)


async def get_training_director(
    store: Annotated[ReadinessStore, Depends(get_readiness_store)],
) -> TrainingDirector:
    return TrainingDirector(store, get_collaborators())
