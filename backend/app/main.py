import logging
import sys
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1 import readiness

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("app").setLevel(logging.DEBUG)
from app.config import settings
from app.core.rate_limit import limiter
from app.db.session import init_db
from app.services.collaborators import close_collaborators, init_collaborators
from app.services.http_client import close_http_client, init_http_client
from prometheus_client import Counter, make_asgi_app

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")

CHECKINS_TOTAL = Counter(
    "readiness_scheduled_checkins_total",
    "Scheduled daily check-ins by outcome",
    ["outcome"],
)


async def scheduled_daily_check_in():
    """Run the daily check-in for every athlete (parallel with semaphore, one session each)."""
    import asyncio
    from sqlalchemy import select
    from app.db.session import async_session_maker
    from app.models.user import User
    from app.services.collaborators import get_collaborators
    from app.services.readiness_store import ReadinessStore
    from app.services.training_director import TrainingDirector, should_alert, utc_today

    async with async_session_maker() as session:
        r = await session.execute(select(User.id))
        athlete_ids = [row[0] for row in r.all()]
    logger.info("Queueing daily check-in for %d athletes", len(athlete_ids))
    if not athlete_ids:
        return

    today = utc_today()
    collaborators = get_collaborators()
    sem = asyncio.Semaphore(max(1, settings.checkin_concurrency))

    async def run_for_athlete(athlete_id: str) -> None:
        async with sem:
            async with async_session_maker() as session:
                try:
                    director = TrainingDirector(ReadinessStore(session), collaborators)
                    assessment = await director.perform_daily_check_in(athlete_id, today=today)
                    await session.commit()
                except Exception:
                    await session.rollback()
                    CHECKINS_TOTAL.labels(outcome="error").inc()
                    logger.exception("Daily check-in failed for %s", athlete_id)
                    return
            CHECKINS_TOTAL.labels(outcome="alert" if should_alert(assessment) else "ok").inc()
            if should_alert(assessment):
                logger.warning(
                    "Readiness alert for %s: %s (score %s)",
                    athlete_id,
                    assessment.risk_level.value,
                    assessment.score,
                )

    await asyncio.gather(*[run_for_athlete(aid) for aid in athlete_ids])


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    init_http_client(timeout=30.0)
    init_collaborators()

    hour = settings.checkin_cron_hour if 0 <= settings.checkin_cron_hour <= 23 else 7
    scheduler.add_job(scheduled_daily_check_in, "cron", hour=hour, minute=0, id="daily-check-in", replace_existing=True)
    scheduler.start()
    yield
    scheduler.shutdown()
    await close_collaborators()
    await close_http_client()


app = FastAPI(
    title="Readiness Service",
    description="Daily readiness scoring and audio briefings from biometrics, training load and weather",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)
app.include_router(readiness.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    return {"status": "ok"}
