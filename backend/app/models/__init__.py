from app.models.user import User
from app.models.athlete_profile import AthleteProfile
from app.models.daily_metric import DailyMetric
from app.models.activity import Activity
from app.models.athlete_readiness import AthleteReadiness

__all__ = [
    "User",
    "AthleteProfile",
    "DailyMetric",
    "Activity",
    "AthleteReadiness",
]
