"""
Request rate limits (slowapi). Check-in and briefing endpoints each trigger paid
LLM/TTS calls, so they get a tighter per-client cap than the default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

DEFAULT_LIMITS = ["200/minute"]
AI_TRIGGER_LIMIT = "10/minute"

limiter = Limiter(key_func=get_remote_address, default_limits=DEFAULT_LIMITS)
