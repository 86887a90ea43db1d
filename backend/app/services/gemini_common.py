"""
Run blocking Gemini generate_content in a threadpool so the event loop stays free.
Each attempt is bounded by a timeout; 429/5xx-like errors are retried with backoff.
"""
from __future__ import annotations

import asyncio
import logging
import re

from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_PATTERN = re.compile(r"\b(429|5\d{2})\b")


def _is_retryable_error(exc: BaseException) -> bool:
    """True if the exception looks like 429 or 5xx."""
    msg = (getattr(exc, "message", None) or str(exc)) if exc else ""
    return bool(RETRYABLE_STATUS_PATTERN.search(msg))


async def run_generate_content(model, contents, *, timeout: float, max_attempts: int = 2):
    """
    Run model.generate_content(contents) with a per-attempt timeout.
    Timeouts are not retried: a slow provider should hit the caller's fallback quickly.
    """
    for attempt in range(max_attempts):
        try:
            return await asyncio.wait_for(
                run_in_threadpool(model.generate_content, contents),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Gemini request timed out after %ss", timeout)
            raise
        except Exception as e:
            if attempt < max_attempts - 1 and _is_retryable_error(e):
                delay = 2 ** attempt
                logger.warning("Gemini request failed (attempt %d), retrying in %ss: %s", attempt + 1, delay, e)
                await asyncio.sleep(delay)
            else:
                raise
    raise RuntimeError("run_generate_content: unexpected exit")
