"""
Shared long-lived httpx.AsyncClient for outbound lookups (Open-Meteo weather).
Initialized in app lifespan so connections are pooled across check-ins.
"""
from __future__ import annotations

import httpx

USER_AGENT = "readiness-service/0.1"

_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Return the shared async HTTP client. Must be initialized via init_http_client() first."""
    if _http_client is None:
        raise RuntimeError("HTTP client not initialized; ensure app lifespan has run init_http_client().")
    return _http_client


def init_http_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """Create and store the shared client. Call from app lifespan startup."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=timeout, headers={"User-Agent": USER_AGENT})
    return _http_client


async def close_http_client() -> None:
    """Close the shared client. Call from app lifespan shutdown."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
