"""Tests for readiness API endpoints (store and providers replaced by fakes)."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from app.config import settings
from app.schemas.readiness import RiskLevel, ScoreFields
from app.services.training_director import utc_today

from fakes import FakeInference, FakeStorage, assessment_json, utc

BASE = "/api/v1/athletes/A1/readiness"


async def _seed(store, day, score=70, risk=RiskLevel.LOW):
    await store.upsert_assessment(
        "A1",
        day,
        ScoreFields(score=score, risk_level=risk, summary="s", recommendation="r", generated_at=utc(day.year, day.month, day.day)),
    )


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_today_not_found(client: AsyncClient):
    resp = await client.get(f"{BASE}/today")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_check_in_falls_back_without_provider(client: AsyncClient, store):
    resp = await client.post(f"{BASE}/check-in")
    assert resp.status_code == 200
    data = resp.json()
    assert data["assessment"] == {
        "score": 50,
        "riskLevel": "moderate",
        "summary": "AI Analysis unavailable. Listen to your body.",
        "recommendation": "Run by feel today.",
    }
    assert data["should_alert"] is False
    today = await client.get(f"{BASE}/today")
    assert today.status_code == 200
    assert today.json()["score"] == 50
    assert today.json()["audio_url"] is None


@pytest.mark.asyncio
async def test_check_in_flags_alert(client: AsyncClient, collaborators):
    collaborators.inference = FakeInference(assessment_json(22, "critical", "Overreached.", "Rest."))
    resp = await client.post(f"{BASE}/check-in")
    assert resp.status_code == 200
    assert resp.json()["assessment"]["riskLevel"] == "critical"
    assert resp.json()["should_alert"] is True


@pytest.mark.asyncio
async def test_briefing_requires_check_in(client: AsyncClient):
    resp = await client.post(f"{BASE}/briefing")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_briefing_returns_url_and_keeps_score(client: AsyncClient, store):
    await _seed(store, utc_today(), score=81)
    resp = await client.post(f"{BASE}/briefing")
    assert resp.status_code == 200
    url = resp.json()["audio_url"]
    assert url.endswith(f"briefings/A1/{utc_today().isoformat()}.mp3")
    today = (await client.get(f"{BASE}/today")).json()
    assert today["audio_url"] == url
    assert today["score"] == 81


@pytest.mark.asyncio
async def test_briefing_storage_failure_is_502(client: AsyncClient, store, collaborators):
    await _seed(store, utc_today())
    collaborators.storage = FakeStorage(fail=RuntimeError("bucket gone"))
    resp = await client.post(f"{BASE}/briefing")
    assert resp.status_code == 502
    assert store.rows[("A1", utc_today())].audio_url is None


@pytest.mark.asyncio
async def test_history_is_paginated_newest_first(client: AsyncClient, store):
    today = utc_today()
    for i in range(3):
        await _seed(store, today - timedelta(days=i), score=60 + i)
    resp = await client.get(BASE, params={"limit": 2})
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 3
    assert data["has_more"] is True
    assert [item["score"] for item in data["items"]] == [60, 61]


@pytest.mark.asyncio
async def test_internal_token_enforced_when_configured(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "internal_api_token", "s3cret")
    assert (await client.get(f"{BASE}/today")).status_code == 401
    assert (await client.get(f"{BASE}/today", headers={"X-Internal-Token": "wrong"})).status_code == 401
    resp = await client.get(f"{BASE}/today", headers={"X-Internal-Token": "s3cret"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_non_ascii_internal_token_is_rejected(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "internal_api_token", "s3cret")
    resp = await client.get(f"{BASE}/today", headers={"X-Internal-Token": "café".encode("utf-8")})
    assert resp.status_code == 401
