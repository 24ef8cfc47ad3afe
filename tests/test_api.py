"""Tests for the runlog API endpoints."""

from datetime import timedelta

import pytest

from runlog.models.run import RunStatus
from tests.conftest import seed_run

BASE = "/api/v1/process/runs"


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data


class TestAuth:
    @pytest.mark.asyncio
    async def test_no_auth_rejected(self, unauthed_client):
        resp = await unauthed_client.get(BASE)
        assert resp.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_bad_auth_rejected(self, app):
        from httpx import AsyncClient, ASGITransport
        transport = ASGITransport(app=app)
        async with AsyncClient(
            transport=transport,
            base_url="http://test",
            headers={"Authorization": "Bearer wrong_key"},
        ) as c:
            resp = await c.get(BASE)
            assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_auth(self, client):
        resp = await client.get(BASE)
        assert resp.status_code == 200


class TestListRuns:
    @pytest.mark.asyncio
    async def test_recent_runs_empty(self, client):
        resp = await client.get(BASE)
        data = resp.json()
        assert data["runs"] == []
        assert data["total"] == 0
        assert data["limit"] == 100
        assert data["offset"] == 0
        assert data["detail"] is False

    @pytest.mark.asyncio
    async def test_recent_runs_excludes_idle(self, client, store, clock):
        active = await seed_run(store, clock, units=2)
        await seed_run(store, clock, units=0)

        resp = await client.get(BASE)
        data = resp.json()
        assert data["total"] == 1
        assert data["runs"][0]["process_id"] == active
        assert data["runs"][0]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_full_includes_idle(self, client, store, clock):
        await seed_run(store, clock, units=2)
        await seed_run(store, clock, units=0)

        resp = await client.get(BASE, params={"full": "true"})
        assert resp.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_detail(self, client, store, clock):
        process_id = await seed_run(store, clock, units=3)

        resp = await client.get(BASE, params={"detail": "true"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["detail"] is True
        item = data["runs"][0]
        assert item["run"]["process_id"] == process_id
        assert item["units"]["total"] == 3
        assert len(item["units"]["results"]) == 3

    @pytest.mark.asyncio
    async def test_pagination(self, client, store, clock):
        ids = [await seed_run(store, clock, units=1) for _ in range(5)]

        resp = await client.get(BASE, params={"limit": 2, "offset": 2})
        data = resp.json()
        assert data["total"] == 5
        assert data["limit"] == 2
        assert data["offset"] == 2
        assert [r["process_id"] for r in data["runs"]] == list(reversed(ids))[2:4]

    @pytest.mark.asyncio
    async def test_invalid_limit(self, client):
        resp = await client.get(BASE, params={"limit": 0})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [1001, 1000000000])
    async def test_limit_too_large(self, client, store, limit):
        resp = await client.get(BASE, params={"limit": limit})
        assert resp.status_code == 422

        process_id = await store.begin_run()
        resp = await client.get(f"{BASE}/{process_id}", params={"limit": limit})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_max_limit_accepted(self, client):
        resp = await client.get(BASE, params={"limit": 1000})
        assert resp.status_code == 200
        assert resp.json()["limit"] == 1000

    @pytest.mark.asyncio
    async def test_has_more(self, client, store, clock):
        for _ in range(3):
            await seed_run(store, clock, units=1)

        first = (await client.get(BASE, params={"limit": 2})).json()
        assert first["has_more"] is True

        last = (await client.get(BASE, params={"limit": 2, "offset": 2})).json()
        assert len(last["runs"]) == 1
        assert last["has_more"] is False

    @pytest.mark.asyncio
    async def test_runs_from(self, client, store, clock):
        await seed_run(store, clock, units=1)
        clock.advance(hours=2)
        later = await seed_run(store, clock, units=1)

        since = (clock.now - timedelta(hours=1)).isoformat()
        resp = await client.get(f"{BASE}/{since}")
        assert resp.status_code == 200
        assert [r["process_id"] for r in resp.json()["runs"]] == [later]

    @pytest.mark.asyncio
    async def test_runs_during(self, client, store, clock):
        t0 = clock.now
        first = await seed_run(store, clock, units=1)
        clock.advance(days=3)
        await seed_run(store, clock, units=1)

        start = t0.isoformat()
        end = (t0 + timedelta(days=1)).isoformat()
        resp = await client.get(f"{BASE}/{start}/{end}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["runs"][0]["process_id"] == first

    @pytest.mark.asyncio
    async def test_runs_during_old_window(self, client, store, clock):
        t0 = clock.now
        await seed_run(store, clock, units=1)
        clock.advance(days=30)

        resp = await client.get(BASE)
        assert resp.json()["total"] == 0

        resp = await client.get(f"{BASE}/{t0.isoformat()}/{(t0 + timedelta(hours=1)).isoformat()}")
        assert resp.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_inverted_range(self, client, clock):
        start = clock.now.isoformat()
        end = (clock.now - timedelta(days=1)).isoformat()
        resp = await client.get(f"{BASE}/{start}/{end}")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_future_from(self, client, clock):
        resp = await client.get(f"{BASE}/{(clock.now + timedelta(days=1)).isoformat()}")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_datetime(self, client):
        resp = await client.get(f"{BASE}/not-a-date")
        assert resp.status_code == 422


class TestSingleRun:
    @pytest.mark.asyncio
    async def test_get_run(self, client, store, clock):
        process_id = await seed_run(store, clock, units=3, status=RunStatus.FAILED)

        resp = await client.get(f"{BASE}/{process_id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["run"]["process_id"] == process_id
        assert data["run"]["status"] == "failed"
        assert data["run"]["end_time"] is not None
        assert data["units"]["total"] == 3

    @pytest.mark.asyncio
    async def test_get_run_unit_pagination(self, client, store, clock):
        process_id = await seed_run(store, clock, units=5)

        resp = await client.get(f"{BASE}/{process_id}", params={"limit": 2, "offset": 3})
        units = resp.json()["units"]
        assert units["total"] == 5
        assert [u["unit_key"] for u in units["results"]] == [
            f"unit-{process_id}-3",
            f"unit-{process_id}-4",
        ]

    @pytest.mark.asyncio
    async def test_running_run(self, client, store):
        process_id = await store.begin_run()
        resp = await client.get(f"{BASE}/{process_id}")
        data = resp.json()
        assert data["run"]["status"] == "running"
        assert data["run"]["end_time"] is None

    @pytest.mark.asyncio
    async def test_get_run_not_found(self, client):
        resp = await client.get(f"{BASE}/424242")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Process run not found"
