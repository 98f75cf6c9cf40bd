"""Tests for tariff read routes."""

from datetime import date

import pytest

from tariffsync.features.tariffs.service import TariffService


@pytest.fixture
async def stored_tariffs(session_maker, snapshot_factory):
    """Two synced dates."""
    service = TariffService()
    async with session_maker() as db:
        await service.save(db, snapshot_factory(date(2025, 7, 19), ["Tula"]))
        await service.save(db, snapshot_factory(date(2025, 7, 20), ["Kazan", "Almaty"]))


class TestTariffRoutes:
    """Tests for /tariffs endpoints."""

    @pytest.mark.asyncio
    async def test_latest_404_when_empty(self, client):
        """No synced data should be a 404 problem response."""
        response = await client.get("/tariffs/latest")

        assert response.status_code == 404
        assert response.json()["type"] == "/errors/not-found"

    @pytest.mark.asyncio
    async def test_latest_returns_newest_date(self, client, stored_tariffs):
        """Latest should return the newest request date with ordered warehouses."""
        response = await client.get("/tariffs/latest")

        assert response.status_code == 200
        data = response.json()
        assert data["request_date"] == "2025-07-20"
        assert data["warehouse_count"] == 2
        assert [w["warehouse_name"] for w in data["warehouses"]] == ["Almaty", "Kazan"]

    @pytest.mark.asyncio
    async def test_for_date(self, client, stored_tariffs):
        """A synced date should be returned as stored."""
        response = await client.get("/tariffs/2025-07-19")

        assert response.status_code == 200
        assert response.json()["warehouses"][0]["warehouse_name"] == "Tula"

    @pytest.mark.asyncio
    async def test_for_date_not_synced(self, client, stored_tariffs):
        """An unsynced date should be a 404."""
        response = await client.get("/tariffs/2024-01-01")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_for_date_invalid_date(self, client):
        """A malformed date should be a 422 validation problem."""
        response = await client.get("/tariffs/not-a-date")

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_range(self, client, stored_tariffs):
        """Range should list dates newest first."""
        response = await client.get(
            "/tariffs", params={"start": "2025-07-01", "end": "2025-07-31"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [i["request_date"] for i in data["items"]] == ["2025-07-20", "2025-07-19"]

    @pytest.mark.asyncio
    async def test_range_start_after_end(self, client):
        """start after end should be a 400."""
        response = await client.get(
            "/tariffs", params={"start": "2025-07-31", "end": "2025-07-01"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_range_too_long(self, client, monkeypatch):
        """Spans beyond the configured maximum should be a 400."""
        monkeypatch.setenv("TARIFFS_MAX_RANGE_DAYS", "7")

        response = await client.get(
            "/tariffs", params={"start": "2025-07-01", "end": "2025-07-31"}
        )

        assert response.status_code == 400
