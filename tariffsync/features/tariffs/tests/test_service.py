"""Tests for the tariff store (TariffService) on an in-memory SQLite database."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import delete, func, select

from tariffsync.core.exceptions import StoreError
from tariffsync.features.tariffs.models import TariffRequest, WarehouseTariff
from tariffsync.features.tariffs.service import TariffService

DAY_1 = date(2025, 7, 19)
DAY_2 = date(2025, 7, 20)
DAY_3 = date(2025, 7, 21)


@pytest.fixture
def service() -> TariffService:
    return TariffService()


async def count_rows(session_maker, model) -> int:
    async with session_maker() as db:
        result = await db.execute(select(func.count()).select_from(model))
        return result.scalar_one()


class TestSave:
    """Tests for TariffService.save."""

    @pytest.mark.asyncio
    async def test_save_creates_request_and_warehouses(
        self, service, db_session, session_maker, snapshot_factory
    ):
        """First save of a date should insert the request and all warehouses."""
        request = await service.save(db_session, snapshot_factory(DAY_1, ["A", "B"]))

        assert request.id is not None
        assert request.request_date == DAY_1
        assert request.max_boundary_date == date(2025, 7, 31)
        assert await count_rows(session_maker, TariffRequest) == 1
        assert await count_rows(session_maker, WarehouseTariff) == 2

    @pytest.mark.asyncio
    async def test_save_same_date_replaces_warehouse_set(
        self, service, db_session, session_maker, snapshot_factory
    ):
        """Re-syncing a date replaces its warehouses; nothing from the old set survives."""
        await service.save(db_session, snapshot_factory(DAY_1, ["A", "B", "C"]))
        await service.save(db_session, snapshot_factory(DAY_1, ["B", "D"], coefficient="90"))

        async with session_maker() as db:
            stored = await service.for_date(db, DAY_1)

        assert stored is not None
        assert [w.warehouse_name for w in stored.warehouses] == ["B", "D"]
        assert all(w.coefficient == Decimal("90") for w in stored.warehouses)
        assert await count_rows(session_maker, TariffRequest) == 1
        assert await count_rows(session_maker, WarehouseTariff) == 2

    @pytest.mark.asyncio
    async def test_save_same_date_updates_boundary_dates(
        self, service, db_session, session_maker, snapshot_factory
    ):
        """Boundary dates follow the latest fetch of the date."""
        first = await service.save(db_session, snapshot_factory(DAY_1, ["A"]))

        snapshot = snapshot_factory(DAY_1, ["A"])
        snapshot.next_boundary_date = date(2025, 8, 1)
        snapshot.max_boundary_date = None
        second = await service.save(db_session, snapshot)

        assert second.id == first.id
        async with session_maker() as db:
            stored = await service.for_date(db, DAY_1)
        assert stored.request.next_boundary_date == date(2025, 8, 1)
        assert stored.request.max_boundary_date is None

    @pytest.mark.asyncio
    async def test_save_empty_snapshot_clears_warehouses(
        self, service, db_session, session_maker, snapshot_factory
    ):
        """An empty warehouse list is a valid snapshot and empties the date."""
        await service.save(db_session, snapshot_factory(DAY_1, ["A", "B"]))
        await service.save(db_session, snapshot_factory(DAY_1, []))

        assert await count_rows(session_maker, TariffRequest) == 1
        assert await count_rows(session_maker, WarehouseTariff) == 0

    @pytest.mark.asyncio
    async def test_save_failure_rolls_back_to_previous_state(
        self, service, db_session, session_maker, snapshot_factory
    ):
        """A failed save leaves the previously stored set untouched."""
        await service.save(db_session, snapshot_factory(DAY_1, ["A", "B"]))

        with pytest.raises(StoreError):
            await service.save(db_session, snapshot_factory(DAY_1, ["X", "X"]))

        async with session_maker() as db:
            stored = await service.for_date(db, DAY_1)
        assert [w.warehouse_name for w in stored.warehouses] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_save_failure_on_new_date_leaves_no_request(
        self, service, db_session, session_maker, snapshot_factory
    ):
        """A failed first save of a date must not leave an empty request behind."""
        with pytest.raises(StoreError):
            await service.save(db_session, snapshot_factory(DAY_2, ["X", "X"]))

        assert await count_rows(session_maker, TariffRequest) == 0
        async with session_maker() as db:
            assert await service.has_data_for_date(db, DAY_2) is False

    @pytest.mark.asyncio
    async def test_save_keeps_null_tariffs(
        self, service, db_session, session_maker, snapshot_factory
    ):
        """Missing numeric tariffs are stored as NULL, not zero."""
        snapshot = snapshot_factory(DAY_1, ["A"])
        snapshot.warehouses[0].coefficient = None
        await service.save(db_session, snapshot)

        async with session_maker() as db:
            stored = await service.for_date(db, DAY_1)
        warehouse = stored.warehouses[0]
        assert warehouse.coefficient is None
        assert warehouse.storage_per_liter is None
        assert warehouse.delivery_base == Decimal("48.00")

    @pytest.mark.asyncio
    async def test_deleting_request_cascades_to_warehouses(
        self, service, db_session, session_maker, snapshot_factory
    ):
        """Warehouse rows go away with their request."""
        await service.save(db_session, snapshot_factory(DAY_1, ["A", "B"]))

        async with session_maker() as db:
            await db.execute(delete(TariffRequest))
            await db.commit()

        assert await count_rows(session_maker, WarehouseTariff) == 0


class TestReads:
    """Tests for latest, for_date, for_range and has_data_for_date."""

    @pytest.fixture
    async def three_days(self, service, db_session, snapshot_factory):
        await service.save(db_session, snapshot_factory(DAY_2, ["Kazan", "Almaty"]))
        await service.save(db_session, snapshot_factory(DAY_1, ["Tula"]))
        await service.save(db_session, snapshot_factory(DAY_3, ["Podolsk", "Elektrostal"]))

    @pytest.mark.asyncio
    async def test_latest_empty_store(self, service, db_session):
        """latest should return None when nothing was synced."""
        assert await service.latest(db_session) is None

    @pytest.mark.asyncio
    async def test_latest_is_max_request_date(self, service, db_session, three_days):
        """latest is chosen by request date, not insertion order."""
        latest = await service.latest(db_session)

        assert latest.request.request_date == DAY_3
        assert [w.warehouse_name for w in latest.warehouses] == ["Elektrostal", "Podolsk"]

    @pytest.mark.asyncio
    async def test_for_date_missing(self, service, db_session, three_days):
        """for_date should return None for a date that was never synced."""
        assert await service.for_date(db_session, date(2025, 1, 1)) is None

    @pytest.mark.asyncio
    async def test_for_range_newest_first(self, service, db_session, three_days):
        """for_range is inclusive and ordered by date descending."""
        items = await service.for_range(db_session, DAY_1, DAY_2)

        assert [i.request.request_date for i in items] == [DAY_2, DAY_1]
        assert [w.warehouse_name for w in items[0].warehouses] == ["Almaty", "Kazan"]
        assert [w.warehouse_name for w in items[1].warehouses] == ["Tula"]

    @pytest.mark.asyncio
    async def test_for_range_no_match(self, service, db_session, three_days):
        """A range with no synced dates returns an empty list."""
        assert await service.for_range(db_session, date(2024, 1, 1), date(2024, 1, 31)) == []

    @pytest.mark.asyncio
    async def test_has_data_for_date(self, service, db_session, three_days):
        """has_data_for_date reflects whether a request row exists."""
        assert await service.has_data_for_date(db_session, DAY_1) is True
        assert await service.has_data_for_date(db_session, date(2024, 1, 1)) is False

    @pytest.mark.asyncio
    async def test_to_response(self, service, db_session, three_days):
        """TariffSet.to_response should count warehouses."""
        response = (await service.for_date(db_session, DAY_2)).to_response()

        assert response.request_date == DAY_2
        assert response.warehouse_count == 2
        assert response.warehouses[0].warehouse_name == "Almaty"
