"""Tests for the SQLAlchemy stores against an in-memory SQLite database."""

import asyncio
from datetime import date, timedelta

import pytest

from sqlalchemy.pool import StaticPool

from security_service.db.database import create_engine, create_session_factory
from security_service.db.models import (
    Base,
    MarketHolidayRow,
    MetricRow,
    SecurityRow,
    SecurityStatRow,
)
from security_service.db.stores import (
    SQLBarStore,
    SQLComputedMetricValueStore,
    SQLHolidayStore,
    SQLMetricDefinitionStore,
    SQLSecurityStore,
)
from security_service.schemas.metrics import ComputedMetricValue, MetricFamily
from security_service.services.base import ConflictError, NotFoundError, UnsupportedMetricFamilyError

from tests.fakes import trading_dates


async def seeded_session_factory(url: str = "sqlite+aiosqlite:///:memory:"):
    engine = create_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = create_session_factory(engine)
    async with factory() as session:
        session.add_all([
            SecurityRow(id=1, isin="INE002A01018", symbol="RELIANCE", name="Reliance Industries"),
            SecurityRow(id=2, isin="INE467B01029", symbol="TCS", name="Tata Consultancy Services"),
            MetricRow(id=1, name="SMA_5", type="SMA", period=5),
            MetricRow(id=2, name="MACD_12", type="MACD", period=12),
            MarketHolidayRow(date=date(2024, 6, 17), description="Bakri Id"),
            MarketHolidayRow(date=date(2024, 8, 15), description="Independence Day"),
        ])
        for i, day in enumerate(trading_dates(8)):
            session.add(SecurityStatRow(
                security_id=1, date=day, open=100 + i, high=101 + i, low=99 + i, close=100 + i, volume=1000 * (i + 1),
            ))
        await session.commit()
    return engine, factory


@pytest.mark.asyncio
async def test_bar_window_is_newest_first_and_bounded():
    engine, factory = await seeded_session_factory()
    try:
        bars = await SQLBarStore(factory).window(1, date(2024, 6, 9), 3)

        assert [b.date for b in bars] == [date(2024, 6, 7), date(2024, 6, 6), date(2024, 6, 5)]
        assert bars[0].close == 104
        assert bars[0].volume == 5000

        on_day = await SQLBarStore(factory).on_date([1, 2], date(2024, 6, 7))
        assert [b.security_id for b in on_day] == [1]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_holidays_between():
    engine, factory = await seeded_session_factory()
    try:
        holidays = await SQLHolidayStore(factory).between(date(2024, 6, 1), date(2024, 7, 31))
        assert holidays == [date(2024, 6, 17)]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_metric_definitions():
    engine, factory = await seeded_session_factory()
    store = SQLMetricDefinitionStore(factory)
    try:
        sma = await store.retrieve(1)
        assert sma.family == MetricFamily.SMA
        assert sma.period == 5

        with pytest.raises(UnsupportedMetricFamilyError):
            await store.retrieve(2)

        with pytest.raises(NotFoundError):
            await store.retrieve(99)

        # unsupported rows are skipped in listings
        assert [m.id for m in await store.index()] == [1]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_securities():
    engine, factory = await seeded_session_factory()
    store = SQLSecurityStore(factory)
    try:
        assert (await store.retrieve(2)).symbol == "TCS"
        assert {s.id for s in await store.index([1, 2, 3])} == {1, 2}

        with pytest.raises(NotFoundError):
            await store.retrieve(3)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_computed_values_crud():
    engine, factory = await seeded_session_factory()
    store = SQLComputedMetricValueStore(factory)
    day = date(2024, 6, 7)
    try:
        created = await store.create(ComputedMetricValue(security_id=1, metric_id=1, date=day, value=102.0))
        assert created.id is not None
        assert created.created_at is not None

        updated = await store.update(created.id, 103.5)
        assert updated.value == 103.5
        assert (await store.retrieve(created.id)).value == 103.5

        await store.create(ComputedMetricValue(security_id=2, metric_id=1, date=day, value=3500.0))
        assert await store.count(day=day) == 2
        assert await store.count(security_id=1, day=day) == 1
        assert len(await store.index(day=day, limit=1, offset=1)) == 1

        assert await store.index(security_id=1, metric_id=1, day=date(2024, 6, 6)) == []
        with pytest.raises(NotFoundError):
            await store.update(999, 1.0)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_duplicate_value_is_a_conflict():
    engine, factory = await seeded_session_factory()
    store = SQLComputedMetricValueStore(factory)
    value = ComputedMetricValue(security_id=1, metric_id=1, date=date(2024, 6, 7), value=1.0)
    try:
        await store.create(value)
        with pytest.raises(ConflictError):
            await store.create(value)
    finally:
        await engine.dispose()


def test_only_in_memory_sqlite_shares_one_connection(tmp_path):
    memory = create_engine("sqlite+aiosqlite:///:memory:")
    on_disk = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'metrics.db'}")

    assert isinstance(memory.pool, StaticPool)
    assert not isinstance(on_disk.pool, StaticPool)


@pytest.mark.asyncio
async def test_concurrent_writes_and_reads_on_a_file_database(tmp_path):
    engine, factory = await seeded_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'metrics.db'}")
    store = SQLComputedMetricValueStore(factory)
    days = [date(2024, 1, 1) + timedelta(days=i) for i in range(30)]
    try:
        writes = [
            store.create(ComputedMetricValue(security_id=1, metric_id=1, date=day, value=float(i)))
            for i, day in enumerate(days)
        ]
        reads = [store.index(security_id=1) for _ in days]

        results = await asyncio.gather(*writes, *reads)
        created = results[:len(days)]

        assert len({c.id for c in created}) == len(days)
        assert await store.count(security_id=1, metric_id=1) == len(days)
        for value in created:
            assert (await store.retrieve(value.id)).value == value.value
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_upsert_inserts_then_overwrites():
    engine, factory = await seeded_session_factory()
    store = SQLComputedMetricValueStore(factory)
    day = date(2024, 6, 7)
    try:
        first = await store.upsert(ComputedMetricValue(security_id=1, metric_id=1, date=day, value=102.0))
        second = await store.upsert(ComputedMetricValue(security_id=1, metric_id=1, date=day, value=104.5))

        assert second.id == first.id
        assert second.value == 104.5
        assert await store.count(security_id=1, metric_id=1, day=day) == 1
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_upserts_of_one_key_never_conflict(tmp_path):
    engine, factory = await seeded_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'metrics.db'}")
    store = SQLComputedMetricValueStore(factory)
    day = date(2024, 6, 7)
    try:
        results = await asyncio.gather(*(
            store.upsert(ComputedMetricValue(security_id=1, metric_id=1, date=day, value=float(i)))
            for i in range(10)
        ))

        assert len({r.id for r in results}) == 1
        assert await store.count(security_id=1, metric_id=1, day=day) == 1
    finally:
        await engine.dispose()
