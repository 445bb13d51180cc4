"""
SQLAlchemy store implementations.

Every query opens its own session from the shared factory so stores are
safe to call from concurrently running tasks.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncGenerator, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from security_service.db.interface import (
    BarStore,
    ComputedMetricValueStore,
    HolidayStore,
    MetricDefinitionStore,
    SecurityStore,
)
from security_service.db.models import (
    MarketHolidayRow,
    MetricRow,
    SecurityMetricRow,
    SecurityRow,
    SecurityStatRow,
)
from security_service.schemas.market import Bar, Security
from security_service.schemas.metrics import ComputedMetricValue, MetricDefinition, MetricFamily
from security_service.services.base import (
    CollaboratorUnavailableError,
    ConflictError,
    NotFoundError,
    UnsupportedMetricFamilyError,
)

logger = logging.getLogger(__name__)


class _SQLStore:
    """Shared session handling; database errors surface as CollaboratorUnavailableError."""

    name = "SQLStore"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self._session_factory() as session:
                yield session
        except IntegrityError as e:
            raise ConflictError(self.name, f"Unique constraint violated: {e.orig}") from e
        except SQLAlchemyError as e:
            logger.error(f"{self.name} query failed: {e}")
            raise CollaboratorUnavailableError(self.name, "Database unavailable", {"error": str(e)}) from e


class SQLBarStore(_SQLStore, BarStore):
    name = "BarStore"

    async def window(self, security_id: int, cutoff_date: date, limit: int) -> list[Bar]:
        query = (
            select(SecurityStatRow)
            .where(SecurityStatRow.security_id == security_id)
            .where(SecurityStatRow.date <= cutoff_date)
            .order_by(SecurityStatRow.date.desc())
            .limit(limit)
        )
        async with self._session() as session:
            rows = (await session.execute(query)).scalars().all()
        return [Bar.model_validate(row) for row in rows]

    async def on_date(self, security_ids: list[int], day: date) -> list[Bar]:
        if not security_ids:
            return []
        query = (
            select(SecurityStatRow)
            .where(SecurityStatRow.security_id.in_(security_ids))
            .where(SecurityStatRow.date == day)
        )
        async with self._session() as session:
            rows = (await session.execute(query)).scalars().all()
        return [Bar.model_validate(row) for row in rows]


class SQLHolidayStore(_SQLStore, HolidayStore):
    name = "HolidayStore"

    async def between(self, start: date, end: date) -> list[date]:
        query = (
            select(MarketHolidayRow.date)
            .where(MarketHolidayRow.date >= start)
            .where(MarketHolidayRow.date <= end)
        )
        async with self._session() as session:
            return list((await session.execute(query)).scalars().all())


def _to_definition(row: MetricRow) -> MetricDefinition:
    try:
        family = MetricFamily(row.type)
    except ValueError:
        raise UnsupportedMetricFamilyError(
            "MetricDefinitionStore",
            f"Metric {row.id} has unsupported type {row.type!r}",
        )
    return MetricDefinition(id=row.id, name=row.name, family=family, period=row.period)


class SQLMetricDefinitionStore(_SQLStore, MetricDefinitionStore):
    name = "MetricDefinitionStore"

    async def retrieve(self, metric_id: int) -> MetricDefinition:
        async with self._session() as session:
            row = await session.get(MetricRow, metric_id)
        if row is None:
            raise NotFoundError(self.name, f"Metric {metric_id} not found", {"metric_id": metric_id})
        return _to_definition(row)

    async def index(self) -> list[MetricDefinition]:
        async with self._session() as session:
            rows = (await session.execute(select(MetricRow).order_by(MetricRow.id))).scalars().all()

        definitions = []
        for row in rows:
            try:
                definitions.append(_to_definition(row))
            except UnsupportedMetricFamilyError as e:
                logger.warning(f"Skipping metric definition: {e.message}")
        return definitions


class SQLSecurityStore(_SQLStore, SecurityStore):
    name = "SecurityStore"

    async def retrieve(self, security_id: int) -> Security:
        async with self._session() as session:
            row = await session.get(SecurityRow, security_id)
        if row is None:
            raise NotFoundError(self.name, f"Security {security_id} not found", {"security_id": security_id})
        return Security.model_validate(row)

    async def index(self, security_ids: list[int]) -> list[Security]:
        if not security_ids:
            return []
        query = select(SecurityRow).where(SecurityRow.id.in_(security_ids))
        async with self._session() as session:
            rows = (await session.execute(query)).scalars().all()
        return [Security.model_validate(row) for row in rows]


class SQLComputedMetricValueStore(_SQLStore, ComputedMetricValueStore):
    name = "SecurityMetricStore"

    @staticmethod
    def _filtered(query, security_id, metric_id, day):
        if security_id:
            query = query.where(SecurityMetricRow.security_id == security_id)
        if metric_id:
            query = query.where(SecurityMetricRow.metric_id == metric_id)
        if day is not None:
            query = query.where(SecurityMetricRow.date == day)
        return query

    async def index(
        self,
        security_id: Optional[int] = None,
        metric_id: Optional[int] = None,
        day: Optional[date] = None,
        limit: int = 0,
        offset: int = 0,
    ) -> list[ComputedMetricValue]:
        query = self._filtered(select(SecurityMetricRow), security_id, metric_id, day)
        query = query.order_by(SecurityMetricRow.id)
        if limit > 0:
            query = query.limit(limit).offset(offset)

        async with self._session() as session:
            rows = (await session.execute(query)).scalars().all()
        return [ComputedMetricValue.model_validate(row) for row in rows]

    async def count(
        self,
        security_id: Optional[int] = None,
        metric_id: Optional[int] = None,
        day: Optional[date] = None,
    ) -> int:
        query = self._filtered(select(func.count(SecurityMetricRow.id)), security_id, metric_id, day)
        async with self._session() as session:
            return (await session.execute(query)).scalar_one()

    async def retrieve(self, value_id: int) -> ComputedMetricValue:
        async with self._session() as session:
            row = await session.get(SecurityMetricRow, value_id)
        if row is None:
            raise NotFoundError(self.name, f"Security metric {value_id} not found", {"id": value_id})
        return ComputedMetricValue.model_validate(row)

    async def create(self, value: ComputedMetricValue) -> ComputedMetricValue:
        now = datetime.utcnow()
        row = SecurityMetricRow(
            security_id=value.security_id,
            metric_id=value.metric_id,
            date=value.date,
            value=value.value,
            created_at=now,
            updated_at=now,
        )
        async with self._session() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
        return ComputedMetricValue.model_validate(row)

    async def update(self, value_id: int, value: float) -> ComputedMetricValue:
        async with self._session() as session:
            row = await session.get(SecurityMetricRow, value_id)
            if row is None:
                raise NotFoundError(self.name, f"Security metric {value_id} not found", {"id": value_id})
            row.value = value
            row.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(row)
        return ComputedMetricValue.model_validate(row)

    async def upsert(self, value: ComputedMetricValue) -> ComputedMetricValue:
        # one statement, so concurrent upserts of a key never raise IntegrityError
        now = datetime.utcnow()
        statement = sqlite_insert(SecurityMetricRow).values(
            security_id=value.security_id,
            metric_id=value.metric_id,
            date=value.date,
            value=value.value,
            created_at=now,
            updated_at=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["security_id", "metric_id", "date"],
            set_={"value": statement.excluded["value"], "updated_at": now},
        ).returning(SecurityMetricRow)

        async with self._session() as session:
            row = (await session.scalars(statement)).one()
            await session.commit()
        return ComputedMetricValue.model_validate(row)
