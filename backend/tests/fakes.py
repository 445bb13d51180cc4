"""In-memory store implementations and a Redis double for tests."""

from datetime import date, datetime, timedelta
from typing import Callable, Optional

from redis.exceptions import WatchError

from security_service.db.interface import (
    BarStore,
    ComputedMetricValueStore,
    HolidayStore,
    MetricDefinitionStore,
    SecurityStore,
)
from security_service.schemas.market import Bar, Security
from security_service.schemas.metrics import ComputedMetricValue, MetricDefinition
from security_service.services.base import CollaboratorUnavailableError, NotFoundError

MONDAY = date(2024, 6, 3)


def trading_dates(count: int, start: date = MONDAY) -> list[date]:
    """`count` consecutive weekdays starting at `start`, oldest first."""
    days = []
    day = start
    while len(days) < count:
        if day.weekday() < 5:
            days.append(day)
        day += timedelta(days=1)
    return days


def make_bars(
    security_id: int,
    closes: list[float],
    start: date = MONDAY,
    volumes: Optional[list[int]] = None,
    spread: float = 1.0,
) -> list[Bar]:
    """Bars on consecutive weekdays for closes given oldest first; returned newest first."""
    volumes = volumes or [1000] * len(closes)
    bars = [
        Bar(
            security_id=security_id,
            date=day,
            open=close,
            high=close + spread,
            low=close - spread,
            close=close,
            volume=volume,
        )
        for day, close, volume in zip(trading_dates(len(closes), start), closes, volumes)
    ]
    return list(reversed(bars))


class FakeBarStore(BarStore):
    def __init__(self, bars: Optional[list[Bar]] = None):
        self.bars: list[Bar] = list(bars or [])
        self.window_calls = 0

    async def window(self, security_id: int, cutoff_date: date, limit: int) -> list[Bar]:
        self.window_calls += 1
        matching = [b for b in self.bars if b.security_id == security_id and b.date <= cutoff_date]
        matching.sort(key=lambda b: b.date, reverse=True)
        return matching[:limit]

    async def on_date(self, security_ids: list[int], day: date) -> list[Bar]:
        return [b for b in self.bars if b.security_id in security_ids and b.date == day]


class FakeHolidayStore(HolidayStore):
    def __init__(self, holidays: Optional[list[date]] = None, fail: bool = False):
        self.holidays = list(holidays or [])
        self.fail = fail
        self.calls: list[tuple[date, date]] = []

    async def between(self, start: date, end: date) -> list[date]:
        self.calls.append((start, end))
        if self.fail:
            raise CollaboratorUnavailableError("HolidayStore", "Database unavailable")
        return [d for d in self.holidays if start <= d <= end]


class FakeMetricStore(MetricDefinitionStore):
    def __init__(self, definitions: list[MetricDefinition]):
        self.definitions = {d.id: d for d in definitions}

    async def retrieve(self, metric_id: int) -> MetricDefinition:
        if metric_id not in self.definitions:
            raise NotFoundError("MetricDefinitionStore", f"Metric {metric_id} not found")
        return self.definitions[metric_id]

    async def index(self) -> list[MetricDefinition]:
        return list(self.definitions.values())


class FakeSecurityStore(SecurityStore):
    def __init__(self, securities: list[Security]):
        self.securities = {s.id: s for s in securities}

    async def retrieve(self, security_id: int) -> Security:
        if security_id not in self.securities:
            raise NotFoundError("SecurityStore", f"Security {security_id} not found")
        return self.securities[security_id]

    async def index(self, security_ids: list[int]) -> list[Security]:
        return [self.securities[i] for i in security_ids if i in self.securities]


class FakeValueStore(ComputedMetricValueStore):
    def __init__(self, values: Optional[list[ComputedMetricValue]] = None):
        self.values: dict[int, ComputedMetricValue] = {}
        self.index_calls = 0
        self._next_id = 1
        for value in values or []:
            self._insert(value)

    def _insert(self, value: ComputedMetricValue) -> ComputedMetricValue:
        now = datetime(2024, 6, 10, 12, 0)
        stored = value.model_copy(update={"id": self._next_id, "created_at": now, "updated_at": now})
        self.values[self._next_id] = stored
        self._next_id += 1
        return stored

    def _matching(self, security_id, metric_id, day):
        return [
            v for v in self.values.values()
            if (not security_id or v.security_id == security_id)
            and (not metric_id or v.metric_id == metric_id)
            and (day is None or v.date == day)
        ]

    async def index(self, security_id=None, metric_id=None, day=None, limit=0, offset=0):
        self.index_calls += 1
        rows = self._matching(security_id, metric_id, day)
        if limit > 0:
            rows = rows[offset:offset + limit]
        return rows

    async def count(self, security_id=None, metric_id=None, day=None) -> int:
        return len(self._matching(security_id, metric_id, day))

    async def retrieve(self, value_id: int) -> ComputedMetricValue:
        if value_id not in self.values:
            raise NotFoundError("SecurityMetricStore", f"Security metric {value_id} not found")
        return self.values[value_id]

    async def create(self, value: ComputedMetricValue) -> ComputedMetricValue:
        return self._insert(value)

    async def update(self, value_id: int, value: float) -> ComputedMetricValue:
        current = await self.retrieve(value_id)
        updated = current.model_copy(update={"value": value})
        self.values[value_id] = updated
        return updated

    async def upsert(self, value: ComputedMetricValue) -> ComputedMetricValue:
        existing = self._matching(value.security_id, value.metric_id, value.date)
        if existing:
            return await self.update(existing[0].id, value.value)
        return self._insert(value)


class FakePipeline:
    """Transaction pipeline: WATCH, immediate reads, then MULTI-buffered writes."""

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._watched: dict[str, Optional[str]] = {}
        self._queued: list[tuple[str, tuple, dict]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self._watched.clear()
        self._queued.clear()

    async def watch(self, *keys):
        for key in keys:
            self._watched[key] = self._redis.data.get(key)

    async def get(self, key):
        return await self._redis.get(key)

    def multi(self):
        pass

    def _queue(self, name, *args, **kwargs):
        self._queued.append((name, args, kwargs))
        return self

    def set(self, key, value, ex=None):
        return self._queue("set", key, value, ex=ex)

    def incr(self, key):
        return self._queue("incr", key)

    def expire(self, key, seconds):
        return self._queue("expire", key, seconds)

    def delete(self, *keys):
        return self._queue("delete", *keys)

    async def execute(self):
        if self._redis.before_exec is not None:
            self._redis.before_exec()
        for key, seen in self._watched.items():
            if self._redis.data.get(key) != seen:
                raise WatchError(f"Watched variable changed: {key}")
        return [await getattr(self._redis, name)(*args, **kwargs) for name, args, kwargs in self._queued]


class FakeRedis:
    """The slice of redis.asyncio.Redis the metric cache uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.expiries: dict[str, int] = {}
        self.get_calls = 0
        # called between WATCH and EXEC, to simulate a concurrent writer
        self.before_exec: Optional[Callable[[], None]] = None

    async def ping(self):
        return True

    async def get(self, key):
        self.get_calls += 1
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiries[key] = ex
        return True

    async def incr(self, key):
        self.data[key] = str(int(self.data.get(key, "0")) + 1)
        return int(self.data[key])

    async def expire(self, key, seconds):
        self.expiries[key] = seconds
        return key in self.data

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class BrokenRedis(FakeRedis):
    """Every call fails as if the server went away."""

    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis down")

    async def delete(self, *keys):
        raise ConnectionError("redis down")

    def pipeline(self, transaction=True):
        raise ConnectionError("redis down")
