"""
SQLAlchemy models for the security service database.

Tables mirror the persistence layer the metrics pipeline reads from:
- Securities and their daily bars (security_stats)
- Market holidays
- Metric definitions and computed metric values
"""

from datetime import datetime

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class SecurityRow(Base):
    """Listed security."""
    __tablename__ = "securities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    isin = Column(String(12), nullable=False, unique=True)
    symbol = Column(String(20), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    industry = Column(String(50), nullable=True)
    ltp = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SecurityStatRow(Base):
    """
    Daily OHLCV bar for a security.
    Populated by the market-data ingestion job.
    """
    __tablename__ = "security_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    security_id = Column(Integer, ForeignKey("securities.id"), nullable=False)
    date = Column(Date, nullable=False)
    open = Column(Float, nullable=False)
    high = Column(Float, nullable=False)
    low = Column(Float, nullable=False)
    close = Column(Float, nullable=False)
    volume = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("security_id", "date", name="uq_security_stats_security_date"),
        Index("ix_security_stats_security_date", "security_id", "date"),
    )


class MarketHolidayRow(Base):
    """Exchange holiday."""
    __tablename__ = "market_holidays"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    description = Column(String(200), default="")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class MetricRow(Base):
    """Metric definition, e.g. SMA_20."""
    __tablename__ = "metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    type = Column(String(10), nullable=False)  # SMA, EMA, RSI, ROC, ATR, VMA
    period = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SecurityMetricRow(Base):
    """Computed indicator value for a security on a trading day."""
    __tablename__ = "security_metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    security_id = Column(Integer, ForeignKey("securities.id"), nullable=False)
    metric_id = Column(Integer, ForeignKey("metrics.id"), nullable=False)
    date = Column(Date, nullable=False)
    value = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("security_id", "metric_id", "date", name="uq_security_metrics_key"),
        Index("ix_security_metrics_security_date", "security_id", "date"),
    )
