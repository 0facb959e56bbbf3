"""
Performance store contract and implementations.

The analytics engine reads ``(date, portfolio_value)`` snapshots from a
``PerformanceStore`` and writes computed results back as new records. Stores
are injected into calculators; no calculator opens its own connection.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd
from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, Integer, MetaData, String, Table,
    Text, create_engine, delete, select, text,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from ..exceptions import PersistenceError, StoreUnavailableError

logger = logging.getLogger(__name__)


DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """Normalise a date, datetime or ISO string to a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Unsupported date value: {value!r}")


@dataclass(frozen=True)
class PortfolioSnapshot:
    """One portfolio valuation."""
    date: date
    portfolio_value: float

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'PortfolioSnapshot':
        return cls(date=to_date(record['date']),
                   portfolio_value=float(record['portfolio_value']))

    def to_dict(self) -> Dict[str, Any]:
        return {'date': self.date.isoformat(), 'portfolio_value': self.portfolio_value}


class PerformanceStore(ABC):
    """Abstract base class for performance persistence."""

    @abstractmethod
    def get_performance_metrics(self, start_date: DateLike,
                                end_date: DateLike) -> List[PortfolioSnapshot]:
        """Get snapshots in an inclusive date range. Ordering is not guaranteed."""
        pass

    @abstractmethod
    def get_daily_performance(self, start_date: DateLike,
                              end_date: DateLike) -> List[Dict[str, Any]]:
        """Get full daily performance rows, most recent first."""
        pass

    @abstractmethod
    def record_daily_performance(self, fields: Dict[str, Any]) -> None:
        """Insert or replace the daily performance row for ``fields['date']``."""
        pass

    @abstractmethod
    def record_risk_metrics(self, fields: Dict[str, Any]) -> None:
        """Append a risk metrics record."""
        pass

    @abstractmethod
    def record_alpha_test(self, fields: Dict[str, Any]) -> None:
        """Append an alpha test record."""
        pass

    @abstractmethod
    def create_alert(self, fields: Dict[str, Any]) -> None:
        """Append a performance alert."""
        pass

    @abstractmethod
    def get_unresolved_alerts(self) -> List[Dict[str, Any]]:
        """Get unresolved alerts, most recent first."""
        pass

    @abstractmethod
    def resolve_alert(self, alert_id: int) -> bool:
        """Mark an alert resolved; ``False`` if no such alert exists."""
        pass


class InMemoryPerformanceStore(PerformanceStore):
    """In-memory implementation for development and testing.

    Snapshots are returned newest first, like the SQL store.
    """

    def __init__(self, snapshots: Optional[Iterable[PortfolioSnapshot]] = None):
        self._lock = threading.Lock()
        self._daily: Dict[date, Dict[str, Any]] = {}
        self.risk_metrics: List[Dict[str, Any]] = []
        self.alpha_tests: List[Dict[str, Any]] = []
        self.alerts: List[Dict[str, Any]] = []
        self._next_alert_id = 1

        for snapshot in snapshots or []:
            self.add_snapshot(snapshot.date, snapshot.portfolio_value)

    def add_snapshot(self, snapshot_date: DateLike, portfolio_value: float) -> None:
        """Record a bare valuation for a date."""
        self.record_daily_performance({'date': snapshot_date,
                                       'portfolio_value': portfolio_value})

    def get_performance_metrics(self, start_date: DateLike,
                                end_date: DateLike) -> List[PortfolioSnapshot]:
        return [PortfolioSnapshot.from_record(row)
                for row in self.get_daily_performance(start_date, end_date)]

    def get_daily_performance(self, start_date: DateLike,
                              end_date: DateLike) -> List[Dict[str, Any]]:
        start, end = to_date(start_date), to_date(end_date)
        with self._lock:
            rows = [dict(row) for day, row in self._daily.items() if start <= day <= end]
        return sorted(rows, key=lambda row: row['date'], reverse=True)

    def record_daily_performance(self, fields: Dict[str, Any]) -> None:
        row = dict(fields)
        row['date'] = to_date(row['date'])
        row['portfolio_value'] = float(row['portfolio_value'])
        with self._lock:
            self._daily[row['date']] = row
        logger.debug(f"Recorded daily performance for {row['date']}")

    def record_risk_metrics(self, fields: Dict[str, Any]) -> None:
        with self._lock:
            self.risk_metrics.append({**fields, 'created_at': datetime.now()})

    def record_alpha_test(self, fields: Dict[str, Any]) -> None:
        with self._lock:
            self.alpha_tests.append({**fields, 'created_at': datetime.now()})

    def create_alert(self, fields: Dict[str, Any]) -> None:
        with self._lock:
            self.alerts.append({**fields, 'id': self._next_alert_id,
                                'is_resolved': False, 'created_at': datetime.now()})
            self._next_alert_id += 1

    def get_unresolved_alerts(self) -> List[Dict[str, Any]]:
        with self._lock:
            unresolved = [dict(alert) for alert in self.alerts if not alert['is_resolved']]
        return sorted(unresolved, key=lambda alert: alert['id'], reverse=True)

    def resolve_alert(self, alert_id: int) -> bool:
        with self._lock:
            for alert in self.alerts:
                if alert['id'] == alert_id:
                    alert['is_resolved'] = True
                    return True
        return False


metadata = MetaData()

performance_metrics_table = Table(
    'performance_metrics', metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('date', Date, nullable=False, unique=True),
    Column('portfolio_value', Float, nullable=False),
    Column('daily_return', Float),
    Column('cumulative_return', Float),
    Column('benchmark_return', Float),
    Column('excess_return', Float),
    Column('sharpe_ratio', Float),
    Column('max_drawdown', Float),
    Column('volatility', Float),
    Column('created_at', DateTime, default=datetime.now),
)

risk_metrics_table = Table(
    'risk_metrics', metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('date', Date, nullable=False),
    Column('portfolio_beta', Float),
    Column('var_95', Float),
    Column('var_99', Float),
    Column('expected_shortfall', Float),
    Column('portfolio_correlation', Float),
    Column('concentration_risk', Float),
    Column('created_at', DateTime, default=datetime.now),
)

alpha_tests_table = Table(
    'alpha_tests', metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('test_period_start', Date, nullable=False),
    Column('test_period_end', Date, nullable=False),
    Column('test_type', String(64), nullable=False),
    Column('t_statistic', Float),
    Column('p_value', Float),
    Column('confidence_level', Float),
    Column('is_significant', Boolean),
    Column('alpha_estimate', Float),
    Column('standard_error', Float),
    Column('created_at', DateTime, default=datetime.now),
)

performance_alerts_table = Table(
    'performance_alerts', metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('alert_type', String(64), nullable=False),
    Column('severity', String(16), nullable=False),
    Column('message', Text, nullable=False),
    Column('metric_value', Float),
    Column('threshold_value', Float),
    Column('is_resolved', Boolean, default=False),
    Column('created_at', DateTime, default=datetime.now),
)


class SQLPerformanceStore(PerformanceStore):
    """SQLAlchemy-backed store (SQLite or PostgreSQL)."""

    DATE_COLUMNS = ('date', 'test_period_start', 'test_period_end')

    def __init__(self, connection_string: str = "sqlite:///performance.db",
                 echo: bool = False, create_schema: bool = True):
        self.connection_string = connection_string

        engine_kwargs: Dict[str, Any] = {'echo': echo}
        if connection_string in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each checkout sees an empty database
            engine_kwargs.update(poolclass=StaticPool,
                                 connect_args={'check_same_thread': False})

        self.engine = create_engine(connection_string, **engine_kwargs)
        if create_schema:
            self.initialize_schema()

        logger.info(f"SQL performance store initialized: {self.engine.url.drivername}")

    def initialize_schema(self) -> None:
        """Create all performance tables if they do not exist."""
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create performance schema: {e}")
            raise StoreUnavailableError(f"Failed to create performance schema: {e}") from e

    def check_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Performance store connection check failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()

    def get_performance_metrics(self, start_date: DateLike,
                                end_date: DateLike) -> List[PortfolioSnapshot]:
        return [PortfolioSnapshot.from_record(row)
                for row in self.get_daily_performance(start_date, end_date)]

    def get_daily_performance(self, start_date: DateLike,
                              end_date: DateLike) -> List[Dict[str, Any]]:
        table = performance_metrics_table
        query = (select(table)
                 .where(table.c.date >= to_date(start_date))
                 .where(table.c.date <= to_date(end_date))
                 .order_by(table.c.date.desc()))
        return self._read(query, "daily performance")

    def record_daily_performance(self, fields: Dict[str, Any]) -> None:
        row = self._row_for(performance_metrics_table, fields)
        table = performance_metrics_table
        try:
            with self.engine.begin() as conn:
                conn.execute(delete(table).where(table.c.date == row['date']))
                conn.execute(table.insert().values(**row))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to record daily performance: {e}") from e

    def record_risk_metrics(self, fields: Dict[str, Any]) -> None:
        self._insert(risk_metrics_table, fields)

    def record_alpha_test(self, fields: Dict[str, Any]) -> None:
        self._insert(alpha_tests_table, fields)

    def create_alert(self, fields: Dict[str, Any]) -> None:
        self._insert(performance_alerts_table, fields)

    def get_unresolved_alerts(self) -> List[Dict[str, Any]]:
        table = performance_alerts_table
        query = (select(table)
                 .where(table.c.is_resolved.is_(False))
                 .order_by(table.c.created_at.desc(), table.c.id.desc()))
        return self._read(query, "unresolved alerts")

    def resolve_alert(self, alert_id: int) -> bool:
        table = performance_alerts_table
        try:
            with self.engine.begin() as conn:
                result = conn.execute(table.update()
                                      .where(table.c.id == alert_id)
                                      .values(is_resolved=True))
            return result.rowcount > 0
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to resolve alert {alert_id}: {e}") from e

    def _read(self, query, description: str) -> List[Dict[str, Any]]:
        try:
            with self.engine.connect() as conn:
                return [dict(row) for row in conn.execute(query).mappings().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error reading {description}: {e}")
            raise StoreUnavailableError(f"Failed to read {description}: {e}") from e

    def _insert(self, table: Table, fields: Dict[str, Any]) -> None:
        row = self._row_for(table, fields)
        try:
            with self.engine.begin() as conn:
                conn.execute(table.insert().values(**row))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to write {table.name}: {e}") from e

    def _row_for(self, table: Table, fields: Dict[str, Any]) -> Dict[str, Any]:
        row = {}
        for key, value in fields.items():
            if key not in table.c or key == 'id':
                logger.debug(f"Ignoring field {key} for table {table.name}")
                continue
            if key in self.DATE_COLUMNS and value is not None:
                value = to_date(value)
            row[key] = value
        return row


def load_snapshot_frame(store: PerformanceStore, start_date: DateLike,
                        end_date: DateLike) -> pd.DataFrame:
    """Fetch snapshots and return them sorted ascending, one row per date.

    Read failures surface as ``StoreUnavailableError``.
    """
    try:
        snapshots = store.get_performance_metrics(start_date, end_date)
    except StoreUnavailableError:
        raise
    except Exception as e:
        logger.error(f"Error fetching performance metrics: {e}")
        raise StoreUnavailableError(f"Failed to fetch performance metrics: {e}") from e

    frame = pd.DataFrame(
        [(to_date(s.date), float(s.portfolio_value)) for s in snapshots],
        columns=['date', 'portfolio_value'],
    )
    frame = (frame.sort_values('date', kind='mergesort')
                  .drop_duplicates('date', keep='last')
                  .reset_index(drop=True))
    return frame


def persist_quietly(write: Callable[[Dict[str, Any]], None], fields: Dict[str, Any],
                    description: str) -> bool:
    """Run a store write; failures are logged and reported as ``False``."""
    try:
        write(fields)
        return True
    except Exception as e:
        logger.warning(f"Failed to persist {description}: {e}")
        return False
