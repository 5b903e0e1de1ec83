"""SQLite persistence layer for canonical earnings records and forecasts."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from bullseye.domain.errors import NotFound
from bullseye.domain.models.earnings import (
    BOOKKEEPING_FIELDS,
    COLUMN_FIELDS,
    IDENTITY_FIELDS,
    MUTABLE_FIELDS,
    CanonicalEarningsReport,
)
from bullseye.domain.models.forecast import Forecast

logger = logging.getLogger(__name__)

_COLUMN_TYPES = {
    "company_id": "INTEGER NOT NULL",
    "duration": "TEXT NOT NULL",
    "quarter_str": "INTEGER NOT NULL",
    "year_str": "INTEGER NOT NULL",
    "period_ending": "DATE NOT NULL",
    "currency": "TEXT NOT NULL",
    "ratio_calculated": "BOOLEAN NOT NULL DEFAULT 0",
    "growth_calculated": "BOOLEAN NOT NULL DEFAULT 0",
}

_SELECT_COLUMNS = ", ".join(("id",) + COLUMN_FIELDS)


class EarningsRepository:
    """Gateway for inserting, querying and patching canonical earnings records.

    Statement errors raised by SQLAlchemy propagate unchanged; nothing here retries.
    """

    def __init__(self, database_uri: str, *, echo: bool = False) -> None:
        self._engine: Engine = create_engine(database_uri, echo=echo, future=True)
        self._ensure_schema()

    @property
    def engine(self) -> Engine:
        return self._engine

    # -----------------
    # Schema management
    # -----------------
    def _ensure_schema(self) -> None:
        """Create core tables if they do not already exist."""
        columns = ",\n              ".join(
            f"{name} {_COLUMN_TYPES.get(name, 'REAL')}" for name in COLUMN_FIELDS
        )
        ddl = [
            f"""
            CREATE TABLE IF NOT EXISTS earnings_report (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              {columns},
              UNIQUE ({", ".join(IDENTITY_FIELDS)})
            );
            """,
            """CREATE INDEX IF NOT EXISTS idx_earnings_company ON earnings_report(company_id, duration);""",
            """
            CREATE TABLE IF NOT EXISTS forecasts (
              company_id INTEGER PRIMARY KEY,
              next_earnings_date TEXT,
              next_update_date TEXT,
              last_updated TEXT
            );
            """,
        ]
        with self._engine.begin() as conn:
            for statement in ddl:
                conn.execute(text(statement))

    # ---------------
    # Earnings writes
    # ---------------
    def insert_batch(self, records: Iterable[CanonicalEarningsReport]) -> bool:
        """Insert records, silently skipping rows whose identity already exists.

        Returns ``True`` iff at least one row was newly inserted.
        """
        payload = [_record_to_row(record) for record in records]
        if not payload:
            return False

        placeholders = ", ".join(f":{name}" for name in COLUMN_FIELDS)
        stmt = text(
            f"""
            INSERT INTO earnings_report ({", ".join(COLUMN_FIELDS)})
            VALUES ({placeholders})
            ON CONFLICT({", ".join(IDENTITY_FIELDS)}) DO NOTHING
            """
        )
        inserted = 0
        with self._engine.begin() as conn:
            # Row-by-row so the per-row rowcount reports conflicts reliably.
            for row in payload:
                inserted += conn.execute(stmt, row).rowcount or 0
        logger.debug("Inserted %d of %d earnings rows", inserted, len(payload))
        return inserted > 0

    def update_fields(self, record_id: int, values: Mapping[str, Any]) -> None:
        """Patch derived fields and bookkeeping flags of one stored record."""
        illegal = sorted(set(values) - MUTABLE_FIELDS)
        if illegal:
            raise ValueError(f"Fields cannot be modified after insert: {', '.join(illegal)}")
        if not values:
            return
        assignments = ", ".join(f"{name} = :{name}" for name in values)
        params: Dict[str, Any] = dict(values)
        params["record_id"] = record_id
        stmt = text(f"UPDATE earnings_report SET {assignments} WHERE id = :record_id")
        with self._engine.begin() as conn:
            updated = conn.execute(stmt, params).rowcount
        if not updated:
            raise NotFound(f"No earnings report with id {record_id}")
        logger.debug("Updated earnings report %s: %s", record_id, ", ".join(values))

    # --------------
    # Earnings reads
    # --------------
    def load_latest(self, company_id: int, duration: str) -> CanonicalEarningsReport:
        """Most recent record of ``duration`` for the company, or ``NotFound``."""
        record = self.load_latest_if_exists(company_id, duration)
        if record is None:
            raise NotFound(f"No {duration} earnings report for company {company_id}")
        return record

    def load_latest_if_exists(self, company_id: int, duration: str) -> Optional[CanonicalEarningsReport]:
        query = text(
            f"""
            SELECT {_SELECT_COLUMNS}
            FROM earnings_report
            WHERE company_id = :company_id AND duration = :duration
            ORDER BY year_str DESC, quarter_str DESC
            LIMIT 1
            """
        )
        with self._engine.connect() as conn:
            row = conn.execute(query, {"company_id": company_id, "duration": duration}).mappings().first()
        return _row_to_record(row) if row else None

    def load_by_company(self, company_id: int, duration: Optional[str] = None) -> List[CanonicalEarningsReport]:
        """All records for the company, newest first by (year, quarter)."""
        clauses = ["company_id = :company_id"]
        params: Dict[str, Any] = {"company_id": company_id}
        if duration is not None:
            clauses.append("duration = :duration")
            params["duration"] = duration
        query = text(
            f"""
            SELECT {_SELECT_COLUMNS}
            FROM earnings_report
            WHERE {" AND ".join(clauses)}
            ORDER BY year_str DESC, quarter_str DESC, duration ASC
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query, params).mappings()
            return [_row_to_record(row) for row in rows]

    def load_same_quarter_prev_year(self, record: CanonicalEarningsReport) -> Optional[CanonicalEarningsReport]:
        query = text(
            f"""
            SELECT {_SELECT_COLUMNS}
            FROM earnings_report
            WHERE company_id = :company_id
              AND duration = :duration
              AND quarter_str = :quarter_str
              AND year_str = :year_str
            LIMIT 1
            """
        )
        params = {
            "company_id": record.company_id,
            "duration": record.duration,
            "quarter_str": record.quarter_str,
            "year_str": record.year_str - 1,
        }
        with self._engine.connect() as conn:
            row = conn.execute(query, params).mappings().first()
        return _row_to_record(row) if row else None

    # ---------
    # Forecasts
    # ---------
    def upsert_forecast(self, forecast: Forecast) -> None:
        stmt = text(
            """
            INSERT INTO forecasts (company_id, next_earnings_date, next_update_date, last_updated)
            VALUES (:company_id, :next_earnings_date, :next_update_date, :last_updated)
            ON CONFLICT(company_id) DO UPDATE SET
              next_earnings_date=excluded.next_earnings_date,
              next_update_date=excluded.next_update_date,
              last_updated=excluded.last_updated
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                stmt,
                {
                    "company_id": forecast.company_id,
                    "next_earnings_date": _iso_or_none(forecast.next_earnings_date),
                    "next_update_date": _iso_or_none(forecast.next_update_date),
                    "last_updated": _iso_or_none(forecast.last_updated),
                },
            )

    def load_forecast(self, company_id: int) -> Forecast:
        query = text(
            """
            SELECT company_id, next_earnings_date, next_update_date, last_updated
            FROM forecasts
            WHERE company_id = :company_id
            LIMIT 1
            """
        )
        with self._engine.connect() as conn:
            row = conn.execute(query, {"company_id": company_id}).mappings().first()
        if row is None:
            raise NotFound(f"No forecast for company {company_id}")
        return Forecast(
            company_id=row["company_id"],
            next_earnings_date=_datetime_or_none(row["next_earnings_date"]),
            next_update_date=_datetime_or_none(row["next_update_date"]),
            last_updated=_datetime_or_none(row["last_updated"]),
        )


def _record_to_row(record: CanonicalEarningsReport) -> Dict[str, Any]:
    row = {name: getattr(record, name) for name in COLUMN_FIELDS}
    row["period_ending"] = record.period_ending.isoformat()
    for flag in BOOKKEEPING_FIELDS:
        row[flag] = bool(row[flag])
    return row


def _row_to_record(row: Mapping[str, Any]) -> CanonicalEarningsReport:
    values = dict(row)
    period = values["period_ending"]
    if not isinstance(period, date):
        values["period_ending"] = date.fromisoformat(str(period)[:10])
    for flag in BOOKKEEPING_FIELDS:
        values[flag] = bool(values[flag])
    return CanonicalEarningsReport(**values)


def _iso_or_none(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _datetime_or_none(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
