"""
Repository pattern for usage analytics.

Stores usage events in a SQLite ledger and aggregates them
into totals and per-day statistics.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Tuple

from .db import DEFAULT_DB_PATH, get_connection
from .models import UsageEvent

RECENT_REQUESTS_LIMIT = 20
MAX_RANGE_DAYS = 31

_COLUMNS = (
    "timestamp, provider, model, original_model, cache_hit, cost, tokens, "
    "recommendation_reason, savings, error"
)


@dataclass(frozen=True)
class DailyStats:
    """Aggregated usage for one day (or a range)."""
    requests: int = 0
    cost: float = 0.0
    tokens: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    savings: float = 0.0


@dataclass(frozen=True)
class UsageStats:
    """Overall usage statistics."""
    total_requests: int
    total_cost: float
    total_tokens: int
    cache_hits: int
    cache_misses: int
    total_savings: float
    recent_requests: List[UsageEvent] = field(default_factory=list)

    @property
    def cache_hit_rate(self) -> float:
        """Cache hit rate as a percentage."""
        if self.total_requests == 0:
            return 0.0
        return self.cache_hits / self.total_requests * 100


@dataclass(frozen=True)
class RangeStats:
    """Per-day statistics over a date range with totals."""
    days: Dict[str, DailyStats]
    totals: DailyStats


class UsageRepository:
    """Repository for recording and reading usage events.

    Implements the reporter interface the orchestrator expects via report().
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def report(self, event: UsageEvent) -> None:
        """Record a usage event."""
        insert_usage_event(event, self.db_path)

    def get_recent_events(self, limit: int = RECENT_REQUESTS_LIMIT) -> List[UsageEvent]:
        """Most recent events, newest first."""
        return fetch_recent_usage_events(limit=limit, db_path=self.db_path)

    def get_stats(self) -> UsageStats:
        """Get overall usage statistics.

        Returns:
            UsageStats with totals and the most recent requests
        """
        conn = get_connection(self.db_path)
        try:
            row = conn.execute("""
                SELECT
                    COUNT(*),
                    SUM(cost),
                    SUM(tokens),
                    SUM(CASE WHEN cache_hit = 1 THEN 1 ELSE 0 END),
                    SUM(CASE WHEN cache_hit = 0 THEN 1 ELSE 0 END),
                    SUM(savings)
                FROM usage_event
            """).fetchone()
        finally:
            conn.close()

        return UsageStats(
            total_requests=row[0] or 0,
            total_cost=float(row[1] or 0),
            total_tokens=row[2] or 0,
            cache_hits=row[3] or 0,
            cache_misses=row[4] or 0,
            total_savings=float(row[5] or 0),
            recent_requests=self.get_recent_events(),
        )

    def get_daily_stats(self, start: date, end: date) -> RangeStats:
        """Get per-day statistics between two dates (inclusive).

        The range is capped at 31 days from start.

        Args:
            start: First day
            end: Last day

        Returns:
            RangeStats with an entry for every day that had traffic

        Raises:
            ValueError: If start is after end
        """
        if start > end:
            raise ValueError("start must not be after end")
        last = min(end, start + timedelta(days=MAX_RANGE_DAYS - 1))

        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT
                    substr(timestamp, 1, 10) AS day,
                    COUNT(*),
                    SUM(cost),
                    SUM(tokens),
                    SUM(CASE WHEN cache_hit = 1 THEN 1 ELSE 0 END),
                    SUM(CASE WHEN cache_hit = 0 THEN 1 ELSE 0 END),
                    SUM(savings)
                FROM usage_event
                WHERE substr(timestamp, 1, 10) BETWEEN ? AND ?
                GROUP BY day
                ORDER BY day
            """, (start.isoformat(), last.isoformat()))
            days = {
                row[0]: DailyStats(
                    requests=row[1],
                    cost=float(row[2] or 0),
                    tokens=row[3] or 0,
                    cache_hits=row[4] or 0,
                    cache_misses=row[5] or 0,
                    savings=float(row[6] or 0),
                )
                for row in cursor.fetchall()
            }
        finally:
            conn.close()

        totals = DailyStats(
            requests=sum(d.requests for d in days.values()),
            cost=sum(d.cost for d in days.values()),
            tokens=sum(d.tokens for d in days.values()),
            cache_hits=sum(d.cache_hits for d in days.values()),
            cache_misses=sum(d.cache_misses for d in days.values()),
            savings=sum(d.savings for d in days.values()),
        )
        return RangeStats(days=days, totals=totals)

    def clear_all(self) -> None:
        """Delete every recorded event."""
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM usage_event")
            conn.commit()
        finally:
            conn.close()


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the usage_event table if it doesn't exist.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS usage_event (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                provider TEXT NOT NULL,
                model TEXT NOT NULL,
                original_model TEXT,
                cache_hit INTEGER NOT NULL,
                cost REAL NOT NULL,
                tokens INTEGER NOT NULL,
                recommendation_reason TEXT,
                savings REAL NOT NULL DEFAULT 0,
                error TEXT
            )
        """)
        conn.commit()
    finally:
        conn.close()


def insert_usage_event(event: UsageEvent, db_path: str = DEFAULT_DB_PATH) -> None:
    """Insert a single usage event into the ledger.

    Args:
        event: The usage event to record
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute(
            f"INSERT INTO usage_event ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                event.timestamp.isoformat(),
                event.provider,
                event.model,
                event.original_model,
                1 if event.cache_hit else 0,
                event.cost,
                event.tokens,
                event.recommendation_reason,
                event.savings,
                event.error,
            ),
        )
        conn.commit()
    finally:
        conn.close()


def fetch_recent_usage_events(
    limit: int = 100,
    db_path: str = DEFAULT_DB_PATH
) -> List[UsageEvent]:
    """Fetch recent usage events.

    Args:
        limit: Maximum number of events to return
        db_path: Path to SQLite database file

    Returns:
        List of usage events ordered by timestamp (newest first)
    """
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            f"SELECT {_COLUMNS} FROM usage_event ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,),
        )
        return [_row_to_event(row) for row in cursor.fetchall()]
    finally:
        conn.close()


def _row_to_event(row: Tuple) -> UsageEvent:
    return UsageEvent(
        timestamp=datetime.fromisoformat(row[0]),
        provider=row[1],
        model=row[2],
        original_model=row[3],
        cache_hit=bool(row[4]),
        cost=row[5],
        tokens=row[6],
        recommendation_reason=row[7],
        savings=row[8],
        error=row[9],
    )
