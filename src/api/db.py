"""
Pulse Analyses Store
====================

Persistence collaborator for structured analyses.

The aggregators only need "a sequence of AnalysisRecord"; this module is
the boundary that provides it:
    - PostgresAnalysisRepository: psycopg2 with a lazily created pool
    - InMemoryAnalysisRepository: tests, CLI runs without a database

List fields are stored as JSON text, the same shape CSV exports carry,
so records read back go through the same defensive parsing.
"""

import json
import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.data.config import DatabaseConfig
from src.data.data_models import AnalysisRecord

logger = logging.getLogger(__name__)


ANALYSIS_COLUMNS = (
    "id", "client_id", "competitor_id", "url", "source_type",
    "overall_sentiment", "sentiment_score", "confidence",
    "themes", "sentiment_per_theme", "pain_points", "praise_points",
    "competitor_mentions", "feature_requests",
    "key_quote", "summary", "created_at",
)

JSON_COLUMNS = (
    "themes", "sentiment_per_theme", "pain_points", "praise_points",
    "competitor_mentions", "feature_requests",
)


def _serialize(record: AnalysisRecord) -> Dict[str, Any]:
    """Row values for the analyses table."""
    values = record.to_dict()
    for column in JSON_COLUMNS:
        value = values.get(column)
        if value is not None and not isinstance(value, str):
            values[column] = json.dumps(value)
    values["id"] = values.get("id") or str(uuid.uuid4())
    values["created_at"] = values.get("created_at") or datetime.now(timezone.utc).isoformat()
    return values


class InMemoryAnalysisRepository:
    """
    Process-local store, newest first on read like the table query.

    Saves may arrive from worker threads (deep dives offload them).
    """

    def __init__(self):
        self._rows: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def save(self, record: AnalysisRecord) -> AnalysisRecord:
        values = _serialize(record)
        with self._lock:
            self._rows.append(values)
        return AnalysisRecord.from_dict(values)

    def list_records(
        self,
        client_id: Optional[str] = None,
        competitor_id: Optional[str] = None,
    ) -> List[AnalysisRecord]:
        with self._lock:
            snapshot = list(self._rows)
        rows = [
            row for row in reversed(snapshot)
            if (client_id is None or row.get("client_id") == client_id)
            and (competitor_id is None or row.get("competitor_id") == competitor_id)
        ]
        return [AnalysisRecord.from_dict(row) for row in rows]

    def __len__(self) -> int:
        return len(self._rows)


class PostgresAnalysisRepository:
    """
    Analyses table in PostgreSQL.

    Usage:
        repo = PostgresAnalysisRepository()
        repo.save(record)
        records = repo.list_records(client_id="...")
    """

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self._pool = None

    def get_pool(self):
        """Get or create the connection pool (lazy)."""
        if self._pool is None:
            from psycopg2 import pool as pg_pool

            self._pool = pg_pool.ThreadedConnectionPool(
                self.config.pool_min_size,
                self.config.pool_max_size,
                **self.config.connection_dict,
            )
            logger.info(f"DB pool created: {self.config.host}:{self.config.port}/{self.config.name}")
        return self._pool

    def close(self):
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("DB pool closed")

    @contextmanager
    def connection(self):
        pool = self.get_pool()
        conn = pool.getconn()
        try:
            yield conn
        finally:
            pool.putconn(conn)

    def save(self, record: AnalysisRecord) -> AnalysisRecord:
        """Insert one analysis; rolls back and re-raises on failure."""
        values = _serialize(record)
        placeholders = ", ".join(["%s"] * len(ANALYSIS_COLUMNS))
        with self.connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        f"INSERT INTO analyses ({', '.join(ANALYSIS_COLUMNS)}) VALUES ({placeholders})",
                        tuple(values.get(c) for c in ANALYSIS_COLUMNS),
                    )
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Failed to save analysis {values['url']}: {e}")
                raise

        logger.info(f"Saved analysis {values['id']} ({values['source_type']})")
        return AnalysisRecord.from_dict(values)

    def list_records(
        self,
        client_id: Optional[str] = None,
        competitor_id: Optional[str] = None,
        limit: int = 500,
    ) -> List[AnalysisRecord]:
        """Analyses filtered by client / competitor, newest first."""
        clauses, params = [], []
        if client_id is not None:
            clauses.append("client_id = %s")
            params.append(client_id)
        if competitor_id is not None:
            clauses.append("competitor_id = %s")
            params.append(competitor_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {', '.join(ANALYSIS_COLUMNS)} FROM analyses {where} "
                    f"ORDER BY created_at DESC LIMIT %s",
                    (*params, limit),
                )
                rows = cur.fetchall()

        return [AnalysisRecord.from_dict(dict(zip(ANALYSIS_COLUMNS, row))) for row in rows]

    def check_health(self) -> Dict[str, Any]:
        """Non-raising connectivity probe for /api/health."""
        try:
            with self.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
                    cur.fetchone()
            return {"status": "connected"}
        except Exception as e:
            logger.warning(f"DB health check failed: {e}")
            return {"status": "disconnected", "error": str(e)}


def get_repository(config: Optional[DatabaseConfig] = None):
    """Postgres store when DATABASE_PASSWORD is configured, in-memory otherwise."""
    config = config or DatabaseConfig()
    if config.enabled:
        return PostgresAnalysisRepository(config)
    logger.info("DATABASE_PASSWORD not set - analyses kept in memory")
    return InMemoryAnalysisRepository()
