"""
sentiscope/store/sqlite_store.py
Durable RecordStore on SQLite. Same answers as InMemoryRecordStore for the
same data; filtering, ordering, paging and statistics run in SQL.

SCHEMA NOTES:
- One row per analysis; emotion scores and text metrics are flattened
  into columns so they can be exported or inspected with any SQLite tool
- Timestamps are stored as fixed-width UTC text (YYYY-MM-DDTHH:MM:SS.ffffffZ), so text
  comparison and ORDER BY are chronological
- Case-insensitive matching uses Python's str.lower() (registered as
  py_lower) so non-ASCII names behave the same as in memory

One connection per operation. A re-entrant lock serialises access from
threads of the same process. Any sqlite3.Error surfaces as PersistenceError.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from sentiscope.errors import PersistenceError
from sentiscope.models.record import AnalysisRecord
from sentiscope.models.values import EMOTION_NAMES, EmotionVector, SentimentCategory, TextMetrics
from sentiscope.store.base import RecordStore
from sentiscope.store.query import (
    Page,
    Pagination,
    RecordFilter,
    Statistics,
    total_pages,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = '1.0'
TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.%fZ'

# Sort field → SQL expression. Text columns compare case-insensitively.
_ORDER_COLUMNS = {
    'created_at':  'created_at',
    'updated_at':  'updated_at',
    'client_name': 'py_lower(client_name)',
    'document_id': 'py_lower(document_id)',
    'channel':     'py_lower(channel)',
    'confidence':  'confidence',
    'sentiment':   'sentiment',
}

_COLUMNS = (
    'id', 'client_name', 'document_id', 'content', 'sentiment',
    'joy', 'sadness', 'anger', 'fear', 'surprise', 'disgust',
    'word_count', 'sentence_count', 'paragraph_count',
    'average_words_per_sentence', 'readability_score',
    'processing_time_ms', 'language',
    'confidence', 'channel', 'created_at', 'updated_at',
)


def _ts(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def _parse_ts(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def _py_lower(value):
    return value.lower() if isinstance(value, str) else value


class SqliteRecordStore(RecordStore):

    def __init__(self, db_path: Path = Path('sentiscope.db')):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        with self._session() as conn:
            self._create_schema(conn)
        logger.info(f"SQLite store ready | db={self.db_path}")

    # ── INTERNAL ─────────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.create_function('py_lower', 1, _py_lower, deterministic=True)
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = None
            try:
                conn = self._connect()
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                if conn is not None:
                    conn.rollback()
                logger.error(f"SQLite operation failed | db={self.db_path} | error={e}")
                raise PersistenceError(f"Record store failure: {e}") from e
            finally:
                if conn is not None:
                    conn.close()

    @staticmethod
    def _create_schema(conn: sqlite3.Connection) -> None:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS store_meta (
                key             TEXT PRIMARY KEY,
                value           TEXT
            );

            CREATE TABLE IF NOT EXISTS analyses (
                id                          TEXT PRIMARY KEY,
                client_name                 TEXT    NOT NULL,
                document_id                 TEXT    NOT NULL,
                content                     TEXT    NOT NULL,
                sentiment                   TEXT    NOT NULL,

                joy                         REAL    NOT NULL,
                sadness                     REAL    NOT NULL,
                anger                       REAL    NOT NULL,
                fear                        REAL    NOT NULL,
                surprise                    REAL    NOT NULL,
                disgust                     REAL    NOT NULL,

                word_count                  INTEGER NOT NULL,
                sentence_count              INTEGER NOT NULL,
                paragraph_count             INTEGER NOT NULL,
                average_words_per_sentence  REAL    NOT NULL,
                readability_score           REAL    NOT NULL,
                processing_time_ms          INTEGER NOT NULL,
                language                    TEXT    NOT NULL,

                confidence                  REAL    NOT NULL,
                channel                     TEXT    NOT NULL,
                created_at                  TEXT    NOT NULL,
                updated_at                  TEXT    NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_analyses_client    ON analyses(client_name);
            CREATE INDEX IF NOT EXISTS idx_analyses_created   ON analyses(created_at);
            CREATE INDEX IF NOT EXISTS idx_analyses_sentiment ON analyses(sentiment);
            CREATE INDEX IF NOT EXISTS idx_analyses_channel   ON analyses(channel);
        """)
        conn.execute(
            "INSERT OR REPLACE INTO store_meta (key, value) VALUES ('schema_version', ?)",
            (SCHEMA_VERSION,),
        )

    @staticmethod
    def _record_to_row(record: AnalysisRecord) -> tuple:
        e, m = record.emotions, record.metrics
        return (
            record.id, record.client_name, record.document_id, record.content,
            record.sentiment.value,
            e.joy, e.sadness, e.anger, e.fear, e.surprise, e.disgust,
            m.word_count, m.sentence_count, m.paragraph_count,
            m.average_words_per_sentence, m.readability_score,
            m.processing_time_ms, m.language,
            record.confidence, record.channel,
            _ts(record.created_at), _ts(record.updated_at),
        )

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> AnalysisRecord:
        return AnalysisRecord(
            id          = row['id'],
            client_name = row['client_name'],
            document_id = row['document_id'],
            content     = row['content'],
            sentiment   = SentimentCategory(row['sentiment']),
            emotions    = EmotionVector(**{name: row[name] for name in EMOTION_NAMES}),
            metrics     = TextMetrics(
                word_count                 = row['word_count'],
                sentence_count             = row['sentence_count'],
                paragraph_count            = row['paragraph_count'],
                average_words_per_sentence = row['average_words_per_sentence'],
                readability_score          = row['readability_score'],
                processing_time_ms         = row['processing_time_ms'],
                language                   = row['language'],
            ),
            confidence  = row['confidence'],
            channel     = row['channel'],
            created_at  = _parse_ts(row['created_at']),
            updated_at  = _parse_ts(row['updated_at']),
        )

    @staticmethod
    def _where(flt: Optional[RecordFilter]) -> Tuple[str, list]:
        """Parameterised WHERE clause for the effective filter."""
        sql = " WHERE 1=1"
        params: list = []
        if flt is None:
            return sql, params
        f = flt.normalized()

        if f.client_name:
            sql += " AND instr(py_lower(client_name), ?) > 0"
            params.append(f.client_name.lower())
        if f.sentiment:
            sql += " AND sentiment = ?"
            params.append(f.sentiment.value)
        if f.channel:
            sql += " AND instr(py_lower(channel), ?) > 0"
            params.append(f.channel.lower())
        if f.date_from:
            sql += " AND created_at >= ?"
            params.append(_ts(f.date_from))
        if f.date_to:
            sql += " AND created_at <= ?"
            params.append(_ts(f.date_to))
        if f.min_confidence is not None:
            sql += " AND confidence >= ?"
            params.append(f.min_confidence)
        if f.max_confidence is not None:
            sql += " AND confidence <= ?"
            params.append(f.max_confidence)
        if f.search_text:
            needle = f.search_text.lower()
            sql += " AND (instr(py_lower(content), ?) > 0 OR instr(py_lower(document_id), ?) > 0)"
            params += [needle, needle]
        return sql, params

    # ── WRITE ────────────────────────────────────────────────

    def save(self, record: AnalysisRecord) -> AnalysisRecord:
        if not isinstance(record, AnalysisRecord):
            raise TypeError(f"expected AnalysisRecord, got {type(record).__name__}")
        placeholders = ', '.join('?' for _ in _COLUMNS)
        with self._session() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO analyses ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                self._record_to_row(record),
            )
        logger.debug(f"Record saved | id={record.id}")
        return record

    def update(self, record_id: str, **fields) -> Optional[AnalysisRecord]:
        with self._lock:
            current = self.find_by_id(record_id)
            if current is None:
                return None
            return self.save(current.with_updates(**fields))

    def delete_by_id(self, record_id: str) -> bool:
        with self._session() as conn:
            cur = conn.execute("DELETE FROM analyses WHERE id = ?", (record_id,))
            removed = cur.rowcount > 0
        if removed:
            logger.debug(f"Record deleted | id={record_id}")
        return removed

    def clear(self) -> None:
        with self._session() as conn:
            conn.execute("DELETE FROM analyses")

    # ── READ ─────────────────────────────────────────────────

    def find_by_id(self, record_id: str) -> Optional[AnalysisRecord]:
        with self._session() as conn:
            row = conn.execute(
                "SELECT * FROM analyses WHERE id = ?", (record_id,)
            ).fetchone()
        return self._row_to_record(row) if row else None

    def find_all(
        self,
        flt:        Optional[RecordFilter] = None,
        pagination: Optional[Pagination]   = None,
    ) -> Page:
        p = (pagination or Pagination()).clamped()
        where, params = self._where(flt)
        order = f"{_ORDER_COLUMNS[p.sort_by]} {p.sort_order.upper()}"

        with self._session() as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM analyses{where}", params).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM analyses{where} ORDER BY {order} LIMIT ? OFFSET ?",
                params + [p.limit, p.offset],
            ).fetchall()

        return Page(
            items       = [self._row_to_record(r) for r in rows],
            total       = total,
            page        = p.page,
            limit       = p.limit,
            total_pages = total_pages(total, p.limit),
        )

    def find_matching(self, flt: Optional[RecordFilter] = None) -> List[AnalysisRecord]:
        where, params = self._where(flt)
        with self._session() as conn:
            rows = conn.execute(
                f"SELECT * FROM analyses{where} ORDER BY created_at DESC", params
            ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def find_recent_by_client(self, client_name: str, limit: int = 10) -> List[AnalysisRecord]:
        with self._session() as conn:
            rows = conn.execute(
                "SELECT * FROM analyses WHERE client_name = ? "
                "ORDER BY created_at DESC LIMIT ?",
                (client_name, max(0, int(limit))),
            ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def get_statistics(self, flt: Optional[RecordFilter] = None) -> Statistics:
        where, params = self._where(flt)
        with self._session() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total, "
                "SUM(CASE WHEN sentiment = 'positive' THEN 1 ELSE 0 END) AS positive_count, "
                "SUM(CASE WHEN sentiment = 'neutral'  THEN 1 ELSE 0 END) AS neutral_count, "
                "SUM(CASE WHEN sentiment = 'negative' THEN 1 ELSE 0 END) AS negative_count, "
                f"AVG(confidence) AS average_confidence FROM analyses{where}",
                params,
            ).fetchone()
            if not row['total']:
                return Statistics()
            # Ties on count go to the channel that appeared first
            channel = conn.execute(
                f"SELECT channel FROM analyses{where} GROUP BY channel "
                "ORDER BY COUNT(*) DESC, MIN(created_at) ASC LIMIT 1",
                params,
            ).fetchone()

        return Statistics(
            total               = row['total'],
            positive_count      = row['positive_count'],
            neutral_count       = row['neutral_count'],
            negative_count      = row['negative_count'],
            average_confidence  = row['average_confidence'],
            most_common_channel = channel['channel'],
        )

    def count(self) -> int:
        with self._session() as conn:
            return conn.execute("SELECT COUNT(*) FROM analyses").fetchone()[0]
