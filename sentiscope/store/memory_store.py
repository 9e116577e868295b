"""
sentiscope/store/memory_store.py
Process-local, non-durable RecordStore. Contents are lost on exit.

One re-entrant lock guards every mutation and the snapshot step of every
read; filtering and sorting then run on the snapshot outside the lock.
Records are frozen, so handing out the stored instances is safe.
"""

import logging
import threading
from typing import Dict, List, Optional

from sentiscope.models.record import AnalysisRecord
from sentiscope.store.base import RecordStore
from sentiscope.store.query import (
    Page,
    Pagination,
    RecordFilter,
    Statistics,
    compute_statistics,
    filter_records,
    paginate,
    sort_records,
)

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):

    def __init__(self):
        self._records: Dict[str, AnalysisRecord] = {}
        self._lock = threading.RLock()

    def _snapshot(self) -> List[AnalysisRecord]:
        with self._lock:
            return list(self._records.values())

    def save(self, record: AnalysisRecord) -> AnalysisRecord:
        if not isinstance(record, AnalysisRecord):
            raise TypeError(f"expected AnalysisRecord, got {type(record).__name__}")
        with self._lock:
            self._records[record.id] = record
        logger.debug(f"Record saved | id={record.id}")
        return record

    def find_by_id(self, record_id: str) -> Optional[AnalysisRecord]:
        with self._lock:
            return self._records.get(record_id)

    def find_all(
        self,
        flt:        Optional[RecordFilter] = None,
        pagination: Optional[Pagination]   = None,
    ) -> Page:
        return paginate(filter_records(self._snapshot(), flt), pagination)

    def find_matching(self, flt: Optional[RecordFilter] = None) -> List[AnalysisRecord]:
        return sort_records(filter_records(self._snapshot(), flt), 'created_at', 'desc')

    def find_recent_by_client(self, client_name: str, limit: int = 10) -> List[AnalysisRecord]:
        matches = [r for r in self._snapshot() if r.client_name == client_name]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return matches[:max(0, int(limit))]

    def get_statistics(self, flt: Optional[RecordFilter] = None) -> Statistics:
        return compute_statistics(filter_records(self._snapshot(), flt))

    def delete_by_id(self, record_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(record_id, None) is not None
        if removed:
            logger.debug(f"Record deleted | id={record_id}")
        return removed

    def update(self, record_id: str, **fields) -> Optional[AnalysisRecord]:
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                return None
            updated = current.with_updates(**fields)
            self._records[record_id] = updated
        return updated

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
