"""
sentiscope/store/base.py
Record store contract. Every backend must give the same answers for the
same data: filtering, sorting, paging and statistics follow store.query.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from sentiscope.models.record import AnalysisRecord
from sentiscope.store.query import Page, Pagination, RecordFilter, Statistics


class RecordStore(ABC):

    @abstractmethod
    def save(self, record: AnalysisRecord) -> AnalysisRecord:
        """Insert or replace by id. Returns the stored record."""
        ...

    @abstractmethod
    def find_by_id(self, record_id: str) -> Optional[AnalysisRecord]:
        ...

    @abstractmethod
    def find_all(
        self,
        flt:        Optional[RecordFilter] = None,
        pagination: Optional[Pagination]   = None,
    ) -> Page:
        """Filter, then sort, then slice. Pagination values are clamped."""
        ...

    @abstractmethod
    def find_matching(self, flt: Optional[RecordFilter] = None) -> List[AnalysisRecord]:
        """Every record passing the filter, newest first, read in one step."""
        ...

    @abstractmethod
    def find_recent_by_client(self, client_name: str, limit: int = 10) -> List[AnalysisRecord]:
        """Exact client name match, newest first."""
        ...

    @abstractmethod
    def get_statistics(self, flt: Optional[RecordFilter] = None) -> Statistics:
        ...

    @abstractmethod
    def delete_by_id(self, record_id: str) -> bool:
        """True if a record was removed."""
        ...

    @abstractmethod
    def update(self, record_id: str, **fields) -> Optional[AnalysisRecord]:
        """
        Apply a partial update and return the new record, or None when the
        id is unknown. updated_at always advances.
        """
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...
