"""
sentiscope/usecases/queries.py
Read-side use cases over a RecordStore.

GetHistoricalAnalyses validates explicit pagination strictly (bad input is
a ValidationError); FilterAnalyses clamps it. Both share the lenient
filter policy of store.query.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sentiscope.errors import ValidationError
from sentiscope.models.record import AnalysisRecord
from sentiscope.models.values import SentimentCategory
from sentiscope.store.base import RecordStore
from sentiscope.store.query import (
    DEFAULT_LIMIT,
    DEFAULT_ORDER,
    DEFAULT_PAGE,
    DEFAULT_SORT,
    MAX_LIMIT,
    MIN_LIMIT,
    SORT_ORDERS,
    Page,
    Pagination,
    RecordFilter,
    Statistics,
)

logger = logging.getLogger(__name__)


# ── HISTORY ──────────────────────────────────────────────────

@dataclass
class HistoricalResult:
    page:       Page
    statistics: Statistics

    def to_dict(self) -> Dict[str, Any]:
        return {
            'analyses':   self.page.to_dict(),
            'statistics': self.statistics.to_dict(),
        }


class GetHistoricalAnalyses:

    def __init__(self, store: RecordStore):
        self.store = store

    def execute(
        self,
        flt:        Optional[RecordFilter] = None,
        pagination: Optional[Pagination]   = None,
    ) -> HistoricalResult:
        try:
            checked = self._validated(pagination)
            page = self.store.find_all(flt, checked)
            stats = self.store.get_statistics(flt)
        except Exception as e:
            logger.error(f"History query failed | filter={flt} | pagination={pagination} | error={e}")
            raise
        return HistoricalResult(page=page, statistics=stats)

    def recent(self, client_name: Optional[str] = None, limit: int = 10) -> List[AnalysisRecord]:
        """Newest analyses for one client, or across all clients."""
        if client_name and client_name.strip():
            return self.store.find_recent_by_client(client_name.strip(), limit)
        page = self.store.find_all(
            None, Pagination(page=1, limit=limit, sort_by='created_at', sort_order='desc')
        )
        return page.items

    def get_by_id(self, record_id: str) -> Optional[AnalysisRecord]:
        if not isinstance(record_id, str) or not record_id.strip():
            raise ValidationError("Analysis id is required.")
        return self.store.find_by_id(record_id.strip())

    @staticmethod
    def _validated(pagination: Optional[Pagination]) -> Pagination:
        if pagination is None:
            return Pagination()
        if pagination.page is not None and pagination.page < DEFAULT_PAGE:
            raise ValidationError("Page number must be greater than 0.")
        if pagination.limit is not None and not MIN_LIMIT <= pagination.limit <= MAX_LIMIT:
            raise ValidationError(f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}.")
        if pagination.sort_order and pagination.sort_order.lower() not in SORT_ORDERS:
            raise ValidationError('Sort order must be either "asc" or "desc".')
        return Pagination(
            page       = pagination.page or DEFAULT_PAGE,
            limit      = pagination.limit or DEFAULT_LIMIT,
            sort_by    = pagination.sort_by or DEFAULT_SORT,
            sort_order = (pagination.sort_order or DEFAULT_ORDER).lower(),
        )


# ── FILTER + SUMMARY ─────────────────────────────────────────

@dataclass
class FilterSummary:
    total_matches:          int
    sentiment_distribution: Dict[str, int]
    channel_distribution:   Dict[str, int]   # over the returned page only
    average_confidence:     float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_matches':          self.total_matches,
            'sentiment_distribution': dict(self.sentiment_distribution),
            'channel_distribution':   dict(self.channel_distribution),
            'average_confidence':     self.average_confidence,
        }


@dataclass
class FilterResult:
    page:           Page
    applied_filter: RecordFilter
    summary:        FilterSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            'analyses':        self.page.to_dict(),
            'applied_filters': self.applied_filter.to_dict(),
            'summary':         self.summary.to_dict(),
        }


@dataclass
class FilterOptions:
    clients:          List[str]
    channels:         List[str]
    sentiment_types:  List[str]
    earliest:         Optional[Any] = None
    latest:           Optional[Any] = None
    confidence_range: Dict[str, float] = field(default_factory=lambda: {'min': 0.0, 'max': 1.0})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'clients':          self.clients,
            'channels':         self.channels,
            'sentiment_types':  self.sentiment_types,
            'date_range': {
                'earliest': self.earliest.isoformat() if self.earliest else None,
                'latest':   self.latest.isoformat() if self.latest else None,
            },
            'confidence_range': self.confidence_range,
        }


class FilterAnalyses:

    def __init__(self, store: RecordStore):
        self.store = store

    def execute(
        self,
        criteria:   Optional[RecordFilter] = None,
        pagination: Optional[Pagination]   = None,
    ) -> FilterResult:
        applied = (criteria or RecordFilter()).normalized()
        try:
            page = self.store.find_all(applied, (pagination or Pagination()).clamped())
            stats = self.store.get_statistics(applied)
        except Exception as e:
            logger.error(f"Filter query failed | filter={applied.to_dict()} | error={e}")
            raise

        summary = FilterSummary(
            total_matches          = stats.total,
            sentiment_distribution = {
                SentimentCategory.POSITIVE.value: stats.positive_count,
                SentimentCategory.NEUTRAL.value:  stats.neutral_count,
                SentimentCategory.NEGATIVE.value: stats.negative_count,
            },
            channel_distribution   = dict(Counter(r.channel for r in page.items)),
            average_confidence     = stats.average_confidence,
        )
        return FilterResult(page=page, applied_filter=applied, summary=summary)

    def available_filter_options(self) -> FilterOptions:
        """Distinct values present in the store, for building filter UIs."""
        records = collect_records(self.store)
        dates = sorted(r.created_at for r in records)
        confidences = [r.confidence for r in records]
        return FilterOptions(
            clients          = sorted({r.client_name for r in records}),
            channels         = sorted({r.channel for r in records}),
            sentiment_types  = [c.value for c in SentimentCategory],
            earliest         = dates[0] if dates else None,
            latest           = dates[-1] if dates else None,
            confidence_range = {
                'min': min(confidences) if confidences else 0.0,
                'max': max(confidences) if confidences else 1.0,
            },
        )


def collect_records(
    store:    RecordStore,
    flt:      Optional[RecordFilter] = None,
    max_rows: Optional[int]          = None,
) -> List[AnalysisRecord]:
    """Newest-first matches from a single store read, optionally truncated."""
    records = store.find_matching(flt)
    return records if max_rows is None else records[:max_rows]
