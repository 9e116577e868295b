"""
sentiscope/store/query.py
Filter / sort / paginate / aggregate engine over AnalysisRecords.

Lenient filter policy: a blank, absent or invalid criterion (confidence
bound outside [0, 1], unknown sentiment) is dropped, never turned into
"no results". Pagination values are clamped rather than rejected.
"""

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from sentiscope.errors import ValidationError
from sentiscope.models.record import AnalysisRecord, as_utc
from sentiscope.models.values import SentimentCategory

DEFAULT_PAGE   = 1
DEFAULT_LIMIT  = 20
MIN_LIMIT      = 1
MAX_LIMIT      = 100
DEFAULT_SORT   = 'created_at'
DEFAULT_ORDER  = 'desc'
SORT_ORDERS    = ('asc', 'desc')

SORTABLE_FIELDS = (
    'created_at', 'updated_at', 'client_name', 'document_id',
    'channel', 'confidence', 'sentiment',
)

# camelCase names used by the HTTP/query-string layer
SORT_ALIASES = {
    'createdAt':        'created_at',
    'updatedAt':        'updated_at',
    'clientName':       'client_name',
    'documentId':       'document_id',
    'documentName':     'document_id',
    'overallSentiment': 'sentiment',
}


# ── FILTER ───────────────────────────────────────────────────

def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _valid_bound(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and 0 <= value <= 1
    )


@dataclass
class RecordFilter:
    client_name:    Optional[str]      = None
    sentiment:      Optional[Any]      = None   # SentimentCategory or str
    channel:        Optional[str]      = None
    date_from:      Optional[datetime] = None
    date_to:        Optional[datetime] = None
    min_confidence: Optional[float]    = None
    max_confidence: Optional[float]    = None
    search_text:    Optional[str]      = None

    def normalized(self) -> 'RecordFilter':
        """The effective filter: ignored criteria removed, strings stripped."""
        sentiment = None
        if not _blank(self.sentiment):
            try:
                sentiment = SentimentCategory.parse(self.sentiment)
            except ValidationError:
                sentiment = None

        def _text(value):
            return None if _blank(value) or not isinstance(value, str) else value.strip()

        def _date(value):
            return as_utc(value) if isinstance(value, datetime) else None

        return RecordFilter(
            client_name    = _text(self.client_name),
            sentiment      = sentiment,
            channel        = _text(self.channel),
            date_from      = _date(self.date_from),
            date_to        = _date(self.date_to),
            min_confidence = float(self.min_confidence) if _valid_bound(self.min_confidence) else None,
            max_confidence = float(self.max_confidence) if _valid_bound(self.max_confidence) else None,
            search_text    = _text(self.search_text),
        )

    def is_empty(self) -> bool:
        n = self.normalized()
        return all(getattr(n, f) is None for f in n.__dataclass_fields__)

    def to_dict(self) -> Dict[str, Any]:
        n = self.normalized()
        out = {}
        for name in n.__dataclass_fields__:
            value = getattr(n, name)
            if value is None:
                continue
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, SentimentCategory):
                value = value.value
            out[name] = value
        return out


def matches(record: AnalysisRecord, flt: Optional[RecordFilter]) -> bool:
    """True iff record satisfies every non-ignored criterion of flt."""
    if flt is None:
        return True
    f = flt.normalized()

    if f.client_name and f.client_name.lower() not in record.client_name.lower():
        return False
    if f.sentiment and record.sentiment != f.sentiment:
        return False
    if f.channel and f.channel.lower() not in record.channel.lower():
        return False
    if f.date_from and record.created_at < f.date_from:
        return False
    if f.date_to and record.created_at > f.date_to:
        return False
    if f.min_confidence is not None and record.confidence < f.min_confidence:
        return False
    if f.max_confidence is not None and record.confidence > f.max_confidence:
        return False
    if f.search_text:
        needle = f.search_text.lower()
        if needle not in record.content.lower() and needle not in record.document_id.lower():
            return False
    return True


def filter_records(records: Iterable[AnalysisRecord], flt: Optional[RecordFilter]) -> List[AnalysisRecord]:
    if flt is None:
        return list(records)
    effective = flt.normalized()
    return [r for r in records if matches(r, effective)]


# ── PAGINATION / SORT ────────────────────────────────────────

@dataclass
class Pagination:
    page:       Optional[int] = DEFAULT_PAGE
    limit:      Optional[int] = DEFAULT_LIMIT
    sort_by:    Optional[str] = DEFAULT_SORT
    sort_order: Optional[str] = DEFAULT_ORDER

    def clamped(self) -> 'Pagination':
        page  = DEFAULT_PAGE if self.page is None else max(DEFAULT_PAGE, int(self.page))
        limit = DEFAULT_LIMIT if self.limit is None else int(self.limit)
        limit = max(MIN_LIMIT, min(MAX_LIMIT, limit))
        return Pagination(
            page       = page,
            limit      = limit,
            sort_by    = resolve_sort_field(self.sort_by),
            sort_order = (self.sort_order or '').lower() if (self.sort_order or '').lower() in SORT_ORDERS else DEFAULT_ORDER,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def resolve_sort_field(name: Optional[str]) -> str:
    if not name:
        return DEFAULT_SORT
    name = SORT_ALIASES.get(name, name)
    return name if name in SORTABLE_FIELDS else DEFAULT_SORT


def _sort_key(field_name: str) -> Callable[[AnalysisRecord], Any]:
    if field_name == 'sentiment':
        return lambda r: r.sentiment.value
    if field_name in ('client_name', 'document_id', 'channel'):
        return lambda r: getattr(r, field_name).lower()
    return lambda r: getattr(r, field_name)


def sort_records(
    records:    List[AnalysisRecord],
    sort_by:    str = DEFAULT_SORT,
    sort_order: str = DEFAULT_ORDER,
) -> List[AnalysisRecord]:
    return sorted(
        records,
        key     = _sort_key(resolve_sort_field(sort_by)),
        reverse = (sort_order == 'desc'),
    )


@dataclass
class Page:
    items:       List[AnalysisRecord]
    total:       int
    page:        int
    limit:       int
    total_pages: int

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        items = []
        for r in self.items:
            d = r.to_dict()
            if not include_content:
                d.pop('content', None)
            items.append(d)
        return {
            'items':       items,
            'total':       self.total,
            'page':        self.page,
            'limit':       self.limit,
            'total_pages': self.total_pages,
        }


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def paginate(records: List[AnalysisRecord], pagination: Optional[Pagination]) -> Page:
    """Sort then slice an already filtered list."""
    p = (pagination or Pagination()).clamped()
    ordered = sort_records(records, p.sort_by, p.sort_order)
    return Page(
        items       = ordered[p.offset:p.offset + p.limit],
        total       = len(ordered),
        page        = p.page,
        limit       = p.limit,
        total_pages = total_pages(len(ordered), p.limit),
    )


# ── STATISTICS ───────────────────────────────────────────────

@dataclass
class Statistics:
    total:               int   = 0
    positive_count:      int   = 0
    neutral_count:       int   = 0
    negative_count:      int   = 0
    average_confidence:  float = 0.0
    most_common_channel: str   = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total':               self.total,
            'positive_count':      self.positive_count,
            'neutral_count':       self.neutral_count,
            'negative_count':      self.negative_count,
            'average_confidence':  self.average_confidence,
            'most_common_channel': self.most_common_channel,
        }


def compute_statistics(records: List[AnalysisRecord]) -> Statistics:
    if not records:
        return Statistics()

    # Oldest first so the channel count tie goes to the first one seen
    ordered = sorted(records, key=lambda r: r.created_at)
    sentiments = Counter(r.sentiment for r in ordered)
    channels   = Counter(r.channel for r in ordered)

    return Statistics(
        total               = len(ordered),
        positive_count      = sentiments[SentimentCategory.POSITIVE],
        neutral_count       = sentiments[SentimentCategory.NEUTRAL],
        negative_count      = sentiments[SentimentCategory.NEGATIVE],
        average_confidence  = sum(r.confidence for r in ordered) / len(ordered),
        most_common_channel = channels.most_common(1)[0][0],
    )
