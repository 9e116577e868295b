"""
sentiscope/usecases/export_analyses.py
Filtered bulk export: query the store newest-first, then serialize.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sentiscope.errors import (
    EmptyExportError,
    ExportLimitError,
    UnsupportedFormatError,
    ValidationError,
)
from sentiscope.exporters.record_exporter import ExportOptions, ExportResult, RecordExporter
from sentiscope.models.record import AnalysisRecord, utcnow
from sentiscope.store.base import RecordStore
from sentiscope.store.query import Pagination, RecordFilter
from sentiscope.usecases.queries import collect_records

logger = logging.getLogger(__name__)

DEFAULT_RECORD_ESTIMATE = 1000   # bytes, used when there is nothing to sample
SIZE_UNITS = ('B', 'KB', 'MB', 'GB')


@dataclass
class ExportOutcome:
    result:          ExportResult
    exported_count:  int
    total_available: int
    exported_at:     datetime


@dataclass
class ExportPreview:
    sample:         List[AnalysisRecord]
    total:          int
    estimated_size: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sample':         [r.to_dict() for r in self.sample],
            'total':          self.total,
            'estimated_size': self.estimated_size,
        }


def format_size(num_bytes: float) -> str:
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {SIZE_UNITS[unit]}"


def estimate_record_size(record: Optional[AnalysisRecord]) -> float:
    """Serialized size of one record plus 20% formatting overhead."""
    if record is None:
        return DEFAULT_RECORD_ESTIMATE
    return len(json.dumps(record.to_dict(), ensure_ascii=False)) * 1.2


class ExportAnalyses:

    def __init__(self, store: RecordStore, exporter: RecordExporter):
        self.store    = store
        self.exporter = exporter

    def execute(
        self,
        flt:         Optional[RecordFilter] = None,
        options:     Optional[ExportOptions] = None,
        max_records: Optional[int]           = None,
    ) -> ExportOutcome:
        exported_at = utcnow()
        options = options or ExportOptions()
        try:
            self._validate(options, max_records)
            limit = min(max_records or self.exporter.max_export_limit(),
                        self.exporter.max_export_limit())

            matching = collect_records(self.store, flt)
            if not matching:
                raise EmptyExportError("No analyses found matching the specified criteria.")
            total_available = len(matching)
            records = matching[:limit]

            result = self.exporter.export(records, options)
        except Exception as e:
            logger.error(
                f"Export failed | format={options.format} | max_records={max_records} | error={e}"
            )
            raise

        logger.info(
            f"Export completed | format={options.format} | records={len(records)} | "
            f"total_available={total_available} | bytes={result.size} | "
            f"at={exported_at.isoformat()}"
        )
        return ExportOutcome(
            result          = result,
            exported_count  = len(records),
            total_available = total_available,
            exported_at     = exported_at,
        )

    def preview(self, flt: Optional[RecordFilter] = None, limit: int = 5) -> ExportPreview:
        page = self.store.find_all(
            flt, Pagination(page=1, limit=limit, sort_by='created_at', sort_order='desc')
        )
        first = page.items[0] if page.items else None
        return ExportPreview(
            sample         = page.items,
            total          = page.total,
            estimated_size = format_size(estimate_record_size(first) * page.total),
        )

    def supported_formats(self) -> List[str]:
        return self.exporter.supported_formats()

    def _validate(self, options: ExportOptions, max_records: Optional[int]) -> None:
        supported = self.exporter.supported_formats()
        if options.format not in supported:
            raise UnsupportedFormatError(
                f"Unsupported export format: {options.format}. "
                f"Supported formats: {', '.join(supported)}"
            )
        if not self.exporter.validate_options(options):
            raise ValidationError("Invalid export options provided.")
        limit = self.exporter.max_export_limit()
        if max_records is not None and max_records > limit:
            raise ExportLimitError(f"Maximum export limit is {limit} records.")
        if max_records is not None and max_records < 1:
            raise ValidationError("max_records must be at least 1.")
