"""
sentiscope/exporters/record_exporter.py
Bulk export of AnalysisRecords as CSV or JSON bytes.

Every JSON export includes: export metadata (timestamp, record count,
options echoed, format version) and an integrity hash (SHA-256 of the
canonical JSON of metadata + records, computed before the hash is added).
CSV exports are plain tables: header row + one row per record.
Document text is never exported.
"""

import csv
import hashlib
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sentiscope.errors import EmptyExportError, ExportLimitError, UnsupportedFormatError
from sentiscope.models.record import AnalysisRecord, as_utc, utcnow
from sentiscope.models.values import EMOTION_NAMES

logger = logging.getLogger(__name__)

EXPORT_FORMAT_VERSION = "1.0"
DEFAULT_MAX_EXPORT_LIMIT = 10000

SUPPORTED_FORMATS = ('csv', 'json')
MIME_TYPES = {
    'csv':  'text/csv',
    'json': 'application/json',
}

# None → ISO-8601
DATE_FORMATS = {
    'YYYY-MM-DD': '%Y-%m-%d',
    'DD/MM/YYYY': '%d/%m/%Y',
    'MM/DD/YYYY': '%m/%d/%Y',
}

BASE_COLUMNS = (
    'id', 'client_name', 'document_id', 'sentiment',
    'confidence', 'channel', 'created_at',
)
METRIC_COLUMNS = (
    'word_count', 'sentence_count', 'paragraph_count',
    'average_words_per_sentence', 'readability_score',
    'processing_time_ms', 'language',
)


@dataclass
class ExportOptions:
    format:                 str           = 'csv'
    include_metadata:       bool          = False
    include_emotion_scores: bool          = False
    date_format:            Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'format':                 self.format,
            'include_metadata':       bool(self.include_metadata),
            'include_emotion_scores': bool(self.include_emotion_scores),
            'date_format':            self.date_format,
        }


@dataclass
class ExportResult:
    data:         bytes
    filename:     str
    mime_type:    str
    size:         int
    content_hash: Optional[str] = None   # JSON exports only


def format_date(value: datetime, date_format: Optional[str] = None) -> str:
    """Render a timestamp in UTC. Unknown formats fall back to ISO-8601."""
    value = as_utc(value)
    pattern = DATE_FORMATS.get(date_format) if date_format else None
    return value.strftime(pattern) if pattern else value.isoformat()


def _content_hash(payload: Dict[str, Any]) -> str:
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class RecordExporter:

    def __init__(self, max_export_limit: int = DEFAULT_MAX_EXPORT_LIMIT):
        self._max_export_limit = max_export_limit

    def max_export_limit(self) -> int:
        return self._max_export_limit

    def supported_formats(self) -> List[str]:
        return list(SUPPORTED_FORMATS)

    def validate_options(self, options: ExportOptions) -> bool:
        if not isinstance(options, ExportOptions):
            return False
        if options.format not in SUPPORTED_FORMATS:
            return False
        if options.date_format and options.date_format not in DATE_FORMATS:
            return False
        return True

    # ── EXPORT ───────────────────────────────────────────────

    def export(self, records: Sequence[AnalysisRecord], options: ExportOptions) -> ExportResult:
        if not records:
            raise EmptyExportError("No analyses provided for export")
        if len(records) > self._max_export_limit:
            raise ExportLimitError(
                f"Export limit exceeded. Maximum {self._max_export_limit} records allowed."
            )
        if options.format not in SUPPORTED_FORMATS:
            raise UnsupportedFormatError(
                f"Unsupported export format: {options.format}. "
                f"Supported formats: {', '.join(SUPPORTED_FORMATS)}"
            )

        now = utcnow()
        content_hash = None
        if options.format == 'csv':
            data = self._to_csv(records, options)
        else:
            data, content_hash = self._to_json(records, options, now)

        result = ExportResult(
            data         = data,
            filename     = f"sentiment-analysis-{now.strftime('%Y-%m-%d')}.{options.format}",
            mime_type    = MIME_TYPES[options.format],
            size         = len(data),
            content_hash = content_hash,
        )
        logger.debug(
            f"Export serialized | format={options.format} | records={len(records)} | "
            f"bytes={result.size}"
        )
        return result

    # ── CSV ──────────────────────────────────────────────────

    @staticmethod
    def _csv_header(options: ExportOptions) -> List[str]:
        header = list(BASE_COLUMNS)
        if options.include_emotion_scores:
            header += list(EMOTION_NAMES)
        if options.include_metadata:
            header += list(METRIC_COLUMNS)
        return header

    @staticmethod
    def _csv_row(record: AnalysisRecord, options: ExportOptions) -> List[str]:
        row = [
            record.id,
            record.client_name,
            record.document_id,
            record.sentiment.value,
            f"{record.confidence:.3f}",
            record.channel,
            format_date(record.created_at, options.date_format),
        ]
        if options.include_emotion_scores:
            row += [f"{score:.3f}" for score in record.emotions.as_tuple()]
        if options.include_metadata:
            m = record.metrics
            row += [
                str(m.word_count),
                str(m.sentence_count),
                str(m.paragraph_count),
                f"{m.average_words_per_sentence:.2f}",
                f"{m.readability_score:.2f}",
                str(m.processing_time_ms),
                m.language,
            ]
        return row

    def _to_csv(self, records: Sequence[AnalysisRecord], options: ExportOptions) -> bytes:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator='\n')
        writer.writerow(self._csv_header(options))
        for record in records:
            writer.writerow(self._csv_row(record, options))
        return buf.getvalue().encode('utf-8')

    # ── JSON ─────────────────────────────────────────────────

    @staticmethod
    def _json_record(record: AnalysisRecord, options: ExportOptions) -> Dict[str, Any]:
        obj = {
            'id':          record.id,
            'client_name': record.client_name,
            'document_id': record.document_id,
            'sentiment':   record.sentiment.value,
            'confidence':  record.confidence,
            'channel':     record.channel,
            'created_at':  format_date(record.created_at, options.date_format),
            'updated_at':  format_date(record.updated_at, options.date_format),
        }
        if options.include_emotion_scores:
            obj['emotion_scores'] = record.emotions.to_dict()
        if options.include_metadata:
            obj['text_metrics'] = record.metrics.to_dict()
        return obj

    def _to_json(self, records, options: ExportOptions, now: datetime):
        payload = {
            'export_metadata': {
                'export_format_version': EXPORT_FORMAT_VERSION,
                'timestamp':             now.isoformat(),
                'total_records':         len(records),
                **options.to_dict(),
            },
            'records': [self._json_record(r, options) for r in records],
        }
        content_hash = _content_hash(payload)
        export_obj = {**payload, 'content_hash_sha256': content_hash}
        return json.dumps(export_obj, indent=2, ensure_ascii=False).encode('utf-8'), content_hash
