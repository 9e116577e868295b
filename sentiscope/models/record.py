"""
sentiscope/models/record.py
AnalysisRecord — the persisted entity. Frozen: stores and callers share
instances safely, and every change goes through with_updates(), which
re-validates the whole record and re-stamps updated_at.
"""

import dataclasses
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from sentiscope.errors import ValidationError
from sentiscope.models.values import EmotionVector, SentimentCategory, TextMetrics

# Fields that identify a record and can never be replaced by update()
IMMUTABLE_FIELDS = frozenset({'id', 'created_at'})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class AnalysisRecord:
    id:          str
    client_name: str
    document_id: str
    content:     str
    sentiment:   SentimentCategory
    emotions:    EmotionVector
    metrics:     TextMetrics
    confidence:  float
    channel:     str
    created_at:  datetime
    updated_at:  datetime

    def __post_init__(self):
        for name, label in (
            ('id',          'Analysis id'),
            ('client_name', 'Client name'),
            ('document_id', 'Document id'),
            ('content',     'Document content'),
            ('channel',     'Channel'),
        ):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{label} cannot be empty")

        object.__setattr__(self, 'sentiment', SentimentCategory.parse(self.sentiment))

        if not isinstance(self.emotions, EmotionVector):
            raise ValidationError("emotions must be an EmotionVector")
        if not isinstance(self.metrics, TextMetrics):
            raise ValidationError("metrics must be a TextMetrics")

        c = self.confidence
        if isinstance(c, bool) or not isinstance(c, (int, float)) or math.isnan(c):
            raise ValidationError("Confidence must be a number")
        if c < 0 or c > 1:
            raise ValidationError("Confidence must be between 0 and 1")
        object.__setattr__(self, 'confidence', float(c))

        for name in ('created_at', 'updated_at'):
            value = getattr(self, name)
            if not isinstance(value, datetime):
                raise ValidationError(f"{name} must be a datetime")
            object.__setattr__(self, name, as_utc(value))

    # ── DERIVED ──────────────────────────────────────────────
    @property
    def dominant_emotion(self) -> str:
        return self.emotions.dominant_emotion

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence >= 0.8

    # ── UPDATES ──────────────────────────────────────────────
    def with_updates(self, **fields) -> 'AnalysisRecord':
        """
        Partial replacement. Returns a new validated record; updated_at is
        always re-stamped, whatever the caller passed.
        """
        known = {f.name for f in dataclasses.fields(self)}
        unknown = set(fields) - known
        if unknown:
            raise ValidationError(f"Unknown record fields: {', '.join(sorted(unknown))}")
        locked = set(fields) & IMMUTABLE_FIELDS
        if locked:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(locked))}")

        now = utcnow()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        fields['updated_at'] = now
        return dataclasses.replace(self, **fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id':               self.id,
            'client_name':      self.client_name,
            'document_id':      self.document_id,
            'content':          self.content,
            'sentiment':        self.sentiment.value,
            'emotion_scores':   self.emotions.to_dict(),
            'text_metrics':     self.metrics.to_dict(),
            'confidence':       self.confidence,
            'channel':          self.channel,
            'dominant_emotion': self.dominant_emotion,
            'created_at':       self.created_at.isoformat(),
            'updated_at':       self.updated_at.isoformat(),
        }
