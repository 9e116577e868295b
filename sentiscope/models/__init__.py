"""
sentiscope/models — value objects and the persisted AnalysisRecord.
"""

from sentiscope.models.record import AnalysisRecord
from sentiscope.models.values import (
    EMOTION_NAMES,
    EmotionVector,
    SentimentCategory,
    TextMetrics,
)

__all__ = [
    "AnalysisRecord",
    "EMOTION_NAMES",
    "EmotionVector",
    "SentimentCategory",
    "TextMetrics",
]
