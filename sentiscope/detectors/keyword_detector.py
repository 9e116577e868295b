"""
sentiscope/detectors/keyword_detector.py
Lexical fallback classifier — pure Python, zero dependencies, fully offline.
Used when the classifier's answer cannot be decoded. Never raises.
"""

from dataclasses import dataclass
from typing import Dict, List

from sentiscope.models.values import EmotionVector, SentimentCategory

# ── KEYWORD DICTIONARIES ─────────────────────────────────────
# Spanish banking vocabulary. Matching is substring-based on lowercased text,
# each word counts at most once.

POSITIVE_WORDS: List[str] = [
    'bueno', 'excelente', 'satisfecho', 'contento', 'feliz', 'gracias',
]

NEGATIVE_WORDS: List[str] = [
    'malo', 'terrible', 'molesto', 'enojado', 'problema', 'error',
]

LEXICAL_CONFIDENCE   = 0.6    # a lexical decision was made
UNDECIDED_CONFIDENCE = 0.5

# Constant vectors per category; each sums to exactly 1
FALLBACK_EMOTIONS: Dict[SentimentCategory, EmotionVector] = {
    SentimentCategory.POSITIVE: EmotionVector(
        joy=0.5, sadness=0.1, anger=0.1, fear=0.1, surprise=0.1, disgust=0.1,
    ),
    SentimentCategory.NEGATIVE: EmotionVector(
        joy=0.05, sadness=0.35, anger=0.25, fear=0.1, surprise=0.05, disgust=0.2,
    ),
    SentimentCategory.NEUTRAL: EmotionVector(
        joy=0.2, sadness=0.15, anger=0.15, fear=0.15, surprise=0.2, disgust=0.15,
    ),
}


@dataclass(frozen=True)
class KeywordScore:
    positive_hits: List[str]
    negative_hits: List[str]

    @property
    def sentiment(self) -> SentimentCategory:
        if len(self.positive_hits) > len(self.negative_hits):
            return SentimentCategory.POSITIVE
        if len(self.negative_hits) > len(self.positive_hits):
            return SentimentCategory.NEGATIVE
        return SentimentCategory.NEUTRAL

    @property
    def decided(self) -> bool:
        return len(self.positive_hits) != len(self.negative_hits)

    @property
    def confidence(self) -> float:
        return LEXICAL_CONFIDENCE if self.decided else UNDECIDED_CONFIDENCE

    @property
    def emotions(self) -> EmotionVector:
        return FALLBACK_EMOTIONS[self.sentiment]


def scan_text(text: str) -> KeywordScore:
    """Match both word lists against the lowercased text."""
    lowered = (text or '').lower()
    return KeywordScore(
        positive_hits = [w for w in POSITIVE_WORDS if w in lowered],
        negative_hits = [w for w in NEGATIVE_WORDS if w in lowered],
    )
