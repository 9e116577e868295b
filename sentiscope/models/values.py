"""
sentiscope/models/values.py
Immutable, self-validating value objects: EmotionVector, SentimentCategory,
TextMetrics. Construction either yields a valid object or raises
ValidationError; there is no partially valid instance.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Tuple

from sentiscope.errors import ValidationError

EMOTION_NAMES: Tuple[str, ...] = ('joy', 'sadness', 'anger', 'fear', 'surprise', 'disgust')

SUM_TOLERANCE = 0.01


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ── SENTIMENT CATEGORY ───────────────────────────────────────

class SentimentCategory(str, Enum):
    POSITIVE = 'positive'
    NEUTRAL  = 'neutral'
    NEGATIVE = 'negative'

    @classmethod
    def parse(cls, value) -> 'SentimentCategory':
        """
        Case-insensitive lookup that also accepts Spanish synonyms
        (positivo, negativo, neutro). Raises ValidationError otherwise.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValidationError(f"Invalid sentiment category: {value!r}")
        key = value.strip().lower()
        try:
            return _CATEGORY_SYNONYMS[key]
        except KeyError:
            raise ValidationError(f"Invalid sentiment category: {value!r}") from None

    @classmethod
    def from_score(cls, score: float) -> 'SentimentCategory':
        """Polarity score in [-1, 1] → category, with a ±0.1 neutral band."""
        if score > 0.1:
            return cls.POSITIVE
        if score < -0.1:
            return cls.NEGATIVE
        return cls.NEUTRAL

    def __str__(self) -> str:
        return self.value


_CATEGORY_SYNONYMS: Dict[str, SentimentCategory] = {
    'positive':  SentimentCategory.POSITIVE,
    'positivo':  SentimentCategory.POSITIVE,
    'positiva':  SentimentCategory.POSITIVE,
    'negative':  SentimentCategory.NEGATIVE,
    'negativo':  SentimentCategory.NEGATIVE,
    'negativa':  SentimentCategory.NEGATIVE,
    'neutral':   SentimentCategory.NEUTRAL,
    'neutro':    SentimentCategory.NEUTRAL,
    'neutra':    SentimentCategory.NEUTRAL,
}


# ── EMOTION VECTOR ───────────────────────────────────────────

@dataclass(frozen=True)
class EmotionVector:
    """Relative emotional composition. Six scores in [0, 1] summing to 1."""
    joy:      float
    sadness:  float
    anger:    float
    fear:     float
    surprise: float
    disgust:  float

    def __post_init__(self):
        for name in EMOTION_NAMES:
            score = getattr(self, name)
            if not _is_number(score) or math.isnan(score):
                raise ValidationError(f"{name} score must be a number")
            if score < 0 or score > 1:
                raise ValidationError(f"{name} score must be between 0 and 1")
            object.__setattr__(self, name, float(score))

        total = sum(self.as_tuple())
        if abs(total - 1) > SUM_TOLERANCE:
            raise ValidationError(
                f"Emotion scores must sum to approximately 1 (got {total:.4f})"
            )

    @property
    def dominant_emotion(self) -> str:
        # max() keeps the first maximum, so ties go to declaration order
        return max(EMOTION_NAMES, key=lambda name: getattr(self, name))

    @property
    def intensity(self) -> str:
        peak = max(self.as_tuple())
        if peak < 0.4:
            return 'low'
        if peak < 0.7:
            return 'medium'
        return 'high'

    @property
    def is_neutral(self) -> bool:
        return max(self.as_tuple()) < 0.3

    def as_tuple(self) -> Tuple[float, ...]:
        return tuple(getattr(self, name) for name in EMOTION_NAMES)

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in EMOTION_NAMES}

    @classmethod
    def from_dict(cls, data: Mapping) -> 'EmotionVector':
        """Missing or falsy entries default to 0."""
        return cls(**{name: data.get(name) or 0 for name in EMOTION_NAMES})


# ── TEXT METRICS ─────────────────────────────────────────────

SYLLABLES_PER_WORD = 1.5   # fixed approximation, not a syllable counter

READABILITY_BANDS = (
    (90, 'very easy'),
    (80, 'easy'),
    (70, 'fairly easy'),
    (60, 'standard'),
    (50, 'fairly difficult'),
    (30, 'difficult'),
)

_SENTENCE_SPLIT  = re.compile(r'[.!?]+')
_PARAGRAPH_SPLIT = re.compile(r'\n\s*\n')


@dataclass(frozen=True)
class TextMetrics:
    word_count:                 int
    sentence_count:             int
    paragraph_count:            int
    average_words_per_sentence: float
    readability_score:          float
    processing_time_ms:         int
    language:                   str

    def __post_init__(self):
        for name in ('word_count', 'sentence_count', 'paragraph_count', 'processing_time_ms'):
            value = getattr(self, name)
            if not _is_number(value):
                raise ValidationError(f"{name} must be a number")
            if value < 0:
                raise ValidationError(f"{name} cannot be negative")

        if not _is_number(self.average_words_per_sentence) or self.average_words_per_sentence < 0:
            raise ValidationError("average_words_per_sentence cannot be negative")

        score = self.readability_score
        if not _is_number(score) or math.isnan(score) or score < 0 or score > 100:
            raise ValidationError("readability_score must be between 0 and 100")

        if not isinstance(self.language, str) or not self.language.strip():
            raise ValidationError("language cannot be empty")

    # ── DERIVED ──────────────────────────────────────────────
    @property
    def readability_level(self) -> str:
        for floor, label in READABILITY_BANDS:
            if self.readability_score >= floor:
                return label
        return 'very difficult'

    @property
    def complexity_level(self) -> str:
        if self.average_words_per_sentence < 15:
            return 'low'
        if self.average_words_per_sentence < 25:
            return 'medium'
        return 'high'

    @property
    def is_long_document(self) -> bool:
        return self.word_count > 1000

    @property
    def is_complex_document(self) -> bool:
        return self.average_words_per_sentence > 20 or self.readability_score < 50

    def to_dict(self) -> Dict:
        return {
            'word_count':                 self.word_count,
            'sentence_count':             self.sentence_count,
            'paragraph_count':            self.paragraph_count,
            'average_words_per_sentence': self.average_words_per_sentence,
            'readability_score':          self.readability_score,
            'processing_time_ms':         self.processing_time_ms,
            'language':                   self.language,
        }

    @classmethod
    def from_text(
        cls,
        text:               str,
        processing_time_ms: float,
        language:           str = 'es',
    ) -> 'TextMetrics':
        """Deterministic metrics for a text body. Flesch-like readability."""
        words      = text.split()
        sentences  = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
        paragraphs = [p for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]

        word_count     = len(words)
        sentence_count = len(sentences)
        average        = word_count / sentence_count if sentence_count else 0.0

        readability = 206.835 - 1.015 * average - 84.6 * SYLLABLES_PER_WORD
        readability = max(0.0, min(100.0, readability))

        return cls(
            word_count                 = word_count,
            sentence_count             = sentence_count,
            paragraph_count            = len(paragraphs),
            average_words_per_sentence = average,
            readability_score          = readability,
            processing_time_ms         = max(0, int(round(processing_time_ms))),
            language                   = language,
        )
