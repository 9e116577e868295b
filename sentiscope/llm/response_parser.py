"""
sentiscope/llm/response_parser.py
Turns the classifier's raw text answer into a validated verdict.

Fail closed: any decode or validation problem falls through to the lexical
heuristic in detectors.keyword_detector. parse_response() never raises.
The verdict type records whether the fallback was used; that flag is for
logging and tests only and is never stored on the record.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sentiscope.detectors.keyword_detector import scan_text
from sentiscope.errors import ValidationError
from sentiscope.models.values import EMOTION_NAMES, EmotionVector, SentimentCategory

logger = logging.getLogger(__name__)

CATEGORY_KEYS   = ('overallSentiment', 'overall_sentiment', 'sentiment')
EMOTION_KEYS    = ('emotionScores', 'emotion_scores', 'emotions')
CONFIDENCE_KEYS = ('confidence',)

DEFAULT_REASONING  = 'No reasoning provided'
FALLBACK_REASONING = 'Lexical fallback: classifier response could not be parsed'


class ResponseFormatError(ValueError):
    """Internal signal for a malformed classifier answer. Never escapes."""


# ── VERDICTS ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Verdict:
    sentiment:  SentimentCategory
    emotions:   EmotionVector
    confidence: float
    reasoning:  Optional[str] = None

    fallback_used = False

    def as_tuple(self) -> Tuple[SentimentCategory, EmotionVector, float, Optional[str]]:
        return self.sentiment, self.emotions, self.confidence, self.reasoning


@dataclass(frozen=True)
class ParsedVerdict(Verdict):
    """The classifier's own answer, decoded and validated."""


@dataclass(frozen=True)
class FallbackVerdict(Verdict):
    """Lexical heuristic result used in place of an unusable answer."""
    error: str = ''

    fallback_used = True


# ── PARSER ───────────────────────────────────────────────────

def parse_response(raw: str) -> Verdict:
    try:
        data = _extract_json_object(raw)
        return _verdict_from_payload(data)
    except Exception as e:
        logger.warning(f"Classifier response unusable, using lexical fallback: {e}")
        return fallback_verdict(raw, str(e))


def fallback_verdict(raw: str, error: str = '') -> FallbackVerdict:
    score = scan_text(raw if isinstance(raw, str) else '')
    return FallbackVerdict(
        sentiment  = score.sentiment,
        emotions   = score.emotions,
        confidence = score.confidence,
        reasoning  = FALLBACK_REASONING,
        error      = error,
    )


def _extract_json_object(raw: str) -> Dict[str, Any]:
    """
    Return the first top-level JSON object embedded in raw.
    Handles markdown fences and prose before or after the object.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ResponseFormatError('empty response')

    clean = raw.strip()
    if clean.startswith('```'):
        parts = clean.split('```')
        if len(parts) >= 2:
            clean = parts[1]
            if clean.startswith('json'):
                clean = clean[4:]
        clean = clean.strip()

    decoder = json.JSONDecoder()
    start = clean.find('{')
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(clean, start)
        except json.JSONDecodeError:
            start = clean.find('{', start + 1)
            continue
        if isinstance(obj, dict):
            return obj
        start = clean.find('{', start + 1)

    raise ResponseFormatError('no JSON object found in response')


def _first_present(data: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _verdict_from_payload(data: Dict[str, Any]) -> ParsedVerdict:
    raw_category   = _first_present(data, CATEGORY_KEYS)
    raw_emotions   = _first_present(data, EMOTION_KEYS)
    raw_confidence = _first_present(data, CONFIDENCE_KEYS)

    if raw_category in (None, '') or raw_emotions is None or raw_confidence is None:
        raise ResponseFormatError('missing sentiment, emotion scores or confidence')

    try:
        sentiment = SentimentCategory.parse(raw_category)
    except ValidationError:
        logger.warning(f"Unknown sentiment category {raw_category!r}, defaulting to neutral")
        sentiment = SentimentCategory.NEUTRAL

    if isinstance(raw_confidence, bool):
        raise ResponseFormatError('confidence is not a number')
    confidence = float(raw_confidence)
    if not math.isfinite(confidence):
        raise ResponseFormatError('confidence is not finite')
    confidence = max(0.0, min(1.0, confidence))

    if not isinstance(raw_emotions, dict):
        raise ResponseFormatError('emotion scores must be an object')
    emotions = EmotionVector.from_dict(
        {name: raw_emotions.get(name) for name in EMOTION_NAMES}
    )

    reasoning = data.get('reasoning')
    return ParsedVerdict(
        sentiment  = sentiment,
        emotions   = emotions,
        confidence = confidence,
        reasoning  = str(reasoning) if reasoning else DEFAULT_REASONING,
    )
