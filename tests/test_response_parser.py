"""
tests/test_response_parser.py
Classifier answer decoding and the lexical fallback.
"""

import json

import pytest

from factories import JOY_EMOTIONS, classifier_answer
from sentiscope.detectors.keyword_detector import FALLBACK_EMOTIONS, scan_text
from sentiscope.llm.response_parser import (
    DEFAULT_REASONING,
    FallbackVerdict,
    ParsedVerdict,
    parse_response,
)
from sentiscope.models.values import SentimentCategory

HUGE_INT = "1" + "0" * 400

HUGE_CONFIDENCE = (
    '{"overallSentiment": "positive", "emotionScores": ' + json.dumps(JOY_EMOTIONS)
    + ', "confidence": ' + HUGE_INT + '}'
)
HUGE_EMOTION = (
    '{"overallSentiment": "positive", "emotionScores": {"joy": ' + HUGE_INT
    + ', "sadness": 0, "anger": 0, "fear": 0, "surprise": 0, "disgust": 0}, "confidence": 0.9}'
)
DEEPLY_NESTED = '{"overallSentiment": ' + "[" * 100000 + "]" * 100000 + "}"


class TestParseResponse:
    def test_plain_json(self):
        v = parse_response(classifier_answer())
        assert isinstance(v, ParsedVerdict)
        assert not v.fallback_used
        assert v.sentiment is SentimentCategory.POSITIVE
        assert v.confidence == pytest.approx(0.92)
        assert v.emotions.dominant_emotion == "joy"
        assert v.reasoning == "Cliente agradecido"

    def test_markdown_fence(self):
        raw = "```json\n" + classifier_answer(sentiment="negative") + "\n```"
        v = parse_response(raw)
        assert not v.fallback_used
        assert v.sentiment is SentimentCategory.NEGATIVE

    def test_prose_around_object(self):
        raw = "Here is my analysis:\n" + classifier_answer() + "\nHope this helps {not json}"
        assert not parse_response(raw).fallback_used

    def test_snake_case_keys(self):
        raw = json.dumps({
            "overall_sentiment": "neutral",
            "emotion_scores":    JOY_EMOTIONS,
            "confidence":        0.4,
        })
        v = parse_response(raw)
        assert v.sentiment is SentimentCategory.NEUTRAL
        assert v.reasoning == DEFAULT_REASONING

    def test_unknown_category_becomes_neutral(self):
        v = parse_response(classifier_answer(sentiment="mixed"))
        assert not v.fallback_used
        assert v.sentiment is SentimentCategory.NEUTRAL

    @pytest.mark.parametrize("raw_conf,expected", [(1.7, 1.0), (-0.3, 0.0)])
    def test_confidence_clamped(self, raw_conf, expected):
        assert parse_response(classifier_answer(confidence=raw_conf)).confidence == expected

    def test_missing_confidence_falls_back(self):
        raw = json.dumps({"overallSentiment": "positive", "emotionScores": JOY_EMOTIONS})
        assert parse_response(raw).fallback_used

    def test_emotions_not_summing_to_one_fall_back(self):
        emotions = dict(JOY_EMOTIONS, joy=0.95)
        assert parse_response(classifier_answer(emotions=emotions)).fallback_used

    def test_missing_emotion_entries_default_to_zero(self):
        v = parse_response(classifier_answer(emotions={"anger": 0.6, "disgust": 0.4}))
        assert not v.fallback_used
        assert v.emotions.joy == 0.0
        assert v.emotions.dominant_emotion == "anger"

    @pytest.mark.parametrize("raw", [
        "", "   ", "no json here", "[1, 2, 3]", None,
        HUGE_CONFIDENCE, HUGE_EMOTION, DEEPLY_NESTED,
    ])
    def test_never_raises(self, raw):
        v = parse_response(raw)
        assert isinstance(v, FallbackVerdict)
        assert v.fallback_used
        assert v.error

    def test_negative_prose_uses_lexical_fallback(self):
        v = parse_response("El cliente está muy molesto por el problema con su tarjeta.")
        assert v.fallback_used
        assert v.sentiment is SentimentCategory.NEGATIVE
        assert v.confidence == pytest.approx(0.6)
        assert abs(sum(v.emotions.as_tuple()) - 1) <= 0.01


class TestKeywordDetector:
    def test_positive_hits(self):
        s = scan_text("Muchas GRACIAS, excelente servicio")
        assert s.positive_hits == ["excelente", "gracias"]
        assert s.sentiment is SentimentCategory.POSITIVE
        assert s.confidence == 0.6

    def test_each_word_counts_once(self):
        s = scan_text("problema problema problema, gracias, excelente")
        assert s.sentiment is SentimentCategory.POSITIVE

    def test_tie_is_neutral_with_lower_confidence(self):
        s = scan_text("gracias pero hay un problema")
        assert s.sentiment is SentimentCategory.NEUTRAL
        assert s.confidence == 0.5

    def test_empty_text(self):
        s = scan_text("")
        assert s.sentiment is SentimentCategory.NEUTRAL
        assert not s.decided

    @pytest.mark.parametrize("category", list(SentimentCategory))
    def test_fallback_vectors_sum_to_one(self, category):
        assert sum(FALLBACK_EMOTIONS[category].as_tuple()) == pytest.approx(1.0)
