"""
tests/test_record.py
AnalysisRecord validation and immutable updates.
"""

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from factories import BASE_TIME, make_record
from sentiscope.errors import ValidationError
from sentiscope.models.record import as_utc
from sentiscope.models.values import SentimentCategory


class TestAnalysisRecordValidation:
    def test_valid_record(self):
        r = make_record()
        assert r.sentiment is SentimentCategory.POSITIVE
        assert r.dominant_emotion == "joy"
        assert r.is_high_confidence

    def test_sentiment_string_is_parsed(self):
        assert make_record(sentiment="negativo").sentiment is SentimentCategory.NEGATIVE

    @pytest.mark.parametrize("confidence", [-0.01, 1.01, float("nan"), "0.5", True])
    def test_confidence_out_of_range_rejected(self, confidence):
        with pytest.raises(ValidationError):
            make_record(confidence=confidence)

    @pytest.mark.parametrize("confidence", [0, 0.0, 1, 1.0])
    def test_confidence_bounds_inclusive(self, confidence):
        assert make_record(confidence=confidence).confidence == float(confidence)

    @pytest.mark.parametrize("field", ["id", "client_name", "document_id", "content", "channel"])
    def test_blank_required_fields_rejected(self, field):
        with pytest.raises(ValidationError, match="cannot be empty"):
            make_record(**{field: "   "})

    def test_naive_timestamps_taken_as_utc(self):
        naive = datetime(2024, 1, 1, 8, 30)
        assert as_utc(naive).tzinfo is timezone.utc
        assert as_utc(naive).hour == 8

    def test_aware_timestamps_normalised_to_utc(self):
        cdmx = timezone(timedelta(hours=-6))
        ts = datetime(2024, 1, 1, 8, 0, tzinfo=cdmx)
        assert as_utc(ts) == datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc)

    def test_to_dict_shape(self):
        d = make_record().to_dict()
        assert d["sentiment"] == "positive"
        assert set(d["emotion_scores"]) == {"joy", "sadness", "anger", "fear", "surprise", "disgust"}
        assert d["dominant_emotion"] == "joy"
        assert d["created_at"].startswith("2024-03-01T12:00:00")


class TestWithUpdates:
    def test_returns_new_record_and_leaves_original(self):
        r = make_record()
        updated = r.with_updates(channel="chat")
        assert updated.channel == "chat"
        assert r.channel == "email"
        assert updated.id == r.id
        assert updated.created_at == r.created_at

    def test_updated_at_advances(self):
        r = make_record()
        assert r.with_updates(confidence=0.5).updated_at > r.updated_at

    def test_updated_at_advances_even_when_clock_is_behind(self):
        future = dataclasses.replace(make_record(), updated_at=BASE_TIME + timedelta(days=36500))
        assert future.with_updates(channel="chat").updated_at > future.updated_at

    def test_caller_supplied_updated_at_is_ignored(self):
        r = make_record()
        updated = r.with_updates(updated_at=BASE_TIME - timedelta(days=1))
        assert updated.updated_at > r.updated_at

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Unknown"):
            make_record().with_updates(mood="happy")

    @pytest.mark.parametrize("field", ["id", "created_at"])
    def test_identity_fields_locked(self, field):
        with pytest.raises(ValidationError, match="cannot be updated"):
            make_record().with_updates(**{field: "x"})

    def test_invalid_update_rejected(self):
        with pytest.raises(ValidationError):
            make_record().with_updates(confidence=2.0)

    def test_record_is_frozen(self):
        with pytest.raises(AttributeError):
            make_record().channel = "chat"
