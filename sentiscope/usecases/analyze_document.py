"""
sentiscope/usecases/analyze_document.py
Document bytes + metadata → persisted AnalysisRecord.

ORDER OF OPERATIONS:
  1. Validate inputs (first failure wins, nothing else is called)
  2. Classifier readiness check
  3. Document signature check, then text extraction
  4. Classification + response parsing (parser never raises)
  5. Text metrics, record construction, store.save()

Any failure leaves the store untouched. Document text is never logged.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from sentiscope.errors import (
    AnalyzerUnavailableError,
    ClassificationError,
    EmptyContentError,
    InvalidDocumentError,
    PersistenceError,
    SentiscopeError,
    ValidationError,
)
from sentiscope.extractors.base import ExtractionOptions, TextExtractor
from sentiscope.llm.base import SentimentClassifier
from sentiscope.llm.response_parser import Verdict, parse_response
from sentiscope.models.record import AnalysisRecord, utcnow
from sentiscope.models.values import TextMetrics
from sentiscope.store.base import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    record:     AnalysisRecord
    elapsed_ms: int


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


class AnalyzeDocumentPipeline:

    def __init__(
        self,
        classifier: SentimentClassifier,
        extractor:  TextExtractor,
        store:      RecordStore,
        parser:     Callable[[str], Verdict] = parse_response,
        language:   str                      = 'es',
    ):
        self.classifier = classifier
        self.extractor  = extractor
        self.store      = store
        self.parser     = parser
        self.language   = language

    def execute(
        self,
        document:    bytes,
        client_name: str,
        document_id: str,
        channel:     str,
    ) -> AnalysisOutcome:
        start = time.perf_counter()
        summary = (
            f"client={client_name!r} | document={document_id!r} | "
            f"channel={channel!r} | size={len(document or b'')}"
        )
        logger.info(f"Analysis started | {summary}")

        try:
            self._validate(document, client_name, document_id, channel)
            client_name = client_name.strip()
            document_id = document_id.strip()
            channel     = channel.strip()

            if not self.classifier.is_ready():
                raise AnalyzerUnavailableError(
                    "Sentiment analyzer is not ready. Please check configuration."
                )

            text = self._extract(document)

            try:
                raw = self.classifier.classify(text, client_name, document_id, channel)
            except Exception as e:
                raise ClassificationError(f"Sentiment classification failed: {e}") from e
            verdict = self.parser(raw)

            metrics = TextMetrics.from_text(text, _elapsed_ms(start), self.language)
            now = utcnow()
            record = AnalysisRecord(
                id          = str(uuid.uuid4()),
                client_name = client_name,
                document_id = document_id,
                content     = text,
                sentiment   = verdict.sentiment,
                emotions    = verdict.emotions,
                metrics     = metrics,
                confidence  = verdict.confidence,
                channel     = channel,
                created_at  = now,
                updated_at  = now,
            )

            try:
                saved = self.store.save(record)
            except PersistenceError:
                raise
            except Exception as e:
                raise PersistenceError(f"Could not store analysis: {e}") from e

        except Exception as e:
            logger.error(
                f"Analysis failed | {summary} | error={e} | "
                f"elapsed_ms={_elapsed_ms(start)}",
                exc_info=not isinstance(e, SentiscopeError),
            )
            raise

        elapsed = _elapsed_ms(start)
        logger.info(
            f"Analysis complete | id={saved.id} | sentiment={saved.sentiment} | "
            f"confidence={saved.confidence:.2f} | fallback={verdict.fallback_used} | "
            f"elapsed_ms={elapsed}"
        )
        return AnalysisOutcome(record=saved, elapsed_ms=elapsed)

    # ── STEPS ────────────────────────────────────────────────

    def _validate(self, document, client_name, document_id, channel) -> None:
        if not document:
            raise ValidationError("Document cannot be empty.")
        if not isinstance(client_name, str) or not client_name.strip():
            raise ValidationError("Client name is required.")
        if not isinstance(document_id, str) or not document_id.strip():
            raise ValidationError("Document id is required.")
        if not isinstance(channel, str) or not channel.strip():
            raise ValidationError("Channel is required.")
        max_size = self.extractor.max_size()
        if len(document) > max_size:
            raise ValidationError(f"Document size exceeds maximum limit of {max_size} bytes.")

    def _extract(self, document: bytes) -> str:
        if not self.extractor.is_supported(document):
            raise InvalidDocumentError("Invalid or unsupported document provided.")
        try:
            extracted = self.extractor.extract(
                document,
                ExtractionOptions(include_metadata=True, preserve_formatting=False),
            )
        except Exception as e:
            raise InvalidDocumentError(f"Text extraction failed: {e}") from e

        text = extracted.text or ''
        if not text.strip():
            raise EmptyContentError("No text content could be extracted from the document.")
        return text
