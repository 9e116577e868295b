"""
sentiscope/container.py
Composition root. build_services() wires the concrete extractor,
classifier, store and exporter into the use cases. The CLI and the API
call it once; tests pass their own collaborators in.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from sentiscope.config import ensure_config, validate_config
from sentiscope.exporters.record_exporter import RecordExporter
from sentiscope.extractors.base import TextExtractor
from sentiscope.llm.base import SentimentClassifier
from sentiscope.store.base import RecordStore
from sentiscope.usecases.analyze_document import AnalyzeDocumentPipeline
from sentiscope.usecases.export_analyses import ExportAnalyses
from sentiscope.usecases.queries import FilterAnalyses, GetHistoricalAnalyses

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config:     Dict[str, Any]
    store:      RecordStore
    extractor:  TextExtractor
    classifier: SentimentClassifier
    exporter:   RecordExporter
    analyze:    AnalyzeDocumentPipeline
    history:    GetHistoricalAnalyses
    filter:     FilterAnalyses
    export:     ExportAnalyses


def _make_store(config: Dict[str, Any]) -> RecordStore:
    if config["store_backend"] == "sqlite":
        from sentiscope.store.sqlite_store import SqliteRecordStore
        return SqliteRecordStore(db_path=Path(config["db_path"]))
    from sentiscope.store.memory_store import InMemoryRecordStore
    return InMemoryRecordStore()


def _make_extractor(config: Dict[str, Any]) -> TextExtractor:
    if config["extractor"] == "text":
        from sentiscope.extractors.plain_text import PlainTextExtractor
        return PlainTextExtractor(max_size=config["max_file_size"])
    from sentiscope.extractors.pdf_extractor import PdfTextExtractor
    return PdfTextExtractor(max_size=config["max_file_size"])


def _make_classifier(config: Dict[str, Any]) -> SentimentClassifier:
    from sentiscope.llm.ollama_adapter import OllamaClassifier
    return OllamaClassifier(
        model       = config["model"],
        host        = config["ollama_host"],
        timeout_sec = config["timeout_sec"],
        temperature = config["temperature"],
    )


def build_services(
    config:     Optional[Dict[str, Any]]      = None,
    store:      Optional[RecordStore]         = None,
    extractor:  Optional[TextExtractor]       = None,
    classifier: Optional[SentimentClassifier] = None,
) -> Services:
    config = validate_config(config) if config is not None else ensure_config()

    store      = store      or _make_store(config)
    extractor  = extractor  or _make_extractor(config)
    classifier = classifier or _make_classifier(config)
    exporter   = RecordExporter(max_export_limit=config["max_export_limit"])

    logger.info(
        f"Services ready | store={type(store).__name__} | "
        f"extractor={type(extractor).__name__} | classifier={type(classifier).__name__}"
    )
    return Services(
        config     = config,
        store      = store,
        extractor  = extractor,
        classifier = classifier,
        exporter   = exporter,
        analyze    = AnalyzeDocumentPipeline(
            classifier = classifier,
            extractor  = extractor,
            store      = store,
            language   = config["language"],
        ),
        history    = GetHistoricalAnalyses(store),
        filter     = FilterAnalyses(store),
        export     = ExportAnalyses(store, exporter),
    )


def check_services(services: Services) -> Dict[str, Any]:
    """Health summary. Never raises."""
    try:
        classifier_ready = services.classifier.is_ready()
    except Exception as e:
        logger.warning(f"Classifier health check failed: {e}")
        classifier_ready = False
    try:
        record_count = services.store.count()
        store_ok = True
    except Exception as e:
        logger.warning(f"Store health check failed: {e}")
        record_count = None
        store_ok = False

    return {
        "status":           "ok" if classifier_ready and store_ok else "degraded",
        "classifier_ready": classifier_ready,
        "store_ok":         store_ok,
        "record_count":     record_count,
        "store_backend":    services.config["store_backend"],
        "model":            services.config["model"],
    }
