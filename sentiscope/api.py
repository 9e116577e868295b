"""
sentiscope/api.py
─────────────────────────────────────────────────────────────────────────────
Sentiscope — dual-mode API layer

TWO USAGE MODES:
  1. Importable module:
         from sentiscope.api import SentiscopeAPI
         api = SentiscopeAPI()
         result = api.analyze(pdf_bytes, client_name="ACME", document_id="q3.pdf", channel="email")
         stats  = api.get_statistics(channel="email")

  2. FastAPI HTTP server:
         python -m sentiscope.api                  # default: port 8780
         python -m sentiscope.api --port 9000
         uvicorn sentiscope.api:app --port 8780

ENDPOINTS:
  POST /analyze            — raw document body; client_name, document_id, channel as query params
  GET  /analyses           — paginated history + statistics (strict pagination)
  POST /analyses/filter    — filter + summary (lenient pagination), JSON body
  GET  /analyses/recent    — newest analyses, optionally for one client
  GET  /analyses/options   — distinct values available for filtering
  GET  /analyses/{id}      — single analysis, 404 if absent
  GET  /statistics         — aggregate statistics for a filter
  GET  /export             — CSV / JSON download
  GET  /export/preview     — sample records + estimated size
  GET  /health             — classifier + store status

ERROR MAPPING:
  ValidationError, document and export errors → 400
  unknown id → 404
  AnalyzerUnavailableError → 503, ClassificationError → 502
  PersistenceError and anything unexpected → 500
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sentiscope import __version__
from sentiscope.container import Services, build_services, check_services
from sentiscope.errors import (
    AnalyzerUnavailableError,
    ClassificationError,
    EmptyContentError,
    ExportError,
    InvalidDocumentError,
    SentiscopeError,
    ValidationError,
)
from sentiscope.exporters.record_exporter import ExportOptions
from sentiscope.store.query import Pagination, RecordFilter
from sentiscope.usecases.export_analyses import ExportOutcome

logger = logging.getLogger(__name__)

# ── OPTIONAL FASTAPI IMPORT ─────────────────────────────────────────────────
# FastAPI is optional; SentiscopeAPI works without it.

try:
    from fastapi import FastAPI, HTTPException, Query, Request
    from fastapi.concurrency import run_in_threadpool
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import Response
    from pydantic import BaseModel
    _FASTAPI_AVAILABLE = True
except ImportError:  # pragma: no cover
    _FASTAPI_AVAILABLE = False
    FastAPI = None          # type: ignore
    HTTPException = None    # type: ignore
    BaseModel = object      # type: ignore


def make_filter(
    client_name:    Optional[str]      = None,
    sentiment:      Optional[str]      = None,
    channel:        Optional[str]      = None,
    date_from:      Optional[datetime] = None,
    date_to:        Optional[datetime] = None,
    min_confidence: Optional[float]    = None,
    max_confidence: Optional[float]    = None,
    search_text:    Optional[str]      = None,
) -> RecordFilter:
    return RecordFilter(
        client_name    = client_name,
        sentiment      = sentiment,
        channel        = channel,
        date_from      = date_from,
        date_to        = date_to,
        min_confidence = min_confidence,
        max_confidence = max_confidence,
        search_text    = search_text,
    )


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTABLE CLASS
# ═══════════════════════════════════════════════════════════════════════════

class SentiscopeAPI:
    """
    Pure-Python facade over the use cases. Returns plain dicts.
    Errors propagate as sentiscope.errors exceptions.
    """

    def __init__(self, services: Optional[Services] = None):
        self.services = services or build_services()

    # ── ANALYZE ───────────────────────────────────────────────────────────

    def analyze(
        self,
        document:    bytes,
        client_name: str,
        document_id: str,
        channel:     str,
    ) -> Dict[str, Any]:
        outcome = self.services.analyze.execute(document, client_name, document_id, channel)
        return {
            "analysis":           outcome.record.to_dict(),
            "processing_time_ms": outcome.elapsed_ms,
        }

    # ── QUERY ─────────────────────────────────────────────────────────────

    def get_analyses(
        self,
        page:       int           = 1,
        limit:      int           = 20,
        sort_by:    str           = "created_at",
        sort_order: str           = "desc",
        **filters,
    ) -> Dict[str, Any]:
        result = self.services.history.execute(
            make_filter(**filters),
            Pagination(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order),
        )
        return result.to_dict()

    def filter_analyses(
        self,
        page:       Optional[int] = None,
        limit:      Optional[int] = None,
        sort_by:    Optional[str] = None,
        sort_order: Optional[str] = None,
        **filters,
    ) -> Dict[str, Any]:
        result = self.services.filter.execute(
            make_filter(**filters),
            Pagination(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order),
        )
        return result.to_dict()

    def get_recent(self, client_name: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.services.history.recent(client_name, limit)]

    def get_analysis(self, analysis_id: str) -> Optional[Dict[str, Any]]:
        record = self.services.history.get_by_id(analysis_id)
        return record.to_dict() if record else None

    def get_statistics(self, **filters) -> Dict[str, Any]:
        return self.services.store.get_statistics(make_filter(**filters)).to_dict()

    def get_filter_options(self) -> Dict[str, Any]:
        return self.services.filter.available_filter_options().to_dict()

    # ── EXPORT ────────────────────────────────────────────────────────────

    def export(
        self,
        format:                 str           = "csv",
        include_metadata:       bool          = False,
        include_emotion_scores: bool          = False,
        date_format:            Optional[str] = None,
        max_records:            Optional[int] = None,
        **filters,
    ) -> ExportOutcome:
        options = ExportOptions(
            format                 = format,
            include_metadata       = include_metadata,
            include_emotion_scores = include_emotion_scores,
            date_format            = date_format,
        )
        return self.services.export.execute(make_filter(**filters), options, max_records)

    def export_preview(self, limit: int = 5, **filters) -> Dict[str, Any]:
        return self.services.export.preview(make_filter(**filters), limit).to_dict()

    # ── HEALTH ────────────────────────────────────────────────────────────

    def health(self) -> Dict[str, Any]:
        return {**check_services(self.services), "version": __version__}


# ═══════════════════════════════════════════════════════════════════════════
# FASTAPI HTTP APP
# Only constructed when FastAPI is available
# ═══════════════════════════════════════════════════════════════════════════

def _http_error(exc: Exception) -> "HTTPException":  # type: ignore
    if isinstance(exc, (ValidationError, InvalidDocumentError, EmptyContentError, ExportError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, AnalyzerUnavailableError):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, ClassificationError):
        return HTTPException(status_code=502, detail=str(exc))
    logger.error(f"Request failed: {exc}", exc_info=not isinstance(exc, SentiscopeError))
    return HTTPException(status_code=500, detail=str(exc))


def _build_app(services: Optional[Services] = None) -> "FastAPI":  # type: ignore
    """
    Build and return the FastAPI application instance.
    Called once at module level (if FastAPI is available) or on demand.
    """
    if not _FASTAPI_AVAILABLE:
        raise ImportError(
            "FastAPI is not installed. Run: pip install fastapi uvicorn"
        )

    _api = SentiscopeAPI(services=services)

    _app = FastAPI(
        title       = "Sentiscope API",
        description = "Document sentiment analysis with a queryable history",
        version     = __version__,
        docs_url    = "/docs",
        redoc_url   = None,
    )

    _app.add_middleware(
        CORSMiddleware,
        allow_origins     = [
            "http://localhost",
            "http://localhost:8780",
            "http://127.0.0.1",
            "http://127.0.0.1:8780",
        ],
        allow_methods     = ["GET", "POST", "OPTIONS"],
        allow_headers     = ["Content-Type"],
        allow_credentials = False,
    )

    # ── REQUEST MODELS ──────────────────────────────────────────────────

    class FilterRequest(BaseModel):
        client_name:    Optional[str]      = None
        sentiment:      Optional[str]      = None
        channel:        Optional[str]      = None
        date_from:      Optional[datetime] = None
        date_to:        Optional[datetime] = None
        min_confidence: Optional[float]    = None
        max_confidence: Optional[float]    = None
        search_text:    Optional[str]      = None
        page:           Optional[int]      = None
        limit:          Optional[int]      = None
        sort_by:        Optional[str]      = None
        sort_order:     Optional[str]      = None

    # ── ENDPOINTS ───────────────────────────────────────────────────────

    @_app.post("/analyze", summary="Analyze one document")
    async def analyze(
        request:     Request,
        client_name: str = Query(..., description="Client the document belongs to"),
        document_id: str = Query(..., description="Document name or identifier"),
        channel:     str = Query(..., description="Channel the document arrived through"),
    ):
        """Body is the raw document (PDF by default)."""
        document = await request.body()
        try:
            return await run_in_threadpool(
                _api.analyze, document, client_name, document_id, channel
            )
        except Exception as exc:
            raise _http_error(exc)

    @_app.get("/analyses", summary="Paginated analysis history")
    def get_analyses(
        page:           int                = Query(1),
        limit:          int                = Query(20),
        sort_by:        str                = Query("created_at"),
        sort_order:     str                = Query("desc"),
        client_name:    Optional[str]      = Query(None),
        sentiment:      Optional[str]      = Query(None),
        channel:        Optional[str]      = Query(None),
        date_from:      Optional[datetime] = Query(None),
        date_to:        Optional[datetime] = Query(None),
        min_confidence: Optional[float]    = Query(None),
        max_confidence: Optional[float]    = Query(None),
        search_text:    Optional[str]      = Query(None),
    ):
        try:
            return _api.get_analyses(
                page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
                client_name=client_name, sentiment=sentiment, channel=channel,
                date_from=date_from, date_to=date_to,
                min_confidence=min_confidence, max_confidence=max_confidence,
                search_text=search_text,
            )
        except Exception as exc:
            raise _http_error(exc)

    @_app.post("/analyses/filter", summary="Filter analyses with summary")
    def filter_analyses(req: FilterRequest):
        try:
            return _api.filter_analyses(**req.model_dump())
        except Exception as exc:
            raise _http_error(exc)

    @_app.get("/analyses/recent", summary="Most recent analyses")
    def get_recent(
        client_name: Optional[str] = Query(None),
        limit:       int           = Query(10, ge=1, le=100),
    ):
        try:
            data = _api.get_recent(client_name=client_name, limit=limit)
            return {"count": len(data), "analyses": data}
        except Exception as exc:
            raise _http_error(exc)

    @_app.get("/analyses/options", summary="Available filter values")
    def get_filter_options():
        try:
            return _api.get_filter_options()
        except Exception as exc:
            raise _http_error(exc)

    @_app.get("/analyses/{analysis_id}", summary="Single analysis")
    def get_analysis(analysis_id: str):
        try:
            data = _api.get_analysis(analysis_id)
        except Exception as exc:
            raise _http_error(exc)
        if data is None:
            raise HTTPException(status_code=404, detail=f"Analysis not found: {analysis_id}")
        return data

    @_app.get("/statistics", summary="Aggregate statistics")
    def get_statistics(
        client_name:    Optional[str]      = Query(None),
        sentiment:      Optional[str]      = Query(None),
        channel:        Optional[str]      = Query(None),
        date_from:      Optional[datetime] = Query(None),
        date_to:        Optional[datetime] = Query(None),
        min_confidence: Optional[float]    = Query(None),
        max_confidence: Optional[float]    = Query(None),
    ):
        try:
            return _api.get_statistics(
                client_name=client_name, sentiment=sentiment, channel=channel,
                date_from=date_from, date_to=date_to,
                min_confidence=min_confidence, max_confidence=max_confidence,
            )
        except Exception as exc:
            raise _http_error(exc)

    @_app.get("/export", summary="Download analyses as CSV or JSON")
    def export(
        format:                 str                = Query("csv"),
        include_metadata:       bool               = Query(False),
        include_emotion_scores: bool               = Query(False),
        date_format:            Optional[str]      = Query(None),
        max_records:            Optional[int]      = Query(None),
        client_name:            Optional[str]      = Query(None),
        sentiment:              Optional[str]      = Query(None),
        channel:                Optional[str]      = Query(None),
        date_from:              Optional[datetime] = Query(None),
        date_to:                Optional[datetime] = Query(None),
    ):
        try:
            outcome = _api.export(
                format=format, include_metadata=include_metadata,
                include_emotion_scores=include_emotion_scores,
                date_format=date_format, max_records=max_records,
                client_name=client_name, sentiment=sentiment, channel=channel,
                date_from=date_from, date_to=date_to,
            )
        except Exception as exc:
            raise _http_error(exc)
        result = outcome.result
        return Response(
            content    = result.data,
            media_type = result.mime_type,
            headers    = {
                "Content-Disposition": f'attachment; filename="{result.filename}"',
                "X-Exported-Count":    str(outcome.exported_count),
                "X-Total-Available":   str(outcome.total_available),
            },
        )

    @_app.get("/export/preview", summary="Export preview")
    def export_preview(
        limit:       int           = Query(5, ge=1, le=100),
        client_name: Optional[str] = Query(None),
        sentiment:   Optional[str] = Query(None),
        channel:     Optional[str] = Query(None),
    ):
        try:
            return _api.export_preview(
                limit=limit, client_name=client_name, sentiment=sentiment, channel=channel,
            )
        except Exception as exc:
            raise _http_error(exc)

    @_app.get("/health", summary="Health check")
    def health():
        return _api.health()

    return _app


# Module-level app instance, used by uvicorn sentiscope.api:app
if _FASTAPI_AVAILABLE:
    app = _build_app()
else:
    app = None  # type: ignore


# ═══════════════════════════════════════════════════════════════════════════
# CLI ENTRYPOINT: python -m sentiscope.api
# ═══════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(
        prog        = "sentiscope.api",
        description = "Sentiscope API server",
    )
    parser.add_argument("--port", type=int, default=8780,
                        help="Port to bind (default: 8780)")
    parser.add_argument("--host", type=str, default="127.0.0.1",
                        help="Host to bind (default: 127.0.0.1)")
    args = parser.parse_args()

    if not _FASTAPI_AVAILABLE:
        print(
            "ERROR: FastAPI not installed.\n"
            "Run:  pip install fastapi uvicorn",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        import uvicorn
    except ImportError:
        print(
            "ERROR: uvicorn not installed.\n"
            "Run:  pip install uvicorn",
            file=sys.stderr,
        )
        sys.exit(1)

    logging.basicConfig(
        level   = logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    print(f"""
+--------------------------------------------------+
|   Sentiscope API Server v{__version__}
+--------------------------------------------------+
|  Local:    http://{args.host}:{args.port}
|  Docs:     http://{args.host}:{args.port}/docs
|  Health:   http://{args.host}:{args.port}/health
+--------------------------------------------------+
""")

    uvicorn.run(
        app,
        host      = args.host,
        port      = args.port,
        log_level = "info",
    )
