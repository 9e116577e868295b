"""
tests/test_api.py
─────────────────────────────────────────────────────────────────────────────
Tests for sentiscope.api: SentiscopeAPI facade and the FastAPI app.

Coverage:
  - analyze: happy path, validation errors propagate
  - get_analyses / filter_analyses: strict vs lenient pagination
  - get_analysis: found / not found
  - export: CSV download headers, empty export
  - health: ok / degraded
  - HTTP status mapping (400 / 404 / 502 / 503)

Collaborators are stubs; no Ollama instance or PDF files required.
HTTP tests are skipped when FastAPI or httpx is not installed.
"""

from unittest.mock import MagicMock

import pytest

from factories import StubClassifier, StubExtractor, seed_records
from sentiscope.api import SentiscopeAPI
from sentiscope.config import DEFAULT_CONFIG
from sentiscope.container import build_services
from sentiscope.errors import EmptyExportError, ValidationError
from sentiscope.store.memory_store import InMemoryRecordStore


# ── HELPERS ──────────────────────────────────────────────────────────────────

def _make_services(classifier=None, extractor=None, seeded=False):
    store = InMemoryRecordStore()
    if seeded:
        for r in seed_records():
            store.save(r)
    return build_services(
        config     = dict(DEFAULT_CONFIG),
        store      = store,
        extractor  = extractor or StubExtractor(),
        classifier = classifier or StubClassifier(),
    )


def _make_api(**kw) -> SentiscopeAPI:
    return SentiscopeAPI(services=_make_services(**kw))


# ── FACADE ───────────────────────────────────────────────────────────────────

class TestAnalyze:
    def test_returns_analysis_dict(self):
        api = _make_api()
        out = api.analyze(b"%PDF-1.4", client_name="Acme", document_id="q3.pdf", channel="email")
        assert out["analysis"]["sentiment"] == "positive"
        assert out["analysis"]["client_name"] == "Acme"
        assert out["processing_time_ms"] >= 0
        assert api.get_analysis(out["analysis"]["id"])["document_id"] == "q3.pdf"

    def test_validation_error_propagates(self):
        with pytest.raises(ValidationError):
            _make_api().analyze(b"", client_name="Acme", document_id="d", channel="email")


class TestQueries:
    def test_get_analyses(self):
        out = _make_api(seeded=True).get_analyses(limit=2, client_name="acme")
        assert out["analyses"]["total"] == 2
        assert out["analyses"]["total_pages"] == 1
        assert out["statistics"]["total"] == 2

    def test_get_analyses_is_strict(self):
        with pytest.raises(ValidationError):
            _make_api(seeded=True).get_analyses(limit=500)

    def test_filter_analyses_is_lenient(self):
        out = _make_api(seeded=True).filter_analyses(limit=500, sentiment="positive")
        assert out["analyses"]["limit"] == 100
        assert out["summary"]["total_matches"] == 2
        assert out["applied_filters"] == {"sentiment": "positive"}

    def test_get_analysis_missing(self):
        assert _make_api(seeded=True).get_analysis("nope") is None

    def test_recent_and_statistics(self):
        api = _make_api(seeded=True)
        assert [r["id"] for r in api.get_recent("Acme Corp")] == ["r3", "r1"]
        assert api.get_statistics(channel="email")["positive_count"] == 2

    def test_filter_options(self):
        assert _make_api(seeded=True).get_filter_options()["channels"] == ["chat", "email"]


class TestExportAndHealth:
    def test_export(self):
        outcome = _make_api(seeded=True).export(format="json", sentiment="negative")
        assert outcome.exported_count == 1
        assert outcome.result.mime_type == "application/json"

    def test_export_nothing(self):
        with pytest.raises(EmptyExportError):
            _make_api().export()

    def test_export_preview(self):
        out = _make_api(seeded=True).export_preview(limit=1)
        assert out["total"] == 4
        assert len(out["sample"]) == 1

    def test_health_ok(self):
        health = _make_api().health()
        assert health["status"] == "ok"
        assert health["record_count"] == 0
        assert health["store_backend"] == "memory"
        assert "version" in health

    def test_health_degraded_never_raises(self):
        classifier = MagicMock()
        classifier.is_ready.side_effect = RuntimeError("socket closed")
        health = _make_api(classifier=classifier).health()
        assert health["status"] == "degraded"
        assert health["classifier_ready"] is False


# ── HTTP ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def client_factory():
    pytest.importorskip("fastapi")
    pytest.importorskip("httpx")
    from fastapi.testclient import TestClient
    from sentiscope.api import _build_app

    def _client(**kw):
        return TestClient(_build_app(services=_make_services(**kw)))
    return _client


ANALYZE_PARAMS = {"client_name": "Acme", "document_id": "q3.pdf", "channel": "email"}


class TestHttp:
    def test_analyze(self, client_factory):
        resp = client_factory().post("/analyze", params=ANALYZE_PARAMS, content=b"%PDF-1.4 body")
        assert resp.status_code == 200
        assert resp.json()["analysis"]["sentiment"] == "positive"

    def test_analyze_empty_body_is_400(self, client_factory):
        resp = client_factory().post("/analyze", params=ANALYZE_PARAMS, content=b"")
        assert resp.status_code == 400
        assert "empty" in resp.json()["detail"]

    def test_analyzer_unavailable_is_503(self, client_factory):
        client = client_factory(classifier=StubClassifier(ready=False))
        resp = client.post("/analyze", params=ANALYZE_PARAMS, content=b"%PDF-1.4")
        assert resp.status_code == 503

    def test_classification_failure_is_502(self, client_factory):
        client = client_factory(classifier=StubClassifier(error=TimeoutError("slow")))
        resp = client.post("/analyze", params=ANALYZE_PARAMS, content=b"%PDF-1.4")
        assert resp.status_code == 502

    def test_unsupported_document_is_400(self, client_factory):
        client = client_factory(extractor=StubExtractor(supported=False))
        resp = client.post("/analyze", params=ANALYZE_PARAMS, content=b"PK\x03\x04")
        assert resp.status_code == 400

    def test_list_and_bad_limit(self, client_factory):
        client = client_factory(seeded=True)
        resp = client.get("/analyses", params={"limit": 2})
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["analyses"]["items"]) == 2
        assert "content" not in body["analyses"]["items"][0]
        assert client.get("/analyses", params={"limit": 0}).status_code == 400

    def test_filter_post(self, client_factory):
        resp = client_factory(seeded=True).post(
            "/analyses/filter", json={"channel": "chat", "limit": 1000},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["summary"]["total_matches"] == 2
        assert body["analyses"]["limit"] == 100

    def test_get_by_id(self, client_factory):
        client = client_factory(seeded=True)
        assert client.get("/analyses/r2").json()["client_name"] == "Beta LLC"
        assert client.get("/analyses/missing").status_code == 404

    def test_recent_and_options_are_not_ids(self, client_factory):
        client = client_factory(seeded=True)
        assert client.get("/analyses/recent").json()["count"] == 4
        assert "clients" in client.get("/analyses/options").json()

    def test_statistics(self, client_factory):
        body = client_factory(seeded=True).get("/statistics", params={"sentiment": "positive"}).json()
        assert body["total"] == 2
        assert body["most_common_channel"] == "email"

    def test_export_download(self, client_factory):
        resp = client_factory(seeded=True).get("/export", params={"format": "csv", "max_records": 3})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.headers["x-exported-count"] == "3"
        assert resp.headers["x-total-available"] == "4"
        assert "attachment" in resp.headers["content-disposition"]
        assert resp.text.splitlines()[0].startswith("id,client_name")

    def test_export_errors_are_400(self, client_factory):
        client = client_factory()
        assert client.get("/export").status_code == 400
        assert client.get("/export", params={"format": "xml"}).status_code == 400

    def test_health(self, client_factory):
        assert client_factory().get("/health").json()["status"] == "ok"
