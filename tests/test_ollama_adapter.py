"""
tests/test_ollama_adapter.py
OllamaClassifier with urllib mocked out. No Ollama instance required.
"""

import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from sentiscope.llm.ollama_adapter import OllamaClassifier

URLOPEN = "sentiscope.llm.ollama_adapter.urllib.request.urlopen"


def _http_response(payload) -> MagicMock:
    resp = MagicMock()
    resp.read.return_value = json.dumps(payload).encode("utf-8")
    resp.__enter__.return_value = resp
    return resp


class TestReadiness:
    def test_ready_when_model_pulled(self):
        with patch(URLOPEN, return_value=_http_response({"models": [{"name": "llama3.1:8b"}]})):
            assert OllamaClassifier(model="llama3.1:8b").is_ready()

    def test_family_prefix_matches(self):
        with patch(URLOPEN, return_value=_http_response({"models": [{"name": "llama3.1:70b"}]})):
            assert OllamaClassifier(model="llama3.1:8b").is_ready()

    def test_not_ready_when_model_missing(self):
        with patch(URLOPEN, return_value=_http_response({"models": [{"name": "mistral:7b"}]})):
            assert not OllamaClassifier(model="llama3.1:8b").is_ready()

    def test_not_ready_when_unreachable(self):
        with patch(URLOPEN, side_effect=urllib.error.URLError("refused")):
            assert not OllamaClassifier().is_ready()

    def test_not_ready_on_garbage(self):
        resp = MagicMock()
        resp.read.return_value = b"<html>"
        resp.__enter__.return_value = resp
        with patch(URLOPEN, return_value=resp):
            assert not OllamaClassifier().is_ready()

    def test_list_models_swallows_errors(self):
        with patch(URLOPEN, side_effect=urllib.error.URLError("refused")):
            assert OllamaClassifier().list_available_models() == []


class TestClassify:
    def test_posts_prompt_and_returns_raw_text(self):
        answer = '{"overallSentiment": "positive"}'
        with patch(URLOPEN, return_value=_http_response({"response": f"  {answer}\n"})) as urlopen:
            out = OllamaClassifier(model="mistral:7b", host="http://ollama:11434/",
                                   timeout_sec=7).classify("Gracias", "Acme", "d.pdf", "email")
        assert out == answer

        req = urlopen.call_args[0][0]
        assert req.full_url == "http://ollama:11434/api/generate"
        assert urlopen.call_args[1]["timeout"] == 7
        body = json.loads(req.data.decode("utf-8"))
        assert body["model"] == "mistral:7b"
        assert body["stream"] is False
        assert body["format"] == "json"
        assert "Client: Acme" in body["prompt"]
        assert "Gracias" in body["prompt"]

    def test_empty_response_raises(self):
        with patch(URLOPEN, return_value=_http_response({"response": "   "})):
            with pytest.raises(ValueError, match="No response"):
                OllamaClassifier().classify("t", "c", "d", "email")

    def test_transport_error_propagates(self):
        with patch(URLOPEN, side_effect=urllib.error.URLError("timed out")):
            with pytest.raises(urllib.error.URLError):
                OllamaClassifier().classify("t", "c", "d", "email")

    def test_prompt_truncates_long_documents(self):
        prompt = OllamaClassifier().build_prompt("x" * 20000, "c", "d", "email")
        assert "x" * 12000 in prompt
        assert "x" * 12001 not in prompt
