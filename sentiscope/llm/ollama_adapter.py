"""
sentiscope/llm/ollama_adapter.py
Ollama classifier backend. Ollama serves models locally over HTTP, so
documents never leave the machine.

INSTALL:
  https://ollama.com/download, then `ollama pull <model>`

RECOMMENDED MODELS:
  4-8GB RAM: mistral:7b, llama3.1:8b
  8GB+ RAM:  llama3.1:8b-instruct-q8_0, qwen2.5:14b
"""

import json
import logging
import urllib.error
import urllib.request
from typing import List

from sentiscope.llm.base import SentimentClassifier

logger = logging.getLogger(__name__)


class OllamaClassifier(SentimentClassifier):

    def __init__(
        self,
        model:       str   = 'llama3.1:8b',
        host:        str   = 'http://localhost:11434',
        timeout_sec: int   = 120,
        temperature: float = 0.3,
        num_predict: int   = 400,
    ):
        self.model       = model
        self.host        = host.rstrip('/')
        self.timeout_sec = timeout_sec
        self.temperature = temperature
        self.num_predict = num_predict

    # ── AVAILABILITY CHECK ───────────────────────────────────
    def is_ready(self) -> bool:
        """Ping Ollama and confirm the configured model is pulled."""
        try:
            models = self._fetch_model_names()
        except urllib.error.URLError:
            logger.warning(
                "Ollama not reachable at " + self.host +
                ". Start Ollama or check the configured host."
            )
            return False
        except Exception as e:
            logger.warning(f"Ollama readiness check failed: {e}")
            return False

        # Exact match or family prefix ("llama3.1" matches "llama3.1:8b")
        ready = any(
            m == self.model or m.startswith(self.model.split(':')[0])
            for m in models
        )
        if not ready:
            logger.warning(
                f"Model '{self.model}' not found in Ollama. "
                f"Available: {models}. "
                f"Run: ollama pull {self.model}"
            )
        return ready

    # ── CLASSIFICATION ───────────────────────────────────────
    def classify(
        self,
        text:        str,
        client_name: str,
        document_id: str,
        channel:     str,
    ) -> str:
        prompt = self.build_prompt(text, client_name, document_id, channel)

        payload = json.dumps({
            'model':  self.model,
            'prompt': prompt,
            'stream': False,
            'options': {
                'temperature': self.temperature,
                'num_predict': self.num_predict,
            },
            'format': 'json',   # Ollama JSON mode
        }).encode('utf-8')

        req = urllib.request.Request(
            f"{self.host}/api/generate",
            data    = payload,
            headers = {'Content-Type': 'application/json'},
            method  = 'POST',
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
                data = json.loads(resp.read().decode('utf-8'))
        except urllib.error.URLError as e:
            logger.error(f"Ollama request failed: {e}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Ollama returned a non-JSON envelope: {e}")
            raise

        response_text = str(data.get('response', '')).strip()
        if not response_text:
            raise ValueError('No response received from Ollama')
        return response_text

    # ── MODEL MANAGEMENT HELPERS ─────────────────────────────
    def list_available_models(self) -> List[str]:
        """Return locally available model names, or [] if Ollama is down."""
        try:
            return self._fetch_model_names()
        except Exception:
            return []

    def _fetch_model_names(self) -> List[str]:
        req = urllib.request.Request(f"{self.host}/api/tags", method='GET')
        with urllib.request.urlopen(req, timeout=5) as resp:
            data = json.loads(resp.read().decode())
        return [m['name'] for m in data.get('models', [])]
