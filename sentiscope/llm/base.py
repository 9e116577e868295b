"""
sentiscope/llm/base.py
Abstract base class for all classifier backends.
To add a new backend: subclass SentimentClassifier and implement
is_ready() and classify().
"""

from abc import ABC, abstractmethod


class SentimentClassifier(ABC):
    """
    The pipeline calls is_ready() once per document, then classify().
    classify() returns the backend's raw text answer; decoding it is the
    job of llm.response_parser, so backends never interpret the payload.
    """

    @abstractmethod
    def is_ready(self) -> bool:
        """
        Returns True if the backend is reachable and the model is loaded.
        Must not raise — report problems as False.
        """
        ...

    @abstractmethod
    def classify(
        self,
        text:        str,
        client_name: str,
        document_id: str,
        channel:     str,
    ) -> str:
        """
        Classify one document. Returns the raw response text.
        Raises on transport failure; the pipeline maps any exception to
        ClassificationError.
        """
        ...

    def build_prompt(
        self,
        text:        str,
        client_name: str,
        document_id: str,
        channel:     str,
        max_chars:   int = 12000,
    ) -> str:
        """Shared prompt builder. Documents are mostly Spanish banking correspondence."""
        return (
            "You are a sentiment analyst for customer communications in the "
            "Mexican banking sector. The text is usually written in Spanish.\n\n"
            f"Client: {client_name}\n"
            f"Channel: {channel}\n"
            f"Document: {document_id}\n\n"
            "TEXT TO ANALYZE:\n"
            f'"""\n{text[:max_chars]}\n"""\n\n'
            "Respond ONLY with a valid JSON object. No markdown, no explanation.\n\n"
            "{\n"
            '  "overallSentiment": "positive" or "neutral" or "negative",\n'
            '  "emotionScores": {\n'
            '    "joy": 0.0-1.0, "sadness": 0.0-1.0, "anger": 0.0-1.0,\n'
            '    "fear": 0.0-1.0, "surprise": 0.0-1.0, "disgust": 0.0-1.0\n'
            "  },\n"
            '  "confidence": 0.0-1.0,\n'
            '  "reasoning": "one or two sentences explaining the verdict"\n'
            "}\n\n"
            "GUIDELINES:\n"
            "- Words such as 'problema', 'error' or 'demora' usually signal frustration\n"
            "- Gratitude and satisfaction are positive indicators\n"
            "- Technical questions without strong emotion are usually neutral\n"
            "- The six emotion scores MUST sum to 1.0"
        )
