"""
sentiscope/llm — classifier backends and the response parser.
"""

from sentiscope.llm.base import SentimentClassifier
from sentiscope.llm.response_parser import (
    FallbackVerdict,
    ParsedVerdict,
    Verdict,
    parse_response,
)

__all__ = [
    "FallbackVerdict",
    "ParsedVerdict",
    "SentimentClassifier",
    "Verdict",
    "parse_response",
]
