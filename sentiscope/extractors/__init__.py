"""
sentiscope/extractors — document → plain text backends.
"""

from sentiscope.extractors.base import (
    DocumentMetadata,
    ExtractedText,
    ExtractionOptions,
    TextExtractor,
)

__all__ = [
    "DocumentMetadata",
    "ExtractedText",
    "ExtractionOptions",
    "TextExtractor",
]
