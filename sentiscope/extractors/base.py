"""
sentiscope/extractors/base.py
Text-extraction contract. The pipeline only ever talks to TextExtractor;
the concrete backend (PDF, plain text, ...) is chosen by the composition root.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


DEFAULT_MAX_SIZE = 10 * 1024 * 1024   # 10 MiB


@dataclass
class DocumentMetadata:
    page_count: int
    file_size:  int
    title:      Optional[str] = None
    author:     Optional[str] = None


@dataclass
class ExtractedText:
    text:     str
    metadata: DocumentMetadata


@dataclass
class ExtractionOptions:
    max_pages:           Optional[int] = None   # None = all pages
    include_metadata:    bool          = True
    preserve_formatting: bool          = False


class TextExtractor(ABC):

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        self._max_size = max_size

    def max_size(self) -> int:
        """Largest document accepted, in bytes."""
        return self._max_size

    @abstractmethod
    def is_supported(self, data: bytes) -> bool:
        """Cheap signature check. Must not raise."""
        ...

    @abstractmethod
    def extract(self, data: bytes, options: Optional[ExtractionOptions] = None) -> ExtractedText:
        """Return the document's plain text plus metadata. Raises on failure."""
        ...
