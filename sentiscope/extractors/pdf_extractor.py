"""
sentiscope/extractors/pdf_extractor.py
PDF text extraction via pypdf. Signature check on the %PDF magic bytes,
then page-by-page text extraction and whitespace clean-up.
"""

import io
import logging
import re
from typing import Optional

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from sentiscope.extractors.base import (
    DEFAULT_MAX_SIZE,
    DocumentMetadata,
    ExtractedText,
    ExtractionOptions,
    TextExtractor,
)

logger = logging.getLogger(__name__)

PDF_MAGIC_BYTES = b'%PDF'


def clean_text(text: str) -> str:
    """Normalise extraction artifacts while keeping paragraph breaks."""
    text = text.replace('\x00', '').replace('\u00a0', ' ')
    text = text.replace('\r\n', '\n').replace('\r', '\n').replace('\f', '\n')
    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r' *\n *', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    text = re.sub(r'\.{4,}', '...', text)
    text = re.sub(r'-{4,}', '---', text)
    return text.strip()


class PdfTextExtractor(TextExtractor):

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        super().__init__(max_size)

    def is_supported(self, data: bytes) -> bool:
        if not data or len(data) < len(PDF_MAGIC_BYTES):
            logger.debug("PDF check failed: buffer too small")
            return False
        return bytes(data[:4]) == PDF_MAGIC_BYTES

    def extract(self, data: bytes, options: Optional[ExtractionOptions] = None) -> ExtractedText:
        options = options or ExtractionOptions()

        if len(data) > self.max_size():
            raise ValueError(f"File size exceeds maximum limit of {self.max_size()} bytes")
        if not self.is_supported(data):
            raise ValueError("Invalid PDF file format")

        try:
            reader = PdfReader(io.BytesIO(data))
            pages = reader.pages
            if options.max_pages:
                pages = pages[:options.max_pages]
            raw = '\n\n'.join((page.extract_text() or '') for page in pages)
            page_count = len(reader.pages)
            info = reader.metadata if options.include_metadata else None
        except PyPdfError as e:
            logger.error(f"PDF parsing failed: {e}")
            raise ValueError(f"PDF text extraction failed: {e}") from e

        text = raw if options.preserve_formatting else clean_text(raw)
        logger.debug(f"PDF parsed | pages={page_count} chars={len(text)}")

        return ExtractedText(
            text     = text,
            metadata = DocumentMetadata(
                page_count = page_count,
                file_size  = len(data),
                title      = (info.title if info else None) or None,
                author     = (info.author if info else None) or None,
            ),
        )
