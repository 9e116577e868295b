"""
sentiscope/extractors/plain_text.py
Plain UTF-8 text documents (exported chats, e-mail bodies, transcripts).
"""

from typing import Optional

from sentiscope.extractors.base import (
    DocumentMetadata,
    ExtractedText,
    ExtractionOptions,
    TextExtractor,
)
from sentiscope.extractors.pdf_extractor import clean_text


class PlainTextExtractor(TextExtractor):

    def is_supported(self, data: bytes) -> bool:
        if not data or b'\x00' in data:
            return False
        try:
            bytes(data).decode('utf-8')
        except UnicodeDecodeError:
            return False
        return True

    def extract(self, data: bytes, options: Optional[ExtractionOptions] = None) -> ExtractedText:
        options = options or ExtractionOptions()
        text = bytes(data).decode('utf-8-sig')
        if not options.preserve_formatting:
            text = clean_text(text)
        return ExtractedText(
            text     = text,
            metadata = DocumentMetadata(page_count=1, file_size=len(data)),
        )
