"""
sentiscope/errors.py
Exception taxonomy shared by the pipeline, the store and the exporters.

Every error carries a human-readable message. Collaborator failures are
chained (raise ... from exc) so the root cause stays visible in logs.
"""


class SentiscopeError(Exception):
    """Base class for all sentiscope errors."""


# ── CALLER INPUT ─────────────────────────────────────────────

class ValidationError(SentiscopeError, ValueError):
    """Bad caller input or an invariant violation. Never retried."""


class ConfigError(SentiscopeError):
    """Invalid configuration value."""


# ── COLLABORATORS ────────────────────────────────────────────

class AnalyzerUnavailableError(SentiscopeError):
    """The classifier reported it is not ready. Caller may retry later."""


class ClassificationError(SentiscopeError):
    """The classifier call itself failed. Caller may retry."""


class InvalidDocumentError(SentiscopeError):
    """Document type not supported or text extraction failed."""


class EmptyContentError(SentiscopeError):
    """Extraction succeeded but yielded no usable text."""


class PersistenceError(SentiscopeError):
    """Store failure. No partial state is left behind."""


# ── EXPORT ───────────────────────────────────────────────────

class ExportError(SentiscopeError):
    """Base class for export-time errors the caller can correct."""


class UnsupportedFormatError(ExportError):
    pass


class EmptyExportError(ExportError):
    pass


class ExportLimitError(ExportError):
    pass
