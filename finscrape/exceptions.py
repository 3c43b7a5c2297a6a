"""
Custom exceptions for the finscrape pipeline.

Error philosophy:
  - ParseError                → FAIL HARD: the payload could not be turned into a Document.
  - ExtractionStructureError  → FAIL HARD: the page no longer has the layout an extractor expects.
  - UnsupportedValueTypeError → FAIL HARD: a Field Map carried a value the materializer can't encode.
  - UnknownViewError          → FAIL HARD: no extractor registered under that name.

Numeric conversion failures are NOT errors: the coercion engine maps them to
the "NaN" sentinel and keeps going.
"""

from typing import Optional


class ScrapeError(Exception):
    """Base exception for all finscrape errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict:
        """Convert to a plain dict so callers can treat the failure as a value."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details
        }


# --- Loader ---

class ParseError(ScrapeError):
    """
    Raised when the Loader cannot produce a Document.

    Covers undecodable byte streams, unsupported payload types and markup
    that every parser in the fallback chain rejected.
    """
    pass


# --- Extractor ---

class ExtractionStructureError(ScrapeError):
    """Raised when the root landmark of an extraction layout is missing."""

    def __init__(
        self,
        message: str,
        view: str,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.view = view  # "by_time", "by_source", ... tells which layout broke


class UnknownViewError(ScrapeError):
    """Raised when no extractor is registered under the requested view name."""

    def __init__(self, message: str, view: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.view = view


# --- Materializer ---

class UnsupportedValueTypeError(ScrapeError):
    """
    Raised when a Field Map value is neither a string, None, nor a list of
    string-keyed dicts. This is a data-contract bug, never a page problem.
    """

    def __init__(
        self,
        message: str,
        record: str,
        field: str,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.record = record
        self.field = field
