"""Exception types for the keyword pipeline and the tagging layer."""

from __future__ import annotations


class PaperTagsError(Exception):
    """Base class for paper-tags errors."""


class ExtractionUnavailable(PaperTagsError):
    """No text could be obtained from the document."""

    def __init__(self, message: str = "Could not extract text from PDF"):
        super().__init__(message)


class InsufficientSignal(PaperTagsError):
    """Text was found, but it did not yield enough keyword candidates."""

    def __init__(self, message: str = "Could not extract sufficient keywords"):
        super().__init__(message)


class TaggingError(PaperTagsError):
    """Reading or writing filesystem tags failed."""
