"""Data models for paper-tags."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


_SPACE_RUN_RE = re.compile(r"\s+")


def normalize_term(term: str) -> str:
    """Lower-case a term and join its whitespace-separated words with hyphens."""
    return _SPACE_RUN_RE.sub("-", term.strip().lower())


class Method(str, Enum):
    """How the keywords of a document were obtained."""
    NONE = "none"
    KEYWORDS_SECTION = "keywords-section"
    TITLE_ABSTRACT = "title-abstract"


@dataclass(frozen=True)
class ExtractionResult:
    """
    Outcome of running the keyword pipeline on one PDF.

    Exactly one of ``keywords`` / ``error`` carries information: a failed
    result has no keywords and ``method`` NONE, a successful one has at least
    one keyword and no error.
    """
    file_name: str
    keywords: tuple[str, ...] = ()
    method: Method = Method.NONE
    error: str | None = None

    def __post_init__(self) -> None:
        if bool(self.error) == bool(self.keywords):
            raise ValueError("error must be set if and only if keywords is empty")
        if (self.method is Method.NONE) != bool(self.error):
            raise ValueError("method must be 'none' if and only if error is set")

    @classmethod
    def success(cls, file_name: str, keywords, method: Method) -> "ExtractionResult":
        return cls(file_name=file_name, keywords=tuple(keywords), method=method)

    @classmethod
    def failure(cls, file_name: str, error: str) -> "ExtractionResult":
        return cls(file_name=file_name, error=error or "Unknown error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_record(self) -> dict:
        """Flat record consumed by the tagging layer and the JSON output."""
        return {
            "file": self.file_name,
            "keywords": list(self.keywords),
            "method": self.method.value,
            "error": self.error,
        }


@dataclass(frozen=True)
class KeywordCandidate:
    """A synthesized keyword and how often it was seen; equal by normalized term."""
    term: str = field(compare=False)
    frequency: int = field(default=1, compare=False)
    key: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", normalize_term(self.term))


@dataclass(frozen=True)
class TaggingOutcome:
    """Per-document status of a tagging run plus the extraction result behind it."""
    path: Path
    status: str
    result: ExtractionResult
    tags: tuple[str, ...] = ()
    detail: str | None = None
