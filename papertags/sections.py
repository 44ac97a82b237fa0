"""Explicit keyword sections: "Keywords:", "Key words:" and "Index terms:" blocks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Final

from papertags.config import DEFAULT_MIN_SECTION_TERMS


MAX_CONTINUATION_CHARS: Final[int] = 80
MIN_TERM_CHARS: Final[int] = 2   # exclusive
MAX_TERM_CHARS: Final[int] = 50  # exclusive

# Header, optional colon/dash, then the rest of the line and the line after it.
_HEADER_TAIL = r"\s*[:\-–—]?[ \t]*([^\n]*)(?:\n([^\n]*))?"

_TERM_SPLIT_RE = re.compile(r"\s*(?:[;,·•]|\band\b)\s*", re.IGNORECASE)

# A line after the keyword line that starts a new block rather than continuing it.
_NEW_BLOCK_RE = re.compile(
    r"""^\s*(?:
        \d+(?:\.\d+)*\.\s+\S              # 1. Introduction / 2.1. Data
      | \d+\s+introduction\b              # 1 Introduction
      | [IVX]+\.\s+\S                     # I. INTRODUCTION
      | (?:abstract|introduction)\s*[:.]?\s*$
      | (?:keywords|key\s+words|index\s+terms)\s*[:\-–—]
    )""",
    re.IGNORECASE | re.VERBOSE,
)


def _continuation(line: str | None) -> str:
    if not line or not line.strip():
        return ""
    if len(line.strip()) > MAX_CONTINUATION_CHARS:
        return ""
    if _NEW_BLOCK_RE.match(line):
        return ""
    return line.strip()


def split_terms(span: str) -> list[str]:
    """
    Split a captured keyword span into terms.

    Separators: ; , · • and the word "and". Pieces are trimmed (whitespace
    and a trailing period); empty pieces are dropped. Order is preserved and
    duplicates are kept.
    """
    pieces = _TERM_SPLIT_RE.split(span)
    terms: list[str] = []
    for piece in pieces:
        term = piece.strip().rstrip(".").strip()
        if term:
            terms.append(term)
    return terms


def _filter_terms(terms: list[str]) -> list[str]:
    return [t for t in terms if MIN_TERM_CHARS < len(t) < MAX_TERM_CHARS]


def _extract_span(match: re.Match[str]) -> str:
    first = match.group(1).strip()
    rest = _continuation(match.group(2))
    return f"{first} {rest}".strip() if rest else first


@dataclass(frozen=True)
class SectionMatcher:
    """One header pattern plus the function turning its match into raw terms."""
    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], str] = _extract_span

    def terms(self, text: str) -> list[str] | None:
        m = self.pattern.search(text)
        if not m:
            return None
        terms = _filter_terms(split_terms(self.extract(m)))
        return terms or None


def _header(words: str) -> re.Pattern[str]:
    return re.compile(rf"\b{words}\b{_HEADER_TAIL}", re.IGNORECASE)


SECTION_MATCHERS: tuple[SectionMatcher, ...] = (
    SectionMatcher("keywords", _header(r"keywords")),
    SectionMatcher("key words", _header(r"key\s+words")),
    SectionMatcher("index terms", _header(r"index\s+terms")),
)


def find_keywords_section(
    text: str,
    matchers: tuple[SectionMatcher, ...] = SECTION_MATCHERS,
) -> list[str] | None:
    """
    Find an explicit keyword list in paper text.

    Matchers are tried in order; the first one yielding at least one term
    wins (lists from different headers are never merged).

    Returns: the terms in document order, or None.
    """
    if not text:
        return None
    for matcher in matchers:
        terms = matcher.terms(text)
        if terms:
            return terms
    return None


def accept_section_terms(
    terms: list[str] | None,
    max_keywords: int,
    min_terms: int = DEFAULT_MIN_SECTION_TERMS,
) -> list[str] | None:
    """
    Decide whether a keyword section is trustworthy enough to use.

    Lists shorter than `min_terms` are treated as noise (None); accepted
    lists are truncated to `max_keywords`.
    """
    if not terms or len(terms) < min_terms:
        return None
    return terms[:max_keywords]
