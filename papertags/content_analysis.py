"""Title and abstract heuristics for papers without an explicit keyword list."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Final


TITLE_SCAN_LINES: Final[int] = 10
TITLE_MIN_CHARS: Final[int] = 10    # exclusive
TITLE_MAX_CHARS: Final[int] = 200   # exclusive
TITLE_EXTEND_MIN_CHARS: Final[int] = 20  # exclusive
MAX_ABSTRACT_CHARS: Final[int] = 2000

# Running headers and identifiers that sit above the title on page one.
_HEADER_NOISE_RE = re.compile(r"journal|proceedings|conference|volume|doi:|arxiv", re.IGNORECASE)
_ABSTRACT_START_RE = re.compile(r"^abstract\b", re.IGNORECASE)

_ABSTRACT_HEAD = r"\babstract\b\s*[:.\-–—]?\s*"


def _is_header_noise(line: str) -> bool:
    return bool(_HEADER_NOISE_RE.search(line))


def extract_title(text: str) -> str | None:
    """
    Guess the title from the first non-blank lines of the text.

    The first line that is not header noise and has a plausible length seeds
    the title. Following lines are appended while they are long enough to be
    a wrapped title; the first one that is not ends the title. A line starting
    with "Abstract" also ends it, even when it is long enough to qualify.
    """
    if not text:
        return None

    lines = [ln.strip() for ln in text.splitlines()]
    lines = [ln for ln in lines if ln][:TITLE_SCAN_LINES]

    parts: list[str] = []
    for ln in lines:
        if _is_header_noise(ln):
            continue
        qualifies = TITLE_MIN_CHARS < len(ln) < TITLE_MAX_CHARS
        if not parts:
            if qualifies:
                parts.append(ln)
            continue
        if qualifies and len(ln) > TITLE_EXTEND_MIN_CHARS and not _ABSTRACT_START_RE.match(ln):
            parts.append(ln)
            continue
        break

    return " ".join(parts) if parts else None


@dataclass(frozen=True)
class AbstractMatcher:
    """An abstract pattern plus the function pulling the abstract out of a match."""
    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], str] = lambda m: m.group(1)

    def abstract(self, text: str) -> str | None:
        m = self.pattern.search(text)
        if not m:
            return None
        body = self.extract(m).strip()
        if not body:
            return None
        return body[:MAX_ABSTRACT_CHARS]


ABSTRACT_MATCHERS: tuple[AbstractMatcher, ...] = (
    AbstractMatcher(
        "until-section-header",
        re.compile(
            _ABSTRACT_HEAD
            + r"(.+?)\n\s*(?:(?:1\.?\s*)?introduction\b|keywords?\b|1\.\s|I\.\s)",
            re.IGNORECASE | re.DOTALL,
        ),
    ),
    AbstractMatcher(
        "until-blank-line",
        re.compile(_ABSTRACT_HEAD + r"(.+?)\n[ \t]*\n", re.IGNORECASE | re.DOTALL),
    ),
)


def extract_abstract(
    text: str,
    matchers: tuple[AbstractMatcher, ...] = ABSTRACT_MATCHERS,
) -> str | None:
    """Extract the abstract (at most 2000 chars); the first matching pattern wins."""
    if not text:
        return None
    for matcher in matchers:
        abstract = matcher.abstract(text)
        if abstract:
            return abstract
    return None


def segment(text: str) -> tuple[str | None, str | None]:
    """
    Split leading paper text into (title, abstract).

    Either element may be None independently.
    """
    return extract_title(text), extract_abstract(text)
