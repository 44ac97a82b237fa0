"""Filesystem tags: read, merge and write keywords on the PDFs themselves.

Tags live in the ``user.xdg.tags`` extended attribute as a comma-separated
list (freedesktop.org convention, read by Dolphin/Baloo and tmsu).
"""

from __future__ import annotations

import errno
import os
from collections import Counter
from pathlib import Path
from typing import Final, Iterable

from papertags.config import Settings, load_settings
from papertags.errors import TaggingError
from papertags.models import ExtractionResult, TaggingOutcome
from papertags.pipeline import process_batch
from papertags.synthesis import KeywordStrategy


TAGS_XATTR: Final[str] = "user.xdg.tags"

STATUS_TAGGED: Final[str] = "tagged"
STATUS_UNCHANGED: Final[str] = "unchanged"
STATUS_SKIPPED: Final[str] = "skipped"
STATUS_FAILED: Final[str] = "failed"
STATUS_DRY_RUN: Final[str] = "dry-run"

_MISSING_ATTR_ERRNOS = {
    e for e in (getattr(errno, "ENODATA", None), getattr(errno, "ENOATTR", None)) if e is not None
}


def _require_xattr() -> None:
    if not hasattr(os, "getxattr") or not hasattr(os, "setxattr"):
        raise TaggingError("extended attributes are not supported on this platform")


def parse_tags(raw: str) -> list[str]:
    return [t.strip() for t in raw.split(",") if t.strip()]


def read_tags(path: Path | str) -> list[str]:
    """Return the tags already on a file (empty list if it has none)."""
    _require_xattr()
    try:
        raw = os.getxattr(str(path), TAGS_XATTR)
    except OSError as e:
        if e.errno in _MISSING_ATTR_ERRNOS:
            return []
        raise TaggingError(f"cannot read tags of {Path(path).name}: {e.strerror or e}") from e
    return parse_tags(raw.decode("utf-8", errors="replace"))


def write_tags(path: Path | str, tags: Iterable[str]) -> None:
    """Replace the tags on a file."""
    _require_xattr()
    value = ",".join(t.replace(",", " ").strip() for t in tags if t.strip())
    try:
        os.setxattr(str(path), TAGS_XATTR, value.encode("utf-8"))
    except OSError as e:
        raise TaggingError(f"cannot write tags of {Path(path).name}: {e.strerror or e}") from e


def merge_tags(existing: Iterable[str], new: Iterable[str]) -> list[str]:
    """
    Existing tags first, in their order, then new tags not already present.

    Comparison is case-insensitive; the first spelling seen is kept.
    """
    merged: list[str] = []
    seen: set[str] = set()
    for tag in list(existing) + list(new):
        key = tag.strip().lower()
        if key and key not in seen:
            seen.add(key)
            merged.append(tag.strip())
    return merged


def apply_result(path: Path, result: ExtractionResult, dry_run: bool = False) -> TaggingOutcome:
    """Turn one extraction result into tags on `path`, keeping existing tags."""
    if not result.ok:
        return TaggingOutcome(path=path, status=STATUS_FAILED, result=result, detail=result.error)

    try:
        existing = read_tags(path)
        merged = merge_tags(existing, result.keywords)
        if dry_run:
            return TaggingOutcome(path=path, status=STATUS_DRY_RUN, result=result, tags=tuple(merged))
        if merged == existing:
            return TaggingOutcome(path=path, status=STATUS_UNCHANGED, result=result, tags=tuple(merged))
        write_tags(path, merged)
    except TaggingError as e:
        return TaggingOutcome(path=path, status=STATUS_FAILED, result=result, detail=str(e))

    return TaggingOutcome(path=path, status=STATUS_TAGGED, result=result, tags=tuple(merged))


def tag_documents(
    pdf_paths: Iterable[Path | str],
    *,
    settings: Settings | None = None,
    strategy: KeywordStrategy | None = None,
    dry_run: bool = False,
    progress: bool = True,
) -> list[TaggingOutcome]:
    """
    Extract keywords for every PDF (bounded pool) and tag each file.

    Non-PDF paths are skipped without being read.
    """
    settings = settings or load_settings()
    paths = [Path(p) for p in pdf_paths]
    pdfs = [p for p in paths if p.suffix.lower() == ".pdf"]

    results = process_batch(pdfs, settings=settings, strategy=strategy, progress=progress)
    by_path = dict(zip(pdfs, results))

    outcomes: list[TaggingOutcome] = []
    for p in paths:
        result = by_path.get(p)
        if result is None:
            skipped = ExtractionResult.failure(p.name, "Not a PDF file")
            outcomes.append(TaggingOutcome(path=p, status=STATUS_SKIPPED, result=skipped, detail=skipped.error))
            continue
        outcomes.append(apply_result(p, result, dry_run=dry_run))
    return outcomes


def summarize_outcomes(outcomes: list[TaggingOutcome]) -> list[str]:
    """Lines of the end-of-run summary: counts per status, then each failure."""
    if not outcomes:
        return ["No documents processed."]

    counts = Counter(o.status for o in outcomes)
    parts = [f"{status}={counts[status]}" for status in sorted(counts)]
    lines = [f"Processed {len(outcomes)} document(s): " + ", ".join(parts)]

    methods = Counter(o.result.method.value for o in outcomes if o.result.ok)
    if methods:
        lines.append("Methods: " + ", ".join(f"{m}={methods[m]}" for m in sorted(methods)))

    for o in outcomes:
        if o.status in (STATUS_FAILED, STATUS_SKIPPED):
            lines.append(f"  - {o.path.name}: {o.detail}")
    return lines
