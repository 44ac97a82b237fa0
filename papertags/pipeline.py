"""Per-document keyword pipeline and its bounded batch runner."""

from __future__ import annotations

import traceback
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

from tqdm import tqdm

from papertags.config import Settings, debug_trace_enabled, load_settings
from papertags.content_analysis import segment
from papertags.errors import ExtractionUnavailable, InsufficientSignal
from papertags.models import ExtractionResult, Method
from papertags.pdf_extract import extract_text, pdfminer_available, pdftotext_available
from papertags.sections import accept_section_terms, find_keywords_section
from papertags.synthesis import KeywordStrategy, load_spacy_model, select_strategy, synthesize


def _format_exc(e: Exception) -> str:
    msg = str(e).strip()
    if msg:
        return f"{type(e).__name__}: {msg}"
    return type(e).__name__


def _check_max_keywords(max_keywords: int) -> None:
    if not isinstance(max_keywords, int) or isinstance(max_keywords, bool) or max_keywords <= 0:
        raise ValueError(f"max_keywords must be a positive integer, got {max_keywords!r}")


def _run_pipeline(
    pdf_path: Path,
    max_keywords: int,
    settings: Settings,
    strategy: KeywordStrategy,
) -> tuple[list[str], Method]:
    """
    Keywords for one PDF, first method that succeeds:
    1. Explicit keywords section (at least `min_section_terms` terms)
    2. Title + abstract synthesis

    Raises ExtractionUnavailable / InsufficientSignal on failure.
    """
    text = extract_text(pdf_path, max_pages=settings.max_pages, timeout=settings.timeout)
    if not text:
        raise ExtractionUnavailable()

    accepted = accept_section_terms(
        find_keywords_section(text),
        max_keywords,
        min_terms=settings.min_section_terms,
    )
    if accepted:
        return accepted, Method.KEYWORDS_SECTION

    title, abstract = segment(text)
    if not title and not abstract:
        raise InsufficientSignal()

    keywords = synthesize(title, abstract, max_keywords, strategy=strategy)
    if not keywords:
        raise InsufficientSignal()
    return keywords, Method.TITLE_ABSTRACT


def process_document(
    pdf_path: Path | str,
    max_keywords: int | None = None,
    *,
    settings: Settings | None = None,
    strategy: KeywordStrategy | None = None,
) -> ExtractionResult:
    """
    Extract keywords from one PDF.

    Never raises for a bad document: every fault ends up in `error` of the
    returned result. Caller errors do raise ValueError: an invalid
    `max_keywords`, or, when `settings` is not given, a malformed PAPERTAGS_*
    environment value. Batch callers should load settings once up front.
    """
    settings = settings or load_settings()
    if max_keywords is None:
        max_keywords = settings.max_keywords
    _check_max_keywords(max_keywords)

    pdf_path = Path(pdf_path)
    try:
        if strategy is None:
            strategy = select_strategy(settings.spacy_model, use_nlp=settings.use_nlp)
        keywords, method = _run_pipeline(pdf_path, max_keywords, settings, strategy)
    except (ExtractionUnavailable, InsufficientSignal) as e:
        return ExtractionResult.failure(pdf_path.name, str(e))
    except Exception as e:
        if debug_trace_enabled():
            tqdm.write(traceback.format_exc())
        return ExtractionResult.failure(pdf_path.name, _format_exc(e))

    return ExtractionResult.success(pdf_path.name, keywords, method)


def process_batch(
    pdf_paths: Iterable[Path | str],
    max_keywords: int | None = None,
    *,
    settings: Settings | None = None,
    strategy: KeywordStrategy | None = None,
    progress: bool = True,
) -> list[ExtractionResult]:
    """
    Run process_document over many PDFs on a bounded thread pool.

    Results come back in input order. The keyword strategy (and so the spaCy
    model) is chosen once and shared by every worker.
    """
    settings = settings or load_settings()
    paths = [Path(p) for p in pdf_paths]
    if not paths:
        return []
    if strategy is None:
        strategy = select_strategy(settings.spacy_model, use_nlp=settings.use_nlp)

    def run(path: Path) -> ExtractionResult:
        return process_document(path, max_keywords, settings=settings, strategy=strategy)

    workers = min(settings.workers, len(paths))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(tqdm(
            pool.map(run, paths),
            total=len(paths),
            desc="Extracting keywords",
            disable=not progress,
        ))


def check_dependencies(settings: Settings | None = None) -> dict[str, bool]:
    """Report which extraction and NLP backends are usable in this environment."""
    settings = settings or load_settings()
    try:
        import spacy  # noqa: F401
        has_spacy = True
    except ImportError:
        has_spacy = False

    return {
        "pdftotext": pdftotext_available(),
        "pdfminer.six": pdfminer_available(),
        "spacy": has_spacy,
        f"spacy model {settings.spacy_model}": has_spacy and load_spacy_model(settings.spacy_model) is not None,
    }
