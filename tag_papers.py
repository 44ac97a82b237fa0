#!/usr/bin/env python3
"""
Tag research-paper PDFs with keywords extracted from their first pages.

Behavior:
- Extracts text from the first pages via pdftotext (pdfminer.six fallback).
- Uses the paper's own "Keywords:" / "Index terms:" list when it has one,
  otherwise synthesizes keywords from the title and abstract (spaCy when a
  model is installed, word frequency otherwise).
- Adds the keywords to the file's tags (user.xdg.tags), keeping existing tags.

Usage:
  python tag_papers.py papers/                 # every *.pdf in the directory
  python tag_papers.py a.pdf b.pdf --dry-run   # show tags without writing
  python tag_papers.py papers/ --json          # one JSON record per PDF
  python tag_papers.py --check                 # report available backends

Optional env vars (also read from a root .env):
  PAPERTAGS_MAX_KEYWORDS       -> default: 5
  PAPERTAGS_MAX_PAGES          -> default: 2
  PAPERTAGS_TIMEOUT            -> pdftotext timeout in seconds, default: 30
  PAPERTAGS_MIN_SECTION_TERMS  -> default: 3
  PAPERTAGS_SPACY_MODEL        -> default: en_core_web_sm
  PAPERTAGS_NO_NLP             -> force the word-frequency fallback
  PAPERTAGS_WORKERS            -> default: 4
  PAPERTAGS_DEBUG_TRACE        -> print tracebacks of contained failures
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from tqdm import tqdm

from papertags.config import load_settings
from papertags.pipeline import check_dependencies
from papertags.synthesis import select_strategy
from papertags.tagging import STATUS_FAILED, STATUS_SKIPPED, summarize_outcomes, tag_documents


ENV_FILE = Path(__file__).parent / ".env"


def collect_pdfs(inputs: list[str]) -> list[Path]:
    """Expand directories to their *.pdf files (sorted); keep files as given."""
    paths: list[Path] = []
    for raw in inputs:
        p = Path(raw)
        if p.is_dir():
            paths.extend(sorted(p.glob("*.pdf")))
        else:
            paths.append(p)
    return paths


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Tag research-paper PDFs with extracted keywords.")
    ap.add_argument("paths", nargs="*", help="PDF files or directories containing PDFs")
    ap.add_argument("--max-keywords", type=int, default=None, help="Keywords per paper (default: 5)")
    ap.add_argument("--max-pages", type=int, default=None, help="Pages read per PDF (default: 2)")
    ap.add_argument("--workers", type=int, default=None, help="Parallel documents (default: 4)")
    ap.add_argument(
        "--no-nlp",
        action="store_true",
        help="Skip spaCy and use the word-frequency fallback",
    )
    ap.add_argument("--dry-run", action="store_true", help="Show resulting tags without writing them")
    ap.add_argument("--json", action="store_true", help="Print one JSON record per PDF")
    ap.add_argument("--check", action="store_true", help="Report available backends and exit")
    return ap


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        settings = load_settings(
            env_file=ENV_FILE,
            max_keywords=args.max_keywords,
            max_pages=args.max_pages,
            workers=args.workers,
            use_nlp=False if args.no_nlp else None,
        )
    except ValueError as e:
        ap.error(str(e))

    if args.check:
        for name, ok in check_dependencies(settings).items():
            print(f"[{'OK' if ok else 'MISSING'}] {name}")
        return 0

    if not args.paths:
        ap.error("no PDF paths given")

    pdfs = collect_pdfs(args.paths)
    if not pdfs:
        raise SystemExit("no PDFs found")

    strategy = select_strategy(settings.spacy_model, use_nlp=settings.use_nlp)
    if not args.json:
        tqdm.write(f"[INFO] Keyword synthesis: {strategy.name}")

    outcomes = tag_documents(
        pdfs,
        settings=settings,
        strategy=strategy,
        dry_run=args.dry_run,
        progress=not args.json,
    )

    for o in outcomes:
        if args.json:
            print(json.dumps(o.result.to_record(), ensure_ascii=False))
        elif o.status == STATUS_FAILED:
            tqdm.write(f"[ERROR] {o.path.name}: {o.detail}")
        elif o.status == STATUS_SKIPPED:
            tqdm.write(f"[WARN] {o.path.name}: {o.detail}")
        else:
            tqdm.write(f"[INFO] {o.path.name} ({o.status}, {o.result.method.value}): {', '.join(o.tags)}")

    for line in summarize_outcomes(outcomes):
        print(line, file=sys.stderr if args.json else sys.stdout)

    return 1 if any(o.status == STATUS_FAILED for o in outcomes) else 0


if __name__ == "__main__":
    raise SystemExit(main())
