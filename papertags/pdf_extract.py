"""PDF text extraction: pdftotext (layout preserved) with a pdfminer.six fallback."""

from __future__ import annotations

import shutil
import subprocess
import traceback
from pathlib import Path
from typing import Final

from tqdm import tqdm

from papertags.config import DEFAULT_MAX_PAGES, DEFAULT_TIMEOUT, debug_trace_enabled


PDFTOTEXT: Final[str] = "pdftotext"


def _trace(msg: str) -> None:
    if debug_trace_enabled():
        tqdm.write(f"[DEBUG] {msg}")
        tqdm.write(traceback.format_exc())


def pdftotext_available() -> bool:
    """Check if the poppler `pdftotext` binary is on PATH."""
    return shutil.which(PDFTOTEXT) is not None


def pdfminer_available() -> bool:
    """Check if pdfminer.six is importable."""
    try:
        from pdfminer.high_level import extract_text  # type: ignore # noqa: F401
        return True
    except ImportError:
        return False


def _extract_with_pdftotext(pdf_path: Path, max_pages: int, timeout: float) -> str | None:
    """
    Run `pdftotext -layout` over the first `max_pages` pages.

    Returns stdout untouched when the tool exits cleanly with non-blank
    output; None when the tool is missing, times out, fails or prints nothing.
    """
    cmd = [PDFTOTEXT, "-layout", "-f", "1", "-l", str(max_pages), str(pdf_path), "-"]
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        return None
    except subprocess.TimeoutExpired:
        _trace(f"{PDFTOTEXT} timed out after {timeout}s on {pdf_path.name}")
        return None
    except OSError:
        _trace(f"{PDFTOTEXT} could not be started for {pdf_path.name}")
        return None

    if proc.returncode != 0 or not proc.stdout.strip():
        return None
    return proc.stdout


def _extract_with_pdfminer(pdf_path: Path, max_pages: int) -> str | None:
    """Extract text from at most `max_pages` pages using pdfminer.six."""
    try:
        from pdfminer.high_level import extract_text as extract_miner  # type: ignore
        # maxpages caps at the document length, so short PDFs read every page
        txt = extract_miner(str(pdf_path), maxpages=max_pages) or ""
    except Exception:
        # Corrupt, encrypted or unreadable: absence is the signal.
        _trace(f"pdfminer failed on {pdf_path.name}")
        return None
    return txt if txt.strip() else None


def extract_text(
    pdf_path: Path | str,
    max_pages: int = DEFAULT_MAX_PAGES,
    timeout: float = DEFAULT_TIMEOUT,
) -> str | None:
    """
    Extract raw text from the first pages of a PDF.

    Order:
    1. pdftotext -layout (whitespace/layout preserved)
    2. pdfminer.six

    Returns: the text, or None if neither method produced any.
    Never raises for unreadable documents.
    """
    pdf_path = Path(pdf_path)
    if max_pages <= 0:
        raise ValueError(f"max_pages must be positive, got {max_pages}")

    txt = _extract_with_pdftotext(pdf_path, max_pages, timeout)
    if txt is not None:
        return txt
    return _extract_with_pdfminer(pdf_path, max_pages)
