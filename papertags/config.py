"""Runtime settings: defaults, overridden by environment (.env) and CLI flags."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from dotenv import load_dotenv


DEFAULT_MAX_KEYWORDS: Final[int] = 5
DEFAULT_MAX_PAGES: Final[int] = 2
DEFAULT_TIMEOUT: Final[float] = 30.0
DEFAULT_MIN_SECTION_TERMS: Final[int] = 3
DEFAULT_SPACY_MODEL: Final[str] = "en_core_web_sm"
DEFAULT_WORKERS: Final[int] = 4

_ENV_PREFIX: Final[str] = "PAPERTAGS_"


def _truthy_env(name: str) -> bool:
    v = os.environ.get(name, "").strip().lower()
    return v not in {"", "0", "false", "no", "off"}


def _positive_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _positive_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Knobs of the keyword pipeline and the tagging run."""
    max_keywords: int = DEFAULT_MAX_KEYWORDS
    max_pages: int = DEFAULT_MAX_PAGES
    timeout: float = DEFAULT_TIMEOUT
    # Keyword lines with fewer terms are treated as noise.
    min_section_terms: int = DEFAULT_MIN_SECTION_TERMS
    spacy_model: str = DEFAULT_SPACY_MODEL
    use_nlp: bool = True
    workers: int = DEFAULT_WORKERS

    def __post_init__(self) -> None:
        for name in ("max_keywords", "max_pages", "min_section_terms", "workers"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout!r}")


def debug_trace_enabled() -> bool:
    return _truthy_env(f"{_ENV_PREFIX}DEBUG_TRACE")


def load_settings(env_file: Path | str | None = None, **overrides: Any) -> Settings:
    """
    Build Settings from the environment.

    Priority: explicit overrides (CLI) > environment / .env > defaults.
    Overrides whose value is None are ignored so argparse defaults can be
    passed straight through.
    """
    if env_file is not None:
        load_dotenv(env_file)

    settings = Settings(
        max_keywords=_positive_int_env(f"{_ENV_PREFIX}MAX_KEYWORDS", DEFAULT_MAX_KEYWORDS),
        max_pages=_positive_int_env(f"{_ENV_PREFIX}MAX_PAGES", DEFAULT_MAX_PAGES),
        timeout=_positive_float_env(f"{_ENV_PREFIX}TIMEOUT", DEFAULT_TIMEOUT),
        min_section_terms=_positive_int_env(
            f"{_ENV_PREFIX}MIN_SECTION_TERMS", DEFAULT_MIN_SECTION_TERMS
        ),
        spacy_model=os.environ.get(f"{_ENV_PREFIX}SPACY_MODEL", "").strip() or DEFAULT_SPACY_MODEL,
        use_nlp=not _truthy_env(f"{_ENV_PREFIX}NO_NLP"),
        workers=_positive_int_env(f"{_ENV_PREFIX}WORKERS", DEFAULT_WORKERS),
    )

    explicit = {k: v for k, v in overrides.items() if v is not None}
    if explicit:
        settings = dataclasses.replace(settings, **explicit)
    return settings
