"""Tests for settings loading."""

import pytest

from papertags.config import Settings, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "PAPERTAGS_MAX_KEYWORDS", "PAPERTAGS_MAX_PAGES", "PAPERTAGS_TIMEOUT",
        "PAPERTAGS_MIN_SECTION_TERMS", "PAPERTAGS_SPACY_MODEL", "PAPERTAGS_NO_NLP",
        "PAPERTAGS_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = load_settings()
    assert s == Settings()
    assert (s.max_keywords, s.max_pages, s.timeout, s.min_section_terms) == (5, 2, 30.0, 3)
    assert s.use_nlp is True


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PAPERTAGS_MAX_KEYWORDS", "8")
    monkeypatch.setenv("PAPERTAGS_NO_NLP", "yes")
    monkeypatch.setenv("PAPERTAGS_SPACY_MODEL", "en_core_web_md")
    s = load_settings()
    assert s.max_keywords == 8
    assert s.use_nlp is False
    assert s.spacy_model == "en_core_web_md"


def test_explicit_overrides_beat_env_and_none_is_ignored(monkeypatch):
    monkeypatch.setenv("PAPERTAGS_MAX_PAGES", "4")
    s = load_settings(max_pages=1, workers=None)
    assert s.max_pages == 1
    assert s.workers == 4


def test_env_file_loaded(tmp_path, monkeypatch):
    env = tmp_path / ".env"
    env.write_text("PAPERTAGS_WORKERS=7\n", encoding="utf-8")
    assert load_settings(env_file=env).workers == 7


@pytest.mark.parametrize("value", ["abc", "0", "-2"])
def test_bad_integer_env(monkeypatch, value):
    monkeypatch.setenv("PAPERTAGS_MAX_KEYWORDS", value)
    with pytest.raises(ValueError, match="PAPERTAGS_MAX_KEYWORDS"):
        load_settings()


def test_bad_override():
    with pytest.raises(ValueError, match="max_keywords"):
        load_settings(max_keywords=0)
