"""Tests for the per-document pipeline and the batch runner."""

import pytest

import pdfminer.high_level
from papertags import pdf_extract, pipeline
from papertags.config import Settings
from papertags.models import ExtractionResult, Method
from papertags.pipeline import check_dependencies, process_batch, process_document
from papertags.synthesis import FrequencyStrategy


SECTION_TEXT = (
    "Robust Estimation of Glacier Mass Balance\n"
    "Abstract\n"
    "Glaciers lose mass under warming.\n"
    "Keywords: glaciology, remote sensing, mass balance, climate, albedo, ice\n"
    "1. Introduction\n"
)

TITLE_ABSTRACT_TEXT = (
    "Proceedings of XYZ 2024\n"
    "Receptor Protein Binding in Cells\n"
    "\n"
    "Abstract\n"
    "The cell receptor protein binds the receptor protein strongly.\n"
    "\n"
    "1. Introduction\n"
)


@pytest.fixture
def settings():
    return Settings(use_nlp=False)


@pytest.fixture
def fake_text(monkeypatch):
    """Make extract_text return canned text per file name."""
    texts = {}

    def fake_extract(path, max_pages=2, timeout=30.0):
        return texts.get(path.name)

    monkeypatch.setattr(pipeline, "extract_text", fake_extract)
    return texts


class TestProcessDocument:
    def test_keywords_section_wins(self, fake_text, settings):
        fake_text["a.pdf"] = SECTION_TEXT
        result = process_document("dir/a.pdf", 5, settings=settings, strategy=FrequencyStrategy())
        assert result == ExtractionResult.success(
            "a.pdf",
            ["glaciology", "remote sensing", "mass balance", "climate", "albedo"],
            Method.KEYWORDS_SECTION,
        )

    def test_two_term_section_falls_through_to_title_abstract(self, fake_text, settings):
        fake_text["b.pdf"] = TITLE_ABSTRACT_TEXT.replace(
            "1. Introduction", "Keywords: receptors, binding\n1. Introduction"
        )
        result = process_document("b.pdf", 2, settings=settings, strategy=FrequencyStrategy())
        assert result.method is Method.TITLE_ABSTRACT
        assert result.keywords == ("receptor", "protein")
        assert result.error is None

    def test_min_section_terms_configurable(self, fake_text):
        fake_text["b.pdf"] = "Keywords: receptors, binding\n"
        result = process_document(
            "b.pdf", 5, settings=Settings(use_nlp=False, min_section_terms=2), strategy=FrequencyStrategy()
        )
        assert result.method is Method.KEYWORDS_SECTION
        assert result.keywords == ("receptors", "binding")

    def test_no_text(self, fake_text, settings):
        result = process_document("missing.pdf", 5, settings=settings, strategy=FrequencyStrategy())
        assert result.keywords == ()
        assert result.method is Method.NONE
        assert result.error == "Could not extract text from PDF"

    def test_no_title_or_abstract(self, fake_text, settings):
        fake_text["c.pdf"] = "tiny\nbits\n"
        result = process_document("c.pdf", 5, settings=settings, strategy=FrequencyStrategy())
        assert result.error == "Could not extract sufficient keywords"
        assert result.keywords == ()

    def test_synthesis_yields_nothing(self, fake_text, settings):
        fake_text["d.pdf"] = "Proceedings\nthe and for with that this\n"
        result = process_document("d.pdf", 5, settings=settings, strategy=FrequencyStrategy())
        assert result.error == "Could not extract sufficient keywords"

    def test_unexpected_fault_contained(self, monkeypatch, settings):
        def boom(path, max_pages=2, timeout=30.0):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(pipeline, "extract_text", boom)
        result = process_document("e.pdf", 5, settings=settings, strategy=FrequencyStrategy())
        assert result.error == "RuntimeError: disk on fire"
        assert result.keywords == ()
        assert result.method is Method.NONE

    @pytest.mark.parametrize("bad", [0, -1, True, "5"])
    def test_invalid_max_keywords(self, settings, bad):
        with pytest.raises(ValueError):
            process_document("a.pdf", bad, settings=settings)

    def test_defaults_from_settings(self, fake_text):
        fake_text["a.pdf"] = SECTION_TEXT
        result = process_document("a.pdf", settings=Settings(use_nlp=False, max_keywords=3))
        assert len(result.keywords) == 3

    def test_results_are_mutually_exclusive(self, fake_text, settings):
        fake_text.update({"a.pdf": SECTION_TEXT, "b.pdf": TITLE_ABSTRACT_TEXT, "c.pdf": "tiny\n"})
        for name in ("a.pdf", "b.pdf", "c.pdf", "zzz.pdf"):
            r = process_document(name, 5, settings=settings, strategy=FrequencyStrategy())
            assert bool(r.keywords) != bool(r.error)


def test_title_mentioning_keyword_uses_author_keywords(fake_text, settings):
    fake_text["kws.pdf"] = (
        "Keyword Spotting With Tiny Neural Networks\n"
        "Abstract\n"
        "We detect wake words on microcontrollers.\n"
        "Keywords: speech recognition, embedded systems, tinyml, audio\n"
        "1. Introduction\n"
    )
    result = process_document("kws.pdf", 5, settings=settings, strategy=FrequencyStrategy())
    assert result.method is Method.KEYWORDS_SECTION
    assert result.keywords == ("speech recognition", "embedded systems", "tinyml", "audio")


def test_malformed_env_raises_without_settings(monkeypatch):
    monkeypatch.setenv("PAPERTAGS_MAX_KEYWORDS", "lots")
    with pytest.raises(ValueError, match="PAPERTAGS_MAX_KEYWORDS"):
        process_document("a.pdf")


def test_batch_with_explicit_settings_ignores_env(monkeypatch, fake_text):
    monkeypatch.setenv("PAPERTAGS_MAX_KEYWORDS", "lots")
    results = process_batch(["missing.pdf"], settings=Settings(use_nlp=False), progress=False)
    assert results[0].error == "Could not extract text from PDF"


def test_unreadable_path_end_to_end(tmp_path, settings):
    result = process_document(tmp_path / "nope.pdf", 5, settings=settings)
    assert result.error == "Could not extract text from PDF"
    assert result.keywords == ()
    assert result.file_name == "nope.pdf"


def test_fallback_reader_gives_same_semantics(monkeypatch, settings):
    def no_tool(cmd, **kwargs):
        raise FileNotFoundError("pdftotext")

    monkeypatch.setattr(pdf_extract.subprocess, "run", no_tool)
    monkeypatch.setattr(pdfminer.high_level, "extract_text", lambda path, maxpages=0: SECTION_TEXT)
    result = process_document("paper.pdf", 3, settings=settings, strategy=FrequencyStrategy())
    assert result.method is Method.KEYWORDS_SECTION
    assert result.keywords == ("glaciology", "remote sensing", "mass balance")


class TestProcessBatch:
    def test_order_preserved(self, fake_text):
        fake_text.update({"a.pdf": SECTION_TEXT, "b.pdf": TITLE_ABSTRACT_TEXT})
        settings = Settings(use_nlp=False, workers=2)
        results = process_batch(["a.pdf", "missing.pdf", "b.pdf"], 2, settings=settings, progress=False)
        assert [r.file_name for r in results] == ["a.pdf", "missing.pdf", "b.pdf"]
        assert [r.method for r in results] == [Method.KEYWORDS_SECTION, Method.NONE, Method.TITLE_ABSTRACT]

    def test_empty_batch(self, settings):
        assert process_batch([], settings=settings, progress=False) == []


def test_check_dependencies_reports_backends(settings):
    report = check_dependencies(settings)
    assert set(report) == {"pdftotext", "pdfminer.six", "spacy", f"spacy model {settings.spacy_model}"}
    assert report["pdfminer.six"] is True
