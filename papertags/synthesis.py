"""Keyword synthesis from title + abstract: spaCy when available, word counts otherwise."""

from __future__ import annotations

import re
import threading
import traceback
from collections import Counter
from typing import TYPE_CHECKING, Any, Final, Iterable, Protocol

from tqdm import tqdm

from papertags.config import DEFAULT_SPACY_MODEL, debug_trace_enabled
from papertags.models import KeywordCandidate, normalize_term

if TYPE_CHECKING:
    from spacy.language import Language


# Words that describe papers in general rather than their topic.
DOMAIN_STOP_WORDS: Final[frozenset[str]] = frozenset({
    "paper", "study", "research", "article", "work", "approach", "method",
    "result", "conclusion", "introduction", "section",
})

ENTITY_LABELS: Final[frozenset[str]] = frozenset({
    "ORG", "PRODUCT", "WORK_OF_ART", "EVENT", "GPE",
})

NOUN_TAGS: Final[frozenset[str]] = frozenset({"NOUN", "PROPN"})

MAX_PHRASE_TOKENS: Final[int] = 3
CANDIDATE_POOL_FACTOR: Final[int] = 3

# General English stop words for the frequency fallback.
STOP_WORDS: Final[frozenset[str]] = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "any", "can",
    "had", "her", "was", "one", "our", "out", "has", "have", "been", "were",
    "this", "that", "with", "from", "they", "their", "them", "there", "these",
    "those", "which", "while", "where", "when", "what", "will", "would",
    "could", "should", "also", "into", "than", "then", "such", "more", "most",
    "other", "some", "only", "over", "each", "both", "between", "through",
    "using", "used", "based", "paper", "study", "results", "show", "shows",
    "however", "here", "propose", "proposed", "present", "about",
})

_WORD_RE = re.compile(r"\b[a-z][a-z]+\b")


class KeywordStrategy(Protocol):
    name: str

    def keywords(self, text: str, max_keywords: int) -> list[str]:
        ...


def rank_candidates(terms: Iterable[str], limit: int) -> list[KeywordCandidate]:
    """
    Count normalized terms and return the `limit` most frequent.

    Ties keep first-seen order.
    """
    counts = Counter(normalize_term(t) for t in terms if t and t.strip())
    return [KeywordCandidate(term, freq) for term, freq in counts.most_common(limit)]


class SpacyStrategy:
    """Noun phrases, selected entities and noun lemmas from a spaCy pipeline."""

    name = "spacy"

    def __init__(self, nlp: "Language | Any"):
        self.nlp = nlp

    def _candidates(self, text: str) -> list[str]:
        doc = self.nlp(text)
        pool: list[str] = []
        for chunk in doc.noun_chunks:
            if len(chunk) <= MAX_PHRASE_TOKENS:
                pool.append(chunk.text.strip().lower())
        for ent in doc.ents:
            if ent.label_ in ENTITY_LABELS:
                pool.append(ent.text.strip().lower())
        for tok in doc:
            if tok.pos_ in NOUN_TAGS and not tok.is_stop and len(tok.text) > 2:
                pool.append(tok.lemma_.lower())
        return pool

    def keywords(self, text: str, max_keywords: int) -> list[str]:
        terms = [
            t for t in self._candidates(text)
            if normalize_term(t) not in DOMAIN_STOP_WORDS and len(t) > 2
        ]
        ranked = rank_candidates(terms, CANDIDATE_POOL_FACTOR * max_keywords)
        return [c.key for c in ranked][:max_keywords]


class FrequencyStrategy:
    """Most frequent non-stop words (single words, at least four letters)."""

    name = "frequency"

    def keywords(self, text: str, max_keywords: int) -> list[str]:
        words = [
            w for w in _WORD_RE.findall(text.lower())
            if w not in STOP_WORDS and len(w) > 3
        ]
        return [c.term for c in rank_candidates(words, max_keywords)]


_NLP_CACHE: dict[str, Any] = {}
_NLP_LOCK = threading.Lock()


def load_spacy_model(model_name: str = DEFAULT_SPACY_MODEL) -> Any | None:
    """
    Load (once per process) a spaCy pipeline.

    Returns None when spaCy or the model is not installed.
    """
    with _NLP_LOCK:
        if model_name in _NLP_CACHE:
            return _NLP_CACHE[model_name]
        try:
            import spacy
            nlp = spacy.load(model_name)
        except Exception:
            if debug_trace_enabled():
                tqdm.write(f"[DEBUG] spaCy model {model_name!r} unavailable")
                tqdm.write(traceback.format_exc())
            nlp = None
        _NLP_CACHE[model_name] = nlp
        return nlp


def select_strategy(model_name: str = DEFAULT_SPACY_MODEL, use_nlp: bool = True) -> KeywordStrategy:
    """Pick the spaCy strategy when its model loads, the frequency one otherwise."""
    if use_nlp:
        nlp = load_spacy_model(model_name)
        if nlp is not None:
            return SpacyStrategy(nlp)
    return FrequencyStrategy()


def _build_blob(title: str | None, abstract: str | None) -> str:
    parts: list[str] = []
    if title and title.strip():
        parts.append(f"{title.strip()}.")
    if abstract and abstract.strip():
        parts.append(abstract.strip())
    return " ".join(parts)


def synthesize(
    title: str | None,
    abstract: str | None,
    max_keywords: int,
    strategy: KeywordStrategy | None = None,
) -> list[str]:
    """
    Derive up to `max_keywords` keywords from a title and abstract.

    Deterministic for a given text, keyword count and strategy. If the NLP
    strategy fails while annotating, the frequency strategy is used instead.
    """
    blob = _build_blob(title, abstract)
    if not blob:
        return []

    if strategy is None:
        strategy = select_strategy()

    try:
        return strategy.keywords(blob, max_keywords)
    except Exception:
        if isinstance(strategy, FrequencyStrategy):
            raise
        if debug_trace_enabled():
            tqdm.write(f"[DEBUG] {strategy.name} keyword strategy failed, using word frequency")
            tqdm.write(traceback.format_exc())
        return FrequencyStrategy().keywords(blob, max_keywords)
