"""
Best-effort duplicate detection for topic titles.

Titles are turned into TF-IDF vectors (smoothed idf over the candidate plus the
existing titles) and compared with cosine similarity. This is a guard against
accidental re-entry of the same topic, not a correctness check.
"""
from __future__ import annotations

import math
import unicodedata
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SimilarTitle:
    title: str
    score: float
    topic_id: int | None = None


def _is_word_char(ch: str) -> bool:
    # Combining marks (e.g. Indic vowel signs) belong to the word they sit in.
    return ch.isalnum() or unicodedata.category(ch).startswith("M")


def tokenize(text: str) -> list[str]:
    """Casefolded words in any script; everything else separates."""
    tokens: list[str] = []
    current: list[str] = []
    for ch in unicodedata.normalize("NFKC", text or "").casefold():
        if _is_word_char(ch):
            current.append(ch)
        elif current:
            tokens.append("".join(current))
            current = []
    if current:
        tokens.append("".join(current))
    return tokens


def tfidf_matrix(docs: Sequence[str]) -> np.ndarray:
    """Rows are L2-normalised TF-IDF vectors, one per doc."""
    tokenized = [tokenize(d) for d in docs]
    vocab = sorted({t for toks in tokenized for t in toks})
    if not vocab:
        return np.zeros((len(docs), 0))
    index = {t: i for i, t in enumerate(vocab)}

    n = len(docs)
    df = Counter(t for toks in tokenized for t in set(toks))
    idf = np.array([math.log((1 + n) / (1 + df[t])) + 1.0 for t in vocab])

    mat = np.zeros((n, len(vocab)))
    for row, toks in enumerate(tokenized):
        for t, count in Counter(toks).items():
            mat[row, index[t]] = count
    mat *= idf

    norms = np.linalg.norm(mat, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return mat / norms


def cosine_scores(candidate: str, existing: Sequence[str]) -> list[float]:
    """Cosine similarity of `candidate` against each of `existing` (0..1)."""
    if not existing:
        return []
    mat = tfidf_matrix([candidate, *existing])
    if mat.shape[1] == 0:
        return [0.0] * len(existing)
    scores = mat[1:] @ mat[0]
    return [float(min(max(s, 0.0), 1.0)) for s in scores]


def find_similar(
    candidate: str,
    existing: Sequence[tuple[int | None, str]],
    *,
    threshold: float,
) -> list[SimilarTitle]:
    """Existing (id, title) pairs scoring >= threshold, best first."""
    titles = [t for _, t in existing]
    scores = cosine_scores(candidate, titles)
    hits = [
        SimilarTitle(title=title, score=round(score, 4), topic_id=topic_id)
        for (topic_id, title), score in zip(existing, scores)
        if score >= threshold
    ]
    hits.sort(key=lambda h: h.score, reverse=True)
    return hits
