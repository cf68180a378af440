from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

import yaml

from bannerstamp.models import HighlightSegment, WrapResult

LOGGER = logging.getLogger(__name__)

VOCABULARY_FILE = "highlight_vocabulary.yaml"
NOISE_RE = re.compile(r"[%$#@!]")
SEGMENT_SEPARATORS = (":", " - ", " – ")
MIN_CANDIDATE_SCORE = 5
KEYWORD_WEIGHT = 5
BASE_WEIGHT = 2
CUSTOM_KEYWORD_WEIGHT = 10
MAX_PHRASE_WORDS = 3
LONG_PHRASE_CHARS = 18


@dataclass(frozen=True, slots=True)
class HighlightVocabulary:
    impact_weights: Mapping[str, int]
    keywords: frozenset[str]
    stopwords: frozenset[str]
    semantic_pairs: frozenset[str]

    def with_custom_keywords(self, words: Iterable[str]) -> "HighlightVocabulary":
        """Custom keywords join the top impact tier."""
        extra = {word.strip().upper() for word in words if word and word.strip()}
        if not extra:
            return self
        weights = dict(self.impact_weights)
        for word in extra:
            weights[word] = CUSTOM_KEYWORD_WEIGHT
        return HighlightVocabulary(
            impact_weights=MappingProxyType(weights),
            keywords=self.keywords | extra,
            stopwords=self.stopwords,
            semantic_pairs=self.semantic_pairs,
        )


@dataclass(frozen=True, slots=True)
class PhraseCandidate:
    indices: tuple[int, ...]
    phrase: str
    score: float


def vocabulary_from_dict(data: Mapping[str, Any]) -> HighlightVocabulary:
    weights: dict[str, int] = {}
    for weight, words in (data.get("impact_weights") or {}).items():
        for word in words or []:
            weights[str(word).upper()] = int(weight)
    return HighlightVocabulary(
        impact_weights=MappingProxyType(weights),
        keywords=frozenset(str(word).upper() for word in data.get("keywords") or []),
        stopwords=frozenset(str(word).upper() for word in data.get("stopwords") or []),
        semantic_pairs=frozenset(str(pair).upper() for pair in data.get("semantic_pairs") or []),
    )


@lru_cache(maxsize=1)
def default_vocabulary() -> HighlightVocabulary:
    resource = resources.files("bannerstamp.templates") / VOCABULARY_FILE
    data = yaml.safe_load(resource.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"highlight vocabulary is not a dict: {VOCABULARY_FILE}")
    return vocabulary_from_dict(data)


def _word_key(word: str) -> str:
    return NOISE_RE.sub("", word).replace(":", "").upper()


def score_phrase(words: Sequence[str], vocabulary: HighlightVocabulary) -> float:
    """Score a 1-3 word phrase; phrases without an impact or keyword word score 0."""
    total = 0.0
    has_impact = False
    max_word_score = 0
    for word in words:
        upper = word.upper()
        if upper in vocabulary.stopwords:
            continue
        if upper in vocabulary.impact_weights:
            word_score = vocabulary.impact_weights[upper]
            has_impact = True
        elif upper in vocabulary.keywords:
            word_score = KEYWORD_WEIGHT
            has_impact = True
        else:
            word_score = BASE_WEIGHT
        max_word_score = max(max_word_score, word_score)
        if len(word) >= 6:
            word_score += 1
        if len(word) >= 8:
            word_score += 1
        total += word_score

    if len(words) == 1 and max_word_score >= 8:
        total *= 2.0
    if len(words) == 2:
        if " ".join(words).upper() in vocabulary.semantic_pairs:
            total *= 2.2
        else:
            total *= 0.7
    if len(words) >= 3:
        total *= 0.5
    if len(" ".join(words)) > LONG_PHRASE_CHARS:
        total -= 3
    return total if has_impact else 0.0


def _split_segments(words: Sequence[str]) -> list[list[int]]:
    """Group word indices into headline segments, right-hand segment first."""
    cleaned = NOISE_RE.sub("", " ".join(words))
    separator = next((sep for sep in SEGMENT_SEPARATORS if sep in cleaned), None)
    dash = separator.strip() if separator and separator != ":" else None

    segments: list[list[int]] = [[]]
    for index, word in enumerate(words):
        bare = NOISE_RE.sub("", word)
        if dash is not None and bare == dash:
            segments.append([])
            continue
        if _word_key(word):
            segments[-1].append(index)
        if separator == ":" and ":" in bare:
            segments.append([])

    segments = [segment for segment in segments if segment]
    if len(segments) > 1:
        segments = [segments[-1], *segments[:-1]]
    return segments


def find_candidates(words: Sequence[str], vocabulary: HighlightVocabulary) -> list[PhraseCandidate]:
    keys = [_word_key(word) for word in words]
    candidates: list[PhraseCandidate] = []
    for segment in _split_segments(words):
        for length in range(1, min(MAX_PHRASE_WORDS, len(segment)) + 1):
            for start in range(len(segment) - length + 1):
                indices = tuple(segment[start : start + length])
                phrase_words = [keys[index] for index in indices]
                score = score_phrase(phrase_words, vocabulary)
                if score >= MIN_CANDIDATE_SCORE:
                    candidates.append(PhraseCandidate(indices, " ".join(phrase_words), score))
    return candidates


def select_phrases(candidates: Sequence[PhraseCandidate], max_highlights: int) -> list[PhraseCandidate]:
    """Highest score first, scan order on ties; skip phrases overlapping a pick."""
    selected: list[PhraseCandidate] = []
    if max_highlights <= 0:
        return selected
    used: set[int] = set()
    for candidate in sorted(candidates, key=lambda item: -item.score):
        if used.intersection(candidate.indices):
            continue
        selected.append(candidate)
        used.update(candidate.indices)
        if len(selected) >= max_highlights:
            break
    return selected


def score(
    text: str,
    max_highlights: int,
    vocabulary: HighlightVocabulary | None = None,
) -> list[HighlightSegment]:
    """Split ``text`` into per-word segments tagged with highlight color slots.

    Selected phrases take the color index of their rank. When no phrase
    qualifies, single words from the keyword list are highlighted with slot 0.
    """
    vocab = vocabulary or default_vocabulary()
    words = (text or "").split()
    if max_highlights <= 0:
        return [HighlightSegment(word) for word in words]

    selected = select_phrases(find_candidates(words, vocab), max_highlights)
    if not selected:
        LOGGER.debug("no scored phrase in %r, using keyword fallback", text)
        return [
            HighlightSegment(word, True, 0) if _word_key(word) in vocab.keywords else HighlightSegment(word)
            for word in words
        ]

    rank_by_index: dict[int, int] = {}
    for rank, candidate in enumerate(selected):
        for index in candidate.indices:
            rank_by_index[index] = rank
    LOGGER.debug("highlights for %r: %s", text, [candidate.phrase for candidate in selected])
    return [
        HighlightSegment(word, True, rank_by_index[index]) if index in rank_by_index else HighlightSegment(word)
        for index, word in enumerate(words)
    ]


def segments_by_line(segments: Sequence[HighlightSegment], wrap: WrapResult) -> list[tuple[HighlightSegment, ...]]:
    """Distribute per-word segments over the wrapped lines of the same text."""
    if len(segments) != len(wrap.words()):
        raise ValueError(f"segment count {len(segments)} does not match wrapped word count {len(wrap.words())}")
    result: list[tuple[HighlightSegment, ...]] = []
    cursor = 0
    for line in wrap.lines:
        count = len(line.tokens)
        result.append(tuple(segments[cursor : cursor + count]))
        cursor += count
    return result
