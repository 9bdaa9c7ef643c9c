"""
Known-word level lookup for annotated chunks.

The vocabulary store is external; the pipeline only reads levels from it.
A chunk takes the lowest level among its words, so one hard word marks the
whole phrase as hard.
"""

import re
from typing import Dict, List, Optional, Protocol, Tuple

from linguini.language.codes import primary_subtag

_NON_WORD = re.compile(r"[^\w]", re.UNICODE)


class VocabularyLookup(Protocol):
    """Read-only boundary to the vocabulary store; called from a worker thread, so it may block."""

    def lookup_known_word_level(self, word: str, language: str) -> Optional[int]:
        ...


def tokenize(text: str) -> List[str]:
    """Lowercase words with punctuation removed."""
    words = (_NON_WORD.sub("", word) for word in text.lower().split())
    return [word for word in words if word]


def match_chunk_level(chunk_text: str, language: str, vocabulary: VocabularyLookup) -> Optional[int]:
    """
    Knowledge level of the most challenging known word in a chunk.

    The whole chunk is tried first (phrases can be registered as-is), then
    each token. Returns None when nothing in the chunk is registered.
    """
    exact = vocabulary.lookup_known_word_level(chunk_text.lower().strip(), language)
    if exact is not None:
        return exact

    levels = [
        level
        for level in (vocabulary.lookup_known_word_level(token, language) for token in tokenize(chunk_text))
        if level is not None
    ]
    return min(levels) if levels else None


class InMemoryVocabulary:
    """Dictionary-backed vocabulary, keyed by (word, primary language subtag)."""

    def __init__(self, entries: Optional[Dict[Tuple[str, str], int]] = None):
        self._levels: Dict[Tuple[str, str], int] = {}
        for (word, language), level in (entries or {}).items():
            self.add(word, language, level)

    def add(self, word: str, language: str, level: int) -> None:
        self._levels[(word.lower().strip(), primary_subtag(language))] = level

    def lookup_known_word_level(self, word: str, language: str) -> Optional[int]:
        return self._levels.get((word.lower().strip(), primary_subtag(language)))

    def __len__(self) -> int:
        return len(self._levels)
