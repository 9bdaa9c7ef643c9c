"""Vocabulary level lookup."""

from .matcher import VocabularyLookup, InMemoryVocabulary, match_chunk_level, tokenize

__all__ = ['VocabularyLookup', 'InMemoryVocabulary', 'match_chunk_level', 'tokenize']
