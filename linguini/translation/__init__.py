"""Translation port, chunk-level merge logic and backends."""

from .base import TranslationPort
from .merge import (
    canonicalize,
    merge_translations,
    translate_chunk,
    simplify_chunk,
    ChunkOutcome,
    DEFAULT_SYNONYMS,
)
from .sessions import SessionPool

__all__ = [
    'TranslationPort',
    'canonicalize',
    'merge_translations',
    'translate_chunk',
    'simplify_chunk',
    'ChunkOutcome',
    'DEFAULT_SYNONYMS',
    'SessionPool',
]
