"""Plain-text extraction, segmentation and phrase chunking."""

from .extract import extract_plain_text
from .segmenter import segment_text, verify_partition
from .chunker import (
    PhraseChunker,
    HeuristicPhraseSplitter,
    ModelPhraseChunker,
    reconcile_offsets,
    parse_chunk_response,
)

__all__ = [
    'extract_plain_text',
    'segment_text',
    'verify_partition',
    'PhraseChunker',
    'HeuristicPhraseSplitter',
    'ModelPhraseChunker',
    'reconcile_offsets',
    'parse_chunk_response',
]
