"""
Core data models for Linguini.

Every entity lives for a single pipeline invocation. Types that end up in a
progress snapshot are frozen so that nothing can mutate them after emission.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import List, Dict, Optional, Any, Tuple


class ChunkType(Enum):
    """Phrase categories produced by the chunker."""
    NOUN_PHRASE = "noun_phrase"
    VERB_PHRASE = "verb_phrase"
    ADJECTIVE_PHRASE = "adjective_phrase"
    ADVERB_PHRASE = "adverb_phrase"
    PREPOSITIONAL_PHRASE = "prepositional_phrase"
    SINGLE_WORD = "single_word"

    @classmethod
    def parse(cls, value: Any) -> "ChunkType":
        """Lenient conversion from model output; unknown values become SINGLE_WORD."""
        if isinstance(value, ChunkType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.SINGLE_WORD


class Phase(Enum):
    """Pipeline phases, in the only order they are ever entered."""
    EXTRACT = "extract"
    DETECT = "detect"
    SEGMENT = "segment"
    PRECHUNK = "prechunk"
    TRANSLATE = "translate"
    SIMPLIFY = "simplify"
    FINALIZE = "finalize"


@dataclass
class ExtractedText:
    """Output of the external extractor (immutable input)."""
    content: str                        # Markup or plain text
    language: Optional[str] = None      # Declared language tag, if any
    title: Optional[str] = None
    byline: Optional[str] = None
    site_name: Optional[str] = None


@dataclass(frozen=True)
class TextSegment:
    """Contiguous span of the plain text tagged target-language or foreign."""
    text: str
    start: int
    end: int
    is_target_language: bool

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class PhraseChunk:
    """A phrase or word inside one segment; offsets are segment-relative."""
    text: str
    start: int = 0
    end: int = 0
    chunk_type: ChunkType = ChunkType.SINGLE_WORD
    offset_exact: bool = True


@dataclass(frozen=True)
class Translation:
    """Literal and contextual renderings of a chunk."""
    literal: str
    contextual: str
    differs: bool = False

    @classmethod
    def identity(cls, text: str) -> "Translation":
        """Translation that mirrors the original text."""
        return cls(literal=text, contextual=text, differs=False)


@dataclass(frozen=True)
class AnnotatedChunk:
    """A chunk lifted to global offsets, with its translation attached."""
    text: str
    start: int
    end: int
    translation: Translation
    chunk_type: ChunkType = ChunkType.SINGLE_WORD
    language: Optional[str] = None
    offset_exact: bool = True
    degraded: bool = False
    vocabulary_level: Optional[int] = None

    @classmethod
    def from_phrase(
        cls,
        chunk: PhraseChunk,
        segment: TextSegment,
        translation: Translation,
        language: Optional[str] = None
    ) -> "AnnotatedChunk":
        """Compose global offsets as segment.start + local offset."""
        return cls(
            text=chunk.text,
            start=segment.start + chunk.start,
            end=segment.start + chunk.end,
            translation=translation,
            chunk_type=chunk.chunk_type,
            language=language,
            offset_exact=chunk.offset_exact,
        )

    @classmethod
    def passthrough(cls, segment: TextSegment, degraded: bool = False,
                    language: Optional[str] = None) -> "AnnotatedChunk":
        """Whole-segment chunk whose translation mirrors the original."""
        return cls(
            text=segment.text,
            start=segment.start,
            end=segment.end,
            translation=Translation.identity(segment.text),
            language=language,
            degraded=degraded,
        )

    def with_vocabulary_level(self, level: Optional[int]) -> "AnnotatedChunk":
        return replace(self, vocabulary_level=level)


@dataclass(frozen=True)
class AnnotationMetrics:
    """Timing and usage counters; times are in milliseconds."""
    phase_times: Dict[str, float] = field(default_factory=dict)
    chunking_time_ms: float = 0.0
    batch_time_ms: float = 0.0
    literal_count: int = 0
    contextual_count: int = 0
    simplify_count: int = 0
    literal_time_ms: float = 0.0
    contextual_time_ms: float = 0.0
    simplify_time_ms: float = 0.0
    fallback_count: int = 0
    unavailable_count: int = 0
    approximate_offsets: int = 0
    failed_segments: int = 0
    batches: int = 0
    total_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time report of the chunks accumulated so far."""
    chunks: Tuple[AnnotatedChunk, ...]
    is_complete: bool
    phase: Phase
    total_expected_chunks: Optional[int] = None
    metrics: AnnotationMetrics = field(default_factory=AnnotationMetrics)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)


@dataclass
class AnnotationResult:
    """Final output of one pipeline invocation."""
    text: str
    chunks: List[AnnotatedChunk]
    detected_language: Optional[str]
    is_simplify_mode: bool = False
    metrics: AnnotationMetrics = field(default_factory=AnnotationMetrics)
    language_confidence_degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        for chunk in data["chunks"]:
            chunk["chunk_type"] = chunk["chunk_type"].value
        return data
