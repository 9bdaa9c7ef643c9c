"""
Linguini: phrase-level reading annotations for web text

Takes extracted article text, detects its language, splits it into
phrase-sized chunks and attaches a translation to every chunk (or a
simplified rewording when the text is already in the reader's language),
streaming progress as chunks become ready.

Usage:
    from linguini import AnnotationPipeline, AnnotationConfig, ExtractedText

    pipeline = AnnotationPipeline(config=AnnotationConfig(backend="openai"))
    result = await pipeline.annotate(ExtractedText(content=html), "en-US")
"""

__version__ = "0.3.0"
__license__ = "MIT"

from linguini.core.models import (
    ExtractedText,
    TextSegment,
    PhraseChunk,
    Translation,
    AnnotatedChunk,
    AnnotationMetrics,
    AnnotationResult,
    ProgressSnapshot,
    ChunkType,
    Phase,
)
from linguini.core.exceptions import (
    LinguiniError,
    InvalidInputError,
    AnnotationCancelled,
    TranslationUnavailable,
    InteractiveTriggerRequired,
)
from linguini.core.cancellation import CancelToken
from linguini.core.pipeline import AnnotationPipeline, AnnotationConfig, AnnotationStream

__all__ = [
    "__version__",
    "__license__",
    "ExtractedText",
    "TextSegment",
    "PhraseChunk",
    "Translation",
    "AnnotatedChunk",
    "AnnotationMetrics",
    "AnnotationResult",
    "ProgressSnapshot",
    "ChunkType",
    "Phase",
    "LinguiniError",
    "InvalidInputError",
    "AnnotationCancelled",
    "TranslationUnavailable",
    "InteractiveTriggerRequired",
    "CancelToken",
    "AnnotationPipeline",
    "AnnotationConfig",
    "AnnotationStream",
]
