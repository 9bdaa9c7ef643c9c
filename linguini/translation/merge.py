"""
Chunk-level translation with local fallbacks, and the literal/contextual merge.

Nothing in this module raises on backend failure: every call returns a
Translation, degraded to a placeholder or to the original text when the port
fails. Only AnnotationCancelled propagates.
"""

import time
import unicodedata
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from linguini.core.exceptions import (
    AnnotationCancelled,
    InteractiveTriggerRequired,
    TranslationUnavailable,
)
from linguini.core.models import Translation
from linguini.translation.base import TranslationPort
from linguini.utils.logger import get_logger

logger = get_logger(__name__)

# Values must never appear as keys, so that canonicalization stays idempotent.
DEFAULT_SYNONYMS: Dict[str, str] = {
    "hello": "hi",
    "hey": "hi",
    "ok": "okay",
    "alright": "okay",
    "goodbye": "bye",
    "photo": "photograph",
    "pic": "photograph",
    "tv": "television",
    "cannot": "can not",
    "gonna": "going to",
    "wanna": "want to",
}


def _strip_punctuation(text: str) -> str:
    return "".join(ch for ch in text if not unicodedata.category(ch).startswith("P"))


def canonicalize(text: str, synonyms: Optional[Mapping[str, str]] = None) -> str:
    """
    Normalize a translated string for equivalence checks only.

    Takes the first of slash-delimited alternatives, trims, lowercases,
    strips punctuation, collapses whitespace and resolves the synonym table.
    """
    table = DEFAULT_SYNONYMS if synonyms is None else synonyms
    first = (text or "").split("/")[0]
    words = _strip_punctuation(first.strip().lower()).split()
    return " ".join(table.get(word, word) for word in words)


def merge_translations(literal: str, contextual: str,
                       synonyms: Optional[Mapping[str, str]] = None) -> Translation:
    """Discard the contextual variant when it is canonically the same as the literal."""
    if canonicalize(literal, synonyms) == canonicalize(contextual, synonyms):
        return Translation(literal=literal, contextual=literal, differs=False)
    return Translation(literal=literal, contextual=contextual, differs=True)


def placeholder_translation(text: str, source: Optional[str]) -> Translation:
    """Bracketed stand-in used while the backend waits for an interactive trigger."""
    return Translation(
        literal=f"[{source or 'unknown'}] {text}",
        contextual=f'Translation of "{text}"',
        differs=True,
    )


@dataclass(frozen=True)
class ChunkOutcome:
    """A chunk's translation plus the usage it cost; folded into metrics after a batch."""
    translation: Translation
    literal_calls: int = 0
    contextual_calls: int = 0
    simplify_calls: int = 0
    literal_ms: float = 0.0
    contextual_ms: float = 0.0
    simplify_ms: float = 0.0
    fell_back: bool = False
    unavailable: bool = False


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


async def translate_chunk(
    port: TranslationPort,
    text: str,
    source: str,
    target: str,
    context: Optional[str] = None,
    synonyms: Optional[Mapping[str, str]] = None
) -> ChunkOutcome:
    """
    Translate one chunk literally, then contextually when the context adds anything.

    Args:
        port: Translation port
        text: Chunk text
        source: Source language code
        target: Target language code
        context: Surrounding text; skipped when equal to the chunk itself
        synonyms: Synonym table for the merge

    Returns:
        ChunkOutcome with the merged translation
    """
    started = time.perf_counter()
    try:
        literal = await port.translate_literal(text, source, target)
    except AnnotationCancelled:
        raise
    except InteractiveTriggerRequired:
        logger.warning(f"Backend requires an interactive trigger, placeholder used for {text!r}")
        return ChunkOutcome(placeholder_translation(text, source), literal_calls=1,
                            literal_ms=_elapsed_ms(started), fell_back=True, unavailable=True)
    except TranslationUnavailable as e:
        logger.warning(f"Translation unavailable for {text!r}: {e}")
        return ChunkOutcome(Translation.identity(text), literal_calls=1,
                            literal_ms=_elapsed_ms(started), fell_back=True, unavailable=True)
    except Exception as e:
        logger.error(f"Failed to translate chunk {text!r}: {e}")
        return ChunkOutcome(Translation.identity(text), literal_calls=1,
                            literal_ms=_elapsed_ms(started), fell_back=True)

    literal_ms = _elapsed_ms(started)
    literal = literal if literal and literal.strip() else text

    if not context or context.strip() == text.strip():
        return ChunkOutcome(Translation(literal, literal, False), literal_calls=1, literal_ms=literal_ms)

    started = time.perf_counter()
    try:
        contextual = await port.translate_contextual(text, source, target, context, literal)
    except AnnotationCancelled:
        raise
    except InteractiveTriggerRequired:
        logger.warning(f"Contextual translation requires an interactive trigger for {text!r}")
        contextual = f"[Contextual] {text}"
    except Exception as e:
        logger.warning(f"Contextual translation failed, falling back to literal: {e}")
        contextual = literal
    contextual_ms = _elapsed_ms(started)

    if not contextual or not contextual.strip():
        contextual = literal

    return ChunkOutcome(
        merge_translations(literal, contextual, synonyms),
        literal_calls=1,
        contextual_calls=1,
        literal_ms=literal_ms,
        contextual_ms=contextual_ms,
    )


async def simplify_chunk(
    port: TranslationPort,
    text: str,
    full_context: str,
    chunk_start: int,
    chunk_end: int,
    language: Optional[str] = None
) -> ChunkOutcome:
    """Simplify one chunk in place; literal and contextual always agree."""
    started = time.perf_counter()
    try:
        simplified = await port.simplify(text, full_context, chunk_start, chunk_end)
    except AnnotationCancelled:
        raise
    except InteractiveTriggerRequired:
        logger.warning(f"Simplifier requires an interactive trigger, placeholder used for {text!r}")
        placeholder = f"[{language or 'simplify'}] {text}"
        return ChunkOutcome(Translation(placeholder, placeholder, False), simplify_calls=1,
                            simplify_ms=_elapsed_ms(started), fell_back=True, unavailable=True)
    except TranslationUnavailable as e:
        logger.warning(f"Simplifier unavailable for {text!r}: {e}")
        return ChunkOutcome(Translation.identity(text), simplify_calls=1,
                            simplify_ms=_elapsed_ms(started), fell_back=True, unavailable=True)
    except Exception as e:
        logger.error(f"Failed to simplify chunk {text!r}: {e}")
        return ChunkOutcome(Translation.identity(text), simplify_calls=1,
                            simplify_ms=_elapsed_ms(started), fell_back=True)

    simplified = simplified if simplified and simplified.strip() else text
    return ChunkOutcome(Translation(simplified, simplified, False), simplify_calls=1,
                        simplify_ms=_elapsed_ms(started))
