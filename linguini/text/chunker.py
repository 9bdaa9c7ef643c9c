"""
Phrase chunking inside target-language segments.

Chunking is a heuristic phrase splitter, not a parser. Candidates may come
without offsets (from the heuristic splitter or from a language model); every
candidate is reconciled against the segment text before it is surfaced.
"""

import asyncio
import json
import logging
import re
import unicodedata
from typing import List, Optional, Protocol, Sequence, Dict, FrozenSet

import jieba

from linguini.core.cancellation import CancelToken, check_cancelled
from linguini.core.exceptions import AnnotationCancelled, ChunkOffsetUnresolved
from linguini.core.models import ChunkType, PhraseChunk
from linguini.language.codes import primary_subtag
from linguini.language.scripts import is_target_script
from linguini.translation.prompts import build_chunking_prompt
from linguini.utils.logger import get_logger

logger = get_logger(__name__)

jieba.setLogLevel(logging.WARNING)

_WORD = re.compile(r"\S+")
_CLAUSE_END = re.compile(r"[,.;:!?、。，；：！？)\]\"']$")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")

PREPOSITIONS: Dict[str, FrozenSet[str]] = {
    "en": frozenset({"in", "on", "at", "by", "for", "with", "from", "to", "of", "into",
                     "onto", "over", "under", "about", "after", "before", "between",
                     "through", "during", "without", "within", "across", "toward", "towards"}),
    "es": frozenset({"en", "de", "a", "por", "para", "con", "sin", "sobre", "entre", "hacia",
                     "desde", "hasta", "tras"}),
    "fr": frozenset({"dans", "de", "à", "par", "pour", "avec", "sans", "sur", "sous", "entre",
                     "vers", "depuis", "chez", "pendant"}),
    "de": frozenset({"in", "an", "auf", "mit", "von", "zu", "für", "aus", "bei", "nach",
                     "über", "unter", "durch", "ohne", "gegen", "zwischen"}),
    "it": frozenset({"in", "di", "a", "da", "con", "su", "per", "tra", "fra", "senza"}),
    "pt": frozenset({"em", "de", "a", "por", "para", "com", "sem", "sobre", "entre", "até"}),
}

DETERMINERS: Dict[str, FrozenSet[str]] = {
    "en": frozenset({"the", "a", "an", "this", "that", "these", "those", "my", "your",
                     "his", "her", "its", "our", "their", "some", "every", "each"}),
    "es": frozenset({"el", "la", "los", "las", "un", "una", "unos", "unas", "este", "esta"}),
    "fr": frozenset({"le", "la", "les", "un", "une", "des", "ce", "cette", "ces", "mon", "ma"}),
    "de": frozenset({"der", "die", "das", "den", "dem", "des", "ein", "eine", "einen", "einem"}),
    "it": frozenset({"il", "lo", "la", "i", "gli", "le", "un", "uno", "una"}),
    "pt": frozenset({"o", "a", "os", "as", "um", "uma", "uns", "umas"}),
}

CONJUNCTIONS: Dict[str, FrozenSet[str]] = {
    "en": frozenset({"and", "or", "but", "because", "while", "although", "so", "yet"}),
    "es": frozenset({"y", "o", "pero", "porque", "aunque"}),
    "fr": frozenset({"et", "ou", "mais", "parce", "donc", "car"}),
    "de": frozenset({"und", "oder", "aber", "weil", "denn", "dass"}),
    "it": frozenset({"e", "o", "ma", "perché", "però"}),
    "pt": frozenset({"e", "ou", "mas", "porque", "embora"}),
}

_EMPTY: FrozenSet[str] = frozenset()


def _bare(word: str) -> str:
    return word.strip(".,;:!?\"'()[]").lower()


class HeuristicPhraseSplitter:
    """Rule-based phrase splitter used directly or as the model chunker's fallback."""

    def __init__(self, max_phrase_words: int = 4):
        self.max_phrase_words = max(1, max_phrase_words)

    def split(self, text: str, language: Optional[str]) -> List[PhraseChunk]:
        lang = primary_subtag(language)
        if lang == "zh":
            return self._split_chinese(text)
        if lang in ("ja", "th"):
            return self._split_characters(text, language)
        return self._split_words(text, lang)

    def blocks_event_loop(self, language: Optional[str]) -> bool:
        """Whether split() must run in a worker thread (jieba loads its dictionary lazily)."""
        return primary_subtag(language) == "zh"

    async def split_async(self, text: str, language: Optional[str]) -> List[PhraseChunk]:
        if self.blocks_event_loop(language):
            return await asyncio.to_thread(self.split, text, language)
        return self.split(text, language)

    def _split_chinese(self, text: str) -> List[PhraseChunk]:
        return [PhraseChunk(text=word) for word in jieba.lcut(text) if word.strip()]

    def _split_characters(self, text: str, language: Optional[str]) -> List[PhraseChunk]:
        # Combining marks (Thai vowels and tones) stay on their base character
        clusters: List[str] = []
        for char in text:
            if clusters and unicodedata.category(char).startswith("M"):
                clusters[-1] += char
            else:
                clusters.append(char)
        return [
            PhraseChunk(text=cluster)
            for cluster in clusters
            if cluster.strip() and is_target_script(cluster[0], language)
        ]

    def _split_words(self, text: str, lang: str) -> List[PhraseChunk]:
        prepositions = PREPOSITIONS.get(lang, _EMPTY)
        determiners = DETERMINERS.get(lang, _EMPTY)
        conjunctions = CONJUNCTIONS.get(lang, _EMPTY)

        groups: List[List[re.Match]] = []
        current: List[re.Match] = []

        for match in _WORD.finditer(text):
            word = _bare(match.group())
            if word in conjunctions:
                if current:
                    groups.append(current)
                groups.append([match])
                current = []
                continue
            if current and (word in prepositions or (word in determiners and _bare(current[-1].group()) not in prepositions)):
                groups.append(current)
                current = []
            current.append(match)
            if _CLAUSE_END.search(match.group()) or len(current) >= self.max_phrase_words:
                groups.append(current)
                current = []
        if current:
            groups.append(current)

        return [
            PhraseChunk(
                text=text[group[0].start():group[-1].end()],
                chunk_type=self._classify(group, lang, prepositions, determiners),
            )
            for group in groups
        ]

    @staticmethod
    def _classify(group, lang, prepositions, determiners) -> ChunkType:
        words = [_bare(m.group()) for m in group]
        if len(words) == 1:
            return ChunkType.SINGLE_WORD
        if words[0] in prepositions:
            return ChunkType.PREPOSITIONAL_PHRASE
        if words[0] in determiners:
            return ChunkType.NOUN_PHRASE
        if lang == "en" and any(w.endswith("ly") and len(w) > 4 for w in words):
            return ChunkType.ADVERB_PHRASE
        return ChunkType.VERB_PHRASE


class ChunkingBackend(Protocol):
    """Anything that can answer a chunking prompt with raw model text."""

    async def propose_chunks(self, prompt: str) -> str:
        ...


def parse_chunk_response(response: str) -> List[PhraseChunk]:
    """
    Parse a JSON array of {text, type, start, end} objects.

    Markdown code fences around the array are tolerated. Offsets from the
    model are ignored; they are recomputed by reconcile_offsets.

    Raises:
        ValueError: If the response is not a JSON array of objects
    """
    payload = _CODE_FENCE.sub("", response.strip())
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError("Response is not an array")

    chunks = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError(f"Unexpected chunk entry: {item!r}")
        chunks.append(PhraseChunk(
            text=str(item.get("text") or ""),
            chunk_type=ChunkType.parse(item.get("type", "single_word")),
        ))
    return chunks


class ModelPhraseChunker:
    """Asks a language model for phrase groups, falling back to the heuristic splitter."""

    def __init__(self, backend: ChunkingBackend, fallback: Optional[HeuristicPhraseSplitter] = None):
        self.backend = backend
        self.fallback = fallback or HeuristicPhraseSplitter()

    async def split(self, text: str, language: Optional[str]) -> List[PhraseChunk]:
        try:
            response = await self.backend.propose_chunks(build_chunking_prompt(text, language))
            chunks = parse_chunk_response(response)
        except AnnotationCancelled:
            raise
        except Exception as e:
            logger.warning(f"Model chunking failed, using heuristic splitter: {e}")
            return await self.fallback.split_async(text, language)
        return chunks


def reconcile_offsets(segment_text: str, candidates: Sequence[PhraseChunk]) -> List[PhraseChunk]:
    """
    Assign segment-relative offsets to candidate chunks.

    A monotonic cursor walks the segment. Each candidate is searched from the
    cursor; on a miss the whole segment is searched without moving the
    cursor; if the text is still missing its position is approximated from
    the cursor and its length and the chunk is marked ``offset_exact=False``.
    Empty and whitespace-only candidates are dropped. Starts never decrease.
    """
    reconciled: List[PhraseChunk] = []
    cursor = 0
    last_start = 0
    length = len(segment_text)

    for candidate in candidates:
        target = (candidate.text or "").strip()
        if not target:
            continue

        index = segment_text.find(target, cursor)
        if index != -1:
            start, end, exact = index, index + len(target), True
            cursor = end
        else:
            index = segment_text.find(target)
            if index != -1 and index >= last_start:
                start, end, exact = index, index + len(target), True
            else:
                start = min(cursor, length)
                end = min(cursor + len(target), length)
                exact = False
                cursor = end
                logger.debug(ChunkOffsetUnresolved(target, start, end).message)

        last_start = start
        reconciled.append(PhraseChunk(
            text=target,
            start=start,
            end=end,
            chunk_type=candidate.chunk_type,
            offset_exact=exact,
        ))

    return reconciled


class PhraseChunker:
    """Splits one segment into reconciled phrase chunks."""

    def __init__(
        self,
        splitter: Optional[HeuristicPhraseSplitter] = None,
        model_chunker: Optional[ModelPhraseChunker] = None,
        max_phrase_words: int = 4
    ):
        self.splitter = splitter or HeuristicPhraseSplitter(max_phrase_words)
        self.model_chunker = model_chunker

    async def chunk(self, segment_text: str, language: Optional[str],
                    cancel_token: Optional[CancelToken] = None) -> List[PhraseChunk]:
        """
        Chunk a segment as an independent, cancellation-checked unit.

        Args:
            segment_text: Text of one target-language segment
            language: Detected language code
            cancel_token: Shared cancellation token

        Returns:
            Chunks in left-to-right order with segment-relative offsets
        """
        check_cancelled(cancel_token, "prechunk")

        if self.model_chunker is not None:
            candidates = await self.model_chunker.split(segment_text, language)
        else:
            candidates = await self.splitter.split_async(segment_text, language)

        check_cancelled(cancel_token, "prechunk")
        return reconcile_offsets(segment_text, candidates)
