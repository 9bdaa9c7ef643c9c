"""
Annotation pipeline for Linguini.

Orchestrates one annotation run through its phases:

    extract -> detect -> segment -> prechunk -> translate | simplify -> finalize

Chunking runs concurrently for every target-language segment. Translation
runs per segment in fixed-width windows: a window is launched together,
awaited until every call settles, re-ordered into source order, appended to
the output and reported as one progress snapshot before the next window
starts.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Callable, Any, Tuple
import asyncio
import time

from linguini.core.cancellation import CancelToken, check_cancelled
from linguini.core.exceptions import (
    AnnotationCancelled,
    ConfigurationError,
    DetectionDegraded,
    InvalidInputError,
    SegmentProcessingFailed,
)
from linguini.core.models import (
    AnnotatedChunk,
    AnnotationMetrics,
    AnnotationResult,
    ExtractedText,
    Phase,
    PhraseChunk,
    ProgressSnapshot,
    TextSegment,
)
from linguini.language.codes import normalize_language_code, same_language
from linguini.language.detector import LanguageDetector
from linguini.text.chunker import PhraseChunker, ModelPhraseChunker, HeuristicPhraseSplitter
from linguini.text.extract import extract_plain_text
from linguini.text.segmenter import segment_text, GRANULARITIES
from linguini.translation.base import TranslationPort
from linguini.translation.merge import ChunkOutcome, translate_chunk, simplify_chunk, DEFAULT_SYNONYMS
from linguini.vocabulary.matcher import VocabularyLookup, match_chunk_level
from linguini.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[ProgressSnapshot], None]


@dataclass
class AnnotationConfig:
    """Complete configuration for the annotation pipeline."""

    # Translation backend (used only when no port is passed in)
    backend: str = "local"
    model_name: Optional[str] = None
    api_key: Optional[str] = None
    max_sessions: int = 6
    simplify_context_chars: int = 200

    # Concurrency: translation calls in flight per segment
    batch_size: int = 6

    # Segmentation and chunking
    segment_granularity: str = "word"
    max_phrase_words: int = 4
    use_model_chunker: bool = False

    # Detection
    min_detection_length: int = 10
    min_detection_confidence: float = 0.5

    # Context passed to contextual translation when a segment is a single chunk
    context_window_chars: int = 160
    synonyms: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SYNONYMS))

    log_level: str = "INFO"

    def validate(self) -> List[str]:
        """Validate configuration and return any issues."""
        issues = []

        if self.batch_size < 1:
            issues.append("batch_size must be at least 1")

        if self.max_sessions < 1:
            issues.append("max_sessions must be at least 1")

        if self.segment_granularity not in GRANULARITIES:
            issues.append(f"segment_granularity must be one of {', '.join(GRANULARITIES)}")

        if self.max_phrase_words < 1:
            issues.append("max_phrase_words must be at least 1")

        if not 0 <= self.min_detection_confidence <= 1:
            issues.append("min_detection_confidence must be between 0 and 1")

        if self.context_window_chars < 0 or self.simplify_context_chars < 0:
            issues.append("context windows must be non-negative")

        return issues


class MetricsAccumulator:
    """Mutable counters for one run; only touched after a batch has settled."""

    def __init__(self):
        self.phase_times: Dict[str, float] = {}
        self.chunking_time_ms = 0.0
        self.batch_time_ms = 0.0
        self.literal_count = 0
        self.contextual_count = 0
        self.simplify_count = 0
        self.literal_time_ms = 0.0
        self.contextual_time_ms = 0.0
        self.simplify_time_ms = 0.0
        self.fallback_count = 0
        self.unavailable_count = 0
        self.approximate_offsets = 0
        self.failed_segments = 0
        self.batches = 0
        self.total_ms: Optional[float] = None

    def record_phase(self, phase: Phase, elapsed_ms: float) -> None:
        self.phase_times[phase.value] = self.phase_times.get(phase.value, 0.0) + elapsed_ms

    def absorb(self, outcome: ChunkOutcome) -> None:
        self.literal_count += outcome.literal_calls
        self.contextual_count += outcome.contextual_calls
        self.simplify_count += outcome.simplify_calls
        self.literal_time_ms += outcome.literal_ms
        self.contextual_time_ms += outcome.contextual_ms
        self.simplify_time_ms += outcome.simplify_ms
        self.fallback_count += int(outcome.fell_back)
        self.unavailable_count += int(outcome.unavailable)

    def freeze(self) -> AnnotationMetrics:
        return AnnotationMetrics(
            phase_times=dict(self.phase_times),
            chunking_time_ms=self.chunking_time_ms,
            batch_time_ms=self.batch_time_ms,
            literal_count=self.literal_count,
            contextual_count=self.contextual_count,
            simplify_count=self.simplify_count,
            literal_time_ms=self.literal_time_ms,
            contextual_time_ms=self.contextual_time_ms,
            simplify_time_ms=self.simplify_time_ms,
            fallback_count=self.fallback_count,
            unavailable_count=self.unavailable_count,
            approximate_offsets=self.approximate_offsets,
            failed_segments=self.failed_segments,
            batches=self.batches,
            total_ms=self.total_ms,
        )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class AnnotationPipeline:
    """
    Main annotation pipeline.

    The pipeline object holds only configuration and collaborators; every
    call to annotate() keeps its state in a private run, so one pipeline can
    serve several documents concurrently.
    """

    def __init__(
        self,
        port: Optional[TranslationPort] = None,
        config: Optional[AnnotationConfig] = None,
        detector: Optional[LanguageDetector] = None,
        chunker: Optional[PhraseChunker] = None,
        vocabulary: Optional[VocabularyLookup] = None
    ):
        self.config = config or AnnotationConfig()

        issues = self.config.validate()
        if issues:
            raise ConfigurationError(f"Configuration issues: {', '.join(issues)}")

        self.port = port or self._create_port()
        self.detector = detector or LanguageDetector(
            min_text_length=self.config.min_detection_length,
            min_confidence=self.config.min_detection_confidence,
        )
        self.chunker = chunker or self._create_chunker()
        self.vocabulary = vocabulary

    def _create_port(self) -> TranslationPort:
        from linguini.translation.backends import create_backend

        kwargs: Dict[str, Any] = {}
        if self.config.api_key:
            kwargs["api_key"] = self.config.api_key
        if self.config.model_name:
            kwargs["model"] = self.config.model_name
        if self.config.backend.lower() == "openai":
            kwargs["max_sessions"] = self.config.max_sessions
            kwargs["simplify_context_chars"] = self.config.simplify_context_chars
        return create_backend(self.config.backend, **kwargs)

    def _create_chunker(self) -> PhraseChunker:
        splitter = HeuristicPhraseSplitter(self.config.max_phrase_words)
        if self.config.use_model_chunker:
            if hasattr(self.port, "propose_chunks"):
                return PhraseChunker(splitter, ModelPhraseChunker(self.port, splitter))
            logger.warning(f"Backend '{self.port.name}' cannot chunk text, using heuristic splitter")
        return PhraseChunker(splitter)

    async def annotate(
        self,
        extracted: ExtractedText,
        target_language: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> AnnotationResult:
        """
        Annotate extracted text with translations (or simplifications).

        Args:
            extracted: Extractor output; ``content`` may be markup or plain text
            target_language: BCP-47 code of the reader's language
            on_progress: Called with every ProgressSnapshot, in phase order
            cancel_token: Shared cancellation flag

        Returns:
            AnnotationResult with chunks in document order

        Raises:
            InvalidInputError: If the content is empty
            AnnotationCancelled: If the token is set before the run finishes
        """
        run = _AnnotationRun(self, extracted, target_language, on_progress, cancel_token)
        return await run.execute()

    def stream(
        self,
        extracted: ExtractedText,
        target_language: str,
        cancel_token: Optional[CancelToken] = None
    ) -> "AnnotationStream":
        """Same run as annotate(), consumed as an async iterator of snapshots."""
        return AnnotationStream(self, extracted, target_language, cancel_token)

    def annotate_sync(
        self,
        extracted: ExtractedText,
        target_language: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> AnnotationResult:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.annotate(extracted, target_language, on_progress, cancel_token))

    async def close(self) -> None:
        await self.port.close()

    async def annotate_chunk(
        self,
        chunk: PhraseChunk,
        segment: TextSegment,
        plain_text: str,
        source: str,
        target: str,
        simplify: bool
    ) -> Tuple[AnnotatedChunk, ChunkOutcome]:
        """Translate or simplify one chunk; backend failures never escape."""
        if simplify:
            outcome = await simplify_chunk(
                self.port,
                chunk.text,
                plain_text,
                segment.start + chunk.start,
                segment.start + chunk.end,
                language=source,
            )
        else:
            outcome = await translate_chunk(
                self.port,
                chunk.text,
                source,
                target,
                context=self._context_for(chunk, segment, plain_text),
                synonyms=self.config.synonyms,
            )

        annotated = AnnotatedChunk.from_phrase(chunk, segment, outcome.translation, language=source)
        if self.vocabulary is not None:
            # Vocabulary stores may do blocking I/O
            level = await asyncio.to_thread(self._vocabulary_level, annotated.text, source)
            annotated = annotated.with_vocabulary_level(level)
        return annotated, outcome

    def _context_for(self, chunk: PhraseChunk, segment: TextSegment, plain_text: str) -> Optional[str]:
        if segment.text.strip() != chunk.text.strip():
            return segment.text

        window = self.config.context_window_chars
        if window == 0:
            return None
        context = plain_text[max(0, segment.start - window):segment.end + window].strip()
        return context if context != chunk.text.strip() else None

    def _vocabulary_level(self, text: str, language: str) -> Optional[int]:
        try:
            return match_chunk_level(text, language, self.vocabulary)
        except Exception as e:
            logger.warning(f"Vocabulary lookup failed for {text!r}: {e}")
            return None


class _AnnotationRun:
    """State of a single annotate() call."""

    def __init__(
        self,
        pipeline: AnnotationPipeline,
        extracted: ExtractedText,
        target_language: str,
        on_progress: Optional[ProgressCallback],
        cancel_token: Optional[CancelToken]
    ):
        self.pipeline = pipeline
        self.config = pipeline.config
        self.extracted = extracted
        self.target_language_raw = target_language
        self.on_progress = on_progress
        self.cancel_token = cancel_token

        self.metrics = MetricsAccumulator()
        self.output: List[AnnotatedChunk] = []
        self.total_expected: Optional[int] = None

        self.plain_text = ""
        self.target = ""
        self.language = ""
        self.language_degraded = False
        self.simplify_mode = False
        self.segments: List[TextSegment] = []
        self.segment_chunks: Dict[int, List[PhraseChunk]] = {}
        self.failed_chunking: Dict[int, BaseException] = {}

    def _check(self, phase: Phase) -> None:
        check_cancelled(self.cancel_token, phase.value, len(self.output))

    def _emit(self, phase: Phase, is_complete: bool = False) -> None:
        if self.on_progress is None:
            return
        self.on_progress(ProgressSnapshot(
            chunks=tuple(self.output),
            is_complete=is_complete,
            phase=phase,
            total_expected_chunks=self.total_expected,
            metrics=self.metrics.freeze(),
        ))

    async def execute(self) -> AnnotationResult:
        total_start = time.perf_counter()

        self._validate_input()
        self._extract()
        await self._detect()
        self._segment()
        await self._prechunk()
        await self._translate()
        return self._finalize(total_start)

    def _validate_input(self) -> None:
        if self.extracted is None or not isinstance(self.extracted.content, str):
            raise InvalidInputError("Extracted text is missing", field_name="content")
        if not self.extracted.content.strip():
            raise InvalidInputError("Extracted content is empty", field_name="content")
        if not self.target_language_raw or not self.target_language_raw.strip():
            raise InvalidInputError("Target language is required", field_name="target_language")
        self.target = normalize_language_code(self.target_language_raw, default=self.target_language_raw.strip())

    def _extract(self) -> None:
        self._check(Phase.EXTRACT)
        started = time.perf_counter()
        self.plain_text = extract_plain_text(self.extracted.content)
        if not self.plain_text.strip():
            raise InvalidInputError("Extracted content has no text", field_name="content")
        self.metrics.record_phase(Phase.EXTRACT, _elapsed_ms(started))
        logger.debug(f"Plain text length: {len(self.plain_text)}")
        self._emit(Phase.EXTRACT)

    async def _detect(self) -> None:
        self._check(Phase.DETECT)
        started = time.perf_counter()
        detection = await self.pipeline.detector.detect(self.plain_text, self.extracted.language)
        if detection.succeeded:
            self.language = detection.language
        else:
            degraded = DetectionDegraded(self.target, ["declared", "statistical", "script"])
            logger.warning(degraded.message)
            self.language = self.target
            self.language_degraded = True

        self.simplify_mode = same_language(self.language, self.target)
        self.metrics.record_phase(Phase.DETECT, _elapsed_ms(started))
        logger.debug(
            f"Language: {self.language} via {detection.method} "
            f"(target {self.target}, simplify mode: {self.simplify_mode})"
        )
        self._emit(Phase.DETECT)

    def _segment(self) -> None:
        self._check(Phase.SEGMENT)
        started = time.perf_counter()
        self.segments = segment_text(self.plain_text, self.language, self.config.segment_granularity)
        self.metrics.record_phase(Phase.SEGMENT, _elapsed_ms(started))
        logger.debug(f"Segmentation produced {len(self.segments)} segments")
        self._emit(Phase.SEGMENT)

    async def _prechunk(self) -> None:
        self._check(Phase.PRECHUNK)
        started = time.perf_counter()

        indices = [
            i for i, segment in enumerate(self.segments)
            if segment.is_target_language and not segment.is_blank
        ]
        settled = await asyncio.gather(
            *(
                self.pipeline.chunker.chunk(self.segments[i].text, self.language, self.cancel_token)
                for i in indices
            ),
            return_exceptions=True,
        )

        total = 0
        for index, result in zip(indices, settled):
            if isinstance(result, BaseException):
                if isinstance(result, AnnotationCancelled) or not isinstance(result, Exception):
                    raise result
                logger.warning(f"Chunking failed for segment {index}: {result}")
                self.failed_chunking[index] = result
                total += 1
            else:
                self.segment_chunks[index] = result
                total += len(result)
                self.metrics.approximate_offsets += sum(1 for c in result if not c.offset_exact)

        # Foreign segments each surface as one passthrough chunk
        total += sum(
            1 for segment in self.segments
            if not segment.is_target_language and not segment.is_blank
        )
        self.total_expected = total

        elapsed = _elapsed_ms(started)
        self.metrics.chunking_time_ms = elapsed
        self.metrics.record_phase(Phase.PRECHUNK, elapsed)
        logger.debug(f"Prechunked {len(indices)} segments into {total} expected chunks in {elapsed:.2f}ms")
        self._emit(Phase.PRECHUNK)

    async def _translate(self) -> None:
        phase = Phase.SIMPLIFY if self.simplify_mode else Phase.TRANSLATE
        self._check(phase)
        started = time.perf_counter()

        for index, segment in enumerate(self.segments):
            if segment.is_blank:
                continue

            if not segment.is_target_language:
                self.output.append(AnnotatedChunk.passthrough(segment))
                continue

            if index in self.failed_chunking:
                self._check(phase)
                self._append_fallback(index, segment, self.failed_chunking[index])
                continue

            emitted_before = len(self.output)
            try:
                await self._translate_segment(phase, segment, self.segment_chunks.get(index, []))
            except AnnotationCancelled:
                raise
            except Exception as e:
                logger.exception(f"Failed to process segment {index}")
                self._check(phase)
                self._append_fallback(index, segment, e, self.output[emitted_before:])

        self.metrics.phase_times[phase.value] = _elapsed_ms(started)

    async def _translate_segment(self, phase: Phase, segment: TextSegment, chunks: List[PhraseChunk]) -> None:
        width = self.config.batch_size
        total_batches = (len(chunks) + width - 1) // width

        for batch_number, batch_start in enumerate(range(0, len(chunks), width), start=1):
            self._check(phase)
            batch = chunks[batch_start:batch_start + width]

            started = time.perf_counter()
            settled = await self.run_batch(segment, batch)
            batch_ms = _elapsed_ms(started)

            # gather() keeps submission order, so results line up with their chunks
            accepted: List[AnnotatedChunk] = []
            for chunk, result in zip(batch, settled):
                if isinstance(result, BaseException):
                    if isinstance(result, AnnotationCancelled) or not isinstance(result, Exception):
                        raise result
                    logger.error(f"Dropping chunk {chunk.text!r}: {result}")
                    continue
                annotated, outcome = result
                self.metrics.absorb(outcome)
                accepted.append(annotated)

            self.output.extend(accepted)
            self.metrics.batches += 1
            self.metrics.batch_time_ms = batch_ms
            logger.debug(f"Batch {batch_number}/{total_batches} completed in {batch_ms:.2f}ms ({len(batch)} chunks)")
            self._emit(phase)

    async def run_batch(self, segment: TextSegment, batch: List[PhraseChunk]) -> List[Any]:
        """Launch one window of chunk calls together and wait for all of them to settle."""
        return await asyncio.gather(
            *(
                self.pipeline.annotate_chunk(
                    chunk, segment, self.plain_text, self.language, self.target, self.simplify_mode
                )
                for chunk in batch
            ),
            return_exceptions=True,
        )

    def _append_fallback(
        self,
        index: int,
        segment: TextSegment,
        error: BaseException,
        already_emitted: Optional[List[AnnotatedChunk]] = None
    ) -> None:
        """
        Collapse the unprocessed part of a segment into one identity chunk.

        Chunks of this segment that were already emitted stay; the fallback
        covers the rest of the segment so the output never shrinks.
        """
        failure = SegmentProcessingFailed(index, error if isinstance(error, Exception) else None)
        logger.warning(failure.message)
        self.metrics.failed_segments += 1

        start = segment.start
        if already_emitted:
            start = max(start, max(chunk.end for chunk in already_emitted))
        if start >= segment.end:
            return

        remainder = TextSegment(self.plain_text[start:segment.end], start, segment.end, True)
        if remainder.is_blank:
            return
        self.output.append(AnnotatedChunk.passthrough(remainder, degraded=True, language=self.language))

    def _finalize(self, total_start: float) -> AnnotationResult:
        self._check(Phase.FINALIZE)
        total_ms = _elapsed_ms(total_start)
        self.metrics.phase_times[Phase.FINALIZE.value] = total_ms
        self.metrics.total_ms = total_ms

        metrics = self.metrics.freeze()
        logger.info(
            f"Annotated {len(self.output)} chunks in {total_ms:.2f}ms "
            f"({metrics.batches} batches, {metrics.literal_count} literal, "
            f"{metrics.contextual_count} contextual, {metrics.simplify_count} simplify, "
            f"{metrics.fallback_count} fallbacks)"
        )
        self._emit(Phase.FINALIZE, is_complete=True)

        return AnnotationResult(
            text=self.plain_text,
            chunks=list(self.output),
            detected_language=self.language,
            is_simplify_mode=self.simplify_mode,
            metrics=metrics,
            language_confidence_degraded=self.language_degraded,
        )


_DONE = object()


class AnnotationStream:
    """
    One annotation run exposed as an async iterator of ProgressSnapshot.

    The iterator can be consumed once; the final snapshot has
    ``is_complete=True`` and the result is then available as ``result``.
    Leaving the loop early cancels the run.
    """

    def __init__(
        self,
        pipeline: AnnotationPipeline,
        extracted: ExtractedText,
        target_language: str,
        cancel_token: Optional[CancelToken] = None
    ):
        self._pipeline = pipeline
        self._extracted = extracted
        self._target_language = target_language
        self.cancel_token = cancel_token or CancelToken()
        self.result: Optional[AnnotationResult] = None
        self._consumed = False

    def __aiter__(self):
        if self._consumed:
            raise RuntimeError("Annotation stream can only be consumed once")
        self._consumed = True
        return self._iterate()

    async def _iterate(self):
        queue: asyncio.Queue = asyncio.Queue()
        task = asyncio.create_task(self._pipeline.annotate(
            self._extracted,
            self._target_language,
            on_progress=queue.put_nowait,
            cancel_token=self.cancel_token,
        ))
        task.add_done_callback(lambda _: queue.put_nowait(_DONE))

        try:
            while True:
                item = await queue.get()
                if item is _DONE:
                    break
                yield item
            self.result = task.result()
        finally:
            if not task.done():
                self.cancel_token.cancel("stream closed")
                try:
                    await task
                except AnnotationCancelled:
                    logger.debug("Annotation stream closed before completion")
