"""Unit tests for extraction, segmentation and chunking."""

import asyncio
import json
import threading
import time

import pytest

from linguini.core.cancellation import CancelToken
from linguini.core.exceptions import AnnotationCancelled
from linguini.core.models import ChunkType, PhraseChunk
from linguini.text.extract import extract_plain_text, looks_like_markup
from linguini.text.segmenter import segment_text, verify_partition
from linguini.text.chunker import (
    HeuristicPhraseSplitter,
    ModelPhraseChunker,
    PhraseChunker,
    parse_chunk_response,
    reconcile_offsets,
)


class TestExtraction:
    """Test markup flattening."""

    def test_plain_text_unchanged(self):
        text = "Use 3 < 5 and 7 > 2 carefully."
        assert not looks_like_markup(text)
        assert extract_plain_text(text) == text

    def test_markup_flattened(self, sample_html):
        plain = extract_plain_text(sample_html)

        assert "Le chat dort sur le canapé." in plain
        assert "color" not in plain
        assert "var x" not in plain

    def test_entities_decoded(self):
        assert extract_plain_text("<p>caf&eacute; &amp; th&eacute;</p>") == "café & thé"

    def test_empty(self):
        assert extract_plain_text("") == ""


class TestSegmenter:
    """Test language-aware segmentation."""

    def test_word_segmentation_partitions_text(self, sample_text):
        segments = segment_text(sample_text, "en-US")

        assert verify_partition(sample_text, segments)
        assert [s.text for s in segments[:3]] == ["The", " ", "cat"]
        assert segments[0].is_target_language
        assert not segments[1].is_target_language

    def test_line_segmentation_keeps_lines(self):
        text = "The cat ran quickly.\n\nA second line"
        segments = segment_text(text, "en-US", granularity="line")

        assert verify_partition(text, segments)
        assert [s.text for s in segments] == ["The cat ran quickly.", "\n\n", "A second line"]
        assert [s.is_target_language for s in segments] == [True, False, True]

    def test_chinese_single_run(self):
        segments = segment_text("你好世界", "zh-CN")

        assert len(segments) == 1
        assert segments[0].is_target_language
        assert (segments[0].start, segments[0].end) == (0, 4)

    def test_chinese_mixed_scripts(self):
        text = "我爱Python编程"
        segments = segment_text(text, "zh-CN")

        assert verify_partition(text, segments)
        assert [s.text for s in segments] == ["我爱", "Python", "编程"]
        assert [s.is_target_language for s in segments] == [True, False, True]

    def test_unicode_offsets(self):
        """Offsets count characters, not bytes."""
        text = "café crème brûlée"
        segments = segment_text(text, "fr-FR")

        assert verify_partition(text, segments)
        assert segments[2].text == "crème"
        assert segments[2].start == 5

    def test_empty_text(self):
        assert segment_text("", "en-US") == []

    def test_whitespace_only(self):
        segments = segment_text("   ", "en-US")
        assert len(segments) == 1
        assert segments[0].is_blank
        assert not segments[0].is_target_language


class TestHeuristicSplitter:
    """Test the rule-based phrase splitter."""

    def test_sentence_is_one_phrase(self):
        chunks = HeuristicPhraseSplitter().split("The cat ran quickly.", "en-US")

        assert [c.text for c in chunks] == ["The cat ran quickly."]
        assert chunks[0].chunk_type is ChunkType.NOUN_PHRASE

    def test_prepositions_start_phrases(self):
        chunks = HeuristicPhraseSplitter().split("slept under the old table", "en")

        assert [c.text for c in chunks] == ["slept", "under the old table"]
        assert chunks[0].chunk_type is ChunkType.SINGLE_WORD
        assert chunks[1].chunk_type is ChunkType.PREPOSITIONAL_PHRASE

    def test_conjunctions_stand_alone(self):
        chunks = HeuristicPhraseSplitter().split("cats and dogs", "en")
        assert [c.text for c in chunks] == ["cats", "and", "dogs"]

    def test_max_phrase_words(self):
        chunks = HeuristicPhraseSplitter(max_phrase_words=2).split("alpha beta gamma delta epsilon", "en")
        assert [c.text for c in chunks] == ["alpha beta", "gamma delta", "epsilon"]

    def test_adverb_phrase(self):
        chunks = HeuristicPhraseSplitter().split("ran quickly", "en")
        assert chunks[0].chunk_type is ChunkType.ADVERB_PHRASE

    def test_japanese_characters(self):
        chunks = HeuristicPhraseSplitter().split("猫がいる", "ja-JP")
        assert [c.text for c in chunks] == ["猫", "が", "い", "る"]

    def test_chinese_words_cover_text(self):
        chunks = HeuristicPhraseSplitter().split("你好世界", "zh-CN")
        assert "".join(c.text for c in chunks) == "你好世界"

    def test_thai_characters_keep_marks(self):
        """Vowel and tone marks stay attached to their consonant."""
        chunks = HeuristicPhraseSplitter().split("กินข้าว", "th-TH")

        assert [c.text for c in chunks] == ["กิ", "น", "ข้", "า", "ว"]

    def test_thai_skips_other_scripts(self):
        chunks = HeuristicPhraseSplitter().split("ไก่ tod", "th")
        assert [c.text for c in chunks] == ["ไ", "ก่"]


class TestReconcileOffsets:
    """Test offset reconciliation."""

    def test_exact_offsets(self):
        chunks = reconcile_offsets("The cat ran quickly.", [
            PhraseChunk("The cat"), PhraseChunk("ran quickly"),
        ])

        assert [(c.start, c.end) for c in chunks] == [(0, 7), (8, 19)]
        assert all(c.offset_exact for c in chunks)

    def test_repeated_text_uses_cursor(self):
        chunks = reconcile_offsets("the cat saw the cat", [
            PhraseChunk("the cat"), PhraseChunk("saw"), PhraseChunk("the cat"),
        ])

        assert [c.start for c in chunks] == [0, 8, 12]

    def test_whole_segment_search_on_miss(self):
        """A candidate behind the cursor is found by searching the whole segment."""
        chunks = reconcile_offsets("red apple", [
            PhraseChunk("red apple"), PhraseChunk("apple"),
        ])

        assert (chunks[1].start, chunks[1].end) == (4, 9)
        assert chunks[1].offset_exact
        assert chunks[1].start >= chunks[0].start

    def test_missing_text_is_approximated(self):
        chunks = reconcile_offsets("The cat ran.", [
            PhraseChunk("The cat"), PhraseChunk("sprinted"),
        ])

        assert chunks[1].offset_exact is False
        assert chunks[1].start == 7
        assert chunks[1].end <= len("The cat ran.")

    def test_blank_candidates_dropped(self):
        chunks = reconcile_offsets("cat", [PhraseChunk("  "), PhraseChunk(""), PhraseChunk("cat")])
        assert [c.text for c in chunks] == ["cat"]

    def test_starts_never_decrease(self):
        text = "one two three two one"
        chunks = reconcile_offsets(text, [PhraseChunk(w) for w in ["three", "one", "two", "one"]])

        starts = [c.start for c in chunks]
        assert starts == sorted(starts)


class FakeChunkingBackend:
    """Chunking backend answering with a fixed response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    async def propose_chunks(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response


class TestModelChunker:
    """Test model-proposed chunks."""

    def test_parse_response_with_code_fence(self):
        response = '```json\n[{"text": "the cat", "type": "noun_phrase", "start": 0, "end": 7}]\n```'
        chunks = parse_chunk_response(response)

        assert chunks == [PhraseChunk("the cat", chunk_type=ChunkType.NOUN_PHRASE)]

    def test_parse_response_rejects_objects(self):
        with pytest.raises(ValueError):
            parse_chunk_response('{"text": "cat"}')

    @pytest.mark.asyncio
    async def test_model_chunks_reconciled(self):
        response = json.dumps([
            {"text": "The cat", "type": "noun_phrase", "start": 40, "end": 47},
            {"text": "ran quickly", "type": "verb_phrase", "start": 0, "end": 0},
        ])
        backend = FakeChunkingBackend(response)
        chunker = PhraseChunker(model_chunker=ModelPhraseChunker(backend))

        chunks = await chunker.chunk("The cat ran quickly.", "en-US")

        assert [(c.text, c.start, c.end) for c in chunks] == [("The cat", 0, 7), ("ran quickly", 8, 19)]
        assert chunks[1].chunk_type is ChunkType.VERB_PHRASE
        assert "English" in backend.prompts[0]

    @pytest.mark.asyncio
    async def test_invalid_model_output_falls_back(self):
        backend = FakeChunkingBackend("not json at all")
        chunker = PhraseChunker(model_chunker=ModelPhraseChunker(backend))

        chunks = await chunker.chunk("The cat ran quickly.", "en-US")

        assert [c.text for c in chunks] == ["The cat ran quickly."]

    @pytest.mark.asyncio
    async def test_backend_error_falls_back(self):
        backend = FakeChunkingBackend(error=RuntimeError("timeout"))
        chunker = PhraseChunker(model_chunker=ModelPhraseChunker(backend))

        chunks = await chunker.chunk("cats and dogs", "en-US")

        assert [c.text for c in chunks] == ["cats", "and", "dogs"]

    @pytest.mark.asyncio
    async def test_cancelled_chunking(self):
        token = CancelToken()
        token.cancel()

        with pytest.raises(AnnotationCancelled):
            await PhraseChunker().chunk("The cat", "en-US", token)


class TestChunkerEventLoop:
    """Chunking must not stall other tasks on the loop."""

    @pytest.mark.asyncio
    async def test_chinese_split_runs_off_loop(self, monkeypatch):
        def slow_split(self, text):
            time.sleep(0.3)
            return [PhraseChunk(text=text)]

        monkeypatch.setattr(HeuristicPhraseSplitter, "_split_chinese", slow_split)
        gaps = []
        stop = asyncio.Event()

        async def tick():
            last = time.perf_counter()
            while not stop.is_set():
                await asyncio.sleep(0.005)
                now = time.perf_counter()
                gaps.append(now - last)
                last = now

        ticker = asyncio.create_task(tick())
        await asyncio.sleep(0)

        chunks = await PhraseChunker().chunk("我爱北京", "zh-CN")
        stop.set()
        await ticker

        assert [c.text for c in chunks] == ["我爱北京"]
        assert max(gaps) < 0.15

    @pytest.mark.asyncio
    async def test_fallback_split_runs_off_loop(self, monkeypatch):
        threads = []

        def record_split(self, text):
            threads.append(threading.get_ident())
            return [PhraseChunk(text=text)]

        monkeypatch.setattr(HeuristicPhraseSplitter, "_split_chinese", record_split)
        chunker = PhraseChunker(model_chunker=ModelPhraseChunker(FakeChunkingBackend(error=RuntimeError("down"))))

        chunks = await chunker.chunk("你好", "zh-CN")

        assert [c.text for c in chunks] == ["你好"]
        assert threads and threading.get_ident() not in threads
