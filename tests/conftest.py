"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from linguini.core.exceptions import InteractiveTriggerRequired
from linguini.translation.base import TranslationPort


class RecordingPort(TranslationPort):
    """
    Fake port that records every call and the peak number of calls in flight.

    Literal translations are ``<text>``; contextual calls return the literal
    candidate unless a mapping is given; simplify upper-cases the span.
    """

    def __init__(
        self,
        delay: float = 0.01,
        delays: Optional[Dict[str, float]] = None,
        fail_on: Sequence[str] = (),
        contextual: Optional[Dict[str, str]] = None,
        simplified: Optional[Dict[str, str]] = None
    ):
        super().__init__(model="recording")
        self.name = "recording"
        self.delay = delay
        self.delays = delays or {}
        self.fail_on = set(fail_on)
        self.contextual = contextual or {}
        self.simplified = simplified or {}
        self.calls: List[Tuple[str, str]] = []
        self.simplify_args: List[Tuple[str, str, int, int]] = []
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def _call(self, kind: str, text: str):
        self.calls.append((kind, text))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(text, self.delay))
        finally:
            self.active -= 1
        if text in self.fail_on:
            raise RuntimeError(f"backend rejected {text!r}")

    def calls_of(self, kind: str) -> List[str]:
        return [text for call_kind, text in self.calls if call_kind == kind]

    async def translate_literal(self, text, source, target):
        await self._call("literal", text)
        return f"<{text}>"

    async def translate_contextual(self, text, source, target, context, literal_candidate):
        await self._call("contextual", text)
        return self.contextual.get(text, literal_candidate)

    async def simplify(self, text, full_context, chunk_start, chunk_end):
        await self._call("simplify", text)
        self.simplify_args.append((text, full_context, chunk_start, chunk_end))
        span = full_context[chunk_start:chunk_end]
        return self.simplified.get(span, span.upper())

    async def close(self):
        self.closed = True


class InteractiveTriggerPort(RecordingPort):
    """Port whose every call needs a user gesture first."""

    async def translate_literal(self, text, source, target):
        await self._call("literal", text)
        raise InteractiveTriggerRequired(self.name)

    async def simplify(self, text, full_context, chunk_start, chunk_end):
        await self._call("simplify", text)
        raise InteractiveTriggerRequired(self.name)


@pytest.fixture
def recording_port():
    """Fake port with a small per-call delay."""
    return RecordingPort()


@pytest.fixture
def interactive_port():
    """Fake port that always asks for an interactive trigger."""
    return InteractiveTriggerPort()


@pytest.fixture
def sample_text():
    """Sample English text for testing."""
    return "The cat sat on the mat and the dog slept under the old table."


@pytest.fixture
def sample_html():
    """Sample article markup for testing."""
    return (
        "<html><head><style>p { color: red; }</style></head>"
        "<body><h1>Le chat</h1><p>Le chat dort sur le canapé.</p>"
        "<script>var x = 1;</script></body></html>"
    )


@pytest.fixture
def line_config():
    """Pipeline configuration that keeps whole lines as segments."""
    from linguini.core.pipeline import AnnotationConfig
    return AnnotationConfig(segment_granularity="line")
