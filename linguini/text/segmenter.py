"""
Text segmentation by language.

Segments always partition the text exactly: they are contiguous, ordered,
non-overlapping, and concatenating their texts reproduces the input.
"""

import re
from typing import List, Optional

from linguini.core.models import TextSegment
from linguini.language.scripts import uses_character_segmentation, is_target_script

GRANULARITIES = ("word", "line")

_WHITESPACE = re.compile(r"(\s+)")
_LINE_BREAK_WHITESPACE = re.compile(r"(\s*\n\s*)")


def segment_text(text: str, language: Optional[str], granularity: str = "word") -> List[TextSegment]:
    """
    Split ``text`` into target-language and foreign segments.

    Args:
        text: Plain text
        language: Detected language code
        granularity: "word" splits at every whitespace run; "line" only at
            whitespace runs containing a line break. Ignored for languages
            segmented by character runs.

    Returns:
        Ordered segments covering the whole text
    """
    if not text:
        return []
    if uses_character_segmentation(language):
        return segment_by_character_runs(text, language)
    if granularity == "line":
        return segment_by_separator(text, _LINE_BREAK_WHITESPACE)
    return segment_by_separator(text, _WHITESPACE)


def segment_by_character_runs(text: str, language: Optional[str]) -> List[TextSegment]:
    """Group consecutive characters that share the same target-script classification."""
    segments: List[TextSegment] = []
    run_start = 0
    run_is_target = is_target_script(text[0], language)

    for i in range(1, len(text)):
        char_is_target = is_target_script(text[i], language)
        if char_is_target != run_is_target:
            segments.append(TextSegment(text[run_start:i], run_start, i, run_is_target))
            run_start = i
            run_is_target = char_is_target

    segments.append(TextSegment(text[run_start:], run_start, len(text), run_is_target))
    return segments


def segment_by_separator(text: str, separator: "re.Pattern[str]") -> List[TextSegment]:
    """Split on a capturing whitespace pattern, keeping separators as foreign segments."""
    segments: List[TextSegment] = []
    position = 0

    for piece in separator.split(text):
        if not piece:
            continue
        is_separator = piece.isspace()
        segments.append(TextSegment(piece, position, position + len(piece), not is_separator))
        position += len(piece)

    return segments


def verify_partition(text: str, segments: List[TextSegment]) -> bool:
    """Check that segments are gap-free, ordered and reassemble ``text``."""
    position = 0
    for segment in segments:
        if segment.start != position or segment.end - segment.start != len(segment.text):
            return False
        if text[segment.start:segment.end] != segment.text:
            return False
        position = segment.end
    return position == len(text)
