"""Unicode script ranges and per-language script classification."""

from typing import Dict, Tuple, Optional

from linguini.language.codes import primary_subtag

CJK_IDEOGRAPHS = ((0x4E00, 0x9FFF), (0x3400, 0x4DBF), (0xF900, 0xFAFF))
HIRAGANA = ((0x3040, 0x309F),)
KATAKANA = ((0x30A0, 0x30FF), (0x31F0, 0x31FF))
HANGUL = ((0xAC00, 0xD7AF), (0x1100, 0x11FF), (0x3130, 0x318F))
THAI = ((0x0E00, 0x0E7F),)
PRINTABLE_ASCII = ((0x0020, 0x007E),)

# Languages written without spaces between words; segmented by character runs.
SCRIPT_RANGES: Dict[str, Tuple[Tuple[int, int], ...]] = {
    "zh": CJK_IDEOGRAPHS,
    "ja": CJK_IDEOGRAPHS + HIRAGANA + KATAKANA,
    "th": THAI,
}


def _in_ranges(code_point: int, ranges: Tuple[Tuple[int, int], ...]) -> bool:
    return any(low <= code_point <= high for low, high in ranges)


def is_chinese_character(char: str) -> bool:
    return _in_ranges(ord(char), CJK_IDEOGRAPHS)


def is_kana_character(char: str) -> bool:
    return _in_ranges(ord(char), HIRAGANA + KATAKANA)


def is_hangul_character(char: str) -> bool:
    return _in_ranges(ord(char), HANGUL)


def is_thai_character(char: str) -> bool:
    return _in_ranges(ord(char), THAI)


def is_printable_ascii(char: str) -> bool:
    return _in_ranges(ord(char), PRINTABLE_ASCII)


def script_ranges_for(language: Optional[str]) -> Optional[Tuple[Tuple[int, int], ...]]:
    """Script ranges for a no-whitespace language, or None for word-based languages."""
    return SCRIPT_RANGES.get(primary_subtag(language))


def uses_character_segmentation(language: Optional[str]) -> bool:
    return script_ranges_for(language) is not None


def is_target_script(char: str, language: Optional[str]) -> bool:
    """Whether a character belongs to the writing system of ``language``."""
    ranges = script_ranges_for(language)
    if ranges is None:
        return not char.isspace()
    return _in_ranges(ord(char), ranges)
