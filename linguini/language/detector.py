"""
Language detection with a layered fallback chain.

Layers, in order:
1. the declared language tag, normalized through the code table;
2. a statistical detector (langdetect) for texts long enough to trust;
3. a character-distribution heuristic over Unicode script ranges.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

from linguini.language.codes import normalize_language_code, DEFAULT_LANGUAGE
from linguini.language.scripts import (
    is_chinese_character,
    is_kana_character,
    is_hangul_character,
    is_thai_character,
    is_printable_ascii,
)
from linguini.utils.logger import get_logger

logger = get_logger(__name__)

# langdetect is non-deterministic unless seeded
DetectorFactory.seed = 0

SCRIPT_RATIO_THRESHOLD = 0.3


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of a detection attempt."""
    language: Optional[str]
    method: str = "none"            # declared, statistical, script, none
    confidence: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.language is not None


def detect_language_by_script(text: str) -> Optional[str]:
    """
    Guess a language from the distribution of Unicode script ranges.

    Returns None when the text has no countable characters.
    """
    if not text:
        return None

    chinese = kana = hangul = thai = other = 0
    for char in text:
        if is_chinese_character(char):
            chinese += 1
        elif is_kana_character(char):
            kana += 1
        elif is_hangul_character(char):
            hangul += 1
        elif is_thai_character(char):
            thai += 1
        elif is_printable_ascii(char):
            other += 1

    total = chinese + kana + hangul + thai + other
    if total == 0:
        return None

    # Kana anywhere next to ideographs means Japanese rather than Chinese
    if kana and (kana + chinese) / total > SCRIPT_RATIO_THRESHOLD:
        return "ja-JP"
    if chinese / total > SCRIPT_RATIO_THRESHOLD:
        return "zh-CN"
    if hangul / total > SCRIPT_RATIO_THRESHOLD:
        return "ko-KR"
    if thai / total > SCRIPT_RATIO_THRESHOLD:
        return "th-TH"

    return DEFAULT_LANGUAGE


class LanguageDetector:
    """Identifies the dominant language of a text blob."""

    def __init__(self, min_text_length: int = 10, min_confidence: float = 0.5,
                 use_statistical: bool = True):
        self.min_text_length = min_text_length
        self.min_confidence = min_confidence
        self.use_statistical = use_statistical

    async def detect(self, text: str, declared: Optional[str] = None) -> DetectionResult:
        """
        Run the fallback chain.

        Args:
            text: Plain text to inspect
            declared: Language tag declared by the extractor, if any

        Returns:
            DetectionResult; ``language`` is None only if every layer failed
        """
        if declared:
            normalized = normalize_language_code(declared)
            if normalized:
                logger.debug(f"Using declared language {declared!r} -> {normalized}")
                return DetectionResult(normalized, "declared", 1.0)
            logger.warning(f"Declared language {declared!r} not recognised, detecting instead")

        if self.use_statistical:
            statistical = await self._detect_statistical(text)
            if statistical.succeeded:
                return statistical

        language = detect_language_by_script(text)
        if language:
            logger.debug(f"Script heuristic detected {language}")
            return DetectionResult(language, "script", 0.0)

        return DetectionResult(None)

    async def _detect_statistical(self, text: str) -> DetectionResult:
        stripped = (text or "").strip()
        if len(stripped) < self.min_text_length:
            logger.debug("Text too short for statistical detection, using fallback")
            return DetectionResult(None)

        try:
            candidates = await asyncio.to_thread(detect_langs, stripped)
        except LangDetectException as e:
            logger.warning(f"Statistical detection failed, using fallback: {e}")
            return DetectionResult(None)

        if not candidates:
            return DetectionResult(None)

        top = candidates[0]
        if top.prob < self.min_confidence:
            logger.warning(f"Low confidence result ({top.lang}: {top.prob:.3f}), using fallback")
            return DetectionResult(None)

        language = normalize_language_code(top.lang)
        if language is None:
            logger.debug(f"Statistical result {top.lang!r} outside the code table")
            return DetectionResult(None)

        logger.debug(f"Detected {language} (confidence: {top.prob:.3f})")
        return DetectionResult(language, "statistical", float(top.prob))
