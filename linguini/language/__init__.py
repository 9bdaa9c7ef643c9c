"""Language detection, code normalization and script tables."""

from .codes import (
    normalize_language_code,
    primary_subtag,
    same_language,
    display_name,
    SUPPORTED_LANGUAGE_CODES,
)
from .detector import LanguageDetector, DetectionResult, detect_language_by_script

__all__ = [
    'normalize_language_code',
    'primary_subtag',
    'same_language',
    'display_name',
    'SUPPORTED_LANGUAGE_CODES',
    'LanguageDetector',
    'DetectionResult',
    'detect_language_by_script',
]
