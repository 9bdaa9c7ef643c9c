"""
Language code normalization tables.

The tables are static data: every lookup goes through a dictionary and falls
back to a caller-supplied default, never through per-language branching.
"""

from typing import Dict, Optional

# Canonical BCP-47 codes the pipeline reasons about.
SUPPORTED_LANGUAGE_CODES = (
    "en-US",
    "es-ES",
    "fr-FR",
    "de-DE",
    "ja-JP",
    "ko-KR",
    "zh-CN",
    "zh-TW",
    "th-TH",
    "it-IT",
    "pt-BR",
    "ru-RU",
    "ar-SA",
    "hi-IN",
)

DISPLAY_NAMES: Dict[str, str] = {
    "en-US": "English",
    "es-ES": "Spanish",
    "fr-FR": "French",
    "de-DE": "German",
    "ja-JP": "Japanese",
    "ko-KR": "Korean",
    "zh-CN": "Chinese",
    "zh-TW": "Chinese (Traditional)",
    "th-TH": "Thai",
    "it-IT": "Italian",
    "pt-BR": "Portuguese",
    "ru-RU": "Russian",
    "ar-SA": "Arabic",
    "hi-IN": "Hindi",
}

# Lowercase tag, primary subtag, regional variant or display name -> canonical code.
LANGUAGE_CODE_TABLE: Dict[str, str] = {
    # English
    "en": "en-US", "en-us": "en-US", "en-gb": "en-US", "en-ca": "en-US",
    "en-au": "en-US", "en-nz": "en-US", "english": "en-US",
    # Spanish
    "es": "es-ES", "es-es": "es-ES", "es-mx": "es-ES", "es-ar": "es-ES",
    "es-co": "es-ES", "es-cl": "es-ES", "es-pe": "es-ES", "es-419": "es-ES",
    "spanish": "es-ES",
    # French
    "fr": "fr-FR", "fr-fr": "fr-FR", "fr-ca": "fr-FR", "fr-be": "fr-FR",
    "fr-ch": "fr-FR", "french": "fr-FR",
    # German
    "de": "de-DE", "de-de": "de-DE", "de-at": "de-DE", "de-ch": "de-DE",
    "german": "de-DE",
    # Japanese
    "ja": "ja-JP", "ja-jp": "ja-JP", "japanese": "ja-JP",
    # Korean
    "ko": "ko-KR", "ko-kr": "ko-KR", "korean": "ko-KR",
    # Chinese
    "zh": "zh-CN", "zh-cn": "zh-CN", "zh-hans": "zh-CN", "zh-sg": "zh-CN",
    "zh-hans-cn": "zh-CN", "chinese": "zh-CN",
    "zh-tw": "zh-TW", "zh-hk": "zh-TW", "zh-mo": "zh-TW", "zh-hant": "zh-TW",
    # Thai
    "th": "th-TH", "th-th": "th-TH", "thai": "th-TH",
    # Italian
    "it": "it-IT", "it-it": "it-IT", "it-ch": "it-IT", "italian": "it-IT",
    # Portuguese
    "pt": "pt-BR", "pt-br": "pt-BR", "pt-pt": "pt-BR", "portuguese": "pt-BR",
    # Russian
    "ru": "ru-RU", "ru-ru": "ru-RU", "ru-by": "ru-RU", "ru-kz": "ru-RU",
    "russian": "ru-RU",
    # Arabic
    "ar": "ar-SA", "ar-sa": "ar-SA", "ar-ae": "ar-SA", "ar-eg": "ar-SA",
    "arabic": "ar-SA",
    # Hindi
    "hi": "hi-IN", "hi-in": "hi-IN", "hindi": "hi-IN",
}

DEFAULT_LANGUAGE = "en-US"


def normalize_language_code(tag: Optional[str], default: Optional[str] = None) -> Optional[str]:
    """
    Map a language tag or display name to its canonical code.

    Lookup order: the full tag, then the primary subtag, then ``default``.
    Underscores are accepted as subtag separators ("pt_BR").

    Args:
        tag: Language tag, e.g. "zh-Hans", "EN_gb", "Thai"
        default: Returned when the tag is missing or unknown

    Returns:
        Canonical BCP-47 code or ``default``
    """
    if not tag:
        return default

    key = tag.strip().lower().replace("_", "-")
    if not key:
        return default

    if key in LANGUAGE_CODE_TABLE:
        return LANGUAGE_CODE_TABLE[key]

    return LANGUAGE_CODE_TABLE.get(primary_subtag(key), default)


def primary_subtag(tag: Optional[str]) -> str:
    """Return the lowercase primary subtag ("zh-CN" -> "zh")."""
    if not tag:
        return ""
    return tag.strip().lower().replace("_", "-").split("-")[0]


def same_language(first: Optional[str], second: Optional[str]) -> bool:
    """True when both tags share a primary subtag (en-US vs en-GB)."""
    a, b = primary_subtag(first), primary_subtag(second)
    return bool(a) and a == b


def display_name(code: Optional[str]) -> str:
    """Human-readable name used in prompts; unknown codes are returned as given."""
    canonical = normalize_language_code(code)
    if canonical is None:
        return code or "unknown"
    return DISPLAY_NAMES.get(canonical, canonical)
