"""Free literal translation through Google Translate (deep-translator)."""

import asyncio
from typing import Optional

from deep_translator import GoogleTranslator
from deep_translator.exceptions import RequestError, TooManyRequests

from linguini.core.exceptions import TranslationUnavailable
from linguini.language.codes import normalize_language_code, primary_subtag
from linguini.translation.base import TranslationPort

# Google keeps the region only for Chinese
GOOGLE_CODES = {"zh-CN": "zh-CN", "zh-TW": "zh-TW"}

MAX_REQUEST_CHARS = 4500


class FreeBackend(TranslationPort):
    """
    Literal translation only.

    There is no model behind this port, so the contextual operation confirms
    the literal candidate and simplify returns the text unchanged.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = "google"):
        super().__init__(api_key, model)
        self.name = "free"

    def is_available(self) -> bool:
        return True

    @staticmethod
    def _normalize_lang(lang: str) -> str:
        canonical = normalize_language_code(lang)
        if canonical in GOOGLE_CODES:
            return GOOGLE_CODES[canonical]
        return primary_subtag(canonical or lang) or "auto"

    def _translate_sync(self, text: str, source: str, target: str) -> str:
        translator = GoogleTranslator(source=self._normalize_lang(source),
                                      target=self._normalize_lang(target))
        try:
            return translator.translate(text[:MAX_REQUEST_CHARS]) or text
        except (RequestError, TooManyRequests) as e:
            raise TranslationUnavailable(self.name, str(e)) from e

    async def translate_literal(self, text: str, source: str, target: str) -> str:
        return await asyncio.to_thread(self._translate_sync, text, source, target)

    async def translate_contextual(self, text: str, source: str, target: str,
                                   context: str, literal_candidate: str) -> str:
        return literal_candidate

    async def simplify(self, text: str, full_context: str, chunk_start: int, chunk_end: int) -> str:
        return text
