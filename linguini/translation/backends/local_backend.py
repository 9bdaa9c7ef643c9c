"""Local fast backend: deterministic rule-based port for offline runs and tests."""

import re
from typing import Dict, Optional, Tuple

from linguini.language.codes import primary_subtag
from linguini.translation.base import TranslationPort

RULES: Dict[Tuple[str, str], Dict[str, str]] = {
    ("en", "fr"): {
        "hello": "bonjour",
        "world": "monde",
        "cat": "chat",
        "dog": "chien",
        "house": "maison",
        "the": "le",
        "quickly": "rapidement",
    },
    ("en", "es"): {
        "hello": "hola",
        "world": "mundo",
        "cat": "gato",
        "dog": "perro",
        "house": "casa",
        "the": "el",
        "quickly": "rápidamente",
    },
    ("zh", "en"): {
        "你好": "hello",
        "世界": "world",
        "猫": "cat",
    },
}

SIMPLER_WORDS: Dict[str, str] = {
    "quickly": "fast",
    "utilize": "use",
    "commence": "start",
    "approximately": "about",
    "purchase": "buy",
    "assist": "help",
    "numerous": "many",
    "obtain": "get",
}

_WORD = re.compile(r"\w+", re.UNICODE)


def _replace_words(text: str, table: Dict[str, str]) -> str:
    def swap(match):
        word = match.group()
        replacement = table.get(word.lower())
        if replacement is None:
            return word
        return replacement.capitalize() if word[0].isupper() else replacement

    return _WORD.sub(swap, text)


class LocalBackend(TranslationPort):
    """Deterministic local translator (simple word rules, echo otherwise)."""

    def __init__(self, api_key: Optional[str] = None, model: str = "local-rules"):
        super().__init__(api_key, model)
        self.name = "local"

    def is_available(self) -> bool:
        return True

    async def translate_literal(self, text: str, source: str, target: str) -> str:
        table = RULES.get((primary_subtag(source), primary_subtag(target)))
        if not table:
            return text
        if primary_subtag(source) in ("zh", "ja"):
            for src, tgt in table.items():
                text = text.replace(src, tgt)
            return text
        return _replace_words(text, table)

    async def translate_contextual(self, text: str, source: str, target: str,
                                   context: str, literal_candidate: str) -> str:
        return literal_candidate

    async def simplify(self, text: str, full_context: str, chunk_start: int, chunk_end: int) -> str:
        span = full_context[chunk_start:chunk_end] or text
        return _replace_words(span, SIMPLER_WORDS)
