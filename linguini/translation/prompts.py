"""
Prompt templates for the model-backed port.

Each template pairs a system prompt with a user prompt; placeholders are
filled with str.format.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional

from linguini.language.codes import display_name

SPAN_OPEN = "[["
SPAN_CLOSE = "]]"


@dataclass(frozen=True)
class PromptTemplate:
    """Template for one kind of model request."""
    name: str
    system_prompt: str
    user_prompt_template: str

    def render(self, **values) -> str:
        return self.user_prompt_template.format(**values)


LITERAL = PromptTemplate(
    name="literal",
    system_prompt=(
        "You are a dictionary-style translator. Translate exactly what is given, "
        "without adding explanations."
    ),
    user_prompt_template=(
        "Translate the following {source} text to {target}.\n\n"
        "Text: \"{text}\"\n\n"
        "Provide only the translation, nothing else."
    ),
)

CONTEXTUAL = PromptTemplate(
    name="contextual",
    system_prompt=(
        "You are a translator helping a language learner read a document. "
        "You check phrase translations against the sentence they appear in."
    ),
    user_prompt_template=(
        "Translate the following {source} text to {target}. Consider the surrounding "
        "context for natural translation.\n\n"
        "Context: \"{context}\"\n"
        "Text to translate: \"{text}\"\n"
        "Literal translation: \"{literal}\"\n\n"
        "If the literal translation is already correct in this context, repeat it exactly. "
        "Otherwise give the better translation. Provide only the translation, nothing else."
    ),
)

SIMPLIFY = PromptTemplate(
    name="simplify",
    system_prompt=(
        "You rewrite difficult text in plain, simple words for language learners. "
        "Keep the meaning and the language of the original."
    ),
    user_prompt_template=(
        "Rewrite only the part marked with " + SPAN_OPEN + " and " + SPAN_CLOSE + " in simpler words. "
        "Do not change anything outside the markers and do not include the markers in your answer.\n\n"
        "{before}" + SPAN_OPEN + "{span}" + SPAN_CLOSE + "{after}\n\n"
        "Provide only the simpler wording of the marked part."
    ),
)

CHUNKING = PromptTemplate(
    name="chunking",
    system_prompt="You are a linguist who splits sentences into short phrases.",
    user_prompt_template=(
        "Analyze this {language} text and identify parts of speech. Group words into meaningful "
        "chunks: noun phrases, verb phrases, adjective phrases, adverb phrases, prepositional "
        "phrases. For single words that don't form phrases, mark them as single_word.\n\n"
        "Text: \"{text}\"\n\n"
        "Return a JSON array with chunks. Each chunk should have:\n"
        "- \"text\": the chunk text, copied exactly from the original\n"
        "- \"type\": one of \"noun_phrase\", \"verb_phrase\", \"adjective_phrase\", "
        "\"adverb_phrase\", \"prepositional_phrase\", or \"single_word\"\n"
        "- \"start\": character position where chunk starts in original text (0-indexed)\n"
        "- \"end\": character position where chunk ends (exclusive)\n\n"
        "Chunks must be in reading order and together cover the whole text.\n"
        "Return ONLY valid JSON, no other text."
    ),
)


class PromptLibrary:
    """Registry of the templates a backend may use."""

    def __init__(self, overrides: Optional[Dict[str, PromptTemplate]] = None):
        self.templates: Dict[str, PromptTemplate] = {
            t.name: t for t in (LITERAL, CONTEXTUAL, SIMPLIFY, CHUNKING)
        }
        if overrides:
            self.templates.update(overrides)

    def get(self, name: str) -> PromptTemplate:
        return self.templates[name]


def context_window(full_context: str, start: int, end: int, window: int) -> tuple:
    """Split ``full_context`` into (before, span, after) with ``window`` chars either side."""
    start = max(0, min(start, len(full_context)))
    end = max(start, min(end, len(full_context)))
    before = full_context[max(0, start - window):start]
    after = full_context[end:end + window]
    return before, full_context[start:end], after


def build_chunking_prompt(text: str, language: Optional[str]) -> str:
    return CHUNKING.render(text=text, language=display_name(language))
