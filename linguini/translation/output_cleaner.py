"""
Output cleaning for model responses.

Models wrap short answers in reasoning blocks, code fences, labels and
quotes; the port strips them before handing text back to the pipeline.
"""

import re

from linguini.translation.prompts import SPAN_OPEN, SPAN_CLOSE

_LABEL_PREFIXES = (
    r"^Translation:\s*",
    r"^Translated text:\s*",
    r"^Contextual translation:\s*",
    r"^Simplified:\s*",
    r"^Simpler wording:\s*",
    r"^Output:\s*",
    r"^Result:\s*",
)

_QUOTE_PAIRS = (('"', '"'), ("'", "'"), ("“", "”"), ("「", "」"))


def clean_model_output(text: str) -> str:
    """
    Extract the answer from raw model output.

    Args:
        text: Raw model output

    Returns:
        Cleaned text; the original is returned if cleaning removes everything
    """
    if not text:
        return text

    original = text

    text = re.sub(r'<think>.*?</think>', '', text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r'<thinking>.*?</thinking>', '', text, flags=re.DOTALL | re.IGNORECASE)

    match = re.match(r'^```(?:\w+)?\s*\n(.*?)\n```\s*$', text.strip(), re.DOTALL)
    if match:
        text = match.group(1)

    text = text.strip()
    for prefix in _LABEL_PREFIXES:
        text = re.sub(prefix, '', text, flags=re.IGNORECASE)

    text = text.replace(SPAN_OPEN, '').replace(SPAN_CLOSE, '').strip()

    for opening, closing in _QUOTE_PAIRS:
        if len(text) >= 2 and text.startswith(opening) and text.endswith(closing):
            text = text[1:-1].strip()
            break

    if not text:
        return original.strip()

    return text
