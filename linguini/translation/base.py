"""
Translation port interface.

The pipeline talks to every translation or simplification service through
TranslationPort. Implementations own their backend resources; the pipeline
only requires that a port can be awaited concurrently up to the configured
batch width.
"""

from abc import ABC, abstractmethod
from typing import Optional


class TranslationPort(ABC):
    """Abstract boundary to the external translation/simplification backend."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key
        self.model = model
        self.name = self.__class__.__name__

    @abstractmethod
    async def translate_literal(self, text: str, source: str, target: str) -> str:
        """
        Direct, context-free translation of ``text``.

        Raises:
            InteractiveTriggerRequired: If the backend needs a user gesture
            TranslationUnavailable: If the backend is down
        """

    @abstractmethod
    async def translate_contextual(
        self,
        text: str,
        source: str,
        target: str,
        context: str,
        literal_candidate: str
    ) -> str:
        """
        Translation of ``text`` as it is used inside ``context``.

        The backend should echo ``literal_candidate`` verbatim when it is
        already right in context, or propose an improved rendering.
        """

    @abstractmethod
    async def simplify(self, text: str, full_context: str, chunk_start: int, chunk_end: int) -> str:
        """
        Same-language simpler rewording of ``full_context[chunk_start:chunk_end]``.

        Only the marked span may be rewritten; the surrounding text is context.
        """

    def is_available(self) -> bool:
        """Check if backend is available and configured."""
        return self.api_key is not None

    async def close(self) -> None:
        """Release backend resources. Ports without resources do nothing."""
