"""OpenAI chat-model translation port."""

import os
from typing import Callable, Optional

from openai import (
    AsyncOpenAI,
    APIConnectionError,
    APIError,
    InternalServerError,
    RateLimitError,
)

from linguini.core.exceptions import BackendError, TranslationUnavailable
from linguini.language.codes import display_name
from linguini.translation.base import TranslationPort
from linguini.translation.output_cleaner import clean_model_output
from linguini.translation.prompts import PromptLibrary, PromptTemplate, context_window
from linguini.translation.sessions import SessionPool
from linguini.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIBackend(TranslationPort):
    """
    Literal, contextual and simplify operations through a chat model.

    Clients are handed out by a SessionPool, so the number of concurrent
    requests never exceeds ``max_sessions`` and idle clients are closed
    after ``idle_timeout`` seconds.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        max_sessions: int = 6,
        idle_timeout: float = 300.0,
        simplify_context_chars: int = 200,
        temperature: float = 0.0,
        max_tokens: int = 512,
        prompts: Optional[PromptLibrary] = None,
        client_factory: Optional[Callable[[], AsyncOpenAI]] = None
    ):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        super().__init__(api_key, model)
        self.name = "openai"
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.simplify_context_chars = simplify_context_chars
        self.prompts = prompts or PromptLibrary()
        self.pool: SessionPool[AsyncOpenAI] = SessionPool(
            client_factory or self._create_client,
            max_sessions=max_sessions,
            idle_timeout=idle_timeout,
            disposer=lambda client: client.close(),
        )
        self._has_custom_client = client_factory is not None
        self.stats = {"requests": 0, "tokens_used": 0, "errors": 0}

    def _create_client(self) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=self.api_key)

    def is_available(self) -> bool:
        return self.api_key is not None or self._has_custom_client

    async def _complete(self, template: PromptTemplate, user_prompt: str) -> str:
        if not self.is_available():
            raise TranslationUnavailable(self.name, "API key not configured")

        messages = [
            {"role": "system", "content": template.system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        self.stats["requests"] += 1
        try:
            async with self.pool.session() as client:
                response = await client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
        except (APIConnectionError, RateLimitError, InternalServerError) as e:
            self.stats["errors"] += 1
            raise TranslationUnavailable(self.name, str(e)) from e
        except APIError as e:
            self.stats["errors"] += 1
            raise BackendError(self.name, str(e), original_error=e) from e

        if response.usage:
            self.stats["tokens_used"] += response.usage.total_tokens
        return response.choices[0].message.content or ""

    async def translate_literal(self, text: str, source: str, target: str) -> str:
        template = self.prompts.get("literal")
        prompt = template.render(text=text, source=display_name(source), target=display_name(target))
        return clean_model_output(await self._complete(template, prompt))

    async def translate_contextual(self, text: str, source: str, target: str,
                                   context: str, literal_candidate: str) -> str:
        template = self.prompts.get("contextual")
        prompt = template.render(
            text=text,
            source=display_name(source),
            target=display_name(target),
            context=context,
            literal=literal_candidate,
        )
        return clean_model_output(await self._complete(template, prompt))

    async def simplify(self, text: str, full_context: str, chunk_start: int, chunk_end: int) -> str:
        template = self.prompts.get("simplify")
        before, span, after = context_window(full_context, chunk_start, chunk_end,
                                             self.simplify_context_chars)
        if not span.strip():
            span = text
        prompt = template.render(before=before, span=span, after=after)
        return clean_model_output(await self._complete(template, prompt))

    async def propose_chunks(self, prompt: str) -> str:
        """Raw model answer to a chunking prompt; parsed by the chunker."""
        return await self._complete(self.prompts.get("chunking"), prompt)

    async def close(self) -> None:
        await self.pool.close()
