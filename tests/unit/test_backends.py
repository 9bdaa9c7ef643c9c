"""Unit tests for translation backends."""

from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError, APIError

from linguini.core.exceptions import BackendError, ConfigurationError, TranslationUnavailable
from linguini.translation.backends import create_backend, LocalBackend, FreeBackend, OpenAIBackend
from linguini.translation.prompts import SPAN_OPEN, SPAN_CLOSE


class FakeCompletions:
    def __init__(self, answers, error=None):
        self.answers = list(answers)
        self.error = error
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        content = self.answers.pop(0)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
            usage=SimpleNamespace(total_tokens=7),
        )


class FakeClient:
    def __init__(self, completions):
        self.chat = SimpleNamespace(completions=completions)
        self.closed = False

    async def close(self):
        self.closed = True


def make_openai(answers=(), error=None, **kwargs):
    completions = FakeCompletions(answers, error)
    clients = []

    def factory():
        client = FakeClient(completions)
        clients.append(client)
        return client

    backend = OpenAIBackend(api_key=None, client_factory=factory, **kwargs)
    return backend, completions, clients


class TestBackendFactory:
    """Test backend creation by name."""

    def test_known_backends(self):
        assert isinstance(create_backend("local"), LocalBackend)
        assert isinstance(create_backend("FREE"), FreeBackend)

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError) as excinfo:
            create_backend("deepl")
        assert "local" in excinfo.value.details.get("valid_values", [])


class TestLocalBackend:
    """Test the offline rule-based backend."""

    @pytest.mark.asyncio
    async def test_word_rules(self):
        backend = LocalBackend()
        assert await backend.translate_literal("Hello world", "en-US", "fr-FR") == "Bonjour monde"

    @pytest.mark.asyncio
    async def test_chinese_rules(self):
        backend = LocalBackend()
        assert await backend.translate_literal("你好", "zh-CN", "en-US") == "hello"

    @pytest.mark.asyncio
    async def test_unknown_pair_echoes(self):
        backend = LocalBackend()
        assert await backend.translate_literal("Hallo", "de-DE", "fr-FR") == "Hallo"

    @pytest.mark.asyncio
    async def test_contextual_confirms_literal(self):
        backend = LocalBackend()
        assert await backend.translate_contextual("cat", "en", "fr", "the cat", "chat") == "chat"

    @pytest.mark.asyncio
    async def test_simplify_span(self):
        backend = LocalBackend()
        assert await backend.simplify("ran quickly", "The cat ran quickly.", 8, 19) == "ran fast"


class TestFreeBackend:
    """Test the deep-translator backend without network access."""

    @pytest.mark.asyncio
    async def test_literal_uses_google_codes(self, monkeypatch):
        seen = {}

        class FakeTranslator:
            def __init__(self, source, target):
                seen["pair"] = (source, target)

            def translate(self, text):
                return f"fr:{text}"

        monkeypatch.setattr("linguini.translation.backends.free_backend.GoogleTranslator", FakeTranslator)
        backend = FreeBackend()

        assert await backend.translate_literal("cat", "en-US", "zh-TW") == "fr:cat"
        assert seen["pair"] == ("en", "zh-TW")

    @pytest.mark.asyncio
    async def test_simplify_echoes(self):
        assert await FreeBackend().simplify("ran quickly", "The cat ran quickly.", 8, 19) == "ran quickly"


class TestOpenAIBackend:
    """Test the chat-model backend against a fake client."""

    def test_not_available_without_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert not OpenAIBackend().is_available()

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(TranslationUnavailable):
            await OpenAIBackend().translate_literal("cat", "en", "fr")

    @pytest.mark.asyncio
    async def test_literal_cleans_output(self):
        backend, completions, _ = make_openai(['Translation: "le chat"'])

        assert await backend.translate_literal("the cat", "en-US", "fr-FR") == "le chat"
        request = completions.requests[0]
        assert "English" in request["messages"][1]["content"]
        assert "French" in request["messages"][1]["content"]
        assert backend.stats["tokens_used"] == 7

    @pytest.mark.asyncio
    async def test_contextual_prompt_includes_literal(self):
        backend, completions, _ = make_openai(["la rive"])

        result = await backend.translate_contextual("bank", "en", "fr", "the bank of the river", "la banque")

        assert result == "la rive"
        prompt = completions.requests[0]["messages"][1]["content"]
        assert "the bank of the river" in prompt
        assert "la banque" in prompt

    @pytest.mark.asyncio
    async def test_simplify_marks_span(self):
        backend, completions, _ = make_openai(["moved fast"], simplify_context_chars=4)

        result = await backend.simplify("ran quickly", "The cat ran quickly.", 8, 19)

        assert result == "moved fast"
        prompt = completions.requests[0]["messages"][1]["content"]
        assert f"cat {SPAN_OPEN}ran quickly{SPAN_CLOSE}." in prompt

    @pytest.mark.asyncio
    async def test_connection_error_is_unavailable(self):
        error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
        backend, _, _ = make_openai(error=error)

        with pytest.raises(TranslationUnavailable):
            await backend.translate_literal("cat", "en", "fr")
        assert backend.stats["errors"] == 1

    @pytest.mark.asyncio
    async def test_close_disposes_clients(self):
        backend, _, clients = make_openai(["le chat"])

        await backend.translate_literal("the cat", "en", "fr")
        await backend.close()

        assert len(clients) == 1
        assert clients[0].closed

    @pytest.mark.asyncio
    async def test_api_error_is_backend_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        backend, _, _ = make_openai(error=APIError("model not found", request, body=None))

        with pytest.raises(BackendError) as excinfo:
            await backend.translate_literal("cat", "en", "fr")
        assert excinfo.value.backend == "openai"
