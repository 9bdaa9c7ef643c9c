"""Unit tests for the exception hierarchy."""

from linguini.core.cancellation import CancelToken, check_cancelled
from linguini.core.exceptions import (
    AnnotationCancelled,
    ConfigurationError,
    InteractiveTriggerRequired,
    LinguiniError,
    TranslationUnavailable,
)

import pytest


def test_error_to_dict():
    error = ConfigurationError("Bad backend", config_key="backend", invalid_value="x", valid_values=["local", "free"])
    data = error.to_dict()

    assert data["error_type"] == "ConfigurationError"
    assert data["details"]["invalid_value"] == "x"
    assert data["suggestion"] == "Valid values for backend: local, free"
    assert "Suggestion" in str(error)


def test_interactive_trigger_is_unavailable():
    """Interactive-trigger failures are a kind of unavailability."""
    error = InteractiveTriggerRequired("openai")

    assert isinstance(error, TranslationUnavailable)
    assert isinstance(error, LinguiniError)
    assert error.recoverable


def test_cancel_token():
    token = CancelToken()
    assert not token.is_cancelled
    check_cancelled(token, "detect")

    token.cancel("user navigated away")

    assert token.is_cancelled
    assert token.reason == "user navigated away"
    with pytest.raises(AnnotationCancelled) as excinfo:
        token.raise_if_cancelled("translate", chunks_emitted=4)
    assert excinfo.value.phase == "translate"
    assert excinfo.value.chunks_emitted == 4


def test_missing_token_never_cancels():
    check_cancelled(None, "segment")
