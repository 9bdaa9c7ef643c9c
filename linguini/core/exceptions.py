"""
Exception hierarchy for Linguini.

Only InvalidInputError and AnnotationCancelled (plus configuration errors
raised at construction time) ever reach the caller of the pipeline. The
remaining types describe degraded conditions that are absorbed locally and
recorded in metrics.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List


class LinguiniError(Exception):
    """Base exception for all Linguini errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
        suggestion: Optional[str] = None
    ):
        """
        Initialize error.

        Args:
            message: Human-readable error message
            details: Additional error details
            recoverable: Whether the pipeline can continue after this error
            suggestion: Suggested fix or workaround
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        self.suggestion = suggestion

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "suggestion": self.suggestion
        }

    def __str__(self) -> str:
        result = self.message
        if self.suggestion:
            result += f"\nSuggestion: {self.suggestion}"
        return result


class InvalidInputError(LinguiniError):
    """Raised before detection when the input cannot be annotated."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(
            message,
            details={"field": field_name},
            recoverable=False,
            suggestion="Provide non-empty extracted content"
        )
        self.field_name = field_name


class AnnotationCancelled(LinguiniError):
    """
    Raised when the caller's cancel token is set.

    Chunks already delivered through progress snapshots remain the last
    valid state.
    """

    def __init__(self, phase: Optional[str] = None, chunks_emitted: int = 0):
        message = "Annotation cancelled"
        if phase:
            message += f" during phase '{phase}'"
        super().__init__(
            message,
            details={"phase": phase, "chunks_emitted": chunks_emitted},
            recoverable=False
        )
        self.phase = phase
        self.chunks_emitted = chunks_emitted


class DetectionDegraded(LinguiniError):
    """No detection layer produced a language; the target language is used."""

    def __init__(self, substituted: str, attempts: Optional[List[str]] = None):
        super().__init__(
            f"Language detection failed, substituting '{substituted}'",
            details={"substituted": substituted, "attempts": attempts or []},
            recoverable=True
        )
        self.substituted = substituted
        self.attempts = attempts or []


class ChunkOffsetUnresolved(LinguiniError):
    """A chunk's text could not be located verbatim in its segment."""

    def __init__(self, chunk_text: str, approx_start: int, approx_end: int):
        super().__init__(
            f"Chunk not found in segment, approximated at [{approx_start}, {approx_end})",
            details={
                "chunk_text": chunk_text,
                "approx_start": approx_start,
                "approx_end": approx_end
            },
            recoverable=True
        )
        self.chunk_text = chunk_text
        self.approx_start = approx_start
        self.approx_end = approx_end


class TranslationUnavailable(LinguiniError):
    """The translation backend is down or cannot serve the request."""

    def __init__(self, backend: str, message: str = "translation backend unavailable"):
        super().__init__(
            f"Backend '{backend}': {message}",
            details={"backend": backend},
            recoverable=True
        )
        self.backend = backend


class InteractiveTriggerRequired(TranslationUnavailable):
    """The backend refuses to start a session without a user gesture."""

    def __init__(self, backend: str):
        super().__init__(backend, "requires an interactive trigger (user gesture)")


class SegmentProcessingFailed(LinguiniError):
    """A whole segment collapsed into a single fallback chunk."""

    def __init__(self, segment_index: int, original_error: Optional[Exception] = None):
        super().__init__(
            f"Segment {segment_index} failed and was replaced by a fallback chunk",
            details={
                "segment_index": segment_index,
                "original_error": str(original_error) if original_error else None
            },
            recoverable=True
        )
        self.segment_index = segment_index
        self.original_error = original_error


class BackendError(LinguiniError):
    """Raised when a translation backend cannot be built or called."""

    def __init__(
        self,
        backend: str,
        message: str,
        original_error: Optional[Exception] = None,
        missing_dependency: Optional[str] = None
    ):
        full_message = f"Backend '{backend}' failed: {message}"
        details = {
            "backend": backend,
            "original_error": str(original_error) if original_error else None,
            "missing_dependency": missing_dependency
        }

        suggestion = None
        if missing_dependency:
            suggestion = f"Install missing dependency: pip install {missing_dependency}"
        elif backend == "openai":
            suggestion = "Check OPENAI_API_KEY in the environment or the config file."

        super().__init__(full_message, details, recoverable=True, suggestion=suggestion)
        self.backend = backend
        self.original_error = original_error
        self.missing_dependency = missing_dependency




class ConfigurationError(LinguiniError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        invalid_value: Optional[Any] = None,
        valid_values: Optional[List[Any]] = None
    ):
        details = {
            "config_key": config_key,
            "invalid_value": invalid_value,
            "valid_values": valid_values
        }

        suggestion = None
        if config_key and valid_values:
            suggestion = f"Valid values for {config_key}: {', '.join(map(str, valid_values))}"
        elif config_key:
            suggestion = f"Check configuration for '{config_key}'"

        super().__init__(message, details, recoverable=False, suggestion=suggestion)
        self.config_key = config_key
        self.invalid_value = invalid_value
        self.valid_values = valid_values
