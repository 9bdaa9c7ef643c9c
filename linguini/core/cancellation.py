"""Cooperative cancellation shared by every phase of one pipeline run."""

from typing import Optional

from linguini.core.exceptions import AnnotationCancelled


class CancelToken:
    """
    Observable cancellation flag.

    Setting the flag never interrupts calls that are already in flight; it
    only stops new work from starting the next time the flag is checked.
    """

    def __init__(self):
        self._cancelled = False
        self._reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        self._cancelled = True
        self._reason = reason

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def raise_if_cancelled(self, phase: Optional[str] = None, chunks_emitted: int = 0) -> None:
        """Raise AnnotationCancelled when the flag is set."""
        if self._cancelled:
            raise AnnotationCancelled(phase=phase, chunks_emitted=chunks_emitted)


def check_cancelled(token: Optional[CancelToken], phase: Optional[str] = None,
                    chunks_emitted: int = 0) -> None:
    """Raise AnnotationCancelled if an optional token is set."""
    if token is not None:
        token.raise_if_cancelled(phase=phase, chunks_emitted=chunks_emitted)
