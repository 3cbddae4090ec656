"""Transient user feedback with time-based expiry.

Admin actions report a short success/error message that disappears after a
fixed display window. The board keeps only the latest message and treats it
as cleared once its window has passed.
"""

from __future__ import annotations

import time

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

FeedbackKind = Literal["success", "error"]


@dataclass(frozen=True, slots=True)
class TransientMessage:
    """One feedback message and the monotonic time it stops being visible."""

    kind: FeedbackKind
    text: str
    expires_at: float

    def is_visible(self, now: float) -> bool:
        return now < self.expires_at


class FeedbackBoard:
    """Holds the most recent feedback message for a view.

    Not locked: single-threaded cooperative use only.
    """

    def __init__(self, display_seconds: float = 3.0, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize board.

        Args:
            display_seconds: How long a message stays visible
            clock: Monotonic time source (injectable for tests)
        """
        self._display_seconds = display_seconds
        self._clock = clock
        self._message: TransientMessage | None = None

    def show(self, kind: FeedbackKind, text: str) -> TransientMessage:
        """Publish a message, replacing any previous one."""
        self._message = TransientMessage(kind=kind, text=text, expires_at=self._clock() + self._display_seconds)
        return self._message

    def success(self, text: str) -> TransientMessage:
        return self.show("success", text)

    def error(self, text: str) -> TransientMessage:
        return self.show("error", text)

    def current(self) -> TransientMessage | None:
        """Return the visible message, or None once it has expired."""
        if self._message is not None and not self._message.is_visible(self._clock()):
            self._message = None
        return self._message

    def clear(self) -> None:
        self._message = None
