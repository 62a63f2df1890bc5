"""Simulated assistant conversation for the workspace sidebar.

There is no inference here: every user message gets one canned echo reply
after a fixed delay. Replies are never cancelled. Closing the channel only
stops listener notifications; a reply already queued still lands in
``messages``.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Literal, Optional

from .workspace_defaults import ASSISTANT_REPLY_DELAY_MS

Sender = Literal["user", "system"]
Scheduler = Callable[[float, Callable[[], None]], Any]

WELCOME_TEXT = (
    "Welcome to Stratum. I'm your AI assistant and can help you analyze the data "
    "within your strata. What would you like to know?"
)


@dataclass(frozen=True)
class AssistantMessage:
    id: str
    text: str
    sender: Sender
    timestamp: datetime = field(default_factory=datetime.now)


def reply_text_for(prompt: str) -> str:
    return (
        f'This is a simulated response to "{prompt}". In a real application, this would '
        "connect to an LLM API to provide insights about your data."
    )


def schedule_later(delay_s: float, callback: Callable[[], None]) -> Any:
    """Run ``callback`` once after ``delay_s`` seconds.

    Uses the running asyncio loop when called from inside one (as in a Jupyter
    kernel), otherwise a daemon ``threading.Timer``.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay_s, callback)


class AssistantChannel:
    """Message list plus delayed echo replies.

    Parameters
    ----------
    reply_delay_ms : int, optional
        Delay before the echo reply is appended.
    scheduler : callable, optional
        ``scheduler(delay_s, callback)``; defaults to :func:`schedule_later`.
        Tests pass a recorder and fire callbacks by hand.
    """

    def __init__(
        self,
        *,
        reply_delay_ms: int = ASSISTANT_REPLY_DELAY_MS,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        if reply_delay_ms < 0:
            raise ValueError("reply_delay_ms must be >= 0")
        self._delay_s = reply_delay_ms / 1000.0
        self._schedule = scheduler or schedule_later
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._messages: list[AssistantMessage] = [
            AssistantMessage(id="welcome", text=WELCOME_TEXT, sender="system")
        ]
        self._listeners: list[Callable[[AssistantMessage], Any]] = []

    @property
    def messages(self) -> tuple[AssistantMessage, ...]:
        with self._lock:
            return tuple(self._messages)

    def on_message(self, callback: Callable[[AssistantMessage], Any]) -> None:
        """Call ``callback(message)`` after every appended message."""
        self._listeners.append(callback)

    def close(self) -> None:
        """Detach listeners. Pending replies still append to ``messages``."""
        self._listeners.clear()

    def send(self, text: str) -> Optional[AssistantMessage]:
        """Append a user message and queue its reply. Blank input is ignored."""
        if not text.strip():
            return None
        message = self._append(text, "user")
        self._schedule(self._delay_s, lambda: self._append(reply_text_for(text), "system"))
        return message

    def _append(self, text: str, sender: Sender) -> AssistantMessage:
        with self._lock:
            message = AssistantMessage(id=f"{sender}-{next(self._seq)}", text=text, sender=sender)
            self._messages.append(message)
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception as exc:  # pragma: no cover - listener boundary
                warnings.warn(f"Assistant listener failed: {exc}")
        return message
