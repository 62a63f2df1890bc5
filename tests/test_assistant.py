from __future__ import annotations

from typing import Callable
from unittest.mock import patch

import pytest

from stratoview.assistant import AssistantChannel, reply_text_for, schedule_later


class _RecordingScheduler:
    def __init__(self) -> None:
        self.calls: list[tuple[float, Callable[[], None]]] = []

    def __call__(self, delay_s: float, callback: Callable[[], None]) -> None:
        self.calls.append((delay_s, callback))

    def fire_all(self) -> None:
        pending, self.calls = self.calls, []
        for _delay, callback in pending:
            callback()


class _FakeThreadTimer:
    created: list["_FakeThreadTimer"] = []

    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        _FakeThreadTimer.created.append(self)

    def start(self) -> None:
        self.started = True


def test_channel_starts_with_welcome_message() -> None:
    channel = AssistantChannel(scheduler=_RecordingScheduler())
    (welcome,) = channel.messages
    assert welcome.sender == "system"
    assert welcome.text.startswith("Welcome to Stratum")


def test_send_appends_user_message_and_schedules_one_reply() -> None:
    scheduler = _RecordingScheduler()
    channel = AssistantChannel(reply_delay_ms=250, scheduler=scheduler)

    sent = channel.send("flood risk?")
    assert sent is not None and sent.sender == "user"
    assert [m.sender for m in channel.messages] == ["system", "user"]
    assert [delay for delay, _ in scheduler.calls] == [0.25]

    scheduler.fire_all()
    reply = channel.messages[-1]
    assert reply.sender == "system"
    assert reply.text == reply_text_for("flood risk?")
    assert '"flood risk?"' in reply.text


def test_blank_messages_are_ignored() -> None:
    scheduler = _RecordingScheduler()
    channel = AssistantChannel(scheduler=scheduler)
    assert channel.send("   ") is None
    assert len(channel.messages) == 1
    assert scheduler.calls == []


def test_close_detaches_listeners_but_reply_still_lands() -> None:
    scheduler = _RecordingScheduler()
    channel = AssistantChannel(scheduler=scheduler)
    seen: list[str] = []
    channel.on_message(lambda m: seen.append(m.sender))

    channel.send("hello")
    channel.close()
    scheduler.fire_all()

    assert seen == ["user"]
    assert channel.messages[-1].sender == "system"


def test_negative_delay_is_rejected() -> None:
    with pytest.raises(ValueError):
        AssistantChannel(reply_delay_ms=-1)


def test_schedule_later_uses_daemon_timer_without_event_loop() -> None:
    _FakeThreadTimer.created.clear()
    fired: list[bool] = []
    with patch("stratoview.assistant.threading.Timer", _FakeThreadTimer):
        schedule_later(1.0, lambda: fired.append(True))

    (timer,) = _FakeThreadTimer.created
    assert timer.delay == 1.0 and timer.daemon and timer.started
    timer.callback()
    assert fired == [True]
