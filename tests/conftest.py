"""
Pytest configuration and shared fixtures for 0xFSM tests.

This module provides recording stand-ins for the notification, prompt and
download seams, a deterministic clock, and a ready-made project session.
"""

from datetime import datetime, timedelta, timezone

import pytest

from FSM_Libs.ProjStoreLib.project_session import ProjectSession


class RecordingNotifySink:
    """Keeps every notification it is shown."""

    def __init__(self):
        self.notifications = []

    def show(self, notification):
        self.notifications.append(notification)

    @property
    def titles(self):
        return [notification.title for notification in self.notifications]


class ScriptedPrompt:
    """Answers every confirmation with ``answer`` and records the questions."""

    def __init__(self, answer=True):
        self.answer = answer
        self.messages = []

    def confirm(self, message):
        self.messages.append(message)
        return self.answer


class MemoryDownloadSink:
    """Collects emitted project bytes; raises when ``fail`` is set."""

    def __init__(self):
        self.emitted = []
        self.fail = False

    def emit(self, data, filename):
        if self.fail:
            raise OSError("disk full")
        self.emitted.append((data, filename))


class SteppingClock:
    """Returns a fixed start time, then advances one second per call."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.current = start or datetime(2026, 10, 19, 8, 30, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        moment = self.current
        self.current = self.current + self.step
        return moment


@pytest.fixture
def notify_sink():
    return RecordingNotifySink()


@pytest.fixture
def prompt():
    return ScriptedPrompt(answer=True)


@pytest.fixture
def download_sink():
    return MemoryDownloadSink()


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def session(notify_sink, prompt, download_sink, clock):
    """A project session wired to the recording fakes."""
    return ProjectSession(notify_sink, prompt, download_sink, clock=clock)
