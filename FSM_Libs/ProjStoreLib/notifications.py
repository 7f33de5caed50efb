"""
Notification, prompt and download seams used by the project session.

The persistence code never talks to widgets directly. It receives small
objects implementing the protocols below; the Qt window supplies Qt-backed
ones and tests supply recording fakes.

Classes:
    Notification: A user-facing message
    NotifySink: Shows notifications (fire-and-forget)
    ConfirmPrompt: Asks the user a yes/no question
    DownloadSink: Receives the bytes of a saved project
    LoggingNotifySink: NotifySink that writes to the log
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from FSM_Libs.constants import (
    NOTIFY_DEFAULT_MS,
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_SUCCESS,
    SEVERITY_WARNING,
)

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    SEVERITY_INFO: logging.INFO,
    SEVERITY_SUCCESS: logging.INFO,
    SEVERITY_WARNING: logging.WARNING,
    SEVERITY_ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Notification:
    """A message for the user.

    Attributes:
        title: Short heading ("Project Saved", "Load Error", ...)
        message: Body text
        severity: One of info, success, warning, error
        auto_close_ms: Display time hint, None keeps it open
    """
    title: str
    message: str
    severity: str = SEVERITY_INFO
    auto_close_ms: Optional[int] = NOTIFY_DEFAULT_MS


class NotifySink(Protocol):
    def show(self, notification: Notification) -> None:
        ...


class ConfirmPrompt(Protocol):
    def confirm(self, message: str) -> bool:
        ...


class DownloadSink(Protocol):
    def emit(self, data: bytes, filename: str) -> None:
        ...


class LoggingNotifySink:
    """Writes notifications to the log instead of showing them."""

    def show(self, notification: Notification) -> None:
        level = _LOG_LEVELS.get(notification.severity, logging.INFO)
        logger.log(level, "%s: %s", notification.title, notification.message)
