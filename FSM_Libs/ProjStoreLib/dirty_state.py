"""
Unsaved-changes tracking.

A single ``DirtyState`` instance is shared by the graph store (which marks it
on every mutation) and the project session (which reads it before loading a
project or closing the editor). Only a successful save and a successful load
clear it.
"""

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

DirtyListener = Callable[[bool], None]


class DirtyState:
    """Boolean "unsaved changes" flag with change listeners."""

    def __init__(self, dirty: bool = False) -> None:
        self._dirty = bool(dirty)
        self._listeners: List[DirtyListener] = []

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark(self) -> None:
        self._set(True)

    def clear(self) -> None:
        self._set(False)

    def subscribe(self, listener: DirtyListener) -> None:
        """Call ``listener(is_dirty)`` whenever the flag flips."""
        if not callable(listener):
            raise ValueError(f"listener must be callable, got {type(listener)}")
        self._listeners.append(listener)

    def unsubscribe(self, listener: DirtyListener) -> bool:
        if listener in self._listeners:
            self._listeners.remove(listener)
            return True
        return False

    def _set(self, dirty: bool) -> None:
        if self._dirty == dirty:
            return
        self._dirty = dirty
        logger.debug(f"Dirty state changed: {dirty}")
        for listener in list(self._listeners):
            listener(dirty)

    def __bool__(self) -> bool:
        return self._dirty

    def __repr__(self) -> str:
        return f"DirtyState(dirty={self._dirty})"
