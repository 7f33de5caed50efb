"""
Project file reading and validation for 0xFSM.

Loading runs through a small state machine::

    IDLE -> CONFIRMING -> ABORTED
                       -> READING -> PARSING -> VALIDATING -> COMMITTED
                                                          -> REJECTED

``ABORTED``, ``REJECTED`` and ``COMMITTED`` all settle back to ``IDLE``.
Nothing in the live graph store changes unless the load reaches
``COMMITTED``.

Classes:
    LoadPhase: States of a load
    LoadResult: Outcome of a load
    ProjectReader: Runs loads against a GraphStore

Functions:
    read_project_text: Read a project file from disk
    parse_project_text: Decode project JSON
    validate_project_data: Check the top-level document shape
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from FSM_Libs.constants import (
    FIELD_FILES,
    FIELD_GRAPHS,
    FIELD_PROJECT_METADATA,
    NOTIFY_DEFAULT_MS,
    NOTIFY_LONG_MS,
    PROJECT_ENCODING,
    SEVERITY_ERROR,
    SEVERITY_SUCCESS,
    UNSAVED_LOAD_PROMPT,
)
from FSM_Libs.ProjStoreLib.errors import (
    ProjectError,
    ProjectParseError,
    ProjectReadError,
    ProjectValidationError,
)
from FSM_Libs.ProjStoreLib.graph_models import AppFile
from FSM_Libs.ProjStoreLib.graph_store import GraphStore
from FSM_Libs.ProjStoreLib.notifications import ConfirmPrompt, Notification, NotifySink

logger = logging.getLogger(__name__)


class LoadPhase(Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    ABORTED = "aborted"
    READING = "reading"
    PARSING = "parsing"
    VALIDATING = "validating"
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass
class LoadResult:
    """Outcome of a load attempt.

    Attributes:
        success: True only when the project was committed
        phase: Final phase (COMMITTED, ABORTED or REJECTED)
        message: Reason for a rejection
        error: The exception behind a rejection, if any
        loaded_files: Files of the committed project
    """
    success: bool
    phase: LoadPhase
    message: Optional[str] = None
    error: Optional[ProjectError] = None
    loaded_files: List[AppFile] = field(default_factory=list)


def read_project_text(project_path: Path) -> str:
    """
    Read a project file as UTF-8 text.

    Raises:
        ProjectReadError: If the file cannot be opened or decoded
    """
    try:
        return Path(project_path).read_text(encoding=PROJECT_ENCODING)
    except (OSError, UnicodeDecodeError) as error:
        raise ProjectReadError(f"Could not read '{project_path}': {error}") from error


def parse_project_text(text: str) -> Any:
    """
    Decode project JSON text.

    Raises:
        ProjectParseError: If the text is not well-formed JSON
    """
    if not isinstance(text, str):
        raise ProjectParseError(f"Project text must be a string, got {type(text).__name__}")
    try:
        return json.loads(text)
    except json.JSONDecodeError as error:
        raise ProjectParseError(
            f"File is not valid JSON: {error.msg} (line {error.lineno}, column {error.colno})"
        ) from error
    except RecursionError as error:
        raise ProjectParseError("File is not valid JSON: nesting is too deep") from error
    except ValueError as error:
        raise ProjectParseError(f"File is not valid JSON: {error}") from error


def validate_project_data(project_data: Any) -> Dict[str, Any]:
    """
    Check the structure of a decoded project document.

    Only the top level is checked here; file entries and graph contents are
    decoded by ``GraphStore.replace_all``.

    Returns:
        The document, unchanged

    Raises:
        ProjectValidationError: Naming the first violated section
    """
    if not isinstance(project_data, dict):
        raise ProjectValidationError(
            f"Invalid project file structure: expected a JSON object, got {_json_type(project_data)}."
        )

    metadata = project_data.get(FIELD_PROJECT_METADATA)
    if not isinstance(metadata, dict):
        raise ProjectValidationError(
            f"Invalid project file structure: '{FIELD_PROJECT_METADATA}' is missing or not an object."
        )

    if not isinstance(project_data.get(FIELD_FILES), list):
        raise ProjectValidationError(
            f"Invalid project file structure: '{FIELD_FILES}' must be a list, "
            f"got {_json_type(project_data.get(FIELD_FILES))}."
        )

    if not isinstance(project_data.get(FIELD_GRAPHS), dict):
        raise ProjectValidationError(
            f"Invalid project file structure: '{FIELD_GRAPHS}' must be an object, "
            f"got {_json_type(project_data.get(FIELD_GRAPHS))}."
        )

    return project_data


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class ProjectReader:
    """
    Loads project files into a GraphStore.

    The reader never edits the store itself; it hands a fully validated
    document to ``GraphStore.replace_all`` which swaps the graphs in one
    step. ``on_commit`` receives the loaded files before the dirty flag is
    cleared, so dirty-state listeners see files and graphs from the same
    project.
    """

    def __init__(
        self,
        graph_store: GraphStore,
        prompt: ConfirmPrompt,
        notify_sink: NotifySink,
        on_commit: Optional[Callable[[List[AppFile]], None]] = None,
    ) -> None:
        self._store = graph_store
        self._on_commit = on_commit
        self._prompt = prompt
        self._notify = notify_sink
        self._phase = LoadPhase.IDLE

    @property
    def phase(self) -> LoadPhase:
        return self._phase

    def request_load(self) -> bool:
        """
        Ask before discarding unsaved changes.

        Returns:
            True if loading may proceed, False if the user aborted
        """
        self._enter(LoadPhase.CONFIRMING)
        if self._store.is_dirty and not self._prompt.confirm(UNSAVED_LOAD_PROMPT):
            self._enter(LoadPhase.ABORTED)
            logger.info("Project load aborted by user")
            self._enter(LoadPhase.IDLE)
            return False
        return True

    def load(self, project_path: Path) -> LoadResult:
        """Confirm, then read, parse, validate and commit ``project_path``."""
        if not self.request_load():
            return LoadResult(success=False, phase=LoadPhase.ABORTED)
        return self.load_path(project_path)

    def load_path(self, project_path: Path) -> LoadResult:
        """Read and commit ``project_path`` without asking first."""
        self._enter(LoadPhase.READING)
        try:
            text = read_project_text(project_path)
        except ProjectReadError as error:
            logger.error(f"Project read failed: {error}")
            self._notify.show(
                Notification("File Read Error", "Could not read the selected file.", SEVERITY_ERROR, NOTIFY_LONG_MS)
            )
            return self._reject(str(error), error)

        return self.load_text(text, Path(project_path).name)

    def load_text(self, text: str, source_name: str = "project") -> LoadResult:
        """Parse, validate and commit already read project text."""
        try:
            self._enter(LoadPhase.PARSING)
            project_data = parse_project_text(text)
            self._enter(LoadPhase.VALIDATING)
            validate_project_data(project_data)
        except (ProjectParseError, ProjectValidationError) as error:
            logger.error(f"Error loading or parsing project file: {error}")
            self._notify.show(
                Notification("Load Error", f"Failed to load project: {error}", SEVERITY_ERROR, NOTIFY_LONG_MS)
            )
            return self._reject(str(error), error)

        outcome = self._store.replace_all(project_data, clear_dirty=False)
        if not outcome.success:
            message = outcome.message or "Failed to load project graphs."
            logger.error(f"Failed to load graphs from project file: {message}")
            self._notify.show(Notification("Load Error", message, SEVERITY_ERROR, NOTIFY_LONG_MS))
            return self._reject(message, ProjectValidationError(message))

        if self._on_commit is not None:
            self._on_commit(list(outcome.loaded_files))
        self._store.clear_dirty()
        self._enter(LoadPhase.COMMITTED)
        self._notify.show(
            Notification(
                "Project Loaded",
                f'Successfully loaded project "{source_name}".',
                SEVERITY_SUCCESS,
                NOTIFY_DEFAULT_MS,
            )
        )
        self._enter(LoadPhase.IDLE)
        return LoadResult(success=True, phase=LoadPhase.COMMITTED, loaded_files=outcome.loaded_files)

    def _reject(self, message: str, error: ProjectError) -> LoadResult:
        self._enter(LoadPhase.REJECTED)
        self._enter(LoadPhase.IDLE)
        return LoadResult(success=False, phase=LoadPhase.REJECTED, message=message, error=error)

    def _enter(self, phase: LoadPhase) -> None:
        logger.debug(f"Load phase: {self._phase.value} -> {phase.value}")
        self._phase = phase
