"""
Project file writing for 0xFSM.

A saved project is a single UTF-8 JSON document::

    {
      "projectMetadata": {"savedAt": ..., "appName": "0xFSM", "appVersion": "1.0.0"},
      "files": [{"name": "main", "type": "client"}, ...],
      "graphs": {"client/main": {"nodes": [...], "parameters": ...}, ...}
    }

Classes:
    SaveResult: Outcome of ProjectWriter.save
    ProjectWriter: Encodes the live project and hands it to a download sink
    DirectoryFileSink: Download sink writing into a directory

Functions:
    format_saved_at: Sortable ISO-8601 timestamp for ``savedAt``
    project_filename: File name of a project saved at a given moment
    build_project_save_data: Assemble the full document
    serialize_project: Canonical JSON text of a document
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from FSM_Libs.constants import (
    APP_NAME,
    APP_SLUG,
    APP_VERSION,
    FIELD_APP_NAME,
    FIELD_APP_VERSION,
    FIELD_FILES,
    FIELD_GRAPHS,
    FIELD_PROJECT_METADATA,
    FIELD_SAVED_AT,
    FILENAME_REPLACEMENT_CHAR,
    NOTIFY_LONG_MS,
    NOTIFY_SAVED_MS,
    PROJECT_ENCODING,
    PROJECT_FILE_TEMPLATE,
    PROJECT_JSON_INDENT,
    SEVERITY_ERROR,
    SEVERITY_INFO,
    UNSAFE_FILENAME_CHARS,
)
from FSM_Libs.ProjStoreLib.dirty_state import DirtyState
from FSM_Libs.ProjStoreLib.errors import ProjectSaveError, SerializationWarning
from FSM_Libs.ProjStoreLib.graph_encoder import encode_graphs
from FSM_Libs.ProjStoreLib.graph_models import AppFile, GraphData
from FSM_Libs.ProjStoreLib.notifications import DownloadSink, Notification, NotifySink

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_saved_at(moment: datetime) -> str:
    """Format ``moment`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc_moment = moment.astimezone(timezone.utc)
    return utc_moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def project_filename(saved_at: str) -> str:
    """
    Build the download name for a project saved at ``saved_at``.

    Example:
        >>> project_filename("2026-10-19T08:30:00.000Z")
        '0xfsm-project-2026-10-19T08-30-00-000Z.fsm.json'
    """
    timestamp = saved_at
    for char in UNSAFE_FILENAME_CHARS:
        timestamp = timestamp.replace(char, FILENAME_REPLACEMENT_CHAR)
    return PROJECT_FILE_TEMPLATE.format(slug=APP_SLUG, timestamp=timestamp)


def build_project_save_data(
    files: Sequence[AppFile],
    graphs: Mapping[str, Optional[GraphData]],
    saved_at: str,
    warnings: Optional[List[SerializationWarning]] = None,
) -> Dict[str, Any]:
    """Assemble the complete project document."""
    return {
        FIELD_PROJECT_METADATA: {
            FIELD_SAVED_AT: saved_at,
            FIELD_APP_NAME: APP_NAME,
            FIELD_APP_VERSION: APP_VERSION,
        },
        FIELD_FILES: [app_file.to_dict() for app_file in files],
        FIELD_GRAPHS: encode_graphs(graphs, warnings),
    }


def serialize_project(project_data: Mapping[str, Any]) -> str:
    """
    Serialize a project document to its on-disk text.

    Keys keep the order they were built in (``id`` first on nodes, schema
    order after it), indentation is fixed, and NaN/Infinity are refused.

    Raises:
        ProjectSaveError: If the document holds values JSON cannot express
    """
    try:
        return json.dumps(
            project_data,
            indent=PROJECT_JSON_INDENT,
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as error:
        raise ProjectSaveError(f"Project data is not serializable: {error}") from error


@dataclass
class SaveResult:
    success: bool
    filename: Optional[str] = None
    message: Optional[str] = None
    warnings: List[SerializationWarning] = field(default_factory=list)


class ProjectWriter:
    """
    Saves the open project through a download sink.

    The save is all-or-nothing: the sink only receives bytes once the whole
    document has been encoded and serialized. The dirty flag is cleared only
    after the sink accepted them.
    """

    def __init__(
        self,
        dirty_state: DirtyState,
        download_sink: DownloadSink,
        notify_sink: NotifySink,
        clock: Optional[Clock] = None,
    ) -> None:
        self._dirty = dirty_state
        self._download_sink = download_sink
        self._notify = notify_sink
        self._clock = clock or _utc_now

    def encode(
        self,
        files: Sequence[AppFile],
        graphs: Mapping[str, Optional[GraphData]],
        warnings: Optional[List[SerializationWarning]] = None,
    ) -> Dict[str, Any]:
        """Build the project document stamped with the current time."""
        return build_project_save_data(files, graphs, format_saved_at(self._clock()), warnings)

    def save(
        self,
        files: Optional[Sequence[AppFile]],
        graphs: Optional[Mapping[str, Optional[GraphData]]],
    ) -> SaveResult:
        if graphs is None or files is None:
            message = "Missing graph or file data."
            self._notify.show(Notification("Save Error", message, SEVERITY_ERROR, None))
            logger.error(f"Save aborted: {message}")
            return SaveResult(success=False, message=message)

        warnings: List[SerializationWarning] = []
        try:
            project_data = self.encode(files, graphs, warnings)
            payload = serialize_project(project_data).encode(PROJECT_ENCODING)
            filename = project_filename(project_data[FIELD_PROJECT_METADATA][FIELD_SAVED_AT])
            self._download_sink.emit(payload, filename)
        except Exception as error:
            message = f"Failed to save: {error}"
            logger.exception("Project save failed")
            self._notify.show(Notification("Save Error", message, SEVERITY_ERROR, NOTIFY_LONG_MS))
            return SaveResult(success=False, message=message, warnings=warnings)

        logger.info(f"Project saved as {filename} ({len(payload)} bytes)")
        self._notify.show(Notification("Project Saved", "Project saved successfully.", SEVERITY_INFO, NOTIFY_SAVED_MS))
        self._dirty.clear()
        return SaveResult(success=True, filename=filename, warnings=warnings)


class DirectoryFileSink:
    """
    Download sink that writes each project into ``directory``.

    Bytes go to a temporary file in the same directory first and are moved
    into place with ``os.replace``, so a failed write never leaves a
    truncated project behind.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.last_path: Optional[Path] = None

    def emit(self, data: bytes, filename: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / Path(filename).name
        write_bytes_atomic(target, data)
        self.last_path = target


def write_bytes_atomic(target: Path, data: bytes) -> None:
    """Write ``data`` to ``target`` via a temporary sibling file."""
    target = Path(target)
    handle, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
    try:
        with os.fdopen(handle, "wb") as stream:
            stream.write(data)
        os.replace(temp_name, target)
    except BaseException:
        if os.path.exists(temp_name):
            os.remove(temp_name)
        raise
