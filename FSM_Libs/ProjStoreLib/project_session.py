"""
Editing session for an open 0xFSM project.

``ProjectSession`` owns the list of script files, the selected graph and the
shared dirty flag, and wires the graph store, project writer and project
reader together behind the actions the editor exposes (add/delete file,
save, load, exit check).
"""

import logging
from pathlib import Path
from typing import List, Optional

from FSM_Libs.constants import (
    NOTIFY_DEFAULT_MS,
    NOTIFY_LONG_MS,
    NOTIFY_SHORT_MS,
    SCRIPT_EXTENSION,
    SEVERITY_ERROR,
    SEVERITY_SUCCESS,
    SEVERITY_WARNING,
)
from FSM_Libs.ProjStoreLib.dirty_state import DirtyState
from FSM_Libs.ProjStoreLib.graph_models import AppFile
from FSM_Libs.ProjStoreLib.graph_store import GraphStore
from FSM_Libs.ProjStoreLib.notifications import (
    ConfirmPrompt,
    DownloadSink,
    Notification,
    NotifySink,
)
from FSM_Libs.ProjStoreLib.project_reader import LoadPhase, LoadResult, ProjectReader
from FSM_Libs.ProjStoreLib.project_writer import Clock, ProjectWriter, SaveResult

logger = logging.getLogger(__name__)


class ProjectSession:
    """
    Files, selection and persistence actions of the open project.

    Example:
        >>> session = ProjectSession(notify_sink, prompt, download_sink)
        >>> session.add_file(AppFile("main", "client"))
        True
        >>> session.is_dirty
        True
        >>> session.save_project().success
        True
    """

    def __init__(
        self,
        notify_sink: NotifySink,
        prompt: ConfirmPrompt,
        download_sink: DownloadSink,
        dirty_state: Optional[DirtyState] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.dirty_state = dirty_state if dirty_state is not None else DirtyState()
        self.graph_store = GraphStore(self.dirty_state)
        self.writer = ProjectWriter(self.dirty_state, download_sink, notify_sink, clock=clock)
        self._notify = notify_sink
        self._files: List[AppFile] = []
        self._selected_graph_key: Optional[str] = None

        self.reader = ProjectReader(self.graph_store, prompt, notify_sink, on_commit=self._adopt_files)

    @property
    def files(self) -> List[AppFile]:
        return list(self._files)

    @property
    def selected_graph_key(self) -> Optional[str]:
        return self._selected_graph_key

    @property
    def is_dirty(self) -> bool:
        return self.dirty_state.is_dirty

    def select_graph(self, key: Optional[str]) -> None:
        self._selected_graph_key = key

    def find_file(self, app_file: AppFile) -> Optional[AppFile]:
        """Return the listed file matching ``app_file`` case-insensitively."""
        for existing in self._files:
            if existing.same_file(app_file):
                return existing
        return None

    def add_file(self, app_file: AppFile) -> bool:
        """
        Create a script file and its empty graph.

        Returns:
            True if the file was created
        """
        if self.find_file(app_file) is not None:
            self._notify.show(
                Notification(
                    "File Exists",
                    f'File "{app_file.display_name}" ({app_file.type}) already exists.',
                    SEVERITY_WARNING,
                    NOTIFY_DEFAULT_MS,
                )
            )
            return False

        if not self.graph_store.add_graph(app_file.key, app_file.type):
            self._notify.show(
                Notification(
                    "Error",
                    f'Could not create file "{app_file.display_name}". It might already exist in the graph data.',
                    SEVERITY_ERROR,
                    NOTIFY_DEFAULT_MS,
                )
            )
            return False

        self._files = self._files + [app_file]
        self._selected_graph_key = app_file.key
        self._notify.show(
            Notification(
                "File Created",
                f"Created {app_file.key}{SCRIPT_EXTENSION}",
                SEVERITY_SUCCESS,
                NOTIFY_SHORT_MS,
            )
        )
        return True

    def delete_file(self, app_file: AppFile) -> bool:
        """
        Delete a script file and its graph.

        Returns:
            True if the file was deleted
        """
        key = app_file.key
        try:
            self.graph_store.delete_graph(key)
        except KeyError as error:
            logger.error(f"Error during delete_file for key {key}: {error}")
            self._notify.show(
                Notification(
                    "Deletion Error",
                    f'An error occurred while deleting "{app_file.display_name}".',
                    SEVERITY_ERROR,
                    NOTIFY_LONG_MS,
                )
            )
            return False

        self._files = [
            existing
            for existing in self._files
            if not (existing.name == app_file.name and existing.type == app_file.type)
        ]
        if self._selected_graph_key == key:
            self._selected_graph_key = None
        return True

    def save_project(self) -> SaveResult:
        return self.writer.save(self._files, self.graph_store.graphs)

    def request_load(self) -> bool:
        """Unsaved-changes gate run before a file is chosen."""
        return self.reader.request_load()

    def load_project(self, project_path: Path, confirmed: bool = False) -> LoadResult:
        """
        Load a project file, replacing every file and graph.

        Args:
            project_path: File to load
            confirmed: True if ``request_load`` already ran for this load
        """
        if confirmed:
            return self.reader.load_path(project_path)
        return self.reader.load(project_path)

    def load_project_text(self, text: str, source_name: str = "project") -> LoadResult:
        """Load project content that was already read (e.g. pasted or received)."""
        if not self.reader.request_load():
            return LoadResult(success=False, phase=LoadPhase.ABORTED)
        return self.reader.load_text(text, source_name)

    def should_block_exit(self) -> bool:
        """True while closing the editor would discard unsaved changes."""
        return self.dirty_state.is_dirty

    def _adopt_files(self, loaded_files: List[AppFile]) -> None:
        self._files = list(loaded_files)
        self._selected_graph_key = None
