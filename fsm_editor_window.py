import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from FSM_Libs.constants import (
    APP_NAME,
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_WIDTH,
    FILE_TYPE_CLIENT,
    FILE_TYPE_SERVER,
    LOAD_FILE_FILTER,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    UNSAVED_EXIT_PROMPT,
)
from FSM_Libs.ProjStoreLib.errors import ProjectSaveError
from FSM_Libs.ProjStoreLib.graph_models import AppFile
from FSM_Libs.ProjStoreLib.notifications import Notification
from FSM_Libs.ProjStoreLib.project_session import ProjectSession
from FSM_Libs.ProjStoreLib.project_writer import write_bytes_atomic

logger = logging.getLogger(__name__)


class QtNotifySink:
    """Warnings and errors open a message box; everything else goes to the status bar."""

    def __init__(self, window: QMainWindow) -> None:
        self.window = window

    def show(self, notification: Notification) -> None:
        text = f"{notification.title}: {notification.message}"
        if notification.severity == SEVERITY_ERROR:
            QMessageBox.warning(self.window, notification.title, notification.message)
        elif notification.severity == SEVERITY_WARNING:
            QMessageBox.information(self.window, notification.title, notification.message)
        else:
            self.window.statusBar().showMessage(text, notification.auto_close_ms or 0)


class QtConfirmPrompt:
    def __init__(self, window: QMainWindow) -> None:
        self.window = window

    def confirm(self, message: str) -> bool:
        answer = QMessageBox.question(
            self.window,
            "Unsaved Changes",
            message,
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        return answer == QMessageBox.Yes


class QtSaveDialogSink:
    """Asks where to put the project, then writes it atomically."""

    PROJECT_FILTER = "0xFSM Projects (*.fsm.json)"

    def __init__(self, window: QMainWindow, start_dir: Optional[Path] = None) -> None:
        self.window = window
        self.start_dir = Path(start_dir) if start_dir is not None else Path.cwd()

    def emit(self, data: bytes, filename: str) -> None:
        save_path, _ = QFileDialog.getSaveFileName(
            self.window,
            "Save Project",
            str(self.start_dir / filename),
            self.PROJECT_FILTER,
        )
        if not save_path:
            raise ProjectSaveError("Save cancelled.")

        target = Path(save_path)
        write_bytes_atomic(target, data)
        self.start_dir = target.parent


class FsmEditorWindow(QMainWindow):
    def __init__(self, session: Optional[ProjectSession] = None) -> None:
        super().__init__()
        self.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

        self.notify_sink = QtNotifySink(self)
        self.prompt = QtConfirmPrompt(self)
        self.download_sink = QtSaveDialogSink(self)
        self.session = session or ProjectSession(self.notify_sink, self.prompt, self.download_sink)

        self._build_ui()
        self._connect_signals()
        self.session.dirty_state.subscribe(self._on_dirty_changed)
        self._refresh()

    def _build_ui(self) -> None:
        central = QWidget(self)
        self.setCentralWidget(central)
        root = QHBoxLayout(central)

        files_col = QVBoxLayout()
        nodes_col = QVBoxLayout()

        self.btn_add_client = QPushButton("New Client File")
        self.btn_add_server = QPushButton("New Server File")
        self.btn_delete_file = QPushButton("Delete File")
        self.btn_add_node = QPushButton("Add Node")
        self.btn_save = QPushButton("Save Project")
        self.btn_load = QPushButton("Load Project")

        self.files_list = QListWidget()
        self.nodes_list = QListWidget()
        self.label_graph = QLabel("No graph selected")
        self.label_graph.setAlignment(Qt.AlignLeft | Qt.AlignVCenter)

        files_col.addWidget(QLabel("Script Files"))
        files_col.addWidget(self.files_list)
        files_col.addWidget(self.btn_add_client)
        files_col.addWidget(self.btn_add_server)
        files_col.addWidget(self.btn_delete_file)
        files_col.addWidget(self.btn_save)
        files_col.addWidget(self.btn_load)

        nodes_col.addWidget(self.label_graph)
        nodes_col.addWidget(self.nodes_list)
        nodes_col.addWidget(self.btn_add_node)

        root.addLayout(files_col, stretch=1)
        root.addLayout(nodes_col, stretch=2)

    def _connect_signals(self) -> None:
        self.btn_add_client.clicked.connect(lambda: self.prompt_add_file(FILE_TYPE_CLIENT))
        self.btn_add_server.clicked.connect(lambda: self.prompt_add_file(FILE_TYPE_SERVER))
        self.btn_delete_file.clicked.connect(self.delete_selected_file)
        self.btn_add_node.clicked.connect(self.prompt_add_node)
        self.btn_save.clicked.connect(self.save_project)
        self.btn_load.clicked.connect(self.load_project)
        self.files_list.currentItemChanged.connect(self.on_file_selected)

    def prompt_add_file(self, file_type: str) -> None:
        name, accepted = QInputDialog.getText(self, "New File", f"Name of the new {file_type} file:")
        name = name.strip()
        if not accepted or not name:
            return
        self.session.add_file(AppFile(name=name, type=file_type))
        self._refresh()

    def delete_selected_file(self) -> None:
        app_file = self._current_file()
        if app_file is None:
            return

        answer = QMessageBox.question(
            self,
            "Delete File",
            f'Delete "{app_file.display_name}" ({app_file.type})? This cannot be undone.',
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if answer != QMessageBox.Yes:
            return

        if self.session.delete_file(app_file):
            self.statusBar().showMessage(f"Deleted {app_file.key}", 2500)
        self._refresh()

    def prompt_add_node(self) -> None:
        key = self.session.selected_graph_key
        if key is None:
            QMessageBox.information(self, "No Graph", "Select a file first.")
            return

        label, accepted = QInputDialog.getText(self, "Add Node", "Node label:")
        if not accepted:
            return
        node_id = f"node-{uuid.uuid4().hex[:8]}"
        self.session.graph_store.add_node(key, {"id": node_id, "label": label.strip() or node_id})
        self._refresh_nodes()

    def save_project(self) -> None:
        self.session.save_project()

    def load_project(self) -> None:
        if not self.session.request_load():
            return

        file_path, _ = QFileDialog.getOpenFileName(self, "Load Project", "", LOAD_FILE_FILTER)
        if not file_path:
            return

        self.session.load_project(Path(file_path), confirmed=True)
        self._refresh()

    def on_file_selected(self, current: Optional[QListWidgetItem], _previous=None) -> None:
        if current is None:
            self.session.select_graph(None)
        else:
            self.session.select_graph(current.data(Qt.UserRole))
        self._refresh_nodes()

    def closeEvent(self, event) -> None:
        if self.session.should_block_exit() and not self.prompt.confirm(UNSAVED_EXIT_PROMPT):
            event.ignore()
            return
        super().closeEvent(event)

    def _current_file(self) -> Optional[AppFile]:
        key = self.session.selected_graph_key
        for app_file in self.session.files:
            if app_file.key == key:
                return app_file
        return None

    def _refresh(self) -> None:
        selected = self.session.selected_graph_key
        self.files_list.blockSignals(True)
        self.files_list.clear()
        for app_file in self.session.files:
            item = QListWidgetItem(f"[{app_file.type}] {app_file.display_name}")
            item.setData(Qt.UserRole, app_file.key)
            self.files_list.addItem(item)
            if app_file.key == selected:
                self.files_list.setCurrentItem(item)
        self.files_list.blockSignals(False)
        self._refresh_nodes()
        self._on_dirty_changed(self.session.is_dirty)

    def _refresh_nodes(self) -> None:
        self.nodes_list.clear()
        key = self.session.selected_graph_key
        graph = self.session.graph_store.get_graph(key) if key else None
        if graph is None:
            self.label_graph.setText("No graph selected")
            return

        self.label_graph.setText(f"{key} ({len(graph.nodes)} nodes)")
        for node in graph.nodes:
            self.nodes_list.addItem(f"{node.get('id')}: {node.get('label', '')}")

    def _on_dirty_changed(self, dirty: bool) -> None:
        self.setWindowTitle(f"{APP_NAME}{' *' if dirty else ''}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    window = FsmEditorWindow()
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
