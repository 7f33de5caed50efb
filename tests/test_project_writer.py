"""
Unit tests for project_writer module.

Tests document assembly, canonical serialization, file naming and the
all-or-nothing save flow.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from FSM_Libs.constants import NOTIFY_SAVED_MS
from FSM_Libs.ProjStoreLib.dirty_state import DirtyState
from FSM_Libs.ProjStoreLib.errors import ProjectSaveError
from FSM_Libs.ProjStoreLib.graph_models import AppFile, GraphData
from FSM_Libs.ProjStoreLib.project_writer import (
    DirectoryFileSink,
    ProjectWriter,
    build_project_save_data,
    format_saved_at,
    project_filename,
    serialize_project,
)


@pytest.fixture
def dirty_state():
    state = DirtyState()
    state.mark()
    return state


@pytest.fixture
def writer(dirty_state, download_sink, notify_sink, clock):
    return ProjectWriter(dirty_state, download_sink, notify_sink, clock=clock)


def _main_project():
    files = [AppFile("main", "client")]
    graphs = {"client/main": GraphData(file_type="client", nodes=[{"id": "n1", "label": "Start"}])}
    return files, graphs


class TestTimestampsAndNames:
    def test_format_saved_at_uses_utc_with_milliseconds(self):
        moment = datetime(2026, 10, 19, 8, 30, 0, 123456, tzinfo=timezone.utc)

        assert format_saved_at(moment) == "2026-10-19T08:30:00.123Z"

    def test_format_saved_at_converts_offsets(self):
        moment = datetime(2026, 10, 19, 10, 30, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_saved_at(moment) == "2026-10-19T08:30:00.000Z"

    def test_project_filename_replaces_unsafe_characters(self):
        name = project_filename("2026-10-19T08:30:00.123Z")

        assert name == "0xfsm-project-2026-10-19T08-30-00-123Z.fsm.json"


class TestBuildProjectSaveData:
    def test_single_client_graph(self):
        files, graphs = _main_project()

        data = build_project_save_data(files, graphs, "2026-10-19T08:30:00.000Z")

        assert data["files"] == [{"name": "main", "type": "client"}]
        assert data["graphs"]["client/main"]["nodes"] == [{"id": "n1", "label": "Start"}]
        assert data["projectMetadata"] == {
            "savedAt": "2026-10-19T08:30:00.000Z",
            "appName": "0xFSM",
            "appVersion": "1.0.0",
        }

    def test_serialize_is_indented_and_ordered(self):
        files, graphs = _main_project()
        data = build_project_save_data(files, graphs, "2026-10-19T08:30:00.000Z")

        text = serialize_project(data)

        assert text.startswith('{\n  "projectMetadata": {\n    "savedAt": "2026-10-19T08:30:00.000Z"')
        assert list(json.loads(text)) == ["projectMetadata", "files", "graphs"]

    def test_serialize_keeps_non_ascii(self):
        text = serialize_project({"label": "Début"})

        assert "Début" in text

    def test_serialize_rejects_unserializable_values(self):
        with pytest.raises(ProjectSaveError):
            serialize_project({"value": object()})


class TestProjectWriterSave:
    def test_successful_save_emits_and_clears_dirty(self, writer, dirty_state, download_sink, notify_sink):
        files, graphs = _main_project()

        result = writer.save(files, graphs)

        assert result.success
        assert not dirty_state.is_dirty
        assert len(download_sink.emitted) == 1
        data, filename = download_sink.emitted[0]
        assert filename == "0xfsm-project-2026-10-19T08-30-00-000Z.fsm.json"
        assert json.loads(data.decode("utf-8"))["files"] == [{"name": "main", "type": "client"}]
        assert notify_sink.titles == ["Project Saved"]
        assert notify_sink.notifications[0].auto_close_ms == NOTIFY_SAVED_MS

    def test_dirty_flag_cleared_exactly_once(self, writer, dirty_state):
        changes = []
        dirty_state.subscribe(changes.append)
        files, graphs = _main_project()

        writer.save(files, graphs)

        assert changes == [False]

    def test_sink_failure_keeps_dirty_flag(self, writer, dirty_state, download_sink, notify_sink):
        download_sink.fail = True
        files, graphs = _main_project()

        result = writer.save(files, graphs)

        assert not result.success
        assert "disk full" in result.message
        assert dirty_state.is_dirty
        assert notify_sink.titles == ["Save Error"]

    def test_encode_failure_emits_nothing(self, writer, dirty_state, download_sink):
        graphs = {"client/main": GraphData(file_type="client", parameters=[object()])}

        result = writer.save([AppFile("main", "client")], graphs)

        assert not result.success
        assert download_sink.emitted == []
        assert dirty_state.is_dirty

    def test_missing_data(self, writer, dirty_state, notify_sink):
        result = writer.save(None, {})

        assert not result.success
        assert result.message == "Missing graph or file data."
        assert dirty_state.is_dirty
        assert notify_sink.notifications[0].severity == "error"

    def test_field_warnings_do_not_abort_save(self, writer, dirty_state):
        files = [AppFile("main", "client")]
        graphs = {"client/main": GraphData(file_type="client", nodes=[{"id": "n1", "value": {1, 2}}])}

        result = writer.save(files, graphs)

        assert result.success
        assert [warning.field for warning in result.warnings] == ["value"]
        assert not dirty_state.is_dirty

    def test_resave_differs_only_in_saved_at(self, writer, download_sink):
        files, graphs = _main_project()

        writer.save(files, graphs)
        writer.save(files, graphs)

        first, second = (json.loads(data) for data, _ in download_sink.emitted)
        assert first["projectMetadata"].pop("savedAt") != second["projectMetadata"].pop("savedAt")
        assert first == second


class TestDirectoryFileSink:
    def test_writes_project_file(self, tmp_path):
        sink = DirectoryFileSink(tmp_path / "Projects")

        sink.emit(b'{"ok": true}', "demo.fsm.json")

        assert sink.last_path == tmp_path / "Projects" / "demo.fsm.json"
        assert sink.last_path.read_bytes() == b'{"ok": true}'
        assert [path.name for path in (tmp_path / "Projects").iterdir()] == ["demo.fsm.json"]

    def test_ignores_directories_in_filename(self, tmp_path):
        sink = DirectoryFileSink(tmp_path)

        sink.emit(b"{}", "../escape.fsm.json")

        assert sink.last_path == tmp_path / "escape.fsm.json"
