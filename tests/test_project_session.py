"""
Integration tests for ProjectSession.

Tests the editor-facing actions (file management, save, load, exit check)
and the round trip of a project through a file on disk.
"""

import json

from FSM_Libs.ProjStoreLib.graph_models import AppFile
from FSM_Libs.ProjStoreLib.notifications import LoggingNotifySink, Notification
from FSM_Libs.ProjStoreLib.project_reader import LoadPhase
from FSM_Libs.ProjStoreLib.project_session import ProjectSession
from FSM_Libs.ProjStoreLib.project_writer import DirectoryFileSink


class TestFileManagement:
    def test_add_file_creates_graph_and_selects_it(self, session, notify_sink):
        assert session.add_file(AppFile("main", "client"))

        assert session.files == [AppFile("main", "client")]
        assert session.selected_graph_key == "client/main"
        assert session.graph_store.has_graph("client/main")
        assert notify_sink.notifications[-1].title == "File Created"
        assert notify_sink.notifications[-1].message == "Created client/main.lua"

    def test_duplicate_name_is_case_insensitive(self, session, notify_sink):
        assert session.add_file(AppFile("Main", "client"))

        assert not session.add_file(AppFile("main", "client"))

        assert session.files == [AppFile("Main", "client")]
        assert list(session.graph_store.graphs) == ["client/Main"]
        assert notify_sink.titles[-1] == "File Exists"
        assert notify_sink.notifications[-1].severity == "warning"

    def test_same_name_different_type_is_allowed(self, session):
        assert session.add_file(AppFile("main", "client"))
        assert session.add_file(AppFile("main", "server"))

        assert len(session.files) == 2

    def test_store_refusal_is_reported(self, session, notify_sink):
        assert not session.add_file(AppFile("main", "desktop"))

        assert session.files == []
        assert notify_sink.titles == ["Error"]

    def test_delete_file_clears_selection(self, session):
        session.add_file(AppFile("main", "client"))

        assert session.delete_file(AppFile("main", "client"))

        assert session.files == []
        assert session.selected_graph_key is None
        assert not session.graph_store.has_graph("client/main")

    def test_delete_keeps_other_selection(self, session):
        session.add_file(AppFile("main", "client"))
        session.add_file(AppFile("api", "server"))

        session.delete_file(AppFile("main", "client"))

        assert session.selected_graph_key == "server/api"

    def test_delete_unknown_file_reports_error(self, session, notify_sink):
        assert not session.delete_file(AppFile("ghost", "client"))

        assert notify_sink.titles == ["Deletion Error"]


class TestDirtyLifecycle:
    def test_add_save_load_cycle(self, session, download_sink):
        assert not session.is_dirty

        session.add_file(AppFile("main", "client"))
        assert session.is_dirty
        assert session.should_block_exit()

        assert session.save_project().success
        assert not session.is_dirty
        assert not session.should_block_exit()

        session.graph_store.add_node("client/main", {"id": "n1"})
        assert session.is_dirty

        saved_text = download_sink.emitted[0][0].decode("utf-8")
        assert session.load_project_text(saved_text, "saved.fsm.json").success
        assert not session.is_dirty

    def test_rejected_load_leaves_dirty_flag(self, session):
        session.add_file(AppFile("main", "client"))

        result = session.load_project_text('{"projectMetadata": {}, "files": [], "graphs": []}')

        assert result.phase == LoadPhase.REJECTED
        assert session.is_dirty
        assert session.files == [AppFile("main", "client")]
        assert session.selected_graph_key == "client/main"

    def test_declined_load_changes_nothing(self, session, prompt):
        session.add_file(AppFile("main", "client"))
        prompt.answer = False

        result = session.load_project_text('{"projectMetadata": {}, "files": [], "graphs": {}}')

        assert result.phase == LoadPhase.ABORTED
        assert session.files == [AppFile("main", "client")]
        assert session.is_dirty

    def test_deeply_nested_text_is_rejected(self, session):
        session.add_file(AppFile("main", "client"))

        result = session.load_project_text("[" * 100000)

        assert result.phase == LoadPhase.REJECTED
        assert session.files == [AppFile("main", "client")]
        assert session.graph_store.has_graph("client/main")
        assert session.is_dirty

    def test_dirty_listener_sees_loaded_files(self, session, download_sink):
        session.add_file(AppFile("main", "client"))
        session.save_project()
        saved_text = download_sink.emitted[0][0].decode("utf-8")
        session.delete_file(AppFile("main", "client"))
        seen = []
        session.dirty_state.subscribe(
            lambda dirty: seen.append((dirty, session.files, list(session.graph_store.graphs)))
        )

        assert session.load_project_text(saved_text).success

        assert seen == [(False, [AppFile("main", "client")], ["client/main"])]


class TestRoundTrip:
    def _build_project(self, session):
        session.add_file(AppFile("main", "client"))
        session.add_file(AppFile("api", "server"))
        store = session.graph_store
        store.add_node("client/main", {"id": "n1", "label": "Start", "selected": True})
        store.add_node(
            "client/main",
            {
                "id": "n2",
                "functionName": "greet",
                "argumentSources": [{"type": "variable", "value": "playerName"}],
                "dragging": False,
            },
        )
        store.set_graph_attribute("server/api", "parameters", [{"name": "amount", "type": "number"}])
        store.set_graph_attribute("server/api", "argumentNames", ["amount"])

    def test_save_then_load_restores_durable_state(self, notify_sink, prompt, clock, tmp_path):
        sink = DirectoryFileSink(tmp_path)
        original = ProjectSession(notify_sink, prompt, sink, clock=clock)
        self._build_project(original)

        assert original.save_project().success

        restored = ProjectSession(notify_sink, prompt, DirectoryFileSink(tmp_path), clock=clock)
        result = restored.load_project(sink.last_path)

        assert result.success
        assert restored.files == original.files
        assert restored.selected_graph_key is None
        assert restored.graph_store.get_graph("client/main").nodes == [
            {"id": "n1", "label": "Start"},
            {
                "id": "n2",
                "functionName": "greet",
                "argumentSources": [{"type": "variable", "value": "playerName"}],
            },
        ]
        api = restored.graph_store.get_graph("server/api")
        assert api.parameters == [{"name": "amount", "type": "number"}]
        assert api.argument_names == ["amount"]
        assert not restored.is_dirty

    def test_resave_after_load_matches_original(self, session, download_sink):
        self._build_project(session)
        session.save_project()
        first_text = download_sink.emitted[0][0].decode("utf-8")

        session.load_project_text(first_text)
        session.save_project()
        second_text = download_sink.emitted[1][0].decode("utf-8")

        first, second = json.loads(first_text), json.loads(second_text)
        first["projectMetadata"].pop("savedAt")
        second["projectMetadata"].pop("savedAt")
        assert first == second

    def test_saved_file_shape(self, session, download_sink):
        session.add_file(AppFile("main", "client"))
        session.graph_store.add_node("client/main", {"id": "n1", "label": "Start"})

        session.save_project()

        document = json.loads(download_sink.emitted[0][0])
        assert document["files"] == [{"name": "main", "type": "client"}]
        assert document["graphs"] == {"client/main": {"nodes": [{"id": "n1", "label": "Start"}]}}
        assert download_sink.emitted[0][1].endswith(".fsm.json")

    def test_label_that_cannot_be_written_does_not_block_saving(self, session, download_sink):
        session.add_file(AppFile("main", "client"))
        session.graph_store.add_node("client/main", {"id": "n1", "label": "\ud800", "message": "hi"})

        result = session.save_project()

        assert result.success
        assert [warning.field for warning in result.warnings] == ["label"]
        document = json.loads(download_sink.emitted[0][0])
        assert document["graphs"]["client/main"]["nodes"] == [{"id": "n1", "message": "hi"}]

    def test_file_with_lone_surrogate_is_rejected_on_load(self, session, notify_sink):
        text = json.dumps(
            {
                "projectMetadata": {},
                "files": [{"name": "main", "type": "client"}],
                "graphs": {"client/main": {"nodes": [{"id": "n1", "label": "\ud800"}]}},
            }
        )

        result = session.load_project_text(text)

        assert result.phase == LoadPhase.REJECTED
        assert session.files == []
        assert notify_sink.titles == ["Load Error"]
        assert session.save_project().success


class TestLoggingNotifySink:
    def test_notifications_go_to_the_log(self, caplog):
        sink = LoggingNotifySink()

        with caplog.at_level("INFO"):
            sink.show(Notification("File Exists", 'File "main.lua" (client) already exists.', "warning"))
            sink.show(Notification("Project Saved", "Project saved successfully."))

        levels = [(record.levelname, record.getMessage()) for record in caplog.records]
        assert ("WARNING", 'File Exists: File "main.lua" (client) already exists.') in levels
        assert ("INFO", "Project Saved: Project saved successfully.") in levels
