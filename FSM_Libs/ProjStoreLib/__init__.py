"""
ProjStoreLib - Project file storage and management

This module handles persistence of 0xFSM projects: the durable node field
schema, graph encoding, project save/load with validation, the in-memory
graph store and unsaved-changes tracking.
"""

from FSM_Libs.ProjStoreLib.dirty_state import DirtyState
from FSM_Libs.ProjStoreLib.errors import (
    ProjectError,
    ProjectParseError,
    ProjectReadError,
    ProjectSaveError,
    ProjectValidationError,
    SerializationWarning,
)
from FSM_Libs.ProjStoreLib.graph_encoder import encode_graph, encode_graphs
from FSM_Libs.ProjStoreLib.graph_models import AppFile, GraphData, make_graph_key, parse_graph_key
from FSM_Libs.ProjStoreLib.graph_store import GraphStore, LoadGraphsResult
from FSM_Libs.ProjStoreLib.node_fields import ABSENT, NODE_FIELD_SCHEMA, clone_plain_value
from FSM_Libs.ProjStoreLib.node_projector import project_node, project_nodes
from FSM_Libs.ProjStoreLib.notifications import LoggingNotifySink, Notification
from FSM_Libs.ProjStoreLib.project_reader import (
    LoadPhase,
    LoadResult,
    ProjectReader,
    parse_project_text,
    read_project_text,
    validate_project_data,
)
from FSM_Libs.ProjStoreLib.project_session import ProjectSession
from FSM_Libs.ProjStoreLib.project_writer import (
    DirectoryFileSink,
    ProjectWriter,
    SaveResult,
    build_project_save_data,
    format_saved_at,
    project_filename,
    serialize_project,
)

__all__ = [
    "ABSENT",
    "NODE_FIELD_SCHEMA",
    "clone_plain_value",
    "project_node",
    "project_nodes",
    "encode_graph",
    "encode_graphs",
    "AppFile",
    "GraphData",
    "make_graph_key",
    "parse_graph_key",
    "GraphStore",
    "LoadGraphsResult",
    "DirtyState",
    "Notification",
    "LoggingNotifySink",
    "ProjectWriter",
    "SaveResult",
    "DirectoryFileSink",
    "build_project_save_data",
    "format_saved_at",
    "project_filename",
    "serialize_project",
    "ProjectReader",
    "LoadPhase",
    "LoadResult",
    "read_project_text",
    "parse_project_text",
    "validate_project_data",
    "ProjectSession",
    "ProjectError",
    "ProjectReadError",
    "ProjectParseError",
    "ProjectValidationError",
    "ProjectSaveError",
    "SerializationWarning",
]
