"""
In-memory graph store for 0xFSM.

Holds one ``GraphData`` per script file, keyed by ``"<type>/<name>"``. Every
successful mutation marks the shared ``DirtyState``. ``replace_all`` adopts a
decoded project file: the complete new mapping is built first and swapped in
with one assignment, so a rejected file leaves the store exactly as it was.

Classes:
    LoadGraphsResult: Outcome of ``GraphStore.replace_all``
    GraphStore: The store itself
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from FSM_Libs.constants import FIELD_FILES, FIELD_GRAPHS, FIELD_NODE_ID, FIELD_NODES, FILE_TYPES
from FSM_Libs.ProjStoreLib.dirty_state import DirtyState
from FSM_Libs.ProjStoreLib.graph_models import (
    GRAPH_ATTRIBUTES,
    AppFile,
    GraphData,
    parse_graph_key,
)
from FSM_Libs.ProjStoreLib.node_fields import ABSENT, clone_plain_value, split_node_record

logger = logging.getLogger(__name__)


@dataclass
class LoadGraphsResult:
    success: bool
    message: Optional[str] = None
    loaded_files: List[AppFile] = field(default_factory=list)


class GraphStore:
    """
    Live graphs of the open project.

    Example:
        >>> store = GraphStore(DirtyState())
        >>> store.add_graph("client/main", "client")
        True
        >>> store.add_node("client/main", {"id": "n1", "label": "Start"})
        {'id': 'n1', 'label': 'Start'}
        >>> store.is_dirty
        True
    """

    def __init__(self, dirty_state: Optional[DirtyState] = None) -> None:
        self._dirty = dirty_state if dirty_state is not None else DirtyState()
        self._graphs: Dict[str, GraphData] = {}

    @property
    def dirty_state(self) -> DirtyState:
        return self._dirty

    @property
    def is_dirty(self) -> bool:
        return self._dirty.is_dirty

    def clear_dirty(self) -> None:
        self._dirty.clear()

    @property
    def graphs(self) -> Dict[str, GraphData]:
        """Shallow copy of the key -> graph mapping, in insertion order."""
        return dict(self._graphs)

    def get_graph(self, key: str) -> Optional[GraphData]:
        return self._graphs.get(key)

    def has_graph(self, key: str) -> bool:
        return key in self._graphs

    def add_graph(self, key: str, file_type: str) -> bool:
        """Create an empty graph. Returns False if the key is taken or the type is unknown."""
        if file_type not in FILE_TYPES:
            logger.warning(f"Refusing graph {key}: unknown file type {file_type!r}")
            return False
        if key in self._graphs:
            return False

        self._graphs[key] = GraphData(file_type=file_type)
        self._dirty.mark()
        logger.debug(f"Added graph: {key}")
        return True

    def delete_graph(self, key: str) -> None:
        """
        Remove a graph.

        Raises:
            KeyError: If no graph is stored under ``key``
        """
        if key not in self._graphs:
            raise KeyError(f"No graph stored under '{key}'")
        del self._graphs[key]
        self._dirty.mark()
        logger.debug(f"Deleted graph: {key}")

    def add_node(self, key: str, node: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Append a node to a graph.

        Raises:
            KeyError: If the graph does not exist
            ValueError: If the node has no id or the id is already used
        """
        graph = self._require(key)
        node_id = node.get(FIELD_NODE_ID)
        if not isinstance(node_id, str) or not node_id.strip():
            raise ValueError("node id is required")
        if graph.find_node(node_id) is not None:
            raise ValueError(f"Node already exists: {node_id}")

        live_node = dict(node)
        graph.nodes.append(live_node)
        self._dirty.mark()
        return live_node

    def update_node(self, key: str, node_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Change node fields in place. A value of ``ABSENT`` removes the field.

        Raises:
            KeyError: If the graph or node does not exist
            ValueError: If ``changes`` tries to rename the node
        """
        graph = self._require(key)
        node = graph.find_node(node_id)
        if node is None:
            raise KeyError(f"Unknown node '{node_id}' in graph '{key}'")
        if FIELD_NODE_ID in changes and changes[FIELD_NODE_ID] != node_id:
            raise ValueError("Node id cannot be changed")

        for name, value in changes.items():
            if value is ABSENT:
                node.pop(name, None)
            else:
                node[name] = value
        self._dirty.mark()
        return node

    def remove_node(self, key: str, node_id: str) -> bool:
        graph = self._require(key)
        node = graph.find_node(node_id)
        if node is None:
            return False
        graph.nodes.remove(node)
        self._dirty.mark()
        return True

    def set_graph_attribute(self, key: str, name: str, value: Any) -> None:
        """
        Set ``parameters``, ``argumentNames`` or ``scope`` on a graph.

        Passing ``ABSENT`` unsets the attribute so it is left out of saves.

        Raises:
            KeyError: If the graph does not exist
            ValueError: If ``name`` is not a graph attribute
        """
        graph = self._require(key)
        attributes = dict(GRAPH_ATTRIBUTES)
        if name not in attributes:
            raise ValueError(f"Unknown graph attribute '{name}'")
        setattr(graph, attributes[name], value)
        self._dirty.mark()

    def replace_all(self, project_data: Mapping[str, Any], clear_dirty: bool = True) -> LoadGraphsResult:
        """
        Replace every graph with the content of a validated project document.

        The document must already have the top-level shape checked by
        ``validate_project_data``. Returns the files of the loaded project on
        success; on failure nothing is changed and ``message`` says why.

        With ``clear_dirty=False`` the caller clears the flag once it has
        adopted ``loaded_files``.
        """
        try:
            loaded_files = self._decode_files(project_data[FIELD_FILES])
            new_graphs = self._decode_graphs(project_data[FIELD_GRAPHS], loaded_files)
        except (KeyError, TypeError, ValueError, RecursionError) as error:
            logger.warning(f"Rejected project graphs: {error}")
            return LoadGraphsResult(success=False, message=str(error))

        self._graphs = new_graphs
        if clear_dirty:
            self._dirty.clear()
        logger.info(f"Loaded {len(new_graphs)} graph(s) for {len(loaded_files)} file(s)")
        return LoadGraphsResult(success=True, loaded_files=list(loaded_files))

    def _require(self, key: str) -> GraphData:
        graph = self._graphs.get(key)
        if graph is None:
            raise KeyError(f"No graph stored under '{key}'")
        return graph

    @staticmethod
    def _decode_files(entries: List[Any]) -> List[AppFile]:
        files: List[AppFile] = []
        for entry in entries:
            app_file = AppFile.from_dict(entry)
            if any(existing.same_file(app_file) for existing in files):
                raise ValueError(
                    f"Duplicate file \"{app_file.display_name}\" ({app_file.type}) in project"
                )
            files.append(app_file)
        return files

    def _decode_graphs(self, encoded_graphs: Mapping[str, Any], files: List[AppFile]) -> Dict[str, GraphData]:
        """Decode graphs; appends a file entry for graphs whose key names an unlisted file."""
        files_by_key = {app_file.key: app_file for app_file in files}
        graphs: Dict[str, GraphData] = {}

        for key, encoded in encoded_graphs.items():
            owner = files_by_key.get(key)
            if owner is None:
                owner = parse_graph_key(key)
                if owner is None:
                    raise ValueError(f"Graph key '{key}' does not name a client or server file")
                if any(existing.same_file(owner) for existing in files):
                    raise ValueError(f"Graph '{key}' does not match the case of its listed file")
                logger.warning(f"Graph '{key}' has no file entry; adding one")
                files.append(owner)
                files_by_key[key] = owner

            graphs[key] = self._decode_graph(key, encoded, owner.type)

        for app_file in files:
            if app_file.key not in graphs:
                graphs[app_file.key] = GraphData(file_type=app_file.type)

        return graphs

    @staticmethod
    def _decode_graph(key: str, encoded: Any, file_type: str) -> GraphData:
        if not isinstance(encoded, dict):
            raise ValueError(f"Graph '{key}' must be an object")

        raw_nodes = encoded.get(FIELD_NODES, [])
        if not isinstance(raw_nodes, list):
            raise ValueError(f"Graph '{key}' has a 'nodes' value that is not a list")

        graph = GraphData(file_type=file_type)
        seen_ids = set()
        dropped_fields = set()
        for index, record in enumerate(raw_nodes):
            if not isinstance(record, dict):
                raise ValueError(f"Node {index} of graph '{key}' must be an object")
            node_id = record.get(FIELD_NODE_ID)
            if not isinstance(node_id, str) or not node_id:
                raise ValueError(f"Node {index} of graph '{key}' has no id")
            if node_id in seen_ids:
                raise ValueError(f"Node id '{node_id}' appears twice in graph '{key}'")
            seen_ids.add(node_id)

            node, dropped = split_node_record(record)
            dropped_fields.update(dropped)
            cloned, error = clone_plain_value(node)
            if error is not None:
                raise ValueError(f"Node '{node_id}' of graph '{key}' holds an invalid value: {error}")
            graph.nodes.append(cloned)

        if dropped_fields:
            logger.warning(
                f"Graph '{key}': ignored unknown node fields {', '.join(sorted(dropped_fields))}"
            )

        for saved_name, attribute in GRAPH_ATTRIBUTES:
            if saved_name not in encoded:
                continue
            cloned, error = clone_plain_value(encoded[saved_name])
            if error is not None:
                raise ValueError(f"Graph '{key}' attribute '{saved_name}' is invalid: {error}")
            setattr(graph, attribute, cloned)

        return graph
