"""
Data models for script files and their graphs.

Classes:
    AppFile: A client or server script file managed by the user
    GraphData: The node graph behind one script file

Functions:
    make_graph_key: Build the ``"<type>/<name>"`` key of a file's graph
    parse_graph_key: Split a graph key back into an AppFile
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from FSM_Libs.constants import (
    FIELD_ARGUMENT_NAMES,
    FIELD_FILE_NAME,
    FIELD_FILE_TYPE,
    FIELD_PARAMETERS,
    FIELD_SCOPE,
    FILE_TYPES,
    GRAPH_KEY_SEPARATOR,
    SCRIPT_EXTENSION,
)
from FSM_Libs.ProjStoreLib.node_fields import ABSENT, clone_plain_value

# Saved attribute name -> GraphData attribute name
GRAPH_ATTRIBUTES: Tuple[Tuple[str, str], ...] = (
    (FIELD_PARAMETERS, "parameters"),
    (FIELD_ARGUMENT_NAMES, "argument_names"),
    (FIELD_SCOPE, "scope"),
)


def make_graph_key(file_type: str, name: str) -> str:
    return f"{file_type}{GRAPH_KEY_SEPARATOR}{name}"


def parse_graph_key(key: str) -> Optional["AppFile"]:
    """Return the file a graph key names, or None if the key is malformed."""
    file_type, separator, name = str(key).partition(GRAPH_KEY_SEPARATOR)
    if not separator or file_type not in FILE_TYPES or not name:
        return None
    if clone_plain_value(name)[1] is not None:
        return None
    return AppFile(name=name, type=file_type)


@dataclass(frozen=True)
class AppFile:
    """A user-facing script file; its graph lives under ``key``.

    Attributes:
        name: File name without the ``.lua`` extension
        type: ``"client"`` or ``"server"``
    """
    name: str
    type: str

    @property
    def key(self) -> str:
        return make_graph_key(self.type, self.name)

    @property
    def display_name(self) -> str:
        return f"{self.name}{SCRIPT_EXTENSION}"

    def same_file(self, other: "AppFile") -> bool:
        """Case-insensitive on name, exact on type."""
        return self.type == other.type and self.name.lower() == other.name.lower()

    def to_dict(self) -> Dict[str, str]:
        return {FIELD_FILE_NAME: self.name, FIELD_FILE_TYPE: self.type}

    @classmethod
    def from_dict(cls, data: Any) -> "AppFile":
        """
        Create from a decoded file entry.

        Raises:
            ValueError: If the entry is not ``{name: str, type: client|server}``
        """
        if not isinstance(data, dict):
            raise ValueError(f"File entry must be an object, got {type(data).__name__}")

        name = data.get(FIELD_FILE_NAME)
        file_type = data.get(FIELD_FILE_TYPE)
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"File entry has no name: {data!r}")
        _, error = clone_plain_value(name)
        if error is not None:
            raise ValueError(f"File entry name is invalid: {error}")
        if file_type not in FILE_TYPES:
            raise ValueError(f"File '{name}' has unknown type {file_type!r}")

        return cls(name=name, type=file_type)


@dataclass
class GraphData:
    """Node graph of one script file.

    Optional attributes default to ``ABSENT`` and are left out of saved
    projects until set; ``None`` is a real value.
    """
    file_type: str
    nodes: List[Dict[str, Any]] = field(default_factory=list)
    parameters: Any = ABSENT
    argument_names: Any = ABSENT
    scope: Any = ABSENT

    def find_node(self, node_id: str) -> Optional[Dict[str, Any]]:
        for node in self.nodes:
            if node.get("id") == node_id:
                return node
        return None
