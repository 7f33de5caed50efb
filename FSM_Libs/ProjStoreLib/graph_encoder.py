"""
Graph encoding for project saves.

Builds the ``graphs`` section of a project file from the live graph store.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from FSM_Libs.constants import FIELD_NODES
from FSM_Libs.ProjStoreLib.errors import SerializationWarning
from FSM_Libs.ProjStoreLib.graph_models import GRAPH_ATTRIBUTES, GraphData
from FSM_Libs.ProjStoreLib.node_fields import ABSENT, clone_plain_value
from FSM_Libs.ProjStoreLib.node_projector import project_nodes

logger = logging.getLogger(__name__)


def encode_graph(graph: GraphData, warnings: Optional[List[SerializationWarning]] = None) -> Dict[str, Any]:
    """
    Encode one graph.

    ``nodes`` is always present; ``parameters``, ``argumentNames`` and
    ``scope`` only when they were set on the graph.

    Raises:
        ValueError: If a graph attribute holds a value that cannot be saved
    """
    encoded: Dict[str, Any] = {FIELD_NODES: project_nodes(graph.nodes or [], warnings)}

    for saved_name, attribute in GRAPH_ATTRIBUTES:
        value = getattr(graph, attribute, ABSENT)
        if value is ABSENT:
            continue
        cloned, error = clone_plain_value(value)
        if error is not None:
            raise ValueError(f"Graph attribute '{saved_name}' cannot be saved: {error}")
        encoded[saved_name] = cloned

    return encoded


def encode_graphs(
    graphs: Mapping[str, Optional[GraphData]],
    warnings: Optional[List[SerializationWarning]] = None,
) -> Dict[str, Dict[str, Any]]:
    """Encode every graph of the store, keyed by graph key."""
    encoded: Dict[str, Dict[str, Any]] = {}
    for key, graph in graphs.items():
        if graph is None:
            logger.debug(f"Skipping empty graph slot: {key}")
            continue
        encoded[key] = encode_graph(graph, warnings)
    return encoded
