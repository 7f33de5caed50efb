"""
Node field projection for project saves.

Turns a live editor node into the plain record written to a project file:
the node ``id`` followed by every allow-listed field the node carries, in
schema order. Field values are cloned so later edits to the live node never
reach an already produced record.
"""

import logging
from typing import Any, Dict, List, Optional

from FSM_Libs.constants import FIELD_NODE_ID
from FSM_Libs.ProjStoreLib.errors import SerializationWarning
from FSM_Libs.ProjStoreLib.node_fields import (
    ABSENT,
    NODE_FIELD_SCHEMA,
    clone_plain_value,
    read_node_field,
)

logger = logging.getLogger(__name__)


def project_node(node: Any, warnings: Optional[List[SerializationWarning]] = None) -> Dict[str, Any]:
    """
    Build the durable record of a single node.

    Args:
        node: Live node, either a dictionary or an object exposing attributes
        warnings: Optional list collecting one entry per dropped field

    Returns:
        Dictionary with ``id`` first and allow-listed fields after it

    Raises:
        ValueError: If the node has no ``id``
    """
    node_id = read_node_field(node, FIELD_NODE_ID)
    if node_id is ABSENT:
        raise ValueError("Node has no id")

    record: Dict[str, Any] = {FIELD_NODE_ID: node_id}

    for name in NODE_FIELD_SCHEMA:
        value = read_node_field(node, name)
        if value is ABSENT:
            continue

        cloned, error = clone_plain_value(value)
        if error is not None:
            issue = SerializationWarning(node_id=str(node_id), field=name, reason=error)
            logger.warning("%s. Skipping.", issue)
            if warnings is not None:
                warnings.append(issue)
            continue

        record[name] = cloned

    return record


def project_nodes(nodes: List[Any], warnings: Optional[List[SerializationWarning]] = None) -> List[Dict[str, Any]]:
    """Project every node, keeping sequence order."""
    return [project_node(node, warnings) for node in nodes]
