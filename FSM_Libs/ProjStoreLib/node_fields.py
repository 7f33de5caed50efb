"""
Durable node field schema for 0xFSM graphs.

Nodes are open-ended mappings, but only the fields named in
``NODE_FIELD_SCHEMA`` survive a save/load cycle. The same table drives the
save-side projection and the load-side decode, so a new runtime property is
invisible to project files until it is added here (and
``NODE_FIELDS_VERSION`` in ``FSM_Libs.constants`` is bumped).

Functions:
    clone_plain_value: Independent copy of a JSON-shaped value
    read_node_field: Read a field from a mapping or attribute-style node
"""

import math
from typing import Any, Dict, List, Optional, Set, Tuple

from FSM_Libs.constants import FIELD_NODE_ID, PROJECT_ENCODING


class _Absent:
    """Marker for a field or attribute that was never set."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


ABSENT = _Absent()


# Declaration order is the output order of every saved node record.
NODE_FIELD_SCHEMA: Tuple[str, ...] = (
    # Common
    "label", "description",
    # Print / message
    "message", "color", "printToConsole", "useVariableForMessage", "messageVariable",
    # Variables and arithmetic
    "name", "value", "varType", "dataType", "operation", "value1", "value2",
    "useVariableForValue1", "value1Variable", "useVariableForValue2", "value2Variable",
    "resultVariable", "variableName", "defaultValue",
    # String concatenation
    "string1", "useVariableForString1", "string1Variable",
    "string2", "useVariableForString2", "string2Variable",
    # Wait
    "duration", "useVariableForDuration", "durationVariable",
    # Functions
    "functionName", "argumentSources", "useVariableForResult", "returnValue", "returnVariable",
    # Conditions
    "conditionLhsType", "conditionLhsValue", "conditionOperator",
    "conditionRhsType", "conditionRhsValue",
    # Loops
    "controlVariable", "startValueType", "startValue", "endValueType", "endValue",
    "stepValueType", "stepValue", "tableVariable", "iterationType", "keyVariable", "valueVariable",
    # Events and tables
    "eventName", "targetPlayer", "useVariableForTarget", "keyType", "keyValue",
    "valueType", "valueSource",
    # Natives
    "nativeNameOrHash", "useVariableForX", "xSource", "useVariableForY", "ySource",
    "useVariableForZ", "zSource",
    # JSON and string formatting
    "jsonOperation", "inputVariable", "formatString", "useVariableForInput",
    "inputStringVariable", "inputString", "separator", "limit", "inputValue", "base",
    # Commands
    "commandName", "restricted",
    # Substrings
    "startIndexType", "startIndex", "endIndexType", "endIndex",
    # Find / match
    "useVariableForHaystack", "haystackVariable", "haystackString",
    "useVariableForNeedle", "needleVariable", "needleString",
    "plainFind", "resultStartIndexVar", "resultEndIndexVar",
    # Replace
    "useVariableForPattern", "patternVariable", "patternString",
    "useVariableForReplacement", "replacementVariable", "replacementString",
    "limitType", "resultStringVariable", "resultCountVariable",
    # Case conversion
    "caseType",
    # Math
    "mathOperationType", "value1Type", "value2Type",
    # Table removal
    "indexType", "index", "resultRemovedValueVar",
    # Table sort
    "sortFunctionType", "sortFunctionVariable",
)

NODE_FIELD_NAMES = frozenset(NODE_FIELD_SCHEMA)


def is_durable_field(name: str) -> bool:
    return name in NODE_FIELD_NAMES


def read_node_field(node: Any, name: str) -> Any:
    """Return ``node[name]`` for mappings, ``node.name`` otherwise, or ``ABSENT``."""
    if isinstance(node, dict):
        return node.get(name, ABSENT)
    return getattr(node, name, ABSENT)


def clone_plain_value(value: Any) -> Tuple[Any, Optional[str]]:
    """
    Clone a value built from JSON shapes.

    Strings, booleans, ``None``, finite numbers, lists/tuples and dicts with
    string keys are supported. Containers are rebuilt, so the clone shares no
    mutable state with the source.

    Args:
        value: The value to copy

    Returns:
        ``(clone, None)`` on success, or ``(None, reason)`` when the value holds
        a cycle, a non-string key, a non-finite float, a string that is not
        valid UTF-8, a non-plain object or nesting too deep to copy.
    """
    try:
        return _clone(value, set())
    except RecursionError:
        return None, "value is nested too deeply"


def _is_encodable(text: str) -> bool:
    try:
        text.encode(PROJECT_ENCODING)
    except UnicodeEncodeError:
        return False
    return True


def _clone(value: Any, active: Set[int]) -> Tuple[Any, Optional[str]]:
    if isinstance(value, str):
        if not _is_encodable(value):
            return None, f"string {value!r} is not valid {PROJECT_ENCODING}"
        return value, None

    if value is None or isinstance(value, (bool, int)):
        return value, None

    if isinstance(value, float):
        if not math.isfinite(value):
            return None, f"non-finite number {value!r}"
        return value, None

    if not isinstance(value, (list, tuple, dict)):
        return None, f"unsupported value of type {type(value).__name__}"

    marker = id(value)
    if marker in active:
        return None, "cyclic reference"
    active.add(marker)

    try:
        if isinstance(value, dict):
            cloned_dict: Dict[str, Any] = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    return None, f"non-string key {key!r}"
                if not _is_encodable(key):
                    return None, f"key {key!r} is not valid {PROJECT_ENCODING}"
                cloned_item, error = _clone(item, active)
                if error is not None:
                    return None, f"{key}: {error}"
                cloned_dict[key] = cloned_item
            return cloned_dict, None

        cloned_list: List[Any] = []
        for index, item in enumerate(value):
            cloned_item, error = _clone(item, active)
            if error is not None:
                return None, f"[{index}]: {error}"
            cloned_list.append(cloned_item)
        return cloned_list, None
    finally:
        active.discard(marker)


def split_node_record(record: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Keep ``id`` plus allow-listed fields of a decoded node record.

    Returns:
        Tuple of (node dictionary in schema order, names of dropped fields)
    """
    node: Dict[str, Any] = {FIELD_NODE_ID: record[FIELD_NODE_ID]}
    for name in NODE_FIELD_SCHEMA:
        if name in record:
            node[name] = record[name]

    dropped = [key for key in record if key != FIELD_NODE_ID and key not in NODE_FIELD_NAMES]
    return node, dropped
