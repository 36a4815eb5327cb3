"""Material flow data model and JSON payload conversion."""

from dataclasses import dataclass
from enum import Enum

from parsing_utils import parse_quantity


class MaterialType(str, Enum):
    """declared role of a material in the flow"""

    INPUT = "input"
    INTERMEDIATE = "intermediate"
    OUTPUT = "output"


class Predicate(str, Enum):
    """relationship predicates between materials"""

    IS_INPUT_OF = "IS_INPUT_OF"
    IS_OUTPUT_OF = "IS_OUTPUT_OF"


@dataclass(frozen=True)
class MaterialNode:
    """a material object taking part in a flow"""

    uuid: str
    name: str
    type: str
    category: str = ""
    color: str = ""


@dataclass(frozen=True)
class MaterialRef:
    """an endpoint of a relationship"""

    uuid: str
    name: str = ""


@dataclass(frozen=True)
class MaterialRelationship:
    """a directed subject-predicate-object edge between two materials"""

    predicate: str
    subject: MaterialRef
    object: MaterialRef
    quantity: float | None = None
    unit: str = ""
    process_name: str | None = None


@dataclass(frozen=True)
class LayeredNode(MaterialNode):
    """a material with its computed stage"""

    layer: float = 0.0
    x: float = 0.0
    is_recycling_related: bool = False


@dataclass(frozen=True)
class FlowStats:
    """aggregate flow counts and recycling rate"""

    total_flows: int
    recycling_flows: int
    recycling_rate: str


@dataclass(frozen=True)
class LayoutResult:
    """a staged, acyclic layout plus the recycling flows removed from it"""

    nodes: tuple[LayeredNode, ...]
    links: tuple[MaterialRelationship, ...]
    recycling_flows: tuple[MaterialRelationship, ...]
    stats: FlowStats


def _require(data: dict, key: str, what: str):
    """Fetch a required key from a payload dict.

    Precondition:
        data is a dict
        what describes the entry for error messages

    Postcondition:
        returns data[key] if present and not None

    Raises:
        ValueError: if data is not a dict or the key is missing
    """
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {what}: expected an object, got {type(data).__name__}")
    value = data.get(key)
    if value is None:
        raise ValueError(f"Invalid {what}: missing '{key}'")
    return value


def _text(data: dict, key: str) -> str:
    """Read an optional payload field as a string, empty when absent or None."""
    value = data.get(key)
    return "" if value is None else str(value)


def material_from_dict(data: dict) -> MaterialNode:
    """Build a MaterialNode from a payload dict.

    Precondition:
        data is a dict with at least a "uuid" key

    Postcondition:
        returns MaterialNode with string fields, non-string values converted with str
        missing name, type, category or color become empty strings
        type is kept as given so unknown roles reach the classifier unchanged

    Args:
        data: dict like {"uuid": "m1", "name": "Water", "type": "input"}

    Returns:
        MaterialNode

    Raises:
        ValueError: if data is not a dict or has no uuid
    """
    uuid = _require(data, "uuid", "material")
    return MaterialNode(
        uuid=str(uuid),
        name=_text(data, "name"),
        type=_text(data, "type"),
        category=_text(data, "category"),
        color=_text(data, "color"),
    )


def _ref_from_dict(data, role: str) -> MaterialRef:
    """Build a MaterialRef from a relationship endpoint dict or bare uuid."""
    if isinstance(data, str):
        return MaterialRef(uuid=data)
    uuid = _require(data, "uuid", f"relationship {role}")
    return MaterialRef(uuid=str(uuid), name=_text(data, "name"))


def relationship_from_dict(data: dict) -> MaterialRelationship:
    """Build a MaterialRelationship from a payload dict.

    Precondition:
        data is a dict with "predicate", "subject" and "object" keys

    Postcondition:
        returns MaterialRelationship with the predicate validated
        subject/object may be {"uuid", "name"} dicts or bare uuid strings
        quantity is None when absent, otherwise parsed with parse_quantity
        processName is read from the camelCase key and kept as None when absent
        name, unit and processName values that are not strings are converted to str

    Args:
        data: relationship payload dict

    Returns:
        MaterialRelationship

    Raises:
        ValueError: if a required key is missing or the predicate is unknown
    """
    predicate_text = _require(data, "predicate", "relationship")
    try:
        predicate = Predicate(predicate_text)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in Predicate)
        raise ValueError(
            f"Invalid predicate '{predicate_text}'. Must be one of: {allowed}."
        ) from exc

    quantity = data.get("quantity")
    process_name = data.get("processName")
    return MaterialRelationship(
        predicate=predicate.value,
        subject=_ref_from_dict(_require(data, "subject", "relationship"), "subject"),
        object=_ref_from_dict(_require(data, "object", "relationship"), "object"),
        quantity=None if quantity is None else parse_quantity(quantity),
        unit=_text(data, "unit"),
        process_name=None if process_name is None else str(process_name),
    )


def materials_from_dicts(items: list[dict] | None) -> list[MaterialNode]:
    """Convert a list of material payloads, preserving order.

    Raises:
        ValueError: naming the index of the first invalid entry
    """
    result = []
    for index, item in enumerate(items or []):
        try:
            result.append(material_from_dict(item))
        except ValueError as exc:
            raise ValueError(f"materials[{index}]: {exc}") from exc
    return result


def relationships_from_dicts(items: list[dict] | None) -> list[MaterialRelationship]:
    """Convert a list of relationship payloads, preserving order.

    Raises:
        ValueError: naming the index of the first invalid entry
    """
    result = []
    for index, item in enumerate(items or []):
        try:
            result.append(relationship_from_dict(item))
        except ValueError as exc:
            raise ValueError(f"relationships[{index}]: {exc}") from exc
    return result


def relationship_to_dict(rel: MaterialRelationship) -> dict:
    """Serialize a relationship using the camelCase payload keys."""
    return {
        "predicate": rel.predicate,
        "subject": {"uuid": rel.subject.uuid, "name": rel.subject.name},
        "object": {"uuid": rel.object.uuid, "name": rel.object.name},
        "quantity": rel.quantity,
        "unit": rel.unit,
        "processName": rel.process_name,
    }


def layout_to_dict(result: LayoutResult) -> dict:
    """Serialize a LayoutResult into a JSON-ready payload.

    Precondition:
        result is a LayoutResult

    Postcondition:
        returns dict with "nodes", "links", "recyclingFlows" and "stats"
        node and stats keys use camelCase (isRecyclingRelated, totalFlows, ...)
        order of nodes and edges is preserved

    Args:
        result: layout to serialize

    Returns:
        dict suitable for json.dumps
    """
    return {
        "nodes": [
            {
                "uuid": node.uuid,
                "name": node.name,
                "type": node.type,
                "category": node.category,
                "color": node.color,
                "layer": node.layer,
                "x": node.x,
                "isRecyclingRelated": node.is_recycling_related,
            }
            for node in result.nodes
        ],
        "links": [relationship_to_dict(rel) for rel in result.links],
        "recyclingFlows": [relationship_to_dict(rel) for rel in result.recycling_flows],
        "stats": {
            "totalFlows": result.stats.total_flows,
            "recyclingFlows": result.stats.recycling_flows,
            "recyclingRate": result.stats.recycling_rate,
        },
    }
