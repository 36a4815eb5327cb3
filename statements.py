"""Conversion of relationship statements and objects into flow inputs.

Statements are subject-predicate-object triples between object uuids, carrying
"processName", "quantity" and "unit" as properties:

    {"subject": "uuid-a", "predicate": "IS_INPUT_OF", "object": "uuid-b",
     "properties": [{"key": "quantity", "values": [{"value": "180"}]}]}
"""

import logging
from dataclasses import dataclass

from materials import MaterialNode, MaterialRef, MaterialRelationship, MaterialType, Predicate
from parsing_utils import parse_quantity

_LOGGER = logging.getLogger("materialflow")

UNKNOWN_PROCESS = "Unknown Process"
UNNAMED_OBJECT = "Unnamed Object"
UNCATEGORIZED = "Uncategorized"

ROLE_COLORS = {
    MaterialType.INPUT: "#1976d2",
    MaterialType.OUTPUT: "#4caf50",
    MaterialType.INTERMEDIATE: "#f5f5f5",
}


@dataclass(frozen=True)
class ProcessedRelationship:
    """process details extracted from a statement"""

    process_name: str
    quantity: float
    unit: str
    subject: str
    object: str
    is_valid: bool


def get_property_value(statement: dict, key: str) -> str | None:
    """Get the first value of a statement property.

    Precondition:
        statement is a statement dict, "properties" may be absent or None

    Postcondition:
        returns the first value of the first property named key
        returns None if the property is absent, has no values, or the value is empty

    Args:
        statement: statement dict
        key: property key, e.g. "processName"

    Returns:
        property value or None
    """
    for prop in statement.get("properties") or []:
        if prop.get("key") == key:
            values = prop.get("values") or []
            return (values[0].get("value") or None) if values else None
    return None


def process_relationship_statement(statement: dict) -> ProcessedRelationship:
    """Extract process name, quantity and unit from a statement.

    Precondition:
        statement is a statement dict with "subject" and "object"

    Postcondition:
        process_name defaults to "Unknown Process"
        quantity is parsed leniently, defaulting to 0.0
        unit defaults to ""
        is_valid is False for the default or a blank process name

    Args:
        statement: statement dict

    Returns:
        ProcessedRelationship
    """
    process_name = get_property_value(statement, "processName") or UNKNOWN_PROCESS
    quantity = parse_quantity(get_property_value(statement, "quantity"))
    unit = get_property_value(statement, "unit") or ""

    return ProcessedRelationship(
        process_name=process_name,
        quantity=quantity,
        unit=unit,
        subject=statement.get("subject"),
        object=statement.get("object"),
        is_valid=process_name != UNKNOWN_PROCESS and bool(process_name.strip()),
    )


def classify_material_roles(statements: list[dict]) -> dict[str, MaterialType]:
    """Classify uuids by their role in a set of statements.

    Precondition:
        statements is a list of statement dicts

    Postcondition:
        uuids only ever used as subject are inputs
        uuids only ever used as object are outputs
        uuids used both ways are intermediates
        keys are ordered by first appearance

    Args:
        statements: statements of the flow

    Returns:
        dict mapping uuid to MaterialType
    """
    subjects = {statement.get("subject") for statement in statements}
    objects = {statement.get("object") for statement in statements}

    roles = {}
    for statement in statements:
        for uuid in (statement.get("subject"), statement.get("object")):
            if uuid in roles:
                continue
            if uuid in subjects and uuid in objects:
                roles[uuid] = MaterialType.INTERMEDIATE
            elif uuid in subjects:
                roles[uuid] = MaterialType.INPUT
            else:
                roles[uuid] = MaterialType.OUTPUT
    return roles


def _object_to_material(obj: dict, role: MaterialType) -> MaterialNode:
    """Convert an object dict into a MaterialNode with role type and color."""
    return MaterialNode(
        uuid=obj["uuid"],
        name=obj.get("name") or UNNAMED_OBJECT,
        type=role.value,
        category=obj.get("description") or UNCATEGORIZED,
        color=ROLE_COLORS[role],
    )


def _check_payload(statements: list, objects: list) -> None:
    """Reject statements that are not dicts and objects that are not dicts with a uuid.

    Raises:
        ValueError: naming the index of the first invalid entry
    """
    for what, items in (("statements", statements), ("objects", objects)):
        if not isinstance(items, list):
            raise ValueError(f"{what}: expected a list, got {type(items).__name__}")
    for index, statement in enumerate(statements):
        if not isinstance(statement, dict):
            raise ValueError(
                f"statements[{index}]: expected an object, got {type(statement).__name__}"
            )
    for index, obj in enumerate(objects):
        if not isinstance(obj, dict):
            raise ValueError(f"objects[{index}]: expected an object, got {type(obj).__name__}")
        if obj.get("uuid") is None:
            raise ValueError(f"objects[{index}]: missing 'uuid'")


def statements_to_flow(
    statements: list[dict] | None, objects: list[dict] | None
) -> tuple[list[MaterialNode], list[MaterialRelationship]]:
    """Build flow materials and relationships from statements and objects.

    Precondition:
        statements is None or a list of statement dicts
        objects is None or a list of object dicts with a "uuid" key

    Postcondition:
        returns (materials, relationships)
        materials holds only objects taking part in a statement, in object order
        statements with a missing object or invalid process name are skipped
        duplicate statements (same subject, object, process, quantity, unit)
        produce one relationship
        every relationship uses the IS_INPUT_OF predicate

    Args:
        statements: relationship statements
        objects: objects referenced by the statements

    Returns:
        tuple of (materials, relationships)

    Raises:
        ValueError: if a statement is not a dict or an object has no uuid
    """
    if not statements or not objects:
        return [], []

    _check_payload(statements, objects)

    roles = classify_material_roles(statements)
    materials = [
        _object_to_material(obj, roles[obj["uuid"]])
        for obj in objects
        if obj["uuid"] in roles
    ]

    objects_by_uuid = {obj["uuid"]: obj for obj in objects}
    relationships = {}
    for statement in statements:
        processed = process_relationship_statement(statement)
        subject = objects_by_uuid.get(processed.subject)
        target = objects_by_uuid.get(processed.object)

        if subject is None or target is None:
            _LOGGER.warning(
                "Skipping relationship with missing objects: %s -> %s (%s)",
                processed.subject, processed.object, processed.process_name,
            )
            continue

        if not processed.is_valid:
            _LOGGER.warning(
                "Skipping relationship with invalid process name: %s -> %s (%s)",
                subject.get("name"), target.get("name"), processed.process_name,
            )
            continue

        key = (
            processed.subject,
            processed.object,
            processed.process_name,
            processed.quantity,
            processed.unit,
        )
        if key in relationships:
            continue

        relationships[key] = MaterialRelationship(
            predicate=Predicate.IS_INPUT_OF.value,
            subject=MaterialRef(processed.subject, subject.get("name") or UNNAMED_OBJECT),
            object=MaterialRef(processed.object, target.get("name") or UNNAMED_OBJECT),
            quantity=processed.quantity,
            unit=processed.unit,
            process_name=processed.process_name,
        )

    return materials, list(relationships.values())
