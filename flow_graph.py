"""Dependency graph construction and validation for material flows."""

from collections import Counter
from dataclasses import dataclass

from frozendict import frozendict
from tarjan import tarjan

from materials import MaterialNode, MaterialRelationship, Predicate
from parsing_utils import parse_material_type


@dataclass(frozen=True)
class GraphEntry:
    """direct predecessor and successor material uuids of one material

    feeders holds the subjects of IS_INPUT_OF relationships targeting the
    material, without direction normalization.
    """

    inputs: frozenset[str]
    outputs: frozenset[str]
    feeders: frozenset[str] = frozenset()


@dataclass
class ValidationResult:
    """Result of flow validation"""
    is_valid: bool
    warnings: list[str]
    errors: list[str]


def build_dependency_graph(
    materials: list[MaterialNode], relationships: list[MaterialRelationship]
) -> frozendict:
    """Build the per-material adjacency map of a material flow.

    Precondition:
        materials is a list of MaterialNode
        relationships is a list of MaterialRelationship

    Postcondition:
        returns frozendict mapping every material uuid to a GraphEntry
        IS_INPUT_OF flows subject -> object
        IS_OUTPUT_OF flows object -> subject
        relationships with an endpoint outside materials are ignored
        relationships with any other predicate are ignored
        feeders only collects IS_INPUT_OF subjects, never IS_OUTPUT_OF objects

    Args:
        materials: materials of the flow
        relationships: edges between materials

    Returns:
        frozendict of {uuid: GraphEntry}
    """
    inputs = {material.uuid: set() for material in materials}
    outputs = {material.uuid: set() for material in materials}
    feeders = {material.uuid: set() for material in materials}

    for rel in relationships:
        source, target = rel.subject.uuid, rel.object.uuid
        if source not in inputs or target not in inputs:
            continue
        if rel.predicate == Predicate.IS_INPUT_OF:
            outputs[source].add(target)
            inputs[target].add(source)
            feeders[target].add(source)
        elif rel.predicate == Predicate.IS_OUTPUT_OF:
            outputs[target].add(source)
            inputs[source].add(target)

    return frozendict(
        {
            uuid: GraphEntry(
                frozenset(inputs[uuid]), frozenset(outputs[uuid]), frozenset(feeders[uuid])
            )
            for uuid in inputs
        }
    )


def find_flow_cycles(graph: frozendict) -> list[list[str]]:
    """Find the cycles of a dependency graph.

    Precondition:
        graph is a dependency graph from build_dependency_graph

    Postcondition:
        returns the strongly connected components that contain a cycle
        a component qualifies if it has more than one member or a self loop
        each component is sorted and the list of components is sorted

    Args:
        graph: dependency graph

    Returns:
        list of cycles, each a sorted list of material uuids
    """
    successors = {uuid: sorted(entry.outputs) for uuid, entry in graph.items()}
    cycles = []
    for component in tarjan(successors):
        if len(component) > 1 or component[0] in graph[component[0]].outputs:
            cycles.append(sorted(component))
    return sorted(cycles)


def validate_flow(
    materials: list[MaterialNode], relationships: list[MaterialRelationship]
) -> ValidationResult:
    """Check a material flow for problems the layout would silently absorb.

    Precondition:
        materials is a list of MaterialNode
        relationships is a list of MaterialRelationship

    Postcondition:
        returns ValidationResult with is_valid, warnings, errors
        duplicate material uuids are errors
        dangling relationships, unknown material types and cycles are warnings

    Args:
        materials: materials of the flow
        relationships: edges between materials

    Returns:
        ValidationResult with any warnings or errors
    """
    warnings = []
    errors = []

    counts = Counter(material.uuid for material in materials)
    for uuid, count in counts.items():
        if count > 1:
            errors.append(f"Duplicate material uuid {uuid} ({count} entries)")

    for material in materials:
        try:
            parse_material_type(material.type or "")
        except ValueError:
            warnings.append(
                f"Material {material.name or material.uuid} has unknown type '{material.type}'"
            )

    for index, rel in enumerate(relationships):
        missing = [ref.uuid for ref in (rel.subject, rel.object) if ref.uuid not in counts]
        if missing:
            warnings.append(
                f"Relationship {index} references unknown material(s): {', '.join(missing)}"
            )

    names = {material.uuid: material.name or material.uuid for material in materials}
    for cycle in find_flow_cycles(build_dependency_graph(materials, relationships)):
        warnings.append("Cycle between " + ", ".join(names[uuid] for uuid in cycle))

    return ValidationResult(
        is_valid=len(errors) == 0,
        warnings=warnings,
        errors=errors
    )
