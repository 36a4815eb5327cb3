"""Layered, acyclic layout of material flows for Sankey-style diagrams."""

import logging
import math
from collections.abc import Callable
from decimal import Decimal, ROUND_HALF_UP

from flow_graph import build_dependency_graph, find_flow_cycles
from materials import (
    FlowStats,
    LayeredNode,
    LayoutResult,
    MaterialNode,
    MaterialRelationship,
)
from stages import get_stage_level, is_recycled_material

_LOGGER = logging.getLogger("materialflow")

# Horizontal distance between consecutive stages
STAGE_SPACING = 180

_RECYCLING_PROCESS_KEYWORDS = ("recycl", "reclaim")
_WASTE_SOURCE_KEYWORDS = ("waste", "scrap")

Trace = Callable[[str, dict], None]


def _log_trace(event: str, details: dict) -> None:
    """Default trace sink: log the event at debug level."""
    _LOGGER.debug("%s: %s", event, details)


def _index_by_uuid(nodes) -> dict:
    """Map uuids to nodes, keeping the first node for duplicated uuids."""
    index = {}
    for node in nodes:
        index.setdefault(node.uuid, node)
    return index


def _flow_quantity(rel: MaterialRelationship) -> float:
    """Quantity of a relationship, with missing or non-finite quantities counted as 0."""
    quantity = rel.quantity
    if quantity is None or not math.isfinite(quantity):
        return 0.0
    return quantity


def is_recycling_process(rel: MaterialRelationship) -> bool:
    """Check if a relationship represents material reclamation.

    Precondition:
        rel is a MaterialRelationship

    Postcondition:
        returns True if the process name contains "recycl" or "reclaim",
        the subject name contains "waste" or "scrap",
        or the object name contains "recycled" (all case-insensitive)

    Args:
        rel: relationship to check

    Returns:
        True for recycling flows, False otherwise
    """
    process = (rel.process_name or "").lower()
    subject = (rel.subject.name or "").lower()
    target = (rel.object.name or "").lower()
    return (
        any(keyword in process for keyword in _RECYCLING_PROCESS_KEYWORDS)
        or any(keyword in subject for keyword in _WASTE_SOURCE_KEYWORDS)
        or "recycled" in target
    )


def create_dag_compliant_flow(
    layered_nodes: list[LayeredNode],
    relationships: list[MaterialRelationship],
    trace: Trace | None = None,
) -> tuple[list[LayeredNode], list[MaterialRelationship], list[MaterialRelationship]]:
    """Split relationships into forward links and recycling flows.

    Precondition:
        layered_nodes is a list of LayeredNode
        relationships is a list of MaterialRelationship
        trace is None or a callable taking (event, details)

    Postcondition:
        returns (nodes, links, recycling_flows) with nodes passed through unchanged
        relationships with an unresolved endpoint are in neither list
        backward flows (source layer >= target layer) are only in recycling_flows
        forward flows are in links, and also in recycling_flows if they
        are recycling processes
        for every link, source layer < target layer
        input order is preserved in both lists

    Args:
        layered_nodes: staged materials
        relationships: edges between materials
        trace: optional sink for "edge_skipped" and "backward_flow" events

    Returns:
        tuple of (nodes, links, recycling_flows)
    """
    trace = trace or _log_trace
    by_uuid = _index_by_uuid(layered_nodes)
    links = []
    recycling_flows = []

    for rel in relationships:
        source = by_uuid.get(rel.subject.uuid)
        target = by_uuid.get(rel.object.uuid)
        if source is None or target is None:
            trace("edge_skipped", {"subject": rel.subject.uuid, "object": rel.object.uuid})
            continue

        # Equal layers count as backward so links stay strictly left-to-right
        if source.layer >= target.layer:
            trace(
                "backward_flow",
                {
                    "subject": rel.subject.name,
                    "subject_layer": source.layer,
                    "object": rel.object.name,
                    "object_layer": target.layer,
                },
            )
            recycling_flows.append(rel)
            continue

        links.append(rel)
        if is_recycling_process(rel):
            recycling_flows.append(rel)

    return layered_nodes, links, recycling_flows


def _format_rate(rate: float) -> str:
    """Format a percentage with one decimal, rounding ties away from zero."""
    return str(Decimal(rate).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def compute_stats(
    relationships: list[MaterialRelationship],
    recycling_flows: list[MaterialRelationship],
) -> FlowStats:
    """Aggregate flow counts and the recycling rate.

    Precondition:
        relationships is the full list of supplied relationships
        recycling_flows is the recycling list from create_dag_compliant_flow

    Postcondition:
        total_flows counts every supplied relationship, resolved or not
        recycling_rate is the recycling share of total quantity in percent,
        formatted with one decimal place
        recycling_rate is "0" when the total quantity is not positive
        missing quantities count as 0

    Args:
        relationships: all relationships of the flow
        recycling_flows: relationships flagged as recycling

    Returns:
        FlowStats
    """
    total_quantity = sum(_flow_quantity(rel) for rel in relationships)
    recycling_quantity = sum(_flow_quantity(rel) for rel in recycling_flows)

    if total_quantity > 0:
        recycling_rate = _format_rate(recycling_quantity / total_quantity * 100)
    else:
        recycling_rate = "0"

    return FlowStats(
        total_flows=len(relationships),
        recycling_flows=len(recycling_flows),
        recycling_rate=recycling_rate,
    )


def _stage_materials(
    materials: list[MaterialNode], graph, trace: Trace
) -> list[LayeredNode]:
    """Assign a layer to every material, preserving order.

    Precondition:
        graph is the dependency graph of materials

    Postcondition:
        returns one LayeredNode per material in the same order
        x is layer * STAGE_SPACING
        is_recycling_related is True for recycled or reclaimed materials
    """
    material_types = {}
    for material in materials:
        material_types.setdefault(material.uuid, material.type)

    nodes = []
    for material in materials:
        layer = get_stage_level(material, graph, material_types)
        trace("node_staged", {"uuid": material.uuid, "name": material.name, "layer": layer})
        nodes.append(
            LayeredNode(
                uuid=material.uuid,
                name=material.name,
                type=material.type,
                category=material.category,
                color=material.color,
                layer=layer,
                x=layer * STAGE_SPACING,
                is_recycling_related=is_recycled_material(material.name),
            )
        )
    return nodes


def create_layered_layout(
    materials: list[MaterialNode] | None = None,
    relationships: list[MaterialRelationship] | None = None,
    trace: Trace | None = None,
) -> LayoutResult:
    """Lay out a material flow as strictly left-to-right stages.

    Precondition:
        materials is None or a list of MaterialNode
        relationships is None or a list of MaterialRelationship
        trace is None or a callable taking (event, details)

    Postcondition:
        returns an empty LayoutResult with recycling_rate "0" if there are no materials
        otherwise nodes has one LayeredNode per material, in input order
        links is acyclic: every link goes from a lower to a higher layer
        recycling_flows holds backward flows and forward recycling flows
        stats.total_flows equals len(relationships)
        input cycles are reported to trace as "input_cycle" events

    Args:
        materials: materials of the flow
        relationships: edges between materials
        trace: optional sink for diagnostic events, defaults to debug logging

    Returns:
        LayoutResult
    """
    if not materials:
        return LayoutResult(
            nodes=(),
            links=(),
            recycling_flows=(),
            stats=FlowStats(total_flows=0, recycling_flows=0, recycling_rate="0"),
        )

    relationships = list(relationships or [])
    trace = trace or _log_trace

    graph = build_dependency_graph(materials, relationships)
    for cycle in find_flow_cycles(graph):
        trace("input_cycle", {"uuids": cycle})

    staged = _stage_materials(materials, graph, trace)
    nodes, links, recycling_flows = create_dag_compliant_flow(staged, relationships, trace)

    return LayoutResult(
        nodes=tuple(nodes),
        links=tuple(links),
        recycling_flows=tuple(recycling_flows),
        stats=compute_stats(relationships, recycling_flows),
    )
