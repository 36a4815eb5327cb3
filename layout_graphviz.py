"""Graphviz export of material flow layouts."""

import graphviz

from materials import LayoutResult, MaterialRelationship
from stages import get_stage_color, get_stage_name

_RECYCLING_EDGE_COLOR = "#10B981"


def _format_quantity(rel: MaterialRelationship) -> str:
    """Format a relationship quantity and unit as an edge label.

    Precondition:
        rel is a MaterialRelationship

    Postcondition:
        returns "" if quantity is None
        integral quantities are printed without a decimal point
        unit is appended after a space when present

    Args:
        rel: relationship to label

    Returns:
        label string such as "180 kg"
    """
    if rel.quantity is None:
        return ""
    quantity = rel.quantity
    text = str(int(quantity)) if float(quantity).is_integer() else f"{quantity:g}"
    return f"{text} {rel.unit}".strip()


def _edge_label(rel: MaterialRelationship) -> str:
    """Combine process name and quantity into a multi-line edge label."""
    parts = [part for part in (rel.process_name, _format_quantity(rel)) if part]
    return "\n".join(parts)


def _add_stage_clusters(dot: graphviz.Digraph, result: LayoutResult) -> dict[str, str]:
    """Add one cluster of same-rank nodes per distinct layer.

    Precondition:
        dot is graphviz.Digraph
        result is a LayoutResult

    Postcondition:
        each distinct layer gets a cluster labeled with its stage name and layer
        clusters are added in ascending layer order
        nodes are filled with their own color, or the stage color if they have none
        recycling-related nodes get a dashed green border
        returns mapping of material uuid to graphviz node id (first node wins)

    Args:
        dot: graph to add clusters to
        result: layout to draw

    Returns:
        dict of {uuid: node_id}
    """
    node_ids = {}
    layers = sorted({node.layer for node in result.nodes})

    for cluster_id, layer in enumerate(layers):
        with dot.subgraph(name=f"cluster_stage_{cluster_id}") as stage:
            stage.attr(label=f"{get_stage_name(layer)} ({layer:g})", rank="same")
            stage.attr(style="rounded", color="lightgrey")

            for index, node in enumerate(result.nodes):
                if node.layer != layer or node.uuid in node_ids:
                    continue
                node_id = f"Material_{index}"
                node_ids[node.uuid] = node_id
                border = (
                    {"color": _RECYCLING_EDGE_COLOR, "style": "filled,dashed", "penwidth": "3"}
                    if node.is_recycling_related
                    else {"style": "filled"}
                )
                stage.node(
                    node_id,
                    node.name or node.uuid,
                    shape="box",
                    fillcolor=node.color or get_stage_color(node.layer),
                    **border,
                )

    return node_ids


def layout_to_graphviz(result: LayoutResult) -> graphviz.Digraph:
    """Build a left-to-right graphviz digraph of a layout.

    Precondition:
        result is a LayoutResult from create_layered_layout

    Postcondition:
        returns graphviz.Digraph with rankdir LR
        every node is drawn inside the cluster of its layer
        links are solid edges that drive the ranking
        recycling flows missing from links are dashed green edges with
        constraint=false, so the drawing stays acyclic
        forward recycling flows are drawn once, as a green link

    Args:
        result: layout to draw

    Returns:
        graphviz.Digraph describing the layout
    """
    dot = graphviz.Digraph(comment="Material Flow Layout")
    dot.attr(rankdir="LR")

    node_ids = _add_stage_clusters(dot, result)
    recycling = set(result.recycling_flows)
    links = set(result.links)

    for rel in result.links:
        color = _RECYCLING_EDGE_COLOR if rel in recycling else "black"
        dot.edge(
            node_ids[rel.subject.uuid],
            node_ids[rel.object.uuid],
            label=_edge_label(rel),
            color=color,
            penwidth="2",
        )

    for rel in result.recycling_flows:
        if rel in links:
            continue
        dot.edge(
            node_ids[rel.subject.uuid],
            node_ids[rel.object.uuid],
            label=_edge_label(rel),
            color=_RECYCLING_EDGE_COLOR,
            style="dashed",
            constraint="false",
        )

    return dot
