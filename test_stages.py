"""Tests for stages module"""

import math

from flow_graph import build_dependency_graph
from materials import MaterialNode, MaterialRef, MaterialRelationship
from stages import (
    INTERMEDIATE_FLOOR_RULES,
    STAGE_BANDS,
    get_stage_band,
    get_stage_color,
    get_stage_level,
    get_stage_name,
    is_recycled_material,
)


def _stage(material, inputs=(), outputs=()):
    """Stage a material connected to the given input and output materials"""
    materials = [material, *inputs, *outputs]
    relationships = [
        MaterialRelationship("IS_INPUT_OF", MaterialRef(m.uuid, m.name), MaterialRef(material.uuid, material.name), 1)
        for m in inputs
    ] + [
        MaterialRelationship("IS_INPUT_OF", MaterialRef(material.uuid, material.name), MaterialRef(m.uuid, m.name), 1)
        for m in outputs
    ]
    graph = build_dependency_graph(materials, relationships)
    types = {m.uuid: m.type for m in materials}
    return get_stage_level(material, graph, types)


def _many(kind, count, prefix):
    """Build count materials of the given type"""
    return [MaterialNode(f"{prefix}{i}", f"{prefix} {i}", kind) for i in range(count)]


def test_input_stages():
    """primary inputs should sit at 0 and recycled inputs at 0.2"""
    assert _stage(MaterialNode("w", "Water", "input")) == 0
    assert _stage(MaterialNode("r", "Recycled Steel", "input")) == 0.2
    assert _stage(MaterialNode("t", "Reclaimed Timber", "INPUT")) == 0.2


def test_intermediate_depth_from_inputs():
    """intermediates should sit half a stage behind their deepest input"""
    raw = MaterialNode("raw", "Gravel", "input")
    mix = MaterialNode("mix", "Premix", "intermediate")
    assert _stage(MaterialNode("c", "Ready-Mix Concrete", "intermediate"), inputs=[raw]) == 1.0
    assert _stage(MaterialNode("c", "Ready-Mix Concrete", "intermediate"), inputs=[mix]) == 1.5
    assert _stage(MaterialNode("c", "Ready-Mix Concrete", "intermediate")) == 1.0


def test_intermediate_name_floors():
    """name floors should raise shallow intermediates"""
    assert _stage(MaterialNode("w", "Window Frame", "intermediate")) == 1.4
    assert _stage(MaterialNode("s", "Precast Stairs", "intermediate")) == 1.6
    assert _stage(MaterialNode("l", "Lift Shaft", "intermediate")) == 1.8
    assert _stage(MaterialNode("e", "Elevator Car", "intermediate")) == 1.8
    assert _stage(MaterialNode("r", "Reinforced Steel Cage", "intermediate")) == 2.2
    assert _stage(MaterialNode("m", "Mortar", "intermediate")) == 1.5


def test_intermediate_floors_never_lower_depth():
    """a deep intermediate should keep its depth above a lower floor"""
    premix = MaterialNode("p", "Premix", "intermediate")
    window = MaterialNode("w", "Window Frame", "intermediate")
    assert _stage(window, inputs=[premix]) == 1.5


def test_intermediate_connectivity_floors():
    """many inputs or many outputs should push an intermediate further right"""
    mortar = MaterialNode("m", "Mortar", "intermediate")
    assert _stage(mortar, inputs=_many("input", 3, "in")) == 2.2
    assert _stage(mortar, outputs=_many("output", 3, "out")) == 1.8
    assert _stage(mortar, inputs=_many("input", 2, "in")) == 1.5


def test_intermediate_first_floor_rule_wins():
    """only the first matching floor rule should apply"""
    concrete = MaterialNode("c", "Reinforced Concrete", "intermediate")
    assert _stage(concrete, inputs=_many("input", 3, "in")) == 1.0


def test_intermediate_ignores_output_typed_inputs():
    """inputs that are neither inputs nor intermediates add no depth"""
    slag = MaterialNode("slag", "Slag", "output")
    assert _stage(MaterialNode("m", "Mortar", "intermediate"), inputs=[slag]) == 1.5


def test_intermediate_depth_ignores_is_output_of_edges():
    """IS_OUTPUT_OF edges should not deepen an intermediate"""
    concrete = MaterialNode("c", "Ready-Mix Concrete", "intermediate")
    premix = MaterialNode("p", "Premix", "intermediate")
    materials = [concrete, premix]
    relationships = [
        MaterialRelationship(
            "IS_OUTPUT_OF", MaterialRef("c", "Ready-Mix Concrete"), MaterialRef("p", "Premix"), 1
        )
    ]
    graph = build_dependency_graph(materials, relationships)
    types = {m.uuid: m.type for m in materials}

    assert graph["c"].inputs == {"p"}
    assert get_stage_level(concrete, graph, types) == 1.0


def test_output_bands():
    """outputs should be placed by the first matching name band"""
    assert _stage(MaterialNode("a", "Completed Building", "output")) == 3.8
    assert _stage(MaterialNode("b", "Roof Tiles", "output")) == 3.2
    assert _stage(MaterialNode("c", "Floor Slab", "output")) == 3.2
    assert _stage(MaterialNode("d", "Metal Scrap", "output")) == 4.2
    assert _stage(MaterialNode("e", "CO2 Emission", "output")) == 4.8
    assert _stage(MaterialNode("f", "Gravel Bed", "output")) == 3.0
    assert _stage(MaterialNode("g", "Wallpaper Scrap", "output")) == 3.2


def test_unknown_type_default():
    """unknown or missing types should get the default stage"""
    assert _stage(MaterialNode("p", "Pumping", "process")) == 1.5
    assert _stage(MaterialNode("q", "Quarry", "")) == 1.5


def test_floor_rules_end_with_catch_all():
    """the last floor rule should match anything"""
    assert INTERMEDIATE_FLOOR_RULES[-1].applies("anything", 0, 0)


def test_is_recycled_material():
    """recycled and reclaimed names should be detected case-insensitively"""
    assert is_recycled_material("RECYCLED Glass")
    assert is_recycled_material("reclaimed brick")
    assert not is_recycled_material("Glass")
    assert not is_recycled_material(None)


def test_stage_colors_and_names():
    """stage lookups should follow the display bands"""
    assert get_stage_color(0.3) == "#1E40AF"
    assert get_stage_name(0.3) == "Primary Material Inputs"
    assert get_stage_color(3.6) == "#F59E0B"
    assert get_stage_name(3.6) == "Waste Streams"
    assert get_stage_name(5) == "Final Disposal & Environment"


def test_stage_band_boundaries():
    """band edges should be inclusive only for the first band"""
    assert get_stage_name(0.5) == "Primary Material Inputs"
    assert get_stage_name(0.9) == "Recycled Material Inputs"
    assert get_stage_name(1) == "Early Processing"
    assert get_stage_name(2.9) == "Main Processing"
    assert get_stage_name(3) == "Products & Components"
    assert get_stage_name(3.5) == "Waste Streams"
    assert get_stage_name(4.5) == "Final Disposal & Environment"


def test_stage_lookup_totality():
    """every probe stage should have a color and a name"""
    for stage in (-1, 0, 0.4, 0.9, 1.5, 2.9, 3.2, 3.6, 4.6, 100, math.inf, math.nan):
        assert get_stage_color(stage)
        assert get_stage_name(stage)
    assert get_stage_band(-1) is STAGE_BANDS[0]
    assert get_stage_band(math.nan) is STAGE_BANDS[-1]


def test_classifier_outputs_map_to_matching_bands():
    """classifier stages should fall in bands named for their role"""
    assert get_stage_name(0) == "Primary Material Inputs"
    assert get_stage_name(0.2) == "Primary Material Inputs"
    assert get_stage_name(1.5) == "Early Processing"
    assert get_stage_name(2.2) == "Main Processing"
    assert get_stage_name(3.2) == "Products & Components"
    assert get_stage_name(4.2) == "Waste Streams"
    assert get_stage_name(4.8) == "Final Disposal & Environment"
