"""Stage classification of materials and stage display lookups.

Stages are real-valued horizontal positions in a left-to-right flow diagram:
primary inputs near 0, processing between 1 and 3, products around 3 to 3.8,
waste streams around 4.2 and environmental disposal at 4.8.
"""

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from frozendict import frozendict

from materials import MaterialNode, MaterialType

INPUT_STAGE = 0.0
RECYCLED_INPUT_STAGE = 0.2
DEFAULT_OUTPUT_STAGE = 3.0
DEFAULT_STAGE = 1.5

# Depth contributed by a direct input of an intermediate, by the input's type
_DEPTH_BY_INPUT_TYPE = frozendict({
    MaterialType.INPUT.value: 0.5,
    MaterialType.INTERMEDIATE.value: 1.0,
})
_DEPTH_STEP = 0.5
_UNCONNECTED_DEPTH = 1.0

_RECYCLED_KEYWORDS = ("recycled", "reclaimed")


@dataclass(frozen=True)
class StageRule:
    """a floor applied to an intermediate's stage when its predicate matches"""

    label: str
    applies: Callable[[str, int, int], bool]
    floor: float


@dataclass(frozen=True)
class StageBand:
    """a stage range with its display color and name"""

    upper: float
    inclusive: bool
    color: str
    name: str


def _name_contains(*keywords: str) -> Callable[[str, int, int], bool]:
    """Build a rule predicate matching any keyword in a lower-cased name."""
    return lambda name, input_count, output_count: any(k in name for k in keywords)


# First matching rule wins; its floor only raises the depth-derived stage.
INTERMEDIATE_FLOOR_RULES = (
    StageRule("concrete", _name_contains("concrete"), 1.0),
    StageRule("window", _name_contains("window"), 1.4),
    StageRule("stairs", _name_contains("stairs"), 1.6),
    StageRule("lift", _name_contains("lift", "elevator"), 1.8),
    StageRule(
        "complex processing",
        lambda name, input_count, output_count: "reinforced" in name or input_count > 2,
        2.2,
    ),
    StageRule(
        "distribution",
        lambda name, input_count, output_count: output_count > 2,
        1.8,
    ),
    StageRule("processing", lambda name, input_count, output_count: True, 1.5),
)

# First matching band wins.
OUTPUT_STAGE_BANDS = (
    (("building", "completed"), 3.8),
    (("foundation", "wall", "floor", "roof"), 3.2),
    (("waste", "scrap", "debris"), 4.2),
    (("emission", "runoff", "landfill"), 4.8),
)

STAGE_BANDS = (
    StageBand(0.5, True, "#1E40AF", "Primary Material Inputs"),
    StageBand(1.0, False, "#3B82F6", "Recycled Material Inputs"),
    StageBand(2.0, False, "#8B5CF6", "Early Processing"),
    StageBand(3.0, False, "#EF4444", "Main Processing"),
    StageBand(3.5, False, "#10B981", "Products & Components"),
    StageBand(4.5, False, "#F59E0B", "Waste Streams"),
    StageBand(math.inf, False, "#DC2626", "Final Disposal & Environment"),
)


def is_recycled_material(name: str | None) -> bool:
    """Check if a material name denotes a recycled or reclaimed material.

    Precondition:
        name is a string or None

    Postcondition:
        returns True if the lower-cased name contains "recycled" or "reclaimed"
        returns False otherwise, including for None

    Args:
        name: material name

    Returns:
        True if the material is recycled, False otherwise
    """
    lowered = (name or "").lower()
    return any(keyword in lowered for keyword in _RECYCLED_KEYWORDS)


def _intermediate_depth(
    feeders: frozenset[str], material_types: Mapping[str, str]
) -> float:
    """Compute how deep an intermediate sits behind its direct inputs.

    Precondition:
        feeders is the set of IS_INPUT_OF subjects targeting the material
        material_types maps material uuids to their type strings

    Postcondition:
        returns 1.0 if no input resolves to a known material
        otherwise returns max(input contributions, default 0) + 0.5
        inputs of type "input" contribute 0.5, "intermediate" contributes 1.0
        inputs of other types contribute nothing

    Args:
        feeders: uuids feeding the material under IS_INPUT_OF
        material_types: uuid to type lookup

    Returns:
        depth of the intermediate
    """
    resolved = [uuid for uuid in feeders if uuid in material_types]
    if not resolved:
        return _UNCONNECTED_DEPTH

    contributions = [
        _DEPTH_BY_INPUT_TYPE[kind]
        for kind in ((material_types[uuid] or "").lower() for uuid in resolved)
        if kind in _DEPTH_BY_INPUT_TYPE
    ]
    return max(contributions, default=0) + _DEPTH_STEP


def _intermediate_floor(name: str, input_count: int, output_count: int) -> float:
    """Return the floor of the first rule in INTERMEDIATE_FLOOR_RULES that matches."""
    for rule in INTERMEDIATE_FLOOR_RULES:
        if rule.applies(name, input_count, output_count):
            return rule.floor
    return DEFAULT_STAGE


def _output_stage(name: str) -> float:
    """Return the stage of the first output band whose keywords match the name."""
    for keywords, stage in OUTPUT_STAGE_BANDS:
        if any(keyword in name for keyword in keywords):
            return stage
    return DEFAULT_OUTPUT_STAGE


def get_stage_level(
    material: MaterialNode, graph: Mapping, material_types: Mapping[str, str]
) -> float:
    """Assign a stage to a material.

    Precondition:
        material is a MaterialNode
        graph is a dependency graph from build_dependency_graph
        material_types maps every material uuid of the flow to its type

    Postcondition:
        inputs get 0.2 if recycled or reclaimed, else 0
        intermediates get their depth raised to the first matching floor rule
        outputs get the first matching OUTPUT_STAGE_BANDS stage, else 3.0
        any other type gets 1.5
        type and name comparisons are case-insensitive

    Args:
        material: material to classify
        graph: dependency graph of the flow
        material_types: uuid to type lookup for resolving direct inputs

    Returns:
        stage of the material
    """
    kind = (material.type or "").lower()
    name = (material.name or "").lower()

    if kind == MaterialType.INPUT:
        return RECYCLED_INPUT_STAGE if is_recycled_material(name) else INPUT_STAGE

    if kind == MaterialType.INTERMEDIATE:
        entry = graph.get(material.uuid)
        inputs = entry.inputs if entry else frozenset()
        outputs = entry.outputs if entry else frozenset()
        feeders = entry.feeders if entry else frozenset()
        depth = _intermediate_depth(feeders, material_types)
        return max(depth, _intermediate_floor(name, len(inputs), len(outputs)))

    if kind == MaterialType.OUTPUT:
        return _output_stage(name)

    return DEFAULT_STAGE


def get_stage_band(stage: float) -> StageBand:
    """Look up the display band containing a stage.

    Precondition:
        stage is a number (values outside [0, 5] are allowed)

    Postcondition:
        returns the first band whose upper bound the stage does not exceed
        negative stages fall in the first band
        stages above 4.5, infinity and NaN fall in the last band

    Args:
        stage: stage value

    Returns:
        StageBand containing the stage
    """
    for band in STAGE_BANDS:
        if stage < band.upper or (band.inclusive and stage == band.upper):
            return band
    return STAGE_BANDS[-1]


def get_stage_color(stage: float) -> str:
    """Display color of a stage, as a hex string."""
    return get_stage_band(stage).color


def get_stage_name(stage: float) -> str:
    """Human-readable name of a stage."""
    return get_stage_band(stage).name
