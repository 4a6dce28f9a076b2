"""Multi-section pipeline orchestrator.

Frames each rectangle independently, merges the results into one structure
for the whole footprint, handles angled edges and runs the quality gates.
"""

from __future__ import annotations

import logging

from .angled import get_diagonal_edges
from .config import EPSILON, PIXELS_PER_FOOT
from .diagonal import handle_diagonal_edges
from .framing import calculate_structure
from .ledger import combine_section_ledgers, ledger_fastener_count
from .merging import (
    merge_collinear_beams,
    merge_collinear_joists,
    merge_collinear_rim_joists,
    total_length_ft,
)
from .models import (
    AttachmentType,
    CalculationError,
    DeckInputs,
    JoistDirection,
    MergedStructure,
    Point,
    RectangularSection,
    SectionDimensions,
    SectionResult,
    StructuralMember,
)
from .primitives import polygon_bounds
from .quality import run_quality_gates
from .supports import (
    recalculate_posts_and_footings,
    support_spec_from_inputs,
    support_spec_from_sections,
)
from .trace import trace

logger = logging.getLogger(__name__)


# --- Section orientation ---


def _is_edge_horizontal(p1: Point, p2: Point) -> bool:
    return abs(p1.x - p2.x) > abs(p1.y - p2.y)


def edges_overlap(a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
    """True when b lies on a's line and the two segments share some extent."""
    cross1 = (a2.x - a1.x) * (b1.y - a1.y) - (a2.y - a1.y) * (b1.x - a1.x)
    cross2 = (a2.x - a1.x) * (b2.y - a1.y) - (a2.y - a1.y) * (b2.x - a1.x)
    if abs(cross1) > EPSILON or abs(cross2) > EPSILON:
        return False

    if abs(a1.y - a2.y) < EPSILON:
        return max(a1.x, a2.x) >= min(b1.x, b2.x) - EPSILON and min(a1.x, a2.x) <= max(b1.x, b2.x) + EPSILON
    if abs(a1.x - a2.x) < EPSILON:
        return max(a1.y, a2.y) >= min(b1.y, b2.y) - EPSILON and min(a1.y, a2.y) <= max(b1.y, b2.y) + EPSILON
    return False


def find_ledger_edge_in_section(section: RectangularSection) -> int:
    """Index of the rectangle edge lying on the section's first ledger wall, else 0."""
    if not section.ledger_walls:
        return 0
    wall = section.ledger_walls[0]
    corners = section.corners
    for i in range(len(corners)):
        if edges_overlap(corners[i], corners[(i + 1) % len(corners)], wall.p1, wall.p2):
            return i
    logger.warning("Ledger wall not found on any section edge; using edge 0")
    return 0


def determine_global_joist_direction(
    selected_wall_indices: list[int],
    original_points: list[Point],
) -> JoistDirection:
    """Joists run perpendicular to the first selected wall across the whole deck.

    With no wall selected (a free-standing deck) the first footprint edge
    sets the orientation.
    """
    if not original_points or len(original_points) < 2:
        return JoistDirection(is_ledger_horizontal=True)
    index = selected_wall_indices[0] if selected_wall_indices else None
    p1 = original_points[(index or 0) % len(original_points)]
    p2 = original_points[((index or 0) + 1) % len(original_points)]
    return JoistDirection(
        is_ledger_horizontal=_is_edge_horizontal(p1, p2),
        ledger_wall_index=index,
        ledger_p1=p1 if index is not None else None,
        ledger_p2=p2 if index is not None else None,
    )


def _edge_matching_orientation(points: list[Point], horizontal: bool, fallback: int = 0) -> int:
    for i in range(len(points)):
        if _is_edge_horizontal(points[i], points[(i + 1) % len(points)]) == horizontal:
            return i
    return fallback


def reorient_section_for_global_joist_direction(
    points: list[Point],
    ledger_index: int,
    direction: JoistDirection,
) -> int:
    """Ledger edge index to use so this section's joists follow the deck-wide direction."""
    p1 = points[ledger_index]
    p2 = points[(ledger_index + 1) % len(points)]
    if _is_edge_horizontal(p1, p2) == direction.is_ledger_horizontal:
        return ledger_index
    return _edge_matching_orientation(points, direction.is_ledger_horizontal, ledger_index)


def calculate_section_dimensions(section: RectangularSection | None) -> SectionDimensions:
    if section is None or len(section.corners) < 4:
        raise ValueError("Invalid rectangle for dimension calculation")
    xs = [c.x for c in section.corners]
    ys = [c.y for c in section.corners]
    return SectionDimensions(
        width_ft=(max(xs) - min(xs)) / PIXELS_PER_FOOT,
        height_ft=(max(ys) - min(ys)) / PIXELS_PER_FOOT,
        min_x=min(xs),
        max_x=max(xs),
        min_y=min(ys),
        max_y=max(ys),
    )


def is_simple_rectangle(sections: list[RectangularSection] | None) -> bool:
    return bool(sections) and len(sections) == 1


# --- Merge ---


def handle_beam_merging(beams: list[StructuralMember], polygon: list[Point] | None = None) -> list[StructuralMember]:
    if not beams:
        return []
    return merge_collinear_beams(beams, polygon)


def _with_section(members: list, section_id: int) -> list:
    return [m.model_copy(update={"section_id": section_id}) for m in members]


def merge_section_results(
    section_results: list[SectionResult],
    polygon: list[Point] | None = None,
    inputs: DeckInputs | None = None,
) -> MergedStructure | CalculationError:
    """
    Merge per-section framing into one structure.

    Args:
        section_results: Successfully framed sections, in section order.
        polygon: Original footprint; merged members are re-clipped against it.
        inputs: Source of post size and footing type for regenerated supports.
            When absent they are taken from the sections' own posts.

    Returns:
        MergedStructure, or CalculationError when there is nothing to merge.
    """
    if not section_results:
        return CalculationError(error="No section results to merge")

    if len(section_results) == 1:
        structure = section_results[0].structure
        return MergedStructure(
            ledger=structure.ledger,
            beams=structure.beams,
            joists=structure.joists,
            rim_joists=structure.rim_joists,
            posts=structure.posts,
            footings=structure.footings,
            mid_span_blocking=structure.mid_span_blocking,
            picture_frame_blocking=structure.picture_frame_blocking,
        )

    logger.info("Merging results from %d sections", len(section_results))
    beams: list[StructuralMember] = []
    joists: list[StructuralMember] = []
    rims: list[StructuralMember] = []
    mid_span_blocking: list[StructuralMember] = []
    picture_frame_blocking: list[StructuralMember] = []
    for i, result in enumerate(section_results):
        section_id = i + 1
        structure = result.structure
        beams.extend(_with_section(structure.beams, section_id))
        joists.extend(_with_section(structure.joists, section_id))
        rims.extend(_with_section(structure.rim_joists, section_id))
        mid_span_blocking.extend(_with_section(structure.mid_span_blocking, section_id))
        picture_frame_blocking.extend(_with_section(structure.picture_frame_blocking, section_id))

    merged_beams = handle_beam_merging(beams, polygon)
    merged_joists = merge_collinear_joists(joists, polygon)
    merged_rims = merge_collinear_rim_joists(rims, polygon)

    spec = support_spec_from_inputs(inputs) if inputs is not None else support_spec_from_sections(section_results)
    posts, footings = recalculate_posts_and_footings(merged_beams, spec)

    trace("merge.sections", sections=len(section_results),
          beams=(len(beams), len(merged_beams)),
          joists=(len(joists), len(merged_joists)),
          rim_joists=(len(rims), len(merged_rims)))
    return MergedStructure(
        ledger=combine_section_ledgers(section_results),
        beams=merged_beams,
        joists=merged_joists,
        rim_joists=merged_rims,
        posts=posts,
        footings=footings,
        mid_span_blocking=mid_span_blocking,
        picture_frame_blocking=picture_frame_blocking,
    )


# --- Pipeline ---


def _calculate_section(
    index: int,
    section: RectangularSection,
    inputs: DeckInputs,
    direction: JoistDirection,
) -> SectionResult | None:
    dims = calculate_section_dimensions(section)
    points = list(section.corners)
    floating = False
    section_inputs = inputs

    if section.is_ledger_rectangle and section.ledger_walls:
        ledger_index = reorient_section_for_global_joist_direction(
            points, find_ledger_edge_in_section(section), direction,
        )
    elif section.is_ledger_rectangle:
        # Collinear with the main ledger in an L-shape but holding no wall of its own
        ledger_index = reorient_section_for_global_joist_direction(
            points, _edge_matching_orientation(points, direction.is_ledger_horizontal), direction,
        )
    else:
        floating = True
        ledger_index = _edge_matching_orientation(points, direction.is_ledger_horizontal)
        section_inputs = inputs.model_copy(update={"attachment_type": AttachmentType.FLOATING})

    structure = calculate_structure(points, ledger_index, section_inputs, dims)
    if structure.error:
        logger.warning("Section %d calculation failed: %s", index + 1, structure.error)
        return None
    logger.info("Section %d framed (%s, ledger edge %d)", index + 1,
                "floating" if floating else "ledger", ledger_index)
    return SectionResult(
        section_index=index,
        section=section,
        dimensions=dims,
        structure=structure,
        is_floating_section=floating,
    )


def _extends_positive(direction: JoistDirection, polygon: list[Point]) -> bool:
    if direction.ledger_p1 is None or direction.ledger_p2 is None or len(polygon) < 3:
        return True
    center = polygon_bounds(polygon).center
    if direction.is_ledger_horizontal:
        return center.y > (direction.ledger_p1.y + direction.ledger_p2.y) / 2
    return center.x > (direction.ledger_p1.x + direction.ledger_p2.x) / 2


def calculate_multi_section_structure(
    sections: list[RectangularSection],
    inputs: DeckInputs,
    selected_wall_indices: list[int],
    original_points: list[Point],
) -> MergedStructure | CalculationError:
    """
    Full framing pipeline for a decomposed footprint.

    Args:
        sections: Rectangles the footprint decomposes into.
        inputs: Deck inputs, joist size already chosen.
        selected_wall_indices: Footprint edges attached to the house; the
            first one fixes the joist direction.
        original_points: The footprint polygon.

    Returns:
        MergedStructure with quality report and diagnostics, or
        CalculationError. Unexpected failures are reported, never raised.
    """
    if not sections:
        return CalculationError(error="No rectangular sections provided for calculation")

    try:
        diagnostics: dict = {}
        polygon = original_points if original_points and len(original_points) >= 3 else None
        direction = determine_global_joist_direction(selected_wall_indices, original_points)
        diagnostics["section_count"] = len(sections)
        diagnostics["joists_run_vertically"] = direction.joists_run_vertically

        section_results = []
        for i, section in enumerate(sections):
            result = _calculate_section(i, section, inputs, direction)
            if result is not None:
                section_results.append(result)

        if not section_results:
            return CalculationError(error="All section calculations failed")
        diagnostics["sections_calculated"] = len(section_results)
        diagnostics["beams_before_merge"] = sum(len(r.structure.beams) for r in section_results)
        diagnostics["joists_before_merge"] = sum(len(r.structure.joists) for r in section_results)
        diagnostics["rim_joists_before_merge"] = sum(len(r.structure.rim_joists) for r in section_results)

        merged = merge_section_results(section_results, polygon, inputs)
        if isinstance(merged, CalculationError):
            return merged

        if polygon is not None:
            diagonal_edges = [e for e in get_diagonal_edges(polygon) if e.index != direction.ledger_wall_index]
            diagnostics["diagonal_edge_count"] = len(diagonal_edges)
            if diagonal_edges:
                merged = handle_diagonal_edges(
                    merged, polygon, inputs, direction.ledger_wall_index,
                    direction.is_ledger_horizontal, _extends_positive(direction, polygon),
                )

        diagnostics["beam_count"] = len(merged.beams)
        diagnostics["joist_count"] = len(merged.joists)
        diagnostics["rim_joist_count"] = len(merged.rim_joists)
        diagnostics["post_count"] = len(merged.posts)
        diagnostics["beam_length_ft"] = round(total_length_ft(merged.beams), 2)
        if merged.ledger is not None:
            diagnostics["ledger_length_ft"] = round(merged.ledger.length_ft, 2)
            diagnostics["ledger_fastener_count"] = ledger_fastener_count(merged.ledger)

        quality = run_quality_gates(merged, polygon, expects_ledger=inputs.attachment_type == AttachmentType.HOUSE_RIM)
        logger.info("Multi-section calculation complete: %d beams, %d joists, %d posts (quality %s)",
                    len(merged.beams), len(merged.joists), len(merged.posts), quality.overall.value)
        return merged.model_copy(update={"quality": quality, "diagnostics": diagnostics})

    except Exception as e:
        logger.exception("Multi-section calculation error")
        return CalculationError(error=f"Multi-section calculation failed: {e}")
