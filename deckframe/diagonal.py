"""Framing along angled perimeter edges.

Handles one angled edge at a time against a grid of axis-aligned members:
joists are run out to the edge, a beam is synthesized parallel to it and
tied into the nearest outer beam, and a rim joist is laid on the edge with
the orthogonal rim joists cut back to it.
"""

from __future__ import annotations

import logging

from .angled import (
    calculate_angled_beam_and_posts,
    extend_joists_to_diagonal_edges,
    get_cantilever_for_joist_size,
    get_diagonal_edges,
    get_edge_angle,
    get_perpendicular_vector,
    supports_away_from,
    trim_beams_at_intersection,
)
from .clipping import clip_member
from .config import CLIP_TOLERANCE_PIXELS, EPSILON
from .models import (
    BBox,
    BeamType,
    DeckInputs,
    DiagonalEdge,
    Footing,
    MemberKind,
    MergedStructure,
    Point,
    Post,
    SectionDimensions,
    StructuralMember,
)
from .primitives import (
    dist,
    is_point_on_segment,
    line_intersection,
    midpoint,
    point_to_segment_distance,
    polygon_bounds,
    signed_distance_to_line,
    unit_vector,
)
from .supports import (
    SupportSpec,
    distance_to_beam,
    footings_near_beam,
    generate_beam_posts,
    post_size_for_height,
    posts_near_beam,
    remove_duplicate_footings,
    remove_duplicate_posts,
    support_spec_from_inputs,
)
from .trace import trace

logger = logging.getLogger(__name__)


def inward_sign_for_edge(edge: DiagonalEdge, bbox: BBox) -> int:
    """+1 when the edge's left-hand normal points toward the footprint center."""
    nx, ny = get_perpendicular_vector(get_edge_angle(edge.p1, edge.p2))
    mid = midpoint(edge.p1, edge.p2)
    center = bbox.center
    plus = Point(x=mid.x + nx, y=mid.y + ny)
    minus = Point(x=mid.x - nx, y=mid.y - ny)
    return 1 if dist(plus, center) <= dist(minus, center) else -1


def find_nearest_outer_beam(beams: list[StructuralMember], edge: DiagonalEdge) -> int | None:
    """Index of the axis-aligned outer beam closest to the edge midpoint.

    Beams parallel to the edge can never be tied into it and are skipped.
    """
    mid = midpoint(edge.p1, edge.p2)
    edge_dir = unit_vector(edge.p1, edge.p2)
    best_index = None
    best_distance = float("inf")
    for i, beam in enumerate(beams):
        if beam.is_diagonal or beam.usage != "Outer Beam":
            continue
        axis_p1, axis_p2 = beam.axis()
        beam_dir = unit_vector(axis_p1, axis_p2)
        if beam_dir is None or edge_dir is None:
            continue
        if abs(beam_dir[0] * edge_dir[1] - beam_dir[1] * edge_dir[0]) < EPSILON:
            continue
        d = point_to_segment_distance(mid, axis_p1, axis_p2)
        if d < best_distance:
            best_index, best_distance = i, d
    return best_index


def extend_to_bounds(beam: StructuralMember, bbox: BBox) -> StructuralMember:
    """Run the beam along its own line out to the bounding-box edges it crosses."""
    direction = unit_vector(beam.p1, beam.p2)
    if direction is None:
        return beam
    ux, uy = direction
    ts = []
    for a, b in bbox.edges():
        hit = line_intersection(beam.p1, beam.p2, a, b)
        if hit is None or not is_point_on_segment(hit, a, b, CLIP_TOLERANCE_PIXELS):
            continue
        ts.append((hit.x - beam.p1.x) * ux + (hit.y - beam.p1.y) * uy)
    length_px = dist(beam.p1, beam.p2)
    before = [t for t in ts if t <= 0]
    after = [t for t in ts if t >= length_px]
    t_start = max(before) if before else 0.0
    t_end = min(after) if after else length_px
    p1 = Point(x=beam.p1.x + ux * t_start, y=beam.p1.y + uy * t_start)
    p2 = Point(x=beam.p1.x + ux * t_end, y=beam.p1.y + uy * t_end)
    return beam.moved_to(p1, p2)


def trim_rim_joists_to_edge(
    rims: list[StructuralMember],
    edge: DiagonalEdge,
    bbox: BBox,
) -> list[StructuralMember]:
    """Cut orthogonal rim joists back to the inside of an angled edge.

    Inside is the side of the edge's line holding the bounding-box center.
    A rim joist entirely outside is kept, flagged anomalous.
    """
    inside = 1 if signed_distance_to_line(bbox.center, edge.p1, edge.p2) >= 0 else -1
    result: list[StructuralMember] = []
    for rim in rims:
        if rim.is_diagonal:
            result.append(rim)
            continue
        d1 = signed_distance_to_line(rim.p1, edge.p1, edge.p2) * inside
        d2 = signed_distance_to_line(rim.p2, edge.p1, edge.p2) * inside
        p1_out = d1 < -CLIP_TOLERANCE_PIXELS
        p2_out = d2 < -CLIP_TOLERANCE_PIXELS
        if not p1_out and not p2_out:
            result.append(rim)
            continue
        if p1_out and p2_out:
            logger.warning(
                "Rim joist (%.1f, %.1f)-(%.1f, %.1f) lies outside angled edge %d; left in place",
                rim.p1.x, rim.p1.y, rim.p2.x, rim.p2.y, edge.index,
            )
            result.append(rim.model_copy(update={"is_anomalous": True}))
            continue
        hit = line_intersection(rim.p1, rim.p2, edge.p1, edge.p2)
        if hit is None:
            result.append(rim)
            continue
        trimmed = rim.moved_to(hit, rim.p2) if p1_out else rim.moved_to(rim.p1, hit)
        trace("diagonal.rim_trimmed", usage=rim.usage, length_ft=round(trimmed.length_ft, 3))
        result.append(trimmed)
    return result


def regenerate_supports(
    beams: list[StructuralMember],
    spec: SupportSpec,
    joints: list[tuple[Post, Footing]],
) -> tuple[list[Post], list[Footing]]:
    """Supports for the final beams, with one shared post at each beam joint.

    A joint only counts when it still sits on a final beam. Posts of the
    beams meeting there that would crowd it are dropped.
    """
    live = [
        (post, footing) for post, footing in joints
        if any(distance_to_beam(post.x, post.y, b) <= CLIP_TOLERANCE_PIXELS for b in beams)
    ]
    posts: list[Post] = []
    footings: list[Footing] = []
    for beam in beams:
        beam_posts, beam_footings = generate_beam_posts(beam, spec)
        for post, _ in live:
            if distance_to_beam(post.x, post.y, beam) <= CLIP_TOLERANCE_PIXELS:
                beam_posts, beam_footings = supports_away_from(beam_posts, beam_footings, Point(x=post.x, y=post.y))
        posts.extend(beam_posts)
        footings.extend(beam_footings)
    posts.extend(post for post, _ in live)
    footings.extend(footing for _, footing in live)
    return remove_duplicate_posts(posts), remove_duplicate_footings(footings)


def handle_diagonal_edges(
    structure: MergedStructure,
    original_points: list[Point],
    inputs: DeckInputs,
    ledger_wall_index: int | None,
    is_ledger_horizontal: bool,
    extends_positive_dir: bool,
) -> MergedStructure:
    """Frame every angled perimeter edge except the ledger wall.

    Every member created or reshaped here is clipped against the footprint
    before it is returned, and all supports are regenerated from the final
    beams.
    """
    edges = [e for e in get_diagonal_edges(original_points) if e.index != ledger_wall_index]
    if not edges:
        return structure

    logger.info("Handling %d angled edge(s)", len(edges))
    bbox = polygon_bounds(original_points)
    dims = SectionDimensions(
        width_ft=bbox.width, height_ft=bbox.height,
        min_x=bbox.x0, max_x=bbox.x1, min_y=bbox.y0, max_y=bbox.y1,
    )
    spec = support_spec_from_inputs(inputs)
    post_size = post_size_for_height(inputs.deck_height_in)
    beam_ply = 3 if post_size == "6x6" else 2
    joist_size = inputs.joist_size or (structure.joists[0].size if structure.joists else "")
    beam_size = structure.beams[0].size if structure.beams else joist_size
    setback_ft = 0.0 if inputs.beam_type == BeamType.FLUSH else get_cantilever_for_joist_size(joist_size)

    extended = extend_joists_to_diagonal_edges(
        structure.joists, edges, is_ledger_horizontal, dims, extends_positive_dir,
    )
    # Joist pieces lying wholly past an angled edge have nothing to run out to
    joists = [j for j in (clip_member(j, original_points) for j in extended) if j is not None]
    beams = list(structure.beams)
    rims = list(structure.rim_joists)
    joints: list[tuple[Post, Footing]] = []

    for edge in edges:
        angled = calculate_angled_beam_and_posts(
            edge.p1, edge.p2, setback_ft, beam_size, beam_ply, post_size,
            inputs.deck_height_in, spec.footing_type, "Diagonal Beam", inputs.beam_type,
            inward_sign_for_edge(edge, bbox),
        )
        diag_beam = clip_member(angled.beam, original_points)

        if diag_beam is not None:
            outer_index = find_nearest_outer_beam(beams, edge)
            if outer_index is not None:
                outer = beams[outer_index]
                trimmed = trim_beams_at_intersection(
                    outer, diag_beam,
                    posts_near_beam(structure.posts, outer), angled.posts,
                    footings_near_beam(structure.footings, outer), angled.footings,
                    post_size, inputs.deck_height_in, spec.footing_type,
                    bbox.center,
                )
                outer_beam = clip_member(trimmed.outer_beam, original_points)
                diag_beam = clip_member(trimmed.diagonal_beam, original_points)
                if outer_beam is not None:
                    beams[outer_index] = outer_beam
                else:
                    beams.pop(outer_index)
                if diag_beam is not None:
                    beams.append(diag_beam)
                if trimmed.intersection_post is not None and trimmed.intersection_footing is not None:
                    joints.append((trimmed.intersection_post, trimmed.intersection_footing))
            else:
                diag_beam = clip_member(extend_to_bounds(diag_beam, bbox), original_points)
                if diag_beam is not None:
                    beams.append(diag_beam)

        rims = trim_rim_joists_to_edge(rims, edge, bbox)
        diag_rim = clip_member(StructuralMember(
            kind=MemberKind.RIM_JOIST,
            p1=edge.p1,
            p2=edge.p2,
            size=joist_size,
            usage="Diagonal Rim Joist",
            is_diagonal=True,
        ), original_points)
        if diag_rim is not None:
            rims.append(diag_rim)

    # Anomalous rims stay exactly as they were
    final_rims = []
    for rim in rims:
        if rim.is_anomalous:
            final_rims.append(rim)
            continue
        clipped = clip_member(rim, original_points)
        if clipped is not None:
            final_rims.append(clipped)
    final_beams = [b for b in (clip_member(b, original_points) for b in beams) if b is not None]
    posts, footings = regenerate_supports(final_beams, spec, joints)

    trace("diagonal.done", edges=len(edges), beams=len(final_beams), rim_joists=len(final_rims),
          joists_dropped=len(extended) - len(joists))
    return structure.model_copy(update={
        "beams": final_beams,
        "joists": joists,
        "rim_joists": final_rims,
        "posts": posts,
        "footings": footings,
    })
