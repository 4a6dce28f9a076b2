"""Geometry for footprint edges that are neither horizontal nor vertical.

Decks decompose into axis-aligned rectangles, so an angled edge is the one
place where members have to be synthesized along a non-orthogonal line.
"""

from __future__ import annotations

import math

from .config import (
    CLIP_TOLERANCE_PIXELS,
    DIAGONAL_AXIS_TOLERANCE_PIXELS,
    PIXELS_PER_FOOT,
    POST_INSET_FEET,
)
from .models import (
    AngledBeamResult,
    BeamTrimResult,
    BeamType,
    DiagonalEdge,
    Footing,
    MemberKind,
    Point,
    Post,
    SectionDimensions,
    StructuralMember,
)
from .primitives import dist, is_point_on_segment, line_intersection, signed_distance_to_line
from .supports import SupportSpec, generate_beam_posts
from .trace import trace

# Allowed joist overhang past a drop beam, in feet
JOIST_CANTILEVER_FEET = {
    "2x6": 1.0,
    "2x8": 1.5,
    "2x10": 2.0,
    "2x12": 2.0,
}

# Supports closer than this to a beam-to-beam joint give way to the joint post
JOINT_CLEARANCE_PIXELS = POST_INSET_FEET * PIXELS_PER_FOOT + CLIP_TOLERANCE_PIXELS


def get_diagonal_edges(points: list[Point]) -> list[DiagonalEdge]:
    """Edges whose dx and dy both exceed the axis tolerance."""
    edges: list[DiagonalEdge] = []
    n = len(points)
    if n < 3:
        return edges
    for i in range(n):
        p1 = points[i]
        p2 = points[(i + 1) % n]
        if abs(p2.x - p1.x) < DIAGONAL_AXIS_TOLERANCE_PIXELS:
            continue
        if abs(p2.y - p1.y) < DIAGONAL_AXIS_TOLERANCE_PIXELS:
            continue
        edges.append(DiagonalEdge(p1=p1, p2=p2, index=i))
    return edges


def get_edge_angle(p1: Point, p2: Point) -> float:
    return math.atan2(p2.y - p1.y, p2.x - p1.x)


def get_perpendicular_vector(angle: float) -> tuple[float, float]:
    """Unit normal, 90 degrees counter-clockwise from the edge direction."""
    return -math.sin(angle), math.cos(angle)


def get_cantilever_for_joist_size(size: str | None) -> float:
    return JOIST_CANTILEVER_FEET.get(size or "", 1.0)


def extend_joists_to_diagonal_edges(
    joists: list[StructuralMember],
    edges: list[DiagonalEdge],
    is_ledger_horizontal: bool,
    dims: SectionDimensions,
    extends_positive_dir: bool,
) -> list[StructuralMember]:
    """Move each joist's far end onto the nearest angled edge it runs into.

    The far end is the one in the direction the deck extends from the
    ledger. Joists whose line misses every edge are returned as they are.
    """
    if not edges:
        return list(joists)

    result: list[StructuralMember] = []
    for joist in joists:
        if is_ledger_horizontal:
            near_first = (joist.p1.y <= joist.p2.y) == extends_positive_dir
        else:
            near_first = (joist.p1.x <= joist.p2.x) == extends_positive_dir
        start, end = (joist.p1, joist.p2) if near_first else (joist.p2, joist.p1)

        length_px = dist(start, end)
        if length_px < CLIP_TOLERANCE_PIXELS:
            result.append(joist)
            continue
        ux = (end.x - start.x) / length_px
        uy = (end.y - start.y) / length_px

        best: Point | None = None
        best_t = math.inf
        for edge in edges:
            hit = line_intersection(start, end, edge.p1, edge.p2)
            if hit is None or not is_point_on_segment(hit, edge.p1, edge.p2, CLIP_TOLERANCE_PIXELS):
                continue
            if not (dims.min_x - CLIP_TOLERANCE_PIXELS <= hit.x <= dims.max_x + CLIP_TOLERANCE_PIXELS
                    and dims.min_y - CLIP_TOLERANCE_PIXELS <= hit.y <= dims.max_y + CLIP_TOLERANCE_PIXELS):
                continue
            t = (hit.x - start.x) * ux + (hit.y - start.y) * uy
            if CLIP_TOLERANCE_PIXELS < t < best_t:
                best, best_t = hit, t

        if best is None:
            result.append(joist)
            continue
        trace("diagonal.joist_extended", from_len=round(length_px / PIXELS_PER_FOOT, 3),
              to_len=round(best_t / PIXELS_PER_FOOT, 3))
        if near_first:
            result.append(joist.moved_to(start, best))
        else:
            result.append(joist.moved_to(best, start))
    return result


def calculate_angled_beam_and_posts(
    edge_p1: Point,
    edge_p2: Point,
    setback_ft: float,
    beam_size: str,
    beam_ply: int,
    post_size: str,
    deck_height_in: float,
    footing_type: str,
    usage_label: str,
    beam_type: BeamType,
    inward_sign: int,
) -> AngledBeamResult:
    """A beam parallel to an angled edge, offset inward by ``setback_ft``."""
    nx, ny = get_perpendicular_vector(get_edge_angle(edge_p1, edge_p2))
    offset_px = setback_ft * PIXELS_PER_FOOT * inward_sign
    p1 = Point(x=edge_p1.x + nx * offset_px, y=edge_p1.y + ny * offset_px)
    p2 = Point(x=edge_p2.x + nx * offset_px, y=edge_p2.y + ny * offset_px)
    beam = StructuralMember(
        kind=MemberKind.BEAM,
        p1=p1,
        p2=p2,
        centerline_p1=p1,
        centerline_p2=p2,
        size=beam_size,
        ply=beam_ply,
        usage=usage_label,
        is_flush=beam_type == BeamType.FLUSH,
        is_diagonal=True,
    )
    spec = SupportSpec(post_size=post_size, height_ft=deck_height_in / 12, footing_type=footing_type)
    posts, footings = generate_beam_posts(beam, spec)
    return AngledBeamResult(beam=beam, posts=posts, footings=footings)


def _snap_end_to(
    beam: StructuralMember,
    target: Point,
    line: tuple[Point, Point],
    interior: Point | None,
) -> StructuralMember:
    """Move one end of the beam onto ``target``.

    The end replaced is the one lying on the far side of ``line`` from
    ``interior``; when neither or both ends are beyond it, the end closer
    to ``target`` moves.
    """
    axis_p1, axis_p2 = beam.axis()
    replace_p1 = dist(axis_p1, target) <= dist(axis_p2, target)
    if interior is not None:
        inside = 1 if signed_distance_to_line(interior, line[0], line[1]) >= 0 else -1
        p1_out = signed_distance_to_line(axis_p1, line[0], line[1]) * inside < -CLIP_TOLERANCE_PIXELS
        p2_out = signed_distance_to_line(axis_p2, line[0], line[1]) * inside < -CLIP_TOLERANCE_PIXELS
        if p1_out != p2_out:
            replace_p1 = p1_out
    has_centerline = beam.centerline_p1 is not None
    if replace_p1:
        update = {"p1": target, **({"centerline_p1": target} if has_centerline else {})}
    else:
        update = {"p2": target, **({"centerline_p2": target} if has_centerline else {})}
    return beam.model_copy(update=update)


def supports_away_from(posts: list[Post], footings: list[Footing], point: Point):
    """Drop posts and footings close enough to crowd a shared post at ``point``."""
    kept_posts = [p for p in posts if math.hypot(p.x - point.x, p.y - point.y) > JOINT_CLEARANCE_PIXELS]
    kept_footings = [f for f in footings if math.hypot(f.x - point.x, f.y - point.y) > JOINT_CLEARANCE_PIXELS]
    return kept_posts, kept_footings


def trim_beams_at_intersection(
    outer_beam: StructuralMember,
    diag_beam: StructuralMember,
    outer_posts: list[Post],
    diag_posts: list[Post],
    outer_footings: list[Footing],
    diag_footings: list[Footing],
    post_size: str,
    deck_height_in: float,
    footing_type: str,
    interior: Point | None = None,
) -> BeamTrimResult:
    """Cut both beams back to where their lines cross.

    Each beam loses the end that lies beyond the other beam's line, seen
    from ``interior`` (normally the footprint center). The supports passed
    in are replaced outright: both beams get supports regenerated from the
    trimmed geometry, and posts that would crowd the intersection give way
    to one shared post there. When the beams are parallel nothing is
    trimmed and the given supports come back unchanged.
    """
    outer_axis = outer_beam.axis()
    diag_axis = diag_beam.axis()
    hit = line_intersection(outer_axis[0], outer_axis[1], diag_axis[0], diag_axis[1])
    if hit is None:
        return BeamTrimResult(
            outer_beam=outer_beam, outer_posts=outer_posts, outer_footings=outer_footings,
            diagonal_beam=diag_beam, diagonal_posts=diag_posts, diagonal_footings=diag_footings,
        )

    trimmed_outer = _snap_end_to(outer_beam, hit, diag_axis, interior)
    trimmed_diag = _snap_end_to(diag_beam, hit, outer_axis, interior)

    spec = SupportSpec(post_size=post_size, height_ft=deck_height_in / 12, footing_type=footing_type)
    new_outer_posts, new_outer_footings = supports_away_from(*generate_beam_posts(trimmed_outer, spec), hit)
    new_diag_posts, new_diag_footings = supports_away_from(*generate_beam_posts(trimmed_diag, spec), hit)

    trace("diagonal.trimmed", at=(round(hit.x, 2), round(hit.y, 2)),
          replaced_posts=len(outer_posts) + len(diag_posts),
          new_posts=len(new_outer_posts) + len(new_diag_posts) + 1)
    return BeamTrimResult(
        outer_beam=trimmed_outer,
        outer_posts=new_outer_posts,
        outer_footings=new_outer_footings,
        diagonal_beam=trimmed_diag,
        diagonal_posts=new_diag_posts,
        diagonal_footings=new_diag_footings,
        intersection_post=Post(x=hit.x, y=hit.y, size=post_size, height_ft=deck_height_in / 12,
                               section_id=outer_beam.section_id),
        intersection_footing=Footing(x=hit.x, y=hit.y, type=footing_type, section_id=outer_beam.section_id),
    )
