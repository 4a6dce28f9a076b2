"""Boundary clipper: trims one member against the deck footprint polygon.

Uses only infinite-line intersection, a bounding-box membership test and
ray casting, which is enough for the concave (L / U) footprints decks
decompose into.
"""

from __future__ import annotations

from .config import (
    CLIP_TOLERANCE_PIXELS,
    MIN_MEMBER_LENGTH_FEET,
    PIXELS_PER_FOOT,
    RIM_PARALLEL_CROSS_MAX,
    RIM_PERIMETER_DISTANCE_FEET,
)
from .models import ClipResult, ClipStatus, MemberKind, Point, StructuralMember
from .primitives import (
    dist,
    is_point_inside_polygon,
    is_point_on_segment,
    line_intersection,
    midpoint,
    point_to_segment_distance,
    unit_vector,
)
from .trace import trace


def clip_segment_to_boundary(p1: Point, p2: Point, polygon: list[Point] | None) -> ClipResult:
    """Clip the segment p1-p2 to the polygon.

    Returns UNCHANGED when both endpoints are inside (or the polygon is
    unusable), CLIPPED with new endpoints, or REMOVED with length 0.
    """
    length_px = dist(p1, p2)
    if length_px < CLIP_TOLERANCE_PIXELS:
        return _removed(p1)
    if not polygon or len(polygon) < 3:
        return _unchanged(p1, p2)

    p1_inside = is_point_inside_polygon(p1, polygon)
    p2_inside = is_point_inside_polygon(p2, polygon)
    if p1_inside and p2_inside:
        return _unchanged(p1, p2)

    dx = p2.x - p1.x
    dy = p2.y - p1.y
    slack = CLIP_TOLERANCE_PIXELS / length_px
    hits: list[tuple[float, Point]] = []
    n = len(polygon)
    for i in range(n):
        edge_p1 = polygon[i]
        edge_p2 = polygon[(i + 1) % n]
        hit = line_intersection(p1, p2, edge_p1, edge_p2)
        if hit is None or not is_point_on_segment(hit, edge_p1, edge_p2, CLIP_TOLERANCE_PIXELS):
            continue
        t = ((hit.x - p1.x) * dx + (hit.y - p1.y) * dy) / (length_px * length_px)
        # Crossings of the infinite line beyond the member never extend it
        if -slack <= t <= 1 + slack:
            hits.append((t, hit))

    if not hits:
        if not p1_inside and not p2_inside:
            return _removed(p1)
        return _unchanged(p1, p2)

    hits.sort(key=lambda h: h[0])
    new_p1, new_p2 = p1, p2

    if not p1_inside and not p2_inside:
        # The member only grazes the boundary with fewer than two crossings
        if len(hits) < 2:
            return _removed(p1)
        new_p1 = hits[0][1]
        new_p2 = hits[-1][1]
    elif not p1_inside:
        new_p1 = hits[0][1]
    else:
        new_p2 = hits[-1][1]

    new_length_ft = dist(new_p1, new_p2) / PIXELS_PER_FOOT
    if new_length_ft < MIN_MEMBER_LENGTH_FEET:
        return _removed(new_p1)
    if new_p1 == p1 and new_p2 == p2:
        return _unchanged(p1, p2)
    return ClipResult(status=ClipStatus.CLIPPED, p1=new_p1, p2=new_p2, length_ft=new_length_ft)


def is_along_perimeter(p1: Point, p2: Point, polygon: list[Point]) -> bool:
    """True when the segment midpoint hugs a perimeter edge running the same way."""
    direction = unit_vector(p1, p2)
    if direction is None:
        return False
    mid = midpoint(p1, p2)
    max_offset = RIM_PERIMETER_DISTANCE_FEET * PIXELS_PER_FOOT
    n = len(polygon)
    for i in range(n):
        edge_p1 = polygon[i]
        edge_p2 = polygon[(i + 1) % n]
        edge_dir = unit_vector(edge_p1, edge_p2)
        if edge_dir is None:
            continue
        if point_to_segment_distance(mid, edge_p1, edge_p2) > max_offset:
            continue
        if abs(direction[0] * edge_dir[1] - direction[1] * edge_dir[0]) < RIM_PARALLEL_CROSS_MAX:
            return True
    return False


def clip_rim_joist_to_boundary(p1: Point, p2: Point, polygon: list[Point] | None) -> ClipResult:
    """Rim joists must run along a perimeter edge; anything else is removed.

    This keeps a merged rim joist from bridging a concave notch.
    """
    if polygon and len(polygon) >= 3 and not is_along_perimeter(p1, p2, polygon):
        return _removed(p1)
    return clip_segment_to_boundary(p1, p2, polygon)


def clip_member(member: StructuralMember, polygon: list[Point] | None) -> StructuralMember | None:
    """Clip a member against the footprint; None when it is removed."""
    if member.kind == MemberKind.RIM_JOIST:
        result = clip_rim_joist_to_boundary(member.p1, member.p2, polygon)
    else:
        result = clip_segment_to_boundary(member.p1, member.p2, polygon)

    if result.removed:
        trace("clip.removed", kind=member.kind.value, usage=member.usage,
              p1=(member.p1.x, member.p1.y), p2=(member.p2.x, member.p2.y))
        return None
    if result.status == ClipStatus.UNCHANGED:
        return member
    trace("clip.clipped", kind=member.kind.value, usage=member.usage,
          length_ft=round(result.length_ft, 3))
    return member.moved_to(result.p1, result.p2)


def clip_members(members: list[StructuralMember], polygon: list[Point] | None) -> list[StructuralMember]:
    clipped = (clip_member(m, polygon) for m in members)
    return [m for m in clipped if m is not None]


def _unchanged(p1: Point, p2: Point) -> ClipResult:
    return ClipResult(
        status=ClipStatus.UNCHANGED, p1=p1, p2=p2,
        length_ft=dist(p1, p2) / PIXELS_PER_FOOT,
    )


def _removed(p: Point) -> ClipResult:
    return ClipResult(status=ClipStatus.REMOVED, p1=p, p2=p, length_ft=0.0)
