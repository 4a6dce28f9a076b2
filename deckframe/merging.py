"""Collinear merging of members that cross section seams.

Each rectangle is framed on its own, so a beam that physically runs the
full length of an L-shaped deck arrives as two or three fragments. Fragments
are grouped by connected components of the "collinear and adjacent"
relation, then each group collapses to one member spanning the whole group.
"""

from __future__ import annotations

import logging
import math

from pydantic import BaseModel

from .clipping import clip_member
from .config import MIN_MEMBER_LENGTH_FEET, PIXELS_PER_FOOT
from .models import MemberKind, Point, StructuralMember
from .primitives import dist, midpoint, unit_vector
from .trace import trace

logger = logging.getLogger(__name__)


class MergeTolerance(BaseModel):
    """Per-kind merge tolerances, in feet."""

    perpendicular_ft: float
    adjacency_ft: float
    axis_ft: float = 1.0  # max drift for a member to count as horizontal/vertical
    cross_ft2: float = 1.0  # fallback for non-orthogonal members


BEAM_TOLERANCE = MergeTolerance(perpendicular_ft=1.0, adjacency_ft=1.0)
JOIST_TOLERANCE = MergeTolerance(perpendicular_ft=0.5, adjacency_ft=2.0)
RIM_JOIST_TOLERANCE = MergeTolerance(perpendicular_ft=0.5, adjacency_ft=2.0)

# Beams with different roles that still form one continuous line, e.g. the
# outer beam of a house-attached section meeting a floating section's
# wall-side beam.
COMPATIBLE_BEAM_USAGES = [
    {"Outer Beam", "Wall-Side Beam"},
]


class DisjointSet:
    """Union-find over member indices."""

    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return
        # Lower index wins so group order follows input order
        if root_a < root_b:
            self.parent[root_b] = root_a
        else:
            self.parent[root_a] = root_b

    def groups(self) -> list[list[int]]:
        by_root: dict[int, list[int]] = {}
        for i in range(len(self.parent)):
            by_root.setdefault(self.find(i), []).append(i)
        return [by_root[root] for root in sorted(by_root)]


# --- Pairwise tests ---


def are_compatible(a: StructuralMember, b: StructuralMember) -> bool:
    if a.kind != b.kind:
        return False
    if a.kind == MemberKind.BEAM:
        if a.size != b.size:
            return False
        if a.usage == b.usage:
            return True
        return any({a.usage, b.usage} == pair for pair in COMPATIBLE_BEAM_USAGES)
    # Joists and rim joists: the role must match too, so an end joist never
    # swallows the picture-frame joist running a few inches beside it
    return a.usage == b.usage


def _orientation(member: StructuralMember, axis_px: float) -> str | None:
    dx = abs(member.p2.x - member.p1.x)
    dy = abs(member.p2.y - member.p1.y)
    if dy < axis_px and dx >= dy:
        return "h"
    if dx < axis_px:
        return "v"
    return None


def are_collinear(a: StructuralMember, b: StructuralMember, tolerance: MergeTolerance) -> bool:
    axis_px = tolerance.axis_ft * PIXELS_PER_FOOT
    perp_px = tolerance.perpendicular_ft * PIXELS_PER_FOOT
    orient_a = _orientation(a, axis_px)
    orient_b = _orientation(b, axis_px)

    if orient_a == "h" and orient_b == "h":
        return abs((a.p1.y + a.p2.y) / 2 - (b.p1.y + b.p2.y) / 2) < perp_px
    if orient_a == "v" and orient_b == "v":
        return abs((a.p1.x + a.p2.x) / 2 - (b.p1.x + b.p2.x) / 2) < perp_px
    if orient_a is not None and orient_b is not None:
        return False

    # Non-orthogonal: both of b's endpoints on a's line, in square feet
    dx = (a.p2.x - a.p1.x) / PIXELS_PER_FOOT
    dy = (a.p2.y - a.p1.y) / PIXELS_PER_FOOT
    for p in (b.p1, b.p2):
        px = (p.x - a.p1.x) / PIXELS_PER_FOOT
        py = (p.y - a.p1.y) / PIXELS_PER_FOOT
        if abs(px * dy - py * dx) >= tolerance.cross_ft2:
            return False
    dir_a = unit_vector(a.p1, a.p2)
    dir_b = unit_vector(b.p1, b.p2)
    if dir_a is None or dir_b is None:
        return False
    return abs(dir_a[0] * dir_b[1] - dir_a[1] * dir_b[0]) < 0.05


def are_adjacent(a: StructuralMember, b: StructuralMember, tolerance: MergeTolerance) -> bool:
    """Endpoints within the adjacency gap, or spans overlapping along a's axis."""
    gap_px = tolerance.adjacency_ft * PIXELS_PER_FOOT
    closest = min(dist(pa, pb) for pa in (a.p1, a.p2) for pb in (b.p1, b.p2))
    if closest <= gap_px:
        return True

    direction = unit_vector(a.p1, a.p2)
    if direction is None:
        return False
    ux, uy = direction

    def project(p: Point) -> float:
        return (p.x - a.p1.x) * ux + (p.y - a.p1.y) * uy

    # Sections that overlap at a seam frame the shared strip twice; the
    # copies lie end over end and no endpoint pair need be close
    a_lo, a_hi = sorted((project(a.p1), project(a.p2)))
    b_lo, b_hi = sorted((project(b.p1), project(b.p2)))
    return a_lo <= b_hi and b_lo <= a_hi


# --- Collapse ---


def _sections_of(members: list[StructuralMember]) -> list[int]:
    sections: list[int] = []
    for m in members:
        ids = m.original_sections or ([m.section_id] if m.section_id is not None else [])
        for sid in ids:
            if sid not in sections:
                sections.append(sid)
    return sections


def _span(points: list[Point], origin: Point, ux: float, uy: float) -> tuple[Point, Point]:
    ts = [(p.x - origin.x) * ux + (p.y - origin.y) * uy for p in points]
    lo, hi = min(ts), max(ts)
    return (
        Point(x=origin.x + ux * lo, y=origin.y + uy * lo),
        Point(x=origin.x + ux * hi, y=origin.y + uy * hi),
    )


def merge_group(group: list[StructuralMember], tolerance: MergeTolerance) -> StructuralMember:
    """Collapse a group into one member spanning all of it.

    The span runs min..max of every endpoint along the dominant axis. The
    perpendicular coordinate is the mean of the members' midpoints.
    """
    template = group[0]
    mids = [midpoint(m.p1, m.p2) for m in group]
    anchor = Point(x=sum(p.x for p in mids) / len(mids), y=sum(p.y for p in mids) / len(mids))
    endpoints = [p for m in group for p in (m.p1, m.p2)]
    axis_px = tolerance.axis_ft * PIXELS_PER_FOOT

    orientation = _orientation(template, axis_px)
    if orientation == "h":
        ux, uy = 1.0, 0.0
    elif orientation == "v":
        ux, uy = 0.0, 1.0
    else:
        longest = max(group, key=lambda m: m.length_ft)
        ux, uy = unit_vector(longest.p1, longest.p2) or (1.0, 0.0)

    p1, p2 = _span(endpoints, anchor, ux, uy)
    update = {
        "p1": p1,
        "p2": p2,
        "is_merged": True,
        "merged_from_count": sum(m.merged_from_count for m in group),
        "original_sections": _sections_of(group),
    }
    centerline_points = [p for m in group if m.centerline_p1 is not None for p in m.axis()]
    if centerline_points:
        update["centerline_p1"], update["centerline_p2"] = _span(centerline_points, anchor, ux, uy)
    return template.model_copy(update=update)


def merge_collinear_members(
    members: list[StructuralMember],
    tolerance: MergeTolerance,
    polygon: list[Point] | None = None,
) -> list[StructuralMember]:
    """Merge every collinear, adjacent, compatible run of members.

    Merged members are re-clipped against the polygon when one is given;
    members removed by the clip or shorter than 0.1 ft are dropped. Output
    order is not significant.
    """
    if not members:
        return []

    ds = DisjointSet(len(members))
    for i in range(len(members)):
        for j in range(i + 1, len(members)):
            a, b = members[i], members[j]
            if are_compatible(a, b) and are_collinear(a, b, tolerance) and are_adjacent(a, b, tolerance):
                ds.union(i, j)

    result: list[StructuralMember] = []
    for indices in ds.groups():
        if len(indices) == 1:
            result.append(members[indices[0]])
            continue
        group = [members[i] for i in indices]
        merged = merge_group(group, tolerance)
        trace("merge.group", kind=merged.kind.value, usage=merged.usage,
              count=len(group), length_ft=round(merged.length_ft, 3))
        if polygon:
            clipped = clip_member(merged, polygon)
            if clipped is None:
                continue
            merged = clipped
        result.append(merged)

    return [m for m in result if m.length_ft >= MIN_MEMBER_LENGTH_FEET]


def merge_collinear_beams(beams: list[StructuralMember], polygon: list[Point] | None = None) -> list[StructuralMember]:
    merged = merge_collinear_members(beams, BEAM_TOLERANCE, polygon)
    logger.info("Beam merging: %d -> %d", len(beams), len(merged))
    return merged


def merge_collinear_joists(joists: list[StructuralMember], polygon: list[Point] | None = None) -> list[StructuralMember]:
    merged = merge_collinear_members(joists, JOIST_TOLERANCE, polygon)
    logger.info("Joist merging: %d -> %d", len(joists), len(merged))
    return merged


def merge_collinear_rim_joists(rims: list[StructuralMember], polygon: list[Point] | None = None) -> list[StructuralMember]:
    merged = merge_collinear_members(rims, RIM_JOIST_TOLERANCE, polygon)
    logger.info("Rim joist merging: %d -> %d", len(rims), len(merged))
    return merged


def total_length_ft(members: list[StructuralMember]) -> float:
    return math.fsum(m.length_ft for m in members)
