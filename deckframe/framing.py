"""Per-rectangle framing calculator.

Lays out ledger, beams, joists, rim joists, blocking and beam posts for one
rectangle given the edge the joists spring from. Joist sizing comes in
precomputed on DeckInputs; no span tables are consulted here.
"""

from __future__ import annotations

import math

from .config import (
    ACTUAL_LUMBER_THICKNESS_INCHES,
    BEAM_CANTILEVER_FEET,
    DROP_BEAM_CENTERLINE_SETBACK_FEET,
    EPSILON,
    MAX_BLOCKING_SPACING_FEET,
    PICTURE_FRAME_DOUBLE_INSET_INCHES,
    PICTURE_FRAME_SINGLE_INSET_INCHES,
    PIXELS_PER_FOOT,
)
from .models import (
    AttachmentType,
    BeamType,
    DeckInputs,
    Ledger,
    MemberKind,
    PictureFrame,
    Point,
    SectionDimensions,
    SectionStructure,
    StructuralMember,
)
from .primitives import dist
from .supports import generate_beam_posts, post_positions, post_size_for_height, support_spec_from_inputs

LUMBER_THICKNESS_PX = ACTUAL_LUMBER_THICKNESS_INCHES / 12 * PIXELS_PER_FOOT
HALF_LUMBER_THICKNESS_PX = LUMBER_THICKNESS_PX / 2

BEAM_ORDER = {"Wall-Side Beam": 1, "Mid Beam": 2, "Outer Beam": 3}


class _Frame:
    """Maps (along-wall, across-wall) coordinates to pixel points for one rectangle."""

    def __init__(self, wall_horizontal: bool, dims: SectionDimensions):
        self.wall_horizontal = wall_horizontal
        self.dims = dims
        if wall_horizontal:
            self.along_min, self.along_max = dims.min_x, dims.max_x
        else:
            self.along_min, self.along_max = dims.min_y, dims.max_y

    def point(self, along: float, across: float) -> Point:
        if self.wall_horizontal:
            return Point(x=along, y=across)
        return Point(x=across, y=along)

    def along(self, p: Point) -> float:
        return p.x if self.wall_horizontal else p.y

    def across(self, p: Point) -> float:
        return p.y if self.wall_horizontal else p.x


def picture_frame_inset_px(picture_frame: PictureFrame) -> float:
    if picture_frame == PictureFrame.SINGLE:
        return PICTURE_FRAME_SINGLE_INSET_INCHES / 12 * PIXELS_PER_FOOT
    if picture_frame == PictureFrame.DOUBLE:
        return PICTURE_FRAME_DOUBLE_INSET_INCHES / 12 * PIXELS_PER_FOOT
    return 0.0


def _build_beam(frame: _Frame, across: float, size: str, ply: int, usage: str, flush: bool) -> StructuralMember:
    """A beam running wall-parallel across the whole rectangle at ``across``.

    Material runs one cantilever past the first and last post.
    """
    axis_p1 = frame.point(frame.along_min, across)
    axis_p2 = frame.point(frame.along_max, across)
    material_p1, material_p2 = axis_p1, axis_p2
    positions = post_positions(axis_p1, axis_p2)
    length_px = dist(axis_p1, axis_p2)
    if positions and length_px > EPSILON:
        ux = (axis_p2.x - axis_p1.x) / length_px
        uy = (axis_p2.y - axis_p1.y) / length_px
        cantilever_px = BEAM_CANTILEVER_FEET * PIXELS_PER_FOOT
        first, last = positions[0], positions[-1]
        material_p1 = Point(x=first.x - ux * cantilever_px, y=first.y - uy * cantilever_px)
        material_p2 = Point(x=last.x + ux * cantilever_px, y=last.y + uy * cantilever_px)
    return StructuralMember(
        kind=MemberKind.BEAM,
        p1=material_p1,
        p2=material_p2,
        centerline_p1=axis_p1,
        centerline_p2=axis_p2,
        size=size,
        ply=ply,
        usage=usage,
        is_flush=flush,
    )


def _span_segments(start: float, mid: float | None, end: float) -> list[tuple[float, float]]:
    if mid is None:
        return [(start, end)]
    return [(start, mid), (mid, end)]


def _joists(frame: _Frame, segments, size: str, spacing_px: float, pf_inset_px: float) -> list[StructuralMember]:
    joists: list[StructuralMember] = []

    def add(pos: float, usage: str) -> None:
        for start, end in segments:
            p1 = frame.point(pos, start)
            p2 = frame.point(pos, end)
            if dist(p1, p2) > EPSILON:
                joists.append(StructuralMember(kind=MemberKind.JOIST, p1=p1, p2=p2, size=size, usage=usage))

    area_start, area_end = frame.along_min, frame.along_max
    if pf_inset_px > 0:
        first_pf = frame.along_min + pf_inset_px
        last_pf = frame.along_max - pf_inset_px
        add(first_pf, "Picture Frame Joist")
        if abs(last_pf - first_pf) > spacing_px * 0.5:
            add(last_pf, "Picture Frame Joist")
        area_start, area_end = first_pf, last_pf

    pos = area_start + spacing_px
    while pos < area_end - EPSILON:
        add(pos, "Joist")
        pos += spacing_px

    joists.sort(key=lambda j: frame.along(j.p1))
    return joists


def _rim_joists(
    frame: _Frame,
    joist_start: float,
    support_coords: list[float],
    wall_edge: float,
    outer_edge: float,
    size: str,
    attachment: AttachmentType,
) -> list[StructuralMember]:
    rims: list[StructuralMember] = []

    def add(p1: Point, p2: Point, usage: str) -> None:
        if dist(p1, p2) > EPSILON:
            rims.append(StructuralMember(kind=MemberKind.RIM_JOIST, p1=p1, p2=p2, size=size, usage=usage))

    # End joists, split where a mid beam supports them
    stops = [joist_start] + support_coords
    for side in (frame.along_min, frame.along_max):
        for start, end in zip(stops, stops[1:]):
            add(frame.point(side, start), frame.point(side, end), "End Joist")

    add(frame.point(frame.along_min, outer_edge), frame.point(frame.along_max, outer_edge), "Outer Rim Joist")
    if attachment in (AttachmentType.CONCRETE, AttachmentType.FLOATING):
        add(frame.point(frame.along_min, wall_edge), frame.point(frame.along_max, wall_edge), "Wall Rim Joist")
    return rims


def _mid_span_blocking(frame: _Frame, segments, size: str) -> list[StructuralMember]:
    blocking: list[StructuralMember] = []
    for start, end in segments:
        depth_px = abs(end - start)
        depth_ft = depth_px / PIXELS_PER_FOOT
        if depth_ft <= MAX_BLOCKING_SPACING_FEET + EPSILON:
            continue
        rows = math.ceil(depth_ft / MAX_BLOCKING_SPACING_FEET) - 1
        if rows < 1:
            continue
        spacing_px = depth_px / (rows + 1)
        sign = 1 if end > start else -1
        for i in range(1, rows + 1):
            across = start + sign * i * spacing_px
            blocking.append(StructuralMember(
                kind=MemberKind.BLOCKING,
                p1=frame.point(frame.along_min, across),
                p2=frame.point(frame.along_max, across),
                size=size,
                usage="Mid-Span Blocking",
                board_count=1,
            ))
    return blocking


def _ladder_blocking(
    frame: _Frame,
    joists: list[StructuralMember],
    wall_edge: float,
    outer_edge: float,
    extends_positive: bool,
    size: str,
    spacing_px: float,
) -> list[StructuralMember]:
    """Short rungs between each side rim and the adjacent picture-frame joist."""
    # A mid beam splits each picture-frame joist in two; count positions once
    pf_positions = sorted({round(frame.along(j.p1), 6) for j in joists if j.usage == "Picture Frame Joist"})
    if not pf_positions:
        return []

    sign = 1 if extends_positive else -1
    run_start = wall_edge + sign * HALF_LUMBER_THICKNESS_PX
    run_end = outer_edge - sign * HALF_LUMBER_THICKNESS_PX
    run_lo, run_hi = min(run_start, run_end), max(run_start, run_end)

    bays = [(
        frame.along_min + HALF_LUMBER_THICKNESS_PX,
        pf_positions[0] - HALF_LUMBER_THICKNESS_PX,
        "Ladder Blocking (Side 1)",
    )]
    if len(pf_positions) > 1:
        bays.append((
            pf_positions[-1] + HALF_LUMBER_THICKNESS_PX,
            frame.along_max - HALF_LUMBER_THICKNESS_PX,
            "Ladder Blocking (Side 2)",
        ))

    rungs: list[StructuralMember] = []
    for rung_a, rung_b, usage in bays:
        if abs(rung_b - rung_a) < EPSILON:
            continue
        across = run_lo + spacing_px
        while across < run_hi - EPSILON:
            rungs.append(StructuralMember(
                kind=MemberKind.BLOCKING,
                p1=frame.point(rung_a, across),
                p2=frame.point(rung_b, across),
                size=size,
                usage=usage,
            ))
            across += spacing_px
    return rungs


def calculate_structure(
    points: list[Point],
    ledger_edge_index: int,
    inputs: DeckInputs,
    dims: SectionDimensions | None,
) -> SectionStructure:
    """Frame one rectangle whose joists spring from edge ``ledger_edge_index``.

    Failures come back as ``SectionStructure.error`` rather than exceptions
    so the caller can skip the section and carry on.
    """
    if dims is None or dims.width_ft <= EPSILON or dims.height_ft <= EPSILON:
        return SectionStructure(error="Deck dimensions invalid.")
    if not inputs.joist_size:
        return SectionStructure(error="Could not determine joist size.")
    if len(points) < 3:
        return SectionStructure(error="Section needs at least three corners.")

    wall_p1 = points[ledger_edge_index % len(points)]
    wall_p2 = points[(ledger_edge_index + 1) % len(points)]
    wall_horizontal = abs(wall_p1.x - wall_p2.x) > abs(wall_p1.y - wall_p2.y)
    frame = _Frame(wall_horizontal, dims)

    total_depth_ft = dims.height_ft if wall_horizontal else dims.width_ft
    joist_size = inputs.joist_size
    post_size = post_size_for_height(inputs.deck_height_in)
    beam_ply = 3 if post_size == "6x6" else 2
    flush = inputs.beam_type == BeamType.FLUSH

    center = Point(x=(dims.min_x + dims.max_x) / 2, y=(dims.min_y + dims.max_y) / 2)
    wall_mid = Point(x=(wall_p1.x + wall_p2.x) / 2, y=(wall_p1.y + wall_p2.y) / 2)
    extends_positive = frame.across(center) > frame.across(wall_mid)
    sign = 1 if extends_positive else -1
    if wall_horizontal:
        wall_edge, outer_edge = (dims.min_y, dims.max_y) if extends_positive else (dims.max_y, dims.min_y)
    else:
        wall_edge, outer_edge = (dims.min_x, dims.max_x) if extends_positive else (dims.max_x, dims.min_x)
    setback_px = 0.0 if flush else DROP_BEAM_CENTERLINE_SETBACK_FEET * PIXELS_PER_FOOT

    structure = SectionStructure(total_depth_ft=total_depth_ft)
    wall_side_beam = None
    mid_beam = None

    if inputs.attachment_type == AttachmentType.FLOATING:
        wall_side_beam = _build_beam(frame, wall_edge + sign * setback_px, joist_size, beam_ply,
                                     "Wall-Side Beam", flush)
        structure.beams.append(wall_side_beam)
    elif inputs.attachment_type == AttachmentType.HOUSE_RIM:
        structure.ledger = Ledger(
            p1=wall_p1, p2=wall_p2, size=joist_size,
            length_ft=dist(wall_p1, wall_p2) / PIXELS_PER_FOOT,
        )

    outer_beam = _build_beam(frame, outer_edge - sign * setback_px, joist_size, beam_ply, "Outer Beam", flush)
    structure.beams.append(outer_beam)

    if inputs.requires_mid_beam:
        if structure.ledger is not None:
            span_start = frame.across(structure.ledger.p1)
        elif wall_side_beam is not None:
            span_start = frame.across(wall_side_beam.centerline_p1)
        else:
            span_start = wall_edge
        span_end = frame.across(outer_beam.centerline_p1)
        mid_beam = _build_beam(frame, (span_start + span_end) / 2, joist_size, beam_ply, "Mid Beam", False)
        structure.beams.append(mid_beam)

    if structure.ledger is not None:
        joist_start = frame.across(structure.ledger.p1)
    elif wall_side_beam is not None and flush:
        joist_start = wall_edge + sign * LUMBER_THICKNESS_PX
    else:
        joist_start = wall_edge
    joist_end = outer_edge - sign * LUMBER_THICKNESS_PX if flush else outer_edge
    mid_coord = frame.across(mid_beam.centerline_p1) if mid_beam is not None else None
    segments = _span_segments(joist_start, mid_coord, joist_end)

    spacing_px = inputs.joist_spacing_in / 12 * PIXELS_PER_FOOT
    if spacing_px <= EPSILON:
        return SectionStructure(error="Joist spacing must be positive.")
    pf_inset = picture_frame_inset_px(inputs.picture_frame)

    structure.joists = _joists(frame, segments, joist_size, spacing_px, pf_inset)
    support_coords = [c for c in (mid_coord, joist_end) if c is not None]
    structure.rim_joists = _rim_joists(frame, joist_start, support_coords, wall_edge, outer_edge,
                                       joist_size, inputs.attachment_type)
    structure.mid_span_blocking = _mid_span_blocking(frame, segments, joist_size)
    if pf_inset > 0:
        structure.picture_frame_blocking = _ladder_blocking(
            frame, structure.joists, wall_edge, outer_edge, extends_positive, joist_size, spacing_px,
        )

    structure.beams.sort(key=lambda b: BEAM_ORDER.get(b.usage, 99))
    spec = support_spec_from_inputs(inputs)
    for beam in structure.beams:
        posts, footings = generate_beam_posts(beam, spec)
        structure.posts.extend(posts)
        structure.footings.extend(footings)
    return structure
