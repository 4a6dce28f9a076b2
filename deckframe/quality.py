"""Quality gates: validate the merged structure against the footprint."""

from .config import MAX_POST_SPACING_FEET, PIXELS_PER_FOOT
from .models import (
    GateStatus,
    MergedStructure,
    Point,
    QualityCheck,
    QualityReport,
    StructuralMember,
)
from .primitives import is_point_inside_polygon, is_point_on_boundary
from .supports import posts_near_beam

BOUNDARY_TOLERANCE_PX = 5.0
BEAM_CANTILEVER_ALLOWANCE_FEET = 2.0
MAX_JOIST_LENGTH_FEET = 30.0
MAX_BEAM_LENGTH_FEET = 40.0


def run_quality_gates(
    structure: MergedStructure,
    polygon: list[Point] | None,
    expects_ledger: bool = True,
) -> QualityReport:
    """Run all quality checks and return a QualityReport."""
    checks = [
        _check_beams_in_boundary(structure.beams, polygon),
        _check_joists_in_boundary(structure.joists, polygon),
        _check_rim_joists_on_perimeter(structure.rim_joists, polygon),
        _check_anomalous_rim_joists(structure.rim_joists),
        _check_posts_in_boundary(structure, polygon),
        _check_post_spacing(structure),
        _check_member_lengths(structure),
        _check_ledger_present(structure, expects_ledger),
    ]

    if any(c.status == GateStatus.FAIL for c in checks):
        overall = GateStatus.FAIL
    elif any(c.status == GateStatus.WARN for c in checks):
        overall = GateStatus.WARN
    else:
        overall = GateStatus.PASS

    return QualityReport(overall=overall, checks=checks)


def _within(point: Point, polygon: list[Point], tolerance: float) -> bool:
    return is_point_inside_polygon(point, polygon) or is_point_on_boundary(point, polygon, tolerance)


def _fmt(p: Point) -> str:
    return f"({p.x:.1f}, {p.y:.1f})"


def _no_polygon(name: str) -> QualityCheck:
    return QualityCheck(
        name=name,
        status=GateStatus.WARN,
        message="No footprint polygon to check against",
    )


def _members_outside(members: list[StructuralMember], polygon: list[Point], tolerance: float) -> list[str]:
    problems = []
    for m in members:
        for p in (m.p1, m.p2):
            if not _within(p, polygon, tolerance):
                problems.append(f"{m.usage or m.kind.value} end {_fmt(p)}")
    return problems


def _check_beams_in_boundary(beams: list[StructuralMember], polygon: list[Point] | None) -> QualityCheck:
    name = "Beams within boundary"
    if not polygon:
        return _no_polygon(name)
    tolerance = BOUNDARY_TOLERANCE_PX + BEAM_CANTILEVER_ALLOWANCE_FEET * PIXELS_PER_FOOT
    problems = _members_outside(beams, polygon, tolerance)
    if not problems:
        return QualityCheck(name=name, status=GateStatus.PASS, message=f"{len(beams)} beams inside footprint")
    return QualityCheck(
        name=name,
        status=GateStatus.FAIL,
        message=f"{len(problems)} beam end(s) beyond the footprint",
        detail="; ".join(problems[:10]),
    )


def _check_joists_in_boundary(joists: list[StructuralMember], polygon: list[Point] | None) -> QualityCheck:
    name = "Joists within boundary"
    if not polygon:
        return _no_polygon(name)
    problems = _members_outside(joists, polygon, BOUNDARY_TOLERANCE_PX)
    if not problems:
        return QualityCheck(name=name, status=GateStatus.PASS, message=f"{len(joists)} joists inside footprint")
    return QualityCheck(
        name=name,
        status=GateStatus.FAIL,
        message=f"{len(problems)} joist end(s) outside the footprint",
        detail="; ".join(problems[:10]),
    )


def _check_rim_joists_on_perimeter(rims: list[StructuralMember], polygon: list[Point] | None) -> QualityCheck:
    name = "Rim joists on perimeter"
    if not polygon:
        return _no_polygon(name)
    regular = [r for r in rims if not r.is_anomalous]
    problems = _members_outside(regular, polygon, BOUNDARY_TOLERANCE_PX * 2)
    if not problems:
        return QualityCheck(name=name, status=GateStatus.PASS, message=f"{len(regular)} rim joists on or inside perimeter")
    return QualityCheck(
        name=name,
        status=GateStatus.FAIL,
        message=f"{len(problems)} rim joist end(s) outside the footprint",
        detail="; ".join(problems[:10]),
    )


def _check_anomalous_rim_joists(rims: list[StructuralMember]) -> QualityCheck:
    anomalous = [r for r in rims if r.is_anomalous]
    if not anomalous:
        return QualityCheck(
            name="Anomalous rim joists",
            status=GateStatus.PASS,
            message="No rim joists left outside an angled edge",
        )
    return QualityCheck(
        name="Anomalous rim joists",
        status=GateStatus.WARN,
        message=f"{len(anomalous)} rim joist(s) lie outside an angled edge",
        detail="; ".join(f"{_fmt(r.p1)}-{_fmt(r.p2)}" for r in anomalous),
    )


def _check_posts_in_boundary(structure: MergedStructure, polygon: list[Point] | None) -> QualityCheck:
    name = "Posts within boundary"
    if not polygon:
        return _no_polygon(name)
    outside = [
        p for p in structure.posts
        if not _within(Point(x=p.x, y=p.y), polygon, BOUNDARY_TOLERANCE_PX * 3)
    ]
    if not outside:
        return QualityCheck(name=name, status=GateStatus.PASS, message=f"{len(structure.posts)} posts inside footprint")
    return QualityCheck(
        name=name,
        status=GateStatus.FAIL,
        message=f"{len(outside)} post(s) outside the footprint",
        detail="; ".join(f"({p.x:.1f}, {p.y:.1f})" for p in outside[:10]),
    )


def _check_post_spacing(structure: MergedStructure) -> QualityCheck:
    limit_px = MAX_POST_SPACING_FEET * PIXELS_PER_FOOT + BOUNDARY_TOLERANCE_PX
    problems = []
    for beam in structure.beams:
        a, b = beam.axis()
        length = ((b.x - a.x) ** 2 + (b.y - a.y) ** 2) ** 0.5
        if length == 0:
            continue
        ux, uy = (b.x - a.x) / length, (b.y - a.y) / length
        positions = sorted((p.x - a.x) * ux + (p.y - a.y) * uy for p in posts_near_beam(structure.posts, beam))
        if not positions:
            problems.append(f"{beam.usage or 'Beam'} {_fmt(a)}-{_fmt(b)} has no posts")
            continue
        gaps = [hi - lo for lo, hi in zip(positions, positions[1:])]
        if gaps and max(gaps) > limit_px:
            problems.append(f"{beam.usage or 'Beam'} gap {max(gaps) / PIXELS_PER_FOOT:.1f} ft")

    if not problems:
        return QualityCheck(
            name="Post spacing",
            status=GateStatus.PASS,
            message=f"All beams supported at <= {MAX_POST_SPACING_FEET:g} ft",
        )
    return QualityCheck(
        name="Post spacing",
        status=GateStatus.WARN,
        message=f"{len(problems)} beam(s) with irregular support",
        detail="; ".join(problems[:10]),
    )


def _check_member_lengths(structure: MergedStructure) -> QualityCheck:
    long_members = [
        f"joist {j.length_ft:.1f} ft" for j in structure.joists if j.length_ft > MAX_JOIST_LENGTH_FEET
    ] + [
        f"beam {b.length_ft:.1f} ft" for b in structure.beams if b.length_ft > MAX_BEAM_LENGTH_FEET
    ]
    if not long_members:
        return QualityCheck(name="Member lengths", status=GateStatus.PASS, message="All member lengths plausible")
    return QualityCheck(
        name="Member lengths",
        status=GateStatus.WARN,
        message=f"{len(long_members)} unusually long member(s)",
        detail=", ".join(long_members[:10]),
    )


def _check_ledger_present(structure: MergedStructure, expects_ledger: bool) -> QualityCheck:
    if structure.ledger is not None:
        return QualityCheck(
            name="Ledger",
            status=GateStatus.PASS,
            message=f"Ledger {structure.ledger.length_ft:.2f} ft",
        )
    if not expects_ledger:
        return QualityCheck(name="Ledger", status=GateStatus.PASS, message="Free-standing deck, no ledger")
    return QualityCheck(
        name="Ledger",
        status=GateStatus.WARN,
        message="No ledger found",
        detail="House-attached deck produced no ledger fragment",
    )
