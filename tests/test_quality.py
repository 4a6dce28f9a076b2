"""Tests for deckframe/quality.py."""
from conftest import beam, member
from deckframe.models import (
    GateStatus,
    Ledger,
    MemberKind,
    MergedStructure,
    Point,
    Post,
)
from deckframe.quality import run_quality_gates


def check(report, name):
    return next(c for c in report.checks if c.name == name)


def good_structure():
    """A 10 x 8 ft deck framed correctly inside the 240 x 192 px footprint."""
    return MergedStructure(
        ledger=Ledger(p1=Point(x=0, y=0), p2=Point(x=240, y=0), length_ft=10),
        beams=[beam((0, 168), (240, 168))],
        joists=[member(MemberKind.JOIST, (x, 0), (x, 192), usage="Joist") for x in (32, 64, 96, 128, 160, 192, 224)],
        rim_joists=[
            member(MemberKind.RIM_JOIST, (0, 0), (0, 192), usage="End Joist"),
            member(MemberKind.RIM_JOIST, (240, 0), (240, 192), usage="End Joist"),
            member(MemberKind.RIM_JOIST, (0, 192), (240, 192), usage="Outer Rim Joist"),
        ],
        posts=[Post(x=24, y=168), Post(x=216, y=168)],
    )


FOOTPRINT = [Point(x=0, y=0), Point(x=240, y=0), Point(x=240, y=192), Point(x=0, y=192)]


def test_clean_structure_passes():
    report = run_quality_gates(good_structure(), FOOTPRINT)
    assert report.overall == GateStatus.PASS
    assert len(report.checks) == 8


def test_beam_far_outside_fails():
    s = good_structure()
    s.beams.append(beam((0, 100), (400, 100)))
    report = run_quality_gates(s, FOOTPRINT)
    assert check(report, "Beams within boundary").status == GateStatus.FAIL
    assert report.overall == GateStatus.FAIL


def test_beam_cantilever_within_allowance_passes():
    s = good_structure()
    s.beams = [beam((-30, 168), (270, 168))]
    assert check(run_quality_gates(s, FOOTPRINT), "Beams within boundary").status == GateStatus.PASS


def test_joist_outside_fails():
    s = good_structure()
    s.joists.append(member(MemberKind.JOIST, (100, 0), (100, 220)))
    c = check(run_quality_gates(s, FOOTPRINT), "Joists within boundary")
    assert c.status == GateStatus.FAIL
    assert "(100.0, 220.0)" in c.detail


def test_anomalous_rim_warns_but_skips_perimeter_check():
    s = good_structure()
    s.rim_joists.append(
        member(MemberKind.RIM_JOIST, (300, 300), (340, 300), usage="End Joist", is_anomalous=True)
    )
    report = run_quality_gates(s, FOOTPRINT)
    assert check(report, "Rim joists on perimeter").status == GateStatus.PASS
    assert check(report, "Anomalous rim joists").status == GateStatus.WARN
    assert report.overall == GateStatus.WARN


def test_post_outside_fails():
    s = good_structure()
    s.posts.append(Post(x=300, y=168))
    assert check(run_quality_gates(s, FOOTPRINT), "Posts within boundary").status == GateStatus.FAIL


def test_beam_without_posts_warns():
    s = good_structure()
    s.posts = []
    c = check(run_quality_gates(s, FOOTPRINT), "Post spacing")
    assert c.status == GateStatus.WARN
    assert "has no posts" in c.detail


def test_wide_post_gap_warns():
    s = good_structure()
    s.beams = [beam((0, 168), (480, 168))]
    s.posts = [Post(x=24, y=168), Post(x=456, y=168)]
    c = check(run_quality_gates(s, None), "Post spacing")
    assert c.status == GateStatus.WARN
    assert "18.0 ft" in c.detail


def test_long_joist_warns():
    s = good_structure()
    s.joists.append(member(MemberKind.JOIST, (0, 0), (0, 31 * 24)))
    assert check(run_quality_gates(s, None), "Member lengths").status == GateStatus.WARN


def test_missing_ledger():
    s = good_structure()
    s.ledger = None
    assert check(run_quality_gates(s, FOOTPRINT), "Ledger").status == GateStatus.WARN
    assert check(run_quality_gates(s, FOOTPRINT, expects_ledger=False), "Ledger").status == GateStatus.PASS


def test_no_polygon_warns_on_boundary_checks():
    report = run_quality_gates(good_structure(), None)
    assert check(report, "Beams within boundary").status == GateStatus.WARN
    assert check(report, "Posts within boundary").status == GateStatus.WARN
    assert report.overall == GateStatus.WARN
