"""Shared fixtures: footprint polygons, sections and inputs in pixel space (24 px = 1 ft)."""
import pytest

from deckframe.models import (
    DeckInputs,
    MemberKind,
    Point,
    RectangularSection,
    StructuralMember,
    WallSegment,
)


def pts(*coords):
    return [Point(x=x, y=y) for x, y in coords]


def member(kind, p1, p2, **kwargs):
    return StructuralMember(kind=kind, p1=Point(x=p1[0], y=p1[1]), p2=Point(x=p2[0], y=p2[1]), **kwargs)


def beam(p1, p2, size="2x8", usage="Outer Beam", **kwargs):
    return member(MemberKind.BEAM, p1, p2, size=size, usage=usage, **kwargs)


def rectangle_section(x0, y0, x1, y1, ledger_wall=None, is_ledger_rectangle=False):
    walls = [WallSegment(p1=Point(x=a[0], y=a[1]), p2=Point(x=b[0], y=b[1])) for a, b in ([ledger_wall] if ledger_wall else [])]
    return RectangularSection(
        corners=pts((x0, y0), (x1, y0), (x1, y1), (x0, y1)),
        is_ledger_rectangle=is_ledger_rectangle or bool(walls),
        ledger_walls=walls,
    )


@pytest.fixture
def rectangle():
    """200 x 100 px rectangle."""
    return pts((0, 0), (200, 0), (200, 100), (0, 100))


@pytest.fixture
def l_shape():
    return pts((0, 0), (200, 0), (200, 100), (100, 100), (100, 200), (0, 200))


@pytest.fixture
def u_shape():
    """Cutout x in [100, 200], y in [50, 200]."""
    return pts((0, 0), (300, 0), (300, 200), (200, 200), (200, 50), (100, 50), (100, 200), (0, 200))


@pytest.fixture
def triangle():
    return pts((100, 0), (200, 200), (0, 200))


@pytest.fixture
def inputs():
    return DeckInputs(joist_size="2x8", joist_spacing_in=16, deck_height_in=36)


@pytest.fixture
def large_l_shape():
    """24 ft x 12 ft top leg, 12 ft x 12 ft lower leg; ledger on the top edge."""
    return pts((0, 0), (576, 0), (576, 288), (288, 288), (288, 576), (0, 576))


@pytest.fixture
def large_l_sections():
    return [
        rectangle_section(0, 0, 576, 288, ledger_wall=((0, 0), (576, 0))),
        rectangle_section(0, 288, 288, 576),
    ]


@pytest.fixture
def chamfered_deck():
    """16 ft x 12 ft with the bottom-right corner cut at 45 degrees (4 ft legs)."""
    return pts((0, 0), (384, 0), (384, 192), (288, 288), (0, 288))
