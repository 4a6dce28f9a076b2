"""Tests for deckframe/supports.py."""
import pytest

from conftest import beam
from deckframe.models import (
    DeckInputs,
    Footing,
    Point,
    Post,
    RectangularSection,
    SectionDimensions,
    SectionResult,
    SectionStructure,
)
from deckframe.supports import (
    SupportSpec,
    footings_near_beam,
    generate_beam_posts,
    post_positions,
    post_size_for_height,
    posts_near_beam,
    recalculate_posts_and_footings,
    remove_duplicate_posts,
    support_spec_from_inputs,
    support_spec_from_sections,
)


def P(x, y):
    return Point(x=x, y=y)


# --- post_positions ---

def test_short_beam_gets_end_posts_only():
    positions = post_positions(P(0, 0), P(192, 0))  # 8 ft
    assert [p.x for p in positions] == [pytest.approx(24.0), pytest.approx(168.0)]


def test_span_of_exactly_max_spacing_has_no_intermediate():
    positions = post_positions(P(0, 0), P(240, 0))  # 10 ft, 8 ft between end posts
    assert len(positions) == 2


def test_long_beam_gets_evenly_spaced_intermediates():
    positions = post_positions(P(0, 0), P(0, 480))  # 20 ft, 18 ft between end posts
    ys = [p.y for p in positions]
    assert ys == [
        pytest.approx(24.0),
        pytest.approx(168.0),
        pytest.approx(312.0),
        pytest.approx(456.0),
    ]
    assert all(p.x == pytest.approx(0.0) for p in positions)


def test_very_short_beam_gets_single_midpoint_post():
    positions = post_positions(P(0, 0), P(36, 0))  # 1.5 ft
    assert len(positions) == 1
    assert positions[0].x == pytest.approx(18.0)


def test_zero_length_beam_gets_no_posts():
    assert post_positions(P(5, 5), P(5, 5)) == []


def test_diagonal_beam_posts_follow_the_axis():
    positions = post_positions(P(0, 0), P(240, 240))
    for p in positions:
        assert p.x == pytest.approx(p.y)


# --- generate / recalculate ---

def test_posts_measured_along_centerline():
    b = beam((0, 0), (240, 0), centerline_p1=P(24, 0), centerline_p2=P(216, 0), section_id=2)
    posts, footings = generate_beam_posts(b, SupportSpec(post_size="6x6", height_ft=6.0, footing_type="concrete"))
    assert [p.x for p in posts] == [pytest.approx(48.0), pytest.approx(192.0)]
    assert posts[0].size == "6x6"
    assert posts[0].height_ft == 6.0
    assert posts[0].section_id == 2
    assert [(f.x, f.y) for f in footings] == [(p.x, p.y) for p in posts]
    assert footings[0].type == "concrete"


def test_recalculate_drops_shared_posts():
    # Two beams meeting at a corner whose end posts coincide
    beams = [
        beam((0, 24), (240, 24), centerline_p1=P(-24, 24), centerline_p2=P(240, 24)),
        beam((0, 24), (0, 240), centerline_p1=P(0, 0), centerline_p2=P(0, 240)),
    ]
    posts, footings = recalculate_posts_and_footings(beams, SupportSpec())
    assert len(posts) == len({(round(p.x), round(p.y)) for p in posts})
    assert len(footings) == len(posts)
    assert len(posts) == 4


def test_remove_duplicate_posts_rounds_locations():
    posts = [Post(x=10.2, y=10.0), Post(x=9.8, y=10.1), Post(x=40, y=10)]
    assert len(remove_duplicate_posts(posts)) == 2


# --- proximity ---

def test_posts_near_beam():
    b = beam((0, 0), (240, 0))
    posts = [Post(x=100, y=40), Post(x=100, y=60), Post(x=260, y=0)]
    near = posts_near_beam(posts, b)
    assert [(p.x, p.y) for p in near] == [(100, 40), (260, 0)]


def test_footings_near_beam():
    b = beam((0, 0), (240, 0))
    footings = [Footing(x=120, y=-48), Footing(x=120, y=-49)]
    assert len(footings_near_beam(footings, b)) == 1


# --- support sources ---

@pytest.mark.parametrize("height_in, size", [(36, "4x4"), (59, "4x4"), (60, "6x6"), (96, "6x6")])
def test_post_size_for_height(height_in, size):
    assert post_size_for_height(height_in) == size


def test_support_spec_from_inputs():
    spec = support_spec_from_inputs(DeckInputs(deck_height_in=72, footing_type="concrete"))
    assert spec.post_size == "6x6"
    assert spec.height_ft == pytest.approx(6.0)
    assert spec.footing_type == "concrete"


def test_support_spec_from_sections():
    structure = SectionStructure(
        posts=[Post(x=0, y=0, size="6x6", height_ft=5.5)],
        footings=[Footing(x=0, y=0, type="concrete")],
    )
    result = SectionResult(
        section_index=0,
        section=RectangularSection(corners=[P(0, 0), P(24, 0), P(24, 24), P(0, 24)]),
        dimensions=SectionDimensions(width_ft=1, height_ft=1, min_x=0, max_x=24, min_y=0, max_y=24),
        structure=structure,
    )
    spec = support_spec_from_sections([result])
    assert spec.post_size == "6x6"
    assert spec.height_ft == 5.5
    assert spec.footing_type == "concrete"


def test_support_spec_defaults_without_sections():
    assert support_spec_from_sections([]) == SupportSpec()
