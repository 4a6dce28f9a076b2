"""Tests for deckframe/clipping.py."""
import pytest

from conftest import beam, member, pts
from deckframe.clipping import (
    clip_member,
    clip_members,
    clip_rim_joist_to_boundary,
    clip_segment_to_boundary,
    is_along_perimeter,
)
from deckframe.models import ClipStatus, MemberKind, Point


def P(x, y):
    return Point(x=x, y=y)


# --- clip_segment_to_boundary ---

def test_both_inside_is_unchanged(rectangle):
    result = clip_segment_to_boundary(P(10, 10), P(190, 90), rectangle)
    assert result.status == ClipStatus.UNCHANGED
    assert result.p1 == P(10, 10)
    assert result.p2 == P(190, 90)


def test_p1_outside_is_clipped_to_left_edge(rectangle):
    result = clip_segment_to_boundary(P(-48, 50), P(48, 50), rectangle)
    assert result.status == ClipStatus.CLIPPED
    assert result.p1.x == pytest.approx(0.0)
    assert result.p1.y == pytest.approx(50.0)
    assert result.p2 == P(48, 50)
    assert result.length_ft == pytest.approx(2.0)


def test_p2_outside_is_clipped_to_right_edge(rectangle):
    result = clip_segment_to_boundary(P(150, 50), P(260, 50), rectangle)
    assert result.status == ClipStatus.CLIPPED
    assert result.p2.x == pytest.approx(200.0)
    assert result.length_ft == pytest.approx(50 / 24)


def test_clipping_is_idempotent(rectangle):
    first = clip_segment_to_boundary(P(-48, 50), P(48, 50), rectangle)
    second = clip_segment_to_boundary(first.p1, first.p2, rectangle)
    assert second.status == ClipStatus.UNCHANGED
    assert second.p1 == first.p1
    assert second.p2 == first.p2


def test_exterior_segment_without_crossing_is_removed(rectangle):
    result = clip_segment_to_boundary(P(300, 300), P(400, 400), rectangle)
    assert result.removed
    assert result.length_ft == 0


def test_exterior_segment_parallel_to_polygon_is_removed(rectangle):
    result = clip_segment_to_boundary(P(-50, 150), P(250, 150), rectangle)
    assert result.removed


def test_diagonal_crossing_both_outside(rectangle):
    result = clip_segment_to_boundary(P(-50, -50), P(250, 150), rectangle)
    assert result.status == ClipStatus.CLIPPED
    assert result.p1.x == pytest.approx(25.0)
    assert result.p1.y == pytest.approx(0.0)
    assert result.p2.x == pytest.approx(175.0)
    assert result.p2.y == pytest.approx(100.0)


def test_beam_lying_on_edge_is_unchanged(rectangle):
    result = clip_segment_to_boundary(P(0, 50), P(200, 50), rectangle)
    assert result.status == ClipStatus.UNCHANGED


def test_vertical_beam_through_l_shape(l_shape):
    result = clip_segment_to_boundary(P(50, -50), P(50, 250), l_shape)
    assert result.status == ClipStatus.CLIPPED
    assert result.p1.y == pytest.approx(0.0)
    assert result.p2.y == pytest.approx(200.0)
    assert result.length_ft > 0


def test_l_shape_beam_into_notch_is_trimmed(l_shape):
    result = clip_segment_to_boundary(P(50, 150), P(180, 150), l_shape)
    assert result.status == ClipStatus.CLIPPED
    assert result.p2.x == pytest.approx(100.0)


def test_u_shape_segment_starting_in_notch(u_shape):
    result = clip_segment_to_boundary(P(150, 100), P(250, 100), u_shape)
    assert result.status == ClipStatus.CLIPPED
    assert result.p1.x == pytest.approx(200.0)
    assert result.p2 == P(250, 100)


def test_u_shape_segment_with_both_ends_in_arms(u_shape):
    # Both endpoints inside: left as is even though it spans the cutout
    result = clip_segment_to_boundary(P(50, 100), P(250, 100), u_shape)
    assert result.status == ClipStatus.UNCHANGED


def test_triangle_horizontal_clip(triangle):
    result = clip_segment_to_boundary(P(-50, 100), P(250, 100), triangle)
    assert result.status == ClipStatus.CLIPPED
    assert result.p1.x == pytest.approx(50.0)
    assert result.p2.x == pytest.approx(150.0)


def test_grazing_single_intersection_is_removed(triangle):
    # Touches only the apex
    result = clip_segment_to_boundary(P(50, 0), P(150, 0), triangle)
    assert result.removed


def test_degenerate_member_is_removed(rectangle):
    assert clip_segment_to_boundary(P(50, 50), P(51, 50), rectangle).removed


def test_short_remainder_is_removed(rectangle):
    # Only 1 px of the member lies inside
    result = clip_segment_to_boundary(P(-100, 50), P(1, 50), rectangle)
    assert result.removed


def test_invalid_polygon_passes_through():
    result = clip_segment_to_boundary(P(0, 0), P(100, 0), pts((0, 0), (10, 0)))
    assert result.status == ClipStatus.UNCHANGED


# --- rim joist variant ---

def test_is_along_perimeter(u_shape):
    assert is_along_perimeter(P(0, 20), P(0, 180), u_shape)
    assert not is_along_perimeter(P(20, 0), P(20, 100), u_shape)


def test_rim_joist_bridging_notch_is_removed(u_shape):
    # Runs across the open end of the U, far from any parallel edge
    result = clip_rim_joist_to_boundary(P(100, 125), P(200, 125), u_shape)
    assert result.removed


def test_rim_joist_on_perimeter_is_kept(u_shape):
    result = clip_rim_joist_to_boundary(P(0, 0), P(300, 0), u_shape)
    assert result.status == ClipStatus.UNCHANGED


def test_rim_joist_on_perimeter_is_still_clipped(rectangle):
    result = clip_rim_joist_to_boundary(P(-24, 100), P(200, 100), rectangle)
    assert result.status == ClipStatus.CLIPPED
    assert result.p1.x == pytest.approx(0.0)


# --- clip_member ---

def test_clip_member_moves_centerline(rectangle):
    b = beam((-48, 50), (48, 50), centerline_p1=P(-48, 50), centerline_p2=P(48, 50))
    clipped = clip_member(b, rectangle)
    assert clipped.p1.x == pytest.approx(0.0)
    assert clipped.centerline_p1.x == pytest.approx(0.0)
    assert clipped.length_ft == pytest.approx(2.0)
    # Input is untouched
    assert b.p1 == P(-48, 50)


def test_clip_member_returns_same_member_when_inside(rectangle):
    b = beam((10, 50), (190, 50))
    assert clip_member(b, rectangle) is b


def test_clip_members_filters_removed(rectangle):
    members = [
        beam((10, 50), (190, 50)),
        beam((300, 300), (400, 300)),
        member(MemberKind.RIM_JOIST, (100, 150), (100, 250), usage="End Joist"),
    ]
    kept = clip_members(members, rectangle)
    assert len(kept) == 1
    assert kept[0].p1 == P(10, 50)
