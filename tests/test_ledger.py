"""Tests for deckframe/ledger.py."""
import pytest

from conftest import rectangle_section
from deckframe.ledger import (
    are_ledgers_collinear,
    combine_section_ledgers,
    extend_ledger,
    ledger_fastener_count,
)
from deckframe.models import Ledger, Point, SectionDimensions, SectionResult, SectionStructure


def make_ledger(p1, p2, size="2x8"):
    p1, p2 = Point(x=p1[0], y=p1[1]), Point(x=p2[0], y=p2[1])
    length = ((p2.x - p1.x) ** 2 + (p2.y - p1.y) ** 2) ** 0.5 / 24
    return Ledger(p1=p1, p2=p2, size=size, length_ft=length)


def section_result(index, ledger, is_floating=False, is_ledger_rectangle=False):
    section = rectangle_section(0, 0, 240, 240, is_ledger_rectangle=is_ledger_rectangle)
    dims = SectionDimensions(width_ft=10, height_ft=10, min_x=0, max_x=240, min_y=0, max_y=240)
    return SectionResult(
        section_index=index,
        section=section,
        dimensions=dims,
        structure=SectionStructure(ledger=ledger),
        is_floating_section=is_floating,
    )


# --- collinearity ---

def test_collinear_ledgers():
    assert are_ledgers_collinear(make_ledger((0, 0), (240, 0)), make_ledger((240, 0), (480, 0)))


def test_offset_ledgers_are_not_collinear():
    assert not are_ledgers_collinear(make_ledger((0, 0), (240, 0)), make_ledger((240, 1), (480, 1)))


# --- extend_ledger ---

def test_collinear_fragments_extend_to_full_length():
    l1 = make_ledger((0, 0), (240, 0))
    l2 = make_ledger((240, 0), (576, 0))
    combined = extend_ledger(l1, l2)
    assert combined.length_ft == pytest.approx(l1.length_ft + l2.length_ft)
    assert combined.p1 == Point(x=0, y=0)
    assert combined.p2 == Point(x=576, y=0)
    assert combined.is_combined
    assert not combined.is_l_shaped_combination
    assert combined.combined_from_count == 2


def test_collinear_fragments_given_out_of_order():
    combined = extend_ledger(make_ledger((240, 0), (576, 0)), make_ledger((0, 0), (240, 0)))
    assert combined.p1.x == 0
    assert combined.p2.x == 576


def test_vertical_collinear_fragments():
    combined = extend_ledger(make_ledger((0, 0), (0, 120)), make_ledger((0, 120), (0, 360)))
    assert combined.length_ft == pytest.approx(15.0)
    assert combined.p2 == Point(x=0, y=360)


def test_perpendicular_fragments_report_total_footage():
    l1 = make_ledger((0, 0), (288, 0))
    l2 = make_ledger((288, 0), (288, 192))
    combined = extend_ledger(l1, l2)
    assert combined.length_ft == pytest.approx(12.0 + 8.0)
    assert combined.is_l_shaped_combination
    assert combined.original_lengths == [pytest.approx(12.0), pytest.approx(8.0)]
    # Geometry stays on the first fragment
    assert combined.p1 == l1.p1
    assert combined.p2 == l1.p2


def test_missing_side_returns_other():
    l1 = make_ledger((0, 0), (240, 0))
    assert extend_ledger(l1, None) is l1
    assert extend_ledger(None, l1) is l1
    assert extend_ledger(None, None) is None


# --- combine_section_ledgers ---

def test_floating_section_does_not_contribute():
    results = [
        section_result(0, make_ledger((0, 0), (240, 0))),
        section_result(1, make_ledger((240, 0), (480, 0)), is_floating=True),
    ]
    combined = combine_section_ledgers(results)
    assert combined.length_ft == pytest.approx(10.0)
    assert not combined.is_combined
    assert combined.section_id == 1


def test_floating_ledger_rectangle_still_contributes():
    results = [
        section_result(0, make_ledger((0, 0), (240, 0))),
        section_result(1, make_ledger((240, 0), (480, 0)), is_floating=True, is_ledger_rectangle=True),
    ]
    assert combine_section_ledgers(results).length_ft == pytest.approx(20.0)


def test_sections_without_ledger_are_skipped():
    results = [
        section_result(0, None),
        section_result(1, make_ledger((0, 0), (240, 0))),
    ]
    combined = combine_section_ledgers(results)
    assert combined.section_id == 2


def test_no_ledgers_at_all():
    assert combine_section_ledgers([section_result(0, None)]) is None


# --- fasteners ---

@pytest.mark.parametrize("length_ft, expected", [
    (1.0, 4),
    (4.0, 6),
    (10.0, 16),
    (20.0, 30),
])
def test_ledger_fastener_count(length_ft, expected):
    ledger = Ledger(p1=Point(x=0, y=0), p2=Point(x=length_ft * 24, y=0), length_ft=length_ft)
    assert ledger_fastener_count(ledger) == expected


def test_no_ledger_needs_no_fasteners():
    assert ledger_fastener_count(None) == 0
