"""Ledger combination across sections.

Collinear fragments are geometrically extended. Fragments on different walls
(the two legs of an L) cannot form one segment, so the result keeps the
first fragment's geometry and reports the total linear footage.
"""

from __future__ import annotations

import logging
import math

from .config import EPSILON, PIXELS_PER_FOOT
from .models import Ledger, SectionResult
from .trace import trace

logger = logging.getLogger(__name__)


def are_ledgers_collinear(l1: Ledger, l2: Ledger) -> bool:
    """Both endpoints of l2 lie on the infinite line through l1."""
    dx = l1.p2.x - l1.p1.x
    dy = l1.p2.y - l1.p1.y
    cross1 = (l2.p1.x - l1.p1.x) * dy - (l2.p1.y - l1.p1.y) * dx
    cross2 = (l2.p2.x - l1.p1.x) * dy - (l2.p2.y - l1.p1.y) * dx
    return abs(cross1) < EPSILON and abs(cross2) < EPSILON


def combine_ledgers(l1: Ledger, l2: Ledger) -> Ledger:
    """Extend collinear ledgers to their combined extent along the dominant axis."""
    points = [l1.p1, l1.p2, l2.p1, l2.p2]
    horizontal = abs(l1.p2.x - l1.p1.x) > abs(l1.p2.y - l1.p1.y)
    if horizontal:
        start = min(points, key=lambda p: p.x)
        end = max(points, key=lambda p: p.x)
        length_px = end.x - start.x
    else:
        start = min(points, key=lambda p: p.y)
        end = max(points, key=lambda p: p.y)
        length_px = end.y - start.y

    return l1.model_copy(update={
        "p1": start,
        "p2": end,
        "length_ft": abs(length_px) / PIXELS_PER_FOOT,
        "is_combined": True,
        "combined_from_count": l1.combined_from_count + l2.combined_from_count,
    })


def extend_ledger(l1: Ledger | None, l2: Ledger | None) -> Ledger | None:
    if l1 is None or l2 is None:
        return l1 or l2

    if are_ledgers_collinear(l1, l2):
        combined = combine_ledgers(l1, l2)
        trace("ledger.extended", length_ft=round(combined.length_ft, 3))
        return combined

    # Perpendicular walls: keep l1's segment, report the total footage
    lengths = (l1.original_lengths or [l1.length_ft]) + (l2.original_lengths or [l2.length_ft])
    combined = l1.model_copy(update={
        "length_ft": l1.length_ft + l2.length_ft,
        "is_combined": True,
        "is_l_shaped_combination": True,
        "combined_from_count": l1.combined_from_count + l2.combined_from_count,
        "original_lengths": lengths,
    })
    trace("ledger.l_shaped", length_ft=round(combined.length_ft, 3), parts=lengths)
    return combined


def combine_section_ledgers(section_results: list[SectionResult]) -> Ledger | None:
    """Fold every contributing section's ledger into one.

    A section contributes when it carries a ledger and either is attached
    to the house or is flagged as a ledger rectangle. Purely floating
    sections never contribute.
    """
    combined: Ledger | None = None
    for i, result in enumerate(section_results):
        ledger = result.structure.ledger
        if ledger is None:
            continue
        if result.is_floating_section and not result.section.is_ledger_rectangle:
            continue
        ledger = ledger.model_copy(update={"section_id": i + 1})
        if combined is None:
            combined = ledger
        else:
            combined = extend_ledger(combined, ledger)

    if combined is not None:
        logger.info("Combined ledger: %.2f ft from %d fragment(s)",
                    combined.length_ft, combined.combined_from_count)
    return combined


def ledger_fastener_count(ledger: Ledger | None) -> int:
    """Structural screws for the ledger: a pair every 16 in, never fewer than four."""
    if ledger is None:
        return 0
    return max(4, math.ceil(ledger.length_ft * 12 / 16) * 2)
