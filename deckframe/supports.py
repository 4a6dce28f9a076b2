"""Post and footing placement along beams.

Supports are never patched: whenever beam geometry changes, every post and
footing is regenerated from the final beams. The post/footing to beam
relationship is a proximity query, not a stored reference.
"""

from __future__ import annotations

import math

from pydantic import BaseModel

from .config import (
    EPSILON,
    MAX_POST_SPACING_FEET,
    PIXELS_PER_FOOT,
    POST_BEAM_ASSOCIATION_FEET,
    POST_INSET_FEET,
    SIX_BY_SIX_MIN_HEIGHT_INCHES,
)
from .models import DeckInputs, Footing, Point, Post, SectionResult, StructuralMember
from .primitives import dist, point_to_segment_distance


class SupportSpec(BaseModel):
    """Attributes shared by every post/footing the recalculator creates."""

    post_size: str = "4x4"
    height_ft: float = 3.0
    footing_type: str = "helical"


def post_size_for_height(deck_height_in: float) -> str:
    return "6x6" if deck_height_in >= SIX_BY_SIX_MIN_HEIGHT_INCHES else "4x4"


def support_spec_from_inputs(inputs: DeckInputs) -> SupportSpec:
    return SupportSpec(
        post_size=post_size_for_height(inputs.deck_height_in),
        height_ft=inputs.deck_height_in / 12,
        footing_type=inputs.footing_type,
    )


def support_spec_from_sections(section_results: list[SectionResult]) -> SupportSpec:
    """Reuse the post size/height and footing type the sections already chose."""
    spec = SupportSpec()
    for result in section_results:
        if result.structure.posts:
            post = result.structure.posts[0]
            spec.post_size = post.size
            spec.height_ft = post.height_ft
            break
    for result in section_results:
        if result.structure.footings:
            spec.footing_type = result.structure.footings[0].type
            break
    return spec


def post_positions(p1: Point, p2: Point) -> list[Point]:
    """Post locations along the axis p1-p2.

    One post per end, inset from each endpoint, plus evenly spaced
    intermediates when the span exceeds the maximum post spacing. Axes
    shorter than two insets get a single post at the midpoint.
    """
    length_px = dist(p1, p2)
    if length_px < EPSILON:
        return []
    ux = (p2.x - p1.x) / length_px
    uy = (p2.y - p1.y) / length_px
    inset_px = POST_INSET_FEET * PIXELS_PER_FOOT

    if length_px < 2 * inset_px:
        half = length_px / 2
        return [Point(x=p1.x + ux * half, y=p1.y + uy * half)]

    first = Point(x=p1.x + ux * inset_px, y=p1.y + uy * inset_px)
    last = Point(x=p2.x - ux * inset_px, y=p2.y - uy * inset_px)
    span_px = dist(first, last)
    if span_px < EPSILON:
        return [first]

    positions = [first]
    span_ft = span_px / PIXELS_PER_FOOT
    if span_ft > MAX_POST_SPACING_FEET:
        count = math.floor(span_ft / MAX_POST_SPACING_FEET)
        spacing_px = span_px / (count + 1)
        for i in range(1, count + 1):
            positions.append(Point(x=first.x + ux * spacing_px * i, y=first.y + uy * spacing_px * i))
    positions.append(last)
    return positions


def generate_beam_posts(beam: StructuralMember, spec: SupportSpec) -> tuple[list[Post], list[Footing]]:
    """Posts and co-located footings for one beam, measured along its centerline."""
    axis_p1, axis_p2 = beam.axis()
    posts: list[Post] = []
    footings: list[Footing] = []
    for pos in post_positions(axis_p1, axis_p2):
        posts.append(Post(
            x=pos.x, y=pos.y,
            size=spec.post_size,
            height_ft=spec.height_ft,
            section_id=beam.section_id,
        ))
        footings.append(Footing(x=pos.x, y=pos.y, type=spec.footing_type, section_id=beam.section_id))
    return posts, footings


def recalculate_posts_and_footings(
    beams: list[StructuralMember],
    spec: SupportSpec,
) -> tuple[list[Post], list[Footing]]:
    """Replace all supports with ones derived from the final beam geometry."""
    posts: list[Post] = []
    footings: list[Footing] = []
    for beam in beams:
        beam_posts, beam_footings = generate_beam_posts(beam, spec)
        posts.extend(beam_posts)
        footings.extend(beam_footings)
    return remove_duplicate_posts(posts), remove_duplicate_footings(footings)


def distance_to_beam(x: float, y: float, beam: StructuralMember) -> float:
    axis_p1, axis_p2 = beam.axis()
    return point_to_segment_distance(Point(x=x, y=y), axis_p1, axis_p2)


def posts_near_beam(posts: list[Post], beam: StructuralMember) -> list[Post]:
    max_px = POST_BEAM_ASSOCIATION_FEET * PIXELS_PER_FOOT
    return [p for p in posts if distance_to_beam(p.x, p.y, beam) <= max_px]


def footings_near_beam(footings: list[Footing], beam: StructuralMember) -> list[Footing]:
    max_px = POST_BEAM_ASSOCIATION_FEET * PIXELS_PER_FOOT
    return [f for f in footings if distance_to_beam(f.x, f.y, beam) <= max_px]


def remove_duplicate_posts(posts: list[Post]) -> list[Post]:
    """Drop posts that land on the same rounded pixel location."""
    seen: set[tuple[int, int]] = set()
    unique: list[Post] = []
    for post in posts:
        key = (round(post.x), round(post.y))
        if key not in seen:
            seen.add(key)
            unique.append(post)
    return unique


def remove_duplicate_footings(footings: list[Footing]) -> list[Footing]:
    seen: set[tuple[int, int]] = set()
    unique: list[Footing] = []
    for footing in footings:
        key = (round(footing.x), round(footing.y))
        if key not in seen:
            seen.add(key)
            unique.append(footing)
    return unique
