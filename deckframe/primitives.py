"""Geometry primitives: line intersection, point-in-polygon, distances."""

import math

from .config import CLIP_TOLERANCE_PIXELS, EPSILON
from .models import BBox, Point


def dist(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def midpoint(a: Point, b: Point) -> Point:
    return Point(x=(a.x + b.x) / 2, y=(a.y + b.y) / 2)


def cross(o: Point, a: Point, b: Point) -> float:
    """Z component of (a - o) x (b - o)."""
    return (a.x - o.x) * (b.y - o.y) - (a.y - o.y) * (b.x - o.x)


def unit_vector(a: Point, b: Point) -> tuple[float, float] | None:
    length = dist(a, b)
    if length < 1e-10:
        return None
    return (b.x - a.x) / length, (b.y - a.y) / length


def is_horizontal_segment(a: Point, b: Point, tolerance: float) -> bool:
    return abs(b.y - a.y) < tolerance


def is_vertical_segment(a: Point, b: Point, tolerance: float) -> bool:
    return abs(b.x - a.x) < tolerance


def line_intersection(p1: Point, p2: Point, p3: Point, p4: Point) -> Point | None:
    """Intersection of the infinite lines through (p1, p2) and (p3, p4).

    Returns None for parallel or near-parallel lines. The result may lie
    outside both segments; callers test segment membership separately.
    """
    denom = (p1.x - p2.x) * (p3.y - p4.y) - (p1.y - p2.y) * (p3.x - p4.x)
    if abs(denom) < EPSILON:
        return None
    t = ((p1.x - p3.x) * (p3.y - p4.y) - (p1.y - p3.y) * (p3.x - p4.x)) / denom
    return Point(x=p1.x + t * (p2.x - p1.x), y=p1.y + t * (p2.y - p1.y))


def is_point_on_segment(point: Point, a: Point, b: Point, tolerance: float) -> bool:
    """Bounding-box membership test for a point already on the segment's line.

    Exact for axis-aligned segments; permissive near the corners of the box
    for diagonal ones.
    """
    return (
        min(a.x, b.x) - tolerance <= point.x <= max(a.x, b.x) + tolerance
        and min(a.y, b.y) - tolerance <= point.y <= max(a.y, b.y) + tolerance
    )


def point_to_segment_distance(point: Point, a: Point, b: Point) -> float:
    """Distance from point to the closest point of the finite segment a-b."""
    dx = b.x - a.x
    dy = b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq < 1e-10:
        return dist(point, a)
    t = ((point.x - a.x) * dx + (point.y - a.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(point.x - (a.x + t * dx), point.y - (a.y + t * dy))


def is_point_on_boundary(
    point: Point, polygon: list[Point], tolerance: float = CLIP_TOLERANCE_PIXELS,
) -> bool:
    n = len(polygon)
    return any(
        point_to_segment_distance(point, polygon[i], polygon[(i + 1) % n]) <= tolerance
        for i in range(n)
    )


def is_point_inside_polygon(point: Point, polygon: list[Point] | None) -> bool:
    """Ray-casting parity test. Points within 2 px of an edge count as inside."""
    if not polygon or len(polygon) < 3:
        return False
    if is_point_on_boundary(point, polygon):
        return True

    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y
        if (yi > point.y) != (yj > point.y):
            x_cross = (xj - xi) * (point.y - yi) / (yj - yi) + xi
            if point.x < x_cross:
                inside = not inside
        j = i
    return inside


def polygon_bounds(points: list[Point]) -> BBox:
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return BBox(x0=min(xs), y0=min(ys), x1=max(xs), y1=max(ys))


def signed_distance_to_line(point: Point, a: Point, b: Point) -> float:
    """Signed perpendicular distance from point to the line a-b (left positive)."""
    length = dist(a, b)
    if length < 1e-10:
        return dist(point, a)
    return cross(a, b, point) / length
