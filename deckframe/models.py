"""All Pydantic data models for the deck framing merge engine."""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from .config import PIXELS_PER_FOOT


# --- Geometry ---


class Point(BaseModel):
    x: float
    y: float


class BBox(BaseModel):
    """Bounding box: (x0, y0) top-left, (x1, y1) bottom-right."""

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def center(self) -> Point:
        return Point(x=(self.x0 + self.x1) / 2, y=(self.y0 + self.y1) / 2)

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    def contains(self, p: Point) -> bool:
        return self.x0 <= p.x <= self.x1 and self.y0 <= p.y <= self.y1

    def edges(self) -> list[tuple[Point, Point]]:
        tl = Point(x=self.x0, y=self.y0)
        tr = Point(x=self.x1, y=self.y0)
        br = Point(x=self.x1, y=self.y1)
        bl = Point(x=self.x0, y=self.y1)
        return [(tl, tr), (tr, br), (br, bl), (bl, tl)]


class WallSegment(BaseModel):
    p1: Point
    p2: Point


# --- Structural members ---


class MemberKind(str, Enum):
    BEAM = "beam"
    JOIST = "joist"
    RIM_JOIST = "rim_joist"
    BLOCKING = "blocking"


class StructuralMember(BaseModel):
    """A beam, joist, rim joist or blocking piece defined by two endpoints."""

    kind: MemberKind
    p1: Point
    p2: Point
    size: str = ""  # e.g. "2x8"
    usage: str = ""  # e.g. "Outer Beam", "End Joist"
    ply: int | None = None
    section_id: int | None = None
    centerline_p1: Point | None = None  # beam axis, without cantilever
    centerline_p2: Point | None = None
    is_flush: bool = False
    is_diagonal: bool = False
    is_merged: bool = False
    merged_from_count: int = 1
    original_sections: list[int] = Field(default_factory=list)
    is_anomalous: bool = False  # rim joist left outside a diagonal edge
    board_count: int | None = None  # blocking only

    @computed_field
    @property
    def length_ft(self) -> float:
        return math.hypot(self.p2.x - self.p1.x, self.p2.y - self.p1.y) / PIXELS_PER_FOOT

    def axis(self) -> tuple[Point, Point]:
        """Centerline endpoints when known, else the material endpoints."""
        if self.centerline_p1 is not None and self.centerline_p2 is not None:
            return self.centerline_p1, self.centerline_p2
        return self.p1, self.p2

    def moved_to(self, p1: Point, p2: Point, **changes) -> StructuralMember:
        """Copy with new endpoints; the centerline follows the material endpoints."""
        update = {"p1": p1, "p2": p2, **changes}
        if self.centerline_p1 is not None and "centerline_p1" not in changes:
            update["centerline_p1"] = p1
            update["centerline_p2"] = p2
        return self.model_copy(update=update)


class Post(BaseModel):
    x: float
    y: float
    size: str = "4x4"
    height_ft: float = 0.0
    section_id: int | None = None


class Footing(BaseModel):
    x: float
    y: float
    type: str = ""
    section_id: int | None = None


class Ledger(BaseModel):
    """The member fastened to the house wall.

    ``length_ft`` is stored, not derived: an L-shaped combination reports the
    total linear footage of both fragments on the first fragment's geometry.
    """

    p1: Point
    p2: Point
    size: str = ""
    length_ft: float
    ply: int = 1
    usage: str = "Ledger"
    section_id: int | None = None
    is_combined: bool = False
    is_l_shaped_combination: bool = False
    combined_from_count: int = 1
    original_lengths: list[float] = Field(default_factory=list)


# --- Inputs ---


class AttachmentType(str, Enum):
    HOUSE_RIM = "house_rim"
    FLOATING = "floating"
    CONCRETE = "concrete"


class BeamType(str, Enum):
    DROP = "drop"
    FLUSH = "flush"


class PictureFrame(str, Enum):
    NONE = "none"
    SINGLE = "single"
    DOUBLE = "double"


class DeckInputs(BaseModel):
    """User inputs plus the precomputed sizing results."""

    joist_spacing_in: float = 16
    deck_height_in: float = 36
    attachment_type: AttachmentType = AttachmentType.HOUSE_RIM
    beam_type: BeamType = BeamType.DROP
    footing_type: str = "helical"
    picture_frame: PictureFrame = PictureFrame.NONE
    joist_size: str | None = "2x8"  # from span tables, computed upstream
    requires_mid_beam: bool = False


class RectangularSection(BaseModel):
    corners: list[Point]
    is_ledger_rectangle: bool = False
    ledger_walls: list[WallSegment] = Field(default_factory=list)


class SectionDimensions(BaseModel):
    width_ft: float
    height_ft: float
    min_x: float
    max_x: float
    min_y: float
    max_y: float


class JoistDirection(BaseModel):
    """Deck-wide joist orientation, fixed by the main ledger wall."""

    is_ledger_horizontal: bool
    ledger_wall_index: int | None = None
    ledger_p1: Point | None = None
    ledger_p2: Point | None = None

    @property
    def joists_run_vertically(self) -> bool:
        return self.is_ledger_horizontal


# --- Per-rectangle results ---


class SectionStructure(BaseModel):
    """Framing computed for one rectangle, before merging."""

    ledger: Ledger | None = None
    beams: list[StructuralMember] = Field(default_factory=list)
    joists: list[StructuralMember] = Field(default_factory=list)
    rim_joists: list[StructuralMember] = Field(default_factory=list)
    posts: list[Post] = Field(default_factory=list)
    footings: list[Footing] = Field(default_factory=list)
    mid_span_blocking: list[StructuralMember] = Field(default_factory=list)
    picture_frame_blocking: list[StructuralMember] = Field(default_factory=list)
    total_depth_ft: float = 0.0
    error: str | None = None


class SectionResult(BaseModel):
    section_index: int
    section: RectangularSection
    dimensions: SectionDimensions
    structure: SectionStructure
    is_floating_section: bool = False


# --- Clipping ---


class ClipStatus(str, Enum):
    UNCHANGED = "unchanged"
    CLIPPED = "clipped"
    REMOVED = "removed"


class ClipResult(BaseModel):
    status: ClipStatus
    p1: Point
    p2: Point
    length_ft: float

    @property
    def removed(self) -> bool:
        return self.status == ClipStatus.REMOVED


# --- Angled-edge collaborators ---


class DiagonalEdge(BaseModel):
    p1: Point
    p2: Point
    index: int


class AngledBeamResult(BaseModel):
    beam: StructuralMember
    posts: list[Post] = Field(default_factory=list)
    footings: list[Footing] = Field(default_factory=list)


class BeamTrimResult(BaseModel):
    outer_beam: StructuralMember
    outer_posts: list[Post] = Field(default_factory=list)
    outer_footings: list[Footing] = Field(default_factory=list)
    diagonal_beam: StructuralMember
    diagonal_posts: list[Post] = Field(default_factory=list)
    diagonal_footings: list[Footing] = Field(default_factory=list)
    intersection_post: Post | None = None
    intersection_footing: Footing | None = None


# --- Quality ---


class GateStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class QualityCheck(BaseModel):
    name: str
    status: GateStatus
    message: str
    detail: str | None = None


class QualityReport(BaseModel):
    overall: GateStatus
    checks: list[QualityCheck]


# --- Final Output ---


class MergedStructure(BaseModel):
    ledger: Ledger | None = None
    beams: list[StructuralMember] = Field(default_factory=list)
    joists: list[StructuralMember] = Field(default_factory=list)
    rim_joists: list[StructuralMember] = Field(default_factory=list)
    posts: list[Post] = Field(default_factory=list)
    footings: list[Footing] = Field(default_factory=list)
    mid_span_blocking: list[StructuralMember] = Field(default_factory=list)
    picture_frame_blocking: list[StructuralMember] = Field(default_factory=list)
    quality: QualityReport | None = None
    diagnostics: dict = Field(default_factory=dict)


class CalculationError(BaseModel):
    error: str
