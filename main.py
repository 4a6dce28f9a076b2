import logging
import traceback

from dotenv import load_dotenv
from fastapi import FastAPI
from pydantic import BaseModel, Field

from deckframe import calculate_multi_section_structure, config
from deckframe.clipping import clip_rim_joist_to_boundary, clip_segment_to_boundary
from deckframe.models import CalculationError, DeckInputs, Point, RectangularSection

load_dotenv()

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI()


class MultiSectionRequest(BaseModel):
    sections: list[RectangularSection]
    inputs: DeckInputs = Field(default_factory=DeckInputs)
    selected_wall_indices: list[int] = Field(default_factory=list)
    original_points: list[Point] = Field(default_factory=list)


class ClipRequest(BaseModel):
    p1: Point
    p2: Point
    polygon: list[Point]
    rim_joist: bool = False  # apply the perimeter-only rim joist rule


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.post("/api/multi-section")
def multi_section(req: MultiSectionRequest):
    """Frame a decomposed deck footprint and return the merged structure."""
    try:
        result = calculate_multi_section_structure(
            req.sections, req.inputs, req.selected_wall_indices, req.original_points,
        )
    except Exception as e:
        logger.exception("Multi-section request failed")
        return {
            "error": "Calculation failed",
            "detail": str(e),
            "traceback": traceback.format_exc(),
        }
    if isinstance(result, CalculationError):
        return {"error": result.error, "detail": None}
    return result.model_dump()


@app.post("/api/clip")
def clip(req: ClipRequest):
    """Clip a single segment against a footprint polygon."""
    if len(req.polygon) < 3:
        return {"error": "Invalid polygon", "detail": "Polygon needs at least three points."}
    if req.rim_joist:
        result = clip_rim_joist_to_boundary(req.p1, req.p2, req.polygon)
    else:
        result = clip_segment_to_boundary(req.p1, req.p2, req.polygon)
    return result.model_dump()
