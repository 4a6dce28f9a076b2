"""Framing constants and environment-driven settings."""

import os

from dotenv import load_dotenv

load_dotenv()

# --- Drawing scale ---

PIXELS_PER_FOOT = 24  # 24 pixels = 1 foot
EPSILON = 0.01  # Small tolerance for float comparisons

# --- Framing layout ---

POST_INSET_FEET = 1.0
MAX_POST_SPACING_FEET = 8.0
BEAM_CANTILEVER_FEET = 1.0
DROP_BEAM_CENTERLINE_SETBACK_FEET = 1.0
MAX_BLOCKING_SPACING_FEET = 8.0
PICTURE_FRAME_SINGLE_INSET_INCHES = 5
PICTURE_FRAME_DOUBLE_INSET_INCHES = 10
ACTUAL_LUMBER_THICKNESS_INCHES = 1.5
SIX_BY_SIX_MIN_HEIGHT_INCHES = 60  # posts switch from 4x4 to 6x6

# --- Clipping / merging tolerances ---

CLIP_TOLERANCE_PIXELS = 2.0
MIN_MEMBER_LENGTH_FEET = 0.1
RIM_PERIMETER_DISTANCE_FEET = 0.5
RIM_PARALLEL_CROSS_MAX = 0.2
POST_BEAM_ASSOCIATION_FEET = 2.0
DIAGONAL_AXIS_TOLERANCE_PIXELS = 1.0

# --- Environment ---

TRACE_ENABLED = os.getenv("DECKFRAME_TRACE", "").lower() in ("1", "true", "yes", "on")
LOG_LEVEL = os.getenv("DECKFRAME_LOG_LEVEL", "INFO").upper()
