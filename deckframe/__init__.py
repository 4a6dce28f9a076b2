"""Multi-section deck framing: merge and clip per-rectangle framing into one structure."""

from .analyzer import calculate_multi_section_structure, handle_beam_merging, merge_section_results
from .models import CalculationError, DeckInputs, MergedStructure, RectangularSection

__all__ = [
    "calculate_multi_section_structure",
    "handle_beam_merging",
    "merge_section_results",
    "CalculationError",
    "DeckInputs",
    "MergedStructure",
    "RectangularSection",
]
