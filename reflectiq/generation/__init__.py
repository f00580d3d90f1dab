"""Puzzle generation for ReflectIQ."""

from .models import (
    EntryExitPair,
    Waypoint,
    PathPlan,
    HintLevel,
    Relaxation,
    AttemptRecord,
    GenerationMetadata,
    Puzzle,
)
from .errors import GenerationError, GenerationExhaustedError
from .points import PointSelector, validate_spacing
from .planner import PathPlanner
from .placer import MaterialPlacer, build_material
from .hints import segment_hints, HINT_PERCENTAGES
from .relaxation import apply_relaxation, initial_relaxation, relax
from .legacy import LegacyGenerator
from .registry import PuzzleRegistry, InMemoryPuzzleRegistry
from .generator import PuzzleGenerator

__all__ = [
    # Models
    "EntryExitPair",
    "Waypoint",
    "PathPlan",
    "HintLevel",
    "Relaxation",
    "AttemptRecord",
    "GenerationMetadata",
    "Puzzle",
    # Errors
    "GenerationError",
    "GenerationExhaustedError",
    # Pipeline components
    "PointSelector",
    "validate_spacing",
    "PathPlanner",
    "MaterialPlacer",
    "build_material",
    "segment_hints",
    "HINT_PERCENTAGES",
    "initial_relaxation",
    "relax",
    "apply_relaxation",
    "LegacyGenerator",
    "PuzzleRegistry",
    "InMemoryPuzzleRegistry",
    # Orchestration
    "PuzzleGenerator",
]
