"""
Pydantic models for the generation layer.

Plans and candidate pairs are working data for a single request; Puzzle,
HintLevel and GenerationMetadata are frozen because they are handed to
callers and never changed afterwards.
"""

from datetime import datetime
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..config import Difficulty
from ..physics.models import Direction, GridPosition, LaserPath, Material, MaterialKind, PathSegment


Algorithm = Literal["guaranteed", "legacy"]
AttemptOutcome = Literal["success", "failed", "timeout"]


class EntryExitPair(BaseModel):
    """A ranked candidate pair of boundary cells."""
    entry: GridPosition
    exit: GridPosition
    distance: int
    score: float
    placement_type: Literal["corner", "optimal", "edge"] = "edge"


class Waypoint(BaseModel):
    """A cell where the planned beam turns, and the material that turns it."""
    position: GridPosition
    incoming: Direction
    outgoing: Direction
    material: MaterialKind = "mirror"
    angle: int


class PathPlan(BaseModel):
    """Abstract beam route between an entry and an exit."""
    entry: GridPosition
    exit: GridPosition
    grid_size: int
    waypoints: List[Waypoint] = Field(default_factory=list)
    cells: List[GridPosition] = Field(default_factory=list)
    complexity_score: int = Field(default=1, ge=1, le=10)

    @property
    def reflection_count(self) -> int:
        return len(self.waypoints)


class HintLevel(BaseModel):
    """One cumulative reveal of the solution path."""
    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=1, le=4)
    percentage: int
    segments: Tuple[PathSegment, ...] = ()
    revealed_cells: Tuple[GridPosition, ...] = ()


class Relaxation(BaseModel):
    """
    Constraints loosened after failed attempts.

    Spacing is never relaxed: the labelled tier's min_distance always holds.

    Attributes:
        min_confidence_score: Validator score a candidate must reach
        timeout_ms: Time budget for the guaranteed attempts
        reflection_relief: Turns taken off min/preferred reflections
        steps: Number of failures that loosened something
    """
    model_config = ConfigDict(frozen=True)

    min_confidence_score: float
    timeout_ms: int
    reflection_relief: int = 0
    steps: int = 0


class AttemptRecord(BaseModel):
    """What happened on one generation attempt."""
    model_config = ConfigDict(frozen=True)

    attempt: int
    difficulty: Difficulty
    outcome: AttemptOutcome
    error_kind: Optional[str] = None
    message: Optional[str] = None
    relaxation: Optional[Relaxation] = None


class GenerationMetadata(BaseModel):
    """Observability record emitted alongside every generated puzzle."""
    model_config = ConfigDict(frozen=True)

    puzzle_id: str
    difficulty: Difficulty
    algorithm: Algorithm
    attempts: int
    elapsed_ms: float
    confidence_score: float
    validation_passed: bool
    spacing_distance: int
    path_complexity: int
    material_density_achieved: float
    fallback_used: bool
    adapted_from_difficulty: Optional[Difficulty] = None
    attempt_history: Tuple[AttemptRecord, ...] = ()


class Puzzle(BaseModel):
    """A generated puzzle; the only output of the generator."""
    model_config = ConfigDict(frozen=True)

    id: str
    difficulty: Difficulty
    grid_size: int
    base_score: int
    max_time: int
    materials: Tuple[Material, ...] = ()
    entry: GridPosition
    solution: GridPosition
    solution_path: LaserPath
    hints: Tuple[HintLevel, ...] = ()
    material_density: float
    confidence_score: float
    fallback_used: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    metadata: Optional[GenerationMetadata] = None
