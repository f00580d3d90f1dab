"""Data models for solution validation."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..physics.grid import content_hash
from ..physics.models import Direction, GridPosition, LaserPath, Material


IssueType = Literal["no_solution", "multiple_solutions", "physics_violation", "infinite_loop"]
Severity = Literal["critical", "warning", "info"]


class PuzzleCandidate(BaseModel):
    """A fully materialized layout awaiting proof."""
    difficulty: str
    grid_size: int = Field(ge=3)
    materials: List[Material] = Field(default_factory=list)
    entry: GridPosition
    exit: GridPosition

    def content_hash(self) -> str:
        return content_hash(self.grid_size, self.materials, self.entry, self.exit)


class ValidationIssue(BaseModel):
    """A single validation finding."""
    type: IssueType
    message: str
    severity: Severity = "critical"
    positions: List[GridPosition] = Field(default_factory=list)
    suggested_fix: Optional[str] = None


class AlternativePath(BaseModel):
    """A competing beam launch that also leaves the grid."""
    start: GridPosition
    direction: Direction
    path: LaserPath
    confidence: float = Field(ge=0, le=1)


class PhysicsReport(BaseModel):
    """Outcome of replaying every material interaction along a path."""
    compliant: bool = True
    accuracy: float = Field(default=1.0, ge=0, le=1)
    interactions: int = 0
    violations: List[GridPosition] = Field(default_factory=list)
    broken_chain: bool = False


class ValidationResult(BaseModel):
    """Result of validating a puzzle candidate."""
    is_valid: bool
    has_unique_solution: bool
    alternative_count: int = 0
    confidence_score: float = Field(default=0, ge=0, le=100)
    issues: List[ValidationIssue] = Field(default_factory=list)
    physics_compliant: bool = True
    reflection_accuracy: float = 1.0
    alternatives: List[AlternativePath] = Field(default_factory=list)
    solution_path: Optional[LaserPath] = None
    validation_time_ms: float = 0.0

    @property
    def critical_issues(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "critical"]
