"""Solution validation for ReflectIQ puzzles."""

from .verify import (
    SolutionValidator,
    validate_solution,
    check_physics,
    detect_loop,
    alternative_confidence,
    score_confidence,
)
from .models import (
    PuzzleCandidate,
    ValidationIssue,
    ValidationResult,
    AlternativePath,
    PhysicsReport,
)
from .cascade import filter_cascading_issues, summarize_issues

__all__ = [
    # Main validation
    "SolutionValidator",
    "validate_solution",
    "check_physics",
    "detect_loop",
    "alternative_confidence",
    "score_confidence",
    # Models
    "PuzzleCandidate",
    "ValidationIssue",
    "ValidationResult",
    "AlternativePath",
    "PhysicsReport",
    # Issue filtering
    "filter_cascading_issues",
    "summarize_issues",
]
