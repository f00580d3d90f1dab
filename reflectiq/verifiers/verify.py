"""
Solution validation for generated puzzles.

Validates:
1. The beam fired from the entry reaches the intended exit
2. No competing launch (other headings from the entry, other boundary cells) leaves the grid
3. Every material interaction along the path obeys the reflection rules
4. The path does not loop

and scores the candidate 0-100.
"""

import logging
import math
import threading
import time
from collections import OrderedDict
from typing import Dict, List, Optional, Set, Tuple

from ..config import DifficultyConfig, GenerationConfig
from ..physics.grid import alternate_starts, is_corner, manhattan_distance, material_map
from ..physics.models import Direction, GridPosition, LaserPath, Material
from ..physics.tracer import expected_heading, trace_beam
from .models import (
    AlternativePath,
    PhysicsReport,
    PuzzleCandidate,
    ValidationIssue,
    ValidationResult,
)


logger = logging.getLogger(__name__)

PHYSICS_TOLERANCE = 0.9


def angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two headings, in degrees."""
    diff = abs(a - b) % 360
    return min(diff, 360 - diff)


def check_physics(path: LaserPath) -> PhysicsReport:
    """
    Replay each material interaction on a path and score it.

    An interaction scores 1 - diff/180, where diff is the gap between the
    exact expected heading and the heading the path actually takes next.
    Anything at or below 0.9 is a violation, as is a segment that does not
    start where the previous one ended.
    """
    segments = path.segments
    scores: List[float] = []
    violations: List[GridPosition] = []
    broken_chain = False

    for prev, cur in zip(segments, segments[1:]):
        if prev.end != cur.start:
            broken_chain = True
            violations.append(cur.start)

    last = len(segments) - 1
    for i, seg in enumerate(segments):
        if seg.material is None:
            continue

        expected = expected_heading(seg.material, seg.direction)
        if expected is None:
            # Absorbers are only consistent as the final cell of an absorbed path
            score = 1.0 if i == last and path.termination == "absorbed" else 0.0
        else:
            actual = segments[i + 1].direction if i < last else path.exit_direction
            if actual is None:
                if path.termination == "loop":
                    continue
                score = 0.0
            else:
                score = 1 - angle_difference(expected, actual.value) / 180

        scores.append(score)
        if score <= PHYSICS_TOLERANCE:
            violations.append(seg.end)

    accuracy = sum(scores) / len(scores) if scores else 1.0
    return PhysicsReport(
        compliant=not violations,
        accuracy=accuracy,
        interactions=len(scores),
        violations=violations,
        broken_chain=broken_chain,
    )


def detect_loop(path: LaserPath, grid_size: int) -> bool:
    """True if the path was cut off as a loop, is over-long, or repeats a state."""
    if path.termination == "loop":
        return True
    if len(path.segments) > 4 * grid_size * grid_size:
        return True
    seen: Set[Tuple[GridPosition, Direction]] = set()
    for seg in path.segments:
        state = (seg.start, seg.direction)
        if state in seen:
            return True
        seen.add(state)
    return False


def alternative_confidence(alternative: LaserPath, primary: LaserPath) -> float:
    """How strongly a competing path reads as a distinct solution (0.5-0.9)."""
    confidence = 0.5
    if len(alternative.segments) != len(primary.segments):
        confidence += 0.2
    alt_kinds = {seg.material.kind for seg in alternative.segments if seg.material}
    primary_kinds = {seg.material.kind for seg in primary.segments if seg.material}
    if alt_kinds != primary_kinds:
        confidence += 0.2
    return min(confidence, 1.0)


def score_confidence(
    candidate: PuzzleCandidate,
    path: LaserPath,
    alternative_count: int,
    physics: PhysicsReport,
    settings: DifficultyConfig,
) -> float:
    """Confidence score (0-100) for a validated candidate."""
    score = 100.0

    if path.exit is None:
        score -= 50
    elif path.exit != candidate.exit:
        score -= 30

    score -= min(30, alternative_count * 10)

    if not physics.compliant:
        score -= 20
    if physics.accuracy < PHYSICS_TOLERANCE:
        score -= math.floor((PHYSICS_TOLERANCE - physics.accuracy) * 100)

    if path.reflection_count in settings.reflection_range:
        score += 5

    size = candidate.grid_size
    density = len(candidate.materials) / (size * size)
    if abs(density - settings.material_density) <= 0.1:
        score += 5

    distance = manhattan_distance(candidate.entry, candidate.exit)
    if is_corner(candidate.entry, size) or is_corner(candidate.exit, size) or distance >= size / 2:
        score += 5

    return max(0.0, min(100.0, score))


class SolutionValidator:
    """
    Proves that a candidate puzzle has exactly one solution.

    Validation is pure, so results are cached by content hash. The cache is
    lock-guarded so one validator can serve concurrent generation tasks, and
    holds at most `config.validation_cache_size` results, least recently used
    first out.
    """

    def __init__(self, config: Optional[GenerationConfig] = None):
        self.config = config or GenerationConfig()
        self._cache: "OrderedDict[str, ValidationResult]" = OrderedDict()
        self._lock = threading.Lock()

    def validate(self, candidate: PuzzleCandidate) -> ValidationResult:
        """
        Validate a candidate, reusing a cached result for identical layouts.

        Args:
            candidate: Materials, entry and intended exit to prove

        Returns:
            ValidationResult with issues, alternatives and confidence score

        Raises:
            ValueError: If the difficulty is unknown or the layout is malformed
        """
        key = f"{candidate.difficulty}:{candidate.content_hash()}"
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        result = self._validate(candidate)
        limit = self.config.validation_cache_size
        with self._lock:
            self._cache[key] = result
            while len(self._cache) > limit:
                self._cache.popitem(last=False)
        return result

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def find_alternatives(
        self,
        candidate: PuzzleCandidate,
        cells: Dict[GridPosition, Material],
        primary: LaserPath,
        settings: DifficultyConfig,
    ) -> Tuple[List[AlternativePath], int]:
        """
        Fire every competing launch and collect those that leave the grid.

        Returns:
            The highest-confidence alternatives (capped) and the full count
        """
        found: List[AlternativePath] = []
        starts = alternate_starts(
            candidate.entry, candidate.exit, candidate.grid_size, settings.boundary_search
        )
        for start, direction in starts:
            path = trace_beam(cells, start, candidate.grid_size, direction)
            if path.exit is None:
                continue
            confidence = alternative_confidence(path, primary)
            if confidence > self.config.min_alternative_confidence:
                found.append(AlternativePath(
                    start=start, direction=direction, path=path, confidence=confidence
                ))

        found.sort(key=lambda alt: alt.confidence, reverse=True)
        return found[:self.config.max_reported_alternatives], len(found)

    def _validate(self, candidate: PuzzleCandidate) -> ValidationResult:
        started = time.perf_counter()
        settings = self.config.for_difficulty(candidate.difficulty)
        size = candidate.grid_size
        cells = material_map(candidate.materials, size)
        issues: List[ValidationIssue] = []

        path = trace_beam(cells, candidate.entry, size)
        if path.exit is None:
            issues.append(ValidationIssue(
                type="no_solution",
                message=f"Beam from {tuple(candidate.entry)} never reaches a boundary exit ({path.termination})",
                positions=[candidate.entry],
                suggested_fix="Remove absorbers or loops from the beam path",
            ))
        elif path.exit != candidate.exit:
            issues.append(ValidationIssue(
                type="no_solution",
                message=f"Beam exits at {tuple(path.exit)} instead of {tuple(candidate.exit)}",
                positions=[path.exit, candidate.exit],
                suggested_fix="Adjust materials along the beam path",
            ))

        alternatives, alternative_count = self.find_alternatives(candidate, cells, path, settings)
        if alternative_count:
            issues.append(ValidationIssue(
                type="multiple_solutions",
                message=f"Found {alternative_count} alternative solution path{'s' if alternative_count > 1 else ''}",
                severity="warning",
                positions=[alt.start for alt in alternatives],
                suggested_fix="Add materials to block alternative paths",
            ))

        physics = check_physics(path)
        if not physics.compliant:
            issues.append(ValidationIssue(
                type="physics_violation",
                message=(
                    f"{len(physics.violations)} interaction(s) break the reflection rules "
                    f"(accuracy {physics.accuracy:.2f})"
                ),
                positions=physics.violations,
            ))

        if detect_loop(path, size):
            issues.append(ValidationIssue(
                type="infinite_loop",
                message=f"Beam loops after {len(path.segments)} segments",
                positions=[path.segments[-1].end] if path.segments else [candidate.entry],
            ))

        confidence = score_confidence(candidate, path, alternative_count, physics, settings)
        is_valid = not any(issue.severity == "critical" for issue in issues)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.debug(
            "Validated %s %dx%d candidate: valid=%s alternatives=%d confidence=%.1f (%.1fms)",
            candidate.difficulty, size, size, is_valid, alternative_count, confidence, elapsed_ms,
        )

        return ValidationResult(
            is_valid=is_valid,
            has_unique_solution=is_valid and alternative_count == 0,
            alternative_count=alternative_count,
            confidence_score=confidence,
            issues=issues,
            physics_compliant=physics.compliant,
            reflection_accuracy=physics.accuracy,
            alternatives=alternatives,
            solution_path=path,
            validation_time_ms=elapsed_ms,
        )


def validate_solution(candidate: PuzzleCandidate, config: Optional[GenerationConfig] = None) -> ValidationResult:
    """Validate a single candidate without keeping a cache around."""
    return SolutionValidator(config)._validate(candidate)
