"""
Comprehensive test suite for solution validation.

Tests all validation cases:
- Solution reachability (no_solution)
- Competing solutions (multiple_solutions)
- Physics replay (physics_violation)
- Loop detection (infinite_loop)
- Confidence scoring and caching
"""

import random

import pytest

from reflectiq.config import GenerationConfig
from reflectiq.generation import MaterialPlacer, PathPlan, Waypoint
from reflectiq.physics import (
    Absorber,
    Direction,
    GridPosition,
    LaserPath,
    Mirror,
    PathSegment,
)
from reflectiq.verifiers import (
    PuzzleCandidate,
    SolutionValidator,
    alternative_confidence,
    check_physics,
    detect_loop,
    validate_solution,
)


@pytest.fixture
def validator():
    return SolutionValidator(GenerationConfig())


def open_candidate(**overrides):
    data = dict(
        difficulty="Easy",
        grid_size=6,
        materials=[],
        entry=GridPosition(0, 1),
        exit=GridPosition(5, 1),
    )
    data.update(overrides)
    return PuzzleCandidate(**data)


class TestSolutionReachability:
    """The beam must leave through the intended exit."""

    def test_open_grid_reaches_exit(self, validator):
        result = validator.validate(open_candidate())
        assert result.solution_path.exit == GridPosition(5, 1)
        assert "no_solution" not in [issue.type for issue in result.issues]

    def test_wrong_exit(self, validator):
        result = validator.validate(open_candidate(exit=GridPosition(5, 3)))
        assert result.is_valid is False
        assert result.has_unique_solution is False
        issue = next(i for i in result.issues if i.type == "no_solution")
        assert issue.severity == "critical"
        assert "(5, 1)" in issue.message

    def test_absorbed_beam(self, validator):
        result = validator.validate(open_candidate(materials=[Absorber(position=GridPosition(2, 1))]))
        assert result.is_valid is False
        assert any(i.type == "no_solution" for i in result.issues)
        # Absorption at the end of the path is physically consistent
        assert result.physics_compliant is True


class TestAlternatives:
    """Competing launches that also leave the grid."""

    def test_open_grid_has_alternatives(self, validator):
        """With nothing in the way, the four other launches from the entry all escape."""
        result = validator.validate(open_candidate())
        assert result.alternative_count == 4
        assert result.is_valid is True
        assert result.has_unique_solution is False
        assert [i.type for i in result.issues] == ["multiple_solutions"]
        assert result.issues[0].severity == "warning"

    def test_open_grid_confidence(self, validator):
        """100 - 30 for alternatives + 5 for spacing."""
        result = validator.validate(open_candidate())
        assert result.confidence_score == 75

    def test_reported_alternatives_capped(self):
        config = GenerationConfig(max_reported_alternatives=2)
        result = SolutionValidator(config).validate(open_candidate())
        assert result.alternative_count == 4
        assert len(result.alternatives) == 2

    def test_blocked_launches_are_unique(self, validator):
        """Absorbers on the first step of every competing launch leave one solution."""
        blockers = [Absorber(position=GridPosition(*cell)) for cell in [(0, 2), (1, 2), (1, 0), (0, 0)]]
        result = validator.validate(open_candidate(materials=blockers))
        assert result.alternative_count == 0
        assert result.has_unique_solution is True

    def test_placed_layout_is_unique(self, validator):
        """A Medium layout from the placer passes the full boundary search."""
        settings = validator.config.for_difficulty("Medium")
        plan = PathPlan(
            entry=GridPosition(0, 1),
            exit=GridPosition(7, 6),
            grid_size=8,
            waypoints=[
                Waypoint(position=GridPosition(2, 1), incoming=Direction.SOUTH, outgoing=Direction.EAST, angle=135),
                Waypoint(position=GridPosition(2, 6), incoming=Direction.EAST, outgoing=Direction.SOUTH, angle=135),
            ],
            cells=[GridPosition(0, 1), GridPosition(1, 1), GridPosition(2, 1)]
            + [GridPosition(2, c) for c in range(2, 7)]
            + [GridPosition(r, 6) for r in range(3, 8)],
        )
        placed = MaterialPlacer().place(plan, settings, random.Random(21))
        candidate = PuzzleCandidate(
            difficulty="Medium",
            grid_size=8,
            materials=list(placed.values()),
            entry=plan.entry,
            exit=plan.exit,
        )

        result = validator.validate(candidate)
        assert result.is_valid is True
        assert result.has_unique_solution is True
        assert result.alternative_count == 0
        assert result.confidence_score == 100

    def test_alternative_confidence(self):
        straight = LaserPath(segments=[
            PathSegment(start=GridPosition(0, 0), end=GridPosition(1, 0), direction=Direction.SOUTH),
        ])
        longer = LaserPath(segments=straight.segments * 2)
        assert alternative_confidence(straight, straight) == 0.5
        assert alternative_confidence(longer, straight) == pytest.approx(0.7)


class TestPhysicsReplay:
    """Replay of material interactions on supplied paths."""

    def test_consistent_reflection(self):
        mirror = Mirror(position=GridPosition(2, 3), angle=45)
        path = LaserPath(
            segments=[
                PathSegment(start=GridPosition(2, 2), end=GridPosition(2, 3), direction=Direction.EAST, material=mirror),
                PathSegment(start=GridPosition(2, 3), end=GridPosition(1, 3), direction=Direction.NORTH),
            ],
            exit=GridPosition(1, 3),
            exit_direction=Direction.NORTH,
        )
        report = check_physics(path)
        assert report.compliant is True
        assert report.accuracy == 1.0
        assert report.interactions == 1

    def test_wrong_turn_is_violation(self):
        mirror = Mirror(position=GridPosition(2, 3), angle=45)
        path = LaserPath(
            segments=[
                PathSegment(start=GridPosition(2, 2), end=GridPosition(2, 3), direction=Direction.EAST, material=mirror),
                PathSegment(start=GridPosition(2, 3), end=GridPosition(3, 3), direction=Direction.SOUTH),
            ],
            exit=GridPosition(3, 3),
            exit_direction=Direction.SOUTH,
        )
        report = check_physics(path)
        assert report.compliant is False
        assert report.accuracy == 0.0
        assert report.violations == [GridPosition(2, 3)]

    def test_snapped_mirror_within_tolerance(self):
        """A 30-degree mirror snaps 15 degrees off its exact reflection."""
        mirror = Mirror(position=GridPosition(2, 3), angle=30)
        path = LaserPath(
            segments=[
                PathSegment(start=GridPosition(2, 2), end=GridPosition(2, 3), direction=Direction.EAST, material=mirror),
                PathSegment(start=GridPosition(2, 3), end=GridPosition(1, 2), direction=Direction.NORTHWEST),
            ],
            exit=GridPosition(1, 2),
            exit_direction=Direction.NORTHWEST,
        )
        report = check_physics(path)
        assert report.compliant is True
        assert report.accuracy == pytest.approx(1 - 15 / 180)

    def test_broken_chain(self):
        path = LaserPath(segments=[
            PathSegment(start=GridPosition(0, 0), end=GridPosition(1, 0), direction=Direction.SOUTH),
            PathSegment(start=GridPosition(3, 0), end=GridPosition(4, 0), direction=Direction.SOUTH),
        ])
        report = check_physics(path)
        assert report.broken_chain is True
        assert report.compliant is False

    def test_absorber_mid_path_is_violation(self):
        absorber = Absorber(position=GridPosition(1, 0))
        path = LaserPath(segments=[
            PathSegment(start=GridPosition(0, 0), end=GridPosition(1, 0), direction=Direction.SOUTH, material=absorber),
            PathSegment(start=GridPosition(1, 0), end=GridPosition(2, 0), direction=Direction.SOUTH),
        ], exit=GridPosition(2, 0), exit_direction=Direction.SOUTH)
        assert check_physics(path).compliant is False


class TestLoopDetection:
    """Looping or self-repeating paths."""

    def test_loop_termination(self):
        assert detect_loop(LaserPath(terminated=True, termination="loop"), 6) is True

    def test_repeated_state(self):
        seg = PathSegment(start=GridPosition(1, 1), end=GridPosition(1, 2), direction=Direction.EAST)
        assert detect_loop(LaserPath(segments=[seg, seg]), 6) is True

    def test_clean_path(self):
        seg = PathSegment(start=GridPosition(1, 1), end=GridPosition(1, 2), direction=Direction.EAST)
        assert detect_loop(LaserPath(segments=[seg]), 6) is False


class TestValidatorContract:
    """Purity and caching."""

    def test_cached_result_reused(self, validator):
        candidate = open_candidate()
        assert validator.validate(candidate) is validator.validate(candidate)

    def test_uncached_helper_matches(self, validator):
        candidate = open_candidate()
        cached = validator.validate(candidate)
        fresh = validate_solution(candidate)
        assert fresh.alternative_count == cached.alternative_count
        assert fresh.confidence_score == cached.confidence_score

    def test_unknown_difficulty(self, validator):
        with pytest.raises(ValueError):
            validator.validate(open_candidate(difficulty="Expert"))

    def test_cache_bounded(self):
        validator = SolutionValidator(GenerationConfig(validation_cache_size=2))
        first, second, third = (open_candidate(exit=GridPosition(5, col)) for col in (1, 2, 3))
        first_result = validator.validate(first)
        validator.validate(second)
        third_result = validator.validate(third)

        assert validator.cache_size == 2
        assert validator.validate(third) is third_result
        assert validator.validate(first) is not first_result

    def test_cache_disabled(self):
        validator = SolutionValidator(GenerationConfig(validation_cache_size=0))
        validator.validate(open_candidate())
        assert validator.cache_size == 0
