"""
Guaranteed puzzle generation.

PuzzleGenerator drives one request through

    SELECT_POINTS → PLAN_PATH → PLACE_MATERIALS → TRACE_CONFIRM → VALIDATE

trying the next ranked entry/exit pair on any failure, the next attempt when
an attempt's pairs run out (with constraints relaxed for the kind of failure),
an easier tier's constraints after repeated failures, and finally the legacy
generator. With guaranteed generation disabled, requests go straight to the
legacy generator.
"""

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..config import DIFFICULTY_ORDER, Difficulty, DifficultyConfig, GenerationConfig
from ..physics.grid import content_hash, manhattan_distance
from ..physics.models import LaserPath
from ..physics.tracer import trace_beam
from ..verifiers import PuzzleCandidate, SolutionValidator, ValidationResult, summarize_issues
from .errors import GenerationError, GenerationExhaustedError
from .hints import segment_hints
from .legacy import LegacyGenerator
from .models import AttemptRecord, EntryExitPair, GenerationMetadata, Puzzle
from .placer import MaterialPlacer
from .planner import PathPlanner
from .points import PointSelector
from .registry import PuzzleRegistry
from .relaxation import apply_relaxation, initial_relaxation, relax


logger = logging.getLogger(__name__)


class PuzzleGenerator(BaseModel):
    """
    Generates puzzles with a proven unique solution.

    Components are stateless apart from the validator cache and the optional
    registry, so one generator can serve concurrent requests.

    Attributes:
        config: Tier constraints and generation limits
        selector: Ranks entry/exit pairs
        planner: Plans turn-based routes
        placer: Materializes routes and blocks competing launches
        validator: Proves uniqueness and scores candidates
        legacy: Fallback generator used once guaranteed generation is exhausted
        registry: Optional store of previously issued grid hashes
        on_metadata: Optional callback receiving each puzzle's metadata
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    config: GenerationConfig = Field(default_factory=GenerationConfig)
    selector: PointSelector = Field(default_factory=PointSelector)
    planner: Optional[PathPlanner] = None
    placer: Optional[MaterialPlacer] = None
    validator: Optional[SolutionValidator] = None
    legacy: Optional[LegacyGenerator] = None
    registry: Optional[PuzzleRegistry] = None
    on_metadata: Optional[Callable[[GenerationMetadata], None]] = None

    def model_post_init(self, __context) -> None:
        """Build any component that was not injected from the config."""
        if self.planner is None:
            self.planner = PathPlanner(max_expansions=self.config.planner_max_expansions)
        if self.placer is None:
            self.placer = MaterialPlacer(suppression_passes=self.config.suppression_passes)
        if self.validator is None:
            self.validator = SolutionValidator(self.config)
        if self.legacy is None:
            self.legacy = LegacyGenerator(max_attempts=self.config.legacy_max_attempts)

    @classmethod
    def create(
        cls,
        config: Optional[GenerationConfig] = None,
        registry: Optional[PuzzleRegistry] = None,
        on_metadata: Optional[Callable[[GenerationMetadata], None]] = None,
    ) -> "PuzzleGenerator":
        """
        Factory method to create a generator with default components.

        Args:
            config: Generation settings (defaults used when omitted)
            registry: Optional uniqueness registry shared across requests
            on_metadata: Optional observer for generation metadata

        Returns:
            A ready PuzzleGenerator
        """
        return cls(config=config or GenerationConfig(), registry=registry, on_metadata=on_metadata)

    def generate(self, difficulty: Difficulty, request_id: str) -> Puzzle:
        """
        Generate one puzzle.

        The random stream is seeded from (config.seed, difficulty, request_id),
        so the same request always yields the same puzzle.

        Args:
            difficulty: Requested tier; kept as the puzzle's label even if degraded
            request_id: Caller's identifier, e.g. the puzzle date

        Returns:
            A validated Puzzle (check fallback_used / metadata.validation_passed)

        Raises:
            ValueError: If the difficulty is not configured
            GenerationExhaustedError: If guaranteed generation fails and the
                fallback is disabled or also fails
        """
        self.config.for_difficulty(difficulty)
        rng = random.Random(f"{self.config.seed}:{difficulty}:{request_id}")
        started = time.monotonic()
        history: List[AttemptRecord] = []

        if not self.config.enable_guaranteed_generation:
            logger.info("Guaranteed generation disabled; using legacy generator for %s", difficulty)
            return self._fallback(difficulty, request_id, rng, started, history, None, forced=True)

        current: Difficulty = difficulty
        relaxation = initial_relaxation(self.config)
        failed = 0
        last_error: Optional[GenerationError] = None

        for attempt in range(1, self.config.max_generation_attempts + 1):
            elapsed_ms = (time.monotonic() - started) * 1000
            if elapsed_ms > relaxation.timeout_ms:
                last_error = GenerationError(
                    "timeout", f"Timed out after {elapsed_ms:.0f}ms and {attempt - 1} attempt(s)"
                )
                history.append(AttemptRecord(
                    attempt=attempt,
                    difficulty=current,
                    outcome="timeout",
                    error_kind="timeout",
                    message=last_error.message,
                    relaxation=relaxation if relaxation.steps else None,
                ))
                logger.warning("%s generation for %s: %s", difficulty, request_id, last_error.message)
                break

            settings = apply_relaxation(self._effective_settings(difficulty, current), relaxation)
            try:
                candidate, validation, puzzle_hash = self._attempt(
                    current, settings, attempt, rng, relaxation.min_confidence_score
                )
            except GenerationError as exc:
                failed += 1
                last_error = exc
                history.append(AttemptRecord(
                    attempt=attempt,
                    difficulty=current,
                    outcome="failed",
                    error_kind=exc.kind,
                    message=exc.message,
                    relaxation=relaxation if relaxation.steps else None,
                ))
                logger.warning(
                    "Attempt %d/%d for %s (%s constraints) failed: %s",
                    attempt, self.config.max_generation_attempts, difficulty, current, exc,
                )
                if self.config.enable_constraint_relaxation:
                    relaxation = relax(relaxation, exc.kind)
                    logger.debug(
                        "Relaxed constraints: confidence >= %.0f, timeout %dms, %d fewer reflection(s)",
                        relaxation.min_confidence_score, relaxation.timeout_ms, relaxation.reflection_relief,
                    )
                current = self._next_difficulty(current, failed)
                continue

            history.append(AttemptRecord(
                attempt=attempt,
                difficulty=current,
                outcome="success",
                relaxation=relaxation if relaxation.steps else None,
            ))
            return self._assemble(
                difficulty=difficulty,
                request_id=request_id,
                candidate=candidate,
                solution_path=validation.solution_path,
                confidence_score=validation.confidence_score,
                validation_passed=validation.has_unique_solution,
                fallback_used=False,
                adapted_from=current if current != difficulty else None,
                puzzle_hash=puzzle_hash,
                started=started,
                history=history,
            )

        return self._fallback(difficulty, request_id, rng, started, history, last_error)

    def generate_set(
        self,
        request_id: str,
        difficulties: Optional[Sequence[Difficulty]] = None,
    ) -> Dict[Difficulty, Puzzle]:
        """Generate several tiers for one request as concurrent tasks."""
        names = list(difficulties or DIFFICULTY_ORDER)
        with ThreadPoolExecutor(max_workers=len(names)) as pool:
            futures = {name: pool.submit(self.generate, name, request_id) for name in names}
            return {name: future.result() for name, future in futures.items()}

    def _effective_settings(self, requested: Difficulty, current: Difficulty) -> DifficultyConfig:
        """Constraints for `current`, keeping the requested tier's spacing."""
        requested_settings = self.config.for_difficulty(requested)
        if current == requested:
            return requested_settings
        easier = self.config.for_difficulty(current)
        return easier.model_copy(update={
            "min_distance": max(easier.min_distance, requested_settings.min_distance),
            "preferred_distance": max(easier.preferred_distance, requested_settings.preferred_distance),
        })

    def _next_difficulty(self, current: Difficulty, failed: int) -> Difficulty:
        threshold = self.config.degrade_after.get(current)
        easier = GenerationConfig.easier(current)
        if threshold is None or easier is None or failed < threshold:
            return current
        logger.warning("Degrading to %s constraints after %d failed attempt(s)", easier, failed)
        return easier

    def _attempt(
        self,
        difficulty: Difficulty,
        settings: DifficultyConfig,
        attempt: int,
        rng: random.Random,
        min_confidence: float,
    ) -> Tuple[PuzzleCandidate, ValidationResult, str]:
        """Try one window of ranked pairs; raise if none of them works."""
        pairs = self.selector.select(settings, rng)
        if not pairs:
            raise GenerationError(
                "spacing_failure",
                f"No boundary pair is {settings.min_distance} apart on a "
                f"{settings.grid_size}x{settings.grid_size} grid",
            )

        per_attempt = self.config.candidates_per_attempt
        offset = ((attempt - 1) * per_attempt) % len(pairs)
        window = (pairs[offset:] + pairs[:offset])[:per_attempt]

        last_error: Optional[GenerationError] = None
        for pair in window:
            try:
                return self._realize(pair, difficulty, settings, rng, min_confidence)
            except GenerationError as exc:
                logger.debug(
                    "Candidate %s -> %s rejected: %s", tuple(pair.entry), tuple(pair.exit), exc
                )
                last_error = exc

        raise GenerationError(
            last_error.kind,
            f"All {len(window)} candidate pairs failed (last: {last_error.message})",
        )

    def _realize(
        self,
        pair: EntryExitPair,
        difficulty: Difficulty,
        settings: DifficultyConfig,
        rng: random.Random,
        min_confidence: float,
    ) -> Tuple[PuzzleCandidate, ValidationResult, str]:
        plan = self.planner.plan(pair, settings, rng)
        cells = self.placer.place(plan, settings, rng)

        confirm = trace_beam(cells, plan.entry, settings.grid_size)
        if confirm.exit != plan.exit:
            kind = "infinite_loop" if confirm.termination == "loop" else "no_solution"
            raise GenerationError(
                kind, f"Placed layout exits at {confirm.exit}, expected {tuple(plan.exit)}"
            )

        candidate = PuzzleCandidate(
            difficulty=difficulty,
            grid_size=settings.grid_size,
            materials=list(cells.values()),
            entry=plan.entry,
            exit=plan.exit,
        )
        validation = self.validator.validate(candidate)

        if not validation.is_valid:
            kind = validation.critical_issues[0].type if validation.critical_issues else "validation_failure"
            raise GenerationError(kind, summarize_issues(validation.issues))
        if not validation.has_unique_solution:
            raise GenerationError("validation_failure", summarize_issues(validation.issues))
        if validation.confidence_score < min_confidence:
            raise GenerationError(
                "validation_failure",
                f"Confidence {validation.confidence_score:.0f} below {min_confidence:.0f}",
            )

        puzzle_hash = candidate.content_hash()
        if self.registry is not None and self.registry.has_hash(puzzle_hash):
            raise GenerationError("validation_failure", "Layout was issued before")

        return candidate, validation, puzzle_hash

    def _fallback(
        self,
        difficulty: Difficulty,
        request_id: str,
        rng: random.Random,
        started: float,
        history: List[AttemptRecord],
        last_error: Optional[GenerationError],
        forced: bool = False,
    ) -> Puzzle:
        timed_out = last_error is not None and last_error.kind == "timeout"
        if not forced and not self.config.enable_fallback:
            raise GenerationExhaustedError(
                "timeout" if timed_out else "validation_failure",
                f"Guaranteed {difficulty} generation exhausted after "
                f"{_attempts_run(history)} attempt(s): {last_error}",
                {"history": history},
            )

        if not forced:
            logger.warning("Falling back to legacy generation for %s (%s)", difficulty, request_id)
        try:
            candidate, path = self.legacy.create(self.config.for_difficulty(difficulty), difficulty, rng)
        except GenerationError as exc:
            raise GenerationExhaustedError(
                exc.kind, f"Legacy fallback failed: {exc.message}", {"history": history}
            ) from exc

        validation = self.validator.validate(candidate)
        return self._assemble(
            difficulty=difficulty,
            request_id=request_id,
            candidate=candidate,
            solution_path=path,
            confidence_score=self.config.fallback_confidence_score,
            validation_passed=validation.has_unique_solution,
            fallback_used=True,
            adapted_from=None,
            puzzle_hash=candidate.content_hash(),
            started=started,
            history=history,
        )

    def _assemble(
        self,
        difficulty: Difficulty,
        request_id: str,
        candidate: PuzzleCandidate,
        solution_path: LaserPath,
        confidence_score: float,
        validation_passed: bool,
        fallback_used: bool,
        adapted_from: Optional[Difficulty],
        puzzle_hash: str,
        started: float,
        history: List[AttemptRecord],
    ) -> Puzzle:
        """Freeze a proven candidate into a Puzzle and publish its metadata."""
        requested = self.config.for_difficulty(difficulty)
        size = candidate.grid_size
        density = len(candidate.materials) / (size * size)
        puzzle_id = f"{request_id}-{difficulty.lower()}"
        elapsed_ms = (time.monotonic() - started) * 1000

        metadata = GenerationMetadata(
            puzzle_id=puzzle_id,
            difficulty=difficulty,
            algorithm="legacy" if fallback_used else "guaranteed",
            attempts=_attempts_run(history),
            elapsed_ms=elapsed_ms,
            confidence_score=confidence_score,
            validation_passed=validation_passed,
            spacing_distance=manhattan_distance(candidate.entry, candidate.exit),
            path_complexity=len(solution_path.segments),
            material_density_achieved=density,
            fallback_used=fallback_used,
            adapted_from_difficulty=adapted_from,
            attempt_history=tuple(history),
        )

        puzzle = Puzzle(
            id=puzzle_id,
            difficulty=difficulty,
            grid_size=size,
            base_score=requested.base_score,
            max_time=requested.max_time,
            materials=tuple(candidate.materials),
            entry=candidate.entry,
            solution=candidate.exit,
            solution_path=solution_path,
            hints=segment_hints(solution_path),
            material_density=density,
            confidence_score=confidence_score,
            fallback_used=fallback_used,
            metadata=metadata,
        )

        if self.registry is not None:
            self.registry.add_hash(puzzle_hash)

        logger.info(
            "Generated %s puzzle %s: %d attempt(s), %.0fms, confidence %.0f%s%s",
            difficulty, puzzle_id, metadata.attempts, elapsed_ms, confidence_score,
            f", using {adapted_from} constraints" if adapted_from else "",
            ", legacy fallback" if fallback_used else "",
        )
        if self.on_metadata is not None:
            self.on_metadata(metadata)
        return puzzle


def _attempts_run(history: List[AttemptRecord]) -> int:
    return sum(1 for record in history if record.outcome != "timeout")
