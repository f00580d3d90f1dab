"""Constraint relaxation between failed generation attempts."""

from typing import Dict, NamedTuple, Optional

from ..config import DifficultyConfig, GenerationConfig
from .models import Relaxation


MIN_RELAXED_CONFIDENCE = 60
MIN_RELAXED_REFLECTIONS = 1
MIN_RELAXED_PREFERRED_REFLECTIONS = 2


class RelaxationStrategy(NamedTuple):
    reduce_confidence: float
    increase_timeout_ms: int
    lower_complexity: bool


# Keyed by GenerationError kind
RELAXATION_STRATEGIES: Dict[str, RelaxationStrategy] = {
    "validation_failure": RelaxationStrategy(15, 1000, True),
    "spacing_failure": RelaxationStrategy(5, 500, False),
    "material_placement_failure": RelaxationStrategy(20, 1500, True),
    "physics_violation": RelaxationStrategy(25, 0, True),
    "no_solution": RelaxationStrategy(25, 0, True),
    "infinite_loop": RelaxationStrategy(25, 0, True),
}


def initial_relaxation(config: GenerationConfig) -> Relaxation:
    """The unrelaxed starting point for a request."""
    return Relaxation(
        min_confidence_score=config.min_confidence_score,
        timeout_ms=config.timeout_ms,
    )


def relax(current: Relaxation, error_kind: str) -> Relaxation:
    """
    Loosen constraints after a failure of the given kind.

    The confidence threshold never drops below 60 and is never raised.
    Unknown kinds leave the constraints unchanged.
    """
    strategy: Optional[RelaxationStrategy] = RELAXATION_STRATEGIES.get(error_kind)
    if strategy is None:
        return current

    return Relaxation(
        min_confidence_score=min(
            current.min_confidence_score,
            max(MIN_RELAXED_CONFIDENCE, current.min_confidence_score - strategy.reduce_confidence),
        ),
        timeout_ms=current.timeout_ms + strategy.increase_timeout_ms,
        reflection_relief=current.reflection_relief + (1 if strategy.lower_complexity else 0),
        steps=current.steps + 1,
    )


def apply_relaxation(settings: DifficultyConfig, relaxation: Relaxation) -> DifficultyConfig:
    """
    Tier constraints with the reflection relief applied.

    Only the lower end of the reflection range moves: min_reflections bottoms
    out at 1 and preferred_reflections at 2 (or the relaxed minimum, if
    higher). Neither is ever raised.
    """
    relief = relaxation.reflection_relief
    if relief <= 0:
        return settings

    min_reflections = min(
        settings.min_reflections,
        max(MIN_RELAXED_REFLECTIONS, settings.min_reflections - relief),
    )
    preferred = min(
        settings.preferred_reflections,
        max(MIN_RELAXED_PREFERRED_REFLECTIONS, min_reflections, settings.preferred_reflections - relief),
    )
    return settings.model_copy(update={
        "min_reflections": min_reflections,
        "preferred_reflections": preferred,
    })
