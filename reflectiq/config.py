"""
Configuration models for puzzle generation.

Defaults mirror the tuned per-difficulty constants: grid size and target
material density, entry/exit spacing, reflection counts, and the material
mix each tier may use.
"""

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from .physics.models import MaterialKind


Difficulty = Literal["Easy", "Medium", "Hard"]

# Easiest first; degradation walks this list backwards
DIFFICULTY_ORDER: Tuple[Difficulty, ...] = ("Easy", "Medium", "Hard")


class DifficultyConfig(BaseModel):
    """Constraints for a single difficulty tier."""
    grid_size: int = Field(ge=3)
    base_score: int = Field(ge=0)
    max_time: int = Field(ge=1)  # seconds
    material_density: float = Field(gt=0, le=1)
    min_distance: int = Field(ge=1)
    preferred_distance: int = Field(ge=1)
    min_reflections: int = Field(ge=0)
    max_reflections: int = Field(ge=0)
    preferred_reflections: int = Field(ge=0)
    material_weights: Dict[MaterialKind, float]
    corner_bonus: float = Field(default=1.0, ge=0)
    edge_bonus: float = Field(default=1.0, ge=0)
    max_candidates: int = Field(default=50, ge=1)
    boundary_search: bool = False  # also fire from every other boundary cell when validating

    @property
    def allowed_materials(self) -> List[MaterialKind]:
        return [kind for kind, weight in self.material_weights.items() if weight > 0]

    @property
    def target_material_count(self) -> int:
        return int(self.grid_size * self.grid_size * self.material_density)

    @property
    def reflection_range(self) -> range:
        return range(self.min_reflections, self.max_reflections + 1)


def default_difficulties() -> Dict[Difficulty, DifficultyConfig]:
    return {
        "Easy": DifficultyConfig(
            grid_size=6,
            base_score=150,
            max_time=300,
            material_density=0.7,
            min_distance=3,
            preferred_distance=4,
            min_reflections=2,
            max_reflections=4,
            preferred_reflections=3,
            material_weights={"mirror": 0.7, "absorber": 0.3},
            corner_bonus=1.2,
            edge_bonus=1.1,
            max_candidates=50,
            boundary_search=False,
        ),
        "Medium": DifficultyConfig(
            grid_size=8,
            base_score=400,
            max_time=600,
            material_density=0.8,
            min_distance=4,
            preferred_distance=6,
            min_reflections=3,
            max_reflections=6,
            preferred_reflections=4,
            material_weights={"mirror": 0.4, "water": 0.2, "glass": 0.2, "absorber": 0.2},
            corner_bonus=1.3,
            edge_bonus=1.15,
            max_candidates=75,
            boundary_search=True,
        ),
        "Hard": DifficultyConfig(
            grid_size=10,
            base_score=800,
            max_time=900,
            material_density=0.85,
            min_distance=5,
            preferred_distance=8,
            min_reflections=4,
            max_reflections=8,
            preferred_reflections=6,
            material_weights={"mirror": 0.3, "water": 0.2, "glass": 0.2, "metal": 0.15, "absorber": 0.15},
            corner_bonus=1.4,
            edge_bonus=1.2,
            max_candidates=100,
            boundary_search=True,
        ),
    }


class GenerationConfig(BaseModel):
    """Top-level generator configuration (YAML-loadable)."""
    difficulties: Dict[Difficulty, DifficultyConfig] = Field(default_factory=default_difficulties)
    seed: Optional[int] = None
    # False sends every request straight to the legacy generator
    enable_guaranteed_generation: bool = True
    max_generation_attempts: int = Field(default=10, ge=1)
    candidates_per_attempt: int = Field(default=5, ge=1)
    timeout_ms: int = Field(default=5000, ge=1)
    min_confidence_score: float = Field(default=85, ge=0, le=100)
    enable_fallback: bool = True
    enable_constraint_relaxation: bool = True
    fallback_confidence_score: float = Field(default=50, ge=0, le=100)
    # Cumulative failed attempts after which generation drops one tier
    degrade_after: Dict[Difficulty, int] = Field(default_factory=lambda: {"Hard": 3, "Medium": 5})
    min_alternative_confidence: float = Field(default=0.3, ge=0, le=1)
    max_reported_alternatives: int = Field(default=5, ge=0)
    planner_max_expansions: int = Field(default=4000, ge=1)
    suppression_passes: int = Field(default=12, ge=1)
    legacy_max_attempts: int = Field(default=100, ge=1)
    validation_cache_size: int = Field(default=1024, ge=0)

    def for_difficulty(self, difficulty: str) -> DifficultyConfig:
        """
        Look up the constraints for a difficulty tier.

        Raises:
            ValueError: If the difficulty is not configured
        """
        if difficulty not in self.difficulties:
            raise ValueError(
                f"Unknown difficulty '{difficulty}' (configured: {', '.join(self.difficulties)})"
            )
        return self.difficulties[difficulty]

    @staticmethod
    def easier(difficulty: Difficulty) -> Optional[Difficulty]:
        """The next easier tier, or None for Easy."""
        index = DIFFICULTY_ORDER.index(difficulty)
        return DIFFICULTY_ORDER[index - 1] if index > 0 else None
