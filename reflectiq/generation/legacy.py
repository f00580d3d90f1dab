"""
Legacy random-then-simulate generator.

Used only as the last resort when guaranteed generation is exhausted. It
scatters materials at random, fires the beam with probabilistic Water and
Glass, and keeps the first layout that exits far enough from the entry.
Nothing here proves uniqueness.
"""

import logging
import random
from typing import Dict, Tuple

from ..config import DifficultyConfig
from ..physics.grid import manhattan_distance
from ..physics.models import GridPosition, LaserPath, Material
from ..physics.tracer import trace_beam
from ..verifiers.models import PuzzleCandidate
from .errors import GenerationError
from .placer import build_material


logger = logging.getLogger(__name__)

PREFERRED_SIDE_CHANCE = 0.7
LEGACY_MIRROR_ANGLES = tuple(range(0, 180, 15))


class LegacyGenerator:
    """Seeded random layout generator with a forward-simulated answer."""

    def __init__(self, max_attempts: int = 100):
        self.max_attempts = max_attempts

    def random_entry(self, grid_size: int, rng: random.Random) -> GridPosition:
        """A boundary cell, favouring the top and left edges."""
        if rng.random() < PREFERRED_SIDE_CHANCE:
            side = rng.choice(("top", "left"))
        else:
            side = rng.choice(("bottom", "right"))
        index = rng.randrange(grid_size)
        edge = grid_size - 1
        if side == "top":
            return GridPosition(0, index)
        if side == "left":
            return GridPosition(index, 0)
        if side == "bottom":
            return GridPosition(edge, index)
        return GridPosition(index, edge)

    def random_materials(
        self,
        settings: DifficultyConfig,
        entry: GridPosition,
        rng: random.Random,
    ) -> Dict[GridPosition, Material]:
        size = settings.grid_size
        cells = [
            GridPosition(row, col)
            for row in range(size)
            for col in range(size)
            if (row, col) != entry
        ]
        count = settings.target_material_count + rng.randint(-1, 1)
        count = max(1, min(count, len(cells)))

        kinds = settings.allowed_materials
        weights = [settings.material_weights[kind] for kind in kinds]

        materials: Dict[GridPosition, Material] = {}
        for cell in rng.sample(cells, count):
            kind = rng.choices(kinds, weights=weights)[0]
            materials[cell] = build_material(kind, cell, rng.choice(LEGACY_MIRROR_ANGLES))
        return materials

    def create(
        self,
        settings: DifficultyConfig,
        difficulty: str,
        rng: random.Random,
    ) -> Tuple[PuzzleCandidate, LaserPath]:
        """
        Produce a random layout and the path the beam happened to take.

        Args:
            settings: Tier grid size, density, material mix and spacing
            difficulty: Tier name recorded on the candidate
            rng: Seeded random generator; also drives Water/Glass branching

        Returns:
            Candidate layout and its sampled solution path

        Raises:
            GenerationError: If no layout exits far enough from the entry
        """
        size = settings.grid_size
        for attempt in range(1, self.max_attempts + 1):
            entry = self.random_entry(size, rng)
            materials = self.random_materials(settings, entry, rng)
            path = trace_beam(materials, entry, size, rng=rng)

            if path.exit is None or path.exit == entry:
                continue
            if manhattan_distance(entry, path.exit) < settings.min_distance:
                continue

            logger.debug("Legacy layout accepted after %d attempt(s)", attempt)
            candidate = PuzzleCandidate(
                difficulty=difficulty,
                grid_size=size,
                materials=list(materials.values()),
                entry=entry,
                exit=path.exit,
            )
            return candidate, path

        raise GenerationError(
            "no_solution",
            f"Legacy generator found no usable layout in {self.max_attempts} attempts",
        )
