"""Material placement for a planned route."""

import logging
import random
from typing import Dict, List, Optional, Set

from ..config import DifficultyConfig
from ..physics.grid import alternate_starts
from ..physics.models import (
    Absorber,
    Glass,
    GridPosition,
    LaserPath,
    Material,
    MaterialKind,
    Metal,
    Mirror,
    Water,
)
from ..physics.tracer import trace_beam
from .errors import GenerationError
from .models import PathPlan


logger = logging.getLogger(__name__)

PADDING_MIRROR_ANGLES = (0, 45, 90, 135)


def build_material(kind: MaterialKind, position: GridPosition, angle: int = 45) -> Material:
    """Construct a material of the given kind at a cell."""
    match kind:
        case "mirror":
            return Mirror(position=position, angle=angle)
        case "water":
            return Water(position=position)
        case "glass":
            return Glass(position=position)
        case "metal":
            return Metal(position=position)
        case "absorber":
            return Absorber(position=position)
        case _:
            raise ValueError(f"Unknown material kind: {kind}")


class MaterialPlacer:
    """
    Turns a PathPlan into concrete materials.

    Placement runs in three passes: mirrors on the route's turns, filler up
    to the tier's density that leaves the route untouched, then absorbers
    that stop every competing launch from reaching an exit.
    """

    def __init__(self, suppression_passes: int = 12):
        self.suppression_passes = suppression_passes

    def place(
        self,
        plan: PathPlan,
        settings: DifficultyConfig,
        rng: random.Random,
    ) -> Dict[GridPosition, Material]:
        """
        Materialize a plan.

        Args:
            plan: Route with waypoints and their mirror angles
            settings: Tier density, material mix and search scope
            rng: Request-scoped random generator

        Returns:
            Mapping of cell to material

        Raises:
            GenerationError: If waypoints collide, the mirrors miss the exit,
                or a competing launch cannot be blocked
        """
        reserved: Set[GridPosition] = {plan.entry, plan.exit}
        placed: Dict[GridPosition, Material] = {}

        for waypoint in plan.waypoints:
            if waypoint.position in reserved or waypoint.position in placed:
                raise GenerationError(
                    "material_placement_failure",
                    f"Waypoint {tuple(waypoint.position)} is already claimed",
                    {"position": waypoint.position},
                )
            placed[waypoint.position] = build_material(
                waypoint.material, waypoint.position, waypoint.angle
            )

        baseline = trace_beam(placed, plan.entry, plan.grid_size)
        if baseline.exit != plan.exit or baseline.cells != plan.cells:
            raise GenerationError(
                "physics_violation",
                f"Route mirrors send the beam to {baseline.exit} instead of {tuple(plan.exit)}",
                {"termination": baseline.termination},
            )

        protected = reserved | set(placed)
        self.pad(placed, plan, settings, rng, protected, baseline)
        self.suppress_alternatives(placed, plan, settings, reserved | set(baseline.cells))
        return placed

    def pad(
        self,
        placed: Dict[GridPosition, Material],
        plan: PathPlan,
        settings: DifficultyConfig,
        rng: random.Random,
        protected: Set[GridPosition],
        baseline: LaserPath,
    ) -> int:
        """
        Fill empty cells up to the target density without moving the route.

        Each proposal is kept only if the re-traced beam still visits the same
        cells and leaves through the same exit.

        Returns:
            Number of filler materials added
        """
        size = plan.grid_size
        target = settings.target_material_count
        kinds = settings.allowed_materials
        weights = [settings.material_weights[kind] for kind in kinds]

        free = [
            GridPosition(row, col)
            for row in range(size)
            for col in range(size)
            if (row, col) not in placed and (row, col) not in protected
        ]
        rng.shuffle(free)

        added = 0
        for cell in free:
            if len(placed) >= target:
                break
            kind = rng.choices(kinds, weights=weights)[0]
            placed[cell] = build_material(kind, cell, rng.choice(PADDING_MIRROR_ANGLES))
            path = trace_beam(placed, plan.entry, size)
            if path.exit != baseline.exit or path.cells != baseline.cells:
                del placed[cell]
                continue
            added += 1

        logger.debug("Padded %d materials (%d/%d cells filled)", added, len(placed), size * size)
        return added

    def suppress_alternatives(
        self,
        placed: Dict[GridPosition, Material],
        plan: PathPlan,
        settings: DifficultyConfig,
        protected: Set[GridPosition],
    ) -> int:
        """
        Absorb every competing launch that still reaches an exit.

        The absorber goes on the first cell of the competing trajectory that is
        neither reserved nor on the solution route, so the route is unaffected.

        Returns:
            Number of absorbers placed

        Raises:
            GenerationError: If a competing launch never leaves protected cells,
                or launches still escape after the pass limit
        """
        size = plan.grid_size
        starts = alternate_starts(plan.entry, plan.exit, size, settings.boundary_search)
        blockers = 0

        for _ in range(self.suppression_passes):
            escaped = False
            for start, direction in starts:
                path = trace_beam(placed, start, size, direction)
                if path.exit is None:
                    continue
                escaped = True
                blocker = self._blocking_cell(start, path, protected)
                if blocker is None:
                    raise GenerationError(
                        "material_placement_failure",
                        f"Launch from {tuple(start)} heading {direction.name} cannot be blocked",
                        {"start": start, "exit": path.exit},
                    )
                placed[blocker] = Absorber(position=blocker)
                blockers += 1
            if not escaped:
                logger.debug("Blocked competing launches with %d absorbers", blockers)
                return blockers

        raise GenerationError(
            "material_placement_failure",
            f"Competing launches still escape after {self.suppression_passes} passes",
        )

    def _blocking_cell(
        self,
        start: GridPosition,
        path: LaserPath,
        protected: Set[GridPosition],
    ) -> Optional[GridPosition]:
        cells: List[GridPosition] = path.cells or [start]
        for cell in cells:
            if cell not in protected:
                return cell
        return None
