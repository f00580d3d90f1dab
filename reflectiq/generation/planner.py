"""
Reverse path planning.

Geometry comes first: the planner picks a rectilinear route from the entry
to the exit with a tier-appropriate number of 90-degree turns, and records
the mirror angle each turn needs. Whether the materials really produce that
route is checked afterwards by the tracer.
"""

import logging
import random
from typing import List, Optional, Set, Tuple

from ..config import DifficultyConfig
from ..physics.grid import in_bounds, initial_direction, step
from ..physics.models import Direction, GridPosition
from ..physics.tracer import mirror_angle_for_turn
from .errors import GenerationError
from .models import EntryExitPair, PathPlan, Waypoint


logger = logging.getLogger(__name__)

Turn = Tuple[GridPosition, Direction, Direction]


def ray_cells(position: GridPosition, heading: Direction, grid_size: int) -> List[GridPosition]:
    """Cells after `position` along `heading`, up to the grid edge."""
    cells: List[GridPosition] = []
    current = step(position, heading)
    while in_bounds(current, grid_size):
        cells.append(current)
        current = step(current, heading)
    return cells


def complexity_score(plan_cells: List[GridPosition], turns: int, material_kinds: int = 1) -> int:
    """Normalize turns, material variety and route length to a 1-10 score."""
    raw = turns * 2 + material_kinds + max(len(plan_cells) - 1, 0) // 3
    return min(10, max(1, round(raw / 20 * 10)))


class PathPlanner:
    """Seeded, budgeted depth-first search for turn-based beam routes."""

    def __init__(self, max_expansions: int = 4000):
        self.max_expansions = max_expansions

    def turn_counts(
        self,
        settings: DifficultyConfig,
        entry: Optional[GridPosition] = None,
        exit: Optional[GridPosition] = None,
    ) -> List[int]:
        """
        Turn counts to try, closest to the preferred count first.

        With an entry and exit, counts whose parity cannot end on a heading
        that leaves the grid at the exit are dropped.
        """
        counts = range(settings.min_reflections, settings.max_reflections + 1)
        if entry is not None and exit is not None:
            size = settings.grid_size
            start_vertical = initial_direction(entry, size).value % 180 != 0
            exit_axes = {
                heading.value % 180 != 0
                for heading in (Direction.EAST, Direction.SOUTH, Direction.WEST, Direction.NORTH)
                if not in_bounds(step(exit, heading), size)
            }
            # An even number of 90-degree turns keeps the starting axis
            counts = [k for k in counts if (start_vertical == (k % 2 == 0)) in exit_axes]
        return sorted(counts, key=lambda k: (abs(k - settings.preferred_reflections), k))

    def plan(self, pair: EntryExitPair, settings: DifficultyConfig, rng: random.Random) -> PathPlan:
        """
        Plan a route for one entry/exit pair.

        Args:
            pair: Candidate entry and exit cells
            settings: Tier constraints (grid size, reflection range)
            rng: Request-scoped random generator

        Returns:
            A PathPlan whose waypoints realize the route with mirrors

        Raises:
            GenerationError: If no route fits the reflection range within the search budget
        """
        size = settings.grid_size
        entry = GridPosition(*pair.entry)
        exit = GridPosition(*pair.exit)
        heading = initial_direction(entry, size)

        for turns in self.turn_counts(settings, entry, exit):
            found = self._search(entry, exit, heading, turns, size, rng)
            if found is None:
                continue

            cells, route = found
            waypoints = [
                Waypoint(
                    position=cell,
                    incoming=incoming,
                    outgoing=outgoing,
                    material="mirror",
                    angle=mirror_angle_for_turn(incoming, outgoing),
                )
                for cell, incoming, outgoing in route
            ]
            logger.debug(
                "Planned %d-turn route %s -> %s over %d cells",
                turns, tuple(entry), tuple(exit), len(cells),
            )
            return PathPlan(
                entry=entry,
                exit=exit,
                grid_size=size,
                waypoints=waypoints,
                cells=cells,
                complexity_score=complexity_score(cells, turns),
            )

        raise GenerationError(
            "material_placement_failure",
            f"No route from {tuple(entry)} to {tuple(exit)} with "
            f"{settings.min_reflections}-{settings.max_reflections} turns",
            {"entry": entry, "exit": exit},
        )

    def _search(
        self,
        entry: GridPosition,
        exit: GridPosition,
        heading: Direction,
        turns: int,
        size: int,
        rng: random.Random,
    ) -> Optional[Tuple[List[GridPosition], List[Turn]]]:
        budget = self.max_expansions

        def extend(
            position: GridPosition,
            heading: Direction,
            turns_left: int,
            cells: List[GridPosition],
            visited: Set[GridPosition],
            route: List[Turn],
        ) -> Optional[Tuple[List[GridPosition], List[Turn]]]:
            nonlocal budget
            budget -= 1
            if budget < 0:
                return None

            ray = ray_cells(position, heading, size)

            if turns_left == 0:
                if ray and ray[-1] == exit and not visited.intersection(ray):
                    return cells + ray, route
                return None

            options: List[Tuple[int, Direction]] = []
            for index, cell in enumerate(ray):
                if cell in visited or cell == exit:
                    break
                for turn in (-90, 90):
                    outgoing = heading.turned(turn)
                    if in_bounds(step(cell, outgoing), size):
                        options.append((index, outgoing))
            rng.shuffle(options)

            for index, outgoing in options:
                leg = ray[:index + 1]
                waypoint = leg[-1]
                found = extend(
                    waypoint,
                    outgoing,
                    turns_left - 1,
                    cells + leg,
                    visited.union(leg),
                    route + [(waypoint, heading, outgoing)],
                )
                if found is not None:
                    return found
                if budget < 0:
                    return None
            return None

        return extend(entry, heading, turns, [entry], {entry}, [])
