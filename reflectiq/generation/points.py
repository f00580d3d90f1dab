"""Entry/exit candidate selection."""

import logging
import random
from typing import List, Optional

from ..config import DifficultyConfig
from ..physics.grid import boundary_positions, is_corner, manhattan_distance, side_relation
from ..physics.models import GridPosition
from .models import EntryExitPair


logger = logging.getLogger(__name__)

CORNER_BASE_SCORE = 1.0
EDGE_BASE_SCORE = 0.8


def validate_spacing(entry: GridPosition, exit: GridPosition, min_distance: int) -> bool:
    """True if two distinct cells are at least `min_distance` apart."""
    return entry != exit and manhattan_distance(entry, exit) >= min_distance


def placement_type(entry: GridPosition, exit: GridPosition, settings: DifficultyConfig) -> str:
    if is_corner(entry, settings.grid_size) or is_corner(exit, settings.grid_size):
        return "corner"
    if manhattan_distance(entry, exit) >= settings.preferred_distance:
        return "optimal"
    return "edge"


class PointSelector:
    """Ranks boundary cell pairs that satisfy a tier's spacing rule."""

    def position_score(self, position: GridPosition, settings: DifficultyConfig) -> float:
        if is_corner(position, settings.grid_size):
            return CORNER_BASE_SCORE * settings.corner_bonus
        return EDGE_BASE_SCORE * settings.edge_bonus

    def score_pair(self, entry: GridPosition, exit: GridPosition, settings: DifficultyConfig) -> float:
        """
        Score a pair out of roughly 100.

        Distance carries 40%, corner/edge placement 40%, diagonal spread 10%
        and side diversity 10%.
        """
        size = settings.grid_size
        distance = manhattan_distance(entry, exit)
        distance_score = distance / (2 * (size - 1))

        position_score = self.position_score(entry, settings) + self.position_score(exit, settings)

        d_row = abs(entry.row - exit.row)
        d_col = abs(entry.col - exit.col)
        diagonal_ratio = min(d_row, d_col) / max(d_row, d_col) if distance else 0.0

        side_score = side_relation(entry, exit, size)

        return distance_score * 40 + position_score * 20 + diagonal_ratio * 10 + side_score * 10

    def select(
        self,
        settings: DifficultyConfig,
        rng: Optional[random.Random] = None,
    ) -> List[EntryExitPair]:
        """
        Ordered best-first list of candidate pairs.

        Args:
            settings: Constraints of the tier being generated
            rng: Breaks ties between equally scored pairs when given

        Returns:
            Up to `settings.max_candidates` pairs; empty if none satisfy the spacing
        """
        boundary = boundary_positions(settings.grid_size)
        pairs: List[EntryExitPair] = []
        for entry in boundary:
            for exit in boundary:
                if not validate_spacing(entry, exit, settings.min_distance):
                    continue
                pairs.append(EntryExitPair(
                    entry=entry,
                    exit=exit,
                    distance=manhattan_distance(entry, exit),
                    score=self.score_pair(entry, exit, settings),
                    placement_type=placement_type(entry, exit, settings),
                ))

        if rng is not None:
            rng.shuffle(pairs)
        # Rounded so float noise does not defeat the shuffle
        pairs.sort(key=lambda pair: round(pair.score, 6), reverse=True)

        if not pairs:
            logger.debug(
                "No boundary pair on a %dx%d grid is %d apart",
                settings.grid_size, settings.grid_size, settings.min_distance,
            )
        return pairs[:settings.max_candidates]
