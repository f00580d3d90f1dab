"""Progressive hint levels for a solved path."""

from typing import List, Set, Tuple

from ..physics.models import GridPosition, LaserPath
from .models import HintLevel


HINT_PERCENTAGES: Tuple[int, ...] = (25, 50, 75, 100)


def segment_hints(path: LaserPath) -> Tuple[HintLevel, ...]:
    """
    Split a solution path into four cumulative reveals.

    Level k covers the first ceil(n * pct / 100) segments, so the last level
    is always the whole path. A path with no segments yields four empty
    levels.
    """
    total = len(path.segments)
    levels: List[HintLevel] = []

    for level, percentage in enumerate(HINT_PERCENTAGES, start=1):
        count = -(-total * percentage // 100)
        segments = path.segments[:count]

        seen: Set[GridPosition] = set()
        revealed: List[GridPosition] = []
        for seg in segments:
            for cell in (seg.start, seg.end):
                if cell not in seen:
                    seen.add(cell)
                    revealed.append(cell)

        levels.append(HintLevel(
            level=level,
            percentage=percentage,
            segments=tuple(segments),
            revealed_cells=tuple(revealed),
        ))

    return tuple(levels)
