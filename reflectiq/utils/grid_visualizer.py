from typing import Dict, Iterable, Optional, Tuple

from ..physics.grid import material_map
from ..physics.models import GridPosition, LaserPath, Material

MIRROR_SYMBOLS: Dict[int, str] = {0: '|', 45: '/', 90: '-', 135: '\\'}
MATERIAL_SYMBOLS: Dict[str, str] = {
    'water': '~',
    'glass': 'G',
    'metal': '#',
    'absorber': 'X',
}


def material_symbol(material: Material) -> str:
    """Single-character symbol for a material."""
    if material.kind == 'mirror':
        return MIRROR_SYMBOLS.get(material.angle, 'M')
    return MATERIAL_SYMBOLS[material.kind]


def render_grid(
    grid_size: int,
    materials: Iterable[Material],
    entry: Optional[Tuple[int, int]] = None,
    exit: Optional[Tuple[int, int]] = None,
    path: Optional[LaserPath] = None,
) -> str:
    """Render a grid to a string, optionally tracing the beam with '*'."""
    cells: Dict[Tuple[int, int], str] = {}

    if path is not None:
        for pos in path.cells:
            cells[tuple(pos)] = '*'

    for pos, material in material_map(materials).items():
        cells[tuple(pos)] = material_symbol(material)

    if entry is not None:
        cells[tuple(entry)] = 'E'
    if exit is not None:
        cells[tuple(exit)] = 'O'

    lines = []
    for row in range(grid_size):
        line = ''
        for col in range(grid_size):
            line += cells.get((row, col), '.')
        lines.append(line)

    return '\n'.join(lines)


def visualize(puzzle, show_path: bool = False) -> str:
    """Render a generated puzzle, with its solution beam when `show_path` is set."""
    return render_grid(
        puzzle.grid_size,
        puzzle.materials,
        entry=GridPosition(*puzzle.entry),
        exit=GridPosition(*puzzle.solution),
        path=puzzle.solution_path if show_path else None,
    )
