"""Grid geometry helpers shared by the tracer, the selector and the validator."""

import hashlib
import json
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from .models import Direction, GridPosition, Material


Side = str  # "top", "right", "bottom", "left"

OPPOSITE_SIDES: Dict[Side, Side] = {
    "top": "bottom",
    "bottom": "top",
    "left": "right",
    "right": "left",
}

MaterialsLike = Union[Iterable[Material], Mapping[GridPosition, Material]]


def in_bounds(position: Tuple[int, int], grid_size: int) -> bool:
    row, col = position
    return 0 <= row < grid_size and 0 <= col < grid_size


def step(position: GridPosition, direction: Direction) -> GridPosition:
    """The neighbouring cell one step along `direction` (may be off-grid)."""
    d_row, d_col = direction.delta
    return GridPosition(position.row + d_row, position.col + d_col)


def is_boundary(position: GridPosition, grid_size: int) -> bool:
    row, col = position
    edge = grid_size - 1
    return in_bounds(position, grid_size) and (row in (0, edge) or col in (0, edge))


def is_corner(position: GridPosition, grid_size: int) -> bool:
    row, col = position
    edge = grid_size - 1
    return row in (0, edge) and col in (0, edge)


def grid_sides(position: GridPosition, grid_size: int) -> Set[Side]:
    """Edges a cell lies on; corners lie on two."""
    row, col = position
    edge = grid_size - 1
    sides: Set[Side] = set()
    if row == 0:
        sides.add("top")
    if row == edge:
        sides.add("bottom")
    if col == 0:
        sides.add("left")
    if col == edge:
        sides.add("right")
    return sides


def side_relation(a: GridPosition, b: GridPosition, grid_size: int) -> float:
    """
    Diversity score for two boundary cells.

    Returns 0.0 when they share an edge, 1.0 when they sit on opposite
    edges, and 0.5 for adjacent edges.
    """
    sides_a = grid_sides(a, grid_size)
    sides_b = grid_sides(b, grid_size)
    if sides_a & sides_b:
        return 0.0
    if any(OPPOSITE_SIDES[side] in sides_b for side in sides_a):
        return 1.0
    return 0.5


def manhattan_distance(a: GridPosition, b: GridPosition) -> int:
    return abs(a.row - b.row) + abs(a.col - b.col)


def boundary_positions(grid_size: int) -> List[GridPosition]:
    """All boundary cells, clockwise from the top-left corner, without repeats."""
    edge = grid_size - 1
    if grid_size == 1:
        return [GridPosition(0, 0)]

    cells: List[GridPosition] = []
    cells.extend(GridPosition(0, c) for c in range(0, edge + 1))
    cells.extend(GridPosition(r, edge) for r in range(1, edge + 1))
    cells.extend(GridPosition(edge, c) for c in range(edge - 1, -1, -1))
    cells.extend(GridPosition(r, 0) for r in range(edge - 1, 0, -1))
    return cells


def initial_direction(position: GridPosition, grid_size: int) -> Direction:
    """
    Heading a beam takes when fired into the grid from a boundary cell.

    Rows are checked before columns, so corners resolve vertically.

    Raises:
        ValueError: If the cell is not on the boundary
    """
    row, col = position
    edge = grid_size - 1
    if row == 0:
        return Direction.SOUTH
    if row == edge:
        return Direction.NORTH
    if col == 0:
        return Direction.EAST
    if col == edge:
        return Direction.WEST
    raise ValueError(f"Position {tuple(position)} is not on the boundary of a {grid_size}x{grid_size} grid")


def material_map(materials: MaterialsLike, grid_size: Optional[int] = None) -> Dict[GridPosition, Material]:
    """
    Index materials by cell.

    Raises:
        ValueError: If two materials share a cell or one lies off-grid
    """
    if isinstance(materials, Mapping):
        items = [(GridPosition(*pos), mat) for pos, mat in materials.items()]
    else:
        items = [(GridPosition(*mat.position), mat) for mat in materials]

    cells: Dict[GridPosition, Material] = {}
    for position, material in items:
        if grid_size is not None and not in_bounds(position, grid_size):
            raise ValueError(f"Material at {tuple(position)} is outside the {grid_size}x{grid_size} grid")
        if position in cells:
            raise ValueError(f"Cell {tuple(position)} already holds a {cells[position].kind}")
        cells[position] = material
    return cells


def alternate_starts(
    entry: GridPosition,
    exit: Optional[GridPosition],
    grid_size: int,
    include_boundary: bool,
) -> List[Tuple[GridPosition, Direction]]:
    """
    Beam launches that compete with the intended solution.

    The entry fired in each of the other seven headings (skipping those whose
    first step leaves the grid) and, when `include_boundary` is set, every
    other boundary cell fired inward. The intended exit is skipped because
    firing from it only retraces the solution backwards.
    """
    canonical = initial_direction(entry, grid_size)
    starts: List[Tuple[GridPosition, Direction]] = []
    for direction in Direction:
        if direction == canonical:
            continue
        if not in_bounds(step(entry, direction), grid_size):
            continue
        starts.append((entry, direction))

    if include_boundary:
        for position in boundary_positions(grid_size):
            if position == entry or position == exit:
                continue
            starts.append((position, initial_direction(position, grid_size)))
    return starts


def content_hash(
    grid_size: int,
    materials: MaterialsLike,
    entry: Optional[GridPosition] = None,
    exit: Optional[GridPosition] = None,
) -> str:
    """Stable sha256 of a grid layout, independent of material ordering."""
    cells = material_map(materials)
    payload = {
        "grid_size": grid_size,
        "entry": list(entry) if entry is not None else None,
        "exit": list(exit) if exit is not None else None,
        "materials": sorted(
            [pos.row, pos.col, mat.kind, getattr(mat, "angle", None)]
            for pos, mat in cells.items()
        ),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
