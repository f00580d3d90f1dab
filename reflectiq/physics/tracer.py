"""
Forward beam simulation.

The tracer is pure: it reads a material layout and returns a LaserPath
without touching shared state, so it can be fired from any cell in any
heading. The validator relies on this for its alternate-path search.
"""

import logging
import random
from typing import List, Optional, Set, Tuple

from .grid import MaterialsLike, in_bounds, initial_direction, material_map, step
from .models import (
    Absorber,
    Direction,
    Glass,
    GridPosition,
    LaserPath,
    Material,
    Metal,
    Mirror,
    PathSegment,
    Water,
)


logger = logging.getLogger(__name__)

# Surface normals for the deterministic Water/Glass branches
WATER_NORMAL = 90
GLASS_NORMAL = 0

WATER_DIFFUSION_CHANCE = 0.3
GLASS_PASS_CHANCE = 0.5


def reflect(incoming: float, normal: float) -> float:
    """Reflect a heading off a surface with the given normal."""
    return (2 * normal - incoming) % 360


def mirror_angle_for_turn(incoming: Direction, outgoing: Direction) -> int:
    """Mirror angle (0-179) that turns `incoming` into `outgoing`."""
    return ((outgoing.value + incoming.value - 180) // 2) % 180


def expected_heading(material: Optional[Material], incoming: Direction) -> Optional[float]:
    """
    Exact outgoing angle for a deterministic interaction.

    Returns None when the material absorbs the beam. Angles are not snapped,
    so a 15-degree mirror yields the true reflection angle.
    """
    match material:
        case None:
            return float(incoming.value)
        case Mirror(angle=angle):
            return reflect(incoming.value, angle + 90)
        case Metal():
            return float((incoming.value + 180) % 360)
        case Absorber():
            return None
        case Water():
            return reflect(incoming.value, WATER_NORMAL)
        case Glass():
            return reflect(incoming.value, GLASS_NORMAL)
        case _:
            raise TypeError(f"Unknown material: {material!r}")


def interact(
    material: Optional[Material],
    incoming: Direction,
    rng: Optional[random.Random] = None,
) -> Optional[Direction]:
    """
    Heading after the beam enters a cell, or None if it is absorbed.

    Without an rng every material behaves deterministically. With one, Water
    may diffuse a step to either side and Glass may let the beam through.
    """
    if rng is not None:
        if isinstance(material, Glass) and rng.random() < GLASS_PASS_CHANCE:
            return incoming
        if isinstance(material, Water) and rng.random() < WATER_DIFFUSION_CHANCE:
            base = Direction.snap(expected_heading(material, incoming))
            return base.turned(rng.choice((-45, 45)))

    angle = expected_heading(material, incoming)
    if angle is None:
        return None
    return Direction.snap(angle)


def trace_beam(
    materials: MaterialsLike,
    start: GridPosition,
    grid_size: int,
    direction: Optional[Direction] = None,
    rng: Optional[random.Random] = None,
) -> LaserPath:
    """
    Trace a beam fired into the grid at `start`.

    The beam enters `start` from outside, so a material sitting in the start
    cell acts before the first step. More than 4 * grid_size**2 steps, or a
    repeated (cell, heading) state in deterministic mode, is treated as a loop.

    Args:
        materials: Material list or cell-to-material mapping
        start: Cell the beam enters first
        grid_size: Side length of the square grid
        direction: Initial heading; inferred from the boundary edge when omitted
        rng: Enables the probabilistic Water/Glass behaviour

    Returns:
        The traced LaserPath

    Raises:
        ValueError: If `start` is off-grid, or no direction is given for an interior cell
    """
    start = GridPosition(*start)
    if not in_bounds(start, grid_size):
        raise ValueError(f"Start {tuple(start)} is outside the {grid_size}x{grid_size} grid")

    cells = material_map(materials)
    heading = direction if direction is not None else initial_direction(start, grid_size)
    max_steps = 4 * grid_size * grid_size

    segments: List[PathSegment] = []
    position = start

    heading = interact(cells.get(start), heading, rng)
    if heading is None:
        return LaserPath(segments=segments, exit=None, terminated=True, termination="absorbed")

    seen: Set[Tuple[GridPosition, Direction]] = {(position, heading)}

    while True:
        nxt = step(position, heading)
        if not in_bounds(nxt, grid_size):
            return LaserPath(
                segments=segments,
                exit=position,
                terminated=False,
                termination="exit",
                exit_direction=heading,
            )

        if len(segments) >= max_steps:
            logger.debug("Beam from %s exceeded %d steps", tuple(start), max_steps)
            return LaserPath(segments=segments, exit=None, terminated=True, termination="loop")

        material = cells.get(nxt)
        segments.append(PathSegment(start=position, end=nxt, direction=heading, material=material))
        position = nxt

        heading = interact(material, heading, rng)
        if heading is None:
            return LaserPath(segments=segments, exit=None, terminated=True, termination="absorbed")

        state = (position, heading)
        if state in seen and rng is None:
            logger.debug("Beam from %s loops at %s", tuple(start), tuple(position))
            return LaserPath(segments=segments, exit=None, terminated=True, termination="loop")
        seen.add(state)
