"""Beam physics for ReflectIQ grids."""

from .models import (
    GridPosition,
    Direction,
    MaterialKind,
    Mirror,
    Water,
    Glass,
    Metal,
    Absorber,
    Material,
    PathSegment,
    LaserPath,
)
from .grid import (
    alternate_starts,
    boundary_positions,
    content_hash,
    grid_sides,
    in_bounds,
    initial_direction,
    is_boundary,
    is_corner,
    manhattan_distance,
    material_map,
    side_relation,
    step,
)
from .tracer import trace_beam, interact, expected_heading, mirror_angle_for_turn

__all__ = [
    # Models
    "GridPosition",
    "Direction",
    "MaterialKind",
    "Mirror",
    "Water",
    "Glass",
    "Metal",
    "Absorber",
    "Material",
    "PathSegment",
    "LaserPath",
    # Grid geometry
    "alternate_starts",
    "boundary_positions",
    "content_hash",
    "grid_sides",
    "in_bounds",
    "initial_direction",
    "is_boundary",
    "is_corner",
    "manhattan_distance",
    "material_map",
    "side_relation",
    "step",
    # Tracing
    "trace_beam",
    "interact",
    "expected_heading",
    "mirror_angle_for_turn",
]
