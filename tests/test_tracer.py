"""
Test suite for the beam tracer.

Covers:
- Straight pass-through and boundary exits
- Mirror, Metal, Water, Glass and Absorber interactions
- Loop detection and start-cell materials
- Probabilistic Water/Glass branches used by legacy generation
"""

from unittest.mock import Mock

import pytest

from reflectiq.physics import (
    Absorber,
    Direction,
    Glass,
    GridPosition,
    Metal,
    Mirror,
    Water,
    expected_heading,
    interact,
    mirror_angle_for_turn,
    trace_beam,
)


class TestDirection:
    """Test compass heading helpers."""

    def test_cardinal_deltas(self):
        """Rows grow southward and columns grow eastward."""
        assert Direction.EAST.delta == (0, 1)
        assert Direction.SOUTH.delta == (1, 0)
        assert Direction.WEST.delta == (0, -1)
        assert Direction.NORTH.delta == (-1, 0)

    def test_diagonal_deltas(self):
        assert Direction.SOUTHEAST.delta == (1, 1)
        assert Direction.NORTHWEST.delta == (-1, -1)
        assert Direction.NORTHEAST.delta == (-1, 1)
        assert Direction.SOUTHWEST.delta == (1, -1)

    def test_snap_to_nearest_heading(self):
        assert Direction.snap(240) == Direction.NORTHWEST
        assert Direction.snap(22.4) == Direction.EAST
        assert Direction.snap(22.5) == Direction.SOUTHEAST
        assert Direction.snap(-90) == Direction.NORTH
        assert Direction.snap(359) == Direction.EAST

    def test_turned_wraps(self):
        assert Direction.NORTH.turned(90) == Direction.EAST
        assert Direction.EAST.turned(-90) == Direction.NORTH


class TestPassThrough:
    """Beams through empty cells."""

    def test_empty_grid_straight_exit(self):
        """6x6 grid, no materials, entry (0,0) heading south exits at (5,0)."""
        path = trace_beam([], GridPosition(0, 0), 6, Direction.SOUTH)
        assert path.exit == GridPosition(5, 0)
        assert path.terminated is False
        assert path.termination == "exit"
        assert path.exit_direction == Direction.SOUTH
        assert len(path.segments) == 5

    def test_direction_inferred_from_edge(self):
        """Omitting the heading fires the beam inward from the entry's edge."""
        assert trace_beam([], GridPosition(0, 0), 6).exit == GridPosition(5, 0)
        assert trace_beam([], GridPosition(3, 0), 6).exit == GridPosition(3, 5)
        assert trace_beam([], GridPosition(3, 5), 6).exit == GridPosition(3, 0)
        assert trace_beam([], GridPosition(5, 2), 6).exit == GridPosition(0, 2)

    def test_segments_chain(self):
        path = trace_beam([], GridPosition(0, 3), 6)
        for prev, cur in zip(path.segments, path.segments[1:]):
            assert prev.end == cur.start
        assert path.cells[0] == GridPosition(0, 3)
        assert path.cells[-1] == path.exit

    def test_start_outside_grid_raises(self):
        with pytest.raises(ValueError):
            trace_beam([], GridPosition(6, 0), 6)

    def test_interior_start_needs_direction(self):
        with pytest.raises(ValueError):
            trace_beam([], GridPosition(2, 2), 6)


class TestMirrors:
    """Mirror reflection against the surface normal."""

    def test_horizontal_mirror_reverses_vertical_beam(self):
        """Mirror{90} at (1,1) hit from (0,1) heading south sends the beam back north."""
        mirror = Mirror(position=GridPosition(1, 1), angle=90)
        path = trace_beam([mirror], GridPosition(0, 1), 6, Direction.SOUTH)

        first, second = path.segments
        assert first.start == GridPosition(0, 1)
        assert first.end == GridPosition(1, 1)
        assert first.material == mirror
        assert second.start == GridPosition(1, 1)
        assert second.direction == Direction.NORTH
        assert path.exit == GridPosition(0, 1)
        assert path.reflection_count == 1

    def test_slash_mirror_turns_east_to_north(self):
        mirror = Mirror(position=GridPosition(2, 3), angle=45)
        path = trace_beam([mirror], GridPosition(2, 0), 6)
        assert path.exit == GridPosition(0, 3)
        assert path.exit_direction == Direction.NORTH
        assert len(path.segments) == 5

    def test_backslash_mirror_turns_east_to_south(self):
        mirror = Mirror(position=GridPosition(2, 3), angle=135)
        path = trace_beam([mirror], GridPosition(2, 0), 6)
        assert path.exit == GridPosition(5, 3)
        assert path.exit_direction == Direction.SOUTH

    def test_mirror_angle_for_turn(self):
        assert mirror_angle_for_turn(Direction.EAST, Direction.NORTH) == 45
        assert mirror_angle_for_turn(Direction.EAST, Direction.SOUTH) == 135
        assert mirror_angle_for_turn(Direction.SOUTH, Direction.EAST) == 135
        assert mirror_angle_for_turn(Direction.WEST, Direction.NORTH) == 135

    def test_off_grid_angle_is_exact(self):
        """Non-45 mirrors keep the exact angle; the tracer snaps it."""
        mirror = Mirror(position=GridPosition(0, 0), angle=30)
        assert expected_heading(mirror, Direction.EAST) == 240
        assert interact(mirror, Direction.EAST) == Direction.NORTHWEST


class TestOtherMaterials:
    """Metal, Absorber, Water and Glass."""

    def test_metal_reverses(self):
        metal = Metal(position=GridPosition(0, 3))
        path = trace_beam([metal], GridPosition(0, 0), 6, Direction.EAST)
        assert path.exit == GridPosition(0, 0)
        assert path.exit_direction == Direction.WEST
        assert len(path.segments) == 6

    def test_absorber_terminates(self):
        """An absorber as the beam's next cell ends the path with no exit."""
        absorber = Absorber(position=GridPosition(1, 0))
        path = trace_beam([absorber], GridPosition(0, 0), 6, Direction.SOUTH)
        assert path.exit is None
        assert path.terminated is True
        assert path.termination == "absorbed"
        assert len(path.segments) == 1

    def test_absorber_in_start_cell(self):
        """A material in the start cell acts before the first step."""
        absorber = Absorber(position=GridPosition(0, 0))
        path = trace_beam([absorber], GridPosition(0, 0), 6)
        assert path.segments == ()
        assert path.exit is None
        assert path.terminated is True

    def test_water_passes_vertical_reverses_horizontal(self):
        down = trace_beam([Water(position=GridPosition(3, 0))], GridPosition(0, 0), 6, Direction.SOUTH)
        assert down.exit == GridPosition(5, 0)

        across = trace_beam([Water(position=GridPosition(0, 2))], GridPosition(0, 0), 6, Direction.EAST)
        assert across.exit == GridPosition(0, 0)
        assert across.exit_direction == Direction.WEST

    def test_glass_passes_horizontal_reverses_vertical(self):
        across = trace_beam([Glass(position=GridPosition(0, 2))], GridPosition(0, 0), 6, Direction.EAST)
        assert across.exit == GridPosition(0, 5)

        down = trace_beam([Glass(position=GridPosition(2, 0))], GridPosition(0, 0), 6, Direction.SOUTH)
        assert down.exit == GridPosition(0, 0)
        assert down.exit_direction == Direction.NORTH

    def test_materials_as_mapping(self):
        cells = {GridPosition(1, 0): Absorber(position=GridPosition(1, 0))}
        assert trace_beam(cells, GridPosition(0, 0), 6).exit is None

    def test_two_materials_in_one_cell_rejected(self):
        materials = [Metal(position=GridPosition(1, 1)), Absorber(position=GridPosition(1, 1))]
        with pytest.raises(ValueError):
            trace_beam(materials, GridPosition(0, 1), 6)


class TestLoops:
    """Loop detection."""

    def test_mirror_ring_loops(self):
        """A beam started inside a closed ring of mirrors never exits."""
        ring = [
            Mirror(position=GridPosition(1, 4), angle=135),
            Mirror(position=GridPosition(4, 4), angle=45),
            Mirror(position=GridPosition(4, 1), angle=135),
            Mirror(position=GridPosition(1, 1), angle=45),
        ]
        path = trace_beam(ring, GridPosition(1, 2), 6, Direction.EAST)
        assert path.exit is None
        assert path.terminated is True
        assert path.termination == "loop"
        assert len(path.segments) == 12


class TestProbabilisticMode:
    """Random Water/Glass branches only apply when an rng is passed."""

    def test_glass_pass_through(self):
        rng = Mock(random=Mock(return_value=0.1))
        assert interact(Glass(position=GridPosition(2, 2)), Direction.SOUTH, rng) == Direction.SOUTH

    def test_glass_reflects(self):
        rng = Mock(random=Mock(return_value=0.9))
        assert interact(Glass(position=GridPosition(2, 2)), Direction.SOUTH, rng) == Direction.NORTH

    def test_water_diffuses(self):
        rng = Mock(random=Mock(return_value=0.1), choice=Mock(return_value=45))
        assert interact(Water(position=GridPosition(2, 2)), Direction.EAST, rng) == Direction.NORTHWEST

    def test_deterministic_without_rng(self):
        assert interact(Glass(position=GridPosition(2, 2)), Direction.SOUTH) == Direction.NORTH
        assert interact(Water(position=GridPosition(2, 2)), Direction.EAST) == Direction.WEST
