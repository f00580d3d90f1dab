"""Data models for beam physics: positions, headings, materials and paths."""

import math
from enum import IntEnum
from typing import Annotated, List, Literal, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


MaterialKind = Literal["mirror", "water", "glass", "metal", "absorber"]
Termination = Literal["exit", "absorbed", "loop"]


class GridPosition(NamedTuple):
    """A cell on the square grid. Rows grow southward."""
    row: int
    col: int


class Direction(IntEnum):
    """
    Compass headings in degrees.

    0 points east and angles grow clockwise on screen, so 90 is south
    and 270 is north.
    """
    EAST = 0
    SOUTHEAST = 45
    SOUTH = 90
    SOUTHWEST = 135
    WEST = 180
    NORTHWEST = 225
    NORTH = 270
    NORTHEAST = 315

    @property
    def delta(self) -> Tuple[int, int]:
        """Unit (d_row, d_col) step for this heading."""
        radians = math.radians(self.value)
        return round(math.sin(radians)), round(math.cos(radians))

    @property
    def is_diagonal(self) -> bool:
        return self.value % 90 != 0

    def turned(self, degrees: int) -> "Direction":
        """Heading rotated clockwise by a multiple of 45 degrees."""
        return Direction((self.value + degrees) % 360)

    @classmethod
    def snap(cls, angle: float) -> "Direction":
        """Snap an arbitrary angle to the nearest compass heading."""
        steps = math.floor((angle % 360) / 45 + 0.5)
        return cls((steps * 45) % 360)


class Mirror(BaseModel):
    """Flat mirror; angle 45 reads as '/', 135 as '\\', 0 as '|', 90 as '-'."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["mirror"] = "mirror"
    position: GridPosition
    angle: int = Field(default=45, ge=0, lt=180)


class Water(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["water"] = "water"
    position: GridPosition


class Glass(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["glass"] = "glass"
    position: GridPosition


class Metal(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["metal"] = "metal"
    position: GridPosition


class Absorber(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["absorber"] = "absorber"
    position: GridPosition


Material = Annotated[
    Union[Mirror, Water, Glass, Metal, Absorber],
    Field(discriminator="kind"),
]


class PathSegment(BaseModel):
    """One cell-to-cell step of the beam; material is whatever sits in `end`."""
    model_config = ConfigDict(frozen=True)

    start: GridPosition
    end: GridPosition
    direction: Direction
    material: Optional[Material] = None


class LaserPath(BaseModel):
    """Result of tracing a beam from a start cell until it exits, is absorbed, or loops."""
    model_config = ConfigDict(frozen=True)

    segments: Tuple[PathSegment, ...] = ()
    exit: Optional[GridPosition] = None
    terminated: bool = False
    termination: Termination = "exit"
    exit_direction: Optional[Direction] = None

    @property
    def cells(self) -> List[GridPosition]:
        """Cells in visiting order, starting with the first segment's start."""
        if not self.segments:
            return []
        return [self.segments[0].start] + [seg.end for seg in self.segments]

    @property
    def reflection_count(self) -> int:
        """Number of heading changes along the path, including the exit heading."""
        headings = [seg.direction for seg in self.segments]
        if self.exit_direction is not None:
            headings.append(self.exit_direction)
        return sum(1 for prev, cur in zip(headings, headings[1:]) if prev != cur)
