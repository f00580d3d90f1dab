"""ReflectIQ: laser grid puzzles with a proven unique solution."""

from .config import Difficulty, DifficultyConfig, GenerationConfig
from .generation import GenerationError, GenerationExhaustedError, Puzzle, PuzzleGenerator

__all__ = [
    "Difficulty",
    "DifficultyConfig",
    "GenerationConfig",
    "GenerationError",
    "GenerationExhaustedError",
    "Puzzle",
    "PuzzleGenerator",
]
