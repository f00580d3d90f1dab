"""
Command-line entry point for generating ReflectIQ puzzles.

Usage:
    python -m reflectiq.main Hard --request-id 2026-10-17
    python -m reflectiq.main all --config config.yaml --output puzzles/daily.json --show --verbose
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Dict, List

import yaml

from .config import DIFFICULTY_ORDER, GenerationConfig
from .generation import GenerationExhaustedError, InMemoryPuzzleRegistry, Puzzle, PuzzleGenerator
from .utils.grid_visualizer import visualize


def load_config(config_path: str | Path) -> GenerationConfig:
    """Load generation configuration from a YAML file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return GenerationConfig(**data)


def save_puzzles(puzzles: Dict[str, Puzzle], path: str | Path) -> None:
    """Save generated puzzles to a JSON file keyed by difficulty."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(
            {name: puzzle.model_dump(mode="json") for name, puzzle in puzzles.items()},
            f,
            indent=2,
            default=str,
        )


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate ReflectIQ laser puzzles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example config.yaml:
  seed: 42
  timeout_ms: 5000
  max_generation_attempts: 10
  enable_fallback: true
  degrade_after:
    Hard: 3
    Medium: 5
        """
    )
    parser.add_argument(
        "difficulty",
        choices=[*DIFFICULTY_ORDER, "all"],
        help="Difficulty to generate, or 'all' for a full set"
    )
    parser.add_argument(
        "--request-id", "-r",
        default=date.today().isoformat(),
        help="Request identifier used to seed generation (default: today's date)"
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to YAML configuration file"
    )
    parser.add_argument(
        "--output", "-o",
        help="Path to save puzzles JSON"
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Print each grid with its solution beam"
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Fail instead of falling back to legacy generation"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log generation progress"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else GenerationConfig()
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    if args.no_fallback:
        config = config.model_copy(update={"enable_fallback": False})

    generator = PuzzleGenerator.create(config=config, registry=InMemoryPuzzleRegistry())
    difficulties = list(DIFFICULTY_ORDER) if args.difficulty == "all" else [args.difficulty]

    try:
        puzzles = generator.generate_set(args.request_id, difficulties)
    except GenerationExhaustedError as e:
        print(f"Generation failed: {e}", file=sys.stderr)
        return 1

    if args.output:
        save_puzzles(puzzles, args.output)
        print(f"Puzzles saved to: {args.output}")

    # Print summary
    print()
    print("=== Generation Summary ===")
    for name, puzzle in puzzles.items():
        meta = puzzle.metadata
        print(f"{name}: {puzzle.id}")
        print(f"  Grid: {puzzle.grid_size}x{puzzle.grid_size}, {len(puzzle.materials)} materials "
              f"(density {puzzle.material_density:.2f})")
        print(f"  Entry {tuple(puzzle.entry)} -> exit {tuple(puzzle.solution)}, "
              f"{len(puzzle.solution_path.segments)} segments")
        print(f"  Confidence: {puzzle.confidence_score:.0f}, attempts: {meta.attempts}, "
              f"time: {meta.elapsed_ms:.0f}ms")
        if meta.adapted_from_difficulty:
            print(f"  Built with {meta.adapted_from_difficulty} constraints")
        if puzzle.fallback_used:
            print(f"  Legacy fallback (validation passed: {meta.validation_passed})")
        if args.show:
            print()
            print(visualize(puzzle, show_path=True))
            print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
