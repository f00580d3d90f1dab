"""Typed generation failures."""

from typing import Any, Dict, Literal, Optional


ErrorKind = Literal[
    "spacing_failure",
    "material_placement_failure",
    "physics_violation",
    "validation_failure",
    "timeout",
    "no_solution",
    "infinite_loop",
]


class GenerationError(Exception):
    """A recoverable failure inside one generation step."""

    def __init__(self, kind: ErrorKind, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.kind}] {self.message}"


class GenerationExhaustedError(GenerationError):
    """Guaranteed generation and the fallback are both used up."""
