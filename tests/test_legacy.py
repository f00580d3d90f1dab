"""Test the legacy random-then-simulate generator."""

import random

import pytest

from reflectiq.config import GenerationConfig
from reflectiq.generation import GenerationError, LegacyGenerator
from reflectiq.physics import is_boundary, manhattan_distance


@pytest.fixture
def settings():
    return GenerationConfig().for_difficulty("Easy")


class TestLegacyGenerator:
    """Fallback layouts and their sampled answers."""

    def test_candidate_is_usable(self, settings):
        candidate, path = LegacyGenerator(max_attempts=500).create(settings, "Easy", random.Random(1))

        assert candidate.difficulty == "Easy"
        assert candidate.grid_size == settings.grid_size
        assert is_boundary(candidate.entry, settings.grid_size)
        assert path.exit == candidate.exit
        assert candidate.exit != candidate.entry
        assert manhattan_distance(candidate.entry, candidate.exit) >= settings.min_distance
        assert candidate.entry not in {m.position for m in candidate.materials}

    def test_same_seed_same_layout(self, settings):
        first = LegacyGenerator(max_attempts=500).create(settings, "Easy", random.Random(2))
        second = LegacyGenerator(max_attempts=500).create(settings, "Easy", random.Random(2))
        assert first == second

    def test_material_count_near_target(self, settings):
        materials = LegacyGenerator().random_materials(settings, (0, 1), random.Random(3))
        assert abs(len(materials) - settings.target_material_count) <= 1
        assert {m.kind for m in materials.values()} <= set(settings.allowed_materials)

    def test_entry_prefers_top_and_left(self):
        rng = random.Random(4)
        legacy = LegacyGenerator()
        entries = [legacy.random_entry(6, rng) for _ in range(1000)]

        assert all(is_boundary(entry, 6) for entry in entries)
        top_or_left = sum(1 for row, col in entries if row == 0 or col == 0)
        assert top_or_left / len(entries) > 0.6

    def test_exhausted(self, settings):
        """A spacing no layout can meet raises instead of returning a bad puzzle."""
        impossible = settings.model_copy(update={"min_distance": 11})
        with pytest.raises(GenerationError) as exc_info:
            LegacyGenerator(max_attempts=5).create(impossible, "Easy", random.Random(5))
        assert exc_info.value.kind == "no_solution"
