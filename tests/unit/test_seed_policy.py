import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from geoquest.application.services.seed_policy import (
    derive_rng,
    derive_seed,
    location_seed,
    tile_index,
    tile_seed,
    validate_coordinates,
)
from geoquest.domain.errors import ValidationError


class SeedPolicyTests(unittest.TestCase):
    def test_same_context_same_seed(self) -> None:
        context = {"character_id": 1, "encounter_id": "poi-1", "turn": 3}
        self.assertEqual(derive_seed("combat.exchange", context), derive_seed("combat.exchange", context))

    def test_context_key_order_does_not_change_seed(self) -> None:
        context_a = {"a": 1, "b": {"x": 2, "y": 3}}
        context_b = {"b": {"y": 3, "x": 2}, "a": 1}
        self.assertEqual(derive_seed("dungeon.floor", context_a), derive_seed("dungeon.floor", context_b))

    def test_namespace_changes_seed(self) -> None:
        context = {"value": 10}
        self.assertNotEqual(derive_seed("dungeon.floor", context), derive_seed("combat.exchange", context))

    def test_seed_fits_in_32_bits(self) -> None:
        seed = derive_seed("world.tile", {"lat": 1, "lng": 2})
        self.assertGreaterEqual(seed, 0)
        self.assertLess(seed, 2**32)

    def test_non_finite_float_in_context_raises(self) -> None:
        with self.assertRaises(ValueError):
            derive_seed("world.tile", {"lat": float("nan")})

    def test_derive_rng_is_deterministic_for_same_context(self) -> None:
        context = {"character_id": 9, "encounter_id": "x"}
        self.assertEqual(derive_rng("loot.drop", context).randint(1, 1000), derive_rng("loot.drop", context).randint(1, 1000))


class LocationQuantizationTests(unittest.TestCase):
    def test_tile_index_absorbs_float_noise(self) -> None:
        self.assertEqual(407128, tile_index(40.7128, 0.0001))
        self.assertEqual(-740060, tile_index(-74.0060, 0.0001))

    def test_tile_index_floors_negative_coordinates(self) -> None:
        self.assertEqual(-1, tile_index(-0.00005, 0.0001))
        self.assertEqual(0, tile_index(0.00005, 0.0001))

    def test_tile_index_rejects_bad_tile_size(self) -> None:
        with self.assertRaises(ValidationError):
            tile_index(1.0, 0)

    def test_positions_in_same_cell_share_location_seed(self) -> None:
        self.assertEqual(location_seed(40.71281, -74.00601), location_seed(40.71289, -74.00609))

    def test_neighbouring_cells_get_different_location_seeds(self) -> None:
        self.assertNotEqual(location_seed(40.7128, -74.0060), location_seed(40.7129, -74.0060))

    def test_precision_changes_granularity(self) -> None:
        self.assertEqual(location_seed(40.71, -74.01, precision=1), location_seed(40.74, -74.04, precision=1))
        self.assertNotEqual(location_seed(40.71, -74.01, precision=4), location_seed(40.74, -74.04, precision=4))

    def test_precision_outside_supported_range_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            location_seed(10.0, 10.0, precision=9)
        with self.assertRaises(ValidationError):
            location_seed(10.0, 10.0, precision=-1)

    def test_invalid_coordinates_are_rejected(self) -> None:
        for latitude, longitude in ((91.0, 0.0), (0.0, -180.5), (float("nan"), 0.0), (0.0, float("inf"))):
            with self.subTest(latitude=latitude, longitude=longitude):
                with self.assertRaises(ValidationError):
                    validate_coordinates(latitude, longitude)

    def test_tile_seed_depends_on_world_seed(self) -> None:
        self.assertEqual(tile_seed(5, 6), tile_seed(5, 6, world_seed=0))
        self.assertNotEqual(tile_seed(5, 6, world_seed=0), tile_seed(5, 6, world_seed=1))


if __name__ == "__main__":
    unittest.main()
