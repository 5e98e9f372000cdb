"""
Tests for hashing, uniform draws and weight flooring.
"""
import pytest

from offset_tree.random_utils import (
    WEIGHT_EPSILON,
    WeightFloor,
    merand48,
    uniform_hash,
    uniform_random_merand48,
)


class TestPrimitives:
    """Test the hash and draw primitives."""

    def test_hash_deterministic(self):
        assert uniform_hash(b"abc", 7) == uniform_hash(b"abc", 7)
        assert uniform_hash(b"abc", 7) != uniform_hash(b"abc", 8)
        assert 0 <= uniform_hash(b"abc", 7) < 1 << 64

    def test_draws_in_unit_interval(self):
        seed = 12345
        for _ in range(1000):
            value, seed = merand48(seed)
            assert 0.0 <= value < 1.0

    def test_draw_deterministic(self):
        assert uniform_random_merand48(42) == uniform_random_merand48(42)
        assert uniform_random_merand48(42) == merand48(42)[0]

    def test_draw_from_zero_seed(self):
        """One LCG step from zero lands on the additive constant."""
        assert merand48(0) == (63 / 2**23, 2147483647)

    def test_draw_mean(self):
        seed = 99
        total = 0.0
        n = 5000
        for _ in range(n):
            value, seed = merand48(seed)
            total += value
        assert total / n == pytest.approx(0.5, abs=0.03)


class TestWeightFloor:
    """Test rejection sampling of tiny importance weights."""

    def test_large_weights_pass_through(self):
        floor = WeightFloor(seed=1)

        assert floor.apply(0.5) == (True, 0.5)
        assert floor.apply(WEIGHT_EPSILON) == (True, WEIGHT_EPSILON)
        assert floor.draws == 0

    def test_draws_bounded_by_epsilon(self):
        floor = WeightFloor(seed=3)
        for _ in range(500):
            assert 0.0 <= floor.next_draw() < WEIGHT_EPSILON

    def test_kept_weight_is_epsilon(self):
        floor = WeightFloor(seed=5)
        kept = [w for keep, w in (floor.apply(WEIGHT_EPSILON * 0.9) for _ in range(200)) if keep]

        assert kept
        assert all(w == WEIGHT_EPSILON for w in kept)

    def test_unbiased_in_expectation(self):
        """Kept fraction times epsilon approximates the tiny weight."""
        tiny = WEIGHT_EPSILON / 4
        floor = WeightFloor(seed=2024)
        n = 20000

        kept = sum(1 for _ in range(n) if floor.apply(tiny)[0])

        assert kept / n * WEIGHT_EPSILON == pytest.approx(tiny, rel=0.08)
        assert floor.kept == kept
        assert floor.draws == n

    def test_reproducible_per_seed(self):
        a = WeightFloor(seed=11)
        b = WeightFloor(seed=11)
        c = WeightFloor(seed=12)

        seq_a = [a.next_draw() for _ in range(20)]
        assert seq_a == [b.next_draw() for _ in range(20)]
        assert seq_a != [c.next_draw() for _ in range(20)]

    def test_statistics(self):
        floor = WeightFloor(seed=4)
        floor.apply(1e-9)

        stats = floor.get_statistics()
        assert stats["draws"] == 1
        assert stats["epsilon"] == WEIGHT_EPSILON
