"""Tests for daily_coin.domains.coin.tossing."""
import random
from collections import Counter
from unittest.mock import MagicMock

from daily_coin.domains.coin.tossing import energy_index, toss_coins, toss_line


class TestTossCoins:

    def test_six_values_between_zero_and_three(self):
        rng = random.Random(7)
        for _ in range(500):
            coins = toss_coins(rng)
            assert len(coins) == 6
            assert all(value in (0, 1, 2, 3) for value in coins)

    def test_default_rng_works(self):
        coins = toss_coins()
        assert len(coins) == 6

    def test_line_counts_tails_among_three_flips(self):
        rng = MagicMock()
        rng.random.side_effect = [0.1, 0.7, 0.2]
        assert toss_line(rng) == 2
        assert rng.random.call_count == 3

    def test_all_heads_is_zero(self):
        rng = MagicMock()
        rng.random.side_effect = [0.5, 0.9, 0.99]
        assert toss_line(rng) == 0

    def test_line_distribution_is_binomial(self):
        rng = random.Random(1234)
        samples = 80_000
        counts = Counter(toss_line(rng) for _ in range(samples))
        expected = {0: 1 / 8, 1: 3 / 8, 2: 3 / 8, 3: 1 / 8}
        for value, probability in expected.items():
            assert abs(counts[value] / samples - probability) < 0.01


class TestEnergyIndex:

    def test_sum_mod_four(self):
        assert energy_index([1, 2, 0, 3, 1, 0]) == 3
        assert energy_index([3, 3, 3, 3, 3, 3]) == 2
        assert energy_index([0, 0, 0, 0, 0, 0]) == 0
