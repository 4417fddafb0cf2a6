# daily_coin/domains/coin/tossing.py

import random
from typing import Optional

LINES_PER_TOSS = 6
COINS_PER_LINE = 3


def toss_line(rng: random.Random) -> int:
    """Tails among three fair coins: 0..3 with P = 1/8, 3/8, 3/8, 1/8."""
    return sum(1 for _ in range(COINS_PER_LINE) if rng.random() < 0.5)


def toss_coins(rng: Optional[random.Random] = None) -> list[int]:
    rng = rng or random.SystemRandom()
    return [toss_line(rng) for _ in range(LINES_PER_TOSS)]


def energy_index(coin_results: list[int]) -> int:
    """Sum of the six lines mod 4, the numeric seed of a reading."""
    return sum(coin_results) % 4
