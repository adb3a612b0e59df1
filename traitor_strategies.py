"""How generals choose what to send.

Loyal generals are given `Honest`. Traitors are given anything else by the
simulation harness. A strategy only ever sees what is being sent, so the
agreement code itself never knows whether its own general is loyal.
"""

import random
from typing import Callable, Dict, Optional

from byzantine_types import Order, Path


class Strategy:
    """Chooses the order sent to each recipient. None means send nothing."""

    name = "honest"

    def value_for(self, recipient: int, value: Order, path: Path) -> Optional[Order]:
        return value

    def __str__(self):
        return self.name


class Honest(Strategy):
    """Forwards exactly what it received."""


class Flip(Strategy):
    """Forwards the opposite of what it received."""

    name = "flip"

    def value_for(self, recipient, value, path):
        return value.opposite()


class SplitVote(Strategy):
    """Tells even-numbered generals to attack and odd-numbered ones to retreat."""

    name = "split"

    def value_for(self, recipient, value, path):
        return Order.ATTACK if recipient % 2 == 0 else Order.RETREAT


class Silent(Strategy):
    """Never sends anything."""

    name = "silent"

    def value_for(self, recipient, value, path):
        return None


class RandomOrder(Strategy):
    """Sends an arbitrary order, or nothing, to each recipient."""

    name = "random"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def value_for(self, recipient, value, path):
        return self.rng.choice([Order.ATTACK, Order.RETREAT, None])


STRATEGIES: Dict[str, Callable[[random.Random], Strategy]] = {
    "honest": lambda rng: Honest(),
    "flip": lambda rng: Flip(),
    "split": lambda rng: SplitVote(),
    "silent": lambda rng: Silent(),
    "random": lambda rng: RandomOrder(rng),
}


def make_strategy(name: str, rng: Optional[random.Random] = None) -> Strategy:
    """Build the strategy registered under name."""
    return STRATEGIES[name](rng or random.Random())
