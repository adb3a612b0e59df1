"""Data types for Byzantine agreement with oral messages."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sim_errors import ConfigurationError


class Order(Enum):
    """What the commander tells the army to do."""

    ATTACK = "ATTACK"
    RETREAT = "RETREAT"

    def opposite(self) -> "Order":
        return Order.RETREAT if self is Order.ATTACK else Order.ATTACK


# Used for missing messages and tied votes
DEFAULT_ORDER = Order.RETREAT

Path = Tuple[int, ...]


@dataclass(frozen=True)
class OrderMessage:
    """An order relayed along a path of generals, commander first."""

    path: Path
    order: Order

    def __str__(self) -> str:
        route = "->".join(str(g) for g in self.path)
        return f"Order({route}: {self.order.value})"


@dataclass(frozen=True)
class RoundEnd:
    """Local event marking the end of a relay round."""

    round: int


@dataclass
class ByzantineConfig:
    """Parameters for an agreement run."""

    num_generals: int = 4
    num_traitors: int = 1
    commander: int = 0
    order: Order = Order.ATTACK
    traitors: Dict[int, str] = field(default_factory=dict)
    round_duration: float = 1.0
    latency: Tuple[float, float] = (0.05, 0.3)
    seed: Optional[int] = None

    def validate(self) -> None:
        """Reject parameters that cannot describe a run."""
        # Avoid a circular import; strategies depend on Order.
        from traitor_strategies import STRATEGIES

        if self.num_generals < 1:
            raise ConfigurationError(
                f"need at least one general, got {self.num_generals}"
            )
        if self.num_traitors < 0:
            raise ConfigurationError("number of traitors must be >= 0")
        if self.num_generals < 3 * self.num_traitors + 1:
            raise ConfigurationError(
                f"{self.num_generals} generals cannot tolerate "
                f"{self.num_traitors} traitors (need at least "
                f"{3 * self.num_traitors + 1})"
            )
        if not 0 <= self.commander < self.num_generals:
            raise ConfigurationError(f"commander {self.commander} does not exist")
        if not isinstance(self.order, Order):
            raise ConfigurationError(f"unknown order {self.order!r}")
        for general, strategy in self.traitors.items():
            if not 0 <= general < self.num_generals:
                raise ConfigurationError(f"traitor {general} does not exist")
            if strategy not in STRATEGIES:
                raise ConfigurationError(
                    f"unknown strategy {strategy!r} for general {general}"
                )
        low, high = self.latency
        if low < 0 or high < low:
            raise ConfigurationError(f"invalid latency range {self.latency}")
        if high >= self.round_duration:
            raise ConfigurationError(
                f"latency {high} must be shorter than a round ({self.round_duration})"
            )

    @property
    def lieutenants(self) -> List[int]:
        return [g for g in range(self.num_generals) if g != self.commander]

    @property
    def rounds(self) -> int:
        """OM(f) needs f + 1 relay rounds."""
        return self.num_traitors + 1


@dataclass
class ConsensusResult:
    """Outcome of an agreement run."""

    commander: int
    order: Order
    traitors: Dict[int, str]
    decisions: Dict[int, Order]  # Loyal lieutenants only
    received: Dict[int, Order]  # Direct value from the commander, all lieutenants

    @property
    def commander_loyal(self) -> bool:
        return self.commander not in self.traitors

    def agreement(self) -> bool:
        """Every loyal lieutenant decided the same order."""
        return len(set(self.decisions.values())) <= 1

    def validity(self) -> bool:
        """With a loyal commander, every loyal lieutenant obeyed it."""
        if not self.commander_loyal:
            return True
        return all(d is self.order for d in self.decisions.values())

    def decided_value(self) -> Optional[Order]:
        """The common decision, or None if there is none."""
        values = set(self.decisions.values())
        if len(values) == 1:
            return values.pop()
        return None
