"""The oral messages algorithm OM(m) for Byzantine agreement.

`oral_messages` runs the recursion directly, building a fresh mapping at
every level. `resolve` evaluates the same recursion over the orders a
single lieutenant collected by message passing, keyed by the path each order
travelled. Both use `majority`, which falls back to the default order on
a tie.
"""

from collections import Counter
from typing import Dict, Iterable, List, Mapping, Sequence

from byzantine_types import DEFAULT_ORDER, Order, Path
from traitor_strategies import Honest, Strategy

HONEST = Honest()


def majority(values: Iterable[Order], default: Order = DEFAULT_ORDER) -> Order:
    """The value held by more than half of values, else default."""
    values = list(values)
    if not values:
        return default
    value, count = Counter(values).most_common(1)[0]
    if 2 * count > len(values):
        return value
    return default


def oral_messages(
    commander: int,
    lieutenants: Sequence[int],
    order: Order,
    m: int,
    strategies: Mapping[int, Strategy],
    default: Order = DEFAULT_ORDER,
    path: Path = (),
) -> Dict[int, Order]:
    """Run OM(m) and return the order each lieutenant settles on.

    Generals missing from strategies are honest. A strategy that returns
    None omits the message and the recipient uses default instead.
    """
    path = path + (commander,)
    sender = strategies.get(commander, HONEST)

    received = {}
    for lieutenant in lieutenants:
        value = sender.value_for(lieutenant, order, path)
        received[lieutenant] = default if value is None else value

    if m == 0:
        return received

    # Each lieutenant passes on what it got, acting as commander of OM(m-1)
    relayed = {
        lieutenant: oral_messages(
            lieutenant,
            [other for other in lieutenants if other != lieutenant],
            received[lieutenant],
            m - 1,
            strategies,
            default,
            path,
        )
        for lieutenant in lieutenants
    }

    return {
        lieutenant: majority(
            [received[lieutenant]]
            + [relayed[other][lieutenant] for other in lieutenants if other != lieutenant],
            default,
        )
        for lieutenant in lieutenants
    }


def resolve(
    received: Mapping[Path, Order],
    path: Path,
    me: int,
    generals: Sequence[int],
    depth: int,
    default: Order = DEFAULT_ORDER,
) -> Order:
    """Decide the order that arrived along path, as OM would at that level.

    depth is the length of the longest paths (m + 1). Orders that never
    arrived count as default.
    """
    value = received.get(path, default)
    if len(path) >= depth:
        return value

    others: List[int] = [g for g in generals if g not in path and g != me]
    votes = [value] + [
        resolve(received, path + (other,), me, generals, depth, default)
        for other in others
    ]
    return majority(votes, default)
