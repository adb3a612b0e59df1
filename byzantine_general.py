"""A general taking part in oral-messages Byzantine agreement."""

from asimpy import Process
from itertools import permutations
from typing import Dict, List, Optional

from byzantine_types import DEFAULT_ORDER, Order, OrderMessage, Path, RoundEnd
from event_log import ConsensusEvent, EventLog, Role
from message_bus import MessageBus
from oral_messages import resolve
from traitor_strategies import Strategy


class General(Process):
    """Commander or lieutenant in OM(m), run as synchronous relay rounds.

    Round k ends at time k * round_duration. During round k lieutenants
    collect the orders that travelled along paths of length k. At the end
    of the round they pass each one on, so the next round carries paths of
    length k + 1. After the last round a lieutenant resolves everything it
    collected into a decision.
    """

    def init(
        self,
        general_id: int,
        bus: MessageBus,
        commander: int,
        rounds: int,
        round_duration: float,
        strategy: Strategy,
        log: EventLog,
        order: Optional[Order] = None,
    ):
        self.general_id = general_id
        self.bus = bus
        self.commander = commander
        self.rounds = rounds
        self.round_duration = round_duration
        self.strategy = strategy
        self.log = log
        self.order = order

        self.generals: List[int] = [general_id] + bus.peers(general_id)
        self.received: Dict[Path, Order] = {}
        self.decision: Optional[Order] = None
        self.has_decided = False

    @property
    def is_commander(self) -> bool:
        return self.general_id == self.commander

    async def run(self):
        if self.is_commander:
            await self.command()
            return

        for k in range(1, self.rounds + 1):
            self.bus.schedule(self.general_id, RoundEnd(k), k * self.round_duration)

        while not self.has_decided:
            envelope = await self.bus.receive(self.general_id)
            message = envelope.payload

            if isinstance(message, OrderMessage):
                self.on_order(envelope.src, message)
            elif isinstance(message, RoundEnd):
                await self.end_round(message.round)

    async def command(self) -> None:
        """Send the order to every lieutenant."""
        path = (self.general_id,)
        for lieutenant in self.bus.peers(self.general_id):
            await self._send(lieutenant, self.order, path)

        self.decision = self.order
        self.has_decided = True
        self.log.record(
            ConsensusEvent(
                self.now, self.general_id, Role.COMMANDER, self.order.value, None
            )
        )

    def on_order(self, sender: int, message: OrderMessage) -> None:
        """Keep the first order seen on each well-formed path."""
        path = message.path
        if not path or path[0] != self.commander or path[-1] != sender:
            return
        if self.general_id in path or len(set(path)) != len(path):
            return
        self.received.setdefault(path, message.order)

    async def end_round(self, k: int) -> None:
        """Relay this round's orders, or decide after the last round."""
        if k >= self.rounds:
            self.decide()
            return

        for path in self._paths_of_length(k):
            value = self.received.get(path, DEFAULT_ORDER)
            relay_path = path + (self.general_id,)
            for recipient in self.generals:
                if recipient != self.general_id and recipient not in path:
                    await self._send(recipient, value, relay_path)

    def decide(self) -> None:
        """Resolve the collected orders with recursive majority."""
        self.decision = resolve(
            self.received,
            (self.commander,),
            self.general_id,
            self.generals,
            self.rounds,
        )
        self.has_decided = True
        self.log.record(
            ConsensusEvent(
                self.now,
                self.general_id,
                Role.LIEUTENANT,
                self.direct_order.value,
                self.decision.value,
            )
        )

    @property
    def direct_order(self) -> Order:
        """What the commander told this general, or the default if nothing."""
        return self.received.get((self.commander,), DEFAULT_ORDER)

    def _paths_of_length(self, k: int) -> List[Path]:
        """Every path of length k starting at the commander and avoiding us."""
        middle = [
            g for g in self.generals if g != self.commander and g != self.general_id
        ]
        return [(self.commander,) + rest for rest in permutations(middle, k - 1)]

    async def _send(self, recipient: int, value: Order, path: Path) -> None:
        chosen = self.strategy.value_for(recipient, value, path)
        if chosen is not None:
            await self.bus.send(self.general_id, recipient, OrderMessage(path, chosen))
