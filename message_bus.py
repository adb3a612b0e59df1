"""Reliable in-memory message bus connecting simulated processes."""

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from asimpy import Environment, Process, Queue

from sim_errors import SimulationError


@dataclass
class Envelope:
    """A payload in transit between two processes."""

    src: int
    dst: int
    payload: Any
    sent_at: float
    deliver_at: float

    def __str__(self):
        return f"Envelope({self.src}->{self.dst}, {self.payload})"


class Link(Process):
    """One-way channel that delivers envelopes in the order they were sent."""

    def init(self, inbox: Queue):
        self.inbox = inbox
        self.queue = Queue(self._env)

    async def run(self):
        """Hold each envelope until its delivery time, then hand it over."""
        while True:
            envelope = await self.queue.get()
            if envelope.deliver_at > self.now:
                await self.timeout(envelope.deliver_at - self.now)
            await self.inbox.put(envelope)


class Timer(Process):
    """Posts a local event into a process's own inbox after a delay."""

    def init(self, delay: float, inbox: Queue, envelope: Envelope):
        self.delay = delay
        self.inbox = inbox
        self.envelope = envelope

    async def run(self):
        if self.delay > 0:
            await self.timeout(self.delay)
        await self.inbox.put(self.envelope)


class MessageBus:
    """Reliable point-to-point and broadcast delivery, FIFO per ordered pair."""

    def __init__(
        self,
        env: Environment,
        num_processes: int,
        latency: Tuple[float, float] = (0.0, 0.0),
        rng: Optional[random.Random] = None,
    ):
        self.env = env
        self.num_processes = num_processes
        self.latency = latency
        self.rng = rng or random.Random()

        self.inboxes: Dict[int, Queue] = {
            pid: Queue(env) for pid in range(num_processes)
        }

        # One link per ordered (src, dst) pair
        self.links: Dict[Tuple[int, int], Link] = {}
        self.last_delivery: Dict[Tuple[int, int], float] = {}
        for src in range(num_processes):
            for dst in range(num_processes):
                if src != dst:
                    self.links[(src, dst)] = Link(env, self.inboxes[dst])
                    self.last_delivery[(src, dst)] = 0.0

        # Statistics
        self.messages_sent = 0
        self.messages_delivered = 0

    def peers(self, pid: int) -> List[int]:
        """Every process other than pid."""
        return [other for other in range(self.num_processes) if other != pid]

    async def send(self, src: int, dst: int, payload: Any) -> None:
        """Queue payload for dst; delivery never overtakes earlier sends on the pair."""
        link = self.links.get((src, dst))
        if link is None:
            raise SimulationError(f"no channel from {src} to {dst}")

        low, high = self.latency
        delay = self.rng.uniform(low, high) if high > 0 else 0.0
        deliver_at = max(self.env.now + delay, self.last_delivery[(src, dst)])
        self.last_delivery[(src, dst)] = deliver_at

        self.messages_sent += 1
        await link.queue.put(
            Envelope(src, dst, payload, sent_at=self.env.now, deliver_at=deliver_at)
        )

    async def broadcast(self, src: int, payload: Any) -> None:
        """Send payload to every other process."""
        for dst in self.peers(src):
            await self.send(src, dst, payload)

    async def receive(self, pid: int) -> Envelope:
        """Wait for the oldest undelivered envelope addressed to pid."""
        inbox = self.inboxes.get(pid)
        if inbox is None:
            raise SimulationError(f"unknown process {pid}")
        envelope = await inbox.get()
        if envelope.src != envelope.dst:
            self.messages_delivered += 1
        return envelope

    def schedule(self, pid: int, payload: Any, delay: float) -> Timer:
        """Post payload into pid's own inbox after delay."""
        inbox = self.inboxes.get(pid)
        if inbox is None:
            raise SimulationError(f"unknown process {pid}")
        envelope = Envelope(
            pid, pid, payload, sent_at=self.env.now, deliver_at=self.env.now + delay
        )
        return Timer(self.env, delay, inbox, envelope)

    def print_statistics(self) -> None:
        """Print bus statistics."""
        print(f"\n{'=' * 60}")
        print("Message Bus Statistics:")
        print("=" * 60)
        print(f"Processes: {self.num_processes}")
        print(f"Messages sent: {self.messages_sent}")
        print(f"Messages delivered: {self.messages_delivered}")
