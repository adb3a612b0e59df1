import random

import pytest
from asimpy import Environment, Process

from message_bus import MessageBus
from sim_errors import SimulationError


class Sender(Process):
    def init(self, bus, src, dst, count):
        self.bus = bus
        self.src = src
        self.dst = dst
        self.count = count

    async def run(self):
        for i in range(self.count):
            await self.bus.send(self.src, self.dst, i)


class Broadcaster(Process):
    def init(self, bus, src, count):
        self.bus = bus
        self.src = src
        self.count = count

    async def run(self):
        for i in range(self.count):
            await self.bus.broadcast(self.src, (self.src, i))


class Collector(Process):
    def init(self, bus, pid, expected):
        self.bus = bus
        self.pid = pid
        self.expected = expected
        self.envelopes = []

    async def run(self):
        while len(self.envelopes) < self.expected:
            self.envelopes.append(await self.bus.receive(self.pid))


def test_send_preserves_order_per_pair_despite_random_latency():
    env = Environment()
    bus = MessageBus(env, 2, latency=(0.0, 1.0), rng=random.Random(3))
    Sender(env, bus, 0, 1, 25)
    collector = Collector(env, bus, 1, 25)

    env.run(until=100)

    assert [e.payload for e in collector.envelopes] == list(range(25))
    assert all(e.src == 0 and e.dst == 1 for e in collector.envelopes)
    assert bus.messages_sent == 25
    assert bus.messages_delivered == 25


def test_delivery_respects_latency():
    env = Environment()
    bus = MessageBus(env, 2, latency=(0.5, 0.5))
    Sender(env, bus, 0, 1, 1)
    collector = Collector(env, bus, 1, 1)

    env.run(until=10)

    envelope = collector.envelopes[0]
    assert envelope.sent_at == 0
    assert envelope.deliver_at == pytest.approx(0.5)


def test_broadcast_reaches_everyone_but_sender_in_order():
    env = Environment()
    bus = MessageBus(env, 4, latency=(0.0, 0.3), rng=random.Random(11))
    Broadcaster(env, bus, 0, 5)
    collectors = [Collector(env, bus, pid, 5) for pid in (1, 2, 3)]

    env.run(until=100)

    for collector in collectors:
        assert [e.payload for e in collector.envelopes] == [(0, i) for i in range(5)]
    assert bus.messages_sent == 15


def test_schedule_posts_local_event_after_delay():
    env = Environment()
    bus = MessageBus(env, 1)
    bus.schedule(0, "wake", 2.0)
    collector = Collector(env, bus, 0, 1)

    env.run(until=10)

    assert collector.envelopes[0].payload == "wake"
    assert collector.envelopes[0].deliver_at == pytest.approx(2.0)
    assert bus.messages_sent == 0


def test_peers_excludes_self():
    bus = MessageBus(Environment(), 4)
    assert bus.peers(2) == [0, 1, 3]


def test_unknown_process_is_an_error():
    bus = MessageBus(Environment(), 2)
    with pytest.raises(SimulationError):
        bus.schedule(5, "wake", 1.0)
