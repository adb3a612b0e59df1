"""A process taking part in Lamport's distributed mutual exclusion."""

import heapq
from asimpy import Process
from collections import defaultdict
from typing import Dict, List, Optional

from event_log import EventKind, EventLog, MutexEvent
from lamport_clock import LamportClock
from message_bus import MessageBus
from mutex_types import (
    Attempt,
    Leave,
    MutexState,
    Release,
    Reply,
    Request,
    RequestRecord,
    Want,
)
from shared_resource import SharedResource


class MutexProcess(Process):
    """Requests, waits for, holds and releases resources in Lamport order.

    Every decision is made from this process's own clock and request
    queues. Peers are only reachable through the bus. Holds and pauses
    between attempts are local timer events posted to the same inbox, so
    the process keeps answering peers while it waits.
    """

    def init(
        self,
        pid: int,
        bus: MessageBus,
        attempts: List[Attempt],
        resources: Dict[str, SharedResource],
        log: EventLog,
    ):
        self.pid = pid
        self.bus = bus
        self.attempts = list(attempts)
        self.resources = resources
        self.log = log

        self.clock = LamportClock()
        self.state = MutexState.IDLE
        self.current: Optional[RequestRecord] = None

        # Resource -> heap of outstanding requests
        self.queues: Dict[str, List[RequestRecord]] = defaultdict(list)

        # Peer -> latest timestamp heard from it
        self.last_heard: Dict[int, int] = {q: 0 for q in bus.peers(pid)}

        self.next_attempt = 0
        self.completed_attempts = 0

    @property
    def completed(self) -> bool:
        """True once every planned attempt has been released."""
        return self.completed_attempts == len(self.attempts)

    async def run(self):
        """Serve the inbox forever, re-checking the entry rule after each message."""
        self._schedule_next_attempt()

        while True:
            envelope = await self.bus.receive(self.pid)
            message = envelope.payload

            if isinstance(message, Want):
                await self.request(message.resource)
            elif isinstance(message, Leave):
                await self.release(message.resource)
            elif isinstance(message, Request):
                await self.on_request(envelope.src, message)
            elif isinstance(message, Reply):
                self.on_reply(envelope.src, message)
            elif isinstance(message, Release):
                self.on_release(envelope.src, message)

            self.try_enter()

    def _schedule_next_attempt(self) -> None:
        """Arrange the local event that starts the next attempt."""
        if self.next_attempt >= len(self.attempts):
            return
        attempt = self.attempts[self.next_attempt]
        self.bus.schedule(self.pid, Want(attempt.resource), attempt.delay)

    def _record(self, kind: EventKind, resource: str, timestamp: int) -> None:
        self.log.record(MutexEvent(self.now, self.pid, kind, resource, timestamp))

    async def request(self, resource: str) -> None:
        """Queue our own request and announce it to every peer."""
        timestamp = self.clock.tick()
        record = RequestRecord(timestamp, self.pid, resource)
        heapq.heappush(self.queues[resource], record)
        self.current = record
        self.state = MutexState.WANTING

        self._record(EventKind.REQUEST, resource, timestamp)
        await self.bus.broadcast(self.pid, Request(record))

    async def on_request(self, sender: int, message: Request) -> None:
        """Queue a peer's request and acknowledge it straight away."""
        record = message.record
        self._heard(sender, record.timestamp)
        heapq.heappush(self.queues[record.resource], record)

        timestamp = self.clock.tick()
        self._record(EventKind.REPLY, record.resource, timestamp)
        await self.bus.send(self.pid, sender, Reply(record.resource, timestamp))

    def on_reply(self, sender: int, message: Reply) -> None:
        self._heard(sender, message.timestamp)

    def on_release(self, sender: int, message: Release) -> None:
        """Forget the released request."""
        self._heard(sender, message.timestamp)
        queue = self.queues[message.resource]
        queue[:] = [r for r in queue if r.requester != message.requester]
        heapq.heapify(queue)

    def _heard(self, sender: int, timestamp: int) -> None:
        self.clock.observe(timestamp)
        self.last_heard[sender] = max(self.last_heard[sender], timestamp)

    def acknowledged_by(self) -> List[int]:
        """Peers that sent something later than our outstanding request."""
        if self.current is None:
            return []
        return [
            q for q, ts in self.last_heard.items() if ts > self.current.timestamp
        ]

    def can_enter(self) -> bool:
        """Own request heads the queue and every peer has caught up with it."""
        if self.state is not MutexState.WANTING or self.current is None:
            return False
        queue = self.queues[self.current.resource]
        if not queue or queue[0] != self.current:
            return False
        return len(self.acknowledged_by()) == len(self.last_heard)

    def try_enter(self) -> None:
        """Enter the critical section if the entry rule holds."""
        if not self.can_enter():
            return

        record = self.current
        attempt = self.attempts[self.next_attempt]
        self.state = MutexState.HELD
        self.resources[record.resource].enter(self.pid, record)
        self._record(EventKind.ENTER, record.resource, record.timestamp)
        self.bus.schedule(self.pid, Leave(record.resource), attempt.hold)

    async def release(self, resource: str) -> None:
        """Leave the critical section and tell every peer."""
        record = self.current
        self.resources[resource].exit(self.pid)
        self._record(EventKind.EXIT, resource, record.timestamp)

        queue = self.queues[resource]
        queue[:] = [r for r in queue if r.requester != self.pid]
        heapq.heapify(queue)

        timestamp = self.clock.tick()
        self.state = MutexState.IDLE
        self.current = None
        self.next_attempt += 1
        self.completed_attempts += 1

        self._record(EventKind.RELEASE, resource, timestamp)
        await self.bus.broadcast(self.pid, Release(resource, self.pid, timestamp))
        self._schedule_next_attempt()
