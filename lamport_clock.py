"""Lamport logical clock for ordering events between processes."""

from dataclasses import dataclass


@dataclass
class LamportClock:
    """Logical clock owned by a single process."""

    time: int = 0

    def tick(self) -> int:
        """Advance the clock for a local or send event."""
        self.time += 1
        return self.time

    def observe(self, received: int) -> int:
        """Advance the clock past a timestamp carried by a received message."""
        self.time = max(self.time, received) + 1
        return self.time

    def __str__(self):
        return f"LC({self.time})"
