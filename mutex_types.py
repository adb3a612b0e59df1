"""Data types for Lamport's distributed mutual exclusion."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sim_errors import ConfigurationError


class MutexState(Enum):
    """Where a process is in its current critical-section attempt."""

    IDLE = "idle"
    WANTING = "wanting"
    HELD = "held"


@dataclass(frozen=True, order=True)
class RequestRecord:
    """A request for a resource, totally ordered by (timestamp, requester)."""

    timestamp: int
    requester: int
    resource: str = field(compare=False)

    def __str__(self) -> str:
        return f"({self.timestamp}, P{self.requester}, {self.resource})"


# Messages exchanged between processes


@dataclass(frozen=True)
class Request:
    """Ask every peer to queue a request."""

    record: RequestRecord


@dataclass(frozen=True)
class Reply:
    """Acknowledge a request."""

    resource: str
    timestamp: int


@dataclass(frozen=True)
class Release:
    """Tell peers that a request has been satisfied."""

    resource: str
    requester: int
    timestamp: int


# Local events a process posts to itself


@dataclass(frozen=True)
class Want:
    """Time to request a resource."""

    resource: str


@dataclass(frozen=True)
class Leave:
    """Time to leave the critical section of a resource."""

    resource: str


@dataclass(frozen=True)
class Attempt:
    """One planned use of a resource."""

    resource: str
    delay: float  # Wait before requesting
    hold: float  # Time spent in the critical section


@dataclass(frozen=True)
class CriticalSectionEntry:
    """One completed stay in a critical section."""

    resource: str
    process: int
    record: RequestRecord
    entered_at: float
    exited_at: Optional[float] = None

    def __str__(self) -> str:
        return (
            f"P{self.process} held {self.resource} "
            f"[{self.entered_at:.2f}, {self.exited_at:.2f}] for {self.record}"
        )


@dataclass
class MutexConfig:
    """Parameters for a mutual exclusion run."""

    num_processes: int = 4
    resources: Tuple[str, ...] = ("A", "B")
    hold_time: float = 0.5
    start_delay: float = 1.0
    gap: float = 0.2
    stagger: float = 0.1
    repeats: int = 1
    latency: Tuple[float, float] = (0.05, 0.3)
    seed: Optional[int] = None
    plans: Optional[Dict[int, List[Attempt]]] = None
    horizon: float = 10_000.0

    def validate(self) -> None:
        """Reject parameters that cannot describe a run."""
        if self.num_processes < 1:
            raise ConfigurationError(
                f"need at least one process, got {self.num_processes}"
            )
        if not self.resources:
            raise ConfigurationError("need at least one resource")
        if len(set(self.resources)) != len(self.resources):
            raise ConfigurationError(f"duplicate resources in {self.resources}")
        if self.repeats < 0:
            raise ConfigurationError(f"repeats must be >= 0, got {self.repeats}")
        for name in ("hold_time", "start_delay", "gap", "stagger"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0")
        low, high = self.latency
        if low < 0 or high < low:
            raise ConfigurationError(f"invalid latency range {self.latency}")
        if self.horizon <= 0:
            raise ConfigurationError("horizon must be positive")

        if self.plans is not None:
            for pid, attempts in self.plans.items():
                if not 0 <= pid < self.num_processes:
                    raise ConfigurationError(f"plan for unknown process {pid}")
                for attempt in attempts:
                    if attempt.resource not in self.resources:
                        raise ConfigurationError(
                            f"process {pid} plans unknown resource {attempt.resource}"
                        )
                    if attempt.delay < 0 or attempt.hold < 0:
                        raise ConfigurationError(
                            f"process {pid} plans negative times in {attempt}"
                        )

    def attempts_for(self, pid: int) -> List[Attempt]:
        """The attempts a process makes, in order."""
        if self.plans is not None:
            return list(self.plans.get(pid, []))

        attempts = []
        for _ in range(self.repeats):
            for resource in self.resources:
                delay = self.start_delay if not attempts else self.gap
                attempts.append(
                    Attempt(resource, delay + pid * self.stagger, self.hold_time)
                )
        return attempts


@dataclass
class MutexResult:
    """Outcome of a mutual exclusion run."""

    entries: List[CriticalSectionEntry]
    violations: List[str]
    messages_sent: int

    def entries_for(self, resource: str) -> List[CriticalSectionEntry]:
        """Entries into one resource in the order they happened."""
        return [e for e in self.entries if e.resource == resource]

    def is_exclusive(self) -> bool:
        """True if no two processes ever held the same resource at once."""
        if self.violations:
            return False
        for resource in {e.resource for e in self.entries}:
            entries = self.entries_for(resource)
            for before, after in zip(entries, entries[1:]):
                if before.exited_at is None or after.entered_at < before.exited_at:
                    return False
        return True

    def follows_request_order(self) -> bool:
        """True if each resource was granted in strictly increasing request order."""
        for resource in {e.resource for e in self.entries}:
            records = [e.record for e in self.entries_for(resource)]
            if any(a >= b for a, b in zip(records, records[1:])):
                return False
        return True
