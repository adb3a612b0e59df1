"""Structured event log shared by the simulations."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union


class EventKind(Enum):
    """Mutual exclusion transitions worth recording."""

    REQUEST = "request"
    REPLY = "reply"
    RELEASE = "release"
    ENTER = "enter"
    EXIT = "exit"


class Role(Enum):
    """Position of a general in the agreement protocol."""

    COMMANDER = "commander"
    LIEUTENANT = "lieutenant"


@dataclass(frozen=True)
class MutexEvent:
    """One mutual exclusion transition at a process."""

    time: float
    process: int
    kind: EventKind
    resource: str
    timestamp: int

    def __str__(self) -> str:
        return (
            f"P{self.process}: {self.kind.name} resource={self.resource} "
            f"ts={self.timestamp}"
        )


@dataclass(frozen=True)
class ConsensusEvent:
    """What a general received and decided."""

    time: float
    process: int
    role: Role
    received: Optional[str]
    decision: Optional[str]

    def __str__(self) -> str:
        if self.role is Role.COMMANDER:
            return f"G{self.process}: COMMANDER sent {self.received}"
        return (
            f"G{self.process}: received {self.received} from commander, "
            f"FINAL DECISION = {self.decision}"
        )


Event = Union[MutexEvent, ConsensusEvent]


class EventLog:
    """Collects events, echoes them to the console and optionally a file."""

    def __init__(self, echo: bool = True, path: Optional[str] = None):
        self.echo = echo
        self.path = path
        self.events: List[Event] = []

    def record(self, event: Event) -> None:
        """Store an event and write its line wherever configured."""
        self.events.append(event)
        line = f"[{event.time:.1f}] {event}"
        if self.echo:
            print(line)
        if self.path is not None:
            with open(self.path, "a", encoding="utf-8") as stream:
                stream.write(line + "\n")

    def for_process(self, process: int) -> List[Event]:
        """Events recorded by one process, in order."""
        return [e for e in self.events if e.process == process]

    def of_kind(self, kind: EventKind) -> List[MutexEvent]:
        """Mutual exclusion events of a single kind."""
        return [
            e for e in self.events if isinstance(e, MutexEvent) and e.kind is kind
        ]

    def __len__(self):
        return len(self.events)
