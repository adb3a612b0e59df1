# shared_resource.py
"""Monitor for a resource guarded by distributed mutual exclusion."""

from asimpy import Environment
from dataclasses import replace
from typing import List, Optional

from mutex_types import CriticalSectionEntry, RequestRecord


class SharedResource:
    """Records who holds a resource and flags overlapping holders."""

    def __init__(self, env: Environment, name: str):
        self.env = env
        self.name = name
        self.holder: Optional[int] = None
        self.entries: List[CriticalSectionEntry] = []
        self.violations: List[str] = []

    def enter(self, process: int, record: RequestRecord) -> None:
        """A process starts its critical section."""
        if self.holder is not None:
            message = (
                f"P{process} entered {self.name} while P{self.holder} holds it"
            )
            print(f"[{self.env.now:.1f}] VIOLATION: {message}")
            self.violations.append(message)

        self.holder = process
        self.entries.append(
            CriticalSectionEntry(self.name, process, record, entered_at=self.env.now)
        )

    def exit(self, process: int) -> None:
        """A process finishes its critical section."""
        if self.holder != process:
            message = f"P{process} left {self.name} held by P{self.holder}"
            print(f"[{self.env.now:.1f}] VIOLATION: {message}")
            self.violations.append(message)

        self.holder = None
        for index in range(len(self.entries) - 1, -1, -1):
            entry = self.entries[index]
            if entry.process == process and entry.exited_at is None:
                self.entries[index] = replace(entry, exited_at=self.env.now)
                break
