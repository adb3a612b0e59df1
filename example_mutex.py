# example_mutex.py
"""Four processes taking turns on two resources with Lamport's algorithm."""

from event_log import EventLog
from mutex_simulation import run_mutex_simulation
from mutex_types import MutexConfig


def run_mutex_example():
    """Every process locks A, then B, with overlapping requests."""
    config = MutexConfig(num_processes=4, resources=("A", "B"), seed=7)
    result = run_mutex_simulation(config, EventLog(echo=True, path="lamport.log"))

    print("\n=== Statistics ===")
    for resource in config.resources:
        order = ", ".join(f"P{e.process}" for e in result.entries_for(resource))
        print(f"{resource} granted to: {order}")
    print(f"Messages sent: {result.messages_sent}")
    print(f"Violations: {len(result.violations)}")


if __name__ == "__main__":
    run_mutex_example()
