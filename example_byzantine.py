# example_byzantine.py
"""Loyal and traitorous commanders in the oral messages algorithm."""

from byzantine_simulation import run_byzantine_simulation
from byzantine_types import ByzantineConfig, Order
from event_log import EventLog


def run_byzantine_example():
    """Run OM(1) with four generals, first with a traitor lieutenant, then a traitor commander."""
    log = EventLog(echo=True, path="byzantine.log")

    print("Scenario 1: loyal commander, general 2 flips every order")
    loyal = run_byzantine_simulation(
        ByzantineConfig(num_generals=4, num_traitors=1, traitors={2: "flip"}), log
    )
    print(f"Decisions: { {g: d.value for g, d in loyal.decisions.items()} }")

    print("\nScenario 2: commander tells each lieutenant something different")
    split = run_byzantine_simulation(
        ByzantineConfig(
            num_generals=4, num_traitors=1, order=Order.ATTACK, traitors={0: "split"}
        ),
        log,
    )
    print(f"Decisions: { {g: d.value for g, d in split.decisions.items()} }")
    print(f"Agreement: {split.agreement()}")


if __name__ == "__main__":
    run_byzantine_example()
