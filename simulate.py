"""Command-line entry point for both simulations."""

import argparse
import sys
from typing import Dict, List, Optional

from byzantine_simulation import run_byzantine_simulation
from byzantine_types import ByzantineConfig, Order
from event_log import EventLog
from mutex_simulation import run_mutex_simulation
from mutex_types import MutexConfig
from sim_errors import ConfigurationError


def parse_traitors(specs: List[str]) -> Dict[int, str]:
    """Turn ["2:flip", "3"] into {2: "flip", 3: "flip"}."""
    traitors = {}
    for spec in specs:
        general, _, strategy = spec.partition(":")
        try:
            traitors[int(general)] = strategy or "flip"
        except ValueError:
            raise ConfigurationError(
                f"bad traitor {spec!r}, expected ID[:STRATEGY]"
            ) from None
    return traitors


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Simulate Lamport mutual exclusion or Byzantine agreement."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    mutex = commands.add_parser("mutex", help="Lamport mutual exclusion")
    mutex.add_argument("--processes", type=int, default=4)
    mutex.add_argument("--resources", nargs="+", default=["A", "B"])
    mutex.add_argument("--repeats", type=int, default=1)
    mutex.add_argument("--hold", type=float, default=0.5, help="Time in critical section")
    mutex.add_argument("--stagger", type=float, default=0.1)
    mutex.add_argument("--seed", type=int, default=None)
    mutex.add_argument("--log", default=None, help="Append events to this file")

    byzantine = commands.add_parser("byzantine", help="oral-messages agreement")
    byzantine.add_argument("--generals", type=int, default=4)
    byzantine.add_argument("--traitors", type=int, default=1, help="Traitors tolerated (f)")
    byzantine.add_argument("--commander", type=int, default=0)
    byzantine.add_argument(
        "--order", choices=["attack", "retreat"], default="attack"
    )
    byzantine.add_argument(
        "--traitor",
        action="append",
        default=[],
        metavar="ID[:STRATEGY]",
        help="Make a general a traitor (strategies: flip, split, silent, random)",
    )
    byzantine.add_argument("--seed", type=int, default=None)
    byzantine.add_argument("--log", default=None, help="Append events to this file")

    return parser


def run_mutex(args: argparse.Namespace) -> None:
    config = MutexConfig(
        num_processes=args.processes,
        resources=tuple(args.resources),
        repeats=args.repeats,
        hold_time=args.hold,
        stagger=args.stagger,
        seed=args.seed,
    )
    result = run_mutex_simulation(config, EventLog(echo=True, path=args.log))

    print("\n=== Critical Sections ===")
    for entry in result.entries:
        print(f"  {entry}")
    print(f"Messages sent: {result.messages_sent}")
    print(f"Mutual exclusion held: {result.is_exclusive()}")
    print(f"Granted in request order: {result.follows_request_order()}")


def run_byzantine(args: argparse.Namespace) -> None:
    config = ByzantineConfig(
        num_generals=args.generals,
        num_traitors=args.traitors,
        commander=args.commander,
        order=Order[args.order.upper()],
        traitors=parse_traitors(args.traitor),
        seed=args.seed,
    )
    result = run_byzantine_simulation(config, EventLog(echo=True, path=args.log))

    print("\n=== Decisions ===")
    for general, decision in sorted(result.decisions.items()):
        print(f"  G{general}: {decision.value}")
    print(f"Agreement: {result.agreement()}")
    print(f"Validity: {result.validity()}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "mutex":
            run_mutex(args)
        else:
            run_byzantine(args)
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
