"""Driver for oral-messages Byzantine agreement runs."""

import random
from asimpy import Environment
from typing import Dict, Optional

from byzantine_general import General
from byzantine_types import ByzantineConfig, ConsensusResult
from event_log import EventLog
from message_bus import MessageBus
from oral_messages import oral_messages
from sim_errors import SimulationError
from traitor_strategies import Honest, Strategy, make_strategy


def build_strategies(
    config: ByzantineConfig, rng: Optional[random.Random] = None
) -> Dict[int, Strategy]:
    """Strategy for every traitor named in the configuration."""
    rng = rng or random.Random(config.seed)
    return {
        general: make_strategy(name, rng)
        for general, name in sorted(config.traitors.items())
    }


def run_byzantine_simulation(
    config: ByzantineConfig, log: Optional[EventLog] = None
) -> ConsensusResult:
    """Run OM(f) between general processes and collect the loyal decisions."""
    config.validate()
    log = log if log is not None else EventLog(echo=False)

    rng = random.Random(config.seed)
    env = Environment()
    bus = MessageBus(env, config.num_generals, config.latency, rng)
    strategies = build_strategies(config, rng)

    generals = [
        General(
            env,
            general_id,
            bus,
            config.commander,
            config.rounds,
            config.round_duration,
            strategies.get(general_id, Honest()),
            log,
            order=config.order if general_id == config.commander else None,
        )
        for general_id in range(config.num_generals)
    ]

    env.run(until=(config.rounds + 1) * config.round_duration)

    unfinished = [g.general_id for g in generals if not g.has_decided]
    if unfinished:
        raise SimulationError(f"generals {unfinished} never decided")

    lieutenants = [g for g in generals if not g.is_commander]
    return ConsensusResult(
        commander=config.commander,
        order=config.order,
        traitors=dict(config.traitors),
        decisions={
            g.general_id: g.decision
            for g in lieutenants
            if g.general_id not in config.traitors
        },
        received={g.general_id: g.direct_order for g in lieutenants},
    )


def solve_byzantine(config: ByzantineConfig) -> ConsensusResult:
    """Compute the same outcome with the recursive OM(f), without processes."""
    config.validate()
    strategies = build_strategies(config)
    lieutenants = config.lieutenants

    decisions = oral_messages(
        config.commander,
        lieutenants,
        config.order,
        config.num_traitors,
        strategies,
    )
    # Rebuilt so seeded random traitors repeat the commander's first sends
    received = oral_messages(
        config.commander, lieutenants, config.order, 0, build_strategies(config)
    )

    return ConsensusResult(
        commander=config.commander,
        order=config.order,
        traitors=dict(config.traitors),
        decisions={
            g: d for g, d in decisions.items() if g not in config.traitors
        },
        received=received,
    )
