"""Driver for Lamport mutual exclusion runs."""

import random
from asimpy import Environment
from typing import Optional

from event_log import EventLog
from message_bus import MessageBus
from mutex_process import MutexProcess
from mutex_types import MutexConfig, MutexResult
from shared_resource import SharedResource
from sim_errors import SimulationError


def run_mutex_simulation(
    config: MutexConfig, log: Optional[EventLog] = None
) -> MutexResult:
    """Run every process's plan to completion and report what happened."""
    config.validate()
    log = log if log is not None else EventLog(echo=False)

    env = Environment()
    bus = MessageBus(
        env, config.num_processes, config.latency, random.Random(config.seed)
    )
    resources = {name: SharedResource(env, name) for name in config.resources}

    processes = [
        MutexProcess(env, pid, bus, config.attempts_for(pid), resources, log)
        for pid in range(config.num_processes)
    ]

    env.run(until=config.horizon)

    unfinished = [p.pid for p in processes if not p.completed]
    if unfinished:
        raise SimulationError(
            f"processes {unfinished} did not finish by t={config.horizon}"
        )

    entries = sorted(
        (entry for resource in resources.values() for entry in resource.entries),
        key=lambda entry: entry.entered_at,
    )
    violations = [v for resource in resources.values() for v in resource.violations]
    return MutexResult(entries, violations, bus.messages_sent)
