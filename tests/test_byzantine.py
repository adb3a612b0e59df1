from itertools import combinations, product

import pytest

from byzantine_simulation import run_byzantine_simulation, solve_byzantine
from byzantine_types import ByzantineConfig, Order
from event_log import ConsensusEvent, EventLog, Role
from sim_errors import ConfigurationError

ATTACK, RETREAT = Order.ATTACK, Order.RETREAT
DETERMINISTIC = ["flip", "split", "silent"]


def test_loyal_commander_four_generals_one_traitor():
    config = ByzantineConfig(num_generals=4, num_traitors=1, traitors={2: "flip"})
    result = run_byzantine_simulation(config)

    assert result.decisions == {1: ATTACK, 3: ATTACK}
    assert result.agreement()
    assert result.validity()
    assert result.decided_value() is ATTACK


def test_no_traitors_everyone_obeys():
    config = ByzantineConfig(num_generals=4, num_traitors=1, order=RETREAT)
    result = run_byzantine_simulation(config)
    assert result.decisions == {1: RETREAT, 2: RETREAT, 3: RETREAT}


@pytest.mark.parametrize("traitor", range(4))
@pytest.mark.parametrize("strategy", DETERMINISTIC + ["random"])
def test_any_single_traitor_among_four(traitor, strategy):
    config = ByzantineConfig(
        num_generals=4, num_traitors=1, traitors={traitor: strategy}, seed=traitor
    )
    result = run_byzantine_simulation(config)

    assert len(result.decisions) == (3 if traitor == 0 else 2)
    assert result.agreement()
    assert result.validity()


@pytest.mark.parametrize("traitors", list(combinations(range(7), 2)))
@pytest.mark.parametrize("strategies", list(product(["flip", "split"], ["silent", "random"])))
def test_two_traitors_among_seven(traitors, strategies):
    config = ByzantineConfig(
        num_generals=7,
        num_traitors=2,
        traitors=dict(zip(traitors, strategies)),
        seed=sum(traitors),
    )
    result = run_byzantine_simulation(config)

    assert result.agreement()
    assert result.validity()


@pytest.mark.parametrize("traitors", [{0: "split"}, {3: "flip"}, {0: "silent"}, {1: "split"}])
def test_processes_agree_with_recursive_solution(traitors):
    config = ByzantineConfig(num_generals=4, num_traitors=1, traitors=traitors)
    assert (
        run_byzantine_simulation(config).decisions
        == solve_byzantine(config).decisions
    )


def test_processes_agree_with_recursive_solution_two_levels():
    config = ByzantineConfig(
        num_generals=7, num_traitors=2, traitors={0: "split", 4: "flip"}
    )
    simulated = run_byzantine_simulation(config)
    solved = solve_byzantine(config)
    assert simulated.decisions == solved.decisions
    assert simulated.received == solved.received


def test_split_commander_tie_breaks_to_retreat():
    config = ByzantineConfig(
        num_generals=5, num_traitors=1, order=ATTACK, traitors={0: "split"}
    )
    for seed in range(3):
        config.seed = seed
        result = run_byzantine_simulation(config)
        assert result.received == {1: RETREAT, 2: ATTACK, 3: RETREAT, 4: ATTACK}
        assert result.decisions == {1: RETREAT, 2: RETREAT, 3: RETREAT, 4: RETREAT}


def test_silent_commander_leaves_default():
    config = ByzantineConfig(num_generals=4, num_traitors=1, traitors={0: "silent"})
    result = run_byzantine_simulation(config)
    assert set(result.received.values()) == {RETREAT}
    assert result.decided_value() is RETREAT


def test_without_traitor_tolerance_direct_order_is_final():
    config = ByzantineConfig(num_generals=3, num_traitors=0, commander=1)
    result = run_byzantine_simulation(config)
    assert result.decisions == {0: ATTACK, 2: ATTACK}


def test_lone_commander_decides_nothing():
    config = ByzantineConfig(num_generals=1, num_traitors=0)
    assert run_byzantine_simulation(config).decisions == {}


def test_too_many_actual_traitors_is_not_rejected():
    config = ByzantineConfig(
        num_generals=4, num_traitors=1, traitors={1: "flip", 2: "flip"}
    )
    result = run_byzantine_simulation(config)
    assert set(result.decisions) == {3}


def test_each_general_logs_once():
    log = EventLog(echo=False)
    config = ByzantineConfig(num_generals=4, num_traitors=1, traitors={3: "flip"})
    run_byzantine_simulation(config, log)

    assert len(log) == 4
    assert all(isinstance(e, ConsensusEvent) for e in log.events)
    commander = log.for_process(0)[0]
    assert commander.role is Role.COMMANDER
    assert commander.received == "ATTACK"
    lieutenant = log.for_process(1)[0]
    assert lieutenant.role is Role.LIEUTENANT
    assert lieutenant.decision == "ATTACK"
    assert lieutenant.time == pytest.approx(2 * config.round_duration)


@pytest.mark.parametrize(
    "changes",
    [
        {"num_generals": 0},
        {"num_generals": 3, "num_traitors": 1},
        {"num_traitors": -1},
        {"commander": 4},
        {"traitors": {9: "flip"}},
        {"traitors": {1: "bogus"}},
        {"latency": (0.0, 1.0)},
        {"latency": (0.3, 0.1)},
        {"order": "attack"},
    ],
)
def test_invalid_configuration_is_rejected(changes):
    with pytest.raises(ConfigurationError):
        run_byzantine_simulation(ByzantineConfig(**changes))
