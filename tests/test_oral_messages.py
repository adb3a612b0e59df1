from itertools import combinations

import pytest

from byzantine_types import Order
from oral_messages import majority, oral_messages, resolve
from traitor_strategies import Flip, Silent, SplitVote

ATTACK, RETREAT = Order.ATTACK, Order.RETREAT


def test_majority_picks_strict_majority():
    assert majority([ATTACK, ATTACK, RETREAT]) is ATTACK
    assert majority([RETREAT, ATTACK, RETREAT]) is RETREAT


def test_majority_tie_falls_back_to_default():
    assert majority([ATTACK, RETREAT]) is RETREAT
    assert majority([ATTACK, ATTACK, RETREAT, RETREAT], default=ATTACK) is ATTACK


def test_majority_of_nothing_is_default():
    assert majority([]) is RETREAT


def test_om0_uses_direct_values():
    decisions = oral_messages(0, [1, 2, 3], ATTACK, 0, {0: SplitVote()})
    assert decisions == {1: RETREAT, 2: ATTACK, 3: RETREAT}


def test_loyal_commander_with_traitor_lieutenant():
    decisions = oral_messages(0, [1, 2, 3], ATTACK, 1, {3: Flip()})
    assert decisions[1] is ATTACK
    assert decisions[2] is ATTACK


def test_silent_commander_defaults_to_retreat():
    decisions = oral_messages(0, [1, 2, 3], ATTACK, 1, {0: Silent()})
    assert set(decisions.values()) == {RETREAT}


def test_split_vote_tie_decides_default_reproducibly():
    # Lieutenants 2 and 4 hear ATTACK, 1 and 3 hear RETREAT: every vote is 2-2
    for _ in range(3):
        decisions = oral_messages(0, [1, 2, 3, 4], ATTACK, 1, {0: SplitVote()})
        assert decisions == {1: RETREAT, 2: RETREAT, 3: RETREAT, 4: RETREAT}


@pytest.mark.parametrize("strategy", [Flip(), SplitVote(), Silent()])
@pytest.mark.parametrize("order", [ATTACK, RETREAT])
def test_agreement_and_validity_seven_generals_two_traitors(strategy, order):
    generals = range(7)
    for traitors in combinations(generals, 2):
        strategies = {t: strategy for t in traitors}
        decisions = oral_messages(0, [1, 2, 3, 4, 5, 6], order, 2, strategies)
        loyal = {g: d for g, d in decisions.items() if g not in traitors}

        assert len(set(loyal.values())) == 1
        if 0 not in traitors:
            assert set(loyal.values()) == {order}


def test_resolve_matches_om1_by_hand():
    # Lieutenant 1 heard ATTACK directly; 2 relayed ATTACK, 3 relayed RETREAT
    received = {(0,): ATTACK, (0, 2): ATTACK, (0, 3): RETREAT}
    assert resolve(received, (0,), 1, [0, 1, 2, 3], depth=2) is ATTACK


def test_resolve_counts_missing_orders_as_default():
    received = {(0,): ATTACK}
    assert resolve(received, (0,), 1, [0, 1, 2, 3], depth=2) is RETREAT
