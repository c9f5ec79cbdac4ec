"""Unit tests for the payment sequencer"""

import uuid
import itertools
import pytest
from datetime import date, datetime, timedelta, timezone
from typing import List
from loan_tracker.domain.models import Installment, InstallmentStatus, RejectionReason, TransitionDecision
from loan_tracker.domain.exceptions import CorruptSequence
from loan_tracker.domain.sequencer import (
    annotate,
    can_pay,
    can_unpay,
    celebration_for,
    evaluate_transition,
    index_of,
    validate_sequence,
)

TODAY = date(2026, 3, 15)


def make_installments(paid_flags: List[bool], first_due: date = date(2026, 1, 10)) -> List[Installment]:
    """Installments numbered 1..N, one month apart"""
    return [
        Installment(
            id=uuid.uuid4(),
            sequence_number=i + 1,
            due_date=first_due + timedelta(days=30 * i),
            paid=paid,
            paid_at=datetime(2026, 1, 1, tzinfo=timezone.utc) if paid else None,
        )
        for i, paid in enumerate(paid_flags)
    ]


def paid_through(count: int, total: int = 10) -> List[Installment]:
    return make_installments([i < count for i in range(total)])


def test_scenario_all_unpaid():
    """Only the first installment can be paid when nothing is paid"""
    installments = paid_through(0)

    assert can_pay(installments, 0) is True
    assert can_pay(installments, 5) is False
    assert not any(can_unpay(installments, i) for i in range(10))


def test_scenario_first_paid():
    """After paying #1: undo #1 or pay #2, nothing else"""
    installments = paid_through(1)

    assert can_unpay(installments, 0) is True
    assert can_pay(installments, 1) is True
    assert can_pay(installments, 2) is False


def test_scenario_final_payoff():
    """Paying #10 with #1-#9 paid completes the loan"""
    installments = paid_through(9)

    decision = evaluate_transition(installments, 9, True)

    assert decision == TransitionDecision(accepted=True, is_final_payoff=True)


def test_paying_middle_installment_is_not_final():
    decision = evaluate_transition(paid_through(4), 4, True)

    assert decision.accepted is True
    assert decision.is_final_payoff is False


def test_skipping_ahead_is_rejected():
    decision = evaluate_transition(paid_through(2), 5, True)

    assert decision.accepted is False
    assert decision.reason is RejectionReason.OUT_OF_ORDER


def test_unpay_only_most_recent():
    installments = paid_through(3)

    assert evaluate_transition(installments, 2, False).accepted is True
    assert evaluate_transition(installments, 1, False).reason is RejectionReason.OUT_OF_ORDER
    assert evaluate_transition(installments, 0, False).reason is RejectionReason.OUT_OF_ORDER


def test_unpay_is_never_final_payoff():
    decision = evaluate_transition(paid_through(10), 9, False)

    assert decision.accepted is True
    assert decision.is_final_payoff is False


def test_marking_paid_future_installment_paid_again_is_rejected():
    """Corrupt data (a paid installment after a gap) has no override path"""
    installments = make_installments([True, False, True])

    assert evaluate_transition(installments, 2, True).reason is RejectionReason.NO_OP
    assert evaluate_transition(installments, 2, False).accepted is True
    assert evaluate_transition(installments, 1, True).accepted is True
    assert evaluate_transition(installments, 0, False).reason is RejectionReason.OUT_OF_ORDER


@pytest.mark.parametrize("count", [0, 1, 5, 10])
def test_requesting_current_state_is_rejected(count: int):
    installments = paid_through(count)

    for index, inst in enumerate(installments):
        decision = evaluate_transition(installments, index, inst.paid)
        assert decision.accepted is False
        assert decision.reason is RejectionReason.NO_OP


def test_empty_list_rejects_everything():
    assert can_pay([], 0) is False
    assert can_unpay([], 0) is False
    assert evaluate_transition([], 0, True).reason is RejectionReason.NOT_FOUND


@pytest.mark.parametrize("index", [-1, 10, 42])
def test_out_of_range_index_rejected(index: int):
    installments = paid_through(3)

    assert can_pay(installments, index) is False
    assert can_unpay(installments, index) is False
    assert evaluate_transition(installments, index, True).reason is RejectionReason.NOT_FOUND


def test_single_installment_is_first_and_last():
    installments = make_installments([False])

    assert can_pay(installments, 0) is True
    assert evaluate_transition(installments, 0, True).is_final_payoff is True


def test_can_pay_and_can_unpay_match_definition_for_all_states():
    """Check every paid pattern of a 5-installment list against the ordering rule"""
    n = 5
    for flags in itertools.product([False, True], repeat=n):
        installments = make_installments(list(flags))
        for i in range(n):
            expected_pay = all(flags[:i]) and not flags[i]
            expected_unpay = not any(flags[i + 1:]) and flags[i]
            assert can_pay(installments, i) is expected_pay, (flags, i)
            assert can_unpay(installments, i) is expected_unpay, (flags, i)


def test_exactly_one_reachable_final_payoff():
    """Over every state reachable by legal moves, only paying #N with #1..#N-1 paid is a payoff"""
    n = 10
    payoffs = []
    for paid_count in range(n + 1):
        installments = paid_through(paid_count, n)
        for index in range(n):
            for new_paid in (True, False):
                decision = evaluate_transition(installments, index, new_paid)
                if decision.accepted and decision.is_final_payoff:
                    payoffs.append((paid_count, index, new_paid))

    assert payoffs == [(n - 1, n - 1, True)]


def test_evaluate_transition_is_pure():
    installments = paid_through(4)
    before = list(installments)

    first = evaluate_transition(installments, 4, True)
    second = evaluate_transition(installments, 4, True)

    assert first == second
    assert installments == before


def test_validate_sequence_accepts_contiguous_run():
    validate_sequence(paid_through(0))
    validate_sequence([])


@pytest.mark.parametrize(
    "numbers",
    [
        [1, 2, 4],  # gap
        [1, 2, 2, 3],  # duplicate
        [2, 3, 4],  # wrong start
        [2, 1, 3],  # unordered
    ],
)
def test_validate_sequence_rejects_corrupt_numbers(numbers: List[int]):
    installments = [
        Installment(id=uuid.uuid4(), sequence_number=n, due_date=TODAY, paid=False) for n in numbers
    ]

    with pytest.raises(CorruptSequence):
        validate_sequence(installments)


def test_index_of():
    installments = paid_through(0, 3)

    assert index_of(installments, installments[2].id) == 2
    assert index_of(installments, uuid.uuid4()) is None


def test_annotate_flags_and_status():
    # Due dates Jan 10, Feb 9, Mar 11, Apr 10; today Mar 15
    installments = make_installments([True, False, False, False])

    views = annotate(installments, TODAY)

    assert [v.status for v in views] == [
        InstallmentStatus.PAID,
        InstallmentStatus.OVERDUE,
        InstallmentStatus.OVERDUE,
        InstallmentStatus.PENDING,
    ]
    assert [v.can_pay for v in views] == [False, True, False, False]
    assert [v.can_unpay for v in views] == [True, False, False, False]
    assert [v.is_last for v in views] == [False, False, False, True]


def test_status_due_today_is_pending():
    inst = Installment(id=uuid.uuid4(), sequence_number=1, due_date=TODAY, paid=False)

    assert inst.status(TODAY) is InstallmentStatus.PENDING
    assert inst.status(TODAY + timedelta(days=1)) is InstallmentStatus.OVERDUE


def test_celebration_variants():
    assert celebration_for(TransitionDecision.accept(is_final_payoff=True), True) == "complete"
    assert celebration_for(TransitionDecision.accept(is_final_payoff=False), True) == "payment"
    assert celebration_for(TransitionDecision.accept(is_final_payoff=False), False) is None
    assert celebration_for(TransitionDecision.rejected(RejectionReason.NO_OP), True) is None
