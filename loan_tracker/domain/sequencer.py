"""Payment sequencer - ordering rules for marking installments paid/unpaid"""

from datetime import date
from typing import List, Optional, Sequence
from loan_tracker.domain.models import (
    Installment,
    InstallmentView,
    RejectionReason,
    TransitionDecision,
)
from loan_tracker.domain.exceptions import CorruptSequence


def validate_sequence(installments: Sequence[Installment]) -> None:
    """
    Check a freshly loaded snapshot before it reaches the sequencer.

    Installments must arrive ordered with sequence numbers exactly 1..N,
    no gaps and no duplicates.

    Raises:
        CorruptSequence: On the first position that breaks the run
    """
    for position, installment in enumerate(installments, start=1):
        if installment.sequence_number != position:
            raise CorruptSequence(
                f"Expected installment #{position}, found #{installment.sequence_number}"
            )


def _in_range(installments: Sequence[Installment], index: int) -> bool:
    return 0 <= index < len(installments)


def can_pay(installments: Sequence[Installment], index: int) -> bool:
    """Unpaid, and every earlier installment already paid (no skipping ahead)"""
    if not _in_range(installments, index):
        return False
    if installments[index].paid:
        return False
    return all(inst.paid for inst in installments[:index])


def can_unpay(installments: Sequence[Installment], index: int) -> bool:
    """Paid, and every later installment still unpaid (undo most recent only)"""
    if not _in_range(installments, index):
        return False
    if not installments[index].paid:
        return False
    return not any(inst.paid for inst in installments[index + 1:])


def evaluate_transition(
    installments: Sequence[Installment],
    index: int,
    new_paid: bool,
) -> TransitionDecision:
    """
    Decide whether setting installment `index` to `new_paid` is legal.

    Rules:
    - Requesting the current state is rejected, never silently accepted
    - Pay only in order, unpay only in reverse order; no override
    - Final payoff = paying the last installment with all others paid

    Returns:
        TransitionDecision (rejected with reason, or accepted with payoff flag)
    """
    if not _in_range(installments, index):
        return TransitionDecision.rejected(RejectionReason.NOT_FOUND)

    if installments[index].paid == new_paid:
        return TransitionDecision.rejected(RejectionReason.NO_OP)

    allowed = can_pay(installments, index) if new_paid else can_unpay(installments, index)
    if not allowed:
        return TransitionDecision.rejected(RejectionReason.OUT_OF_ORDER)

    # can_pay already guarantees every earlier installment is paid
    is_final_payoff = new_paid and index == len(installments) - 1
    return TransitionDecision.accept(is_final_payoff=is_final_payoff)


def index_of(installments: Sequence[Installment], installment_id) -> Optional[int]:
    """Position of an installment in the snapshot, or None"""
    for index, inst in enumerate(installments):
        if inst.id == installment_id:
            return index
    return None


def annotate(installments: Sequence[Installment], today: date) -> List[InstallmentView]:
    """Per-installment status and legal actions for rendering"""
    last_index = len(installments) - 1
    return [
        InstallmentView(
            installment=inst,
            status=inst.status(today),
            can_pay=can_pay(installments, index),
            can_unpay=can_unpay(installments, index),
            is_last=index == last_index,
        )
        for index, inst in enumerate(installments)
    ]


def celebration_for(decision: TransitionDecision, new_paid: bool) -> Optional[str]:
    """
    Celebration variant for an applied transition.

    "complete" for the final payoff, "payment" for any other pay,
    None for unpay or a rejected transition.
    """
    if not decision.accepted or not new_paid:
        return None
    return "complete" if decision.is_final_payoff else "payment"
