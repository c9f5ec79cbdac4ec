"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class InstallmentStatus(str, Enum):
    """Derived display status of an installment"""

    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


class RejectionReason(str, Enum):
    """Why the sequencer refused a transition"""

    NOT_FOUND = "not_found"  # empty list or position out of range
    NO_OP = "no_op"  # requested state equals current state
    OUT_OF_ORDER = "out_of_order"


@dataclass(frozen=True)
class Installment:
    """Single scheduled repayment of the loan"""

    id: uuid.UUID
    sequence_number: int
    due_date: date
    paid: bool
    paid_at: Optional[datetime] = None

    def status(self, today: date) -> InstallmentStatus:
        """paid, else overdue when due strictly before today, else pending"""
        if self.paid:
            return InstallmentStatus.PAID
        if self.due_date < today:
            return InstallmentStatus.OVERDUE
        return InstallmentStatus.PENDING


@dataclass(frozen=True)
class TransitionDecision:
    """Sequencer verdict for a requested pay/unpay"""

    accepted: bool
    is_final_payoff: bool = False
    reason: Optional[RejectionReason] = None

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "TransitionDecision":
        return cls(accepted=False, reason=reason)

    @classmethod
    def accept(cls, is_final_payoff: bool) -> "TransitionDecision":
        return cls(accepted=True, is_final_payoff=is_final_payoff)


@dataclass(frozen=True)
class InstallmentView:
    """Installment plus the flags a client needs to render it"""

    installment: Installment
    status: InstallmentStatus
    can_pay: bool
    can_unpay: bool
    is_last: bool


@dataclass(frozen=True)
class LoanSummary:
    """Repayment progress totals"""

    paid_count: int
    total_count: int
    paid_cents: int
    remaining_cents: int
    principal_cents: int
    interest_cents: int
    total_cents: int
    progress_percent: float
