"""Loan progress totals"""

from typing import Sequence
from loan_tracker.domain.models import Installment, LoanSummary


def summarize(
    installments: Sequence[Installment],
    principal_cents: int,
    interest_cents: int,
    installment_amount_cents: int,
) -> LoanSummary:
    """
    Aggregate repayment progress.

    Every installment carries the same fixed amount, so paid and remaining
    totals are counts times that amount.
    """
    total_count = len(installments)
    paid_count = sum(1 for inst in installments if inst.paid)
    progress = round(paid_count / total_count * 100, 1) if total_count else 0.0

    return LoanSummary(
        paid_count=paid_count,
        total_count=total_count,
        paid_cents=paid_count * installment_amount_cents,
        remaining_cents=(total_count - paid_count) * installment_amount_cents,
        principal_cents=principal_cents,
        interest_cents=interest_cents,
        total_cents=principal_cents + interest_cents,
        progress_percent=progress,
    )
