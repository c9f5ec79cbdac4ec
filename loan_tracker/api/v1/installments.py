"""/v1/installments - repayment schedule and sequenced pay/unpay"""

import uuid
from dataclasses import asdict
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from loan_tracker.api.v1.schemas import (
    InstallmentListResponse,
    InstallmentSchema,
    LoanSummarySchema,
    SetPaidRequest,
    SetPaidResponse,
)
from loan_tracker.api.dependencies import get_request_id, require_authenticated
from loan_tracker.config import settings
from loan_tracker.infrastructure.database.session import get_db
from loan_tracker.infrastructure.database.repositories import InstallmentRepository
from loan_tracker.domain.models import Installment, InstallmentView
from loan_tracker.domain.sequencer import (
    annotate,
    celebration_for,
    evaluate_transition,
    index_of,
    validate_sequence,
)
from loan_tracker.domain.summary import summarize
from loan_tracker.domain.exceptions import (
    ConcurrentUpdateError,
    CorruptSequence,
    InstallmentNotFound,
    InvalidTransition,
    StoreUnavailable,
)
from loan_tracker.infrastructure.observability.metrics import record_transition, store_failure_counter
from loan_tracker.infrastructure.observability.logging import log_transition
from loan_tracker.utils.date_utils import today_in

router = APIRouter(dependencies=[Depends(require_authenticated)])


def _to_schema(view: InstallmentView) -> InstallmentSchema:
    inst = view.installment
    return InstallmentSchema(
        id=str(inst.id),
        installment_number=inst.sequence_number,
        due_date=inst.due_date,
        amount_cents=settings.installment_amount_cents,
        paid=inst.paid,
        paid_at=inst.paid_at,
        status=view.status.value,
        can_pay=view.can_pay,
        can_unpay=view.can_unpay,
        is_last=view.is_last,
    )


def _load_snapshot(repo: InstallmentRepository) -> List[Installment]:
    """Read the ordered list and refuse to reason about a broken sequence"""
    installments = repo.list_ordered()
    validate_sequence(installments)
    return installments


@router.get("/installments", response_model=InstallmentListResponse)
def list_installments(request: Request, db: Session = Depends(get_db)):
    """
    Retrieve the repayment schedule.

    Returns:
        Installments with status and legal actions, plus loan progress totals
    """
    request_id = get_request_id(request)

    try:
        installments = _load_snapshot(InstallmentRepository(db))
    except StoreUnavailable as e:
        store_failure_counter.labels(operation="list").inc()
        logging.error(f"Installment store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Installment store unavailable")
    except CorruptSequence as e:
        logging.error(f"Corrupt installment sequence: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Installment sequence is corrupt")

    views = annotate(installments, today_in(settings.loan_timezone))
    summary = summarize(
        installments,
        principal_cents=settings.loan_principal_cents,
        interest_cents=settings.loan_interest_cents,
        installment_amount_cents=settings.installment_amount_cents,
    )

    return InstallmentListResponse(
        currency=settings.currency,
        summary=LoanSummarySchema(**asdict(summary)),
        installments=[_to_schema(view) for view in views],
    )


@router.put("/installments/{installment_id}/paid", response_model=SetPaidResponse)
def set_installment_paid(
    installment_id: str,
    body: SetPaidRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Mark an installment paid or unpaid, in order.

    Flow:
    1. Load the current ordered snapshot
    2. Ask the sequencer whether the transition is legal
    3. Persist with compare-and-swap on the paid flag
    4. Report whether this paid off the loan and which celebration to show
    """
    request_id = get_request_id(request)

    try:
        installment_uuid = uuid.UUID(installment_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid installment ID format")

    repo = InstallmentRepository(db)

    try:
        # 1. Snapshot
        installments = _load_snapshot(repo)

        index = index_of(installments, installment_uuid)
        if index is None:
            raise InstallmentNotFound(f"Installment {installment_id} not found")

        # 2. Sequencer verdict
        decision = evaluate_transition(installments, index, body.paid)
        if not decision.accepted:
            record_transition(body.paid, decision.reason.value)
            raise InvalidTransition(
                f"Installment #{installments[index].sequence_number} cannot be "
                f"{'paid' if body.paid else 'unpaid'} now",
                reason=decision.reason.value,
            )

        # 3. Persist
        updated = repo.set_paid(installment_uuid, body.paid)
        db.commit()

    except InstallmentNotFound as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except ConcurrentUpdateError as e:
        db.rollback()
        record_transition(body.paid, "conflict")
        logging.warning(f"Concurrent update: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail={"reason": e.reason, "message": str(e)})

    except InvalidTransition as e:
        db.rollback()
        raise HTTPException(status_code=409, detail={"reason": e.reason, "message": str(e)})

    except StoreUnavailable as e:
        db.rollback()
        store_failure_counter.labels(operation="set_paid").inc()
        logging.error(f"Installment store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Installment store unavailable, try again")

    except CorruptSequence as e:
        db.rollback()
        logging.error(f"Corrupt installment sequence: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Installment sequence is corrupt")

    except SQLAlchemyError as e:
        db.rollback()
        store_failure_counter.labels(operation="set_paid").inc()
        logging.error(f"Commit failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Installment store unavailable, try again")

    # 4. Report
    record_transition(body.paid, "accepted", decision.is_final_payoff)
    log_transition(request_id, updated.sequence_number, body.paid, decision.is_final_payoff)

    snapshot = [updated if i == index else inst for i, inst in enumerate(installments)]
    view = annotate(snapshot, today_in(settings.loan_timezone))[index]

    return SetPaidResponse(
        installment=_to_schema(view),
        is_final_payoff=decision.is_final_payoff,
        celebration=celebration_for(decision, body.paid),
    )
