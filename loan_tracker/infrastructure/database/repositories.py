"""Data access layer for installments and session markers"""

import uuid
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from loan_tracker.infrastructure.database.models import LoanInstallment, SessionMarker
from loan_tracker.domain.models import Installment
from loan_tracker.domain.exceptions import (
    ConcurrentUpdateError,
    InstallmentNotFound,
    StoreUnavailable,
)
from loan_tracker.utils.date_utils import utc_now


def _to_domain(row: LoanInstallment) -> Installment:
    return Installment(
        id=row.id,
        sequence_number=row.installment_number,
        due_date=row.due_date,
        paid=row.paid,
        paid_at=row.paid_at,
    )


class InstallmentRepository:
    """Repository for loan installments"""

    def __init__(self, db: Session):
        self.db = db

    def list_ordered(self) -> List[Installment]:
        """
        Snapshot of all installments ascending by number.

        Raises:
            StoreUnavailable: On any database error
        """
        try:
            rows = (
                self.db.query(LoanInstallment)
                .order_by(LoanInstallment.installment_number.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to load installments: {e}") from e

        return [_to_domain(row) for row in rows]

    def set_paid(self, installment_id: uuid.UUID, paid: bool) -> Installment:
        """
        Flip an installment's paid state with compare-and-swap.

        The UPDATE only matches when the stored state is the opposite of
        `paid`, so two clients racing on the same installment cannot both win.
        paid_at is stamped on pay and cleared on unpay.

        Raises:
            InstallmentNotFound: No installment with this id
            ConcurrentUpdateError: Stored state already equals `paid`
            StoreUnavailable: On any database error
        """
        now = utc_now()
        try:
            matched = (
                self.db.query(LoanInstallment)
                .filter(LoanInstallment.id == installment_id, LoanInstallment.paid == (not paid))
                .update(
                    {
                        LoanInstallment.paid: paid,
                        LoanInstallment.paid_at: now if paid else None,
                        LoanInstallment.updated_at: now,
                    },
                    synchronize_session=False,
                )
            )
            row = self.db.get(LoanInstallment, installment_id)
            if row is not None:
                self.db.refresh(row)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to update installment {installment_id}: {e}") from e

        if row is None:
            raise InstallmentNotFound(f"Installment {installment_id} not found")
        if matched == 0:
            raise ConcurrentUpdateError(
                f"Installment #{row.installment_number} is already {'paid' if paid else 'unpaid'}"
            )

        return _to_domain(row)


class SqlSessionStore:
    """Session-scoped key-value store backed by the session_marker table"""

    def __init__(self, session_factory: sessionmaker, session_id: str):
        self.session_factory = session_factory
        self.session_id = session_id

    def get(self, key: str) -> Optional[str]:
        try:
            with self.session_factory() as db:
                marker = db.get(SessionMarker, (self.session_id, key))
                return marker.value if marker else None
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to read session marker: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self.session_factory() as db:
                db.merge(
                    SessionMarker(
                        session_id=self.session_id,
                        key=key,
                        value=value,
                        updated_at=utc_now(),
                    )
                )
                db.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to write session marker: {e}") from e
