"""SQLAlchemy ORM models for loan installments and session markers"""

import uuid
from sqlalchemy import Column, Boolean, DateTime, Date, Integer, Text, Uuid, PrimaryKeyConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class LoanInstallment(Base):
    """One scheduled repayment of the loan"""

    __tablename__ = "loan_installment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    installment_number = Column(Integer, nullable=False, unique=True)
    due_date = Column(Date, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SessionMarker(Base):
    """Key-value marker scoped to a client session cookie"""

    __tablename__ = "session_marker"
    __table_args__ = (PrimaryKeyConstraint("session_id", "key"),)

    session_id = Column(Text, nullable=False)
    key = Column(Text, nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
