"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Literal, Optional


class PinEntryRequest(BaseModel):
    """Request body for POST /v1/session/pin"""

    pin: str = Field(..., description="Raw PIN input; non-digits are dropped, cut at six digits")


class KeypadRequest(BaseModel):
    """Request body for POST /v1/session/keypad"""

    key: str = Field(..., pattern=r"^([0-9]|delete)$", description="A digit or 'delete'")


class SessionStateResponse(BaseModel):
    """PIN challenge state for the current client session"""

    outcome: Optional[str] = None
    authenticated: bool
    digits_entered: int
    error: bool
    unavailable: bool


class InstallmentSchema(BaseModel):
    """Single installment with derived status and legal actions"""

    id: str
    installment_number: int
    due_date: date
    amount_cents: int
    paid: bool
    paid_at: Optional[datetime] = None
    status: Literal["paid", "pending", "overdue"]
    can_pay: bool
    can_unpay: bool
    is_last: bool


class LoanSummarySchema(BaseModel):
    """Repayment progress totals"""

    paid_count: int
    total_count: int
    paid_cents: int
    remaining_cents: int
    principal_cents: int
    interest_cents: int
    total_cents: int
    progress_percent: float


class InstallmentListResponse(BaseModel):
    """Response for GET /v1/installments"""

    currency: str
    summary: LoanSummarySchema
    installments: List[InstallmentSchema]


class SetPaidRequest(BaseModel):
    """Request body for PUT /v1/installments/{id}/paid"""

    paid: bool


class SetPaidResponse(BaseModel):
    """Response for PUT /v1/installments/{id}/paid"""

    installment: InstallmentSchema
    is_final_payoff: bool
    celebration: Optional[Literal["payment", "complete"]] = None
