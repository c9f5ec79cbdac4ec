"""/v1/session - PIN challenge for the current client session"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from loan_tracker.api.v1.schemas import KeypadRequest, PinEntryRequest, SessionStateResponse
from loan_tracker.api.dependencies import get_authenticator, get_request_id
from loan_tracker.domain.authenticator import AuthOutcome, PinAuthenticator
from loan_tracker.domain.exceptions import StoreUnavailable
from loan_tracker.infrastructure.observability.metrics import record_pin_attempt
from loan_tracker.infrastructure.observability.logging import log_pin_attempt

router = APIRouter()

# Outcomes that are not plain success map to distinct statuses so callers can
# tell a wrong PIN from an unreachable verifier.
_STATUS_BY_OUTCOME = {
    AuthOutcome.AUTHENTICATED: 200,
    AuthOutcome.INCOMPLETE: 200,
    AuthOutcome.REJECTED: 401,
    AuthOutcome.BUSY: 409,
    AuthOutcome.UNAVAILABLE: 503,
}


def _state(authenticator: PinAuthenticator, outcome: AuthOutcome | None = None) -> SessionStateResponse:
    return SessionStateResponse(
        outcome=outcome.value if outcome else None,
        authenticated=authenticator.authenticated,
        digits_entered=len(authenticator.candidate),
        error=authenticator.error,
        unavailable=authenticator.unavailable,
    )


def _resolve(
    outcome: AuthOutcome,
    authenticator: PinAuthenticator,
    request_id: str,
    response: Response,
) -> SessionStateResponse:
    if outcome is not AuthOutcome.INCOMPLETE:
        record_pin_attempt(outcome.value)
        log_pin_attempt(request_id, outcome.value)

    response.status_code = _STATUS_BY_OUTCOME[outcome]
    return _state(authenticator, outcome)


@router.get("/session", response_model=SessionStateResponse)
def begin_session(
    request: Request,
    authenticator: PinAuthenticator = Depends(get_authenticator),
):
    """
    Start (or resume) the client session.

    A session that already passed the PIN challenge is authenticated
    immediately, without another verification round-trip.
    """
    try:
        authenticator.begin_session()
    except StoreUnavailable as e:
        logging.error(f"Session store error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Session store unavailable")

    return _state(authenticator)


@router.post("/session/pin", response_model=SessionStateResponse)
async def enter_pin(
    body: PinEntryRequest,
    request: Request,
    response: Response,
    authenticator: PinAuthenticator = Depends(get_authenticator),
):
    """
    Replace the PIN candidate with normalized input.

    Non-digits are dropped and input is cut at six digits; a full candidate
    is submitted for verification right away.
    """
    request_id = get_request_id(request)
    try:
        outcome = await authenticator.enter(body.pin)
    except StoreUnavailable as e:
        logging.error(f"Session store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Session store unavailable")

    return _resolve(outcome, authenticator, request_id, response)


@router.post("/session/keypad", response_model=SessionStateResponse)
async def press_key(
    body: KeypadRequest,
    request: Request,
    response: Response,
    authenticator: PinAuthenticator = Depends(get_authenticator),
):
    """Apply one keypad press; the press that completes the PIN submits it"""
    request_id = get_request_id(request)
    try:
        outcome = await authenticator.press(body.key)
    except StoreUnavailable as e:
        logging.error(f"Session store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Session store unavailable")

    return _resolve(outcome, authenticator, request_id, response)
