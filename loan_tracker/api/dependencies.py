"""Dependency injection for FastAPI endpoints"""

import logging
import threading
from collections import OrderedDict
from typing import Callable
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import sessionmaker
from loan_tracker.config import settings
from loan_tracker.domain.authenticator import PinAuthenticator, PinVerifier
from loan_tracker.domain.exceptions import StoreUnavailable
from loan_tracker.infrastructure.clients.pin import build_pin_verifier
from loan_tracker.infrastructure.database.repositories import SqlSessionStore
from loan_tracker.infrastructure.database.session import get_session_factory


class AuthenticatorRegistry:
    """One PinAuthenticator per client session, least recently used evicted first"""

    def __init__(self, max_sessions: int = 1024):
        self.max_sessions = max_sessions
        self._authenticators: "OrderedDict[str, PinAuthenticator]" = OrderedDict()
        self._lock = threading.Lock()  # sync dependencies run in the threadpool

    def get_or_create(self, session_id: str, factory: Callable[[], PinAuthenticator]) -> PinAuthenticator:
        with self._lock:
            authenticator = self._authenticators.get(session_id)
            if authenticator is None:
                authenticator = factory()
                self._authenticators[session_id] = authenticator
                self._evict_idle(keep=session_id)
            else:
                self._authenticators.move_to_end(session_id)
            return authenticator

    def _evict_idle(self, keep: str) -> None:
        # A validating authenticator holds the session's only in-flight slot
        while len(self._authenticators) > self.max_sessions:
            idle = next(
                (
                    sid
                    for sid, auth in self._authenticators.items()
                    if sid != keep and not auth.validating
                ),
                None,
            )
            if idle is None:
                return
            del self._authenticators[idle]

    def __len__(self) -> int:
        return len(self._authenticators)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_session_id(request: Request) -> str:
    """Extract client session ID assigned by SessionCookieMiddleware"""
    return request.state.session_id


def get_pin_verifier() -> PinVerifier:
    """Provide PIN verification transport"""
    return build_pin_verifier()


def get_authenticator(
    request: Request,
    session_factory: sessionmaker = Depends(get_session_factory),
    verifier: PinVerifier = Depends(get_pin_verifier),
) -> PinAuthenticator:
    """Provide the PIN authenticator bound to this client session"""
    session_id = get_session_id(request)
    registry: AuthenticatorRegistry = request.app.state.authenticators
    return registry.get_or_create(
        session_id,
        lambda: PinAuthenticator(
            verifier=verifier,
            session_store=SqlSessionStore(session_factory, session_id),
            pin_length=settings.pin_length,
        ),
    )


def require_authenticated(
    request: Request,
    authenticator: PinAuthenticator = Depends(get_authenticator),
) -> None:
    """Reject requests from sessions that have not passed the PIN challenge"""
    try:
        authenticated = authenticator.begin_session()
    except StoreUnavailable as e:
        logging.error(f"Session store error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Session store unavailable")

    if not authenticated:
        raise HTTPException(status_code=401, detail="PIN required")
