"""PIN challenge/response for gating a client session"""

import re
from enum import Enum
from typing import Optional, Protocol
from loan_tracker.domain.exceptions import PinVerificationUnavailable, StoreUnavailable

AUTH_MARKER_KEY = "authenticated"
DELETE_KEY = "delete"

_NON_DIGITS = re.compile(r"\D")


class PinVerifier(Protocol):
    """Transport that checks a candidate PIN against the configured secret"""

    async def verify(self, code: str) -> bool:  # pragma: no cover - interface
        ...


class SessionStore(Protocol):
    """Key-value storage scoped to one client session"""

    def get(self, key: str) -> Optional[str]:  # pragma: no cover - interface
        ...

    def set(self, key: str, value: str) -> None:  # pragma: no cover - interface
        ...


class AuthOutcome(str, Enum):
    """Result of a single entry or submission"""

    AUTHENTICATED = "authenticated"
    INCOMPLETE = "incomplete"  # fewer digits than required, nothing submitted
    REJECTED = "rejected"  # wrong PIN
    UNAVAILABLE = "unavailable"  # verification did not complete
    BUSY = "busy"  # another submission in flight, not dispatched


def normalize_pin(raw: str, length: int = 6) -> str:
    """Drop non-digits and truncate: "12a3456789" -> "123456" """
    return _NON_DIGITS.sub("", raw or "")[:length]


class PinAuthenticator:
    """
    Session PIN gate with a single in-flight submission slot.

    State machine:
    - Unauthenticated --(verdict true)--> Authenticated (terminal)
    - Unauthenticated --(verdict false)--> Unauthenticated, error set, candidate cleared
    - Unauthenticated --(transport or marker write failure)--> Unauthenticated,
      unavailable set, candidate cleared

    The secret lives behind the injected verifier and the "authenticated"
    marker behind the injected session store.
    """

    def __init__(self, verifier: PinVerifier, session_store: SessionStore, pin_length: int = 6):
        self.verifier = verifier
        self.session_store = session_store
        self.pin_length = pin_length

        self.authenticated = False
        self.candidate = ""
        self.error = False
        self.unavailable = False
        self._in_flight = False

    @property
    def validating(self) -> bool:
        return self._in_flight

    def begin_session(self) -> bool:
        """Fast-path: trust a stored marker without a verification round-trip"""
        if not self.authenticated and self.session_store.get(AUTH_MARKER_KEY) == "true":
            self.authenticated = True
        return self.authenticated

    async def enter(self, raw: str) -> AuthOutcome:
        """Replace the candidate with normalized input, auto-submitting when full"""
        if self.authenticated:
            return AuthOutcome.AUTHENTICATED
        if self._in_flight:
            return AuthOutcome.BUSY

        self.candidate = normalize_pin(raw, self.pin_length)
        self.error = False
        self.unavailable = False
        return await self._submit_if_full()

    async def press(self, key: str) -> AuthOutcome:
        """
        Apply one keypad press: a digit or DELETE_KEY.

        Digits beyond the PIN length are ignored; the press that fills the
        candidate submits it.
        """
        if self.authenticated:
            return AuthOutcome.AUTHENTICATED
        if self._in_flight:
            return AuthOutcome.BUSY

        if key == DELETE_KEY:
            self.candidate = self.candidate[:-1]
        elif len(key) == 1 and key.isdigit() and len(self.candidate) < self.pin_length:
            self.candidate += key
        else:
            return AuthOutcome.INCOMPLETE

        self.error = False
        self.unavailable = False
        return await self._submit_if_full()

    async def _submit_if_full(self) -> AuthOutcome:
        if len(self.candidate) < self.pin_length:
            return AuthOutcome.INCOMPLETE
        return await self.submit(self.candidate)

    async def submit(self, code: str) -> AuthOutcome:
        """
        Verify a code; resolves exactly once per call.

        A call made while another is awaiting its verdict is not dispatched
        and resolves immediately as BUSY.
        """
        if self.authenticated:
            return AuthOutcome.AUTHENTICATED
        if self._in_flight:
            return AuthOutcome.BUSY

        self._in_flight = True
        try:
            verdict = await self.verifier.verify(code)
        except PinVerificationUnavailable:
            self.candidate = ""
            self.unavailable = True
            return AuthOutcome.UNAVAILABLE
        finally:
            self._in_flight = False

        if not verdict:
            self.candidate = ""
            self.error = True
            return AuthOutcome.REJECTED

        try:
            self.session_store.set(AUTH_MARKER_KEY, "true")
        except StoreUnavailable:
            # Marker not persisted: re-arm for a fresh attempt
            self.candidate = ""
            self.unavailable = True
            return AuthOutcome.UNAVAILABLE

        self.authenticated = True
        self.candidate = ""
        self.error = False
        self.unavailable = False
        return AuthOutcome.AUTHENTICATED
