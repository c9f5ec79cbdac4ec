"""PIN verification transports"""

import hmac
import httpx
from loan_tracker.domain.exceptions import PinVerificationUnavailable
from loan_tracker.config import settings


class SecretPinVerifier:
    """Compare candidates against a locally configured secret"""

    def __init__(self, secret: str):
        self.secret = secret

    async def verify(self, code: str) -> bool:
        # An unset secret never matches
        if not self.secret:
            return False
        return hmac.compare_digest(code.encode(), self.secret.encode())


class RemotePinVerifier:
    """Client for an external PIN verification endpoint"""

    def __init__(self, verify_url: str | None = None, timeout: float | None = None):
        self.verify_url = verify_url or settings.pin_verify_url
        self.timeout = timeout or settings.http_timeout_seconds

    async def verify(self, code: str) -> bool:
        """
        POST {"pin": code} and read {"valid": bool} back.

        Raises:
            PinVerificationUnavailable: On timeout, network or HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.verify_url, json={"pin": code})
                response.raise_for_status()
                valid = response.json()["valid"]
                if not isinstance(valid, bool):
                    raise TypeError(f"'valid' must be a boolean, got {type(valid).__name__}")
                return valid

            except httpx.TimeoutException as e:
                raise PinVerificationUnavailable(f"PIN verification timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise PinVerificationUnavailable(f"PIN verification error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise PinVerificationUnavailable(f"PIN verification unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise PinVerificationUnavailable(f"Invalid PIN verification response: {e}") from e


def build_pin_verifier() -> SecretPinVerifier | RemotePinVerifier:
    """Remote verifier when a URL is configured, local secret otherwise"""
    if settings.pin_verify_url:
        return RemotePinVerifier()
    return SecretPinVerifier(settings.pin_code)
