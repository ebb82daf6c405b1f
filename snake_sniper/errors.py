"""
Exception hierarchy for SnakeSniper.

Three families matter to the main loop:
- FetchError: the game service could not be reached (after retries)
- PayloadError: the service answered, but with something we can't read
- SubmissionError: we had a winning move and the claim didn't land

SignerLoadError is the odd one out. It is raised at startup and is fatal.
"""

from typing import Any, Optional


class SnakeSniperError(Exception):
    """Base exception for everything raised by this package."""

    def __init__(self, message: str, step: Optional[str] = None,
                 payload: Any = None):
        self.step = step
        self.payload = payload
        super().__init__(message)

    def describe(self) -> str:
        """One-line description with step/payload context for the operator."""
        parts = [f"{type(self).__name__}: {self}"]
        if self.step:
            parts.append(f"step={self.step}")
        if self.payload is not None:
            parts.append(f"payload={_truncate(repr(self.payload))}")
        return " | ".join(parts)


class FetchError(SnakeSniperError):
    """Game service unreachable or answered with a non-JSON body."""

    def __init__(self, message: str, step: Optional[str] = None,
                 payload: Any = None, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message, step=step, payload=payload)


class PayloadError(SnakeSniperError):
    """The payload shape is unusable for this cycle. Never retried."""


class MalformedIconError(PayloadError):
    pass


class MalformedDescriptionError(PayloadError):
    pass


class UnknownColorError(PayloadError):
    pass


class MissingRollError(PayloadError):
    """Prediction message carried no 'rolled a N'."""


class DecodeError(PayloadError):
    """Encoded transaction is not valid base58, or neither wire format."""


class SubmissionError(SnakeSniperError):
    """A winning claim failed somewhere between signing and confirmation."""


class SigningError(SubmissionError):
    pass


class SubmissionRejectedError(SubmissionError):
    def __init__(self, message: str, signature: Optional[str] = None,
                 step: Optional[str] = None, payload: Any = None):
        self.signature = signature
        super().__init__(message, step=step, payload=payload)


class ConfirmationTimeoutError(SubmissionError):
    """Submitted, but not seen at the requested commitment in time.

    The transaction may still land. Callers should keep the signature
    around and check it again instead of assuming it failed.
    """

    def __init__(self, message: str, signature: str,
                 step: Optional[str] = None, payload: Any = None):
        self.signature = signature
        super().__init__(message, step=step, payload=payload)


class SignerLoadError(SnakeSniperError):
    """Private key missing or malformed. Fatal at startup."""


def _truncate(text: str, limit: int = 200) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
