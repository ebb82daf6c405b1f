"""Die roll extraction from the prediction endpoint's free-text message."""

import re
from dataclasses import dataclass
from typing import Optional

ROLL_PATTERN = re.compile(r"rolled a (\d+)")


def extract_roll(message) -> Optional[int]:
    """Return the rolled number, or None when the message doesn't say.

    None is an expected outcome (the cycle gets skipped), so this never
    raises.
    """
    if not isinstance(message, str):
        return None
    match = ROLL_PATTERN.search(message)
    return int(match.group(1)) if match else None


@dataclass(frozen=True)
class Prediction:
    transaction: str
    message: str
    rolled_number: Optional[int] = None
    next_href: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "Prediction":
        message = payload.get("message") or ""
        return cls(
            transaction=payload.get("transaction") or "",
            message=message,
            rolled_number=extract_roll(message),
            next_href=_next_href(payload.get("links")),
        )


def _next_href(links) -> Optional[str]:
    # links.next.href is display-only, so any odd shape just means "no link"
    if not isinstance(links, dict):
        return None
    next_link = links.get("next")
    if not isinstance(next_link, dict):
        return None
    href = next_link.get("href")
    return href if isinstance(href, str) else None
