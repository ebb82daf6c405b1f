"""
Board state decoding.

The game endpoint doesn't give us structured data. Positions are packed
into the icon identifier, e.g. "snakes_2-5-1-9" (red, blue, yellow, green),
and whose turn it is only shows up in the description, from the third
word on, e.g. "The dot is Green now".
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from snake_sniper.errors import (
    MalformedDescriptionError,
    MalformedIconError,
    UnknownColorError,
)


class Color(Enum):
    RED = "red"
    BLUE = "blue"
    YELLOW = "yellow"
    GREEN = "green"


# Order the icon packs the positions in
ICON_ORDER = (Color.RED, Color.BLUE, Color.YELLOW, Color.GREEN)

WORD_PUNCTUATION = ".,!?:;\"'"


@dataclass(frozen=True)
class GameState:
    positions: Mapping[Color, int]
    active_color: Color

    def __post_init__(self):
        # Freeze the mapping so nobody downstream can nudge a position
        object.__setattr__(self, "positions", MappingProxyType(dict(self.positions)))

    def position_of(self, color: Color) -> int:
        if color not in self.positions:
            raise UnknownColorError(
                f"No position recorded for color {color!r}",
                step="evaluating",
                payload=dict(self.positions),
            )
        return self.positions[color]

    def as_dict(self) -> dict:
        return {
            "positions": {c.value: p for c, p in self.positions.items()},
            "active_color": self.active_color.value,
        }


def parse_color(name: str) -> Color:
    try:
        return Color(name.lower())
    except ValueError:
        raise UnknownColorError(f"Not a board color: {name!r}") from None


def decode_icon(icon) -> dict:
    """Decode 'x_R-B-Y-G' into {Color: position}."""
    if not isinstance(icon, str):
        raise MalformedIconError("Icon is missing or not a string",
                                 step="fetching_state", payload=icon)

    sections = icon.split("_")
    if len(sections) < 2:
        raise MalformedIconError("Icon has no underscore section",
                                 step="fetching_state", payload=icon)

    segments = sections[1].split("-")
    if len(segments) < len(ICON_ORDER):
        raise MalformedIconError(
            f"Icon carries {len(segments)} positions, expected {len(ICON_ORDER)}",
            step="fetching_state", payload=icon,
        )

    positions = {}
    for color, raw in zip(ICON_ORDER, segments):
        try:
            value = int(raw.strip())
        except ValueError:
            raise MalformedIconError(
                f"Position for {color.value} is not an integer: {raw!r}",
                step="fetching_state", payload=icon,
            ) from None
        if value < 0:
            raise MalformedIconError(
                f"Position for {color.value} is negative: {value}",
                step="fetching_state", payload=icon,
            )
        positions[color] = value

    return positions


def decode_active_color(description) -> Color:
    """Active color from the description, starting at the third word.

    The third word wins when it names a color ("turn for Blue"). Otherwise
    the first color word after it is used, which covers the live service's
    "The dot is Green now". Words before the third are never considered.
    """
    if not isinstance(description, str):
        raise MalformedDescriptionError("Description is missing or not a string",
                                        step="fetching_state", payload=description)

    tokens = description.split()
    if len(tokens) < 3:
        raise MalformedDescriptionError(
            f"Description has {len(tokens)} words, need at least 3",
            step="fetching_state", payload=description,
        )

    for token in tokens[2:]:
        try:
            return parse_color(token.strip(WORD_PUNCTUATION))
        except UnknownColorError:
            continue

    raise MalformedDescriptionError(
        f"No board color from the third word on ({tokens[2]!r}...)",
        step="fetching_state", payload=description,
    )


def decode_state(payload: dict) -> GameState:
    """Build a GameState from the raw game endpoint response."""
    return GameState(
        positions=decode_icon(payload.get("icon")),
        active_color=decode_active_color(payload.get("description")),
    )
