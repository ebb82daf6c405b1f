"""
The Move Evaluator.

Given where the active color sits and what the die is going to show,
work out where it lands. Landing exactly on one of the winning squares
is the only thing worth paying a transaction fee for.
"""

from dataclasses import dataclass
from typing import Iterable

from snake_sniper.config import DEFAULT_WINNING_POSITIONS
from snake_sniper.game.state import Color, GameState


@dataclass(frozen=True)
class MoveAnalysis:
    color: Color
    current_position: int
    rolled_number: int
    new_position: int
    is_winning_move: bool

    def summary(self) -> str:
        verdict = "WIN" if self.is_winning_move else "no win"
        return (f"{self.color.value}: {self.current_position} + {self.rolled_number} "
                f"-> {self.new_position} ({verdict})")


class MoveEvaluator:
    """Pure decision rule. No I/O, inputs are never touched."""

    def __init__(self, winning_positions: Iterable[int] = DEFAULT_WINNING_POSITIONS):
        self.winning_positions = frozenset(winning_positions)

    def is_winning_position(self, position: int) -> bool:
        return position in self.winning_positions

    def evaluate(self, state: GameState, rolled_number: int) -> MoveAnalysis:
        if rolled_number <= 0:
            raise ValueError(f"Rolled number must be positive, got {rolled_number}")

        current = state.position_of(state.active_color)
        new_position = current + rolled_number

        return MoveAnalysis(
            color=state.active_color,
            current_position=current,
            rolled_number=rolled_number,
            new_position=new_position,
            is_winning_move=self.is_winning_position(new_position),
        )
