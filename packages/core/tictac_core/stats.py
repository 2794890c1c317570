"""Per-mode game statistics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tictac_link.models import Outcome


class GameMode(str, Enum):
    PVP = "pvp"
    PLAYER_FIRST = "player_first"
    AI_FIRST = "ai_first"

    @property
    def is_ai(self) -> bool:
        return self is not GameMode.PVP


@dataclass
class PvpStats:
    games: int = 0
    wins_x: int = 0
    losses_x: int = 0
    draws_x: int = 0
    wins_o: int = 0
    losses_o: int = 0
    draws_o: int = 0


@dataclass
class AiStats:
    games: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    win_rate: int = 0


def win_rate(wins: int, games: int) -> int:
    """Integer percentage; zero games counts as 0%."""
    if games <= 0:
        return 0
    return wins * 100 // games


# Player holds X when moving first, O when the AI opens.
_AI_RESULTS: dict[GameMode, dict[Outcome, str]] = {
    GameMode.PLAYER_FIRST: {
        Outcome.X_WIN: "wins",
        Outcome.O_WIN: "losses",
        Outcome.YOU_WIN: "wins",
        Outcome.AI_WIN: "losses",
        Outcome.DRAW: "draws",
    },
    GameMode.AI_FIRST: {
        Outcome.X_WIN: "losses",
        Outcome.O_WIN: "wins",
        Outcome.YOU_WIN: "wins",
        Outcome.AI_WIN: "losses",
        Outcome.DRAW: "draws",
    },
}


class StatisticsTracker:
    def __init__(self, pvp: PvpStats | None = None, ai: AiStats | None = None) -> None:
        self.pvp = pvp if pvp is not None else PvpStats()
        self.ai = ai if ai is not None else AiStats()
        self.ai.win_rate = win_rate(self.ai.wins, self.ai.games)

    def record(self, outcome: Outcome, mode: GameMode) -> str | None:
        """Count one finished game and return the bucket it landed in.

        Returns None when the outcome has no meaning in ``mode`` (for example
        ``"You win!"`` during a two-player game); nothing is counted then.
        """
        if mode is GameMode.PVP:
            return self._record_pvp(outcome)
        bucket = _AI_RESULTS[mode].get(outcome)
        if bucket is None:
            return None
        setattr(self.ai, bucket, getattr(self.ai, bucket) + 1)
        self.ai.games += 1
        self.ai.win_rate = win_rate(self.ai.wins, self.ai.games)
        return f"ai.{bucket}"

    def _record_pvp(self, outcome: Outcome) -> str | None:
        if outcome is Outcome.X_WIN:
            self.pvp.wins_x += 1
            self.pvp.losses_o += 1
            bucket = "pvp.x_win"
        elif outcome is Outcome.O_WIN:
            self.pvp.wins_o += 1
            self.pvp.losses_x += 1
            bucket = "pvp.o_win"
        elif outcome is Outcome.DRAW:
            self.pvp.draws_x += 1
            self.pvp.draws_o += 1
            bucket = "pvp.draw"
        else:
            return None
        self.pvp.games += 1
        return bucket
