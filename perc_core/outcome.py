"""Terminal run records shared by the engines and the session."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from perc_core.pockets import PocketStats


class RunMode(Enum):
    ESCAPE = "escape"
    BATTLE = "battle"


class Result(Enum):
    ESCAPED = "escaped"
    ENCIRCLED = "encircled"
    WHITE_WINS = "white_wins"
    BLACK_WINS = "black_wins"
    UNRESOLVED = "unresolved"
    INTERRUPTED = "interrupted"


class Winner(Enum):
    WHITE = "white"
    BLACK = "black"
    UNRESOLVED = "unresolved"


_WINNERS = {
    Result.WHITE_WINS: Winner.WHITE,
    Result.BLACK_WINS: Winner.BLACK,
}


@dataclass(frozen=True)
class RunOutcome:
    """Immutable summary of one finished (or abandoned) run."""

    mode: RunMode
    result: Result
    distance: int
    steps: int = 0
    pockets: Optional["PocketStats"] = None

    @property
    def escaped(self) -> bool:
        return self.result is Result.ESCAPED

    @property
    def interrupted(self) -> bool:
        return self.result is Result.INTERRUPTED

    @property
    def winner(self) -> Optional[Winner]:
        if self.mode is not RunMode.BATTLE:
            return None
        return _WINNERS.get(self.result, Winner.UNRESOLVED)

    def status_line(self) -> str:
        if self.result is Result.ESCAPED:
            text = f"ESCAPED! Distance {self.distance}"
        elif self.result is Result.ENCIRCLED:
            text = f"ENCIRCLED! Max dist: {self.distance}"
        elif self.result is Result.INTERRUPTED:
            text = f"INTERRUPTED at distance {self.distance}"
        elif self.result is Result.UNRESOLVED:
            text = f"UNRESOLVED after reaching distance {self.distance}"
        else:
            side = "WHITE" if self.result is Result.WHITE_WINS else "BLACK"
            text = f"{side} WINS! Distance {self.distance}"
        if self.pockets is not None:
            text += f" | {self.pockets.describe()}"
        return text


__all__ = ["Result", "RunMode", "RunOutcome", "Winner"]
