import logging
import uuid
from typing import Any, Dict, Mapping, Optional

from . import battleship, tictactoe
from .errors import (
    GameFullError,
    GameNotInProgressError,
    NotYourTurnError,
    PlayerAlreadyInGameError,
    PlayerNotInGameError,
)
from .models import GameMode, GameStatus, Seat
from .rules import Ruleset

logger = logging.getLogger(__name__)

RULESETS: Dict[GameMode, Ruleset] = {
    GameMode.TICTACTOE: tictactoe.RULES,
    GameMode.BATTLESHIP: battleship.RULES,
}


class Game:
    """One two-seat match.

    Lifecycle: WAITING_TO_START -> IN_PROGRESS -> OVER, never backwards.
    The state is only mutated by ``join``, ``leave`` and ``apply_move``,
    and each of them validates completely before touching anything.
    """

    def __init__(self, mode: GameMode, game_id: Optional[str] = None):
        self.id = game_id or str(uuid.uuid4())
        self.mode = GameMode(mode)
        self.rules = RULESETS[self.mode]
        self.state = self.rules.initial_state()
        self.status = GameStatus.WAITING_TO_START
        self.seats: Dict[Seat, Optional[str]] = {Seat.A: None, Seat.B: None}
        self.winner: Optional[Seat] = None

    def __repr__(self):
        return f'<Game {self.id} {self.mode.value} {self.status.value}>'

    @property
    def players(self) -> Dict[Seat, Optional[str]]:
        return dict(self.seats)

    @property
    def winner_player(self) -> Optional[str]:
        return self.seats[self.winner] if self.winner else None

    @property
    def turn(self) -> Optional[Seat]:
        if self.status is not GameStatus.IN_PROGRESS:
            return None
        return self.rules.turn(self.state)

    def seat_of(self, player_id: str) -> Optional[Seat]:
        for seat, occupant in self.seats.items():
            if occupant is not None and occupant == player_id:
                return seat
        return None

    def _advance(self, status: GameStatus) -> None:
        if status.rank < self.status.rank:
            raise RuntimeError(f'Game {self.id} cannot move from {self.status.value} to {status.value}')
        self.status = status

    def join(self, player_id: str) -> Seat:
        if self.seat_of(player_id) is not None:
            raise PlayerAlreadyInGameError()
        if self.status is not GameStatus.WAITING_TO_START:
            raise GameFullError()
        if self.seats[Seat.A] is None:
            seat = Seat.A
        elif self.seats[Seat.B] is None:
            seat = Seat.B
        else:
            raise GameFullError()
        self.seats[seat] = player_id
        logger.info(f'[join] game={self.id} player={player_id} seat={seat.value}')

        if all(occupant is not None for occupant in self.seats.values()):
            self.rules.start(self.state)
            self._advance(GameStatus.IN_PROGRESS)
            logger.info(f'[start] game={self.id} mode={self.mode.value}')
        return seat

    def leave(self, player_id: str) -> None:
        seat = self.seat_of(player_id)
        if seat is None:
            raise PlayerNotInGameError()
        if self.status is GameStatus.OVER:
            raise GameNotInProgressError()

        if self.status is GameStatus.WAITING_TO_START:
            self.seats[seat] = None
            logger.info(f'[leave] game={self.id} player={player_id} seat={seat.value} status=waiting')
            return

        self.winner = seat.other
        self._advance(GameStatus.OVER)
        logger.info(f'[leave] game={self.id} player={player_id} seat={seat.value} winner={self.winner.value}')

    def apply_move(self, player_id: str, move: Any) -> None:
        """Validate and apply ``move`` for ``player_id``.

        ``move`` is either an already-parsed move or the raw payload
        mapping. The seat always comes from ``player_id``; anything the
        payload says about seats or pieces is ignored.
        """
        if self.status is not GameStatus.IN_PROGRESS:
            raise GameNotInProgressError()
        seat = self.seat_of(player_id)
        if seat is None:
            raise NotYourTurnError()
        if isinstance(move, Mapping):
            move = self.rules.parse_move(move)
        if self.rules.is_turn_gated(move) and self.rules.turn(self.state) is not seat:
            raise NotYourTurnError()
        self.rules.validate(self.state, seat, move)

        self.rules.apply(self.state, seat, move)
        logger.debug(f'[move] game={self.id} seat={seat.value} move={move}')

        finished, winner = self.rules.outcome(self.state)
        if finished:
            self.winner = winner
            self._advance(GameStatus.OVER)
            logger.info(f'[over] game={self.id} winner={winner.value if winner else "tie"}')
