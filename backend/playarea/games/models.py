from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

TICTACTOE_SIZE = 3
BATTLESHIP_SIZE = 10


class Seat(str, Enum):
    A = 'A'
    B = 'B'

    @property
    def other(self) -> 'Seat':
        return Seat.B if self is Seat.A else Seat.A


class GameStatus(str, Enum):
    WAITING_TO_START = 'WAITING_TO_START'
    IN_PROGRESS = 'IN_PROGRESS'
    OVER = 'OVER'

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [GameStatus.WAITING_TO_START, GameStatus.IN_PROGRESS, GameStatus.OVER]


class GameMode(str, Enum):
    TICTACTOE = 'tictactoe'
    BATTLESHIP = 'battleship'


class ShipKind(str, Enum):
    CARRIER = 'carrier'
    BATTLESHIP = 'battleship'
    CRUISER = 'cruiser'
    SUBMARINE = 'submarine'
    DESTROYER = 'destroyer'

    @property
    def length(self) -> int:
        return SHIP_LENGTHS[self]


SHIP_LENGTHS: Dict[ShipKind, int] = {
    ShipKind.CARRIER: 5,
    ShipKind.BATTLESHIP: 4,
    ShipKind.CRUISER: 3,
    ShipKind.SUBMARINE: 3,
    ShipKind.DESTROYER: 2,
}

FLEET_CELL_COUNT = sum(SHIP_LENGTHS.values())


class Outcome(str, Enum):
    HIT = 'hit'
    MISS = 'miss'


Cell = Tuple[int, int]


def in_bounds(row: int, col: int, size: int) -> bool:
    return 0 <= row < size and 0 <= col < size


# ---- Moves (the payload half of a GameMove command) ----

@dataclass(frozen=True)
class TicTacToeMove:
    row: int
    col: int


@dataclass(frozen=True)
class PlaceShipMove:
    ship_kind: ShipKind
    row: int
    col: int


@dataclass(frozen=True)
class GuessMove:
    row: int
    col: int


# ---- State ----

@dataclass(frozen=True)
class MarkRecord:
    row: int
    col: int
    seat: Seat

    def to_dict(self):
        return {'row': self.row, 'col': self.col, 'seat': self.seat.value}


@dataclass
class TicTacToeState:
    grid: List[List[Optional[Seat]]] = field(
        default_factory=lambda: [[None] * TICTACTOE_SIZE for _ in range(TICTACTOE_SIZE)]
    )
    moves: List[MarkRecord] = field(default_factory=list)

    @property
    def turn(self) -> Seat:
        return Seat.A if len(self.moves) % 2 == 0 else Seat.B


@dataclass(frozen=True)
class ShipPlacement:
    kind: ShipKind
    anchor_row: int
    anchor_col: int
    cells: FrozenSet[Cell]

    @classmethod
    def horizontal(cls, kind: ShipKind, row: int, col: int) -> 'ShipPlacement':
        """Ships extend rightward from the anchor by ``length - 1`` columns."""
        cells = frozenset((row, col + i) for i in range(kind.length))
        return cls(kind=kind, anchor_row=row, anchor_col=col, cells=cells)

    def to_dict(self):
        return {
            'kind': self.kind.value,
            'row': self.anchor_row,
            'col': self.anchor_col,
            'cells': [list(c) for c in sorted(self.cells)],
        }


@dataclass(frozen=True)
class Guess:
    row: int
    col: int
    by: Seat
    outcome: Outcome

    def to_dict(self):
        return {'row': self.row, 'col': self.col, 'by': self.by.value, 'outcome': self.outcome.value}


@dataclass
class BattleshipState:
    fleets: Dict[Seat, List[ShipPlacement]] = field(default_factory=lambda: {Seat.A: [], Seat.B: []})
    shots: Dict[Seat, List[Guess]] = field(default_factory=lambda: {Seat.A: [], Seat.B: []})
    placement_complete: Dict[Seat, bool] = field(default_factory=lambda: {Seat.A: False, Seat.B: False})
    turn: Seat = Seat.A

    def occupied(self, seat: Seat) -> Dict[Cell, ShipPlacement]:
        return {cell: ship for ship in self.fleets[seat] for cell in ship.cells}

    def guessed(self, seat: Seat) -> Dict[Cell, Outcome]:
        """Cells targeted by ``seat`` on the opponent's ocean."""
        return {(g.row, g.col): g.outcome for g in self.shots[seat]}


# ---- Results ----

@dataclass(frozen=True)
class GameResult:
    game_id: str
    score_a: int
    score_b: int
    player_a: Optional[str] = None
    player_b: Optional[str] = None

    @property
    def scores(self) -> Dict[Seat, int]:
        return {Seat.A: self.score_a, Seat.B: self.score_b}

    def to_dict(self):
        return {
            'gameId': self.game_id,
            'scores': {Seat.A.value: self.score_a, Seat.B.value: self.score_b},
            'players': {Seat.A.value: self.player_a, Seat.B.value: self.player_b},
        }
