import logging
from typing import Any, Mapping, Optional, Tuple

from .errors import BoardPositionNotEmptyError, InvalidCommandError, OutOfBoundsError
from .models import TICTACTOE_SIZE, MarkRecord, Seat, TicTacToeMove, TicTacToeState, in_bounds
from .rules import Ruleset, read_coordinate

logger = logging.getLogger(__name__)

# 3 rows, 3 columns, 2 diagonals
_SPAN = range(TICTACTOE_SIZE)
LINES = (
    [[(r, c) for c in _SPAN] for r in _SPAN]
    + [[(r, c) for r in _SPAN] for c in _SPAN]
    + [[(i, i) for i in _SPAN], [(i, TICTACTOE_SIZE - 1 - i) for i in _SPAN]]
)


def parse_move(payload: Mapping[str, Any]) -> TicTacToeMove:
    if not isinstance(payload, Mapping):
        raise InvalidCommandError('Move must be an object')
    return TicTacToeMove(row=read_coordinate(payload, 'row'), col=read_coordinate(payload, 'col'))


def validate(state: TicTacToeState, seat: Seat, move) -> None:
    if not isinstance(move, TicTacToeMove):
        raise InvalidCommandError('Not a Tic-Tac-Toe move')
    if not in_bounds(move.row, move.col, TICTACTOE_SIZE):
        raise OutOfBoundsError()
    if state.grid[move.row][move.col] is not None:
        raise BoardPositionNotEmptyError()


def apply(state: TicTacToeState, seat: Seat, move: TicTacToeMove) -> None:
    state.grid[move.row][move.col] = seat
    state.moves.append(MarkRecord(row=move.row, col=move.col, seat=seat))


def outcome(state: TicTacToeState) -> Tuple[bool, Optional[Seat]]:
    for line in LINES:
        marks = {state.grid[r][c] for r, c in line}
        if len(marks) == 1:
            (mark,) = marks
            if mark is not None:
                return True, mark
    if len(state.moves) == TICTACTOE_SIZE * TICTACTOE_SIZE:
        logger.debug('[tie] board full with no line')
        return True, None
    return False, None


RULES = Ruleset(
    initial_state=TicTacToeState,
    start=lambda state: None,
    parse_move=parse_move,
    is_turn_gated=lambda move: True,
    turn=lambda state: state.turn,
    validate=validate,
    apply=apply,
    outcome=outcome,
)
