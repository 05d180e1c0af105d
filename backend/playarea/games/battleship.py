import logging
from typing import Any, List, Mapping, Optional, Tuple

from .errors import (
    BoardPositionNotEmptyError,
    InvalidCommandError,
    OutOfBoundsError,
    PlacementIncompleteError,
)
from .models import (
    BATTLESHIP_SIZE,
    BattleshipState,
    Guess,
    GuessMove,
    Outcome,
    PlaceShipMove,
    Seat,
    ShipKind,
    ShipPlacement,
    in_bounds,
)
from .rules import Ruleset, read_coordinate

logger = logging.getLogger(__name__)


def parse_move(payload: Mapping[str, Any]):
    if not isinstance(payload, Mapping):
        raise InvalidCommandError('Move must be an object')
    kind = payload.get('kind')
    row = read_coordinate(payload, 'row')
    col = read_coordinate(payload, 'col')
    if kind == 'guess':
        return GuessMove(row=row, col=col)
    if kind == 'place':
        try:
            ship_kind = ShipKind(payload.get('shipKind'))
        except ValueError:
            raise InvalidCommandError(f'Unknown ship kind: {payload.get("shipKind")!r}')
        return PlaceShipMove(ship_kind=ship_kind, row=row, col=col)
    raise InvalidCommandError(f'Unknown move kind: {kind!r}')


def start(state: BattleshipState) -> None:
    state.fleets = {Seat.A: [], Seat.B: []}
    state.shots = {Seat.A: [], Seat.B: []}
    state.placement_complete = {Seat.A: False, Seat.B: False}
    state.turn = Seat.A


def is_turn_gated(move) -> bool:
    # placement happens in parallel; only shots wait for the turn
    return isinstance(move, GuessMove)


def _validate_placement(state: BattleshipState, seat: Seat, move: PlaceShipMove) -> None:
    if any(ship.kind is move.ship_kind for ship in state.fleets[seat]):
        raise BoardPositionNotEmptyError(f'{move.ship_kind.value} already placed')
    last_col = move.col + move.ship_kind.length - 1
    if not (in_bounds(move.row, move.col, BATTLESHIP_SIZE) and in_bounds(move.row, last_col, BATTLESHIP_SIZE)):
        raise OutOfBoundsError()
    placement = ShipPlacement.horizontal(move.ship_kind, move.row, move.col)
    if placement.cells & state.occupied(seat).keys():
        raise BoardPositionNotEmptyError()


def _validate_guess(state: BattleshipState, seat: Seat, move: GuessMove) -> None:
    if not (state.placement_complete[seat] and state.placement_complete[seat.other]):
        raise PlacementIncompleteError()
    if not in_bounds(move.row, move.col, BATTLESHIP_SIZE):
        raise OutOfBoundsError()
    if (move.row, move.col) in state.guessed(seat):
        raise BoardPositionNotEmptyError()


def validate(state: BattleshipState, seat: Seat, move) -> None:
    if isinstance(move, PlaceShipMove):
        _validate_placement(state, seat, move)
    elif isinstance(move, GuessMove):
        _validate_guess(state, seat, move)
    else:
        raise InvalidCommandError('Not a Battleship move')


def apply(state: BattleshipState, seat: Seat, move) -> None:
    if isinstance(move, PlaceShipMove):
        state.fleets[seat].append(ShipPlacement.horizontal(move.ship_kind, move.row, move.col))
        placed = {ship.kind for ship in state.fleets[seat]}
        if placed == set(ShipKind):
            state.placement_complete[seat] = True
            logger.info(f'[placement-complete] seat={seat.value}')
        return

    hit = (move.row, move.col) in state.occupied(seat.other)
    result = Outcome.HIT if hit else Outcome.MISS
    state.shots[seat].append(Guess(row=move.row, col=move.col, by=seat, outcome=result))
    if not hit:
        state.turn = seat.other


def hit_cells(state: BattleshipState, owner: Seat) -> set:
    """Cells of ``owner``'s ocean the opponent has hit."""
    return {(g.row, g.col) for g in state.shots[owner.other] if g.outcome is Outcome.HIT}


def sunk_ships(state: BattleshipState, owner: Seat) -> List[ShipKind]:
    hits = hit_cells(state, owner)
    return [ship.kind for ship in state.fleets[owner] if ship.cells <= hits]


def outcome(state: BattleshipState) -> Tuple[bool, Optional[Seat]]:
    for seat in Seat:
        if not state.placement_complete[seat]:
            continue
        if state.occupied(seat).keys() <= hit_cells(state, seat):
            return True, seat.other
    return False, None


RULES = Ruleset(
    initial_state=BattleshipState,
    start=start,
    parse_move=parse_move,
    is_turn_gated=is_turn_gated,
    turn=lambda state: state.turn,
    validate=validate,
    apply=apply,
    outcome=outcome,
)
