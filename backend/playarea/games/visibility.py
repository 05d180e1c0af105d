"""Per-viewer projections of game state.

``project_view`` is the only way game state leaves the server. Everything
it returns is plain JSON data built fresh on every call, so two calls on
an unchanged state produce identical output.

A seat sees its own fleet in full. Of the opponent's ocean it sees only
the cells it has fired at, as ``hit`` or ``miss``; every other cell is
``unknown`` whether or not a ship is there. Observers see no fleet at all,
only the outcome of every shot fired by either seat.
"""

from typing import Union

from .battleship import sunk_ships
from .models import (
    BATTLESHIP_SIZE,
    BattleshipState,
    Seat,
    ShipKind,
    TicTacToeState,
)

OBSERVER = 'observer'

UNKNOWN = 'unknown'
EMPTY = 'empty'
SHIP = 'ship'

Viewer = Union[Seat, str]


def viewer_key(viewer: Viewer) -> str:
    return viewer.value if isinstance(viewer, Seat) else OBSERVER


def _tictactoe_view(state: TicTacToeState, viewer: Viewer) -> dict:
    return {
        'mode': 'tictactoe',
        'viewer': viewer_key(viewer),
        'turn': state.turn.value,
        'board': [[cell.value if cell else None for cell in row] for row in state.grid],
        'moves': [m.to_dict() for m in state.moves],
    }


def _ocean(state: BattleshipState, owner: Seat, viewer: Viewer) -> list:
    """The 10x10 grid of ``owner``'s ocean as ``viewer`` may see it."""
    shots = state.guessed(owner.other)
    ships = state.occupied(owner).keys() if viewer == owner else ()
    grid = []
    for r in range(BATTLESHIP_SIZE):
        row = []
        for c in range(BATTLESHIP_SIZE):
            if (r, c) in shots:
                row.append(shots[(r, c)].value)
            elif viewer == owner:
                row.append(SHIP if (r, c) in ships else EMPTY)
            else:
                row.append(UNKNOWN)
        grid.append(row)
    return grid


def _battleship_view(state: BattleshipState, viewer: Viewer) -> dict:
    seated = isinstance(viewer, Seat)
    view = {
        'mode': 'battleship',
        'viewer': viewer_key(viewer),
        'turn': state.turn.value,
        'placementComplete': {seat.value: state.placement_complete[seat] for seat in Seat},
        'boards': {seat.value: _ocean(state, seat, viewer) for seat in Seat},
        'shots': {
            seat.value: [{'row': g.row, 'col': g.col, 'outcome': g.outcome.value} for g in state.shots[seat]]
            for seat in Seat
        },
        'sunk': {seat.value: [kind.value for kind in sunk_ships(state, seat)] for seat in Seat},
        'fleet': None,
        'remainingShips': None,
    }
    if seated:
        placed = {ship.kind for ship in state.fleets[viewer]}
        view['fleet'] = [ship.to_dict() for ship in state.fleets[viewer]]
        view['remainingShips'] = [kind.value for kind in ShipKind if kind not in placed]
    return view


def project_view(state, viewer: Viewer) -> dict:
    if not isinstance(viewer, Seat) and viewer != OBSERVER:
        raise ValueError(f'Unknown viewer: {viewer!r}')
    if isinstance(state, TicTacToeState):
        return _tictactoe_view(state, viewer)
    if isinstance(state, BattleshipState):
        return _battleship_view(state, viewer)
    raise TypeError(f'Cannot project {type(state).__name__}')
