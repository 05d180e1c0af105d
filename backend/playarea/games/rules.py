"""Per-mode rulesets.

A Game never subclasses per mode. It holds one ``Ruleset``, picked by the
area's ``GameMode`` tag, and calls these hooks in a fixed order.
"""

from typing import Any, Callable, Mapping, NamedTuple, Optional, Tuple

from .errors import InvalidCommandError
from .models import Seat


class Ruleset(NamedTuple):
    # () -> fresh state for a new Game
    initial_state: Callable[[], Any]
    # (state) -> None, called once when both seats are filled
    start: Callable[[Any], None]
    # (payload) -> typed move; raises InvalidCommandError
    parse_move: Callable[[Mapping[str, Any]], Any]
    # (move) -> whether the move waits for the mover's turn
    is_turn_gated: Callable[[Any], bool]
    # (state) -> seat whose turn it is
    turn: Callable[[Any], Seat]
    # (state, seat, move) -> None; raises GameError, never mutates
    validate: Callable[[Any, Seat, Any], None]
    # (state, seat, move) -> None; only called after validate passed
    apply: Callable[[Any, Seat, Any], None]
    # (state) -> (finished, winner or None for a tie)
    outcome: Callable[[Any], Tuple[bool, Optional[Seat]]]


def read_coordinate(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    # bool is an int subclass; True is not a row
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCommandError(f'Move field "{key}" must be an integer')
    return value
