"""Game engine: seats, rules, visibility and the per-area command dispatcher.

Nothing in this package knows about Flask or Socket.IO; HTTP routes and
socket handlers import from here, keeping transport concerns separated
from core game mechanics.
"""

from .area import AreaRegistry, GameArea
from .errors import AreaNotFoundError, GameError
from .game import Game
from .models import GameMode, GameResult, GameStatus, Seat
from .visibility import OBSERVER, project_view

__all__ = [
    'AreaNotFoundError',
    'AreaRegistry',
    'Game',
    'GameArea',
    'GameError',
    'GameMode',
    'GameResult',
    'GameStatus',
    'OBSERVER',
    'Seat',
    'project_view',
]
