import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import (
    AreaNotFoundError,
    GameIdMismatchError,
    GameNotInProgressError,
    InvalidCommandError,
)
from .game import Game
from .models import GameMode, GameResult, GameStatus
from .scoring import result_for
from .visibility import OBSERVER, Viewer, project_view

logger = logging.getLogger(__name__)

JOIN_GAME = 'JoinGame'
GAME_MOVE = 'GameMove'
LEAVE_GAME = 'LeaveGame'


class GameArea:
    """Hosts the current Game of one mode plus the results of past ones.

    Commands are serialized through ``lock``; callers that also broadcast
    the resulting snapshots should hold it across both steps so recipients
    never see snapshots out of commit order.
    """

    def __init__(self, area_id: str, mode: GameMode):
        self.id = area_id
        self.mode = GameMode(mode)
        self.game: Optional[Game] = None
        self._history: List[GameResult] = []
        self.lock = threading.RLock()

    def __repr__(self):
        return f'<GameArea {self.id} {self.mode.value}>'

    @property
    def history(self) -> Tuple[GameResult, ...]:
        return tuple(self._history)

    def handle_command(self, player_id: str, command: Mapping[str, Any]) -> Dict[str, str]:
        if not isinstance(command, Mapping):
            raise InvalidCommandError('Command must be an object')
        command_type = command.get('type')
        with self.lock:
            if command_type == JOIN_GAME:
                return self._join_game(player_id)
            if command_type == GAME_MOVE:
                return self._game_move(player_id, command)
            if command_type == LEAVE_GAME:
                return self._leave_game(player_id, command)
        raise InvalidCommandError(f'Unknown command type: {command_type!r}')

    def _join_game(self, player_id: str) -> Dict[str, str]:
        if self.game is None or self.game.status is GameStatus.OVER:
            self.game = Game(self.mode)
            logger.info(f'[new-game] area={self.id} game={self.game.id}')
        self.game.join(player_id)
        return {'gameId': self.game.id}

    def _current_game(self, command: Mapping[str, Any]) -> Game:
        if self.game is None:
            raise GameNotInProgressError()
        if command.get('gameId') != self.game.id:
            raise GameIdMismatchError()
        return self.game

    def _game_move(self, player_id: str, command: Mapping[str, Any]) -> Dict[str, str]:
        game = self._current_game(command)
        move = command.get('move')
        if not isinstance(move, Mapping):
            raise InvalidCommandError('GameMove requires a move object')
        game.apply_move(player_id, move)
        if game.status is GameStatus.OVER:
            self._record(game)
        return {'gameId': game.id}

    def _leave_game(self, player_id: str, command: Mapping[str, Any]) -> Dict[str, str]:
        game = self._current_game(command)
        game.leave(player_id)
        if game.status is GameStatus.OVER:
            self._record(game)
        return {'gameId': game.id}

    def _record(self, game: Game) -> None:
        result = result_for(game)
        self._history.append(result)
        logger.info(f'[result] area={self.id} game={game.id} scores={result.to_dict()["scores"]}')

    def viewer_for(self, player_id: Optional[str]) -> Viewer:
        if self.game is not None and player_id is not None:
            seat = self.game.seat_of(player_id)
            if seat is not None:
                return seat
        return OBSERVER

    def snapshot(self, viewer: Viewer) -> dict:
        with self.lock:
            game = self.game
            return {
                'areaId': self.id,
                'mode': self.mode.value,
                'gameId': game.id if game else None,
                'status': game.status.value if game else None,
                'winner': game.winner.value if game and game.winner else None,
                'players': {seat.value: occupant for seat, occupant in game.seats.items()} if game else None,
                'history': [result.to_dict() for result in self._history],
                'view': project_view(game.state, viewer) if game else None,
            }

    def summary(self) -> dict:
        game = self.game
        return {
            'areaId': self.id,
            'mode': self.mode.value,
            'gameId': game.id if game else None,
            'status': game.status.value if game else None,
        }


class AreaRegistry:
    def __init__(self, areas: Iterable[GameArea] = ()):
        self._areas: Dict[str, GameArea] = {}
        for area in areas:
            self._areas[area.id] = area

    @classmethod
    def from_config(cls, spec: str) -> 'AreaRegistry':
        """Build areas from ``"area_id:mode,area_id:mode"``."""
        registry = cls()
        for item in (spec or '').split(','):
            item = item.strip()
            if not item:
                continue
            area_id, _, mode = item.partition(':')
            registry.add(area_id.strip(), GameMode(mode.strip()))
        return registry

    def add(self, area_id: str, mode: GameMode) -> GameArea:
        if area_id in self._areas:
            raise ValueError(f'Duplicate area id: {area_id}')
        area = GameArea(area_id, mode)
        self._areas[area_id] = area
        return area

    def get(self, area_id: str) -> GameArea:
        try:
            return self._areas[area_id]
        except KeyError:
            raise AreaNotFoundError(area_id)

    def all(self) -> List[GameArea]:
        return list(self._areas.values())
