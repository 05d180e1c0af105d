"""Client-side mirror of one game area.

The mirror never computes game rules. It keeps the last redacted snapshot
the server pushed, derives local boards from it and tells the UI what
changed through blinker signals:

    mirror = AreaMirror('battleship-1', 'alice', send=sio.call)
    sio.on('area_snapshot', mirror.apply_snapshot, namespace='/ws')
    mirror.board_changed.connect(redraw)
    mirror.turn_changed.connect(toggle_input)
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from blinker import Signal

logger = logging.getLogger(__name__)

TICTACTOE_SIZE = 3
BATTLESHIP_SIZE = 10
SEATS = ('A', 'B')


class NoGameInProgress(Exception):
    pass


class CommandRejected(Exception):
    def __init__(self, code, message):
        super().__init__(message)
        self.code = code
        self.message = message


def _progress(view: Optional[dict]) -> int:
    """How far the game has advanced, as seen through this view."""
    if not view:
        return 0
    if view.get('mode') == 'tictactoe':
        return len(view.get('moves') or [])
    shots = view.get('shots') or {}
    return len(view.get('fleet') or []) + sum(len(shots.get(seat) or []) for seat in SEATS)


def _blank_board(mode: Optional[str]):
    if mode == 'tictactoe':
        return [[None] * TICTACTOE_SIZE for _ in range(TICTACTOE_SIZE)]
    if mode == 'battleship':
        return {seat: [['unknown'] * BATTLESHIP_SIZE for _ in range(BATTLESHIP_SIZE)] for seat in SEATS}
    return None


def _derive_board(view: dict):
    if view.get('mode') == 'tictactoe':
        board = _blank_board('tictactoe')
        for move in view.get('moves') or []:
            board[move['row']][move['col']] = move['seat']
        return board
    return {seat: [list(row) for row in grid] for seat, grid in (view.get('boards') or {}).items()}


class AreaMirror:
    def __init__(self, area_id: str, player_id: str, send: Optional[Callable[[str, dict], Any]] = None):
        self.area_id = area_id
        self.player_id = player_id
        self._send = send
        self.snapshot: Optional[dict] = None
        self._board = None
        self._progress = 0
        self._our_turn = False
        self._ended_game: Optional[str] = None
        self.pending = False

        self.board_changed = Signal('board_changed')
        self.turn_changed = Signal('turn_changed')
        self.game_ended = Signal('game_ended')
        self.updated = Signal('updated')

    # ---- accessors ----

    @property
    def game_id(self) -> Optional[str]:
        return self.snapshot.get('gameId') if self.snapshot else None

    @property
    def mode(self) -> Optional[str]:
        return self.snapshot.get('mode') if self.snapshot else None

    @property
    def status(self) -> str:
        status = self.snapshot.get('status') if self.snapshot else None
        return status or 'WAITING_TO_START'

    @property
    def seat(self) -> Optional[str]:
        view = self.snapshot.get('view') if self.snapshot else None
        viewer = view.get('viewer') if view else None
        return viewer if viewer in SEATS else None

    @property
    def is_player(self) -> bool:
        return self.seat is not None

    @property
    def is_active(self) -> bool:
        return self.status == 'IN_PROGRESS'

    @property
    def players(self) -> Dict[str, Optional[str]]:
        players = self.snapshot.get('players') if self.snapshot else None
        return {seat: (players or {}).get(seat) for seat in SEATS}

    @property
    def whose_turn(self) -> Optional[str]:
        """Seat to move while the game is in progress, else None."""
        if not self.is_active:
            return None
        view = self.snapshot.get('view') or {}
        return view.get('turn')

    @property
    def is_our_turn(self) -> bool:
        return self.seat is not None and self.whose_turn == self.seat

    @property
    def move_count(self) -> int:
        """Marks placed (Tic-Tac-Toe) or shots fired by both seats (Battleship)."""
        view = self.snapshot.get('view') if self.snapshot else None
        if not view:
            return 0
        if view.get('mode') == 'tictactoe':
            return len(view.get('moves') or [])
        shots = view.get('shots') or {}
        return sum(len(shots.get(seat) or []) for seat in SEATS)

    @property
    def winner(self) -> Optional[str]:
        return self.snapshot.get('winner') if self.snapshot else None

    @property
    def winner_player(self) -> Optional[str]:
        winner = self.winner
        return self.players[winner] if winner in SEATS else None

    @property
    def history(self) -> List[dict]:
        return list(self.snapshot.get('history') or []) if self.snapshot else []

    @property
    def board(self):
        if self._board is None:
            return _blank_board(self.mode)
        return copy.deepcopy(self._board)

    # ---- reconciliation ----

    def _reset(self, mode: Optional[str]) -> None:
        self._board = _blank_board(mode)
        self._progress = 0

    def apply_snapshot(self, snapshot: Dict[str, Any]) -> None:
        previous = self.snapshot
        if previous == snapshot:
            return
        if previous is not None and previous.get('gameId') != snapshot.get('gameId'):
            self._reset(snapshot.get('mode'))
            self._ended_game = None
        self.snapshot = snapshot

        view = snapshot.get('view')
        progress = _progress(view)
        if view and snapshot.get('gameId') != self._ended_game and progress > self._progress:
            self._progress = progress
            board = _derive_board(view)
            if board != self._board:
                self._board = board
                self.board_changed.send(self, board=copy.deepcopy(board))

        our_turn = self.is_our_turn
        if our_turn != self._our_turn:
            self._our_turn = our_turn
            self.turn_changed.send(self, is_our_turn=our_turn)

        if snapshot.get('status') == 'OVER' and self._ended_game != snapshot.get('gameId'):
            self._ended_game = snapshot.get('gameId')
            logger.debug(f'[game-ended] area={self.area_id} game={self._ended_game} winner={self.winner}')
            self.game_ended.send(self, winner=self.winner)
            # the next game starts from a blank local projection
            self._reset(snapshot.get('mode'))

        self.updated.send(self, snapshot=snapshot)

    # ---- commands ----

    def _command(self, command: dict) -> dict:
        if self._send is None:
            raise RuntimeError('AreaMirror has no transport to send commands with')
        if self.pending:
            raise CommandRejected('COMMAND_PENDING', 'Another command is still awaiting its acknowledgement')
        self.pending = True
        try:
            ack = self._send('area_command', {'areaId': self.area_id, 'command': command})
        finally:
            self.pending = False
        if isinstance(ack, dict) and 'error' in ack:
            raise CommandRejected(ack.get('code'), ack['error'])
        return ack

    def join_game(self) -> str:
        return self._command({'type': 'JoinGame'})['gameId']

    def make_move(self, move: dict) -> dict:
        if not self.is_active or self.game_id is None:
            raise NoGameInProgress('No game in progress')
        return self._command({'type': 'GameMove', 'gameId': self.game_id, 'move': move})

    def place_ship(self, ship_kind: str, row: int, col: int) -> dict:
        return self.make_move({'kind': 'place', 'shipKind': ship_kind, 'row': row, 'col': col})

    def guess(self, row: int, col: int) -> dict:
        return self.make_move({'kind': 'guess', 'row': row, 'col': col})

    def leave_game(self) -> dict:
        if self.game_id is None:
            raise NoGameInProgress('No game in progress')
        return self._command({'type': 'LeaveGame', 'gameId': self.game_id})
