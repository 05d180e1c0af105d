import threading
import time

import pytest

from conftest import FLEET
from playarea.games import AreaRegistry, GameArea, GameMode, GameStatus, OBSERVER, Seat
from playarea.games.errors import (
    AreaNotFoundError,
    BoardPositionNotEmptyError,
    GameFullError,
    GameIdMismatchError,
    GameNotInProgressError,
    InvalidCommandError,
    NotYourTurnError,
    PlayerNotInGameError,
)


def join(area, player_id):
    return area.handle_command(player_id, {'type': 'JoinGame'})['gameId']


def move(area, player_id, game_id, **payload):
    return area.handle_command(player_id, {'type': 'GameMove', 'gameId': game_id, 'move': payload})


def leave(area, player_id, game_id):
    return area.handle_command(player_id, {'type': 'LeaveGame', 'gameId': game_id})


@pytest.fixture()
def ttt_area():
    return GameArea('ttt', GameMode.TICTACTOE)


@pytest.fixture()
def bs_area():
    return GameArea('bs', GameMode.BATTLESHIP)


def test_join_creates_game_and_second_join_reuses_it(ttt_area):
    game_id = join(ttt_area, 'alice')
    assert ttt_area.game.status is GameStatus.WAITING_TO_START
    assert join(ttt_area, 'bob') == game_id
    assert ttt_area.game.status is GameStatus.IN_PROGRESS


def test_third_player_cannot_join(ttt_area):
    join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    with pytest.raises(GameFullError):
        join(ttt_area, 'carol')


def test_move_and_leave_require_a_game(ttt_area):
    with pytest.raises(GameNotInProgressError):
        move(ttt_area, 'alice', 'nope', row=0, col=0)
    with pytest.raises(GameNotInProgressError):
        leave(ttt_area, 'alice', 'nope')


def test_game_id_must_match(ttt_area):
    join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    with pytest.raises(GameIdMismatchError):
        move(ttt_area, 'alice', 'some-other-game', row=0, col=0)
    with pytest.raises(GameIdMismatchError):
        leave(ttt_area, 'alice', 'some-other-game')


def test_invalid_commands(ttt_area):
    with pytest.raises(InvalidCommandError):
        ttt_area.handle_command('alice', {'type': 'StartGame'})
    with pytest.raises(InvalidCommandError):
        ttt_area.handle_command('alice', 'JoinGame')
    game_id = join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    with pytest.raises(InvalidCommandError):
        ttt_area.handle_command('alice', {'type': 'GameMove', 'gameId': game_id})


def test_win_appends_result(ttt_area):
    game_id = join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    for player, (row, col) in [('alice', (0, 0)), ('bob', (1, 0)), ('alice', (0, 1)),
                               ('bob', (1, 1)), ('alice', (0, 2))]:
        assert move(ttt_area, player, game_id, row=row, col=col) == {'gameId': game_id}
    (result,) = ttt_area.history
    assert result.game_id == game_id
    assert result.scores == {Seat.A: 1, Seat.B: 0}
    assert result.to_dict()['players'] == {'A': 'alice', 'B': 'bob'}


def test_scenario_c_leave_mid_game(ttt_area):
    game_id = join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    assert leave(ttt_area, 'alice', game_id) == {'gameId': game_id}
    assert ttt_area.game.status is GameStatus.OVER
    assert ttt_area.game.winner is Seat.B
    (result,) = ttt_area.history
    assert result.to_dict()['scores'] == {'A': 0, 'B': 1}


def test_leave_while_waiting_records_nothing(ttt_area):
    game_id = join(ttt_area, 'alice')
    leave(ttt_area, 'alice', game_id)
    assert ttt_area.history == ()
    assert ttt_area.game.status is GameStatus.WAITING_TO_START
    # the same game is reused by the next joiner
    assert join(ttt_area, 'bob') == game_id


def test_leaving_a_finished_game_is_rejected(ttt_area):
    game_id = join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    leave(ttt_area, 'alice', game_id)
    with pytest.raises(GameNotInProgressError):
        leave(ttt_area, 'bob', game_id)
    with pytest.raises(PlayerNotInGameError):
        leave(ttt_area, 'carol', game_id)
    assert len(ttt_area.history) == 1


def test_tie_records_zero_zero(ttt_area):
    game_id = join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    order = [(0, 0), (0, 1), (0, 2), (1, 1), (1, 0), (1, 2), (2, 1), (2, 0), (2, 2)]
    for i, (row, col) in enumerate(order):
        move(ttt_area, 'alice' if i % 2 == 0 else 'bob', game_id, row=row, col=col)
    assert ttt_area.history[0].to_dict()['scores'] == {'A': 0, 'B': 0}


def test_join_after_game_over_starts_fresh_game_and_history_is_stable(ttt_area):
    first = join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    leave(ttt_area, 'bob', first)
    recorded = ttt_area.history[0]

    second = join(ttt_area, 'bob')
    assert second != first
    assert ttt_area.game.seats == {Seat.A: 'bob', Seat.B: None}
    join(ttt_area, 'alice')
    leave(ttt_area, 'alice', second)

    assert len(ttt_area.history) == 2
    assert ttt_area.history[0] is recorded
    assert ttt_area.history[0].to_dict()['scores'] == {'A': 1, 'B': 0}
    with pytest.raises(AttributeError):
        ttt_area.history.append(recorded)


def test_history_length_never_decreases(ttt_area):
    lengths = []
    commands = [
        ('alice', {'type': 'JoinGame'}),
        ('bob', {'type': 'JoinGame'}),
        ('carol', {'type': 'JoinGame'}),
        ('alice', {'type': 'LeaveGame'}),
        ('alice', {'type': 'JoinGame'}),
        ('bob', {'type': 'Bogus'}),
    ]
    for player, command in commands:
        if command['type'] == 'LeaveGame':
            command = dict(command, gameId=ttt_area.game.id)
        try:
            ttt_area.handle_command(player, command)
        except Exception:
            pass
        lengths.append(len(ttt_area.history))
    assert lengths == sorted(lengths)
    assert lengths[-1] == 1


def test_battleship_win_through_area(bs_area):
    game_id = join(bs_area, 'alice')
    join(bs_area, 'bob')
    for player in ('alice', 'bob'):
        for kind, row, col in FLEET:
            move(bs_area, player, game_id, kind='place', shipKind=kind, row=row, col=col)
    move(bs_area, 'alice', game_id, kind='guess', row=9, col=9)
    for ship in bs_area.game.state.fleets[Seat.A]:
        for row, col in sorted(ship.cells):
            move(bs_area, 'bob', game_id, kind='guess', row=row, col=col)
    assert bs_area.game.winner is Seat.B
    assert bs_area.history[0].to_dict()['scores'] == {'A': 0, 'B': 1}


def test_snapshot_shape_and_viewer_resolution(bs_area):
    assert bs_area.snapshot(OBSERVER)['view'] is None
    game_id = join(bs_area, 'alice')
    join(bs_area, 'bob')
    assert bs_area.viewer_for('alice') is Seat.A
    assert bs_area.viewer_for('bob') is Seat.B
    assert bs_area.viewer_for('carol') == OBSERVER
    assert bs_area.viewer_for(None) == OBSERVER
    snapshot = bs_area.snapshot(Seat.A)
    assert snapshot['gameId'] == game_id
    assert snapshot['status'] == 'IN_PROGRESS'
    assert snapshot['winner'] is None
    assert snapshot['players'] == {'A': 'alice', 'B': 'bob'}
    assert snapshot['history'] == []
    assert snapshot['view']['viewer'] == 'A'


def test_concurrent_moves_are_serialized(ttt_area):
    """Both players hammer the area at once; each cell is marked exactly once."""
    game_id = join(ttt_area, 'alice')
    join(ttt_area, 'bob')
    cells = [(r, c) for r in range(3) for c in range(3)]
    errors = []
    start = threading.Barrier(2)

    def play(player_id):
        start.wait()
        deadline = time.time() + 5
        while ttt_area.game.status is not GameStatus.OVER and time.time() < deadline:
            for row, col in cells:
                try:
                    move(ttt_area, player_id, game_id, row=row, col=col)
                except (NotYourTurnError, GameNotInProgressError, BoardPositionNotEmptyError):
                    pass
                except Exception as exc:
                    errors.append(exc)
            time.sleep(0)

    threads = [threading.Thread(target=play, args=(p,)) for p in ('alice', 'bob')]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    game = ttt_area.game
    marks = game.state.moves
    assert len({(m.row, m.col) for m in marks}) == len(marks)
    # seats strictly alternate, starting with A
    assert [m.seat for m in marks] == [Seat.A if i % 2 == 0 else Seat.B for i in range(len(marks))]
    assert game.status is GameStatus.OVER
    assert len(ttt_area.history) == 1
    assert errors == []


def test_registry_from_config():
    registry = AreaRegistry.from_config(' ttt:tictactoe , bs:battleship ,')
    assert [a.id for a in registry.all()] == ['ttt', 'bs']
    assert registry.get('bs').mode is GameMode.BATTLESHIP
    with pytest.raises(AreaNotFoundError):
        registry.get('missing')
    with pytest.raises(ValueError):
        registry.add('ttt', GameMode.TICTACTOE)
    with pytest.raises(ValueError):
        AreaRegistry.from_config('x:checkers')
