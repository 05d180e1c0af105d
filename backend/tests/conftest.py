import os
import sys
import pytest

# Ensure the backend root (containing the `playarea` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from playarea import create_app, socketio
from playarea.games import Game, GameMode


# Battleship layout used across tests (horizontal, 17 cells):
# carrier row 0 cols 0-4, battleship row 2 cols 3-6, cruiser row 4 cols 0-2,
# submarine row 6 cols 0-2, destroyer row 8 cols 0-1
FLEET = [
    ('carrier', 0, 0),
    ('battleship', 2, 3),
    ('cruiser', 4, 0),
    ('submarine', 6, 0),
    ('destroyer', 8, 0),
]
FLEET_CELLS = sorted(
    (row, col + i)
    for kind, row, col in FLEET
    for i in range({'carrier': 5, 'battleship': 4, 'cruiser': 3, 'submarine': 3, 'destroyer': 2}[kind])
)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    GAME_AREAS = 'ttt:tictactoe,bs:battleship'
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'
    SOCKETIO_NAMESPACE = '/ws'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client_factory(flask_app):
    """Build Socket.IO test clients that identify as the given player."""
    created = []

    def make(player_id=None):
        auth = {'player_id': player_id} if player_id else None
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws',
            auth=auth,
        )
        created.append(test_client)
        return test_client

    yield make
    for test_client in created:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')


@pytest.fixture()
def sio_client(sio_client_factory):
    return sio_client_factory()


@pytest.fixture()
def tictactoe_game():
    game = Game(GameMode.TICTACTOE)
    game.join('alice')
    game.join('bob')
    return game


def place_fleet(game, player_id):
    for kind, row, col in FLEET:
        game.apply_move(player_id, {'kind': 'place', 'shipKind': kind, 'row': row, 'col': col})


@pytest.fixture()
def battleship_game():
    """A Battleship game with both seats filled, nothing placed yet."""
    game = Game(GameMode.BATTLESHIP)
    game.join('alice')
    game.join('bob')
    return game


@pytest.fixture()
def placed_battleship_game(battleship_game):
    """Both fleets placed with ``FLEET``; seat A to fire first."""
    place_fleet(battleship_game, 'alice')
    place_fleet(battleship_game, 'bob')
    return battleship_game
