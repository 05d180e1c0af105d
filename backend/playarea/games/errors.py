"""Rejections raised by the game engine.

Every error is request-scoped: it is raised before any state is touched
and handed back to whoever issued the command.
"""


class GameError(Exception):
    code = 'INVALID_PARAMETERS'
    message = 'Invalid parameters'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class GameNotInProgressError(GameError):
    code = 'GAME_NOT_IN_PROGRESS'
    message = 'Game is not in progress'


class GameFullError(GameError):
    code = 'GAME_FULL'
    message = 'Game is full'


class PlayerAlreadyInGameError(GameError):
    code = 'PLAYER_ALREADY_IN_GAME'
    message = 'Player is already in this game'


class PlayerNotInGameError(GameError):
    code = 'PLAYER_NOT_IN_GAME'
    message = 'Player is not in this game'


class NotYourTurnError(GameError):
    code = 'NOT_YOUR_TURN'
    message = 'Not your turn'


class BoardPositionNotEmptyError(GameError):
    code = 'BOARD_POSITION_NOT_EMPTY'
    message = 'Board position is not empty'


class OutOfBoundsError(GameError):
    code = 'OUT_OF_BOUNDS'
    message = 'Position is out of bounds'


class PlacementIncompleteError(GameError):
    code = 'PLACEMENT_INCOMPLETE'
    message = 'Ship placement is not complete'


class GameIdMismatchError(GameError):
    code = 'GAME_ID_MISMATCH'
    message = 'Game ID does not match the game in this area'


class InvalidCommandError(GameError):
    code = 'INVALID_COMMAND'
    message = 'Invalid command'


class AreaNotFoundError(LookupError):
    """Raised for an area id the registry does not know."""

    def __init__(self, area_id):
        super().__init__(f'Area not found: {area_id}')
        self.area_id = area_id
