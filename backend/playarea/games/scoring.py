from .game import Game
from .models import GameResult, GameStatus, Seat


def result_for(game: Game) -> GameResult:
    """Score a finished game.

    1 to the winning seat and 0 to the other; a tie scores 0 for both.
    """
    if game.status is not GameStatus.OVER:
        raise ValueError(f'Game {game.id} is not over')
    return GameResult(
        game_id=game.id,
        score_a=1 if game.winner is Seat.A else 0,
        score_b=1 if game.winner is Seat.B else 0,
        player_a=game.seats[Seat.A],
        player_b=game.seats[Seat.B],
    )
