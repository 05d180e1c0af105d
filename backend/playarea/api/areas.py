from flask import Blueprint, current_app, jsonify, request

from playarea import get_registry
from playarea.games import AreaNotFoundError, GameError

areas = Blueprint('areas', __name__)


def _player_id():
    """Identity is established upstream; we only read what the gateway forwarded."""
    return request.headers.get('X-Player-Id') or None


@areas.errorhandler(GameError)
def handle_game_error(exc):
    current_app.logger.info(f"[reject] path={request.path} player={_player_id()} code={exc.code}")
    return jsonify(exc.to_dict()), 400


@areas.errorhandler(AreaNotFoundError)
def handle_area_not_found(exc):
    return jsonify({'error': str(exc), 'code': 'AREA_NOT_FOUND'}), 404


@areas.route('', methods=['GET'])
def list_areas():
    return jsonify([area.summary() for area in get_registry().all()])


@areas.route('/<string:area_id>/history', methods=['GET'])
def get_history(area_id):
    """
    Returns the area's results, oldest first. Entries never change once recorded.
    """
    area = get_registry().get(area_id)
    return jsonify([result.to_dict() for result in area.history])


@areas.route('/<string:area_id>/state', methods=['GET'])
def get_state(area_id):
    area = get_registry().get(area_id)
    with area.lock:
        viewer = area.viewer_for(_player_id())
        return jsonify(area.snapshot(viewer))


@areas.route('/<string:area_id>/commands', methods=['POST'])
def post_command(area_id):
    player_id = _player_id()
    if not player_id:
        return jsonify({'error': 'X-Player-Id header is required', 'code': 'INVALID_COMMAND'}), 400
    command = request.get_json(silent=True)
    area = get_registry().get(area_id)

    # Emit live update to all clients in the area
    from playarea.socketio_events import broadcast_area
    with area.lock:
        result = area.handle_command(player_id, command)
        broadcast_area(area)
    return jsonify(result)
