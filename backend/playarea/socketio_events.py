from flask import current_app, request
from flask_socketio import emit, join_room, leave_room
from typing import Any, Dict, Optional

from playarea import get_registry, socketio
from playarea.games import AreaNotFoundError, GameArea, GameError, GameStatus
from playarea.games.area import LEAVE_GAME
from playarea.games.visibility import viewer_key

# sid -> {'player_id', 'area_id', 'namespace'}
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room(area_id: str) -> str:
    return f"area:{area_id}"


def broadcast_area(area: GameArea) -> None:
    """Send every occupant of ``area`` the snapshot for its own viewer class.

    At most one projection is built per viewer class (seat A, seat B,
    observer). Call with ``area.lock`` held so snapshots go out in commit
    order.
    """
    by_viewer: Dict[str, dict] = {}
    recipients = 0
    for sid, ctx in list(_sid_to_ctx.items()):
        if ctx.get('area_id') != area.id:
            continue
        viewer = area.viewer_for(ctx['player_id'])
        key = viewer_key(viewer)
        if key not in by_viewer:
            by_viewer[key] = area.snapshot(viewer)
        socketio.emit('area_snapshot', by_viewer[key], to=sid, namespace=ctx['namespace'])
        recipients += 1
    current_app.logger.debug(f"[fanout] area={area.id} recipients={recipients} views={sorted(by_viewer)}")


def _leave_if_seated(area: GameArea, player_id: str) -> None:
    """Leaving the area forfeits any seat held in a live game."""
    with area.lock:
        game = area.game
        if game is None or game.status is GameStatus.OVER or game.seat_of(player_id) is None:
            return
        area.handle_command(player_id, {'type': LEAVE_GAME, 'gameId': game.id})
        current_app.logger.info(f"[forfeit] area={area.id} game={game.id} player={player_id}")
        broadcast_area(area)


def _still_present(player_id: str, area_id: str) -> bool:
    """True while another socket of ``player_id`` is in ``area_id``."""
    return any(
        ctx['player_id'] == player_id and ctx.get('area_id') == area_id
        for ctx in _sid_to_ctx.values()
    )


def _exit_current_area(sid: str) -> Optional[str]:
    ctx = _sid_to_ctx.get(sid)
    if not ctx or not ctx.get('area_id'):
        return None
    area_id = ctx['area_id']
    ctx['area_id'] = None
    leave_room(_room(area_id))
    if _still_present(ctx['player_id'], area_id):
        current_app.logger.debug(f"[exit] area={area_id} player={ctx['player_id']} other sockets remain")
        return area_id
    try:
        area = get_registry().get(area_id)
    except AreaNotFoundError:
        return area_id
    _leave_if_seated(area, ctx['player_id'])
    return area_id


def handle_connect(auth=None):
    player_id = (auth.get('player_id') if isinstance(auth, dict) else None) or _get_sid()
    _sid_to_ctx[_get_sid()] = {'player_id': player_id, 'area_id': None, 'namespace': request.namespace}
    emit('connected', {'message': 'Connected', 'playerId': player_id})


def handle_disconnect(reason=None):
    sid = _get_sid()
    _exit_current_area(sid)
    _sid_to_ctx.pop(sid, None)


def handle_enter_area(data):
    area_id = data.get('areaId') if isinstance(data, dict) else None
    if not area_id:
        emit('error', {'error': 'areaId is required', 'code': 'INVALID_COMMAND'})
        return
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx is None:
        emit('error', {'error': 'Not connected', 'code': 'INVALID_COMMAND'})
        return
    try:
        area = get_registry().get(area_id)
    except AreaNotFoundError as exc:
        emit('error', {'error': str(exc), 'code': 'AREA_NOT_FOUND'})
        return
    if ctx.get('area_id') != area.id:
        _exit_current_area(_get_sid())
        join_room(_room(area.id))
        ctx['area_id'] = area.id
    emit('entered', {'areaId': area.id, 'mode': area.mode.value})
    emit('area_snapshot', area.snapshot(area.viewer_for(ctx['player_id'])))


def handle_exit_area(data):
    area_id = data.get('areaId') if isinstance(data, dict) else None
    ctx = _sid_to_ctx.get(_get_sid())
    if not ctx or not area_id or ctx.get('area_id') != area_id:
        emit('error', {'error': 'Not in that area', 'code': 'INVALID_COMMAND'})
        return
    _exit_current_area(_get_sid())
    emit('exited', {'areaId': area_id})


def handle_area_command(data):
    """Run one JoinGame / GameMove / LeaveGame command; the return value is the ack."""
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx is None:
        return {'error': 'Not connected', 'code': 'INVALID_COMMAND'}
    if not isinstance(data, dict):
        error = {'error': 'Command payload must be an object', 'code': 'INVALID_COMMAND'}
        emit('error', error)
        return error
    area_id = data.get('areaId') or ctx.get('area_id')
    try:
        area = get_registry().get(area_id)
    except AreaNotFoundError as exc:
        emit('error', {'error': str(exc), 'code': 'AREA_NOT_FOUND'})
        return {'error': str(exc), 'code': 'AREA_NOT_FOUND'}

    player_id = ctx['player_id']
    command = data.get('command')
    try:
        with area.lock:
            result = area.handle_command(player_id, command)
            broadcast_area(area)
    except GameError as exc:
        current_app.logger.info(f"[reject] area={area.id} player={player_id} code={exc.code} message={exc.message}")
        emit('error', exc.to_dict())
        return exc.to_dict()
    return result


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(namespace: str = '/ws', testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on ``namespace``. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [namespace]
    if testing and namespace != '/':
        namespaces.append('/')
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('disconnect', handle_disconnect, namespace=ns)
        socketio.on_event('enter_area', handle_enter_area, namespace=ns)
        socketio.on_event('exit_area', handle_exit_area, namespace=ns)
        socketio.on_event('area_command', handle_area_command, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)
