from functools import wraps

from flask import current_app, request
from flask_socketio import emit

from flexdice import socketio
from flexdice.services.game.errors import GameError


def _controller():
    return current_app.extensions['flexdice']


def _get_sid() -> str:
    return request.sid  # type: ignore


def _reports_errors(event):
    """Send a failed request back to its sender as an ``error`` event."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except GameError as exc:
                current_app.logger.info(f"[error] event={event} sid={_get_sid()} {exc.code}: {exc.message}")
                emit('error', exc.to_dict(event=event))
        return wrapper
    return decorator


def _room_name(data, key='name'):
    # Older clients send the bare room name instead of an object
    if isinstance(data, str):
        return data
    return (data or {}).get(key) or (data or {}).get('room')


def handle_connect():
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(*args):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid}")
    _controller().disconnect(sid)


@_reports_errors('get-available-rooms')
def handle_get_available_rooms(data=None):
    emit('availableRooms', _controller().list_rooms())


@_reports_errors('createRoom')
def handle_create_room(data):
    _controller().create_room(_room_name(data))


@_reports_errors('removeRoom')
def handle_remove_room(data):
    _controller().remove_room(_room_name(data))


@_reports_errors('join-room')
def handle_join_room(data):
    data = data or {}
    _controller().join(
        data.get('room'),
        data.get('playerName') or data.get('username'),
        sid=_get_sid(),
        is_ai=bool(data.get('isAI')),
    )


@_reports_errors('leave-room')
def handle_leave_room(data):
    data = data or {}
    _controller().leave(data.get('room'), data.get('playerName') or data.get('username'), sid=_get_sid())


@_reports_errors('get-users-in-room')
def handle_get_users_in_room(data):
    emit('users-in-room', _controller().members(_room_name(data, key='room')))


@_reports_errors('message')
def handle_message(data):
    data = data or {}
    _controller().post_message(data.get('room'), data.get('sender'), data.get('message'), sid=_get_sid())


@_reports_errors('playerTurn')
def handle_player_turn(data):
    data = data or {}
    _controller().roll(
        data.get('room'),
        player_id=data.get('playerId'),
        player_name=data.get('playerName'),
        roll_results=data.get('rollResults'),
    )


@_reports_errors('skip-turn')
def handle_skip_turn(data):
    _controller().skip_turn(_room_name(data, key='room'))


@_reports_errors('restartGame')
def handle_restart_game(data):
    _controller().restart(_room_name(data, key='room'))


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('get-available-rooms', handle_get_available_rooms, namespace=namespace)
    socketio.on_event('createRoom', handle_create_room, namespace=namespace)
    socketio.on_event('removeRoom', handle_remove_room, namespace=namespace)
    socketio.on_event('join-room', handle_join_room, namespace=namespace)
    socketio.on_event('leave-room', handle_leave_room, namespace=namespace)
    socketio.on_event('get-users-in-room', handle_get_users_in_room, namespace=namespace)
    socketio.on_event('message', handle_message, namespace=namespace)
    socketio.on_event('playerTurn', handle_player_turn, namespace=namespace)
    socketio.on_event('skip-turn', handle_skip_turn, namespace=namespace)
    socketio.on_event('restartGame', handle_restart_game, namespace=namespace)
