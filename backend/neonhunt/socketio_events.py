from flask_socketio import join_room, leave_room, emit
from neonhunt import socketio
from neonhunt.models import Game


def game_room(game_code: str) -> str:
    return f"game:{game_code}"


def broadcast_claims_changed(game_code: str) -> None:
    """Tell subscribers the claim set of a game changed; they re-fetch it."""
    socketio.emit('claims_changed', {'game_code': game_code}, to=game_room(game_code), namespace='/ws')


def broadcast_state_update(game_code: str) -> None:
    """Tell subscribers the game, its teams or its keywords changed."""
    socketio.emit('state_update', {'game_code': game_code}, to=game_room(game_code), namespace='/ws')


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_game(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    # Codes are matched exactly, same as the HTTP lookup
    game = Game.query.filter(Game.code == game_code).first()
    if not game or game.code != game_code:
        emit('error', {'message': 'Game not found'})
        return
    room = game_room(game.code)
    join_room(room)
    emit('joined', {'room': room, 'game_code': game.code})


def handle_leave_game(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    room = game_room(game_code)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'join_game': handle_join_game,
        'leave_game': handle_leave_game,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
