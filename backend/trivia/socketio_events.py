from flask import current_app, request
from flask_socketio import emit

from trivia.messages import AnswerQuestion, Error, JoinGame

NAMESPACE = '/ws'


def _registry():
    return current_app.extensions['trivia']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(reason=None):
    room_id = _registry().leave(_get_sid())
    if room_id:
        current_app.logger.info(f"[disconnect] sid={_get_sid()} room={room_id} reason={reason}")


def handle_join_game(data):
    message = JoinGame.parse(data)
    if message is None:
        error = Error('username and room are required')
        emit(error.event, error.payload())
        return
    _registry().join(_get_sid(), message.username, message.room)


def handle_answer_question(data):
    message = AnswerQuestion.parse(data)
    if message is None:
        return
    _registry().submit_answer(_get_sid(), message.answer)


def handle_leave_game(data=None):
    room_id = _registry().leave(_get_sid())
    if room_id:
        emit('left', {'room': room_id})


def register_socketio_handlers(socketio, namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('joinGame', handle_join_game, namespace=namespace)
    socketio.on_event('answerQuestion', handle_answer_question, namespace=namespace)
    socketio.on_event('leaveGame', handle_leave_game, namespace=namespace)
