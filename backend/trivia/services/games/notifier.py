from trivia.messages import Outbound


def room_channel(room_id: str) -> str:
    return f"room:{room_id}"


class SocketIONotifier:
    """Delivers engine messages through Flask-SocketIO.

    Rooms map to Socket.IO rooms named ``room:<id>``; private messages go to
    the player's sid, which is also their identity inside a room.
    """

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def enter(self, identity: str, room_id: str) -> None:
        self.socketio.server.enter_room(identity, room_channel(room_id), namespace=self.namespace)

    def leave(self, identity: str, room_id: str) -> None:
        self.socketio.server.leave_room(identity, room_channel(room_id), namespace=self.namespace)

    def broadcast(self, room_id: str, message: Outbound) -> None:
        self._emit(message, room_channel(room_id))

    def send(self, identity: str, message: Outbound) -> None:
        self._emit(message, identity)

    def _emit(self, message: Outbound, to: str) -> None:
        payload = message.payload()
        if payload is None:
            self.socketio.emit(message.event, to=to, namespace=self.namespace)
        else:
            self.socketio.emit(message.event, payload, to=to, namespace=self.namespace)
