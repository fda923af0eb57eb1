from flask_socketio import join_room, leave_room


class SocketIOTransport:
    """Channel grouping and delivery over a Flask-SocketIO server.

    A room's channel name is the room name itself.
    """

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace

    def join(self, sid, channel):
        join_room(channel, sid=sid, namespace=self.namespace)

    def leave(self, sid, channel):
        leave_room(channel, sid=sid, namespace=self.namespace)

    def emit_to(self, sid, event, payload):
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)

    def broadcast(self, channel, event, payload, skip_sid=None):
        self.socketio.emit(event, payload, to=channel, skip_sid=skip_sid, namespace=self.namespace)

    def broadcast_all(self, event, payload):
        self.socketio.emit(event, payload, namespace=self.namespace)

    def close(self, channel):
        self.socketio.close_room(channel, namespace=self.namespace)
