"""Typed failures raised by the room and game services.

Each error carries a wire ``code`` (sent in the Socket.IO ``error`` event)
and an HTTP status used by the REST blueprint.
"""


class GameError(Exception):
    code = 'GameError'
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self, event=None):
        payload = {'code': self.code, 'message': self.message}
        if event:
            payload['event'] = event
        return payload


class InvalidRequest(GameError):
    code = 'InvalidRequest'
    status_code = 400


class AlreadyExists(GameError):
    code = 'AlreadyExists'
    status_code = 409


class NotFound(GameError):
    code = 'NotFound'
    status_code = 404


class OutOfTurn(GameError):
    code = 'OutOfTurn'
    status_code = 409


class InvalidState(GameError):
    code = 'InvalidState'
    status_code = 409


class PersistenceFailure(GameError):
    code = 'PersistenceFailure'
    status_code = 503
