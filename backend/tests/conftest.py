import os
import sys
import pytest

# Ensure the backend root (containing the `flexdice` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from flexdice import create_app, db, socketio
from flexdice.services.game.controller import SessionController
from flexdice.services.game.dice import RollResolver
from flexdice.services.game.registry import RoomRegistry
from flexdice.services.game.state import Face
from flexdice.store import SqlStore


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STARTING_CHIPS = 3
    MIN_PLAYERS = 2
    PERSIST_WRITE_RETRIES = 1


class ScriptedDice:
    """Stands in for random.Random: hands out faces from a script like 'LCR..'."""

    def __init__(self, script=''):
        self.faces = [Face(ch) for ch in script]

    def push(self, script):
        self.faces.extend(Face(ch) for ch in script)

    def choice(self, seq):
        if not self.faces:
            raise AssertionError('dice script exhausted')
        return self.faces.pop(0)


class RecordingTransport:
    def __init__(self):
        self.sent = []
        self.channels = {}

    def join(self, sid, channel):
        self.channels.setdefault(channel, set()).add(sid)

    def leave(self, sid, channel):
        self.channels.get(channel, set()).discard(sid)

    def emit_to(self, sid, event, payload):
        self.sent.append((sid, event, payload))

    def broadcast(self, channel, event, payload, skip_sid=None):
        self.sent.append((channel, event, payload))

    def broadcast_all(self, event, payload):
        self.sent.append(('*', event, payload))

    def close(self, channel):
        self.channels.pop(channel, None)

    def events(self, name):
        return [payload for (_, event, payload) in self.sent if event == name]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import flexdice.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def dice(flask_app):
    scripted = ScriptedDice()
    flask_app.extensions['flexdice'].resolver.rng = scripted
    return scripted


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def controller(flask_app, transport):
    """A controller over the test database that records instead of emitting."""
    store = SqlStore()
    return SessionController(
        RoomRegistry(store),
        store,
        transport,
        RollResolver(rng=ScriptedDice()),
        logger=flask_app.logger,
    )


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        c = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        c.get_received()
        clients.append(c)
        return c

    yield _make
    for c in clients:
        try:
            c.disconnect()
        except Exception:
            pass
