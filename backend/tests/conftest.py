import logging
import os
import sys
import pytest

# Ensure the backend root (containing the `bananadoro` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bananadoro import create_app, socketio
from bananadoro.services.sessions import SessionEngine


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ALLOWED_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/ws'
    DEFAULT_WORK_DURATION_SEC = 1500
    DEFAULT_BREAK_DURATION_SEC = 300
    TICK_INTERVAL_SEC = 1.0
    REAP_GRACE_SEC = 600
    SESSION_CODE_LENGTH = 6
    TIMER_HEARTBEAT_SEC = 0


class RecordingEmitter:
    """Stands in for the Socket.IO server: rooms plus every emitted packet.

    Emits to a room are recorded once per member sid, so tests can ask
    what a given connection received.
    """

    def __init__(self):
        self.calls = []
        self.rooms = {}

    def __call__(self, event, payload, to=None):
        for sid in sorted(self.rooms.get(to, {to})):
            self.calls.append((event, payload, sid))

    def enter_room(self, sid, room):
        self.rooms.setdefault(room, set()).add(sid)

    def leave_room(self, sid, room):
        self.rooms.get(room, set()).discard(sid)

    def for_sid(self, sid, event='tick'):
        return [payload for (ev, payload, to) in self.calls if to == sid and ev == event]

    def clear(self):
        self.calls.clear()


class ManualTasks:
    """Collects background tasks so tests decide when they run."""

    def __init__(self):
        self.pending = []

    def __call__(self, fn, *args, **kwargs):
        self.pending.append((fn, args, kwargs))

    def run_all(self):
        pending, self.pending = self.pending, []
        for fn, args, kwargs in pending:
            fn(*args, **kwargs)


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def tasks():
    return ManualTasks()


@pytest.fixture()
def engine(emitter, tasks):
    return SessionEngine(
        emit=emitter,
        enter_room=emitter.enter_room,
        leave_room=emitter.leave_room,
        start_background_task=tasks,
        sleep=lambda seconds: None,
        logger=logging.getLogger('bananadoro.tests'),
        default_work_sec=1500,
        default_break_sec=300,
        reap_grace_sec=600,
    )


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application
    application.extensions['bananadoro'].shutdown()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
