import os
import sys
import time
import pytest

# Ensure the backend root (containing the `scoreguard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from scoreguard import create_app, db, socketio
from scoreguard.services.anticheat import generate_signature


TEST_SECRET = 'test-anticheat-secret'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    CORS_ORIGINS = ['http://localhost:5173']
    ANTI_CHEAT_SECRET = TEST_SECRET
    REQUIRE_SIGNATURE = True
    TIMESTAMP_MAX_AGE_MS = 24 * 60 * 60 * 1000
    TIMESTAMP_FUTURE_TOLERANCE_MS = 0
    ADJUST_SCORE_BY_CONFIDENCE = True
    SESSION_CLOCK_SLACK_MS = 2000
    RATE_LIMIT_ENABLED = True
    RATE_LIMIT_BYPASS_TOKEN = 'test-bypass-token'
    ADAPTIVE_RATE_LIMIT_BASE = 100
    ADAPTIVE_RATE_LIMIT_WINDOW_SEC = 900
    LEADERBOARD_CACHE_TTL_SEC = 300


class FakeClock:
    """Manually advanced clock in epoch milliseconds."""

    def __init__(self, start_ms=1_700_000_000_000):
        self.now = start_ms

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Requests must get their own app context; flask_login caches the user on g
    with application.app_context():
        # Ensure models are imported so tables are created
        import scoreguard.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


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


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def make_user(flask_app):
    from scoreguard.models import User

    def _make(username, password='password', role='player', subscription='free'):
        with flask_app.app_context():
            user = User(username=username, role=role, subscription=subscription)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            # load the columns so the detached instance stays readable
            db.session.refresh(user)
            return user
    return _make


def login(client, username, password='password'):
    return client.post('/login', json={'username': username, 'password': password})


def signed_payload(user_id, game_id, score, duration=120000, timestamp=None, secret=TEST_SECRET, **extra):
    timestamp = int(time.time() * 1000) - 1000 if timestamp is None else timestamp
    payload = {
        'score': score,
        'timestamp': timestamp,
        'signature': generate_signature(str(user_id), game_id, score, timestamp, secret),
        'duration': duration,
    }
    payload.update(extra)
    return payload
