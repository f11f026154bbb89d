import time

from conftest import TestConfig
from scoreguard import create_app
from scoreguard.services.games.scheduler import start_maintenance, sweep_cache, sweep_rate_limits


def test_maintenance_is_skipped_when_testing(flask_app, monkeypatch):
    started = []
    monkeypatch.setattr('scoreguard.socketio.start_background_task', lambda *a, **k: started.append(a))
    start_maintenance(flask_app)
    assert started == []


def test_maintenance_starts_once_per_app(flask_app, monkeypatch):
    started = []
    monkeypatch.setattr('scoreguard.socketio.start_background_task', lambda *a, **k: started.append(a[1]))
    flask_app.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    start_maintenance(flask_app)
    start_maintenance(flask_app)
    assert started == ['buckets', 'cache']
    assert flask_app.extensions['scoreguard_maintenance'] is True

    # a fresh app gets its own workers
    other = create_app(TestConfig)
    other.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    start_maintenance(other)
    assert started == ['buckets', 'cache', 'buckets', 'cache']


def test_sweep_cache_drops_expired_entries(flask_app):
    cache = flask_app.extensions['scoreguard_cache']
    cache.set('old', 1, ttl=-1)
    cache.set('fresh', 2, ttl=60)
    assert sweep_cache(flask_app) == 1
    assert cache.get('fresh') == 2


def test_sweep_rate_limits_evicts_idle_buckets(flask_app):
    limiter = flask_app.extensions['scoreguard_ratelimit']
    limiter.check_adaptive('1.2.3.4')
    flask_app.config['BUCKET_IDLE_TTL_SEC'] = 0
    time.sleep(0.01)
    assert sweep_rate_limits(flask_app) == 1
    assert limiter.stats()['buckets'] == 0
