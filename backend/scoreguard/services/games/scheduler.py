from scoreguard import socketio


def sweep_rate_limits(app) -> int:
    """Evict idle rate-limit buckets and finished windows."""
    limiter = app.extensions['scoreguard_ratelimit']
    removed = limiter.sweep(idle_seconds=int(app.config.get('BUCKET_IDLE_TTL_SEC', 3600)))
    app.logger.info(f"[sweep-buckets] removed={removed} remaining={limiter.stats()}")
    return removed


def sweep_cache(app) -> int:
    cache = app.extensions['scoreguard_cache']
    return cache.clean_expired()


def start_maintenance(app) -> None:
    """Start the periodic sweeps for this app.

    - No-ops in TESTING mode
    - At most one set of workers per app
    - Workers never touch request processing; each pass is logged
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return
    if app.extensions.get('scoreguard_maintenance'):
        app.logger.info('[sweep-skip] maintenance already running')
        return
    app.extensions['scoreguard_maintenance'] = True

    def _worker(name, sweep, interval):
        app.logger.info(f"[sweep-start] job={name} interval={interval}s")
        while True:
            socketio.sleep(interval)
            try:
                sweep(app)
            except Exception:
                app.logger.exception(f"[sweep-error] job={name}")

    jobs = (
        ('buckets', sweep_rate_limits, int(app.config.get('BUCKET_SWEEP_INTERVAL_SEC', 1800))),
        ('cache', sweep_cache, int(app.config.get('CACHE_SWEEP_INTERVAL_SEC', 300))),
    )
    for name, sweep, interval in jobs:
        if interval > 0:
            socketio.start_background_task(_worker, name, sweep, interval)
