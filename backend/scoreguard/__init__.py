from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def init_anticheat(flask_app):
    """Build the per-process anti-cheat state and hang it off the app."""
    from scoreguard.services.anticheat import AntiCheatAdmin, AntiCheatOrchestrator, AntiCheatPolicy, RiskStore
    from scoreguard.services.cache import ResponseCache
    from scoreguard.services.games.sessions import SqlSessionManager
    from scoreguard.services.ratelimit import RateLimiter

    policy = AntiCheatPolicy.from_config(flask_app.config)
    store = RiskStore(
        history_size=policy.history_size,
        history_max_keys=policy.history_max_keys,
        incident_cap=policy.incident_cap,
    )
    orchestrator = AntiCheatOrchestrator(
        store,
        secret=flask_app.config['ANTI_CHEAT_SECRET'],
        policy=policy,
        session_manager=SqlSessionManager(clock_slack_ms=policy.session_clock_slack_ms),
    )
    flask_app.extensions['scoreguard'] = orchestrator
    flask_app.extensions['scoreguard_admin'] = AntiCheatAdmin(orchestrator.risk)
    flask_app.extensions['scoreguard_ratelimit'] = RateLimiter(
        adaptive_base=int(flask_app.config.get('ADAPTIVE_RATE_LIMIT_BASE', 100)),
        adaptive_window_seconds=int(flask_app.config.get('ADAPTIVE_RATE_LIMIT_WINDOW_SEC', 900)),
    )
    flask_app.extensions['scoreguard_cache'] = ResponseCache(
        default_ttl=int(flask_app.config.get('LEADERBOARD_CACHE_TTL_SEC', 300)),
    )


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = flask_app.config.get('CORS_ORIGINS', [])
    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    init_anticheat(flask_app)

    from scoreguard.middleware import adaptive_rate_limit
    flask_app.before_request(adaptive_rate_limit)

    # Import and register blueprints here
    from scoreguard.main import main
    flask_app.register_blueprint(main)

    from scoreguard.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api/scores')

    from scoreguard.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    from scoreguard.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from scoreguard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from scoreguard.services.games.scheduler import start_maintenance
    start_maintenance(flask_app)

    # Flask-Login user loader
    from scoreguard.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u)
                user.set_password('password')
                db.session.add(user)
            admin_user = User(username='admin', role='admin')
            admin_user.set_password('password')
            db.session.add(admin_user)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
