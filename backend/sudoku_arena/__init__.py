from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Battle timers: background tasks in prod, a virtual clock under tests
    from sudoku_arena.services.battle.scheduler import ManualScheduler, SocketIOScheduler
    if flask_app.config.get('TESTING') and not flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        flask_app.extensions['battle_scheduler'] = ManualScheduler()
    else:
        flask_app.extensions['battle_scheduler'] = SocketIOScheduler(
            socketio,
            logger=flask_app.logger,
            heartbeat_sec=int(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0)),
        )

    from sudoku_arena.api.profiles import profiles
    flask_app.register_blueprint(profiles, url_prefix='/api/profiles')

    from sudoku_arena.api.battles import battles
    flask_app.register_blueprint(battles, url_prefix='/api/battles')

    # Register Socket.IO event handlers
    try:
        from sudoku_arena.socketio_events import register_socketio_handlers
        register_socketio_handlers(testing=flask_app.config.get('TESTING', False))
    except Exception as exc:
        flask_app.logger.warning(f"SocketIO events not loaded: {exc}")

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from sudoku_arena.models import Profile
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed demo profiles
            for name in ['player1', 'player2', 'player3']:
                db.session.add(Profile(name=name, rating=flask_app.config.get('DEFAULT_RATING', 1000)))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
