from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Game services: one controller per app, reached via current_app.extensions
    from flexdice.store import SqlStore
    from flexdice.transport import SocketIOTransport
    from flexdice.services.game.bots import BotScheduler
    from flexdice.services.game.controller import SessionController

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    controller = SessionController.from_config(
        flask_app.config,
        SqlStore(),
        SocketIOTransport(socketio, namespace=namespace),
        logger=flask_app.logger,
    )
    controller.bot_scheduler = BotScheduler(flask_app, socketio, controller)
    flask_app.extensions['flexdice'] = controller

    from flexdice.main import main
    flask_app.register_blueprint(main)

    from flexdice.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from flexdice.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        import flexdice.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            controller.create_room('lobby')
            click.echo('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
