from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

# Handlers run inline so each connection is served in arrival order
socketio = SocketIO(async_mode=None, async_handlers=False)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One session engine per application; handlers reach it via current_app
    from bananadoro.services.sessions import SessionEngine
    engine = SessionEngine.from_config(flask_app.config, socketio, flask_app.logger)
    flask_app.extensions['bananadoro'] = engine

    from bananadoro.main import main
    flask_app.register_blueprint(main)

    from bananadoro.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'))

    # Tick loop is started here; tests drive ticks by hand unless enabled
    if not flask_app.config.get('TESTING') or flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        engine.start_scheduler()

    return flask_app
