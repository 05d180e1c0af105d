import click
from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

from playarea.games import AreaRegistry

socketio = SocketIO(async_mode=None)


def get_registry() -> AreaRegistry:
    return current_app.extensions['playarea']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    # app.logger is the "playarea" logger, so engine modules log through it too
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    flask_app.extensions['playarea'] = AreaRegistry.from_config(flask_app.config.get('GAME_AREAS', ''))
    flask_app.logger.info(
        f"[areas] {', '.join(f'{a.id}:{a.mode.value}' for a in flask_app.extensions['playarea'].all())}"
    )

    # Import and register blueprints here
    from playarea.main import main
    flask_app.register_blueprint(main)

    from playarea.api.areas import areas
    flask_app.register_blueprint(areas, url_prefix='/api/areas')

    @click.command('areas')
    def areas_command():
        """Lists the configured game areas and their recorded results."""
        for area in flask_app.extensions['playarea'].all():
            status = area.game.status.value if area.game else '-'
            click.echo(f"{area.id}\t{area.mode.value}\t{status}\t{len(area.history)} results")

    flask_app.cli.add_command(areas_command)

    from playarea.socketio_events import register_socketio_handlers
    register_socketio_handlers(
        namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'),
        testing=flask_app.config.get('TESTING', False),
    )

    return flask_app
