from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config, scheduler=None, question_bank=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from trivia.services.games.engine import GameSettings
    from trivia.services.games.notifier import SocketIONotifier
    from trivia.services.games.question_bank import QuestionBank
    from trivia.services.games.registry import RoomRegistry
    from trivia.services.games.scheduler import SocketIOScheduler
    from trivia.socketio_events import NAMESPACE, register_socketio_handlers

    if question_bank is None:
        question_bank = QuestionBank.load_or_default(flask_app.config['QUESTIONS_PATH'], flask_app.logger)
    if scheduler is None:
        scheduler = SocketIOScheduler(socketio, flask_app.logger)

    # One registry per app; handlers reach it through current_app
    flask_app.extensions['trivia'] = RoomRegistry(
        question_bank,
        SocketIONotifier(socketio, namespace=NAMESPACE),
        scheduler,
        settings=GameSettings.from_config(flask_app.config),
        logger=flask_app.logger,
    )

    from trivia.main import main
    flask_app.register_blueprint(main)

    register_socketio_handlers(socketio, namespace=NAMESPACE)

    @click.command('questions-check')
    def questions_check_command():
        """Loads the question bank and reports what the server would serve."""
        path = flask_app.config['QUESTIONS_PATH']
        bank = QuestionBank.load_or_default(path, flask_app.logger)
        if bank.is_fallback:
            click.echo(f'Could not load {path}; the built-in question set ({len(bank)} question) would be used.')
        else:
            click.echo(f'Loaded {len(bank)} questions from {path}.')

    flask_app.cli.add_command(questions_check_command)

    return flask_app
