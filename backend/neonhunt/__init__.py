from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Photo blob store is chosen once per app from config
    from neonhunt.storage import make_photo_storage
    flask_app.extensions['photo_storage'] = make_photo_storage(flask_app.config)

    # Import and register blueprints here
    from neonhunt.main import main
    flask_app.register_blueprint(main)

    from neonhunt.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from neonhunt.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin/<slug>')

    from neonhunt.errors import HuntError

    @flask_app.errorhandler(HuntError)
    def handle_hunt_error(exc):
        return jsonify({'error': exc.message}), exc.status_code

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify({'error': exc.description}), exc.code

    from neonhunt.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo game."""
        from neonhunt.models import Game, Team, Keyword
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            game = Game(code='NEON1', title='Neon Hunters Demo')
            db.session.add(game)
            db.session.flush()
            for name in ['Red', 'Blue']:
                db.session.add(Team(game_id=game.id, name=name))
            for idx, (text, points) in enumerate([('Robot', 5), ('Neon sign', 3), ('Vending machine', 1)]):
                db.session.add(Keyword(game_id=game.id, text=text, points=points, order_index=idx))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
