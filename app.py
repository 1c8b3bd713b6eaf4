import logging
import os

from flask import Flask, jsonify

from models import db
from engine.errors import TournamentError
from blueprints import teams_bp, tournaments_bp

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

logger = logging.getLogger(__name__)


def _database_uri():
    """DATABASE_URL when set, otherwise a SQLite file under instance/."""
    database_url = os.environ.get('DATABASE_URL')
    if database_url:
        # SQLAlchemy only accepts the postgresql scheme.
        if database_url.startswith('postgres://'):
            database_url = database_url.replace('postgres://', 'postgresql://', 1)
        return database_url

    default_sqlite_dir = os.path.join(BASE_DIR, 'instance')
    os.makedirs(default_sqlite_dir, exist_ok=True)
    sqlite_path = os.environ.get('SQLITE_PATH', os.path.join(default_sqlite_dir, 'squad.db'))
    return f'sqlite:///{sqlite_path}'


def create_app(test_config=None):
    app = Flask(__name__)

    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'squad-tournaments')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if test_config is None or 'SQLALCHEMY_DATABASE_URI' not in test_config:
        app.config['SQLALCHEMY_DATABASE_URI'] = _database_uri()
    if test_config:
        app.config.update(test_config)

    if not app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {
            'pool_pre_ping': True,
            'pool_recycle': 300,
        }

    db.init_app(app)

    with app.app_context():
        db.create_all()
        logger.info('Database ready (%s)', db.engine.url.get_backend_name())

    # Register blueprints
    app.register_blueprint(tournaments_bp)
    app.register_blueprint(teams_bp)

    @app.errorhandler(TournamentError)
    def handle_tournament_error(error):
        db.session.rollback()
        return jsonify({'error': str(error)}), error.status_code

    @app.errorhandler(ValueError)
    def handle_value_error(error):
        db.session.rollback()
        return jsonify({'error': str(error)}), 400

    @app.route('/')
    def index():
        return jsonify({'service': 'squad-tournaments', 'status': 'ok'})

    return app


if __name__ == "__main__":
    create_app().run(debug=True, port=5000)
