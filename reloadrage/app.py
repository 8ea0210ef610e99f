import os
from datetime import timedelta

from flask import Flask, current_app, render_template, session
from jinja2 import TemplateError

from .auth import auth_bp
from .counter import ViewCounter
from .errors import StoreError
from .leaderboard import DEFAULT_SIZE, MAX_SIZE
from .models import db
from .stats_api import stats_bp
from .store import init_store

DB_FILENAME = 'reloadrage.db'
IN_MEMORY_URI = 'sqlite://'


def _database_uri(app):
    """DATABASE_URL, else a file in the instance folder, else in-memory."""
    url = os.getenv('DATABASE_URL')
    if url:
        return url
    path = os.path.join(app.instance_path, DB_FILENAME)
    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError as e:
        app.logger.warning('Could not create %s, falling back to in-memory DB: %s', app.instance_path, e)
        return IN_MEMORY_URI
    # read-only deployments (serverless) get an ephemeral database
    if not os.access(app.instance_path, os.W_OK):
        app.logger.warning('%s is not writable, falling back to in-memory DB', app.instance_path)
        return IN_MEMORY_URI
    return f'sqlite:///{path}'


def _leaderboard_size(app):
    raw = os.getenv('LEADERBOARD_SIZE')
    if not raw:
        return DEFAULT_SIZE
    try:
        size = int(raw)
    except ValueError:
        app.logger.warning('Ignoring invalid LEADERBOARD_SIZE %r', raw)
        return DEFAULT_SIZE
    return max(1, min(size, MAX_SIZE))


def create_app(config=None):
    app = Flask(__name__, instance_relative_config=True)
    app.secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-me')
    app.permanent_session_lifetime = timedelta(hours=24)
    app.logger.setLevel(os.getenv('LOG_LEVEL', 'INFO').upper())

    config = dict(config or {})
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['LEADERBOARD_SIZE'] = _leaderboard_size(app)
    if 'SQLALCHEMY_DATABASE_URI' not in config:
        app.config['SQLALCHEMY_DATABASE_URI'] = _database_uri(app)
    app.config.update(config)

    db.init_app(app)
    with app.app_context():
        try:
            init_store()
        except StoreError:
            app.logger.exception('Error initializing database')

    app.extensions['reloadrage.counter'] = ViewCounter(app.config['LEADERBOARD_SIZE'])

    # ---------------- Routes ----------------
    @app.route('/')
    def index():
        counter = current_app.extensions['reloadrage.counter']
        dashboard = counter.build_dashboard(session.get('user_id'))
        try:
            return render_template('index.html', **dashboard)
        except TemplateError:
            app.logger.exception('Render error (index, logged_in=%s)', dashboard['isLoggedIn'])
            return 'Template render error', 500

    # ---------------- Blueprints ----------------
    app.register_blueprint(auth_bp)
    app.register_blueprint(stats_bp)

    return app
