import pytest
from flask import session

from reloadrage import create_app
from reloadrage.models import User, db


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    """A request context, for calling the services with flask.session."""
    with app.test_request_context():
        yield session


@pytest.fixture
def counter(app):
    return app.extensions['reloadrage.counter']


@pytest.fixture
def view_count(app):
    def _view_count(username):
        with app.app_context():
            return db.session.execute(
                db.select(User.view_count).where(User.username == username)
            ).scalar_one()
    return _view_count


@pytest.fixture
def signup(app):
    """Register a user on a fresh client and return that client."""
    def _signup(username, password='secret1'):
        c = app.test_client()
        resp = c.post('/register', data={'username': username, 'password': password})
        assert resp.status_code == 302
        return c
    return _signup
