import random
import threading

from jinja2 import TemplateError

from reloadrage import leaderboard
from reloadrage.errors import StoreError
from reloadrage.models import GlobalStats, User, db


def _register(app, username):
    with app.app_context():
        user = User(username=username, password='x')
        db.session.add(user)
        db.session.commit()
        return user.id


def _anonymous_views(app):
    with app.app_context():
        return db.session.get(GlobalStats, 1).anonymous_views


def _broken(*args, **kwargs):
    raise StoreError('database is locked')


class TestRecordVisit:

    def test_fresh_store_total_is_zero(self, app):
        with app.app_context():
            assert leaderboard.total_views() == 0
            assert db.session.query(GlobalStats).count() == 1

    def test_authenticated_visit_counts_for_user(self, app, counter, view_count):
        uid = _register(app, 'alice')
        with app.app_context():
            for _ in range(5):
                counter.record_visit(uid)
        assert view_count('alice') == 5
        assert _anonymous_views(app) == 0

    def test_anonymous_visit_counts_globally(self, app, counter, view_count):
        _register(app, 'alice')
        with app.app_context():
            assert counter.record_visit(None) == 1
            assert counter.record_visit(None) == 2
        assert _anonymous_views(app) == 2
        assert view_count('alice') == 0

    def test_visit_for_deleted_user_is_dropped(self, app, counter):
        with app.app_context():
            assert counter.record_visit(999) == 0
        assert _anonymous_views(app) == 0

    def test_total_matches_sum_after_mixed_visits(self, app, counter):
        ids = [_register(app, name) for name in ('alice', 'bob', 'carol')]
        rnd = random.Random(1234)
        with app.app_context():
            for _ in range(60):
                total = counter.record_visit(rnd.choice(ids + [None, None]))
                users_sum = sum(u.view_count for u in db.session.query(User))
                anon = db.session.get(GlobalStats, 1).anonymous_views
                assert total == users_sum + anon
            assert leaderboard.total_views() == 60

    def test_concurrent_visits_are_not_lost(self, app, counter, view_count):
        uid = _register(app, 'alice')
        workers = 20
        per_worker = 5
        errors = []

        def visit():
            try:
                for _ in range(per_worker):
                    with app.app_context():
                        counter.increment(uid)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=visit) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert view_count('alice') == workers * per_worker


class TestFailOpen:

    def test_failed_increment_still_returns_total(self, app, counter, monkeypatch):
        uid = _register(app, 'alice')
        with app.app_context():
            counter.record_visit(uid)
            monkeypatch.setattr('reloadrage.store.increment_user_views', _broken)
            assert counter.record_visit(uid) == 1

    def test_failed_read_returns_last_known_total(self, app, counter, monkeypatch):
        with app.app_context():
            assert counter.record_visit() == 1
            monkeypatch.setattr('reloadrage.store.total_views', _broken)
            assert counter.record_visit() == 1
        assert _anonymous_views(app) == 2

    def test_home_renders_when_store_fails(self, client, signup, monkeypatch, view_count):
        c = signup('alice')
        monkeypatch.setattr('reloadrage.store.increment_user_views', _broken)
        monkeypatch.setattr('reloadrage.store.increment_anonymous_views', _broken)
        monkeypatch.setattr('reloadrage.store.top_users', _broken)

        assert c.get('/').status_code == 200
        assert client.get('/').status_code == 200
        assert view_count('alice') == 0


class TestDashboard:

    def test_anonymous_dashboard(self, app, counter):
        _register(app, 'alice')
        with app.test_request_context():
            dashboard = counter.build_dashboard(None)
        assert dashboard == {
            'user': None,
            'leaderboard': [{'username': 'alice', 'view_count': 0}],
            'totalViews': 1,
            'isLoggedIn': False,
        }

    def test_logged_in_dashboard(self, app, counter):
        uid = _register(app, 'alice')
        with app.test_request_context():
            dashboard = counter.build_dashboard(uid)
        assert dashboard['user'] == {'username': 'alice', 'view_count': 1}
        assert dashboard['leaderboard'] == [{'username': 'alice', 'view_count': 1}]
        assert dashboard['totalViews'] == 1
        assert dashboard['isLoggedIn'] is True

    def test_home_page(self, client, signup):
        c = signup('alice')
        resp = c.get('/')
        assert resp.status_code == 200
        assert b'id="user-panel"' in resp.data
        assert b'alice' in resp.data

        resp = client.get('/')
        assert resp.status_code == 200
        assert b'id="user-panel"' not in resp.data
        assert b'<span id="total-views">2</span>' in resp.data


def test_render_failure_returns_500_but_counts_visit(app, client, monkeypatch):
    def broken_render(*args, **kwargs):
        raise TemplateError('index.html is broken')
    monkeypatch.setattr('reloadrage.app.render_template', broken_render)

    resp = client.get('/')
    assert resp.status_code == 500
    assert resp.data == b'Template render error'
    assert _anonymous_views(app) == 1
