"""Persistence for users and the anonymous view counter.

All functions work on the Flask-SQLAlchemy session of the current app
context. Database failures are rolled back and re-raised as StoreError so
callers only deal with the project's own error types.
"""
from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import DuplicateUsernameError, StoreError
from .models import GLOBAL_STATS_ID, GlobalStats, User, db

TOTAL_VIEWS_SQL = text("""
    SELECT
      (SELECT COALESCE(SUM(view_count), 0) FROM users) +
      COALESCE((SELECT anonymous_views FROM global_stats WHERE id = :stats_id), 0)
      AS total_views
""")


def init_store():
    """Create the tables and the GlobalStats row if they are missing."""
    try:
        db.create_all()
        if db.session.get(GlobalStats, GLOBAL_STATS_ID) is None:
            db.session.add(GlobalStats(id=GLOBAL_STATS_ID, anonymous_views=0))
            db.session.commit()
    except IntegrityError:
        # another worker inserted the row first
        db.session.rollback()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StoreError(f'Failed to initialize database: {e}') from e


def create_user(username, password_hash):
    user = User(username=username, password=password_hash, view_count=0)
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise DuplicateUsernameError() from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StoreError(f'Failed to create user: {e}') from e
    return user.id


def find_user_by_username(username):
    try:
        return db.session.execute(
            select(User).where(User.username == username).limit(1)
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StoreError(f'Failed to look up user: {e}') from e


def get_user(user_id):
    try:
        return db.session.get(User, user_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StoreError(f'Failed to load user {user_id}: {e}') from e


def _increment(stmt):
    try:
        result = db.session.execute(stmt, execution_options={'synchronize_session': False})
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StoreError(f'Failed to update view count: {e}') from e
    return result.rowcount


def increment_user_views(user_id):
    """Add one view to a user. Returns False if the user no longer exists."""
    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(view_count=User.view_count + 1)
    )
    return _increment(stmt) > 0


def increment_anonymous_views():
    stmt = (
        update(GlobalStats)
        .where(GlobalStats.id == GLOBAL_STATS_ID)
        .values(anonymous_views=GlobalStats.anonymous_views + 1)
    )
    return _increment(stmt) > 0


def top_users(limit):
    # ties on view_count keep registration order
    stmt = (
        select(User.username, User.view_count)
        .order_by(User.view_count.desc(), User.id.asc())
        .limit(limit)
    )
    try:
        return [dict(row._mapping) for row in db.session.execute(stmt)]
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StoreError(f'Failed to fetch leaderboard: {e}') from e


def total_views():
    try:
        total = db.session.execute(
            TOTAL_VIEWS_SQL, {'stats_id': GLOBAL_STATS_ID}
        ).scalar()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StoreError(f'Failed to fetch total views: {e}') from e
    return int(total or 0)
