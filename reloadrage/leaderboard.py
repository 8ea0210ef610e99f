from . import store
from .errors import UserNotFoundError

DEFAULT_SIZE = 10
MAX_SIZE = DEFAULT_SIZE


def top_users(n=DEFAULT_SIZE):
    """Users with the most views, highest first, at most ``n`` entries."""
    n = max(1, min(int(n), MAX_SIZE))
    return store.top_users(n)


def user_stats(user_id):
    user = store.get_user(user_id)
    if user is None:
        raise UserNotFoundError()
    return user.to_stats()


def total_views():
    return max(0, store.total_views())
