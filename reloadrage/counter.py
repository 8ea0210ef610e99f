from flask import current_app

from . import leaderboard, store
from .errors import StoreError, UserNotFoundError


class ViewCounter:
    """Counts home page visits and assembles the dashboard data.

    Created once per app and kept in ``app.extensions['reloadrage.counter']``.
    Nothing here raises: a failed write means the visit is not counted, a
    failed read falls back to the last total that was read successfully.
    """

    def __init__(self, leaderboard_size=leaderboard.DEFAULT_SIZE):
        self.leaderboard_size = leaderboard_size
        self.last_total = 0

    def increment(self, user_id=None):
        try:
            if user_id:
                if not store.increment_user_views(user_id):
                    current_app.logger.warning('No user with id %s, view not counted', user_id)
            else:
                store.increment_anonymous_views()
        except StoreError:
            current_app.logger.exception('Error updating view count (user_id=%s)', user_id)

    def current_total(self):
        try:
            self.last_total = leaderboard.total_views()
        except StoreError:
            current_app.logger.exception('Error fetching total views')
        return self.last_total

    def record_visit(self, user_id=None):
        self.increment(user_id)
        return self.current_total()

    def build_dashboard(self, user_id=None):
        # increment -> leaderboard -> total -> user, in that order
        self.increment(user_id)

        try:
            rows = leaderboard.top_users(self.leaderboard_size)
        except StoreError:
            current_app.logger.exception('Error fetching leaderboard')
            rows = []

        total = self.current_total()

        user = None
        if user_id:
            try:
                user = leaderboard.user_stats(user_id)
            except StoreError:
                current_app.logger.exception('Error fetching user stats')
            except UserNotFoundError:
                current_app.logger.warning('Session user %s no longer exists', user_id)

        return {
            'user': user,
            'leaderboard': rows,
            'totalViews': total,
            'isLoggedIn': bool(user_id),
        }
