from flask import Blueprint, current_app, jsonify, session

from . import leaderboard
from .auth import login_required
from .errors import StoreError, UserNotFoundError

stats_bp = Blueprint('stats_api', __name__, url_prefix='/api')


@stats_bp.route('/leaderboard')
def get_leaderboard():
    """Top users by view count, at most ten entries."""
    size = current_app.config.get('LEADERBOARD_SIZE', leaderboard.DEFAULT_SIZE)
    try:
        rows = leaderboard.top_users(size)
    except StoreError:
        current_app.logger.exception('Error fetching leaderboard')
        return jsonify({'error': 'Failed to fetch leaderboard'}), 500
    return jsonify(rows)


@stats_bp.route('/total-views')
def get_total_views():
    try:
        total = leaderboard.total_views()
    except StoreError:
        current_app.logger.exception('Error fetching total views')
        return jsonify({'error': 'Failed to fetch total views'}), 500
    return jsonify({'total_views': total})


@stats_bp.route('/user-stats')
@login_required
def get_user_stats():
    try:
        stats = leaderboard.user_stats(session['user_id'])
    except UserNotFoundError:
        return jsonify({'error': 'User not found'}), 404
    except StoreError:
        current_app.logger.exception('Error fetching user stats')
        return jsonify({'error': 'Failed to fetch user stats'}), 500
    return jsonify(stats)
