from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

GLOBAL_STATS_ID = 1


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    view_count = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_stats(self):
        return {'username': self.username, 'view_count': self.view_count}


class GlobalStats(db.Model):
    # Singleton row, id is always GLOBAL_STATS_ID
    __tablename__ = 'global_stats'

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    anonymous_views = db.Column(db.Integer, nullable=False, default=0, server_default='0')
