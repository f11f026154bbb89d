from scoreguard import db, bcrypt
from flask_login import UserMixin
import json
import time
import uuid


def _now_ms():
    return int(time.time() * 1000)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default='player')  # player, admin
    subscription = db.Column(db.String(16), nullable=False, default='free')  # free, premium

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def is_premium(self):
        return self.subscription == 'premium'

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
            'subscription': self.subscription,
        }


class BestScore(db.Model):
    """Best accepted score per (user, game). Only ever raised, never lowered."""
    __tablename__ = 'best_score'
    __table_args__ = (db.UniqueConstraint('user_id', 'game_id', name='uq_best_score_user_game'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    game_id = db.Column(db.String(64), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    metadata_json = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.BigInteger, nullable=False, default=_now_ms)
    user = db.relationship('User')

    def to_dict(self):
        return {
            'userId': self.user_id,
            'username': self.user.username if self.user else 'Anonymous',
            'gameId': self.game_id,
            'score': self.score,
            'metadata': json.loads(self.metadata_json) if self.metadata_json else {},
            'submittedAt': self.submitted_at,
        }


class PlaySession(db.Model):
    """A tracked run of one game, opened by the client and closed by its score."""
    __tablename__ = 'play_session'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    game_id = db.Column(db.String(64), nullable=False)
    started_at = db.Column(db.BigInteger, nullable=False, default=_now_ms)
    closed_at = db.Column(db.BigInteger, nullable=True)

    def to_dict(self):
        return {
            'sessionId': self.id,
            'gameId': self.game_id,
            'startedAt': self.started_at,
            'closedAt': self.closed_at,
        }
