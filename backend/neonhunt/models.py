from neonhunt import db
from datetime import datetime
import string
import random

GAME_CREATED = 'created'
GAME_RUNNING = 'running'
GAME_ENDED = 'ended'
GAME_STATUSES = (GAME_CREATED, GAME_RUNNING, GAME_ENDED)

# photo_path of a claim whose upload has not finished yet
PENDING_PHOTO_PATH = 'pending'

GAME_CODE_MAX_LENGTH = 32
GAME_TITLE_MAX_LENGTH = 200
TEAM_NAME_MAX_LENGTH = 64
KEYWORD_TEXT_MAX_LENGTH = 200


def _isoformat(value):
    return value.isoformat() if value else None


def generate_game_code(length=5):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not Game.query.filter_by(code=code).first():
            return code


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(GAME_CODE_MAX_LENGTH), unique=True, nullable=False, index=True)
    title = db.Column(db.String(GAME_TITLE_MAX_LENGTH), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=GAME_CREATED)  # created, running, ended
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    start_at = db.Column(db.DateTime, nullable=True)

    teams = db.relationship('Team', back_populates='game', cascade='all, delete', order_by='Team.name')
    keywords = db.relationship('Keyword', back_populates='game', cascade='all, delete', order_by='Keyword.order_index')
    claims = db.relationship('Claim', back_populates='game', cascade='all, delete')

    def __init__(self, **kwargs):
        super(Game, self).__init__(**kwargs)
        if not self.code:
            self.code = generate_game_code()
        if not self.status:
            self.status = GAME_CREATED

    @property
    def is_running(self):
        return self.status == GAME_RUNNING

    def to_dict(self, include_children=False):
        data = {
            'id': self.id,
            'code': self.code,
            'title': self.title,
            'status': self.status,
            'created_at': _isoformat(self.created_at),
            'start_at': _isoformat(self.start_at),
        }
        if include_children:
            data['teams'] = [t.to_dict() for t in self.teams]
            data['keywords'] = [k.to_dict() for k in self.keywords]
        return data


class Team(db.Model):
    __tablename__ = 'team'
    __table_args__ = (db.UniqueConstraint('game_id', 'name', name='uq_team_game_name'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    name = db.Column(db.String(TEAM_NAME_MAX_LENGTH), nullable=False)

    game = db.relationship('Game', back_populates='teams')
    claims = db.relationship('Claim', back_populates='team', cascade='all, delete')

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'name': self.name,
        }


class Keyword(db.Model):
    __tablename__ = 'keyword'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    text = db.Column(db.String(KEYWORD_TEXT_MAX_LENGTH), nullable=False)
    points = db.Column(db.Integer, nullable=False, default=1)
    order_index = db.Column(db.Integer, nullable=False, default=0)

    game = db.relationship('Game', back_populates='keywords')
    claims = db.relationship('Claim', back_populates='keyword', cascade='all, delete')

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'text': self.text,
            'points': self.points,
            'order_index': self.order_index,
        }


class Claim(db.Model):
    __tablename__ = 'claim'
    # At most one claim per team and keyword
    __table_args__ = (db.UniqueConstraint('team_id', 'keyword_id', name='uq_claim_team_keyword'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False, index=True)
    keyword_id = db.Column(db.Integer, db.ForeignKey('keyword.id'), nullable=False, index=True)
    photo_path = db.Column(db.String(512), nullable=False, default=PENDING_PHOTO_PATH)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    game = db.relationship('Game', back_populates='claims')
    team = db.relationship('Team', back_populates='claims')
    keyword = db.relationship('Keyword', back_populates='claims')

    @property
    def is_pending(self):
        return not self.photo_path or self.photo_path == PENDING_PHOTO_PATH

    def to_dict(self, photo_url=None):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'team_id': self.team_id,
            'keyword_id': self.keyword_id,
            'photo_path': self.photo_path,
            'photo_url': photo_url,
            'created_at': _isoformat(self.created_at),
        }
