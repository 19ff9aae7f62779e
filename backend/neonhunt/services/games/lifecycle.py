import re
from datetime import datetime
from typing import Iterable, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from neonhunt import db
from neonhunt.errors import ConflictError, NotFoundError, ValidationError
from neonhunt.models import (
    Game,
    Team,
    GAME_CODE_MAX_LENGTH,
    GAME_RUNNING,
    GAME_STATUSES,
    GAME_TITLE_MAX_LENGTH,
    TEAM_NAME_MAX_LENGTH,
)
from .claims import remove_photos

# Codes appear in URLs and photo paths
GAME_CODE_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


def get_game_by_code(code: str) -> Game:
    """Resolve a game by its public code (exact, case-sensitive)."""
    game = Game.query.filter(Game.code == code).first()
    if not game or game.code != code:
        raise NotFoundError('Game not found')
    return game


def list_games() -> List[Game]:
    return Game.query.order_by(Game.created_at.desc(), Game.id.desc()).all()


def _check_length(label: str, value: str, limit: int) -> str:
    if len(value) > limit:
        raise ValidationError(f'{label} must be at most {limit} characters')
    return value


def _clean_team_name(name) -> str:
    cleaned = str(name).strip() if name is not None else ''
    if not cleaned:
        raise ValidationError('Team name is required')
    if '/' in cleaned or '\\' in cleaned:
        raise ValidationError('Team name cannot contain "/" or "\\"')
    if cleaned in ('.', '..'):
        raise ValidationError(f'"{cleaned}" is not a valid team name')
    return _check_length('Team name', cleaned, TEAM_NAME_MAX_LENGTH)


def _clean_game_code(code) -> str:
    cleaned = str(code).strip() if code is not None else ''
    if not cleaned:
        return ''
    if not GAME_CODE_PATTERN.match(cleaned):
        raise ValidationError('Game code may only contain letters, digits, "_" and "-"')
    return _check_length('Game code', cleaned, GAME_CODE_MAX_LENGTH)


def _code_taken(code: str) -> bool:
    return Game.query.filter(Game.code == code).first() is not None


def _team_exists(game: Game, name: str) -> bool:
    return Team.query.filter_by(game_id=game.id, name=name).first() is not None


def create_game(title, code: Optional[str] = None, team_names: Optional[Iterable] = None) -> Game:
    title = str(title).strip() if title is not None else ''
    if not title:
        raise ValidationError('Title is required')
    _check_length('Title', title, GAME_TITLE_MAX_LENGTH)
    code = _clean_game_code(code)
    if code and _code_taken(code):
        raise ConflictError(f'Game code {code} is already taken')

    names = [_clean_team_name(n) for n in (team_names or [])]
    if len(set(names)) != len(names):
        raise ValidationError('Team names must be unique')

    game = Game(title=title, code=code or None)
    attempted_code = game.code
    db.session.add(game)
    try:
        db.session.flush()
        for name in names:
            db.session.add(Team(game_id=game.id, name=name))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f'Game code {attempted_code} is already taken')
    current_app.logger.info(f"[game-created] game={game.code} id={game.id} teams={len(names)}")
    return game


def set_status(game: Game, status) -> Game:
    """Move a game to ``status``; entering running stamps start_at.

    Any transition is allowed, including ended -> running.
    """
    if status not in GAME_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(GAME_STATUSES)}")
    previous = game.status
    if status == GAME_RUNNING and previous != GAME_RUNNING:
        game.start_at = datetime.utcnow()
    game.status = status
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[status] game={game.code} {previous} -> {status}")
    return game


def add_team(game: Game, name) -> Team:
    cleaned = _clean_team_name(name)
    if _team_exists(game, cleaned):
        raise ConflictError(f'Team {cleaned} already exists')
    team = Team(game_id=game.id, name=cleaned)
    db.session.add(team)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f'Team {cleaned} already exists')
    current_app.logger.info(f"[team-added] game={game.code} team={team.id}")
    return team


def delete_team(team: Team) -> None:
    team_id = team.id
    photo_paths = [c.photo_path for c in team.claims]
    db.session.delete(team)
    db.session.commit()
    current_app.logger.info(f"[team-deleted] team={team_id} claims={len(photo_paths)}")
    remove_photos(photo_paths)
