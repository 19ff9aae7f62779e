from typing import Iterable, Optional

from flask import current_app

from neonhunt import db
from neonhunt.errors import ValidationError
from neonhunt.models import Game, Keyword, KEYWORD_TEXT_MAX_LENGTH
from .claims import remove_photos

DEFAULT_KEYWORD_POINTS = 1
EDITABLE_FIELDS = ('text', 'points', 'order_index')


def validate_keyword_text(text) -> str:
    """Return the stripped keyword text, rejecting blanks."""
    cleaned = str(text).strip() if text is not None else ''
    if not cleaned:
        raise ValidationError('Keyword text is required')
    if len(cleaned) > KEYWORD_TEXT_MAX_LENGTH:
        raise ValidationError(f'Keyword text must be at most {KEYWORD_TEXT_MAX_LENGTH} characters')
    return cleaned


def parse_points(value, default: int = DEFAULT_KEYWORD_POINTS) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def next_order_index(keywords: Iterable[Keyword]) -> int:
    """One past the highest order_index, or 0 for a game without keywords."""
    indexes = [k.order_index for k in keywords if k.order_index is not None]
    return max(indexes) + 1 if indexes else 0


def add_keyword(game: Game, text, points=None) -> Keyword:
    # Validate before touching the database
    cleaned = validate_keyword_text(text)
    keyword = Keyword(
        game_id=game.id,
        text=cleaned,
        points=parse_points(points),
        order_index=next_order_index(Keyword.query.filter_by(game_id=game.id).all()),
    )
    db.session.add(keyword)
    db.session.commit()
    current_app.logger.info(f"[keyword-added] game={game.code} keyword={keyword.id} order={keyword.order_index}")
    return keyword


def _parse_int_field(name: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be an integer')


def update_keyword(keyword: Keyword, updates: Optional[dict]) -> Keyword:
    """Patch the editable fields present in ``updates``; others are ignored."""
    updates = {k: v for k, v in (updates or {}).items() if k in EDITABLE_FIELDS}
    if 'text' in updates:
        keyword.text = validate_keyword_text(updates['text'])
    if 'points' in updates:
        keyword.points = _parse_int_field('points', updates['points'])
    if 'order_index' in updates:
        keyword.order_index = _parse_int_field('order_index', updates['order_index'])
    db.session.add(keyword)
    db.session.commit()
    current_app.logger.info(f"[keyword-updated] keyword={keyword.id} fields={sorted(updates)}")
    return keyword


def delete_keyword(keyword: Keyword) -> None:
    keyword_id = keyword.id
    photo_paths = [c.photo_path for c in keyword.claims]
    db.session.delete(keyword)
    db.session.commit()
    current_app.logger.info(f"[keyword-deleted] keyword={keyword_id} claims={len(photo_paths)}")
    remove_photos(photo_paths)
