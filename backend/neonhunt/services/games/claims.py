"""Claim creation and removal.

A claim is created in a single database transaction: the row is flushed with
the pending sentinel to obtain its id, the photo is uploaded under a path
built from that id, and the real path is committed. Nothing becomes visible
to other readers until the final commit, so an upload failure leaves no row
behind.
"""

from typing import Iterable, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from neonhunt import db
from neonhunt.errors import ConflictError, HuntError, NotFoundError, StorageError, ValidationError
from neonhunt.models import Claim, Game, Keyword, Team, PENDING_PHOTO_PATH
from neonhunt.storage import build_photo_path, get_photo_storage, photo_url


def list_claims(game: Game) -> List[Claim]:
    return (
        Claim.query.filter_by(game_id=game.id)
        .order_by(Claim.created_at.desc(), Claim.id.desc())
        .all()
    )


def team_photos(game: Game, team: Team) -> List[dict]:
    """Claims of a team that carry a stored photo, newest first."""
    keywords = {k.id: k for k in game.keywords}
    photos = []
    for claim in list_claims(game):
        if claim.team_id != team.id or claim.is_pending:
            continue
        keyword = keywords.get(claim.keyword_id)
        payload = claim.to_dict(photo_url=photo_url(claim.photo_path))
        payload['keyword_text'] = keyword.text if keyword else None
        payload['points'] = keyword.points if keyword else 0
        photos.append(payload)
    return photos


def remove_photos(paths: Iterable[Optional[str]]) -> None:
    """Best-effort blob removal; failures are logged and swallowed."""
    storage = get_photo_storage()
    for path in paths:
        if not path or path == PENDING_PHOTO_PATH:
            continue
        try:
            storage.remove(path)
        except StorageError as exc:
            current_app.logger.warning(f"[photo-remove-failed] path={path} error={exc.message}")


def _existing_claim(team: Team, keyword: Keyword) -> Optional[Claim]:
    return Claim.query.filter_by(team_id=team.id, keyword_id=keyword.id).first()


def create_claim(game: Game, team: Team, keyword: Keyword, photo) -> Claim:
    """Claim ``keyword`` for ``team`` with an uploaded photo.

    ``photo`` is a werkzeug ``FileStorage`` (anything with ``stream``,
    ``filename`` and ``mimetype``).
    """
    if not game.is_running:
        raise ValidationError('The game is not running')
    if team.game_id != game.id:
        raise NotFoundError('Team not found')
    if keyword.game_id != game.id:
        raise NotFoundError('Keyword not found')
    if photo is None or not getattr(photo, 'filename', None):
        raise ValidationError('A photo is required')
    if _existing_claim(team, keyword):
        raise ConflictError('This keyword has already been claimed by the team')

    claim = Claim(game_id=game.id, team_id=team.id, keyword_id=keyword.id, photo_path=PENDING_PHOTO_PATH)
    db.session.add(claim)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('This keyword has already been claimed by the team')

    path = build_photo_path(game.code, team.name, keyword.id, claim.id, photo.filename)
    storage = get_photo_storage()
    try:
        storage.upload(photo.stream, path, content_type=photo.mimetype)
    except StorageError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[claim-rollback] game={game.code} team={team.id} keyword={keyword.id} error={exc.message}")
        raise

    claim.photo_path = path
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        remove_photos([path])
        raise ConflictError('This keyword has already been claimed by the team')
    except SQLAlchemyError as exc:
        db.session.rollback()
        remove_photos([path])
        current_app.logger.error(f"[claim-commit-failed] game={game.code} team={team.id} keyword={keyword.id} error={exc}")
        raise HuntError(str(getattr(exc, 'orig', None) or exc), 500) from exc

    current_app.logger.info(
        f"[claim-created] game={game.code} team={team.id} keyword={keyword.id} claim={claim.id} path={path}"
    )
    return claim


def delete_claim(claim: Claim) -> None:
    """Delete the claim row, then remove its photo best-effort."""
    claim_id = claim.id
    path = claim.photo_path
    db.session.delete(claim)
    db.session.commit()
    current_app.logger.info(f"[claim-deleted] claim={claim_id} path={path}")
    remove_photos([path])
