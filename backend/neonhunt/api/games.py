from flask import Blueprint, jsonify, request
from neonhunt.errors import ValidationError
from neonhunt.models import Claim, Keyword, Team
from neonhunt.services.games.claims import create_claim, delete_claim, list_claims, team_photos
from neonhunt.services.games.lifecycle import get_game_by_code
from neonhunt.services.games.scoring import build_scoreboard
from neonhunt.socketio_events import broadcast_claims_changed
from neonhunt.storage import photo_url


games = Blueprint('games', __name__)


def _form_int(name):
    value = request.form.get(name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} is required')


@games.route('/<string:game_code>', methods=['GET'])
def get_game(game_code):
    game = get_game_by_code(game_code)
    return jsonify(game.to_dict(include_children=True))


@games.route('/<string:game_code>/claims', methods=['GET'])
def get_claims(game_code):
    game = get_game_by_code(game_code)
    return jsonify([c.to_dict(photo_url=photo_url(c.photo_path)) for c in list_claims(game)])


@games.route('/<string:game_code>/scoreboard', methods=['GET'])
def get_scoreboard(game_code):
    game = get_game_by_code(game_code)
    board = build_scoreboard(game.teams, game.keywords, list_claims(game))
    return jsonify({'game_code': game.code, 'status': game.status, 'teams': board})


@games.route('/<string:game_code>/teams/<int:team_id>/photos', methods=['GET'])
def get_team_photos(game_code, team_id):
    game = get_game_by_code(game_code)
    team = Team.query.filter_by(id=team_id, game_id=game.id).first_or_404(description='Team not found')
    return jsonify(team_photos(game, team))


@games.route('/<string:game_code>/claims', methods=['POST'])
def submit_claim(game_code):
    game = get_game_by_code(game_code)
    team_id = _form_int('team_id')
    keyword_id = _form_int('keyword_id')
    team = Team.query.filter_by(id=team_id, game_id=game.id).first_or_404(description='Team not found')
    keyword = Keyword.query.filter_by(id=keyword_id, game_id=game.id).first_or_404(description='Keyword not found')

    claim = create_claim(game, team, keyword, request.files.get('photo'))

    # Emit live update to all clients in the game room
    broadcast_claims_changed(game.code)
    return jsonify({
        'message': f'Claimed {keyword.text} for +{keyword.points} points',
        'claim': claim.to_dict(photo_url=photo_url(claim.photo_path)),
        'points': keyword.points,
    }), 201


@games.route('/<string:game_code>/claims/<int:claim_id>', methods=['DELETE'])
def remove_claim(game_code, claim_id):
    game = get_game_by_code(game_code)
    claim = Claim.query.filter_by(id=claim_id, game_id=game.id).first_or_404(description='Claim not found')
    keyword = claim.keyword
    points = keyword.points if keyword else 0
    delete_claim(claim)
    broadcast_claims_changed(game.code)
    return jsonify({'message': 'Claim deleted', 'points': points})
