import hmac

from flask import Blueprint, abort, current_app, g, jsonify, request
from neonhunt.models import Game, Keyword, Team
from neonhunt.services.games import keywords as keyword_service
from neonhunt.services.games import lifecycle
from neonhunt.socketio_events import broadcast_claims_changed, broadcast_state_update


admin = Blueprint('admin', __name__)


@admin.url_value_preprocessor
def pull_admin_slug(endpoint, values):
    g.admin_slug = (values or {}).pop('slug', None)


@admin.before_request
def require_admin_slug():
    expected = current_app.config.get('ADMIN_SLUG') or ''
    supplied = g.get('admin_slug') or ''
    # An unset slug keeps the console closed
    if not expected or not hmac.compare_digest(expected.encode('utf-8'), supplied.encode('utf-8')):
        current_app.logger.warning(f"[admin] rejected slug for {request.path}")
        abort(404)


@admin.route('/games', methods=['GET'])
def list_games():
    return jsonify([game.to_dict() for game in lifecycle.list_games()])


@admin.route('/games', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    game = lifecycle.create_game(data.get('title'), code=data.get('code'), team_names=data.get('teams'))
    return jsonify(game.to_dict(include_children=True)), 201


@admin.route('/games/<int:game_id>', methods=['GET'])
def get_game(game_id):
    game = Game.query.filter_by(id=game_id).first_or_404(description='Game not found')
    return jsonify(game.to_dict(include_children=True))


@admin.route('/games/<int:game_id>/status', methods=['POST'])
def set_game_status(game_id):
    data = request.get_json(silent=True) or {}
    game = Game.query.filter_by(id=game_id).first_or_404(description='Game not found')
    lifecycle.set_status(game, data.get('status'))
    broadcast_state_update(game.code)
    return jsonify(game.to_dict())


@admin.route('/games/<int:game_id>/keywords', methods=['POST'])
def add_keyword(game_id):
    data = request.get_json(silent=True) or {}
    game = Game.query.filter_by(id=game_id).first_or_404(description='Game not found')
    keyword = keyword_service.add_keyword(game, data.get('text'), data.get('points'))
    broadcast_state_update(game.code)
    return jsonify(keyword.to_dict()), 201


@admin.route('/keywords/<int:keyword_id>', methods=['PATCH'])
def update_keyword(keyword_id):
    data = request.get_json(silent=True) or {}
    keyword = Keyword.query.filter_by(id=keyword_id).first_or_404(description='Keyword not found')
    keyword_service.update_keyword(keyword, data)
    broadcast_state_update(keyword.game.code)
    return jsonify(keyword.to_dict())


@admin.route('/keywords/<int:keyword_id>', methods=['DELETE'])
def delete_keyword(keyword_id):
    keyword = Keyword.query.filter_by(id=keyword_id).first_or_404(description='Keyword not found')
    game_code = keyword.game.code
    had_claims = bool(keyword.claims)
    keyword_service.delete_keyword(keyword)
    broadcast_state_update(game_code)
    if had_claims:
        broadcast_claims_changed(game_code)
    return jsonify({'message': 'Keyword deleted'})


@admin.route('/games/<int:game_id>/teams', methods=['POST'])
def add_team(game_id):
    data = request.get_json(silent=True) or {}
    game = Game.query.filter_by(id=game_id).first_or_404(description='Game not found')
    team = lifecycle.add_team(game, data.get('name'))
    broadcast_state_update(game.code)
    return jsonify(team.to_dict()), 201


@admin.route('/teams/<int:team_id>', methods=['DELETE'])
def delete_team(team_id):
    team = Team.query.filter_by(id=team_id).first_or_404(description='Team not found')
    game_code = team.game.code
    had_claims = bool(team.claims)
    lifecycle.delete_team(team)
    broadcast_state_update(game_code)
    if had_claims:
        broadcast_claims_changed(game_code)
    return jsonify({'message': 'Team deleted'})
