import os

from conftest import post_claim, team_id
from sqlalchemy.exc import IntegrityError, OperationalError

from neonhunt import db
from neonhunt.errors import StorageError
from neonhunt.models import Claim
from neonhunt.storage import LocalPhotoStorage


def _add_keyword(client, admin_url, game, text, points):
    res = client.post(admin_url(f"/games/{game['id']}/keywords"), json={'text': text, 'points': points})
    assert res.status_code == 201
    return res.get_json()


def _scores(client, code):
    board = client.get(f'/api/games/{code}/scoreboard').get_json()
    return {t['name']: t['score'] for t in board['teams']}


def _stored_files(flask_app):
    root = flask_app.config['PHOTO_UPLOAD_FOLDER']
    return [os.path.join(d, f) for d, _, files in os.walk(root) for f in files]


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_lookup_by_code_is_exact(client, neon_game):
    res = client.get('/api/games/NEON1')
    assert res.status_code == 200
    game = res.get_json()
    assert game['code'] == 'NEON1'
    assert game['id'] == neon_game['id']
    assert [t['name'] for t in game['teams']] == ['Blue', 'Red']

    # Case-sensitive: lowercase code is a different game
    res = client.get('/api/games/neon1')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'Game not found'

    res = client.get('/api/games/NOPE')
    assert res.status_code == 404


def test_keywords_listed_by_order_index(client, admin_url, neon_game):
    _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    _add_keyword(client, admin_url, neon_game, 'Neon sign', 3)
    game = client.get('/api/games/NEON1').get_json()
    assert [(k['text'], k['order_index']) for k in game['keywords']] == [('Robot', 0), ('Neon sign', 1)]


def test_claim_scores_red_not_blue(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    red = team_id(neon_game, 'Red')

    res = post_claim(client, 'NEON1', red, robot['id'])
    assert res.status_code == 201
    body = res.get_json()
    assert body['points'] == 5
    assert body['claim']['photo_path'] == f"NEON1/Red/{robot['id']}/{body['claim']['id']}.png"
    assert body['claim']['photo_url'].startswith('/photos/NEON1/Red/')

    assert _scores(client, 'NEON1') == {'Red': 5, 'Blue': 0}


def test_delete_claim_removes_points_and_photo(client, admin_url, neon_game, flask_app):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    red = team_id(neon_game, 'Red')
    claim = post_claim(client, 'NEON1', red, robot['id']).get_json()['claim']
    storage = flask_app.extensions['photo_storage']
    stored = storage._resolve(claim['photo_path'])
    with open(stored, 'rb') as fh:
        assert fh.read().startswith(b'\x89PNG')

    res = client.delete(f"/api/games/NEON1/claims/{claim['id']}")
    assert res.status_code == 200
    assert res.get_json()['points'] == 5
    assert _scores(client, 'NEON1') == {'Red': 0, 'Blue': 0}
    assert client.get('/api/games/NEON1/claims').get_json() == []

    assert not os.path.exists(stored)


def test_score_accumulates_across_keywords(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    sign = _add_keyword(client, admin_url, neon_game, 'Neon sign', 3)
    red = team_id(neon_game, 'Red')
    blue = team_id(neon_game, 'Blue')

    assert post_claim(client, 'NEON1', red, robot['id']).status_code == 201
    assert _scores(client, 'NEON1') == {'Red': 5, 'Blue': 0}
    assert post_claim(client, 'NEON1', red, sign['id']).status_code == 201
    assert post_claim(client, 'NEON1', blue, sign['id']).status_code == 201
    assert _scores(client, 'NEON1') == {'Red': 8, 'Blue': 3}

    claims = client.get('/api/games/NEON1/claims').get_json()
    assert len(claims) == 3
    # newest first
    assert claims[0]['team_id'] == blue


def test_duplicate_claim_rejected(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    red = team_id(neon_game, 'Red')
    assert post_claim(client, 'NEON1', red, robot['id']).status_code == 201

    res = post_claim(client, 'NEON1', red, robot['id'], name='again.jpg')
    assert res.status_code == 409
    assert Claim.query.count() == 1
    assert _scores(client, 'NEON1')['Red'] == 5


def test_claim_requires_running_game(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    client.post(admin_url(f"/games/{neon_game['id']}/status"), json={'status': 'ended'})

    res = post_claim(client, 'NEON1', team_id(neon_game, 'Red'), robot['id'])
    assert res.status_code == 400
    assert Claim.query.count() == 0


def test_claim_validates_team_keyword_and_photo(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    red = team_id(neon_game, 'Red')

    assert post_claim(client, 'NEON1', 9999, robot['id']).status_code == 404
    assert post_claim(client, 'NEON1', red, 9999).status_code == 404

    res = client.post('/api/games/NEON1/claims', data={'team_id': str(red), 'keyword_id': str(robot['id'])})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'A photo is required'

    res = client.post('/api/games/NEON1/claims', data={'keyword_id': str(robot['id'])})
    assert res.status_code == 400
    assert Claim.query.count() == 0


def test_storage_failure_leaves_no_claim(client, admin_url, neon_game, flask_app):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)

    class FailingStorage(LocalPhotoStorage):
        def upload(self, handle, path, content_type=None):
            raise StorageError('bucket unavailable')

    flask_app.extensions['photo_storage'] = FailingStorage(flask_app.config['PHOTO_UPLOAD_FOLDER'])
    before = Claim.query.count()

    res = post_claim(client, 'NEON1', team_id(neon_game, 'Red'), robot['id'])
    assert res.status_code == 502
    assert res.get_json()['error'] == 'bucket unavailable'
    assert Claim.query.count() == before
    assert _scores(client, 'NEON1')['Red'] == 0


def test_photo_extension_defaults_to_jpg(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    res = post_claim(client, 'NEON1', team_id(neon_game, 'Blue'), robot['id'], name='capture')
    assert res.status_code == 201
    assert res.get_json()['claim']['photo_path'].endswith('.jpg')


def test_team_photos_and_served_file(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    red = team_id(neon_game, 'Red')
    blue = team_id(neon_game, 'Blue')
    post_claim(client, 'NEON1', red, robot['id'])

    photos = client.get(f'/api/games/NEON1/teams/{red}/photos').get_json()
    assert len(photos) == 1
    assert photos[0]['keyword_text'] == 'Robot'
    assert photos[0]['points'] == 5

    res = client.get(photos[0]['photo_url'])
    assert res.status_code == 200
    assert res.data.startswith(b'\x89PNG')
    res.close()

    assert client.get(f'/api/games/NEON1/teams/{blue}/photos').get_json() == []
    assert client.get('/api/games/NEON1/teams/9999/photos').status_code == 404


def test_deleting_keyword_drops_its_points(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    red = team_id(neon_game, 'Red')
    post_claim(client, 'NEON1', red, robot['id'])

    assert client.delete(admin_url(f"/keywords/{robot['id']}")).status_code == 200
    assert _scores(client, 'NEON1') == {'Red': 0, 'Blue': 0}
    assert Claim.query.count() == 0


def test_extension_with_separator_stays_in_keyword_folder(client, admin_url, neon_game):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    res = post_claim(client, 'NEON1', team_id(neon_game, 'Red'), robot['id'], name='shot.x/y')
    assert res.status_code == 201
    claim = res.get_json()['claim']
    assert claim['photo_path'] == f"NEON1/Red/{robot['id']}/{claim['id']}.jpg"


def test_duplicate_claim_caught_by_unique_index(client, admin_url, neon_game, flask_app, monkeypatch):
    from neonhunt.services.games import claims as claim_service

    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)
    red = team_id(neon_game, 'Red')
    assert post_claim(client, 'NEON1', red, robot['id']).status_code == 201
    stored = _stored_files(flask_app)

    # Second request misses the first row, as when both arrive together
    monkeypatch.setattr(claim_service, '_existing_claim', lambda team, keyword: None)
    res = post_claim(client, 'NEON1', red, robot['id'], name='again.jpg')
    assert res.status_code == 409
    assert Claim.query.count() == 1
    assert _stored_files(flask_app) == stored


def test_commit_conflict_removes_uploaded_photo(client, admin_url, neon_game, flask_app, monkeypatch):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)

    def conflicting_commit():
        raise IntegrityError('INSERT INTO claim', {}, Exception('UNIQUE constraint failed'))

    monkeypatch.setattr(db.session, 'commit', conflicting_commit)
    res = post_claim(client, 'NEON1', team_id(neon_game, 'Red'), robot['id'])
    assert res.status_code == 409
    assert res.get_json()['error'] == 'This keyword has already been claimed by the team'
    monkeypatch.undo()

    assert Claim.query.count() == 0
    assert _stored_files(flask_app) == []


def test_commit_failure_removes_uploaded_photo(client, admin_url, neon_game, flask_app, monkeypatch):
    robot = _add_keyword(client, admin_url, neon_game, 'Robot', 5)

    def failing_commit():
        raise OperationalError('COMMIT', {}, Exception('database is locked'))

    monkeypatch.setattr(db.session, 'commit', failing_commit)
    res = post_claim(client, 'NEON1', team_id(neon_game, 'Red'), robot['id'])
    assert res.status_code == 500
    assert res.get_json()['error'] == 'database is locked'
    monkeypatch.undo()

    assert Claim.query.count() == 0
    assert _stored_files(flask_app) == []
    assert _scores(client, 'NEON1')['Red'] == 0
