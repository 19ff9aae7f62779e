import io
import os
import sys
import pytest

# Ensure the backend root (containing the `neonhunt` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from neonhunt import create_app, db, socketio

ADMIN_SLUG = 'test-admin-slug'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ADMIN_SLUG = ADMIN_SLUG
    PHOTO_UPLOAD_FOLDER = None
    PHOTO_BUCKET = None
    PHOTO_BASE_URL = None
    PHOTO_CACHE_CONTROL = 'public, max-age=3600'
    CORS_ORIGINS = ['http://localhost:3000']


@pytest.fixture()
def flask_app(tmp_path):
    class _Config(TestConfig):
        PHOTO_UPLOAD_FOLDER = str(tmp_path / 'photos')

    application = create_app(_Config)
    with application.app_context():
        # Ensure models are imported so tables are created
        import neonhunt.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def admin_url():
    def _url(path):
        return f'/api/admin/{ADMIN_SLUG}{path}'
    return _url


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def neon_game(client, admin_url):
    """Game NEON1 with teams Red and Blue and a running status."""
    res = client.post(admin_url('/games'), json={'title': 'Neon Night', 'code': 'NEON1', 'teams': ['Red', 'Blue']})
    assert res.status_code == 201
    game = res.get_json()
    res = client.post(admin_url(f"/games/{game['id']}/status"), json={'status': 'running'})
    assert res.status_code == 200
    return game


def team_id(game, name):
    return next(t['id'] for t in game['teams'] if t['name'] == name)


def photo_upload(name='robot.png', payload=b'\x89PNG fake image bytes'):
    return (io.BytesIO(payload), name)


def post_claim(client, code, team, keyword, name='robot.png'):
    return client.post(
        f'/api/games/{code}/claims',
        data={'team_id': str(team), 'keyword_id': str(keyword), 'photo': photo_upload(name)},
        content_type='multipart/form-data',
    )
