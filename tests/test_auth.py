import pytest
from werkzeug.security import generate_password_hash


@pytest.fixture
def secured(make_app):
    app = make_app(FOREST_REQUIRE_AUTH=True, FOREST_PASSWORD_HASH=generate_password_hash('sapling'))
    return app.test_client()


def test_open_by_default(client) -> None:
    assert client.get('/api/forest').status_code == 200


def test_requires_session_when_enabled(secured, db) -> None:
    resp = secured.get('/api/forest')

    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Authentication Required'
    assert secured.post('/api/forest', json={'treeId': 'oak', 'growthHours': 1}).status_code == 401
    assert secured.get('/api/forest/balance').status_code == 401
    assert db.log == []


def test_preflight_skips_auth(secured) -> None:
    resp = secured.options('/api/forest', headers={'Origin': 'http://localhost:3000'})
    assert resp.status_code == 204


def test_wrong_password(secured) -> None:
    resp = secured.post('/api/forest/login', json={'password': 'acorn'})

    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Invalid credentials'
    assert secured.get('/api/forest/session').get_json() == {'authenticated': False}


def test_login_and_logout(secured) -> None:
    resp = secured.post('/api/forest/login', json={'password': 'sapling'})

    assert resp.status_code == 200
    assert 'forest_session=' in resp.headers['Set-Cookie']
    assert secured.get('/api/forest/session').get_json() == {'authenticated': True}
    assert secured.get('/api/forest').status_code == 200

    secured.post('/api/forest/logout')
    assert secured.get('/api/forest').status_code == 401


def test_login_without_configured_hash(make_app) -> None:
    client = make_app(FOREST_REQUIRE_AUTH=True).test_client()
    assert client.post('/api/forest/login', json={'password': 'anything'}).status_code == 401
