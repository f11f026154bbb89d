import json

from conftest import login, signed_payload
from scoreguard import db


def test_health_and_index(client):
    assert client.get('/health').get_json() == {'status': 'ok'}
    assert client.get('/').status_code == 200


def test_register_login_and_check(client):
    res = client.post('/register', json={'username': 'alice', 'password': 'pw'})
    assert res.status_code == 201
    assert res.get_json()['user']['username'] == 'alice'
    assert client.get('/check_login').get_json()['success'] is True
    client.post('/logout')
    assert client.get('/check_login').status_code == 401
    assert login(client, 'alice', 'pw').status_code == 200
    assert login(client, 'alice', 'wrong').status_code == 401


def test_submit_requires_login(client):
    res = client.post('/api/scores/snake', json={'score': 1})
    assert res.status_code == 401


def test_submit_valid_score_and_leaderboard(client, make_user):
    user = make_user('alice')
    login(client, 'alice')
    res = client.post('/api/scores/snake', json=signed_payload(user.id, 'snake', 500))
    assert res.status_code == 200
    body = res.get_json()
    assert body['success'] is True
    assert body['accepted'] is True
    assert body['isNewBest'] is True
    assert body['previousBest'] == 0
    assert body['adjustedScore'] == 475
    # players never see the detector internals
    assert 'flags' not in body and 'confidence' not in body

    board = client.get('/api/scores/snake').get_json()['data']['leaderboard']
    assert board[0]['username'] == 'alice'
    assert board[0]['score'] == 475
    assert board[0]['rank'] == 1

    pos = client.get(f'/api/scores/snake/position/{user.id}').get_json()['data']
    assert pos == {'hasScore': True, 'score': 475, 'rank': 1, 'totalPlayers': 1}


def test_lower_score_is_not_a_new_best(client, make_user):
    user = make_user('alice')
    login(client, 'alice')
    client.post('/api/scores/snake', json=signed_payload(user.id, 'snake', 800))
    body = client.post('/api/scores/snake', json=signed_payload(user.id, 'snake', 400)).get_json()
    assert body['accepted'] is True
    assert body['isNewBest'] is False
    assert body['currentBest'] == 760


def test_score_too_high_for_snake(client, make_user):
    user = make_user('alice')
    login(client, 'alice')
    res = client.post('/api/scores/snake', json=signed_payload(user.id, 'snake', 9000000))
    assert res.status_code == 400
    body = res.get_json()
    assert body['accepted'] is False
    assert 'too high for Snake' in body['reason']
    assert body['adjustedScore'] == 0


def test_tampered_score_fails_signature(client, make_user):
    user = make_user('alice')
    login(client, 'alice')
    payload = signed_payload(user.id, 'snake', 500)
    payload['score'] = 5000
    res = client.post('/api/scores/snake', json=payload)
    assert res.status_code == 400
    assert res.get_json()['reason'] == 'Invalid signature'


def test_malformed_submission_is_rejected_not_crashed(client, make_user):
    make_user('alice')
    login(client, 'alice')
    res = client.post('/api/scores/snake', data='not json', content_type='text/plain')
    assert res.status_code == 400
    assert res.get_json()['reason'] == 'Malformed submission'


def test_non_finite_duration_is_malformed(client, make_user):
    user = make_user('alice')
    login(client, 'alice')
    for bad in (float('inf'), float('nan')):
        # json.dumps writes these as the bare Infinity and NaN tokens
        body = json.dumps(signed_payload(user.id, 'snake', 500, duration=bad))
        res = client.post('/api/scores/snake', data=body, content_type='application/json')
        assert res.status_code == 400
        assert res.get_json()['reason'] == 'Malformed submission'


def test_session_round_trip(client, make_user, flask_app):
    user = make_user('alice')
    login(client, 'alice')
    res = client.post('/api/sessions', json={'gameId': 'tetris'})
    assert res.status_code == 201
    session_id = res.get_json()['sessionId']

    payload = signed_payload(user.id, 'tetris', 1200, duration=0, sessionId=session_id)
    body = client.post('/api/scores/tetris', json=payload).get_json()
    # zero duration reads as too fast, but the closed session still backs it
    assert body['accepted'] is True

    again = client.post('/api/scores/tetris', json=signed_payload(user.id, 'tetris', 1200, sessionId=session_id))
    assert again.status_code == 400

    from scoreguard.models import PlaySession
    with flask_app.app_context():
        assert db.session.get(PlaySession, session_id).closed_at is not None


def test_session_requires_game_id(client, make_user):
    make_user('alice')
    login(client, 'alice')
    assert client.post('/api/sessions', json={}).status_code == 400


def test_score_submit_rate_limit(client, make_user):
    user = make_user('alice')
    login(client, 'alice')
    for i in range(10):
        res = client.post('/api/scores/tetris', json=signed_payload(user.id, 'tetris', 1000 + i * 37))
        assert res.status_code in (200, 400)
    res = client.post('/api/scores/tetris', json=signed_payload(user.id, 'tetris', 2000))
    assert res.status_code == 429
    body = res.get_json()
    assert body['success'] is False
    assert 'retryAfter' in body
    assert int(res.headers['Retry-After']) >= 1


def test_bypass_token_skips_rate_limit(client, make_user):
    user = make_user('alice')
    login(client, 'alice')
    headers = {'X-Bypass-Token': 'test-bypass-token'}
    for i in range(12):
        res = client.post('/api/scores/tetris', json=signed_payload(user.id, 'tetris', 1000 + i * 37), headers=headers)
        assert res.status_code != 429


def test_wrong_bypass_token_is_ignored(client):
    headers = {'X-Bypass-Token': 'nope'}
    codes = [client.post('/login', json={'username': 'x', 'password': 'y'}, headers=headers).status_code
             for _ in range(6)]
    assert codes[:5] == [401] * 5
    assert codes[5] == 429


def test_leaderboard_is_cached_and_invalidated(client, make_user):
    user = make_user('alice')
    first = client.get('/api/scores/snake')
    assert first.headers['X-Cache'] == 'MISS'
    assert client.get('/api/scores/snake').headers['X-Cache'] == 'HIT'

    login(client, 'alice')
    client.post('/api/scores/snake', json=signed_payload(user.id, 'snake', 500))
    client.post('/logout')
    res = client.get('/api/scores/snake')
    # a new best clears every cached page for the game
    assert res.headers['X-Cache'] == 'MISS'
    assert res.get_json()['data']['leaderboard'][0]['score'] == 475


def test_admin_endpoints_require_admin(client, make_user):
    make_user('alice')
    login(client, 'alice')
    assert client.get('/api/admin/stats').status_code == 403
    assert client.post('/api/admin/users/1/ban', json={'reason': 'x'}).status_code == 403


def test_admin_ban_blocks_submissions_and_unban_resets(client, make_user, flask_app):
    player = make_user('alice')
    make_user('root', role='admin')
    admin_client = flask_app.test_client()
    login(admin_client, 'root')
    login(client, 'alice')

    res = admin_client.post(f'/api/admin/users/{player.id}/ban', json={'reason': 'boosting'})
    assert res.get_json()['success'] is True

    res = client.post('/api/scores/snake', json=signed_payload(player.id, 'snake', 500))
    assert res.status_code == 400
    assert res.get_json()['accepted'] is False

    profile = admin_client.get(f'/api/admin/users/{player.id}/risk').get_json()
    assert profile['isBanned'] is True
    assert profile['banReason'] == 'boosting'
    assert profile['incidentCount'] == 1

    stats = admin_client.get('/api/admin/stats').get_json()
    assert stats['bannedUsers'] == 1
    assert stats['totalIncidents'] == 1

    admin_client.post(f'/api/admin/users/{player.id}/unban')
    profile = admin_client.get(f'/api/admin/users/{player.id}/risk').get_json()
    assert profile['isBanned'] is False
    assert profile['riskScore'] == 0

    res = client.post('/api/scores/snake', json=signed_payload(player.id, 'snake', 500))
    assert res.get_json()['accepted'] is True


def test_admin_sees_verdict_internals(client, make_user):
    admin_user = make_user('root', role='admin')
    login(client, 'root')
    body = client.post('/api/scores/snake', json=signed_payload(admin_user.id, 'snake', 500)).get_json()
    assert body['flags'] == ['NO_SESSION']
    assert body['confidence'] == 0.95
    assert 'checks' in body
