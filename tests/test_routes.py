# tests/test_routes.py
import pytest
from ssbl.models.league import SEASON_DRAFTING
from ssbl.models.player import FIELDING_POSITIONS

def _as(user):
    return {'X-User-Id': str(user.id)}

def test_health_and_league_config(client):
    assert client.get('/').get_json()['status'] == 'online'

    config = client.get('/api/system/config/league').get_json()
    assert config['roster']['team_size'] == 13
    assert config['roster']['lineup_size'] == 9
    assert config['fielding_positions'] == list(FIELDING_POSITIONS)

def test_mutations_require_identity(client):
    response = client.post('/api/draft/pick', json={'player_id': 1})
    assert response.status_code == 403
    assert response.get_json()['reason'] == 'Forbidden'

def test_draft_pick_endpoint(client, factory):
    admin = factory.admin()
    mario = factory.user('Mario', drafting_turn=1)
    luigi = factory.user('Luigi', drafting_turn=2)
    player = factory.player()

    assert client.post('/api/admin/season/state', json={'state': SEASON_DRAFTING}, headers=_as(admin)).status_code == 200

    wrong_turn = client.post('/api/draft/pick', json={'player_id': player.id}, headers=_as(luigi))
    assert (wrong_turn.status_code, wrong_turn.get_json()['reason']) == (400, 'NotYourTurn')

    picked = client.post('/api/draft/pick', json={'player_id': player.id}, headers=_as(mario))
    assert picked.status_code == 200
    assert picked.get_json()['next_drafter_id'] == luigi.id

    missing = client.post('/api/draft/pick', json={'player_id': 999}, headers=_as(luigi))
    assert missing.status_code == 404

    state = client.get('/api/draft/state').get_json()
    assert state['current_drafting_user_id'] == luigi.id

def test_admin_endpoints_reject_users(client, factory):
    user = factory.user('Mario')
    response = client.post('/api/admin/teams/wipe', headers=_as(user))
    assert response.status_code == 403

def test_lineup_endpoint(client, factory):
    owner = factory.user('Mario')
    team = factory.team_of(owner)
    players = factory.players(9, team=team)
    entries = [
        {'player_id': p.id, 'fielding_position': FIELDING_POSITIONS[i], 'batting_order': i + 1}
        for i, p in enumerate(players)
    ]

    ok = client.put(f'/api/team/{team.id}/lineup', json={'entries': entries}, headers=_as(owner))
    assert ok.status_code == 200

    entries[0]['batting_order'] = 2
    bad = client.put(f'/api/team/{team.id}/lineup', json={'entries': entries}, headers=_as(owner))
    assert bad.get_json()['reason'] == 'InvalidBattingOrder'

    malformed = client.put(f'/api/team/{team.id}/lineup', json={'entries': [{'fielding_position': 'C'}]}, headers=_as(owner))
    assert malformed.status_code == 400

    detail = client.get(f'/api/team/{team.id}').get_json()
    assert [row['batting_order'] for row in detail['players']] == list(range(1, 10))

def test_impersonation_round_trip(client, factory):
    admin = factory.admin()
    target = factory.user('Mario')

    response = client.post(f'/api/admin/impersonate/{target.id}', headers=_as(admin))
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/')
    with client.session_transaction() as sess:
        assert (sess['user_id'], sess['original_user_id']) == (target.id, admin.id)

    back = client.post('/api/admin/return-to-original')
    assert back.status_code == 302
    assert back.headers['Location'].endswith('/admin')
    with client.session_transaction() as sess:
        assert sess['user_id'] == admin.id
        assert 'original_user_id' not in sess

def test_return_without_impersonation(client):
    response = client.post('/api/admin/return-to-original')
    assert (response.status_code, response.get_json()['reason']) == (400, 'NotImpersonating')

def test_read_endpoints(client, factory):
    factory.user('Mario')
    factory.players(2)

    assert client.get('/api/league/standings').get_json() == {'match_days': [], 'standings': []}
    leaderboard = client.get('/api/league/leaderboard?limit=1').get_json()
    assert len(leaderboard['players']) == 1
    assert client.get('/api/league/events').get_json()['total'] == 0
    assert client.get('/api/league/matches').get_json() == []
    assert client.get('/api/league/matches/5').status_code == 404
    assert [t['name'] for t in client.get('/api/team/').get_json()] == ["Mario's Team"]

def test_lineup_endpoint_keeps_stored_captain(client, factory):
    owner = factory.user('Mario')
    team = factory.team_of(owner)
    players = factory.players(10, team=team)
    factory.lineup(team, players, captain=players[0])

    # 隊長坐板凳，改由第十名球員先發
    entries = [{'player_id': players[0].id, 'fielding_position': None, 'batting_order': None}]
    entries += [
        {'player_id': p.id, 'fielding_position': FIELDING_POSITIONS[i], 'batting_order': i + 1}
        for i, p in enumerate(players[1:])
    ]

    swapped = client.put(
        f'/api/team/{team.id}/lineup',
        json={'entries': entries, 'captain_id': players[1].id},
        headers=_as(owner)
    )
    assert (swapped.status_code, swapped.get_json()['reason']) == (400, 'InvalidInput')

    benched = client.put(f'/api/team/{team.id}/lineup', json={'entries': entries}, headers=_as(owner))
    assert (benched.status_code, benched.get_json()['reason']) == (400, 'CaptainMustPlay')

    detail = client.get(f'/api/team/{team.id}').get_json()
    captain_row = next(row for row in detail['players'] if row['player_id'] == players[0].id)
    assert captain_row['fielding_position'] == 'C'

def test_user_header_ignored_unless_trusted(app, client, factory):
    admin = factory.admin()
    app.config['TRUST_USER_HEADER'] = False

    forged = client.post('/api/admin/teams/wipe', headers=_as(admin))
    assert (forged.status_code, forged.get_json()['reason']) == (403, 'Forbidden')

    with client.session_transaction() as sess:
        sess['user_id'] = admin.id
    assert client.get('/api/admin/match-locations').status_code == 200
    created = client.post('/api/admin/match-locations', json={'name': 'Peach Garden (Day)'})
    assert created.status_code == 201

@pytest.mark.parametrize('method, path', [
    ('post', '/api/draft/pick'),
    ('post', '/api/draft/pre-draft'),
    ('post', '/api/draft/star'),
])
def test_draft_endpoints_reject_non_numeric_player_id(client, factory, method, path):
    user = factory.user('Mario')

    response = getattr(client, method)(path, json={'player_id': 'abc'}, headers=_as(user))
    assert (response.status_code, response.get_json()['reason']) == (400, 'InvalidInput')

    missing = getattr(client, method)(path, json={}, headers=_as(user))
    assert missing.status_code == 400

def test_chemistry_endpoints(client, factory):
    admin = factory.admin()
    owner = factory.user('Mario')
    team = factory.team_of(owner)
    first, second = factory.players(2, team=team)

    updated = client.put('/api/admin/chemistry', json={
        'character1': first.stats_character, 'character2': second.stats_character, 'relationship': 'positive'
    }, headers=_as(admin))
    assert updated.status_code == 200
    assert client.put('/api/admin/chemistry', json={
        'character1': first.stats_character, 'character2': second.stats_character, 'relationship': 'negative'
    }, headers=_as(owner)).status_code == 403

    table = client.get('/api/players/chemistry').get_json()
    assert table['relationships'][first.stats_character] == {second.stats_character: 'positive'}

    player = client.get(f'/api/players/{first.id}/chemistry').get_json()
    assert [c['character'] for c in player['positive']] == [second.stats_character]
    assert client.get('/api/players/999/chemistry').status_code == 404

    team_data = client.get(f'/api/team/{team.id}/chemistry').get_json()
    assert (team_data['positive'], team_data['negative']) == (1, 0)
    assert client.get('/api/team/999/chemistry').status_code == 404

    bad_sync = client.post('/api/admin/chemistry/sync', json={'pairs': [{'character1': first.stats_character}]}, headers=_as(admin))
    assert bad_sync.status_code == 400
    cleared = client.post('/api/admin/chemistry/sync', json={'pairs': []}, headers=_as(admin))
    assert cleared.get_json()['deleted'] == 1

def test_match_location_endpoints(client, factory):
    admin = factory.admin()

    created = client.post('/api/admin/match-locations', json={'name': 'Mario Stadium (Night)'}, headers=_as(admin))
    assert created.status_code == 201
    duplicate = client.post('/api/admin/match-locations', json={'name': 'Mario Stadium (Night)'}, headers=_as(admin))
    assert (duplicate.status_code, duplicate.get_json()['reason']) == (400, 'DuplicateLocation')

    locations = client.get('/api/admin/match-locations').get_json()
    assert [loc['display_name'] for loc in locations] == ['Mario Stadium 🌙']

    missing = client.put('/api/admin/matches/999/location', json={'location_id': created.get_json()['location_id']}, headers=_as(admin))
    assert missing.status_code == 404
    bad = client.put('/api/admin/matches/999/location', json={'location_id': 'x'}, headers=_as(admin))
    assert bad.status_code == 400
