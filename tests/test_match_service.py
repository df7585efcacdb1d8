# tests/test_match_service.py
from datetime import date
import pytest
from ssbl import db
from ssbl.models.event import Event, EVENT_MATCH_STATE_CHANGE
from ssbl.models.match import (
    Match, MatchBattingOrder, MatchPlayerStat, format_location_name, MATCH_LIVE, MATCH_FINISHED, MATCH_UPCOMING
)
from ssbl.services.match_service import MatchService, MatchStatInput
from ssbl.services.results import ErrorReason

@pytest.fixture
def fixture_match(factory):
    admin = factory.admin()
    mario, luigi = factory.user('Mario'), factory.user('Luigi')
    mario_team, luigi_team = factory.team_of(mario), factory.team_of(luigi)
    factory.lineup(mario_team, factory.players(10, team=mario_team))
    factory.lineup(luigi_team, factory.players(9, team=luigi_team))
    actor = factory.actor(admin)
    match_id = MatchService.create_match(actor, mario_team.id, luigi_team.id).value['match_id']
    return actor, match_id, mario_team.id, luigi_team.id

def test_create_match_validation(factory):
    actor = factory.actor(factory.admin())
    team_id = factory.team_of(factory.user('Mario')).id

    assert MatchService.create_match(actor, team_id, team_id).reason == ErrorReason.SAME_TEAM
    assert MatchService.create_match(actor, team_id, 999).reason == ErrorReason.TEAM_NOT_FOUND

    other_id = factory.team_of(factory.user('Luigi')).id
    assert MatchService.create_match(actor, team_id, other_id, match_day_id=5).reason == ErrorReason.MATCH_DAY_NOT_FOUND
    assert MatchService.create_match(factory.actor(factory.user('Wario')), team_id, other_id).reason == ErrorReason.FORBIDDEN

def test_match_days_are_numbered_in_order(factory):
    actor = factory.actor(factory.admin())
    first = MatchService.create_match_day(actor, date(2026, 5, 1)).value
    second = MatchService.create_match_day(actor, date(2026, 5, 8), 'Rivalry Week').value
    assert (first['order_in_season'], second['order_in_season']) == (1, 2)
    assert [d.name for d in MatchService.get_match_days()] == [None, 'Rivalry Week']
    assert MatchService.create_match_day(actor, None).reason == ErrorReason.INVALID_INPUT

def test_going_live_freezes_lineups(fixture_match):
    actor, match_id, mario_team_id, luigi_team_id = fixture_match

    result = MatchService.update_match_state(actor, match_id, MATCH_LIVE)
    assert result.value == {'match_id': match_id, 'from_state': MATCH_UPCOMING, 'to_state': MATCH_LIVE}

    assert MatchBattingOrder.query.filter_by(match_id=match_id, team_id=mario_team_id).count() == 9
    assert MatchBattingOrder.query.filter_by(match_id=match_id, team_id=luigi_team_id).count() == 9
    event = Event.query.filter_by(type=EVENT_MATCH_STATE_CHANGE).one()
    assert event.match_state_change.to_state == MATCH_LIVE

def test_finishing_requires_scores(fixture_match):
    actor, match_id, _, _ = fixture_match

    assert MatchService.update_match_state(actor, match_id, MATCH_FINISHED).reason == ErrorReason.SCORES_REQUIRED
    assert db.session.get(Match, match_id).state == MATCH_UPCOMING
    assert Event.query.count() == 0

    MatchService.update_match_score(actor, match_id, 4, 4)
    assert MatchService.update_match_state(actor, match_id, MATCH_FINISHED).success
    assert MatchService.update_match_state(actor, match_id, 'postponed').reason == ErrorReason.INVALID_MATCH_STATE

def test_scores_must_be_non_negative(fixture_match):
    actor, match_id, _, _ = fixture_match
    assert MatchService.update_match_score(actor, match_id, -1, 3).reason == ErrorReason.INVALID_INPUT
    assert MatchService.update_match_score(actor, match_id, '3', 3).reason == ErrorReason.INVALID_INPUT

def test_stat_input_parsing():
    stats = MatchStatInput.from_dict({'plate_appearances': '4', 'hits': 2, 'rbi': ''})
    assert (stats.plate_appearances, stats.hits, stats.rbi, stats.errors) == (4, 2, None, None)

    for bad in ({'hits': -1}, {'hits': 1.5}, {'hits': 'two'}, {'hits': True}):
        with pytest.raises(ValueError):
            MatchStatInput.from_dict(bad)

def test_record_stats_upserts_single_row(fixture_match):
    actor, match_id, mario_team_id, _ = fixture_match
    player_id = db.session.get(Match, match_id).team_a.players.first().id

    assert MatchService.record_player_stats(actor, match_id, player_id, mario_team_id, {'plate_appearances': 3, 'hits': 1}).success
    assert MatchService.record_player_stats(actor, match_id, player_id, mario_team_id, {'plate_appearances': 4, 'hits': 2}).success

    rows = MatchPlayerStat.query.filter_by(match_id=match_id, player_id=player_id).all()
    assert len(rows) == 1
    assert (rows[0].plate_appearances, rows[0].hits) == (4, 2)

def test_record_stats_validation(fixture_match, factory):
    actor, match_id, mario_team_id, _ = fixture_match
    player_id = db.session.get(Match, match_id).team_a.players.first().id
    outsider_team_id = factory.team_of(factory.user('Toad')).id

    def record(team_id=mario_team_id, **stats):
        return MatchService.record_player_stats(actor, match_id, player_id, team_id, stats)

    assert record(innings_pitched_partial=3).reason == ErrorReason.INVALID_STAT
    assert record(hits=-2).reason == ErrorReason.INVALID_STAT
    assert record(team_id=outsider_team_id, hits=1).reason == ErrorReason.INVALID_STAT
    assert MatchService.record_player_stats(actor, 999, player_id, mario_team_id, {}).reason == ErrorReason.MATCH_NOT_FOUND
    assert MatchPlayerStat.query.count() == 0

def test_delete_match_removes_snapshots(fixture_match):
    actor, match_id, mario_team_id, _ = fixture_match
    MatchService.update_match_state(actor, match_id, MATCH_LIVE)
    player_id = db.session.get(Match, match_id).team_a.players.first().id
    MatchService.record_player_stats(actor, match_id, player_id, mario_team_id, {'hits': 1})

    assert MatchService.delete_match(actor, match_id).success
    assert db.session.get(Match, match_id) is None
    assert MatchBattingOrder.query.count() == 0
    assert MatchPlayerStat.query.count() == 0

def test_serialize_with_detail(fixture_match):
    actor, match_id, _, _ = fixture_match
    MatchService.update_match_state(actor, match_id, MATCH_LIVE)

    data = MatchService.serialize(db.session.get(Match, match_id), detail=True)
    assert data['state'] == MATCH_LIVE
    assert len(data['batting_orders']) == 18
    assert data['player_stats'] == []

# =====================================================
# 球場
# =====================================================

@pytest.mark.parametrize('name, expected', [
    ('Mario Stadium (Day)', 'Mario Stadium ☀️'),
    ('Mario Stadium (Night)', 'Mario Stadium 🌙'),
    ("Bowser's Castle", "Bowser's Castle"),
])
def test_format_location_name(name, expected):
    assert format_location_name(name) == expected

def test_match_location_lifecycle(fixture_match, factory):
    actor, match_id, mario_team_id, luigi_team_id = fixture_match

    location_id = MatchService.create_match_location(actor, 'Peach Garden (Day)').value['location_id']
    assert MatchService.create_match_location(actor, 'Peach Garden (Day)').reason == ErrorReason.DUPLICATE_LOCATION
    assert MatchService.create_match_location(actor, '  ').reason == ErrorReason.INVALID_INPUT
    assert MatchService.create_match_location(factory.actor(factory.user('Wario')), 'Wario City').reason == ErrorReason.FORBIDDEN

    assert MatchService.update_match_location(actor, match_id, 42).reason == ErrorReason.LOCATION_NOT_FOUND
    assert MatchService.update_match_location(actor, match_id, location_id).success
    data = MatchService.serialize(db.session.get(Match, match_id))
    assert (data['location_id'], data['location_name']) == (location_id, 'Peach Garden ☀️')

    assert MatchService.update_match_location(actor, match_id, None).success
    assert db.session.get(Match, match_id).location_id is None

    with_location = MatchService.create_match(actor, mario_team_id, luigi_team_id, location_id=location_id)
    assert db.session.get(Match, with_location.value['match_id']).location.name == 'Peach Garden (Day)'
    assert MatchService.create_match(actor, mario_team_id, luigi_team_id, location_id=99).reason == ErrorReason.LOCATION_NOT_FOUND
    assert [loc.name for loc in MatchService.get_match_locations()] == ['Peach Garden (Day)']
