# tests/test_team_and_events.py
from ssbl import db
from ssbl.models.league import SEASON_DRAFTING
from ssbl.models.team import Team
from ssbl.services.draft_service import DraftService
from ssbl.services.event_service import EventService
from ssbl.services.league_service import LeagueService
from ssbl.services.results import ErrorReason
from ssbl.services.team_service import TeamService

# =====================================================
# 球隊設定
# =====================================================

def test_update_team_name(factory):
    owner = factory.user('Mario')
    team_id = factory.team_of(owner).id
    actor = factory.actor(owner)

    assert TeamService.update_team_name(actor, team_id, '  Fire Flowers  ').value['name'] == 'Fire Flowers'
    assert db.session.get(Team, team_id).name == 'Fire Flowers'

    # 空白視為不修改
    assert TeamService.update_team_name(actor, team_id, '   ').value['name'] == 'Fire Flowers'
    assert TeamService.update_team_name(actor, team_id, 'x' * 30).reason == ErrorReason.INVALID_TEAM_NAME
    assert TeamService.update_team_name(actor, team_id, 'x' * 29).success

def test_team_name_must_be_unique(factory):
    owner = factory.user('Mario')
    factory.user('Luigi')
    result = TeamService.update_team_name(factory.actor(owner), factory.team_of(owner).id, "Luigi's Team")
    assert result.reason == ErrorReason.INVALID_TEAM_NAME

def test_team_edits_require_owner(factory):
    team_id = factory.team_of(factory.user('Mario')).id
    stranger = factory.actor(factory.user('Wario'))

    assert TeamService.update_team_name(stranger, team_id, 'Stolen').reason == ErrorReason.FORBIDDEN
    assert TeamService.update_trade_preferences(stranger, team_id, 'pitchers', None).reason == ErrorReason.FORBIDDEN
    assert TeamService.update_team_name(stranger, 999, 'Nowhere').reason == ErrorReason.TEAM_NOT_FOUND

def test_trade_preferences_are_stamped(factory):
    owner = factory.user('Mario')
    team_id = factory.team_of(owner).id

    assert TeamService.update_trade_preferences(factory.actor(owner), team_id, ' speed ', '').success
    team = db.session.get(Team, team_id)
    assert (team.looking_for, team.willing_to_trade) == ('speed', None)
    assert team.trade_block_updated_at is not None

def test_team_with_players(factory):
    owner = factory.user('Mario')
    team = factory.team_of(owner)
    factory.lineup(team, factory.players(10, team=team))

    data = TeamService.get_team_with_players(team.id)
    assert data['owner_name'] == 'Mario'
    assert len(data['players']) == 10
    assert TeamService.get_team_with_players(999) is None

# =====================================================
# 事件紀錄
# =====================================================

def test_event_feed_is_newest_first_and_paginated(factory):
    admin = factory.admin()
    a = factory.user('Mario', drafting_turn=1)
    players = factory.players(3)
    LeagueService.set_season_state(factory.actor(admin), SEASON_DRAFTING)
    for player in players:
        DraftService.draft_player(a.id, player.id)

    feed = EventService.get_events(page=1, page_size=2)
    assert (feed['total'], feed['has_more']) == (4, True)
    assert [e['pick_number'] for e in feed['events']] == [3, 2]
    assert feed['events'][0]['team_name'] == "Mario's Team"

    last_page = EventService.get_events(page=2, page_size=2)
    assert last_page['has_more'] is False
    assert last_page['events'][-1]['to_state'] == SEASON_DRAFTING

def test_announcement_text(factory):
    user = factory.user('Mario')
    team = factory.team_of(user)
    player = factory.player(name='Boo')

    pick_number, text = EventService.record_draft(user.id, player, team)
    db.session.commit()
    assert pick_number == 1
    assert text == "_Pick #1_: **Boo** drafted by **Mario** to **Mario's Team**"
    assert EventService.next_pick_number() == 2
