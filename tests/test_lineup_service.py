# tests/test_lineup_service.py
import pytest
from ssbl import db
from ssbl.models.player import Player, TeamLineup, FIELDING_POSITIONS
from ssbl.models.team import Team
from ssbl.services.lineup_service import LineupEntry, LineupService, validate_lineup
from ssbl.services.results import ErrorReason

TEAM_IDS = list(range(1, 11))

def _valid_entries():
    entries = [LineupEntry(pid, FIELDING_POSITIONS[pid - 1], pid) for pid in range(1, 10)]
    entries.append(LineupEntry(10))
    return entries

# =====================================================
# 純函式驗證
# =====================================================

def test_valid_lineup_passes():
    assert validate_lineup(TEAM_IDS, _valid_entries(), captain_id=1, lineup_size=9).success

def test_lineup_rejects_foreign_player():
    entries = _valid_entries()
    entries[-1] = LineupEntry(99)
    assert validate_lineup(TEAM_IDS, entries, lineup_size=9).reason == ErrorReason.PLAYER_NOT_ON_TEAM

def test_lineup_rejects_repeated_player():
    entries = _valid_entries()
    entries[-1] = LineupEntry(1)
    assert validate_lineup(TEAM_IDS, entries, lineup_size=9).reason == ErrorReason.PLAYER_NOT_ON_TEAM

def test_captain_on_bench_is_rejected():
    assert validate_lineup(TEAM_IDS, _valid_entries(), captain_id=10, lineup_size=9).reason == ErrorReason.CAPTAIN_MUST_PLAY

def test_captain_missing_from_lineup_is_rejected():
    entries = _valid_entries()[:-1]
    assert validate_lineup(TEAM_IDS, entries, captain_id=10, lineup_size=9).reason == ErrorReason.CAPTAIN_MUST_PLAY

def test_wrong_playing_count():
    entries = _valid_entries()
    entries[8] = LineupEntry(9)
    assert validate_lineup(TEAM_IDS, entries, lineup_size=9).reason == ErrorReason.WRONG_PLAYING_COUNT

    entries = _valid_entries()
    entries[9] = LineupEntry(10, 'P', None)
    assert validate_lineup(TEAM_IDS, entries, lineup_size=9).reason == ErrorReason.WRONG_PLAYING_COUNT

def test_duplicate_position():
    entries = _valid_entries()
    entries[8] = LineupEntry(9, 'C', 9)
    assert validate_lineup(TEAM_IDS, entries, lineup_size=9).reason == ErrorReason.DUPLICATE_POSITION

def test_unknown_position_counts_as_duplicate():
    entries = _valid_entries()
    entries[8] = LineupEntry(9, 'DH', 9)
    assert validate_lineup(TEAM_IDS, entries, lineup_size=9).reason == ErrorReason.DUPLICATE_POSITION

@pytest.mark.parametrize('last_order', [None, 8, 10, 0])
def test_invalid_batting_order(last_order):
    entries = _valid_entries()
    entries[8] = LineupEntry(9, 'P', last_order)
    assert validate_lineup(TEAM_IDS, entries, lineup_size=9).reason == ErrorReason.INVALID_BATTING_ORDER

def test_bench_with_batting_order():
    entries = _valid_entries()
    entries[9] = LineupEntry(10, None, 10)
    assert validate_lineup(TEAM_IDS, entries, lineup_size=9).reason == ErrorReason.BENCH_HAS_BATTING_ORDER

def test_failure_order_reports_player_before_captain():
    entries = _valid_entries()
    entries.append(LineupEntry(42))
    result = validate_lineup(TEAM_IDS, entries, captain_id=10, lineup_size=9)
    assert result.reason == ErrorReason.PLAYER_NOT_ON_TEAM

def test_entry_from_dict_treats_blank_position_as_bench():
    entry = LineupEntry.from_dict({'player_id': '3', 'fielding_position': '', 'batting_order': None})
    assert entry == LineupEntry(3, None, None)
    assert not entry.is_playing

def test_build_default_lineup():
    entries = LineupService.build_default_lineup(list(range(1, 12)), lineup_size=9)
    assert [e.fielding_position for e in entries[:9]] == list(FIELDING_POSITIONS)
    assert [e.batting_order for e in entries[:9]] == list(range(1, 10))
    assert all(not e.is_playing and e.batting_order is None for e in entries[9:])

# =====================================================
# 寫入資料庫
# =====================================================

@pytest.fixture
def roster(factory):
    owner = factory.user('Mario')
    team = factory.team_of(owner)
    players = factory.players(10, team=team)
    factory.lineup(team, players)
    return owner, team.id, [p.id for p in players]

def _entries_for(player_ids, bench_index=9):
    playing = [pid for i, pid in enumerate(player_ids) if i != bench_index]
    entries = [
        {'player_id': pid, 'fielding_position': FIELDING_POSITIONS[i], 'batting_order': 9 - i}
        for i, pid in enumerate(playing)
    ]
    entries.append({'player_id': player_ids[bench_index], 'fielding_position': None, 'batting_order': None})
    return entries

def test_apply_lineup_replaces_rows(factory, roster, snapshot, broadcasts):
    owner, team_id, player_ids = roster

    result = LineupService.validate_and_apply_lineup(team_id, _entries_for(player_ids, bench_index=0), actor=factory.actor(owner))
    assert result.success

    rows = {row.player_id: row for row in TeamLineup.query.all()}
    assert len(rows) == 10
    assert rows[player_ids[0]].fielding_position is None
    assert rows[player_ids[1]].fielding_position == 'C'
    assert rows[player_ids[1]].batting_order == 9
    assert broadcasts[-1]['type'] == 'lineup-update'

def test_rejected_lineup_leaves_rows_unchanged(factory, roster, snapshot):
    owner, team_id, player_ids = roster
    before = snapshot(team_id)

    entries = _entries_for(player_ids)
    entries[1]['fielding_position'] = 'C'
    result = LineupService.validate_and_apply_lineup(team_id, entries, actor=factory.actor(owner))

    assert result.reason == ErrorReason.DUPLICATE_POSITION
    assert snapshot(team_id) == before

def test_batting_order_gap_leaves_rows_unchanged(factory, roster, snapshot):
    owner, team_id, player_ids = roster
    before = snapshot(team_id)

    entries = _entries_for(player_ids)
    # 打序 1..8 加上 10，少了 9
    entries[0]['batting_order'] = 10
    result = LineupService.validate_and_apply_lineup(team_id, entries, actor=factory.actor(owner))

    assert result.reason == ErrorReason.INVALID_BATTING_ORDER
    assert snapshot(team_id) == before
    assert TeamLineup.query.count() == 10

def test_lineup_rechecks_roster_inside_transaction(factory, roster, snapshot):
    owner, team_id, player_ids = roster
    entries = _entries_for(player_ids)

    # 送出打線前球員已被交易到別隊
    other_team = factory.team_of(factory.user('Bowser'))
    db.session.get(Player, player_ids[9]).team_id = other_team.id
    db.session.commit()
    before = snapshot(team_id)

    result = LineupService.validate_and_apply_lineup(team_id, entries, actor=factory.actor(owner))

    assert result.reason == ErrorReason.PLAYER_NOT_ON_TEAM
    assert snapshot(team_id) == before
    assert db.session.get(TeamLineup, player_ids[9]) is not None

def test_lineup_cannot_change_captain(factory, roster, snapshot):
    owner, team_id, player_ids = roster
    factory.team_of(owner).captain_id = player_ids[0]
    db.session.commit()
    before = snapshot(team_id)

    entries = _entries_for(player_ids, bench_index=0)
    actor = factory.actor(owner)
    result = LineupService.validate_and_apply_lineup(team_id, entries, captain_id=player_ids[1], actor=actor)
    assert result.reason == ErrorReason.INVALID_INPUT
    assert snapshot(team_id) == before

    # 不指定隊長時仍以目前的隊長檢查
    result = LineupService.validate_and_apply_lineup(team_id, entries, actor=actor)
    assert result.reason == ErrorReason.CAPTAIN_MUST_PLAY
    assert db.session.get(Team, team_id).captain_id == player_ids[0]

def test_star_survives_lineup_save(factory, roster):
    owner, team_id, player_ids = roster
    star = db.session.get(TeamLineup, player_ids[9])
    star.is_starred = True
    db.session.commit()

    assert LineupService.validate_and_apply_lineup(team_id, _entries_for(player_ids, bench_index=3), actor=factory.actor(owner)).success
    assert db.session.get(TeamLineup, player_ids[9]).is_starred is True
    assert TeamLineup.query.filter_by(is_starred=True).count() == 1

def test_team_captain_is_used_when_not_given(factory, roster, snapshot):
    owner, team_id, player_ids = roster
    team = factory.team_of(owner)
    team.captain_id = player_ids[9]
    db.session.commit()
    before = snapshot(team_id)

    result = LineupService.validate_and_apply_lineup(team_id, _entries_for(player_ids), actor=factory.actor(owner))
    assert result.reason == ErrorReason.CAPTAIN_MUST_PLAY
    assert snapshot(team_id) == before

def test_only_owner_or_admin_can_edit(factory, roster):
    _, team_id, player_ids = roster
    stranger = factory.user('Bowser')
    admin = factory.admin()

    result = LineupService.validate_and_apply_lineup(team_id, _entries_for(player_ids), actor=factory.actor(stranger))
    assert result.reason == ErrorReason.FORBIDDEN
    assert LineupService.validate_and_apply_lineup(team_id, _entries_for(player_ids), actor=factory.actor(admin)).success

def test_unknown_team(factory):
    assert LineupService.validate_and_apply_lineup(999, []).reason == ErrorReason.TEAM_NOT_FOUND

def test_apply_lineup_prunes_orphan_rows(factory, roster):
    owner, team_id, player_ids = roster
    drifter = factory.player()
    db.session.add(TeamLineup(player_id=drifter.id, fielding_position='C', batting_order=1))
    db.session.commit()

    assert LineupService.validate_and_apply_lineup(team_id, _entries_for(player_ids), actor=factory.actor(owner)).success
    assert db.session.get(TeamLineup, drifter.id) is None

def test_get_team_lineup_orders_starters_first(factory, roster):
    _, team_id, player_ids = roster
    lineup = LineupService.get_team_lineup(team_id)
    assert [row['batting_order'] for row in lineup] == list(range(1, 10)) + [None]
    assert lineup[-1]['player_id'] == player_ids[9]
