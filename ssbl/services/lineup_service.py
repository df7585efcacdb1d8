# ssbl/services/lineup_service.py
import random
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import delete, select
from ssbl import db
from ssbl.models.player import Player, TeamLineup, FIELDING_POSITIONS
from ssbl.models.team import Team
from ssbl.services.results import Ok, Error, ErrorReason, ValidationFailed, unwrap_error
from ssbl.services.auth_service import AuthService
from ssbl.services.notifier import broadcaster
from ssbl.utils.game_config_loader import GameConfigLoader
from ssbl.utils.transaction import atomic, lock

@dataclass
class LineupEntry:
    player_id: int
    fielding_position: Optional[str] = None
    batting_order: Optional[int] = None

    @property
    def is_playing(self):
        return self.fielding_position is not None

    @classmethod
    def from_dict(cls, data):
        batting_order = data.get('batting_order')
        return cls(
            player_id=int(data['player_id']),
            fielding_position=data.get('fielding_position') or None,
            batting_order=int(batting_order) if batting_order is not None else None,
        )

def validate_lineup(team_player_ids, entries, captain_id=None, lineup_size=None):
    """
    [純函式] 檢查打線是否合法，依序回傳第一個失敗原因，全部通過回傳 Ok。
    entries: LineupEntry 列表；captain_id: 球隊隊長 (無隊長時為 None)。
    """
    lineup_size = lineup_size or GameConfigLoader.lineup_size()
    team_player_ids = set(team_player_ids)

    # 1. 所有球員都必須屬於本隊 (同一球員不得出現兩次)
    seen = set()
    for entry in entries:
        if entry.player_id not in team_player_ids:
            return Error(ErrorReason.PLAYER_NOT_ON_TEAM, f'球員 {entry.player_id} 不屬於本隊')
        if entry.player_id in seen:
            return Error(ErrorReason.PLAYER_NOT_ON_TEAM, f'球員 {entry.player_id} 重複出現')
        seen.add(entry.player_id)

    # 2. 隊長必須先發
    if captain_id is not None:
        captain_entry = next((e for e in entries if e.player_id == captain_id), None)
        if captain_entry is None or not captain_entry.is_playing:
            return Error(ErrorReason.CAPTAIN_MUST_PLAY, '隊長必須上場 (不可坐板凳)')

    # 3. 分成先發與板凳
    playing = [e for e in entries if e.is_playing]
    bench = [e for e in entries if not e.is_playing]

    # 4. 先發人數
    if len(playing) != lineup_size:
        return Error(ErrorReason.WRONG_PLAYING_COUNT, f'必須剛好 {lineup_size} 名球員擔任守備位置')

    # 5. 守備位置不可重複且必須是合法位置
    positions = {e.fielding_position for e in playing}
    if len(positions) != lineup_size or not positions.issubset(FIELDING_POSITIONS):
        return Error(ErrorReason.DUPLICATE_POSITION, '每個守備位置必須剛好由一名球員擔任')

    # 6. 打序必須是 1..N 的排列
    orders = [e.batting_order for e in playing]
    if None in orders or sorted(orders) != list(range(1, lineup_size + 1)):
        return Error(ErrorReason.INVALID_BATTING_ORDER, f'先發球員的打序必須剛好是 1 到 {lineup_size}')

    # 7. 板凳不可有打序
    if any(e.batting_order is not None for e in bench):
        return Error(ErrorReason.BENCH_HAS_BATTING_ORDER, '板凳球員不可有打序')

    return Ok()

class LineupService:

    @staticmethod
    def validate_and_apply_lineup(team_id, entries, captain_id=None, actor=None):
        """
        驗證並整批替換球隊打線 (刪除後重建)，保留每名球員原本的明星標記。
        一律以交易內重新讀取的球隊隊長驗證；captain_id 只能是目前的隊長，不能藉由打線更換隊長。
        """
        entries = [e if isinstance(e, LineupEntry) else LineupEntry.from_dict(e) for e in entries]

        team = db.session.get(Team, team_id)
        if not team:
            return Error(ErrorReason.TEAM_NOT_FOUND, f'找不到球隊 {team_id}')
        if actor is not None and not AuthService.can_edit_team(actor, team):
            return Error(ErrorReason.FORBIDDEN, '只能編輯自己的球隊')

        try:
            with atomic() as session:
                # 交易內重新讀取名單 (鎖住球員列) 再驗證一次
                team = lock(Team.query.filter_by(id=team_id)).one()
                team_player_ids = [p.id for p in lock(Player.query.filter_by(team_id=team_id)).all()]
                if captain_id is not None and captain_id != team.captain_id:
                    raise ValidationFailed(ErrorReason.INVALID_INPUT, f'球員 {captain_id} 不是本隊隊長')
                unwrap_error(validate_lineup(team_player_ids, entries, captain_id=team.captain_id))
                LineupService._replace_lineup(session, team_player_ids, entries)
        except ValidationFailed as e:
            return e.to_error()

        print(f"✅ [Lineup] 球隊 {team.name} (ID:{team_id}) 打線已更新")
        broadcaster.broadcast(actor.user_id if actor else None, 'lineup-update', {'team_id': team_id})
        return Ok({'team_id': team_id})

    @staticmethod
    def _replace_lineup(session, team_player_ids, entries):
        starred = {
            row.player_id: row.is_starred
            for row in TeamLineup.query.filter(TeamLineup.player_id.in_(team_player_ids)).all()
        } if team_player_ids else {}

        if team_player_ids:
            LineupService.delete_lineup_rows(team_player_ids)
        LineupService.prune_orphan_lineups()

        for entry in entries:
            session.add(LineupService.to_row(entry, is_starred=starred.get(entry.player_id, False)))

    @staticmethod
    def delete_lineup_rows(player_ids=None):
        """
        批次刪除打線資料 (player_ids 為 None 時刪除全部)。
        先 flush 未寫入的變更，刪除後讓 session 內所有物件過期，避免殘留已刪除的打線。
        """
        db.session.flush()
        stmt = delete(TeamLineup)
        if player_ids is not None:
            stmt = stmt.where(TeamLineup.player_id.in_(list(player_ids)))
        result = db.session.execute(stmt.execution_options(synchronize_session=False))
        db.session.expire_all()
        return result.rowcount

    @staticmethod
    def prune_orphan_lineups():
        """刪除已不屬於任何球隊的球員打線資料"""
        db.session.flush()
        free_agents = select(Player.id).where(Player.team_id.is_(None))
        stmt = delete(TeamLineup).where(TeamLineup.player_id.in_(free_agents))
        result = db.session.execute(stmt.execution_options(synchronize_session=False))
        db.session.expire_all()
        return result.rowcount

    @staticmethod
    def add_player_to_lineup(team_id, player_id, should_star=False):
        """
        選秀時自動把球員放進打線: 先發未滿時隨機給一個空的守備位置與打序，否則放板凳。
        只在呼叫端的交易內執行。
        """
        lineup_size = GameConfigLoader.lineup_size()
        current = (
            TeamLineup.query.join(Player, TeamLineup.player_id == Player.id)
            .filter(Player.team_id == team_id, TeamLineup.player_id != player_id)
            .all()
        )
        used_positions = {row.fielding_position for row in current if row.fielding_position}
        used_orders = {row.batting_order for row in current if row.batting_order is not None}

        free_positions = [p for p in FIELDING_POSITIONS if p not in used_positions]
        free_orders = [o for o in range(1, lineup_size + 1) if o not in used_orders]

        row = db.session.get(TeamLineup, player_id)
        if row is None:
            row = TeamLineup(player_id=player_id)
            db.session.add(row)

        if len(current) < lineup_size and free_positions and free_orders:
            row.fielding_position = random.choice(free_positions)
            row.batting_order = random.choice(free_orders)
        else:
            row.fielding_position = None
            row.batting_order = None
        row.is_starred = should_star
        return row

    @staticmethod
    def to_row(entry, is_starred=False):
        return TeamLineup(
            player_id=entry.player_id,
            fielding_position=entry.fielding_position,
            batting_order=entry.batting_order,
            is_starred=is_starred,
        )

    @staticmethod
    def build_default_lineup(player_ids, lineup_size=None):
        """
        前 N 名球員依守備位置順序先發、打序 1..N，其餘坐板凳。
        """
        lineup_size = lineup_size or GameConfigLoader.lineup_size()
        entries = []
        for idx, pid in enumerate(player_ids):
            if idx < lineup_size and idx < len(FIELDING_POSITIONS):
                entries.append(LineupEntry(pid, FIELDING_POSITIONS[idx], idx + 1))
            else:
                entries.append(LineupEntry(pid))
        return entries

    @staticmethod
    def get_team_lineup(team_id):
        rows = (
            db.session.query(Player, TeamLineup)
            .outerjoin(TeamLineup, TeamLineup.player_id == Player.id)
            .filter(Player.team_id == team_id)
            .order_by(TeamLineup.batting_order.is_(None), TeamLineup.batting_order, Player.sort_position)
            .all()
        )
        return [{
            'player_id': player.id,
            'name': player.name,
            'fielding_position': lineup.fielding_position if lineup else None,
            'batting_order': lineup.batting_order if lineup else None,
            'is_starred': bool(lineup and lineup.is_starred),
        } for player, lineup in rows]
