# ssbl/services/match_service.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from sqlalchemy import func
from ssbl import db
from ssbl.models.league import MatchDay, CURRENT_SEASON_ID
from ssbl.models.match import (
    Match, MatchLocation, MatchBattingOrder, MatchPlayerStat,
    MATCH_STATES, MATCH_UPCOMING, MATCH_LIVE, MATCH_FINISHED
)
from ssbl.models.player import Player, TeamLineup
from ssbl.models.team import Team
from ssbl.models.event import EVENT_MATCH_STATE_CHANGE
from ssbl.services.results import Ok, Error, ErrorReason, ValidationFailed
from ssbl.services.auth_service import AuthService
from ssbl.services.event_service import EventService
from ssbl.utils.transaction import atomic, lock

MAX_PARTIAL_INNINGS = 2

def _parse_count(data, key):
    value = data.get(key)
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValueError(key)
    number = int(value)
    if number < 0 or number != float(value):
        raise ValueError(key)
    return number

@dataclass
class MatchStatInput:
    """單場數據輸入，未填寫的項目為 None"""
    plate_appearances: Optional[int] = None
    hits: Optional[int] = None
    home_runs: Optional[int] = None
    outs: Optional[int] = None
    rbi: Optional[int] = None
    innings_pitched_whole: Optional[int] = None
    innings_pitched_partial: Optional[int] = None
    strikeouts: Optional[int] = None
    earned_runs: Optional[int] = None
    putouts: Optional[int] = None
    assists: Optional[int] = None
    double_plays: Optional[int] = None
    triple_plays: Optional[int] = None
    errors: Optional[int] = None

    @classmethod
    def from_dict(cls, data):
        """非負整數以外的值會拋出 ValueError (訊息為欄位名稱)"""
        return cls(
            plate_appearances=_parse_count(data, 'plate_appearances'),
            hits=_parse_count(data, 'hits'),
            home_runs=_parse_count(data, 'home_runs'),
            outs=_parse_count(data, 'outs'),
            rbi=_parse_count(data, 'rbi'),
            innings_pitched_whole=_parse_count(data, 'innings_pitched_whole'),
            innings_pitched_partial=_parse_count(data, 'innings_pitched_partial'),
            strikeouts=_parse_count(data, 'strikeouts'),
            earned_runs=_parse_count(data, 'earned_runs'),
            putouts=_parse_count(data, 'putouts'),
            assists=_parse_count(data, 'assists'),
            double_plays=_parse_count(data, 'double_plays'),
            triple_plays=_parse_count(data, 'triple_plays'),
            errors=_parse_count(data, 'errors'),
        )

    def apply_to(self, row):
        row.plate_appearances = self.plate_appearances
        row.hits = self.hits
        row.home_runs = self.home_runs
        row.outs = self.outs
        row.rbi = self.rbi
        row.innings_pitched_whole = self.innings_pitched_whole
        row.innings_pitched_partial = self.innings_pitched_partial
        row.strikeouts = self.strikeouts
        row.earned_runs = self.earned_runs
        row.putouts = self.putouts
        row.assists = self.assists
        row.double_plays = self.double_plays
        row.triple_plays = self.triple_plays
        row.errors = self.errors
        return row

class MatchService:
    """
    比賽日、球場、比賽與單場數據的管理 (Admin)
    """

    # =====================================================
    # 1. 比賽日
    # =====================================================

    @staticmethod
    def get_match_days():
        return MatchDay.query.order_by(MatchDay.order_in_season).all()

    @staticmethod
    def create_match_day(actor, date, name=None, order_in_season=None):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check
        if date is None:
            return Error(ErrorReason.INVALID_INPUT, '比賽日必須有日期')

        with atomic() as session:
            if order_in_season is None:
                current_max = session.query(func.max(MatchDay.order_in_season)).scalar()
                order_in_season = (current_max or 0) + 1
            match_day = MatchDay(
                name=name or None, date=date, order_in_season=order_in_season, season_id=CURRENT_SEASON_ID
            )
            session.add(match_day)
            session.flush()
            match_day_id = match_day.id

        return Ok({'match_day_id': match_day_id, 'order_in_season': order_in_season})

    # =====================================================
    # 2. 球場
    # =====================================================

    @staticmethod
    def get_match_locations():
        return MatchLocation.query.order_by(MatchLocation.name).all()

    @staticmethod
    def create_match_location(actor, name):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        name = (name or '').strip()
        if not name:
            return Error(ErrorReason.INVALID_INPUT, '球場名稱為必填')
        if MatchLocation.query.filter_by(name=name).first():
            return Error(ErrorReason.DUPLICATE_LOCATION, f'球場 {name} 已存在')

        with atomic() as session:
            location = MatchLocation(name=name)
            session.add(location)
            session.flush()
            location_id = location.id

        return Ok({'location_id': location_id, 'name': name})

    @staticmethod
    def update_match_location(actor, match_id, location_id):
        """location_id 為 None 時清除球場"""
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        match = db.session.get(Match, match_id)
        if match is None:
            return Error(ErrorReason.MATCH_NOT_FOUND, f'找不到比賽 {match_id}')
        if location_id is not None and db.session.get(MatchLocation, location_id) is None:
            return Error(ErrorReason.LOCATION_NOT_FOUND, f'找不到球場 {location_id}')

        with atomic():
            match.location_id = location_id
            match.updated_at = datetime.utcnow()

        return Ok({'match_id': match_id, 'location_id': location_id})

    # =====================================================
    # 3. 比賽
    # =====================================================

    @staticmethod
    def create_match(actor, team_a_id, team_b_id, match_day_id=None, order_in_day=None, location_id=None):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check
        if team_a_id == team_b_id:
            return Error(ErrorReason.SAME_TEAM, '比賽雙方必須是不同球隊')
        if db.session.get(Team, team_a_id) is None or db.session.get(Team, team_b_id) is None:
            return Error(ErrorReason.TEAM_NOT_FOUND, '找不到球隊')
        if match_day_id is not None and db.session.get(MatchDay, match_day_id) is None:
            return Error(ErrorReason.MATCH_DAY_NOT_FOUND, f'找不到比賽日 {match_day_id}')
        if location_id is not None and db.session.get(MatchLocation, location_id) is None:
            return Error(ErrorReason.LOCATION_NOT_FOUND, f'找不到球場 {location_id}')

        with atomic() as session:
            match = Match(
                team_a_id=team_a_id,
                team_b_id=team_b_id,
                match_day_id=match_day_id,
                order_in_day=order_in_day,
                location_id=location_id,
                state=MATCH_UPCOMING,
            )
            session.add(match)
            session.flush()
            match_id = match.id

        print(f"📅 [Match] 已建立比賽 #{match_id}: 球隊 {team_a_id} vs {team_b_id}")
        return Ok({'match_id': match_id})

    @staticmethod
    def _freeze_lineups(match):
        """把雙方目前有打序的球員寫入本場打線快照"""
        for team_id in (match.team_a_id, match.team_b_id):
            rows = (
                db.session.query(Player.id, TeamLineup)
                .join(TeamLineup, TeamLineup.player_id == Player.id)
                .filter(Player.team_id == team_id, TeamLineup.batting_order.isnot(None))
                .all()
            )
            for player_id, lineup in rows:
                db.session.add(MatchBattingOrder(
                    match_id=match.id,
                    team_id=team_id,
                    player_id=player_id,
                    batting_order=lineup.batting_order,
                    fielding_position=lineup.fielding_position,
                    is_starred=lineup.is_starred,
                ))

    @staticmethod
    def update_match_state(actor, match_id, new_state):
        """
        upcoming -> live 時凍結雙方打線；進入 finished 前雙方比分必須都有值。
        每次狀態變更都記錄事件。
        """
        check = AuthService.require_admin(actor)
        if not check.success:
            return check
        if new_state not in MATCH_STATES:
            return Error(ErrorReason.INVALID_MATCH_STATE, f'未知的比賽狀態: {new_state}')
        if db.session.get(Match, match_id) is None:
            return Error(ErrorReason.MATCH_NOT_FOUND, f'找不到比賽 {match_id}')

        try:
            with atomic():
                match = lock(Match.query.filter_by(id=match_id)).one()
                from_state = match.state

                if new_state == MATCH_FINISHED and not match.is_scored:
                    raise ValidationFailed(ErrorReason.SCORES_REQUIRED, '比賽結束前必須輸入雙方比分')
                if from_state == MATCH_UPCOMING and new_state == MATCH_LIVE:
                    MatchService._freeze_lineups(match)

                match.state = new_state
                match.updated_at = datetime.utcnow()
                announcement = EventService.record_match_state_change(actor.user_id, match, from_state, new_state)
        except ValidationFailed as e:
            return e.to_error()

        payload = {'match_id': match_id, 'from_state': from_state, 'to_state': new_state}
        EventService.publish(actor.user_id, EVENT_MATCH_STATE_CHANGE, payload, announcement)
        return Ok(payload)

    @staticmethod
    def update_match_score(actor, match_id, team_a_score, team_b_score):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        for score in (team_a_score, team_b_score):
            if not isinstance(score, int) or isinstance(score, bool) or score < 0:
                return Error(ErrorReason.INVALID_INPUT, '比分必須是非負整數')

        match = db.session.get(Match, match_id)
        if match is None:
            return Error(ErrorReason.MATCH_NOT_FOUND, f'找不到比賽 {match_id}')

        with atomic():
            match.team_a_score = team_a_score
            match.team_b_score = team_b_score
            match.updated_at = datetime.utcnow()

        return Ok({'match_id': match_id, 'team_a_score': team_a_score, 'team_b_score': team_b_score})

    @staticmethod
    def delete_match(actor, match_id):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        match = db.session.get(Match, match_id)
        if match is None:
            return Error(ErrorReason.MATCH_NOT_FOUND, f'找不到比賽 {match_id}')

        # 打線快照與單場數據隨比賽一併刪除
        with atomic() as session:
            session.delete(match)

        return Ok({'match_id': match_id})

    # =====================================================
    # 4. 單場數據
    # =====================================================

    @staticmethod
    def record_player_stats(actor, match_id, player_id, team_id, stats):
        """
        新增或覆蓋 (match, player) 的單場數據。
        stats 可以是 MatchStatInput 或 dict；數值必須是非負整數，出局數 (1/3 局) 介於 0~2。
        """
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        if not isinstance(stats, MatchStatInput):
            try:
                stats = MatchStatInput.from_dict(stats or {})
            except (TypeError, ValueError) as e:
                return Error(ErrorReason.INVALID_STAT, f'數據必須是非負整數: {e}')
        if stats.innings_pitched_partial is not None and stats.innings_pitched_partial > MAX_PARTIAL_INNINGS:
            return Error(ErrorReason.INVALID_STAT, f'投球局數的出局數必須介於 0 到 {MAX_PARTIAL_INNINGS}')

        match = db.session.get(Match, match_id)
        if match is None:
            return Error(ErrorReason.MATCH_NOT_FOUND, f'找不到比賽 {match_id}')
        if db.session.get(Player, player_id) is None:
            return Error(ErrorReason.PLAYER_NOT_FOUND, f'找不到球員 {player_id}')
        if team_id not in (match.team_a_id, match.team_b_id):
            return Error(ErrorReason.INVALID_STAT, '球隊不是這場比賽的參賽隊伍')

        with atomic() as session:
            row = session.get(MatchPlayerStat, (match_id, player_id))
            if row is None:
                row = MatchPlayerStat(match_id=match_id, player_id=player_id)
                session.add(row)
            row.team_id = team_id
            stats.apply_to(row)

        return Ok({'match_id': match_id, 'player_id': player_id})

    # =====================================================
    # 5. 查詢
    # =====================================================

    @staticmethod
    def serialize(match, detail=False):
        data = {
            'id': match.id,
            'team_a_id': match.team_a_id,
            'team_a_name': match.team_a.name if match.team_a else None,
            'team_b_id': match.team_b_id,
            'team_b_name': match.team_b.name if match.team_b else None,
            'match_day_id': match.match_day_id,
            'order_in_day': match.order_in_day,
            'location_id': match.location_id,
            'location_name': match.location.display_name if match.location else None,
            'state': match.state,
            'team_a_score': match.team_a_score,
            'team_b_score': match.team_b_score,
        }
        if detail:
            data['batting_orders'] = [{
                'team_id': bo.team_id,
                'player_id': bo.player_id,
                'batting_order': bo.batting_order,
                'fielding_position': bo.fielding_position,
                'is_starred': bo.is_starred,
            } for bo in match.batting_orders.order_by(MatchBattingOrder.team_id, MatchBattingOrder.batting_order)]
            data['player_stats'] = [{
                'player_id': s.player_id,
                'team_id': s.team_id,
                'plate_appearances': s.plate_appearances,
                'hits': s.hits,
                'home_runs': s.home_runs,
                'rbi': s.rbi,
                'innings_pitched_whole': s.innings_pitched_whole,
                'innings_pitched_partial': s.innings_pitched_partial,
                'strikeouts': s.strikeouts,
                'earned_runs': s.earned_runs,
            } for s in match.player_stats]
        return data

    @staticmethod
    def get_matches():
        return (
            Match.query.outerjoin(MatchDay, Match.match_day_id == MatchDay.id)
            .order_by(MatchDay.order_in_season, Match.order_in_day, Match.id)
            .all()
        )
