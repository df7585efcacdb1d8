# ssbl/services/draft_service.py
import random
from datetime import datetime
from ssbl import db
from ssbl.models.league import Season, UserSeason, CURRENT_SEASON_ID, SEASON_DRAFTING
from ssbl.models.player import Player, TeamLineup
from ssbl.models.team import Team
from ssbl.models.user import User
from ssbl.models.event import EVENT_DRAFT
from ssbl.services.results import Ok, Error, ErrorReason, ValidationFailed, unwrap_error
from ssbl.services.auth_service import AuthService
from ssbl.services.event_service import EventService
from ssbl.services.lineup_service import LineupService
from ssbl.services.notifier import broadcaster
from ssbl.utils.game_config_loader import GameConfigLoader
from ssbl.utils.transaction import atomic, lock

# =====================================================
# 蛇形選秀順序 (純函式)
# =====================================================

def compute_next_drafter_index(total_picks_made, participant_count):
    """
    依已完成的總選秀數計算下一位選秀者的索引 (0-based)。
    偶數輪正向 0..N-1，奇數輪反向 N-1..0。

    例: 3 人 (A, B, C) -> A B C | C B A | A B C
    """
    if participant_count <= 0:
        raise ValueError("participant_count must be positive")

    round_number = total_picks_made // participant_count
    position_in_round = total_picks_made % participant_count
    if round_number % 2 == 0:
        return position_in_round
    return participant_count - 1 - position_in_round

def compute_next_drafter(total_picks_made, turns):
    """
    turns: {drafting_turn: user_id}，drafting_turn 為 1..N。
    回傳 drafting_turn == index + 1 的使用者。
    """
    if not turns:
        return None
    index = compute_next_drafter_index(total_picks_made, len(turns))
    return turns.get(index + 1)

def check_draft_pick(season, user_id, player, team, roster_count, team_size=None):
    """依固定順序檢查一次選秀是否合法 (不修改任何資料)"""
    team_size = team_size or GameConfigLoader.team_size()

    if season is None or season.state != SEASON_DRAFTING:
        state = season.state if season else 'missing'
        return Error(ErrorReason.SEASON_NOT_DRAFTING, f'賽季目前為 "{state}"，不在選秀階段')
    if season.current_drafting_user_id != user_id:
        return Error(ErrorReason.NOT_YOUR_TURN, '還沒輪到你選秀')
    if player is None:
        return Error(ErrorReason.PLAYER_NOT_FOUND, '找不到球員')
    if player.team_id is not None:
        return Error(ErrorReason.PLAYER_ALREADY_ASSIGNED, f'{player.name} 已經屬於其他球隊')
    if team is None:
        return Error(ErrorReason.NO_TEAM_FOR_USER, '使用者沒有球隊')
    if roster_count >= team_size:
        return Error(ErrorReason.ROSTER_FULL, f'球隊已有 {team_size} 名球員 (上限)')
    return Ok()

class DraftService:
    """
    SSBL 選秀服務
    負責輪次計算、選秀驗證與執行、預選 (pre-draft)、明星球員、選秀計時器與順位管理。
    """

    # =====================================================
    # 1. 查詢
    # =====================================================

    @staticmethod
    def get_drafting_order():
        return (
            UserSeason.query.filter_by(season_id=CURRENT_SEASON_ID)
            .order_by(UserSeason.drafting_turn.asc())
            .all()
        )

    @staticmethod
    def get_turn_map():
        return {entry.drafting_turn: entry.user_id for entry in DraftService.get_drafting_order()}

    @staticmethod
    def total_picks_made():
        return Player.query.filter(Player.team_id.isnot(None)).count()

    @staticmethod
    def _team_and_roster(user_id):
        team = Team.query.filter_by(user_id=user_id).first()
        roster_count = Player.query.filter_by(team_id=team.id).count() if team else 0
        return team, roster_count

    @staticmethod
    def preview_upcoming_drafters(count=5):
        """目前選秀者之後的 N 個順位 (依總選秀數推算)"""
        turns = DraftService.get_turn_map()
        if not turns:
            return []
        total = DraftService.total_picks_made()
        return [compute_next_drafter(total + i, turns) for i in range(1, count + 1)]

    # =====================================================
    # 2. 選秀
    # =====================================================

    @staticmethod
    def validate_draft_pick(user_id, player_id):
        season = db.session.get(Season, CURRENT_SEASON_ID)
        player = db.session.get(Player, player_id)
        team, roster_count = DraftService._team_and_roster(user_id)
        return check_draft_pick(season, user_id, player, team, roster_count)

    @staticmethod
    def draft_player(user_id, player_id, skip_auto_draft=False):
        """
        選秀並推進到下一位。
        先做一次預先檢查，交易內鎖住賽季列與球員列後再檢查一次，失敗時整筆回滾。
        下一位若有可用的預選球員，在同一交易內自動替他選 (只自動一層)。
        """
        validation = DraftService.validate_draft_pick(user_id, player_id)
        if not validation.success:
            return validation

        try:
            with atomic():
                season = Season.lock_current()
                player = lock(Player.query.filter_by(id=player_id)).first()
                team, roster_count = DraftService._team_and_roster(user_id)
                unwrap_error(check_draft_pick(season, user_id, player, team, roster_count))

                picks = [DraftService._apply_pick(user_id, player, team, roster_count)]
                next_user_id = DraftService._advance_to_next_drafter(season)

                if not skip_auto_draft and next_user_id is not None:
                    auto_pick = DraftService._auto_draft_in_transaction(season, next_user_id)
                    if auto_pick:
                        picks.append(auto_pick)
                        next_user_id = season.current_drafting_user_id
        except ValidationFailed as e:
            print(f"⚠️ [Draft] 使用者 {user_id} 選秀失敗 (交易內檢查): {e.reason.value}")
            return e.to_error()

        for pick in picks:
            print(f"✅ [Draft] 第 {pick['pick_number']} 順位: {pick['player_name']} -> 球隊 {pick['team_id']}")
            announcement = pick.pop('announcement')
            EventService.publish(pick['user_id'], 'draft-update', pick, announcement)

        return Ok({'pick': picks[0], 'auto_picks': picks[1:], 'next_drafter_id': next_user_id})

    @staticmethod
    def _apply_pick(user_id, player, team, roster_count):
        # 球隊第一位球員自動成為明星
        should_star = roster_count == 0
        player.team_id = team.id

        if team.captain_id is None and player.is_captain_eligible:
            team.captain_id = player.id

        LineupService.add_player_to_lineup(team.id, player.id, should_star=should_star)
        pick_number, announcement = EventService.record_draft(user_id, player, team)

        # 清除所有人對此球員的預選
        for entry in UserSeason.query.filter_by(pre_draft_player_id=player.id).all():
            entry.pre_draft_player_id = None
        db.session.flush()

        return {
            'type': EVENT_DRAFT,
            'user_id': user_id,
            'player_id': player.id,
            'player_name': player.name,
            'team_id': team.id,
            'pick_number': pick_number,
            'starred': should_star,
            'captain': team.captain_id == player.id,
            'announcement': announcement,
        }

    @staticmethod
    def _advance_to_next_drafter(season):
        """以指派後的總選秀數重新計算下一位，並重新起算計時器"""
        db.session.flush()
        next_user_id = compute_next_drafter(DraftService.total_picks_made(), DraftService.get_turn_map())
        season.current_drafting_user_id = next_user_id
        DraftService.restart_clock(season)
        return next_user_id

    @staticmethod
    def _auto_draft_in_transaction(season, user_id):
        entry = db.session.get(UserSeason, (user_id, CURRENT_SEASON_ID))
        if not entry or not entry.pre_draft_player_id:
            return None

        player = lock(Player.query.filter_by(id=entry.pre_draft_player_id)).first()
        team, roster_count = DraftService._team_and_roster(user_id)
        check = check_draft_pick(season, user_id, player, team, roster_count)
        if not check.success:
            print(f"⚠️ [Draft] 使用者 {user_id} 的預選無法執行 ({check.reason.value})，已清除")
            entry.pre_draft_player_id = None
            return None

        pick = DraftService._apply_pick(user_id, player, team, roster_count)
        pick['auto'] = True
        DraftService._advance_to_next_drafter(season)
        return pick

    @staticmethod
    def attempt_auto_draft(user_id):
        """以使用者的預選球員執行一次正常選秀，失敗時清除預選"""
        pre_draft_player_id = DraftService.get_pre_draft(user_id)
        if not pre_draft_player_id:
            return Error(ErrorReason.NO_PRE_DRAFT, '沒有預選球員')

        player = db.session.get(Player, pre_draft_player_id)
        if player is None or player.team_id is not None:
            DraftService.clear_pre_draft(user_id)
            return Error(ErrorReason.PLAYER_ALREADY_ASSIGNED, '預選球員已被選走')

        result = DraftService.draft_player(user_id, pre_draft_player_id)
        if not result.success:
            DraftService.clear_pre_draft(user_id)
        return result

    # =====================================================
    # 3. 預選 (Pre-draft)
    # =====================================================

    @staticmethod
    def set_pre_draft(user_id, player_id):
        season = db.session.get(Season, CURRENT_SEASON_ID)
        if season is None or season.state != SEASON_DRAFTING:
            return Error(ErrorReason.SEASON_NOT_DRAFTING, '不在選秀階段')

        player = db.session.get(Player, player_id)
        if player is None:
            return Error(ErrorReason.PLAYER_NOT_FOUND, '找不到球員')
        if player.team_id is not None:
            return Error(ErrorReason.PLAYER_ALREADY_ASSIGNED, f'{player.name} 已經屬於其他球隊')

        with atomic():
            entry = db.session.get(UserSeason, (user_id, CURRENT_SEASON_ID))
            if entry is None:
                return Error(ErrorReason.NO_TEAM_FOR_USER, '使用者不在選秀名單中')
            entry.pre_draft_player_id = player_id

        return Ok({'pre_draft_player_id': player_id})

    @staticmethod
    def clear_pre_draft(user_id):
        with atomic():
            entry = db.session.get(UserSeason, (user_id, CURRENT_SEASON_ID))
            if entry is not None:
                entry.pre_draft_player_id = None
        return Ok()

    @staticmethod
    def get_pre_draft(user_id):
        entry = db.session.get(UserSeason, (user_id, CURRENT_SEASON_ID))
        return entry.pre_draft_player_id if entry else None

    # =====================================================
    # 4. 明星球員
    # =====================================================

    @staticmethod
    def set_player_starred(user_id, player_id):
        """
        切換明星標記 (僅選秀階段)。標記一名球員時，同隊其他球員的標記全部取消。
        """
        season = db.session.get(Season, CURRENT_SEASON_ID)
        if season is None or season.state != SEASON_DRAFTING:
            return Error(ErrorReason.SEASON_NOT_DRAFTING, '只有選秀階段可以設定明星球員')

        team = Team.query.filter_by(user_id=user_id).first()
        if team is None:
            return Error(ErrorReason.NO_TEAM_FOR_USER, '使用者沒有球隊')

        player = db.session.get(Player, player_id)
        if player is None:
            return Error(ErrorReason.PLAYER_NOT_FOUND, '找不到球員')
        if player.team_id != team.id:
            return Error(ErrorReason.PLAYER_NOT_ON_TEAM, '球員不屬於你的球隊')

        with atomic() as session:
            row = session.get(TeamLineup, player_id)
            if row is not None and row.is_starred:
                row.is_starred = False
                starred = False
            else:
                team_rows = (
                    TeamLineup.query.join(Player, TeamLineup.player_id == Player.id)
                    .filter(Player.team_id == team.id)
                    .all()
                )
                for other in team_rows:
                    other.is_starred = False
                if row is None:
                    row = TeamLineup(player_id=player_id)
                    session.add(row)
                row.is_starred = True
                starred = True

        broadcaster.broadcast(user_id, 'lineup-update', {'team_id': team.id, 'player_id': player_id})
        return Ok({'player_id': player_id, 'is_starred': starred})

    # =====================================================
    # 5. 選秀計時器
    # =====================================================

    @staticmethod
    def timer_duration():
        return int(GameConfigLoader.get('league_system.draft.timer_seconds', 120))

    @staticmethod
    def restart_clock(season, now=None):
        season.draft_timer_started_at = now or datetime.utcnow()
        season.draft_timer_paused_at = None
        season.draft_timer_duration = DraftService.timer_duration()

    @staticmethod
    def stop_clock(season):
        season.draft_timer_started_at = None
        season.draft_timer_paused_at = None

    @staticmethod
    def remaining_seconds(season, now=None):
        if season is None or season.draft_timer_started_at is None:
            return None
        reference = season.draft_timer_paused_at or now or datetime.utcnow()
        elapsed = (reference - season.draft_timer_started_at).total_seconds()
        duration = season.draft_timer_duration or DraftService.timer_duration()
        return max(0, int(duration - elapsed))

    @staticmethod
    def pause_draft_clock(actor, now=None):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        with atomic():
            season = Season.lock_current()
            if season is None or season.state != SEASON_DRAFTING:
                return Error(ErrorReason.SEASON_NOT_DRAFTING, '不在選秀階段')
            if season.draft_timer_paused_at is None:
                season.draft_timer_paused_at = now or datetime.utcnow()

        print("⏸️ [Draft] 選秀計時器已暫停")
        return Ok({'remaining_seconds': DraftService.remaining_seconds(season, now)})

    @staticmethod
    def resume_draft_clock(actor, now=None):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        now = now or datetime.utcnow()
        with atomic():
            season = Season.lock_current()
            if season is None or season.state != SEASON_DRAFTING:
                return Error(ErrorReason.SEASON_NOT_DRAFTING, '不在選秀階段')
            if season.draft_timer_started_at is None:
                DraftService.restart_clock(season, now)
            elif season.draft_timer_paused_at is not None:
                # 暫停的時間不計入
                season.draft_timer_started_at += now - season.draft_timer_paused_at
                season.draft_timer_paused_at = None

        print("▶️ [Draft] 選秀計時器已恢復")
        return Ok({'remaining_seconds': DraftService.remaining_seconds(season, now)})

    @staticmethod
    def process_draft_clock(now=None):
        """
        [排程器呼叫] 目前選秀者時間用完時，嘗試執行他的預選。
        沒有預選就什麼都不做 (順位由總選秀數推算，不會跳過任何人)。
        """
        season = db.session.get(Season, CURRENT_SEASON_ID)
        if season is None or season.state != SEASON_DRAFTING:
            return None
        if season.current_drafting_user_id is None or season.draft_timer_paused_at is not None:
            return None

        remaining = DraftService.remaining_seconds(season, now)
        if remaining is None or remaining > 0:
            return None

        user_id = season.current_drafting_user_id
        if not DraftService.get_pre_draft(user_id):
            return None

        print(f"⏰ [Draft] 使用者 {user_id} 時間到，執行預選")
        return DraftService.attempt_auto_draft(user_id)

    # =====================================================
    # 6. 選秀順位管理 (Admin)
    # =====================================================

    @staticmethod
    def get_drafting_order_data():
        season = db.session.get(Season, CURRENT_SEASON_ID)
        current = season.current_drafting_user_id if season else None
        return [{
            'user_id': entry.user_id,
            'name': entry.user.name,
            'drafting_turn': entry.drafting_turn,
            'pre_draft_player_id': entry.pre_draft_player_id,
            'is_current': entry.user_id == current,
        } for entry in DraftService.get_drafting_order()]

    @staticmethod
    def renumber(entries):
        for turn, entry in enumerate(entries, start=1):
            entry.drafting_turn = turn

    @staticmethod
    def create_draft_entries_for_all_users(actor):
        """替還沒有順位的使用者補上順位，排在目前最後一位之後"""
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        with atomic() as session:
            existing = DraftService.get_drafting_order()
            existing_ids = {entry.user_id for entry in existing}
            next_turn = (existing[-1].drafting_turn if existing else 0) + 1

            created = 0
            for user in User.query.order_by(User.id).all():
                if user.id in existing_ids:
                    continue
                session.add(UserSeason(user_id=user.id, season_id=CURRENT_SEASON_ID, drafting_turn=next_turn))
                next_turn += 1
                created += 1

        print(f"📋 [Draft] 新增 {created} 個選秀順位")
        return Ok({'created': created})

    @staticmethod
    def adjust_drafting_order(actor, user_id, direction):
        """與相鄰順位交換 (up / down)，再重新編號為 1..N"""
        check = AuthService.require_admin(actor)
        if not check.success:
            return check
        if direction not in ('up', 'down'):
            return Error(ErrorReason.INVALID_INPUT, f'未知的方向: {direction}')

        with atomic():
            order = DraftService.get_drafting_order()
            index = next((i for i, entry in enumerate(order) if entry.user_id == user_id), None)
            if index is None:
                return Error(ErrorReason.USER_NOT_FOUND, '使用者不在選秀名單中')

            target = index - 1 if direction == 'up' else index + 1
            if 0 <= target < len(order):
                order[index], order[target] = order[target], order[index]
            DraftService.renumber(order)

        return Ok({'order': [entry.user_id for entry in order]})

    @staticmethod
    def randomize_draft_order(actor):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        with atomic():
            order = DraftService.get_drafting_order()
            random.shuffle(order)
            DraftService.renumber(order)

        print(f"🎲 [Draft] 已隨機排定 {len(order)} 個選秀順位")
        return Ok({'order': [entry.user_id for entry in order]})

    @staticmethod
    def set_current_drafting_user(actor, user_id):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check
        if user_id is not None and db.session.get(User, user_id) is None:
            return Error(ErrorReason.USER_NOT_FOUND, f'找不到使用者 {user_id}')

        with atomic():
            season = Season.lock_current()
            if season is None or season.state != SEASON_DRAFTING:
                return Error(ErrorReason.SEASON_NOT_DRAFTING, '不在選秀階段')
            season.current_drafting_user_id = user_id
            if user_id is None:
                DraftService.stop_clock(season)
            else:
                DraftService.restart_clock(season)

        broadcaster.broadcast(actor.user_id, 'draft-update', {'current_drafting_user_id': user_id})
        return Ok({'current_drafting_user_id': user_id})

    @staticmethod
    def seed_first_drafter(season):
        """進入選秀階段時: 由順位最小的使用者開始 (在呼叫端交易內執行)"""
        order = DraftService.get_drafting_order()
        season.current_drafting_user_id = order[0].user_id if order else None
        if order:
            DraftService.restart_clock(season)
        else:
            DraftService.stop_clock(season)
        return season.current_drafting_user_id
