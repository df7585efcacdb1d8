# ssbl/services/league_service.py
import random
from sqlalchemy import update, or_
from ssbl import db
from ssbl.models.league import (
    Season, UserSeason, CURRENT_SEASON_ID, SEASON_STATES,
    SEASON_PRE_SEASON, SEASON_DRAFTING, SEASON_PLAYING
)
from ssbl.models.player import Player
from ssbl.models.team import Team, Conference
from ssbl.models.user import User, USER_ROLES
from ssbl.models.trade import Trade
from ssbl.models.match import Match
from ssbl.models.event import Event, EVENT_SEASON_STATE_CHANGE
from ssbl.services.results import Ok, Error, ErrorReason
from ssbl.services.auth_service import AuthService
from ssbl.services.draft_service import DraftService
from ssbl.services.event_service import EventService
from ssbl.services.lineup_service import LineupService
from ssbl.utils.game_config_loader import GameConfigLoader
from ssbl.utils.transaction import atomic

def team_abbreviation(name, length=None):
    """取名字各單字的字首 (最多 3 個字元)，沒有可用字首時取名字前三個字元"""
    length = length or GameConfigLoader.get('league_system.team.abbreviation_length', 3)
    initials = ''.join(word[0] for word in name.split() if word).upper()[:length]
    return initials or name[:length].upper()

class LeagueService:
    """
    SSBL 聯賽營運服務
    負責賽季狀態機、名單清空與隨機分隊、使用者與分區管理。
    """

    # =====================================================
    # 1. 賽季狀態機
    # =====================================================

    @staticmethod
    def get_current_season():
        season = db.session.get(Season, CURRENT_SEASON_ID)
        if not season:
            season = Season(id=CURRENT_SEASON_ID, state=SEASON_PRE_SEASON)
            db.session.add(season)
            db.session.commit()
        return season

    @staticmethod
    def _wipe_rosters():
        """刪除全部打線、清空隊長與所有球員的球隊 (在呼叫端交易內執行)"""
        LineupService.delete_lineup_rows()
        db.session.execute(update(Team).values(captain_id=None).execution_options(synchronize_session=False))
        db.session.execute(update(Player).values(team_id=None).execution_options(synchronize_session=False))
        db.session.execute(
            update(UserSeason).values(pre_draft_player_id=None).execution_options(synchronize_session=False)
        )
        db.session.expire_all()

    @staticmethod
    def set_season_state(actor, new_state):
        """
        設定賽季狀態。只有兩條邊帶有副作用:
        - pre-season -> drafting: 清空名單與打線，由第 1 順位開始選秀
        - drafting -> playing: 清除目前選秀者
        其他轉換 (含管理員任意指定) 只更新狀態欄位。
        """
        check = AuthService.require_admin(actor)
        if not check.success:
            return check
        if new_state not in SEASON_STATES:
            return Error(ErrorReason.INVALID_STATE, f'未知的賽季狀態: {new_state}')

        with atomic() as session:
            season = Season.lock_current()
            if season is None:
                season = Season(id=CURRENT_SEASON_ID, state=SEASON_PRE_SEASON)
                session.add(season)
                session.flush()
            from_state = season.state

            if from_state == SEASON_PRE_SEASON and new_state == SEASON_DRAFTING:
                LeagueService._wipe_rosters()
                DraftService.seed_first_drafter(season)
            elif from_state == SEASON_DRAFTING and new_state == SEASON_PLAYING:
                season.current_drafting_user_id = None
                DraftService.stop_clock(season)

            season.state = new_state
            announcement = EventService.record_season_state_change(actor.user_id, from_state, new_state)
            current_drafter = season.current_drafting_user_id

        print(f"🔄 [Season] 賽季狀態 {from_state} -> {new_state}")
        payload = {'from_state': from_state, 'to_state': new_state, 'current_drafting_user_id': current_drafter}
        EventService.publish(actor.user_id, EVENT_SEASON_STATE_CHANGE, payload, announcement)
        return Ok(payload)

    @staticmethod
    def get_season_overview(preview_count=5):
        season = LeagueService.get_current_season()
        drafter = season.current_drafting_user
        return {
            'state': season.state,
            'current_drafting_user_id': season.current_drafting_user_id,
            'current_drafting_user_name': drafter.name if drafter else None,
            'drafting_order': DraftService.get_drafting_order_data(),
            'upcoming_drafters': DraftService.preview_upcoming_drafters(preview_count) if season.state == SEASON_DRAFTING else [],
            'draft_clock': {
                'remaining_seconds': DraftService.remaining_seconds(season),
                'paused': season.draft_timer_paused_at is not None,
                'duration': season.draft_timer_duration,
            },
        }

    # =====================================================
    # 2. 名單管理 (Admin)
    # =====================================================

    @staticmethod
    def wipe_teams(actor):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        with atomic():
            LeagueService._wipe_rosters()

        print("🧹 [League] 已清空所有球隊名單與打線")
        return Ok()

    @staticmethod
    def random_assign_teams(actor):
        """
        把所有自由球員洗牌後輪流發給還有空位的球隊，再替每隊重建打線:
        前 N 名依守備位置順序先發 (隊長一定先發)，其餘坐板凳。
        """
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        team_size = GameConfigLoader.team_size()
        with atomic() as session:
            Season.lock_current()
            teams = Team.query.order_by(Team.id).all()
            free_agents = Player.query.filter(Player.team_id.is_(None)).all()
            random.shuffle(free_agents)

            sizes = {team.id: Player.query.filter_by(team_id=team.id).count() for team in teams}
            assigned = 0
            team_index = 0
            for player in free_agents:
                placed = False
                for _ in range(len(teams)):
                    team = teams[team_index]
                    team_index = (team_index + 1) % len(teams)
                    if sizes[team.id] < team_size:
                        player.team_id = team.id
                        sizes[team.id] += 1
                        assigned += 1
                        placed = True
                        break
                if not placed:
                    break

            session.flush()
            team_rosters = {
                team.id: (team.captain_id, [p.id for p in Player.query.filter_by(team_id=team.id).all()])
                for team in teams
            }
            for team_id, (captain_id, player_ids) in team_rosters.items():
                if not player_ids:
                    continue
                random.shuffle(player_ids)
                if captain_id in player_ids:
                    player_ids.remove(captain_id)
                    player_ids.insert(0, captain_id)
                LineupService.delete_lineup_rows(player_ids)
                for entry in LineupService.build_default_lineup(player_ids):
                    session.add(LineupService.to_row(entry))

        print(f"🎲 [League] 隨機分配 {assigned} 名球員到 {len(team_rosters)} 支球隊")
        return Ok({'assigned': assigned})

    # =====================================================
    # 3. 使用者管理 (Admin)
    # =====================================================

    @staticmethod
    def get_users():
        return User.query.order_by(User.name).all()

    @staticmethod
    def create_user(actor, name, role, discord_snowflake):
        """建立使用者，同時建立預設球隊並排入選秀順位最後一位"""
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        name = (name or '').strip()
        if not name or not discord_snowflake:
            return Error(ErrorReason.INVALID_INPUT, '名稱與外部身分識別碼為必填')
        if role not in USER_ROLES:
            return Error(ErrorReason.INVALID_INPUT, f'未知的權限: {role}')
        if User.query.filter_by(discord_snowflake=str(discord_snowflake)).first():
            return Error(ErrorReason.DUPLICATE_USER, '此外部身分已經建立過帳號')

        team_name = f"{name}'s Team"
        if Team.query.filter_by(name=team_name).first():
            return Error(ErrorReason.INVALID_TEAM_NAME, f'隊名 {team_name} 已被使用')

        with atomic() as session:
            user = User(name=name, role=role, discord_snowflake=str(discord_snowflake))
            session.add(user)
            session.flush()

            session.add(Team(
                name=team_name,
                user_id=user.id,
                abbreviation=team_abbreviation(name),
                color=GameConfigLoader.get('league_system.team.default_color', 'white'),
            ))

            last = UserSeason.query.filter_by(season_id=CURRENT_SEASON_ID).order_by(UserSeason.drafting_turn.desc()).first()
            session.add(UserSeason(
                user_id=user.id,
                season_id=CURRENT_SEASON_ID,
                drafting_turn=(last.drafting_turn if last else 0) + 1,
            ))
            user_id = user.id

        print(f"👤 [League] 建立使用者 {name} (ID:{user_id}, {role})")
        return Ok({'user_id': user_id})

    @staticmethod
    def delete_user(actor, user_id):
        """
        刪除使用者: 其球隊一併刪除，球員變回自由球員，選秀順位重新編號。
        """
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        user = db.session.get(User, user_id)
        if user is None:
            return Error(ErrorReason.USER_NOT_FOUND, f'找不到使用者 {user_id}')

        with atomic() as session:
            team = Team.query.filter_by(user_id=user_id).first()
            if team is not None:
                player_ids = [p.id for p in Player.query.filter_by(team_id=team.id).all()]
                if player_ids:
                    LineupService.delete_lineup_rows(player_ids)
                    session.execute(
                        update(Player).where(Player.id.in_(player_ids)).values(team_id=None)
                        .execution_options(synchronize_session=False)
                    )
                session.execute(
                    update(Team).where(Team.id == team.id).values(captain_id=None)
                    .execution_options(synchronize_session=False)
                )
                session.expire_all()

                # 球隊刪除時連同它參與過的比賽
                for match in Match.query.filter(or_(Match.team_a_id == team.id, Match.team_b_id == team.id)).all():
                    session.delete(match)

            for trade in Trade.query.filter(or_(Trade.from_user_id == user_id, Trade.to_user_id == user_id)).all():
                session.delete(trade)
            session.execute(
                update(Event).where(Event.user_id == user_id).values(user_id=None)
                .execution_options(synchronize_session=False)
            )

            season = Season.lock_current()
            if season is not None and season.current_drafting_user_id == user_id:
                season.current_drafting_user_id = None

            session.delete(db.session.get(User, user_id))
            session.flush()
            DraftService.renumber(DraftService.get_drafting_order())

        print(f"🗑️ [League] 已刪除使用者 ID:{user_id}")
        return Ok({'user_id': user_id})

    # =====================================================
    # 4. 分區管理 (Admin)
    # =====================================================

    @staticmethod
    def get_conferences():
        return Conference.query.filter_by(season_id=CURRENT_SEASON_ID).order_by(Conference.id).all()

    @staticmethod
    def create_conference(actor, name, color=None):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        name = (name or '').strip()
        if not name:
            return Error(ErrorReason.INVALID_INPUT, '分區名稱為必填')

        LeagueService.get_current_season()
        with atomic() as session:
            conference = Conference(name=name, color=color, season_id=CURRENT_SEASON_ID)
            session.add(conference)
            session.flush()
            conference_id = conference.id

        return Ok({'conference_id': conference_id})

    @staticmethod
    def delete_conference(actor, conference_id):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        conference = db.session.get(Conference, conference_id)
        if conference is None:
            return Error(ErrorReason.CONFERENCE_NOT_FOUND, f'找不到分區 {conference_id}')

        with atomic() as session:
            for team in Team.query.filter_by(conference_id=conference_id).all():
                team.conference_id = None
            session.delete(conference)

        return Ok({'conference_id': conference_id})

    @staticmethod
    def assign_team_conference(actor, team_id, conference_id):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        team = db.session.get(Team, team_id)
        if team is None:
            return Error(ErrorReason.TEAM_NOT_FOUND, f'找不到球隊 {team_id}')
        if conference_id is not None and db.session.get(Conference, conference_id) is None:
            return Error(ErrorReason.CONFERENCE_NOT_FOUND, f'找不到分區 {conference_id}')

        with atomic():
            team.conference_id = conference_id

        return Ok({'team_id': team_id, 'conference_id': conference_id})
