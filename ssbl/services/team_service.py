# ssbl/services/team_service.py
from datetime import datetime
from ssbl import db
from ssbl.models.team import Team
from ssbl.services.results import Ok, Error, ErrorReason
from ssbl.services.auth_service import AuthService
from ssbl.services.lineup_service import LineupService
from ssbl.utils.game_config_loader import GameConfigLoader
from ssbl.utils.transaction import atomic

class TeamService:

    @staticmethod
    def _editable_team(actor, team_id):
        team = db.session.get(Team, team_id)
        if team is None:
            return None, Error(ErrorReason.TEAM_NOT_FOUND, f'找不到球隊 {team_id}')
        if not AuthService.can_edit_team(actor, team):
            return None, Error(ErrorReason.FORBIDDEN, '只能編輯自己的球隊')
        return team, None

    @staticmethod
    def update_team_name(actor, team_id, name):
        """空白名稱視為不修改"""
        team, error = TeamService._editable_team(actor, team_id)
        if error:
            return error

        if not isinstance(name, str) or not name.strip():
            return Ok({'team_id': team_id, 'name': team.name})

        trimmed = name.strip()
        max_length = GameConfigLoader.get('league_system.team.max_name_length', 29)
        if len(trimmed) > max_length:
            return Error(ErrorReason.INVALID_TEAM_NAME, f'隊名不可超過 {max_length} 個字元')
        if Team.query.filter(Team.name == trimmed, Team.id != team_id).first():
            return Error(ErrorReason.INVALID_TEAM_NAME, f'隊名 {trimmed} 已被使用')

        with atomic():
            team.name = trimmed

        return Ok({'team_id': team_id, 'name': trimmed})

    @staticmethod
    def update_trade_preferences(actor, team_id, looking_for, willing_to_trade):
        team, error = TeamService._editable_team(actor, team_id)
        if error:
            return error

        with atomic():
            team.looking_for = (looking_for or '').strip() or None
            team.willing_to_trade = (willing_to_trade or '').strip() or None
            team.trade_block_updated_at = datetime.utcnow()

        return Ok({'team_id': team_id})

    @staticmethod
    def get_teams():
        return Team.query.order_by(Team.name).all()

    @staticmethod
    def get_team_with_players(team_id):
        team = db.session.get(Team, team_id)
        if team is None:
            return None
        return {
            'id': team.id,
            'name': team.name,
            'abbreviation': team.abbreviation,
            'color': team.color,
            'user_id': team.user_id,
            'owner_name': team.owner.name if team.owner else None,
            'captain_id': team.captain_id,
            'conference_id': team.conference_id,
            'looking_for': team.looking_for,
            'willing_to_trade': team.willing_to_trade,
            'trade_block_updated_at': team.trade_block_updated_at.isoformat() if team.trade_block_updated_at else None,
            'team_size': GameConfigLoader.team_size(),
            'players': LineupService.get_team_lineup(team.id),
        }
