# ssbl/routes/team.py
from flask import Blueprint, jsonify, request
from ssbl.routes import respond, require_actor
from ssbl.services.chemistry_service import ChemistryService
from ssbl.services.lineup_service import LineupService
from ssbl.services.team_service import TeamService

team_bp = Blueprint('team', __name__, url_prefix='/api/team')

@team_bp.route('/', methods=['GET'])
def list_teams():
    return jsonify([{
        'id': team.id,
        'name': team.name,
        'abbreviation': team.abbreviation,
        'color': team.color,
        'user_id': team.user_id,
        'conference_id': team.conference_id,
    } for team in TeamService.get_teams()])

@team_bp.route('/<int:team_id>', methods=['GET'])
def get_team(team_id):
    data = TeamService.get_team_with_players(team_id)
    if data is None:
        return jsonify({'success': False, 'reason': 'TeamNotFound', 'message': '找不到球隊'}), 404
    return jsonify(data)

@team_bp.route('/<int:team_id>/chemistry', methods=['GET'])
def get_team_chemistry(team_id):
    data = ChemistryService.get_team_chemistry(team_id)
    if data is None:
        return jsonify({'success': False, 'reason': 'TeamNotFound', 'message': '找不到球隊'}), 404
    return jsonify(data)

@team_bp.route('/<int:team_id>/lineup', methods=['PUT'])
def update_lineup(team_id):
    """
    更新打線
    Payload: {"entries": [{"player_id", "fielding_position", "batting_order"}, ...], "captain_id": 12}
    """
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        entries = data.get('entries') or []
        captain_id = data.get('captain_id')
        result = LineupService.validate_and_apply_lineup(
            team_id, entries,
            captain_id=int(captain_id) if captain_id is not None else None,
            actor=actor
        )
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'success': False, 'reason': 'InvalidInput', 'message': f'打線格式錯誤: {e}'}), 400

    return respond(result)

@team_bp.route('/<int:team_id>/name', methods=['PUT'])
def update_name(team_id):
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(TeamService.update_team_name(actor, team_id, data.get('name')))

@team_bp.route('/<int:team_id>/trade-preferences', methods=['PUT'])
def update_trade_preferences(team_id):
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(TeamService.update_trade_preferences(
        actor, team_id, data.get('looking_for'), data.get('willing_to_trade')
    ))
