# ssbl/routes/draft.py
from flask import Blueprint, jsonify, request
from ssbl.routes import respond, require_actor
from ssbl.services.draft_service import DraftService
from ssbl.services.league_service import LeagueService
from ssbl.services.results import Ok

draft_bp = Blueprint('draft', __name__, url_prefix='/api/draft')

def _player_id_from_body():
    """回傳 (player_id, None) 或 (None, 400 回應)"""
    data = request.get_json(silent=True) or {}
    try:
        return int(data['player_id']), None
    except (KeyError, TypeError, ValueError):
        return None, (jsonify({'success': False, 'reason': 'InvalidInput', 'message': 'player_id 必須是整數'}), 400)

@draft_bp.route('/state', methods=['GET'])
def get_draft_state():
    """目前選秀者、順位、接下來的選秀者與計時器"""
    return jsonify(LeagueService.get_season_overview())

@draft_bp.route('/pick', methods=['POST'])
def draft_pick():
    actor, error = require_actor()
    if error:
        return error

    player_id, error = _player_id_from_body()
    if error:
        return error
    return respond(DraftService.draft_player(actor.user_id, player_id))

@draft_bp.route('/pre-draft', methods=['GET'])
def get_pre_draft():
    actor, error = require_actor()
    if error:
        return error
    return respond(Ok({'pre_draft_player_id': DraftService.get_pre_draft(actor.user_id)}))

@draft_bp.route('/pre-draft', methods=['POST'])
def set_pre_draft():
    actor, error = require_actor()
    if error:
        return error

    player_id, error = _player_id_from_body()
    if error:
        return error
    return respond(DraftService.set_pre_draft(actor.user_id, player_id))

@draft_bp.route('/pre-draft', methods=['DELETE'])
def clear_pre_draft():
    actor, error = require_actor()
    if error:
        return error
    return respond(DraftService.clear_pre_draft(actor.user_id))

@draft_bp.route('/star', methods=['POST'])
def toggle_star():
    actor, error = require_actor()
    if error:
        return error

    player_id, error = _player_id_from_body()
    if error:
        return error
    return respond(DraftService.set_player_starred(actor.user_id, player_id))
