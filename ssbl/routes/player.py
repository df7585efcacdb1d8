# ssbl/routes/player.py
from flask import Blueprint, jsonify
from ssbl.services.chemistry_service import ChemistryService

player_bp = Blueprint('player', __name__, url_prefix='/api/players')

@player_bp.route('/chemistry', methods=['GET'])
def chemistry_table():
    """全部角色的默契對照表"""
    return jsonify(ChemistryService.get_chemistry_table())

@player_bp.route('/<int:player_id>/chemistry', methods=['GET'])
def player_chemistry(player_id):
    data = ChemistryService.get_player_chemistry(player_id)
    if data is None:
        return jsonify({'success': False, 'reason': 'PlayerNotFound', 'message': '找不到球員'}), 404
    return jsonify(data)
