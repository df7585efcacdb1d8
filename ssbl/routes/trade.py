# ssbl/routes/trade.py
from flask import Blueprint, jsonify, request
from ssbl.routes import respond, require_actor
from ssbl.services.trade_service import TradeService

trade_bp = Blueprint('trade', __name__, url_prefix='/api/trade')

@trade_bp.route('/', methods=['GET'])
def list_trades():
    return jsonify(TradeService.get_trades(
        page=request.args.get('page', 1, type=int),
        user_id=request.args.get('user_id', type=int),
        order=request.args.get('order', 'desc'),
    ))

@trade_bp.route('/pending', methods=['GET'])
def pending_trades():
    actor, error = require_actor()
    if error:
        return error
    return jsonify([TradeService.serialize(t) for t in TradeService.get_pending_trades_for_user(actor.user_id)])

@trade_bp.route('/', methods=['POST'])
def create_trade():
    """
    提出交易
    Payload: {"to_user_id": 2, "from_player_ids": [..], "to_player_ids": [..], "proposal_text": "..."}
    """
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        to_user_id = int(data['to_user_id'])
        from_player_ids = [int(pid) for pid in data.get('from_player_ids') or []]
        to_player_ids = [int(pid) for pid in data.get('to_player_ids') or []]
    except (KeyError, TypeError, ValueError):
        return jsonify({'success': False, 'reason': 'InvalidInput', 'message': '交易內容格式錯誤'}), 400

    return respond(TradeService.create_trade_request(
        actor.user_id, to_user_id, from_player_ids, to_player_ids, data.get('proposal_text')
    ), success_status=201)

@trade_bp.route('/<int:trade_id>/accept', methods=['POST'])
def accept_trade(trade_id):
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json(silent=True) or {}
    return respond(TradeService.accept_trade(trade_id, actor.user_id, data.get('response_text')))

@trade_bp.route('/<int:trade_id>/deny', methods=['POST'])
def deny_trade(trade_id):
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json(silent=True) or {}
    return respond(TradeService.deny_trade(trade_id, actor.user_id, data.get('response_text')))
