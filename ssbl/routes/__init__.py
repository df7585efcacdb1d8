# ssbl/routes/__init__.py
# 模組名稱: 主路由與共用回應工具
# 描述: 健康檢查、聯賽規則設定，以及服務層結果 (Ok / Error / Redirect) 轉為 HTTP 回應的共用函式。

from flask import Blueprint, jsonify, redirect, session
from ssbl.models.player import FIELDING_POSITIONS
from ssbl.services.results import Error, Redirect, ErrorReason, PersistenceError
from ssbl.utils.game_config_loader import GameConfigLoader
from ssbl.utils.identity import current_actor

# 定義 'main' Blueprint
main = Blueprint('main', __name__)

def respond(result, success_status=200):
    """把服務層的回傳結果轉成 Flask 回應"""
    if isinstance(result, Redirect):
        for key, value in result.session_updates.items():
            if value is None:
                session.pop(key, None)
            else:
                session[key] = value
        return redirect(result.path)
    if isinstance(result, Error):
        return jsonify(result.to_dict()), result.http_status
    return jsonify(result.to_dict()), success_status

def require_actor():
    """回傳 (actor, None) 或 (None, 錯誤回應)"""
    actor = current_actor()
    if actor is None:
        return None, respond(Error(ErrorReason.FORBIDDEN, '請先登入'))
    return actor, None

@main.app_errorhandler(PersistenceError)
def handle_persistence_error(e):
    return jsonify({'success': False, 'reason': 'PersistenceError', 'message': str(e)}), 500

@main.route('/')
def index():
    """API 健康檢查端點"""
    return jsonify({
        "status": "online",
        "message": "SSBL API is running",
        "version": "v1.0"
    })

@main.route('/api/system/config/league', methods=['GET'])
def get_league_config():
    """
    取得聯賽規則設定
    用途: 供前端動態載入規則，確保前後端邏輯一致 (Single Source of Truth)。
    """
    league_config = GameConfigLoader.get('league_system')
    if not league_config:
        return jsonify({'error': 'League config not found'}), 500

    return jsonify({
        **league_config,
        'fielding_positions': list(FIELDING_POSITIONS),
    })
