# ssbl/routes/admin.py
from datetime import datetime
from flask import Blueprint, jsonify, request, session
from ssbl.routes import respond, require_actor
from ssbl.services.auth_service import AuthService
from ssbl.services.chemistry_service import ChemistryService
from ssbl.services.draft_service import DraftService
from ssbl.services.league_service import LeagueService
from ssbl.services.match_service import MatchService

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

def _bad_request(message):
    return jsonify({'success': False, 'reason': 'InvalidInput', 'message': message}), 400

def _optional_int(value):
    return int(value) if value is not None else None

# =====================================================
# 1. 賽季與名單
# =====================================================

@admin_bp.route('/season/state', methods=['POST'])
def set_season_state():
    """
    設定賽季狀態
    Payload: {"state": "drafting"}
    """
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(LeagueService.set_season_state(actor, data.get('state')))

@admin_bp.route('/teams/wipe', methods=['POST'])
def wipe_teams():
    actor, error = require_actor()
    if error:
        return error
    return respond(LeagueService.wipe_teams(actor))

@admin_bp.route('/teams/random-assign', methods=['POST'])
def random_assign_teams():
    actor, error = require_actor()
    if error:
        return error
    return respond(LeagueService.random_assign_teams(actor))

@admin_bp.route('/teams/<int:team_id>/conference', methods=['PUT'])
def assign_team_conference(team_id):
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        conference_id = _optional_int(data.get('conference_id'))
    except (TypeError, ValueError):
        return _bad_request('conference_id 必須是整數')
    return respond(LeagueService.assign_team_conference(actor, team_id, conference_id))

# =====================================================
# 2. 使用者與代理登入
# =====================================================

@admin_bp.route('/users', methods=['GET'])
def list_users():
    actor, error = require_actor()
    if error:
        return error
    check = AuthService.require_admin(actor)
    if not check.success:
        return respond(check)

    return jsonify([{
        'id': user.id,
        'name': user.name,
        'role': user.role,
        'discord_snowflake': user.discord_snowflake,
        'team_id': user.team.id if user.team else None,
    } for user in LeagueService.get_users()])

@admin_bp.route('/users', methods=['POST'])
def create_user():
    """
    建立使用者 (同時建立球隊與選秀順位)
    Payload: {"name": "Mario", "role": "user", "discord_snowflake": "1234"}
    """
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(LeagueService.create_user(
        actor, data.get('name'), data.get('role', 'user'), data.get('discord_snowflake')
    ), success_status=201)

@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
def delete_user(user_id):
    actor, error = require_actor()
    if error:
        return error
    return respond(LeagueService.delete_user(actor, user_id))

@admin_bp.route('/impersonate/<int:user_id>', methods=['POST'])
def impersonate(user_id):
    actor, error = require_actor()
    if error:
        return error
    return respond(AuthService.impersonate(actor, user_id))

@admin_bp.route('/return-to-original', methods=['POST'])
def return_to_original():
    # 代理登入中的身分不是管理員，因此不檢查目前使用者
    return respond(AuthService.return_to_original(session.get('original_user_id')))

# =====================================================
# 3. 選秀順位與計時器
# =====================================================

@admin_bp.route('/draft/order', methods=['POST'])
def create_draft_entries():
    actor, error = require_actor()
    if error:
        return error
    return respond(DraftService.create_draft_entries_for_all_users(actor))

@admin_bp.route('/draft/order/<int:user_id>', methods=['PUT'])
def adjust_drafting_order(user_id):
    """Payload: {"direction": "up" | "down"}"""
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(DraftService.adjust_drafting_order(actor, user_id, data.get('direction')))

@admin_bp.route('/draft/order/randomize', methods=['POST'])
def randomize_draft_order():
    actor, error = require_actor()
    if error:
        return error
    return respond(DraftService.randomize_draft_order(actor))

@admin_bp.route('/draft/current', methods=['PUT'])
def set_current_drafting_user():
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        user_id = _optional_int(data.get('user_id'))
    except (TypeError, ValueError):
        return _bad_request('user_id 必須是整數')
    return respond(DraftService.set_current_drafting_user(actor, user_id))

@admin_bp.route('/draft/clock/pause', methods=['POST'])
def pause_draft_clock():
    actor, error = require_actor()
    if error:
        return error
    return respond(DraftService.pause_draft_clock(actor))

@admin_bp.route('/draft/clock/resume', methods=['POST'])
def resume_draft_clock():
    actor, error = require_actor()
    if error:
        return error
    return respond(DraftService.resume_draft_clock(actor))

# =====================================================
# 4. 分區
# =====================================================

@admin_bp.route('/conferences', methods=['GET'])
def list_conferences():
    return jsonify([{
        'id': c.id,
        'name': c.name,
        'color': c.color,
        'team_ids': [t.id for t in c.teams],
    } for c in LeagueService.get_conferences()])

@admin_bp.route('/conferences', methods=['POST'])
def create_conference():
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(LeagueService.create_conference(actor, data.get('name'), data.get('color')), success_status=201)

@admin_bp.route('/conferences/<int:conference_id>', methods=['DELETE'])
def delete_conference(conference_id):
    actor, error = require_actor()
    if error:
        return error
    return respond(LeagueService.delete_conference(actor, conference_id))

# =====================================================
# 5. 比賽日、球場、比賽與單場數據
# =====================================================

@admin_bp.route('/match-days', methods=['GET'])
def list_match_days():
    return jsonify([{
        'id': d.id,
        'name': d.name,
        'date': d.date.isoformat() if d.date else None,
        'order_in_season': d.order_in_season,
    } for d in MatchService.get_match_days()])

@admin_bp.route('/match-days', methods=['POST'])
def create_match_day():
    """Payload: {"date": "2026-05-01", "name": "Opening Day"}"""
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        date = datetime.strptime(data['date'], '%Y-%m-%d').date()
        order_in_season = _optional_int(data.get('order_in_season'))
    except (KeyError, TypeError, ValueError):
        return _bad_request('日期格式必須是 YYYY-MM-DD')

    return respond(MatchService.create_match_day(actor, date, data.get('name'), order_in_season), success_status=201)

@admin_bp.route('/match-locations', methods=['GET'])
def list_match_locations():
    return jsonify([{
        'id': loc.id,
        'name': loc.name,
        'display_name': loc.display_name,
    } for loc in MatchService.get_match_locations()])

@admin_bp.route('/match-locations', methods=['POST'])
def create_match_location():
    """Payload: {"name": "Mario Stadium (Night)"}"""
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(MatchService.create_match_location(actor, data.get('name')), success_status=201)

@admin_bp.route('/matches/<int:match_id>/location', methods=['PUT'])
def update_match_location(match_id):
    """Payload: {"location_id": 4} (null 代表清除)"""
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        location_id = _optional_int(data.get('location_id'))
    except (TypeError, ValueError):
        return _bad_request('location_id 必須是整數')
    return respond(MatchService.update_match_location(actor, match_id, location_id))

@admin_bp.route('/matches', methods=['POST'])
def create_match():
    """Payload: {"team_a_id": 1, "team_b_id": 2, "match_day_id": 3, "order_in_day": 1, "location_id": 4}"""
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        team_a_id = int(data['team_a_id'])
        team_b_id = int(data['team_b_id'])
        match_day_id = _optional_int(data.get('match_day_id'))
        order_in_day = _optional_int(data.get('order_in_day'))
        location_id = _optional_int(data.get('location_id'))
    except (KeyError, TypeError, ValueError):
        return _bad_request('比賽內容格式錯誤')

    return respond(
        MatchService.create_match(actor, team_a_id, team_b_id, match_day_id, order_in_day, location_id),
        success_status=201
    )

@admin_bp.route('/matches/<int:match_id>/state', methods=['PUT'])
def update_match_state(match_id):
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(MatchService.update_match_state(actor, match_id, data.get('state')))

@admin_bp.route('/matches/<int:match_id>/score', methods=['PUT'])
def update_match_score(match_id):
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(MatchService.update_match_score(
        actor, match_id, data.get('team_a_score'), data.get('team_b_score')
    ))

@admin_bp.route('/matches/<int:match_id>', methods=['DELETE'])
def delete_match(match_id):
    actor, error = require_actor()
    if error:
        return error
    return respond(MatchService.delete_match(actor, match_id))

@admin_bp.route('/matches/<int:match_id>/stats/<int:player_id>', methods=['PUT'])
def record_player_stats(match_id, player_id):
    """
    新增或覆蓋球員單場數據
    Payload: {"team_id": 1, "stats": {"plate_appearances": 4, "hits": 2, ...}}
    """
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        team_id = int(data['team_id'])
    except (KeyError, TypeError, ValueError):
        return _bad_request('team_id 為必填')

    return respond(MatchService.record_player_stats(actor, match_id, player_id, team_id, data.get('stats') or {}))

# =====================================================
# 6. 角色默契
# =====================================================

@admin_bp.route('/chemistry', methods=['PUT'])
def set_chemistry():
    """Payload: {"character1": "Mario", "character2": "Luigi", "relationship": "positive" | "negative" | null}"""
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    return respond(ChemistryService.set_chemistry(
        actor, data.get('character1'), data.get('character2'), data.get('relationship')
    ))

@admin_bp.route('/chemistry/sync', methods=['POST'])
def sync_chemistry():
    """Payload: {"pairs": [{"character1", "character2", "relationship"}, ...]}"""
    actor, error = require_actor()
    if error:
        return error

    data = request.get_json() or {}
    try:
        pairs = [(p['character1'], p['character2'], p['relationship']) for p in data.get('pairs') or []]
    except (KeyError, TypeError):
        return _bad_request('默契清單格式錯誤')
    return respond(ChemistryService.sync_chemistry(actor, pairs))
