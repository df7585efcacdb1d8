# ssbl/routes/league.py
from flask import Blueprint, jsonify, request
from ssbl.services.event_service import EventService
from ssbl.services.leaderboard_service import LeaderboardService
from ssbl.services.league_service import LeagueService
from ssbl.services.match_service import MatchService
from ssbl.services.standings_service import StandingsService
from ssbl.models.match import Match
from ssbl import db

league_bp = Blueprint('league', __name__, url_prefix='/api/league')

@league_bp.route('/season', methods=['GET'])
def get_season_info():
    """取得賽季狀態與選秀概況"""
    return jsonify(LeagueService.get_season_overview())

@league_bp.route('/standings', methods=['GET'])
def get_standings():
    return jsonify(StandingsService.get_standings_data())

@league_bp.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    limit = request.args.get('limit', type=int)
    return jsonify(LeaderboardService.get_leaderboard_data(limit))

@league_bp.route('/events', methods=['GET'])
def get_events():
    page = request.args.get('page', 1, type=int)
    return jsonify(EventService.get_events(page))

@league_bp.route('/matches', methods=['GET'])
def get_matches():
    return jsonify([MatchService.serialize(m) for m in MatchService.get_matches()])

@league_bp.route('/matches/<int:match_id>', methods=['GET'])
def get_match(match_id):
    match = db.session.get(Match, match_id)
    if match is None:
        return jsonify({'success': False, 'reason': 'MatchNotFound', 'message': '找不到比賽'}), 404
    return jsonify(MatchService.serialize(match, detail=True))
