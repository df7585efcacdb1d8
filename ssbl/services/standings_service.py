# ssbl/services/standings_service.py
from dataclasses import dataclass, field
from typing import Dict, Optional
from ssbl.models.league import MatchDay
from ssbl.models.match import Match, MATCH_FINISHED

@dataclass
class MatchDayResult:
    match_day_id: int
    match_day_name: Optional[str]
    user_score: int
    opponent_score: int
    is_win: bool

@dataclass
class StandingsRow:
    user_id: int
    user_name: str
    team_id: int
    team_name: str
    team_abbreviation: str
    captain_stats_character: Optional[str] = None
    wins: int = 0
    losses: int = 0
    run_differential: int = 0
    match_day_results: Dict[int, MatchDayResult] = field(default_factory=dict)

    @property
    def wl_ratio(self):
        # 勝場數減敗場數
        return self.wins - self.losses

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'user_name': self.user_name,
            'team_id': self.team_id,
            'team_name': self.team_name,
            'team_abbreviation': self.team_abbreviation,
            'captain_stats_character': self.captain_stats_character,
            'wins': self.wins,
            'losses': self.losses,
            'wl_ratio': self.wl_ratio,
            'run_differential': self.run_differential,
            'match_day_results': [
                {
                    'match_day_id': r.match_day_id,
                    'match_day_name': r.match_day_name,
                    'user_score': r.user_score,
                    'opponent_score': r.opponent_score,
                    'is_win': r.is_win,
                }
                for r in self.match_day_results.values()
            ],
        }

def _new_row(team):
    return StandingsRow(
        user_id=team.owner.id,
        user_name=team.owner.name,
        team_id=team.id,
        team_name=team.name,
        team_abbreviation=team.abbreviation,
        captain_stats_character=team.captain.stats_character if team.captain else None,
    )

def aggregate_standings(matches, match_days):
    """
    [純計算] 由已完賽的比賽推導戰績。

    - 只計入 state=finished、雙方比分皆有值且屬於某個比賽日的比賽
    - 比分較高者勝，其餘 (含平手) 記為敗
    - 同一使用者在同一比賽日有兩場比賽時，後一場覆蓋該格紀錄 (勝敗與分差仍累加)
    - 排序: (勝 - 敗) 由高到低，再依分差由高到低
    回傳 (有完賽比賽的比賽日列表, 排序後的 StandingsRow 列表)
    """
    days_by_id = {md.id: md for md in match_days}
    rows: Dict[int, StandingsRow] = {}
    finished_day_ids = set()

    for match in matches:
        if match.state != MATCH_FINISHED:
            continue
        if match.match_day_id is not None:
            finished_day_ids.add(match.match_day_id)
        if match.team_a_score is None or match.team_b_score is None:
            continue
        match_day = days_by_id.get(match.match_day_id)
        if match_day is None:
            continue

        sides = (
            (match.team_a, match.team_a_score, match.team_b_score),
            (match.team_b, match.team_b_score, match.team_a_score),
        )
        for team, own_score, opponent_score in sides:
            if team is None or team.owner is None:
                continue
            row = rows.get(team.owner.id)
            if row is None:
                row = rows[team.owner.id] = _new_row(team)

            is_win = own_score > opponent_score
            row.match_day_results[match_day.id] = MatchDayResult(
                match_day_id=match_day.id,
                match_day_name=match_day.name,
                user_score=own_score,
                opponent_score=opponent_score,
                is_win=is_win,
            )
            if is_win:
                row.wins += 1
            else:
                row.losses += 1
            row.run_differential += own_score - opponent_score

    surfaced_days = sorted(
        (md for md in match_days if md.id in finished_day_ids),
        key=lambda md: md.order_in_season
    )
    standings = sorted(rows.values(), key=lambda r: (r.wl_ratio, r.run_differential), reverse=True)
    return surfaced_days, standings

class StandingsService:

    @staticmethod
    def get_standings(match_days=None):
        match_days = match_days if match_days is not None else MatchDay.query.order_by(MatchDay.order_in_season).all()
        finished = Match.query.filter_by(state=MATCH_FINISHED).order_by(Match.id).all()
        return aggregate_standings(finished, match_days)

    @staticmethod
    def get_standings_data():
        """每次讀取都從比賽紀錄重新計算"""
        match_days, standings = StandingsService.get_standings()
        return {
            'match_days': [
                {'id': md.id, 'name': md.name, 'order_in_season': md.order_in_season}
                for md in match_days
            ],
            'standings': [row.to_dict() for row in standings],
        }
