# ssbl/services/leaderboard_service.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from sqlalchemy import func
from ssbl import db
from ssbl.models.match import MatchPlayerStat
from ssbl.models.player import Player

# 三個出局數 (1/3 局) 進位為一局
THIRDS_PER_INNING = 3

@dataclass
class StatLine:
    """單一球員的累計數據 (每個統計項目一個欄位)"""
    player_id: int
    match_count: int = 0
    plate_appearances: int = 0
    hits: int = 0
    home_runs: int = 0
    outs: int = 0
    rbi: int = 0
    innings_pitched_whole: int = 0
    innings_pitched_partial: int = 0
    strikeouts: int = 0
    earned_runs: int = 0
    putouts: int = 0
    assists: int = 0
    double_plays: int = 0
    triple_plays: int = 0
    errors: int = 0

    @property
    def hit_rate_pct(self) -> Optional[float]:
        return hit_rate_pct(self.hits, self.plate_appearances)

    @property
    def innings_pitched(self):
        return normalize_innings(self.innings_pitched_whole, self.innings_pitched_partial)

    @property
    def innings_pitched_display(self):
        whole, thirds = self.innings_pitched
        return f"{whole}.{thirds}"

def hit_rate_pct(hits, plate_appearances):
    """安打率 (%)，四捨五入到小數一位；沒有打席時為 None"""
    if not plate_appearances:
        return None
    pct = Decimal(hits) * 100 / Decimal(plate_appearances)
    return float(pct.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))

def normalize_innings(whole, partial):
    """(整局, 出局數) -> (整局, 0~2 的剩餘出局數)"""
    extra, thirds = divmod(partial or 0, THIRDS_PER_INNING)
    return (whole or 0) + extra, thirds

@dataclass(frozen=True)
class StatColumn:
    key: str
    label: str
    accessor: object

# 排行榜欄位定義 (順序即顯示順序)
STAT_COLUMNS = (
    StatColumn('match_count', 'G', lambda s: s.match_count),
    StatColumn('plate_appearances', 'PA', lambda s: s.plate_appearances),
    StatColumn('hits', 'H', lambda s: s.hits),
    StatColumn('hit_rate_pct', 'H%', lambda s: s.hit_rate_pct),
    StatColumn('home_runs', 'HR', lambda s: s.home_runs),
    StatColumn('outs', 'Outs', lambda s: s.outs),
    StatColumn('rbi', 'RBI', lambda s: s.rbi),
    StatColumn('innings_pitched', 'IP', lambda s: s.innings_pitched_display),
    StatColumn('strikeouts', 'K', lambda s: s.strikeouts),
    StatColumn('earned_runs', 'ER', lambda s: s.earned_runs),
    StatColumn('putouts', 'PO', lambda s: s.putouts),
    StatColumn('assists', 'A', lambda s: s.assists),
    StatColumn('double_plays', 'DP', lambda s: s.double_plays),
    StatColumn('triple_plays', 'TP', lambda s: s.triple_plays),
    StatColumn('errors', 'E', lambda s: s.errors),
)

def _total(column):
    return func.coalesce(func.sum(column), 0)

def sort_by_hit_rate(items, key=lambda item: item):
    """安打率由高到低，沒有安打率 (None) 的排在最後"""
    def sort_key(item):
        rate = key(item)
        return (rate is None, -(rate or 0))
    return sorted(items, key=sort_key)

class LeaderboardService:

    @staticmethod
    def aggregate_stat_lines():
        """以 SQL 彙總每名球員的所有單場數據，回傳 {player_id: StatLine}"""
        rows = (
            db.session.query(
                MatchPlayerStat.player_id,
                func.count(func.distinct(MatchPlayerStat.match_id)),
                _total(MatchPlayerStat.plate_appearances),
                _total(MatchPlayerStat.hits),
                _total(MatchPlayerStat.home_runs),
                _total(MatchPlayerStat.outs),
                _total(MatchPlayerStat.rbi),
                _total(MatchPlayerStat.innings_pitched_whole),
                _total(MatchPlayerStat.innings_pitched_partial),
                _total(MatchPlayerStat.strikeouts),
                _total(MatchPlayerStat.earned_runs),
                _total(MatchPlayerStat.putouts),
                _total(MatchPlayerStat.assists),
                _total(MatchPlayerStat.double_plays),
                _total(MatchPlayerStat.triple_plays),
                _total(MatchPlayerStat.errors),
            )
            .group_by(MatchPlayerStat.player_id)
            .all()
        )

        lines = {}
        for row in rows:
            (player_id, match_count, pa, hits, hr, outs, rbi, ip_whole, ip_partial,
             k, er, po, a, dp, tp, e) = row
            lines[player_id] = StatLine(
                player_id=player_id,
                match_count=int(match_count),
                plate_appearances=int(pa),
                hits=int(hits),
                home_runs=int(hr),
                outs=int(outs),
                rbi=int(rbi),
                innings_pitched_whole=int(ip_whole),
                innings_pitched_partial=int(ip_partial),
                strikeouts=int(k),
                earned_runs=int(er),
                putouts=int(po),
                assists=int(a),
                double_plays=int(dp),
                triple_plays=int(tp),
                errors=int(e),
            )
        return lines

    @staticmethod
    def get_leaderboard(limit=None):
        """回傳 [(Player, StatLine 或 None)]，依安打率排序"""
        players = Player.query.order_by(Player.sort_position).all()
        lines = LeaderboardService.aggregate_stat_lines()

        ranked = sort_by_hit_rate(
            [(player, lines.get(player.id)) for player in players],
            key=lambda item: item[1].hit_rate_pct if item[1] else None
        )
        return ranked[:limit] if limit is not None else ranked

    @staticmethod
    def get_leaderboard_data(limit=None):
        data = []
        for player, line in LeaderboardService.get_leaderboard(limit):
            row = {
                'player_id': player.id,
                'name': player.name,
                'team_id': player.team_id,
                'team_name': player.team.name if player.team else None,
                'stats': None,
            }
            if line is not None:
                row['stats'] = {col.key: col.accessor(line) for col in STAT_COLUMNS}
            data.append(row)
        return {
            'columns': [{'key': col.key, 'label': col.label} for col in STAT_COLUMNS],
            'players': data,
        }
