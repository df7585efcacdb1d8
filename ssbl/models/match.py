# ssbl/models/match.py
from ssbl import db
from datetime import datetime

MATCH_UPCOMING = 'upcoming'
MATCH_LIVE = 'live'
MATCH_FINISHED = 'finished'
MATCH_STATES = (MATCH_UPCOMING, MATCH_LIVE, MATCH_FINISHED)

class MatchLocation(db.Model):
    """比賽球場 (名稱結尾的 (Day) / (Night) 代表日場 / 夜場)"""
    __tablename__ = 'match_locations'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)

    @property
    def display_name(self):
        return format_location_name(self.name)

    def __repr__(self):
        return f'<MatchLocation {self.name}>'

def format_location_name(name):
    """把結尾的 (Day) / (Night) 換成 ☀️ / 🌙"""
    for suffix, emoji in (('(Day)', '☀️'), ('(Night)', '🌙')):
        if name.endswith(suffix):
            return f'{name[:-len(suffix)].rstrip()} {emoji}'
    return name

class Match(db.Model):
    __tablename__ = 'matches'
    __table_args__ = {'comment': '比賽紀錄'}

    id = db.Column(db.Integer, primary_key=True)
    team_a_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    team_b_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    match_day_id = db.Column(db.Integer, db.ForeignKey('match_days.id', ondelete='SET NULL'), nullable=True)
    order_in_day = db.Column(db.Integer, nullable=True)
    location_id = db.Column(db.Integer, db.ForeignKey('match_locations.id', ondelete='SET NULL'), nullable=True)

    state = db.Column(db.String(10), nullable=False, default=MATCH_UPCOMING, comment='upcoming, live, finished')
    # finished 時必填
    team_a_score = db.Column(db.Integer, nullable=True)
    team_b_score = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    team_a = db.relationship('Team', foreign_keys=[team_a_id])
    team_b = db.relationship('Team', foreign_keys=[team_b_id])
    location = db.relationship('MatchLocation')
    batting_orders = db.relationship('MatchBattingOrder', backref='match', lazy='dynamic', cascade='all, delete-orphan')
    player_stats = db.relationship('MatchPlayerStat', backref='match', lazy='dynamic', cascade='all, delete-orphan')

    @property
    def is_scored(self):
        return self.team_a_score is not None and self.team_b_score is not None

    def __repr__(self):
        return f'<Match {self.team_a_id} vs {self.team_b_id} [{self.state}]>'

class MatchBattingOrder(db.Model):
    """
    比賽開打 (upcoming -> live) 時凍結的雙方打線快照
    """
    __tablename__ = 'match_batting_orders'

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id'), nullable=False)
    batting_order = db.Column(db.Integer, nullable=False)
    fielding_position = db.Column(db.String(4), nullable=True)
    is_starred = db.Column(db.Boolean, nullable=False, default=False)

    def __repr__(self):
        return f'<MatchBattingOrder M:{self.match_id} #{self.batting_order} P:{self.player_id}>'

class MatchPlayerStat(db.Model):
    """
    [單場球員數據]
    每場比賽每名球員一列。投球局數拆為整局與出局數 (1/3 局)，innings_pitched_partial 介於 0~2。
    """
    __tablename__ = 'match_player_stats'
    __table_args__ = {'comment': '單場球員數據'}

    match_id = db.Column(db.Integer, db.ForeignKey('matches.id', ondelete='CASCADE'), primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=True)

    # 打擊
    plate_appearances = db.Column(db.Integer, nullable=True)
    hits = db.Column(db.Integer, nullable=True)
    home_runs = db.Column(db.Integer, nullable=True)
    outs = db.Column(db.Integer, nullable=True)
    rbi = db.Column(db.Integer, nullable=True)

    # 投球
    innings_pitched_whole = db.Column(db.Integer, nullable=True)
    innings_pitched_partial = db.Column(db.Integer, nullable=True, comment='1/3 局數 0-2')
    strikeouts = db.Column(db.Integer, nullable=True)
    earned_runs = db.Column(db.Integer, nullable=True)

    # 守備
    putouts = db.Column(db.Integer, nullable=True)
    assists = db.Column(db.Integer, nullable=True)
    double_plays = db.Column(db.Integer, nullable=True)
    triple_plays = db.Column(db.Integer, nullable=True)
    errors = db.Column(db.Integer, nullable=True)

    player = db.relationship('Player')

    def __repr__(self):
        return f'<MatchPlayerStat M:{self.match_id} P:{self.player_id}>'
