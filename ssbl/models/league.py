# ssbl/models/league.py
from ssbl import db
from datetime import datetime

# 賽季狀態
SEASON_PRE_SEASON = 'pre-season'
SEASON_DRAFTING = 'drafting'
SEASON_PLAYING = 'playing'
SEASON_FINISHED = 'finished'
SEASON_STATES = (SEASON_PRE_SEASON, SEASON_DRAFTING, SEASON_PLAYING, SEASON_FINISHED)

# 整個聯盟只有一列賽季資料
CURRENT_SEASON_ID = 1

class Season(db.Model):
    """
    賽季狀態表 (Singleton)
    只能透過交易內的 SELECT ... FOR UPDATE 讀改寫，不在程序記憶體中快取。
    """
    __tablename__ = 'seasons'

    id = db.Column(db.Integer, primary_key=True)
    state = db.Column(db.String(20), nullable=False, default=SEASON_PRE_SEASON, comment='階段: pre-season, drafting, playing, finished')
    current_drafting_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    # 選秀計時器
    draft_timer_started_at = db.Column(db.DateTime, nullable=True)
    draft_timer_paused_at = db.Column(db.DateTime, nullable=True)
    draft_timer_duration = db.Column(db.Integer, nullable=True, comment='秒')

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    current_drafting_user = db.relationship('User', foreign_keys=[current_drafting_user_id])

    @classmethod
    def lock_current(cls):
        """交易內以 FOR UPDATE 重新讀取賽季列 (不存在時回傳 None)"""
        return cls.query.filter_by(id=CURRENT_SEASON_ID).with_for_update().populate_existing().first()

    def __repr__(self):
        return f'<Season {self.id} {self.state}>'

class UserSeason(db.Model):
    """
    [選秀順序表]
    每位參賽使用者一列，drafting_turn 為 1..N 連號 (蛇形選秀的正向基準順序)。
    """
    __tablename__ = 'users_seasons'
    __table_args__ = {'comment': '選秀順位與預選'}

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    season_id = db.Column(db.Integer, db.ForeignKey('seasons.id'), primary_key=True)
    drafting_turn = db.Column(db.Integer, nullable=False, comment='選秀順位')
    pre_draft_player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='SET NULL'), nullable=True, comment='預選球員')

    user = db.relationship('User', backref=db.backref('seasons', cascade='all, delete-orphan'))
    pre_draft_player = db.relationship('Player')

    def __repr__(self):
        return f'<UserSeason U:{self.user_id} Turn:{self.drafting_turn}>'

class MatchDay(db.Model):
    """
    比賽日 (同一天一起排定的一組比賽)
    """
    __tablename__ = 'match_days'

    id = db.Column(db.Integer, primary_key=True)
    season_id = db.Column(db.Integer, db.ForeignKey('seasons.id'), nullable=False, default=CURRENT_SEASON_ID)
    name = db.Column(db.String(64), nullable=True)
    date = db.Column(db.Date, nullable=False)
    order_in_season = db.Column(db.Integer, nullable=False)

    matches = db.relationship('Match', backref='match_day', lazy='dynamic')

    def __repr__(self):
        return f'<MatchDay {self.order_in_season} {self.date}>'
