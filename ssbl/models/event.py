# ssbl/models/event.py
from ssbl import db
from datetime import datetime

EVENT_DRAFT = 'draft'
EVENT_SEASON_STATE_CHANGE = 'season_state_change'
EVENT_TRADE = 'trade'
EVENT_MATCH_STATE_CHANGE = 'match_state_change'

class Event(db.Model):
    """
    [稽核紀錄]
    每個事件一列主表，細節依 type 存在對應的子表 (一對一)。
    """
    __tablename__ = 'events'
    __table_args__ = {'comment': '聯賽事件紀錄'}

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(32), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, comment='執行者')
    season_id = db.Column(db.Integer, db.ForeignKey('seasons.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship('User')
    draft = db.relationship('EventDraft', uselist=False, backref='event', cascade='all, delete-orphan')
    season_state_change = db.relationship('EventSeasonStateChange', uselist=False, backref='event', cascade='all, delete-orphan')
    trade = db.relationship('EventTrade', uselist=False, backref='event', cascade='all, delete-orphan')
    match_state_change = db.relationship('EventMatchStateChange', uselist=False, backref='event', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Event {self.type} #{self.id}>'

class EventDraft(db.Model):
    __tablename__ = 'event_drafts'

    event_id = db.Column(db.Integer, db.ForeignKey('events.id', ondelete='CASCADE'), primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    pick_number = db.Column(db.Integer, nullable=False)

    player = db.relationship('Player')
    team = db.relationship('Team')

class EventSeasonStateChange(db.Model):
    __tablename__ = 'event_season_state_changes'

    event_id = db.Column(db.Integer, db.ForeignKey('events.id', ondelete='CASCADE'), primary_key=True)
    from_state = db.Column(db.String(20), nullable=False)
    to_state = db.Column(db.String(20), nullable=False)

class EventTrade(db.Model):
    __tablename__ = 'event_trades'

    event_id = db.Column(db.Integer, db.ForeignKey('events.id', ondelete='CASCADE'), primary_key=True)
    trade_id = db.Column(db.Integer, db.ForeignKey('trades.id', ondelete='CASCADE'), nullable=False)
    action = db.Column(db.String(20), nullable=False, comment='proposed, accepted, rejected, cancelled')

    trade = db.relationship('Trade')

class EventMatchStateChange(db.Model):
    __tablename__ = 'event_match_state_changes'

    event_id = db.Column(db.Integer, db.ForeignKey('events.id', ondelete='CASCADE'), primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False)
    from_state = db.Column(db.String(10), nullable=False)
    to_state = db.Column(db.String(10), nullable=False)

    match = db.relationship('Match')
