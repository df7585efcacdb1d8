# ssbl/models/trade.py
from ssbl import db
from datetime import datetime

TRADE_PENDING = 'pending'
TRADE_ACCEPTED = 'accepted'
TRADE_DENIED = 'denied'
TRADE_CANCELLED = 'cancelled'

class Trade(db.Model):
    __tablename__ = 'trades'
    __table_args__ = {'comment': '交易提案'}

    id = db.Column(db.Integer, primary_key=True)
    from_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    to_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.String(10), nullable=False, default=TRADE_PENDING, comment='pending, accepted, denied, cancelled')
    proposal_text = db.Column(db.Text, nullable=True)
    response_text = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    from_user = db.relationship('User', foreign_keys=[from_user_id])
    to_user = db.relationship('User', foreign_keys=[to_user_id])
    players = db.relationship('TradePlayer', backref='trade', cascade='all, delete-orphan')

    def player_ids_from(self, user_id):
        return [tp.player_id for tp in self.players if tp.from_user_id == user_id]

    def __repr__(self):
        return f'<Trade {self.from_user_id}->{self.to_user_id} [{self.status}]>'

class TradePlayer(db.Model):
    __tablename__ = 'trade_players'

    id = db.Column(db.Integer, primary_key=True)
    trade_id = db.Column(db.Integer, db.ForeignKey('trades.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), nullable=False)
    # 送出此球員的一方
    from_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    player = db.relationship('Player')
