# ssbl/models/team.py
from ssbl import db

class Conference(db.Model):
    __tablename__ = 'conferences'
    __table_args__ = {'comment': '分區資料表'}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, comment='分區名稱')
    color = db.Column(db.String(20), nullable=True, comment='顯示顏色')
    season_id = db.Column(db.Integer, db.ForeignKey('seasons.id'), nullable=False)

    teams = db.relationship('Team', backref='conference', lazy='dynamic')

    def __repr__(self):
        return f'<Conference {self.name}>'

class Team(db.Model):
    __tablename__ = 'teams'
    __table_args__ = {'comment': '球隊資料表'}

    id = db.Column(db.Integer, primary_key=True, comment='球隊 ID (主鍵)')
    # 開季設定期間可以沒有擁有者
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=True, comment='所屬使用者 ID')
    name = db.Column(db.String(64), unique=True, nullable=False, comment='球隊名稱')
    abbreviation = db.Column(db.String(8), nullable=False, comment='隊名縮寫')
    color = db.Column(db.String(20), nullable=True, comment='代表色')

    # 隊長 (必須是本隊球員)；與 players.team_id 互相參照，延後建立外鍵
    captain_id = db.Column(
        db.Integer,
        db.ForeignKey('players.id', use_alter=True, name='fk_teams_captain_id', ondelete='SET NULL'),
        nullable=True,
        comment='隊長球員 ID'
    )
    conference_id = db.Column(db.Integer, db.ForeignKey('conferences.id', ondelete='SET NULL'), nullable=True)

    # 交易看板
    looking_for = db.Column(db.Text, nullable=True, comment='徵求中')
    willing_to_trade = db.Column(db.Text, nullable=True, comment='可交易')
    trade_block_updated_at = db.Column(db.DateTime, nullable=True)

    # 關聯
    players = db.relationship('Player', backref='team', lazy='dynamic', foreign_keys='Player.team_id')
    captain = db.relationship('Player', foreign_keys=[captain_id], post_update=True)

    def __repr__(self):
        return f'<Team {self.name} ({self.abbreviation})>'
