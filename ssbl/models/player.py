# ssbl/models/player.py
from ssbl import db

# 固定九個守備位置 (順序即隨機分隊時的填入順序)
FIELDING_POSITIONS = ('C', '1B', '2B', '3B', 'SS', 'LF', 'CF', 'RF', 'P')

class CharacterStats(db.Model):
    """
    角色能力表 (依角色名稱為主鍵，多名球員可共用同一角色)
    """
    __tablename__ = 'character_stats'
    __table_args__ = {'comment': '角色能力資料表'}

    character = db.Column(db.String(64), primary_key=True, comment='角色名稱')
    character_class = db.Column(db.String(32), nullable=False, comment='角色類型')
    captain = db.Column(db.Boolean, nullable=False, default=False, comment='是否具備隊長資格')

    throwing_arm = db.Column(db.String(10), nullable=False, comment='投球手: Left, Right')
    batting_stance = db.Column(db.String(10), nullable=False, comment='打擊站位: Left, Right')
    ability = db.Column(db.String(32), nullable=False, comment='守備特技')
    weight = db.Column(db.Integer, nullable=False)
    hitting_trajectory = db.Column(db.String(10), nullable=False, comment='擊球彈道: Low, Medium, High')

    slap_hit_contact_size = db.Column(db.Integer, nullable=False)
    charge_hit_contact_size = db.Column(db.Integer, nullable=False)
    slap_hit_power = db.Column(db.Integer, nullable=False)
    charge_hit_power = db.Column(db.Integer, nullable=False)
    bunting = db.Column(db.Integer, nullable=False)
    speed = db.Column(db.Integer, nullable=False)
    throwing_speed = db.Column(db.Integer, nullable=False)
    fielding = db.Column(db.Integer, nullable=False)
    curveball_speed = db.Column(db.Integer, nullable=False)
    fastball_speed = db.Column(db.Integer, nullable=False)
    curve = db.Column(db.Integer, nullable=False)
    stamina = db.Column(db.Integer, nullable=False)

    # 四項綜合評分
    pitching_css = db.Column(db.Integer, nullable=False)
    batting_css = db.Column(db.Integer, nullable=False)
    fielding_css = db.Column(db.Integer, nullable=False)
    speed_css = db.Column(db.Integer, nullable=False)

    def __repr__(self):
        return f'<CharacterStats {self.character}>'

class Player(db.Model):
    __tablename__ = 'players'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)
    # NULL = 自由球員 / 尚未被選
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True, index=True)
    image_url = db.Column(db.String(256), nullable=True)
    stats_character = db.Column(db.String(64), db.ForeignKey('character_stats.character'), nullable=True)
    sort_position = db.Column(db.Integer, unique=True, nullable=False, comment='球員列表排序')

    # 關聯
    stats = db.relationship('CharacterStats', lazy='joined')
    lineup = db.relationship('TeamLineup', backref='player', uselist=False, cascade='all, delete-orphan')

    @property
    def is_captain_eligible(self):
        return bool(self.stats and self.stats.captain)

    def __repr__(self):
        return f'<Player {self.name}>'

class TeamLineup(db.Model):
    """
    [球隊打線表]
    每名球員最多一筆: fielding_position 為 NULL 代表板凳，batting_order 只屬於先發球員。
    儲存打線時整批刪除後重建，不做逐筆修改。
    """
    __tablename__ = 'team_lineups'
    __table_args__ = {'comment': '球隊打線與守備位置'}

    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), primary_key=True)
    fielding_position = db.Column(db.String(4), nullable=True, comment='守備位置 (NULL=板凳)')
    batting_order = db.Column(db.Integer, nullable=True, comment='打序 1-9')
    is_starred = db.Column(db.Boolean, nullable=False, default=False, comment='明星球員')

    def __repr__(self):
        return f'<TeamLineup P:{self.player_id} {self.fielding_position or "BENCH"} #{self.batting_order}>'

# 角色默契
CHEMISTRY_POSITIVE = 'positive'
CHEMISTRY_NEGATIVE = 'negative'
CHEMISTRY_RELATIONSHIPS = (CHEMISTRY_POSITIVE, CHEMISTRY_NEGATIVE)

class Chemistry(db.Model):
    """
    [角色默契表]
    每對角色一列，character1 < character2 (字典序)，查詢時兩個方向都要看。
    """
    __tablename__ = 'chemistry'
    __table_args__ = {'comment': '角色之間的默契 (正 / 負)'}

    character1 = db.Column(
        db.String(64), db.ForeignKey('character_stats.character', ondelete='CASCADE'), primary_key=True
    )
    character2 = db.Column(
        db.String(64), db.ForeignKey('character_stats.character', ondelete='CASCADE'), primary_key=True
    )
    relationship = db.Column(db.String(10), nullable=False, comment='positive, negative')

    @staticmethod
    def normalize_pair(a, b):
        return (a, b) if a < b else (b, a)

    def __repr__(self):
        return f'<Chemistry {self.character1} / {self.character2} {self.relationship}>'
