# ssbl/models/user.py
from datetime import datetime
from ssbl import db

ROLE_ADMIN = 'admin'
ROLE_USER = 'user'
USER_ROLES = (ROLE_ADMIN, ROLE_USER)

class User(db.Model):
    __tablename__ = 'users'
    __table_args__ = {'comment': '使用者帳號資料表'}

    id = db.Column(db.Integer, primary_key=True, comment='使用者 ID (主鍵)')
    name = db.Column(db.String(64), nullable=False, comment='顯示名稱')
    role = db.Column(db.String(10), nullable=False, default=ROLE_USER, comment='權限: admin, user')
    # 外部身分 (Discord Snowflake)，由管理員建立帳號時填入，之後不可變更
    discord_snowflake = db.Column(db.String(32), unique=True, nullable=False, index=True, comment='外部身分識別碼')
    created_at = db.Column(db.DateTime, default=datetime.utcnow, comment='帳號建立時間')

    # 關聯 (一位使用者最多一支球隊)
    team = db.relationship('Team', backref='owner', uselist=False, cascade='all, delete-orphan')

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def __repr__(self):
        return f'<User {self.name} ({self.role})>'
