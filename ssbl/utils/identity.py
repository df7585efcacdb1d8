# ssbl/utils/identity.py
from dataclasses import dataclass
from typing import Optional
from flask import current_app, session, request
from ssbl import db
from ssbl.models.user import User, ROLE_ADMIN

@dataclass(frozen=True)
class Actor:
    """執行操作的使用者 (由外層的登入機制提供)"""
    user_id: int
    role: str

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user: User):
        return cls(user_id=user.id, role=user.role)

def current_actor() -> Optional[Actor]:
    """
    從 Flask session 的 user_id 取得目前使用者。
    X-User-Id 標頭只在 TRUST_USER_HEADER 開啟時採用 (測試與本機工具用)。
    找不到對應帳號時回傳 None。
    """
    user_id = session.get('user_id')
    if not user_id and current_app.config.get('TRUST_USER_HEADER'):
        user_id = request.headers.get('X-User-Id')
    if not user_id:
        return None
    try:
        user = db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None
    return Actor.from_user(user) if user else None
