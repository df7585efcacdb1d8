# ssbl/services/auth_service.py
from ssbl import db
from ssbl.models.user import User
from ssbl.services.results import Ok, Error, Redirect, ErrorReason

class AuthService:
    """
    權限檢查與管理員代理登入 (impersonate)。
    代理登入不以例外觸發轉址，而是回傳 Redirect，由路由寫入 session 後轉址。
    """

    @staticmethod
    def require_admin(actor):
        if actor is None or not actor.is_admin:
            return Error(ErrorReason.FORBIDDEN, '需要管理員權限')
        return Ok()

    @staticmethod
    def can_edit_team(actor, team):
        if actor is None or team is None:
            return False
        return actor.is_admin or team.user_id == actor.user_id

    @staticmethod
    def impersonate(actor, target_user_id):
        check = AuthService.require_admin(actor)
        if not check.success:
            return check

        target = db.session.get(User, target_user_id)
        if not target:
            return Error(ErrorReason.USER_NOT_FOUND, f'找不到使用者 {target_user_id}')

        print(f"🎭 [Auth] 管理員 {actor.user_id} 切換身分為 {target.name} (ID:{target.id})")
        return Redirect('/', session_updates={'user_id': target.id, 'original_user_id': actor.user_id})

    @staticmethod
    def return_to_original(original_user_id):
        if not original_user_id:
            return Error(ErrorReason.NOT_IMPERSONATING, '目前沒有代理登入')

        original = db.session.get(User, original_user_id)
        if not original:
            return Error(ErrorReason.USER_NOT_FOUND, f'找不到使用者 {original_user_id}')

        print(f"🎭 [Auth] 恢復原始身分 {original.name} (ID:{original.id})")
        return Redirect('/admin', session_updates={'user_id': original.id, 'original_user_id': None})
