# tests/test_auth_service.py
from ssbl.services.auth_service import AuthService
from ssbl.services.results import Redirect, ErrorReason

def test_require_admin(factory):
    assert AuthService.require_admin(factory.actor(factory.admin())).success
    assert AuthService.require_admin(factory.actor(factory.user('Mario'))).reason == ErrorReason.FORBIDDEN
    assert AuthService.require_admin(None).reason == ErrorReason.FORBIDDEN

def test_can_edit_team(factory):
    owner = factory.user('Mario')
    team = factory.team_of(owner)
    assert AuthService.can_edit_team(factory.actor(owner), team)
    assert AuthService.can_edit_team(factory.actor(factory.admin()), team)
    assert not AuthService.can_edit_team(factory.actor(factory.user('Wario')), team)

def test_impersonate_returns_redirect_with_identity_switch(factory):
    admin = factory.admin()
    target = factory.user('Mario')

    result = AuthService.impersonate(factory.actor(admin), target.id)
    assert isinstance(result, Redirect)
    assert result.path == '/'
    assert result.session_updates == {'user_id': target.id, 'original_user_id': admin.id}

def test_impersonate_errors(factory):
    admin = factory.admin()
    user = factory.user('Mario')
    assert AuthService.impersonate(factory.actor(user), admin.id).reason == ErrorReason.FORBIDDEN
    assert AuthService.impersonate(factory.actor(admin), 999).reason == ErrorReason.USER_NOT_FOUND

def test_return_to_original(factory):
    admin = factory.admin()
    result = AuthService.return_to_original(admin.id)
    assert result.path == '/admin'
    assert result.session_updates == {'user_id': admin.id, 'original_user_id': None}

    assert AuthService.return_to_original(None).reason == ErrorReason.NOT_IMPERSONATING
    assert AuthService.return_to_original(999).reason == ErrorReason.USER_NOT_FOUND
