# tests/test_results_and_transaction.py
import pytest
from ssbl import db
from ssbl.models.user import User
from ssbl.services.results import (
    Ok, Error, Redirect, ErrorReason, ValidationFailed, PersistenceError, unwrap_error
)
from ssbl.utils.transaction import atomic

def test_result_serialization():
    assert Ok({'trade_id': 3}).to_dict() == {'success': True, 'trade_id': 3}
    assert Ok([1, 2]).to_dict() == {'success': True, 'data': [1, 2]}
    assert Ok().to_dict() == {'success': True}
    assert Error(ErrorReason.NOT_YOUR_TURN, 'wait').to_dict() == {
        'success': False, 'reason': 'NotYourTurn', 'message': 'wait'
    }
    assert Redirect('/admin').to_dict() == {'success': True, 'redirect': '/admin'}

def test_error_http_status():
    assert Error(ErrorReason.FORBIDDEN).http_status == 403
    assert Error(ErrorReason.PLAYER_NOT_FOUND).http_status == 404
    assert Error(ErrorReason.ROSTER_FULL).http_status == 400

def test_unwrap_error():
    unwrap_error(None)
    unwrap_error(Ok())
    with pytest.raises(ValidationFailed) as exc_info:
        unwrap_error(Error(ErrorReason.ROSTER_FULL, 'full'))
    assert exc_info.value.to_error() == Error(ErrorReason.ROSTER_FULL, 'full')

def test_atomic_rolls_back_on_validation_failure(app):
    with pytest.raises(ValidationFailed):
        with atomic() as session:
            session.add(User(name='Ghost', role='user', discord_snowflake='1'))
            session.flush()
            raise ValidationFailed(ErrorReason.INVALID_INPUT)

    assert User.query.count() == 0

def test_atomic_wraps_database_errors(app):
    with atomic() as session:
        session.add(User(name='Mario', role='user', discord_snowflake='1'))

    with pytest.raises(PersistenceError):
        with atomic() as session:
            session.add(User(name='Impostor', role='user', discord_snowflake='1'))

    assert [u.name for u in User.query.all()] == ['Mario']
    assert db.session.is_active
