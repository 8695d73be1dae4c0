from datetime import timedelta

import jwt as pyjwt
import pytest
from sqlalchemy.exc import OperationalError

from mint.errors import ConflictError, InvalidArgumentError, UnauthorizedError
from mint.models.authz import UserStatus, UserType
from mint.models.profile import IndividualProfile, MerchantProfile
from mint.services.auth import ACCOUNT_NOT_ACTIVE, INVALID_CREDENTIALS
from mint.services.bootstrap import bootstrap_authz
from mint.services.credentials import Registration
from tests.test_utils_seed import DEFAULT_PASSWORD, make_user


def _merchant(**extra):
    return Registration(first_name='Ada', last_name='Obi', user_type=UserType.MERCHANT, **extra)


def test_register_returns_public_projection(core):
    user = core.auth.register('A@X.com ', DEFAULT_PASSWORD, _merchant(business_name='Ada Stores'))
    assert user['email'] == 'a@x.com'
    assert user['status'] == 'PENDING_VERIFICATION'
    assert user['user_type'] == 'MERCHANT'
    assert user['email_verified'] is False
    assert 'password_hash' not in user
    stored = core.credentials.get_user(user['id'])
    assert stored.password_hash != DEFAULT_PASSWORD
    assert core.hasher.verify(DEFAULT_PASSWORD, stored.password_hash)


def test_register_merchant_without_matching_default_role(core):
    bootstrap_authz(core.catalog, core.registry)  # only "Merchant Admin" exists
    user = core.auth.register('a@x.com', DEFAULT_PASSWORD, _merchant())
    assert user['status'] == 'PENDING_VERIFICATION'
    assert user['roles'] == []


def test_register_creates_type_specific_profile(core):
    merchant = core.auth.register('m@x.com', DEFAULT_PASSWORD, _merchant(business_name='Ada Stores', city='Lagos'))
    individual = core.auth.register(
        'i@x.com', DEFAULT_PASSWORD,
        Registration(first_name='I', last_name='D', user_type='individual', city='Abuja'),
    )
    admin = core.auth.register('adm@x.com', DEFAULT_PASSWORD, Registration(first_name='A', last_name='D', user_type=UserType.ADMIN))
    profile = core.credentials.get_profile(core.credentials.get_user(merchant['id']))
    assert isinstance(profile, MerchantProfile) and profile.business_name == 'Ada Stores'
    profile = core.credentials.get_profile(core.credentials.get_user(individual['id']))
    assert isinstance(profile, IndividualProfile) and profile.city == 'Abuja'
    assert core.credentials.get_profile(core.credentials.get_user(admin['id'])) is None


def test_register_rejects_unknown_user_type(core):
    with pytest.raises(InvalidArgumentError):
        core.auth.register('a@x.com', DEFAULT_PASSWORD, Registration(first_name='A', last_name='B', user_type='ROBOT'))


def test_duplicate_registration_conflicts_and_keeps_hash(core):
    first = core.auth.register('a@x.com', DEFAULT_PASSWORD, _merchant())
    original_hash = core.credentials.get_user(first['id']).password_hash
    with pytest.raises(ConflictError):
        core.auth.register('A@x.COM', 'another-password', _merchant())
    assert core.credentials.get_user(first['id']).password_hash == original_hash


def test_login_pending_account_is_refused_without_token(core, monkeypatch):
    core.auth.register('a@x.com', DEFAULT_PASSWORD, _merchant())
    issued = []
    monkeypatch.setattr(core.tokens, 'issue', lambda user, **kw: issued.append(user) or 'token')
    with pytest.raises(UnauthorizedError) as exc:
        core.auth.login('a@x.com', DEFAULT_PASSWORD)
    assert exc.value.detail == ACCOUNT_NOT_ACTIVE
    assert issued == []


def test_login_suspended_account_is_refused(core):
    make_user(core, 's@x.com', status=UserStatus.SUSPENDED)
    with pytest.raises(UnauthorizedError):
        core.auth.login('s@x.com', DEFAULT_PASSWORD)


def test_wrong_password_and_unknown_email_look_identical(core):
    make_user(core, 'a@x.com')
    with pytest.raises(UnauthorizedError) as wrong:
        core.auth.login('a@x.com', 'not-the-password')
    with pytest.raises(UnauthorizedError) as unknown:
        core.auth.login('nobody@x.com', DEFAULT_PASSWORD)
    assert type(wrong.value) is type(unknown.value)
    assert str(wrong.value) == str(unknown.value) == INVALID_CREDENTIALS


def test_login_issues_verifiable_token(core):
    user = make_user(core, 'a@x.com', user_type=UserType.ADMIN)
    result = core.auth.login('A@x.com', DEFAULT_PASSWORD)
    claims = core.auth.validate_token(result['token'])
    assert claims['sub'] == str(user.id)
    assert claims['email'] == 'a@x.com'
    assert claims['user_type'] == 'ADMIN'
    assert result['user']['roles'] == []
    assert result['user']['last_login_at'] is not None
    assert core.credentials.get_user(user.id).last_login_at is not None
    identity = core.auth.identity_from_token(result['token'])
    assert identity.user_id == user.id and identity.user_type is UserType.ADMIN


def test_login_survives_last_login_write_failure(core, monkeypatch):
    make_user(core, 'a@x.com')

    def boom(user_id, when=None):
        raise OperationalError('UPDATE users', {}, Exception('disk full'))

    monkeypatch.setattr(core.credentials, 'record_login', boom)
    result = core.auth.login('a@x.com', DEFAULT_PASSWORD)
    assert result['token']


@pytest.mark.parametrize('token', ['', 'not-a-token', 'a.b.c'])
def test_validate_token_rejects_malformed(core, token):
    with pytest.raises(UnauthorizedError):
        core.auth.validate_token(token)


def test_validate_token_rejects_expired(core):
    user = make_user(core, 'a@x.com')
    token = core.tokens.issue(user, expires_delta=timedelta(seconds=-30))
    with pytest.raises(UnauthorizedError):
        core.auth.validate_token(token)


def test_validate_token_rejects_foreign_signature(core):
    forged = pyjwt.encode(
        {'sub': '1', 'type': 'access', 'email': 'a@x.com', 'user_type': 'ADMIN'},
        'some-other-secret-that-is-long-enough', algorithm='HS256',
    )
    with pytest.raises(UnauthorizedError):
        core.auth.validate_token(forged)


def test_status_transitions(core):
    user = make_user(core, 'a@x.com', status=UserStatus.PENDING_VERIFICATION)
    assert core.credentials.set_status(user.id, 'active').status is UserStatus.ACTIVE
    assert core.credentials.set_status(user.id, UserStatus.SUSPENDED).status is UserStatus.SUSPENDED
    with pytest.raises(InvalidArgumentError):
        core.credentials.set_status(user.id, UserStatus.PENDING_VERIFICATION)
    with pytest.raises(InvalidArgumentError):
        core.credentials.set_status(user.id, 'DELETED')


def test_verify_email_activates_pending_account(core):
    core.auth.register('a@x.com', DEFAULT_PASSWORD, _merchant())
    user = core.credentials.find_by_email('a@x.com')
    verified = core.credentials.verify_email(user.id)
    assert verified.email_verified is True
    assert verified.status is UserStatus.ACTIVE
    assert core.auth.login('a@x.com', DEFAULT_PASSWORD)['token']


def test_register_rejects_password_over_bcrypt_limit(core):
    with pytest.raises(InvalidArgumentError):
        core.auth.register('long@x.com', 'p' * 80, _merchant())
    assert core.credentials.find_by_email('long@x.com') is None


def test_hasher_limits_and_malformed_hash(core):
    with pytest.raises(InvalidArgumentError):
        core.hasher.hash('p' * 73)
    assert core.hasher.verify('p' * 72, core.hasher.hash('p' * 72)) is True
    assert core.hasher.verify('p' * 80, core.hasher.hash('p' * 72)) is False
    assert core.hasher.verify(DEFAULT_PASSWORD, 'not-a-bcrypt-hash') is False
