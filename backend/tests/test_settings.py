from datetime import timedelta

import pytest

from mint.config.settings import load_settings, parse_role_names
from mint.errors import InvalidArgumentError
from mint.models.authz import UserType


def test_parse_role_names_defaults():
    assert parse_role_names('') == {
        UserType.ADMIN: 'admin', UserType.MERCHANT: 'merchant', UserType.INDIVIDUAL: 'individual',
    }


def test_parse_role_names_overrides_from_string_and_mapping():
    table = parse_role_names('merchant=Merchant Admin, ADMIN = Super Admin')
    assert table[UserType.MERCHANT] == 'Merchant Admin'
    assert table[UserType.ADMIN] == 'Super Admin'
    assert table[UserType.INDIVIDUAL] == 'individual'
    assert parse_role_names({UserType.INDIVIDUAL: 'Analyst'})[UserType.INDIVIDUAL] == 'Analyst'


@pytest.mark.parametrize('raw', ['ROBOT=admin', 'MERCHANT', 'MERCHANT='])
def test_parse_role_names_rejects_bad_entries(raw):
    with pytest.raises(InvalidArgumentError):
        parse_role_names(raw)


def test_load_settings_overrides_win(monkeypatch):
    monkeypatch.setenv('BCRYPT_ROUNDS', '13')
    monkeypatch.setenv('JWT_ACCESS_TOKEN_EXPIRES', '60')
    settings = load_settings({'DATABASE_URL': 'sqlite:///:memory:'})
    assert settings['BCRYPT_ROUNDS'] == 13
    assert settings['JWT_ACCESS_TOKEN_EXPIRES'] == timedelta(seconds=60)
    assert settings['DATABASE_URL'] == 'sqlite:///:memory:'
    assert load_settings({'BCRYPT_ROUNDS': 4})['BCRYPT_ROUNDS'] == 4


def test_default_token_lifetime_is_a_day(monkeypatch):
    monkeypatch.delenv('JWT_ACCESS_TOKEN_EXPIRES', raising=False)
    assert load_settings()['JWT_ACCESS_TOKEN_EXPIRES'] == timedelta(days=1)
