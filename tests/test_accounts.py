"""Tests for phone number login, verification codes and account tokens."""

from datetime import timedelta

import pytest

from clup.core.clock import utc_now
from clup.core.errors import InvalidTokenError, ValidationError
from clup.services import accounts
from clup.services.sms import SmsSender

from conftest import CUSTOMER_PHONE


def test_login_rejects_invalid_phone_format(queries, sms):
    for bad in ["", "12ab45678", "+39 12", None]:
        with pytest.raises(ValidationError):
            accounts.login_with_phone_number(queries, bad, sms)
    assert sms.outbox == []


def test_login_registers_user_and_sends_code(queries, sms):
    accounts.login_with_phone_number(queries, "+39 333 1234567", sms)

    user = queries.get_user(CUSTOMER_PHONE)
    assert user is not None, "Login should register unknown phone numbers"
    assert not user.is_totem
    code = sms.last_code(CUSTOMER_PHONE)
    assert code.isdigit() and len(code) == 5, f"Unexpected code format: {code}"


def test_code_is_stored_hashed(queries, sms):
    accounts.login_with_phone_number(queries, CUSTOMER_PHONE, sms)
    stored = queries.get_latest_verification_code(CUSTOMER_PHONE, utc_now())
    assert stored.code_hash != sms.last_code(CUSTOMER_PHONE)


def test_verification_code_is_single_use(queries, sms):
    accounts.login_with_phone_number(queries, CUSTOMER_PHONE, sms)
    code = sms.last_code(CUSTOMER_PHONE)

    accounts.verify_phone_number(queries, CUSTOMER_PHONE, code)
    with pytest.raises(ValidationError):
        accounts.verify_phone_number(queries, CUSTOMER_PHONE, code)


def test_wrong_code_is_rejected_and_not_consumed(queries, sms):
    accounts.login_with_phone_number(queries, CUSTOMER_PHONE, sms)
    code = sms.last_code(CUSTOMER_PHONE)
    wrong = "0" * 5 if code != "0" * 5 else "1" * 5

    with pytest.raises(ValidationError):
        accounts.verify_phone_number(queries, CUSTOMER_PHONE, wrong)
    accounts.verify_phone_number(queries, CUSTOMER_PHONE, code)


def test_expired_code_is_rejected(queries, customer):
    queries.add_verification_code(
        CUSTOMER_PHONE, accounts.code_context.hash("12345"), utc_now() - timedelta(minutes=1)
    )
    with pytest.raises(ValidationError):
        accounts.verify_phone_number(queries, CUSTOMER_PHONE, "12345")


def test_only_latest_code_counts(queries, sms):
    accounts.login_with_phone_number(queries, CUSTOMER_PHONE, sms)
    first = sms.last_code(CUSTOMER_PHONE)
    accounts.login_with_phone_number(queries, CUSTOMER_PHONE, sms)
    latest = sms.last_code(CUSTOMER_PHONE)

    if first != latest:
        with pytest.raises(ValidationError):
            accounts.verify_phone_number(queries, CUSTOMER_PHONE, first)
    accounts.verify_phone_number(queries, CUSTOMER_PHONE, latest)


def test_token_resolves_to_user(queries, customer):
    token = accounts.get_account_token(queries, customer)
    assert accounts.validate_token(queries, token) == customer


def test_new_token_invalidates_previous_one(queries, customer):
    old = accounts.get_account_token(queries, customer)
    new = accounts.get_account_token(queries, customer)

    assert old != new
    with pytest.raises(InvalidTokenError):
        accounts.validate_token(queries, old)
    assert accounts.validate_token(queries, new) == customer


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_garbage_token_is_invalid(queries, token):
    with pytest.raises(InvalidTokenError):
        accounts.validate_token(queries, token)


def test_is_totem(queries, customer, totem):
    assert accounts.is_totem(queries, totem)
    assert not accounts.is_totem(queries, customer)
    assert not accounts.is_totem(queries, "+390000000000")


def test_sms_sender_is_abstract():
    with pytest.raises(TypeError):
        SmsSender()

    class Silent(SmsSender):
        pass

    with pytest.raises(TypeError):
        Silent()
