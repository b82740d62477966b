import datetime

import pytest
from jose import jwt

from submitdesk.auth import (
    ADMIN, FACULTY, STUDENT, AuthTokenService, PlaintextCredentialVerifier, Principal, require_role,
)
from submitdesk.config import Config
from submitdesk.errors import AuthError, Unauthorized


@pytest.fixture
def tokens():
    return AuthTokenService(Config(secret_key="k1"))


def test_student_identity_round_trips_as_int(tokens):
    token = tokens.issue(Principal(101, STUDENT))
    assert tokens.verify(token) == Principal(101, STUDENT)


def test_faculty_identity_stays_string(tokens):
    token = tokens.issue(Principal("rao", FACULTY))
    assert tokens.verify(token) == Principal("rao", FACULTY)


def test_token_from_other_secret_rejected(tokens):
    other = AuthTokenService(Config(secret_key="k2")).issue(Principal(101, STUDENT))
    with pytest.raises(AuthError):
        tokens.verify(other)


def test_expired_token_rejected(tokens):
    past = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=1)
    token = jwt.encode({"sub": "101", "role": STUDENT, "exp": past}, "k1", algorithm="HS256")
    with pytest.raises(AuthError):
        tokens.verify(token)


def test_expiry_can_be_disabled():
    tokens = AuthTokenService(Config(secret_key="k1", access_minutes=0))
    claims = jwt.get_unverified_claims(tokens.issue(Principal("root", ADMIN)))
    assert "exp" not in claims


@pytest.mark.parametrize("claims", [
    {"sub": "101", "role": "janitor"},
    {"role": STUDENT},
    {"sub": "abc", "role": STUDENT},
])
def test_bad_claims_rejected(claims):
    token = jwt.encode(claims, "k1", algorithm="HS256")
    with pytest.raises(AuthError):
        AuthTokenService(Config(secret_key="k1")).verify(token)


def test_garbage_token_rejected(tokens):
    with pytest.raises(AuthError):
        tokens.verify("not-a-jwt")


def test_require_role():
    me = Principal(101, STUDENT)
    assert require_role(me, STUDENT, FACULTY) is me
    with pytest.raises(Unauthorized) as err:
        require_role(me, ADMIN, message="admins only")
    assert err.value.message == "admins only"


def test_plaintext_verifier():
    v = PlaintextCredentialVerifier()
    assert v.verify("pw", "pw")
    assert not v.verify("PW", "pw")
    assert not v.verify(None, "pw")
