import jwt
import pytest

from flowdash_auth.errors import InvalidToken, SessionExpired
from flowdash_auth.models.user_account import Role, UserAccount
from flowdash_auth.services.session import JWT_ALGORITHM, SessionIssuer

from conftest import TEST_SECRET, FakeClock


def _account(role=Role.MANAGER):
    return UserAccount(
        id="usr_test_001",
        email="sam@x.com",
        name="Sam",
        password_hash="unused",
        role=role,
        is_verified=True,
    )


def test_issue_and_validate_round_trip():
    clock = FakeClock()
    issuer = SessionIssuer(TEST_SECRET, now=clock)

    claims = issuer.validate(issuer.issue(_account()))

    assert claims.user_id == "usr_test_001"
    assert claims.email == "sam@x.com"
    assert claims.role is Role.MANAGER
    assert claims.issued_at == int(clock())
    assert claims.expires_at == int(clock()) + 24 * 60 * 60
    assert claims.to_dict()["role"] == "manager"


def test_token_expires_after_24_hours():
    clock = FakeClock()
    issuer = SessionIssuer(TEST_SECRET, now=clock)
    token = issuer.issue(_account())

    clock.advance(24 * 60 * 60 - 1)
    issuer.validate(token)

    clock.advance(1)
    with pytest.raises(SessionExpired) as exc_info:
        issuer.validate(token)
    assert exc_info.value.status_code == 401


def test_token_signed_with_other_secret_is_rejected():
    token = SessionIssuer("another-secret-key-of-enough-length").issue(_account())
    with pytest.raises(InvalidToken):
        SessionIssuer(TEST_SECRET).validate(token)


def test_tampered_role_is_rejected():
    issuer = SessionIssuer(TEST_SECRET)
    header, payload, signature = issuer.issue(_account(Role.OPERATOR)).split(".")
    forged_payload = jwt.encode(
        {"sub": "usr_test_001", "email": "sam@x.com", "role": "director", "iat": 0, "exp": 4102444800},
        "guessed-secret-value-for-forgery",
        algorithm=JWT_ALGORITHM,
    ).split(".")[1]

    with pytest.raises(InvalidToken):
        issuer.validate(".".join([header, forged_payload, signature]))


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_malformed_tokens_are_rejected(token):
    with pytest.raises(InvalidToken):
        SessionIssuer(TEST_SECRET).validate(token)


def test_unknown_role_claim_is_rejected():
    clock = FakeClock()
    token = jwt.encode(
        {"sub": "usr_1", "email": "sam@x.com", "role": "superuser", "iat": int(clock()), "exp": int(clock()) + 60},
        TEST_SECRET,
        algorithm=JWT_ALGORITHM,
    )
    with pytest.raises(InvalidToken):
        SessionIssuer(TEST_SECRET, now=clock).validate(token)


def test_unsigned_token_is_rejected():
    token = jwt.encode({"sub": "usr_1", "email": "sam@x.com", "role": "director", "iat": 0, "exp": 4102444800}, None, algorithm="none")
    with pytest.raises(InvalidToken):
        SessionIssuer(TEST_SECRET).validate(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        SessionIssuer("")
