import sys
from pathlib import Path
from typing import List, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from flowdash_auth.services.auth_service import AuthService  # noqa: E402
from flowdash_auth.services.mailer import Mailer  # noqa: E402
from flowdash_auth.services.session import SessionIssuer  # noqa: E402
from flowdash_auth.storage.credentials import InMemoryCredentialStore  # noqa: E402
from flowdash_auth.storage.tokens import InMemoryTokenStore  # noqa: E402

TEST_SECRET = "test-secret-key-for-flowdash-sessions"
# 测试里用 bcrypt 最低 cost，避免拖慢用例
FAST_BCRYPT_ROUNDS = 4


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class RecordingMailer(Mailer):
    """记录发出的邮件，测试从这里拿 token"""

    def __init__(self) -> None:
        super().__init__("http://localhost:5173")
        self.sent: List[Tuple[str, str, str]] = []

    def send_verification(self, email: str, name: str, token: str) -> None:
        self.sent.append(("verification", email, token))

    def send_password_reset(self, email: str, name: str, token: str) -> None:
        self.sent.append(("reset", email, token))

    def last_token(self, kind: str, email: str) -> str:
        for sent_kind, sent_email, token in reversed(self.sent):
            if sent_kind == kind and sent_email == email:
                return token
        raise AssertionError(f"no {kind} email sent to {email}")

    def count(self, kind: str) -> int:
        return sum(1 for sent_kind, _, _ in self.sent if sent_kind == kind)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def service(clock, mailer):
    return AuthService(
        credentials=InMemoryCredentialStore(),
        tokens=InMemoryTokenStore(),
        sessions=SessionIssuer(TEST_SECRET, now=clock),
        mailer=mailer,
        bcrypt_rounds=FAST_BCRYPT_ROUNDS,
        now=clock,
    )


@pytest.fixture
def verified_user(service, mailer):
    service.signup("Jane", "jane@x.com", "secret1")
    service.verify_email("jane@x.com", mailer.last_token("verification", "jane@x.com"))
    return service.credentials.find_by_email("jane@x.com")
