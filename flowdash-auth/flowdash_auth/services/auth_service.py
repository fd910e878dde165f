from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

import bcrypt

from flowdash_auth.config import (
    MAX_PASSWORD_BYTES,
    MIN_PASSWORD_LENGTH,
    RESET_TTL_SECONDS,
    VERIFICATION_TTL_SECONDS,
)
from flowdash_auth.errors import (
    AlreadyVerified,
    DuplicateEmail,
    InternalError,
    InvalidCredentials,
    InvalidOrExpiredToken,
    NotFound,
    NotVerified,
    ValidationError,
    WeakPassword,
)
from flowdash_auth.models.pending_token import TokenPurpose
from flowdash_auth.models.user_account import Role, UserAccount
from flowdash_auth.services.locks import KeyedLock
from flowdash_auth.services.mailer import Mailer
from flowdash_auth.services.session import SessionClaims, SessionIssuer
from flowdash_auth.storage.credentials import CredentialStore
from flowdash_auth.storage.tokens import StoredToken, TokenStore, generate_token
from flowdash_auth.utils.logging_config import get_logger

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEMO_PASSWORD = "demo123"

DEMO_ACCOUNTS = (
    {
        "id": "usr_op_001",
        "email": "operator@demo.com",
        "name": "Alex Thompson",
        "role": Role.OPERATOR,
        "department": "Engineering",
        "title": "Software Developer",
        "created_at": datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
    },
    {
        "id": "usr_mgr_001",
        "email": "manager@demo.com",
        "name": "Sarah Mitchell",
        "role": Role.MANAGER,
        "department": "Engineering",
        "title": "Engineering Manager",
        "created_at": datetime(2024, 1, 10, 10, 0, tzinfo=timezone.utc),
    },
    {
        "id": "usr_dir_001",
        "email": "director@demo.com",
        "name": "Michael Chen",
        "role": Role.DIRECTOR,
        "department": "Technology",
        "title": "VP of Engineering",
        "created_at": datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
    },
)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@dataclass
class LoginResult:
    token: str
    user: UserAccount
    claims: SessionClaims = field(repr=False)


class AuthService:
    """账号生命周期与登录

    注册 → 邮箱验证 → 登录，以及忘记密码 → 重置密码。所有按邮箱发生的
    读写都在该邮箱的临界区内完成，同一邮箱的并发请求按顺序执行。
    """

    def __init__(
        self,
        credentials: CredentialStore,
        tokens: TokenStore,
        sessions: SessionIssuer,
        mailer: Mailer,
        *,
        bcrypt_rounds: int = 12,
        now: Callable[[], float] = time.time,
    ) -> None:
        self.credentials = credentials
        self.tokens = tokens
        self.sessions = sessions
        self.mailer = mailer
        self._bcrypt_rounds = bcrypt_rounds
        self._now = now
        self._locks = KeyedLock()

    # ------------------------------------------------------------------
    # 注册与邮箱验证
    # ------------------------------------------------------------------

    def signup(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> UserAccount:
        if not name or not name.strip() or not email or not password:
            raise ValidationError("Name, email and password are required")
        normalized = normalize_email(email)
        if not EMAIL_PATTERN.match(normalized):
            raise ValidationError("Please enter a valid email address")
        self._check_password(password)

        with self._locks.hold(normalized):
            if self.credentials.find_by_email(normalized):
                raise DuplicateEmail()

            account = UserAccount(
                id=f"usr_{secrets.token_hex(8)}",
                email=normalized,
                name=name.strip(),
                password_hash=self._hash_password(password),
                role=Role.OPERATOR,
                department="General",
                title="Team Member",
                is_verified=False,
                created_at=datetime.now(timezone.utc),
            )
            self.credentials.insert(account)

            try:
                token = self._mint(TokenPurpose.VERIFICATION, account)
            except InternalError:
                # 账号已写入但没有验证 token，只能通过重新发送验证邮件恢复
                logger.error(f"Account {normalized} created without a verification token; resend required")
                raise

        logger.info(f"Account created, pending verification: {normalized}")
        self._deliver(self.mailer.send_verification, account, token)
        return account

    def verify_email(self, email: Optional[str], token: Optional[str]) -> None:
        if not email or not token:
            raise ValidationError("Email and token are required")
        normalized = normalize_email(email)
        key = TokenPurpose.VERIFICATION.key_for(normalized)

        with self._locks.hold(normalized):
            self._check_token(key, token)
            self.credentials.mark_verified(normalized)
            self.tokens.delete(key)

        logger.info(f"Email verified: {normalized}")

    def resend_verification(self, email: Optional[str]) -> None:
        if not email:
            raise ValidationError("Email is required")
        normalized = normalize_email(email)

        with self._locks.hold(normalized):
            account = self.credentials.find_by_email(normalized)
            if not account:
                raise NotFound()
            if account.is_verified:
                raise AlreadyVerified()
            token = self._mint(TokenPurpose.VERIFICATION, account)

        logger.info(f"Verification token re-issued: {normalized}")
        self._deliver(self.mailer.send_verification, account, token)

    # ------------------------------------------------------------------
    # 忘记密码 / 重置密码
    # ------------------------------------------------------------------

    def request_password_reset(self, email: Optional[str]) -> None:
        """无论账号是否存在都正常返回，不暴露邮箱是否注册过"""
        if not email:
            raise ValidationError("Email is required")
        normalized = normalize_email(email)

        with self._locks.hold(normalized):
            account = self.credentials.find_by_email(normalized)
            if not account:
                logger.info(f"Password reset requested for unknown email: {normalized}")
                return
            token = self._mint(TokenPurpose.PASSWORD_RESET, account)

        logger.info(f"Password reset token issued: {normalized}")
        self._deliver(self.mailer.send_password_reset, account, token)

    def validate_reset_token(self, email: Optional[str], token: Optional[str]) -> None:
        if not email or not token:
            raise ValidationError("Email and token are required")
        normalized = normalize_email(email)
        with self._locks.hold(normalized):
            self._check_token(TokenPurpose.PASSWORD_RESET.key_for(normalized), token, purge_expired=False)

    def reset_password(self, email: Optional[str], token: Optional[str], new_password: Optional[str]) -> None:
        if not email or not token or not new_password:
            raise ValidationError("Email, token and new password are required")
        self._check_password(new_password)
        normalized = normalize_email(email)
        key = TokenPurpose.PASSWORD_RESET.key_for(normalized)

        with self._locks.hold(normalized):
            stored = self._check_token(key, token)
            account = self.credentials.find_by_email(normalized)
            if not account or account.id != stored.user_id:
                # token 对应的账号已不存在，按无效 token 处理
                self.tokens.delete(key)
                raise InvalidOrExpiredToken()
            self.credentials.update_password(normalized, self._hash_password(new_password))
            self.tokens.delete(key)

        logger.info(f"Password reset completed: {normalized}")

    # ------------------------------------------------------------------
    # 登录与会话
    # ------------------------------------------------------------------

    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        if not email or not password:
            raise ValidationError("Email and password are required")
        normalized = normalize_email(email)

        account = self.credentials.find_by_email(normalized)
        if not account:
            logger.warning(f"Login failed, no account: {normalized}")
            raise NotFound(status_code=401)
        # 先检查验证状态再比对密码
        if not account.is_verified:
            logger.warning(f"Login refused, email not verified: {normalized}")
            raise NotVerified()
        if not self._verify_password(password, account.password_hash):
            logger.warning(f"Login failed, bad password: {normalized}")
            raise InvalidCredentials()

        token = self.sessions.issue(account)
        claims = self.sessions.validate(token)
        logger.info(f"Login succeeded: {normalized} role={claims.role.value}")
        return LoginResult(token=token, user=account, claims=claims)

    def validate_session(self, token: Optional[str]) -> SessionClaims:
        return self.sessions.validate(token)

    def get_user(self, claims: SessionClaims) -> UserAccount:
        account = self.credentials.find_by_id(claims.user_id)
        if not account:
            raise NotFound("User not found")
        return account

    def ensure_demo_accounts(self) -> None:
        """确保演示账号存在

        三个已验证的演示账号（operator / manager / director），密码均为 demo123。
        已存在的账号保持不变。
        """
        for demo in DEMO_ACCOUNTS:
            with self._locks.hold(demo["email"]):
                if self.credentials.find_by_email(demo["email"]):
                    continue
                try:
                    self.credentials.insert(
                        UserAccount(
                            password_hash=self._hash_password(DEMO_PASSWORD),
                            is_verified=True,
                            **demo,
                        )
                    )
                except DuplicateEmail:
                    # 其他进程同时完成了初始化
                    continue
            logger.info(f"Demo account created: {demo['email']}")

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _mint(self, purpose: TokenPurpose, account: UserAccount) -> str:
        ttl = RESET_TTL_SECONDS if purpose is TokenPurpose.PASSWORD_RESET else VERIFICATION_TTL_SECONDS
        token = generate_token()
        self.tokens.put(purpose.key_for(account.email), token, self._now() + ttl, account.id)
        return token

    def _check_token(self, key: str, candidate: str, *, purge_expired: bool = True) -> StoredToken:
        stored = self.tokens.get(key)
        if not stored:
            raise InvalidOrExpiredToken()
        if stored.is_expired(self._now()):
            if purge_expired:
                self.tokens.delete(key)
            raise InvalidOrExpiredToken()
        if not stored.matches(candidate):
            raise InvalidOrExpiredToken()
        return stored

    def _deliver(self, send: Callable[[str, str, str], None], account: UserAccount, token: str) -> None:
        try:
            send(account.email, account.name, token)
        except Exception:
            logger.exception(f"Email delivery failed for {account.email}")

    def _check_password(self, password: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword()
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    def _hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def _verify_password(self, password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False
