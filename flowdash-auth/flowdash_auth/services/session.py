"""会话 token

HS256 签名的 JWT，携带账号 id、邮箱、角色、签发时间和固定 24 小时的过期时间。
服务端不保存会话，登出只需客户端丢弃 token。
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import jwt

from flowdash_auth.config import SESSION_TTL_SECONDS
from flowdash_auth.errors import InvalidToken, SessionExpired
from flowdash_auth.models.user_account import Role, UserAccount

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: str
    role: Role
    issued_at: int
    expires_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


class SessionIssuer:
    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        now: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._ttl_seconds = ttl_seconds
        self._now = now

    def issue(self, account: UserAccount) -> str:
        issued_at = int(self._now())
        payload = {
            "sub": account.id,
            "email": account.email,
            "role": Role(account.role).value,
            "iat": issued_at,
            "exp": issued_at + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=JWT_ALGORITHM)

    def validate(self, token: Optional[str]) -> SessionClaims:
        if not token:
            raise InvalidToken()
        try:
            # exp 由下面按注入的时钟检查，便于测试模拟时间
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[JWT_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": ["sub", "exp", "iat"]},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidToken() from exc

        try:
            claims = SessionClaims(
                user_id=str(payload["sub"]),
                email=str(payload["email"]),
                role=Role(payload["role"]),
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken() from exc

        if self._now() >= claims.expires_at:
            raise SessionExpired()
        return claims
