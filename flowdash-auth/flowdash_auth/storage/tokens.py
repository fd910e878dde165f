"""验证 / 重置 token 存储

key 由 ``TokenPurpose.key_for(email)`` 生成，put 会覆盖同一 key 的旧记录，
所以每个 (email, 用途) 同一时刻最多只有一个有效 token。
"""
from __future__ import annotations

import secrets
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from flowdash_auth.errors import InternalError
from flowdash_auth.models.db import get_session
from flowdash_auth.models.pending_token import PendingToken
from flowdash_auth.utils.logging_config import get_logger

logger = get_logger(__name__)

# 32 字节 = 256 bit 熵
TOKEN_BYTES = 32


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


@dataclass(frozen=True)
class StoredToken:
    token: str
    expires_at: float
    user_id: str

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def matches(self, candidate: str) -> bool:
        return secrets.compare_digest(self.token.encode("utf-8"), candidate.encode("utf-8"))


class TokenStore(ABC):
    @abstractmethod
    def put(self, key: str, token: str, expires_at: float, user_id: str) -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[StoredToken]:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class SQLTokenStore(TokenStore):
    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine

    def put(self, key: str, token: str, expires_at: float, user_id: str) -> None:
        try:
            with get_session(self._engine) as session:
                # merge 按主键覆盖已有记录
                session.merge(
                    PendingToken(key=key, token=token, expires_at=expires_at, user_id=user_id)
                )
                session.commit()
        except SQLAlchemyError as exc:
            logger.error(f"Token write failed for key={key}: {exc}")
            raise InternalError() from exc

    def get(self, key: str) -> Optional[StoredToken]:
        try:
            with get_session(self._engine) as session:
                row = session.get(PendingToken, key)
                if not row:
                    return None
                return StoredToken(token=row.token, expires_at=row.expires_at, user_id=row.user_id)
        except SQLAlchemyError as exc:
            logger.error(f"Token lookup failed for key={key}: {exc}")
            raise InternalError() from exc

    def delete(self, key: str) -> None:
        try:
            with get_session(self._engine) as session:
                row = session.get(PendingToken, key)
                if row:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            logger.error(f"Token delete failed for key={key}: {exc}")
            raise InternalError() from exc


class InMemoryTokenStore(TokenStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: Dict[str, StoredToken] = {}

    def put(self, key: str, token: str, expires_at: float, user_id: str) -> None:
        with self._lock:
            self._tokens[key] = StoredToken(token=token, expires_at=expires_at, user_id=user_id)

    def get(self, key: str) -> Optional[StoredToken]:
        with self._lock:
            return self._tokens.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._tokens.pop(key, None)
