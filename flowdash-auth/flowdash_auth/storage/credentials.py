"""账号存储

``CredentialStore`` 是生命周期逻辑依赖的接口，调用方传入的 email
必须已经规范化（小写、去空格）。提供 SQLModel 和内存两种实现。
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from flowdash_auth.errors import DuplicateEmail, InternalError
from flowdash_auth.models.db import get_session
from flowdash_auth.models.user_account import UserAccount
from flowdash_auth.utils.logging_config import get_logger

logger = get_logger(__name__)


class CredentialStore(ABC):
    @abstractmethod
    def find_by_email(self, email: str) -> Optional[UserAccount]:
        ...

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[UserAccount]:
        ...

    @abstractmethod
    def insert(self, account: UserAccount) -> UserAccount:
        """插入新账号，邮箱已存在时抛出 DuplicateEmail"""

    @abstractmethod
    def update_password(self, email: str, password_hash: str) -> None:
        ...

    @abstractmethod
    def mark_verified(self, email: str) -> None:
        ...


class SQLCredentialStore(CredentialStore):
    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine

    def find_by_email(self, email: str) -> Optional[UserAccount]:
        try:
            with get_session(self._engine) as session:
                return session.exec(
                    select(UserAccount).where(UserAccount.email == email)
                ).first()
        except SQLAlchemyError as exc:
            logger.error(f"Account lookup failed for {email}: {exc}")
            raise InternalError() from exc

    def find_by_id(self, user_id: str) -> Optional[UserAccount]:
        try:
            with get_session(self._engine) as session:
                return session.get(UserAccount, user_id)
        except SQLAlchemyError as exc:
            logger.error(f"Account lookup failed for id={user_id}: {exc}")
            raise InternalError() from exc

    def insert(self, account: UserAccount) -> UserAccount:
        # 依赖 email 唯一索引做原子的 insert-if-absent
        try:
            with get_session(self._engine) as session:
                session.add(account)
                session.commit()
                session.refresh(account)
                return account
        except IntegrityError as exc:
            raise DuplicateEmail() from exc
        except SQLAlchemyError as exc:
            logger.error(f"Account insert failed for {account.email}: {exc}")
            raise InternalError() from exc

    def update_password(self, email: str, password_hash: str) -> None:
        self._update(email, password_hash=password_hash)

    def mark_verified(self, email: str) -> None:
        self._update(email, is_verified=True)

    def _update(self, email: str, **changes) -> None:
        try:
            with get_session(self._engine) as session:
                account = session.exec(
                    select(UserAccount).where(UserAccount.email == email)
                ).first()
                if not account:
                    return
                for field, value in changes.items():
                    setattr(account, field, value)
                session.add(account)
                session.commit()
        except SQLAlchemyError as exc:
            logger.error(f"Account update failed for {email}: {exc}")
            raise InternalError() from exc


class InMemoryCredentialStore(CredentialStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_email: Dict[str, UserAccount] = {}

    def find_by_email(self, email: str) -> Optional[UserAccount]:
        with self._lock:
            account = self._by_email.get(email)
            return _copy(account) if account else None

    def find_by_id(self, user_id: str) -> Optional[UserAccount]:
        with self._lock:
            for account in self._by_email.values():
                if account.id == user_id:
                    return _copy(account)
            return None

    def insert(self, account: UserAccount) -> UserAccount:
        with self._lock:
            if account.email in self._by_email:
                raise DuplicateEmail()
            self._by_email[account.email] = _copy(account)
            return account

    def update_password(self, email: str, password_hash: str) -> None:
        with self._lock:
            account = self._by_email.get(email)
            if account:
                account.password_hash = password_hash

    def mark_verified(self, email: str) -> None:
        with self._lock:
            account = self._by_email.get(email)
            if account:
                account.is_verified = True


def _copy(account: UserAccount) -> UserAccount:
    # 内存实现返回副本，调用方的修改不会绕过 store 生效
    return UserAccount(**account.model_dump())
