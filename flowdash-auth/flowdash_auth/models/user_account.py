from datetime import datetime, timezone
from enum import Enum

from sqlmodel import Field, SQLModel


class Role(str, Enum):
    """账号角色，按权限从低到高排列"""
    OPERATOR = "operator"
    MANAGER = "manager"
    DIRECTOR = "director"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserAccount(SQLModel, table=True):
    id: str = Field(primary_key=True)
    email: str = Field(index=True, unique=True, description="规范化后的邮箱（小写、去空格）")
    name: str
    password_hash: str
    role: Role = Field(default=Role.OPERATOR, index=True)
    department: str = Field(default="General")
    title: str = Field(default="Team Member")
    is_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
