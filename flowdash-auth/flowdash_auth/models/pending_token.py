from enum import Enum

from sqlmodel import Field, SQLModel


class TokenPurpose(str, Enum):
    VERIFICATION = "verification"
    PASSWORD_RESET = "password_reset"

    def key_for(self, email: str) -> str:
        """两类 token 使用独立的 key 空间：验证用邮箱本身，重置用 reset_ 前缀"""
        if self is TokenPurpose.PASSWORD_RESET:
            return f"reset_{email}"
        return email


class PendingToken(SQLModel, table=True):
    # 每个 key 只保留一条记录，新 token 覆盖旧 token
    key: str = Field(primary_key=True)
    token: str
    expires_at: float = Field(description="过期时间（epoch 秒）")
    user_id: str = Field(index=True)
