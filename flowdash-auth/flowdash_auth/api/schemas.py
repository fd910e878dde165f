from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from flowdash_auth.models.user_account import Role, UserAccount
from flowdash_auth.services.session import SessionClaims


class CamelModel(BaseModel):
    # 前端使用 camelCase 字段名
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# 请求字段都是可选的，缺失字段由 AuthService 统一返回 400
class SignupRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class EmailRequest(CamelModel):
    email: Optional[str] = None


class EmailTokenRequest(CamelModel):
    email: Optional[str] = None
    token: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    email: Optional[str] = None
    token: Optional[str] = None
    new_password: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    role: Role
    department: str
    title: str
    is_verified: bool
    created_at: datetime

    @classmethod
    def from_account(cls, account: UserAccount) -> "UserResponse":
        return cls(
            id=account.id,
            email=account.email,
            name=account.name,
            role=account.role,
            department=account.department,
            title=account.title,
            is_verified=account.is_verified,
            created_at=account.created_at,
        )


class ClaimsResponse(CamelModel):
    user_id: str
    email: str
    role: Role
    iat: int
    exp: int

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> "ClaimsResponse":
        return cls(
            user_id=claims.user_id,
            email=claims.email,
            role=claims.role,
            iat=claims.issued_at,
            exp=claims.expires_at,
        )


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class SignupResponse(MessageResponse):
    requires_verification: bool = True


class LoginResponse(MessageResponse):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class UserEnvelope(CamelModel):
    success: bool = True
    user: UserResponse


class SessionResponse(MessageResponse):
    user: ClaimsResponse


class PermissionsResponse(CamelModel):
    success: bool = True
    role: Role
    permissions: List[str] = Field(default_factory=list)
