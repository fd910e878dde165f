"""账号与会话相关的错误类型

每个错误都带有 HTTP 状态码、机器可读的 code 和简短的提示信息，
API 层统一把它们渲染成 ``{"success": false, ...}`` 响应。
"""
from typing import Optional


class AuthError(Exception):
    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AuthError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class WeakPassword(ValidationError):
    code = "weak_password"
    default_message = "Password must be at least 6 characters"


class DuplicateEmail(AuthError):
    status_code = 409
    code = "duplicate_email"
    default_message = "An account with this email already exists"


class NotFound(AuthError):
    status_code = 404
    code = "not_found"
    default_message = "No account found with this email"


class NotVerified(AuthError):
    status_code = 403
    code = "not_verified"
    default_message = "Please verify your email before logging in"


class AlreadyVerified(AuthError):
    status_code = 400
    code = "already_verified"
    default_message = "This email is already verified"


class InvalidCredentials(AuthError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Incorrect password"


class Forbidden(AuthError):
    status_code = 403
    code = "forbidden"
    default_message = "Insufficient permissions"


class InvalidOrExpiredToken(AuthError):
    """验证/重置 token 无效、已使用或已过期，统一提示避免泄露原因"""

    status_code = 400
    code = "invalid_or_expired_token"
    default_message = "Invalid or expired token"


class InvalidToken(AuthError):
    status_code = 401
    code = "invalid_token"
    default_message = "Invalid token"


class SessionExpired(InvalidToken):
    code = "token_expired"
    default_message = "Session has expired"


class InternalError(AuthError):
    pass


__all__ = [
    "AuthError",
    "ValidationError",
    "WeakPassword",
    "DuplicateEmail",
    "NotFound",
    "NotVerified",
    "AlreadyVerified",
    "InvalidCredentials",
    "Forbidden",
    "InvalidOrExpiredToken",
    "InvalidToken",
    "SessionExpired",
    "InternalError",
]
