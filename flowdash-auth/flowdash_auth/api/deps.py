from typing import Callable, Optional

from fastapi import Depends, Header, Request

from flowdash_auth.errors import Forbidden, InvalidToken
from flowdash_auth.models.user_account import Role
from flowdash_auth.services.auth_service import AuthService
from flowdash_auth.services.permissions import Permission, can_access_roles, has_permission
from flowdash_auth.services.session import SessionClaims


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def get_token(authorization: Optional[str] = Header(None, alias="Authorization")) -> str:
    token = extract_bearer_token(authorization)
    if not token:
        raise InvalidToken("Access token required")
    return token


def get_current_claims(
    token: str = Depends(get_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionClaims:
    """获取当前会话（依赖注入）"""
    return auth_service.validate_session(token)


def require_permission(permission: Permission) -> Callable[..., SessionClaims]:
    """路由守卫：当前会话的角色没有该权限时返回 403

    本服务的 /auth 路由只要求登录；这两个守卫供挂在同一个 app 上的业务路由使用。
    """
    def dependency(claims: SessionClaims = Depends(get_current_claims)) -> SessionClaims:
        if not has_permission(claims.role, permission):
            raise Forbidden()
        return claims

    return dependency


def require_roles(*roles: Role) -> Callable[..., SessionClaims]:
    """路由守卫：当前会话的角色不在 roles 中时返回 403"""
    def dependency(claims: SessionClaims = Depends(get_current_claims)) -> SessionClaims:
        if not can_access_roles(claims.role, roles):
            raise Forbidden()
        return claims

    return dependency
