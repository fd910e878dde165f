from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from flowdash_auth.api.deps import (
    extract_bearer_token,
    get_auth_service,
    get_current_claims,
)
from flowdash_auth.api.schemas import (
    ClaimsResponse,
    EmailRequest,
    EmailTokenRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PermissionsResponse,
    ResetPasswordRequest,
    SessionResponse,
    SignupRequest,
    SignupResponse,
    UserEnvelope,
    UserResponse,
)
from flowdash_auth.config import SESSION_TTL_SECONDS
from flowdash_auth.services.auth_service import AuthService
from flowdash_auth.services.permissions import permissions_for
from flowdash_auth.services.session import SessionClaims
from flowdash_auth.utils.logging_config import get_logger

router = APIRouter(prefix="/auth")

logger = get_logger(__name__)

RESET_REQUEST_MESSAGE = "If an account exists with this email, you will receive a reset link."


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.signup(name=payload.name, email=payload.email, password=payload.password)
    return SignupResponse(
        message="Account created! Please check your email to verify your account.",
        requires_verification=True,
    )


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(payload: EmailTokenRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.verify_email(email=payload.email, token=payload.token)
    return MessageResponse(message="Email verified successfully! You can now log in.")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(payload: EmailRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.resend_verification(email=payload.email)
    return MessageResponse(message="Verification email sent! Please check your inbox.")


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = auth_service.login(email=payload.email, password=payload.password)
    return LoginResponse(
        message="Login successful",
        token=result.token,
        expires_in=SESSION_TTL_SECONDS,
        user=UserResponse.from_account(result.user),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(authorization: Optional[str] = Header(None, alias="Authorization")):
    # 服务端不保存会话，客户端丢弃 token 即可
    if extract_bearer_token(authorization):
        logger.info("Client logged out")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserEnvelope)
def me(
    claims: SessionClaims = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
):
    account = auth_service.get_user(claims)
    return UserEnvelope(user=UserResponse.from_account(account))


@router.get("/verify", response_model=SessionResponse)
def verify_session(claims: SessionClaims = Depends(get_current_claims)):
    return SessionResponse(message="Session is valid", user=ClaimsResponse.from_claims(claims))


@router.get("/permissions", response_model=PermissionsResponse)
def permissions(claims: SessionClaims = Depends(get_current_claims)):
    return PermissionsResponse(
        role=claims.role,
        permissions=[permission.value for permission in permissions_for(claims.role)],
    )


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(payload: EmailRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.request_password_reset(email=payload.email)
    return MessageResponse(message=RESET_REQUEST_MESSAGE)


@router.post("/validate-reset-token", response_model=MessageResponse)
def validate_reset_token(payload: EmailTokenRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.validate_reset_token(email=payload.email, token=payload.token)
    return MessageResponse(message="Token is valid")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.reset_password(email=payload.email, token=payload.token, new_password=payload.new_password)
    return MessageResponse(message="Password has been reset successfully")
