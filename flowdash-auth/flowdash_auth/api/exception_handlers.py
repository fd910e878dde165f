"""把 AuthError、请求解析错误和未预期的异常统一渲染成 ``{"success": false, ...}``"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flowdash_auth.errors import AuthError, InternalError, NotVerified
from flowdash_auth.utils.logging_config import get_logger

logger = get_logger(__name__)


def _failure(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    body = {"success": False, "message": message, "error": code}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    extra = {"requiresVerification": True} if isinstance(exc, NotVerified) else {}
    return _failure(exc.status_code, exc.code, exc.message, **extra)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Malformed request body for {request.url.path}: {exc.errors()}")
    return _failure(400, "validation_error", "Invalid request body")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # 细节只写日志，不返回给调用方
    logger.exception(f"Unhandled error in {request.method} {request.url.path}: {exc!r}")
    return _failure(500, InternalError.code, InternalError.default_message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
