from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowdash_auth.api.exception_handlers import register_exception_handlers
from flowdash_auth.api.router import router as api_router
from flowdash_auth.config import get_settings
from flowdash_auth.middleware import RequestLoggingMiddleware
from flowdash_auth.models.db import get_engine, init_db
from flowdash_auth.services.auth_service import AuthService
from flowdash_auth.services.mailer import LoggingMailer, Mailer
from flowdash_auth.services.session import SessionIssuer
from flowdash_auth.storage.credentials import SQLCredentialStore
from flowdash_auth.storage.tokens import SQLTokenStore
from flowdash_auth.utils.logging_config import get_log_dir, get_logger, setup_logging

logger = get_logger(__name__)


def build_auth_service(mailer: Optional[Mailer] = None) -> AuthService:
    """按环境配置组装 SQLite 存储的 AuthService"""
    settings = get_settings()
    engine = get_engine()
    init_db(engine)
    return AuthService(
        credentials=SQLCredentialStore(engine),
        tokens=SQLTokenStore(engine),
        sessions=SessionIssuer(settings.secret_key),
        mailer=mailer or LoggingMailer(settings.frontend_url),
        bcrypt_rounds=settings.bcrypt_rounds,
    )


def create_app(auth_service: Optional[AuthService] = None) -> FastAPI:
    service = auth_service or build_auth_service()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # 确保存在演示账号
        if get_settings().seed_demo_users:
            service.ensure_demo_accounts()
        yield

    app = FastAPI(title="FlowDash Auth", lifespan=lifespan)
    app.state.auth_service = service

    # 添加请求日志中间件（在 CORS 之前）
    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    def root():
        return {"status": "ok", "message": "FlowDash Auth is running"}

    logger.info(f"Log directory: {get_log_dir()}")
    logger.info("Application initialized with request logging enabled")
    return app


def main() -> None:
    import uvicorn

    setup_logging()
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
