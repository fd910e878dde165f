"""
统一的日志配置模块

日志目录结构：
/logs/
└── platform/
    ├── app.log       # 应用主日志
    ├── error.log     # 错误日志
    └── access.log    # HTTP访问日志
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

# 统一使用项目顶层的 logs 目录
DEFAULT_LOG_DIR = Path(__file__).resolve().parents[3] / "logs"

DETAILED_FORMAT = (
    "%(asctime)s | "
    "PID:%(process)d | "
    "Thread:%(thread)d(%(threadName)s) | "
    "%(levelname)-8s | "
    "%(name)s | "
    "[%(filename)s:%(lineno)d:%(funcName)s] | "
    "%(message)s"
)

SIMPLE_FORMAT = (
    "%(asctime)s | "
    "%(levelname)-8s | "
    "%(name)s | "
    "[%(filename)s:%(lineno)d] | "
    "%(message)s"
)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ACCESS_LOGGER_NAME = "flowdash_auth.access"


def get_log_dir() -> Path:
    """日志根目录，可用 FLOWDASH_LOG_DIR 覆盖"""
    return Path(os.getenv("FLOWDASH_LOG_DIR", DEFAULT_LOG_DIR))


def get_platform_log_dir() -> Path:
    return get_log_dir() / "platform"


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[Path] = None,
    enable_console: bool = True,
    enable_file: bool = True,
) -> None:
    """配置应用程序的日志系统"""
    log_level = log_level or os.getenv("FLOWDASH_LOG_LEVEL", "INFO")
    log_directory = log_dir or get_platform_log_dir()
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(numeric_level)
    handlers = []
    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT, DATE_FORMAT))
        handlers.append(console_handler)
    if enable_file:
        log_directory.mkdir(parents=True, exist_ok=True)
        # 应用主日志
        app_handler = RotatingFileHandler(
            log_directory / "app.log",
            maxBytes=50 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        app_handler.setLevel(numeric_level)
        app_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, DATE_FORMAT))
        handlers.append(app_handler)
        # 错误日志
        error_handler = RotatingFileHandler(
            log_directory / "error.log",
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, DATE_FORMAT))
        handlers.append(error_handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: dir={log_directory}, level={log_level}")


def get_logger(name: str) -> logging.Logger:
    """获取指定名称的logger"""
    return logging.getLogger(name)


def setup_access_logging(log_dir: Optional[Path] = None) -> logging.Logger:
    """配置HTTP访问日志"""
    access_logger = logging.getLogger(ACCESS_LOGGER_NAME)
    access_logger.setLevel(logging.INFO)
    access_logger.propagate = False
    if access_logger.handlers:
        return access_logger
    log_directory = log_dir or get_platform_log_dir()
    log_directory.mkdir(parents=True, exist_ok=True)
    access_handler = TimedRotatingFileHandler(
        log_directory / "access.log",
        when="midnight",
        interval=1,
        backupCount=30,
        encoding="utf-8",
    )
    access_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, DATE_FORMAT))
    access_logger.addHandler(access_handler)
    return access_logger


__all__ = [
    "setup_logging",
    "get_logger",
    "setup_access_logging",
    "get_log_dir",
    "get_platform_log_dir",
]
