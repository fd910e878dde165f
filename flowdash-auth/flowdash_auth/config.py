"""运行配置

所有配置都从 FLOWDASH_* 环境变量读取，进程内只解析一次。
"""
import os
import secrets
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from flowdash_auth.utils.logging_config import get_logger

logger = get_logger(__name__)

PROJECT_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DB_PATH = PROJECT_DIR / "flowdash.db"

# 固定的生命周期常量
VERIFICATION_TTL_SECONDS = 24 * 60 * 60
RESET_TTL_SECONDS = 60 * 60
SESSION_TTL_SECONDS = 24 * 60 * 60
MIN_PASSWORD_LENGTH = 6
# bcrypt 只处理前 72 个字节
MAX_PASSWORD_BYTES = 72
MIN_BCRYPT_ROUNDS = 10


@dataclass(frozen=True)
class Settings:
    db_path: Path
    secret_key: str
    frontend_url: str
    bcrypt_rounds: int
    seed_demo_users: bool

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@lru_cache
def get_settings() -> Settings:
    secret_key = os.getenv("FLOWDASH_SECRET_KEY")
    if not secret_key:
        # 未配置时每个进程随机生成，重启后旧 token 全部失效
        secret_key = secrets.token_hex(32)
        logger.warning("FLOWDASH_SECRET_KEY not set, using a random per-process signing key")

    rounds = int(os.getenv("FLOWDASH_BCRYPT_ROUNDS", "12"))
    if rounds < MIN_BCRYPT_ROUNDS:
        logger.warning(f"FLOWDASH_BCRYPT_ROUNDS={rounds} is too low, using {MIN_BCRYPT_ROUNDS}")
        rounds = MIN_BCRYPT_ROUNDS

    return Settings(
        db_path=Path(os.getenv("FLOWDASH_DB_PATH", DEFAULT_DB_PATH)),
        secret_key=secret_key,
        frontend_url=os.getenv("FLOWDASH_FRONTEND_URL", "http://localhost:5173").rstrip("/"),
        bcrypt_rounds=rounds,
        seed_demo_users=_env_bool("FLOWDASH_SEED_DEMO_USERS", True),
    )
