from functools import lru_cache

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from flowdash_auth.config import get_settings

# ensure models registered
from flowdash_auth.models import pending_token  # noqa: F401
from flowdash_auth.models import user_account  # noqa: F401


@lru_cache
def get_engine() -> Engine:
    """按 FLOWDASH_DB_PATH 创建 engine，进程内复用"""
    settings = get_settings()
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        settings.database_url,
        echo=False,
        connect_args={"check_same_thread": False},
    )


def init_db(engine: Engine = None) -> None:
    """初始化数据库，创建所有表。"""
    SQLModel.metadata.create_all(engine or get_engine())


def get_session(engine: Engine = None) -> Session:
    """获取 Session，用于 CRUD 操作"""
    return Session(engine or get_engine(), expire_on_commit=False)
