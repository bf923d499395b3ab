"""
数据库基础配置
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.config import settings

_is_sqlite = settings.database_url.startswith("sqlite")

# 创建数据库引擎
# check_same_thread=False: 连接可能在 FastAPI 线程池中使用
if _is_sqlite:
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
else:
    engine = create_engine(settings.database_url)


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """对每个新 SQLite 连接启用 WAL 模式。"""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


if _is_sqlite:
    event.listen(engine, "connect", _set_sqlite_pragma)

# 创建会话工厂
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 创建基类
Base = declarative_base()
