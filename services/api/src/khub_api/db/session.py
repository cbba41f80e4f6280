"""数据库会话管理。

引擎与会话工厂在首次使用时创建，进程内共享；
`dispose_engine` 用于应用关闭与测试清理。
"""

from collections.abc import Generator
from threading import Lock

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from khub_api.core.config import get_settings

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None
_lock = Lock()


def get_engine() -> Engine:
    """返回全局数据库引擎，首次调用时创建。"""
    global _engine
    if _engine is None:
        with _lock:
            if _engine is None:
                settings = get_settings()
                # 开启连接预检查以减少僵尸连接影响。
                _engine = create_engine(settings.database_url, future=True, pool_pre_ping=True)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """返回统一会话工厂。"""
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        with _lock:
            if _session_factory is None:
                _session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)
    return _session_factory


def dispose_engine() -> None:
    """释放连接池并重置全局状态。"""
    global _engine, _session_factory
    with _lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _session_factory = None


def get_db() -> Generator[Session, None, None]:
    """为每个请求提供独立数据库会话。"""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
