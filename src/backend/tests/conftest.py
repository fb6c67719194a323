"""
Pytest 配置和通用 Fixtures

提供内存 SQLite 会话和 FastAPI 测试客户端
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wordrecite.models import drop_all, init_db


# ==================== 数据库 ====================

@pytest.fixture
def engine():
    """内存 SQLite 引擎，所有连接共享同一个库"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """数据库会话"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ==================== API ====================

@pytest.fixture
def client(session_factory):
    """创建测试客户端，get_db 指向内存数据库"""
    from fastapi.testclient import TestClient
    from main import app
    from wordrecite.core.database import get_db

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ==================== 测试数据 ====================

NOW = 1_700_000_000


@pytest.fixture
def now():
    """固定的当前时间（epoch 秒）"""
    return NOW
