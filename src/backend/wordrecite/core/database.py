"""
数据库配置
支持SQLite（开发）和MySQL/PostgreSQL（生产）
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .config import get_recite_config

# 数据库连接配置
DATABASE_URL = get_recite_config().database_url

# 创建引擎
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {},
    pool_pre_ping=True,
)

# 创建会话工厂
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# 依赖注入
def get_db():
    """数据库会话依赖注入"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
