"""
Models package
Export all database models
"""
import logging

from .base import Base
from .record import WordsReciteRecord, WORDS_RECITE_RECORD_TABLE

__all__ = [
    "Base",
    "WordsReciteRecord",
    "WORDS_RECITE_RECORD_TABLE",
]

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """初始化数据库"""
    if bind is None:
        from ..core.database import engine
        bind = engine

    # 创建所有表
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created successfully")


def drop_all(bind=None):
    """删除所有表（仅开发测试用）"""
    if bind is None:
        from ..core.database import engine
        bind = engine

    # 删除所有表
    Base.metadata.drop_all(bind=bind)
    logger.warning("All tables dropped")
