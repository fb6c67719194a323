"""
单词复习记录模型
每个用户的每个单词一条，记录掌握等级和复习计划
"""
from sqlalchemy import Column, Integer, BigInteger, UniqueConstraint, Index

from .base import Base

WORDS_RECITE_RECORD_TABLE = "words_recite_record"


class WordsReciteRecord(Base):
    """
    单词复习记录

    字段说明：
    - level, downgrade_step, next_review_time: 复习调度状态
    - total_correct, total_wrong, score: 答题统计
    - version: 乐观锁版本号，每次更新 +1
    """
    __tablename__ = WORDS_RECITE_RECORD_TABLE
    __table_args__ = (
        UniqueConstraint("user_id", "word_id", name="uq_recite_user_word"),
        Index("ix_recite_user_next_review", "user_id", "next_review_time"),
        Index("ix_recite_user_level", "user_id", "level"),
    )

    # SQLite 只对 INTEGER 主键自增
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    word_id = Column(BigInteger, nullable=False)
    level = Column(Integer, nullable=False, default=0)  # 掌握等级，>= 8 已完成
    next_review_time = Column(BigInteger, nullable=False, default=0)  # 下次复习时间（epoch 秒）
    downgrade_step = Column(Integer, nullable=False, default=1)  # 答错时下降的等级数
    total_correct = Column(Integer, nullable=False, default=0)
    total_wrong = Column(Integer, nullable=False, default=0)
    score = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)

    def __repr__(self):
        return (
            f"<ReciteRecord(id={self.id} user={self.user_id} word={self.word_id} "
            f"level={self.level} next={self.next_review_time})>"
        )
