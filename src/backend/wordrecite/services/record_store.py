"""
单词复习记录存储

只负责记录的增删改查，不包含调度逻辑：
- create 只插入新记录，重复插入抛 ConflictError（不做 upsert）
- update 只更新已存在的记录，带乐观锁版本校验（不做隐式创建）
"""
import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, List

from sqlalchemy import func, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from wordrecite.core.errors import (
    ConflictError,
    NotFoundError,
    StaleRecordError,
    TransientStorageError,
)
from wordrecite.core.record import ReviewRecord, check_int
from wordrecite.core.scheduler import ReciteScheduler
from wordrecite.models import WordsReciteRecord, WORDS_RECITE_RECORD_TABLE

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(db: Session, action: str):
    """把数据库异常转换为复习记录错误类型，并回滚会话"""
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"{action} 违反唯一约束: {e.orig}")
        raise ConflictError(f"{action} 失败: 记录已存在") from e
    except DBAPIError as e:
        db.rollback()
        logger.error(f"{action} 存储层异常: {e}")
        raise TransientStorageError(f"{action} 失败: {e.orig}") from e


def _key_filter(query, user_id: int, word_id: int):
    return query.filter(
        WordsReciteRecord.user_id == user_id,
        WordsReciteRecord.word_id == word_id
    )


class ReciteRecordStore:
    """单词复习记录存储"""

    @staticmethod
    def create(db: Session, record: ReviewRecord) -> int:
        """
        插入一条新的复习记录

        调用方需先通过 get 确认记录不存在；重复插入不会覆盖已有记录

        Args:
            db: 数据库会话
            record: 待插入的记录（id 会被忽略，由数据库生成）

        Returns:
            int: 新记录的ID

        Raises:
            ConflictError: (user_id, word_id) 已存在记录
        """
        record.validate()
        row = WordsReciteRecord(
            user_id=record.user_id,
            word_id=record.word_id,
            level=record.level,
            downgrade_step=record.downgrade_step,
            next_review_time=record.next_review_time,
            total_correct=record.total_correct,
            total_wrong=record.total_wrong,
            score=record.score,
            version=1,
        )
        with _storage_errors(db, f"插入 user_id={record.user_id} word_id={record.word_id}"):
            db.add(row)
            db.commit()
            record_id = row.id

        logger.info(f"Insert {WORDS_RECITE_RECORD_TABLE} id={record_id} user_id={record.user_id} word_id={record.word_id}")
        return record_id

    @staticmethod
    def get(db: Session, user_id: int, word_id: int) -> ReviewRecord:
        """
        按 (user_id, word_id) 查询复习记录

        Raises:
            NotFoundError: 记录不存在
        """
        check_int("user_id", user_id)
        check_int("word_id", word_id)
        with _storage_errors(db, f"查询 user_id={user_id} word_id={word_id}"):
            row = _key_filter(db.query(WordsReciteRecord), user_id, word_id).first()

        if row is None:
            raise NotFoundError(user_id, word_id)

        logger.info(f"Found {WORDS_RECITE_RECORD_TABLE} for user_id={user_id}, word_id={word_id}")
        return ReviewRecord.from_row(row)

    @staticmethod
    def get_many(db: Session, user_id: int, word_ids: Iterable[int]) -> Dict[int, ReviewRecord]:
        """
        批量查询复习记录

        Args:
            db: 数据库会话
            user_id: 用户ID
            word_ids: 单词ID集合（重复的ID按一个处理）

        Returns:
            Dict[int, ReviewRecord]: word_id -> 记录，没有记录的单词不出现在结果中
        """
        check_int("user_id", user_id)
        ids = {check_int("word_id", word_id) for word_id in word_ids}
        if not ids:
            return {}

        with _storage_errors(db, f"批量查询 user_id={user_id}"):
            rows = db.query(WordsReciteRecord).filter(
                WordsReciteRecord.user_id == user_id,
                WordsReciteRecord.word_id.in_(sorted(ids))
            ).all()

        logger.info(f"Found {len(rows)} {WORDS_RECITE_RECORD_TABLE} rows for user_id={user_id}")
        return {row.word_id: ReviewRecord.from_row(row) for row in rows}

    @staticmethod
    def update(db: Session, record: ReviewRecord) -> ReviewRecord:
        """
        更新已存在记录的可变字段

        只写 level、downgrade_step、next_review_time、total_correct、total_wrong、score；
        id、user_id、word_id 不会被改写。只有当库中版本号与 record.version 一致时才会更新。

        Returns:
            ReviewRecord: 写入后的记录（version 已 +1）

        Raises:
            NotFoundError: 记录不存在
            StaleRecordError: 记录在读取后已被其他请求修改
        """
        record.validate()
        action = f"更新 user_id={record.user_id} word_id={record.word_id}"
        stmt = (
            update(WordsReciteRecord)
            .where(
                WordsReciteRecord.user_id == record.user_id,
                WordsReciteRecord.word_id == record.word_id,
                WordsReciteRecord.version == record.version
            )
            .values(
                level=record.level,
                downgrade_step=record.downgrade_step,
                next_review_time=record.next_review_time,
                total_correct=record.total_correct,
                total_wrong=record.total_wrong,
                score=record.score,
                version=record.version + 1,
            )
            .execution_options(synchronize_session=False)
        )

        with _storage_errors(db, action):
            rowcount = db.execute(stmt).rowcount
            if rowcount:
                db.commit()
                missing = False
            else:
                db.rollback()
                missing = _key_filter(db.query(WordsReciteRecord.id), record.user_id, record.word_id).first() is None

        if not rowcount:
            if missing:
                raise NotFoundError(record.user_id, record.word_id)
            logger.warning(f"{action} 版本冲突: version={record.version}")
            raise StaleRecordError(f"{action} 失败: 记录已被修改")

        updated = replace(record, version=record.version + 1)
        logger.info(f"Updated {WORDS_RECITE_RECORD_TABLE}: {updated}")
        return updated

    @staticmethod
    def due(db: Session, user_id: int, as_of: int) -> List[ReviewRecord]:
        """
        获取到期需要复习的记录（next_review_time <= as_of）

        不保证顺序，调用方按需排序
        """
        check_int("user_id", user_id)
        check_int("as_of", as_of)
        with _storage_errors(db, f"查询到期记录 user_id={user_id}"):
            rows = db.query(WordsReciteRecord).filter(
                WordsReciteRecord.user_id == user_id,
                WordsReciteRecord.next_review_time <= as_of
            ).all()

        logger.info(f"Found {len(rows)} review records for user_id={user_id}")
        return [ReviewRecord.from_row(row) for row in rows]

    @staticmethod
    def due_count(db: Session, user_id: int, as_of: int) -> int:
        """统计到期需要复习的单词数"""
        check_int("user_id", user_id)
        check_int("as_of", as_of)
        with _storage_errors(db, f"统计到期记录 user_id={user_id}"):
            count = db.query(func.count(WordsReciteRecord.id)).filter(
                WordsReciteRecord.user_id == user_id,
                WordsReciteRecord.next_review_time <= as_of
            ).scalar()

        count = count or 0
        logger.info(f"Due words count for user_id={user_id}: {count}")
        return count

    @staticmethod
    def completed_count(db: Session, user_id: int) -> int:
        """统计已完成（level >= 8）的单词数"""
        check_int("user_id", user_id)
        with _storage_errors(db, f"统计已完成 user_id={user_id}"):
            count = db.query(func.count(WordsReciteRecord.id)).filter(
                WordsReciteRecord.user_id == user_id,
                WordsReciteRecord.level >= ReciteScheduler.COMPLETED_LEVEL
            ).scalar()

        count = count or 0
        logger.info(f"Completed words count from record for user_id={user_id}: {count}")
        return count

    @staticmethod
    def delete_all(db: Session, user_id: int) -> int:
        """
        删除用户的全部复习记录（重置进度）

        Returns:
            int: 删除的记录数，用户没有记录时为 0
        """
        check_int("user_id", user_id)
        with _storage_errors(db, f"删除 user_id={user_id}"):
            deleted = db.query(WordsReciteRecord).filter(
                WordsReciteRecord.user_id == user_id
            ).delete(synchronize_session=False)
            db.commit()

        logger.info(f"Deleted {deleted} {WORDS_RECITE_RECORD_TABLE} rows for user_id={user_id}")
        return deleted
