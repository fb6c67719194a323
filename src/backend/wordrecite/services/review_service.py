"""
单词复习服务
处理答题提交、到期列表和学习统计
"""
import logging
import time
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from wordrecite.core.config import get_recite_config
from wordrecite.core.errors import ConflictError, NotFoundError, StaleRecordError
from wordrecite.core.record import ReviewOutcome, ReviewRecord
from wordrecite.core.scheduler import ReciteScheduler
from wordrecite.services.record_store import ReciteRecordStore

logger = logging.getLogger(__name__)


def now_epoch() -> int:
    """获取当前 epoch 秒"""
    return int(time.time())


class ReviewService:
    """单词复习服务"""

    @staticmethod
    def _load_or_create(db: Session, user_id: int, word_id: int) -> ReviewRecord:
        """获取记录，不存在时创建初始记录"""
        try:
            return ReciteRecordStore.get(db, user_id, word_id)
        except NotFoundError:
            pass

        try:
            ReciteRecordStore.create(db, ReciteScheduler.new_record(user_id, word_id))
        except ConflictError:
            # 并发请求已先创建，直接读取
            logger.info(f"记录已被并发创建: user_id={user_id}, word_id={word_id}")
        return ReciteRecordStore.get(db, user_id, word_id)

    @staticmethod
    def submit_answer(
        db: Session,
        user_id: int,
        word_id: int,
        outcome,
        now: Optional[int] = None
    ) -> ReviewRecord:
        """
        提交答案并更新复习记录

        流程：读取（或首次创建）-> 计算新状态 -> 带版本号写回。
        写回时版本冲突说明有并发更新，整个流程重新执行，超过重试次数后抛出 StaleRecordError。

        Args:
            db: 数据库会话
            user_id: 用户ID
            word_id: 单词ID
            outcome: 答题结果
            now: 答题时间（epoch 秒，默认当前时间）

        Returns:
            ReviewRecord: 更新后的记录
        """
        outcome = ReviewOutcome.parse(outcome)
        if now is None:
            now = now_epoch()
        config = get_recite_config()

        attempt = 0
        while True:
            record = ReviewService._load_or_create(db, user_id, word_id)
            next_state = ReciteScheduler.apply_outcome(
                record, outcome, now=now, wrong_retry_seconds=config.wrong_retry_seconds
            )
            try:
                updated = ReciteRecordStore.update(db, next_state)
            except StaleRecordError:
                attempt += 1
                if attempt > config.submit_max_retries:
                    logger.error(f"提交答案重试 {attempt - 1} 次后仍冲突: user_id={user_id}, word_id={word_id}")
                    raise
                logger.info(f"提交答案版本冲突，重试第 {attempt} 次: user_id={user_id}, word_id={word_id}")
                continue

            logger.info(
                f"提交答案 user_id={user_id} word_id={word_id} outcome={outcome.value} "
                f"level {record.level}->{updated.level}"
            )
            return updated

    @staticmethod
    def get_record(db: Session, user_id: int, word_id: int) -> ReviewRecord:
        return ReciteRecordStore.get(db, user_id, word_id)

    @staticmethod
    def get_records(db: Session, user_id: int, word_ids: Iterable[int]) -> Dict[int, ReviewRecord]:
        return ReciteRecordStore.get_many(db, user_id, word_ids)

    @staticmethod
    def get_due_records(
        db: Session,
        user_id: int,
        as_of: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[ReviewRecord]:
        """
        获取到期需要复习的单词

        按紧急程度排序：下次复习时间越早越优先，相同时等级低的优先
        """
        if as_of is None:
            as_of = now_epoch()

        records = ReciteRecordStore.due(db, user_id, as_of)
        records.sort(key=lambda r: (r.next_review_time, r.level, r.word_id))

        if limit is not None:
            records = records[:limit]
        return records

    @staticmethod
    def get_progress_stats(db: Session, user_id: int, now: Optional[int] = None) -> dict:
        """获取复习统计"""
        if now is None:
            now = now_epoch()
        return {
            "due_count": ReciteRecordStore.due_count(db, user_id, now),
            "completed_count": ReciteRecordStore.completed_count(db, user_id),
        }

    @staticmethod
    def reset_user(db: Session, user_id: int) -> int:
        """
        重置用户复习进度

        删除用户的所有复习记录，返回删除数量
        """
        deleted = ReciteRecordStore.delete_all(db, user_id)
        logger.info(f"重置用户复习进度: user_id={user_id}, deleted={deleted}")
        return deleted
