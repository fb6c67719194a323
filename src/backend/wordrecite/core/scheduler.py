"""
单词复习调度算法

等级 0-10，>= 8 视为已完成。答对升一级并按等级拉长复习间隔，
答错按当前的 downgrade_step 降级并很快重新出现。
"""
import time
from dataclasses import replace
from typing import Optional

from .config import get_recite_config
from .errors import ValidationError
from .record import ReviewOutcome, ReviewRecord

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


class ReciteScheduler:
    """单词复习调度器"""

    # 复习间隔（秒），随等级单调不减
    REVIEW_INTERVALS = {
        0: 0,             # 新词
        1: 30 * MINUTE,   # 30分钟后
        2: 12 * HOUR,     # 12小时
        3: DAY,           # 1天
        4: 2 * DAY,       # 2天
        5: 4 * DAY,       # 4天
        6: 7 * DAY,       # 7天
        7: 15 * DAY,      # 15天
        8: 30 * DAY,      # 30天（已完成）
        9: 60 * DAY,
        10: 120 * DAY,
    }

    # (最低等级, 降级步长)，按最低等级降序匹配
    DOWNGRADE_STEPS = (
        (8, 4),
        (6, 3),
        (3, 2),
        (0, 1),
    )

    COMPLETED_LEVEL = 8
    MAX_LEVEL = 10
    MIN_CORRECT_INTERVAL = 1

    LEVEL_WEIGHT = 10
    ACCURACY_WEIGHT = 20

    @classmethod
    def interval_for_level(cls, level: int) -> int:
        """获取某个等级答对后的复习间隔（秒）"""
        level = min(max(level, 0), cls.MAX_LEVEL)
        return max(cls.REVIEW_INTERVALS[level], cls.MIN_CORRECT_INTERVAL)

    @classmethod
    def downgrade_step_for_level(cls, level: int) -> int:
        """获取某个等级答错时的降级步长，等级越高降得越多"""
        for min_level, step in cls.DOWNGRADE_STEPS:
            if level >= min_level:
                return step
        return cls.DOWNGRADE_STEPS[-1][1]

    @classmethod
    def compute_score(cls, level: int, total_correct: int, total_wrong: int) -> int:
        """
        计算综合掌握分

        score = level * 10 + floor(20 * 正确率)
        """
        total = total_correct + total_wrong
        accuracy_part = (cls.ACCURACY_WEIGHT * total_correct) // total if total else 0
        return level * cls.LEVEL_WEIGHT + accuracy_part

    @classmethod
    def is_completed(cls, level: int) -> bool:
        return level >= cls.COMPLETED_LEVEL

    @classmethod
    def new_record(cls, user_id: int, word_id: int) -> ReviewRecord:
        """首次复习某个单词时的初始记录"""
        return ReviewRecord(
            user_id=user_id,
            word_id=word_id,
            level=0,
            downgrade_step=cls.downgrade_step_for_level(0),
            next_review_time=0,
            total_correct=0,
            total_wrong=0,
            score=0,
        )

    @classmethod
    def apply_outcome(
        cls,
        record: ReviewRecord,
        outcome,
        now: Optional[int] = None,
        wrong_retry_seconds: Optional[int] = None,
    ) -> ReviewRecord:
        """
        根据答题结果计算新的记录状态（纯函数，不写库）

        Args:
            record: 当前记录
            outcome: 答题结果（ReviewOutcome / "correct" / "wrong" / bool）
            now: 当前时间（epoch 秒，默认取系统时间）
            wrong_retry_seconds: 答错后重新出现的间隔（默认读取配置）

        Returns:
            ReviewRecord: 新的记录状态，id/user_id/word_id/version 保持不变
        """
        record.validate()
        outcome = ReviewOutcome.parse(outcome)
        if now is None:
            now = int(time.time())
        if now < 0:
            raise ValidationError(f"当前时间不能为负数: {now}")

        if outcome is ReviewOutcome.CORRECT:
            level = min(record.level + 1, cls.MAX_LEVEL)
            total_correct = record.total_correct + 1
            total_wrong = record.total_wrong
            # 提前复习时以原计划时间为基准，保证下次复习时间严格后移
            base = max(now, record.next_review_time)
            next_review_time = base + cls.interval_for_level(level)
        else:
            if wrong_retry_seconds is None:
                wrong_retry_seconds = get_recite_config().wrong_retry_seconds
            level = max(record.level - record.downgrade_step, 0)
            total_correct = record.total_correct
            total_wrong = record.total_wrong + 1
            next_review_time = now + wrong_retry_seconds

        return replace(
            record,
            level=level,
            downgrade_step=cls.downgrade_step_for_level(level),
            next_review_time=next_review_time,
            total_correct=total_correct,
            total_wrong=total_wrong,
            score=cls.compute_score(level, total_correct, total_wrong),
        )
