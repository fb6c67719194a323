"""
复习记录状态

与 ORM 行对象解耦的纯数据对象，调度算法只在这一层上计算
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional

from .errors import ValidationError

# 数据库 BIGINT 上限
MAX_ID = 2 ** 63 - 1


def check_int(name: str, value: Any) -> int:
    """检查整数字段在 [0, MAX_ID] 范围内，非法时抛出 ValidationError"""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} 必须是整数: {value!r}")
    if value < 0:
        raise ValidationError(f"{name} 不能为负数: {value}")
    if value > MAX_ID:
        raise ValidationError(f"{name} 超出范围: {value}")
    return value


class ReviewOutcome(str, Enum):
    """答题结果"""
    CORRECT = "correct"
    WRONG = "wrong"

    @classmethod
    def parse(cls, value: Any) -> "ReviewOutcome":
        """
        规范化答题结果

        接受枚举、字符串（不区分大小写）和布尔值（True 为答对）
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.CORRECT if value else cls.WRONG
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValidationError(f"未知的答题结果: {value!r}")


@dataclass(frozen=True)
class ReviewRecord:
    """
    单词复习记录（每个 user_id + word_id 一条）

    Attributes:
        user_id: 用户ID
        word_id: 单词ID
        level: 掌握等级，>= 8 视为已完成
        downgrade_step: 答错时下降的等级数
        next_review_time: 下次复习时间（epoch 秒）
        total_correct: 累计答对次数
        total_wrong: 累计答错次数
        score: 综合掌握分
        id: 自增主键，创建前为 None
        version: 乐观锁版本号
    """
    user_id: int
    word_id: int
    level: int = 0
    downgrade_step: int = 1
    next_review_time: int = 0
    total_correct: int = 0
    total_wrong: int = 0
    score: int = 0
    id: Optional[int] = None
    version: int = 1

    def validate(self) -> "ReviewRecord":
        """检查字段取值，非法时抛出 ValidationError"""
        for name in ("user_id", "word_id", "level", "downgrade_step", "next_review_time", "total_correct", "total_wrong"):
            check_int(name, getattr(self, name))
        return self

    @classmethod
    def from_row(cls, row) -> "ReviewRecord":
        """从 ORM 行对象构造"""
        return cls(
            id=row.id,
            user_id=row.user_id,
            word_id=row.word_id,
            level=row.level,
            downgrade_step=row.downgrade_step,
            next_review_time=row.next_review_time,
            total_correct=row.total_correct,
            total_wrong=row.total_wrong,
            score=row.score,
            version=row.version,
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return asdict(self)
