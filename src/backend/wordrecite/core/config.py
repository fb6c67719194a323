"""
复习服务配置

配置优先级：环境变量 > 默认值
"""
import os
from dataclasses import dataclass

from .errors import ValidationError


@dataclass
class ReciteConfig:
    """
    复习服务配置

    Attributes:
        database_url: 数据库连接地址
        wrong_retry_seconds: 答错后多久重新出现（秒）
        submit_max_retries: 乐观锁冲突时整体重试次数
    """
    database_url: str = "sqlite:///./data/recite.db"
    wrong_retry_seconds: int = 300
    submit_max_retries: int = 3


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"环境变量 {name} 必须是整数: {raw!r}")
    if value < minimum:
        raise ValidationError(f"环境变量 {name} 不能小于 {minimum}: {value}")
    return value


def get_recite_config() -> ReciteConfig:
    """
    从环境变量获取复习服务配置

    环境变量：
        DATABASE_URL: 数据库连接地址
        RECITE_WRONG_RETRY_SECONDS: 答错后的重新复习间隔（默认 300）
        RECITE_SUBMIT_MAX_RETRIES: 提交答案的最大重试次数（默认 3）
    """
    defaults = ReciteConfig()
    return ReciteConfig(
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        wrong_retry_seconds=_int_env("RECITE_WRONG_RETRY_SECONDS", defaults.wrong_retry_seconds, minimum=1),
        submit_max_retries=_int_env("RECITE_SUBMIT_MAX_RETRIES", defaults.submit_max_retries),
    )
