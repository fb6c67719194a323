"""
复习记录错误类型
存储层异常统一转换为以下几类，不在内部吞掉
"""


class ReciteError(Exception):
    """复习记录错误基类"""


class NotFoundError(ReciteError):
    """(user_id, word_id) 对应的记录不存在"""

    def __init__(self, user_id: int, word_id: int):
        self.user_id = user_id
        self.word_id = word_id
        super().__init__(f"复习记录不存在: user_id={user_id}, word_id={word_id}")


class ConflictError(ReciteError):
    """违反 (user_id, word_id) 唯一约束"""


class StaleRecordError(ConflictError):
    """
    乐观锁校验失败

    记录在读取之后已被其他请求更新，调用方需要重新执行
    读取-计算-写回 整个流程
    """


class TransientStorageError(ReciteError):
    """存储层临时故障（超时、连接中断等），由调用方决定是否重试"""


class ValidationError(ReciteError):
    """输入不合法，例如计数为负、未知的答题结果"""
