"""
单词复习API路由
答题提交、到期列表、学习统计、重置进度
"""
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from wordrecite.core.database import get_db
from wordrecite.core.errors import ValidationError
from wordrecite.core.record import MAX_ID, ReviewOutcome, ReviewRecord
from wordrecite.core.scheduler import ReciteScheduler
from wordrecite.services.review_service import ReviewService


router = APIRouter(prefix="/review", tags=["单词复习"])


# Schemas
class AnswerSubmissionRequest(BaseModel):
    """答案提交请求"""
    word_id: int = Field(ge=0, le=MAX_ID)
    outcome: ReviewOutcome

    @field_validator("outcome", mode="before")
    @classmethod
    def parse_outcome(cls, v):
        """接受不区分大小写的字符串和布尔值"""
        try:
            return ReviewOutcome.parse(v)
        except ValidationError as e:
            raise ValueError(str(e))


class ReviewRecordResponse(BaseModel):
    """复习记录响应"""
    id: int
    user_id: int
    word_id: int
    level: int
    downgrade_step: int
    next_review_time: int
    total_correct: int
    total_wrong: int
    score: int
    completed: bool


class ReviewStatsResponse(BaseModel):
    """复习统计响应"""
    due_count: int
    completed_count: int


class ResetResponse(BaseModel):
    """重置进度响应"""
    deleted: int


def _to_response(record: ReviewRecord) -> ReviewRecordResponse:
    return ReviewRecordResponse(
        **record.to_dict(),
        completed=ReciteScheduler.is_completed(record.level)
    )


# Endpoints
@router.post("/submit", response_model=ReviewRecordResponse)
async def submit_answer(
    request: AnswerSubmissionRequest,
    user_id: int = Query(ge=0, le=MAX_ID),
    db: Session = Depends(get_db)
):
    """提交答案并更新复习进度"""
    record = ReviewService.submit_answer(
        db,
        user_id=user_id,
        word_id=request.word_id,
        outcome=request.outcome
    )
    return _to_response(record)


@router.get("/records/{word_id}", response_model=ReviewRecordResponse)
async def get_record(
    word_id: int = Path(ge=0, le=MAX_ID),
    user_id: int = Query(ge=0, le=MAX_ID),
    db: Session = Depends(get_db)):
    """获取单个单词的复习记录"""
    return _to_response(ReviewService.get_record(db, user_id, word_id))


@router.get("/records", response_model=Dict[int, ReviewRecordResponse])
async def get_records(
    user_id: int = Query(ge=0, le=MAX_ID),
    word_ids: List[int] = Query(default=[]),
    db: Session = Depends(get_db)
):
    """批量获取复习记录，没有记录的单词不返回"""
    records = ReviewService.get_records(db, user_id, word_ids)
    return {word_id: _to_response(r) for word_id, r in records.items()}


@router.get("/due", response_model=List[ReviewRecordResponse])
async def get_due_records(
    user_id: int = Query(ge=0, le=MAX_ID),
    as_of: Optional[int] = Query(default=None, ge=0, le=MAX_ID),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db)
):
    """
    获取到期需要复习的单词

    按下次复习时间从早到晚排序
    """
    records = ReviewService.get_due_records(db, user_id, as_of=as_of, limit=limit)
    return [_to_response(r) for r in records]


@router.get("/stats", response_model=ReviewStatsResponse)
async def get_review_stats(user_id: int = Query(ge=0, le=MAX_ID), db: Session = Depends(get_db)):
    """获取复习统计"""
    return ReviewStatsResponse(**ReviewService.get_progress_stats(db, user_id))


@router.delete("/records", response_model=ResetResponse)
async def reset_records(user_id: int = Query(ge=0, le=MAX_ID), db: Session = Depends(get_db)):
    """
    重置用户复习进度

    删除用户的所有复习记录，没有记录时同样成功
    """
    return ResetResponse(deleted=ReviewService.reset_user(db, user_id))
