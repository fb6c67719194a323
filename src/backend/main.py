"""
FastAPI应用入口
"""
from dotenv import load_dotenv
from pathlib import Path
import os
import logging

# 加载环境变量 - 优先从根目录加载，回退到当前目录
root_env = Path(__file__).parent.parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)
else:
    load_dotenv()

logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from wordrecite import __version__
from wordrecite.api import review
from wordrecite.core.errors import (
    ConflictError,
    NotFoundError,
    ReciteError,
    TransientStorageError,
    ValidationError,
)


def _get_cors_config() -> tuple[list[str], str | None]:
    """
    获取 CORS 配置

    Returns:
        (allow_origins, allow_origin_regex)
        - 生产环境：使用精确匹配的 origins 列表
        - 开发环境：使用正则匹配本地端口，方便本地开发
    """
    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    if origins_str:
        origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]
        if origins:
            return origins, None

    # 开发环境：使用正则匹配所有本地端口
    if os.getenv("DEV_MODE", "false").lower() == "true":
        return [], r"http://(localhost|127\.0\.0\.1)(:\d+)?"

    # 非开发环境且未配置 ALLOWED_ORIGINS：拒绝所有跨域
    logger.warning("未配置 ALLOWED_ORIGINS 且非开发模式，CORS 将拒绝所有跨域请求")
    return [], None


# 错误类型 -> HTTP 状态码，子类排在父类之前
ERROR_STATUS_CODES = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 422),
    (TransientStorageError, 503),
)


def _status_code_for(exc: ReciteError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


app = FastAPI(
    title="Word Recite API",
    description="Vocabulary spaced-repetition review records",
    version=__version__
)

# CORS配置 - 从环境变量读取允许的源
allow_origins, allow_origin_regex = _get_cors_config()
logger.info(f"CORS 配置: origins={allow_origins}, regex={allow_origin_regex}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReciteError)
async def recite_error_handler(request: Request, exc: ReciteError):
    """复习记录错误统一转换为 HTTP 响应"""
    status_code = _status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 失败: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__}
    )


# 包含所有路由
app.include_router(review.router, prefix="/api", tags=["单词复习"])


@app.get("/")
async def root():
    """根路径"""
    return {"message": "Word Recite API", "docs": "/docs"}


@app.get("/health")
async def health():
    """健康检查"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
