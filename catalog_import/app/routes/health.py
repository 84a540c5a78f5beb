"""헬스체크 라우트"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker
from datetime import datetime

from catalog_import.app.di import get_session_factory
from catalog_import.shared.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
async def health_check(session_factory: async_sessionmaker = Depends(get_session_factory)):
    """서비스 헬스체크 (카탈로그 DB 연결 포함)"""
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"헬스체크 실패: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "timestamp": datetime.now().isoformat(),
                "error": str(e)
            }
        )

    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "catalog-import",
        "database": "ok"
    }
