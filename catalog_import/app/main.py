"""FastAPI 애플리케이션 메인 파일 (헥사고날 아키텍처)"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, APIRouter, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_import.app.di import get_engine, dispose_engine
from catalog_import.app.routes import health, imports
from catalog_import.adapters.persistence.models import create_tables
from catalog_import.shared.config import get_settings
from catalog_import.shared.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


# 라우터 등록
def create_app() -> FastAPI:
    """FastAPI 애플리케이션 생성"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """애플리케이션 생명주기 관리"""
        logger.info("카탈로그 상품 가져오기 서비스 시작")

        # SQLite는 마이그레이션 없이 테이블을 바로 만든다
        if settings.database_url.startswith("sqlite"):
            try:
                await create_tables(get_engine())
                logger.info("데이터베이스 테이블 확인 완료")
            except Exception as e:
                logger.error(f"데이터베이스 연결 실패: {e}")
                raise

        yield

        await dispose_engine()
        logger.info("카탈로그 상품 가져오기 서비스 종료")

    app = FastAPI(
        title="카탈로그 상품 가져오기",
        description="CJ Dropshipping 상품을 카탈로그로 일괄 가져오는 서비스 (헥사고날 아키텍처)",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS 미들웨어
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # 실제 운영시 특정 도메인만 허용
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """잘못된 요청 본문은 400으로 응답"""
        logger.warning(f"요청 검증 실패: {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body", "details": str(exc.errors())}
        )

    # API 라우터 등록
    api_router = APIRouter(prefix="/api/v1")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(imports.router, prefix="/imports", tags=["imports"])

    app.include_router(api_router)

    return app


# 애플리케이션 인스턴스
app = create_app()


@app.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "message": "카탈로그 상품 가져오기 API 서버",
        "docs": "/docs",
        "health": "/api/v1/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "catalog_import.app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )
