"""의존성 주입 설정"""
from typing import Optional
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from catalog_import.core.entities.catalog import Supplier
from catalog_import.core.ports.clock_port import ClockPort
from catalog_import.core.ports.rate_limit_port import RateLimitPort
from catalog_import.core.ports.repo_port import CatalogRepositoryPort
from catalog_import.core.ports.supplier_port import SupplierCredentials, SupplierProductPort
from catalog_import.core.usecases.import_products import (
    ImportProductsUseCase, ImportPolicy, SupplierPortFactory
)
from catalog_import.adapters.auth.rate_limit_governor import RateLimitGovernor
from catalog_import.adapters.auth.token_store import TokenStore
from catalog_import.adapters.persistence.clock_adapter import ClockAdapter
from catalog_import.adapters.persistence.models import build_engine, build_session_factory
from catalog_import.adapters.persistence.repositories import CatalogRepository
from catalog_import.adapters.suppliers.cj_adapter import CJDropshippingAdapter
from catalog_import.shared.config import get_settings
from catalog_import.shared.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

# 프로세스 전체에서 공유하는 상태 (요청마다 새로 만들면 호출 제한을 잊어버린다)
_clock = ClockAdapter()
_rate_limiter = RateLimitGovernor(
    _clock,
    auth_cooldown_seconds=settings.auth_cooldown_seconds,
    request_spacing_seconds=settings.request_spacing_seconds
)
_token_store = TokenStore(_clock, min_remaining_minutes=settings.token_min_remaining_minutes)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """데이터베이스 엔진 (최초 호출시 생성)"""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url)
    return _engine


async def dispose_engine() -> None:
    """엔진 종료"""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def get_session_factory() -> async_sessionmaker:
    """세션 팩토리"""
    global _session_factory
    if _session_factory is None:
        _session_factory = build_session_factory(get_engine())
    return _session_factory


def get_clock() -> ClockPort:
    """클록 포트 구현체"""
    return _clock


def get_rate_limiter() -> RateLimitPort:
    """호출 제한 관리자 (프로세스 싱글턴)"""
    return _rate_limiter


def get_token_store() -> TokenStore:
    """공급사 토큰 저장소 (프로세스 싱글턴)"""
    return _token_store


def get_repository(
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> CatalogRepositoryPort:
    """리포지토리 포트 구현체"""
    return CatalogRepository(session_factory)


def get_supplier_port_factory(
    rate_limiter: RateLimitPort = Depends(get_rate_limiter),
    token_store: TokenStore = Depends(get_token_store),
    clock: ClockPort = Depends(get_clock)
) -> SupplierPortFactory:
    """공급사별 CJ 어댑터 생성 함수"""

    def factory(supplier: Supplier) -> SupplierProductPort:
        return CJDropshippingAdapter(
            credentials=SupplierCredentials(
                supplier_id=supplier.id,
                api_key=supplier.api_key,
                api_endpoint=supplier.api_endpoint,
                account_email=settings.cj_account_email
            ),
            rate_limiter=rate_limiter,
            token_store=token_store,
            clock=clock,
            timeout=settings.request_timeout,
            default_rate_limit_wait=settings.default_rate_limit_wait_seconds
        )

    return factory


def get_import_policy() -> ImportPolicy:
    """설정 기반 배치 정책"""
    return ImportPolicy(
        fetch_timeout_seconds=settings.fetch_timeout_seconds,
        default_markup=settings.default_markup,
        max_markup=settings.max_markup,
        compare_at_extra_markup=settings.compare_at_extra_markup,
        dropship_inventory=settings.dropship_inventory
    )


# 유즈케이스 팩토리
def get_import_products_usecase(
    repository: CatalogRepositoryPort = Depends(get_repository),
    supplier_port_factory: SupplierPortFactory = Depends(get_supplier_port_factory),
    rate_limiter: RateLimitPort = Depends(get_rate_limiter),
    clock: ClockPort = Depends(get_clock),
    policy: ImportPolicy = Depends(get_import_policy)
) -> ImportProductsUseCase:
    """상품 일괄 가져오기 유즈케이스"""
    return ImportProductsUseCase(
        repository=repository,
        supplier_port_factory=supplier_port_factory,
        rate_limiter=rate_limiter,
        clock=clock,
        policy=policy
    )
