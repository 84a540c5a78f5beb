"""공용 테스트 픽스처"""
import pytest
import pytest_asyncio

from catalog_import.adapters.auth.rate_limit_governor import RateLimitGovernor
from catalog_import.adapters.persistence.models import (
    build_engine, build_session_factory, create_tables,
    Supplier as SupplierModel, Category as CategoryModel
)
from catalog_import.adapters.persistence.repositories import CatalogRepository
from catalog_import.tests.fakes import FakeClock, SUPPLIER_ID, CATEGORY_ID


@pytest.fixture
def fake_clock() -> FakeClock:
    """가짜 시계"""
    return FakeClock()


@pytest.fixture
def governor(fake_clock) -> RateLimitGovernor:
    """가짜 시계 기반 호출 제한 관리자"""
    return RateLimitGovernor(fake_clock, auth_cooldown_seconds=300)


@pytest_asyncio.fixture
async def session_factory():
    """인메모리 SQLite 세션 팩토리 (공급사/카테고리 미리 등록)"""
    engine = build_engine("sqlite+aiosqlite:///:memory:", echo=False)
    await create_tables(engine)
    factory = build_session_factory(engine)

    async with factory() as session:
        async with session.begin():
            session.add(SupplierModel(
                id=SUPPLIER_ID,
                name="CJ Dropshipping",
                api_key="secret-key",
                api_endpoint="https://developers.cjdropshipping.com/api2.0/"
            ))
            session.add(SupplierModel(id="sup-unconfigured", name="No API Supplier"))
            session.add(CategoryModel(id=CATEGORY_ID, name="Gadgets"))

    yield factory

    await engine.dispose()


@pytest.fixture
def repository(session_factory) -> CatalogRepository:
    """SQLAlchemy 카탈로그 리포지토리"""
    return CatalogRepository(session_factory)
