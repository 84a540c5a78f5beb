"""상품 일괄 가져오기 유즈케이스 통합 테스트"""
import asyncio
import random
import time

from sqlalchemy import select, func
import pytest

from catalog_import.adapters.auth.rate_limit_governor import RateLimitGovernor
from catalog_import.adapters.persistence.clock_adapter import ClockAdapter
from catalog_import.adapters.persistence.models import (
    Product as ProductModel,
    ProductImage as ProductImageModel,
    ProductVariant as ProductVariantModel,
    AdminLog as AdminLogModel
)
from catalog_import.core.entities.import_result import STAGE_FETCH, STAGE_DUPLICATE, STAGE_WRITE
from catalog_import.core.entities.supplier_product import SupplierVariant
from catalog_import.core.exceptions import (
    ValidationError, NotFoundError, RateLimitError, SupplierRateLimitError
)
from catalog_import.core.usecases.import_products import (
    ImportProductsCommand, ImportProductCommand, ImportProductsUseCase, ImportPolicy,
    CANCELLED_MESSAGE, RATE_LIMITED_MESSAGE
)
from catalog_import.tests.fakes import (
    FakeSupplierPort, FailingVariantRepository, make_product, SUPPLIER_ID, CATEGORY_ID
)


@pytest.fixture
def supplier_port():
    return FakeSupplierPort({
        "pid:123456:null": make_product("123456"),
        "pid:1:null": make_product("1", name="Desk Lamp", cost=20.0),
        "pid:2:null": make_product("2", name="Phone Case", cost=5.0),
        "pid:3:null": make_product("3", name="Cable", cost=2.0),
        "pid:789012:null": make_product("789012", name="Travel Mug", cost=7.5),
    })


@pytest.fixture
def usecase(repository, supplier_port, governor, fake_clock):
    return ImportProductsUseCase(
        repository=repository,
        supplier_port_factory=lambda supplier: supplier_port,
        rate_limiter=governor,
        clock=fake_clock,
        policy=ImportPolicy(fetch_timeout_seconds=5.0),
        rng=random.Random(0)
    )


def command(product_ids, markup=None, **overrides) -> ImportProductsCommand:
    values = dict(supplier_id=SUPPLIER_ID, category_id=CATEGORY_ID, product_ids=product_ids, markup=markup)
    values.update(overrides)
    return ImportProductsCommand(**values)


async def count_rows(session_factory, model) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


class TestImportProductsFlow:
    """배치 처리 흐름 테스트"""

    @pytest.mark.asyncio
    async def test_mixed_batch_imports_dedups_and_reports_missing(
        self, usecase, supplier_port, session_factory, fake_clock
    ):
        """생성, 중복, 미존재가 섞인 배치"""
        summary = await usecase.execute(command(["123456", "pid:pid:123456:null", "999"]))

        first, duplicate, missing = summary.results
        assert first.success
        assert first.product_name == "Wireless Earbuds"
        assert duplicate.success is False
        assert duplicate.error == "Product already exists in the database"
        assert duplicate.existing_product_id == first.created_product_id
        assert missing.error == "Product not found in CJ Dropshipping"
        assert summary.message == "Imported 1 products successfully, 2 failed"

        assert supplier_port.fetched == ["pid:123456:null", "pid:123456:null", "pid:999:null"]
        assert supplier_port.closed
        assert fake_clock.sleeps == pytest.approx([1.1, 1.1])

        async with session_factory() as session:
            product = await session.get(ProductModel, first.created_product_id)
            images = (await session.execute(
                select(ProductImageModel).where(ProductImageModel.product_id == product.id)
                .order_by(ProductImageModel.position)
            )).scalars().all()
            variants = (await session.execute(
                select(ProductVariantModel).where(ProductVariantModel.product_id == product.id)
                .order_by(ProductVariantModel.name)
            )).scalars().all()

        assert product.supplier_product_id == "pid:123456:null"
        assert product.price == 13.0
        assert product.compare_at_price == 18.0
        assert product.cost_price == 10.0
        assert product.inventory == 999
        assert product.sku == "CJ-123456"
        assert product.dimensions == "10x5x3.5"
        assert product.is_published is False
        assert product.slug.startswith("wireless-earbuds-")

        assert [(image.url, image.position) for image in images] == [
            ("https://img.example.com/123456/main.jpg", 1),
            ("https://img.example.com/123456/side.jpg", 2),
            ("https://img.example.com/123456/back.jpg", 3),
        ]
        assert [variant.sku for variant in variants] == ["CJ-123456-v123456-1", "CJ-123456-v123456-2"]
        assert all(variant.inventory == 999 for variant in variants)
        assert all(variant.type == "Color" for variant in variants)
        # 원가 없는 옵션은 상품 원가 기준
        assert [variant.price for variant in variants] == [13.0, 13.0]
        assert variants[1].image == "https://img.example.com/123456/main.jpg"

        assert await count_rows(session_factory, AdminLogModel) == 1

    @pytest.mark.asyncio
    async def test_markup_applies_to_product_and_variants(self, usecase, session_factory):
        summary = await usecase.execute(command(["1"], markup=1.0))

        async with session_factory() as session:
            product = await session.get(ProductModel, summary.results[0].created_product_id)

        assert product.price == 40.0
        assert product.compare_at_price == 50.0
        assert product.profit_margin == 1.0

    @pytest.mark.asyncio
    async def test_invalid_markup_uses_default(self, usecase, session_factory):
        summary = await usecase.execute(command(["1"], markup="abc"))

        async with session_factory() as session:
            product = await session.get(ProductModel, summary.results[0].created_product_id)

        assert product.price == 26.0

    @pytest.mark.asyncio
    async def test_variants_without_id_or_name_are_skipped(self, usecase, supplier_port):
        supplier_port.products["pid:7:null"] = make_product("7", variants=[
            SupplierVariant(variant_id="v7", name="Large"),
            SupplierVariant(variant_id=None, name="Medium"),
            SupplierVariant(variant_id="v9", name=None),
        ])

        summary = await usecase.execute(command(["7"]))

        assert summary.results[0].success
        assert summary.results[0].skipped_variants == 2
        assert summary.results[0].to_dict()["skippedVariants"] == 2

    @pytest.mark.asyncio
    async def test_active_cooldown_rejects_batch_before_any_fetch(self, usecase, supplier_port, governor):
        governor.record_rate_limited(SUPPLIER_ID, 42)

        with pytest.raises(RateLimitError) as exc_info:
            await usecase.execute(command(["1", "2"]))

        assert not isinstance(exc_info.value, SupplierRateLimitError)
        assert exc_info.value.wait_seconds == 42
        assert "42 seconds" in exc_info.value.message
        assert supplier_port.fetched == []

    @pytest.mark.asyncio
    async def test_supplier_rate_limit_mid_batch_stops_processing(self, usecase, supplier_port, session_factory):
        """처리 중 호출 제한이 오면 나머지는 시도하지 않는다"""
        supplier_port.errors["pid:2:null"] = SupplierRateLimitError(60, "CJ Dropshipping rate limit reached")

        with pytest.raises(SupplierRateLimitError) as exc_info:
            await usecase.execute(command(["1", "2", "3"]))

        results = exc_info.value.details["results"]
        assert [result["requestedId"] for result in results] == ["1", "2", "3"]
        assert results[0]["success"] is True
        assert results[1] == {
            "requestedId": "2", "success": False, "error": "CJ Dropshipping rate limit reached"
        }
        assert results[2]["error"] == RATE_LIMITED_MESSAGE
        assert exc_info.value.wait_seconds == 60
        assert supplier_port.fetched == ["pid:1:null", "pid:2:null"]
        assert supplier_port.closed
        assert await count_rows(session_factory, ProductModel) == 1

    @pytest.mark.asyncio
    async def test_item_errors_do_not_stop_batch(self, usecase, supplier_port):
        supplier_port.errors["pid:1:null"] = RuntimeError("unexpected payload")

        summary = await usecase.execute(command(["1", "2"]))

        assert summary.results[0].error == "unexpected payload"
        assert summary.results[1].success

    @pytest.mark.asyncio
    async def test_slow_fetch_times_out_per_item(self, repository, supplier_port, governor, fake_clock):
        supplier_port.delays["pid:1:null"] = 1.0
        usecase = ImportProductsUseCase(
            repository=repository,
            supplier_port_factory=lambda supplier: supplier_port,
            rate_limiter=governor,
            clock=fake_clock,
            policy=ImportPolicy(fetch_timeout_seconds=0.05)
        )

        summary = await usecase.execute(command(["1", "2"]))

        assert summary.results[0].success is False
        assert summary.results[0].error.startswith("Timed out fetching product")
        assert summary.results[1].success

    @pytest.mark.asyncio
    async def test_cancelled_batch_marks_remaining_items(self, usecase, supplier_port):
        cancel_event = asyncio.Event()
        original_fetch = supplier_port.fetch_product

        async def fetch_then_cancel(product_id):
            cancel_event.set()
            return await original_fetch(product_id)

        supplier_port.fetch_product = fetch_then_cancel

        summary = await usecase.execute(command(["1", "2", "3"]), cancel_event=cancel_event)

        assert summary.results[0].success
        assert [result.error for result in summary.results[1:]] == [CANCELLED_MESSAGE, CANCELLED_MESSAGE]
        assert supplier_port.fetched == ["pid:1:null"]
        assert summary.message == "Imported 1 products successfully, 2 failed"

    @pytest.mark.asyncio
    async def test_blank_and_non_string_ids_are_dropped(self, usecase, supplier_port):
        summary = await usecase.execute(command(["", "  ", 42, " 1 "]))

        assert [result.requested_id for result in summary.results] == [" 1 "]
        assert supplier_port.fetched == ["pid:1:null"]

    @pytest.mark.asyncio
    async def test_blank_entry_is_dropped_and_double_prefix_is_normalized(self, usecase, supplier_port):
        summary = await usecase.execute(command(["123456", "pid:pid:789012:null", "  "]))

        assert summary.message == "Imported 2 products successfully, 0 failed"
        assert [result.requested_id for result in summary.results] == ["123456", "pid:pid:789012:null"]
        assert supplier_port.fetched == ["pid:123456:null", "pid:789012:null"]

    @pytest.mark.asyncio
    async def test_middle_item_fetch_error_is_isolated(self, usecase, supplier_port, session_factory):
        """가운데 항목 조회가 예외를 던져도 앞뒤 항목은 저장된다"""
        supplier_port.errors["pid:2:null"] = ConnectionError("connection reset by peer")

        summary = await usecase.execute(command(["1", "2", "3"]))

        assert [result.success for result in summary.results] == [True, False, True]
        assert summary.results[1].error == "connection reset by peer"
        assert summary.results[1].stage == STAGE_FETCH
        assert supplier_port.fetched == ["pid:1:null", "pid:2:null", "pid:3:null"]
        assert summary.message == "Imported 2 products successfully, 1 failed"
        assert await count_rows(session_factory, ProductModel) == 2

    @pytest.mark.asyncio
    async def test_local_rate_limit_error_is_item_failure(self, usecase, supplier_port):
        """공급사 응답이 아닌 호출 제한 예외는 해당 항목만 실패 처리"""
        supplier_port.errors["pid:2:null"] = RateLimitError(30, "Local limiter asked to wait 30 seconds")

        summary = await usecase.execute(command(["1", "2", "3"]))

        assert [result.success for result in summary.results] == [True, False, True]
        assert summary.results[1].error == "Local limiter asked to wait 30 seconds"
        assert supplier_port.fetched == ["pid:1:null", "pid:2:null", "pid:3:null"]

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_partial_rows(self, session_factory, supplier_port, governor, fake_clock):
        """옵션 저장 실패시 항목 실패로 기록하고 상품/이미지/옵션 행을 남기지 않는다"""
        usecase = ImportProductsUseCase(
            repository=FailingVariantRepository(session_factory),
            supplier_port_factory=lambda supplier: supplier_port,
            rate_limiter=governor,
            clock=fake_clock,
            rng=random.Random(0)
        )

        summary = await usecase.execute(command(["1", "2"]))

        assert [result.error for result in summary.results] == ["variant insert failed", "variant insert failed"]
        assert all(result.stage == STAGE_WRITE for result in summary.results)
        assert summary.message == "Imported 0 products successfully, 2 failed"
        assert await count_rows(session_factory, ProductModel) == 0
        assert await count_rows(session_factory, ProductImageModel) == 0
        assert await count_rows(session_factory, ProductVariantModel) == 0
        assert await count_rows(session_factory, AdminLogModel) == 0

    @pytest.mark.asyncio
    async def test_concurrent_batches_share_request_spacing(self, repository):
        """같은 공급사에 동시에 들어온 배치도 공급사 호출 간격을 지킨다"""
        spacing = 0.1
        clock = ClockAdapter()
        shared_governor = RateLimitGovernor(clock, request_spacing_seconds=spacing)
        fetch_times = []

        class TimedSupplierPort(FakeSupplierPort):
            async def fetch_product(self, product_id):
                fetch_times.append(time.monotonic())
                return await super().fetch_product(product_id)

        def build_usecase():
            return ImportProductsUseCase(
                repository=repository,
                supplier_port_factory=lambda supplier: TimedSupplierPort({}),
                rate_limiter=shared_governor,
                clock=clock,
                policy=ImportPolicy(fetch_timeout_seconds=5.0)
            )

        first, second = await asyncio.gather(
            build_usecase().execute(command(["11", "12"])),
            build_usecase().execute(command(["21", "22"]))
        )

        assert first.total_count == 2 and second.total_count == 2
        assert len(fetch_times) == 4
        ordered = sorted(fetch_times)
        gaps = [later - earlier for earlier, later in zip(ordered, ordered[1:])]
        assert min(gaps) >= spacing * 0.7


class TestImportProductsValidation:
    """배치 거부 조건 테스트"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides, message", [
        ({"supplier_id": None}, "Supplier ID is required"),
        ({"category_id": ""}, "Category ID is required"),
        ({"product_ids": []}, "Product IDs are required"),
        ({"product_ids": "123"}, "Product IDs are required"),
    ])
    async def test_missing_fields(self, usecase, overrides, message):
        values = {"product_ids": ["1"]}
        values.update(overrides)

        with pytest.raises(ValidationError) as exc_info:
            await usecase.execute(command(**values))

        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_only_invalid_ids(self, usecase, supplier_port):
        with pytest.raises(ValidationError) as exc_info:
            await usecase.execute(command(["", "   ", None]))

        assert exc_info.value.message == "No valid product IDs provided"
        assert exc_info.value.details["details"] == "The list of product IDs contained only invalid entries"
        assert supplier_port.fetched == []

    @pytest.mark.asyncio
    async def test_unknown_supplier(self, usecase):
        with pytest.raises(NotFoundError) as exc_info:
            await usecase.execute(command(["1"], supplier_id="missing"))

        assert exc_info.value.message == "Supplier not found"

    @pytest.mark.asyncio
    async def test_supplier_without_api(self, usecase):
        with pytest.raises(ValidationError) as exc_info:
            await usecase.execute(command(["1"], supplier_id="sup-unconfigured"))

        assert exc_info.value.message == "Supplier API not configured"

    @pytest.mark.asyncio
    async def test_unknown_category(self, usecase):
        with pytest.raises(NotFoundError) as exc_info:
            await usecase.execute(command(["1"], category_id="missing"))

        assert exc_info.value.message == "Category not found"


def single(product_id, markup=None, **overrides) -> ImportProductCommand:
    values = dict(supplier_id=SUPPLIER_ID, category_id=CATEGORY_ID, product_id=product_id, markup=markup)
    values.update(overrides)
    return ImportProductCommand(**values)


class TestImportSingleProduct:
    """단건 가져오기 테스트"""

    @pytest.mark.asyncio
    async def test_imports_product_and_returns_slug(self, usecase, supplier_port, session_factory):
        result = await usecase.import_product(single("pid:pid:789012:null", markup=1.0))

        assert result.success
        assert result.product_name == "Travel Mug"
        assert result.slug.startswith("travel-mug-")
        assert supplier_port.fetched == ["pid:789012:null"]
        assert supplier_port.closed

        async with session_factory() as session:
            product = await session.get(ProductModel, result.created_product_id)

        assert product.supplier_product_id == "pid:789012:null"
        assert product.price == 15.0
        assert await count_rows(session_factory, AdminLogModel) == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_is_reported_with_stage(self, usecase):
        result = await usecase.import_product(single("555"))

        assert result.success is False
        assert result.error == "Product not found in CJ Dropshipping"
        assert result.stage == STAGE_FETCH

    @pytest.mark.asyncio
    async def test_duplicate_is_reported_with_existing_id(self, usecase):
        first = await usecase.import_product(single("1"))
        second = await usecase.import_product(single("pid:1:null"))

        assert second.success is False
        assert second.stage == STAGE_DUPLICATE
        assert second.existing_product_id == first.created_product_id

    @pytest.mark.asyncio
    async def test_consecutive_imports_wait_for_request_slot(self, usecase, fake_clock):
        await usecase.import_product(single("1"))
        await usecase.import_product(single("2"))

        assert fake_clock.sleeps == pytest.approx([1.1])

    @pytest.mark.asyncio
    async def test_active_cooldown_rejects_before_fetch(self, usecase, supplier_port, governor):
        governor.record_rate_limited(SUPPLIER_ID, 15)

        with pytest.raises(RateLimitError) as exc_info:
            await usecase.import_product(single("1"))

        assert exc_info.value.wait_seconds == 15
        assert supplier_port.fetched == []

    @pytest.mark.asyncio
    async def test_supplier_rate_limit_propagates(self, usecase, supplier_port):
        supplier_port.errors["pid:1:null"] = SupplierRateLimitError(60, "CJ Dropshipping rate limit reached")

        with pytest.raises(SupplierRateLimitError):
            await usecase.import_product(single("1"))

        assert supplier_port.closed

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides, message", [
        ({"supplier_id": None, "product_id": None}, "Supplier ID is required"),
        ({"product_id": None, "category_id": None}, "Product ID is required"),
        ({"product_id": 123456}, "Product ID is required"),
        ({"product_id": "   "}, "Product ID is required"),
        ({"category_id": ""}, "Category ID is required"),
    ])
    async def test_missing_fields_in_order(self, usecase, overrides, message):
        values = {"product_id": "1"}
        values.update(overrides)

        with pytest.raises(ValidationError) as exc_info:
            await usecase.import_product(single(**values))

        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_unknown_category(self, usecase, supplier_port):
        with pytest.raises(NotFoundError) as exc_info:
            await usecase.import_product(single("1", category_id="missing"))

        assert exc_info.value.message == "Category not found"
        assert supplier_port.fetched == []
