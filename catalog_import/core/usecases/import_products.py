"""공급사 상품 가져오기 유즈케이스

입력 ID마다 순서대로 정규화 → 요청 슬롯 대기 → 공급사 조회 → 중복 검사 → 트랜잭션 저장을 수행한다.
항목 하나의 실패는 결과로 기록하고 다음 항목으로 넘어간다. 공급사 호출 제한만은 배치를 중단시킨다.
"""
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple
import asyncio
import random

from catalog_import.core.entities.catalog import (
    Supplier, Category, ProductDraft, ImageDraft, VariantDraft, AuditEntry, generate_slug
)
from catalog_import.core.entities.import_result import (
    ImportResult, BatchImportSummary, STAGE_FETCH, STAGE_DUPLICATE, STAGE_WRITE
)
from catalog_import.core.entities.pricing import PricePolicy
from catalog_import.core.entities.product_id import normalize_product_id, numeric_product_id
from catalog_import.core.entities.supplier_product import SupplierProduct
from catalog_import.core.exceptions import (
    ValidationError, NotFoundError, RateLimitError, SupplierRateLimitError
)
from catalog_import.core.ports.clock_port import ClockPort
from catalog_import.core.ports.rate_limit_port import RateLimitPort
from catalog_import.core.ports.repo_port import CatalogRepositoryPort
from catalog_import.core.ports.supplier_port import SupplierProductPort
from catalog_import.shared.logging import get_logger, log_import_item

logger = get_logger(__name__)

SupplierPortFactory = Callable[[Supplier], SupplierProductPort]

CANCELLED_MESSAGE = "Import cancelled before processing"
RATE_LIMITED_MESSAGE = "Not processed: supplier rate limit reached"


@dataclass
class ImportProductsCommand:
    """일괄 가져오기 요청"""
    supplier_id: Optional[str]
    category_id: Optional[str]
    product_ids: Any
    markup: Any = None
    user_id: Optional[str] = None


@dataclass
class ImportProductCommand:
    """단건 가져오기 요청"""
    supplier_id: Optional[str]
    category_id: Optional[str]
    product_id: Any
    markup: Any = None
    user_id: Optional[str] = None


@dataclass
class ImportPolicy:
    """배치 처리 정책 (요청 간격은 공급사별로 RateLimitPort가 관리)"""
    fetch_timeout_seconds: float = 30.0
    default_markup: float = 0.3
    max_markup: float = 5.0
    compare_at_extra_markup: float = 0.5
    dropship_inventory: int = 999


@dataclass
class _ImportTarget:
    supplier: Supplier
    category: Category
    price_policy: PricePolicy


class ImportProductsUseCase:
    """공급사 상품 가져오기 (일괄/단건)"""

    def __init__(
        self,
        repository: CatalogRepositoryPort,
        supplier_port_factory: SupplierPortFactory,
        rate_limiter: RateLimitPort,
        clock: ClockPort,
        policy: Optional[ImportPolicy] = None,
        rng: Optional[random.Random] = None
    ):
        self.repository = repository
        self.supplier_port_factory = supplier_port_factory
        self.rate_limiter = rate_limiter
        self.clock = clock
        self.policy = policy or ImportPolicy()
        self.rng = rng

    async def execute(
        self,
        command: ImportProductsCommand,
        cancel_event: Optional[asyncio.Event] = None
    ) -> BatchImportSummary:
        """일괄 가져오기 실행

        Raises:
            ValidationError: 필수 값 누락, 공급사/카테고리 없음, 유효한 ID 없음
            RateLimitError: 배치 시작 전 공급사 쿨다운이 남아 있음
            SupplierRateLimitError: 처리 중 공급사가 호출 제한을 알려옴
        """
        if not command.supplier_id:
            raise ValidationError("Supplier ID is required", field="supplierId")
        if not command.category_id:
            raise ValidationError("Category ID is required", field="categoryId")
        if not isinstance(command.product_ids, list) or not command.product_ids:
            raise ValidationError("Product IDs are required", field="productIds")

        target = await self._prepare(command.supplier_id, command.category_id, command.markup)

        product_ids = [pid for pid in command.product_ids if isinstance(pid, str) and pid.strip()]
        if not product_ids:
            raise ValidationError(
                "No valid product IDs provided",
                field="productIds",
                details={"details": "The list of product IDs contained only invalid entries"}
            )

        supplier = target.supplier
        logger.info(f"상품 일괄 가져오기 시작: {supplier.id} - {len(product_ids)}개 (마크업 {target.price_policy.markup})")

        supplier_port = self.supplier_port_factory(supplier)
        try:
            summary = await self._run_batch(product_ids, target, supplier_port, command.user_id, cancel_event)
        finally:
            await supplier_port.aclose()

        logger.info(f"상품 일괄 가져오기 완료: {supplier.id} - {summary.message}")
        return summary

    async def import_product(self, command: ImportProductCommand) -> ImportResult:
        """단건 가져오기 실행

        일괄 가져오기와 같은 검증/쿨다운/요청 간격을 거친다. 항목 실패는 결과의 stage로 구분한다.

        Raises:
            ValidationError: 필수 값 누락, 공급사 API 미설정
            NotFoundError: 공급사/카테고리 없음
            RateLimitError: 공급사 쿨다운 중이거나 처리 중 호출 제한 발생
        """
        if not command.supplier_id:
            raise ValidationError("Supplier ID is required", field="supplierId")
        if not isinstance(command.product_id, str) or not command.product_id.strip():
            raise ValidationError("Product ID is required", field="productId")
        if not command.category_id:
            raise ValidationError("Category ID is required", field="categoryId")

        target = await self._prepare(command.supplier_id, command.category_id, command.markup)
        logger.info(f"상품 단건 가져오기 시작: {target.supplier.id} - {command.product_id}")

        supplier_port = self.supplier_port_factory(target.supplier)
        try:
            await self._wait_for_request_slot(target.supplier.id)
            result = await self._import_one(command.product_id, target, supplier_port, command.user_id)
        finally:
            await supplier_port.aclose()

        logger.info(f"상품 단건 가져오기 완료: {command.product_id} (성공: {result.success})")
        return result

    async def _prepare(self, supplier_id: str, category_id: str, markup: Any) -> _ImportTarget:
        """쿨다운 확인 후 공급사/카테고리 조회"""
        wait_seconds = self.rate_limiter.time_until_next_auth(supplier_id)
        if wait_seconds > 0:
            logger.warning(f"공급사 쿨다운 중, 요청 거부: {supplier_id} ({wait_seconds}초)")
            raise RateLimitError(
                wait_seconds,
                f"CJ Dropshipping API rate limit is active. Please wait {wait_seconds} seconds before trying again."
            )

        supplier = await self.repository.get_supplier(supplier_id)
        if not supplier:
            raise NotFoundError("Supplier not found", field="supplierId")
        if not supplier.has_api_credentials():
            raise ValidationError("Supplier API not configured", field="supplierId")

        category = await self.repository.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found", field="categoryId")

        price_policy = PricePolicy.from_raw(
            markup,
            default=self.policy.default_markup,
            maximum=self.policy.max_markup,
            compare_at_extra=self.policy.compare_at_extra_markup
        )
        return _ImportTarget(supplier=supplier, category=category, price_policy=price_policy)

    async def _run_batch(
        self,
        product_ids: List[str],
        target: _ImportTarget,
        supplier_port: SupplierProductPort,
        user_id: Optional[str],
        cancel_event: Optional[asyncio.Event]
    ) -> BatchImportSummary:
        summary = BatchImportSummary()
        supplier = target.supplier

        for index, requested_id in enumerate(product_ids):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"배치 취소: {len(product_ids) - index}개 미처리")
                for remaining_id in product_ids[index:]:
                    summary.add_failure(remaining_id, CANCELLED_MESSAGE)
                break

            await self._wait_for_request_slot(supplier.id)

            logger.info(f"상품 처리 {index + 1}/{len(product_ids)}: {requested_id}")
            try:
                result = await self._import_one(requested_id, target, supplier_port, user_id)
            except SupplierRateLimitError as e:
                logger.warning(f"처리 중 공급사 호출 제한: {supplier.id} ({e.wait_seconds}초)")
                summary.add_failure(requested_id, e.message)
                for remaining_id in product_ids[index + 1:]:
                    summary.add_failure(remaining_id, RATE_LIMITED_MESSAGE)
                raise SupplierRateLimitError(
                    e.wait_seconds,
                    e.message,
                    details={"results": [item.to_dict() for item in summary.results]}
                ) from e

            summary.add(result)

        return summary

    async def _wait_for_request_slot(self, supplier_id: str) -> None:
        """공급사별 요청 슬롯 대기 (동시에 도는 배치끼리도 간격 유지)"""
        delay = self.rate_limiter.reserve_request_slot(supplier_id)
        if delay > 0:
            logger.debug(f"호출 간격 대기: {delay:.3f}초")
            await self.clock.sleep(delay)

    async def _import_one(
        self,
        requested_id: str,
        target: _ImportTarget,
        supplier_port: SupplierProductPort,
        user_id: Optional[str]
    ) -> ImportResult:
        """항목 하나 처리 (실패는 결과로 변환, 공급사 호출 제한만 전파)"""
        supplier = target.supplier
        canonical_id = normalize_product_id(requested_id.strip())
        stage = STAGE_FETCH

        try:
            try:
                fetch_result = await asyncio.wait_for(
                    supplier_port.fetch_product(canonical_id),
                    timeout=self.policy.fetch_timeout_seconds
                )
            except asyncio.TimeoutError:
                log_import_item(logger, "timeout", supplier.id, canonical_id)
                return ImportResult.failed(
                    requested_id,
                    f"Timed out fetching product after {self.policy.fetch_timeout_seconds} seconds",
                    stage=STAGE_FETCH
                )

            if not fetch_result.success or not fetch_result.product:
                log_import_item(logger, "not_found", supplier.id, canonical_id)
                return ImportResult.failed(
                    requested_id,
                    fetch_result.error or "Product not found in CJ Dropshipping",
                    stage=STAGE_FETCH
                )

            stage = STAGE_WRITE
            existing_id = await self.repository.find_product_id_by_supplier_product_id(
                supplier.id, canonical_id
            )
            if existing_id:
                log_import_item(logger, "duplicate", supplier.id, canonical_id, {"existing_product_id": existing_id})
                return ImportResult.failed(
                    requested_id,
                    "Product already exists in the database",
                    existing_product_id=existing_id,
                    stage=STAGE_DUPLICATE
                )

            draft, skipped_variants = self._build_draft(
                fetch_result.product, canonical_id, supplier, target.category, target.price_policy
            )
            created = await self.repository.create_full_product(draft)

        except SupplierRateLimitError:
            raise
        except Exception as e:
            logger.error(f"상품 가져오기 실패 {requested_id}: {e}", exc_info=True)
            return ImportResult.failed(requested_id, str(e) or e.__class__.__name__, stage=stage)

        log_import_item(logger, "created", supplier.id, canonical_id, {
            "product_db_id": created.id,
            "variant_count": created.variant_count,
            "skipped_variants": skipped_variants
        })
        await self._write_audit_log(created.name, user_id)

        return ImportResult.created(requested_id, created.id, created.name, skipped_variants, slug=created.slug)

    async def _write_audit_log(self, product_name: str, user_id: Optional[str]) -> None:
        """트랜잭션 밖에서 작업 로그 기록 (실패해도 상품은 유지)"""
        try:
            await self.repository.append_audit_log(AuditEntry(
                action="product_imported",
                details=f"Admin imported product '{product_name}' from CJ Dropshipping",
                user_id=user_id
            ))
        except Exception as e:
            logger.warning(f"작업 로그 기록 실패: {product_name} - {e}")

    def _build_draft(
        self,
        product: SupplierProduct,
        canonical_id: str,
        supplier: Supplier,
        category: Category,
        price_policy: PricePolicy
    ) -> Tuple[ProductDraft, int]:
        """저장할 상품 초안 생성 (건너뛴 옵션 수 함께 반환)"""
        quote = price_policy.quote(product.cost_price)
        name = product.name
        sku = product.sku or f"CJ-{numeric_product_id(canonical_id)}"

        images = []
        if product.primary_image:
            images.append(ImageDraft(url=product.primary_image, position=1, alt=name or "Product Image"))
        for offset, url in enumerate(product.secondary_images()):
            images.append(ImageDraft(url=url, position=offset + 2, alt=f"{name or 'Product'} - {offset + 1}"))

        importable = product.importable_variants()
        skipped = len(product.variants) - len(importable)

        variants = []
        for variant in importable:
            variant_quote = price_policy.quote_variant(variant.cost_price, product.cost_price)
            variants.append(VariantDraft(
                name=variant.name,
                sku=variant.sku or f"{sku}-{variant.variant_id}",
                price=variant_quote.price,
                cost_price=variant_quote.cost_price,
                compare_at_price=variant_quote.compare_at_price,
                inventory=self.policy.dropship_inventory,
                type=variant.property_name or "variant",
                options=variant.properties or None,
                image=variant.image or product.primary_image
            ))

        if skipped:
            logger.info(f"옵션 {skipped}개 건너뜀 (ID 또는 이름 없음): {canonical_id}")

        draft = ProductDraft(
            name=name,
            slug=generate_slug(name, self.rng),
            price=quote.price,
            cost_price=quote.cost_price,
            compare_at_price=quote.compare_at_price,
            sku=sku,
            inventory=self.policy.dropship_inventory,
            category_id=category.id,
            supplier_id=supplier.id,
            supplier_product_id=canonical_id,
            profit_margin=price_policy.markup,
            description=product.description or "",
            barcode=product.barcode or "",
            weight=product.weight or 0.0,
            dimensions=product.dimensions(),
            images=images,
            variants=variants,
            created_at=self.clock.now()
        )
        return draft, skipped
