"""카탈로그 리포지토리 구현체"""
from typing import Optional
import json
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_import.core.entities.catalog import (
    Supplier, Category, ProductDraft, ImageDraft, VariantDraft, CreatedProduct, AuditEntry
)
from catalog_import.core.exceptions import CatalogWriteError
from catalog_import.core.ports.repo_port import CatalogRepositoryPort
from catalog_import.adapters.persistence.models import (
    Supplier as SupplierModel,
    Category as CategoryModel,
    Product as ProductModel,
    ProductImage as ProductImageModel,
    ProductVariant as ProductVariantModel,
    AdminLog as AdminLogModel,
    new_id
)
from catalog_import.shared.logging import get_logger

logger = get_logger(__name__)


class CatalogRepository(CatalogRepositoryPort):
    """카탈로그 리포지토리 구현체 (작업마다 새 세션 사용)"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        """공급사 조회"""
        async with self.session_factory() as session:
            try:
                model = await session.get(SupplierModel, supplier_id)
            except SQLAlchemyError as e:
                logger.error(f"공급사 조회 실패: {e}")
                raise

        if not model:
            return None
        return Supplier(
            id=model.id,
            name=model.name,
            api_key=model.api_key,
            api_endpoint=model.api_endpoint,
            is_active=bool(model.is_active)
        )

    async def get_category(self, category_id: str) -> Optional[Category]:
        """카테고리 조회"""
        async with self.session_factory() as session:
            try:
                model = await session.get(CategoryModel, category_id)
            except SQLAlchemyError as e:
                logger.error(f"카테고리 조회 실패: {e}")
                raise

        if not model:
            return None
        return Category(id=model.id, name=model.name)

    async def find_product_id_by_supplier_product_id(
        self,
        supplier_id: str,
        supplier_product_id: str
    ) -> Optional[str]:
        """공급사 상품 ID로 기존 상품 ID 조회"""
        query = select(ProductModel.id).where(
            ProductModel.supplier_id == supplier_id,
            ProductModel.supplier_product_id == supplier_product_id
        ).limit(1)

        async with self.session_factory() as session:
            try:
                result = await session.execute(query)
            except SQLAlchemyError as e:
                logger.error(f"상품 중복 조회 실패: {e}")
                raise
            return result.scalars().first()

    async def create_full_product(self, draft: ProductDraft) -> CreatedProduct:
        """상품 + 이미지 + 옵션 생성 (하나라도 실패하면 전부 롤백)"""
        product_id = new_id()

        async with self.session_factory() as session:
            try:
                async with session.begin():
                    session.add(self._build_product(product_id, draft))
                    await session.flush()

                    for image in draft.images:
                        self._add_image(session, product_id, image, draft)

                    for variant in draft.variants:
                        self._add_variant(session, product_id, variant, draft)

                    await session.flush()
            except SQLAlchemyError as e:
                logger.error(f"상품 저장 실패 {draft.supplier_product_id}: {e}")
                raise CatalogWriteError(f"Failed to save product: {e.__class__.__name__}: {e}") from e

        logger.info(f"상품 저장 완료: {product_id} ({draft.supplier_product_id})")
        return CreatedProduct(
            id=product_id,
            name=draft.name,
            slug=draft.slug,
            image_count=len(draft.images),
            variant_count=len(draft.variants)
        )

    def _build_product(self, product_id: str, draft: ProductDraft) -> ProductModel:
        return ProductModel(
            id=product_id,
            name=draft.name,
            slug=draft.slug,
            description=draft.description,
            price=draft.price,
            cost_price=draft.cost_price,
            compare_at_price=draft.compare_at_price,
            profit_margin=draft.profit_margin,
            sku=draft.sku,
            barcode=draft.barcode,
            inventory=draft.inventory,
            weight=draft.weight,
            dimensions=draft.dimensions,
            is_published=draft.is_published,
            category_id=draft.category_id,
            supplier_id=draft.supplier_id,
            supplier_product_id=draft.supplier_product_id,
            created_at=draft.created_at,
            updated_at=draft.created_at
        )

    def _add_image(self, session: AsyncSession, product_id: str, image: ImageDraft, draft: ProductDraft) -> None:
        session.add(ProductImageModel(
            product_id=product_id,
            url=image.url,
            position=image.position,
            alt=image.alt,
            created_at=draft.created_at,
            updated_at=draft.created_at
        ))

    def _add_variant(self, session: AsyncSession, product_id: str, variant: VariantDraft, draft: ProductDraft) -> None:
        session.add(ProductVariantModel(
            product_id=product_id,
            name=variant.name,
            sku=variant.sku,
            price=variant.price,
            cost_price=variant.cost_price,
            compare_at_price=variant.compare_at_price,
            inventory=variant.inventory,
            type=variant.type,
            options=json.dumps(variant.options, ensure_ascii=False) if variant.options else None,
            image=variant.image,
            created_at=draft.created_at,
            updated_at=draft.created_at
        ))

    async def append_audit_log(self, entry: AuditEntry) -> None:
        """관리자 작업 로그 기록"""
        async with self.session_factory() as session:
            async with session.begin():
                session.add(AdminLogModel(
                    action=entry.action,
                    details=entry.details,
                    user_id=entry.user_id
                ))
