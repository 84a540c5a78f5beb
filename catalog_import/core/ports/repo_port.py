"""카탈로그 저장소 포트 (인터페이스)"""
from abc import ABC, abstractmethod
from typing import Optional

from catalog_import.core.entities.catalog import (
    Supplier, Category, ProductDraft, CreatedProduct, AuditEntry
)


class CatalogRepositoryPort(ABC):
    """카탈로그 저장소 인터페이스"""

    @abstractmethod
    async def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        """공급사 조회"""
        pass

    @abstractmethod
    async def get_category(self, category_id: str) -> Optional[Category]:
        """카테고리 조회"""
        pass

    @abstractmethod
    async def find_product_id_by_supplier_product_id(
        self,
        supplier_id: str,
        supplier_product_id: str
    ) -> Optional[str]:
        """공급사 상품 ID로 기존 상품 ID 조회 (중복 검사)"""
        pass

    @abstractmethod
    async def create_full_product(self, draft: ProductDraft) -> CreatedProduct:
        """상품 + 이미지 + 옵션을 하나의 트랜잭션으로 생성"""
        pass

    @abstractmethod
    async def append_audit_log(self, entry: AuditEntry) -> None:
        """관리자 작업 로그 기록"""
        pass
