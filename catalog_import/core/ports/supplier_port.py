"""공급사 연동 포트 (인터페이스)"""
from abc import ABC, abstractmethod
from typing import Optional
from dataclasses import dataclass

from catalog_import.core.entities.supplier_product import SupplierProduct


@dataclass
class SupplierCredentials:
    """공급사 인증 정보"""
    supplier_id: str
    api_key: str
    api_endpoint: str
    account_email: Optional[str] = None


@dataclass
class FetchResult:
    """상품 조회 결과"""
    success: bool
    product: Optional[SupplierProduct] = None
    error: Optional[str] = None

    @classmethod
    def found(cls, product: SupplierProduct) -> "FetchResult":
        return cls(success=True, product=product)

    @classmethod
    def not_found(cls, error: str) -> "FetchResult":
        return cls(success=False, error=error)


class SupplierProductPort(ABC):
    """공급사 상품 조회 인터페이스

    구현체는 공급사 호출 제한 응답을 받으면 ``SupplierRateLimitError``를 발생시키고
    공유 RateLimitGovernor에 대기 시간을 기록해야 한다.
    """

    @abstractmethod
    async def fetch_product(self, product_id: str) -> FetchResult:
        """표준 상품 ID로 상품 전체 정보 조회 (이미지, 옵션, 가격)"""
        pass

    async def aclose(self) -> None:
        """연결 정리"""
        return None
