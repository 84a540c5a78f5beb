"""공급사 상품 도메인 엔티티"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional


@dataclass
class SupplierVariant:
    """공급사 상품 옵션 (색상, 사이즈 등)"""
    variant_id: Optional[str]
    name: Optional[str]
    sku: Optional[str] = None
    cost_price: Optional[float] = None
    image: Optional[str] = None
    property_name: Optional[str] = None
    properties: List[Dict[str, Any]] = field(default_factory=list)

    def is_importable(self) -> bool:
        """ID와 이름이 모두 있는 옵션만 가져온다"""
        return bool(self.variant_id) and bool(self.name)


@dataclass
class SupplierProduct:
    """공급사에서 받은 상품 전체 정보"""
    product_id: str
    name: str
    cost_price: float = 0.0
    description: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    weight: Optional[float] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    primary_image: Optional[str] = None
    images: List[str] = field(default_factory=list)
    variants: List[SupplierVariant] = field(default_factory=list)

    def dimensions(self) -> str:
        """``LxWxH`` 형식 치수"""
        return f"{_format_measure(self.length)}x{_format_measure(self.width)}x{_format_measure(self.height)}"

    def secondary_images(self) -> List[str]:
        """대표 이미지를 제외한 추가 이미지 (중복 제거, 순서 유지)"""
        seen = set()
        if self.primary_image:
            seen.add(self.primary_image)

        result = []
        for url in self.images:
            if not url or url in seen:
                continue
            seen.add(url)
            result.append(url)
        return result

    def importable_variants(self) -> List[SupplierVariant]:
        """가져올 수 있는 옵션 목록"""
        return [variant for variant in self.variants if variant.is_importable()]


def _format_measure(value: Optional[float]) -> str:
    if not value:
        return "0"
    if float(value).is_integer():
        return str(int(value))
    return str(value)
