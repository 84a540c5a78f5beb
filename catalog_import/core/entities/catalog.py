"""카탈로그 도메인 엔티티"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from datetime import datetime
import random
import re
import string

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class Supplier:
    """공급사 (읽기 전용)"""
    id: str
    name: str
    api_key: Optional[str] = None
    api_endpoint: Optional[str] = None
    is_active: bool = True

    def has_api_credentials(self) -> bool:
        """API 키와 엔드포인트가 설정되었는지 확인"""
        return bool(self.api_key) and bool(self.api_endpoint)


@dataclass
class Category:
    """카테고리"""
    id: str
    name: str


@dataclass
class ImageDraft:
    """저장할 상품 이미지"""
    url: str
    position: int
    alt: str


@dataclass
class VariantDraft:
    """저장할 상품 옵션"""
    name: str
    sku: str
    price: float
    cost_price: float
    compare_at_price: float
    inventory: int
    type: str
    options: Optional[List[Dict[str, Any]]] = None
    image: Optional[str] = None


@dataclass
class ProductDraft:
    """한 트랜잭션으로 저장할 상품 + 이미지 + 옵션"""
    name: str
    slug: str
    price: float
    cost_price: float
    compare_at_price: float
    sku: str
    inventory: int
    category_id: str
    supplier_id: str
    supplier_product_id: str
    profit_margin: float
    description: str = ""
    barcode: str = ""
    weight: float = 0.0
    dimensions: Optional[str] = None
    is_published: bool = False
    images: List[ImageDraft] = field(default_factory=list)
    variants: List[VariantDraft] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class CreatedProduct:
    """저장 완료된 상품 요약"""
    id: str
    name: str
    slug: str
    image_count: int = 0
    variant_count: int = 0


@dataclass
class AuditEntry:
    """관리자 작업 로그"""
    action: str
    details: str
    user_id: Optional[str] = None


def slugify(name: str) -> str:
    """소문자 변환 후 영숫자 외 문자를 하이픈으로 치환"""
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def generate_slug(name: str, rng: Optional[random.Random] = None) -> str:
    """이름 기반 slug + 6자리 랜덤 접미사"""
    rng = rng or random
    suffix = "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(6))
    base = slugify(name)
    if not base:
        return suffix
    return f"{base}-{suffix}"
