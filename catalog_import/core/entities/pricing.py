"""가격 정책 도메인 엔티티"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Any, Optional
import math

DEFAULT_MARKUP = 0.3
MAX_MARKUP = 5.0
COMPARE_AT_EXTRA_MARKUP = 0.5

_CENT = Decimal("0.01")


def resolve_markup(value: Any, default: float = DEFAULT_MARKUP, maximum: float = MAX_MARKUP) -> float:
    """마크업 검증 (범위 밖이거나 숫자가 아니면 기본값)"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if math.isnan(value) or value < 0 or value > maximum:
        return default
    return float(value)


def ceil_to_cent(amount: Decimal) -> float:
    """센트 단위 올림 (마크업 목표보다 싸게 팔지 않는다)"""
    return float(amount.quantize(_CENT, rounding=ROUND_CEILING))


def _to_decimal(value: float) -> Decimal:
    # repr 기준 변환이라 10.001 같은 입력이 이진 오차 없이 들어온다
    return Decimal(str(value))


@dataclass(frozen=True)
class PriceQuote:
    """원가 하나에 대한 계산 결과"""
    cost_price: float
    price: float
    compare_at_price: float


@dataclass(frozen=True)
class PricePolicy:
    """마크업 기반 가격 정책"""
    markup: float = DEFAULT_MARKUP
    compare_at_extra: float = COMPARE_AT_EXTRA_MARKUP

    @classmethod
    def from_raw(
        cls,
        raw_markup: Any,
        default: float = DEFAULT_MARKUP,
        maximum: float = MAX_MARKUP,
        compare_at_extra: float = COMPARE_AT_EXTRA_MARKUP
    ) -> "PricePolicy":
        """요청 값으로 정책 생성"""
        return cls(
            markup=resolve_markup(raw_markup, default=default, maximum=maximum),
            compare_at_extra=compare_at_extra
        )

    def sell_price(self, cost_price: float) -> float:
        """판매가 = ceil(원가 * (1 + 마크업))"""
        multiplier = Decimal(1) + _to_decimal(self.markup)
        return ceil_to_cent(_to_decimal(cost_price) * multiplier)

    def compare_at_price(self, cost_price: float) -> float:
        """비교가 = ceil(원가 * (1 + 마크업 + 추가분))"""
        multiplier = Decimal(1) + _to_decimal(self.markup) + _to_decimal(self.compare_at_extra)
        return ceil_to_cent(_to_decimal(cost_price) * multiplier)

    def quote(self, cost_price: float) -> PriceQuote:
        """판매가/비교가 계산"""
        return PriceQuote(
            cost_price=cost_price,
            price=self.sell_price(cost_price),
            compare_at_price=self.compare_at_price(cost_price)
        )

    def quote_variant(self, variant_cost: Optional[float], product_cost: float) -> PriceQuote:
        """옵션 가격 계산 (옵션 원가가 없으면 상품 원가 사용)"""
        if variant_cost is None:
            return self.quote(product_cost)
        return self.quote(variant_cost)
