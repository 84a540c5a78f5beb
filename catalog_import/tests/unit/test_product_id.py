"""상품 ID 정규화 단위 테스트"""
import pytest

from catalog_import.core.entities.product_id import normalize_product_id, numeric_product_id


class TestNormalizeProductId:
    """표준 ID 변환 테스트"""

    @pytest.mark.parametrize("raw_id", [
        "123456",
        "pid:123456",
        "pid:123456:null",
        "pid:pid:123456:null",
        "CJ-123456-US",
    ])
    def test_variants_collapse_to_canonical(self, raw_id):
        """표기가 달라도 같은 표준 ID로 변환"""
        assert normalize_product_id(raw_id) == "pid:123456:null"

    def test_first_digit_run_wins(self):
        """숫자 묶음이 여러 개면 첫 번째 사용"""
        assert normalize_product_id("A12-B34") == "pid:12:null"

    @pytest.mark.parametrize("raw_id", ["abc", "pid:abc:null", "pid:pid:xyz"])
    def test_unmatched_input_returned_unchanged(self, raw_id):
        """숫자가 없으면 입력 그대로"""
        assert normalize_product_id(raw_id) == raw_id

    @pytest.mark.parametrize("raw_id", ["987", "pid:987", "pid:pid:987:null", "no-digits"])
    def test_normalization_is_idempotent(self, raw_id):
        """두 번 적용해도 결과가 같다"""
        once = normalize_product_id(raw_id)
        assert normalize_product_id(once) == once


class TestNumericProductId:
    """API 파라미터용 숫자 추출 테스트"""

    def test_extracts_digits(self):
        assert numeric_product_id("pid:123456:null") == "123456"

    def test_returns_input_without_digits(self):
        assert numeric_product_id("unknown") == "unknown"
