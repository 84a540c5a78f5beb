"""공급사 상품 ID 정규화

CJ Dropshipping 상품 ID는 호출하는 곳마다 표기가 다르다
("123456", "pid:123456", "pid:pid:123456:null", "pid:123456:null" ...).
카탈로그 중복 검사와 API 호출에는 항상 ``pid:<숫자>:null`` 하나의 형태만 사용한다.
"""
import re

CANONICAL_TEMPLATE = "pid:{}:null"

_DIGIT_RUN = re.compile(r"(\d+)")
_NUMERIC = re.compile(r"^\d+$")


def canonical_product_id(numeric_part: str) -> str:
    """숫자 부분으로 표준 ID 생성"""
    return CANONICAL_TEMPLATE.format(numeric_part)


def normalize_product_id(raw_id: str) -> str:
    """임의 형식의 상품 ID를 ``pid:<숫자>:null``로 변환

    첫 번째로 일치하는 규칙을 적용한다. 어떤 규칙에도 맞지 않으면 입력을 그대로 돌려준다.
    이미 표준 형태인 ID는 변하지 않는다.
    """
    match = _DIGIT_RUN.search(raw_id)
    if match:
        return canonical_product_id(match.group(1))

    parts = raw_id.split(":")

    # pid:pid:NUMBER:null
    if raw_id.startswith("pid:pid:"):
        if len(parts) >= 3 and _NUMERIC.match(parts[2]):
            return canonical_product_id(parts[2])
    elif "pid:" in raw_id:
        if len(parts) >= 2 and _NUMERIC.match(parts[1]):
            return canonical_product_id(parts[1])
    elif _NUMERIC.match(raw_id):
        return canonical_product_id(raw_id)

    return raw_id


def numeric_product_id(product_id: str) -> str:
    """API 쿼리 파라미터용 숫자 부분 추출"""
    match = _DIGIT_RUN.search(product_id)
    return match.group(1) if match else product_id
