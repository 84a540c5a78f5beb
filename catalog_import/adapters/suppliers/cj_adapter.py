"""CJ Dropshipping 공급사 어댑터"""
import httpx
from typing import List, Dict, Any, Optional
from datetime import datetime, timedelta
import json
import re

from catalog_import.core.entities.product_id import numeric_product_id
from catalog_import.core.entities.supplier_product import SupplierProduct, SupplierVariant
from catalog_import.core.exceptions import (
    SupplierAPIError, SupplierRateLimitError, AuthenticationError
)
from catalog_import.core.ports.clock_port import ClockPort
from catalog_import.core.ports.rate_limit_port import RateLimitPort
from catalog_import.core.ports.supplier_port import (
    SupplierProductPort, SupplierCredentials, FetchResult
)
from catalog_import.adapters.auth.token_store import TokenStore, SupplierToken
from catalog_import.shared.logging import get_logger

logger = get_logger(__name__)

# CJ 응답 코드: QPS/인증 횟수 제한 초과
CJ_RATE_LIMIT_CODE = 1600200

ACCESS_TOKEN_DEFAULT_TTL = timedelta(days=15)
REFRESH_TOKEN_DEFAULT_TTL = timedelta(days=180)

_NUMBER = re.compile(r"\d+(?:\.\d+)?")


class CJDropshippingAdapter(SupplierProductPort):
    """CJ Dropshipping API 어댑터"""

    def __init__(
        self,
        credentials: SupplierCredentials,
        rate_limiter: RateLimitPort,
        token_store: TokenStore,
        clock: ClockPort,
        timeout: float = 30.0,
        default_rate_limit_wait: int = 300,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.credentials = credentials
        self.supplier_id = credentials.supplier_id
        self.rate_limiter = rate_limiter
        self.token_store = token_store
        self.clock = clock
        self.default_rate_limit_wait = default_rate_limit_wait

        base_url = credentials.api_endpoint
        if not base_url.endswith("/"):
            base_url += "/"
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch_product(self, product_id: str) -> FetchResult:
        """상품 상세 + 옵션 조회"""
        pid = numeric_product_id(product_id)

        try:
            details = await self._request("GET", "v1/product/query", params={"pid": pid})
        except SupplierRateLimitError:
            raise
        except SupplierAPIError as e:
            logger.error(f"CJ 상품 조회 실패 {product_id}: {e.message}")
            return FetchResult.not_found(f"Failed to get product details: {e.message}")

        data = details.get("data")
        if not details.get("result") or not data:
            message = details.get("message") or "Product not found"
            return FetchResult.not_found(f"Failed to get product details: {message} (API PID: {pid})")

        variants = await self._fetch_variants(pid)
        if not variants:
            variants = data.get("variants") or []

        return FetchResult.found(self._map_product(product_id, data, variants))

    async def _fetch_variants(self, pid: str) -> List[Dict[str, Any]]:
        """옵션 목록 조회 (실패해도 상품 조회는 계속)"""
        try:
            response = await self._request("GET", "v1/product/variant/query", params={"pid": pid})
        except SupplierRateLimitError:
            raise
        except SupplierAPIError as e:
            logger.warning(f"CJ 옵션 조회 실패 {pid}: {e.message}")
            return []

        if not response.get("result"):
            logger.warning(f"CJ 옵션 조회 실패 {pid}: {response.get('message')}")
            return []
        return response.get("data") or []

    async def _wait_for_request_slot(self) -> None:
        """공급사 요청 슬롯 대기 (같은 공급사를 쓰는 모든 배치가 공유)"""
        delay = self.rate_limiter.reserve_request_slot(self.supplier_id)
        if delay > 0:
            await self.clock.sleep(delay)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        authenticated: bool = True
    ) -> Dict[str, Any]:
        """CJ API 호출"""
        headers = {"Content-Type": "application/json"}
        if authenticated:
            headers["CJ-Access-Token"] = await self._get_access_token()

        await self._wait_for_request_slot()

        try:
            response = await self.client.request(method, path, params=params, json=json_body, headers=headers)
        except httpx.TimeoutException as e:
            raise SupplierAPIError("Request timeout: The API request took too long to complete") from e
        except httpx.RequestError as e:
            raise SupplierAPIError(f"Request to CJ Dropshipping failed: {e}") from e

        if response.status_code == 429:
            wait_seconds = self._retry_after(response)
            self.rate_limiter.record_rate_limited(self.supplier_id, wait_seconds)
            raise SupplierRateLimitError(
                wait_seconds,
                f"CJ Dropshipping rate limit exceeded. Please wait {wait_seconds} seconds before trying again."
            )

        if response.status_code == 401 and authenticated:
            # 캐시된 토큰이 서버에서 폐기됨, 다음 호출에서 다시 발급
            await self.token_store.invalidate_token(self.supplier_id)
            raise AuthenticationError("CJ Dropshipping rejected the access token", status_code=401)

        if response.is_error:
            raise SupplierAPIError(
                f"HTTP error {response.status_code}: {response.text[:200]}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise SupplierAPIError(f"Invalid JSON response: {response.text[:200]}") from e

        if body.get("code") == CJ_RATE_LIMIT_CODE:
            wait_seconds = self.default_rate_limit_wait
            self.rate_limiter.record_rate_limited(self.supplier_id, wait_seconds)
            raise SupplierRateLimitError(
                wait_seconds,
                f"CJ Dropshipping rate limit reached: {body.get('message', 'QPS limit')}"
            )

        return body

    def _retry_after(self, response: httpx.Response) -> int:
        value = response.headers.get("Retry-After")
        if value and value.isdigit():
            return int(value)
        return self.default_rate_limit_wait

    async def _get_access_token(self) -> str:
        """유효한 액세스 토큰 반환 (캐시 → 리프레시 → 전체 인증)"""
        cached = await self.token_store.get_access_token(self.supplier_id)
        if cached:
            return cached

        refresh_token = await self.token_store.get_refresh_token(self.supplier_id)
        if refresh_token:
            try:
                return await self._refresh_access_token(refresh_token)
            except SupplierRateLimitError:
                raise
            except SupplierAPIError as e:
                logger.warning(f"CJ 토큰 갱신 실패, 전체 인증 시도: {e.message}")

        # CJ는 5분에 한 번만 인증을 허용한다
        if not self.rate_limiter.can_authenticate(self.supplier_id):
            wait_seconds = self.rate_limiter.time_until_auth_allowed(self.supplier_id)
            self.rate_limiter.record_rate_limited(self.supplier_id, wait_seconds)
            raise SupplierRateLimitError(
                wait_seconds,
                f"CJ Dropshipping rate limit in effect. Please wait {wait_seconds} seconds before trying again. "
                "Their API only allows one authentication request every 5 minutes."
            )

        self.rate_limiter.record_auth_attempt(self.supplier_id)

        body = await self._request(
            "POST",
            "v1/authentication/getAccessToken",
            json_body={"email": self.credentials.account_email or "", "password": self.credentials.api_key},
            authenticated=False
        )
        return await self._store_token_response(body, fallback_refresh_token=None)

    async def _refresh_access_token(self, refresh_token: str) -> str:
        """리프레시 토큰으로 액세스 토큰 재발급"""
        body = await self._request(
            "POST",
            "v1/authentication/refreshAccessToken",
            json_body={"refreshToken": refresh_token},
            authenticated=False
        )
        return await self._store_token_response(body, fallback_refresh_token=refresh_token)

    async def _store_token_response(self, body: Dict[str, Any], fallback_refresh_token: Optional[str]) -> str:
        data = body.get("data") or {}
        access_token = data.get("accessToken")
        if not body.get("result") or not access_token:
            raise AuthenticationError(
                f"Failed to get access token: {body.get('message') or 'Unknown error'}"
            )

        now = self.clock.now()
        token = SupplierToken(
            access_token=access_token,
            access_expires_at=_parse_expiry(data.get("accessTokenExpiryDate"), now + ACCESS_TOKEN_DEFAULT_TTL),
            refresh_token=data.get("refreshToken") or fallback_refresh_token,
            refresh_expires_at=_parse_expiry(data.get("refreshTokenExpiryDate"), now + REFRESH_TOKEN_DEFAULT_TTL)
        )
        await self.token_store.save_token(self.supplier_id, token)
        return access_token

    def _map_product(
        self,
        product_id: str,
        data: Dict[str, Any],
        variants: List[Dict[str, Any]]
    ) -> SupplierProduct:
        """CJ 응답을 도메인 엔티티로 변환"""
        cost_price = _to_float(data.get("sellPrice")) or 0.0

        return SupplierProduct(
            product_id=product_id,
            name=data.get("productNameEn") or data.get("productName") or "",
            cost_price=cost_price,
            description=data.get("description") or data.get("productDescEn") or "",
            sku=data.get("productSku"),
            barcode=data.get("ean") or data.get("productEan"),
            weight=_to_float(data.get("productWeight") or data.get("packWeight") or data.get("weight")),
            length=_to_float(data.get("packLength") or data.get("length")),
            width=_to_float(data.get("packWidth") or data.get("width")),
            height=_to_float(data.get("packHeight") or data.get("height")),
            primary_image=_first_image(data.get("productImage")),
            images=_image_list(data.get("productImageSet")),
            variants=[self._map_variant(variant) for variant in variants]
        )

    def _map_variant(self, data: Dict[str, Any]) -> SupplierVariant:
        properties = data.get("propertyList") or []
        return SupplierVariant(
            variant_id=data.get("vid") or data.get("variantId"),
            name=data.get("variantNameEn") or data.get("variantName"),
            sku=data.get("variantSku"),
            cost_price=_to_float(data.get("variantSellPrice")),
            image=data.get("variantImage"),
            property_name=data.get("propertyName") or data.get("variantKey"),
            properties=properties if isinstance(properties, list) else []
        )


def _to_float(value: Any) -> Optional[float]:
    """숫자 변환 ("1.5 -- 3.2" 같은 범위 값은 첫 숫자 사용)"""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = _NUMBER.search(str(value))
    return float(match.group(0)) if match else None


def _image_list(value: Any) -> List[str]:
    # productImageSet은 배열이거나 JSON 문자열이다
    if not value:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return [value]
    if isinstance(value, list):
        return [url for url in value if isinstance(url, str) and url]
    return []


def _first_image(value: Any) -> Optional[str]:
    images = _image_list(value)
    return images[0] if images else None


def _parse_expiry(value: Any, default: datetime) -> datetime:
    """ISO 만료 시각을 로컬 naive datetime으로 변환 (문자열이 아니면 기본값)"""
    if not value or not isinstance(value, str):
        return default
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return default
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed
