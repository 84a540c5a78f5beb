"""공급사 토큰 저장소 어댑터"""
from typing import Dict, Optional
from datetime import datetime, timedelta
import asyncio
from dataclasses import dataclass

from catalog_import.core.ports.clock_port import ClockPort
from catalog_import.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SupplierToken:
    """공급사 액세스/리프레시 토큰"""
    access_token: str
    access_expires_at: datetime
    refresh_token: Optional[str] = None
    refresh_expires_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TokenStore:
    """공급사 토큰 캐시 (메모리 전용)"""

    def __init__(self, clock: ClockPort, min_remaining_minutes: int = 10):
        self.clock = clock
        self.min_remaining = timedelta(minutes=min_remaining_minutes)
        self._token_cache: Dict[str, SupplierToken] = {}
        self._cache_lock = asyncio.Lock()

    async def get_access_token(self, supplier_id: str) -> Optional[str]:
        """유효한 액세스 토큰 조회 (만료까지 여유 시간이 남은 경우만)"""
        async with self._cache_lock:
            token = self._token_cache.get(supplier_id)

        if token and token.access_expires_at > self.clock.now() + self.min_remaining:
            return token.access_token
        return None

    async def get_refresh_token(self, supplier_id: str) -> Optional[str]:
        """유효한 리프레시 토큰 조회"""
        async with self._cache_lock:
            token = self._token_cache.get(supplier_id)

        if not token or not token.refresh_token:
            return None
        if token.refresh_expires_at and token.refresh_expires_at <= self.clock.now():
            return None
        return token.refresh_token

    async def save_token(self, supplier_id: str, token: SupplierToken) -> None:
        """토큰 저장"""
        token.updated_at = self.clock.now()
        async with self._cache_lock:
            self._token_cache[supplier_id] = token

        logger.info(f"공급사 토큰 저장 완료: {supplier_id}")

    async def invalidate_token(self, supplier_id: str) -> None:
        """토큰 무효화"""
        async with self._cache_lock:
            self._token_cache.pop(supplier_id, None)

        logger.info(f"공급사 토큰 무효화 완료: {supplier_id}")
