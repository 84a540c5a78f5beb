"""시간 어댑터"""
from datetime import datetime
import asyncio
import time

from catalog_import.core.ports.clock_port import ClockPort


class ClockAdapter(ClockPort):
    """시간 어댑터 구현체"""

    def now(self) -> datetime:
        """현재 시간 반환"""
        return datetime.now()

    def monotonic(self) -> float:
        """단조 시계 (초)"""
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        """비동기 대기"""
        await asyncio.sleep(seconds)
