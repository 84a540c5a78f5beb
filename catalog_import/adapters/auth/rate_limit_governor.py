"""공급사 호출 제한 관리자"""
from dataclasses import dataclass
from typing import Dict, Optional
import math
import threading

from catalog_import.core.ports.clock_port import ClockPort
from catalog_import.core.ports.rate_limit_port import RateLimitPort
from catalog_import.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitState:
    """공급사별 호출 제한 상태"""
    next_allowed_at: float = 0.0  # 공급사가 알려준 제한이 풀리는 시각
    next_auth_at: float = 0.0     # 다음 인증 요청이 허용되는 시각
    next_request_at: float = 0.0  # 다음 요청 슬롯 시작 시각


class RateLimitGovernor(RateLimitPort):
    """공급사별 쿨다운 및 요청 간격 관리 (메모리 전용, 재시작시 초기화)"""

    def __init__(
        self,
        clock: ClockPort,
        auth_cooldown_seconds: float = 300,
        request_spacing_seconds: float = 1.1
    ):
        self.clock = clock
        self.auth_cooldown_seconds = auth_cooldown_seconds
        self.request_spacing_seconds = request_spacing_seconds
        self._states: Dict[str, RateLimitState] = {}
        self._lock = threading.Lock()

    def _state(self, supplier_id: str) -> RateLimitState:
        # 호출자가 락을 잡고 있어야 한다
        state = self._states.get(supplier_id)
        if state is None:
            state = RateLimitState()
            self._states[supplier_id] = state
        return state

    def _remaining(self, until: float) -> int:
        # 부동소수 오차로 42.0000000001 → 43이 되지 않도록 반올림 후 올림
        remaining = round(until - self.clock.monotonic(), 6)
        if remaining <= 0:
            return 0
        return math.ceil(remaining)

    def time_until_next_auth(self, supplier_id: str) -> int:
        """다음 요청까지 남은 대기 시간 (초 단위 올림)"""
        with self._lock:
            return self._remaining(self._state(supplier_id).next_allowed_at)

    def time_until_auth_allowed(self, supplier_id: str) -> int:
        """다음 인증 요청까지 남은 대기 시간"""
        with self._lock:
            state = self._state(supplier_id)
            return self._remaining(max(state.next_allowed_at, state.next_auth_at))

    def reserve_request_slot(self, supplier_id: str) -> float:
        """다음 요청 슬롯을 예약하고 그때까지의 대기 시간(초)을 반환

        예약은 락 안에서 이루어지므로 동시에 호출해도 같은 슬롯을 받지 않는다.
        """
        with self._lock:
            state = self._state(supplier_id)
            now = self.clock.monotonic()
            slot = max(now, state.next_request_at)
            state.next_request_at = slot + self.request_spacing_seconds
        return slot - now

    def can_authenticate(self, supplier_id: str) -> bool:
        """지금 인증 요청을 보내도 되는지 확인"""
        return self.time_until_auth_allowed(supplier_id) == 0

    def record_auth_attempt(self, supplier_id: str) -> None:
        """인증 요청 시도 기록"""
        with self._lock:
            state = self._state(supplier_id)
            state.next_auth_at = max(state.next_auth_at, self.clock.monotonic() + self.auth_cooldown_seconds)
        logger.info(f"공급사 인증 시도 기록: {supplier_id} (다음 인증까지 {self.auth_cooldown_seconds}초)")

    def record_rate_limited(self, supplier_id: str, wait_seconds: float) -> None:
        """호출 제한 응답 기록 (쿨다운은 늘어나기만 한다)"""
        with self._lock:
            state = self._state(supplier_id)
            state.next_allowed_at = max(state.next_allowed_at, self.clock.monotonic() + max(0.0, wait_seconds))
        logger.warning(f"공급사 호출 제한 감지: {supplier_id} ({wait_seconds}초 대기)")

    def reset(self, supplier_id: Optional[str] = None) -> None:
        """상태 초기화"""
        with self._lock:
            if supplier_id is None:
                self._states.clear()
            else:
                self._states.pop(supplier_id, None)
