"""공급사 호출 제한 포트 (인터페이스)"""
from abc import ABC, abstractmethod


class RateLimitPort(ABC):
    """공급사별 호출 제한 상태 인터페이스

    프로세스 전체에서 하나의 인스턴스를 공유한다. 한 배치에서 알게 된 제한은
    같은 공급사를 호출하는 다른 요청에도 적용되어야 한다.
    """

    @abstractmethod
    def time_until_next_auth(self, supplier_id: str) -> int:
        """다음 요청까지 남은 대기 시간 (초, 0이면 즉시 가능)"""
        pass

    @abstractmethod
    def time_until_auth_allowed(self, supplier_id: str) -> int:
        """다음 인증 요청까지 남은 대기 시간 (초)"""
        pass

    @abstractmethod
    def reserve_request_slot(self, supplier_id: str) -> float:
        """공급사 요청 슬롯 예약 (반환값만큼 기다린 뒤 요청한다)"""
        pass

    @abstractmethod
    def can_authenticate(self, supplier_id: str) -> bool:
        """지금 인증 요청을 보내도 되는지 확인"""
        pass

    @abstractmethod
    def record_auth_attempt(self, supplier_id: str) -> None:
        """인증 요청 시도 기록 (인증 쿨다운 시작)"""
        pass

    @abstractmethod
    def record_rate_limited(self, supplier_id: str, wait_seconds: float) -> None:
        """공급사가 호출 제한 응답을 보냈을 때 쿨다운 기록"""
        pass
