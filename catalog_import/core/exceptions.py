"""상품 가져오기 예외 계층"""
from typing import Optional, Dict, Any


class CatalogImportError(Exception):
    """상품 가져오기 기본 예외"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CatalogImportError):
    """요청 검증 에러 (배치 전체 거부)"""

    def __init__(self, message: str, field: str = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field


class NotFoundError(ValidationError):
    """공급사/카테고리 조회 실패"""
    pass


class RateLimitError(CatalogImportError):
    """공급사 호출 제한 (대기 시간 포함)"""

    def __init__(self, wait_seconds: int, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message or f"Rate limit in effect. Please wait {wait_seconds} seconds before trying again.",
            details
        )
        self.wait_seconds = wait_seconds


class SupplierRateLimitError(RateLimitError):
    """공급사 API가 호출 제한 응답을 보낸 경우"""
    pass


class SupplierAPIError(CatalogImportError):
    """공급사 API 호출 에러"""

    def __init__(self, message: str, status_code: int = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.status_code = status_code


class AuthenticationError(SupplierAPIError):
    """공급사 인증 에러"""
    pass


class CatalogWriteError(CatalogImportError):
    """카탈로그 저장 에러"""
    pass
