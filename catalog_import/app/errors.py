"""예외 → HTTP 응답 변환"""
from fastapi import status
from fastapi.responses import JSONResponse

from catalog_import.core.exceptions import (
    CatalogImportError, ValidationError, NotFoundError, RateLimitError, SupplierRateLimitError
)


def rate_limit_body(error: RateLimitError) -> dict:
    """429 응답 본문"""
    if isinstance(error, SupplierRateLimitError):
        body = {
            "success": False,
            "error": "Rate limit reached",
            "rateLimitSeconds": error.wait_seconds,
            "rateLimitMessage": error.message,
        }
        if "results" in error.details:
            body["results"] = error.details["results"]
        return body

    return {
        "success": False,
        "error": "Rate limit in effect",
        "rateLimitSeconds": error.wait_seconds,
        "rateLimitMessage": error.message,
    }


def error_response(
    error: Exception,
    failure_message: str = "Failed to import products",
    not_found_status: int = status.HTTP_400_BAD_REQUEST
) -> JSONResponse:
    """예외 타입별 상태코드 매핑 (일괄 가져오기는 조회 실패도 400, 단건은 404)"""
    if isinstance(error, RateLimitError):
        return JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content=rate_limit_body(error))

    if isinstance(error, ValidationError):
        body = {"error": error.message}
        if error.details.get("details"):
            body["details"] = error.details["details"]
        status_code = not_found_status if isinstance(error, NotFoundError) else status.HTTP_400_BAD_REQUEST
        return JSONResponse(status_code=status_code, content=body)

    details = error.message if isinstance(error, CatalogImportError) else str(error)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": failure_message, "details": details or error.__class__.__name__}
    )
