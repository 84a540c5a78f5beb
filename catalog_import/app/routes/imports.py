"""CJ Dropshipping 상품 가져오기 라우트"""
from typing import Optional
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from catalog_import.app.di import (
    get_import_products_usecase, get_rate_limiter, get_repository
)
from catalog_import.app.errors import error_response
from catalog_import.core.entities.import_result import STAGE_DUPLICATE, STAGE_FETCH
from catalog_import.core.exceptions import CatalogImportError
from catalog_import.core.ports.rate_limit_port import RateLimitPort
from catalog_import.core.ports.repo_port import CatalogRepositoryPort
from catalog_import.core.usecases.import_products import (
    ImportProductCommand, ImportProductsCommand, ImportProductsUseCase
)
from catalog_import.presentation.schemas.imports import (
    BulkImportRequest,
    BulkImportResponse,
    DuplicateProductResponse,
    ErrorResponse,
    RateLimitResponse,
    SingleImportRequest,
    SingleImportResponse,
    SupplierStatusResponse
)
from catalog_import.shared.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post(
    "/cj-dropshipping/bulk",
    response_model=BulkImportResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": RateLimitResponse},
        500: {"model": ErrorResponse},
    }
)
async def bulk_import_products(
    request: BulkImportRequest,
    usecase: ImportProductsUseCase = Depends(get_import_products_usecase)
):
    """CJ Dropshipping 상품 일괄 가져오기"""
    command = ImportProductsCommand(
        supplier_id=request.supplier_id,
        category_id=request.category_id,
        product_ids=request.product_ids,
        markup=request.markup
    )

    try:
        summary = await usecase.execute(command)
    except CatalogImportError as e:
        logger.warning(f"상품 일괄 가져오기 거부: {e.message}")
        return error_response(e)
    except Exception as e:
        logger.error(f"상품 일괄 가져오기 중 오류: {e}", exc_info=True)
        return error_response(e)

    return summary.to_dict()


@router.post(
    "/cj-dropshipping",
    response_model=SingleImportResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": DuplicateProductResponse},
        429: {"model": RateLimitResponse},
        500: {"model": ErrorResponse},
    }
)
async def import_product(
    request: SingleImportRequest,
    usecase: ImportProductsUseCase = Depends(get_import_products_usecase)
):
    """CJ Dropshipping 상품 단건 가져오기"""
    command = ImportProductCommand(
        supplier_id=request.supplier_id,
        category_id=request.category_id,
        product_id=request.product_id,
        markup=request.markup
    )

    try:
        result = await usecase.import_product(command)
    except CatalogImportError as e:
        logger.warning(f"상품 가져오기 거부: {e.message}")
        return error_response(e, failure_message="Failed to import product", not_found_status=status.HTTP_404_NOT_FOUND)
    except Exception as e:
        logger.error(f"상품 가져오기 중 오류: {e}", exc_info=True)
        return error_response(e, failure_message="Failed to import product")

    if result.success:
        return {
            "success": True,
            "product": {"id": result.created_product_id, "name": result.product_name, "slug": result.slug},
            "skippedVariants": result.skipped_variants
        }

    if result.stage == STAGE_DUPLICATE:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"error": result.error, "existingProductId": result.existing_product_id}
        )
    if result.stage == STAGE_FETCH:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Failed to fetch product details", "details": result.error}
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Failed to import product", "details": result.error}
    )


@router.get("/cj-dropshipping/status", response_model=SupplierStatusResponse, response_model_exclude_none=True)
async def supplier_api_status(
    supplierId: Optional[str] = None,
    repository: CatalogRepositoryPort = Depends(get_repository),
    rate_limiter: RateLimitPort = Depends(get_rate_limiter)
):
    """CJ Dropshipping API 호출 가능 여부 조회"""
    if not supplierId:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Supplier ID is required"})

    try:
        supplier = await repository.get_supplier(supplierId)
    except Exception as e:
        logger.error(f"공급사 상태 조회 중 오류: {e}", exc_info=True)
        return error_response(e, failure_message="Failed to check API status")

    if not supplier:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Supplier not found"})
    if not supplier.has_api_credentials():
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Supplier API not configured"})

    wait_time = rate_limiter.time_until_next_auth(supplier.id)
    auth_wait_time = rate_limiter.time_until_auth_allowed(supplier.id)
    can_make_request = wait_time == 0

    return {
        "success": True,
        "canMakeRequest": can_make_request,
        "waitTime": wait_time,
        "authWaitTime": auth_wait_time,
        "reason": None if can_make_request else f"Rate limit in effect for {wait_time} more seconds",
        "status": "ready" if can_make_request else "rate_limited",
        "supplier": {"id": supplier.id, "name": supplier.name}
    }
