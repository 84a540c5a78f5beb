"""상품 가져오기 DTO 스키마"""
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class BulkImportRequest(BaseModel):
    """일괄 가져오기 요청 (세부 검증은 유즈케이스에서)"""
    model_config = ConfigDict(populate_by_name=True)

    supplier_id: Optional[str] = Field(None, alias="supplierId")
    category_id: Optional[str] = Field(None, alias="categoryId")
    product_ids: Any = Field(None, alias="productIds")
    markup: Any = None


class SingleImportRequest(BaseModel):
    """단건 가져오기 요청"""
    model_config = ConfigDict(populate_by_name=True)

    supplier_id: Optional[str] = Field(None, alias="supplierId")
    category_id: Optional[str] = Field(None, alias="categoryId")
    product_id: Any = Field(None, alias="productId")
    markup: Any = None


class ImportResultResponse(BaseModel):
    """항목별 결과"""
    model_config = ConfigDict(populate_by_name=True)

    requested_id: str = Field(..., alias="requestedId")
    success: bool
    error: Optional[str] = None
    existing_product_id: Optional[str] = Field(None, alias="existingProductId")
    created_product_id: Optional[str] = Field(None, alias="createdProductId")
    product_name: Optional[str] = Field(None, alias="productName")
    skipped_variants: Optional[int] = Field(None, alias="skippedVariants")


class BulkImportResponse(BaseModel):
    """일괄 가져오기 응답"""
    success: bool = True
    message: str
    results: List[ImportResultResponse]


class ImportedProduct(BaseModel):
    id: str
    name: str
    slug: str


class SingleImportResponse(BaseModel):
    """단건 가져오기 응답"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    product: ImportedProduct
    skipped_variants: int = Field(0, alias="skippedVariants")


class ErrorResponse(BaseModel):
    """요청 거부 응답"""
    error: str
    details: Optional[str] = None


class DuplicateProductResponse(BaseModel):
    """이미 가져온 상품"""
    model_config = ConfigDict(populate_by_name=True)

    error: str
    existing_product_id: str = Field(..., alias="existingProductId")


class RateLimitResponse(BaseModel):
    """호출 제한 응답"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str
    rate_limit_seconds: int = Field(..., alias="rateLimitSeconds")
    rate_limit_message: str = Field(..., alias="rateLimitMessage")
    results: Optional[List[ImportResultResponse]] = None


class SupplierSummary(BaseModel):
    id: str
    name: str


class SupplierStatusResponse(BaseModel):
    """공급사 API 상태 응답"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    can_make_request: bool = Field(..., alias="canMakeRequest")
    wait_time: int = Field(..., alias="waitTime")
    auth_wait_time: int = Field(..., alias="authWaitTime")
    reason: Optional[str] = None
    status: str
    supplier: SupplierSummary
