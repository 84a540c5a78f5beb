"""가져오기 결과 도메인 엔티티"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

# 실패가 발생한 단계 (단건 가져오기 응답 코드 결정에 사용, 응답 본문에는 포함하지 않음)
STAGE_FETCH = "fetch"
STAGE_DUPLICATE = "duplicate"
STAGE_WRITE = "write"


@dataclass
class ImportResult:
    """입력 ID 하나에 대한 처리 결과"""
    requested_id: str
    success: bool
    error: Optional[str] = None
    existing_product_id: Optional[str] = None
    created_product_id: Optional[str] = None
    product_name: Optional[str] = None
    skipped_variants: int = 0
    slug: Optional[str] = None
    stage: Optional[str] = None

    @classmethod
    def created(
        cls,
        requested_id: str,
        product_id: str,
        product_name: str,
        skipped_variants: int = 0,
        slug: Optional[str] = None
    ) -> "ImportResult":
        return cls(
            requested_id=requested_id,
            success=True,
            created_product_id=product_id,
            product_name=product_name,
            skipped_variants=skipped_variants,
            slug=slug
        )

    @classmethod
    def failed(
        cls,
        requested_id: str,
        error: str,
        existing_product_id: Optional[str] = None,
        stage: Optional[str] = None
    ) -> "ImportResult":
        return cls(
            requested_id=requested_id,
            success=False,
            error=error,
            existing_product_id=existing_product_id,
            stage=stage
        )

    def to_dict(self) -> Dict[str, Any]:
        """응답용 딕셔너리 (값이 없는 필드는 생략)"""
        data: Dict[str, Any] = {
            'requestedId': self.requested_id,
            'success': self.success,
        }
        if self.error is not None:
            data['error'] = self.error
        if self.existing_product_id is not None:
            data['existingProductId'] = self.existing_product_id
        if self.created_product_id is not None:
            data['createdProductId'] = self.created_product_id
        if self.product_name is not None:
            data['productName'] = self.product_name
        if self.success:
            data['skippedVariants'] = self.skipped_variants
        return data


@dataclass
class BatchImportSummary:
    """배치 결과 집계 (입력 순서 유지)"""
    results: List[ImportResult] = field(default_factory=list)

    def add(self, result: ImportResult) -> None:
        """결과 추가"""
        self.results.append(result)

    def add_failure(self, requested_id: str, error: str, existing_product_id: Optional[str] = None) -> None:
        """실패 추가"""
        self.add(ImportResult.failed(requested_id, error, existing_product_id))

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def fail_count(self) -> int:
        return self.total_count - self.success_count

    @property
    def message(self) -> str:
        return f"Imported {self.success_count} products successfully, {self.fail_count} failed"

    def to_dict(self) -> Dict[str, Any]:
        """배치 응답 본문 (항목이 모두 실패해도 success는 True)"""
        return {
            'success': True,
            'message': self.message,
            'results': [result.to_dict() for result in self.results]
        }
