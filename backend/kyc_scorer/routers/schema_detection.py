"""Schema detection routes."""

from fastapi import APIRouter, Depends, HTTPException

from kyc_scorer.extraction.dependencies import get_schema_detector
from kyc_scorer.extraction.llm_client import LLMRequestError
from kyc_scorer.extraction.schema_detector import SchemaDetectionError, SchemaDetector
from kyc_scorer.schemas.common import ApiResponse
from kyc_scorer.schemas.schema_detection import ColumnMapping, SchemaDetectionRequest


router = APIRouter(prefix="/api")


@router.post("/detect-schema", response_model=ApiResponse[ColumnMapping])
def detect_schema(
    payload: SchemaDetectionRequest,
    detector: SchemaDetector = Depends(get_schema_detector),
) -> ApiResponse[ColumnMapping]:
    """Map uploaded sheets and columns onto the KYC schema."""

    try:
        mapping = detector.detect(payload.sheet_samples)
    except (LLMRequestError, SchemaDetectionError) as exc:
        raise HTTPException(status_code=503, detail=f"Schema detection failed: {exc}") from exc
    return ApiResponse(data=mapping)
