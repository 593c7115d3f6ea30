"""Customer scoring routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from kyc_scorer.extraction.dependencies import get_fact_extractor, get_schema_detector
from kyc_scorer.extraction.fact_extractor import FactExtractor
from kyc_scorer.extraction.llm_client import LLMRequestError
from kyc_scorer.extraction.schema_detector import SchemaDetectionError, SchemaDetector
from kyc_scorer.schemas.common import ApiResponse
from kyc_scorer.schemas.scoring import (
    AnalysisRequest,
    AnalysisResultRead,
    OutcomeRead,
    ScoreBatchRequest,
    ScoreCustomerRequest,
    outcome_to_read,
    summary_to_read,
)
from kyc_scorer.services.analysis import AnalysisPreconditionError, run_analysis
from kyc_scorer.services.batch_scoring import BatchRequestError, score_customer, score_customer_records


router = APIRouter(prefix="/api")


@router.post("/score-customer", response_model=ApiResponse[OutcomeRead])
def score_single_customer(
    payload: ScoreCustomerRequest,
    extractor: FactExtractor = Depends(get_fact_extractor),
) -> ApiResponse[OutcomeRead]:
    """Score one already-assembled customer record."""

    outcome = score_customer(payload.customer.to_record(), extractor, as_of=datetime.now(timezone.utc))
    return ApiResponse(data=outcome_to_read(outcome))


@router.post("/score-batch", response_model=ApiResponse[list[OutcomeRead]])
async def score_batch(
    payload: ScoreBatchRequest,
    extractor: FactExtractor = Depends(get_fact_extractor),
) -> ApiResponse[list[OutcomeRead]]:
    """Score a batch of assembled records; per-customer failures are returned inline."""

    try:
        outcomes = await score_customer_records(
            [customer.to_record() for customer in payload.customers],
            extractor,
            concurrency_limit=payload.concurrency,
        )
    except BatchRequestError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return ApiResponse(data=[outcome_to_read(outcome) for outcome in outcomes])


@router.post("/analyse", response_model=ApiResponse[AnalysisResultRead])
async def analyse_workbook(
    payload: AnalysisRequest,
    detector: SchemaDetector = Depends(get_schema_detector),
    extractor: FactExtractor = Depends(get_fact_extractor),
) -> ApiResponse[AnalysisResultRead]:
    """Detect the workbook schema, then assemble and score every customer."""

    try:
        result = await run_analysis(
            payload.sheets,
            detector=detector,
            extractor=extractor,
            concurrency_limit=payload.concurrency,
        )
    except (AnalysisPreconditionError, BatchRequestError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except (LLMRequestError, SchemaDetectionError) as exc:
        raise HTTPException(status_code=503, detail=f"Schema detection failed: {exc}") from exc
    return ApiResponse(
        data=AnalysisResultRead(
            mapping=result.mapping,
            results=[outcome_to_read(outcome) for outcome in result.outcomes],
            summary=summary_to_read(result.summary),
        )
    )
