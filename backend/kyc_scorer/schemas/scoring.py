"""Scoring endpoint schemas."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from kyc_scorer.assembly.types import CustomerRecord, ReconciledRow
from kyc_scorer.schemas.schema_detection import ColumnMapping
from kyc_scorer.scoring.types import (
    BatchSummary,
    CustomerOutcome,
    ErrorCode,
    ScoreResult,
    TrafficLight,
)


class CustomerRecordPayload(BaseModel):
    """Assembled customer record as sent by API callers."""

    customer_id: str = Field(min_length=1)
    identity: dict[str, Any] = Field(default_factory=dict)
    addresses: list[dict[str, Any]] = Field(default_factory=list)
    account: dict[str, Any] = Field(default_factory=dict)
    missing_fields: list[str] = Field(default_factory=list)

    def to_record(self) -> CustomerRecord:
        return CustomerRecord(
            customer_id=self.customer_id.strip(),
            identity=ReconciledRow.from_values(self.identity),
            addresses=tuple(ReconciledRow.from_values(address) for address in self.addresses),
            account=ReconciledRow.from_values(self.account),
            missing_fields=tuple(self.missing_fields),
        )


class ScoreCustomerRequest(BaseModel):
    customer: CustomerRecordPayload


class ScoreBatchRequest(BaseModel):
    customers: list[CustomerRecordPayload] = Field(min_length=1)
    concurrency: int | None = Field(default=None, ge=1)


class AnalysisRequest(BaseModel):
    """Raw workbook rows keyed by sheet name."""

    sheets: dict[str, list[dict[str, Any]]] = Field(min_length=1)
    concurrency: int | None = Field(default=None, ge=1)


class ScoreBreakdownRead(BaseModel):
    recency_score: int = Field(ge=0, le=40)
    verification_score: int = Field(ge=0, le=30)
    consistency_score: int = Field(ge=0, le=20)
    source_score: int = Field(ge=0, le=10)


class ScoredOutcomeRead(BaseModel):
    """Successful score for one customer."""

    status: Literal["scored"] = "scored"
    customer_id: str
    full_name: str
    confidence_percentage: int = Field(ge=0, le=100)
    traffic_light: TrafficLight
    score_breakdown: ScoreBreakdownRead
    recommended_address: str
    reasoning: str
    positive_factors: list[str]
    negative_factors: list[str]
    missing_data_impact: list[str]


class FailedOutcomeRead(BaseModel):
    """Per-customer error record."""

    status: Literal["error"] = "error"
    customer_id: str
    full_name: str
    code: ErrorCode
    message: str
    raw_response: str | None = None


OutcomeRead = Annotated[ScoredOutcomeRead | FailedOutcomeRead, Field(discriminator="status")]


class BatchSummaryRead(BaseModel):
    total: int
    scored: int
    errors: int
    average_confidence: int
    traffic_lights: dict[str, int]


class AnalysisResultRead(BaseModel):
    """Full workbook analysis response."""

    mapping: ColumnMapping
    results: list[OutcomeRead]
    summary: BatchSummaryRead


def outcome_to_read(outcome: CustomerOutcome) -> ScoredOutcomeRead | FailedOutcomeRead:
    if isinstance(outcome, ScoreResult):
        breakdown = outcome.score_breakdown
        return ScoredOutcomeRead(
            customer_id=outcome.customer_id,
            full_name=outcome.full_name,
            confidence_percentage=outcome.confidence_percentage,
            traffic_light=outcome.traffic_light,
            score_breakdown=ScoreBreakdownRead(
                recency_score=breakdown.recency_score,
                verification_score=breakdown.verification_score,
                consistency_score=breakdown.consistency_score,
                source_score=breakdown.source_score,
            ),
            recommended_address=outcome.recommended_address,
            reasoning=outcome.reasoning,
            positive_factors=list(outcome.positive_factors),
            negative_factors=list(outcome.negative_factors),
            missing_data_impact=list(outcome.missing_data_impact),
        )
    return FailedOutcomeRead(
        customer_id=outcome.customer_id,
        full_name=outcome.full_name,
        code=outcome.code,
        message=outcome.message,
        raw_response=outcome.raw_response,
    )


def summary_to_read(summary: BatchSummary) -> BatchSummaryRead:
    return BatchSummaryRead(
        total=summary.total,
        scored=summary.scored,
        errors=summary.errors,
        average_confidence=summary.average_confidence,
        traffic_lights=dict(summary.traffic_lights),
    )
