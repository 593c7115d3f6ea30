"""Deterministic KYC scoring package."""

from kyc_scorer.scoring.calculator import (
    DAYS_PER_MONTH,
    build_score_result,
    calculate_score,
    classify_traffic_light,
    normalize_label,
)
from kyc_scorer.scoring.types import (
    ConflictState,
    CustomerOutcome,
    ErrorCode,
    ExtractedFacts,
    ScoreBreakdown,
    ScoreResult,
    ScoringFailure,
    TrafficLight,
)

__all__ = [
    "DAYS_PER_MONTH",
    "ConflictState",
    "CustomerOutcome",
    "ErrorCode",
    "ExtractedFacts",
    "ScoreBreakdown",
    "ScoreResult",
    "ScoringFailure",
    "TrafficLight",
    "build_score_result",
    "calculate_score",
    "classify_traffic_light",
    "normalize_label",
]
