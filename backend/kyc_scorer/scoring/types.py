"""Typed scoring inputs and outputs."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class ConflictState(str, Enum):
    """Whether the customer's address records disagree with each other."""

    NO_CONFLICT = "no_conflict"
    MINOR_CONFLICT = "minor_conflict"
    CONFLICT = "conflict"


class TrafficLight(str, Enum):
    GREEN = "GREEN"
    AMBER = "AMBER"
    RED = "RED"


class ErrorCode(str, Enum):
    PARSE_ERROR = "PARSE_ERROR"
    SCORING_ERROR = "SCORING_ERROR"


@dataclass(frozen=True, slots=True)
class ExtractedFacts:
    """Qualitative facts reported by the fact extraction collaborator."""

    most_recent_record_date: date | datetime | None = None
    strongest_verification_method: str | None = None
    address_conflict: ConflictState = ConflictState.CONFLICT
    best_source: str | None = None
    recommended_address: str = "Insufficient data"
    reasoning: str = ""
    positive_factors: tuple[str, ...] = ()
    negative_factors: tuple[str, ...] = ()
    missing_data_impact: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    recency_score: int
    verification_score: int
    consistency_score: int
    source_score: int

    @property
    def total(self) -> int:
        return self.recency_score + self.verification_score + self.consistency_score + self.source_score


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Terminal scoring artifact for one customer."""

    customer_id: str
    full_name: str
    confidence_percentage: int
    traffic_light: TrafficLight
    score_breakdown: ScoreBreakdown
    recommended_address: str
    reasoning: str
    positive_factors: tuple[str, ...] = ()
    negative_factors: tuple[str, ...] = ()
    missing_data_impact: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ScoringFailure:
    """Per-customer error record returned in place of a score."""

    customer_id: str
    full_name: str
    code: ErrorCode
    message: str
    raw_response: str | None = None


CustomerOutcome = ScoreResult | ScoringFailure


@dataclass(slots=True)
class BatchSummary:
    """Aggregate view over one batch of outcomes."""

    total: int = 0
    scored: int = 0
    errors: int = 0
    average_confidence: int = 0
    traffic_lights: dict[str, int] = field(
        default_factory=lambda: {light.value: 0 for light in TrafficLight}
    )
