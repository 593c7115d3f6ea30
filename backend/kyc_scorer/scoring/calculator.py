"""Deterministic fact-to-score calculator.

Every sub-score is a step function over one extracted fact:

* recency (max 40) from the age of the most recent record,
* verification (max 30) from the strongest verification method,
* consistency (max 20) from the address conflict state,
* source (max 10) from the best address source.

The confidence percentage is their exact sum, so it always lies in [0, 100].
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

from kyc_scorer.assembly.types import CustomerRecord
from kyc_scorer.scoring.types import (
    ConflictState,
    ExtractedFacts,
    ScoreBreakdown,
    ScoreResult,
    TrafficLight,
)

# Average Gregorian month length. The recency bands are tuned against this
# approximation, not calendar months.
DAYS_PER_MONTH = 30.44

RECENCY_MAX = 40
VERIFICATION_MAX = 30
CONSISTENCY_MAX = 20
SOURCE_MAX = 10

# (upper bound in months, inclusive) -> score
RECENCY_BANDS: tuple[tuple[int, int], ...] = (
    (12, 40),
    (24, 30),
    (36, 20),
    (60, 10),
)

VERIFICATION_SCORES: dict[str, int] = {
    "document_verification": 30,
    "passport": 28,
    "usps_cass": 25,
    "driving_licence": 22,
    "utility_bill": 20,
    "bank_statement": 18,
    "branch": 15,
    "app": 10,
    "call_centre": 8,
    "self_declared": 5,
    "none": 0,
}

SOURCE_SCORES: dict[str, int] = {
    "document_verification": 10,
    "branch": 8,
    "app": 5,
    "call_centre": 3,
    "none": 0,
}

CONSISTENCY_SCORES: dict[ConflictState, int] = {
    ConflictState.NO_CONFLICT: 20,
    ConflictState.MINOR_CONFLICT: 12,
    ConflictState.CONFLICT: 0,
}

GREEN_THRESHOLD = 75
AMBER_THRESHOLD = 40

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_label(value: str | None) -> str:
    """Lowercase and collapse internal whitespace runs to one underscore."""

    if not value:
        return ""
    return _WHITESPACE_RE.sub("_", value.strip().lower())


def age_in_months(record_date: date | datetime, as_of: date | datetime) -> float:
    elapsed = _as_naive_utc(as_of) - _as_naive_utc(record_date)
    # Rounded so float noise cannot push an exact band boundary over.
    return round(elapsed.total_seconds() / 86400 / DAYS_PER_MONTH, 6)


def recency_score(record_date: date | datetime | None, as_of: date | datetime) -> int:
    if record_date is None:
        return 0
    months = age_in_months(record_date, as_of)
    for upper_bound, score in RECENCY_BANDS:
        if months <= upper_bound:
            return score
    return 0


def verification_score(method: str | None) -> int:
    return VERIFICATION_SCORES.get(normalize_label(method), 0)


def consistency_score(conflict: ConflictState | None) -> int:
    if conflict is None:
        return 0
    return CONSISTENCY_SCORES.get(conflict, 0)


def source_score(source: str | None) -> int:
    return SOURCE_SCORES.get(normalize_label(source), 0)


def calculate_score(facts: ExtractedFacts, *, as_of: date | datetime) -> ScoreBreakdown:
    """Convert extracted facts into the four bounded sub-scores."""

    return ScoreBreakdown(
        recency_score=recency_score(facts.most_recent_record_date, as_of),
        verification_score=verification_score(facts.strongest_verification_method),
        consistency_score=consistency_score(facts.address_conflict),
        source_score=source_score(facts.best_source),
    )


def classify_traffic_light(confidence_percentage: int) -> TrafficLight:
    if confidence_percentage >= GREEN_THRESHOLD:
        return TrafficLight.GREEN
    if confidence_percentage >= AMBER_THRESHOLD:
        return TrafficLight.AMBER
    return TrafficLight.RED


def build_score_result(
    record: CustomerRecord,
    facts: ExtractedFacts,
    *,
    as_of: date | datetime,
) -> ScoreResult:
    """Score one customer's facts and attach the narrative fields."""

    breakdown = calculate_score(facts, as_of=as_of)
    confidence = breakdown.total
    return ScoreResult(
        customer_id=record.customer_id,
        full_name=record.full_name,
        confidence_percentage=confidence,
        traffic_light=classify_traffic_light(confidence),
        score_breakdown=breakdown,
        recommended_address=facts.recommended_address,
        reasoning=facts.reasoning,
        positive_factors=facts.positive_factors,
        negative_factors=facts.negative_factors,
        missing_data_impact=facts.missing_data_impact,
    )


def _as_naive_utc(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime(value.year, value.month, value.day)
