"""Per-customer scoring and the bounded-concurrency batch scheduler."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from time import perf_counter
from typing import Any

from kyc_scorer.assembly import CustomerRecord, assemble_customer
from kyc_scorer.config import get_settings
from kyc_scorer.extraction.fact_extractor import FactExtractor, FactParseError, LLMFactExtractor
from kyc_scorer.extraction.llm_client import LLMClient, LLMRequestError, OpenAIChatCompletionsClient
from kyc_scorer.extraction.schema_detector import SchemaDetector
from kyc_scorer.schemas.schema_detection import ColumnMapping
from kyc_scorer.scoring import (
    CustomerOutcome,
    ErrorCode,
    ScoreResult,
    ScoringFailure,
    build_score_result,
)
from kyc_scorer.scoring.types import BatchSummary

logger = logging.getLogger(__name__)


class BatchRequestError(ValueError):
    """Raised when a batch request is structurally invalid."""


def get_default_llm_client() -> LLMClient:
    """Return the configured OpenAI client."""

    settings = get_settings()
    if not settings.openai_api_key:
        raise LLMRequestError(
            "OPENAI_API_KEY is not configured. Set it in backend/.env before scoring."
        )
    return OpenAIChatCompletionsClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout_seconds=settings.openai_timeout_seconds,
    )


def get_default_fact_extractor() -> FactExtractor:
    settings = get_settings()
    return LLMFactExtractor(get_default_llm_client(), preview_chars=settings.raw_response_preview_chars)


def get_default_schema_detector() -> SchemaDetector:
    return SchemaDetector(get_default_llm_client())


def score_customer(
    record: CustomerRecord,
    extractor: FactExtractor,
    *,
    as_of: date | datetime,
) -> CustomerOutcome:
    """Extract facts for one customer and score them.

    Any failure comes back as a ScoringFailure instead of raising.
    """

    try:
        facts = extractor.extract_facts(record)
        return build_score_result(record, facts, as_of=as_of)
    except Exception as exc:
        return _failure_from_exception(record, exc)


async def score_customer_records(
    records: Sequence[CustomerRecord],
    extractor: FactExtractor | None = None,
    *,
    concurrency_limit: int | None = None,
    as_of: date | datetime | None = None,
) -> list[CustomerOutcome]:
    """Score every record with at most ``concurrency_limit`` extraction calls in flight.

    Returns one outcome per input record, in input order.
    """

    if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
        raise BatchRequestError("Batch input must be a sequence of customer records.")
    if not records:
        raise BatchRequestError("Batch input must contain at least one customer record.")

    limit = concurrency_limit if concurrency_limit is not None else get_settings().scoring_concurrency_limit
    if limit < 1:
        raise BatchRequestError("Concurrency limit must be at least 1.")

    active_extractor = extractor or get_default_fact_extractor()
    batch_as_of = as_of or datetime.now(timezone.utc)
    # asyncio.Semaphore wakes waiters in arrival order.
    gate = asyncio.Semaphore(limit)

    total_started = perf_counter()
    outcomes = await asyncio.gather(
        *(_score_admitted(record, active_extractor, gate, batch_as_of) for record in records)
    )
    failures = sum(1 for outcome in outcomes if isinstance(outcome, ScoringFailure))
    logger.info(
        "kyc.batch_timing customers=%d scored=%d failed=%d concurrency_limit=%d total_ms=%.2f",
        len(outcomes),
        len(outcomes) - failures,
        failures,
        limit,
        (perf_counter() - total_started) * 1000.0,
    )
    return list(outcomes)


async def score_all(
    customer_ids: Sequence[Any],
    mapping: ColumnMapping,
    sheets: Mapping[str, list[dict[str, Any]]],
    extractor: FactExtractor | None = None,
    *,
    concurrency_limit: int | None = None,
    as_of: date | datetime | None = None,
) -> list[CustomerOutcome]:
    """Assemble and score every customer identifier."""

    if isinstance(customer_ids, (str, bytes)) or not isinstance(customer_ids, Sequence):
        raise BatchRequestError("Customer identifiers must be a sequence.")
    records = [assemble_customer(customer_id, mapping, sheets) for customer_id in customer_ids]
    return await score_customer_records(
        records,
        extractor,
        concurrency_limit=concurrency_limit,
        as_of=as_of,
    )


def summarize_outcomes(outcomes: Sequence[CustomerOutcome]) -> BatchSummary:
    """Count traffic lights and average the confidence of scored customers."""

    summary = BatchSummary(total=len(outcomes))
    confidences: list[int] = []
    for outcome in outcomes:
        if isinstance(outcome, ScoreResult):
            confidences.append(outcome.confidence_percentage)
            summary.traffic_lights[outcome.traffic_light.value] += 1
        else:
            summary.errors += 1
    summary.scored = len(confidences)
    if confidences:
        summary.average_confidence = int(sum(confidences) / len(confidences) + 0.5)
    return summary


async def _score_admitted(
    record: CustomerRecord,
    extractor: FactExtractor,
    gate: asyncio.Semaphore,
    as_of: date | datetime,
) -> CustomerOutcome:
    async with gate:
        started = perf_counter()
        try:
            facts = await asyncio.to_thread(extractor.extract_facts, record)
        except Exception as exc:
            return _failure_from_exception(record, exc)
        finally:
            logger.debug(
                "kyc.extraction_timing customer_id=%s llm_ms=%.2f",
                record.customer_id,
                (perf_counter() - started) * 1000.0,
            )
    try:
        return build_score_result(record, facts, as_of=as_of)
    except Exception as exc:
        return _failure_from_exception(record, exc)


def _failure_from_exception(record: CustomerRecord, exc: Exception) -> ScoringFailure:
    if isinstance(exc, FactParseError):
        logger.warning(
            "kyc.customer_parse_failed customer_id=%s error=%s",
            record.customer_id,
            exc,
        )
        return ScoringFailure(
            customer_id=record.customer_id,
            full_name=record.full_name,
            code=ErrorCode.PARSE_ERROR,
            message=str(exc),
            raw_response=exc.raw_response,
        )
    logger.exception("kyc.customer_scoring_failed customer_id=%s", record.customer_id)
    return ScoringFailure(
        customer_id=record.customer_id,
        full_name=record.full_name,
        code=ErrorCode.SCORING_ERROR,
        message=f"Scoring failed: {exc}" if str(exc) else f"Scoring failed: {exc.__class__.__name__}",
    )

