"""End-to-end workbook analysis: schema detection through batch scoring."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from time import perf_counter
from typing import Any

from kyc_scorer.assembly import build_sheet_samples, collect_customer_ids, normalize_sheets
from kyc_scorer.config import get_settings
from kyc_scorer.extraction.fact_extractor import FactExtractor
from kyc_scorer.extraction.schema_detector import SchemaDetector
from kyc_scorer.schemas.schema_detection import ColumnMapping
from kyc_scorer.scoring import CustomerOutcome
from kyc_scorer.scoring.types import BatchSummary
from kyc_scorer.services.batch_scoring import (
    get_default_schema_detector,
    score_all,
    summarize_outcomes,
)

logger = logging.getLogger(__name__)


class AnalysisPreconditionError(RuntimeError):
    """Raised when a workbook cannot be scored at all."""


@dataclass(slots=True)
class AnalysisResult:
    mapping: ColumnMapping
    outcomes: list[CustomerOutcome]
    summary: BatchSummary


async def run_analysis(
    sheets: Mapping[str, Iterable[Mapping[str, Any]]],
    *,
    detector: SchemaDetector | None = None,
    extractor: FactExtractor | None = None,
    concurrency_limit: int | None = None,
    as_of: date | datetime | None = None,
) -> AnalysisResult:
    """Detect the workbook schema, then assemble and score every customer."""

    total_started = perf_counter()
    try:
        normalized = normalize_sheets(sheets)
        samples = build_sheet_samples(normalized, sample_size=get_settings().schema_sample_rows)
        if not samples:
            raise AnalysisPreconditionError("The workbook does not contain any rows.")

        started = perf_counter()
        mapping = (detector or get_default_schema_detector()).detect(samples)
        detect_ms = (perf_counter() - started) * 1000.0

        if not mapping.id_column:
            raise AnalysisPreconditionError("Could not identify a customer identifier column.")
        customer_ids = collect_customer_ids(normalized, mapping.id_column)
        if not customer_ids:
            raise AnalysisPreconditionError("No customer records found after schema mapping.")

        started = perf_counter()
        outcomes = await score_all(
            customer_ids,
            mapping,
            normalized,
            extractor,
            concurrency_limit=concurrency_limit,
            as_of=as_of,
        )
        scoring_ms = (perf_counter() - started) * 1000.0
        outcomes.sort(key=lambda outcome: outcome.customer_id)
        summary = summarize_outcomes(outcomes)

        logger.info(
            (
                "kyc.analysis_timing sheets=%d customers=%d scored=%d errors=%d "
                "detect_ms=%.2f scoring_ms=%.2f total_ms=%.2f"
            ),
            len(normalized),
            summary.total,
            summary.scored,
            summary.errors,
            detect_ms,
            scoring_ms,
            (perf_counter() - total_started) * 1000.0,
        )
        return AnalysisResult(mapping=mapping, outcomes=outcomes, summary=summary)
    except AnalysisPreconditionError as exc:
        logger.warning("kyc.analysis_rejected reason=%s", exc)
        raise
    except Exception:
        logger.exception(
            "kyc.analysis_failed elapsed_ms=%.2f",
            (perf_counter() - total_started) * 1000.0,
        )
        raise
