"""Fact extraction from assembled customer records."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from time import perf_counter
from typing import Any

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from kyc_scorer.assembly.types import CustomerRecord
from kyc_scorer.extraction.llm_client import LLMClient, load_prompt, strip_code_fences
from kyc_scorer.scoring.types import ConflictState, ExtractedFacts

FACT_EXTRACTION_PROMPT_VERSION = "fact_extraction.v1"
_PROMPT_FILES: dict[str, str] = {
    "fact_extraction.v1": "fact_extraction_v1.txt",
}

logger = logging.getLogger(__name__)

_FACTS_JSON_SCHEMA: dict[str, Any] = {
    "name": "kyc_customer_facts",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "most_recent_record_date": {"type": ["string", "null"]},
            "strongest_verification_method": {"type": ["string", "null"]},
            "address_conflict": {
                "type": "string",
                "enum": ["no_conflict", "minor_conflict", "conflict"],
            },
            "best_source": {"type": ["string", "null"]},
            "recommended_address": {"type": "string"},
            "reasoning": {"type": "string"},
            "positive_factors": {"type": "array", "items": {"type": "string"}},
            "negative_factors": {"type": "array", "items": {"type": "string"}},
            "missing_data_impact": {"type": "array", "items": {"type": "string"}},
        },
        "required": [
            "most_recent_record_date",
            "strongest_verification_method",
            "address_conflict",
            "best_source",
            "recommended_address",
            "reasoning",
            "positive_factors",
            "negative_factors",
            "missing_data_impact",
        ],
    },
}

_NO_CONFLICT_VALUES = {"no_conflict", "false"}
_MINOR_CONFLICT_VALUES = {"minor_conflict", "minor"}
_SEPARATOR_RE = re.compile(r"[\s\-]+")


class FactParseError(ValueError):
    """Raised when an extraction response cannot be read as customer facts."""

    def __init__(self, message: str, raw_response: str | None = None) -> None:
        super().__init__(message)
        self.raw_response = raw_response


class FactExtractor(ABC):
    """Abstract fact extraction collaborator."""

    @abstractmethod
    def extract_facts(self, record: CustomerRecord) -> ExtractedFacts:
        """Report the scoring facts for one customer record."""


class _RawFactsPayload(BaseModel):
    most_recent_record_date: datetime | None = None
    strongest_verification_method: str | None = None
    address_conflict: ConflictState = ConflictState.CONFLICT
    best_source: str | None = None
    recommended_address: str = "Insufficient data"
    reasoning: str = ""
    positive_factors: list[str] = Field(default_factory=list)
    negative_factors: list[str] = Field(default_factory=list)
    missing_data_impact: list[str] = Field(default_factory=list)

    @field_validator("most_recent_record_date", mode="before")
    @classmethod
    def parse_record_date(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, datetime):
            return _as_naive_utc(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            cleaned = value.strip()
            if not cleaned or cleaned.lower() in {"null", "none", "unknown", "n/a"}:
                return None
            if len(cleaned) == 10:
                parsed = date.fromisoformat(cleaned)
                return datetime(parsed.year, parsed.month, parsed.day)
            return _as_naive_utc(datetime.fromisoformat(cleaned))
        return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            cleaned = value.strip()
            if not cleaned or cleaned.lower() in {"null", "none", "unknown", "n/a"}:
                return None
            if len(cleaned) == 10:
                parsed = date.fromisoformat(cleaned)
                return datetime(parsed.year, parsed.month, parsed.day)
            return datetime.fromisoformat(cleaned)
        return value

    @field_validator("address_conflict", mode="before")
    @classmethod
    def parse_conflict(cls, value: Any) -> Any:
        if value is None:
            return ConflictState.CONFLICT
        if isinstance(value, bool):
            return ConflictState.CONFLICT if value else ConflictState.NO_CONFLICT
        if isinstance(value, str):
            label = _SEPARATOR_RE.sub("_", value.strip().lower())
            if label in _NO_CONFLICT_VALUES:
                return ConflictState.NO_CONFLICT
            if label in _MINOR_CONFLICT_VALUES:
                return ConflictState.MINOR_CONFLICT
            return ConflictState.CONFLICT
        return value

    @field_validator("recommended_address", "reasoning", mode="before")
    @classmethod
    def null_text_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return "Insufficient data" if info.field_name == "recommended_address" else ""
        return value

    @field_validator("positive_factors", "negative_factors", "missing_data_impact", mode="before")
    @classmethod
    def null_list_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_facts(self) -> ExtractedFacts:
        return ExtractedFacts(
            most_recent_record_date=self.most_recent_record_date,
            strongest_verification_method=self.strongest_verification_method,
            address_conflict=self.address_conflict,
            best_source=self.best_source,
            recommended_address=self.recommended_address.strip() or "Insufficient data",
            reasoning=self.reasoning.strip(),
            positive_factors=_clean_items(self.positive_factors),
            negative_factors=_clean_items(self.negative_factors),
            missing_data_impact=_clean_items(self.missing_data_impact),
        )


def parse_facts_response(raw: str, *, preview_chars: int = 500) -> ExtractedFacts:
    """Interpret one raw extraction response, raising FactParseError on failure."""

    if not isinstance(raw, str):
        raise FactParseError("Extraction response is not text")
    preview = raw[:preview_chars]
    try:
        decoded = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as exc:
        raise FactParseError(f"Extraction response is not valid JSON: {exc.msg}", raw_response=preview) from exc
    if not isinstance(decoded, dict):
        raise FactParseError("Extraction response is not a JSON object", raw_response=preview)
    try:
        payload = _RawFactsPayload.model_validate(decoded)
    except ValidationError as exc:
        raise FactParseError(
            f"Extraction response failed validation: {exc.error_count()} error(s)",
            raw_response=preview,
        ) from exc
    return payload.to_facts()


class LLMFactExtractor(FactExtractor):
    """Fact extractor backed by a structured-output LLM call."""

    def __init__(self, client: LLMClient, *, today: date | None = None, preview_chars: int = 500) -> None:
        self._client = client
        self._today = today
        self._preview_chars = preview_chars

    @property
    def prompt_version(self) -> str:
        return FACT_EXTRACTION_PROMPT_VERSION

    @property
    def model_name(self) -> str:
        return str(getattr(self._client, "model", self._client.__class__.__name__))

    def extract_facts(self, record: CustomerRecord) -> ExtractedFacts:
        today = self._today or date.today()
        system_prompt = load_prompt(_PROMPT_FILES[self.prompt_version]).replace(
            "{today}", today.isoformat()
        )
        user_content = json.dumps(
            {
                "task": "Report the KYC facts for this customer.",
                "customer": record.to_payload(),
            },
            ensure_ascii=True,
            default=str,
        )
        started = perf_counter()
        raw = self._client.complete_json(
            system_prompt,
            user_content,
            response_format={"type": "json_schema", "json_schema": _FACTS_JSON_SCHEMA},
        )
        logger.info(
            "kyc.fact_extraction_timing customer_id=%s prompt_version=%s model=%s llm_ms=%.2f",
            record.customer_id,
            self.prompt_version,
            self.model_name,
            (perf_counter() - started) * 1000.0,
        )
        return parse_facts_response(raw, preview_chars=self._preview_chars)


def _clean_items(values: list[str]) -> tuple[str, ...]:
    return tuple(item.strip() for item in values if isinstance(item, str) and item.strip())


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    try:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    except OverflowError as exc:
        raise ValueError(f"record date {value.isoformat()} is out of range in UTC") from exc
