"""LLM-backed mapping of arbitrary sheets onto the KYC schema."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from time import perf_counter

from pydantic import ValidationError

from kyc_scorer.extraction.llm_client import LLMClient, load_prompt, strip_code_fences
from kyc_scorer.schema import describe_schema
from kyc_scorer.schemas.schema_detection import ColumnMapping, SheetSample

SCHEMA_DETECTION_PROMPT_VERSION = "schema_detection.v1"
_PROMPT_FILES: dict[str, str] = {
    "schema_detection.v1": "schema_detection_v1.txt",
}

logger = logging.getLogger(__name__)


class SchemaDetectionError(RuntimeError):
    """Raised when the schema inference response cannot be used."""


class SchemaDetector:
    """Ask the LLM which sheet plays which role and how columns map."""

    def __init__(self, client: LLMClient) -> None:
        self._client = client

    @property
    def prompt_version(self) -> str:
        return SCHEMA_DETECTION_PROMPT_VERSION

    def detect(self, sheet_samples: Mapping[str, SheetSample]) -> ColumnMapping:
        if not sheet_samples:
            raise SchemaDetectionError("No non-empty sheets to analyse.")

        system_prompt = load_prompt(_PROMPT_FILES[self.prompt_version]).replace(
            "{schema}", describe_schema()
        )
        user_content = json.dumps(
            {
                "task": "Map these spreadsheet sheets and columns to the KYC schema.",
                "sheets": {name: sample.model_dump(mode="json") for name, sample in sheet_samples.items()},
            },
            ensure_ascii=True,
            default=str,
        )

        started = perf_counter()
        raw = self._client.complete_json(system_prompt, user_content)
        try:
            mapping = ColumnMapping.model_validate(json.loads(strip_code_fences(raw)))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise SchemaDetectionError(f"Schema detection returned an unusable response: {exc}") from exc

        logger.info(
            "kyc.schema_detection_timing prompt_version=%s sheets=%d id_column=%s id_sheet=%s address_sheet=%s account_sheet=%s llm_ms=%.2f",
            self.prompt_version,
            len(sheet_samples),
            mapping.id_column,
            mapping.id_sheet,
            mapping.address_sheet,
            mapping.account_sheet,
            (perf_counter() - started) * 1000.0,
        )
        return mapping
