"""FastAPI dependency providers for the LLM collaborators."""

from fastapi import HTTPException

from kyc_scorer.extraction.fact_extractor import FactExtractor
from kyc_scorer.extraction.llm_client import LLMRequestError
from kyc_scorer.extraction.schema_detector import SchemaDetector
from kyc_scorer.services.batch_scoring import get_default_fact_extractor, get_default_schema_detector


def get_fact_extractor() -> FactExtractor:
    try:
        return get_default_fact_extractor()
    except LLMRequestError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def get_schema_detector() -> SchemaDetector:
    try:
        return get_default_schema_detector()
    except LLMRequestError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
