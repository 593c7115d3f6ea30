"""KYC schema package."""

from kyc_scorer.schema.kyc_schema import (
    CANONICAL_FIELD_SET,
    SCHEMA_COLUMNS,
    describe_schema,
    is_canonical_field,
)

__all__ = [
    "CANONICAL_FIELD_SET",
    "SCHEMA_COLUMNS",
    "describe_schema",
    "is_canonical_field",
]
