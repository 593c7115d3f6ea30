"""Schema detection request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kyc_scorer.schema import is_canonical_field


class SheetSample(BaseModel):
    """Column names and a handful of rows from one sheet."""

    columns: list[str] = Field(default_factory=list)
    sample_rows: list[dict[str, Any]] = Field(default_factory=list)


class SchemaDetectionRequest(BaseModel):
    """Payload for a schema detection call."""

    sheet_samples: dict[str, SheetSample] = Field(min_length=1)


class ColumnMapping(BaseModel):
    """Mapping of raw sheets and columns onto the KYC schema.

    ``column_mappings[sheet][raw_column]`` holds the canonical field name, or
    ``None`` when the column has no schema counterpart. Columns missing from
    the mapping are treated the same way as ``None``.
    """

    model_config = ConfigDict(frozen=True)

    id_column: str | None = None
    id_sheet: str | None = None
    address_sheet: str | None = None
    account_sheet: str | None = None
    column_mappings: dict[str, dict[str, str | None]] = Field(default_factory=dict)
    reasoning: str | None = None

    @field_validator("id_column", "id_sheet", "address_sheet", "account_sheet", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            cleaned = value.strip()
            if not cleaned or cleaned.lower() in {"null", "none"}:
                return None
            return cleaned
        return value

    @field_validator("column_mappings", mode="before")
    @classmethod
    def drop_unknown_targets(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        cleaned: dict[str, dict[str, str | None]] = {}
        for sheet_name, columns in value.items():
            if not isinstance(columns, dict):
                cleaned[sheet_name] = columns
                continue
            cleaned[sheet_name] = {str(column): _schema_target(target) for column, target in columns.items()}
        return cleaned

    def field_for(self, sheet_name: str, column: str) -> str | None:
        """Return the canonical field for a raw column, or None when unmapped."""

        return self.column_mappings.get(sheet_name, {}).get(column)


def _schema_target(target: Any) -> str | None:
    # "null", typos and invented names all leave the column unmapped.
    if not isinstance(target, str):
        return None
    cleaned = target.strip()
    return cleaned if is_canonical_field(cleaned) else None
