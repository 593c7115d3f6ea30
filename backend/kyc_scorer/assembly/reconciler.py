"""Column reconciliation and sheet helpers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from kyc_scorer.assembly.types import ReconciledRow
from kyc_scorer.schemas.schema_detection import ColumnMapping, SheetSample

Row = Mapping[str, Any]
Sheets = Mapping[str, list[dict[str, Any]]]


def reconcile_row(sheet_name: str, raw_row: Row, mapping: ColumnMapping) -> ReconciledRow:
    """Project one raw row onto canonical field names.

    Columns without a mapping keep their original name so nothing is dropped.
    """

    canonical: dict[str, Any] = {}
    unmapped: dict[str, Any] = {}
    for column, value in raw_row.items():
        schema_field = mapping.field_for(sheet_name, column)
        if schema_field:
            canonical[schema_field] = "" if value is None else value
        else:
            unmapped[column] = "" if value is None else value
    return ReconciledRow(canonical=canonical, unmapped=unmapped)


def coerce_identifier(value: Any) -> str:
    """Return the comparable string form of an identifier cell.

    Spreadsheet readers hand back ``1001.0`` for an integer-looking cell, so
    integral floats collapse to their integer form.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_sheet_rows(rows: Iterable[Row]) -> list[dict[str, Any]]:
    """Trim column names and replace missing values with empty strings."""

    normalized: list[dict[str, Any]] = []
    for row in rows:
        normalized.append({str(key).strip(): ("" if value is None else value) for key, value in row.items()})
    return normalized


def normalize_sheets(sheets: Mapping[str, Iterable[Row]]) -> dict[str, list[dict[str, Any]]]:
    return {str(name): normalize_sheet_rows(rows) for name, rows in sheets.items()}


def build_sheet_samples(sheets: Sheets, *, sample_size: int = 3) -> dict[str, SheetSample]:
    """Collect column names and leading rows of every non-empty sheet."""

    samples: dict[str, SheetSample] = {}
    for name, rows in sheets.items():
        if not rows:
            continue
        samples[name] = SheetSample(columns=list(rows[0].keys()), sample_rows=rows[:sample_size])
    return samples


def collect_customer_ids(sheets: Sheets, id_column: str) -> list[str]:
    """Return every distinct non-empty identifier across all sheets, sorted."""

    seen: set[str] = set()
    for rows in sheets.values():
        for row in rows:
            identifier = coerce_identifier(row.get(id_column))
            if identifier:
                seen.add(identifier)
    return sorted(seen)
