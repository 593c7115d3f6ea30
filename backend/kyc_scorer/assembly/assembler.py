"""Per-customer record assembly across reconciled sheets."""

from __future__ import annotations

from typing import Any

from kyc_scorer.assembly.reconciler import Sheets, coerce_identifier, reconcile_row
from kyc_scorer.assembly.types import CustomerRecord, ReconciledRow
from kyc_scorer.schema import kyc_schema
from kyc_scorer.schemas.schema_detection import ColumnMapping


def assemble_customer(customer_id: Any, mapping: ColumnMapping, sheets: Sheets) -> CustomerRecord:
    """Build the canonical record for one customer.

    Never raises: an undetected table or a customer absent from a table is
    recorded as a note in ``missing_fields``.
    """

    cid = coerce_identifier(customer_id)
    id_column = mapping.id_column or ""
    notes: list[str] = []

    identity = ReconciledRow()
    identity_rows = _designated_rows(mapping.id_sheet, sheets)
    if identity_rows is None:
        notes.append(kyc_schema.NO_IDENTITY_TABLE)
    else:
        row = _first_match(identity_rows, id_column, cid)
        if row is None:
            notes.append(kyc_schema.NO_IDENTITY_RECORD)
        else:
            identity = reconcile_row(mapping.id_sheet, row, mapping)

    addresses: list[ReconciledRow] = []
    address_rows = _designated_rows(mapping.address_sheet, sheets)
    if address_rows is None:
        notes.append(kyc_schema.NO_ADDRESS_TABLE)
    else:
        addresses = [
            reconcile_row(mapping.address_sheet, row, mapping)
            for row in address_rows
            if coerce_identifier(row.get(id_column)) == cid
        ]
        if not addresses:
            notes.append(kyc_schema.NO_ADDRESS_RECORDS)

    account = ReconciledRow()
    account_rows = _designated_rows(mapping.account_sheet, sheets)
    if account_rows is None:
        notes.append(kyc_schema.NO_ACCOUNT_TABLE)
    else:
        row = _first_match(account_rows, id_column, cid)
        if row is None:
            notes.append(kyc_schema.NO_ACCOUNT_RECORD)
        else:
            account = reconcile_row(mapping.account_sheet, row, mapping)

    return CustomerRecord(
        customer_id=cid,
        identity=identity,
        addresses=tuple(addresses),
        account=account,
        missing_fields=tuple(notes),
    )


def _designated_rows(sheet_name: str | None, sheets: Sheets) -> list[dict[str, Any]] | None:
    if not sheet_name or sheet_name not in sheets:
        return None
    return sheets[sheet_name]


def _first_match(rows: list[dict[str, Any]], id_column: str, cid: str) -> dict[str, Any] | None:
    for row in rows:
        if coerce_identifier(row.get(id_column)) == cid:
            return row
    return None
