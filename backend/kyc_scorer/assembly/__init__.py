"""Customer record assembly package."""

from kyc_scorer.assembly.assembler import assemble_customer
from kyc_scorer.assembly.reconciler import (
    build_sheet_samples,
    coerce_identifier,
    collect_customer_ids,
    normalize_sheets,
    reconcile_row,
)
from kyc_scorer.assembly.types import CustomerRecord, ReconciledRow

__all__ = [
    "CustomerRecord",
    "ReconciledRow",
    "assemble_customer",
    "build_sheet_samples",
    "coerce_identifier",
    "collect_customer_ids",
    "normalize_sheets",
    "reconcile_row",
]
