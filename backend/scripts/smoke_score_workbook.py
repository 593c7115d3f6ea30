"""Run a real schema detection and scoring pass over a small in-memory workbook.

Usage (from repo root):
    python backend/scripts/smoke_score_workbook.py

Usage (from backend/):
    python scripts/smoke_score_workbook.py
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from kyc_scorer.schemas.scoring import outcome_to_read, summary_to_read
from kyc_scorer.services.analysis import run_analysis


def _demo_workbook() -> dict[str, list[dict[str, object]]]:
    return {
        "Clients": [
            {"Client Ref": 1001, "Name": "Ada Lovelace", "DOB": "1985-12-10", "Sex": "F"},
            {"Client Ref": 1002, "Name": "Alan Turing", "DOB": "1979-06-23", "Sex": "M"},
        ],
        "Addr Hist": [
            {
                "Client Ref": 1001,
                "Line1": "12 Market Street",
                "Town": "London",
                "PC": "EC1A 1BB",
                "How Obtained": "document_verification",
                "Captured": "2026-03-02",
            },
            {
                "Client Ref": 1002,
                "Line1": "4 Bletchley Road",
                "Town": "Milton Keynes",
                "PC": "MK3 6EB",
                "How Obtained": "call centre",
                "Captured": "2021-08-14",
            },
            {
                "Client Ref": 1002,
                "Line1": "4 Bletchley Rd",
                "Town": "Milton Keynes",
                "PC": "MK36EB",
                "How Obtained": "app",
                "Captured": "2023-01-09",
            },
        ],
        "Accounts": [
            {"Client Ref": 1001, "Opened": "2015-04-01", "Last Contact": "2026-03-02", "Channel": "branch"},
        ],
    }


def main() -> None:
    result = asyncio.run(run_analysis(_demo_workbook()))
    print(
        json.dumps(
            {
                "mapping": result.mapping.model_dump(mode="json"),
                "results": [outcome_to_read(outcome).model_dump(mode="json") for outcome in result.outcomes],
                "summary": summary_to_read(result.summary).model_dump(mode="json"),
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
