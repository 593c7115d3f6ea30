"""Integration tests for the workbook analysis pipeline with stub collaborators."""

from __future__ import annotations

import unittest
from datetime import datetime

from kyc_scorer.assembly.types import CustomerRecord
from kyc_scorer.extraction.fact_extractor import FactExtractor
from kyc_scorer.schemas.schema_detection import ColumnMapping
from kyc_scorer.scoring import ConflictState, ErrorCode, ExtractedFacts, ScoreResult, ScoringFailure, TrafficLight
from kyc_scorer.services.analysis import AnalysisPreconditionError, run_analysis

AS_OF = datetime(2026, 10, 18)


class _StubDetector:
    def __init__(self, mapping: ColumnMapping) -> None:
        self.mapping = mapping
        self.samples = None

    def detect(self, sheet_samples):  # noqa: ANN001
        self.samples = sheet_samples
        return self.mapping


class _RecordingExtractor(FactExtractor):
    def __init__(self) -> None:
        self.records: dict[str, CustomerRecord] = {}

    def extract_facts(self, record: CustomerRecord) -> ExtractedFacts:
        self.records[record.customer_id] = record
        if record.customer_id == "1003":
            raise ValueError("model overloaded")
        if record.addresses:
            return ExtractedFacts(
                most_recent_record_date=datetime(2026, 3, 2),
                strongest_verification_method="document verification",
                address_conflict=ConflictState.NO_CONFLICT,
                best_source="branch",
                missing_data_impact=tuple(record.missing_fields),
            )
        return ExtractedFacts(
            strongest_verification_method="self_declared",
            address_conflict=ConflictState.MINOR_CONFLICT,
            best_source="call_centre",
            missing_data_impact=tuple(record.missing_fields),
        )


def _workbook() -> dict[str, list[dict[str, object]]]:
    return {
        "Clients": [
            {" Client Ref ": 1002, "Name": "Alan Turing"},
            {" Client Ref ": 1001, "Name": "Ada Lovelace"},
            {" Client Ref ": 1003, "Name": None},
        ],
        "Addr Hist": [
            {"Client Ref": "1001", "Line1": "12 Market Street", "Captured": "2026-03-02"},
        ],
        "Blank": [],
    }


def _mapping(**overrides) -> ColumnMapping:  # noqa: ANN003
    values = {
        "id_column": "Client Ref",
        "id_sheet": "Clients",
        "address_sheet": "Addr Hist",
        "account_sheet": None,
        "column_mappings": {
            "Clients": {"Client Ref": "customer_id", "Name": "full_name"},
            "Addr Hist": {"Client Ref": "customer_id", "Line1": "address_line_1", "Captured": "date_recorded"},
        },
    }
    values.update(overrides)
    return ColumnMapping.model_validate(values)


class AnalysisPipelineTests(unittest.IsolatedAsyncioTestCase):
    async def test_scores_every_customer_sorted_by_identifier(self) -> None:
        detector = _StubDetector(_mapping())
        extractor = _RecordingExtractor()

        result = await run_analysis(
            _workbook(),
            detector=detector,
            extractor=extractor,
            concurrency_limit=2,
            as_of=AS_OF,
        )

        self.assertEqual(list(detector.samples), ["Clients", "Addr Hist"])
        self.assertEqual(detector.samples["Clients"].columns, ["Client Ref", "Name"])
        self.assertEqual([outcome.customer_id for outcome in result.outcomes], ["1001", "1002", "1003"])

        ada, alan, missing = result.outcomes
        self.assertIsInstance(ada, ScoreResult)
        self.assertEqual(ada.full_name, "Ada Lovelace")
        self.assertEqual(ada.confidence_percentage, 98)
        self.assertEqual(ada.traffic_light, TrafficLight.GREEN)
        self.assertEqual(ada.missing_data_impact, ("No account/interaction table detected",))

        self.assertIsInstance(alan, ScoreResult)
        self.assertEqual(alan.confidence_percentage, 20)
        self.assertEqual(alan.traffic_light, TrafficLight.RED)
        self.assertIn("No address records found for this customer", alan.missing_data_impact)

        self.assertIsInstance(missing, ScoringFailure)
        self.assertEqual(missing.code, ErrorCode.SCORING_ERROR)
        self.assertEqual(missing.full_name, "1003")

        self.assertEqual(result.summary.total, 3)
        self.assertEqual(result.summary.scored, 2)
        self.assertEqual(result.summary.errors, 1)
        self.assertEqual(result.summary.average_confidence, 59)
        self.assertEqual(result.summary.traffic_lights, {"GREEN": 1, "AMBER": 0, "RED": 1})

    async def test_missing_identifier_column_rejects_the_run(self) -> None:
        extractor = _RecordingExtractor()
        with self.assertRaises(AnalysisPreconditionError):
            await run_analysis(
                _workbook(),
                detector=_StubDetector(_mapping(id_column=None)),
                extractor=extractor,
                as_of=AS_OF,
            )
        self.assertEqual(extractor.records, {})

    async def test_identifier_column_absent_from_rows_rejects_the_run(self) -> None:
        with self.assertRaises(AnalysisPreconditionError):
            await run_analysis(
                _workbook(),
                detector=_StubDetector(_mapping(id_column="Customer Number")),
                extractor=_RecordingExtractor(),
                as_of=AS_OF,
            )

    async def test_empty_workbook_rejects_the_run(self) -> None:
        with self.assertRaises(AnalysisPreconditionError):
            await run_analysis(
                {"Blank": []},
                detector=_StubDetector(_mapping()),
                extractor=_RecordingExtractor(),
                as_of=AS_OF,
            )


if __name__ == "__main__":
    unittest.main()
