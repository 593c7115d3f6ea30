"""Tests for column reconciliation and per-customer record assembly."""

from __future__ import annotations

import unittest

from kyc_scorer.assembly import (
    assemble_customer,
    build_sheet_samples,
    coerce_identifier,
    collect_customer_ids,
    normalize_sheets,
    reconcile_row,
)
from kyc_scorer.assembly.types import ReconciledRow
from kyc_scorer.schemas.schema_detection import ColumnMapping
from kyc_scorer.schemas.scoring import CustomerRecordPayload


def _mapping(**overrides) -> ColumnMapping:  # noqa: ANN003
    values = {
        "id_column": "Client Ref",
        "id_sheet": "Clients",
        "address_sheet": "Addr Hist",
        "account_sheet": "Accounts",
        "column_mappings": {
            "Clients": {"Client Ref": "customer_id", "Name": "full_name", "Notes": None},
            "Addr Hist": {"Client Ref": "customer_id", "Line1": "address_line_1", "Captured": "date_recorded"},
            "Accounts": {"Client Ref": "customer_id", "Channel": "last_interaction_channel"},
        },
    }
    values.update(overrides)
    return ColumnMapping.model_validate(values)


def _sheets() -> dict[str, list[dict[str, object]]]:
    return {
        "Clients": [
            {"Client Ref": 1001, "Name": "Ada Lovelace", "Notes": "vip"},
            {"Client Ref": 1002, "Name": "Alan Turing", "Notes": ""},
        ],
        "Addr Hist": [
            {"Client Ref": "1001", "Line1": "1 Old Road", "Captured": "2019-01-01", "Legacy Flag": "Y"},
            {"Client Ref": "1002", "Line1": "4 Bletchley Road", "Captured": "2022-02-02", "Legacy Flag": "N"},
            {"Client Ref": "1001", "Line1": "12 Market Street", "Captured": "2026-03-02", "Legacy Flag": "N"},
        ],
        "Accounts": [
            {"Client Ref": 1001.0, "Channel": "branch"},
        ],
    }


class ColumnReconcilerTests(unittest.TestCase):
    def test_mapped_columns_use_canonical_names(self) -> None:
        row = reconcile_row("Clients", {"Client Ref": 1001, "Name": "Ada"}, _mapping())
        self.assertEqual(row.canonical, {"customer_id": 1001, "full_name": "Ada"})
        self.assertEqual(row.unmapped, {})

    def test_unmapped_and_null_mapped_columns_keep_original_names(self) -> None:
        row = reconcile_row("Clients", {"Name": "Ada", "Notes": "vip", "Extra": None}, _mapping())
        self.assertEqual(row.canonical, {"full_name": "Ada"})
        self.assertEqual(row.unmapped, {"Notes": "vip", "Extra": ""})
        self.assertEqual(row.to_payload(), {"full_name": "Ada", "unmapped_columns": {"Notes": "vip", "Extra": ""}})

    def test_sheet_without_mapping_passes_through(self) -> None:
        row = reconcile_row("Unknown", {"A": 1, "B": 2}, _mapping())
        self.assertEqual(row.canonical, {})
        self.assertEqual(row.unmapped, {"A": 1, "B": 2})

    def test_raw_column_named_like_a_field_does_not_shadow_it(self) -> None:
        mapping = _mapping(column_mappings={"S": {"Town": "city"}})
        row = reconcile_row("S", {"city": "stale", "Town": "London"}, mapping)
        self.assertEqual(row.get("city"), "London")
        self.assertEqual(row.unmapped, {"city": "stale"})

    def test_literal_null_and_unknown_targets_stay_unmapped(self) -> None:
        mapping = _mapping(
            column_mappings={
                "S": {
                    "Ref": "customer_id",
                    "Notes": "null",
                    "Flag": " None ",
                    "Branch Code": "branch_code",
                    "Town": " city ",
                }
            }
        )
        self.assertIsNone(mapping.field_for("S", "Notes"))
        self.assertIsNone(mapping.field_for("S", "Branch Code"))
        self.assertEqual(mapping.field_for("S", "Town"), "city")

        row = reconcile_row("S", {"Ref": 7, "Notes": "vip", "Flag": "Y", "Branch Code": "B12", "Town": "Leeds"}, mapping)
        self.assertEqual(row.canonical, {"customer_id": 7, "city": "Leeds"})
        self.assertEqual(row.unmapped, {"Notes": "vip", "Flag": "Y", "Branch Code": "B12"})


class SheetHelperTests(unittest.TestCase):
    def test_identifier_coercion_matches_numeric_and_string_forms(self) -> None:
        self.assertEqual(coerce_identifier(1001), "1001")
        self.assertEqual(coerce_identifier(1001.0), "1001")
        self.assertEqual(coerce_identifier(" 1001 "), "1001")
        self.assertEqual(coerce_identifier(10.5), "10.5")
        self.assertEqual(coerce_identifier(None), "")

    def test_normalize_sheets_trims_keys_and_blanks_nulls(self) -> None:
        normalized = normalize_sheets({"S": [{" Name ": None, "Age": 3}]})
        self.assertEqual(normalized, {"S": [{"Name": "", "Age": 3}]})

    def test_sheet_samples_skip_empty_sheets(self) -> None:
        sheets = {"Empty": [], "Rows": [{"a": index, "b": "x"} for index in range(5)]}
        samples = build_sheet_samples(sheets, sample_size=3)
        self.assertEqual(list(samples), ["Rows"])
        self.assertEqual(samples["Rows"].columns, ["a", "b"])
        self.assertEqual(len(samples["Rows"].sample_rows), 3)

    def test_collect_customer_ids_dedupes_and_sorts(self) -> None:
        ids = collect_customer_ids(_sheets(), "Client Ref")
        self.assertEqual(ids, ["1001", "1002"])

    def test_collect_customer_ids_skips_blank_values(self) -> None:
        ids = collect_customer_ids({"S": [{"id": ""}, {"id": None}, {"other": 1}, {"id": "B"}, {"id": "A"}]}, "id")
        self.assertEqual(ids, ["A", "B"])


class CustomerAssemblerTests(unittest.TestCase):
    def test_assembles_all_three_entities_across_identifier_types(self) -> None:
        record = assemble_customer(1001, _mapping(), _sheets())
        self.assertEqual(record.customer_id, "1001")
        self.assertEqual(record.identity.get("full_name"), "Ada Lovelace")
        self.assertEqual(record.identity.unmapped["Notes"], "vip")
        self.assertEqual(record.account.canonical, {"customer_id": 1001.0, "last_interaction_channel": "branch"})
        self.assertEqual(record.missing_fields, ())
        self.assertEqual(record.full_name, "Ada Lovelace")

    def test_address_history_keeps_source_order(self) -> None:
        record = assemble_customer("1001", _mapping(), _sheets())
        self.assertEqual(
            [address.get("address_line_1") for address in record.addresses],
            ["1 Old Road", "12 Market Street"],
        )
        self.assertEqual(record.addresses[0].unmapped["Legacy Flag"], "Y")

    def test_customer_absent_from_sheets_is_recorded_as_notes(self) -> None:
        record = assemble_customer("1002", _mapping(), _sheets())
        self.assertEqual(len(record.addresses), 1)
        self.assertEqual(record.account, ReconciledRow())
        self.assertEqual(record.missing_fields, ("No account/interaction record found",))

        missing = assemble_customer("9999", _mapping(), _sheets())
        self.assertFalse(missing.identity)
        self.assertEqual(missing.addresses, ())
        self.assertEqual(
            missing.missing_fields,
            (
                "No identity record found for this customer",
                "No address records found for this customer",
                "No account/interaction record found",
            ),
        )
        self.assertEqual(missing.full_name, "9999")

    def test_undetected_tables_are_distinguished_from_missing_rows(self) -> None:
        mapping = _mapping(id_sheet=None, address_sheet=None, account_sheet="Not In Workbook")
        record = assemble_customer("1001", mapping, _sheets())
        self.assertEqual(record.addresses, ())
        self.assertEqual(
            record.missing_fields,
            (
                "No identity table detected",
                "No address table detected",
                "No account/interaction table detected",
            ),
        )

    def test_payload_serialization(self) -> None:
        payload = assemble_customer(1001, _mapping(), _sheets()).to_payload()
        self.assertEqual(set(payload), {"customer_id", "identity", "addresses", "account", "missing_fields"})
        self.assertIsInstance(payload["addresses"], list)
        self.assertEqual(payload["identity"]["unmapped_columns"], {"Notes": "vip"})
        self.assertEqual(payload["missing_fields"], [])

    def test_api_payload_splits_canonical_and_raw_keys(self) -> None:
        record = CustomerRecordPayload(
            customer_id=" 1001 ",
            identity={"full_name": "Ada", "Nickname": "Countess"},
            addresses=[{"address_line_1": "12 Market Street", "unmapped_columns": {"Legacy Flag": "N"}}],
        ).to_record()
        self.assertEqual(record.customer_id, "1001")
        self.assertEqual(record.identity, ReconciledRow(canonical={"full_name": "Ada"}, unmapped={"Nickname": "Countess"}))
        self.assertEqual(record.addresses[0].unmapped, {"Legacy Flag": "N"})
        self.assertFalse(record.account)


if __name__ == "__main__":
    unittest.main()
