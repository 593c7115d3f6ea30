"""Fixed three-entity KYC schema."""

from __future__ import annotations


IDENTITY_FIELDS: tuple[str, ...] = (
    "customer_id",
    "full_name",
    "date_of_birth",
    "national_id_number",
    "gender",
)
ADDRESS_FIELDS: tuple[str, ...] = (
    "address_id",
    "customer_id",
    "address_line_1",
    "address_line_2",
    "city",
    "postcode",
    "country",
    "address_source",
    "recorded_by",
    "date_recorded",
    "date_superseded",
)
ACCOUNT_FIELDS: tuple[str, ...] = (
    "customer_id",
    "account_open_date",
    "last_interaction_date",
    "last_interaction_channel",
    "document_verification_status",
)

SCHEMA_COLUMNS: dict[str, tuple[str, ...]] = {
    "identity": IDENTITY_FIELDS,
    "address": ADDRESS_FIELDS,
    "account": ACCOUNT_FIELDS,
}
CANONICAL_FIELD_SET = frozenset(field for fields in SCHEMA_COLUMNS.values() for field in fields)

# Notes recorded on a customer record when an entity lookup fails.
NO_IDENTITY_TABLE = "No identity table detected"
NO_IDENTITY_RECORD = "No identity record found for this customer"
NO_ADDRESS_TABLE = "No address table detected"
NO_ADDRESS_RECORDS = "No address records found for this customer"
NO_ACCOUNT_TABLE = "No account/interaction table detected"
NO_ACCOUNT_RECORD = "No account/interaction record found"


def is_canonical_field(name: str | None) -> bool:
    """Return True when the name is one of the schema-defined attributes."""

    return bool(name) and name in CANONICAL_FIELD_SET


def describe_schema() -> str:
    """Render the schema as prompt-friendly text, one entity per line."""

    return "\n".join(f"- {entity}: {', '.join(fields)}" for entity, fields in SCHEMA_COLUMNS.items())
