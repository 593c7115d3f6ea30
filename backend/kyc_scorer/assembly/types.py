"""Typed customer records independent of the transport layer."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from kyc_scorer.schema.kyc_schema import is_canonical_field

UNMAPPED_PAYLOAD_KEY = "unmapped_columns"


@dataclass(frozen=True, slots=True)
class ReconciledRow:
    """One source row projected onto the KYC schema.

    ``canonical`` holds values stored under schema field names; ``unmapped``
    keeps every other column under its original name. The two never share a
    namespace, so a raw column named like a schema field cannot shadow it.
    """

    canonical: dict[str, Any] = field(default_factory=dict)
    unmapped: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> "ReconciledRow":
        """Split an already-canonical dict, routing unknown keys to ``unmapped``."""

        canonical: dict[str, Any] = {}
        unmapped: dict[str, Any] = {}
        for key, value in values.items():
            if key == UNMAPPED_PAYLOAD_KEY and isinstance(value, Mapping):
                unmapped.update(value)
            elif is_canonical_field(key):
                canonical[key] = value
            else:
                unmapped[key] = value
        return cls(canonical=canonical, unmapped=unmapped)

    def get(self, schema_field: str, default: Any = None) -> Any:
        return self.canonical.get(schema_field, default)

    def __bool__(self) -> bool:
        return bool(self.canonical or self.unmapped)

    def to_payload(self) -> dict[str, Any]:
        payload = dict(self.canonical)
        if self.unmapped:
            payload[UNMAPPED_PAYLOAD_KEY] = dict(self.unmapped)
        return payload


@dataclass(frozen=True, slots=True)
class CustomerRecord:
    """Everything known about one customer across the uploaded sheets."""

    customer_id: str
    identity: ReconciledRow = field(default_factory=ReconciledRow)
    addresses: tuple[ReconciledRow, ...] = ()
    account: ReconciledRow = field(default_factory=ReconciledRow)
    missing_fields: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        name = self.identity.get("full_name")
        if isinstance(name, str) and name.strip():
            return name.strip()
        return self.customer_id

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the fact extraction collaborator."""

        return {
            "customer_id": self.customer_id,
            "identity": self.identity.to_payload(),
            "addresses": [address.to_payload() for address in self.addresses],
            "account": self.account.to_payload(),
            "missing_fields": list(self.missing_fields),
        }
