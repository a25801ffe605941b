"""Dataclasses describing supplier records and the transient sync state around them."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple


EDITABLE_FIELDS: Tuple[str, ...] = (
    "supplier_po",
    "bu",
    "supplier_email",
    "supplier_status",
    "planner",
    "country",
    "supplier_category",
    "continuity",
    "sourcing",
    "sqie",
    "ssid",
    "otif_target",
    "nil_target",
    "pickup_target",
    "package_target",
)

SCORE_FIELDS: Tuple[str, ...] = (
    "otif_score",
    "nil_score",
    "pickup_score",
    "package_score",
    "total_score",
)

UNIQUE_FIELD = "supplier_po"
CLIENT_ID_PREFIX = "SUP_"


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class Supplier:
    """One supplier record. Every attribute is a string; absence is ``""``."""

    supplier_id: str
    vendor_name: str = ""
    supplier_po: str = ""
    bu: str = ""
    supplier_email: str = ""
    supplier_status: str = ""
    planner: str = ""
    country: str = ""
    supplier_category: str = ""
    continuity: str = ""
    sourcing: str = ""
    sqie: str = ""
    ssid: str = ""
    otif_target: str = ""
    nil_target: str = ""
    pickup_target: str = ""
    package_target: str = ""
    otif_score: str = ""
    nil_score: str = ""
    pickup_score: str = ""
    package_score: str = ""
    total_score: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "Supplier":
        """Build a record from a store payload, coercing nulls to empty strings.

        The store names the display field ``vendor_name`` in search results and
        ``supplier_name`` in update payloads; both are accepted.
        """

        known = {item.name for item in fields(cls)}
        values: Dict[str, str] = {}
        for key, value in payload.items():
            if key in known:
                values[key] = _as_text(value)
        if not values.get("vendor_name"):
            values["vendor_name"] = _as_text(payload.get("supplier_name"))
        values["supplier_id"] = _as_text(payload.get("supplier_id")).strip()
        return cls(**values)

    def to_update_payload(self) -> Dict[str, str]:
        """Whole-record snapshot in the store's update shape."""

        payload = {"supplier_id": self.supplier_id, "supplier_name": self.vendor_name}
        for name in EDITABLE_FIELDS:
            payload[name] = getattr(self, name)
        return payload

    def copy(self) -> "Supplier":
        return replace(self)

    def with_field(self, field_name: str, value: str) -> "Supplier":
        if field_name not in EDITABLE_FIELDS:
            raise KeyError(field_name)
        return replace(self, **{field_name: _as_text(value)})

    @property
    def display_name(self) -> str:
        return self.vendor_name or "Unnamed"


def generate_client_id(now: Optional[float] = None) -> str:
    """Return a time-based identifier for optimistic local creation."""

    moment = time.time() if now is None else now
    return f"{CLIENT_ID_PREFIX}{int(moment * 1000)}"


@dataclass
class PendingEdit:
    supplier_id: str
    field_name: str
    value: str
    scheduled_at: float


class ReferenceKind(str, Enum):
    PLANNER = "planner"
    CONTINUITY = "continuity"
    SOURCING = "sourcing"
    SQIE = "sqie"
    BUSINESS_UNIT = "business_unit"
    CATEGORY = "category"


@dataclass(frozen=True)
class ReferenceEntry:
    name: str
    email: str = ""
    alias: str = ""

    @classmethod
    def from_value(cls, value: object) -> Optional["ReferenceEntry"]:
        """Accept either a ``{name, email, alias}`` mapping or a bare name."""

        if isinstance(value, Mapping):
            name = _as_text(value.get("name")).strip()
            if not name:
                return None
            return cls(
                name=name,
                email=_as_text(value.get("email")).strip(),
                alias=_as_text(value.get("alias")).strip(),
            )
        name = _as_text(value).strip()
        return cls(name=name) if name else None


@dataclass(frozen=True)
class ImportBatch:
    path: str
    payload: bytes

    @property
    def file_name(self) -> str:
        return self.path.replace("\\", "/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ImportResult:
    updated: int = 0
    inserted: int = 0
    errors: int = 0

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    @property
    def total_applied(self) -> int:
        return self.updated + self.inserted


@dataclass
class SyncStatus:
    """Per-entity flags observed by the UI (spinners, dirty markers)."""

    dirty: set = field(default_factory=set)
    saving: set = field(default_factory=set)
    failed: set = field(default_factory=set)

    def clear(self) -> None:
        self.dirty.clear()
        self.saving.clear()
        self.failed.clear()


def dedupe_by_id(suppliers: Iterable[Supplier]) -> List[Supplier]:
    """Keep the first occurrence of each ``supplier_id`` preserving order."""

    seen: set[str] = set()
    unique: List[Supplier] = []
    for supplier in suppliers:
        if supplier.supplier_id in seen:
            continue
        seen.add(supplier.supplier_id)
        unique.append(supplier)
    return unique


__all__ = [
    "CLIENT_ID_PREFIX",
    "EDITABLE_FIELDS",
    "SCORE_FIELDS",
    "UNIQUE_FIELD",
    "ImportBatch",
    "ImportResult",
    "PendingEdit",
    "ReferenceEntry",
    "ReferenceKind",
    "Supplier",
    "SyncStatus",
    "dedupe_by_id",
    "generate_client_id",
]
