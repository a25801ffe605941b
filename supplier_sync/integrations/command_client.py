"""HTTP implementation of the remote supplier command port."""

from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

import requests

from ..errors import TransportError, ValidationError
from ..http_client import get_shared_session
from ..logging_utils import get_logger
from ..preferences import DEFAULT_API_BASE_URL
from ..remote import RemoteCommandPort
from ..state import ImportResult, ReferenceEntry, ReferenceKind, Supplier, dedupe_by_id


_log = get_logger("command_client")

DEFAULT_TIMEOUT = 15
REJECTED_STATUSES = (400, 409, 422)

REFERENCE_COMMANDS: Dict[ReferenceKind, str] = {
    ReferenceKind.PLANNER: "get_planner_list",
    ReferenceKind.CONTINUITY: "get_continuity_list",
    ReferenceKind.SOURCING: "get_sourcing_list",
    ReferenceKind.SQIE: "get_sqie_list",
    ReferenceKind.BUSINESS_UNIT: "get_business_units",
    ReferenceKind.CATEGORY: "get_categories",
}


def _encode_bytes(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


def _coerce_count(value: object) -> int:
    try:
        return max(0, int(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


class CommandClient(RemoteCommandPort):
    """Invokes named store commands as ``POST {base_url}/commands/{name}``.

    Successful responses carry ``{"result": ...}``; rejected input comes back
    as 400/409/422 with ``{"error": "..."}``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or get_shared_session()
        self._timeout = timeout

    # ------------------------------------------------------------------
    # RemoteCommandPort
    # ------------------------------------------------------------------
    def search(self, query: str) -> List[Supplier]:
        rows = self._invoke("search_suppliers_data", {"query": query})
        if not isinstance(rows, list):
            raise TransportError("Search returned an unexpected payload")
        suppliers = [Supplier.from_dict(row) for row in rows if isinstance(row, dict)]
        return dedupe_by_id(supplier for supplier in suppliers if supplier.supplier_id)

    def upsert(self, supplier: Supplier) -> None:
        self._invoke("update_supplier_data", {"supplier": supplier.to_update_payload()})

    def create(self, supplier: Supplier) -> None:
        self._invoke("create_supplier", {"supplier": supplier.to_update_payload()})

    def check_uniqueness(self, value: str, exclude_id: str) -> Optional[Supplier]:
        row = self._invoke("check_po_exists", {"po": value, "current_supplier_id": exclude_id})
        if not isinstance(row, dict):
            return None
        return Supplier.from_dict(row)

    def fetch_reference_list(self, kind: ReferenceKind) -> List[ReferenceEntry]:
        rows = self._invoke(REFERENCE_COMMANDS[kind], {})
        if not isinstance(rows, list):
            raise TransportError(f"{kind.value} list returned an unexpected payload")
        entries: List[ReferenceEntry] = []
        for row in rows:
            entry = ReferenceEntry.from_value(row)
            if entry is not None:
                entries.append(entry)
        return entries

    def bulk_validate(self, payload: bytes) -> str:
        summary = self._invoke("validate_supplier_import", {"file_content": _encode_bytes(payload)})
        return str(summary or "")

    def bulk_commit(self, payload: bytes) -> ImportResult:
        result = self._invoke("import_suppliers", {"file_content": _encode_bytes(payload)})
        if not isinstance(result, dict):
            raise TransportError("Import returned an unexpected payload")
        return ImportResult(
            updated=_coerce_count(result.get("updated")),
            inserted=_coerce_count(result.get("inserted")),
            errors=_coerce_count(result.get("errors")),
        )

    def export_all(self) -> bytes:
        encoded = self._invoke("export_suppliers", {})
        if not isinstance(encoded, str):
            raise TransportError("Export returned an unexpected payload")
        try:
            return base64.b64decode(encoded, validate=True)
        except ValueError as exc:
            raise TransportError("Export payload is not valid base64") from exc

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _invoke(self, command: str, arguments: Dict[str, Any]) -> Any:
        url = f"{self._base_url}/commands/{command}"
        _log.debug("Invoking %s", command)
        try:
            response = self._session.post(url, json=arguments, timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError(f"{command} request failed: {exc}") from exc

        if response.status_code in REJECTED_STATUSES:
            raise ValidationError(self._error_text(response) or f"{command} was rejected")
        if response.status_code != 200:
            _log.debug("%s returned HTTP %s", command, response.status_code)
            raise TransportError(
                self._error_text(response) or f"{command} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(f"{command} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise TransportError(f"{command} returned an unexpected payload")
        return data.get("result")

    @staticmethod
    def _error_text(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return (response.text or "").strip()
        if isinstance(data, dict):
            return str(data.get("error") or "").strip()
        return ""


__all__ = ["CommandClient", "REFERENCE_COMMANDS"]
