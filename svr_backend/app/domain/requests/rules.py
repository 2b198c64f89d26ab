"""
Request field rules.

Every write path (submission, admin edit, approval) passes request fields
through ``normalize_request_fields`` so that the driver and completion
invariants hold in a single place:

- ``delegated_driver_name`` is kept only while ``is_driver_requested`` is "Yes"
- ``completed_date`` is kept only while the remarks contain "completed"
  (case-insensitive)
"""

from typing import Any, Dict, Iterable, List, Optional

from svr_backend.app.core.exceptions import ValidationError
from svr_backend.app.models.enums import DriverRequested

COMPLETED_MARKER = "completed"

REQUIRED_SUBMISSION_FIELDS = (
    "requester_name",
    "department",
    "purpose",
    "destination",
    "requested_date_time",
    "is_driver_requested",
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def remarks_denote_completion(remarks: Optional[str]) -> bool:
    return COMPLETED_MARKER in (remarks or "").lower()


def driver_flag(driver_name: Optional[str]) -> str:
    """Map an optional driver name onto the "Yes"/"No" flag."""
    return DriverRequested.YES.value if not _is_blank(driver_name) else DriverRequested.NO.value


def normalize_request_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``fields`` with the driver and completion rules applied.

    ``fields`` must hold the full post-update view of the request (current
    values merged with the changes), otherwise the rules cannot be judged.
    """
    normalized = dict(fields)

    flag = normalized.get("is_driver_requested")
    if isinstance(flag, DriverRequested):
        flag = flag.value
    if flag is not None:
        normalized["is_driver_requested"] = flag

    if flag != DriverRequested.YES.value or _is_blank(normalized.get("delegated_driver_name")):
        normalized["delegated_driver_name"] = None

    if not remarks_denote_completion(normalized.get("remarks")):
        normalized["completed_date"] = None

    return normalized


def missing_fields(fields: Dict[str, Any], required: Iterable[str] = REQUIRED_SUBMISSION_FIELDS) -> List[str]:
    return [name for name in required if _is_blank(fields.get(name))]


def require_submission_fields(fields: Dict[str, Any]) -> None:
    """
    Raise ValidationError when a required submission field is missing or blank.

    Checked before any write is attempted.
    """
    missing = missing_fields(fields)
    if missing:
        raise ValidationError(missing_fields=missing)


def require_catalog_value(field: str, value: Optional[str], catalog: List[str]) -> None:
    """Reject values outside a non-empty catalog. An empty catalog accepts anything."""
    if value is None or not catalog:
        return
    if value not in catalog:
        raise ValidationError(
            message=f"Unknown {field.replace('_', ' ')}: {value}",
            details={"field": field, "value": value}
        )
