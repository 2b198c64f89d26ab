"""
Request field rule tests.
"""

import pytest
from datetime import date

from svr_backend.app.core.exceptions import ValidationError
from svr_backend.app.domain.requests.rules import (
    driver_flag, normalize_request_fields, remarks_denote_completion,
    require_catalog_value, require_submission_fields
)
from svr_backend.app.models.enums import DriverRequested


def test_driver_flag_no_clears_delegated_driver():
    fields = normalize_request_fields({"is_driver_requested": "No", "delegated_driver_name": "Dan"})
    assert fields["delegated_driver_name"] is None


def test_driver_flag_yes_keeps_delegated_driver():
    fields = normalize_request_fields({
        "is_driver_requested": DriverRequested.YES,
        "delegated_driver_name": "Dan",
    })
    assert fields["is_driver_requested"] == "Yes"
    assert fields["delegated_driver_name"] == "Dan"


def test_blank_delegated_driver_is_cleared():
    fields = normalize_request_fields({"is_driver_requested": "Yes", "delegated_driver_name": "   "})
    assert fields["delegated_driver_name"] is None


def test_completed_date_kept_only_when_remarks_say_completed():
    kept = normalize_request_fields({"remarks": "Trip COMPLETED on time", "completed_date": date(2025, 1, 2)})
    cleared = normalize_request_fields({"remarks": "On the way", "completed_date": date(2025, 1, 2)})
    no_remarks = normalize_request_fields({"completed_date": date(2025, 1, 2)})

    assert kept["completed_date"] == date(2025, 1, 2)
    assert cleared["completed_date"] is None
    assert no_remarks["completed_date"] is None


def test_remarks_denote_completion_is_case_insensitive():
    assert remarks_denote_completion("Completed")
    assert not remarks_denote_completion(None)


def test_driver_flag_from_name():
    assert driver_flag("Dan") == "Yes"
    assert driver_flag("") == "No"
    assert driver_flag(None) == "No"


def test_missing_submission_fields_are_reported_together():
    with pytest.raises(ValidationError) as exc_info:
        require_submission_fields({
            "requester_name": "Alice",
            "department": "  ",
            "purpose": "Survey",
            "is_driver_requested": "No",
        })

    assert exc_info.value.status_code == 400
    assert exc_info.value.details["missing_fields"] == ["department", "destination", "requested_date_time"]


def test_catalog_value_must_belong_to_non_empty_catalog():
    require_catalog_value("department", "EOD", ["EOD", "OGM"])
    require_catalog_value("department", "Anything", [])
    require_catalog_value("requested_vehicle", None, ["SKU 532"])

    with pytest.raises(ValidationError):
        require_catalog_value("department", "HR", ["EOD", "OGM"])
