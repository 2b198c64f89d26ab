"""
CSV export of service requests.

One row per request; the header row is plain and every data field is
double-quoted. Times are rendered in the configured timezone.
"""

import csv
import io
from datetime import datetime
from typing import Iterable, Optional

from svr_backend.app.core.clock import to_local

EXPORT_FILENAME = "service_vehicle_requests.csv"
NO_DATA_MESSAGE = "No data to export."

CSV_HEADERS = [
    "Timestamp", "Service Vehicle", "Requesting Personnel", "Department",
    "Driver Requested", "Delegated Driver Name", "Purpose", "Destination",
    "Requested Date/Time", "ETA", "Status", "Remarks",
]


def _local(value: Optional[datetime], fmt: str, default: str) -> str:
    if value is None:
        return default
    return to_local(value).strftime(fmt)


def request_row(request) -> list:
    return [
        _local(request.timestamp, "%Y-%m-%d %H:%M:%S", "N/A"),
        request.requested_vehicle or "",
        request.requester_name,
        request.department,
        request.is_driver_requested,
        request.delegated_driver_name or "",
        request.purpose,
        request.destination,
        _local(request.requested_date_time, "%Y-%m-%d %H:%M", "N/A"),
        _local(request.estimated_arrival, "%H:%M", ""),
        request.status,
        request.remarks or "",
    ]


def export_requests_csv(requests: Iterable) -> Optional[str]:
    """
    Render requests as CSV text.

    Returns:
        The CSV document, or None when there is nothing to export
    """
    requests = list(requests)
    if not requests:
        return None

    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADERS)
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for request in requests:
        writer.writerow(request_row(request))
    return buffer.getvalue()
