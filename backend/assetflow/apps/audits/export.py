from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from typing import Iterable, Optional

from . import models

HISTORY_COLUMNS = (
    "auditId",
    "auditorName",
    "location",
    "timestamp",
    "totalItems",
    "foundItems",
    "missingItems",
)


def _timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def render_history_csv(runs: Iterable[models.AuditRun]) -> str:
    """Audit history as CSV; fields with commas, quotes or newlines are quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(HISTORY_COLUMNS)
    for run in runs:
        writer.writerow(
            [
                run.id,
                run.auditor_name,
                run.location,
                _timestamp(run.created_at),
                run.total_items,
                run.found_items,
                run.missing_items,
            ]
        )
    return buffer.getvalue()


def history_export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"audit-history-{now.strftime('%Y-%m-%dT%H-%M-%S')}.csv"
