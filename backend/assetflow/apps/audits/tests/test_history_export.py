from __future__ import annotations

import csv
import io
from datetime import datetime, timezone

from assetflow.apps.audits import export
from assetflow.apps.audits import models as audit_models


def _run(run_id, auditor, location, created_at, total, found, missing):
    return audit_models.AuditRun(
        id=run_id,
        auditor_name=auditor,
        location=location,
        created_at=created_at,
        total_items=total,
        found_items=found,
        missing_items=missing,
        unscanned_items=0,
    )


def test_render_history_csv_writes_header_and_rows():
    rows = export.render_history_csv(
        [_run("run-2", "Jane Doe", "HQ-3F", datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc), 5, 4, 1)]
    ).splitlines()

    assert rows[0] == "auditId,auditorName,location,timestamp,totalItems,foundItems,missingItems"
    assert rows[1] == "run-2,Jane Doe,HQ-3F,2026-03-01T09:30:00+00:00,5,4,1"


def test_render_history_csv_quotes_commas_and_quotes():
    text = export.render_history_csv(
        [_run("run-1", 'Doe, Jane "JD"', "Lab\nB", datetime(2026, 3, 1), 0, 0, 0)]
    )

    assert '"Doe, Jane ""JD"""' in text
    parsed = list(csv.reader(io.StringIO(text)))
    assert parsed[1][1] == 'Doe, Jane "JD"'
    assert parsed[1][2] == "Lab\nB"
    assert parsed[1][3] == "2026-03-01T00:00:00+00:00"


def test_render_history_csv_with_no_runs_is_header_only():
    assert export.render_history_csv([]) == ",".join(export.HISTORY_COLUMNS) + "\n"


def test_history_export_filename_is_timestamped():
    now = datetime(2026, 10, 19, 14, 5, 9, tzinfo=timezone.utc)
    assert export.history_export_filename(now) == "audit-history-2026-10-19T14-05-09.csv"
