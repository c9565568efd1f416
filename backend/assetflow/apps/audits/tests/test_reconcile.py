from __future__ import annotations

import pytest

from assetflow.apps.audits.errors import DependencyUnavailable, InvalidArgument
from assetflow.apps.audits.reconcile import (
    InventoryRecord,
    Outcome,
    index_by_serial,
    reconcile,
)


class _FakeProvider:
    def __init__(self, records, locations=("HQ-3F", "WH-1")):
        self.records = list(records)
        self.locations = set(locations)
        self.serial_lookups = []

    def location_exists(self, location):
        return location in self.locations

    def records_at_location(self, location):
        return [record for record in self.records if record.location == location]

    def records_by_serial(self, serials):
        self.serial_lookups.append(list(serials))
        wanted = set(serials)
        return [record for record in self.records if record.serial_number in wanted]


def _record(asset_id, serial, location, status="Allocated"):
    return InventoryRecord(asset_id=asset_id, serial_number=serial, status=status, location=location)


def _inventory():
    return [
        _record("A1", "SN-1", "HQ-3F"),
        _record("A2", "SN-2", "HQ-3F", status="In Store (New)"),
        _record("A3", "SN-3", "WH-1"),
        _record("A4", None, "HQ-3F", status="Lost / Missing"),
    ]


def test_reconcile_classifies_found_elsewhere_new_and_unscanned():
    provider = _FakeProvider(_inventory())

    result = reconcile("HQ-3F", [" SN-1 ", "SN-3", "SN-9", "SN-1", ""], provider)

    assert result.location == "HQ-3F"
    assert result.scanned == ["SN-1", "SN-3", "SN-9"]
    assert [(f.serial, f.asset_id, f.outcome) for f in result.found] == [
        ("SN-1", "A1", Outcome.FOUND),
        ("SN-3", "A3", Outcome.FOUND_DIFFERENT_LOCATION),
    ]
    assert result.found[1].location == "WH-1"
    assert result.missing == ["SN-9"]
    assert [record.asset_id for record in result.unscanned] == ["A2", "A4"]
    assert (result.total_items, result.found_items, result.missing_items) == (3, 2, 1)


def test_reconcile_counts_are_consistent():
    provider = _FakeProvider(_inventory())

    result = reconcile("HQ-3F", ["SN-2", "SN-3", "X-1", "X-2"], provider)

    assert result.found_items + result.missing_items == result.total_items
    scanned = set(result.scanned)
    assert all(record.location == "HQ-3F" for record in result.unscanned)
    assert all(record.serial_number not in scanned for record in result.unscanned)
    assert not set(result.missing) & {entry.serial for entry in result.found}


def test_reconcile_empty_scan_marks_whole_location_unscanned():
    provider = _FakeProvider(_inventory())

    result = reconcile("HQ-3F", [], provider)

    assert result.total_items == 0
    assert result.found == []
    assert result.missing == []
    assert [record.asset_id for record in result.unscanned] == ["A1", "A2", "A4"]
    assert provider.serial_lookups == []


def test_reconcile_serial_match_is_case_sensitive():
    provider = _FakeProvider(_inventory())

    result = reconcile("HQ-3F", ["sn-1"], provider)

    assert result.missing == ["sn-1"]
    assert "A1" in [record.asset_id for record in result.unscanned]


def test_reconcile_trims_location():
    provider = _FakeProvider(_inventory())

    result = reconcile("  WH-1 ", ["SN-3"], provider)

    assert result.location == "WH-1"
    assert result.found[0].outcome == Outcome.FOUND


@pytest.mark.parametrize("location", ["", "   ", None])
def test_reconcile_requires_location(location):
    with pytest.raises(InvalidArgument):
        reconcile(location, ["SN-1"], _FakeProvider(_inventory()))


def test_reconcile_rejects_unknown_location():
    with pytest.raises(InvalidArgument) as excinfo:
        reconcile("NOWHERE", ["SN-1"], _FakeProvider(_inventory()))
    assert "NOWHERE" in excinfo.value.message


def test_reconcile_duplicate_inventory_serial_uses_first_match_and_reports_it():
    records = _inventory() + [
        _record("A5", "SN-D", "HQ-3F"),
        _record("A6", "SN-D", "WH-1"),
    ]
    provider = _FakeProvider(records)

    result = reconcile("HQ-3F", ["SN-D"], provider)

    assert [entry.asset_id for entry in result.found] == ["A5"]
    assert result.duplicate_serials == ["SN-D"]
    assert "A5" not in [record.asset_id for record in result.unscanned]


def test_reconcile_propagates_snapshot_failures():
    class _Unavailable(_FakeProvider):
        def records_at_location(self, location):
            raise DependencyUnavailable("Inventory is temporarily unavailable; try again.")

    with pytest.raises(DependencyUnavailable):
        reconcile("HQ-3F", ["SN-1"], _Unavailable(_inventory()))


def test_index_by_serial_skips_blank_serials():
    index, duplicates = index_by_serial(
        [_record("A1", " SN-1", "HQ-3F"), _record("A2", "", "HQ-3F"), _record("A3", None, "WH-1")]
    )
    assert list(index) == ["SN-1"]
    assert duplicates == []
