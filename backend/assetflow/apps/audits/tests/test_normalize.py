from __future__ import annotations

from assetflow.apps.audits.normalize import normalize_serial, normalize_serials


def test_normalize_serial_trims_whitespace_and_keeps_case():
    assert normalize_serial("  SN-001\t") == "SN-001"
    assert normalize_serial("abC123") == "abC123"


def test_normalize_serial_maps_none_and_blank_to_empty():
    assert normalize_serial(None) == ""
    assert normalize_serial("   ") == ""


def test_normalize_serial_stringifies_numbers():
    assert normalize_serial(123456) == "123456"


def test_normalize_serials_dedupes_in_first_seen_order():
    assert normalize_serials(["B", " A ", "", "B", None, "A", "C"]) == ["B", "A", "C"]


def test_normalize_serials_treats_case_variants_as_distinct():
    assert normalize_serials(["sn-1", "SN-1"]) == ["sn-1", "SN-1"]
