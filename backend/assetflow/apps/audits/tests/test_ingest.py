from __future__ import annotations

import pytest

from assetflow.apps.audits.errors import InvalidArgument
from assetflow.apps.audits.ingest import decode_upload, parse_serials


def test_parse_serials_uses_serial_column_by_header():
    text = "Asset,Serial Number,Notes\nLaptop,SN-1,ok\nMonitor, SN-2 ,\n"
    assert parse_serials(text) == ["SN-1", "SN-2"]


def test_parse_serials_header_match_ignores_case_and_padding():
    text = " SERIAL ,Room\nAB-1,3F\nAB-2,3F\n"
    assert parse_serials(text) == ["AB-1", "AB-2"]


def test_parse_serials_falls_back_to_first_column_without_header():
    text = "SN-10\nSN-11\n\nSN-10\n"
    assert parse_serials(text) == ["SN-10", "SN-11"]


def test_parse_serials_fallback_keeps_first_row_when_it_is_a_serial():
    text = "SN-1,extra\nSN-2,extra\n"
    assert parse_serials(text) == ["SN-1", "SN-2"]


def test_parse_serials_header_only_file_yields_nothing():
    assert parse_serials("Serial\n") == []
    assert parse_serials("serial number,location\n,\n") == []


def test_parse_serials_empty_serial_column_falls_back_to_first_column():
    text = "Tag,Serial\nT-1,\nT-2,\n"
    assert parse_serials(text) == ["T-1", "T-2"]


def test_parse_serials_handles_quoted_fields_and_bom():
    text = '\ufeffserial,comment\n"SN-9","has, comma"\n'
    assert parse_serials(text) == ["SN-9"]


def test_parse_serials_blank_input():
    assert parse_serials("") == []
    assert parse_serials("\n\n   \n") == []


def test_decode_upload_strips_utf8_bom():
    assert decode_upload("\ufeffSerial\nSN-1\n".encode("utf-8")) == "Serial\nSN-1\n"


def test_decode_upload_falls_back_to_latin1():
    assert decode_upload("Série\nSN-1\n".encode("latin-1")) == "Série\nSN-1\n"


def test_decode_upload_rejects_oversized_content():
    with pytest.raises(InvalidArgument):
        decode_upload(b"x" * 11, max_bytes=10)


def test_parse_serials_unbalanced_quote_only_loses_its_own_line():
    text = 'Serial\nA1\n"B2\nC3\nD4\n'
    assert parse_serials(text) == ["A1", "C3", "D4"]


def test_parse_serials_skips_malformed_row_without_header():
    text = 'SN-1\n"SN-2"x\nSN-3\n'
    assert parse_serials(text) == ["SN-1", "SN-3"]
