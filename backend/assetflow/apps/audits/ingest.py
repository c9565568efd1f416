"""CSV ingestion for scanned serial lists.

Auditors upload either an export with a serial column or a bare,
hand-typed list with one serial per line. Both shapes are accepted.
"""

from __future__ import annotations

import csv
import logging
import os
from typing import Iterator, Optional, Sequence

from .errors import InvalidArgument
from .normalize import normalize_serial, normalize_serials

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = int(os.getenv("AUDIT_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

SERIAL_HEADERS = frozenset({"serial", "serial number"})


def _is_serial_header(value: Optional[str]) -> bool:
    return normalize_serial(value).lower() in SERIAL_HEADERS


def _serial_column(header: Sequence[str]) -> Optional[int]:
    for index, name in enumerate(header):
        if _is_serial_header(name):
            return index
    return None


def _read_rows(text: str) -> Iterator[list[str]]:
    """Yield non-blank CSV rows, skipping any row the csv module rejects.

    Each line is parsed on its own, so an unbalanced quote only costs
    the line it appears on.
    """

    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            row = next(csv.reader([line], strict=True), [])
        except csv.Error as exc:
            logger.warning(
                "Skipping unreadable CSV row",
                extra={"line": line_number, "error": str(exc)},
            )
            continue
        if not any(cell.strip() for cell in row):
            continue
        yield row


def _serials_from_header(rows: list[list[str]]) -> list[str]:
    if not rows:
        return []
    column = _serial_column(rows[0])
    if column is None:
        return []
    return normalize_serials(row[column] if column < len(row) else "" for row in rows[1:])


def _serials_from_first_column(rows: list[list[str]]) -> list[str]:
    if rows and _serial_column(rows[0]) is not None:
        # A recognised header row is never a serial itself.
        rows = rows[1:]
    return normalize_serials(row[0] for row in rows if row)


def parse_serials(text: str) -> list[str]:
    """
    Extract the distinct scanned serials from CSV text.

    The first row is treated as a header and a `serial` / `serial number`
    column (any case) is used when present. When that yields nothing the
    text is read again without a header and the first column is used.
    The result is duplicate-free and keeps first-seen order.
    """

    if not text:
        return []
    rows = list(_read_rows(text.lstrip("\ufeff")))

    serials = _serials_from_header(rows)
    if serials:
        return serials
    return _serials_from_first_column(rows)


def decode_upload(content: bytes, *, max_bytes: int = MAX_UPLOAD_BYTES) -> str:
    """Decode an uploaded CSV file, accepting UTF-8 (with or without BOM) or Latin-1."""

    if len(content) > max_bytes:
        raise InvalidArgument(f"Uploaded file exceeds the {max_bytes} byte limit.")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("Upload is not UTF-8; decoding as Latin-1")
        return content.decode("latin-1")
