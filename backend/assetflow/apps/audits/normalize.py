"""Serial number normalization shared by the CSV ingestor and reconciliation."""

from __future__ import annotations

from typing import Any, Iterable


def normalize_serial(raw: Any) -> str:
    """Trim surrounding whitespace; case is kept because hardware serials can be case-sensitive.

    `None` and whitespace-only values normalize to the empty string, which
    callers must discard.
    """

    if raw is None:
        return ""
    return str(raw).strip()


def normalize_serials(values: Iterable[Any]) -> list[str]:
    """Normalize, drop empties and deduplicate, keeping first-seen order."""

    seen: dict[str, None] = {}
    for value in values:
        serial = normalize_serial(value)
        if serial:
            seen.setdefault(serial, None)
    return list(seen)
