from __future__ import annotations

import logging

from spanetlink.core.text import parse_bool, parse_float, safe_field_at
from spanetlink.parsing.rf.frame import AttributeTable

logger = logging.getLogger(__name__)

# Firmware revisions omit rows and columns, so a missing value resolves to
# the zero value of its type instead of raising.


def get_string(table: AttributeTable, tag: str, col: int) -> str:
    row = table.get_row(tag)
    if row is None:
        logger.debug("Frame has no row %s", tag)
        return ""
    value = safe_field_at(row, col)
    if value is None:
        logger.debug("Row %s has no col %d, len %d", tag, col, len(row))
        return ""
    return value


def get_float(table: AttributeTable, tag: str, col: int) -> float:
    # Unparseable numbers are reported as 0.0; this is lossy on purpose.
    value = parse_float(get_string(table, tag, col))
    return 0.0 if value is None else value


def get_bool_as_number(table: AttributeTable, tag: str, col: int) -> float:
    return 1.0 if parse_bool(get_string(table, tag, col)) else 0.0
