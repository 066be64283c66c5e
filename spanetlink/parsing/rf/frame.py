from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

FRAME_MARKER = "RF:"

# Row tags present in an RF status frame. There is no R8 or RD.
ROW_TAGS: tuple[str, ...] = ("R2", "R3", "R4", "R5", "R6", "R7", "R9", "RA", "RB", "RC", "RE", "RG")

ROW_SENTINELS = (",:*", ",:")
EMPTY_ROW_BODIES = (":*", ":")


class DecodeError(ValueError):
    """Base class for wire decoding failures."""


class MalformedFrameError(DecodeError):
    """Raised when a payload is not an RF status frame."""


@dataclass
class AttributeTable:
    """
    Rows of one RF status frame keyed by row tag.

    Fields are kept positionally as strings; interpretation happens in the
    attribute mapping, not here.
    """
    rows: dict[str, list[str]] = field(default_factory=dict)

    def __contains__(self, tag: str) -> bool:
        return tag in self.rows

    def __len__(self) -> int:
        return len(self.rows)

    def get_row(self, tag: str) -> list[str] | None:
        return self.rows.get(tag)

    def to_text(self) -> str:
        lines = [FRAME_MARKER]
        for tag in ROW_TAGS:
            fields = self.rows.get(tag)
            if fields is None:
                continue
            if fields:
                lines.append(f",{tag},{','.join(fields)},:")
            else:
                lines.append(f",{tag},:")
        return "\n".join(lines) + "\n"


def _decode_text(raw: bytes | str) -> str:
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


def _split_lines(text: str) -> list[str]:
    return [line.rstrip("\r\x00 ") for line in text.split("\n")]


def _row_body(line: str, tag: str) -> list[str] | None:
    body = line[len(tag) + 2:]
    if body in EMPTY_ROW_BODIES:
        return []
    for sentinel in ROW_SENTINELS:
        if body.endswith(sentinel):
            return body[: -len(sentinel)].split(",")
    return None


def parse(raw: bytes | str) -> AttributeTable:
    """
    Parse a raw RF status frame into an ``AttributeTable``.

    Each row looks like ``,<TAG>,f0,f1,...,fn,:`` (``,:*`` on some rows).
    Unknown tags are dropped and a repeated tag replaces the earlier row.

    Raises:
        MalformedFrameError: If the payload does not carry the ``RF:`` marker.
    """
    text = _decode_text(raw).rstrip("\x00")
    if FRAME_MARKER not in text:
        raise MalformedFrameError(f"Malformed response, no {FRAME_MARKER!r} marker in {len(text)} bytes")

    table = AttributeTable()
    for line in _split_lines(text):
        if not line.startswith(","):
            continue
        for tag in ROW_TAGS:
            if not line.startswith(f",{tag},"):
                continue
            fields = _row_body(line, tag)
            if fields is None:
                logger.debug("Skipping truncated row %s: %r", tag, line)
            else:
                table.rows[tag] = fields
            break
    return table


def is_frame_complete(data: bytes | str) -> bool:
    """True once the last non-empty line is the terminated final row of a frame."""
    text = _decode_text(data).rstrip("\x00\r\n ")
    if FRAME_MARKER not in text:
        return False
    last_line = _split_lines(text)[-1]
    final_tag = ROW_TAGS[-1]
    return last_line.startswith(f",{final_tag},") and _row_body(last_line, final_tag) is not None



def ends_on_row_boundary(data: bytes | str) -> bool:
    """
    True when a partial read can be handed to ``parse`` without losing a row.

    That is the case when the payload is not an RF frame at all, or when its
    last non-empty line is a terminated row.
    """
    text = _decode_text(data).rstrip("\x00\r\n ")
    if FRAME_MARKER not in text:
        return True
    return text.endswith(ROW_SENTINELS)
