"""
Text <-> Table conversion.

Responsibilities:
- decoding uploaded bytes to text (encoding detection, BOM, newlines)
- delimiter sniffing
- quote-aware parsing into a Table
- symmetric serialization with minimal quoting
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Sequence

from charset_normalizer import from_bytes

from .errors import ParseError
from .models import DecodedUpload, DecodeReport, Table
from .rules import NORMALIZED_DELIMITER, SNIFF_DELIMITERS

logger = logging.getLogger(__name__)

_UTF8_BOM = b"\xef\xbb\xbf"


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def decode_upload(raw: bytes) -> DecodedUpload:
    """
    Decode uploaded bytes to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is consumed, never kept in the first header name.
    - If decode fails, try UTF-8, then UTF-8 with replacement characters.
    - Newlines are normalized to LF.
    """
    detected = None
    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    bom_stripped = False
    if raw.startswith(_UTF8_BOM):
        decode_used = "utf-8-sig"
        bom_stripped = True

    decode_fallback = False

    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        try:
            text = raw.decode("utf-8")
            decode_used = "utf-8"
            decode_fallback = True
        except UnicodeDecodeError:
            # Last resort: keep going with replacement characters
            text = raw.decode("utf-8", errors="replace")
            decode_used = "utf-8"
            decode_fallback = True

    normalized = normalize_newlines(text)

    if decode_fallback:
        logger.warning("Upload decoded with fallback encoding %s (detected %s)", decode_used, detected)

    return DecodedUpload(
        text=normalized,
        report=DecodeReport(
            detected=detected,
            decode_used=decode_used,
            decode_fallback=decode_fallback,
            bom_stripped=bom_stripped,
            newlines_changed=normalized != text,
        ),
    )


def sniff_delimiter(text: str) -> str:
    sample = text[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS)
    except csv.Error:
        return NORMALIZED_DELIMITER
    return dialect.delimiter


def _drop_blank_lines(text: str) -> str:
    """Remove whitespace-only lines that are not inside a quoted field."""
    kept = []
    in_quotes = False
    for line in text.split("\n"):
        if in_quotes or line.strip():
            kept.append(line)
        if line.count('"') % 2:
            in_quotes = not in_quotes
    return "\n".join(kept)


def parse(text: str, delimiter: str = NORMALIZED_DELIMITER) -> Table:
    """
    Parse CSV text into a Table.

    Blank lines are dropped; a quoted whitespace-only field is data. The
    first remaining record is the header row.
    Quoted fields may contain the delimiter and newlines; a doubled quote
    inside a quoted field is a literal quote.
    """
    inp = io.StringIO(_drop_blank_lines(normalize_newlines(text or "")), newline="")
    try:
        records = [r for r in csv.reader(inp, delimiter=delimiter) if r]
    except csv.Error as e:
        raise ParseError(f"Invalid CSV: {e}") from e

    if not records:
        raise ParseError("Invalid CSV: no data found")

    headers = [h.strip() for h in records[0]]
    logger.debug("Parsed CSV with %d columns and %d rows", len(headers), len(records) - 1)
    return Table(headers=headers, rows=records[1:], raw_text=text or "")


def escape_cell(value: str, delimiter: str = NORMALIZED_DELIMITER) -> str:
    value = value if value is not None else ""
    if delimiter in value or '"' in value or "\n" in value or "\r" in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def serialize(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    delimiter: str = NORMALIZED_DELIMITER,
) -> str:
    lines = [delimiter.join(escape_cell(h, delimiter) for h in headers)]
    for row in rows:
        if len(row) == 1 and not (row[0] or "").strip():
            # A lone blank cell must stay quoted or it reads back as a blank line
            lines.append('"' + (row[0] or "") + '"')
        else:
            lines.append(delimiter.join(escape_cell(c, delimiter) for c in row))
    return "\n".join(lines)


def to_csv(table: Table, delimiter: str = NORMALIZED_DELIMITER) -> str:
    return serialize(table.headers, table.rows, delimiter)
