"""
Exports for the downstream messaging platforms.

Both formats are projections: only the phone column survives, normalized.

- OmniChat: single ``fullNumber`` column, comma-delimited.
- Zenvia: ``celular`` and ``sms`` columns, the same SMS text on every row,
  caller-chosen delimiter (semicolon by default).
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import List, Optional

from .codec import serialize
from .columns import cell_at
from .errors import ExportError, MissingColumnError
from .models import ExportFormat, ExportOptions, ExportResult, SmsStatus, Table
from .phones import normalize_phone
from .rules import (
    FILENAME_PREFIX,
    OMNICHAT_DELIMITER,
    OMNICHAT_HEADER,
    SMS_LIMIT,
    SMS_WARNING_THRESHOLD,
    TARGET_ENCODING,
    ZENVIA_DELIMITER,
    ZENVIA_HEADERS,
)

logger = logging.getLogger(__name__)


def _normalized_phones(table: Table) -> List[str]:
    idx = table.roles.phone
    if idx is None:
        raise MissingColumnError("phone")
    return [normalize_phone(cell_at(row, idx)) for row in table.rows]


def export_omnichat(table: Table) -> str:
    phones = _normalized_phones(table)
    return serialize([OMNICHAT_HEADER], [[p] for p in phones], OMNICHAT_DELIMITER)


def export_zenvia(table: Table, sms_text: str, delimiter: str = ZENVIA_DELIMITER) -> str:
    phones = _normalized_phones(table)
    return serialize(list(ZENVIA_HEADERS), [[p, sms_text] for p in phones], delimiter)


def sms_length_status(text: str) -> SmsStatus:
    count = len(text or "")
    if count <= SMS_WARNING_THRESHOLD:
        return "ok"
    if count < SMS_LIMIT:
        return "near_limit"
    return "over_limit"


def _slug(value: str) -> str:
    # Anything outside word characters and "-" would be unsafe in a file name
    return re.sub(r"[^\w-]+", "-", value.strip()).strip("-").upper()


def build_filename(
    channel: ExportFormat,
    generated_at: datetime,
    scheduled_for: Optional[datetime] = None,
    theme: Optional[str] = None,
    prefix: Optional[str] = None,
) -> str:
    """PREFIX_CHANNEL_DISPARO_ddMMyyyy_HHmm[_THEME]_GERADO-ddMMyyyy_HHmm.csv"""
    scheduled = scheduled_for or generated_at
    parts = [
        _slug(prefix or "") or FILENAME_PREFIX,
        channel.upper(),
        "DISPARO",
        scheduled.strftime("%d%m%Y"),
        scheduled.strftime("%H%M"),
    ]
    slug = _slug(theme or "")
    if slug:
        parts.append(slug)
    parts.append("GERADO-" + generated_at.strftime("%d%m%Y_%H%M"))
    return "_".join(parts) + ".csv"


def export_table(table: Table, options: ExportOptions, now: Optional[datetime] = None) -> ExportResult:
    now = now or datetime.now()
    sms_status = None

    if options.format == "omnichat":
        content = export_omnichat(table)
    else:
        sms_text = options.sms_text or ""
        if not sms_text.strip():
            raise ExportError("SMS text is required for Zenvia exports")
        sms_status = sms_length_status(sms_text)
        if sms_status != "ok":
            logger.info("SMS text is %d characters (%s)", len(sms_text), sms_status)
        content = export_zenvia(table, sms_text, options.delimiter or ZENVIA_DELIMITER)

    filename = build_filename(
        options.format,
        generated_at=now,
        scheduled_for=options.scheduled_for,
        theme=options.theme,
        prefix=options.prefix,
    )
    return ExportResult(
        content=content,
        filename=filename,
        format=options.format,
        row_count=table.row_count,
        byte_size=len(content.encode(TARGET_ENCODING)),
        sms_status=sms_status,
    )
