from __future__ import annotations

import logging
from typing import List, Optional

from .columns import cell_at
from .models import Stats, Table
from .phones import is_valid_phone, normalize_phone
from .rules import PREVIEW_ROWS

logger = logging.getLogger(__name__)


def analyze(table: Table, corrected: Optional[int] = None) -> Stats:
    """
    Summarize a table.

    Phones are counted after normalization; a duplicate is a valid phone
    whose normalized value was already seen. A row with no message cell
    counts as an empty message.
    """
    phone_idx = table.roles.phone
    message_idx = table.roles.message

    valid = 0
    duplicates = 0
    empty_messages = 0
    seen: set[str] = set()

    for row in table.rows:
        if phone_idx is not None:
            phone = normalize_phone(cell_at(row, phone_idx))
            if is_valid_phone(phone):
                valid += 1
                if phone in seen:
                    duplicates += 1
                else:
                    seen.add(phone)

        if not cell_at(row, message_idx).strip():
            empty_messages += 1

    stats = Stats(
        total_records=table.row_count,
        valid_phone_numbers=valid,
        duplicate_phone_numbers=duplicates,
        empty_messages=empty_messages,
        corrected_phone_numbers=corrected,
    )
    logger.debug("Analyzed %d rows: %s", table.row_count, stats)
    return stats


def preview(table: Table, limit: int = PREVIEW_ROWS) -> List[List[str]]:
    return [list(row) for row in table.rows[:limit]]


def preview_text(table: Table, limit: int = PREVIEW_ROWS) -> str:
    """First phone numbers (or first cells) joined for a one-line summary."""
    idx = table.roles.phone if table.roles.phone is not None else 0
    values = [cell_at(row, idx) for row in table.rows[:limit]]
    return ", ".join(v for v in values if v)
