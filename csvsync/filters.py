"""
Filter engine.

Stages run in a fixed order, each on the rows that survived the previous one:

1. fix format       - phone cells replaced by their normalized form
2. remove duplicates - first row per normalized phone is kept
3. message filter
4. template filter
5. optional projection onto the phone/template/message columns
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .analysis import analyze
from .columns import cell_at
from .models import FilterMode, FilterResult, FilterSpec, Table
from .phones import normalize_phone

logger = logging.getLogger(__name__)

Rows = List[List[str]]


def fix_format(rows: Rows, phone_idx: Optional[int]) -> Tuple[Rows, int]:
    if phone_idx is None:
        return rows, 0

    fixed: Rows = []
    corrected = 0
    for row in rows:
        if phone_idx < len(row):
            normalized = normalize_phone(row[phone_idx])
            if normalized != row[phone_idx]:
                row = list(row)
                row[phone_idx] = normalized
                corrected += 1
        fixed.append(row)
    return fixed, corrected


def remove_duplicates(rows: Rows, phone_idx: Optional[int]) -> Rows:
    # Rows without a phone have no key and are always kept
    if phone_idx is None:
        return rows

    seen: set[str] = set()
    kept: Rows = []
    for row in rows:
        key = normalize_phone(cell_at(row, phone_idx))
        if not key:
            kept.append(row)
        elif key not in seen:
            seen.add(key)
            kept.append(row)
    return kept


def matches_all_tokens(value: str, pattern: Optional[str]) -> bool:
    haystack = value.lower()
    return all(token in haystack for token in (pattern or "").lower().split())


def filter_by_content(rows: Rows, idx: Optional[int], mode: FilterMode, pattern: Optional[str] = None) -> Rows:
    if mode == "all":
        return rows
    if mode == "empty":
        return [r for r in rows if not cell_at(r, idx).strip()]
    if mode == "with_content":
        return [r for r in rows if cell_at(r, idx).strip()]
    if mode == "custom":
        return [r for r in rows if matches_all_tokens(cell_at(r, idx), pattern)]
    raise ValueError(f"Unknown filter mode: {mode}")


def project_main_columns(table: Table, rows: Rows) -> Tuple[List[str], Rows]:
    columns = table.roles.main_columns()
    headers = [table.headers[i] for i in columns]
    return headers, [[cell_at(row, i) for i in columns] for row in rows]


def apply_filters(table: Table, spec: FilterSpec) -> FilterResult:
    roles = table.roles
    rows: Rows = list(table.rows)
    corrected = 0

    if spec.phone_numbers.fix_format:
        rows, corrected = fix_format(rows, roles.phone)

    if spec.phone_numbers.remove_duplicates:
        rows = remove_duplicates(rows, roles.phone)

    rows = filter_by_content(rows, roles.message, spec.messages, spec.custom_message_filter)
    rows = filter_by_content(rows, roles.template, spec.templates, spec.custom_template_filter)

    if spec.show_only_main_columns and roles.main_columns():
        headers, rows = project_main_columns(table, rows)
        result = table.derive(rows, headers=headers)
    else:
        result = table.derive(rows)

    logger.debug(
        "Filters kept %d of %d rows (%d phones corrected)",
        result.row_count, table.row_count, corrected,
    )
    return FilterResult(table=result, stats=analyze(result, corrected=corrected))
