"""
Upload validation.

``validate_structure`` is the acceptance gate; ``validate_advanced`` is an
advisory pass whose issues are shown as warnings and never block anything.
"""

from __future__ import annotations

from typing import Dict, List

from .columns import cell_at, find_column
from .models import Table, ValidationIssue, ValidationResult
from .phones import is_valid_phone, normalize_phone
from .rules import REQUIRED_COLUMNS


def missing_required_columns(table: Table) -> List[str]:
    return [name for name in REQUIRED_COLUMNS if find_column(table.headers, (name,)) is None]


def validate_structure(table: Table) -> bool:
    return not missing_required_columns(table)


def validate_advanced(table: Table) -> ValidationResult:
    issues: List[ValidationIssue] = []

    if not table.headers or not any(h for h in table.headers):
        issues.append(ValidationIssue(issue="missing_headers", message="CSV has no headers"))
        return ValidationResult(is_valid=False, issues=issues)

    for name in missing_required_columns(table):
        issues.append(ValidationIssue(
            column=name,
            issue="missing_column",
            message=f"Missing required column: {name}",
        ))

    expected = len(table.headers)
    phone_idx = table.roles.phone
    phone_col = table.headers[phone_idx] if phone_idx is not None else None
    first_seen: Dict[str, int] = {}

    # Row numbers are 1-based and count the header as row 1
    for i, row in enumerate(table.rows, start=2):
        if len(row) != expected:
            issues.append(ValidationIssue(
                row=i,
                issue="row_width_mismatch",
                value=str(len(row)),
                message=f"Row {i}: expected {expected} columns, found {len(row)}",
            ))

        if phone_idx is None:
            continue

        raw = cell_at(row, phone_idx)
        key = normalize_phone(raw)
        if not is_valid_phone(key):
            issues.append(ValidationIssue(
                row=i,
                column=phone_col,
                issue="invalid_phone",
                value=raw,
                message=f"Row {i}: invalid phone number '{raw}'",
            ))
            continue

        if key in first_seen:
            issues.append(ValidationIssue(
                row=i,
                column=phone_col,
                issue="duplicate_phone",
                value=raw,
                message=f"Row {i}: duplicate phone number '{raw}' (first seen on row {first_seen[key]})",
            ))
        else:
            first_seen[key] = i

    return ValidationResult(is_valid=not issues, issues=issues)
