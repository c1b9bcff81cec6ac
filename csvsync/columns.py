"""
Column role resolution.

Headers are matched case-insensitively against an ordered alias list: an exact
match on any alias wins over a substring match, and among equal-quality
matches the leftmost header wins. Roles are resolved once per table and
carried with it, so every consumer sees the same column.
"""

from __future__ import annotations

from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from .rules import MESSAGE_ALIASES, PHONE_ALIASES, TEMPLATE_ALIASES


class ColumnRoles(BaseModel):
    model_config = ConfigDict(frozen=True)

    phone: Optional[int] = None
    template: Optional[int] = None
    message: Optional[int] = None

    def main_columns(self) -> list[int]:
        return [i for i in (self.phone, self.template, self.message) if i is not None]


def find_column(headers: Sequence[str], aliases: Sequence[str]) -> Optional[int]:
    lowered = [h.strip().lower() for h in headers]

    for alias in aliases:
        for i, name in enumerate(lowered):
            if name == alias:
                return i

    for alias in aliases:
        for i, name in enumerate(lowered):
            if alias in name:
                return i

    return None


def resolve_columns(headers: Sequence[str]) -> ColumnRoles:
    return ColumnRoles(
        phone=find_column(headers, PHONE_ALIASES),
        template=find_column(headers, TEMPLATE_ALIASES),
        message=find_column(headers, MESSAGE_ALIASES),
    )


def cell_at(row: Sequence[str], index: Optional[int]) -> str:
    """Positional lookup; short rows and unresolved columns read as ""."""
    if index is None or index >= len(row):
        return ""
    value = row[index]
    return value if value is not None else ""
