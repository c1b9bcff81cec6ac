from __future__ import annotations

from typing import List

from .codec import to_csv
from .models import Table
from .rules import NORMALIZED_DELIMITER


def split_table(table: Table, max_rows_per_part: int) -> List[Table]:
    """
    Partition rows into contiguous parts of at most ``max_rows_per_part``.

    A non-positive size, or one that already fits the whole table, returns
    the table itself as the only part.
    """
    if max_rows_per_part <= 0 or max_rows_per_part >= table.row_count:
        return [table]

    return [
        table.derive(table.rows[start:start + max_rows_per_part])
        for start in range(0, table.row_count, max_rows_per_part)
    ]


def split_to_csv(table: Table, max_rows_per_part: int, delimiter: str = NORMALIZED_DELIMITER) -> List[str]:
    return [to_csv(part, delimiter) for part in split_table(table, max_rows_per_part)]
