"""Exceptions raised by the EMC pipeline.

Row-level problems (unparsable values, unmatched sites, zero denominators)
never raise; they become NaN. Only structural problems with an input table
are fatal.
"""

from __future__ import annotations


class EMCError(Exception):
    """Base class for pipeline errors."""


class MissingColumnsError(EMCError):
    """An input table lacks columns the pipeline requires."""

    def __init__(self, table: str, missing: list[str]):
        self.table = table
        self.missing = list(missing)
        super().__init__(f"{table} table missing columns: {', '.join(self.missing)}")


class AmbiguousWatershedError(EMCError):
    """One normalized station code maps to several different areas."""

    def __init__(self, conflicts: dict[str, list[float]]):
        self.conflicts = conflicts
        detail = "; ".join(f"{code}: {areas}" for code, areas in sorted(conflicts.items()))
        super().__init__(f"Conflicting watershed areas for {len(conflicts)} code(s): {detail}")


def require_columns(df, columns, table: str) -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise MissingColumnsError(table, missing)
