"""Partitioning of long-format records by a grouping key."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from .exceptions import require_columns


def group_records(df: pd.DataFrame, keys: Sequence[str]) -> dict[tuple, pd.DataFrame]:
    """Partition ``df`` into ``{key tuple: rows}``.

    Null key values (a site with no watershed area, a sample with no year)
    form their own groups rather than being dropped.
    """
    keys = list(keys)
    require_columns(df, keys, "grouped")
    if df.empty:
        return {}

    groups = {}
    for key, rows in df.groupby(keys, dropna=False, sort=True, observed=True):
        if not isinstance(key, tuple):
            key = (key,)
        groups[key] = rows
    return groups
