"""Re-aggregation of per-event EMC results over coarser grouping keys.

Roll-ups sum mass, volume, duration and area over the finer rows and derive
the rates again from those sums. Finer EMCs are never averaged.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import pandas as pd

from .config import AREA, METRIC_COLUMNS, SUMMED_COLUMNS, AnalysisConfig
from .emc import derive_rates
from .exceptions import require_columns
from .logging_utils import get_logger, log_banner


def rollup(results: pd.DataFrame, keys: Sequence[str]) -> pd.DataFrame:
    """Aggregate an EMC result table to ``keys``.

    Summed columns are null only when every subsumed value is null.
    """
    keys = list(keys)
    require_columns(results, keys + SUMMED_COLUMNS, "EMC result")
    columns = keys + [AREA] + METRIC_COLUMNS
    if results.empty:
        return pd.DataFrame(columns=columns)

    summed = (
        results.groupby(keys, dropna=False, sort=True, observed=True)[SUMMED_COLUMNS]
        .sum(min_count=1)
        .reset_index()
    )
    summed['n_samples'] = summed['n_samples'].fillna(0).astype(int)

    emc, massload, fluxrate = derive_rates(
        summed['mass_emitted_g'], summed['liters_total'], summed['days_elapsed'], summed[AREA]
    )
    summed['emc_g_per_l'] = emc
    summed['massload_kg_per_day'] = massload
    summed['fluxrate_kg_per_yr_per_km2'] = fluxrate
    return summed[columns]


class RollupAggregator:
    """Produces every configured roll-up level from one EMC result table."""

    def __init__(self, config: Optional[AnalysisConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or AnalysisConfig()
        self.logger = get_logger(logger)

    def rollup_all(self, results: pd.DataFrame) -> dict[str, pd.DataFrame]:
        log_banner(self.logger, "ROLL-UP AGGREGATION")
        rollups = {}
        for name, keys in self.config.rollup_levels.items():
            rollups[name] = rollup(results, keys)
            self.logger.info(f"  {name} ({', '.join(keys)}): {len(rollups[name]):,} rows")
        return rollups
