"""
Event mean concentration (EMC) calculation
==========================================

For each group of time-ordered samples the flow record is integrated into a
volume, concentration × volume into a transported mass, and the two are
combined into:

- ``emc_g_per_l``: flow-weighted mean concentration (mass / volume)
- ``massload_kg_per_day``: mass transported per day of the sampled period
- ``fluxrate_kg_per_yr_per_km2``: annualized load per unit drainage area

The first sample in a group is credited with one minute of flow. Every later
sample is credited with the minutes elapsed since the previous sample.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .config import (
    AREA,
    EVENT_KEY,
    FLOW,
    METRIC_COLUMNS,
    MG_PER_L,
    TIMESTAMP,
    UG_PER_L,
    UNIT,
    VALUE,
    AnalysisConfig,
)
from .grouping import group_records
from .logging_utils import get_logger, log_banner

LITERS_PER_CUBIC_METER = 1000
SECONDS_PER_MINUTE = 60
FIRST_SAMPLE_MINUTES = 1.0
DAYS_PER_YEAR = 365
KG_PER_G = 1e-3

# Concentration unit -> factor converting (liters × concentration) to grams
MASS_TO_GRAMS = {
    MG_PER_L: 1e-3,
    UG_PER_L: 1e-6,
}


@dataclass(frozen=True)
class EMCResult:
    """EMC metrics for one group of samples."""

    key: tuple
    n_samples: int
    mass_emitted_g: float
    liters_total: float
    days_elapsed: float
    emc_g_per_l: float
    massload_kg_per_day: float
    fluxrate_kg_per_yr_per_km2: float

    def metrics(self) -> dict:
        values = asdict(self)
        values.pop('key')
        return values

    @classmethod
    def empty(cls, key: tuple = ()) -> "EMCResult":
        return cls(key, 0, np.nan, np.nan, np.nan, np.nan, np.nan, np.nan)


def safe_divide(numerator, denominator):
    """Divide, yielding NaN wherever the denominator is zero or null.

    Works element-wise on arrays and Series; scalars come back as ``float``.
    """
    num = np.asarray(numerator, dtype=float)
    den = np.asarray(denominator, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        out = np.where((den == 0) | np.isnan(den), np.nan, num / den)
    return float(out) if out.ndim == 0 else out


def derive_rates(mass_emitted_g, liters_total, days_elapsed, area_km2):
    """Return ``(emc_g_per_l, massload_kg_per_day, fluxrate_kg_per_yr_per_km2)``."""
    emc = safe_divide(mass_emitted_g, liters_total)
    massload = safe_divide(np.asarray(mass_emitted_g, dtype=float) * KG_PER_G, days_elapsed)
    fluxrate = safe_divide(np.asarray(massload, dtype=float) * DAYS_PER_YEAR, area_km2)
    return emc, massload, fluxrate


def elapsed_minutes(timestamps) -> np.ndarray:
    """Minutes since the previous sample; the first sample counts as one minute."""
    ts = pd.Series(pd.to_datetime(timestamps)).reset_index(drop=True)
    if ts.empty:
        return np.array([], dtype=float)
    minutes = ts.diff().dt.total_seconds().to_numpy(dtype=float) / SECONDS_PER_MINUTE
    minutes[0] = FIRST_SAMPLE_MINUTES
    return minutes


def mass_emitted(contributions) -> float:
    """Largest value reached by the running total of mass contributions."""
    contributions = np.asarray(contributions, dtype=float)
    if contributions.size == 0:
        return np.nan
    return float(np.max(np.cumsum(contributions)))


def to_grams(mass, unit: str) -> float:
    try:
        return mass * MASS_TO_GRAMS[unit]
    except KeyError:
        raise ValueError(f"Unknown concentration unit: {unit!r}") from None


def compute_emc(group: pd.DataFrame, key: tuple = ()) -> EMCResult:
    """Compute EMC metrics for one group's samples.

    Rows with a null concentration or timestamp are discarded first. The
    remaining rows are ordered by timestamp; the concentration unit and
    drainage area are taken from the group. A null flow propagates into a
    null mass and volume.
    """
    if group.empty:
        return EMCResult.empty(key)

    unit = group[UNIT].iloc[0]
    area = group[AREA].iloc[0] if AREA in group.columns else np.nan

    samples = group[group[VALUE].notna() & group[TIMESTAMP].notna()]
    samples = samples.sort_values(TIMESTAMP, kind='mergesort')
    if samples.empty:
        return EMCResult.empty(key)

    liters_per_minute = (
        samples[FLOW].to_numpy(dtype=float) * SECONDS_PER_MINUTE * LITERS_PER_CUBIC_METER
    )
    liters = liters_per_minute * elapsed_minutes(samples[TIMESTAMP])
    contributions = liters * samples[VALUE].to_numpy(dtype=float)

    mass_g = to_grams(mass_emitted(contributions), unit)
    liters_total = float(np.sum(liters))
    days = (samples[TIMESTAMP].max() - samples[TIMESTAMP].min()).total_seconds() / 86400

    area = np.nan if pd.isna(area) else float(area)
    emc, massload, fluxrate = derive_rates(mass_g, liters_total, days, area)

    return EMCResult(
        key=key,
        n_samples=len(samples),
        mass_emitted_g=mass_g,
        liters_total=liters_total,
        days_elapsed=days,
        emc_g_per_l=emc,
        massload_kg_per_day=massload,
        fluxrate_kg_per_yr_per_km2=fluxrate,
    )


class EMCCalculator:
    """Applies :func:`compute_emc` to every group of the long-format table."""

    def __init__(self, config: Optional[AnalysisConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or AnalysisConfig()
        self.logger = get_logger(logger)

    def calculate(self, samples: pd.DataFrame, keys: Sequence[str] = EVENT_KEY) -> pd.DataFrame:
        """Return one row per group: key columns followed by the EMC metrics."""
        log_banner(self.logger, "EVENT MEAN CONCENTRATIONS")
        keys = list(keys)

        groups = group_records(samples, keys)
        self.logger.info(f"Computing EMC for {len(groups):,} groups")

        rows = []
        for key, group in groups.items():
            result = compute_emc(group, key)
            rows.append({**dict(zip(keys, key)), **result.metrics()})

        results = pd.DataFrame(rows, columns=keys + METRIC_COLUMNS)
        for col in keys:
            results[col] = results[col].astype(samples[col].dtype)
        self._log_quality(results)
        return results

    def _log_quality(self, results: pd.DataFrame) -> None:
        if results.empty:
            self.logger.warning("  No groups to compute")
            return

        n_empty = int((results['n_samples'] == 0).sum())
        n_single = int((results['n_samples'] == 1).sum())
        n_no_emc = int(results['emc_g_per_l'].isna().sum())
        n_no_flux = int(results['fluxrate_kg_per_yr_per_km2'].isna().sum())

        if n_empty > 0:
            self.logger.warning(f"  {n_empty:,} groups without any usable sample")
        if n_single > 0:
            self.logger.info(f"  {n_single:,} single-sample groups (no load or flux rate)")
        self.logger.info(f"  EMC undefined for {n_no_emc:,} groups, flux rate undefined for {n_no_flux:,}")
