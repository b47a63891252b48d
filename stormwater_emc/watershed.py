"""Normalization of the watershed reference table (station code -> drainage area)."""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from .config import AREA, SITE, AnalysisConfig
from .exceptions import AmbiguousWatershedError, require_columns
from .logging_utils import get_logger

DEFAULT_CODE_FIXES = {"USJ": "USJC"}


def normalize_station_codes(codes: pd.Series, fixes: Optional[dict] = None) -> pd.Series:
    """Strip numeric suffixes from station codes and apply known corrections."""
    fixes = DEFAULT_CODE_FIXES if fixes is None else fixes
    stripped = codes.astype(str).str.strip().str.replace(r"\d+$", "", regex=True)
    return stripped.replace(fixes)


def normalize_station_code(code: str, fixes: Optional[dict] = None) -> str:
    """Normalize one station code.

    Idempotent: ``normalize_station_code(normalize_station_code(c)) == normalize_station_code(c)``.
    """
    return normalize_station_codes(pd.Series([code]), fixes).iloc[0]


class WatershedNormalizer:
    """Cleans the watershed table into a unique SITE -> AREA_KM2 lookup."""

    def __init__(self, config: AnalysisConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = get_logger(logger)

    def normalize(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Return a DataFrame with one row per normalized site code."""
        code_col = self.config.watershed_code_column
        area_col = self.config.watershed_area_column
        require_columns(raw, [code_col, area_col], "watershed")

        self.logger.info("Normalizing watershed table...")
        initial_rows = len(raw)

        df = raw[[code_col, area_col]].dropna()
        df = pd.DataFrame({
            SITE: normalize_station_codes(df[code_col], self.config.station_code_fixes),
            AREA: pd.to_numeric(df[area_col], errors='coerce'),
        })

        n_bad_area = df[AREA].isna().sum()
        if n_bad_area > 0:
            self.logger.warning(f"  Dropped {n_bad_area:,} watershed rows with non-numeric area")
        df = df.dropna(subset=[AREA])

        df = self._resolve_duplicates(df)

        self.logger.info(f"  Watershed sites: {initial_rows:,} rows → {len(df):,} unique codes")
        return df.reset_index(drop=True)

    def _resolve_duplicates(self, df: pd.DataFrame) -> pd.DataFrame:
        """Collapse repeated codes according to the configured conflict policy."""
        df = df.drop_duplicates()
        duplicated = df[df[SITE].duplicated(keep=False)]
        if duplicated.empty:
            return df

        conflicts = {
            site: group[AREA].tolist()
            for site, group in duplicated.groupby(SITE, sort=True)
        }

        if self.config.watershed_conflict_policy == "error":
            raise AmbiguousWatershedError(conflicts)
        if self.config.watershed_conflict_policy != "first":
            raise ValueError(
                f"Unknown watershed conflict policy: {self.config.watershed_conflict_policy!r}"
            )

        for site, areas in conflicts.items():
            self.logger.warning(f"  Conflicting areas for {site}: {areas} - keeping {areas[0]}")

        return df.drop_duplicates(subset=[SITE], keep='first')

    @staticmethod
    def to_mapping(watersheds: pd.DataFrame) -> dict[str, float]:
        return dict(zip(watersheds[SITE], watersheds[AREA]))
