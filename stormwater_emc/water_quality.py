"""Cleaning and reshaping of raw storm sample records into long format."""

from __future__ import annotations

import logging
from datetime import timedelta, timezone
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

from .config import (
    AREA,
    DATE,
    FLOW,
    MG_PER_L,
    SEASON,
    SITE,
    STORM,
    TIME,
    TIMESTAMP,
    TIMESTAMP_VALID,
    TYPE,
    UG_PER_L,
    UNIT,
    VALUE,
    VAR,
    YEAR,
    AnalysisConfig,
)
from .exceptions import require_columns
from .logging_utils import get_logger

REQUIRED_COLUMNS = [SITE, DATE, TIME, TYPE, SEASON, FLOW]

LONG_COLUMNS = [SITE, STORM, TIMESTAMP, TIMESTAMP_VALID, YEAR, TYPE, SEASON, FLOW, AREA, VAR, UNIT, VALUE]


def assign_unit(constituent: str, mg_per_l: Iterable[str]) -> str:
    """Map a constituent name to its concentration unit (mg/L or ug/L)."""
    mg_names = {str(name).strip().upper() for name in mg_per_l}
    return MG_PER_L if str(constituent).strip().upper() in mg_names else UG_PER_L


def split_site_storm(codes: pd.Series, sentinel: str = "1") -> tuple[pd.Series, pd.Series]:
    """Split raw site codes like ``"CH2"`` into site ``"CH"`` and storm ``"2"``.

    Codes without a storm suffix get ``sentinel`` as their storm id. A null
    code gives a null site and a null storm.
    """
    codes = codes.astype('string').str.strip()
    site = codes.str.replace(r"\d+$", "", regex=True)
    storm = codes.str.replace(r"^[A-Za-z]+", "", regex=True)
    storm = storm.where(storm.isna() | (storm != ""), sentinel)
    return _to_object(site), _to_object(storm)


def _to_object(values: pd.Series) -> pd.Series:
    return values.astype(object).where(values.notna(), np.nan)



class WaterQualityNormalizer:
    """Turns the wide raw sample table into one row per (sample, constituent)."""

    def __init__(self, config: AnalysisConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = get_logger(logger)
        self.summary: dict[str, Any] = {}

    def normalize(self, raw: pd.DataFrame, watersheds: pd.DataFrame) -> pd.DataFrame:
        """Clean ``raw`` and join ``watersheds`` (columns SITE, AREA_KM2) onto it."""
        require_columns(raw, REQUIRED_COLUMNS, "water quality")
        self.logger.info("Normalizing water quality table...")
        self.summary = {'raw_rows': len(raw)}

        df = self._drop_columns(raw)
        df = self._parse_flow(df)
        df = self._parse_timestamps(df)
        df = self._derive_site_and_storm(df)
        df = self._derive_year(df)
        df = self._join_area(df, watersheds)
        df = self._reshape_long(df)
        df = self._drop_dissolved_fraction(df)
        df = self._parse_values(df)
        df = self._assign_units(df)
        df = self._check_duplicates(df)

        self.summary['long_rows'] = len(df)
        self.logger.info(
            f"Normalization complete: {len(raw):,} samples → {len(df):,} constituent records"
        )
        return df[LONG_COLUMNS].reset_index(drop=True)

    def _drop_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Drop descriptor columns that play no part in the analysis."""
        to_drop = [col for col in self.config.drop_columns if col in df.columns]
        return df.drop(columns=to_drop)

    def _parse_flow(self, df: pd.DataFrame) -> pd.DataFrame:
        """Coerce instantaneous flow to numeric (non-numeric -> null)."""
        raw_present = df[FLOW].notna()
        df[FLOW] = pd.to_numeric(df[FLOW], errors='coerce')
        n_coerced = int((raw_present & df[FLOW].isna()).sum())
        if n_coerced > 0:
            self.logger.warning(f"  {n_coerced:,} non-numeric flows set to null")
        return df

    def _parse_timestamps(self, df: pd.DataFrame) -> pd.DataFrame:
        """Combine DATE and TIME into a fixed-offset timestamp."""
        self.logger.debug("Parsing date/time columns")

        combined = (
            df[DATE].astype(str).str.strip() + ' ' + df[TIME].astype(str).str.strip()
        )
        parsed = pd.Series(pd.NaT, index=df.index, dtype='datetime64[ns]')
        for fmt in self.config.timestamp_formats:
            missing = parsed.isna()
            if not missing.any():
                break
            parsed[missing] = pd.to_datetime(combined[missing], format=fmt, errors='coerce')

        tz = timezone(timedelta(hours=self.config.utc_offset_hours))
        df = df.drop(columns=[DATE, TIME])
        df[TIMESTAMP] = parsed.dt.tz_localize(tz)
        df[TIMESTAMP_VALID] = parsed.notna()

        n_invalid = int((~df[TIMESTAMP_VALID]).sum())
        self.summary['invalid_timestamps'] = n_invalid
        if n_invalid > 0:
            self.logger.warning(
                f"  {n_invalid:,} samples with unparsable date/time - excluded from EMC"
            )
        return df

    def _derive_site_and_storm(self, df: pd.DataFrame) -> pd.DataFrame:
        """Split raw site codes into site and storm number."""
        df[SITE], df[STORM] = split_site_storm(df[SITE], self.config.storm_sentinel)

        n_no_site = int(df[SITE].isna().sum())
        self.summary['missing_sites'] = n_no_site
        if n_no_site > 0:
            self.logger.warning(f"  {n_no_site:,} samples without a site code")
        self.logger.info(
            f"  Sites: {df[SITE].nunique():,}, storms: {df[STORM].nunique():,}"
        )
        return df

    def _derive_year(self, df: pd.DataFrame) -> pd.DataFrame:
        df[YEAR] = df[TIMESTAMP].dt.year.astype('Int64')
        return df

    def _join_area(self, df: pd.DataFrame, watersheds: pd.DataFrame) -> pd.DataFrame:
        """Left-join drainage area by normalized site code."""
        df = df.drop(columns=[AREA], errors='ignore')
        df = df.merge(watersheds[[SITE, AREA]], on=SITE, how='left', validate='many_to_one')

        unmatched = sorted(df.loc[df[AREA].isna(), SITE].dropna().unique())
        self.summary['unmatched_sites'] = unmatched
        if unmatched:
            self.logger.warning(
                f"  No watershed area for {len(unmatched)} site(s): {', '.join(unmatched)}"
            )
        return df

    def _reshape_long(self, df: pd.DataFrame) -> pd.DataFrame:
        """Melt one-column-per-constituent into (sample, constituent) rows."""
        id_cols = [col for col in self.config.id_columns if col in df.columns]
        value_cols = [col for col in df.columns if col not in id_cols]
        if not value_cols:
            self.logger.warning("  No constituent columns found")

        long_df = df.melt(id_vars=id_cols, value_vars=value_cols, var_name=VAR, value_name=VALUE)
        long_df[VAR] = long_df[VAR].astype(str)
        self.summary['constituents'] = value_cols
        return long_df

    def _drop_dissolved_fraction(self, df: pd.DataFrame) -> pd.DataFrame:
        """Remove dissolved-fraction constituents from all downstream accounting."""
        prefix = self.config.excluded_prefix.upper()
        mask = df[VAR].str.upper().str.startswith(prefix)
        dropped = sorted(df.loc[mask, VAR].unique())
        if dropped:
            self.logger.info(f"  Excluding {len(dropped)} dissolved-fraction variables: {', '.join(dropped)}")
        self.summary['excluded_constituents'] = dropped
        return df[~mask].copy()

    def _parse_values(self, df: pd.DataFrame) -> pd.DataFrame:
        raw_present = df[VALUE].notna()
        df[VALUE] = pd.to_numeric(df[VALUE], errors='coerce')
        n_coerced = int((raw_present & df[VALUE].isna()).sum())
        self.summary['unparsable_values'] = n_coerced
        if n_coerced > 0:
            self.logger.warning(f"  {n_coerced:,} non-numeric concentrations set to null")
        return df

    def _assign_units(self, df: pd.DataFrame) -> pd.DataFrame:
        units = {
            var: assign_unit(var, self.config.mg_per_l_constituents)
            for var in df[VAR].unique()
        }
        df[UNIT] = df[VAR].map(units)
        for var, unit in sorted(units.items()):
            self.logger.debug(f"  {var}: {unit}")
        return df

    def _check_duplicates(self, df: pd.DataFrame) -> pd.DataFrame:
        """Drop exact duplicates and report repeated record keys."""
        df = df.drop_duplicates()
        key = [SITE, STORM, TIMESTAMP, TYPE, SEASON, VAR]
        n_dup = int(df.duplicated(subset=key).sum())
        self.summary['duplicate_records'] = n_dup
        if n_dup > 0:
            self.logger.warning(f"  {n_dup:,} records share a site/storm/time/constituent key")
        return df
