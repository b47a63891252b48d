"""Reading of the raw input tables."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from .config import DATE, SITE, TIME, TYPE, SEASON, AnalysisConfig
from .logging_utils import get_logger

NA_VALUES = ['None', 'NA', 'N/A', '', 'null', 'NULL']


def load_water_quality(config: AnalysisConfig, logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """Load the water quality CSV, keeping codes and date/time as text."""
    logger = get_logger(logger)
    path = Path(config.water_quality_file)
    logger.info(f"Loading water quality data from {path}")

    dtype_spec = {SITE: 'str', DATE: 'str', TIME: 'str', TYPE: 'str', SEASON: 'str'}
    df = pd.read_csv(path, dtype=dtype_spec, na_values=NA_VALUES, low_memory=False)

    logger.info(f"Loaded {len(df):,} samples with {len(df.columns)} columns")
    return df


def load_watershed(config: AnalysisConfig, logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """Load the watershed reference table (spreadsheet or CSV)."""
    logger = get_logger(logger)
    path = Path(config.watershed_file)
    logger.info(f"Loading watershed areas from {path}")

    dtype_spec = {config.watershed_code_column: 'str'}
    if path.suffix.lower() in ('.xlsx', '.xlsm', '.xls'):
        df = pd.read_excel(path, skiprows=config.watershed_skiprows, dtype=dtype_spec,
                           na_values=NA_VALUES)
    else:
        df = pd.read_csv(path, skiprows=config.watershed_skiprows, dtype=dtype_spec,
                         na_values=NA_VALUES)

    logger.info(f"Loaded {len(df):,} watershed rows")
    return df
