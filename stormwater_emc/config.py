"""Configuration settings for the storm event EMC analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# =============================================================================
# COLUMN NAMES
# =============================================================================

SITE = "SITE"
STORM = "STORM"
DATE = "DATE"
TIME = "TIME"
TIMESTAMP = "TIMESTAMP"
TIMESTAMP_VALID = "TIMESTAMP_VALID"
YEAR = "YEAR"
TYPE = "TYPE"
SEASON = "SEASON"
FLOW = "FLOWCMS"
AREA = "AREA_KM2"
VAR = "VAR"
UNIT = "UNIT"
VALUE = "VALUE"

MG_PER_L = "mg/L"
UG_PER_L = "ug/L"

# Full grouping key for per-site, per-storm results
EVENT_KEY = [SITE, STORM, UNIT, AREA, SEASON, YEAR, TYPE, VAR]

# Quantities summed when rolling results up to a coarser key
SUMMED_COLUMNS = [AREA, "n_samples", "mass_emitted_g", "liters_total", "days_elapsed"]

METRIC_COLUMNS = [
    "n_samples",
    "mass_emitted_g",
    "liters_total",
    "days_elapsed",
    "emc_g_per_l",
    "massload_kg_per_day",
    "fluxrate_kg_per_yr_per_km2",
]


@dataclass
class AnalysisConfig:
    """Configuration settings for the EMC pipeline."""

    # File paths
    water_quality_file: Path = Path("water_quality.csv")
    watershed_file: Path = Path("watersheds.xlsx")
    output_dir: Path = Path("emc_output")

    # Watershed reference table
    watershed_code_column: str = "Station Code"
    watershed_area_column: str = "Area"
    watershed_skiprows: int = 1
    station_code_fixes: dict = field(default_factory=lambda: {"USJ": "USJC"})
    watershed_conflict_policy: str = "first"  # "first" or "error"

    # Water quality table
    drop_columns: list = field(default_factory=lambda: ["SIZE", "GEO"])
    id_columns: list = field(default_factory=lambda: [
        SITE, STORM, TIMESTAMP, TIMESTAMP_VALID, YEAR, TYPE, SEASON, FLOW, AREA,
    ])
    excluded_prefix: str = "DF"  # dissolved fraction
    timestamp_formats: list = field(default_factory=lambda: [
        "%m/%d/%Y %H:%M",
        "%m/%d/%Y %H:%M:%S",
    ])
    utc_offset_hours: int = -8  # fixed offset, no daylight saving
    storm_sentinel: str = "1"  # site codes without a storm suffix

    # Constituents reported in mg/L; everything else is ug/L
    mg_per_l_constituents: list = field(default_factory=lambda: [
        "TSS",
        "SSC",
        "TDS",
        "TOC",
        "DOC",
        "TKN",
        "TN",
        "TP",
        "OP",
        "NO3",
        "NO2",
        "NH3",
        "CL",
        "SO4",
        "HARD",
        "OG",
    ])

    # Roll-up levels: name -> grouping key
    rollup_levels: dict = field(default_factory=lambda: {
        "all_sites": [STORM, UNIT, SEASON, YEAR, TYPE, VAR],
        "all_sites_seasons": [STORM, UNIT, YEAR, TYPE, VAR],
        "site": [SITE, UNIT, VAR],
        "constituent": [UNIT, VAR],
    })

    # Output settings
    export_long_table: bool = True
