"""Shared fixtures for the EMC pipeline tests."""

import logging

import pandas as pd
import pytest

from stormwater_emc.config import AnalysisConfig


@pytest.fixture
def config(tmp_path):
    return AnalysisConfig(output_dir=tmp_path / "out")


@pytest.fixture
def logger():
    return logging.getLogger("stormwater_emc.tests")


@pytest.fixture
def raw_watershed():
    return pd.DataFrame({
        "Station Code": ["CH1", "USJ", "CH2", "ZZ", None],
        "Area": ["2.5", "10", "2.5", "n/a", "4"],
        "Notes": ["a", "b", "c", "d", "e"],
    })


@pytest.fixture
def raw_water_quality():
    return pd.DataFrame({
        "SITE": ["CH1", "CH1", "CH1", "USJC2", "USJC2", "XX", "CH1"],
        "DATE": ["01/15/2020", "01/15/2020", "01/15/2020", "02/01/2020", "02/01/2020",
                 "03/01/2020", "bad"],
        "TIME": ["10:00", "10:30", "12:00", "08:00", "09:00", "08:00", "10:00"],
        "TYPE": ["wet", "wet", "wet", "wet", "wet", "dry", "wet"],
        "SEASON": ["winter", "winter", "winter", "winter", "winter", "spring", "winter"],
        "FLOWCMS": [0.05, 0.10, 0.02, 0.2, 0.1, 0.01, 0.3],
        "SIZE": ["S", "S", "S", "L", "L", "S", "S"],
        "GEO": ["U", "U", "U", "R", "R", "U", "U"],
        "TSS": [100, 200, 50, 80, 40, 10, 999],
        "CU": ["10", "20", "<5", "5", "2", "1", "9"],
        "DFCU": [3, 4, 1, 2, 1, 1, 1],
    })
