"""End-to-end tests for the pipeline and its CLI entry point."""

import logging

import numpy as np
import pandas as pd
import pytest

from stormwater_emc.config import SITE, VAR, AnalysisConfig
from stormwater_emc.loaders import load_water_quality, load_watershed
from stormwater_emc.logging_utils import LOG_FILE, LOGGER_NAME, setup_logging
from stormwater_emc.pipeline import main, run_pipeline


@pytest.fixture
def input_files(tmp_path, raw_water_quality, raw_watershed):
    wq_path = tmp_path / "wq.csv"
    raw_water_quality.to_csv(wq_path, index=False)

    ws_path = tmp_path / "watersheds.csv"
    with open(ws_path, "w") as f:
        f.write("Watershed drainage areas\n")
        raw_watershed.to_csv(f, index=False)
    return wq_path, ws_path


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestRunPipeline:
    """Test the in-memory pipeline."""

    def test_run(self, config, logger, raw_water_quality, raw_watershed):
        result = run_pipeline(raw_water_quality, raw_watershed, config, logger)

        assert len(result.watersheds) == 2
        assert len(result.samples) == 14
        assert len(result.events) == 8
        assert set(result.rollups) == set(config.rollup_levels)
        assert result.summary["unmatched_sites"] == ["XX"]

    def test_no_dissolved_fraction_anywhere(self, config, logger, raw_water_quality, raw_watershed):
        result = run_pipeline(raw_water_quality, raw_watershed, config, logger)
        tables = [result.samples, result.events, *result.rollups.values()]
        for table in tables:
            assert not table[VAR].str.startswith("DF").any()

    def test_rollups_conserve_mass(self, config, logger, raw_water_quality, raw_watershed):
        result = run_pipeline(raw_water_quality, raw_watershed, config, logger)
        total = result.events["mass_emitted_g"].sum()
        for table in result.rollups.values():
            assert table["mass_emitted_g"].sum() == pytest.approx(total)

    def test_missing_site_code_kept_as_null(self, config, logger, raw_water_quality,
                                             raw_watershed):
        raw = raw_water_quality.copy()
        raw.loc[5, "SITE"] = np.nan
        result = run_pipeline(raw, raw_watershed, config, logger)

        assert set(result.events[SITE].dropna()) == {"CH", "USJC"}
        assert result.events[SITE].isna().any()
        assert result.rollups["site"][SITE].isna().any()


class TestLoaders:
    """Test reading the raw input files."""

    def test_load(self, input_files, logger):
        wq_path, ws_path = input_files
        config = AnalysisConfig(water_quality_file=wq_path, watershed_file=ws_path)

        wq = load_water_quality(config, logger)
        ws = load_watershed(config, logger)

        assert len(wq) == 7
        assert wq["DATE"].iloc[0] == "01/15/2020"
        assert wq["TIME"].iloc[0] == "10:00"
        assert list(ws.columns) == ["Station Code", "Area", "Notes"]

    def test_missing_file(self, tmp_path, logger):
        config = AnalysisConfig(water_quality_file=tmp_path / "missing.csv")
        with pytest.raises(FileNotFoundError):
            load_water_quality(config, logger)


class TestMain:
    """Test the command line entry point."""

    def test_main_writes_outputs(self, tmp_path, input_files):
        wq_path, ws_path = input_files
        out_dir = tmp_path / "results"

        main(["--water-quality", str(wq_path), "--watershed", str(ws_path),
              "--output-dir", str(out_dir)])

        expected = [
            "emc_by_event.csv",
            "emc_all_sites.csv",
            "emc_all_sites_seasons.csv",
            "emc_site.csv",
            "emc_constituent.csv",
            "samples_long.csv",
            LOG_FILE,
        ]
        for name in expected:
            assert (out_dir / name).exists(), name

        events = pd.read_csv(out_dir / "emc_by_event.csv")
        assert len(events) == 8
        samples = pd.read_csv(out_dir / "samples_long.csv")
        assert samples["TIMESTAMP"].dropna().iloc[0] == "2020-01-15T10:00:00-08:00"

    def test_main_missing_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            main(["--water-quality", str(tmp_path / "nope.csv"),
                  "--watershed", str(tmp_path / "nope.xlsx"),
                  "--output-dir", str(tmp_path / "out")])


class TestSetupLogging:
    """Test the run log configuration."""

    def test_file_and_console_handlers(self, tmp_path):
        logger = setup_logging(tmp_path / "logs")
        logger.debug("debug detail")

        levels = sorted(handler.level for handler in logger.handlers)
        assert levels == [logging.DEBUG, logging.INFO]
        for handler in logger.handlers:
            handler.flush()
        assert "debug detail" in (tmp_path / "logs" / LOG_FILE).read_text()

    def test_repeated_setup_does_not_duplicate(self, tmp_path):
        setup_logging(tmp_path / "first")
        logger = setup_logging(tmp_path / "second", console_level=logging.WARNING)

        assert len(logger.handlers) == 2
        stream = [h for h in logger.handlers if not isinstance(h, logging.FileHandler)]
        assert stream[0].level == logging.WARNING
