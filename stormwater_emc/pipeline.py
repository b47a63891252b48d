"""
Storm Event Mean Concentration Pipeline
=======================================
Flow-weighted mean concentrations, mass loadings and area-normalized flux
rates from storm sampling data and watershed drainage areas.

Stages:
- Normalize the watershed table (station code -> drainage area)
- Normalize the water quality table into long (sample, constituent) records
- Compute EMC, mass load and flux rate per site/storm/season/year/constituent
- Roll the per-event results up to coarser levels (ratio of sums)
- Export every table as CSV
"""

from __future__ import annotations

import argparse
import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from .config import AnalysisConfig
from .emc import EMCCalculator
from .export import ResultExporter
from .loaders import load_water_quality, load_watershed
from .logging_utils import get_logger, log_banner, setup_logging
from .rollup import RollupAggregator
from .water_quality import WaterQualityNormalizer
from .watershed import WatershedNormalizer


@dataclass
class PipelineResult:
    """Tables produced by one pipeline run."""

    watersheds: pd.DataFrame
    samples: pd.DataFrame
    events: pd.DataFrame
    rollups: dict[str, pd.DataFrame] = field(default_factory=dict)
    summary: dict = field(default_factory=dict)


def run_pipeline(raw_water_quality: pd.DataFrame, raw_watershed: pd.DataFrame,
                 config: Optional[AnalysisConfig] = None,
                 logger: Optional[logging.Logger] = None) -> PipelineResult:
    """Run every analytical stage on already-loaded tables."""
    config = config or AnalysisConfig()
    logger = get_logger(logger)

    log_banner(logger, "DATA NORMALIZATION")
    watersheds = WatershedNormalizer(config, logger).normalize(raw_watershed)

    wq_normalizer = WaterQualityNormalizer(config, logger)
    samples = wq_normalizer.normalize(raw_water_quality, watersheds)

    events = EMCCalculator(config, logger).calculate(samples)
    rollups = RollupAggregator(config, logger).rollup_all(events)

    return PipelineResult(
        watersheds=watersheds,
        samples=samples,
        events=events,
        rollups=rollups,
        summary=dict(wq_normalizer.summary),
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    defaults = AnalysisConfig()
    p = argparse.ArgumentParser(description="Compute storm event mean concentrations.")
    p.add_argument("--water-quality", type=Path, default=defaults.water_quality_file,
                   help="water quality sample CSV")
    p.add_argument("--watershed", type=Path, default=defaults.watershed_file,
                   help="watershed area table (.xlsx or .csv)")
    p.add_argument("--output-dir", type=Path, default=defaults.output_dir)
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main execution function."""
    args = parse_args(argv)
    config = AnalysisConfig(
        water_quality_file=args.water_quality,
        watershed_file=args.watershed,
        output_dir=args.output_dir,
    )
    logger = setup_logging(config.output_dir)

    log_banner(logger, "STORM EVENT MEAN CONCENTRATION ANALYSIS")

    warnings.filterwarnings('ignore', category=FutureWarning)

    try:
        raw_watershed = load_watershed(config, logger)
        raw_wq = load_water_quality(config, logger)

        result = run_pipeline(raw_wq, raw_watershed, config, logger)

        ResultExporter(config, logger).export(result.events, result.rollups, result.samples)

        log_banner(logger, "ANALYSIS COMPLETE")
        logger.info(f"Results saved to: {config.output_dir.absolute()}")

    except FileNotFoundError as e:
        logger.error(f"Input file not found: {e}")
        raise
    except Exception as e:
        logger.exception(f"Analysis failed: {e}")
        raise


if __name__ == "__main__":
    main()
