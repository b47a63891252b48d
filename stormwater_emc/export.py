"""Export of result tables to CSV."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from .config import TIMESTAMP, AnalysisConfig
from .logging_utils import get_logger, log_banner


class ResultExporter:
    """Writes the per-event table and every roll-up to the output directory."""

    def __init__(self, config: AnalysisConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = get_logger(logger)

    def export(self, event_results: pd.DataFrame, rollups: dict[str, pd.DataFrame],
               samples: Optional[pd.DataFrame] = None) -> list[Path]:
        """Write all tables and return the paths written."""
        log_banner(self.logger, "EXPORTING RESULTS")
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        written = [self._write(event_results, output_dir / 'emc_by_event.csv')]
        for name, table in rollups.items():
            written.append(self._write(table, output_dir / f'emc_{name}.csv'))

        if samples is not None and self.config.export_long_table:
            long_df = samples.copy()
            long_df[TIMESTAMP] = long_df[TIMESTAMP].map(
                lambda ts: ts.isoformat() if pd.notna(ts) else ''
            )
            written.append(self._write(long_df, output_dir / 'samples_long.csv'))

        return written

    def _write(self, df: pd.DataFrame, path: Path) -> Path:
        df.to_csv(path, index=False)
        self.logger.info(f"  Saved: {path.name}")
        return path
