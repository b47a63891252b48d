"""Storm event mean concentrations, mass loadings and flux rates."""

from .config import AnalysisConfig
from .emc import EMCCalculator, EMCResult, compute_emc
from .exceptions import AmbiguousWatershedError, EMCError, MissingColumnsError
from .pipeline import PipelineResult, run_pipeline
from .rollup import RollupAggregator, rollup
from .water_quality import WaterQualityNormalizer
from .watershed import WatershedNormalizer, normalize_station_code

__version__ = "0.1.0"
