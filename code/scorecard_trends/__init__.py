"""Search interest in colleges before and after the College Scorecard launch, by earnings group."""

from scorecard_trends.classify import EARNINGS_SENTINELS, HIGH_PERCENTILE, LOW_PERCENTILE, PERCENTILE_LABELS
from scorecard_trends.features import SCORECARD_LAUNCH
from scorecard_trends.ingest import MissingInputError

__version__ = "0.1.0"

__all__ = [
    "EARNINGS_SENTINELS",
    "HIGH_PERCENTILE",
    "LOW_PERCENTILE",
    "PERCENTILE_LABELS",
    "SCORECARD_LAUNCH",
    "MissingInputError",
]
