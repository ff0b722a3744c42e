"""
Descriptive Statistics
Per-condition summaries and the healthy reference range for CRTAC1
"""

import logging
from dataclasses import dataclass

import pandas as pd

from ..data_processing.conditions import REFERENCE_CONDITION
from ..data_processing.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)

MIN_GROUP_SIZE = 3


@dataclass(frozen=True)
class NormalRange:
    """Healthy reference interval on the log10 CRTAC1 scale."""

    mean: float
    low: float
    high: float
    n: int

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([{
            'n_healthy': self.n,
            'mean': self.mean,
            'low': self.low,
            'high': self.high,
        }])


def check_group_sizes(samples: pd.DataFrame, min_size: int = MIN_GROUP_SIZE) -> pd.Series:
    """Return observed group sizes, raising InsufficientDataError for any group below min_size."""
    counts = samples.groupby('patient_condition', observed=True).size()
    small = counts[counts < min_size]
    if not small.empty:
        raise InsufficientDataError(
            f"Conditions with fewer than {min_size} samples: {small.to_dict()}"
        )
    return counts


def summarize_by_condition(samples: pd.DataFrame, min_group_size: int = MIN_GROUP_SIZE) -> pd.DataFrame:
    """
    Mean age and mean log10 CRTAC1 per condition.

    Parameters:
    -----------
    samples : pd.DataFrame
        Unified sample table
    min_group_size : int
        Smallest group for which a mean is reported

    Returns:
    --------
    pd.DataFrame
        One row per observed condition, sorted by descending mean CRTAC1
    """
    check_group_sizes(samples, min_group_size)
    summary = (
        samples
        .groupby('patient_condition', observed=True)
        .agg(
            n=('sample_id', 'size'),
            mean_age=('age', 'mean'),
            mean_log10_CRTAC1_nm=('log10_CRTAC1_nm', 'mean'),
            sd_log10_CRTAC1_nm=('log10_CRTAC1_nm', 'std'),
        )
        .reset_index()
        .sort_values('mean_log10_CRTAC1_nm', ascending=False, ignore_index=True)
    )
    summary['patient_condition'] = summary['patient_condition'].astype(str)
    return summary


def compute_normal_range(samples: pd.DataFrame, n_sd: float = 3.0) -> NormalRange:
    """Mean +/- n_sd standard deviations of log10 CRTAC1 in healthy samples."""
    healthy = samples.loc[samples['patient_condition'] == REFERENCE_CONDITION, 'log10_CRTAC1_nm']
    if len(healthy) < MIN_GROUP_SIZE:
        raise InsufficientDataError(
            f"Normal range needs at least {MIN_GROUP_SIZE} {REFERENCE_CONDITION} samples, "
            f"found {len(healthy)}"
        )
    mean = float(healthy.mean())
    sd = float(healthy.std())
    normal_range = NormalRange(mean=mean, low=mean - n_sd * sd, high=mean + n_sd * sd, n=len(healthy))
    logger.info(
        f"Normal range from {normal_range.n} healthy samples: "
        f"{normal_range.low:.3f} - {normal_range.high:.3f} (mean {normal_range.mean:.3f})"
    )
    return normal_range
