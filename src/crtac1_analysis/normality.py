"""
Normality Diagnostics
Shapiro-Wilk tests of log10 CRTAC1 within each condition and of model residuals.
The null hypothesis of each test is that the sample was drawn from a normal
distribution.
"""

import logging

import pandas as pd
from scipy import stats

from ..data_processing.conditions import CONDITION_LEVELS
from ..data_processing.exceptions import InsufficientDataError
from .linear_model import FittedModel
from .summary import MIN_GROUP_SIZE, check_group_sizes

logger = logging.getLogger(__name__)


def shapiro_by_condition(samples: pd.DataFrame, value_col: str = 'log10_CRTAC1_nm') -> pd.DataFrame:
    """Shapiro-Wilk W and p-value for every observed condition."""
    check_group_sizes(samples, MIN_GROUP_SIZE)
    rows = []
    conditions = samples['patient_condition'].astype(str)
    for level in CONDITION_LEVELS:
        values = samples.loc[conditions == level, value_col]
        if values.empty:
            continue
        w, p = stats.shapiro(values)
        rows.append({'patient_condition': level, 'n': len(values), 'W': float(w), 'p_value': float(p)})
    results = pd.DataFrame(rows)
    non_normal = results.loc[results['p_value'] < 0.05, 'patient_condition'].tolist()
    if non_normal:
        logger.info(f"Normality rejected at 0.05 for: {non_normal}")
    return results


def residual_normality(model: FittedModel) -> pd.DataFrame:
    """Shapiro-Wilk test on the OLS residuals."""
    resid = model.results.resid
    if len(resid) < MIN_GROUP_SIZE:
        raise InsufficientDataError(f"Only {len(resid)} residuals, need {MIN_GROUP_SIZE}")
    w, p = stats.shapiro(resid)
    return pd.DataFrame([{'n': len(resid), 'W': float(w), 'p_value': float(p)}])
