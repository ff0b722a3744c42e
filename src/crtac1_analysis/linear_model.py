"""
Linear Model Analysis
OLS fit of log10 CRTAC1 on patient condition and age, estimated marginal
means, and planned contrasts against the healthy baseline
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence, Union

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from scipy import stats
from statsmodels.regression.linear_model import RegressionResultsWrapper
from statsmodels.stats.multitest import multipletests

from ..data_processing.conditions import CONDITION_LEVELS, REFERENCE_CONDITION, PatientCondition
from ..data_processing.exceptions import InsufficientDataError, SchemaError

logger = logging.getLogger(__name__)

RESPONSE = 'log10_CRTAC1_nm'
CONDITION_TERM = 'C(patient_condition)'
FORMULA = f'{RESPONSE} ~ {CONDITION_TERM} + age'

ContrastWeights = Union[Mapping[str, float], Sequence[float]]

# Each condition against the healthy baseline
REFERENCE_CONTRASTS = {
    'COPD - healthy': {
        PatientCondition.COPD.value: 1,
        PatientCondition.HEALTHY.value: -1,
    },
    'long COVID - healthy': {
        PatientCondition.LONG_COVID.value: 1,
        PatientCondition.HEALTHY.value: -1,
    },
    'long COVID + COPD - healthy': {
        PatientCondition.LONG_COVID_COPD.value: 1,
        PatientCondition.HEALTHY.value: -1,
    },
}


@dataclass
class FittedModel:
    """A fitted OLS model with the condition levels it was estimated on."""

    results: RegressionResultsWrapper
    levels: list
    mean_age: float

    @property
    def reference(self) -> str:
        return self.levels[0]

    @property
    def rsquared(self) -> float:
        return float(self.results.rsquared)

    @property
    def df_resid(self) -> float:
        return float(self.results.df_resid)

    def param_name(self, level: str) -> str:
        """Name of the dummy coefficient for `level`; None for the reference level."""
        if level not in self.levels:
            raise SchemaError(f"Condition '{level}' was not part of the fitted model {self.levels}")
        if level == self.reference:
            return None
        return f'{CONDITION_TERM}[T.{level}]'

    def coefficient(self, level: str) -> float:
        """Difference between `level` and the reference at equal age."""
        name = self.param_name(level)
        return 0.0 if name is None else float(self.results.params[name])

    def coefficient_table(self) -> pd.DataFrame:
        """Estimates, standard errors, t statistics and p-values per model term."""
        labels = {self.param_name(level): level for level in self.levels[1:]}
        r = self.results
        table = pd.DataFrame({
            'term': [labels.get(name, name) for name in r.params.index],
            'estimate': r.params.to_numpy(),
            'std_error': r.bse.to_numpy(),
            't_value': r.tvalues.to_numpy(),
            'p_value': r.pvalues.to_numpy(),
        })
        table['r_squared'] = self.rsquared
        return table

    def condition_vector(self, weights: ContrastWeights) -> np.ndarray:
        """
        Map weights over condition levels onto the parameter vector.

        The reference level has no coefficient of its own, so its weight
        does not enter the combination.
        """
        if not isinstance(weights, Mapping):
            if len(weights) != len(self.levels):
                raise SchemaError(
                    f"Contrast has {len(weights)} weights for {len(self.levels)} levels"
                )
            weights = dict(zip(self.levels, weights))
        names = list(self.results.params.index)
        vector = np.zeros(len(names))
        for level, weight in weights.items():
            if weight == 0:
                continue
            name = self.param_name(level)
            if name is not None:
                vector[names.index(name)] += weight
        return vector

    def prediction_vector(self, level: str, age: float = None) -> np.ndarray:
        """Parameter weights of the predicted response for `level` at `age` (default: mean age)."""
        names = list(self.results.params.index)
        vector = np.zeros(len(names))
        vector[names.index('Intercept')] = 1.0
        vector[names.index('age')] = self.mean_age if age is None else age
        name = self.param_name(level)
        if name is not None:
            vector[names.index(name)] = 1.0
        return vector


def fit_linear_model(samples: pd.DataFrame) -> FittedModel:
    """
    Fit log10_CRTAC1_nm ~ patient_condition + age by ordinary least squares.

    Conditions are treatment coded against the first observed level, which
    must be healthy. Levels without samples are left out of the design.
    """
    data = samples[['patient_condition', 'age', RESPONSE]].dropna()
    if len(data) < len(samples):
        logger.warning(f"Dropped {len(samples) - len(data)} samples with missing values before fitting")
    conditions = data['patient_condition'].astype(str)
    levels = [level for level in CONDITION_LEVELS if (conditions == level).any()]
    if REFERENCE_CONDITION not in levels:
        raise InsufficientDataError(f"No {REFERENCE_CONDITION} samples to serve as the model baseline")
    n_params = len(levels) + 1
    if len(data) <= n_params:
        raise InsufficientDataError(
            f"{len(data)} samples cannot support a model with {n_params} parameters"
        )
    data = data.assign(
        patient_condition=pd.Categorical(conditions, categories=levels, ordered=True)
    )

    results = smf.ols(FORMULA, data=data).fit()
    model = FittedModel(results=results, levels=levels, mean_age=float(data['age'].mean()))
    logger.info(
        f"Fitted {FORMULA} on {int(results.nobs)} samples "
        f"({len(levels)} conditions): R^2 = {results.rsquared:.3f}"
    )
    return model


def anova_table(model: FittedModel) -> pd.DataFrame:
    """Type II ANOVA of the condition and age terms."""
    table = sm.stats.anova_lm(model.results, typ=2)
    table = table.rename(index={CONDITION_TERM: 'patient_condition'})
    return table.rename_axis('term').reset_index()


def _linear_combinations(model: FittedModel, rows: np.ndarray, confidence: float = 0.95) -> pd.DataFrame:
    """Estimate, SE, t, p and confidence limits of each row of `rows` applied to the coefficients."""
    params = model.results.params.to_numpy()
    cov = model.results.cov_params().to_numpy()
    df = model.df_resid
    estimate = rows @ params
    se = np.sqrt(np.einsum('ij,jk,ik->i', rows, cov, rows))
    t_value = estimate / se
    crit = stats.t.ppf(0.5 + confidence / 2, df)
    return pd.DataFrame({
        'estimate': estimate,
        'std_error': se,
        'df': df,
        't_value': t_value,
        'p_value': 2 * stats.t.sf(np.abs(t_value), df),
        'lower_cl': estimate - crit * se,
        'upper_cl': estimate + crit * se,
    })


def estimated_marginal_means(model: FittedModel, confidence: float = 0.95) -> pd.DataFrame:
    """Predicted log10 CRTAC1 for every fitted condition with age held at its sample mean."""
    rows = np.vstack([model.prediction_vector(level) for level in model.levels])
    emm = _linear_combinations(model, rows, confidence)
    emm = emm.rename(columns={'estimate': 'emmean'}).drop(columns=['t_value', 'p_value'])
    emm.insert(0, 'patient_condition', model.levels)
    emm['age'] = model.mean_age
    return emm


def evaluate_contrasts(
    model: FittedModel,
    contrasts: Mapping[str, ContrastWeights] = None,
    confidence: float = 0.95
) -> pd.DataFrame:
    """
    Test named linear combinations of the condition coefficients.

    Parameters:
    -----------
    model : FittedModel
        Fitted condition + age model
    contrasts : dict
        Contrast name -> weights, either {level: weight} or one weight per
        fitted level in model order. Defaults to REFERENCE_CONTRASTS.

    Returns:
    --------
    pd.DataFrame
        Estimate, SE, t, raw p-value and Sidak-adjusted p-value per contrast
    """
    if contrasts is None:
        contrasts = REFERENCE_CONTRASTS
    if not contrasts:
        raise SchemaError("No contrasts supplied")
    names = list(contrasts)
    rows = np.vstack([model.condition_vector(contrasts[name]) for name in names])
    for name, row in zip(names, rows):
        if not row.any():
            raise SchemaError(f"Contrast '{name}' has no non-zero weight on a fitted coefficient")
    result = _linear_combinations(model, rows, confidence)
    result.insert(0, 'contrast', names)
    result['p_value_sidak'] = multipletests(result['p_value'], method='sidak')[1]
    return result
