"""
CRTAC1 Plots
Distribution of log10 CRTAC1 by condition, against age, and QQ diagnostics
"""

import math

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns
from scipy import stats

from ..data_processing.conditions import CONDITION_LEVELS
from ..utils.shared_functions import save_plot
from .summary import NormalRange

plt.style.use('seaborn-v0_8-whitegrid')


def _observed_levels(samples):
    present = set(samples['patient_condition'].astype(str))
    return [level for level in CONDITION_LEVELS if level in present]


def plot_crtac1_by_condition(samples, normal_range: NormalRange, output_dir):
    """Box and strip plot per condition with the healthy normal range marked."""
    order = _observed_levels(samples)
    data = samples.assign(patient_condition=samples['patient_condition'].astype(str))
    fig, ax = plt.subplots(figsize=(10, 6))
    sns.boxplot(data=data, x='log10_CRTAC1_nm', y='patient_condition', order=order,
                color='lightgrey', showfliers=False, ax=ax)
    sns.stripplot(data=data, x='log10_CRTAC1_nm', y='patient_condition', order=order,
                  color='black', size=3, alpha=0.6, ax=ax)
    ax.axvline(normal_range.mean, color='steelblue', linestyle='-', linewidth=1)
    ax.axvline(normal_range.low, color='steelblue', linestyle='--', linewidth=1)
    ax.axvline(normal_range.high, color='steelblue', linestyle='--', linewidth=1)
    ax.set_xlabel('log10 CRTAC1 (nM)')
    ax.set_ylabel('')
    ax.set_title('CRTAC1 by patient condition (healthy mean +/- 3 SD)')
    fig.tight_layout()
    return save_plot(fig, 'crtac1_by_condition', output_dir)


def plot_crtac1_vs_age(samples, output_dir):
    """Scatter of log10 CRTAC1 against age coloured by condition."""
    order = _observed_levels(samples)
    data = samples.assign(patient_condition=samples['patient_condition'].astype(str))
    fig, ax = plt.subplots(figsize=(10, 6))
    sns.scatterplot(data=data, x='age', y='log10_CRTAC1_nm', hue='patient_condition',
                    hue_order=order, ax=ax)
    ax.set_xlabel('Age (years)')
    ax.set_ylabel('log10 CRTAC1 (nM)')
    ax.legend(title='Condition', bbox_to_anchor=(1.02, 1), loc='upper left')
    fig.tight_layout()
    return save_plot(fig, 'crtac1_vs_age', output_dir)


def plot_qq_by_condition(samples, output_dir, value_col='log10_CRTAC1_nm'):
    """Normal QQ plot for each observed condition."""
    order = _observed_levels(samples)
    conditions = samples['patient_condition'].astype(str)
    ncols = 4
    nrows = math.ceil(len(order) / ncols)
    fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3.5 * nrows), squeeze=False)
    for ax, level in zip(axes.flat, order):
        stats.probplot(samples.loc[conditions == level, value_col], dist='norm', plot=ax)
        ax.set_title(level, fontsize=10)
    for ax in axes.flat[len(order):]:
        ax.set_visible(False)
    fig.tight_layout()
    return save_plot(fig, 'qq_by_condition', output_dir)
