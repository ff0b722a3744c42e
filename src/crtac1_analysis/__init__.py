"""
CRTAC1 Analysis package initialization
"""

from importlib import import_module
from types import ModuleType
from typing import Any, Final

from .linear_model import (
    REFERENCE_CONTRASTS,
    FittedModel,
    anova_table,
    estimated_marginal_means,
    evaluate_contrasts,
    fit_linear_model,
)
from .normality import residual_normality, shapiro_by_condition
from .summary import NormalRange, compute_normal_range, summarize_by_condition

_PLOT_FUNCTIONS: Final = (
    "plot_crtac1_by_condition",
    "plot_crtac1_vs_age",
    "plot_qq_by_condition",
)


def __getattr__(name: str) -> Any:  # PEP 562
    if name in _PLOT_FUNCTIONS:
        mod: ModuleType = import_module(".plots", __name__)
        attr = getattr(mod, name)
        globals()[name] = attr          # cache for future look-ups
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
