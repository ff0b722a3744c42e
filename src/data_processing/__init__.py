"""
Data Processing module for CRTAC1 cohort loading and harmonization.

This package provides utilities for:
- Loading the raw hospital, long-COVID and COPD CSV sources
- Harmonizing each cohort onto the common sample schema
- Auditing inner joins for dropped subjects
- Unifying the cohorts into one table with an ordered condition factor
"""

# Version information
__version__ = "1.0.0"

# Make key functions available at package level
from .conditions import CONDITION_LEVELS, REFERENCE_CONDITION, SAMPLE_COLUMNS, PatientCondition
from .copd import harmonize_copd
from .exceptions import (
    CRTAC1Error,
    DataLoadError,
    DomainError,
    InsufficientDataError,
    SchemaError,
)
from .hospital import harmonize_hospital
from .loader import DEFAULT_FILES, InputPaths, load_raw_sources
from .long_covid import harmonize_long_covid
from .unify import unify_samples
from .utils import JoinResult, inner_join, load_csv
