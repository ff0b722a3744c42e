"""
Input file locations and raw source loading.

File names default to the layout of the project data directory and can be
overridden one by one from the command line.
"""

import logging
import os
from dataclasses import dataclass, fields

import pandas as pd

from .utils import load_csv

logger = logging.getLogger(__name__)

DEFAULT_FILES = {
    'hospital': 'hospital_CRTAC1.csv',
    'long_covid': 'long_covid_CRTAC1.csv',
    'long_covid_meta_copd': 'long_covid_metadata_copd.csv',
    'long_covid_meta': 'long_covid_metadata.csv',
    'copd': 'copd_CRTAC1.csv',
    'copd_ages': 'copd_ages.csv',
}


@dataclass
class InputPaths:
    hospital: str
    long_covid: str
    long_covid_meta_copd: str
    long_covid_meta: str
    copd: str
    copd_ages: str

    @classmethod
    def from_base_path(cls, base_path: str, **overrides) -> "InputPaths":
        """Resolve default file names against base_path; non-None overrides win."""
        paths = {key: os.path.join(base_path, name) for key, name in DEFAULT_FILES.items()}
        paths.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**paths)


def load_raw_sources(paths: InputPaths) -> dict[str, pd.DataFrame]:
    """Load every raw input table, keyed like DEFAULT_FILES."""
    raw = {}
    for f in fields(paths):
        path = getattr(paths, f.name)
        raw[f.name] = load_csv(path)
        logger.info(f"Loaded {f.name} ({len(raw[f.name])} rows) from {path}")
    return raw
