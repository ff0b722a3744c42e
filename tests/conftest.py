import numpy as np
import pandas as pd
import pytest

from src.data_processing import DEFAULT_FILES

# Mean log10 CRTAC1 per group in the synthetic cohorts
GROUP_LEVELS = {
    'healthy': 1.0,
    'COPD': 0.9,
    'long COVID': 0.95,
    'long COVID + COPD': 0.85,
    (0, 0): 0.8,
    (0, 1): 0.7,
    (1, 0): 0.75,
    (1, 1): 0.6,
}


def _concentration(rng, log_mean, n):
    return 10 ** (log_mean + rng.normal(0, 0.05, n))


def build_raw_sources():
    """Raw tables for all three cohorts.

    hospital: 20 rows, 5 per (COVID, ICU_1) pair
    long COVID: 19 measurements, 18 with metadata (5 H, 5 LC, 5 LC+COPD, 3 LC)
    COPD: 7 measurements, 6 with ages
    """
    rng = np.random.default_rng(7)

    pairs = [(0, 0), (0, 1), (1, 0), (1, 1)]
    hospital = pd.DataFrame({
        'sample_id': range(1, 21),
        'Age_less_than_90': rng.integers(30, 89, 20),
        'COVID': [p[0] for p in pairs for _ in range(5)],
        'ICU_1': [p[1] for p in pairs for _ in range(5)],
    })
    hospital['CRTAC1_ELISA_nM'] = np.concatenate(
        [_concentration(rng, GROUP_LEVELS[p], 5) for p in pairs]
    )

    healthy_ids = [f'H{i:02d}' for i in range(1, 6)]
    lc_ids = [f'LC{i:02d}' for i in range(1, 6)]
    lc_copd_ids = [f'LC{i:02d}' for i in range(6, 11)]
    lc_other_ids = [f'LC{i:02d}' for i in range(11, 14)]
    long_covid = pd.DataFrame({
        'sample_id': healthy_ids + lc_ids + lc_copd_ids + lc_other_ids + ['LC99'],
        'CRTAC1_ELISA_nM': np.concatenate([
            _concentration(rng, GROUP_LEVELS['healthy'], 5),
            _concentration(rng, GROUP_LEVELS['long COVID'], 5),
            _concentration(rng, GROUP_LEVELS['long COVID + COPD'], 5),
            _concentration(rng, GROUP_LEVELS['long COVID'], 3),
            _concentration(rng, GROUP_LEVELS['long COVID'], 1),
        ]),
    })
    long_covid_meta_copd = pd.DataFrame({
        'sample_id': lc_ids + lc_copd_ids,
        'Age': rng.integers(25, 80, 10),
        'Sex': ['F', 'M'] * 5,
        'COPD': ['N'] * 5 + ['Y'] * 5,
    })
    long_covid_meta = pd.DataFrame({
        'sample_id': healthy_ids + lc_other_ids,
        'Age': rng.integers(25, 80, 8),
    })

    copd = pd.DataFrame({
        'Patient_No': range(1, 8),
        'CRTAC1_ELISA_nM': _concentration(rng, GROUP_LEVELS['COPD'], 7),
    })
    copd_ages = pd.DataFrame({
        'COPD_ID': range(1, 7),
        'Age': rng.integers(50, 85, 6),
    })

    return {
        'hospital': hospital,
        'long_covid': long_covid,
        'long_covid_meta_copd': long_covid_meta_copd,
        'long_covid_meta': long_covid_meta,
        'copd': copd,
        'copd_ages': copd_ages,
    }


@pytest.fixture
def raw_sources():
    return build_raw_sources()


@pytest.fixture
def data_dir(tmp_path, raw_sources):
    """Raw sources written as CSVs under their default file names."""
    directory = tmp_path / 'data'
    directory.mkdir()
    for key, df in raw_sources.items():
        df.to_csv(directory / DEFAULT_FILES[key], index=False)
    return directory


@pytest.fixture
def samples(raw_sources):
    from src.crtac1_analysis.crtac1_main import harmonize_sources
    from src.data_processing import unify_samples

    harmonized = harmonize_sources(raw_sources)
    return unify_samples(harmonized['hospital'], harmonized['long_covid'], harmonized['copd'])
