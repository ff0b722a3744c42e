import logging

import pandas as pd

from .conditions import SAMPLE_COLUMNS, PatientCondition
from .exceptions import SchemaError
from .utils import inner_join, log10_positive, require_columns

logger = logging.getLogger(__name__)

CRTAC1_COLUMNS = ['sample_id', 'CRTAC1_ELISA_nM']
METADATA_COLUMNS = ['sample_id', 'Age']
COPD_FLAG = 'COPD'


def stack_metadata(metadata_copd: pd.DataFrame, metadata: pd.DataFrame) -> pd.DataFrame:
    """
    Stack the two long-COVID metadata tables into one subject lookup.

    Only the first table records COPD status; subjects from the second are
    taken to be COPD-free ("N").
    """
    require_columns(metadata_copd, METADATA_COLUMNS + [COPD_FLAG], 'long COVID metadata (COPD)')
    require_columns(metadata, METADATA_COLUMNS, 'long COVID metadata')
    with_flag = metadata_copd[METADATA_COLUMNS + [COPD_FLAG]].copy()
    with_flag[COPD_FLAG] = with_flag[COPD_FLAG].astype(str).str.strip()
    without_flag = metadata[METADATA_COLUMNS].assign(**{COPD_FLAG: 'N'})
    return pd.concat([with_flag, without_flag], ignore_index=True)


def assign_long_covid_condition(sample_ids: pd.Series, copd_flags: pd.Series) -> pd.Series:
    """
    Label long-COVID cohort samples from their ids.

    Rules apply in order and later rules override earlier ones:
    'H' -> healthy, 'LC' -> long COVID, 'LC' with COPD flag 'Y' -> long COVID + COPD.
    """
    ids = sample_ids.astype(str)
    is_long_covid = ids.str.contains('LC', regex=False)
    conditions = pd.Series(None, index=sample_ids.index, dtype=object)
    conditions.loc[ids.str.contains('H', regex=False)] = PatientCondition.HEALTHY.value
    conditions.loc[is_long_covid] = PatientCondition.LONG_COVID.value
    conditions.loc[is_long_covid & (copd_flags == 'Y')] = PatientCondition.LONG_COVID_COPD.value
    return conditions


def harmonize_long_covid(
    crtac1: pd.DataFrame,
    metadata_copd: pd.DataFrame,
    metadata: pd.DataFrame,
    strict_joins: bool = False
) -> pd.DataFrame:
    """
    Join long-COVID CRTAC1 measurements to subject metadata and project them
    onto the common sample schema. Measurements whose subject has no metadata
    are dropped (see inner_join).
    """
    require_columns(crtac1, CRTAC1_COLUMNS, 'long COVID CRTAC1')
    lookup = stack_metadata(metadata_copd, metadata)
    joined = inner_join(
        crtac1[CRTAC1_COLUMNS],
        lookup,
        left_on='sample_id',
        label='long COVID metadata join',
        strict=strict_joins
    ).matched

    conditions = assign_long_covid_condition(joined['sample_id'], joined[COPD_FLAG])
    unassigned = conditions.isna()
    if unassigned.any():
        raise SchemaError(
            "long COVID: sample ids match neither 'H' nor 'LC': "
            f"{joined.loc[unassigned, 'sample_id'].tolist()}"
        )

    harmonized = pd.DataFrame({
        'sample_id': joined['sample_id'].astype(str),
        'patient_condition': conditions,
        'age': joined['Age'],
        'log10_CRTAC1_nm': log10_positive(joined['CRTAC1_ELISA_nM'], 'long COVID'),
    })
    logger.info(
        f"Harmonized {len(harmonized)} long COVID samples: "
        f"{harmonized['patient_condition'].value_counts().to_dict()}"
    )
    return harmonized[SAMPLE_COLUMNS].reset_index(drop=True)
