import logging

import pandas as pd

from .conditions import SAMPLE_COLUMNS, PatientCondition
from .utils import inner_join, log10_positive, require_columns

logger = logging.getLogger(__name__)


def harmonize_copd(
    crtac1: pd.DataFrame,
    ages: pd.DataFrame,
    strict_joins: bool = False
) -> pd.DataFrame:
    """Attach ages to COPD CRTAC1 measurements (Patient_No = COPD_ID) and label every sample COPD."""
    require_columns(crtac1, ['Patient_No', 'CRTAC1_ELISA_nM'], 'COPD CRTAC1')
    require_columns(ages, ['COPD_ID', 'Age'], 'COPD ages')
    joined = inner_join(
        crtac1[['Patient_No', 'CRTAC1_ELISA_nM']],
        ages[['COPD_ID', 'Age']],
        left_on='Patient_No',
        right_on='COPD_ID',
        label='COPD ages join',
        strict=strict_joins
    ).matched

    harmonized = pd.DataFrame({
        'sample_id': 'copd_' + joined['Patient_No'].astype(str),
        'patient_condition': PatientCondition.COPD.value,
        'age': joined['Age'],
        'log10_CRTAC1_nm': log10_positive(joined['CRTAC1_ELISA_nM'], 'COPD'),
    })
    logger.info(f"Harmonized {len(harmonized)} COPD samples")
    return harmonized[SAMPLE_COLUMNS].reset_index(drop=True)
