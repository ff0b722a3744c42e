import logging

import pandas as pd

from .conditions import SAMPLE_COLUMNS, PatientCondition
from .exceptions import SchemaError
from .utils import log10_positive, require_columns

logger = logging.getLogger(__name__)

HOSPITAL_COLUMNS = ['sample_id', 'Age_less_than_90', 'CRTAC1_ELISA_nM', 'COVID', 'ICU_1']

# (COVID, ICU_1) -> condition
HOSPITAL_CONDITIONS = {
    (0, 0): PatientCondition.HOSPITAL_NO_COVID_NO_ICU.value,
    (0, 1): PatientCondition.HOSPITAL_NO_COVID_ICU.value,
    (1, 0): PatientCondition.HOSPITAL_COVID_NO_ICU.value,
    (1, 1): PatientCondition.HOSPITAL_COVID_ICU.value,
}


def harmonize_hospital(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Project the hospital cohort onto the common sample schema.

    Ages are taken as delivered in Age_less_than_90; the provider has already
    redacted ages of 90 and above. Every row must carry a (COVID, ICU_1) pair
    in {0, 1} x {0, 1}.
    """
    require_columns(raw, HOSPITAL_COLUMNS, 'hospital')
    conditions = pd.Series(
        [HOSPITAL_CONDITIONS.get(pair) for pair in zip(raw['COVID'], raw['ICU_1'])],
        index=raw.index,
        dtype=object
    )
    unassigned = conditions.isna()
    if unassigned.any():
        raise SchemaError(
            "hospital: samples with missing or invalid (COVID, ICU_1) flags: "
            f"{raw.loc[unassigned, 'sample_id'].tolist()}"
        )

    harmonized = pd.DataFrame({
        'sample_id': 'hospital_' + raw['sample_id'].astype(str),
        'patient_condition': conditions,
        'age': raw['Age_less_than_90'],
        'log10_CRTAC1_nm': log10_positive(raw['CRTAC1_ELISA_nM'], 'hospital'),
    })
    logger.info(f"Harmonized {len(harmonized)} hospital samples")
    return harmonized[SAMPLE_COLUMNS].reset_index(drop=True)
