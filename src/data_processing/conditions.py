"""
Patient condition labels and the common sample schema.

The order of CONDITION_LEVELS is the order of the categorical factor used for
modelling and plotting; its first level is the regression baseline.
"""

from enum import Enum


class PatientCondition(str, Enum):
    HEALTHY = "healthy"
    COPD = "COPD"
    LONG_COVID = "long COVID"
    LONG_COVID_COPD = "long COVID + COPD"
    HOSPITAL_NO_COVID_NO_ICU = "hospital, no COVID, no ICU"
    HOSPITAL_NO_COVID_ICU = "hospital, no COVID, ICU"
    HOSPITAL_COVID_NO_ICU = "hospital, COVID, no ICU"
    HOSPITAL_COVID_ICU = "hospital, COVID, ICU"


CONDITION_LEVELS = [condition.value for condition in PatientCondition]
REFERENCE_CONDITION = PatientCondition.HEALTHY.value

SAMPLE_COLUMNS = ["sample_id", "patient_condition", "age", "log10_CRTAC1_nm"]
