import logging

import pandas as pd

from .conditions import CONDITION_LEVELS, SAMPLE_COLUMNS
from .exceptions import SchemaError

logger = logging.getLogger(__name__)


def unify_samples(*tables: pd.DataFrame) -> pd.DataFrame:
    """
    Concatenate harmonized cohort tables into the single sample table.

    Each table must have exactly the sample schema columns. The result has
    numeric age and log10_CRTAC1_nm, unique sample ids, and patient_condition
    as an ordered categorical over CONDITION_LEVELS.
    """
    for i, table in enumerate(tables):
        if sorted(table.columns) != sorted(SAMPLE_COLUMNS):
            raise SchemaError(
                f"Table {i} has columns {table.columns.tolist()}, expected {SAMPLE_COLUMNS}"
            )
    samples = pd.concat([table[SAMPLE_COLUMNS] for table in tables], ignore_index=True)

    unknown = samples.loc[~samples['patient_condition'].isin(CONDITION_LEVELS), 'patient_condition']
    if not unknown.empty:
        raise SchemaError(f"Unknown patient conditions: {sorted(unknown.astype(str).unique())}")
    samples['patient_condition'] = pd.Categorical(
        samples['patient_condition'], categories=CONDITION_LEVELS, ordered=True
    )

    for col in ['age', 'log10_CRTAC1_nm']:
        try:
            samples[col] = pd.to_numeric(samples[col]).astype(float)
        except (ValueError, TypeError) as e:
            raise SchemaError(f"Column '{col}' is not numeric: {e}") from e

    duplicated = samples['sample_id'].duplicated(keep=False)
    if duplicated.any():
        raise SchemaError(
            f"Duplicate sample ids: {sorted(samples.loc[duplicated, 'sample_id'].unique())}"
        )

    logger.info(
        f"Unified {len(samples)} samples across "
        f"{samples['patient_condition'].nunique()} conditions"
    )
    return samples
