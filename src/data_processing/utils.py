import argparse
import csv
import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .exceptions import DataLoadError, DomainError, SchemaError

logger = logging.getLogger(__name__)


def load_csv(path: str) -> pd.DataFrame:
    """Read a CSV file, handling UTF-8 BOM if present.

    pandas rejects rows with too many fields but pads short rows with NaN,
    so short rows are caught by comparing raw field counts to the header.
    """
    try:
        df = pd.read_csv(path, encoding='utf-8-sig')
    except FileNotFoundError as e:
        raise DataLoadError(f"Input file not found: {path}") from e
    except UnicodeDecodeError as e:
        raise DataLoadError(f"Input file is not valid UTF-8: {path}") from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataLoadError(f"Malformed CSV {path}: {e}") from e
    short_lines = _short_rows(path)
    if short_lines:
        raise DataLoadError(
            f"Malformed CSV {path}: rows on lines {short_lines} have fewer fields "
            f"than the {len(df.columns)} header columns"
        )
    return df


def _short_rows(path: str) -> list[int]:
    """Line numbers of non-blank records with fewer fields than the header."""
    with open(path, encoding='utf-8-sig', newline='') as f:
        reader = csv.reader(f)
        header = next(reader, [])
        short = []
        for row in reader:
            if row and len(row) < len(header):
                short.append(reader.line_num)
    return short


def require_columns(df: pd.DataFrame, columns: list[str], source: str) -> None:
    """Raise SchemaError if any of `columns` is absent from `df`."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(
            f"{source} table is missing required columns {missing} "
            f"(found {df.columns.tolist()})"
        )


def log10_positive(values: pd.Series, source: str) -> pd.Series:
    """
    Base-10 logarithm of a concentration column.

    Non-numeric entries raise SchemaError; missing, zero or negative values
    raise DomainError since their logarithm is undefined.
    """
    numeric = pd.to_numeric(values, errors='coerce')
    unparsable = numeric.isna() & values.notna()
    if unparsable.any():
        raise SchemaError(
            f"{source}: non-numeric concentrations {values[unparsable].tolist()}"
        )
    invalid = numeric.isna() | (numeric <= 0)
    if invalid.any():
        raise DomainError(
            f"{source}: {int(invalid.sum())} concentrations are missing or non-positive "
            f"and cannot be log-transformed: {values[invalid].tolist()}"
        )
    return np.log10(numeric.astype(float))


@dataclass
class JoinResult:
    """Rows matched by an inner join and the left-hand keys it dropped."""

    matched: pd.DataFrame
    dropped_keys: list = field(default_factory=list)

    @property
    def n_dropped(self) -> int:
        return len(self.dropped_keys)


def inner_join(
    left: pd.DataFrame,
    right: pd.DataFrame,
    left_on: str,
    right_on: str = None,
    label: str = "join",
    strict: bool = False
) -> JoinResult:
    """
    Inner-join `left` to `right` and report the left keys with no match.

    Unmatched rows are dropped and logged as a warning. With strict=True
    they raise SchemaError instead.
    """
    right_on = right_on or left_on
    try:
        matched = left.merge(right, left_on=left_on, right_on=right_on, how='inner')
    except (ValueError, TypeError) as e:
        raise SchemaError(f"{label}: cannot join '{left_on}' to '{right_on}': {e}") from e
    unmatched = ~left[left_on].isin(right[right_on])
    dropped = left.loc[unmatched, left_on].tolist()
    if dropped:
        message = (
            f"{label}: {len(dropped)} of {len(left)} rows have no match on "
            f"'{right_on}' and are dropped: {dropped}"
        )
        if strict:
            raise SchemaError(message)
        logger.warning(message)
    logger.info(f"{label}: matched {len(matched)} rows")
    return JoinResult(matched=matched, dropped_keys=dropped)


def main():
    """Command-line interface for auditing the key coverage of a join."""
    parser = argparse.ArgumentParser(description='Report rows lost by an inner join of two CSVs')
    parser.add_argument('left_file', help='CSV whose rows should all be matched')
    parser.add_argument('right_file', help='CSV providing the lookup keys')
    parser.add_argument('--left-on', required=True, help='Key column in the left file')
    parser.add_argument('--right-on', help='Key column in the right file (defaults to --left-on)')
    args = parser.parse_args()
    left = load_csv(args.left_file)
    right = load_csv(args.right_file)
    right_on = args.right_on or args.left_on
    require_columns(left, [args.left_on], args.left_file)
    require_columns(right, [right_on], args.right_file)
    result = inner_join(left, right, args.left_on, right_on, label='audit')
    print(f"matched\t{len(result.matched)}")
    print(f"dropped\t{result.n_dropped}")
    for key in result.dropped_keys:
        print(f"\t{key}")


if __name__ == '__main__':
    main()
