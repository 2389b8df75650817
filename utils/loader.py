"""
Loader for the motion-capture posture table.

Reads a delimited text file with a header row, turns the configured missing
value sentinels into NaN and coerces every column to float. Any cell that is
neither a number nor a recognised sentinel is a load error.

The UCI "MoCap Hand Postures" file names its grouping columns ``Class`` and
``User``; ``column_aliases`` maps them onto ``gesture_class`` and
``subject_id`` so the rest of the pipeline only deals with one naming.
"""

import numpy as np
import pandas as pd
from typing import Dict, Iterable, List, Optional

from .errors import LoadError

DEFAULT_MISSING_VALUES = ["", "NA", ".", "?"]

CLASS_COLUMN = "gesture_class"
SUBJECT_COLUMN = "subject_id"
GROUPING_COLUMNS = (CLASS_COLUMN, SUBJECT_COLUMN)


def load_postures(
        filepath: str,
        missing_values: Optional[Iterable[str]] = None,
        column_aliases: Optional[Dict[str, str]] = None,
        sep: str = ",",
) -> pd.DataFrame:
    """
    Loads the posture table into a float DataFrame.

    Parameters
    ----------
    filepath : str
        Path to the delimited file.
    missing_values : iterable of str, optional
        The complete set of strings treated as missing. Defaults to
        ``["", "NA", ".", "?"]``. Cells are stripped of surrounding
        whitespace before matching.
    column_aliases : dict, optional
        Header renames applied after reading.
    sep : str, default=","
        Field delimiter.

    Returns
    -------
    pd.DataFrame
        Every column typed float64, missing cells as NaN.

    Raises
    ------
    LoadError
        On a malformed row (too many or too few fields) or a cell that is
        neither a finite number nor a sentinel.
    """
    sentinels = set(DEFAULT_MISSING_VALUES if missing_values is None else missing_values)

    # Read everything as raw strings so that we decide what counts as missing,
    # not pandas' default NA list. Only fields absent from a short row come
    # back as NaN; an empty field stays "".
    try:
        raw = pd.read_csv(
            filepath,
            sep=sep,
            dtype=str,
            keep_default_na=False,
            na_values=[],
            skipinitialspace=True,
        )
    except pd.errors.ParserError as e:
        raise LoadError(f"Malformed row in '{filepath}': {e}") from e
    except pd.errors.EmptyDataError as e:
        raise LoadError(f"'{filepath}' is empty") from e

    if column_aliases:
        raw = raw.rename(columns=column_aliases)

    raw.columns = [str(c).strip() for c in raw.columns]

    short_rows = raw.isna().to_numpy()
    if short_rows.any():
        row, col = (int(i) for i in np.argwhere(short_rows)[0])
        raise LoadError(
            f"Malformed row {row + 1} in '{filepath}': no field for column '{raw.columns[col]}'",
            row=row + 1,
            column=raw.columns[col],
        )

    return coerce_numeric(raw, sentinels)


def coerce_numeric(raw: pd.DataFrame, sentinels: Iterable[str]) -> pd.DataFrame:
    """
    Converts a frame of raw strings into floats, sentinels becoming NaN.

    Raises LoadError with the first offending row/column.
    """
    sentinels = set(sentinels)
    df = pd.DataFrame(index=raw.index)

    for col in raw.columns:
        values = raw[col].astype(str).str.strip()
        is_missing = values.isin(sentinels)

        converted = pd.to_numeric(values.where(~is_missing), errors="coerce")

        # Anything that became NaN without being a sentinel was unparseable;
        # "inf" parses but is not a coordinate
        bad = ~np.isfinite(converted.to_numpy(dtype=np.float64)) & ~is_missing.to_numpy()
        if bad.any():
            position = int(np.flatnonzero(bad)[0])
            raise LoadError(
                f"Non-numeric or non-finite value {values.iloc[position]!r} in column '{col}', "
                f"row {position + 1}",
                row=position + 1,
                column=col,
            )

        df[col] = converted.astype(np.float64)

    return df


def feature_columns(
        df: pd.DataFrame,
        grouping_columns: Iterable[str] = GROUPING_COLUMNS
) -> List[str]:
    """
    Returns the coordinate columns, i.e. everything except the grouping keys.
    """
    excluded = set(grouping_columns)
    return [col for col in df.columns if col not in excluded]
