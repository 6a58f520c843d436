"""
pandas helpers for amount columns coming back from aggregation queries.

Aggregation results are loosely typed: a group whose documents never carried a
field comes back with None, and older tenants still store some amounts as
strings. These helpers normalize such frames so downstream sums never see NaN.

Usage:
    from src.utils.pandas_utils import ensure_amount_columns

    df = ensure_amount_columns(raw_df, ['taxAmt', 'penaltyAmt'])
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


def coerce_numeric_series(
    s: pd.Series,
    *,
    fillna: Optional[float] = None,
) -> pd.Series:
    """
    Coerce a pandas Series to numeric dtype (float64).

    Handles string values with commas or spaces ("1,234.56"), empty strings
    and None. Invalid values become NaN before the optional fillna.

    Examples:
        >>> coerce_numeric_series(pd.Series(["1,234.56", None]), fillna=0.0).tolist()
        [1234.56, 0.0]
    """
    if pd.api.types.is_numeric_dtype(s):
        result = s.astype('float64')
        if fillna is not None:
            result = result.fillna(fillna)
        return result

    if pd.api.types.is_object_dtype(s):
        s_clean = s.apply(
            lambda x: str(x).replace(',', '').replace(' ', '').strip()
            if x is not None and not (isinstance(x, float) and math.isnan(x)) and str(x).strip() != ''
            else np.nan
        )
    else:
        s_clean = s

    result = pd.to_numeric(s_clean, errors='coerce')

    if fillna is not None:
        result = result.fillna(fillna)

    return result.astype('float64')


def ensure_amount_columns(
    df: Optional[pd.DataFrame],
    columns: Iterable[str],
    *,
    fillna: float = 0.0,
) -> pd.DataFrame:
    """
    Return a copy of df where every listed column exists and is float64.

    Missing columns are created filled with `fillna`; a None frame becomes an
    empty frame with the requested columns.
    """
    columns = list(columns)
    if df is None:
        return pd.DataFrame({col: pd.Series(dtype='float64') for col in columns})

    out = df.copy()
    for col in columns:
        if col not in out.columns:
            logger.debug(f"Amount column '{col}' missing, defaulting to {fillna}")
            out[col] = fillna
        out[col] = coerce_numeric_series(out[col], fillna=fillna)
    return out


def exact_sum(values: Iterable[float]) -> float:
    """
    Order-independent float sum.

    math.fsum is correctly rounded, so the result does not depend on the order
    in which records arrive from the data source.
    """
    return math.fsum(float(v) for v in values if v is not None and not pd.isna(v))


AMOUNT_PRECISION = 9


def within_tolerance(diff: float, tolerance: float) -> bool:
    """
    True when diff <= tolerance once binary representation error is dropped.

    Examples:
        >>> abs(100.01 - 100.00) <= 0.01
        False
        >>> within_tolerance(abs(100.01 - 100.00), 0.01)
        True
    """
    return round(diff, AMOUNT_PRECISION) <= tolerance


def first_value(df: Optional[pd.DataFrame], column: str, default: float = 0.0) -> float:
    """First value of a column in a single-group aggregation result, or default."""
    if df is None or df.empty or column not in df.columns:
        return default
    value = df[column].iloc[0]
    if value is None or pd.isna(value):
        return default
    return float(value)


__all__ = [
    'coerce_numeric_series',
    'ensure_amount_columns',
    'exact_sum',
    'first_value',
    'within_tolerance',
]
