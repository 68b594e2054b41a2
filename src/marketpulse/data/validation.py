# src/marketpulse/data/validation.py
from __future__ import annotations

from typing import Iterable

import pandas as pd

from marketpulse.data.schemas import SCHEMA


class ActionValidationError(ValueError):
    pass


def validate_required_columns(df: pd.DataFrame, required: Iterable[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ActionValidationError(f"Missing required columns: {missing}")


def validate_dtypes(df: pd.DataFrame) -> None:
    # ids arrive as strings from the store but parquet/pandas may hand back
    # object or string dtypes; only the timestamp kind is enforced strictly.
    if not pd.api.types.is_datetime64_any_dtype(df[SCHEMA.ACTION_TS]):
        raise ActionValidationError(f"{SCHEMA.ACTION_TS} must be datetime")

    codes = df[SCHEMA.ACTION_TYPE].dropna().astype(str)
    bad = codes[codes.str.len() != 1]
    if len(bad) > 0:
        raise ActionValidationError(
            f"{SCHEMA.ACTION_TYPE} must be a single-character code, got: {sorted(bad.unique())[:5]}"
        )


def validate_no_nulls(df: pd.DataFrame) -> None:
    null_counts = df[list(SCHEMA.not_null_columns)].isna().sum()
    bad = null_counts[null_counts > 0]
    if len(bad) > 0:
        raise ActionValidationError(f"Nulls found in required columns: {bad.to_dict()}")


def validate_actions(df: pd.DataFrame) -> None:
    validate_required_columns(df, SCHEMA.required_columns)
    validate_no_nulls(df)
    validate_dtypes(df)


def coerce_actions(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize dtypes so groupby keys compare as strings and timestamps are naive datetimes.
    Validates first; never changes row count.
    """
    validate_required_columns(df, SCHEMA.required_columns)
    out = df.copy()

    if not pd.api.types.is_datetime64_any_dtype(out[SCHEMA.ACTION_TS]):
        out[SCHEMA.ACTION_TS] = pd.to_datetime(out[SCHEMA.ACTION_TS], errors="coerce")
    elif getattr(out[SCHEMA.ACTION_TS].dt, "tz", None) is not None:
        out[SCHEMA.ACTION_TS] = out[SCHEMA.ACTION_TS].dt.tz_convert(None)

    validate_actions(out)

    out[SCHEMA.USER_ID] = out[SCHEMA.USER_ID].astype(str)
    out[SCHEMA.ACTION_TYPE] = out[SCHEMA.ACTION_TYPE].astype(str)
    out[SCHEMA.ITEM_ID] = out[SCHEMA.ITEM_ID].where(out[SCHEMA.ITEM_ID].isna(), out[SCHEMA.ITEM_ID].astype(str))

    return out
