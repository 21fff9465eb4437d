"""Standardize the raw popularity index within each (institution, keyword) pair."""

from __future__ import annotations

import numpy as np
import pandas as pd

STD_COL = "standardized_index"
MONTH_COL = "month"


def add_month(df: pd.DataFrame, week_col: str = "monthorweek") -> pd.DataFrame:
    # labels look like "2013-03-31 - 2013-04-06"; only the leading date is used
    out = df.copy()
    start = pd.to_datetime(out[week_col].astype("string").str[:10], format="%Y-%m-%d", errors="coerce")
    out[MONTH_COL] = start.dt.to_period("M").dt.to_timestamp()
    return out


def standardize_index(
    df: pd.DataFrame,
    name_col: str = "schname",
    keyword_col: str = "keyword",
    index_col: str = "index",
) -> pd.DataFrame:
    """
    Z-score the raw index within each (name, keyword) group.

    Mean and sample standard deviation are aggregated per group and merged back
    onto the rows. Groups with a single observation or zero spread get a missing
    standardized value.
    """
    out = df.copy()
    out[index_col] = pd.to_numeric(out[index_col], errors="coerce")
    stats = (
        out.groupby([name_col, keyword_col])[index_col]
        .agg(index_mean="mean", index_sd="std")
        .reset_index()
    )
    out = out.merge(stats, on=[name_col, keyword_col], how="left")
    sd = out["index_sd"].where(out["index_sd"] > 0)
    out[STD_COL] = (out[index_col] - out["index_mean"]) / sd
    out[STD_COL] = out[STD_COL].replace([np.inf, -np.inf], np.nan)
    return out.drop(columns=["index_mean", "index_sd"])


def drop_undefined(df: pd.DataFrame, verbose: bool = True) -> pd.DataFrame:
    keep = df[STD_COL].notna()
    if verbose:
        print(f"Dropped rows with undefined standardized index: {int((~keep).sum()):,} of {len(df):,}.")
    return df[keep].reset_index(drop=True)


def keyword_means(df: pd.DataFrame, name_col: str = "schname", keyword_col: str = "keyword") -> pd.DataFrame:
    return (
        df.groupby([name_col, keyword_col], as_index=False)[STD_COL]
        .mean()
        .sort_values([name_col, keyword_col])
        .reset_index(drop=True)
    )


def month_means(df: pd.DataFrame, name_col: str = "schname") -> pd.DataFrame:
    return (
        df.groupby([name_col, MONTH_COL], as_index=False)[STD_COL]
        .mean()
        .sort_values([name_col, MONTH_COL])
        .reset_index(drop=True)
    )


def normalize_trends(
    trends: pd.DataFrame,
    name_col: str = "schname",
    keyword_col: str = "keyword",
    week_col: str = "monthorweek",
    index_col: str = "index",
    verbose: bool = True,
) -> pd.DataFrame:
    out = add_month(trends, week_col=week_col)
    out = standardize_index(out, name_col=name_col, keyword_col=keyword_col, index_col=index_col)
    return drop_undefined(out, verbose=verbose)
