"""Assemble the regression-ready table."""

from __future__ import annotations

import pandas as pd

from scorecard_trends.classify import GROUP_COL
from scorecard_trends.normalize import MONTH_COL, STD_COL

# first of the month the Scorecard launched; months on or before it are "pre"
SCORECARD_LAUNCH = pd.Timestamp("2015-09-01")
EARNINGS_COL = "earnings_10yr"
FEATURE_COLUMNS = [MONTH_COL, "year", STD_COL, EARNINGS_COL, "locale", "preddeg", GROUP_COL, "group"]


def assign_period(month: pd.Series, cutoff: pd.Timestamp = SCORECARD_LAUNCH) -> pd.Series:
    month = pd.to_datetime(month)
    period = pd.Series("post", index=month.index, dtype=object)
    period[month <= cutoff] = "pre"
    period[month.isna()] = None
    return period


def assemble_features(
    df: pd.DataFrame,
    earnings_col: str,
    locale_col: str = "LOCALE",
    preddeg_col: str = "PREDDEG",
) -> pd.DataFrame:
    out = df.copy()
    out["year"] = pd.to_datetime(out[MONTH_COL]).dt.year.astype("Int64")
    out = out.rename(columns={earnings_col: EARNINGS_COL, locale_col: "locale", preddeg_col: "preddeg"})
    out["group"] = assign_period(out[MONTH_COL])
    out = out[FEATURE_COLUMNS]
    return out.sort_values(FEATURE_COLUMNS, kind="mergesort").reset_index(drop=True)
