"""
Unit tests for the per-(institution, keyword) standardization.
"""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from scorecard_trends.normalize import (  # noqa: E402
    STD_COL,
    add_month,
    keyword_means,
    month_means,
    normalize_trends,
    standardize_index,
)


def build_trends() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "schname": ["alpha college"] * 4 + ["alpha college"] * 3 + ["beta university"] * 2 + ["gamma institute"],
            "keyword": ["alpha"] * 4 + ["alpha college"] * 3 + ["beta"] * 2 + ["gamma"],
            "monthorweek": [
                "2015-01-04 - 2015-01-10",
                "2015-01-11 - 2015-01-17",
                "2015-02-01 - 2015-02-07",
                "2015-10-04 - 2015-10-10",
                "2015-01-04 - 2015-01-10",
                "2015-02-01 - 2015-02-07",
                "2015-03-01 - 2015-03-07",
                "2015-01-04 - 2015-01-10",
                "2015-01-11 - 2015-01-17",
                "2015-01-04 - 2015-01-10",
            ],
            "index": [10, 20, 40, 50, 3, 7, 11, 55, 55, 80],
        }
    )


def test_add_month_truncates_to_first_of_month() -> None:
    df = pd.DataFrame({"monthorweek": ["2013-03-31 - 2013-04-06", "2016-12-25 - 2016-12-31", "not a date", None]})
    out = add_month(df)
    assert out.loc[0, "month"] == pd.Timestamp("2013-03-01")
    assert out.loc[1, "month"] == pd.Timestamp("2016-12-01")
    assert pd.isna(out.loc[2, "month"])
    assert pd.isna(out.loc[3, "month"])


def test_standardized_index_has_zero_mean_unit_variance_per_group() -> None:
    out = standardize_index(build_trends())
    for _, group in out.groupby(["schname", "keyword"]):
        if group["index"].nunique() < 2:
            continue
        assert group[STD_COL].mean() == pytest.approx(0.0, abs=1e-12)
        assert group[STD_COL].var(ddof=1) == pytest.approx(1.0)


def test_standardized_index_matches_hand_computation() -> None:
    out = standardize_index(build_trends())
    alpha = out[(out["keyword"] == "alpha")]
    values = np.array([10, 20, 40, 50], dtype=float)
    expected = (values - values.mean()) / values.std(ddof=1)
    assert np.allclose(alpha[STD_COL].to_numpy(), expected)


def test_zero_variance_and_singleton_groups_are_undefined_and_dropped() -> None:
    out = standardize_index(build_trends())
    assert out.loc[out["schname"] == "beta university", STD_COL].isna().all()
    assert out.loc[out["schname"] == "gamma institute", STD_COL].isna().all()
    assert not np.isinf(out[STD_COL].dropna()).any()

    kept = normalize_trends(build_trends(), verbose=False)
    assert set(kept["schname"]) == {"alpha college"}
    assert len(kept) == 7
    assert kept[STD_COL].notna().all()


def test_non_numeric_index_is_missing_not_fatal() -> None:
    df = build_trends()
    df["index"] = df["index"].astype(object)
    df.loc[0, "index"] = "<1"
    out = standardize_index(df)
    assert pd.isna(out.loc[0, STD_COL])
    alpha = out[(out["keyword"] == "alpha")].dropna(subset=[STD_COL])
    assert len(alpha) == 3
    assert alpha[STD_COL].mean() == pytest.approx(0.0, abs=1e-12)


def test_keyword_and_month_means() -> None:
    kept = normalize_trends(build_trends(), verbose=False)

    by_keyword = keyword_means(kept)
    assert list(by_keyword["keyword"]) == ["alpha", "alpha college"]
    assert np.allclose(by_keyword[STD_COL], 0.0)

    by_month = month_means(kept)
    assert list(by_month["month"]) == [pd.Timestamp("2015-01-01"), pd.Timestamp("2015-02-01"), pd.Timestamp("2015-03-01"), pd.Timestamp("2015-10-01")]
    january = kept[kept["month"] == pd.Timestamp("2015-01-01")][STD_COL].mean()
    assert by_month.loc[0, STD_COL] == pytest.approx(january)
