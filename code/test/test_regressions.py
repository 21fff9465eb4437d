"""
Smoke tests for the OLS models, the comparison table and the figures.
"""

from __future__ import annotations

from pathlib import Path
import sys

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from scorecard_trends.features import FEATURE_COLUMNS, SCORECARD_LAUNCH, assign_period  # noqa: E402
from scorecard_trends.plots import earnings_histogram, interest_scatter, monthly_interest  # noqa: E402
from scorecard_trends.regressions import (  # noqa: E402
    comparison_table,
    fit_models,
    heteroskedasticity_tests,
    interaction_effects,
    model_formulas,
    short_term,
    unfit_reason,
    write_tables,
)


def build_features(seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    months = pd.date_range("2014-01-01", "2016-12-01", freq="MS")
    rows = []
    for i, pctile in enumerate(["Low", "Mid", "High"] * 4):
        earnings = {"Low": 30000, "Mid": 45000, "High": 80000}[pctile] + 1000 * i
        for month in months:
            rows.append(
                {
                    "month": month,
                    "year": month.year,
                    "earnings_10yr": float(earnings),
                    "locale": [11, 21, 31][(i // 3) % 3],
                    "preddeg": [2, 3][i % 2],
                    "percentile_group": pctile,
                }
            )
    features = pd.DataFrame(rows)
    features["group"] = assign_period(features["month"])
    # built-in shift toward High after launch
    bump = np.where((features["group"] == "post") & (features["percentile_group"] == "High"), 1.5, 0.0)
    features["standardized_index"] = bump + rng.normal(0, 1, len(features))
    features["year"] = features["year"].astype("Int64")
    return features[FEATURE_COLUMNS]


def test_three_nested_models() -> None:
    formulas = model_formulas()
    assert len(formulas) == 3
    names = list(formulas)
    assert "C(locale)" not in formulas[names[0]]
    assert "C(locale)" in formulas[names[1]]
    assert "C(preddeg)" in formulas[names[2]] and "C(year)" in formulas[names[2]]


def test_fit_models_recovers_interaction() -> None:
    features = build_features()
    models = fit_models(features)
    assert len(models) == 3
    assert all(int(res.nobs) == len(features) for res in models.values())
    effects = interaction_effects(models)
    assert set(effects["term"]) == {"group=post x percentile_group=High", "group=post x percentile_group=Mid"}
    high = effects[effects["term"] == "group=post x percentile_group=High"]
    assert (high["coef"] > 0).all()
    assert len(high) == 3


def test_heteroskedasticity_tests_one_row_per_model() -> None:
    tests = heteroskedasticity_tests(fit_models(build_features()))
    assert len(tests) == 3
    assert tests["bp_lm_pvalue"].between(0, 1).all()


def test_short_term_labels() -> None:
    assert short_term('C(group, Treatment(reference="pre"))[T.post]') == "group=post"
    assert short_term("C(locale)[T.21]") == "locale=21"
    assert short_term("Intercept") == "Intercept"


def test_comparison_table_and_files(tmp_path: Path) -> None:
    models = fit_models(build_features())
    text = comparison_table(models).as_text()
    assert "group=post x percentile_group=High" in text
    assert "locale=21" not in text

    written = write_tables(models, tmp_path, latex=True, caption="Test caption", label="tab:test")
    assert [p.name for p in written] == ["regression_table.txt", "regression_table.tex"]
    assert "tab:test" in written[1].read_text()


def test_figures_are_written(tmp_path: Path) -> None:
    features = build_features()
    hist_path = tmp_path / "figs" / "earnings_hist.png"
    scatter_path = tmp_path / "figs" / "interest_scatter.png"
    earnings_histogram(features, out_path=hist_path, dpi=40)
    interest_scatter(features, out_path=scatter_path, dpi=40)
    assert hist_path.stat().st_size > 0
    assert scatter_path.stat().st_size > 0


def test_monthly_interest_means() -> None:
    features = build_features()
    monthly = monthly_interest(features)
    assert len(monthly) == 3 * features["month"].nunique()
    launch = monthly[(monthly["month"] == SCORECARD_LAUNCH) & (monthly["percentile_group"] == "Low")]
    expected = features[(features["month"] == SCORECARD_LAUNCH) & (features["percentile_group"] == "Low")]["standardized_index"].mean()
    assert launch["standardized_index"].iloc[0] == pytest.approx(expected)


def test_unfit_reason_flags_missing_reference_levels() -> None:
    features = build_features()
    assert unfit_reason(features) is None
    assert unfit_reason(features[features["group"] == "post"]) == "no pre months"
    assert unfit_reason(features[features["group"] == "pre"]) == "no post months"
    assert unfit_reason(features[features["percentile_group"] != "Low"]) == "no Low earnings group"
    assert unfit_reason(features.iloc[:0]) == "only 0 row(s)"
