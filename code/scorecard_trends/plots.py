"""Faceted figures for the search-interest analysis."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import seaborn as sns
from matplotlib import pyplot as plt

from scorecard_trends.classify import GROUP_COL, PERCENTILE_LABELS
from scorecard_trends.features import EARNINGS_COL, SCORECARD_LAUNCH
from scorecard_trends.normalize import MONTH_COL, STD_COL

PCTILE_COLORS = {
    "Low": "#e07a5f",   # terracotta
    "Mid": "#B7C4E0",
    "High": "#2F5597",
}


def _save(g: sns.FacetGrid, out_path: Path | None, dpi: int, show: bool) -> None:
    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        g.savefig(out_path, dpi=dpi, bbox_inches="tight")
    if show:
        plt.show()
    plt.close(g.figure)


def earnings_histogram(
    features: pd.DataFrame,
    out_path: Path | None = None,
    dpi: int = 160,
    show: bool = False,
) -> sns.FacetGrid:
    data = features.assign(year=features["year"].astype(int))
    g = sns.FacetGrid(data=data, col="year", col_wrap=3, hue=GROUP_COL, hue_order=list(PERCENTILE_LABELS),
                      palette=PCTILE_COLORS, sharey=False, height=2.5, aspect=1.4)
    g.map(sns.histplot, EARNINGS_COL, bins=30).add_legend()
    g.set_axis_labels("Median earnings, 10 yrs after entry", "Rows")
    _save(g, out_path, dpi, show)
    return g


def monthly_interest(features: pd.DataFrame) -> pd.DataFrame:
    return (
        features.groupby([MONTH_COL, GROUP_COL], as_index=False)[STD_COL]
        .mean()
        .sort_values([GROUP_COL, MONTH_COL])
        .reset_index(drop=True)
    )


def interest_scatter(
    features: pd.DataFrame,
    out_path: Path | None = None,
    dpi: int = 160,
    show: bool = False,
) -> sns.FacetGrid:
    monthly = monthly_interest(features)
    g = sns.FacetGrid(data=monthly, col=GROUP_COL, col_order=list(PERCENTILE_LABELS), hue=GROUP_COL,
                      palette=PCTILE_COLORS, sharey=True, height=3, aspect=1.3)
    g.map(sns.scatterplot, MONTH_COL, STD_COL)
    g.refline(x=SCORECARD_LAUNCH, color="#666666", linestyle="--")
    g.set_axis_labels("Month", "Mean standardized index")
    for ax in g.axes.flat:
        ax.tick_params(axis="x", labelrotation=45)
    _save(g, out_path, dpi, show)
    return g
