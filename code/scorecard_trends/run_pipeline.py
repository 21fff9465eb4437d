#!/usr/bin/env python3
"""
Run the scorecard search-interest analysis end-to-end.

Steps:
1) Read the trend files, the scorecard table and the name -> identifier links.
2) Standardize the popularity index within (institution, keyword).
3) Link search rows to scorecard institutions, dropping ambiguous names.
4) Label institutions Low / Mid / High by 10-year earnings, per year.
5) Assemble the pre/post table, fit the three OLS models, write tables and figures.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import pandas as pd

from scorecard_trends.classify import GROUP_COL, PERCENTILE_LABELS, classify_earnings, drop_incomplete
from scorecard_trends.config_loader import get_cfg_section, load_config, resolve_cfg_path, resolve_config_path
from scorecard_trends.features import assemble_features
from scorecard_trends.ingest import read_id_link, read_scorecard, read_trends
from scorecard_trends.normalize import STD_COL, keyword_means, month_means, normalize_trends
from scorecard_trends.plots import earnings_histogram, interest_scatter
from scorecard_trends.reconcile import reconcile
from scorecard_trends.regressions import (
    fit_models,
    heteroskedasticity_tests,
    interaction_effects,
    unfit_reason,
    write_tables,
)

DEFAULT_COLUMNS = {
    "name": "schname",
    "keyword": "keyword",
    "week_label": "monthorweek",
    "index": "index",
    "link_id": "unitid",
    "scorecard_id": "UNITID",
    "locale": "LOCALE",
    "preddeg": "PREDDEG",
    "earnings_6yr": "md_earn_wne_p6-REPORTED-EARNINGS",
    "earnings_8yr": "md_earn_wne_p8-REPORTED-EARNINGS",
    "earnings_10yr": "md_earn_wne_p10-REPORTED-EARNINGS",
}


@dataclass
class PipelineResult:
    features: pd.DataFrame
    keyword_means: pd.DataFrame
    month_means: pd.DataFrame
    models: dict[str, Any] = field(default_factory=dict)
    written: list[Path] = field(default_factory=list)


def _parse_args(args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scorecard launch and search interest by earnings group.")
    parser.add_argument(
        "data_dir",
        nargs="?",
        type=Path,
        default=None,
        help="Directory holding the trend files and reference tables (default: paths.data_dir).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to config YAML (default: {resolve_config_path()}).",
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=None,
        help="Where to write tables (default: paths.out_dir).",
    )
    parser.add_argument(
        "--plots",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Write the histogram and scatter figures (default: plots.enabled).",
    )
    parser.add_argument(
        "--regressions",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Fit and report the OLS models.",
    )
    return parser.parse_args(args)


def column_names(cfg: dict[str, Any]) -> dict[str, str]:
    cols = dict(DEFAULT_COLUMNS)
    cols.update({k: str(v) for k, v in get_cfg_section(cfg, "columns").items() if v is not None})
    return cols


def build_features(
    trends: pd.DataFrame,
    id_link: pd.DataFrame,
    scorecard: pd.DataFrame,
    cols: dict[str, str] | None = None,
    verbose: bool = True,
) -> PipelineResult:
    """Normalize -> reconcile -> classify -> assemble, on tables already in memory."""
    cols = {**DEFAULT_COLUMNS, **(cols or {})}
    normalized = normalize_trends(
        trends,
        name_col=cols["name"],
        keyword_col=cols["keyword"],
        week_col=cols["week_label"],
        index_col=cols["index"],
        verbose=verbose,
    )
    by_keyword = keyword_means(normalized, name_col=cols["name"], keyword_col=cols["keyword"])
    by_month = month_means(normalized, name_col=cols["name"])

    joined = reconcile(
        normalized,
        id_link,
        scorecard,
        name_col=cols["name"],
        link_id_col=cols["link_id"],
        scorecard_id_col=cols["scorecard_id"],
        keyword_col=cols["keyword"],
        verbose=verbose,
    )
    classified = classify_earnings(joined, earnings_col=cols["earnings_10yr"], verbose=verbose)
    classified = drop_incomplete(classified, verbose=verbose)
    features = assemble_features(
        classified,
        earnings_col=cols["earnings_10yr"],
        locale_col=cols["locale"],
        preddeg_col=cols["preddeg"],
    )
    if verbose:
        print(f"Analysis table: {len(features):,} rows.")
    return PipelineResult(features=features, keyword_means=by_keyword, month_means=by_month)


def group_summary(features: pd.DataFrame) -> pd.DataFrame:
    summary = (
        features.groupby(["group", GROUP_COL])
        .agg(n_rows=(STD_COL, "size"), mean_index=(STD_COL, "mean"), mean_earnings=("earnings_10yr", "mean"))
        .reset_index()
    )
    summary["group"] = pd.Categorical(summary["group"], categories=["pre", "post"], ordered=True)
    summary[GROUP_COL] = pd.Categorical(summary[GROUP_COL], categories=list(PERCENTILE_LABELS), ordered=True)
    return summary.sort_values(["group", GROUP_COL]).reset_index(drop=True)


def write_outputs(result: PipelineResult, out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, frame in (
        ("analysis_table.csv", result.features),
        ("keyword_means.csv", result.keyword_means),
        ("month_means.csv", result.month_means),
    ):
        path = out_dir / name
        frame.to_csv(path, index=False, date_format="%Y-%m-%d")
        written.append(path)
    return written


def run_pipeline(
    data_dir: Path | str | None = None,
    config_path: Path | str | None = None,
    out_dir: Path | str | None = None,
    plots: bool | None = None,
    regressions: bool = True,
    verbose: bool = True,
) -> PipelineResult:
    cfg = load_config(config_path)
    paths_cfg = get_cfg_section(cfg, "paths")
    reg_cfg = get_cfg_section(cfg, "regressions")
    plot_cfg = get_cfg_section(cfg, "plots")
    cols = column_names(cfg)

    data_dir_override = data_dir is not None
    data_dir = Path(data_dir) if data_dir_override else resolve_cfg_path(paths_cfg, "data_dir")
    out_dir_override = out_dir is not None
    out_dir = Path(out_dir) if out_dir_override else resolve_cfg_path(paths_cfg, "out_dir")
    if data_dir_override:
        # reference tables follow the data directory when it is overridden
        scorecard_path = data_dir / resolve_cfg_path(paths_cfg, "scorecard").name
        id_link_path = data_dir / resolve_cfg_path(paths_cfg, "id_link").name
    else:
        scorecard_path = resolve_cfg_path(paths_cfg, "scorecard")
        id_link_path = resolve_cfg_path(paths_cfg, "id_link")
    if out_dir_override or not paths_cfg.get("fig_dir"):
        fig_dir = out_dir / "figures"
    else:
        fig_dir = Path(paths_cfg["fig_dir"])
    plots = plots if plots is not None else bool(plot_cfg.get("enabled", True))

    trends = read_trends(
        data_dir,
        pattern=paths_cfg.get("trend_pattern", "trends_up_to_*.csv"),
        required_cols=[cols["name"], cols["keyword"], cols["week_label"], cols["index"]],
        verbose=verbose,
    )
    earnings_cols = [cols["earnings_6yr"], cols["earnings_8yr"], cols["earnings_10yr"]]
    scorecard = read_scorecard(
        scorecard_path,
        id_col=cols["scorecard_id"],
        columns=[cols["locale"], cols["preddeg"], *earnings_cols],
        text_cols=earnings_cols,
        verbose=verbose,
    )
    id_link = read_id_link(id_link_path, name_col=cols["name"], id_col=cols["link_id"], verbose=verbose)

    result = build_features(trends, id_link, scorecard, cols=cols, verbose=verbose)
    result.written.extend(write_outputs(result, out_dir))
    if verbose:
        print(group_summary(result.features).to_string(index=False))

    skip_reason = unfit_reason(result.features) if regressions else None
    if skip_reason is not None:
        if verbose:
            print(f"Skipping regressions: {skip_reason}.")
    elif regressions:
        result.models = fit_models(result.features, cov_type=reg_cfg.get("cov_type", "HC1"))
        result.written.extend(
            write_tables(
                result.models,
                out_dir,
                latex=bool(reg_cfg.get("latex", False)),
                caption=reg_cfg.get("latex_caption", "Regression results"),
                label=reg_cfg.get("latex_label", "tab:regressions"),
            )
        )
        if verbose:
            print((out_dir / "regression_table.txt").read_text())
            print("Breusch-Pagan heteroskedasticity tests:")
            print(heteroskedasticity_tests(result.models).to_string(index=False))
            print("Launch x earnings-group interactions:")
            print(interaction_effects(result.models).to_string(index=False))

    if plots and not result.features.empty:
        dpi = int(plot_cfg.get("dpi", 160))
        hist_path = fig_dir / "earnings_hist.png"
        scatter_path = fig_dir / "interest_scatter.png"
        earnings_histogram(result.features, out_path=hist_path, dpi=dpi)
        interest_scatter(result.features, out_path=scatter_path, dpi=dpi)
        result.written.extend([hist_path, scatter_path])

    if verbose:
        for path in result.written:
            print(f"Wrote {path}")
    return result


def main(cli_args: Iterable[str] | None = None) -> PipelineResult:
    args = _parse_args(cli_args)
    return run_pipeline(
        data_dir=args.data_dir,
        config_path=args.config,
        out_dir=args.out_dir,
        plots=args.plots,
        regressions=args.regressions,
    )


if __name__ == "__main__":
    main()
