"""Difference-in-differences style OLS on the assembled search-interest table."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Mapping

import pandas as pd
import statsmodels.formula.api as smf
from statsmodels.iolib.summary2 import summary_col
from statsmodels.stats.diagnostic import het_breuschpagan

from scorecard_trends.normalize import STD_COL

GROUP_TERM = 'C(group, Treatment(reference="pre"))'
PCTILE_TERM = 'C(percentile_group, Treatment(reference="Low"))'
MODEL_NAMES = ("(1) Base", "(2) + Locale", "(3) + Degree, Year")
_LEVEL_PATTERN = re.compile(r"C\((\w+)[^\[]*\)\[T\.([^\]]+)\]")


def model_formulas() -> dict[str, str]:
    base = f"{STD_COL} ~ {GROUP_TERM} * {PCTILE_TERM}"
    formulas = [
        base,
        f"{base} + C(locale)",
        f"{base} + C(locale) + C(preddeg) + C(year)",
    ]
    return dict(zip(MODEL_NAMES, formulas))


def _model_frame(features: pd.DataFrame) -> pd.DataFrame:
    data = features.copy()
    data["year"] = data["year"].astype(int)
    data[STD_COL] = data[STD_COL].astype(float)
    return data


def unfit_reason(features: pd.DataFrame) -> str | None:
    """Why the models cannot be fit on ``features``, or None when they can."""
    if len(features) < 2:
        return f"only {len(features)} row(s)"
    periods = set(features["group"].dropna())
    missing = [level for level in ("pre", "post") if level not in periods]
    if missing:
        return f"no {'/'.join(missing)} months"
    if "Low" not in set(features["percentile_group"].dropna()):
        return "no Low earnings group"
    return None


def fit_models(features: pd.DataFrame, cov_type: str = "HC1") -> dict[str, object]:
    data = _model_frame(features)
    return {name: smf.ols(formula, data=data).fit(cov_type=cov_type) for name, formula in model_formulas().items()}


def short_term(name: str) -> str:
    # 'C(group, ...)[T.post]:C(percentile_group, ...)[T.High]' -> 'group=post x percentile_group=High'
    parts = name.split(":")
    pretty = []
    for part in parts:
        match = _LEVEL_PATTERN.fullmatch(part)
        pretty.append(f"{match.group(1)}={match.group(2)}" if match else part)
    return " x ".join(pretty)


def heteroskedasticity_tests(models: Mapping[str, object]) -> pd.DataFrame:
    rows = []
    for name, res in models.items():
        lm, lm_pvalue, fvalue, f_pvalue = het_breuschpagan(res.resid, res.model.exog)
        rows.append(
            {
                "model": name,
                "bp_lm": float(lm),
                "bp_lm_pvalue": float(lm_pvalue),
                "bp_f": float(fvalue),
                "bp_f_pvalue": float(f_pvalue),
            }
        )
    return pd.DataFrame(rows)


def interaction_effects(models: Mapping[str, object]) -> pd.DataFrame:
    rows = []
    for name, res in models.items():
        for term in res.params.index:
            if ":" not in term or not term.startswith(GROUP_TERM):
                continue
            rows.append(
                {
                    "model": name,
                    "term": short_term(term),
                    "coef": float(res.params[term]),
                    "se": float(res.bse[term]),
                    "pvalue": float(res.pvalues[term]),
                    "n_obs": int(res.nobs),
                }
            )
    return pd.DataFrame(rows, columns=["model", "term", "coef", "se", "pvalue", "n_obs"])


def comparison_table(models: Mapping[str, object]):
    """Side-by-side coefficient table; control dummies are left out of the display."""
    key_terms = [
        term
        for term in next(iter(models.values())).params.index
        if term == "Intercept" or term.startswith(GROUP_TERM) or term.startswith(PCTILE_TERM)
    ]
    table = summary_col(
        list(models.values()),
        model_names=list(models.keys()),
        stars=True,
        float_format="%0.3f",
        regressor_order=key_terms,
        drop_omitted=True,
        info_dict={
            "N": lambda res: f"{int(res.nobs):,}",
            "Cov. type": lambda res: str(res.cov_type),
        },
    )
    for frame in table.tables:
        frame.index = [short_term(str(idx)) for idx in frame.index]
    return table


def write_tables(
    models: Mapping[str, object],
    out_dir: Path,
    latex: bool = False,
    caption: str = "Regression results",
    label: str = "tab:regressions",
) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    table = comparison_table(models)
    table.add_title(caption)
    written = [out_dir / "regression_table.txt"]
    written[0].write_text(table.as_text())
    if latex:
        tex_path = out_dir / "regression_table.tex"
        tex_path.write_text(table.as_latex(label=label))
        written.append(tex_path)
    return written
