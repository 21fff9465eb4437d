"""
Link search rows to scorecard institutions.

Steps:
1) Keep only names that map to a single row of the identifier link table.
2) Rename the scorecard identifier column to the link table's identifier name.
3) Inner-join search rows to links on name, then to the scorecard on identifier.
4) Report names that still carry more than one identifier (diagnostic only).
5) Keep only names with exactly one distinct identifier (always applied).
"""

from __future__ import annotations

from typing import Sequence

import duckdb as ddb
import pandas as pd


def _q(col: str) -> str:
    return '"' + col.replace('"', '""') + '"'


def _connect(con: ddb.DuckDBPyConnection | None) -> ddb.DuckDBPyConnection:
    return con if con is not None else ddb.connect()


def _sort_rows(df: pd.DataFrame, order: Sequence[str]) -> pd.DataFrame:
    by = [col for col in order if col in df.columns]
    if not by:
        return df.reset_index(drop=True)
    return df.sort_values(by, kind="mergesort").reset_index(drop=True)


def unique_links(
    id_link: pd.DataFrame,
    name_col: str = "schname",
    con: ddb.DuckDBPyConnection | None = None,
) -> pd.DataFrame:
    # names listed more than once are dropped outright, never resolved
    conn = _connect(con)
    conn.register("id_link_source", id_link)
    out = conn.execute(
        f"""
        SELECT * EXCLUDE (n_rows)
        FROM (
            SELECT *, COUNT(*) OVER (PARTITION BY {_q(name_col)}) AS n_rows
            FROM id_link_source
        )
        WHERE n_rows = 1
        """
    ).df()
    conn.unregister("id_link_source")
    return _sort_rows(out, [name_col])


def align_scorecard_id(scorecard: pd.DataFrame, scorecard_id_col: str = "UNITID", link_id_col: str = "unitid") -> pd.DataFrame:
    if scorecard_id_col not in scorecard.columns:
        raise KeyError(f"Could not find scorecard identifier '{scorecard_id_col}'. Available columns: {list(scorecard.columns)}")
    if scorecard_id_col == link_id_col:
        return scorecard.copy()
    return scorecard.rename(columns={scorecard_id_col: link_id_col})


def _id_text(value: object) -> str | None:
    if pd.isna(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _harmonize_ids(links: pd.DataFrame, scorecard: pd.DataFrame, id_col: str) -> tuple[pd.DataFrame, pd.DataFrame]:
    # mismatched identifier dtypes (e.g. int vs text) are compared as text
    if links[id_col].dtype == scorecard[id_col].dtype:
        return links, scorecard
    links = links.copy()
    scorecard = scorecard.copy()
    links[id_col] = links[id_col].map(_id_text).astype(object)
    scorecard[id_col] = scorecard[id_col].map(_id_text).astype(object)
    return links, scorecard


def join_trends(
    trends: pd.DataFrame,
    links: pd.DataFrame,
    scorecard: pd.DataFrame,
    name_col: str = "schname",
    id_col: str = "unitid",
    con: ddb.DuckDBPyConnection | None = None,
) -> pd.DataFrame:
    """
    Inner-join search rows -> links (on name) -> scorecard (on identifier).

    Unmatched rows on either join drop out. Only the name and identifier are
    taken from the link table; trend columns that clash with scorecard columns
    yield to the scorecard.
    """
    links, scorecard = _harmonize_ids(links[[name_col, id_col]], scorecard, id_col)
    trend_cols = [col for col in trends.columns if col not in scorecard.columns]
    select_cols = [f"t.{_q(col)}" for col in trend_cols] + [f"s.{_q(col)}" for col in scorecard.columns]
    conn = _connect(con)
    conn.register("trends_source", trends)
    conn.register("links_source", links)
    conn.register("scorecard_source", scorecard)
    joined = conn.execute(
        f"""
        SELECT {', '.join(select_cols)}
        FROM trends_source AS t
        JOIN links_source AS l
          ON t.{_q(name_col)} = l.{_q(name_col)}
        JOIN scorecard_source AS s
          ON l.{_q(id_col)} = s.{_q(id_col)}
        """
    ).df()
    for view in ("trends_source", "links_source", "scorecard_source"):
        conn.unregister(view)
    return joined


def find_inconsistent_names(
    joined: pd.DataFrame,
    name_col: str = "schname",
    id_col: str = "unitid",
    con: ddb.DuckDBPyConnection | None = None,
) -> pd.DataFrame:
    conn = _connect(con)
    conn.register("joined_source", joined)
    out = conn.execute(
        f"""
        SELECT {_q(name_col)}, COUNT(DISTINCT {_q(id_col)}) AS n_ids
        FROM joined_source
        GROUP BY {_q(name_col)}
        HAVING COUNT(DISTINCT {_q(id_col)}) > 1
        ORDER BY {_q(name_col)}
        """
    ).df()
    conn.unregister("joined_source")
    return out


def enforce_unique_identity(
    joined: pd.DataFrame,
    name_col: str = "schname",
    id_col: str = "unitid",
    con: ddb.DuckDBPyConnection | None = None,
) -> pd.DataFrame:
    conn = _connect(con)
    conn.register("joined_source", joined)
    out = conn.execute(
        f"""
        SELECT *
        FROM joined_source
        WHERE {_q(name_col)} IN (
            SELECT {_q(name_col)}
            FROM joined_source
            GROUP BY {_q(name_col)}
            HAVING COUNT(DISTINCT {_q(id_col)}) = 1
        )
        """
    ).df()
    conn.unregister("joined_source")
    return out


def reconcile(
    trends: pd.DataFrame,
    id_link: pd.DataFrame,
    scorecard: pd.DataFrame,
    name_col: str = "schname",
    link_id_col: str = "unitid",
    scorecard_id_col: str = "UNITID",
    keyword_col: str = "keyword",
    verbose: bool = True,
) -> pd.DataFrame:
    conn = ddb.connect()
    try:
        links = unique_links(id_link, name_col=name_col, con=conn)
        if verbose:
            print(
                f"Identifier links: names {id_link[name_col].nunique():,} -> {links[name_col].nunique():,} "
                f"after dropping names listed more than once."
            )
        scorecard = align_scorecard_id(scorecard, scorecard_id_col=scorecard_id_col, link_id_col=link_id_col)
        joined = join_trends(trends, links, scorecard, name_col=name_col, id_col=link_id_col, con=conn)
        if verbose:
            print(f"Joined search rows to scorecard: rows {len(trends):,} -> {len(joined):,}.")

        inconsistent = find_inconsistent_names(joined, name_col=name_col, id_col=link_id_col, con=conn)
        if verbose:
            if inconsistent.empty:
                print("Inconsistent names check: no name maps to more than one identifier.")
            else:
                print(f"Inconsistent names check: {len(inconsistent):,} names map to more than one identifier.")
                print(inconsistent.to_string(index=False))

        out = enforce_unique_identity(joined, name_col=name_col, id_col=link_id_col, con=conn)
    finally:
        conn.close()
    if verbose and len(out) != len(joined):
        print(f"Removed rows for ambiguous names: {len(joined) - len(out):,}.")
    return _sort_rows(out, [name_col, keyword_col, "month", link_id_col])
