# analysis/grouping.py
# ================================================================
"""
Grouped spread / skill summaries.

Pure numerical routines on tables that already carry an ensemble mean
and variance per case:
- grouping spec normalisation
- per-group bias, stde, rmse, spread and spread-skill ratios
- filling of missing group keys

No I/O.
"""
# ================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import pandas as pd

from spreadskill.verification.errors import SchemaError

log = logging.getLogger(__name__)

SCORE_COLS = [
    "num_cases",
    "mean_bias",
    "stde",
    "rmse",
    "spread",
    "dropped_members_spread",
    "spread_skill_ratio",
    "dropped_members_spread_skill_ratio",
]


# ----------------------------------------------------------------
# Grouping specs
# ----------------------------------------------------------------

def normalise_groupings(groupings) -> list[list[str]]:
    """
    Turn ``groupings`` into a list of descriptors (each a list of columns).

    "leadtime"                      → [["leadtime"]]
    ["leadtime", "SID"]             → [["leadtime", "SID"]]
    [["leadtime"], ["leadtime", "SID"]] or ["leadtime", ("SID",)]
                                    → one descriptor per item
    """
    if isinstance(groupings, str):
        return [[groupings]]

    groupings = list(groupings)
    if not any(isinstance(g, (list, tuple)) for g in groupings):
        return [groupings]

    return [[g] if isinstance(g, str) else list(g) for g in groupings]


def group_columns(groupings: list[list[str]], threshold_sentinel: str = "threshold") -> list[str]:
    out: list[str] = []
    for group in groupings:
        for col in group:
            if col != threshold_sentinel and col not in out:
                out.append(col)
    return out


# ----------------------------------------------------------------
# Scores
# ----------------------------------------------------------------

def _scores(err: pd.Series, var: pd.Series, dropped_var: pd.Series) -> dict:
    # a missing value anywhere in the group makes its scores NaN
    rmse = np.sqrt((err ** 2).mean(skipna=False))
    spread = np.sqrt(var.mean(skipna=False))
    dropped_spread = np.sqrt(dropped_var.mean(skipna=False))

    with np.errstate(divide="ignore", invalid="ignore"):
        ssr = np.float64(spread) / np.float64(rmse)
        dropped_ssr = np.float64(dropped_spread) / np.float64(rmse)

    return dict(
        num_cases=len(err),
        mean_bias=err.mean(skipna=False),
        stde=err.std(ddof=1, skipna=False),
        rmse=rmse,
        spread=spread,
        dropped_members_spread=dropped_spread,
        spread_skill_ratio=ssr,
        dropped_members_spread_skill_ratio=dropped_ssr,
    )


def summarise_spread_skill(
    group: Sequence[str],
    df: pd.DataFrame,
    parameter: str,
    mean_col: str = "ss_mean",
    var_col: str = "ss_var",
    dropped_prefix: str = "dropped_members_",
    threshold_sentinel: str = "threshold",
) -> pd.DataFrame:
    """
    Compute spread and skill scores for each group of ``df``.

    Parameters
    ----------
    group : sequence of str
        Columns to group by. ``[threshold_sentinel]`` alone treats the
        whole table as one group; the sentinel is otherwise ignored.
    df : DataFrame
        Table with ``parameter``, ``mean_col`` and ``var_col`` columns and,
        optionally, a ``dropped_prefix + var_col`` column. When the latter
        is missing no members were dropped and the full variance is used.

    Returns
    -------
    DataFrame
        One row per group, key columns first, in sorted key order
        (missing keys last).
    """
    group = list(group)
    dropped_var_col = f"{dropped_prefix}{var_col}"

    for col in (parameter, mean_col, var_col):
        if col not in df.columns:
            raise SchemaError(f"No column found for {col}")

    if dropped_var_col not in df.columns:
        df = df.assign(**{dropped_var_col: df[var_col]})

    err = df[mean_col] - df[parameter]
    work = pd.DataFrame({
        "_err": err,
        "_var": df[var_col],
        "_dropped_var": df[dropped_var_col],
    })

    if group == [threshold_sentinel]:
        log.debug("Summarising %d cases as a single group", len(df))
        return pd.DataFrame(
            [_scores(work["_err"], work["_var"], work["_dropped_var"])],
            columns=SCORE_COLS,
        )

    keys = [g for g in group if g != threshold_sentinel]
    missing = [k for k in keys if k not in df.columns]
    if missing:
        raise SchemaError(f"Grouping columns not found: {missing}")

    if not keys:
        return pd.DataFrame(
            [_scores(work["_err"], work["_var"], work["_dropped_var"])],
            columns=SCORE_COLS,
        )

    work[keys] = df[keys]

    rows = []
    for key, sub in work.groupby(keys, sort=True, dropna=False):
        rows.append(dict(
            zip(keys, key),
            **_scores(sub["_err"], sub["_var"], sub["_dropped_var"]),
        ))

    log.debug("Summarised %d cases into %d groups by %s", len(df), len(rows), keys)
    return pd.DataFrame(rows, columns=[*keys, *SCORE_COLS])


# ----------------------------------------------------------------
# Group keys
# ----------------------------------------------------------------

def fill_group_na(
    df: pd.DataFrame,
    groupings: list[list[str]],
    fill_value: str = "All",
    threshold_sentinel: str = "threshold",
) -> pd.DataFrame:
    """
    Replace missing group keys with ``fill_value``.

    Group columns named in ``groupings`` but absent from ``df`` are added.
    Key columns are moved to the front.
    """
    cols = group_columns(groupings, threshold_sentinel)
    df = df.copy()

    for col in cols:
        if col not in df.columns:
            df[col] = fill_value
        elif df[col].isna().any():
            df[col] = df[col].astype(object).where(df[col].notna(), fill_value)

    rest = [c for c in df.columns if c not in cols]
    return df[[*cols, *rest]]
