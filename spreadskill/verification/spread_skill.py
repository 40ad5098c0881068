# verification/spread_skill.py
from __future__ import annotations

import logging
import numbers
from collections.abc import Callable, Iterable
from typing import Any

import numpy as np
import pandas as pd

from spreadskill.analysis.ensemble import EnsembleStats
from spreadskill.analysis.grouping import (
    fill_group_na,
    normalise_groupings,
    summarise_spread_skill,
)
from spreadskill.verification.config import DEFAULT_CONFIG, SpreadSkillConfig
from spreadskill.verification.errors import ConfigurationError, SchemaError

log = logging.getLogger(__name__)


def _is_member_number(x: Any) -> bool:
    return isinstance(x, numbers.Integral) and not isinstance(x, (bool, np.bool_))


def check_drop_members(spread_drop_member: Any) -> tuple[int, ...] | None:
    """Validate a single-table drop spec and return it as a tuple of member numbers."""
    if spread_drop_member is None:
        return None

    if isinstance(spread_drop_member, (str, bytes)) or not isinstance(
        spread_drop_member, (Iterable, numbers.Number)
    ):
        raise ConfigurationError(
            f"spread_drop_member must be numeric, got {spread_drop_member!r}"
        )

    values = (
        list(spread_drop_member)
        if isinstance(spread_drop_member, Iterable)
        else [spread_drop_member]
    )

    for v in values:
        if isinstance(v, numbers.Real) and not isinstance(v, numbers.Integral) and float(v).is_integer():
            continue
        if not _is_member_number(v):
            raise ConfigurationError(
                f"spread_drop_member must be numeric member numbers, got {v!r}"
            )

    return tuple(int(v) for v in values)


def compute_spread_skill(
    df: pd.DataFrame,
    parameter: str,
    groupings=None,
    spread_drop_member=None,
    jitter_fcst: Callable[[float], float] | None = None,
    config: SpreadSkillConfig | None = None,
) -> pd.DataFrame:
    """
    Compute skill (RMSE, bias, stde) and spread of an ensemble forecast.

    Parameters
    ----------
    df : DataFrame
        One row per case with ensemble member columns and an observation
        column named ``parameter``.
    parameter : str
        Name of the observation column.
    groupings : str or sequence, optional
        Grouping descriptor(s). Defaults to ``config.default_groupings``.
    spread_drop_member : int or sequence of int, optional
        Members to exclude from the dropped-members variance.
    jitter_fcst : callable, optional
        Applied to every member value before the statistics are computed,
        e.g. to account for observation error in the spread.

    Returns
    -------
    DataFrame
        Scores for every group of every descriptor, concatenated.
    """
    config = config or DEFAULT_CONFIG
    groupings = normalise_groupings(
        config.default_groupings if groupings is None else groupings
    )

    if parameter not in df.columns:
        raise SchemaError(f"No column found for {parameter}")

    drop = check_drop_members(spread_drop_member)

    stats = EnsembleStats(member_marker=config.member_marker, ddof=config.var_ddof)

    if jitter_fcst is not None:
        if not callable(jitter_fcst):
            raise ConfigurationError("jitter_fcst must be a function.")
        df = stats.jitter(df, jitter_fcst)

    df = stats.attach_mean_and_var(
        df,
        mean_name=config.mean_col,
        var_name=config.var_col,
        drop_members=drop,
        dropped_prefix=config.dropped_prefix,
    )

    log.debug(
        "Computing spread and skill for %s over %d cases, groupings=%s, drop=%s",
        parameter, len(df), groupings, drop,
    )

    scores = [
        summarise_spread_skill(
            group,
            df,
            parameter,
            mean_col=config.mean_col,
            var_col=config.var_col,
            dropped_prefix=config.dropped_prefix,
            threshold_sentinel=config.threshold_sentinel,
        )
        for group in groupings
    ]

    return fill_group_na(
        pd.concat(scores, ignore_index=True),
        groupings,
        fill_value=config.group_fill_value,
        threshold_sentinel=config.threshold_sentinel,
    )
