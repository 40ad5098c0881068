# workflows/run_spread_skill.py
# ================================================================
"""
Spread and skill verification for a collection of forecast models.

Handles:
- drop-member resolution across models
- per-model scoring
- concatenation and metadata
"""
# ================================================================

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import pandas as pd

from spreadskill.analysis.grouping import normalise_groupings
from spreadskill.verification.config import DEFAULT_CONFIG, SpreadSkillConfig
from spreadskill.verification.errors import ConfigurationError
from spreadskill.verification.member_drop import resolve_member_drop
from spreadskill.verification.spread_skill import compute_spread_skill

log = logging.getLogger(__name__)


class TableProvider(Protocol):
    def names(self) -> list[str]: ...

    def get_table(self, name: str) -> pd.DataFrame: ...


@dataclass(frozen=True)
class SpreadSkillResult:
    ens_summary_scores: pd.DataFrame
    ens_threshold_scores: pd.DataFrame | None = None
    attrs: dict[str, Any] = field(default_factory=dict)


def collection_from_provider(provider: TableProvider) -> dict[str, pd.DataFrame]:
    return {name: provider.get_table(name) for name in provider.names()}


def _collection_attrs(
    collection: Mapping[str, pd.DataFrame],
    parameter: str,
    groupings: list[list[str]],
    config: SpreadSkillConfig,
) -> dict[str, Any]:
    attrs: dict[str, Any] = dict(
        parameter=parameter,
        mnames=list(collection),
        groupings=groupings,
    )

    tables = list(collection.values())

    if all(config.station_col in t.columns for t in tables):
        stations = pd.concat([t[config.station_col] for t in tables]).dropna()
        attrs["num_stations"] = int(stations.nunique())

    if all(config.date_col in t.columns for t in tables):
        dates = pd.concat([t[config.date_col] for t in tables]).dropna()
        if not dates.empty:
            attrs["start_date"] = dates.min()
            attrs["end_date"] = dates.max()

    return attrs


def compute_spread_skill_for_collection(
    collection: Mapping[str, pd.DataFrame],
    parameter: str,
    groupings=None,
    spread_drop_member=None,
    jitter_fcst: Callable[[float], float] | None = None,
    config: SpreadSkillConfig | None = None,
) -> SpreadSkillResult:
    """
    Compute spread and skill for every forecast model in ``collection``.

    ``spread_drop_member`` may be a scalar (recycled for all models), a
    sequence with one entry per model, or a mapping of model name to the
    members to drop for that model.

    Returns a SpreadSkillResult whose ``ens_summary_scores`` carries an
    ``mname`` column, with models in collection order.
    """
    config = config or DEFAULT_CONFIG
    groupings = normalise_groupings(
        config.default_groupings if groupings is None else groupings
    )

    mnames = list(collection)
    if not mnames:
        raise ConfigurationError("Forecast collection is empty.")

    drop_members = resolve_member_drop(spread_drop_member, mnames)

    frames = []
    for mname in mnames:
        log.info("Spread and skill for %s (drop members: %s)", mname, drop_members[mname])
        scores = compute_spread_skill(
            collection[mname],
            parameter,
            groupings=groupings,
            spread_drop_member=drop_members[mname],
            jitter_fcst=jitter_fcst,
            config=config,
        )
        scores.insert(0, "mname", mname)
        frames.append(scores)

    summary = pd.concat(frames, ignore_index=True)
    log.info("Computed %d summary rows for %d models", len(summary), len(mnames))

    return SpreadSkillResult(
        ens_summary_scores=summary,
        ens_threshold_scores=None,
        attrs=_collection_attrs(collection, parameter, groupings, config),
    )
