from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SpreadSkillConfig:
    # -----------------------
    # Derived column names
    # -----------------------
    mean_col: str = "ss_mean"
    var_col: str = "ss_var"
    dropped_prefix: str = "dropped_members_"
    var_ddof: int = 1

    # -----------------------
    # Ensemble members
    # -----------------------
    member_marker: str = "_mbr"

    # -----------------------
    # Grouping
    # -----------------------
    default_groupings: tuple[str, ...] = ("leadtime",)
    threshold_sentinel: str = "threshold"
    group_fill_value: str = "All"

    # -----------------------
    # Metadata columns
    # -----------------------
    station_col: str = "SID"
    date_col: str = "fcdate"


DEFAULT_CONFIG = SpreadSkillConfig()
