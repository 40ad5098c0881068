# analysis/ensemble.py
from __future__ import annotations

import re
from collections.abc import Callable, Iterable

import pandas as pd

from spreadskill.verification.errors import SchemaError


class EnsembleStats:
    """
    Per-case ensemble mean and variance over member columns.

    Member columns are those whose name contains ``member_marker``; the
    member number is the integer following the marker (``fcst_mbr003`` → 3).
    """

    def __init__(self, member_marker: str = "_mbr", ddof: int = 1):
        self.member_marker = member_marker
        self.ddof = ddof
        self._number_re = re.compile(re.escape(member_marker) + r"(\d+)")

    def member_cols(self, df: pd.DataFrame) -> list[str]:
        cols = [c for c in df.columns if self.member_marker in str(c)]
        if not cols:
            raise SchemaError(
                f"No ensemble member columns found (marker '{self.member_marker}')."
            )
        return cols

    def member_number(self, col: str) -> int | None:
        m = self._number_re.search(str(col))
        return int(m.group(1)) if m else None

    def jitter(self, df: pd.DataFrame, fn: Callable[[float], float]) -> pd.DataFrame:
        cols = self.member_cols(df)
        df = df.copy()
        df[cols] = df[cols].map(fn)
        return df

    def attach_mean_and_var(
        self,
        df: pd.DataFrame,
        mean_name: str,
        var_name: str,
        drop_members: Iterable[int] | None = None,
        dropped_prefix: str = "dropped_members_",
    ) -> pd.DataFrame:
        cols = self.member_cols(df)
        members = df[cols]

        df = df.copy()
        df[mean_name] = members.mean(axis=1, skipna=False)
        df[var_name] = members.var(axis=1, ddof=self.ddof, skipna=False)

        if drop_members is not None:
            keep = self._keep_cols(cols, set(drop_members))
            df[f"{dropped_prefix}{var_name}"] = members[keep].var(axis=1, ddof=self.ddof, skipna=False)

        return df

    def _keep_cols(self, cols: list[str], drop: set[int]) -> list[str]:
        numbers = {c: self.member_number(c) for c in cols}

        missing = sorted(drop - set(numbers.values()))
        if missing:
            raise SchemaError(f"Members to drop not found in table: {missing}")

        return [c for c in cols if numbers[c] not in drop]
