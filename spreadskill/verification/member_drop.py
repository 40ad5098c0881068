# verification/member_drop.py
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd

from spreadskill.verification.errors import ConfigurationError

log = logging.getLogger(__name__)


def _is_sequence(x: Any) -> bool:
    if isinstance(x, (str, bytes)):
        return False
    return isinstance(x, (Sequence, np.ndarray))


def _all_absent(model_names: list[str]) -> dict[str, Any]:
    return {name: None for name in model_names}


def resolve_member_drop(spec: Any, model_names: Sequence[str]) -> dict[str, Any]:
    """
    Resolve a drop-member spec into one entry per forecast model.

    Accepted shapes:
      - None / empty         → every model maps to None
      - scalar or set        → recycled for every model
      - unnamed sequence     → positional, same length as ``model_names``
                               (a single element is recycled)
      - mapping / Series     → by model name; models not named map to None
                               (a Series with a RangeIndex is positional)

    Returns a dict keyed by ``model_names`` in that order. Values are passed
    through untouched.
    """
    names = list(model_names)

    if isinstance(spec, pd.Series):
        # a default RangeIndex carries no model names
        spec = spec.tolist() if isinstance(spec.index, pd.RangeIndex) else spec.to_dict()

    if isinstance(spec, np.ndarray) and spec.ndim == 0:
        spec = spec.item()

    if spec is None:
        return _all_absent(names)

    if isinstance(spec, Mapping):
        resolved = _resolve_named(dict(spec), names)
    elif _is_sequence(spec):
        resolved = _resolve_positional(list(spec), names)
    else:
        resolved = {name: spec for name in names}

    log.debug("Resolved drop members: %s", resolved)
    return resolved


def _resolve_positional(values: list, names: list[str]) -> dict[str, Any]:
    if len(values) == 0:
        return _all_absent(names)

    if len(values) == len(names):
        return dict(zip(names, values))

    if len(values) == 1:
        return {name: values[0] for name in names}

    if any(_is_sequence(v) or isinstance(v, (set, frozenset, Mapping)) for v in values):
        raise ConfigurationError(
            f"If the drop-member spec is a list it must be the same length as "
            f"the forecast collection ({len(names)}) or use names, got {len(values)}."
        )
    raise ConfigurationError(
        f"Bad input for drop-member spec: {len(values)} values for {len(names)} models."
    )


def _resolve_named(spec: dict, names: list[str]) -> dict[str, Any]:
    if len(spec) == 0:
        return _all_absent(names)

    keys = list(spec)

    if set(keys) == set(names):
        return {name: spec[name] for name in names}

    known = [k for k in keys if k in names]
    if not known:
        raise ConfigurationError(
            f"Drop-member spec: {', '.join(map(str, keys))} not found in forecast collection."
        )

    unknown = [k for k in keys if k not in names]
    if unknown:
        raise ConfigurationError(
            f"Drop-member spec: {', '.join(map(str, unknown))} not found in forecast collection."
        )

    return {name: spec.get(name) for name in names}
