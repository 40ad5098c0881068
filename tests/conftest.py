"""
Pytest configuration and fixtures for spreadskill tests.

Fixtures build small forecast tables with member columns named
``<model>_mbrNNN``, an observation column ``T2m`` and grouping columns
``leadtime`` and ``SID``.
"""

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def make_table(model, members, obs, **keys):
    """Build a forecast table from a (cases x members) array."""
    members = np.asarray(members, dtype=float)
    data = {k: list(v) for k, v in keys.items()}
    for j in range(members.shape[1]):
        data[f"{model}_mbr{j + 1:03d}"] = members[:, j]
    data["T2m"] = list(obs)
    return pd.DataFrame(data)


@pytest.fixture
def table_a():
    """4 cases, 3 members, 2 lead times."""
    return make_table(
        "modelA",
        [[1.0, 2.0, 6.0], [2.0, 3.0, 7.0], [0.0, 1.0, 5.0], [4.0, 5.0, 12.0]],
        obs=[2.0, 3.5, 1.0, 6.0],
        leadtime=[0, 0, 6, 6],
        SID=[1001, 1002, 1001, 1002],
        fcdate=pd.to_datetime(["2024-01-01", "2024-01-01", "2024-01-02", "2024-01-02"]),
    )


@pytest.fixture
def table_b():
    """4 cases, 3 members, 2 lead times."""
    return make_table(
        "modelB",
        [[1.5, 2.5, 2.0], [3.0, 3.0, 4.5], [0.5, 1.5, 1.0], [5.0, 6.0, 7.0]],
        obs=[2.0, 3.5, 1.0, 6.0],
        leadtime=[0, 0, 6, 6],
        SID=[1001, 1002, 1001, 1003],
        fcdate=pd.to_datetime(["2024-01-01", "2024-01-01", "2024-01-02", "2024-01-03"]),
    )


@pytest.fixture
def collection(table_a, table_b):
    return {"modelA": table_a, "modelB": table_b}
