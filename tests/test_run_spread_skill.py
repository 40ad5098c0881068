"""Tests for spread and skill over a forecast model collection."""

import math

import numpy as np
import pandas as pd
import pytest

from spreadskill.verification.errors import ConfigurationError
from spreadskill.workflows.run_spread_skill import (
    SpreadSkillResult,
    collection_from_provider,
    compute_spread_skill_for_collection,
)


class DictProvider:
    def __init__(self, tables):
        self._tables = tables

    def names(self):
        return list(self._tables)

    def get_table(self, name):
        return self._tables[name]


class TestCollection:

    def test_end_to_end(self, collection):
        result = compute_spread_skill_for_collection(
            collection, "T2m", "leadtime",
            spread_drop_member={"modelA": 3, "modelB": None},
        )
        scores = result.ens_summary_scores

        assert isinstance(result, SpreadSkillResult)
        assert result.ens_threshold_scores is None
        assert len(scores) == 4
        assert list(scores.columns[:2]) == ["mname", "leadtime"]
        assert scores["mname"].tolist() == ["modelA", "modelA", "modelB", "modelB"]

        a = scores[scores["mname"] == "modelA"]
        b = scores[scores["mname"] == "modelB"]
        assert (a["dropped_members_spread"] != a["spread"]).all()
        np.testing.assert_allclose(b["dropped_members_spread"], b["spread"])

    def test_model_b_perfect_mean(self, collection):
        # modelB's ensemble mean equals the observation in every case
        scores = compute_spread_skill_for_collection(collection, "T2m").ens_summary_scores
        b = scores[scores["mname"] == "modelB"]
        assert (b["rmse"] == 0.0).all()
        assert np.isposinf(b["spread_skill_ratio"]).all()

    def test_mname_follows_collection_order(self, table_a, table_b):
        coll = {"zeta": table_b, "alpha": table_a, "mid": table_a}
        scores = compute_spread_skill_for_collection(coll, "T2m", "threshold").ens_summary_scores
        assert scores["mname"].tolist() == ["zeta", "alpha", "mid"]

    def test_scalar_drop_recycled(self, collection):
        scores = compute_spread_skill_for_collection(
            collection, "T2m", "threshold", spread_drop_member=1,
        ).ens_summary_scores
        assert (scores["dropped_members_spread"] != scores["spread"]).all()

    def test_positional_drop(self, collection):
        scores = compute_spread_skill_for_collection(
            collection, "T2m", "threshold", spread_drop_member=[None, 3],
        ).ens_summary_scores
        a, b = scores.iloc[0], scores.iloc[1]
        assert a["dropped_members_spread"] == pytest.approx(a["spread"])
        # modelB without member 3: variances 0.5, 0, 0.5, 0.5
        assert b["dropped_members_spread"] == pytest.approx(math.sqrt(1.5 / 4))

    def test_unknown_model_name(self, collection):
        with pytest.raises(ConfigurationError, match="modelC"):
            compute_spread_skill_for_collection(
                collection, "T2m", spread_drop_member={"modelA": 1, "modelC": 2},
            )

    def test_bad_length(self, table_a, table_b):
        coll = {"a": table_a, "b": table_b, "c": table_a}
        with pytest.raises(ConfigurationError):
            compute_spread_skill_for_collection(coll, "T2m", spread_drop_member=[1, 2])

    def test_empty_collection(self):
        with pytest.raises(ConfigurationError, match="empty"):
            compute_spread_skill_for_collection({}, "T2m")

    def test_several_groupings(self, collection):
        scores = compute_spread_skill_for_collection(
            collection, "T2m", ["leadtime", ["leadtime", "SID"]],
        ).ens_summary_scores
        assert list(scores.columns[:3]) == ["mname", "leadtime", "SID"]
        # modelA: 2 + 4 rows, modelB: 2 + 4 rows
        assert len(scores) == 12
        assert (scores["SID"] == "All").sum() == 4


class TestAttrs:

    def test_attrs(self, collection):
        result = compute_spread_skill_for_collection(collection, "T2m")
        attrs = result.attrs
        assert attrs["parameter"] == "T2m"
        assert attrs["mnames"] == ["modelA", "modelB"]
        assert attrs["groupings"] == [["leadtime"]]
        assert attrs["num_stations"] == 3
        assert attrs["start_date"] == pd.Timestamp("2024-01-01")
        assert attrs["end_date"] == pd.Timestamp("2024-01-03")

    def test_attrs_without_metadata_columns(self, collection):
        coll = {k: v.drop(columns=["SID", "fcdate"]) for k, v in collection.items()}
        attrs = compute_spread_skill_for_collection(coll, "T2m").attrs
        assert "num_stations" not in attrs
        assert "start_date" not in attrs


def test_collection_from_provider(collection):
    provider = DictProvider(collection)
    coll = collection_from_provider(provider)
    assert list(coll) == ["modelA", "modelB"]
    result = compute_spread_skill_for_collection(coll, "T2m")
    assert len(result.ens_summary_scores) == 4
