import numpy as np
import pandas as pd
import pytest

from vcemetrics import ConfigurationError
from vcemetrics.table import TimeAlignment, group_codes, read_columns


def test_group_codes_single_column():
    df = pd.DataFrame({"g": ["b", "a", "b", "c"]})
    g = group_codes(df, ["g"])

    assert g.n_groups == 3
    assert g.codes.tolist() == [1, 0, 1, 2]
    assert g.n_excluded == 0


def test_group_codes_interaction_and_missing():
    df = pd.DataFrame({"a": [1, 1, 2, 2, np.nan], "b": ["x", "y", "x", "x", "y"]})
    g = group_codes(df, ["a", "b"])

    assert g.n_groups == 3
    assert g.codes[4] == -1
    assert g.valid.tolist() == [True, True, True, True, False]
    assert g.codes[2] == g.codes[3]
    assert len({g.codes[0], g.codes[1], g.codes[2]}) == 3


def test_group_codes_categorical_unobserved_levels():
    df = pd.DataFrame({"g": pd.Categorical(["a", "a", "c"], categories=["a", "b", "c"])})
    g = group_codes(df, ["g"])
    assert g.n_groups == 2
    assert sorted(set(g.codes.tolist())) == [0, 1]


def test_time_alignment_partners_with_gap():
    align = TimeAlignment.from_column(pd.Series([10, 11, 13, 12], name="t"))

    assert align.partners(1).tolist() == [-1, 0, 3, 1]
    assert align.partners(2).tolist() == [-1, -1, 1, 0]


def test_time_alignment_missing_values():
    align = TimeAlignment.from_column(pd.Series([0.0, np.nan, 2.0, 3.0], name="t"))
    assert align.partners(1).tolist() == [-1, -1, -1, 2]


def test_time_alignment_nullable_integers():
    align = TimeAlignment.from_column(pd.Series([1, 2, None, 4], dtype="Int64", name="t"))
    assert align.partners(1).tolist() == [-1, 0, -1, -1]


def test_time_alignment_rejects_duplicates():
    with pytest.raises(ConfigurationError):
        TimeAlignment.from_column(pd.Series([1, 2, 2], name="t"))


def test_read_columns_requires_aux():
    with pytest.raises(ConfigurationError):
        read_columns(None, ["t"], n=3)


def test_read_columns_resets_index():
    aux = pd.DataFrame({"t": [5, 6, 7]}, index=[10, 20, 30])
    out = read_columns(aux, ["t"], n=3)
    assert list(out.index) == [0, 1, 2]
    assert list(aux.index) == [10, 20, 30]


@pytest.mark.parametrize(
    "values",
    [
        pd.date_range("2020-01-01", periods=5, freq="D"),
        pd.to_timedelta(np.arange(5), unit="D"),
        pd.period_range("2020-01", periods=5, freq="M"),
    ],
    ids=["datetime", "timedelta", "period"],
)
def test_time_alignment_rejects_datetime_like(values):
    with pytest.raises(ConfigurationError):
        TimeAlignment.from_column(pd.Series(values, name="t"))
