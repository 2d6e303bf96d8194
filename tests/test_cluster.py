import numpy as np
import pandas as pd
import pytest
import torch

from vcemetrics import Cluster, ConfigurationError, DimensionMismatchError, FittedModel, White, vcov
from vcemetrics.vcov import cluster_combinations

from conftest import make_design, sandwich_ref


def _one_way_meat(Xu, labels):
    """sum_g u_g u_g' * G/(G-1) with a plain Python loop over groups."""
    groups = {}
    for i, g in enumerate(labels):
        if g is None or (isinstance(g, float) and np.isnan(g)):
            continue
        groups.setdefault(g, torch.zeros(Xu.shape[1], dtype=Xu.dtype))
        groups[g] = groups[g] + Xu[i]
    G = len(groups)
    meat = sum(torch.outer(u, u) for u in groups.values())
    return meat * G / (G - 1)


def _panel(n_firms=8, n_years=6, k=3, seed=11):
    n = n_firms * n_years
    X, e = make_design(1, n, k, seed=seed)
    firm = np.repeat(np.arange(n_firms), n_years)
    year = np.tile(np.arange(2000, 2000 + n_years), n_firms)
    return X[0], e[0], pd.DataFrame({"firm": firm, "year": year})


def test_two_way_combinations_and_signs():
    combos = cluster_combinations(["A", "B"])
    assert combos == [(("A",), 1), (("B",), 1), (("A", "B"), -1)]


def test_three_way_has_seven_terms():
    combos = cluster_combinations(["A", "B", "C"])
    assert len(combos) == 7
    assert [s for _, s in combos] == [1, 1, 1, -1, -1, -1, 1]


def test_one_way_matches_cr1_reference(torch_dtype):
    X, e, aux = _panel()
    n, k = X.shape
    m = FittedModel(X, e)

    V = vcov(m, Cluster("firm"), aux)

    Xu = X * e.unsqueeze(-1)
    meat = _one_way_meat(Xu, aux["firm"].tolist()) * (n - 1) / (n - k)
    assert torch.allclose(V, sandwich_ref(X, meat), atol=1e-12, rtol=1e-8)


def test_two_way_is_inclusion_exclusion(torch_dtype):
    X, e, aux = _panel()
    n, k = X.shape
    m = FittedModel(X, e)

    V = vcov(m, Cluster(["firm", "year"]), aux)

    Xu = X * e.unsqueeze(-1)
    firm = aux["firm"].tolist()
    year = aux["year"].tolist()
    meat = (
        _one_way_meat(Xu, firm)
        + _one_way_meat(Xu, year)
        - _one_way_meat(Xu, list(zip(firm, year)))
    ) * (n - 1) / (n - k)
    assert torch.allclose(V, sandwich_ref(X, meat), atol=1e-12, rtol=1e-8)


def test_singleton_clusters_equal_white(torch_dtype):
    n = 30
    X, e = make_design(1, n, 3)
    m = FittedModel(X[0], e[0])
    aux = pd.DataFrame({"id": np.arange(n)})

    assert torch.allclose(vcov(m, Cluster("id"), aux), vcov(m, White()), atol=1e-14, rtol=1e-10)


def test_cluster_invariant_to_row_order(torch_dtype):
    X, e, aux = _panel(seed=4)
    perm = np.random.default_rng(1).permutation(X.shape[0])

    V = vcov(FittedModel(X, e), Cluster(["firm", "year"]), aux)
    V_perm = vcov(
        FittedModel(X[perm], e[perm]),
        Cluster(["firm", "year"]),
        aux.iloc[perm],
    )
    assert torch.allclose(V, V_perm, atol=1e-12, rtol=1e-10)


def test_cluster_column_order_does_not_matter(torch_dtype):
    X, e, aux = _panel(seed=6)
    m = FittedModel(X, e)
    V_ab = vcov(m, Cluster(["firm", "year"]), aux)
    V_ba = vcov(m, Cluster(["year", "firm"]), aux)
    assert torch.allclose(V_ab, V_ba, atol=1e-12, rtol=1e-10)


def test_missing_cluster_labels_are_excluded(torch_dtype):
    n = 12
    X, e = make_design(1, n, 2, seed=2)
    labels = [0, 0, 1, 1, None, 2, 2, 3, 3, None, 4, 4]
    m = FittedModel(X[0], e[0])

    V = vcov(m, Cluster("g"), pd.DataFrame({"g": labels}))

    Xu = X[0] * e[0].unsqueeze(-1)
    meat = _one_way_meat(Xu, labels) * (n - 1) / (n - 2)
    assert torch.allclose(V, sandwich_ref(X[0], meat), atol=1e-12, rtol=1e-8)


def test_string_labels_and_mapping_aux(torch_dtype):
    X, e, aux = _panel(seed=13)
    m = FittedModel(X, e)
    names = {i: f"firm-{i}" for i in range(8)}
    mapping = {"firm": np.array([names[f] for f in aux["firm"]])}

    assert torch.allclose(vcov(m, Cluster("firm"), mapping), vcov(m, Cluster("firm"), aux))


def test_batched_cluster_matches_per_replication(torch_dtype):
    R, n = 3, 24
    X, e = make_design(R, n, 2, seed=5)
    aux = pd.DataFrame({"g": np.arange(n) // 4, "h": np.arange(n) % 3})

    V = vcov(FittedModel(X, e), Cluster(["g", "h"]), aux)
    for r in range(R):
        assert torch.allclose(V[r], vcov(FittedModel(X[r], e[r]), Cluster(["g", "h"]), aux), atol=1e-12)


def test_cluster_is_symmetric(torch_dtype):
    X, e, aux = _panel(seed=21)
    V = vcov(FittedModel(X, e), Cluster(["firm", "year"]), aux)
    assert torch.allclose(V, V.T)


def test_empty_cluster_columns_raise():
    with pytest.raises(ConfigurationError):
        Cluster([])


def test_duplicate_cluster_columns_raise():
    with pytest.raises(ConfigurationError):
        Cluster(["a", "a"])


def test_single_string_is_one_way():
    est = Cluster("firm")
    assert est.columns == ("firm",)
    assert est.declared_variables() == frozenset({"firm"})


def test_single_cluster_raises(torch_dtype):
    X, e = make_design(1, 10, 2)
    m = FittedModel(X[0], e[0])
    with pytest.raises(ConfigurationError):
        vcov(m, Cluster("g"), pd.DataFrame({"g": [1] * 10}))


def test_missing_cluster_column_raises(torch_dtype):
    X, e = make_design(1, 10, 2)
    m = FittedModel(X[0], e[0])
    with pytest.raises(ConfigurationError):
        vcov(m, Cluster(["g", "h"]), pd.DataFrame({"g": np.arange(10) % 2}))
    with pytest.raises(ConfigurationError):
        vcov(m, Cluster("g"))


def test_cluster_length_mismatch_raises(torch_dtype):
    X, e = make_design(1, 10, 2)
    m = FittedModel(X[0], e[0])
    with pytest.raises(DimensionMismatchError):
        vcov(m, Cluster("g"), {"g": np.arange(9) % 2})
