from __future__ import annotations

from vcemetrics.vcov.base import VceEstimator, meat_white, sandwich
from vcemetrics.vcov.classic import Simple, vcov_classic
from vcemetrics.vcov.cluster import Cluster, cluster_combinations, meat_cluster
from vcemetrics.vcov.dispatch import declared_variables, select_columns, stderr, vcov
from vcemetrics.vcov.hac import HAC, bartlett, get_kernel, parzen, truncated
from vcemetrics.vcov.registry import get_vce, list_vces, register_vce
from vcemetrics.vcov.robust import White

__all__ = [
    "VceEstimator",
    "Simple",
    "White",
    "HAC",
    "Cluster",
    "vcov",
    "vcov_classic",
    "sandwich",
    "meat_white",
    "meat_cluster",
    "cluster_combinations",
    "declared_variables",
    "select_columns",
    "stderr",
    "bartlett",
    "parzen",
    "truncated",
    "get_kernel",
    "register_vce",
    "get_vce",
    "list_vces",
]
