# src/vcemetrics/vcov/cluster.py
from __future__ import annotations

import itertools
import logging
import warnings
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
import torch

from vcemetrics.exceptions import ConfigurationError
from vcemetrics.models.base import VceModel
from vcemetrics.table import Grouping, group_codes, read_columns
from vcemetrics.typing import AuxData
from vcemetrics.vcov.base import VceEstimator, sandwich

logger = logging.getLogger(__name__)

_PSD_TOL = 1e-10


def cluster_combinations(columns: Sequence[str]) -> list[tuple[tuple[str, ...], int]]:
    """Non-empty combinations of cluster columns with their inclusion-exclusion sign.

    Odd-sized combinations enter with +1, even-sized ones with -1.
    """
    out = []
    for size in range(1, len(columns) + 1):
        sign = 1 if size % 2 == 1 else -1
        for combo in itertools.combinations(columns, size):
            out.append((combo, sign))
    return out


def meat_cluster(Xu: torch.Tensor, grouping: Grouping) -> torch.Tensor:
    """One-way cluster meat: sum_g S_g S_g' * G/(G-1), S_g = sum_{i in g} x_i u_i.

    Xu : (R,n,k)
    Rows with a missing cluster key do not contribute.
    """
    R, n, k = Xu.shape
    G = grouping.n_groups

    if G == n:
        # singleton clusters: the group sums are the rows themselves
        meat = torch.einsum("rnk,rnl->rkl", Xu, Xu)
    else:
        rows = np.flatnonzero(grouping.valid)
        idx = torch.as_tensor(rows, device=Xu.device)
        inv = torch.as_tensor(grouping.codes[rows], device=Xu.device, dtype=torch.int64)
        Xv = Xu[:, idx, :]
        S = torch.zeros((R, G, k), device=Xu.device, dtype=Xu.dtype)
        S.scatter_add_(1, inv.view(1, -1, 1).expand(R, rows.shape[0], k), Xv)
        meat = torch.einsum("rgk,rgl->rkl", S, S)

    return meat * (float(G) / float(G - 1))


@dataclass(frozen=True)
class Cluster(VceEstimator):
    """One- or multi-way cluster-robust vcov (Cameron, Gelbach & Miller 2011).

    columns : cluster column name(s); a single string means one-way clustering

    The meat is the signed sum of one-way meats over every intersection of
    the cluster dimensions, then scaled by (n-1)/df_resid.
    """

    columns: Union[tuple[str, ...], str]

    name = "cluster"

    def __post_init__(self) -> None:
        cols = (self.columns,) if isinstance(self.columns, str) else tuple(self.columns)
        if len(cols) < 1:
            raise ConfigurationError("Cluster needs at least one cluster column")
        if len(set(cols)) != len(cols):
            raise ConfigurationError(f"Duplicate cluster columns: {list(cols)}")
        object.__setattr__(self, "columns", cols)

    def declared_variables(self) -> frozenset[str]:
        return frozenset(self.columns)

    def groupings(self, model: VceModel, aux: Optional[AuxData]) -> list[tuple[Grouping, int]]:
        """Build and validate every signed grouping before any meat is computed."""
        n = int(model.nobs)
        df = read_columns(aux, self.columns, n=n)

        out = []
        for combo, sign in cluster_combinations(self.columns):
            g = group_codes(df, combo)
            if g.n_groups < 2:
                raise ConfigurationError(f"Need at least 2 clusters for {list(combo)}. Got G={g.n_groups}.")
            out.append((g, sign))
        return out

    def compute(self, model: VceModel, aux: Optional[AuxData] = None) -> torch.Tensor:
        terms = self.groupings(model, aux)

        Xu = model.regressors * model.residuals.unsqueeze(-1)
        R, n, k = Xu.shape
        meat = torch.zeros((R, k, k), device=Xu.device, dtype=Xu.dtype)
        for g, sign in terms:
            logger.debug("Cluster term %s (sign %+d): G=%d", list(g.columns), sign, g.n_groups)
            meat = meat + sign * meat_cluster(Xu, g)

        meat = meat * (float(n - 1) / float(model.df_resid))
        V = sandwich(model, meat)

        if len(self.columns) > 1:
            _warn_if_not_psd(V)
        return V


def _warn_if_not_psd(V: torch.Tensor) -> None:
    eig = torch.linalg.eigvalsh(V)  # (R,k)
    scale = eig.abs().amax(dim=-1).clamp_min(torch.finfo(V.dtype).tiny)
    if bool((eig.amin(dim=-1) < -_PSD_TOL * scale).any()):
        warnings.warn(
            "Multi-way cluster vcov is not positive semi-definite; "
            "some variances may be negative.",
            RuntimeWarning,
            stacklevel=3,
        )
