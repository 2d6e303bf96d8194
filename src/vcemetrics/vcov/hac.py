# src/vcemetrics/vcov/hac.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

import numpy as np
import torch

from vcemetrics.exceptions import ConfigurationError, NotSupportedError
from vcemetrics.models.base import VceModel
from vcemetrics.table import TimeAlignment, read_columns
from vcemetrics.typing import AuxData
from vcemetrics.vcov.base import VceEstimator, sandwich

logger = logging.getLogger(__name__)

WeightFn = Callable[[int, int], float]


def bartlett(i: int, nlag: int) -> float:
    """Newey-West / Bartlett weight 1 - i/(nlag+1)."""
    return 1.0 - float(i) / float(nlag + 1)


def parzen(i: int, nlag: int) -> float:
    z = float(i) / float(nlag + 1)
    if z <= 0.5:
        return 1.0 - 6.0 * z * z + 6.0 * z**3
    if z <= 1.0:
        return 2.0 * (1.0 - z) ** 3
    return 0.0


def truncated(i: int, nlag: int) -> float:
    """Uniform weights (Hansen-White truncated kernel)."""
    return 1.0


_KERNELS: dict[str, WeightFn] = {
    "bartlett": bartlett,
    "nw": bartlett,
    "newey-west": bartlett,
    "parzen": parzen,
    "truncated": truncated,
}


def get_kernel(name: str) -> WeightFn:
    key = str(name).strip().lower()
    if key not in _KERNELS:
        raise NotSupportedError(f"Unknown HAC kernel {name!r}. Available: {', '.join(sorted(_KERNELS))}")
    return _KERNELS[key]


@dataclass(frozen=True)
class HAC(VceEstimator):
    """Newey-West vcov with lags aligned on a time column.

    time      : name of the time column in the auxiliary table
    nlag      : number of autocovariance terms including lag 0, so lag
                offsets 0..nlag-1 enter the meat; nlag=1 is White
    weight_fn : weight_fn(lag, nlag) -> float, or a kernel name
                ('bartlett', 'parzen', 'truncated')

    Lag partners are found by exact equality of time keys, so gaps in the
    series are allowed. Each lag term is rescaled by (n - L) / m, where m is
    the number of pairs that survived.
    """

    time: str
    nlag: int
    weight_fn: Union[WeightFn, str] = bartlett

    name = "hac"

    def __post_init__(self) -> None:
        if isinstance(self.nlag, bool) or not isinstance(self.nlag, (int, np.integer)):
            raise ConfigurationError(f"nlag must be an integer. Got {self.nlag!r}")
        if self.nlag < 1:
            raise ConfigurationError(f"nlag must be >= 1. Got {self.nlag}")
        object.__setattr__(self, "nlag", int(self.nlag))

        if isinstance(self.weight_fn, str):
            object.__setattr__(self, "weight_fn", get_kernel(self.weight_fn))
        elif not callable(self.weight_fn):
            raise ConfigurationError("weight_fn must be callable or a kernel name")

    def declared_variables(self) -> frozenset[str]:
        return frozenset({self.time})

    def lag_weights(self) -> list[float]:
        """weight_fn(L, nlag) for L = 1..nlag."""
        return [float(self.weight_fn(L, self.nlag)) for L in range(1, self.nlag + 1)]

    def compute(self, model: VceModel, aux: Optional[AuxData] = None) -> torch.Tensor:
        n = int(model.nobs)
        if self.nlag > n - 1:
            raise ConfigurationError(f"nlag must be <= n-1={n - 1}. Got {self.nlag}")

        df = read_columns(aux, [self.time], n=n)
        align = TimeAlignment.from_column(df[self.time])
        weights = self.lag_weights()

        Xu = model.regressors * model.residuals.unsqueeze(-1)  # (R,n,k)
        meat = torch.einsum("rnk,rnl->rkl", Xu, Xu)  # lag 0

        for L in range(1, self.nlag):
            partner = align.partners(L)
            ok = partner >= 0
            m = int(ok.sum())
            logger.debug("HAC lag %d: %d of %d pairs available", L, m, n - L)
            if m == 0:
                continue

            cur = torch.as_tensor(np.flatnonzero(ok), device=Xu.device)
            lag = torch.as_tensor(partner[ok], device=Xu.device)
            Gamma = torch.einsum("rnk,rnl->rkl", Xu[:, cur, :], Xu[:, lag, :])
            scale = weights[L - 1] * float(n - L) / float(m)
            meat = meat + scale * (Gamma + Gamma.transpose(-1, -2))

        meat = meat * (float(n) / float(model.df_resid))
        return sandwich(model, meat)
