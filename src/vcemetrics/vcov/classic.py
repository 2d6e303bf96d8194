from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import torch

from vcemetrics.models.base import VceModel
from vcemetrics.typing import AuxData
from vcemetrics.vcov.base import VceEstimator


def vcov_classic(hat_like: torch.Tensor, resid: torch.Tensor, df_resid: int) -> torch.Tensor:
    """
    Classic (homoskedastic) vcov: (X'X)^{-1} * sum(e^2) / df_resid.

    hat_like : (R,k,k)
    resid    : (R,n)
    """
    sigma2 = (resid * resid).sum(dim=1) / float(df_resid)  # (R,)
    return hat_like * sigma2.view(-1, 1, 1)


@dataclass(frozen=True)
class Simple(VceEstimator):
    """i.i.d. errors. Any auxiliary table is accepted and ignored."""

    name = "simple"

    def compute(self, model: VceModel, aux: Optional[AuxData] = None) -> torch.Tensor:
        return vcov_classic(model.hat_like, model.residuals, model.df_resid)
