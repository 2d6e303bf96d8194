# src/vcemetrics/vcov/robust.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import torch

from vcemetrics.models.base import VceModel
from vcemetrics.typing import AuxData
from vcemetrics.vcov.base import VceEstimator, meat_white, sandwich


@dataclass(frozen=True)
class White(VceEstimator):
    """Heteroskedasticity-robust (HC1) vcov: H [X' diag(e^2) X] H * n/(n-k)."""

    name = "white"

    def compute(self, model: VceModel, aux: Optional[AuxData] = None) -> torch.Tensor:
        S = meat_white(model) * (float(model.nobs) / float(model.df_resid))
        return sandwich(model, S)
