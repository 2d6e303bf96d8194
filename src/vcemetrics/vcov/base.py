# src/vcemetrics/vcov/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import torch

from vcemetrics.exceptions import DimensionMismatchError
from vcemetrics.models.base import VceModel
from vcemetrics.typing import AuxData


class VceEstimator(ABC):
    """A covariance estimator for regression coefficients.

    Subclasses are immutable configuration objects. They declare which
    auxiliary columns they read and turn a fitted model into an (R,k,k)
    covariance matrix.
    """

    name: str = "base"

    def declared_variables(self) -> frozenset[str]:
        """Columns of the auxiliary table this estimator needs."""
        return frozenset()

    @abstractmethod
    def compute(self, model: VceModel, aux: Optional[AuxData] = None) -> torch.Tensor:
        """Return the (R,k,k) coefficient covariance for `model`."""


def meat_white(model: VceModel) -> torch.Tensor:
    """White "meat" term: sum_i (x_i u_i)(x_i u_i)', shape (R,k,k)."""
    Xu = model.regressors * model.residuals.unsqueeze(-1)
    return torch.einsum("rnk,rnl->rkl", Xu, Xu)


def sandwich(model: VceModel, S: torch.Tensor) -> torch.Tensor:
    """H S H with H = (X'X)^{-1}; the bread shared by every robust estimator."""
    H = model.hat_like
    if S.shape != H.shape:
        raise DimensionMismatchError(f"meat must be {tuple(H.shape)}. Got {tuple(S.shape)}")
    V = H @ S @ H
    return 0.5 * (V + V.transpose(-1, -2))
