# src/vcemetrics/models/fitted.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import torch

from vcemetrics.exceptions import DimensionMismatchError
from vcemetrics.linalg import gram_inverse
from vcemetrics.models.base import ModelMixin, VceModel
from vcemetrics.typing import as_batched_xu, as_torch
from vcemetrics.weights import WeightsMode, as_sqrt_weights

logger = logging.getLogger(__name__)

__all__ = ["FittedModel", "HatFittedModel"]


def _prepare(
    regressors: Any,
    residuals: Any,
    *,
    weights: Any,
    weights_mode: WeightsMode,
    dtype: Optional[torch.dtype],
    device: Optional[Union[str, torch.device]],
) -> tuple[torch.Tensor, torch.Tensor, bool]:
    X, e, batched = as_batched_xu(regressors, residuals, dtype=dtype, device=device)
    if weights is not None:
        R, n, _ = X.shape
        sqrt_w = as_sqrt_weights(
            weights, R=R, n=n, mode=weights_mode, dtype=X.dtype, device=X.device
        )
        X = X * sqrt_w.unsqueeze(-1)
        e = e * sqrt_w
    return X, e, batched


@dataclass(frozen=True, eq=False)
class FittedModel(ModelMixin):
    """
    Fitted linear model as seen by the VCE estimators.

    regressors : (n,k) or (R,n,k); stored as (R,n,k)
    residuals  : (n,) or (R,n); stored as (R,n)
    nobs       : defaults to n
    df_resid   : defaults to n - k
    batched    : whether vcov() should keep the replication axis; inferred
                 from the input shapes when None

    The hat-like matrix (X'X)^{-1} is computed on first access via a Cholesky
    factorization and memoized for every later estimator call on this model.
    """

    regressors: torch.Tensor
    residuals: torch.Tensor
    nobs: Optional[int] = None
    df_resid: Optional[int] = None
    batched: Optional[bool] = None

    _hat: Optional[torch.Tensor] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        X, e, batched = as_batched_xu(self.regressors, self.residuals)
        object.__setattr__(self, "regressors", X)
        object.__setattr__(self, "residuals", e)
        if self.batched is None:
            object.__setattr__(self, "batched", batched)
        self._check_counts()

    @classmethod
    def from_arrays(
        cls,
        regressors: Any,
        residuals: Any,
        *,
        df_resid: Optional[int] = None,
        weights: Any = None,
        weights_mode: WeightsMode = "precision",
        dtype: Optional[torch.dtype] = None,
        device: Optional[Union[str, torch.device]] = None,
    ) -> "FittedModel":
        """Build a model from array-likes (torch, numpy, lists, pandas).

        If `weights` are given, `residuals` are the raw residuals of the
        weighted fit; both regressors and residuals are scaled by sqrt(w).
        """
        X, e, batched = _prepare(
            regressors, residuals, weights=weights, weights_mode=weights_mode, dtype=dtype, device=device
        )
        return cls(X, e, df_resid=df_resid, batched=batched)

    @property
    def hat_like(self) -> torch.Tensor:
        H = self._hat
        if H is None:
            with self._lock:
                H = self._hat
                if H is None:
                    H = gram_inverse(self.regressors)
                    object.__setattr__(self, "_hat", H)
                    logger.debug("Computed hat-like matrix for R=%d, k=%d", self.R, self.k)
        return H


@dataclass(frozen=True, eq=False)
class HatFittedModel(ModelMixin):
    """
    Fitted model that already carries (X'X)^{-1}, e.g. from the Cholesky
    factorization done by the fitting routine. hat_like is returned as is.

    hat_like : (k,k) or (R,k,k)
    """

    regressors: torch.Tensor
    hat_like: torch.Tensor
    residuals: torch.Tensor
    nobs: Optional[int] = None
    df_resid: Optional[int] = None
    batched: Optional[bool] = None

    def __post_init__(self) -> None:
        X, e, batched = as_batched_xu(self.regressors, self.residuals)
        H = as_torch(self.hat_like, dtype=X.dtype, device=X.device)
        if H.ndim == 2:
            H = H.unsqueeze(0)
        if H.ndim != 3 or tuple(H.shape[1:]) != (X.shape[2], X.shape[2]):
            raise DimensionMismatchError(
                f"hat_like must be (k,k) or (R,k,k) with k={X.shape[2]}. Got {tuple(H.shape)}"
            )
        if H.shape[0] != X.shape[0]:
            if H.shape[0] != 1:
                raise DimensionMismatchError(
                    f"hat_like batch dim {H.shape[0]} does not match R={X.shape[0]}"
                )
            H = H.expand(X.shape[0], -1, -1)

        object.__setattr__(self, "regressors", X)
        object.__setattr__(self, "residuals", e)
        object.__setattr__(self, "hat_like", H)
        if self.batched is None:
            object.__setattr__(self, "batched", batched)
        self._check_counts()

    @classmethod
    def from_arrays(
        cls,
        regressors: Any,
        residuals: Any,
        *,
        hat_like: Any,
        df_resid: Optional[int] = None,
        weights: Any = None,
        weights_mode: WeightsMode = "precision",
        dtype: Optional[torch.dtype] = None,
        device: Optional[Union[str, torch.device]] = None,
    ) -> "HatFittedModel":
        X, e, batched = _prepare(
            regressors, residuals, weights=weights, weights_mode=weights_mode, dtype=dtype, device=device
        )
        return cls(X, hat_like, e, df_resid=df_resid, batched=batched)

    @classmethod
    def from_fitted(cls, model: VceModel) -> "HatFittedModel":
        """Freeze the (possibly lazily computed) hat-like matrix of `model`."""
        return cls(
            model.regressors,
            model.hat_like,
            model.residuals,
            nobs=model.nobs,
            df_resid=model.df_resid,
            batched=model.batched,
        )
