from __future__ import annotations

import inspect
from typing import Any, Protocol, runtime_checkable

import torch

from vcemetrics.exceptions import ConfigurationError, DimensionMismatchError


@runtime_checkable
class VceModel(Protocol):
    """What a fitted linear model must expose to the VCE estimators.

    Shapes are batched over replications R:
      regressors : (R,n,k)  rows pre-multiplied by sqrt(w_i) for weighted fits
      residuals  : (R,n)
      hat_like   : (R,k,k)  (X'X)^{-1}
    """

    @property
    def regressors(self) -> torch.Tensor:
        ...

    @property
    def residuals(self) -> torch.Tensor:
        ...

    @property
    def nobs(self) -> int:
        ...

    @property
    def df_resid(self) -> int:
        ...

    @property
    def hat_like(self) -> torch.Tensor:
        ...

    @property
    def batched(self) -> bool:
        ...


_MODEL_ATTRS = ("regressors", "residuals", "nobs", "df_resid", "hat_like", "batched")


def is_vce_model(obj: Any) -> bool:
    """Structural VceModel check; properties such as hat_like are not evaluated."""
    for name in _MODEL_ATTRS:
        try:
            inspect.getattr_static(obj, name)
        except AttributeError:
            return False
    return True


class ModelMixin:
    """Derived quantities shared by the concrete model adapters."""

    regressors: torch.Tensor
    residuals: torch.Tensor
    nobs: int
    df_resid: int

    @property
    def R(self) -> int:
        return int(self.regressors.shape[0])

    @property
    def k(self) -> int:
        return int(self.regressors.shape[2])

    @property
    def xu(self) -> torch.Tensor:
        """Scores x_i * u_i, shape (R,n,k)."""
        return self.regressors * self.residuals.unsqueeze(-1)

    def _check_counts(self) -> None:
        n = int(self.regressors.shape[1])
        if self.nobs is None:
            object.__setattr__(self, "nobs", n)
        elif int(self.nobs) != n:
            raise DimensionMismatchError(f"nobs={self.nobs} but regressors have n={n} rows")
        else:
            object.__setattr__(self, "nobs", int(self.nobs))

        if self.df_resid is None:
            object.__setattr__(self, "df_resid", n - self.k)
        if int(self.df_resid) <= 0:
            raise ConfigurationError(
                f"Need a positive residual df. Got df_resid={self.df_resid} (n={n}, k={self.k})."
            )
        object.__setattr__(self, "df_resid", int(self.df_resid))
