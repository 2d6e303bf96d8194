# src/vcemetrics/vcov/dispatch.py
from __future__ import annotations

import logging
from typing import Optional

import pandas as pd
import torch

from vcemetrics.exceptions import ConfigurationError, DimensionMismatchError
from vcemetrics.models.base import VceModel, is_vce_model
from vcemetrics.table import read_columns
from vcemetrics.typing import AuxData
from vcemetrics.vcov.base import VceEstimator

logger = logging.getLogger(__name__)

__all__ = ["vcov", "declared_variables", "select_columns", "stderr"]


def declared_variables(estimator: VceEstimator) -> frozenset[str]:
    """Auxiliary columns `estimator` reads."""
    return estimator.declared_variables()


def select_columns(aux: AuxData, estimator: VceEstimator) -> pd.DataFrame:
    """Only the columns of `aux` that `estimator` needs, as a DataFrame."""
    cols = sorted(estimator.declared_variables())
    n = len(aux) if isinstance(aux, pd.DataFrame) else len(next(iter(aux.values()), []))
    return read_columns(aux, cols, n=n)


def vcov(
    model: VceModel,
    estimator: VceEstimator,
    aux_data: Optional[AuxData] = None,
) -> torch.Tensor:
    """
    Coefficient covariance of `model` under `estimator`.

    model     : FittedModel, HatFittedModel, or anything exposing the same
                attributes
    estimator : Simple(), White(), HAC(time, nlag), Cluster(columns)
    aux_data  : DataFrame or mapping with the estimator's declared columns

    Returns (k,k) for single-sample models and (R,k,k) for batched ones.
    """
    if not isinstance(estimator, VceEstimator):
        raise TypeError(f"estimator must be a VceEstimator. Got {type(estimator).__name__}")
    needed = estimator.declared_variables()
    if needed and aux_data is None:
        raise ConfigurationError(f"{estimator.name} vcov requires aux_data with column(s) {sorted(needed)}")
    if not is_vce_model(model):
        raise TypeError(f"model does not expose the fitted-model interface: {type(model).__name__}")
    R = int(model.regressors.shape[0])
    if not model.batched and R != 1:
        raise DimensionMismatchError(f"model is marked unbatched but carries R={R} replications")

    V = estimator.compute(model, aux_data)
    logger.debug("vcov[%s]: R=%d, k=%d", estimator.name, V.shape[0], V.shape[-1])
    return V if model.batched else V[0]


def stderr(cov: torch.Tensor) -> torch.Tensor:
    """Standard errors sqrt(diag(cov)) for (k,k) or (R,k,k) covariances."""
    return torch.sqrt(torch.diagonal(cov, dim1=-2, dim2=-1))
