from __future__ import annotations

from typing import Literal, Optional, Union
import warnings
import torch

from vcemetrics.exceptions import DimensionMismatchError, InvalidWeightsError

WeightsMode = Literal["precision", "variance", "sqrt_precision", "sqrt_variance"]

_MAX_WEIGHT_RATIO = 1e8


def as_sqrt_weights(
    weights,
    *,
    R: int,
    n: int,
    mode: WeightsMode = "precision",
    dtype: Optional[torch.dtype] = None,
    device: Optional[Union[str, torch.device]] = None,
) -> torch.Tensor:
    """
    Coerce observation weights to (R,n) square-root precision weights.

    A weighted fit is equivalent to an unweighted one on rows scaled by
    sqrt(w_i), which is the form every estimator in this package expects.

    Accepted inputs:
      - scalar
      - (n,)
      - (R,n)

    mode:
      - "precision"      : w = 1/Var(u_i)
      - "variance"       : v = Var(u_i) (converted to w=1/v)
      - "sqrt_precision" : s = sqrt(w)
      - "sqrt_variance"  : s = sqrt(v) (converted to w=1/s^2)
    """
    w = weights if isinstance(weights, torch.Tensor) else torch.as_tensor(weights)
    w = w.to(dtype=dtype if dtype is not None else torch.float64)
    if device is not None:
        w = w.to(device=device)

    if w.ndim == 0:
        w = w.view(1, 1).expand(R, n)
    elif w.ndim == 1:
        if int(w.shape[0]) != n:
            raise DimensionMismatchError(f"weights has shape {tuple(w.shape)} but n={n}")
        w = w.view(1, n).expand(R, n)
    elif w.ndim == 2:
        if tuple(w.shape) != (R, n):
            raise DimensionMismatchError(f"weights must be (R,n)={(R, n)}. Got {tuple(w.shape)}")
    else:
        raise DimensionMismatchError(f"weights must be scalar, (n,), or (R,n). Got {tuple(w.shape)}")

    if not torch.isfinite(w).all():
        raise InvalidWeightsError("weights contain inf/nan")
    if (w <= 0).any():
        raise InvalidWeightsError("weights must be strictly positive")

    if mode == "precision":
        sqrt_w = torch.sqrt(w)
    elif mode == "variance":
        sqrt_w = torch.rsqrt(w)
    elif mode == "sqrt_precision":
        sqrt_w = w
    elif mode == "sqrt_variance":
        sqrt_w = 1.0 / w
    else:
        raise InvalidWeightsError(
            "mode must be one of {'precision','variance','sqrt_precision','sqrt_variance'}"
        )

    ratio = float((sqrt_w.max() / sqrt_w.min()).item()) ** 2
    if ratio > _MAX_WEIGHT_RATIO:
        warnings.warn(
            f"Very large weight ratio max/min = {ratio:.2e}. This can cause numerical issues.",
            RuntimeWarning,
            stacklevel=2,
        )

    return sqrt_w
