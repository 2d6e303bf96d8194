# src/vcemetrics/typing.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import torch

from vcemetrics.exceptions import ConfigurationError, DimensionMismatchError

ArrayLike = Union[torch.Tensor, np.ndarray, Sequence[Any]]
AuxData = Union[pd.DataFrame, Mapping[str, Any]]


def as_torch(
    x: Any,
    *,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Union[str, torch.device]] = None,
) -> torch.Tensor:
    """
    Convert common array-likes to torch.Tensor.

    Supports:
    - torch.Tensor
    - numpy.ndarray
    - Python lists/tuples (nested)
    - pandas.DataFrame / pandas.Series
    """
    if isinstance(x, (pd.DataFrame, pd.Series)):
        x = x.to_numpy(dtype=np.float64)

    if isinstance(x, torch.Tensor):
        t = x
        if dtype is not None:
            t = t.to(dtype=dtype)
        if device is not None:
            t = t.to(device=device)
        return t

    t = torch.as_tensor(x)
    if dtype is not None:
        t = t.to(dtype=dtype)
    elif not t.is_floating_point():
        t = t.to(dtype=torch.float64)
    if device is not None:
        t = t.to(device=device)
    return t


def as_batched_xu(
    X: Any,
    resid: Any,
    *,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Union[str, torch.device]] = None,
) -> Tuple[torch.Tensor, torch.Tensor, bool]:
    """
    Standardize regressors and residuals to:
      X     : (R,n,k)
      resid : (R,n)

    Accept:
      X     : (n,k) or (R,n,k)
      resid : (n,) or (R,n)

    Returns (X, resid, batched) where batched is False when both inputs
    were single-sample.
    """
    Xt = as_torch(X, dtype=dtype, device=device)
    et = as_torch(resid, dtype=Xt.dtype if dtype is None else dtype, device=Xt.device)

    batched = Xt.ndim == 3 or et.ndim == 2

    if Xt.ndim == 2:
        Xt = Xt.unsqueeze(0)
    if et.ndim == 1:
        et = et.unsqueeze(0)

    if Xt.ndim != 3:
        raise DimensionMismatchError(f"regressors must be (R,n,k) or (n,k). Got {tuple(Xt.shape)}")
    if et.ndim != 2:
        raise DimensionMismatchError(f"residuals must be (R,n) or (n,). Got {tuple(et.shape)}")
    if Xt.shape[1] != et.shape[1]:
        raise DimensionMismatchError(
            f"Obs dims mismatch: regressors {tuple(Xt.shape)}, residuals {tuple(et.shape)}"
        )

    # a single design may be shared by R residual vectors and vice versa
    if Xt.shape[0] != et.shape[0]:
        if Xt.shape[0] == 1:
            Xt = Xt.expand(et.shape[0], -1, -1)
        elif et.shape[0] == 1:
            et = et.expand(Xt.shape[0], -1)
        else:
            raise DimensionMismatchError(
                f"Batch dims mismatch: regressors {tuple(Xt.shape)}, residuals {tuple(et.shape)}"
            )

    return Xt, et, batched


def as_frame(aux: AuxData, columns: Sequence[str], *, n: int) -> pd.DataFrame:
    """
    Pull `columns` out of an auxiliary table as a DataFrame with a fresh
    RangeIndex of length n. The caller's table is never modified.

    Accepts a pandas.DataFrame or a mapping of column name -> 1D array-like.
    """
    missing = [c for c in columns if c not in aux]
    if missing:
        raise ConfigurationError(f"Auxiliary data is missing required column(s): {missing}")

    if isinstance(aux, pd.DataFrame):
        df = aux.loc[:, list(columns)].reset_index(drop=True)
    else:
        cols = {}
        for c in columns:
            v = aux[c]
            if isinstance(v, torch.Tensor):
                v = v.detach().cpu().numpy()
            v = np.asarray(v)
            if v.ndim != 1:
                raise DimensionMismatchError(f"Column {c!r} must be 1D. Got shape {v.shape}")
            cols[c] = v
        lengths = {c: len(v) for c, v in cols.items()}
        bad = {c: m for c, m in lengths.items() if m != n}
        if bad:
            raise DimensionMismatchError(f"Auxiliary columns must have length n={n}. Got {bad}")
        df = pd.DataFrame(cols)

    if len(df) != n:
        raise DimensionMismatchError(f"Auxiliary data must have n={n} rows. Got {len(df)}")
    return df
