"""
HAC (Newey-West) example on an irregular time index

Goal
- Show HAC vcov with lags matched on a time column that has gaps.
- Compare Bartlett and Parzen weights and increasing nlag.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import torch

from vcemetrics import HAC, FittedModel, White, stderr, vcov


def main() -> None:
    torch.manual_seed(3)
    dtype = torch.float64

    n = 400
    rho = 0.6

    # AR(1) regressor and AR(1) errors
    x = torch.zeros(n, dtype=dtype)
    u = torch.zeros(n, dtype=dtype)
    for t in range(1, n):
        x[t] = rho * x[t - 1] + torch.randn((), dtype=dtype)
        u[t] = rho * u[t - 1] + torch.randn((), dtype=dtype)

    X = torch.stack([torch.ones(n, dtype=dtype), x], dim=1)                    # (n,k)
    y = 1.0 + 0.5 * x + u

    # Drop some periods: the remaining rows keep their original time stamps
    keep = np.sort(np.random.default_rng(0).choice(n, size=int(0.9 * n), replace=False))
    X, y = X[keep], y[keep]
    data = pd.DataFrame({"t": keep})

    beta = torch.linalg.lstsq(X, y.unsqueeze(-1)).solution.squeeze(-1)
    model = FittedModel.from_arrays(X, y - X @ beta)

    print("\nbeta_hat:", beta.numpy())
    print("stderr (white):", stderr(vcov(model, White())).numpy())
    for nlag in (2, 5, 10):
        for kernel in ("bartlett", "parzen"):
            se = stderr(vcov(model, HAC("t", nlag, weight_fn=kernel), data))
            print(f"stderr (hac, nlag={nlag:>2}, {kernel:>8}):", se.numpy())


if __name__ == "__main__":
    main()
