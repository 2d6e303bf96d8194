"""
Cluster-robust example (batched Monte Carlo, firm x year panel)

Goal
- Show Simple, White and one-/two-way Cluster vcov on data shaped like (R, n, k).
- Errors share a firm shock and a year shock, so only two-way clustering gets
  the standard errors right.

Run
- OLS residuals come from a batched least-squares solve.
- One FittedModel is reused for every estimator: (X'X)^{-1} is computed once.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import torch

from vcemetrics import Cluster, FittedModel, Simple, White, stderr, vcov


def main() -> None:
    torch.manual_seed(7)
    dtype = torch.float64

    R = 500         # replications
    n_firms = 40
    n_years = 15
    n = n_firms * n_years
    k = 2

    firm = np.repeat(np.arange(n_firms), n_years)                              # (n,)
    year = np.tile(np.arange(2000, 2000 + n_years), n_firms)                  # (n,)
    panel = pd.DataFrame({"firm": firm, "year": year})

    firm_t = torch.as_tensor(firm)
    year_t = torch.as_tensor(year - 2000)

    # Regressor with its own firm and year components
    x = (
        torch.randn(R, n_firms, dtype=dtype)[:, firm_t]
        + torch.randn(R, n_years, dtype=dtype)[:, year_t]
        + torch.randn(R, n, dtype=dtype)
    )                                                                          # (R,n)
    X = torch.stack([torch.ones_like(x), x], dim=2)                            # (R,n,k)

    eps = (
        torch.randn(R, n_firms, dtype=dtype)[:, firm_t]
        + torch.randn(R, n_years, dtype=dtype)[:, year_t]
        + torch.randn(R, n, dtype=dtype)
    )                                                                          # (R,n)
    beta_true = torch.tensor([1.0, 0.5], dtype=dtype)
    y = (X @ beta_true.view(k, 1)).squeeze(-1) + eps

    beta = torch.linalg.lstsq(X, y.unsqueeze(-1)).solution                     # (R,k,1)
    resid = y - (X @ beta).squeeze(-1)                                         # (R,n)

    model = FittedModel(X, resid)

    estimators = {
        "simple": Simple(),
        "white": White(),
        "cluster(firm)": Cluster("firm"),
        "cluster(firm, year)": Cluster(["firm", "year"]),
    }

    sd_mc = beta.squeeze(-1)[:, 1].std(unbiased=True).item()
    print(f"\nMonte Carlo sd(beta_1): {sd_mc:.4f}")
    for label, est in estimators.items():
        se = stderr(vcov(model, est, panel))                                   # (R,k)
        print(f"mean stderr(beta_1) [{label:>20}]: {se[:, 1].mean().item():.4f}")


if __name__ == "__main__":
    main()
