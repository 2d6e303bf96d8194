import torch
import pytest


@pytest.fixture(scope="session")
def torch_dtype():
    # Use float64 in tests for numerical stability.
    return torch.float64


def make_design(R: int, n: int, k: int, *, seed: int = 123, dtype=torch.float64):
    """
    Deterministic design with full column rank (almost surely) and OLS residuals.
    Returns:
      X     : (R,n,k) with a constant in column 0
      resid : (R,n) OLS residuals of y on X
    """
    g = torch.Generator().manual_seed(seed)
    X = torch.empty((R, n, k), dtype=dtype)
    X[:, :, 0] = 1.0
    if k > 1:
        X[:, :, 1:] = torch.randn((R, n, k - 1), generator=g, dtype=dtype)

    beta_true = torch.arange(1, k + 1, dtype=dtype)
    # heteroskedastic noise so robust and classic estimators differ
    scale = 0.5 + X[:, :, -1].abs()
    y = (X @ beta_true.view(1, k, 1)).squeeze(-1) + scale * torch.randn((R, n), generator=g, dtype=dtype)

    beta = torch.linalg.lstsq(X, y.unsqueeze(-1)).solution
    resid = y - (X @ beta).squeeze(-1)
    return X, resid


def sandwich_ref(X: torch.Tensor, meat: torch.Tensor) -> torch.Tensor:
    """Reference H meat H for a single (n,k) design."""
    H = torch.linalg.inv(X.T @ X)
    return H @ meat @ H
