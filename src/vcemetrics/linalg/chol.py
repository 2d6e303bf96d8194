from __future__ import annotations

import torch

from vcemetrics.exceptions import DimensionMismatchError, SingularDesignError


def safe_cholesky(A: torch.Tensor) -> torch.Tensor:
    """
    Batched lower Cholesky factor of a symmetric positive-definite matrix.

    A : (...,k,k)

    Raises SingularDesignError if any matrix in the batch is not SPD.
    """
    if A.ndim < 2 or A.shape[-1] != A.shape[-2]:
        raise DimensionMismatchError(f"A must be (...,k,k). Got {tuple(A.shape)}")

    A0 = 0.5 * (A + A.transpose(-1, -2))
    L, info = torch.linalg.cholesky_ex(A0)
    if torch.any(info != 0):
        bad = torch.nonzero(info.reshape(-1) != 0).reshape(-1).tolist()
        raise SingularDesignError(
            f"Gram matrix is not positive definite (Cholesky failed for replication(s) {bad}); "
            "regressors are collinear or rank deficient."
        )
    return L


def chol_inverse(L: torch.Tensor) -> torch.Tensor:
    return torch.cholesky_inverse(L)


def gram(X: torch.Tensor) -> torch.Tensor:
    """X'X for X of shape (R,n,k)."""
    return X.transpose(-1, -2) @ X


def gram_inverse(X: torch.Tensor) -> torch.Tensor:
    """(X'X)^{-1} via Cholesky factorization and inversion.

    X : (R,n,k)
    returns (R,k,k)
    """
    if X.ndim != 3:
        raise DimensionMismatchError(f"X must be (R,n,k). Got {tuple(X.shape)}")
    L = safe_cholesky(gram(X))
    return chol_inverse(L)
