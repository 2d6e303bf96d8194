"""
vcemetrics.linalg

Cholesky primitives used to build the bread of every sandwich estimator.

Conventions
-----------
- Replication axis: R
- Observation axis: n
- Parameter axis: k
"""
from .chol import chol_inverse, gram, gram_inverse, safe_cholesky

__all__ = [
    "safe_cholesky",
    "chol_inverse",
    "gram",
    "gram_inverse",
]
