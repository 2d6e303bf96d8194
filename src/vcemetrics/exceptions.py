from __future__ import annotations


class VceError(Exception):
    """Base exception for vcemetrics."""


class ConfigurationError(VceError, ValueError):
    """Invalid estimator parameters or missing auxiliary data."""


class DimensionMismatchError(VceError, ValueError):
    """Invalid shape or dimension mismatch."""


class InvalidWeightsError(VceError, ValueError):
    """Invalid weights: non-positive, NaN/inf, or incompatible shapes."""


class SingularDesignError(VceError, RuntimeError):
    """Gram matrix X'X is singular (collinear regressors)."""


class NotSupportedError(VceError, NotImplementedError):
    """Feature is not supported."""
