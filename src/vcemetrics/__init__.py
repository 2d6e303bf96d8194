from vcemetrics.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    InvalidWeightsError,
    NotSupportedError,
    SingularDesignError,
    VceError,
)
from vcemetrics.models import FittedModel, HatFittedModel, VceModel
from vcemetrics.vcov import (
    HAC,
    Cluster,
    Simple,
    VceEstimator,
    White,
    declared_variables,
    get_vce,
    list_vces,
    register_vce,
    select_columns,
    stderr,
    vcov,
)
from vcemetrics.api import __version__

__all__ = [
    "__version__",
    "FittedModel",
    "HatFittedModel",
    "VceModel",
    "VceEstimator",
    "Simple",
    "White",
    "HAC",
    "Cluster",
    "vcov",
    "declared_variables",
    "select_columns",
    "stderr",
    "register_vce",
    "get_vce",
    "list_vces",
    "VceError",
    "ConfigurationError",
    "DimensionMismatchError",
    "InvalidWeightsError",
    "NotSupportedError",
    "SingularDesignError",
]
