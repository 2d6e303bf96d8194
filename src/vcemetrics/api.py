# src/vcemetrics/api.py
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from vcemetrics.models import FittedModel, HatFittedModel
from vcemetrics.vcov import HAC, Cluster, Simple, White, vcov

__all__ = ["FittedModel", "HatFittedModel", "Simple", "White", "HAC", "Cluster", "vcov", "__version__"]

try:
    __version__ = version("vcemetrics")
except PackageNotFoundError:  # editable/local
    __version__ = "0.0.0"
