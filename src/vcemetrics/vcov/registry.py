from __future__ import annotations

from typing import Callable, Optional

from vcemetrics.exceptions import ConfigurationError, NotSupportedError
from vcemetrics.vcov.base import VceEstimator
from vcemetrics.vcov.classic import Simple
from vcemetrics.vcov.cluster import Cluster
from vcemetrics.vcov.hac import HAC
from vcemetrics.vcov.robust import White

_REGISTRY: dict[str, Callable[..., VceEstimator]] = {}


def register_vce(name: str, factory: Optional[Callable[..., VceEstimator]] = None):
    """Register an estimator factory under `name`.

    Usable directly, register_vce("x", Factory), or as a class decorator,
    @register_vce("x").
    """
    key = str(name).strip().lower()
    if not key:
        raise ConfigurationError("Estimator name must be non-empty")

    if factory is None:
        def _decorator(cls):
            _REGISTRY[key] = cls
            return cls

        return _decorator

    _REGISTRY[key] = factory
    return factory


def list_vces() -> list[str]:
    return sorted(_REGISTRY.keys())


def get_vce(name: str) -> Callable[..., VceEstimator]:
    key = str(name).strip().lower()
    if key not in _REGISTRY:
        raise NotSupportedError(f"Unknown vce {name!r}. Available: {', '.join(list_vces())}")
    return _REGISTRY[key]


# -----------------------------------------------------------------------------
# Built-ins
# -----------------------------------------------------------------------------

for _name in ("simple", "classic", "iid"):
    register_vce(_name, Simple)
for _name in ("white", "hc1", "robust"):
    register_vce(_name, White)
for _name in ("hac", "newey-west"):
    register_vce(_name, HAC)
register_vce("cluster", Cluster)
