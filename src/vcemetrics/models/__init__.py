from vcemetrics.models.base import VceModel, is_vce_model
from vcemetrics.models.fitted import FittedModel, HatFittedModel

__all__ = ["VceModel", "is_vce_model", "FittedModel", "HatFittedModel"]
