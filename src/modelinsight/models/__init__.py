"""
Model introspection: class resolution, smooth terms, design matrices,
marginal means and parameter tables.
"""

from modelinsight.models.classes import get_class_list, is_mixed_model
from modelinsight.models.emmeans import EMMGrid, EMMList, estimated_marginal_means
from modelinsight.models.matrix import get_modelmatrix
from modelinsight.models.parameters import get_parameters
from modelinsight.models.smooth import find_smooth, is_gam_model

__all__ = [
    "EMMGrid",
    "EMMList",
    "estimated_marginal_means",
    "find_smooth",
    "get_class_list",
    "get_modelmatrix",
    "get_parameters",
    "is_gam_model",
    "is_mixed_model",
]
