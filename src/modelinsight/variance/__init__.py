"""
Variance decomposition of mixed models.
"""

from modelinsight.variance.components import (
    MixedModelParts,
    RandomEffectsBlock,
    extract_parts,
)
from modelinsight.variance.compute import (
    COMPONENTS,
    VarianceComponents,
    compute_variances,
    get_correlation_slope_intercept,
    get_variance,
    get_variance_dispersion,
    get_variance_distribution,
    get_variance_fixed,
    get_variance_intercept,
    get_variance_random,
    get_variance_residual,
    get_variance_slope,
)
from modelinsight.variance.distribution import distribution_variance

__all__ = [
    "COMPONENTS",
    "MixedModelParts",
    "RandomEffectsBlock",
    "VarianceComponents",
    "compute_variances",
    "distribution_variance",
    "extract_parts",
    "get_correlation_slope_intercept",
    "get_variance",
    "get_variance_dispersion",
    "get_variance_distribution",
    "get_variance_fixed",
    "get_variance_intercept",
    "get_variance_random",
    "get_variance_residual",
    "get_variance_slope",
]
