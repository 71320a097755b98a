"""
modelinsight: introspection utilities for fitted regression models.

Answers questions such as "does this model have smooth terms", "what is
its variance decomposition", "what does its design matrix look like" or
"is a required package installed" for statsmodels models.
"""

from importlib.metadata import version

from modelinsight.console import (
    color_text,
    color_theme,
    colour_text,
    print_color,
    print_colour,
)
from modelinsight.dependencies import check_if_installed
from modelinsight.exceptions import InsightWarning, PackageRequiredError
from modelinsight.models import (
    EMMGrid,
    EMMList,
    estimated_marginal_means,
    find_smooth,
    get_modelmatrix,
    get_parameters,
    is_gam_model,
    is_mixed_model,
)
from modelinsight.utils.formatting import format_message
from modelinsight.variance import (
    VarianceComponents,
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

__version__ = version("modelinsight")

__all__ = [
    "EMMGrid",
    "EMMList",
    "InsightWarning",
    "PackageRequiredError",
    "VarianceComponents",
    "__version__",
    "check_if_installed",
    "color_text",
    "color_theme",
    "colour_text",
    "estimated_marginal_means",
    "find_smooth",
    "format_message",
    "get_correlation_slope_intercept",
    "get_modelmatrix",
    "get_parameters",
    "get_variance",
    "get_variance_dispersion",
    "get_variance_distribution",
    "get_variance_fixed",
    "get_variance_intercept",
    "get_variance_random",
    "get_variance_residual",
    "get_variance_slope",
    "is_gam_model",
    "is_mixed_model",
    "print_color",
    "print_colour",
]
