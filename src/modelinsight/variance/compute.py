"""
Variance components of mixed models.

Partitions the outcome variance into fixed-effects, random-effects and
residual (distribution-specific plus dispersion) variance, as needed for
R2 and intraclass-correlation measures.

* Fixed effects variance: variance of ``X @ beta``.
* Random effects variance: the *mean* random-effects variance over all
  observations (Johnson 2014, eq. 10), which also covers random slopes
  and several grouping factors. For random-intercept models it equals the
  intercept variance.
* Distribution-specific variance: see
  :func:`modelinsight.variance.distribution.distribution_variance`.
* Dispersion variance: excess variation relative to the family; zero for
  the supported models.
* Residual variance: distribution-specific plus dispersion variance.
* Intercept (tau00), slope (tau11) variances and intercept-slope
  correlations (rho01) per grouping factor, from the random-effects
  covariance matrices.

References:
    Johnson, P. C. D. (2014). Extension of Nakagawa & Schielzeth's R2 GLMM
    to random slopes models. Methods in Ecology and Evolution, 5(9), 944-946.
"""

import math
from dataclasses import asdict, dataclass
from functools import singledispatch
from typing import Any

import numpy as np
from statsmodels.base.wrapper import ResultsWrapper
from statsmodels.genmod.bayes_mixed_glm import BayesMixedGLMResults
from statsmodels.regression.mixed_linear_model import MixedLMResults

from modelinsight.config import get_config
from modelinsight.exceptions import warn
from modelinsight.utils.formatting import format_message
from modelinsight.utils.logging import get_logger, log_context
from modelinsight.variance.components import MixedModelParts, extract_parts
from modelinsight.variance.distribution import distribution_variance

log = get_logger(__name__)

COMPONENT_FIELDS: dict[str, str] = {
    "fixed": "var_fixed",
    "random": "var_random",
    "residual": "var_residual",
    "distribution": "var_distribution",
    "dispersion": "var_dispersion",
    "intercept": "var_intercept",
    "slope": "var_slope",
    "rho01": "cor_slope_intercept",
}

COMPONENTS: tuple[str, ...] = ("all", *COMPONENT_FIELDS)


@dataclass(frozen=True)
class VarianceComponents:
    """
    Variance components of a mixed model.

    Components that were not requested, or do not exist for the model
    (e.g. slopes of a random-intercept model), are None.

    Attributes:
        var_fixed: Variance attributable to the fixed effects.
        var_random: Mean variance of the random effects.
        var_residual: Residual variance (distribution plus dispersion).
        var_distribution: Distribution-specific variance.
        var_dispersion: Variance due to additive dispersion.
        var_intercept: Random-intercept variance per grouping factor.
        var_slope: Random-slope variance per "group.slope".
        cor_slope_intercept: Random slope-intercept correlation per "group.slope".
    """

    var_fixed: float | None = None
    var_random: float | None = None
    var_residual: float | None = None
    var_distribution: float | None = None
    var_dispersion: float | None = None
    var_intercept: dict[str, float] | None = None
    var_slope: dict[str, float] | None = None
    cor_slope_intercept: dict[str, float] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Available components as a dictionary."""
        return {k: v for k, v in asdict(self).items() if v is not None}


def _match_component(component: str) -> str:
    if component not in COMPONENTS:
        msg = f"component must be one of {', '.join(COMPONENTS)}, got: {component!r}"
        raise ValueError(msg)
    return component


def _intercept_variances(parts: MixedModelParts) -> dict[str, float] | None:
    out = {}
    for block in parts.blocks:
        i = block.intercept_index
        if i is not None:
            out[block.group] = float(block.cov[i, i])
    return out or None


def _slope_variances(parts: MixedModelParts) -> dict[str, float] | None:
    out = {}
    for block in parts.blocks:
        for i, term in enumerate(block.terms):
            if term is None:
                continue
            key = term if term == block.group else f"{block.group}.{term}"
            out[key] = float(block.cov[i, i])
    return out or None


def _slope_intercept_correlations(parts: MixedModelParts) -> dict[str, float] | None:
    out = {}
    for block in parts.blocks:
        i = block.intercept_index
        if i is None or not block.correlated:
            continue
        for s, term in enumerate(block.terms):
            if term is None:
                continue
            denom = math.sqrt(block.cov[i, i] * block.cov[s, s])
            out[f"{block.group}.{term}"] = (
                float(block.cov[i, s] / denom) if denom > 0 else float("nan")
            )
    return out or None


def compute_variances(
    parts: MixedModelParts,
    component: str = "all",
    verbose: bool = True,
    tolerance: float = 1e-5,
) -> VarianceComponents:
    """
    Compute variance components from extracted model parts.

    Args:
        parts: Extracted model quantities.
        component: Component to compute, or "all".
        verbose: Warn about singular fits.
        tolerance: Singularity tolerance.

    Returns:
        The requested variance components.
    """
    component = _match_component(component)

    def wanted(*names: str) -> bool:
        return component == "all" or component in names

    no_random_variance = False
    if component not in ("intercept", "slope") and parts.is_singular(tolerance):
        if verbose:
            warn(
                format_message(
                    "Can't compute random effect variances. Some variance "
                    "components equal zero. Your model may suffer from singularity.",
                    "Solution: Respecify random structure! You may also decrease "
                    "the `tolerance` level to enforce the calculation of random "
                    "effect variances.",
                )
            )
        no_random_variance = True

    values: dict[str, Any] = {}

    if wanted("fixed"):
        values["var_fixed"] = float(np.var(parts.X @ parts.beta, ddof=1))

    var_random = 0.0
    if not no_random_variance and wanted("random", "distribution", "residual"):
        var_random = sum(block.mean_variance() for block in parts.blocks)
    if wanted("random"):
        values["var_random"] = var_random

    if wanted("distribution", "residual"):
        var_distribution = distribution_variance(
            parts.family,
            parts.link,
            parts.scale,
            intercept=parts.intercept,
            var_random=var_random,
        )
        var_dispersion = 0.0
        if wanted("distribution"):
            values["var_distribution"] = var_distribution
        if wanted("residual"):
            values["var_residual"] = var_distribution + var_dispersion
    if wanted("dispersion"):
        values["var_dispersion"] = 0.0

    if wanted("intercept"):
        values["var_intercept"] = _intercept_variances(parts)
    if wanted("slope"):
        values["var_slope"] = _slope_variances(parts)
    if wanted("rho01"):
        values["cor_slope_intercept"] = _slope_intercept_correlations(parts)

    log.debug(
        "Computed variance components",
        component=component,
        singular=no_random_variance,
        computed=sorted(k for k, v in values.items() if v is not None),
    )
    return VarianceComponents(**values)


@singledispatch
def get_variance(
    x: Any,
    component: str = "all",
    verbose: bool | None = None,
    tolerance: float | None = None,
) -> VarianceComponents | None:
    """
    Variance components of a mixed model.

    Supports linear mixed models (``MixedLM``) and Bayesian binomial and
    Poisson mixed GLMs (``BinomialBayesMixedGLM``, ``PoissonBayesMixedGLM``),
    fitted results wrapped or not.

    Args:
        x: A fitted mixed model.
        component: "all", "fixed", "random", "residual", "distribution",
            "dispersion", "intercept", "slope" or "rho01".
        verbose: Emit warnings. Defaults to the configured value.
        tolerance: Singularity tolerance for random-effects variances.
            Defaults to the configured value (1e-5).

    Returns:
        The variance components, or None for unsupported models or when
        extraction fails.

    Raises:
        ValueError: If ``component`` is unknown.
    """
    _match_component(component)
    if verbose is None:
        verbose = get_config().variance.verbose
    if verbose:
        warn(f"Objects of class `{type(x).__name__}` are not supported.")
    return None


@get_variance.register(ResultsWrapper)
def _get_variance_wrapper(
    x: ResultsWrapper,
    component: str = "all",
    verbose: bool | None = None,
    tolerance: float | None = None,
) -> VarianceComponents | None:
    return get_variance(
        x._results, component=component, verbose=verbose, tolerance=tolerance
    )


@get_variance.register(MixedLMResults)
@get_variance.register(BayesMixedGLMResults)
def _get_variance_mixed(
    x: Any,
    component: str = "all",
    verbose: bool | None = None,
    tolerance: float | None = None,
) -> VarianceComponents | None:
    component = _match_component(component)
    settings = get_config().variance
    if verbose is None:
        verbose = settings.verbose
    if tolerance is None:
        tolerance = settings.tolerance

    with log_context(model_class=type(x).__name__):
        try:
            parts = extract_parts(x)
            return compute_variances(
                parts, component=component, verbose=verbose, tolerance=tolerance
            )
        except (np.linalg.LinAlgError, ValueError, OverflowError) as e:
            log.warning("Could not compute variance components", error=str(e))
            return None


def _single(
    x: Any, component: str, verbose: bool | None, tolerance: float | None
) -> Any:
    result = get_variance(x, component=component, verbose=verbose, tolerance=tolerance)
    if result is None:
        return None
    return getattr(result, COMPONENT_FIELDS[component])


def get_variance_fixed(
    x: Any, verbose: bool | None = None, tolerance: float | None = None
) -> float | None:
    """Fixed effects variance, see :func:`get_variance`."""
    return _single(x, "fixed", verbose, tolerance)


def get_variance_random(
    x: Any, verbose: bool | None = None, tolerance: float | None = None
) -> float | None:
    """Mean random effects variance, see :func:`get_variance`."""
    return _single(x, "random", verbose, tolerance)


def get_variance_residual(
    x: Any, verbose: bool | None = None, tolerance: float | None = None
) -> float | None:
    """Residual variance, see :func:`get_variance`."""
    return _single(x, "residual", verbose, tolerance)


def get_variance_distribution(
    x: Any, verbose: bool | None = None, tolerance: float | None = None
) -> float | None:
    """Distribution-specific variance, see :func:`get_variance`."""
    return _single(x, "distribution", verbose, tolerance)


def get_variance_dispersion(
    x: Any, verbose: bool | None = None, tolerance: float | None = None
) -> float | None:
    """Dispersion variance, see :func:`get_variance`."""
    return _single(x, "dispersion", verbose, tolerance)


def get_variance_intercept(
    x: Any, verbose: bool | None = None, tolerance: float | None = None
) -> dict[str, float] | None:
    """Random intercept variances per grouping factor."""
    return _single(x, "intercept", verbose, tolerance)


def get_variance_slope(
    x: Any, verbose: bool | None = None, tolerance: float | None = None
) -> dict[str, float] | None:
    """Random slope variances per grouping factor and slope."""
    return _single(x, "slope", verbose, tolerance)


def get_correlation_slope_intercept(
    x: Any, verbose: bool | None = None, tolerance: float | None = None
) -> dict[str, float] | None:
    """Random slope-intercept correlations per grouping factor and slope."""
    return _single(x, "rho01", verbose, tolerance)
