"""
Distribution-specific variance on the latent (link) scale.

References:
    Nakagawa, S., Johnson, P. C. D., & Schielzeth, H. (2017). The coefficient
    of determination R2 and intra-class correlation coefficient from
    generalized linear mixed-effects models revisited and expanded.
    Journal of The Royal Society Interface, 14(134), 20170213.
"""

import math

BINOMIAL_LINK_VARIANCE: dict[str, float] = {
    "logit": math.pi**2 / 3,
    "probit": 1.0,
    "cloglog": math.pi**2 / 6,
}


def distribution_variance(
    family: str,
    link: str,
    scale: float,
    intercept: float = 0.0,
    var_random: float = 0.0,
) -> float:
    """
    Distribution-specific variance of a mixed model.

    * Gaussian: the residual variance ``scale``.
    * Binomial: pi^2/3 (logit), 1 (probit), pi^2/6 (cloglog).
    * Poisson (log link): lognormal approximation ``log(1 + 1/lambda)``,
      with ``lambda = exp(intercept + var_random / 2)``.

    Args:
        family: Lower-cased family name.
        link: Lower-cased link name.
        scale: Residual variance of Gaussian models.
        intercept: Fixed intercept on the link scale.
        var_random: Random-effects variance.

    Returns:
        The distribution-specific variance.

    Raises:
        ValueError: For unsupported family/link combinations.
    """
    if family == "gaussian":
        return float(scale)
    if family == "binomial" and link in BINOMIAL_LINK_VARIANCE:
        return BINOMIAL_LINK_VARIANCE[link]
    if family == "poisson" and link == "log":
        expected = math.exp(intercept + var_random / 2)
        return math.log1p(1 / expected)
    msg = f"No distribution-specific variance for family '{family}' with link '{link}'"
    raise ValueError(msg)
