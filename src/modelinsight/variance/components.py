"""
Extraction of the quantities a variance decomposition needs.

Each supported model class is reduced to a :class:`MixedModelParts`: the
fixed-effects design and coefficients, the family, and one
:class:`RandomEffectsBlock` per random-effects covariance matrix.
"""

from dataclasses import dataclass, field
from functools import singledispatch
from typing import Any

import numpy as np
from statsmodels.genmod.bayes_mixed_glm import BayesMixedGLMResults
from statsmodels.regression.mixed_linear_model import MixedLMResults

from modelinsight.models.classes import family_info
from modelinsight.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_GROUP = "Group"


@dataclass
class RandomEffectsBlock:
    """
    One random-effects covariance matrix and its design.

    Attributes:
        group: Grouping factor (or variance component) name.
        terms: Term names; None marks the random intercept.
        cov: Covariance matrix of the terms.
        crossprod: ``Z'Z / n`` of the block's design columns.
        correlated: Whether ``cov`` is a full (correlated) matrix.
    """

    group: str
    terms: list[str | None]
    cov: np.ndarray
    crossprod: np.ndarray
    correlated: bool = True

    @property
    def intercept_index(self) -> int | None:
        """Position of the random intercept, if any."""
        return self.terms.index(None) if None in self.terms else None

    def mean_variance(self) -> float:
        """Mean variance over observations, ``tr(cov @ Z'Z) / n``."""
        return float(np.trace(self.cov @ self.crossprod))


@dataclass
class MixedModelParts:
    """
    Everything a variance decomposition needs from a fitted mixed model.

    Attributes:
        X: Fixed-effects design matrix.
        beta: Fixed-effects coefficients.
        family: Lower-cased family name ("gaussian", "binomial", "poisson").
        link: Lower-cased link name.
        scale: Residual variance (Gaussian) or 1.
        blocks: Random-effects blocks.
    """

    X: np.ndarray
    beta: np.ndarray
    family: str
    link: str
    scale: float
    blocks: list[RandomEffectsBlock] = field(default_factory=list)

    @property
    def intercept(self) -> float:
        """Fixed intercept, or the mean linear predictor without one."""
        constant = np.flatnonzero(np.all(self.X == 1.0, axis=0))
        if constant.size:
            return float(self.beta[constant[0]])
        return float(np.mean(self.X @ self.beta))

    def is_singular(self, tolerance: float) -> bool:
        """
        Check for (near) singular random-effects estimates.

        The fit is singular when a diagonal element of the relative Cholesky
        factor of any covariance matrix is below ``tolerance``.
        """
        for block in self.blocks:
            relative = block.cov / self.scale
            try:
                theta = np.diag(np.linalg.cholesky(relative))
            except np.linalg.LinAlgError:
                return True
            if np.any(theta < tolerance):
                return True
        return False


def _is_indicator(values: np.ndarray) -> bool:
    nonzero = values[values != 0]
    return bool(np.all(nonzero == 1.0))


def _mixedlm_re_block(results: MixedLMResults) -> RandomEffectsBlock | None:
    model = results.model
    if not getattr(model, "k_re", 0) or model.exog_re is None:
        return None

    exog_re = np.asarray(model.exog_re, dtype=float)
    # statsmodels keeps the names on the data handler; the random intercept
    # is named after the grouping column
    names = list(getattr(model.data, "exog_re_names", None) or [])
    if len(names) != exog_re.shape[1]:
        names = [f"Z{i}" for i in range(exog_re.shape[1])]

    constant = np.flatnonzero(np.all(exog_re == 1.0, axis=0))
    group = DEFAULT_GROUP
    terms: list[str | None] = list(names)
    if constant.size:
        # models built without a formula name the default intercept "Group Var"
        intercept_name = names[constant[0]].removesuffix(" Var")
        if intercept_name != "Intercept":
            group = intercept_name
        terms[constant[0]] = None

    return RandomEffectsBlock(
        group=group,
        terms=terms,
        cov=np.atleast_2d(np.asarray(results.cov_re, dtype=float)),
        crossprod=exog_re.T @ exog_re / exog_re.shape[0],
    )


def _mixedlm_vc_blocks(results: MixedLMResults) -> list[RandomEffectsBlock]:
    model = results.model
    if not getattr(model, "k_vc", 0):
        return []

    n_obs = model.exog.shape[0]
    blocks = []
    for j, name in enumerate(model.exog_vc.names):
        mats = [np.asarray(m, dtype=float) for m in model.exog_vc.mats[j]]
        sum_squares = sum(float(np.sum(m**2)) for m in mats)
        indicator = all(_is_indicator(m) for m in mats)
        blocks.append(
            RandomEffectsBlock(
                group=name,
                terms=[None if indicator else name],
                cov=np.array([[float(results.vcomp[j])]]),
                crossprod=np.array([[sum_squares / n_obs]]),
                correlated=False,
            )
        )
    return blocks


@singledispatch
def extract_parts(results: Any) -> MixedModelParts:
    """
    Reduce a fitted mixed model to :class:`MixedModelParts`.

    Raises:
        TypeError: If the model class is not supported.
    """
    msg = f"Objects of class `{type(results).__name__}` are not supported."
    raise TypeError(msg)


@extract_parts.register(MixedLMResults)
def _extract_mixedlm(results: MixedLMResults) -> MixedModelParts:
    model = results.model
    blocks = []
    re_block = _mixedlm_re_block(results)
    if re_block is not None:
        blocks.append(re_block)
    blocks.extend(_mixedlm_vc_blocks(results))

    log.debug("Extracted linear mixed model", n_blocks=len(blocks))
    return MixedModelParts(
        X=np.asarray(model.exog, dtype=float),
        beta=np.asarray(results.fe_params, dtype=float),
        family="gaussian",
        link="identity",
        scale=float(results.scale),
        blocks=blocks,
    )


@extract_parts.register(BayesMixedGLMResults)
def _extract_bayes_mixed_glm(results: BayesMixedGLMResults) -> MixedModelParts:
    model = results.model
    exog_vc = model.exog_vc.tocsc()
    n_obs = exog_vc.shape[0]
    ident = np.asarray(model.ident)
    vcp_names = list(getattr(model, "vcp_names", None) or [])

    blocks = []
    for j in range(int(model.k_vcp)):
        columns = exog_vc[:, np.flatnonzero(ident == j)]
        name = vcp_names[j] if j < len(vcp_names) else f"VC{j}"
        indicator = _is_indicator(columns.data)
        blocks.append(
            RandomEffectsBlock(
                group=name,
                terms=[None if indicator else name],
                # variance parameters are posterior means of log standard deviations
                cov=np.array([[float(np.exp(2 * results.vcp_mean[j]))]]),
                crossprod=np.array([[float(columns.power(2).sum()) / n_obs]]),
                correlated=False,
            )
        )

    family, link = family_info(model)
    log.debug("Extracted Bayesian mixed GLM", family=family, n_blocks=len(blocks))
    return MixedModelParts(
        X=np.asarray(model.exog, dtype=float),
        beta=np.asarray(results.fe_mean, dtype=float),
        family=family,
        link=link,
        scale=1.0,
        blocks=blocks,
    )
