"""
Estimated marginal means.

Builds a reference grid over a model's predictors (categorical predictors
at all their levels, numeric predictors at their mean), predicts on it and
averages the predictions over the factors not named in ``specs``, giving
every level the same weight.

A grid can carry simulated coefficient draws. Such grids behave like
posterior summaries: :func:`modelinsight.get_parameters` returns the draws
instead of the point estimates.
"""

import itertools
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np
import pandas as pd
import patsy
from scipy import stats
from statsmodels.regression.linear_model import RegressionResults

from modelinsight.models.classes import family_info, get_model, unwrap
from modelinsight.schemas.parameters import EMMSummarySchema
from modelinsight.utils.logging import get_logger

log = get_logger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_.][\w.]*")

# Response-scale contrasts of these links are ratios (exponentiated differences)
RATIO_LINKS: dict[str, str] = {"logit": "odds.ratio", "log": "ratio"}


@dataclass
class EMMGrid:
    """
    Estimated marginal means (or contrasts of them).

    Attributes:
        summary: One row per grid cell: the grid columns, the estimate
            column named by ``est_name``, then SE, df and confidence limits.
        est_name: Name of the estimate column.
        linfct: Linear functions of the coefficients, one row per cell.
        misc: Prediction type ("link", "response" or "none") and the inverse
            link used to back-transform draws.
        draws: Simulated draws on the link scale (one column per cell), or None.
    """

    summary: pd.DataFrame
    est_name: str
    linfct: np.ndarray
    misc: dict[str, Any] = field(default_factory=dict)
    draws: pd.DataFrame | None = None

    @property
    def is_bayesian(self) -> bool:
        """Whether the grid carries draws."""
        return self.draws is not None

    def __len__(self) -> int:
        return len(self.summary)


class EMMList(dict[str, EMMGrid]):
    """Named collection of grids, e.g. means and their pairwise contrasts."""

    @property
    def is_bayesian(self) -> bool:
        """Whether every grid carries draws."""
        return bool(self) and all(grid.is_bayesian for grid in self.values())


def _predictor_variables(
    design_info: patsy.DesignInfo, frame: pd.DataFrame
) -> tuple[list[str], set[str]]:
    """Data columns used by the design and the subset used as categoricals."""
    used: set[str] = set()
    categorical: set[str] = set()
    for factor, info in design_info.factor_infos.items():
        tokens = set(_IDENTIFIER.findall(factor.name()))
        used |= tokens
        if info.type == "categorical":
            categorical |= tokens
    columns = [str(c) for c in frame.columns if str(c) in used]
    return columns, categorical


def _levels(values: pd.Series) -> list[Any]:
    if isinstance(values.dtype, pd.CategoricalDtype):
        return list(values.cat.categories)
    return sorted(values.dropna().unique().tolist())


def _is_categorical(values: pd.Series) -> bool:
    return not pd.api.types.is_numeric_dtype(values) or pd.api.types.is_bool_dtype(
        values
    )


def _cell_labels(cells: pd.DataFrame) -> list[str]:
    return [" ".join(str(v) for v in row) for row in cells.itertuples(index=False)]


def _coefficients(results: Any, k: int) -> tuple[np.ndarray, np.ndarray]:
    """Fixed coefficients and their covariance (first ``k`` parameters)."""
    beta = np.asarray(getattr(results, "fe_params", results.params), dtype=float)[:k]
    cov = np.asarray(results.cov_params(), dtype=float)[:k, :k]
    return beta, cov


def _summarize(
    cells: pd.DataFrame,
    linfct: np.ndarray,
    beta: np.ndarray,
    cov: np.ndarray,
    df: float,
    level: float,
    est_name: str,
    inverse: Callable[[np.ndarray], np.ndarray] | None = None,
    inverse_deriv: Callable[[np.ndarray], np.ndarray] | None = None,
) -> pd.DataFrame:
    eta = linfct @ beta
    se = np.sqrt(np.maximum(np.einsum("ij,jk,ik->i", linfct, cov, linfct), 0.0))
    if np.isinf(df):
        crit = stats.norm.ppf((1 + level) / 2)
    else:
        crit = stats.t.ppf((1 + level) / 2, df)
    low, high = eta - crit * se, eta + crit * se

    if inverse is not None and inverse_deriv is not None:
        estimate = inverse(eta)
        se = np.abs(inverse_deriv(eta)) * se
        low, high = inverse(low), inverse(high)
    else:
        estimate = eta

    summary = cells.reset_index(drop=True).copy()
    summary[est_name] = estimate
    summary["SE"] = se
    summary["df"] = df
    summary["CI_low"] = low
    summary["CI_high"] = high
    return EMMSummarySchema.validate(summary)


def _simulate(
    beta: np.ndarray,
    cov: np.ndarray,
    linfct: np.ndarray,
    labels: list[str],
    n_draws: int,
    rng: np.random.Generator,
) -> pd.DataFrame:
    coefs = rng.multivariate_normal(beta, cov, size=n_draws)
    return pd.DataFrame(coefs @ linfct.T, columns=labels)


def _pairwise(
    grid: EMMGrid,
    cells: pd.DataFrame,
    beta: np.ndarray,
    cov: np.ndarray,
    df: float,
    level: float,
    n_draws: int | None,
    rng: np.random.Generator,
    ratio_name: str | None = None,
) -> EMMGrid:
    """
    Pairwise contrasts of all cells.

    Contrasts are differences on the link scale. With ``ratio_name`` they
    are back-transformed to ratios ``a / b``, e.g. odds ratios.
    """
    labels = _cell_labels(cells)
    pairs = list(itertools.combinations(range(len(labels)), 2))
    if not pairs:
        msg = "Pairwise contrasts need at least two grid cells"
        raise ValueError(msg)

    linfct = np.vstack([grid.linfct[i] - grid.linfct[j] for i, j in pairs])
    separator = " / " if ratio_name else " - "
    contrast_labels = [f"{labels[i]}{separator}{labels[j]}" for i, j in pairs]
    est_name = ratio_name or "estimate"
    transform = np.exp if ratio_name else None
    summary = _summarize(
        pd.DataFrame({"contrast": contrast_labels}),
        linfct,
        beta,
        cov,
        df,
        level,
        est_name,
        transform,
        transform,
    )
    draws = None
    if n_draws:
        draws = _simulate(beta, cov, linfct, contrast_labels, n_draws, rng)
    return EMMGrid(
        summary=summary,
        est_name=est_name,
        linfct=linfct,
        misc={
            "predict_type": "response" if ratio_name else "none",
            "inverse_link": transform,
        },
        draws=draws,
    )


def estimated_marginal_means(
    model: Any,
    specs: str | Sequence[str],
    at: Mapping[str, Any] | None = None,
    pairwise: bool = False,
    prediction: Literal["link", "response"] = "link",
    level: float = 0.95,
    draws: int | None = None,
    seed: int | None = None,
) -> EMMGrid | EMMList:
    """
    Estimated marginal means of a formula-fitted model.

    Args:
        model: A statsmodels results object fit with ``from_formula``.
        specs: Predictor(s) to compute means for.
        at: Fixed values for predictors, overriding levels/means of the grid.
        pairwise: Also compute all pairwise contrasts of the means. Contrasts
            are link-scale differences; with ``prediction="response"``, logit
            and log links give odds ratios and ratios instead.
        prediction: "link" for the linear predictor, "response" to
            back-transform means (and their intervals) through the inverse link.
        level: Confidence level of the intervals.
        draws: Number of coefficient draws to simulate from the asymptotic
            normal distribution of the estimates. None disables simulation.
        seed: Seed for the draws.

    Returns:
        An EMMGrid, or an EMMList with "emmeans" and "contrasts" grids if
        ``pairwise`` is True.

    Raises:
        ValueError: If the model was not fit from a formula, or ``specs``
            names an unknown predictor.
    """
    results = unwrap(model)
    mdl = get_model(results)
    design_info = getattr(getattr(mdl, "data", None), "design_info", None)
    frame = getattr(getattr(mdl, "data", None), "frame", None)
    if design_info is None or frame is None:
        msg = "Marginal means need a model fit from a formula with a data frame"
        raise ValueError(msg)

    specs = [specs] if isinstance(specs, str) else list(specs)
    at = dict(at or {})
    variables, categorical = _predictor_variables(design_info, frame)
    unknown = [s for s in [*specs, *at] if s not in variables]
    if unknown:
        msg = f"Not a predictor of the model: {', '.join(unknown)}"
        raise ValueError(msg)

    grid_values: dict[str, list[Any]] = {}
    for var in variables:
        column = frame[var]
        if var in at:
            grid_values[var] = list(np.atleast_1d(at[var]))
        elif var in categorical or _is_categorical(column):
            grid_values[var] = _levels(column)
        else:
            grid_values[var] = [float(column.mean())]

    grid = pd.MultiIndex.from_product(
        list(grid_values.values()), names=variables
    ).to_frame(index=False)
    X = patsy.build_design_matrices([design_info], grid, return_type="dataframe")[0]
    X = X.to_numpy(dtype=float)

    cells = (
        grid[specs]
        .drop_duplicates()
        .sort_values(specs[::-1], kind="stable")
        .reset_index(drop=True)
    )
    linfct = np.vstack(
        [
            X[
                np.logical_and.reduce(
                    [grid[s].to_numpy() == v for s, v in zip(specs, cell)]
                )
            ].mean(axis=0)
            for cell in cells.itertuples(index=False)
        ]
    )
    log.debug("Built reference grid", rows=len(grid), cells=len(cells), specs=specs)

    beta, cov = _coefficients(results, X.shape[1])
    df = float(results.df_resid) if isinstance(results, RegressionResults) else np.inf

    family = getattr(mdl, "family", None)
    back_transform = prediction == "response" and family is not None
    if back_transform:
        est_name = "response"
        inverse = family.link.inverse
        inverse_deriv = family.link.inverse_deriv
        ratio_name = RATIO_LINKS.get(family_info(mdl)[1])
    else:
        est_name = "emmean"
        inverse = inverse_deriv = None
        ratio_name = None

    summary = _summarize(
        cells, linfct, beta, cov, df, level, est_name, inverse, inverse_deriv
    )

    rng = np.random.default_rng(seed)
    simulated = None
    if draws:
        simulated = _simulate(beta, cov, linfct, _cell_labels(cells), draws, rng)

    emm = EMMGrid(
        summary=summary,
        est_name=est_name,
        linfct=linfct,
        misc={
            "predict_type": "response" if back_transform else "link",
            "inverse_link": inverse,
        },
        draws=simulated,
    )
    if not pairwise:
        return emm
    return EMMList(
        emmeans=emm,
        contrasts=_pairwise(
            emm, cells, beta, cov, df, level, draws, rng, ratio_name=ratio_name
        ),
    )
