"""
Design (model) matrices of fitted models.

The matrix is taken from the model when no data is supplied. With new
data it is rebuilt from the formula the model was fit with; data passed
by the caller always takes precedence over the model's own data.
"""

from functools import singledispatch
from typing import Any

import numpy as np
import pandas as pd
import patsy
from statsmodels.base.wrapper import ResultsWrapper
from statsmodels.gam.generalized_additive_model import GLMGam, GLMGamResults

from modelinsight.models.classes import get_model
from modelinsight.utils.logging import get_logger

log = get_logger(__name__)


def _recorded_levels(design_info: patsy.DesignInfo) -> dict[str, tuple[Any, ...]]:
    """Levels patsy recorded at fit time for factors that are plain columns."""
    return {
        factor.name(): tuple(info.categories)
        for factor, info in design_info.factor_infos.items()
        if info.type == "categorical"
    }


def _coerce_characters(
    data: Any, levels: dict[str, tuple[Any, ...]] | None = None
) -> pd.DataFrame:
    """
    Convert character columns to categoricals.

    With ``levels`` (the levels a model was fit with), a column becomes a
    categorical over all fitted levels, so subsets of the data keep the
    full set of dummy columns. Columns the model has no levels for, or with
    values it never saw, are left for patsy to map or reject.
    """
    frame = pd.DataFrame(data).copy()
    for col in frame.columns:
        values = frame[col]
        if not (values.dtype == object or pd.api.types.is_string_dtype(values)):
            continue
        if levels is None:
            frame[col] = values.astype("category")
            continue
        fitted = levels.get(str(col))
        if fitted is not None and set(values.dropna()) <= set(fitted):
            frame[col] = pd.Categorical(values, categories=list(fitted))
    return frame


def _exog_names(model: Any, n_cols: int) -> list[str]:
    names = getattr(model, "fep_names", None) or getattr(model, "exog_names", None)
    if names is None or len(names) != n_cols:
        return [f"x{i}" for i in range(n_cols)]
    return list(names)


def _row_labels(model: Any, n_rows: int) -> pd.Index | None:
    labels = getattr(getattr(model, "data", None), "row_labels", None)
    if labels is None or len(labels) != n_rows:
        return None
    return pd.Index(labels)


def _stored_matrix(model: Any) -> pd.DataFrame:
    exog = getattr(model, "exog", None)
    if exog is None:
        msg = f"Objects of class `{type(model).__name__}` have no design matrix"
        raise TypeError(msg)
    exog = np.asarray(exog)
    if exog.ndim == 1:
        exog = exog[:, None]
    return pd.DataFrame(
        exog,
        columns=_exog_names(model, exog.shape[1]),
        index=_row_labels(model, exog.shape[0]),
    )


def _rebuild_matrix(
    model: Any,
    data: Any,
    design_info: patsy.DesignInfo | None = None,
    **kwargs: Any,
) -> pd.DataFrame:
    if design_info is None:
        design_info = getattr(getattr(model, "data", None), "design_info", None)
    if design_info is None:
        msg = (
            f"Cannot rebuild the model matrix of `{type(model).__name__}` for new "
            "data: the model was not fit from a formula"
        )
        raise ValueError(msg)
    frame = _coerce_characters(data, _recorded_levels(design_info))
    log.debug("Rebuilding model matrix", rows=len(frame))
    return patsy.build_design_matrices(
        [design_info], frame, return_type="dataframe", **kwargs
    )[0]


@singledispatch
def get_modelmatrix(x: Any, data: Any = None, **kwargs: Any) -> pd.DataFrame:
    """
    Design matrix of a model.

    Args:
        x: A statsmodels model or results object, or a formula string.
        data: Optional data to build the matrix for. Character columns are
            coerced to categoricals over the levels the model was fit with.
        **kwargs: Passed to the formula builder (e.g. ``NA_action``).

    Returns:
        The design matrix as a DataFrame with one column per coefficient.

    Raises:
        ValueError: If ``data`` is given but the model was not fit from a formula.
        TypeError: If ``x`` carries no design matrix.
    """
    model = get_model(x)
    if data is None:
        return _stored_matrix(model)
    return _rebuild_matrix(model, data, **kwargs)


@get_modelmatrix.register(ResultsWrapper)
def _get_modelmatrix_wrapper(
    x: ResultsWrapper, data: Any = None, **kwargs: Any
) -> pd.DataFrame:
    return get_modelmatrix(x._results, data, **kwargs)


@get_modelmatrix.register(str)
def _get_modelmatrix_formula(x: str, data: Any = None, **kwargs: Any) -> pd.DataFrame:
    if data is None:
        msg = "A formula needs `data` to build a model matrix"
        raise ValueError(msg)
    rhs = x.split("~", 1)[1] if "~" in x else x
    return patsy.dmatrix(
        rhs.strip(), _coerce_characters(data), return_type="dataframe", **kwargs
    )


@get_modelmatrix.register(GLMGam)
@get_modelmatrix.register(GLMGamResults)
def _get_modelmatrix_gam(x: Any, data: Any = None, **kwargs: Any) -> pd.DataFrame:
    model = get_model(x)
    if data is None:
        return _stored_matrix(model)

    # the linear part of a GAM formula is kept apart from the smooth basis
    frame = pd.DataFrame(data)
    linear = _rebuild_matrix(
        model, frame, getattr(model, "design_info_linear", None), **kwargs
    )
    smoother = model.smoother
    variables = list(smoother.variable_names)
    basis = smoother.transform(frame.loc[linear.index, variables].to_numpy(dtype=float))
    smooth = pd.DataFrame(basis, columns=list(smoother.col_names), index=linear.index)
    return pd.concat([linear, smooth], axis=1)
