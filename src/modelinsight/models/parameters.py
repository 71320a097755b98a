"""
Point estimates of model parameters.

Marginal-means grids differ from regression models: their ``Parameter``
column does not always hold variable names, but may hold values, e.g.
the level pairs of contrasts.
"""

from functools import singledispatch
from typing import Any

import numpy as np
import pandas as pd
from statsmodels.base.wrapper import ResultsWrapper

from modelinsight.models.classes import get_model
from modelinsight.models.emmeans import EMMGrid, EMMList
from modelinsight.schemas.parameters import ParameterTableSchema
from modelinsight.utils.logging import get_logger

log = get_logger(__name__)


def _merge_columns(params: pd.DataFrame) -> list[str]:
    """Merge parameter columns row-wise into "name [value], name [value]"."""
    return [
        ", ".join(f"{col} [{value}]" for col, value in zip(params.columns, row))
        for row in params.itertuples(index=False)
    ]


def _remove_backticks(table: pd.DataFrame) -> pd.DataFrame:
    table = table.rename(columns=lambda c: str(c).replace("`", ""))
    if "Parameter" in table.columns:
        table["Parameter"] = table["Parameter"].map(
            lambda p: p.replace("`", "") if isinstance(p, str) else p
        )
    return table


def _clean_draws(grid: EMMGrid) -> pd.DataFrame:
    """Draws of a grid on its prediction scale."""
    draws = grid.draws.copy()
    inverse = grid.misc.get("inverse_link")
    if grid.misc.get("predict_type") == "response" and inverse is not None:
        draws = pd.DataFrame(
            inverse(draws.to_numpy()), columns=draws.columns, index=draws.index
        )
    return draws


@singledispatch
def get_parameters(
    x: Any, summary: bool = False, merge_parameters: bool = False
) -> pd.DataFrame:
    """
    Parameter names and point estimates of a model.

    Args:
        x: A statsmodels results object, an EMMGrid or an EMMList.
        summary: For grids with draws, return the summary estimates instead
            of the draws.
        merge_parameters: For grids with several parameter columns, merge them
            into a single ``Parameter`` column.

    Returns:
        A data frame with parameter names and estimates, or the draws of a
        grid with simulated draws.

    Raises:
        TypeError: If ``x`` has no parameters.
    """
    model = get_model(x)
    if hasattr(x, "fe_mean"):
        names = list(model.fep_names)
        values = np.asarray(x.fe_mean, dtype=float)
    elif hasattr(x, "fe_params"):
        values = np.asarray(x.fe_params, dtype=float)
        names = list(model.exog_names)[: len(values)]
    elif hasattr(x, "params"):
        values = np.asarray(x.params, dtype=float)
        names = list(getattr(model, "exog_names", None) or range(len(values)))
    else:
        msg = f"Objects of class `{type(x).__name__}` are not supported."
        raise TypeError(msg)

    table = pd.DataFrame({"Parameter": names[: len(values)], "Estimate": values})
    return ParameterTableSchema.validate(_remove_backticks(table))


@get_parameters.register(ResultsWrapper)
def _get_parameters_wrapper(
    x: ResultsWrapper, summary: bool = False, merge_parameters: bool = False
) -> pd.DataFrame:
    return get_parameters(x._results, summary=summary, merge_parameters=merge_parameters)


@get_parameters.register(EMMGrid)
def _get_parameters_emmgrid(
    x: EMMGrid, summary: bool = False, merge_parameters: bool = False
) -> pd.DataFrame:
    if x.is_bayesian and not summary:
        return _clean_draws(x)

    s = x.summary
    estimate_pos = s.columns.get_loc(x.est_name)
    params = s.iloc[:, :estimate_pos]
    estimates = s[x.est_name].to_numpy()

    if merge_parameters and params.shape[1] > 1:
        out = pd.DataFrame({"Parameter": _merge_columns(params), "Estimate": estimates})
    else:
        out = params.reset_index(drop=True).copy()
        out["Estimate"] = estimates
        if merge_parameters:
            out = out.rename(columns={out.columns[0]: "Parameter"})
    return _remove_backticks(out)


@get_parameters.register(EMMList)
def _get_parameters_emmlist(
    x: EMMList, summary: bool = False, merge_parameters: bool = False
) -> pd.DataFrame:
    if x.is_bayesian and not summary:
        return pd.concat([_clean_draws(grid) for grid in x.values()], axis=1)

    tables = []
    for name, grid in x.items():
        out = get_parameters(grid, summary=True)
        if out.shape[1] > 2:
            estimates = out["Estimate"].to_numpy()
            out = pd.DataFrame(
                {
                    "Parameter": _merge_columns(out.drop(columns="Estimate")),
                    "Estimate": estimates,
                }
            )
        out = out.rename(columns={out.columns[0]: "Parameter"})
        out["Parameter"] = out["Parameter"].astype(str)
        out["Component"] = name
        tables.append(out)

    log.debug("Stacked grid parameters", components=list(x))
    return ParameterTableSchema.validate(pd.concat(tables, ignore_index=True))
