"""
Smooth-term detection for generalized additive models.
"""

import re
from typing import Any

from modelinsight.models.classes import GAM_CLASSES, get_model, inherits

# Spline-basis constructors provided by patsy
SPLINE_FUNCTIONS: tuple[str, ...] = ("bs", "cr", "cc", "te")

_SPLINE_PATTERN = re.compile(r"(?<![\w.])(?:" + "|".join(SPLINE_FUNCTIONS) + r")\(")


def _smoother_terms(model: Any) -> list[str]:
    smoother = getattr(model, "smoother", None)
    if smoother is None:
        return []
    smoothers = getattr(smoother, "smoothers", None) or [smoother]
    terms = []
    for i, univariate in enumerate(smoothers):
        name = getattr(univariate, "variable_name", None) or f"x{i}"
        terms.append(f"s({name})")
    return terms


def _formula_terms(model: Any) -> list[str]:
    design_info = getattr(getattr(model, "data", None), "design_info", None)
    if design_info is None:
        return []
    return [
        term for term in design_info.term_names if _SPLINE_PATTERN.search(term)
    ]


def find_smooth(
    x: Any, flatten: bool = False
) -> dict[str, list[str]] | list[str] | None:
    """
    Find the smooth terms of a model.

    Smooth terms are the penalized smoothers of a GAM and spline-basis
    terms (``bs()``, ``cr()``, ``cc()``, ``te()``) in a model formula.

    Args:
        x: A statsmodels model or results object.
        flatten: Return a plain list instead of a dictionary.

    Returns:
        ``{"smooth_terms": [...]}``, the list itself if ``flatten`` is True,
        or None if the model has no smooth terms.
    """
    model = get_model(x)
    terms = _smoother_terms(model) + _formula_terms(model)
    if not terms:
        return None
    if flatten:
        return terms
    return {"smooth_terms": terms}


def is_gam_model(x: Any) -> bool:
    """
    Check if a model is a generalized additive model with smooth terms.

    Only True when ``x`` inherits from a GAM class *and* smooth terms are
    present; a linear model with spline terms is not a GAM.

    Args:
        x: A model object.

    Returns:
        True if ``x`` is a GAM with smooth terms.
    """
    return inherits(x, GAM_CLASSES) and find_smooth(x, flatten=True) is not None
