"""
Model class resolution.

statsmodels hands out fitted results wrapped in ``ResultsWrapper`` objects
that do not inherit from the results class. Everything here looks through
the wrapper so callers can pass either form.
"""

from typing import Any

from statsmodels.base.wrapper import ResultsWrapper

GAM_CLASSES: frozenset[str] = frozenset({"GLMGam", "GLMGamResults"})

MIXED_CLASSES: frozenset[str] = frozenset(
    {
        "MixedLM",
        "MixedLMResults",
        "BinomialBayesMixedGLM",
        "PoissonBayesMixedGLM",
        "BayesMixedGLMResults",
    }
)


def unwrap(x: Any) -> Any:
    """Return the underlying results instance of a statsmodels wrapper."""
    if isinstance(x, ResultsWrapper):
        return x._results
    return x


def get_model(x: Any) -> Any:
    """Return the model of a results object, or ``x`` itself if it is a model."""
    x = unwrap(x)
    return getattr(x, "model", x)


def get_class_list(x: Any) -> list[str]:
    """
    Class names of ``x`` in method resolution order.

    Wrapped results are resolved first.
    """
    return [cls.__name__ for cls in type(unwrap(x)).__mro__]


def inherits(x: Any, classes: frozenset[str] | set[str]) -> bool:
    """True if any class in the MRO of ``x`` is named in ``classes``."""
    return any(name in classes for name in get_class_list(x))


def is_mixed_model(x: Any) -> bool:
    """
    Check if ``x`` is a mixed-effects model with random effects.

    Args:
        x: A statsmodels model or results object.

    Returns:
        True for linear mixed models and Bayesian mixed GLMs.
    """
    return inherits(x, MIXED_CLASSES)


def family_info(model: Any) -> tuple[str, str]:
    """
    Family and link names of a model, lower-cased.

    Models without a ``family`` attribute (e.g. linear mixed models) are
    Gaussian with identity link.
    """
    family = getattr(model, "family", None)
    if family is None:
        return "gaussian", "identity"
    return type(family).__name__.lower(), type(family.link).__name__.lower()
