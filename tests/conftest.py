"""Pytest configuration and shared fixtures."""

import warnings
from collections.abc import Iterator
from typing import Any

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.gam.api import BSplines, GLMGam
from statsmodels.genmod.bayes_mixed_glm import (
    BinomialBayesMixedGLM,
    PoissonBayesMixedGLM,
)

from modelinsight.config import set_config


@pytest.fixture(autouse=True)
def reset_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start every test with default configuration."""
    monkeypatch.delenv("MODELINSIGHT_CONFIG", raising=False)
    set_config(None)
    yield
    set_config(None)


def _quiet_fit(model: Any, **kwargs: Any) -> Any:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        return model.fit(**kwargs)


@pytest.fixture(scope="session")
def sleep_data() -> pd.DataFrame:
    """Simulated reaction times of 18 subjects over 10 days of sleep deprivation."""
    rng = np.random.default_rng(1337)
    n_subjects, n_days = 18, 10
    subject = np.repeat(np.arange(n_subjects), n_days)
    days = np.tile(np.arange(n_days), n_subjects)
    intercepts = rng.normal(0, 25, n_subjects)
    slopes = rng.normal(0, 6, n_subjects)
    reaction = (
        250
        + 10 * days
        + intercepts[subject]
        + slopes[subject] * days
        + rng.normal(0, 25, n_subjects * n_days)
    )
    return pd.DataFrame(
        {
            "Reaction": reaction,
            "Days": days.astype(float),
            "Subject": [f"S{s:02d}" for s in subject],
        }
    )


@pytest.fixture(scope="session")
def intercept_model(sleep_data: pd.DataFrame) -> Any:
    """Random-intercept linear mixed model."""
    model = smf.mixedlm("Reaction ~ Days", sleep_data, groups="Subject")
    return _quiet_fit(model)


@pytest.fixture(scope="session")
def slope_model(sleep_data: pd.DataFrame) -> Any:
    """Linear mixed model with correlated random intercepts and slopes."""
    model = smf.mixedlm(
        "Reaction ~ Days", sleep_data, groups="Subject", re_formula="~Days"
    )
    return _quiet_fit(model)


@pytest.fixture(scope="session")
def clustered_counts() -> pd.DataFrame:
    """Simulated binary and count outcomes from 20 clusters."""
    rng = np.random.default_rng(42)
    n_groups, n_per_group = 20, 30
    group = np.repeat(np.arange(n_groups), n_per_group)
    x = rng.normal(size=n_groups * n_per_group)
    u = rng.normal(0, 1, n_groups)
    eta_binary = -0.5 + 0.8 * x + u[group]
    eta_count = 0.5 + 0.3 * x + 0.5 * u[group]
    return pd.DataFrame(
        {
            "y": rng.binomial(1, 1 / (1 + np.exp(-eta_binary))),
            "count": rng.poisson(np.exp(eta_count)),
            "x": x,
            "g": group,
        }
    )


@pytest.fixture(scope="session")
def binomial_glmm(clustered_counts: pd.DataFrame) -> Any:
    """Bayesian random-intercept logistic model."""
    model = BinomialBayesMixedGLM.from_formula(
        "y ~ x", {"g": "0 + C(g)"}, clustered_counts
    )
    return model.fit_vb()


@pytest.fixture(scope="session")
def poisson_glmm(clustered_counts: pd.DataFrame) -> Any:
    """Bayesian random-intercept Poisson model."""
    model = PoissonBayesMixedGLM.from_formula(
        "count ~ x", {"g": "0 + C(g)"}, clustered_counts
    )
    return model.fit_vb()


@pytest.fixture(scope="session")
def car_data() -> pd.DataFrame:
    """Simulated fuel consumption of cars by weight, cylinders and transmission."""
    rng = np.random.default_rng(2024)
    n = 90
    cyl = rng.choice([4, 6, 8], size=n)
    am = rng.choice([0, 1], size=n)
    wt = rng.normal(3.2, 0.6, size=n)
    mpg = (
        36
        - 3 * wt
        - 2 * (cyl == 6)
        - 5 * (cyl == 8)
        + 1.5 * am
        + rng.normal(0, 1.5, size=n)
    )
    return pd.DataFrame(
        {
            "mpg": mpg,
            "wt": wt,
            "cyl": cyl,
            "am": am,
            "gear": rng.choice(["three", "four", "five"], size=n),
        }
    )


@pytest.fixture(scope="session")
def ols_model(car_data: pd.DataFrame) -> Any:
    """Linear model with a weight-by-cylinder interaction."""
    return smf.ols("mpg ~ wt * C(cyl)", car_data).fit()


@pytest.fixture(scope="session")
def logit_model(car_data: pd.DataFrame) -> Any:
    """Logistic model of transmission type."""
    model = smf.glm("am ~ wt + C(cyl)", car_data, family=sm.families.Binomial())
    return _quiet_fit(model)


@pytest.fixture(scope="session")
def gam_data() -> pd.DataFrame:
    """Simulated data with a non-linear effect of x."""
    rng = np.random.default_rng(7)
    n = 200
    x = rng.uniform(0, 10, size=n)
    z = rng.normal(size=n)
    y = np.sin(x) + 0.5 * z + rng.normal(0, 0.3, size=n)
    return pd.DataFrame({"y": y, "x": x, "z": z})


@pytest.fixture(scope="session")
def gam_model(gam_data: pd.DataFrame) -> Any:
    """Gaussian GAM with a B-spline smooth of x."""
    smoother = BSplines(gam_data[["x"]], df=[6], degree=[3])
    model = GLMGam.from_formula("y ~ z", data=gam_data, smoother=smoother)
    return _quiet_fit(model)
