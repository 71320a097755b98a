"""Tests for design matrix extraction."""

from typing import Any

import numpy as np
import pandas as pd
import patsy
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.gam.api import BSplines, GLMGam

from modelinsight.models.matrix import get_modelmatrix


class TestDefaultModels:
    """Tests for ordinary regression models."""

    def test_stored_matrix(self, ols_model: Any) -> None:
        """Test that the fitted design matrix is returned with names."""
        mm = get_modelmatrix(ols_model)
        assert list(mm.columns) == list(ols_model.model.exog_names)
        np.testing.assert_allclose(mm.to_numpy(), ols_model.model.exog)

    def test_row_labels(self, ols_model: Any, car_data: pd.DataFrame) -> None:
        """Test that rows keep the data frame index."""
        mm = get_modelmatrix(ols_model)
        assert list(mm.index) == list(car_data.index)

    def test_new_data(self, ols_model: Any, car_data: pd.DataFrame) -> None:
        """Test rebuilding the matrix for new data."""
        new = car_data.head(5)
        mm = get_modelmatrix(ols_model, data=new)
        assert mm.shape == (5, len(ols_model.model.exog_names))
        np.testing.assert_allclose(mm.to_numpy(), ols_model.model.exog[:5])

    def test_character_subset_keeps_levels(self, car_data: pd.DataFrame) -> None:
        """Test new data lacking some levels of a character predictor."""
        result = smf.ols("mpg ~ wt + gear", car_data).fit()
        new = car_data[car_data["gear"] == "four"].head(2)
        mm = get_modelmatrix(result, data=new)
        assert list(mm.columns) == list(result.model.exog_names)
        np.testing.assert_allclose(mm.to_numpy(), result.model.exog[new.index])

    def test_single_row(self, car_data: pd.DataFrame) -> None:
        """Test building the matrix for one observation."""
        result = smf.ols("mpg ~ wt + gear", car_data).fit()
        new = pd.DataFrame({"wt": [3.0], "gear": ["three"]})
        mm = get_modelmatrix(result, data=new)
        assert mm.iloc[0].to_dict() == {
            "Intercept": 1.0,
            "gear[T.four]": 0.0,
            "gear[T.three]": 1.0,
            "wt": 3.0,
        }

    def test_unseen_level(self, car_data: pd.DataFrame) -> None:
        """Test that levels the model never saw are rejected."""
        result = smf.ols("mpg ~ wt + gear", car_data).fit()
        new = pd.DataFrame({"wt": [3.0], "gear": ["six"]})
        with pytest.raises(patsy.PatsyError):
            get_modelmatrix(result, data=new)

    def test_model_object(self, ols_model: Any) -> None:
        """Test that the unfitted model works as well."""
        mm = get_modelmatrix(ols_model.model)
        assert mm.shape == ols_model.model.exog.shape

    def test_array_model_names(self) -> None:
        """Test models fit on arrays get generic names."""
        rng = np.random.default_rng(0)
        X = sm.add_constant(rng.normal(size=(20, 2)))
        result = sm.OLS(rng.normal(size=20), X).fit()
        mm = get_modelmatrix(result)
        assert list(mm.columns) == ["const", "x1", "x2"]

    def test_array_model_new_data(self) -> None:
        """Test that models without formula cannot use new data."""
        rng = np.random.default_rng(0)
        X = sm.add_constant(rng.normal(size=(20, 2)))
        result = sm.OLS(rng.normal(size=20), X).fit()
        with pytest.raises(ValueError, match="not fit from a formula"):
            get_modelmatrix(result, data=pd.DataFrame({"a": [1.0]}))

    def test_unsupported(self) -> None:
        """Test objects without a design matrix."""
        with pytest.raises(TypeError, match="no design matrix"):
            get_modelmatrix(object())


class TestFormula:
    """Tests for formula strings."""

    def test_rhs_only(self, car_data: pd.DataFrame) -> None:
        """Test a one-sided formula."""
        mm = get_modelmatrix("~ wt + C(cyl)", data=car_data)
        assert list(mm.columns) == [
            "Intercept",
            "C(cyl)[T.6]",
            "C(cyl)[T.8]",
            "wt",
        ]
        assert len(mm) == len(car_data)

    def test_two_sided_uses_rhs(self, car_data: pd.DataFrame) -> None:
        """Test that the response is dropped from two-sided formulas."""
        mm = get_modelmatrix("mpg ~ wt", data=car_data)
        assert list(mm.columns) == ["Intercept", "wt"]

    def test_character_columns_become_factors(self, car_data: pd.DataFrame) -> None:
        """Test that character columns are expanded as factors."""
        mm = get_modelmatrix("~ gear", data=car_data)
        assert list(mm.columns) == ["Intercept", "gear[T.four]", "gear[T.three]"]

    def test_needs_data(self) -> None:
        """Test that a formula without data raises."""
        with pytest.raises(ValueError, match="needs `data`"):
            get_modelmatrix("~ x")


class TestMixedModels:
    """Tests for mixed models."""

    def test_fixed_effects_matrix(self, slope_model: Any) -> None:
        """Test that only fixed effects columns are returned."""
        mm = get_modelmatrix(slope_model)
        assert list(mm.columns) == ["Intercept", "Days"]
        assert len(mm) == 180

    def test_new_data_takes_precedence(
        self, slope_model: Any, sleep_data: pd.DataFrame
    ) -> None:
        """Test that user data replaces the model data."""
        new = pd.DataFrame({"Days": [0.0, 5.0], "Subject": ["S00", "S01"]})
        mm = get_modelmatrix(slope_model, data=new)
        np.testing.assert_allclose(mm.to_numpy(), [[1.0, 0.0], [1.0, 5.0]])

    def test_bayes_mixed_glm(self, binomial_glmm: Any) -> None:
        """Test that Bayesian mixed GLMs use their fixed parameter names."""
        mm = get_modelmatrix(binomial_glmm)
        assert list(mm.columns) == list(binomial_glmm.model.fep_names)
        assert mm.shape == binomial_glmm.model.exog.shape


class TestGam:
    """Tests for generalized additive models."""

    def test_stored_matrix(self, gam_model: Any) -> None:
        """Test that linear and smooth columns are returned."""
        mm = get_modelmatrix(gam_model)
        assert mm.shape == gam_model.model.exog.shape
        assert list(mm.columns) == list(gam_model.model.exog_names)
        assert mm.shape[1] > 2

    def test_new_data(self, gam_model: Any, gam_data: pd.DataFrame) -> None:
        """Test that linear and smooth columns are rebuilt for new data."""
        mm = get_modelmatrix(gam_model, data=gam_data.head(5))
        assert list(mm.columns) == list(gam_model.model.exog_names)
        np.testing.assert_allclose(mm.to_numpy(), gam_model.model.exog[:5])

    def test_array_gam_new_data(self, gam_data: pd.DataFrame) -> None:
        """Test that GAMs fit on arrays cannot use new data."""
        smoother = BSplines(gam_data[["x"]], df=[6], degree=[3])
        exog = sm.add_constant(gam_data[["z"]].to_numpy())
        model = GLMGam(gam_data["y"].to_numpy(), exog, smoother=smoother)
        with pytest.raises(ValueError, match="not fit from a formula"):
            get_modelmatrix(model, data=gam_data.head(5))
